"""
Sale Record Validation

Rule-based checks run over a polars frame of sale records before it is
handed to the aggregation and scoring engines.

Features:
- Null checks
- Uniqueness checks
- Range/boundary checks
- Allowed value checks
- Arithmetic consistency rules (amount = quantity x price, margin = amount - cost)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

import polars as pl
import structlog

from produce_bi.analytics.frames import sales_frame
from produce_bi.analytics.models import SaleRecord
from produce_bi.errors import RecordValidationError

logger = structlog.get_logger(__name__)

CONSISTENCY_TOLERANCE = 0.01


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # blocks the records
    WARNING = "warning"  # logged, records still usable
    INFO = "info"


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100


def _missing_column(name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
    return ValidationCheck(
        name=name,
        passed=False,
        severity=severity,
        message=f"Column '{column}' not found",
    )


class DataValidator:
    """
    Chainable validator over a polars DataFrame.

    Example:
        validator = DataValidator()
        validator.add_not_null_check("customer_id")
        validator.add_range_check("quantity", min_value=0)
        result = validator.validate(df)
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode  # warnings fail the suite
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for null values in column"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"not_null_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            null_count = df[column].null_count()
            total = len(df)
            passed = null_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {null_count} null values" if not passed else f"Column '{column}' has no null values",
                details={"null_count": null_count, "null_percentage": (null_count / total) * 100 if total > 0 else 0},
                failed_rows=null_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for uniqueness of column values"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"unique_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            total = len(df)
            duplicate_count = total - df[column].n_unique()
            passed = duplicate_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {duplicate_count} duplicate values" if not passed else f"Column '{column}' values are unique",
                details={"duplicate_count": duplicate_count},
                failed_rows=duplicate_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values within specified range"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"range_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            conditions = []
            if min_value is not None:
                conditions.append(pl.col(column) < min_value)
            if max_value is not None:
                conditions.append(pl.col(column) > max_value)

            if not conditions:
                return ValidationCheck(name=name, passed=True, severity=severity, message="No range specified")

            combined = conditions[0]
            for cond in conditions[1:]:
                combined = combined | cond

            out_of_range = df.filter(combined).height
            passed = out_of_range == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {out_of_range} values outside range [{min_value}, {max_value}]" if not passed else "All values in range",
                details={"min": min_value, "max": max_value, "out_of_range_count": out_of_range},
                failed_rows=out_of_range,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_enum_check(
        self,
        column: str,
        allowed_values: List[Any],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values in allowed set"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"enum_{column}"
            if column not in df.columns:
                return _missing_column(name, column, severity)

            invalid = df.filter(
                ~pl.col(column).is_in(allowed_values) & pl.col(column).is_not_null()
            ).height
            passed = invalid == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {invalid} invalid values" if not passed else "All values are valid",
                details={"allowed_values": allowed_values, "invalid_count": invalid},
                failed_rows=invalid,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_consistency_check(
        self,
        name: str,
        actual: pl.Expr,
        expected: pl.Expr,
        tolerance: float = CONSISTENCY_TOLERANCE,
        severity: ValidationSeverity = ValidationSeverity.WARNING,
    ) -> "DataValidator":
        """Add check that two derived expressions agree within a tolerance"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            mismatched = df.filter((actual - expected).abs() > tolerance).height
            passed = mismatched == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"{mismatched} rows differ by more than {tolerance}" if not passed else "Values consistent",
                details={"tolerance": tolerance, "mismatched_count": mismatched},
                failed_rows=mismatched,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.now()
        results = []

        logger.info(f"Running {len(self._checks)} validation checks on {len(df)} rows")

        for check_func in self._checks:
            result = check_func(df)
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    message=result.message,
                    severity=result.severity.value,
                )

        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        if failed_checks > 0:
            status = ValidationStatus.FAILED
        elif warning_count > 0 and self.strict_mode:
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        logger.info(
            f"Validation complete: {status.value}",
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )

        return ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=results,
            started_at=started_at,
            completed_at=datetime.now(),
        )


def create_sales_validator(strict_mode: bool = False) -> DataValidator:
    """Create pre-configured validator for sale record frames"""
    return (
        DataValidator(strict_mode=strict_mode)
        .add_not_null_check("id")
        .add_not_null_check("date")
        .add_not_null_check("customer_id")
        .add_not_null_check("product_id")
        .add_not_null_check("category")
        .add_unique_check("id")
        .add_range_check("quantity", min_value=0)
        .add_range_check("unit_price", min_value=0)
        .add_range_check("total_amount", min_value=0)
        .add_range_check("cost", min_value=0)
        .add_consistency_check(
            "amount_matches_quantity_price",
            pl.col("total_amount"),
            pl.col("quantity") * pl.col("unit_price"),
        )
        .add_consistency_check(
            "margin_matches_amount_cost",
            pl.col("margin"),
            pl.col("total_amount") - pl.col("cost"),
        )
    )


def validate_sales(
    records: Sequence[SaleRecord],
    strict_mode: bool = False,
    raise_on_failure: bool = False,
) -> ValidationResult:
    """
    Validate sale records.

    Raises:
        RecordValidationError: If raise_on_failure is set and the suite failed
    """
    result = create_sales_validator(strict_mode).validate(sales_frame(records))
    if raise_on_failure and result.status == ValidationStatus.FAILED:
        raise RecordValidationError(result)
    return result
