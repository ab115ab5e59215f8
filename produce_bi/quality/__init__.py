"""
Data Quality Module
"""
from .validators import DataValidator, ValidationResult, create_sales_validator, validate_sales

__all__ = [
    "DataValidator",
    "ValidationResult",
    "create_sales_validator",
    "validate_sales",
]
