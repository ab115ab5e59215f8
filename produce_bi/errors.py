"""
Exception types raised by the aggregation and scoring engines.

Only caller mistakes are raised. Missing activity and empty date ranges
degrade to empty lists or zero-valued scores instead.
"""

from typing import Any, Optional


class ProduceBIError(Exception):
    """Base class for all produce_bi errors"""


class InvalidArgumentError(ProduceBIError, ValueError):
    """An argument is structurally invalid (unknown granularity, null id, bad date)"""

    def __init__(self, argument: str, value: Any, reason: Optional[str] = None):
        self.argument = argument
        self.value = value
        message = f"Invalid {argument}: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class RecordValidationError(ProduceBIError):
    """Sale records failed the input quality checks"""

    def __init__(self, result):
        self.result = result
        failed = [c.name for c in result.checks if not c.passed]
        super().__init__(f"Sale records failed validation: {', '.join(failed)}")
