"""
Forecasting Errors

Conditions raised or reported by the parsing and forecasting core.
"""

from dataclasses import dataclass
from typing import Any, Dict


class ForecastingError(ValueError):
    """Base class for conditions that block a forecast"""


class EmptyDatasetError(ForecastingError):
    """Raised when there are no observations to work with"""

    def __init__(self, message: str = "No data available"):
        super().__init__(message)


class InsufficientDataError(ForecastingError):
    """Raised when a series is shorter than the required minimum"""

    def __init__(self, required: int, actual: int):
        self.required = required
        self.actual = actual
        super().__init__(f"Need at least {required} data points to train.")


@dataclass(frozen=True)
class MalformedRow:
    """An input row that was dropped during parsing"""
    line_number: int
    line: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line_number": self.line_number,
            "line": self.line,
            "reason": self.reason
        }
