"""
Summary Metrics for Footfall Forecast

Headline figures shown next to the chart: the latest record, the overall
average and a one-line description of the current predictions.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional, Sequence

import numpy as np

from .time_series import TimeSeries

PLACEHOLDER = "-"


@dataclass
class DatasetSummary:
    """Headline metrics for the loaded dataset"""
    observation_count: int
    last_date: Optional[date]
    last_count: Optional[float]
    average: Optional[float]
    prediction_count: int = 0
    prediction_average: Optional[float] = None

    @property
    def last_record_text(self) -> str:
        if self.last_date is None:
            return PLACEHOLDER
        return f"{_display_number(self.last_count)} (on {self.last_date.isoformat()})"

    @property
    def average_text(self) -> str:
        if self.average is None:
            return PLACEHOLDER
        return f"{self.average:.1f}"

    @property
    def prediction_text(self) -> str:
        if self.observation_count == 0 or not self.prediction_count:
            return PLACEHOLDER
        return f"Next {self.prediction_count} days - avg {self.prediction_average:.1f}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "observation_count": self.observation_count,
            "last_date": self.last_date.isoformat() if self.last_date else None,
            "last_count": self.last_count,
            "average": round(self.average, 2) if self.average is not None else None,
            "prediction_count": self.prediction_count,
            "prediction_average": (
                round(self.prediction_average, 2)
                if self.prediction_average is not None else None
            ),
            "display": {
                "last_record": self.last_record_text,
                "average": self.average_text,
                "prediction_summary": self.prediction_text
            }
        }


def _display_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def summarize_dataset(
    series: TimeSeries,
    predictions: Optional[Sequence[float]] = None
) -> DatasetSummary:
    """
    Summarize a dataset and, optionally, its current predictions.

    Args:
        series: Loaded observations
        predictions: Predicted values for the horizon, if trained

    Returns:
        DatasetSummary (fields are None when the series is empty)
    """
    predictions = list(predictions or [])

    if series.is_empty:
        return DatasetSummary(
            observation_count=0,
            last_date=None,
            last_count=None,
            average=None
        )

    last = series[-1]
    return DatasetSummary(
        observation_count=len(series),
        last_date=last.date,
        last_count=last.count,
        average=float(np.mean(series.counts)),
        prediction_count=len(predictions),
        prediction_average=float(np.mean(predictions)) if predictions else None
    )
