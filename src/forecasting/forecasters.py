"""
Footfall Forecasters

Three interchangeable prediction strategies over a TimeSeries:
linear trend, moving average and exponential smoothing.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Sequence, Tuple, Union

import numpy as np

from .errors import EmptyDatasetError, InsufficientDataError
from .time_series import TimeSeries, future_dates

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 7
MIN_WINDOW = 2
DEFAULT_ALPHA = 0.35


class ForecastModel(Enum):
    """Forecasting models offered to users"""
    LINEAR = "linear"       # OLS trend
    MOVING_AVERAGE = "ma"   # Moving average
    EXPONENTIAL = "exp"     # Exponential smoothing

    @property
    def label(self) -> str:
        return MODEL_LABELS[self]


MODEL_LABELS = {
    ForecastModel.LINEAR: "Linear trend (OLS)",
    ForecastModel.MOVING_AVERAGE: "Moving average",
    ForecastModel.EXPONENTIAL: "Exponential smoothing",
}


@dataclass(frozen=True)
class ForecastPoint:
    date: date
    predicted_count: float


@dataclass
class ForecastResult:
    """Result of a footfall forecast"""
    model_type: ForecastModel
    dates: List[date]
    values: List[float]
    parameters: Dict[str, Any] = field(default_factory=dict)
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def horizon(self) -> int:
        return len(self.values)

    @property
    def points(self) -> List[ForecastPoint]:
        return [ForecastPoint(d, v) for d, v in zip(self.dates, self.values)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_type": self.model_type.value,
            "horizon": self.horizon,
            "dates": [d.isoformat() for d in self.dates],
            "values": self.values,
            "parameters": self.parameters,
            "details": self.details
        }


@dataclass(frozen=True)
class LinearFit:
    """Slope and intercept of `count = slope * index + intercept`"""
    slope: float
    intercept: float

    def predict(self, start_index: int, steps: int) -> List[float]:
        """Extrapolate `steps` values from `start_index`, floored at zero"""
        return [
            max(0.0, self.slope * (start_index + k) + self.intercept)
            for k in range(steps)
        ]

    def to_dict(self) -> Dict[str, float]:
        return {"slope": self.slope, "intercept": self.intercept}


def fit_linear_trend(counts: Sequence[float]) -> LinearFit:
    """
    Ordinary least squares over the observation index.

    Uses the closed-form sums. A zero denominator only happens for a single
    observation, in which case the fit is flat at the first count.
    """
    y = np.asarray(counts, dtype=float)
    n = len(y)
    if n == 0:
        raise EmptyDatasetError("Cannot fit a trend to an empty series")

    x = np.arange(n, dtype=float)
    sx = float(np.sum(x))
    sy = float(np.sum(y))
    sxx = float(np.sum(x * x))
    sxy = float(np.sum(x * y))

    denom = n * sxx - sx * sx
    if denom == 0:
        return LinearFit(slope=0.0, intercept=float(y[0]))

    slope = (n * sxy - sx * sy) / denom
    intercept = (sy - slope * sx) / n
    return LinearFit(slope=slope, intercept=intercept)


def moving_average_path(
    counts: Sequence[float],
    window: int,
    steps: int
) -> Tuple[List[float], List[float]]:
    """
    Recursive moving average forecast.

    Each prediction is appended to the working sequence, so later steps
    average over earlier predictions as well as real observations.

    Returns:
        (predictions, working sequence of observations + predictions)
    """
    window = max(1, int(window))
    working = [float(c) for c in counts]
    predictions = []

    for _ in range(steps):
        recent = working[-window:]
        avg = float(np.mean(recent)) if recent else 0.0
        prediction = max(0.0, avg)
        predictions.append(prediction)
        working.append(avg)

    return predictions, working


def smoothing_levels(counts: Sequence[float], alpha: float) -> List[float]:
    """Every smoothed level, starting from the first observation"""
    if not counts:
        return []
    level = float(counts[0])
    levels = [level]
    for count in counts[1:]:
        level = alpha * float(count) + (1 - alpha) * level
        levels.append(level)
    return levels


class BaseForecaster(ABC):
    """
    Common contract for forecasters.

    Subclasses implement `_predict`; validation, the future date axis and
    result packaging live here.

    Example:
    ```python
    forecaster = create_forecaster("ma", window=7, min_observations=3)
    result = forecaster.forecast(series, horizon=14)
    print(result.dates[0], result.values[0])
    ```
    """

    model_type: ForecastModel

    def __init__(self, min_observations: int = 1):
        self.min_observations = max(1, int(min_observations))

    @property
    def parameters(self) -> Dict[str, Any]:
        return {"min_observations": self.min_observations}

    def forecast(self, series: TimeSeries, horizon: int) -> ForecastResult:
        """
        Forecast the days after the last observation.

        Args:
            series: Observed footfall
            horizon: Number of future days (>= 1)

        Returns:
            ForecastResult with exactly `horizon` dates and values

        Raises:
            EmptyDatasetError: series has no observations
            InsufficientDataError: series is shorter than min_observations
        """
        if isinstance(horizon, bool) or not isinstance(horizon, (int, np.integer)) or horizon < 1:
            raise ValueError(f"horizon must be a positive integer, got {horizon!r}")
        if series.is_empty:
            raise EmptyDatasetError()
        if len(series) < self.min_observations:
            raise InsufficientDataError(self.min_observations, len(series))

        horizon = int(horizon)
        values, details = self._predict(series.counts, horizon)
        dates = future_dates(series.last_date, horizon)

        logger.info(
            f"{self.model_type.value} forecast: {len(series)} observations -> {horizon} days"
        )

        return ForecastResult(
            model_type=self.model_type,
            dates=dates,
            values=[float(v) for v in values],
            parameters=self.parameters,
            details=details
        )

    @abstractmethod
    def _predict(self, counts: List[float], horizon: int) -> Tuple[List[float], Dict[str, Any]]:
        """Return `horizon` predictions and model-specific details"""


class LinearTrendForecaster(BaseForecaster):
    """Extrapolates a straight line fitted over the observation index"""

    model_type = ForecastModel.LINEAR

    def _predict(self, counts, horizon):
        fit = fit_linear_trend(counts)
        return fit.predict(len(counts), horizon), {"fit": fit.to_dict()}


class MovingAverageForecaster(BaseForecaster):
    """Averages the last `window` values, feeding predictions back in"""

    model_type = ForecastModel.MOVING_AVERAGE

    def __init__(self, window: int = DEFAULT_WINDOW, min_observations: int = 1):
        super().__init__(min_observations)
        self.window = max(MIN_WINDOW, int(window))

    @property
    def parameters(self):
        params = super().parameters
        params["window"] = self.window
        return params

    def _predict(self, counts, horizon):
        predictions, working = moving_average_path(counts, self.window, horizon)
        return predictions, {"working_sequence": working}


class ExponentialSmoothingForecaster(BaseForecaster):
    """Flat-line forecast at the final exponentially smoothed level"""

    model_type = ForecastModel.EXPONENTIAL

    def __init__(self, alpha: float = DEFAULT_ALPHA, min_observations: int = 1):
        super().__init__(min_observations)
        alpha = float(alpha)
        if not 0 < alpha < 1:
            raise ValueError(f"alpha must be between 0 and 1 (exclusive), got {alpha}")
        self.alpha = alpha

    @property
    def parameters(self):
        params = super().parameters
        params["alpha"] = self.alpha
        return params

    def _predict(self, counts, horizon):
        levels = smoothing_levels(counts, self.alpha)
        final = max(0.0, levels[-1])
        return [final] * horizon, {"smoothed_level": levels[-1], "levels": levels}


def create_forecaster(
    model: Union[ForecastModel, str],
    window: int = DEFAULT_WINDOW,
    alpha: float = DEFAULT_ALPHA,
    min_observations: int = 1
) -> BaseForecaster:
    """
    Create a forecaster for a model key.

    Args:
        model: ForecastModel or its key ("linear", "ma", "exp")
        window: Moving average window (clamped to >= 2)
        alpha: Exponential smoothing constant in (0, 1)
        min_observations: Fewest observations accepted for training

    Returns:
        Configured forecaster
    """
    try:
        model = ForecastModel(model)
    except ValueError:
        raise ValueError(f"Unknown forecasting model: {model!r}") from None

    if model == ForecastModel.LINEAR:
        return LinearTrendForecaster(min_observations=min_observations)
    if model == ForecastModel.MOVING_AVERAGE:
        return MovingAverageForecaster(window=window, min_observations=min_observations)
    return ExponentialSmoothingForecaster(alpha=alpha, min_observations=min_observations)
