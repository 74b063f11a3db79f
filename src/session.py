"""
Forecast Session for Footfall Forecast

Holds one user's working state (the loaded dataset and the latest forecast)
and implements the user actions: load, clear, train and export. Every
condition that should reach the user comes back as an ActionResult message
instead of an exception.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Mapping, Optional

from .forecasting import (
    EmptyDatasetError,
    ForecastModel,
    ForecastResult,
    InsufficientDataError,
    TimeSeries,
    create_forecaster,
    export_csv,
    parse_csv_report,
    summarize_dataset
)
from .forecasting.forecasters import MIN_WINDOW

logger = logging.getLogger(__name__)

OBSERVED_LABEL = "Observed footfall"
PREDICTED_LABEL = "Predicted"

NO_VALID_ROWS_MESSAGE = "No valid rows found in CSV. Expecting date,count"
NO_DATA_MESSAGE = "No data loaded. Upload a CSV or load the sample dataset first."
NO_EXPORT_MESSAGE = "No data to export"


@dataclass
class ActionResult:
    """Outcome of a session action, with a message for the user"""
    success: bool
    message: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: Optional[str] = None, **data) -> "ActionResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, **data) -> "ActionResult":
        logger.warning(message)
        return cls(success=False, message=message, data=data)

    def to_dict(self) -> Dict[str, Any]:
        payload = {"success": self.success}
        if self.message:
            payload["message" if self.success else "error"] = self.message
        payload.update(self.data)
        return payload


def _parse_whole_number(value: Any, default: int, name: str) -> int:
    """Read an integer form field, falling back to the default when blank"""
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a whole number")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{name} must be a whole number")
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValueError(f"{name} must be a whole number") from None


class ForecastSession:
    """
    One user's dataset and forecast.

    The dataset and forecast slots are replaced wholesale by each action.

    Example:
    ```python
    session = ForecastSession(min_training_points=3)
    session.load_csv_text("date,count\\n2024-01-01,10\\n2024-01-02,12\\n2024-01-03,15")
    result = session.train(model="linear", horizon=7)
    if not result.success:
        print(result.message)
    ```
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        default_model: str = ForecastModel.LINEAR.value,
        default_horizon: int = 14,
        max_horizon: int = 365,
        default_window: int = 7,
        alpha: float = 0.35,
        min_training_points: int = 3,
        export_filename: str = "footfall_export.csv"
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.default_model = ForecastModel(default_model)
        self.default_horizon = default_horizon
        self.max_horizon = max_horizon
        self.default_window = default_window
        self.alpha = alpha
        self.min_training_points = min_training_points
        self.export_filename = export_filename

        self.dataset = TimeSeries()
        self.forecast: Optional[ForecastResult] = None
        self.source: Optional[str] = None
        self.created_at = datetime.now()
        self.last_activity = datetime.now()

    @classmethod
    def from_config(cls, config: Mapping[str, Any], session_id: Optional[str] = None) -> "ForecastSession":
        """Create a session using an app config mapping"""
        return cls(
            session_id=session_id,
            default_model=config.get("DEFAULT_MODEL", ForecastModel.LINEAR.value),
            default_horizon=config.get("DEFAULT_HORIZON", 14),
            max_horizon=config.get("MAX_HORIZON", 365),
            default_window=config.get("DEFAULT_MA_WINDOW", 7),
            alpha=config.get("SMOOTHING_ALPHA", 0.35),
            min_training_points=config.get("MIN_TRAINING_POINTS", 3),
            export_filename=config.get("EXPORT_FILENAME", "footfall_export.csv")
        )

    def touch(self):
        self.last_activity = datetime.now()

    # =========================================================================
    # Dataset actions
    # =========================================================================

    def load_series(self, series: TimeSeries, source: str = "sample") -> ActionResult:
        """Replace the dataset with an existing series"""
        self.touch()
        self.dataset = series
        self.forecast = None
        self.source = source
        logger.info(f"Session {self.session_id}: loaded {len(series)} rows from {source}")
        return ActionResult.ok(rows=len(series))

    def load_csv_text(self, text: str, source: str = "upload") -> ActionResult:
        """
        Parse CSV text and make it the current dataset.

        The dataset is replaced even when nothing parses, leaving it empty;
        the user then gets the "no valid rows" notice.
        """
        self.touch()
        report = parse_csv_report(text)
        self.dataset = report.series
        self.forecast = None
        self.source = source

        skipped = len(report.rejected)
        details = {
            "skipped": skipped,
            "header_detected": report.header_detected,
            "rejected": [r.to_dict() for r in report.rejected]
        }
        if report.empty_dataset:
            return ActionResult.fail(NO_VALID_ROWS_MESSAGE, rows=0, **details)

        logger.info(
            f"Session {self.session_id}: loaded {len(report.series)} rows from {source}"
            f" ({skipped} skipped)"
        )
        message = f"Skipped {skipped} invalid row(s)" if skipped else None
        return ActionResult.ok(message, rows=len(report.series), **details)

    def clear(self) -> ActionResult:
        """Empty the dataset and drop any forecast"""
        self.touch()
        self.dataset = TimeSeries()
        self.forecast = None
        self.source = None
        return ActionResult.ok(rows=0)

    # =========================================================================
    # Training
    # =========================================================================

    def train(
        self,
        model: Optional[str] = None,
        horizon: Any = None,
        window: Any = None
    ) -> ActionResult:
        """
        Fit the selected model and forecast the next `horizon` days.

        Args:
            model: "linear", "ma" or "exp" (default from config)
            horizon: Days to forecast, int or numeric string
            window: Moving average window, clamped to at least 2

        Returns:
            ActionResult with the forecast, or the reason training was blocked
        """
        self.touch()
        self.forecast = None

        model_key = model or self.default_model.value
        try:
            selected = ForecastModel(model_key)
        except ValueError:
            options = ", ".join(m.value for m in ForecastModel)
            return ActionResult.fail(f"Unknown model '{model_key}'. Choose one of: {options}")

        try:
            horizon = _parse_whole_number(horizon, self.default_horizon, "Horizon")
            if selected is ForecastModel.MOVING_AVERAGE:
                window = max(MIN_WINDOW, _parse_whole_number(window, self.default_window, "Window"))
            else:
                window = self.default_window
        except ValueError as e:
            return ActionResult.fail(str(e))

        if not 1 <= horizon <= self.max_horizon:
            return ActionResult.fail(f"Horizon must be between 1 and {self.max_horizon} days")

        forecaster = create_forecaster(
            selected,
            window=window,
            alpha=self.alpha,
            min_observations=self.min_training_points
        )

        try:
            result = forecaster.forecast(self.dataset, horizon)
        except EmptyDatasetError:
            return ActionResult.fail(NO_DATA_MESSAGE)
        except InsufficientDataError as e:
            return ActionResult.fail(str(e))

        self.forecast = result
        summary = summarize_dataset(self.dataset, result.values)
        return ActionResult.ok(
            forecast=result.to_dict(),
            summary=summary.to_dict(),
            chart=self.chart_data()
        )

    # =========================================================================
    # Export and views
    # =========================================================================

    def export(self) -> ActionResult:
        """Build the CSV export of observations plus rounded predictions"""
        self.touch()
        has_predictions = self.forecast is not None and self.forecast.horizon > 0
        if self.dataset.is_empty and not has_predictions:
            return ActionResult.fail(NO_EXPORT_MESSAGE)

        text = export_csv(self.dataset, self.forecast)
        logger.info(f"Session {self.session_id}: exported {self.export_filename}")
        return ActionResult.ok(filename=self.export_filename, csv=text)

    def summary(self):
        predictions = self.forecast.values if self.forecast else None
        return summarize_dataset(self.dataset, predictions)

    def chart_data(self) -> Dict[str, Any]:
        """Chart-ready datasets: observed points, then predictions if any"""
        datasets = [{
            "label": OBSERVED_LABEL,
            "data": [{"x": o.date.isoformat(), "y": o.count} for o in self.dataset]
        }]
        if self.forecast and self.forecast.horizon:
            datasets.append({
                "label": PREDICTED_LABEL,
                "data": [
                    {"x": p.date.isoformat(), "y": p.predicted_count}
                    for p in self.forecast.points
                ]
            })
        return {"datasets": datasets}

    def state(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "source": self.source,
            "rows": self.dataset.to_records(),
            "summary": self.summary().to_dict(),
            "forecast": self.forecast.to_dict() if self.forecast else None,
            "chart": self.chart_data()
        }


class SessionStore:
    """
    In-memory map of session id to ForecastSession.

    Sessions idle for longer than `idle_seconds` are dropped on the next
    lookup. Once `max_sessions` are held, the least recently active one
    makes room for a new session.
    """

    def __init__(
        self,
        session_factory: Optional[Callable[[str], ForecastSession]] = None,
        idle_seconds: Optional[float] = None,
        max_sessions: Optional[int] = None
    ):
        self._factory = session_factory or (lambda sid: ForecastSession(session_id=sid))
        self.idle_seconds = idle_seconds
        self.max_sessions = max_sessions
        self._sessions: Dict[str, ForecastSession] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[ForecastSession]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: Optional[str] = None) -> ForecastSession:
        """Return the session for `session_id`, creating it if needed"""
        with self._lock:
            self._evict_idle()

            existing = self._sessions.get(session_id) if session_id else None
            if existing is not None:
                existing.touch()
                return existing

            if self.max_sessions and len(self._sessions) >= self.max_sessions:
                oldest = min(self._sessions.values(), key=lambda s: s.last_activity)
                del self._sessions[oldest.session_id]
                logger.info(f"Store full, evicted forecast session {oldest.session_id}")

            session = self._factory(session_id or str(uuid.uuid4()))
            self._sessions[session.session_id] = session
            logger.info(f"Created forecast session {session.session_id}")
            return session

    def purge_idle(self) -> int:
        """Drop idle sessions now, returning how many were removed"""
        with self._lock:
            return self._evict_idle()

    def _evict_idle(self) -> int:
        if not self.idle_seconds:
            return 0
        cutoff = datetime.now() - timedelta(seconds=self.idle_seconds)
        stale = [sid for sid, s in self._sessions.items() if s.last_activity < cutoff]
        for sid in stale:
            del self._sessions[sid]
        if stale:
            logger.info(f"Evicted {len(stale)} idle forecast session(s)")
        return len(stale)

    def discard(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions
