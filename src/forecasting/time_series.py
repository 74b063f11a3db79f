"""
Time Series Model for Footfall Forecast

The shared representation every other component works with: an immutable,
date-ordered sequence of daily visitor counts.
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

DateLike = Union[date, str]


def to_date(value: DateLike) -> date:
    """Coerce a date or a YYYY-MM-DD string to a date"""
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip())


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)"""
    return int(math.floor(value + 0.5))


def future_dates(last_date: Optional[DateLike], horizon: int) -> List[date]:
    """
    Build the consecutive calendar days that follow a series.

    Args:
        last_date: Last observed date, or None to count from today
        horizon: Number of days to produce

    Returns:
        List of `horizon` dates starting the day after `last_date`
    """
    anchor = to_date(last_date) if last_date is not None else date.today()
    return [anchor + timedelta(days=i) for i in range(1, horizon + 1)]


@dataclass(frozen=True)
class Observation:
    """One day of footfall"""
    date: date
    count: float

    def __post_init__(self):
        if not isinstance(self.date, date):
            raise TypeError(f"Observation date must be a date, got {type(self.date).__name__}")
        if isinstance(self.count, bool) or not isinstance(self.count, (int, float)):
            raise TypeError(f"Observation count must be a number, got {type(self.count).__name__}")
        if not math.isfinite(self.count) or self.count < 0:
            raise ValueError(f"Observation count must be a finite value >= 0, got {self.count}")

    def to_dict(self):
        return {"date": self.date.isoformat(), "count": self.count}


@dataclass(frozen=True)
class TimeSeries:
    """
    Ordered sequence of observations.

    Sorted ascending by date. Gaps and repeated dates are allowed. Every
    transformation returns a new series.

    Example:
    ```python
    series = TimeSeries.from_pairs([("2024-01-02", 12), ("2024-01-01", 10)])
    series.last_date   # date(2024, 1, 2)
    series.counts      # [10, 12]
    ```
    """
    observations: Tuple[Observation, ...] = ()

    def __post_init__(self):
        obs = tuple(self.observations)
        object.__setattr__(self, "observations", obs)
        for prev, curr in zip(obs, obs[1:]):
            if curr.date < prev.date:
                raise ValueError(
                    f"Observations must be sorted by date ({curr.date} follows {prev.date})"
                )

    @classmethod
    def from_observations(cls, observations: Iterable[Observation]) -> "TimeSeries":
        """Build a series from observations in any order (stable sort by date)"""
        return cls(tuple(sorted(observations, key=lambda o: o.date)))

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[DateLike, float]]) -> "TimeSeries":
        return cls.from_observations(Observation(to_date(d), c) for d, c in pairs)

    def __len__(self) -> int:
        return len(self.observations)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self.observations)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return TimeSeries(self.observations[index])
        return self.observations[index]

    @property
    def is_empty(self) -> bool:
        return not self.observations

    @property
    def dates(self) -> List[date]:
        return [o.date for o in self.observations]

    @property
    def counts(self) -> List[float]:
        return [o.count for o in self.observations]

    @property
    def first_date(self) -> Optional[date]:
        return self.observations[0].date if self.observations else None

    @property
    def last_date(self) -> Optional[date]:
        return self.observations[-1].date if self.observations else None

    def extended(self, observations: Iterable[Observation]) -> "TimeSeries":
        """Append observations that continue the series"""
        return TimeSeries(self.observations + tuple(observations))

    def with_predictions(
        self,
        dates: Sequence[date],
        values: Sequence[float]
    ) -> "TimeSeries":
        """Append predicted values rounded to whole visitors, as exported"""
        if len(dates) != len(values):
            raise ValueError("dates and values must have the same length")
        return self.extended(
            Observation(d, round_half_up(v)) for d, v in zip(dates, values)
        )

    def to_records(self) -> List[dict]:
        return [o.to_dict() for o in self.observations]
