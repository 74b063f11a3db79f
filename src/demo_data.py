"""
Demo Data Generator for Footfall Forecast

Generates a plausible daily visitor series for demonstrations and testing:
weekend peaks, a yearly travel season, festival spikes roughly every 90 days,
a slow upward trend and noise.
"""

import logging
import math
import random
from datetime import timedelta
from typing import Optional

from .forecasting.time_series import DateLike, Observation, TimeSeries, round_half_up, to_date

logger = logging.getLogger(__name__)

# Generator profile
BASE_RANGE = (80, 140)           # Starting daily level
WEEKEND_FACTOR = 1.6             # Saturday / Sunday
WEEKDAY_FACTOR = 0.95
SEASONAL_AMPLITUDE = 0.25
SEASONAL_MONTH_PHASE = 0.15
FESTIVAL_PERIOD = 90
FESTIVAL_OFFSET = 5
FESTIVAL_RANGE = (30, 150)
TREND_GROWTH = 0.35              # Up to +35% over the dataset
NOISE_AMPLITUDE = 15             # +/-15 visitors
DRIFT_PROBABILITY = 0.02
DRIFT_RANGE = (0.95, 1.03)       # Multiplier applied to the base level

DEFAULT_START_DATE = "2022-01-01"
DEFAULT_DAY_COUNT = 1000


class SampleDataGenerator:
    """
    Generate a synthetic footfall series.

    The random source is injectable: pass `rng` (anything with a `random()`
    method) or `seed` for reproducible output. By default the process-wide
    `random` module is used.

    Example:
        generator = SampleDataGenerator(seed=42)
        series = generator.generate("2022-01-01", 1000)
    """

    def __init__(self, rng=None, seed: Optional[int] = None):
        """Initialize generator with an optional random source or seed"""
        if rng is not None:
            self.rng = rng
        elif seed is not None:
            self.rng = random.Random(seed)
        else:
            self.rng = random

    def _uniform(self, low: float, high: float) -> float:
        return low + self.rng.random() * (high - low)

    def generate(
        self,
        start_date: DateLike = DEFAULT_START_DATE,
        day_count: int = DEFAULT_DAY_COUNT
    ) -> TimeSeries:
        """
        Generate one observation per day.

        Args:
            start_date: First day of the series (date or YYYY-MM-DD)
            day_count: Number of consecutive days

        Returns:
            TimeSeries with exactly `day_count` observations
        """
        if day_count < 0:
            raise ValueError(f"day_count must be >= 0, got {day_count}")

        start = to_date(start_date)
        base = self._uniform(*BASE_RANGE)
        observations = []

        for i in range(day_count):
            day = start + timedelta(days=i)

            weekly_factor = WEEKEND_FACTOR if day.weekday() >= 5 else WEEKDAY_FACTOR
            month = day.month - 1
            seasonal = 1 + SEASONAL_AMPLITUDE * math.sin(
                2 * math.pi * (i / 365) + month * SEASONAL_MONTH_PHASE
            )
            festival_spike = (
                self._uniform(*FESTIVAL_RANGE)
                if i % FESTIVAL_PERIOD == FESTIVAL_OFFSET else 0
            )
            trend = 1 + (i / day_count) * TREND_GROWTH
            noise = self._uniform(-NOISE_AMPLITUDE, NOISE_AMPLITUDE)

            value = max(0, base * weekly_factor * seasonal * trend + noise + festival_spike)
            observations.append(Observation(day, round_half_up(value)))

            # Occasional drift in the base level
            if self.rng.random() < DRIFT_PROBABILITY:
                base *= self._uniform(*DRIFT_RANGE)

        logger.info(f"Generated {day_count} days of sample footfall from {start.isoformat()}")
        return TimeSeries(tuple(observations))


def generate_sample_data(
    start_date: DateLike = DEFAULT_START_DATE,
    day_count: int = DEFAULT_DAY_COUNT,
    seed: Optional[int] = None
) -> TimeSeries:
    """Generate the demo dataset (1000 days from 2022-01-01 by default)"""
    return SampleDataGenerator(seed=seed).generate(start_date, day_count)


# Quick test function
if __name__ == "__main__":
    from .forecasting.csv_codec import serialize_csv

    series = generate_sample_data(seed=42)
    print(f"Generated: {len(series)} days")
    print(f"Range: {series.first_date} to {series.last_date}")
    print(serialize_csv(series[:8]))
