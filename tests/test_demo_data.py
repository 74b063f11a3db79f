import math
import random
from datetime import date, timedelta

import pytest
from hypothesis import given, settings, strategies as st

from src.demo_data import SampleDataGenerator, generate_sample_data
from src.forecasting import round_half_up


@settings(max_examples=50, deadline=None)
@given(
    start=st.dates(min_value=date(1990, 1, 1), max_value=date(2090, 12, 31)),
    day_count=st.integers(min_value=0, max_value=400),
    seed=st.integers(min_value=0, max_value=2**32 - 1),
)
def test_generated_series_invariants(start: date, day_count: int, seed: int) -> None:
    """
    For any start date and length:
    - exactly day_count observations
    - one per consecutive calendar day from start
    - whole, non-negative counts
    """
    series = SampleDataGenerator(seed=seed).generate(start, day_count)

    assert len(series) == day_count
    assert series.dates == [start + timedelta(days=i) for i in range(day_count)]
    assert all(d1 < d2 for d1, d2 in zip(series.dates, series.dates[1:]))
    assert all(c >= 0 and float(c).is_integer() for c in series.counts)


def test_seeded_generators_are_reproducible() -> None:
    first = SampleDataGenerator(seed=42).generate("2022-01-01", 200)
    second = SampleDataGenerator(seed=42).generate("2022-01-01", 200)
    other = SampleDataGenerator(seed=43).generate("2022-01-01", 200)

    assert first == second
    assert first != other


def test_seed_does_not_touch_global_random_state() -> None:
    random.seed(1234)
    expected = random.random()

    random.seed(1234)
    SampleDataGenerator(seed=99).generate("2022-01-01", 30)
    assert random.random() == expected


def test_default_source_is_process_wide_random() -> None:
    assert SampleDataGenerator().rng is random


def test_formula_with_fixed_draws(fixed_random) -> None:
    # Every draw is 0.5: base 110, no noise, festival spike 90, no drift
    rng = fixed_random(0.5)
    start = date(2024, 1, 6)  # Saturday
    series = SampleDataGenerator(rng=rng).generate(start, 6)

    # Weekend, January, day 0: 110 * 1.6 * 1 * 1
    assert series[0].count == 176

    # Day 5 is Thursday 2024-01-11 and a festival day
    i = 5
    seasonal = 1 + 0.25 * math.sin(2 * math.pi * (i / 365))
    trend = 1 + (i / 6) * 0.35
    expected = round_half_up(110 * 0.95 * seasonal * trend + 90)
    assert series[5].count == expected

    # base, then per day: noise + drift check, plus one festival draw
    assert rng.calls == 1 + 6 * 2 + 1


def test_drift_applies_to_following_days(fixed_random) -> None:
    # Every draw is 0: base 80, noise -15, drift multiplier 0.95 every day
    series = SampleDataGenerator(rng=fixed_random(0.0)).generate(date(2024, 1, 1), 200)

    assert series[0].count == round_half_up(80 * 0.95 - 15)

    i = 1
    seasonal = 1 + 0.25 * math.sin(2 * math.pi * (i / 365))
    trend = 1 + (i / 200) * 0.35
    assert series[1].count == round_half_up(80 * 0.95 * 0.95 * seasonal * trend - 15)

    # The base decays towards zero and the floor keeps counts at 0
    assert series[-1].count == 0
    assert min(series.counts) == 0


def test_weekends_are_busier_on_average() -> None:
    series = generate_sample_data("2022-01-01", 1000, seed=5)
    weekend = [o.count for o in series if o.date.weekday() >= 5]
    weekday = [o.count for o in series if o.date.weekday() < 5]

    assert sum(weekend) / len(weekend) > sum(weekday) / len(weekday)


def test_day_count_validation() -> None:
    with pytest.raises(ValueError):
        SampleDataGenerator(seed=1).generate("2022-01-01", -1)
    assert len(SampleDataGenerator(seed=1).generate("2022-01-01", 0)) == 0
