"""
Forecasting Module for Footfall Forecast

Time series model, CSV codec and the three footfall forecasters.
"""

from .errors import (
    ForecastingError,
    EmptyDatasetError,
    InsufficientDataError,
    MalformedRow
)
from .time_series import (
    Observation,
    TimeSeries,
    future_dates,
    round_half_up
)
from .csv_codec import (
    CsvParseResult,
    parse_csv_text,
    parse_csv_report,
    serialize_csv,
    export_csv
)
from .forecasters import (
    ForecastModel,
    ForecastPoint,
    ForecastResult,
    LinearFit,
    BaseForecaster,
    LinearTrendForecaster,
    MovingAverageForecaster,
    ExponentialSmoothingForecaster,
    create_forecaster,
    fit_linear_trend,
    moving_average_path,
    smoothing_levels
)
from .summary import (
    DatasetSummary,
    summarize_dataset
)

__all__ = [
    # Errors
    'ForecastingError',
    'EmptyDatasetError',
    'InsufficientDataError',
    'MalformedRow',
    # Time series
    'Observation',
    'TimeSeries',
    'future_dates',
    'round_half_up',
    # CSV
    'CsvParseResult',
    'parse_csv_text',
    'parse_csv_report',
    'serialize_csv',
    'export_csv',
    # Forecasters
    'ForecastModel',
    'ForecastPoint',
    'ForecastResult',
    'LinearFit',
    'BaseForecaster',
    'LinearTrendForecaster',
    'MovingAverageForecaster',
    'ExponentialSmoothingForecaster',
    'create_forecaster',
    'fit_linear_trend',
    'moving_average_path',
    'smoothing_levels',
    # Summary
    'DatasetSummary',
    'summarize_dataset',
]
