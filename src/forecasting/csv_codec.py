"""
CSV Codec for Footfall Forecast

Reads user supplied date/count text into a TimeSeries and writes series
(optionally followed by predictions) back out as CSV.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from .errors import MalformedRow
from .time_series import Observation, TimeSeries

logger = logging.getLogger(__name__)

HEADER_DATE_COLUMN = "date"
HEADER_COUNT_COLUMNS = ("count", "footfall", "value")
EXPORT_HEADER = "date,count"

_LINE_SPLIT = re.compile(r"\r?\n")
_CELL_SPLIT = re.compile(r",|\t")

# Tried in order after ISO 8601
DATE_FORMATS = [
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%d.%m.%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
]


@dataclass
class CsvParseResult:
    """Outcome of parsing CSV text"""
    series: TimeSeries
    rejected: List[MalformedRow] = field(default_factory=list)
    header_detected: bool = False

    @property
    def empty_dataset(self) -> bool:
        return self.series.is_empty

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": len(self.series),
            "rejected": [r.to_dict() for r in self.rejected],
            "header_detected": self.header_detected
        }


def parse_date(text: str) -> Optional[date]:
    """Parse a calendar date, returning None when the text isn't one"""
    text = text.strip()
    if not text:
        return None

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    return None


def parse_count(text: str) -> Optional[float]:
    """Parse a non-negative, finite visitor count"""
    try:
        value = float(text.strip())
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def _is_header(cells: List[str]) -> bool:
    head = [c.lower() for c in cells]
    return HEADER_DATE_COLUMN in head and any(c in head for c in HEADER_COUNT_COLUMNS)


def _parse_row(cells: List[str]) -> Tuple[Optional[Observation], Optional[str]]:
    if len(cells) < 2:
        return None, "missing count column"

    row_date = parse_date(cells[0])
    if row_date is None:
        return None, f"unparseable date {cells[0]!r}"

    count = parse_count(cells[1])
    if count is None:
        return None, f"invalid count {cells[1]!r}"

    return Observation(row_date, count), None


def parse_csv_report(text: str) -> CsvParseResult:
    """
    Parse date/count text and report what was dropped.

    The first line is skipped when it looks like a header (a `date` column
    plus one of `count`, `footfall` or `value`). Rows whose date or count
    can't be read are dropped rather than failing the whole input.

    Args:
        text: Comma or tab separated text

    Returns:
        CsvParseResult with the sorted series and the rejected rows
    """
    lines = [line.strip() for line in _LINE_SPLIT.split(text or "")]
    observations: List[Observation] = []
    rejected: List[MalformedRow] = []
    header_detected = False

    data_index = 0
    for line_number, line in enumerate(lines, start=1):
        if not line:
            continue

        cells = [c.strip() for c in _CELL_SPLIT.split(line)]
        if data_index == 0 and _is_header(cells):
            header_detected = True
            data_index += 1
            continue
        data_index += 1

        observation, reason = _parse_row(cells)
        if observation is None:
            rejected.append(MalformedRow(line_number=line_number, line=line, reason=reason))
            continue
        observations.append(observation)

    series = TimeSeries.from_observations(observations)

    if rejected:
        logger.warning(f"Skipped {len(rejected)} malformed row(s) while parsing CSV")
    logger.debug(f"Parsed {len(series)} row(s) from CSV")

    return CsvParseResult(series=series, rejected=rejected, header_detected=header_detected)


def parse_csv_text(text: str) -> TimeSeries:
    """Parse date/count text into a TimeSeries; empty when nothing is valid"""
    return parse_csv_report(text).series


def format_count(count: float) -> str:
    """Write whole numbers without a decimal point"""
    if isinstance(count, int):
        return str(count)
    if float(count).is_integer():
        return str(int(count))
    return repr(float(count))


def serialize_csv(series: TimeSeries) -> str:
    """Serialize a series as `date,count` lines under a header"""
    lines = [EXPORT_HEADER]
    for obs in series:
        lines.append(f"{obs.date.isoformat()},{format_count(obs.count)}")
    return "\n".join(lines)


def export_csv(observed: TimeSeries, forecast=None) -> str:
    """
    Build the export file: observations followed by rounded predictions.

    Args:
        observed: Currently loaded series
        forecast: Optional ForecastResult whose predictions are appended

    Returns:
        CSV text with a `date,count` header
    """
    combined = observed
    if forecast is not None and forecast.values:
        combined = observed.with_predictions(forecast.dates, forecast.values)
    return serialize_csv(combined)
