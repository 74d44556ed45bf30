"""
Sleep Metrics

Pure calculations over sleep journal entries:
- Entry derivation: duration from bed/wake clock times and a quality label
- Statistics: counts, averages and extrema over a user's full history,
  plus a trend across the most recent entries

Nothing here reads or writes the database. Callers pass in entries they
already fetched (ORM rows, pydantic models or plain dicts).
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Optional, Sequence

from app.schemas.sleep import SleepStats, SleepTrend
from app.utils.enums import QualityLabel
from app.utils.exceptions import IncompleteEntryError


MINUTES_PER_DAY = 24 * 60
DEFAULT_RECENT_WINDOW = 7

# Checked top-down; anything below the last threshold is Poor
QUALITY_THRESHOLDS = (
    (8, QualityLabel.excellent),
    (6, QualityLabel.good),
    (4, QualityLabel.fair),
)


@dataclass(frozen=True)
class EntryDerivation:
    """Display fields computed from one entry's stored fields"""
    calculated_duration: Optional[float]
    quality_description: Optional[QualityLabel]

    def to_dict(self) -> dict:
        return {
            'calculated_duration': self.calculated_duration,
            'quality_description': self.quality_description,
        }


def _get(entry: Any, name: str) -> Any:
    if isinstance(entry, dict):
        return entry.get(name)
    return getattr(entry, name, None)


def parse_clock_time(value: str) -> int:
    """Convert an ``HH:MM`` 24-hour clock time to minutes past midnight."""
    hours, minutes = value.strip().split(":")
    return int(hours) * 60 + int(minutes)


def calculate_duration(bed_time: Optional[str], wake_time: Optional[str]) -> Optional[float]:
    """
    Hours slept between two clock times.

    A wake time at or before the bed time is taken to be on the next day,
    so the result is always in (0, 24]. Rounded half-up to 2 decimals.

    Returns None when either time is missing.
    """
    if not bed_time or not wake_time:
        return None

    bed_minutes = parse_clock_time(bed_time)
    wake_minutes = parse_clock_time(wake_time)
    if wake_minutes <= bed_minutes:
        wake_minutes += MINUTES_PER_DAY

    hours = Decimal(wake_minutes - bed_minutes) / Decimal(60)
    return float(hours.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def describe_quality(quality: Optional[float]) -> Optional[QualityLabel]:
    """Map a 1-10 quality rating to its label. Out-of-range values are not rejected."""
    if quality is None:
        return None
    for threshold, label in QUALITY_THRESHOLDS:
        if quality >= threshold:
            return label
    return QualityLabel.poor


def derive(entry: Any) -> EntryDerivation:
    """Compute the derived display fields for a single entry."""
    return EntryDerivation(
        calculated_duration=calculate_duration(_get(entry, "bed_time"), _get(entry, "wake_time")),
        quality_description=describe_quality(_get(entry, "sleep_quality")),
    )


def _column(entries: Sequence[Any], field: str) -> List[float]:
    values = []
    for position, entry in enumerate(entries):
        value = _get(entry, field)
        if value is None:
            entry_id = _get(entry, "id")
            label = entry_id if entry_id is not None else f"at position {position}"
            raise IncompleteEntryError(f"Sleep entry {label} has no {field}", field=field)
        values.append(value)
    return values


def summarize(entries: Sequence[Any], recent_window: int = DEFAULT_RECENT_WINDOW) -> SleepStats:
    """
    Summary statistics over one user's entries.

    Args:
        entries: The user's entries, newest first
        recent_window: How many of the newest entries the trend spans

    Returns:
        SleepStats; all zeros when there are no entries

    Raises:
        IncompleteEntryError: An entry lacks duration, quality or efficiency
    """
    if recent_window < 1:
        raise ValueError("recent_window must be at least 1")

    entries = list(entries)
    if not entries:
        return SleepStats()

    durations = _column(entries, "sleep_duration")
    qualities = _column(entries, "sleep_quality")
    efficiencies = _column(entries, "sleep_efficiency")
    total = len(entries)

    # Entries are newest first, so the window is a prefix
    recent = min(recent_window, total)
    trend = SleepTrend()
    if recent > 1:
        trend = SleepTrend(
            duration=durations[0] - durations[recent - 1],
            quality=qualities[0] - qualities[recent - 1],
        )

    return SleepStats(
        total_entries=total,
        avg_duration=sum(durations) / total,
        avg_quality=sum(qualities) / total,
        avg_efficiency=sum(efficiencies) / total,
        min_duration=min(durations),
        max_duration=max(durations),
        best_quality=max(qualities),
        worst_quality=min(qualities),
        trend=trend,
    )
