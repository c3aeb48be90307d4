"""
Growth phase calculator.

Derives a plant's current phase (vegetative or flowering), its display label
and progress percentage from the planting date and the configured flowering
duration. The phase is driven purely by elapsed time: the vegetative phase
always lasts VEGETATIVE_DAYS, after which the plant counts as flowering for
flowering_weeks * 7 days.
"""

from __future__ import annotations
from typing import Any, Dict, Optional
from datetime import date, datetime, timedelta, timezone
import logging

from growtracker.constants import (
    PHASE_FLOWERING,
    PHASE_LABEL_PREFIXES,
    PHASE_VEGETATIVE,
    VEGETATIVE_DAYS,
)

logger = logging.getLogger(__name__)


class InvalidInputError(ValueError):
    """Raised when a planting date or flowering duration cannot be used."""


def parse_moment(value: Any, field: str = "date") -> datetime:
    """
    Coerce a date, datetime or ISO-8601 string to an aware UTC-based datetime.

    Bare dates mean midnight UTC. Naive datetimes are treated as UTC.

    Raises:
        InvalidInputError: value is missing or not a recognizable date
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInputError(f"{field} is required")

    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise InvalidInputError(f"{field} is not a valid date: {value!r}") from None
    else:
        raise InvalidInputError(f"{field} must be a date, got {type(value).__name__}")

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def parse_flowering_weeks(value: Any) -> int:
    """
    Validate a flowering duration in weeks.

    Accepts positive integers, integral floats and numeric strings ("8").

    Raises:
        InvalidInputError: value is missing, not integral, or not positive
    """
    if value is None or isinstance(value, bool):
        raise InvalidInputError("flowering_weeks must be a positive whole number")

    if isinstance(value, int):
        weeks = value
    elif isinstance(value, float) and value.is_integer():
        weeks = int(value)
    elif isinstance(value, str):
        try:
            weeks = int(value.strip())
        except ValueError:
            raise InvalidInputError(f"flowering_weeks is not a number: {value!r}") from None
    else:
        raise InvalidInputError("flowering_weeks must be a positive whole number")

    if weeks <= 0:
        raise InvalidInputError(f"flowering_weeks must be greater than 0, got {weeks}")
    return weeks


def calculate_growth_phase(
    planting_date: Any,
    flowering_weeks: Any,
    evaluation_date: Any = None,
) -> Dict[str, Any]:
    """
    Compute the growth phase descriptor for a plant.

    Day counts are whole days since planting, floored. Day 35 is still
    vegetative; day 36 is the first flowering day. Progress is not clamped,
    so a plant kept past its flowering duration reports more than 100%.
    A planting date in the future yields negative day counts.

    Args:
        planting_date: date, datetime or ISO string the plant was planted
        flowering_weeks: configured flowering duration in weeks (> 0)
        evaluation_date: moment to evaluate at (defaults to now, UTC)

    Returns:
        {
            "current_day": int,
            "phase": "vegetative" | "flowering",
            "phase_display": str,         # e.g. "VT12" or "BT3 (8 weeks)"
            "progress_percentage": float,
            "days_in_phase": int,
            "total_phase_days": int,
        }

    Raises:
        InvalidInputError: invalid planting date, evaluation date or weeks

    Example:
        >>> calculate_growth_phase(date(2025, 1, 1), 8, date(2025, 2, 6))
        {'current_day': 36, 'phase': 'flowering', 'phase_display': 'BT1 (8 weeks)', ...}
    """
    planted_at = parse_moment(planting_date, "planting_date")
    weeks = parse_flowering_weeks(flowering_weeks)
    now = (
        datetime.now(timezone.utc)
        if evaluation_date is None
        else parse_moment(evaluation_date, "evaluation_date")
    )

    days_since_planting = (now - planted_at) // timedelta(days=1)

    if days_since_planting <= VEGETATIVE_DAYS:
        phase = PHASE_VEGETATIVE
        days_in_phase = days_since_planting
        total_phase_days = VEGETATIVE_DAYS
        phase_display = f"{PHASE_LABEL_PREFIXES[phase]}{days_in_phase}"
    else:
        phase = PHASE_FLOWERING
        days_in_phase = days_since_planting - VEGETATIVE_DAYS
        total_phase_days = weeks * 7
        phase_display = f"{PHASE_LABEL_PREFIXES[phase]}{days_in_phase} ({weeks} weeks)"

    return {
        "current_day": days_since_planting,
        "phase": phase,
        "phase_display": phase_display,
        "progress_percentage": days_in_phase / total_phase_days * 100,
        "days_in_phase": days_in_phase,
        "total_phase_days": total_phase_days,
    }


def growth_info_for_plant(plant: Dict[str, Any], now: Any = None) -> Optional[Dict[str, Any]]:
    """
    Growth descriptor for a stored plant row, or None if the row is unusable.

    Used by list views so one bad record doesn't break the whole page.
    """
    try:
        return calculate_growth_phase(plant.get("plant_date"), plant.get("flowering_weeks"), now)
    except InvalidInputError as e:
        logger.warning(f"Cannot compute growth phase for plant {plant.get('id')}: {e}")
        return None
