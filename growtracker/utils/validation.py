"""
Input validation and normalization.

Trims and bounds field lengths, filters suspicious characters while allowing
natural punctuation, checks dates and the flowering duration, and builds a
clean payload for the persistence layer. Works with both request.form and
parsed JSON bodies.
"""

from __future__ import annotations
import json
import re
from datetime import timezone
from typing import Any, Dict, Mapping, Tuple

from growtracker.constants import (
    DEFAULT_FLOWERING_WEEKS,
    MAX_NAME_LEN,
    MAX_NOTES_LEN,
    MAX_STRAIN_LEN,
    MAX_WATERING_NOTE_LEN,
)
from growtracker.services.growth_phase import (
    InvalidInputError,
    parse_flowering_weeks,
    parse_moment,
)

# Allowlist regex: we REMOVE anything NOT in this set.
# Strain names use "#" and "+" (e.g. "Gelato #41"), so both are allowed here.
_SAFE_CHARS_PATTERN = re.compile(r"[^\w\s\-\.,'()/&#+]+", re.UNICODE)

# UUID validation pattern (RFC 4122 compliant)
_UUID_PATTERN = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$',
    re.IGNORECASE
)

_DANGEROUS_KEYWORDS = [
    'onerror', 'onload', 'onclick', 'onmouseover', 'onfocus', 'onblur',
    'javascript:', 'data:', 'vbscript:'
]


def _soft_sanitize(text: Any, max_len: int) -> str:
    """
    Normalizes names and strains:
    - strip whitespace
    - bound length
    - remove HTML event handlers and script schemes
    - remove disallowed characters via allowlist
    - collapse double spaces
    """
    t = str(text or "").strip()
    if not t:
        return ""
    t = t[:max_len]

    for keyword in _DANGEROUS_KEYWORDS:
        t = re.sub(re.escape(keyword), '', t, flags=re.IGNORECASE)

    t = _SAFE_CHARS_PATTERN.sub("", t)
    t = re.sub(r"\s{2,}", " ", t)
    return t.strip()


def _soft_sanitize_notes(text: Any, max_len: int) -> str:
    """
    Free-text notes are more permissive:
    - strip & bound length
    - remove control chars only; keep newlines and punctuation
    - normalize repeated tabs/spaces
    """
    t = str(text or "").strip()
    if not t:
        return ""
    t = t[:max_len]
    t = re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]", "", t)
    t = re.sub(r"[ \t]{2,}", " ", t)
    return t


def normalize_image_urls(value: Any) -> str:
    """
    Serialize an image reference sequence for storage.

    Accepts a list of URLs or an already-serialized JSON array string.

    Raises:
        InvalidInputError: value is neither
    """
    if value is None or value == "":
        return "[]"
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise InvalidInputError("image_urls must be a JSON array") from None
    if not isinstance(value, list) or not all(isinstance(u, str) for u in value):
        raise InvalidInputError("image_urls must be a list of URLs")
    return json.dumps(value)


def validate_plant_form(form: Mapping[str, Any], partial: bool = False) -> Tuple[Dict[str, Any], str | None]:
    """
    Validates plant form/JSON data and returns (payload, error_message).

    With partial=True, fields absent from the input are left out of the
    payload (used by updates); otherwise name and plant_date are required and
    flowering_weeks falls back to the default.

    On success, payload may contain:
      - name (sanitized string)
      - strain (sanitized string or None)
      - plant_date (ISO date string)
      - flowering_start_date (ISO timestamp or None)
      - flowering_weeks (int > 0)
      - notes (string or None)
      - image_urls (JSON array string)
    """
    payload: Dict[str, Any] = {}

    def supplied(key: str) -> bool:
        return not partial or key in form

    if supplied("name"):
        name = _soft_sanitize(form.get("name"), MAX_NAME_LEN)
        if not name:
            return {}, "Plant name is required."
        payload["name"] = name

    if supplied("strain"):
        payload["strain"] = _soft_sanitize(form.get("strain"), MAX_STRAIN_LEN) or None

    if supplied("plant_date"):
        try:
            planted = parse_moment(form.get("plant_date"), "plant_date")
            payload["plant_date"] = planted.astimezone(timezone.utc).date().isoformat()
        except InvalidInputError:
            return {}, "Planting date is required and must be a valid date."

    if "flowering_start_date" in form:
        raw_start = form.get("flowering_start_date")
        if raw_start in (None, ""):
            payload["flowering_start_date"] = None
        else:
            try:
                payload["flowering_start_date"] = parse_moment(raw_start, "flowering_start_date").isoformat()
            except InvalidInputError:
                return {}, "Flowering start date must be a valid date."

    if supplied("flowering_weeks"):
        raw_weeks = form.get("flowering_weeks")
        if raw_weeks in (None, ""):
            payload["flowering_weeks"] = DEFAULT_FLOWERING_WEEKS
        else:
            try:
                payload["flowering_weeks"] = parse_flowering_weeks(raw_weeks)
            except InvalidInputError:
                return {}, "Flowering weeks must be a whole number greater than 0."

    if supplied("notes"):
        payload["notes"] = _soft_sanitize_notes(form.get("notes"), MAX_NOTES_LEN) or None

    if "image_urls" in form:
        try:
            payload["image_urls"] = normalize_image_urls(form.get("image_urls"))
        except InvalidInputError as e:
            return {}, str(e)

    return payload, None


def normalize_watering_note(value: Any) -> str | None:
    """Bound and clean an optional watering note; blank becomes None."""
    return _soft_sanitize_notes(value, MAX_WATERING_NOTE_LEN) or None


def is_valid_uuid(value: str | None) -> bool:
    """
    Check if a string is a valid UUID (RFC 4122 format).

    Example:
        >>> is_valid_uuid("550e8400-e29b-41d4-a716-446655440000")
        True
        >>> is_valid_uuid("invalid")
        False
    """
    if not value or not isinstance(value, str):
        return False
    return bool(_UUID_PATTERN.match(value))
