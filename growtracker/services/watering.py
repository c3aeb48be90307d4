"""
Watering log service.

Handles creating and retrieving watering events using the watering_records
table. Records are append-only: the only way one is removed is the cascade
when its plant is deleted.
"""

from __future__ import annotations
from typing import Optional, Dict, Any, List, Tuple
from datetime import datetime, timezone
import logging
from flask import current_app, has_app_context
from growtracker.services.supabase_client import get_client

logger = logging.getLogger(__name__)


def _safe_log_error(message: str) -> None:
    """Safely log an error, handling cases where no app context exists."""
    if has_app_context():
        current_app.logger.error(message)
    else:
        logger.error(message)


def create_watering_record(
    plant_id: str,
    notes: Optional[str] = None,
    watered_at: Optional[datetime] = None,
) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """
    Log a watering event for a plant.

    Args:
        plant_id: Plant's UUID
        notes: Optional note about the watering
        watered_at: Optional timestamp (defaults to now, UTC)

    Returns:
        (record_dict, error_message)
    """
    supabase = get_client()
    if not supabase:
        return None, "Database not configured"

    try:
        record_data = {
            "plant_id": plant_id,
            "notes": notes,
            "watered_at": (watered_at or datetime.now(timezone.utc)).isoformat(),
        }

        response = supabase.table("watering_records").insert(record_data).execute()

        if response.data:
            return response.data[0], None
        return None, "Failed to create watering record"

    except Exception as e:
        return None, f"Error creating watering record: {str(e)}"


def get_watering_records(plant_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Get watering records for a plant, most recent first.

    Args:
        plant_id: Plant's UUID
        limit: Maximum number of records; None returns the full history

    Returns:
        List of record dictionaries, empty list on error
    """
    supabase = get_client()
    if not supabase:
        return []

    try:
        query = supabase.table("watering_records") \
            .select("*") \
            .eq("plant_id", plant_id) \
            .order("watered_at", desc=True)
        if limit is not None:
            query = query.limit(limit)
        response = query.execute()

        return response.data if response.data else []

    except Exception as e:
        _safe_log_error(f"Error fetching watering records: {e}")
        return []


def get_last_watered(plant_id: str) -> Optional[Dict[str, Any]]:
    """Most recent watering record for a plant, or None if never watered."""
    records = get_watering_records(plant_id, limit=1)
    return records[0] if records else None


def delete_watering_records_for_plant(plant_id: str) -> bool:
    """
    Remove every watering record of a plant.

    Only called from the plant delete cascade.
    """
    supabase = get_client()
    if not supabase:
        return False

    try:
        supabase.table("watering_records").delete().eq("plant_id", plant_id).execute()
        return True
    except Exception as e:
        _safe_log_error(f"Error deleting watering records for plant {plant_id}: {e}")
        return False
