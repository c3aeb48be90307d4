"""
Supabase client initialization and plant persistence helpers.

Provides centralized access to Supabase for:
- Database queries (plants table)
- Storage (plant image gallery)

Watering records live in services/watering.py and share this client.
"""

from __future__ import annotations
from typing import Optional, Dict, Any
from datetime import datetime, timezone
import json
import uuid
from flask import current_app, has_app_context
from supabase import create_client, Client
from growtracker.constants import DEFAULT_FLOWERING_WEEKS
from growtracker.utils import cache

DEFAULT_IMAGE_BUCKET = "plant-images"


def _safe_log_error(message: str) -> None:
    """
    Log error message only if Flask app context is available.

    This allows functions to be called from scripts without app context.
    """
    try:
        if has_app_context():
            current_app.logger.error(message)
    except (ImportError, RuntimeError):
        pass


def _safe_log_info(message: str) -> None:
    """Log info message only if Flask app context is available."""
    try:
        if has_app_context():
            current_app.logger.info(message)
    except (ImportError, RuntimeError):
        pass


# Global client instance (initialized once per app)
_supabase_client: Optional[Client] = None


def init_supabase(app) -> None:
    """
    Initialize the Supabase client with app config.

    Call this from the Flask app factory. When SUPABASE_URL or SUPABASE_KEY
    is missing, persistence stays disabled and every helper returns an empty
    result.
    """
    global _supabase_client

    cache.configure_plant_cache(app.config.get("PLANT_CACHE_TTL_SECONDS", cache.PLANT_CACHE_TTL_SECONDS))

    url = app.config.get("SUPABASE_URL", "")
    key = app.config.get("SUPABASE_KEY", "")

    if not url or not key:
        app.logger.warning("Supabase URL or KEY not configured. Plant storage will be disabled.")
        _supabase_client = None
        return

    try:
        _supabase_client = create_client(url, key)
        app.logger.info("Supabase client initialized successfully")
    except Exception as e:
        app.logger.error(f"Failed to initialize Supabase client: {e}")
        _supabase_client = None


def get_client() -> Optional[Client]:
    """Get the global Supabase client instance."""
    return _supabase_client


def is_configured() -> bool:
    """Check if Supabase is properly configured."""
    return _supabase_client is not None


def _image_bucket() -> str:
    if has_app_context():
        return current_app.config.get("SUPABASE_IMAGE_BUCKET", DEFAULT_IMAGE_BUCKET)
    return DEFAULT_IMAGE_BUCKET


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _clean(value: Any) -> Optional[str]:
    """Strip strings; blank becomes None."""
    if value is None:
        return None
    return str(value).strip() or None


# ============================================================================
# Plants
# ============================================================================

def get_plants(use_cache: bool = True) -> list[dict]:
    """
    Get all plants, newest first.

    Args:
        use_cache: Whether to use the in-memory plant list cache (default: True)
                   Set to False when you need fresh data immediately after updates

    Returns:
        List of plant dictionaries, empty list if error
    """
    if not _supabase_client:
        return []

    if use_cache:
        cached_plants = cache.get_cached_plants()
        if cached_plants is not None:
            return cached_plants

    try:
        response = (_supabase_client
                   .table("plants")
                   .select("*")
                   .order("created_at", desc=True)
                   .execute())
        plants = response.data or []

        if use_cache:
            cache.cache_plants(plants)

        return plants
    except Exception as e:
        _safe_log_error(f"Error getting plants: {e}")
        return []


def get_plant_by_id(plant_id: str) -> dict | None:
    """
    Get a single plant by ID.

    Returns:
        Plant dictionary if found, None otherwise
    """
    if not _supabase_client:
        return None

    try:
        response = (_supabase_client
                   .table("plants")
                   .select("*")
                   .eq("id", plant_id)
                   .limit(1)
                   .execute())
        return response.data[0] if response.data else None
    except Exception as e:
        _safe_log_error(f"Error getting plant {plant_id}: {e}")
        return None


def create_plant(plant_data: dict) -> dict | None:
    """
    Create a new plant.

    Args:
        plant_data: Dictionary with plant fields (see utils.validation.validate_plant_form):
            - name (required), strain, plant_date (required), flowering_weeks, notes
            - image_urls: serialized JSON array (defaults to "[]")

    Returns:
        Created plant dictionary, or None if error
    """
    if not _supabase_client:
        return None

    try:
        data = {
            "name": _clean(plant_data.get("name")) or "",
            "strain": _clean(plant_data.get("strain")),
            "plant_date": plant_data.get("plant_date"),
            "flowering_start_date": plant_data.get("flowering_start_date"),
            "flowering_weeks": plant_data.get("flowering_weeks") or DEFAULT_FLOWERING_WEEKS,
            "notes": _clean(plant_data.get("notes")),
            "image_urls": plant_data.get("image_urls") or "[]",
        }

        response = _supabase_client.table("plants").insert(data).execute()

        if response.data and len(response.data) > 0:
            cache.invalidate_plant_cache()
            return response.data[0]
        return None
    except Exception as e:
        _safe_log_error(f"Error creating plant: {e}")
        return None


def update_plant(plant_id: str, plant_data: dict) -> dict | None:
    """
    Update an existing plant. Only the supplied fields change.

    Returns:
        Updated plant dictionary, or None if error or not found
    """
    if not _supabase_client:
        return None

    try:
        data: Dict[str, Any] = {}
        if "name" in plant_data:
            data["name"] = _clean(plant_data["name"]) or ""
        if "strain" in plant_data:
            data["strain"] = _clean(plant_data["strain"])
        if "plant_date" in plant_data:
            data["plant_date"] = plant_data["plant_date"]
        if "flowering_start_date" in plant_data:
            data["flowering_start_date"] = plant_data["flowering_start_date"] or None
        if "flowering_weeks" in plant_data:
            data["flowering_weeks"] = plant_data["flowering_weeks"] or DEFAULT_FLOWERING_WEEKS
        if "notes" in plant_data:
            data["notes"] = _clean(plant_data["notes"])
        if "image_urls" in plant_data:
            data["image_urls"] = plant_data["image_urls"] or "[]"
        data["updated_at"] = _now_iso()

        response = (_supabase_client
                   .table("plants")
                   .update(data)
                   .eq("id", plant_id)
                   .execute())

        if response.data and len(response.data) > 0:
            cache.invalidate_plant_cache()
            return response.data[0]
        return None
    except Exception as e:
        _safe_log_error(f"Error updating plant {plant_id}: {e}")
        return None


def start_flowering(plant_id: str, at: Optional[datetime] = None) -> dict | None:
    """
    Record the moment flowering was started (defaults to now).

    The timestamp is informational; the growth phase is still derived from
    the planting date alone.
    """
    moment = (at or datetime.now(timezone.utc)).isoformat()
    return update_plant(plant_id, {"flowering_start_date": moment})


def delete_plant(plant_id: str) -> bool:
    """
    Delete a plant together with its watering records and stored images.

    The plant row goes first. Watering records and images are only cleaned up
    once it is gone, so a failed delete leaves the plant's history intact.
    The database also removes watering records via ON DELETE CASCADE.

    Returns:
        True if the plant row was deleted, False otherwise
    """
    if not _supabase_client:
        return False

    from growtracker.services import watering

    plant = get_plant_by_id(plant_id)
    if not plant:
        return False

    try:
        (_supabase_client
            .table("plants")
            .delete()
            .eq("id", plant_id)
            .execute())
    except Exception as e:
        _safe_log_error(f"Error deleting plant {plant_id}: {e}")
        return False

    cache.invalidate_plant_cache()

    if not watering.delete_watering_records_for_plant(plant_id):
        _safe_log_error(f"Plant {plant_id} deleted but its watering records were not removed")

    # Failures are logged by delete_plant_image
    for url in get_image_urls(plant):
        delete_plant_image(url)

    return True


# ============================================================================
# Image gallery
# ============================================================================

def get_image_urls(plant: dict | None) -> list[str]:
    """Decode a plant's serialized image references; malformed data yields []."""
    raw = (plant or {}).get("image_urls")
    if isinstance(raw, list):
        return [u for u in raw if isinstance(u, str)]
    try:
        urls = json.loads(raw or "[]")
    except (TypeError, ValueError):
        _safe_log_error(f"Malformed image_urls on plant {(plant or {}).get('id')}")
        return []
    if not isinstance(urls, list):
        return []
    return [u for u in urls if isinstance(u, str)]


def serialize_image_urls(urls: list[str]) -> str:
    return json.dumps(list(urls))


def create_display_image(file_bytes: bytes) -> bytes | None:
    """
    Re-encode an uploaded image for the gallery.

    Fixes EXIF orientation, flattens transparency onto white and bounds the
    size to 1200px, saved as JPEG at 82% quality.

    Returns None if image processing fails.
    """
    try:
        from PIL import Image, ImageOps
        from io import BytesIO

        img = Image.open(BytesIO(file_bytes))
        img = ImageOps.exif_transpose(img)

        if img.mode in ('RGBA', 'LA', 'P'):
            img = img.convert('RGBA')
            background = Image.new('RGB', img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            img = background
        elif img.mode != 'RGB':
            img = img.convert('RGB')

        if img.width > 1200 or img.height > 1200:
            img.thumbnail((1200, 1200), Image.Resampling.LANCZOS)

        output = BytesIO()
        img.save(output, format='JPEG', quality=82, optimize=True)
        return output.getvalue()

    except Exception as e:
        _safe_log_error(f"Error creating display image: {e}")
        return None


def upload_plant_image(file_bytes: bytes, plant_id: str) -> tuple[str | None, str | None]:
    """
    Process and upload one gallery image.

    Returns:
        (public_url, error_message) - exactly one of them is None
    """
    if not _supabase_client:
        return None, "Image upload service not available."

    image_bytes = create_display_image(file_bytes)
    if not image_bytes:
        return None, "Failed to process image. File may be corrupted or in an unsupported format."

    try:
        path = f"{plant_id}/{uuid.uuid4()}.jpg"
        bucket = _supabase_client.storage.from_(_image_bucket())
        bucket.upload(path, image_bytes, file_options={"content-type": "image/jpeg"})
        return bucket.get_public_url(path), None
    except Exception as e:
        _safe_log_error(f"Error uploading plant image: {e}")
        return None, "Upload failed. Please try again."


def add_plant_image(plant_id: str, file_bytes: bytes) -> tuple[dict | None, str | None]:
    """
    Upload an image and append its URL to the plant's gallery.

    Returns:
        (updated_plant, error_message)
    """
    plant = get_plant_by_id(plant_id)
    if not plant:
        return None, "Plant not found."

    url, error = upload_plant_image(file_bytes, plant_id)
    if error:
        return None, error

    urls = get_image_urls(plant) + [url]
    updated = update_plant(plant_id, {"image_urls": serialize_image_urls(urls)})
    if not updated:
        # Don't leave an orphaned object behind
        delete_plant_image(url)
        return None, "Failed to save image."
    return updated, None


def remove_plant_image(plant_id: str, url: str) -> tuple[dict | None, str | None]:
    """Remove one image from a plant's gallery and from storage."""
    plant = get_plant_by_id(plant_id)
    if not plant:
        return None, "Plant not found."

    urls = get_image_urls(plant)
    if url not in urls:
        return None, "Image not found."

    urls.remove(url)
    updated = update_plant(plant_id, {"image_urls": serialize_image_urls(urls)})
    if not updated:
        return None, "Failed to remove image."
    delete_plant_image(url)
    return updated, None


def delete_plant_image(image_url: str) -> bool:
    """
    Delete one stored image by its public URL.

    URL format: https://{project}.supabase.co/storage/v1/object/public/{bucket}/{path}
    """
    if not _supabase_client or not image_url:
        return False

    bucket = _image_bucket()
    marker = f"/{bucket}/"
    if marker not in image_url:
        _safe_log_error(f"Invalid image URL format (missing {marker}): {image_url}")
        return False

    try:
        file_path = image_url.split(marker, 1)[1]
        _supabase_client.storage.from_(bucket).remove([file_path])
        _safe_log_info(f"Deleted plant image: {file_path}")
        return True
    except Exception as e:
        _safe_log_error(f"Error deleting plant image {image_url}: {e}")
        return False
