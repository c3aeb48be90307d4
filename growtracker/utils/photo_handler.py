"""
Gallery image upload handling for the HTML routes.

Consolidates validate -> process -> upload -> append so the new-plant form and
the detail page's upload form behave the same way. User feedback goes through
flash messages.
"""

from __future__ import annotations
from typing import Iterable
from flask import flash
from .errors import log_warning
from .file_upload import validate_upload_file
from growtracker.services import supabase_client


def handle_image_uploads(files: Iterable, plant_id: str) -> int:
    """
    Validate and attach uploaded images to a plant's gallery.

    Invalid files are reported with a flash message and skipped; the rest
    still upload.

    Args:
        files: FileStorage objects from request.files.getlist("images")
        plant_id: Plant's UUID

    Returns:
        Number of images added
    """
    added = 0
    for file in files:
        is_valid, error, file_bytes = validate_upload_file(file)

        if error:
            log_warning("Image upload rejected", plant_id=plant_id, filename=file.filename, reason=error)
            flash(f"{file.filename}: {error}", "error")
            continue

        if not is_valid or not file_bytes:
            # Empty file input
            continue

        _, upload_error = supabase_client.add_plant_image(plant_id, file_bytes)
        if upload_error:
            log_warning("Image upload failed", plant_id=plant_id, filename=file.filename, reason=upload_error)
            flash(f"Image upload failed: {upload_error}", "error")
        else:
            added += 1

    return added
