"""
Plant management routes.

Handles:
- Dashboard (plant cards with growth phase and progress)
- Adding new plants with optional gallery images
- Viewing/editing individual plants
- Quick actions: watering and starting flowering
- Gallery image upload/removal
- Plant deletion (cascades watering records and images)
"""

from __future__ import annotations
from datetime import date
from flask import Blueprint, render_template, flash, redirect, url_for, request, current_app
from growtracker.constants import (
    DEFAULT_FLOWERING_WEEKS,
    DEFAULT_WATERING_NOTE,
    PHASE_NAMES,
    WATERING_HISTORY_DISPLAY_LIMIT,
)
from growtracker.utils.photo_handler import handle_image_uploads
from growtracker.utils.validation import validate_plant_form, normalize_watering_note, is_valid_uuid
from growtracker.utils.errors import log_info
from growtracker.services import supabase_client, watering
from growtracker.services.growth_phase import growth_info_for_plant
from growtracker.extensions import limiter


plants_bp = Blueprint("plants", __name__)


def _plant_or_redirect(plant_id: str):
    """Load a plant for a route, or flash and return a redirect to the dashboard."""
    if not is_valid_uuid(plant_id):
        flash("Invalid plant ID.", "error")
        return None, redirect(url_for("plants.index"))

    plant = supabase_client.get_plant_by_id(plant_id)
    if not plant:
        flash("Plant not found.", "error")
        return None, redirect(url_for("plants.index"))
    return plant, None


def _form_defaults() -> dict:
    return {
        "name": "",
        "strain": "",
        "plant_date": date.today().isoformat(),
        "flowering_weeks": DEFAULT_FLOWERING_WEEKS,
        "notes": "",
    }


@plants_bp.route("/")
def index():
    """Dashboard - every plant as a card with its current phase."""
    plants = supabase_client.get_plants()
    cards = [
        {
            "plant": plant,
            "growth": growth_info_for_plant(plant),
            "image_urls": supabase_client.get_image_urls(plant),
            "last_watered": watering.get_last_watered(plant["id"]),
        }
        for plant in plants
    ]

    return render_template(
        "plants/index.html",
        cards=cards,
        plant_count=len(plants),
        phase_names=PHASE_NAMES,
    )


@plants_bp.route("/plants/new", methods=["GET", "POST"])
@limiter.limit(lambda: current_app.config["UPLOAD_RATE_LIMIT"], methods=["POST"])
def add():
    """Add a new plant."""
    week_choices = current_app.config["FLOWERING_WEEK_CHOICES"]

    if request.method == "POST":
        payload, error = validate_plant_form(request.form)
        if error:
            flash(error, "error")
            return render_template("plants/add.html", form=request.form, week_choices=week_choices)

        plant = supabase_client.create_plant(payload)
        if not plant:
            flash("Failed to add plant. Please try again.", "error")
            return render_template("plants/add.html", form=request.form, week_choices=week_choices)

        handle_image_uploads(request.files.getlist("images"), plant["id"])

        log_info("Plant created", plant_id=plant["id"], plant_name=payload["name"])
        flash(f"{payload['name']} added successfully!", "success")
        return redirect(url_for("plants.index"))

    return render_template("plants/add.html", form=_form_defaults(), week_choices=week_choices)


@plants_bp.route("/plants/<plant_id>")
def view(plant_id):
    """Plant detail page with growth progress, gallery and watering history."""
    plant, redirect_response = _plant_or_redirect(plant_id)
    if redirect_response:
        return redirect_response

    return render_template(
        "plants/view.html",
        plant=plant,
        growth=growth_info_for_plant(plant),
        image_urls=supabase_client.get_image_urls(plant),
        watering_records=watering.get_watering_records(plant_id, limit=WATERING_HISTORY_DISPLAY_LIMIT),
        phase_names=PHASE_NAMES,
    )


@plants_bp.route("/plants/<plant_id>/edit", methods=["GET", "POST"])
def edit(plant_id):
    """Edit plant information."""
    plant, redirect_response = _plant_or_redirect(plant_id)
    if redirect_response:
        return redirect_response

    week_choices = current_app.config["FLOWERING_WEEK_CHOICES"]

    if request.method == "POST":
        payload, error = validate_plant_form(request.form)
        if error:
            flash(error, "error")
            return render_template("plants/edit.html", plant=plant, form=request.form, week_choices=week_choices)

        updated = supabase_client.update_plant(plant_id, payload)
        if updated:
            flash(f"{payload['name']} updated successfully!", "success")
            return redirect(url_for("plants.view", plant_id=plant_id))
        flash("Failed to update plant. Please try again.", "error")
        return render_template("plants/edit.html", plant=plant, form=request.form, week_choices=week_choices)

    return render_template("plants/edit.html", plant=plant, form=plant, week_choices=week_choices)


@plants_bp.route("/plants/<plant_id>/delete", methods=["POST"])
def delete(plant_id):
    """Delete a plant, its watering records and its images."""
    plant, redirect_response = _plant_or_redirect(plant_id)
    if redirect_response:
        return redirect_response

    plant_name = plant.get("name", "Plant")

    if supabase_client.delete_plant(plant_id):
        log_info("Plant deleted", plant_id=plant_id, plant_name=plant_name)
        flash(f"{plant_name} removed.", "success")
    else:
        flash("Failed to delete plant. Please try again.", "error")

    return redirect(url_for("plants.index"))


@plants_bp.route("/plants/<plant_id>/water", methods=["POST"])
@limiter.limit(lambda: current_app.config["WATER_RATE_LIMIT"])
def water(plant_id):
    """Quick action: log a watering event."""
    plant, redirect_response = _plant_or_redirect(plant_id)
    if redirect_response:
        return redirect_response

    notes = normalize_watering_note(request.form.get("notes")) or DEFAULT_WATERING_NOTE
    record, error = watering.create_watering_record(plant_id, notes=notes)
    if record:
        flash(f"{plant.get('name', 'Plant')} watered!", "success")
    else:
        current_app.logger.error(f"Watering failed for plant {plant_id}: {error}")
        flash("Failed to log watering. Please try again.", "error")

    if request.form.get("return_to") == "index":
        return redirect(url_for("plants.index"))
    return redirect(url_for("plants.view", plant_id=plant_id))


@plants_bp.route("/plants/<plant_id>/start-flowering", methods=["POST"])
def start_flowering(plant_id):
    """Quick action: record when flowering was started."""
    plant, redirect_response = _plant_or_redirect(plant_id)
    if redirect_response:
        return redirect_response

    if supabase_client.start_flowering(plant_id):
        flash("Flowering start recorded.", "success")
    else:
        flash("Failed to record flowering start. Please try again.", "error")
    return redirect(url_for("plants.view", plant_id=plant_id))


@plants_bp.route("/plants/<plant_id>/images", methods=["POST"])
@limiter.limit(lambda: current_app.config["UPLOAD_RATE_LIMIT"])
def upload_images(plant_id):
    """Add one or more images to the plant's gallery."""
    plant, redirect_response = _plant_or_redirect(plant_id)
    if redirect_response:
        return redirect_response

    files = request.files.getlist("images")
    if not any(f and f.filename for f in files):
        flash("Please choose an image to upload.", "error")
    else:
        added = handle_image_uploads(files, plant_id)
        if added:
            flash("Image uploaded." if added == 1 else f"{added} images uploaded.", "success")

    return redirect(url_for("plants.view", plant_id=plant_id))


@plants_bp.route("/plants/<plant_id>/images/delete", methods=["POST"])
def delete_image(plant_id):
    """Remove one image from the gallery."""
    plant, redirect_response = _plant_or_redirect(plant_id)
    if redirect_response:
        return redirect_response

    _, error = supabase_client.remove_plant_image(plant_id, request.form.get("url", ""))
    if error:
        flash(error, "error")
    else:
        flash("Image removed.", "success")
    return redirect(url_for("plants.view", plant_id=plant_id))
