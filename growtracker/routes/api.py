"""
Defines JSON endpoints used by the front end and the PWA.

Endpoints:
- /plants: list and create plants
- /plants/<id>: fetch, update, delete one plant
- /plants/<id>/water: log a watering event
- /plants/<id>/watering: watering history, newest first
- /plants/<id>/start-flowering: record the flowering start timestamp
- /plants/<id>/growth: computed growth phase descriptor

Every plant payload carries a "growth" key with the current phase descriptor.
"""

from flask import Blueprint, request, jsonify, current_app
from ..utils.errors import sanitize_error, json_error, log_info, GENERIC_MESSAGES
from ..utils.validation import validate_plant_form, normalize_watering_note, is_valid_uuid
from ..services import supabase_client, watering
from ..services.growth_phase import InvalidInputError, calculate_growth_phase, growth_info_for_plant
from ..extensions import limiter


api_bp = Blueprint("api", __name__)


@api_bp.before_request
def _enforce_ajax_for_mutations():
    """Enforce X-Requested-With header on all state-changing API requests.

    Cross-origin requests cannot set custom headers without CORS and HTML
    forms cannot set them at all, so this stands in for a CSRF token on the
    whole blueprint.
    """
    if request.method in ("POST", "PUT", "DELETE", "PATCH"):
        if request.headers.get("X-Requested-With") != "XMLHttpRequest":
            return json_error("Invalid request. Please refresh the page and try again.", 403)


def _with_growth(plant: dict) -> dict:
    return {**plant, "growth": growth_info_for_plant(plant)}


def _load_plant(plant_id: str):
    """Fetch a plant or return (None, 404 response)."""
    if not is_valid_uuid(plant_id):
        return None, json_error(GENERIC_MESSAGES["not_found"], 404)
    plant = supabase_client.get_plant_by_id(plant_id)
    if not plant:
        return None, json_error(GENERIC_MESSAGES["not_found"], 404)
    return plant, None


@api_bp.route("/plants", methods=["GET"])
def list_plants():
    """All plants, newest first, each with its growth descriptor."""
    try:
        plants = supabase_client.get_plants()
        return jsonify([_with_growth(p) for p in plants])
    except Exception as e:
        return json_error(sanitize_error(e, "database", "Failed to fetch plants"), 500)


@api_bp.route("/plants", methods=["POST"])
def create_plant():
    """
    Create a plant.

    Request body (JSON):
        {
            "name": "Northern Lights",        # required
            "strain": "Auto",                 # optional
            "plant_date": "2025-03-01",       # required
            "flowering_weeks": 8,             # optional, default 8
            "notes": "..."                    # optional
        }

    Returns:
        200: created plant with "growth"
        400: invalid input
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return json_error("Invalid request body", 400)

    payload, error = validate_plant_form(data)
    if error:
        return json_error(error, 400)

    plant = supabase_client.create_plant(payload)
    if not plant:
        return json_error(GENERIC_MESSAGES["database"], 500)

    log_info("Plant created", plant_id=plant.get("id"), plant_name=payload["name"])
    return jsonify(_with_growth(plant))


@api_bp.route("/plants/<plant_id>", methods=["GET"])
def get_plant(plant_id: str):
    plant, error_response = _load_plant(plant_id)
    if error_response:
        return error_response
    return jsonify(_with_growth(plant))


@api_bp.route("/plants/<plant_id>", methods=["PUT"])
def update_plant(plant_id: str):
    """
    Update a plant. Only the fields present in the body change.

    Accepts name, strain, plant_date, flowering_start_date, flowering_weeks,
    notes and image_urls (list or JSON array string).
    """
    plant, error_response = _load_plant(plant_id)
    if error_response:
        return error_response

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return json_error("Invalid request body", 400)

    payload, error = validate_plant_form(data, partial=True)
    if error:
        return json_error(error, 400)

    updated = supabase_client.update_plant(plant_id, payload)
    if not updated:
        return json_error(GENERIC_MESSAGES["database"], 500)
    return jsonify(_with_growth(updated))


@api_bp.route("/plants/<plant_id>", methods=["DELETE"])
def delete_plant(plant_id: str):
    """Delete a plant together with its watering records and images."""
    plant, error_response = _load_plant(plant_id)
    if error_response:
        return error_response

    if not supabase_client.delete_plant(plant_id):
        return json_error(GENERIC_MESSAGES["database"], 500)

    log_info("Plant deleted", plant_id=plant_id, plant_name=plant.get("name"))
    return jsonify({"success": True})


@api_bp.route("/plants/<plant_id>/water", methods=["POST"])
@limiter.limit(lambda: current_app.config["WATER_RATE_LIMIT"])
def water_plant(plant_id: str):
    """
    Log a watering event.

    Request body (JSON, optional):
        {"notes": "Watered with 1l"}
    """
    plant, error_response = _load_plant(plant_id)
    if error_response:
        return error_response

    data = request.get_json(silent=True) or {}
    notes = normalize_watering_note(data.get("notes")) if isinstance(data, dict) else None

    record, error = watering.create_watering_record(plant_id, notes=notes)
    if error:
        current_app.logger.error(f"Watering failed for plant {plant_id}: {error}")
        return json_error(GENERIC_MESSAGES["database"], 500)
    return jsonify(record)


@api_bp.route("/plants/<plant_id>/watering", methods=["GET"])
def watering_history(plant_id: str):
    """
    Watering records for a plant, newest first.

    Returns the full history unless ?limit=N (N > 0) is given.
    """
    plant, error_response = _load_plant(plant_id)
    if error_response:
        return error_response

    limit = request.args.get("limit", type=int)
    if "limit" in request.args and (limit is None or limit < 1):
        return json_error("limit must be a whole number greater than 0.", 400)

    return jsonify(watering.get_watering_records(plant_id, limit=limit))


@api_bp.route("/plants/<plant_id>/start-flowering", methods=["POST"])
def start_flowering(plant_id: str):
    """Stamp flowering_start_date with the current time."""
    plant, error_response = _load_plant(plant_id)
    if error_response:
        return error_response

    updated = supabase_client.start_flowering(plant_id)
    if not updated:
        return json_error(GENERIC_MESSAGES["database"], 500)
    return jsonify(_with_growth(updated))


@api_bp.route("/plants/<plant_id>/growth", methods=["GET"])
def plant_growth(plant_id: str):
    """
    Growth phase descriptor for a plant.

    Query params:
        on: optional evaluation date (YYYY-MM-DD); defaults to now
    """
    plant, error_response = _load_plant(plant_id)
    if error_response:
        return error_response

    try:
        growth = calculate_growth_phase(
            plant.get("plant_date"),
            plant.get("flowering_weeks"),
            request.args.get("on") or None,
        )
    except InvalidInputError as e:
        sanitize_error(e, "validation", f"Growth calculation for plant {plant_id}")
        return json_error(str(e), 400)
    return jsonify(growth)
