import json

import pytest
from werkzeug.datastructures import MultiDict

from growtracker.services.growth_phase import InvalidInputError
from growtracker.utils.validation import (
    is_valid_uuid,
    normalize_image_urls,
    normalize_watering_note,
    validate_plant_form,
)


def test_full_form_payload():
    form = MultiDict({
        "name": "  Gelato   #41 ",
        "strain": "Gelato",
        "plant_date": "2025-01-01",
        "flowering_weeks": "9",
        "notes": "Line one\nLine two",
    })
    payload, error = validate_plant_form(form)
    assert error is None
    assert payload == {
        "name": "Gelato #41",
        "strain": "Gelato",
        "plant_date": "2025-01-01",
        "flowering_weeks": 9,
        "notes": "Line one\nLine two",
    }


def test_blank_optionals_become_defaults():
    payload, error = validate_plant_form({"name": "x", "plant_date": "2025-01-01", "flowering_weeks": "", "strain": "  "})
    assert error is None
    assert payload["flowering_weeks"] == 8
    assert payload["strain"] is None
    assert payload["notes"] is None


def test_plant_date_timestamp_is_reduced_to_date():
    payload, _ = validate_plant_form({"name": "x", "plant_date": "2025-01-01T18:30:00Z"})
    assert payload["plant_date"] == "2025-01-01"


def test_markup_is_stripped_from_names():
    payload, error = validate_plant_form({"name": "<script>alert(1)</script>Bud", "plant_date": "2025-01-01"})
    assert error is None
    assert "<" not in payload["name"]
    assert "Bud" in payload["name"]


def test_name_of_only_symbols_is_rejected():
    _, error = validate_plant_form({"name": "<<>>", "plant_date": "2025-01-01"})
    assert error == "Plant name is required."


def test_partial_only_includes_supplied_fields():
    payload, error = validate_plant_form({"flowering_weeks": 11}, partial=True)
    assert error is None
    assert payload == {"flowering_weeks": 11}


def test_partial_still_validates_supplied_fields():
    _, error = validate_plant_form({"name": ""}, partial=True)
    assert error == "Plant name is required."


def test_flowering_start_date():
    payload, _ = validate_plant_form({"flowering_start_date": "2025-02-01"}, partial=True)
    assert payload["flowering_start_date"] == "2025-02-01T00:00:00+00:00"

    payload, _ = validate_plant_form({"flowering_start_date": ""}, partial=True)
    assert payload["flowering_start_date"] is None

    _, error = validate_plant_form({"flowering_start_date": "soon"}, partial=True)
    assert error == "Flowering start date must be a valid date."


def test_normalize_image_urls():
    assert normalize_image_urls(None) == "[]"
    assert json.loads(normalize_image_urls(["a", "b"])) == ["a", "b"]
    assert json.loads(normalize_image_urls('["a"]')) == ["a"]
    with pytest.raises(InvalidInputError):
        normalize_image_urls("not json")
    with pytest.raises(InvalidInputError):
        normalize_image_urls([1, 2])


def test_normalize_watering_note():
    assert normalize_watering_note("   ") is None
    assert normalize_watering_note(None) is None
    assert normalize_watering_note("x" * 500) == "x" * 280
    assert normalize_watering_note("half\x00 dose") == "half dose"


def test_is_valid_uuid():
    assert is_valid_uuid("550e8400-e29b-41d4-a716-446655440000")
    assert not is_valid_uuid("550e8400")
    assert not is_valid_uuid(None)


def test_plant_date_with_offset_is_stored_as_utc_date():
    payload, error = validate_plant_form({"name": "x", "plant_date": "2025-03-01T23:30:00-05:00"})
    assert error is None
    assert payload["plant_date"] == "2025-03-02"
