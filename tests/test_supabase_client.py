import json

from datetime import datetime, timezone
from growtracker.services import supabase_client, watering


def test_create_plant_applies_defaults(app, fake_db):
    with app.app_context():
        plant = supabase_client.create_plant({"name": "  Plant A ", "plant_date": "2025-01-01", "strain": " "})

    assert plant["name"] == "Plant A"
    assert plant["strain"] is None
    assert plant["notes"] is None
    assert plant["flowering_weeks"] == 8
    assert plant["image_urls"] == "[]"
    assert plant["flowering_start_date"] is None
    assert len(fake_db.tables["plants"]) == 1


def test_get_plants_newest_first(app, make_plant):
    make_plant("First")
    make_plant("Second")
    with app.app_context():
        names = [p["name"] for p in supabase_client.get_plants()]
    assert names == ["Second", "First"]


def test_get_plants_is_cached_until_a_write(app, make_plant, fake_db):
    make_plant("Cached")
    with app.app_context():
        assert len(supabase_client.get_plants()) == 1

        # Writes that bypass the service are not visible through the cache...
        fake_db.tables["plants"].append({"id": "raw", "name": "Raw", "created_at": "2030-01-01T00:00:00+00:00"})
        assert len(supabase_client.get_plants()) == 1
        assert len(supabase_client.get_plants(use_cache=False)) == 2

        # ...but any service write invalidates it
        supabase_client.create_plant({"name": "New", "plant_date": "2025-01-01"})
        assert len(supabase_client.get_plants()) == 3


def test_get_plant_by_id(app, make_plant):
    plant = make_plant("Lookup")
    with app.app_context():
        assert supabase_client.get_plant_by_id(plant["id"])["name"] == "Lookup"
        assert supabase_client.get_plant_by_id("00000000-0000-0000-0000-000000000000") is None


def test_update_plant_changes_only_supplied_fields(app, make_plant):
    plant = make_plant("Before", flowering_weeks=9, notes="keep me")
    with app.app_context():
        updated = supabase_client.update_plant(plant["id"], {"name": "After"})

    assert updated["name"] == "After"
    assert updated["flowering_weeks"] == 9
    assert updated["notes"] == "keep me"
    assert updated["updated_at"] != plant["updated_at"]


def test_update_missing_plant_returns_none(app):
    with app.app_context():
        assert supabase_client.update_plant("00000000-0000-0000-0000-000000000000", {"name": "x"}) is None


def test_start_flowering_sets_timestamp(app, make_plant):
    plant = make_plant()
    moment = datetime(2025, 2, 10, 9, 0, tzinfo=timezone.utc)
    with app.app_context():
        updated = supabase_client.start_flowering(plant["id"], at=moment)
    assert updated["flowering_start_date"] == moment.isoformat()


def test_delete_plant_cascades_watering_and_images(app, make_plant, fake_db, png_bytes):
    plant = make_plant("Doomed")
    other = make_plant("Survivor")
    with app.app_context():
        watering.create_watering_record(plant["id"], notes="one")
        watering.create_watering_record(other["id"], notes="two")
        supabase_client.add_plant_image(plant["id"], png_bytes)
        assert len(fake_db.objects) == 1

        assert supabase_client.delete_plant(plant["id"]) is True

        assert supabase_client.get_plant_by_id(plant["id"]) is None
        assert watering.get_watering_records(plant["id"]) == []
        assert len(watering.get_watering_records(other["id"])) == 1
        assert fake_db.objects == {}


def test_failed_delete_keeps_watering_history_and_images(app, make_plant, fake_db, png_bytes):
    plant = make_plant("Stubborn")
    with app.app_context():
        watering.create_watering_record(plant["id"], notes="keep me")
        supabase_client.add_plant_image(plant["id"], png_bytes)

        fake_db.fail_on.add(("plants", "delete"))
        assert supabase_client.delete_plant(plant["id"]) is False

        assert supabase_client.get_plant_by_id(plant["id"]) is not None
        assert [r["notes"] for r in watering.get_watering_records(plant["id"])] == ["keep me"]
        assert len(fake_db.objects) == 1


def test_delete_missing_plant_returns_false(app):
    with app.app_context():
        assert supabase_client.delete_plant("00000000-0000-0000-0000-000000000000") is False


def test_operations_degrade_without_client(app, monkeypatch):
    monkeypatch.setattr(supabase_client, "_supabase_client", None)
    with app.app_context():
        assert supabase_client.get_plants() == []
        assert supabase_client.get_plant_by_id("x") is None
        assert supabase_client.create_plant({"name": "x", "plant_date": "2025-01-01"}) is None
        assert supabase_client.delete_plant("x") is False
        assert supabase_client.is_configured() is False


def test_database_errors_are_logged_not_raised(app, fake_db, caplog):
    fake_db.fail_next = True
    with app.app_context():
        assert supabase_client.get_plants(use_cache=False) == []
    assert "Error getting plants" in caplog.text


def test_get_image_urls_tolerates_bad_data(app):
    with app.app_context():
        assert supabase_client.get_image_urls({"image_urls": '["a", "b"]'}) == ["a", "b"]
        assert supabase_client.get_image_urls({"image_urls": "not json"}) == []
        assert supabase_client.get_image_urls({"image_urls": '{"a": 1}'}) == []
        assert supabase_client.get_image_urls({}) == []
        assert supabase_client.get_image_urls(None) == []


def test_add_and_remove_plant_image(app, make_plant, fake_db, png_bytes):
    plant = make_plant()
    with app.app_context():
        updated, error = supabase_client.add_plant_image(plant["id"], png_bytes)
        assert error is None
        urls = json.loads(updated["image_urls"])
        assert len(urls) == 1
        assert urls[0].startswith("https://fake.supabase.co/storage/v1/object/public/plant-images/")
        assert urls[0].endswith(".jpg")

        updated, error = supabase_client.remove_plant_image(plant["id"], urls[0])
        assert error is None
        assert json.loads(updated["image_urls"]) == []
        assert fake_db.objects == {}


def test_add_plant_image_rejects_garbage(app, make_plant):
    plant = make_plant()
    with app.app_context():
        updated, error = supabase_client.add_plant_image(plant["id"], b"definitely not an image")
    assert updated is None
    assert "Failed to process image" in error


def test_remove_unknown_image(app, make_plant):
    plant = make_plant()
    with app.app_context():
        _, error = supabase_client.remove_plant_image(plant["id"], "https://elsewhere/x.jpg")
    assert error == "Image not found."


def test_create_display_image_flattens_and_bounds(png_bytes):
    from io import BytesIO
    from PIL import Image

    out = supabase_client.create_display_image(png_bytes)
    img = Image.open(BytesIO(out))
    assert img.format == "JPEG"
    assert img.mode == "RGB"

    big = BytesIO()
    Image.new("RGB", (3000, 1500), (10, 20, 30)).save(big, format="PNG")
    img = Image.open(BytesIO(supabase_client.create_display_image(big.getvalue())))
    assert img.size == (1200, 600)
