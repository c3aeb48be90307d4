from datetime import datetime, timedelta, timezone

from growtracker.services import supabase_client, watering


def test_create_watering_record(app, make_plant):
    plant = make_plant()
    with app.app_context():
        record, error = watering.create_watering_record(plant["id"], notes="1 litre")
    assert error is None
    assert record["plant_id"] == plant["id"]
    assert record["notes"] == "1 litre"
    assert record["watered_at"]


def test_records_listed_newest_first(app, make_plant):
    plant = make_plant()
    start = datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc)
    with app.app_context():
        for offset in (0, 2, 1):
            watering.create_watering_record(plant["id"], notes=f"day {offset}", watered_at=start + timedelta(days=offset))

        notes = [r["notes"] for r in watering.get_watering_records(plant["id"])]
        assert notes == ["day 2", "day 1", "day 0"]
        assert watering.get_last_watered(plant["id"])["notes"] == "day 2"


def test_records_are_scoped_to_plant(app, make_plant):
    a = make_plant("A")
    b = make_plant("B")
    with app.app_context():
        watering.create_watering_record(a["id"])
        assert watering.get_watering_records(b["id"]) == []
        assert watering.get_last_watered(b["id"]) is None


def test_create_without_client(app, monkeypatch):
    monkeypatch.setattr(supabase_client, "_supabase_client", None)
    with app.app_context():
        record, error = watering.create_watering_record("x")
        assert record is None
        assert error == "Database not configured"
        assert watering.get_watering_records("x") == []


def test_create_reports_database_error(app, make_plant, fake_db):
    plant = make_plant()
    fake_db.fail_next = True
    with app.app_context():
        record, error = watering.create_watering_record(plant["id"])
    assert record is None
    assert "simulated database failure" in error
