import io
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from PIL import Image

from growtracker import create_app
from growtracker.services import supabase_client
from growtracker.utils import cache


# In-memory stand-in for the Supabase client: supports the PostgREST query
# builder calls and the storage bucket calls the services make.

_BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


class FakeQuery:
    def __init__(self, db, table):
        self._db = db
        self._table = table
        self._mode = "select"
        self._payload = None
        self._filters = []
        self._order = None
        self._limit = None

    def select(self, _fields="*"):
        self._mode = "select"
        return self

    def insert(self, data):
        self._mode = "insert"
        self._payload = data
        return self

    def update(self, data):
        self._mode = "update"
        self._payload = data
        return self

    def delete(self):
        self._mode = "delete"
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row):
        return all(row.get(col) == val for col, val in self._filters)

    def execute(self):
        if self._db.fail_next:
            self._db.fail_next = False
            raise RuntimeError("simulated database failure")
        if (self._table, self._mode) in self._db.fail_on:
            raise RuntimeError(f"simulated {self._mode} failure on {self._table}")

        rows = self._db.tables.setdefault(self._table, [])

        if self._mode == "insert":
            items = self._payload if isinstance(self._payload, list) else [self._payload]
            created = []
            for item in items:
                row = {"id": str(uuid.uuid4()), "created_at": self._db.tick(), **item}
                if self._table == "plants":
                    row.setdefault("updated_at", row["created_at"])
                rows.append(row)
                created.append(dict(row))
            return SimpleNamespace(data=created)

        matched = [row for row in rows if self._matches(row)]

        if self._mode == "update":
            for row in matched:
                row.update(self._payload)
            return SimpleNamespace(data=[dict(r) for r in matched])

        if self._mode == "delete":
            self._db.tables[self._table] = [row for row in rows if not self._matches(row)]
            return SimpleNamespace(data=[dict(r) for r in matched])

        if self._order:
            column, desc = self._order
            matched = sorted(matched, key=lambda r: r.get(column) or "", reverse=desc)
        if self._limit is not None:
            matched = matched[:self._limit]
        return SimpleNamespace(data=[dict(r) for r in matched])


class FakeBucket:
    def __init__(self, db, name):
        self._db = db
        self._name = name

    def upload(self, path, data, file_options=None):
        self._db.objects[f"{self._name}/{path}"] = data
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://fake.supabase.co/storage/v1/object/public/{self._name}/{path}"

    def remove(self, paths):
        for path in paths:
            self._db.objects.pop(f"{self._name}/{path}", None)
        return [{"name": p} for p in paths]


class FakeSupabase:
    def __init__(self):
        self.tables = {"plants": [], "watering_records": []}
        self.objects = {}
        self.fail_next = False
        # (table, mode) pairs whose queries always raise, e.g. ("plants", "delete")
        self.fail_on = set()
        self._ticks = 0
        self.storage = SimpleNamespace(from_=lambda name: FakeBucket(self, name))

    def table(self, name):
        return FakeQuery(self, name)

    def tick(self):
        """Strictly increasing timestamps so created_at ordering is deterministic."""
        self._ticks += 1
        return (_BASE_TIME + timedelta(seconds=self._ticks)).isoformat()


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def app(monkeypatch, fake_db):
    app = create_app("growtracker.config.TestConfig")
    monkeypatch.setattr(supabase_client, "_supabase_client", fake_db)
    cache.invalidate_plant_cache()
    yield app
    cache.invalidate_plant_cache()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ajax_headers():
    return {"X-Requested-With": "XMLHttpRequest"}


@pytest.fixture
def make_plant(app):
    """Create a plant planted `days_ago` days before today."""
    def _make(name="Plant #1", days_ago=0, flowering_weeks=8, **extra):
        data = {
            "name": name,
            "plant_date": (datetime.now(timezone.utc).date() - timedelta(days=days_ago)).isoformat(),
            "flowering_weeks": flowering_weeks,
            **extra,
        }
        with app.app_context():
            plant = supabase_client.create_plant(data)
        assert plant is not None
        return plant
    return _make


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGBA", (40, 30), (0, 128, 0, 200)).save(buf, format="PNG")
    return buf.getvalue()
