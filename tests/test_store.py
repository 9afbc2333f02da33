from __future__ import annotations

from dataclasses import replace

import psycopg2
import pytest

from conftest import FIXED_NOW, make_record

from pharmacy_guard import build_store
from pharmacy_guard.database import PostgresPharmacyStore, row_to_record
from pharmacy_guard.errors import StoreWriteError
from pharmacy_guard.store import InMemoryPharmacyStore


def test_memory_round_trip_keeps_every_field(memory_store):
    original = make_record("Pharmacie Atlas", 35.76, -5.83, is_open=False, day_of_week=5)

    [stored] = memory_store.replace_all([original])
    fetched = memory_store.get_by_id(stored.id)

    assert fetched.id
    assert replace(fetched, id=None) == original


def test_memory_replace_all_clears_previous_set(memory_store):
    old = memory_store.replace_all([make_record("Pharmacie Ancienne")])
    memory_store.replace_all([make_record("Pharmacie Une"), make_record("Pharmacie Deux")])

    assert [r.name for r in memory_store.get_all()] == ["Pharmacie Une", "Pharmacie Deux"]
    assert memory_store.get_by_id(old[0].id) is None
    assert memory_store.count() == 2


def test_memory_invalid_records_keep_previous_set(memory_store):
    memory_store.replace_all([make_record("Pharmacie Ancienne")])

    with pytest.raises(StoreWriteError):
        memory_store.replace_all([make_record("Pharmacie Neuve"), {"name": "pas un record"}])

    assert [r.name for r in memory_store.get_all()] == ["Pharmacie Ancienne"]


def test_memory_get_open_and_update_fields(memory_store):
    stored = memory_store.replace_all([
        make_record("Pharmacie Ouverte"),
        make_record("Pharmacie Fermee", is_open=False),
    ])

    assert [r.name for r in memory_store.get_open()] == ["Pharmacie Ouverte"]

    memory_store.update_fields(stored[1].id, {"is_open": True, "phone": "0539 000000"})
    assert [r.name for r in memory_store.get_open()] == ["Pharmacie Ouverte", "Pharmacie Fermee"]
    assert memory_store.get_by_id(stored[1].id).phone == "0539 000000"


def test_memory_update_fields_rejects_unknown_fields_and_ids(memory_store):
    [stored] = memory_store.replace_all([make_record("Pharmacie Atlas")])

    with pytest.raises(ValueError):
        memory_store.update_fields(stored.id, {"id": "other"})
    with pytest.raises(StoreWriteError):
        memory_store.update_fields("missing", {"is_open": False})


def test_build_store_selects_backend():
    class MemoryConfig:
        STORE_BACKEND = "memory"

    class UnknownConfig:
        STORE_BACKEND = "firebase"

    assert isinstance(build_store(MemoryConfig), InMemoryPharmacyStore)
    with pytest.raises(ValueError):
        build_store(UnknownConfig)


# --- PostgreSQL store against a fake connection pool ---

class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.rowcount = 1
        self.rows = []

    def execute(self, query, params=None):
        if self.conn.fail_on and self.conn.fail_on in query:
            raise psycopg2.OperationalError("server closed the connection")
        self.conn.executed.append((" ".join(query.split()), params))

    def fetchall(self):
        return self.rows

    def fetchone(self):
        return self.rows[0] if self.rows else None

    def close(self):
        pass


class FakeConnection:
    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.executed = []
        self.commits = 0
        self.rollbacks = 0
        self.next_rows = []

    def cursor(self, cursor_factory=None):
        cursor = FakeCursor(self)
        cursor.rows = self.next_rows
        return cursor

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


class FakePool:
    def __init__(self, conn):
        self.conn = conn
        self.returned = 0

    def getconn(self):
        return self.conn

    def putconn(self, conn):
        self.returned += 1


def make_pg_store(conn, schema="public"):
    return PostgresPharmacyStore({}, schema=schema, pool=FakePool(conn))


def test_row_to_record_maps_french_columns():
    row = {
        "id": "abc", "nom": "Pharmacie Atlas", "adresse": "Rue de Fès", "telephone": "0539 123456",
        "latitude": 35.76, "longitude": -5.83, "jour_garde": 3, "de_garde": True, "updated_at": FIXED_NOW,
    }
    assert row_to_record(row) == make_record("Pharmacie Atlas", 35.76, -5.83, record_id="abc")


def test_pg_replace_all_deletes_and_inserts_in_one_transaction(monkeypatch):
    conn = FakeConnection()
    store = make_pg_store(conn)
    inserted = []
    monkeypatch.setattr(
        "pharmacy_guard.database.extras.execute_values",
        lambda cursor, query, rows: inserted.extend(rows),
    )

    stored = store.replace_all([make_record("Pharmacie Une"), make_record("Pharmacie Deux")])

    assert conn.executed[0] == ("SELECT pg_advisory_xact_lock(hashtext(%s))", ("public.pharmacies_garde",))
    assert conn.executed[1][0] == "DELETE FROM public.pharmacies_garde"
    assert [row[1:3] for row in inserted] == [(0, "Pharmacie Une"), (1, "Pharmacie Deux")]
    assert [row[0] for row in inserted] == [r.id for r in stored]
    assert conn.commits == 1
    assert store.pool.returned == 1


def test_pg_replace_all_rolls_back_on_error():
    conn = FakeConnection(fail_on="DELETE")
    store = make_pg_store(conn)

    with pytest.raises(StoreWriteError):
        store.replace_all([make_record("Pharmacie Une")])

    assert conn.rollbacks == 1
    assert conn.commits == 0


def test_pg_update_fields_builds_assignments():
    conn = FakeConnection()
    store = make_pg_store(conn, schema="pharmacy")

    store.update_fields("abc", {"is_open": False, "updated_at": FIXED_NOW})

    assert conn.executed[0] == ("SET search_path TO pharmacy, public", None)
    assert conn.executed[1] == (
        "UPDATE pharmacy.pharmacies_garde SET de_garde = %s, updated_at = %s WHERE id = %s",
        [False, FIXED_NOW, "abc"],
    )
    assert conn.commits == 1


def test_pg_get_open_filters_and_orders():
    conn = FakeConnection()
    conn.next_rows = [{
        "id": "abc", "nom": "Pharmacie Atlas", "adresse": "Rue de Fès", "telephone": "0539 123456",
        "latitude": None, "longitude": None, "jour_garde": 3, "de_garde": True, "updated_at": FIXED_NOW,
    }]
    store = make_pg_store(conn)

    [record] = store.get_open()

    query, params = conn.executed[0]
    assert "WHERE de_garde = %s ORDER BY position" in query
    assert params == (True,)
    assert record.name == "Pharmacie Atlas"
    assert not record.has_location


def test_pg_replace_all_locks_writers_before_delete():
    conn = FakeConnection()
    store = make_pg_store(conn, schema="pharmacy")

    assert store.replace_all([]) == []

    statements = [query for query, _ in conn.executed]
    assert statements == [
        "SET search_path TO pharmacy, public",
        "SELECT pg_advisory_xact_lock(hashtext(%s))",
        "DELETE FROM pharmacy.pharmacies_garde",
    ]
    assert conn.executed[1][1] == ("pharmacy.pharmacies_garde",)
    assert conn.commits == 1
