"""
Pharmacy Store
==============
The core only talks to this interface. Two backends ship with the module:

    InMemoryPharmacyStore   - tests, demos, STORE_BACKEND=memory
    PostgresPharmacyStore   - see database.py

Reads return records in write order; the nearest-match tie-break depends
on it.
"""
import threading
import uuid
from dataclasses import replace

from .errors import StoreWriteError


UPDATABLE_FIELDS = frozenset({
    'name', 'address', 'phone', 'latitude', 'longitude',
    'day_of_week', 'is_open', 'updated_at',
})


def check_fields(partial):
    unknown = set(partial) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown pharmacy fields: {', '.join(sorted(unknown))}")


class PharmacyStore:
    """Interface every store backend implements."""

    def replace_all(self, records):
        """Clear the stored set and write `records`. Returns the stored records with ids."""
        raise NotImplementedError

    def get_all(self):
        raise NotImplementedError

    def get_open(self):
        """Records whose is_open flag is set."""
        raise NotImplementedError

    def get_by_id(self, record_id):
        raise NotImplementedError

    def update_fields(self, record_id, partial):
        raise NotImplementedError

    def count(self):
        return len(self.get_all())

    def health(self):
        return {'status': 'ok', 'backend': type(self).__name__}


class InMemoryPharmacyStore(PharmacyStore):

    def __init__(self):
        self._records = {}
        self._lock = threading.Lock()

    def replace_all(self, records):
        try:
            fresh = {}
            for record in records:
                record_id = uuid.uuid4().hex
                fresh[record_id] = record.with_id(record_id)
        except (AttributeError, TypeError) as e:
            raise StoreWriteError(f"Invalid pharmacy record: {e}") from e

        with self._lock:
            self._records = fresh
        return list(fresh.values())

    def get_all(self):
        with self._lock:
            return list(self._records.values())

    def get_open(self):
        return [record for record in self.get_all() if record.is_open]

    def get_by_id(self, record_id):
        with self._lock:
            return self._records.get(record_id)

    def update_fields(self, record_id, partial):
        check_fields(partial)
        with self._lock:
            if record_id not in self._records:
                raise StoreWriteError(f"Pharmacy {record_id} not found")
            self._records[record_id] = replace(self._records[record_id], **partial)

    def count(self):
        with self._lock:
            return len(self._records)
