"""
PostgreSQL Store
================
psycopg2-backed PharmacyStore. Table names are schema-qualified so the
module can live in its own schema inside a parent app's database.

replace_all() runs DELETE + INSERT in one transaction: readers see either
the previous scrape or the new one, never an empty or half-written table.
Concurrent writers from other processes wait on a transaction-scoped
advisory lock, so two scrapes are never merged into one table.
"""
import uuid
from contextlib import contextmanager

import psycopg2
from psycopg2 import extras

from .errors import StoreWriteError
from .models import PharmacyRecord
from .store import PharmacyStore, check_fields


# Record field -> column
COLUMNS = {
    'name': 'nom',
    'address': 'adresse',
    'phone': 'telephone',
    'latitude': 'latitude',
    'longitude': 'longitude',
    'day_of_week': 'jour_garde',
    'is_open': 'de_garde',
    'updated_at': 'updated_at',
}

SELECT_COLUMNS = "id, nom, adresse, telephone, latitude, longitude, jour_garde, de_garde, updated_at"


def row_to_record(row):
    """Build a PharmacyRecord from a DictCursor row."""
    return PharmacyRecord(
        id=row['id'],
        name=row['nom'],
        address=row['adresse'],
        phone=row['telephone'],
        latitude=row['latitude'],
        longitude=row['longitude'],
        day_of_week=row['jour_garde'],
        is_open=row['de_garde'],
        updated_at=row['updated_at'],
    )


def record_to_row(record_id, position, record):
    return (
        record_id,
        position,
        record.name,
        record.address,
        record.phone,
        record.latitude,
        record.longitude,
        record.day_of_week,
        record.is_open,
        record.updated_at,
    )


class PostgresPharmacyStore(PharmacyStore):
    """
    Args:
        db_config: Dict with keys host, port, database, user, password.
        schema: PostgreSQL schema holding the table (default: 'public').
        pool: Optional psycopg2 pool (getconn()/putconn()) shared with a parent app.
    """

    TABLE = 'pharmacies_garde'

    def __init__(self, db_config, schema='public', pool=None):
        self.db_config = db_config
        self.schema = schema
        self.pool = pool

    @classmethod
    def from_config(cls, config, pool=None):
        return cls(config.get_db_config(), schema=config.DB_SCHEMA, pool=pool)

    @property
    def table(self):
        return f"{self.schema}.{self.TABLE}"

    @contextmanager
    def connection(self):
        """Pooled connection if a pool was given, otherwise a fresh one."""
        conn = None
        from_pool = False

        try:
            if self.pool is not None:
                conn = self.pool.getconn()
                from_pool = True
            else:
                conn = psycopg2.connect(**self.db_config)

            if self.schema != 'public':
                cursor = conn.cursor()
                cursor.execute(f"SET search_path TO {self.schema}, public")
                cursor.close()

            yield conn
        finally:
            if conn:
                if from_pool:
                    self.pool.putconn(conn)
                else:
                    conn.close()

    @contextmanager
    def cursor(self, commit=False):
        """DictCursor; commits on clean exit when `commit` is set, rolls back otherwise."""
        with self.connection() as conn:
            cursor = conn.cursor(cursor_factory=psycopg2.extras.DictCursor)
            try:
                yield cursor
                if commit:
                    conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                cursor.close()

    def ensure_tables_exist(self):
        """Create schema, table and index. Safe to call multiple times."""
        with self.cursor(commit=True) as cursor:
            cursor.execute(f"CREATE SCHEMA IF NOT EXISTS {self.schema}")
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    id VARCHAR(32) PRIMARY KEY,
                    position INTEGER NOT NULL,
                    nom VARCHAR(255) NOT NULL,
                    adresse VARCHAR(255),
                    telephone VARCHAR(50),
                    latitude DOUBLE PRECISION,
                    longitude DOUBLE PRECISION,
                    jour_garde SMALLINT NOT NULL,
                    de_garde BOOLEAN NOT NULL DEFAULT FALSE,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cursor.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{self.TABLE}_de_garde ON {self.table} (de_garde)"
            )

    def replace_all(self, records):
        stored = [record.with_id(uuid.uuid4().hex) for record in records]
        rows = [record_to_row(record.id, position, record) for position, record in enumerate(stored)]

        try:
            with self.cursor(commit=True) as cursor:
                # Serializes writers across processes (cron script, API workers)
                cursor.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (self.table,))
                cursor.execute(f"DELETE FROM {self.table}")
                if rows:
                    extras.execute_values(
                        cursor,
                        f"""
                        INSERT INTO {self.table}
                            (id, position, nom, adresse, telephone, latitude, longitude,
                             jour_garde, de_garde, updated_at)
                        VALUES %s
                        """,
                        rows,
                    )
        except psycopg2.Error as e:
            raise StoreWriteError(f"Could not replace pharmacies: {e}") from e

        return stored

    def _select(self, where='', params=()):
        query = f"SELECT {SELECT_COLUMNS} FROM {self.table} {where} ORDER BY position"
        with self.cursor() as cursor:
            cursor.execute(query, params)
            return [row_to_record(row) for row in cursor.fetchall()]

    def get_all(self):
        return self._select()

    def get_open(self):
        return self._select("WHERE de_garde = %s", (True,))

    def get_by_id(self, record_id):
        records = self._select("WHERE id = %s", (record_id,))
        return records[0] if records else None

    def update_fields(self, record_id, partial):
        check_fields(partial)
        if not partial:
            return

        assignments = ', '.join(f"{COLUMNS[key]} = %s" for key in partial)
        params = list(partial.values()) + [record_id]

        try:
            with self.cursor(commit=True) as cursor:
                cursor.execute(f"UPDATE {self.table} SET {assignments} WHERE id = %s", params)
                if cursor.rowcount == 0:
                    raise StoreWriteError(f"Pharmacy {record_id} not found")
        except psycopg2.Error as e:
            raise StoreWriteError(f"Could not update pharmacy {record_id}: {e}") from e

    def count(self):
        with self.cursor() as cursor:
            cursor.execute(f"SELECT COUNT(*) FROM {self.table}")
            return cursor.fetchone()[0]

    def health(self):
        """Check the connection; never raises."""
        try:
            with self.cursor() as cursor:
                cursor.execute("SELECT version();")
                pg_version = cursor.fetchone()[0]
            return {
                'status': 'connected',
                'postgresql': pg_version,
                'schema': self.schema,
            }
        except psycopg2.Error as e:
            return {
                'status': 'error',
                'error': str(e)
            }
