import logging
import threading
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteResult:
    table: str
    affected_rows: int
    latency: float

    def __str__(self):
        return f"{self.table}: {self.affected_rows} rows in {self.latency * 1000:.1f}ms"


class Loader:
    """Writes access-log batches to GreptimeDB through a shared connection pool.

    Safe to share between driver threads: each write borrows its own
    connection, and the set of created tables is guarded by a lock.
    """

    def __init__(self, pool):
        self.pool = pool
        self._created = set()
        self._lock = threading.Lock()

    def ensure_table(self, table):
        with self._lock:
            if table.name in self._created:
                return
        conn = self.pool.get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute(table.create_sql())
        finally:
            cursor.close()
            conn.close()
        with self._lock:
            self._created.add(table.name)
        logger.info("Table %s is ready", table.name)

    def write(self, table):
        if not table.rows:
            return WriteResult(table.name, 0, 0.0)
        self.ensure_table(table)

        start = time.time()
        conn = self.pool.get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute(table.insert_sql(), table.flat_values())
            row_count = cursor.rowcount
        finally:
            cursor.close()
            conn.close()
        return WriteResult(table.name, row_count, time.time() - start)

    def count_rows(self, table_name):
        conn = self.pool.get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute(f"SELECT COUNT(*) FROM `{table_name}`")
            return cursor.fetchone()[0]
        finally:
            cursor.close()
            conn.close()
