# -*- coding: utf-8 -*-
"""
Report Store
============
Append-only, time-ordered reports keyed by (route, stop).

The engine only ever calls query(); append() is used by the ingestion
endpoint and the seeding script. Query results come back in no particular
order, callers sort.
"""
import logging
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Protocol

try:
    from src.utils import format_instant, parse_instant, partition_key
except ImportError:
    from utils import format_instant, parse_instant, partition_key


SOURCE_DRIVER = "driver"
SOURCE_RIDER = "rider"


class StoreUnavailableError(RuntimeError):
    """The report store could not be read or written."""


@dataclass(frozen=True)
class Report:
    route: str
    stop: str
    source: str
    level: object  # int 1..4 when well-formed; kept as-is otherwise
    timestamp: datetime
    bus_id: Optional[str] = None
    headcount: Optional[int] = None

    @property
    def partition_key(self) -> str:
        return partition_key(self.route, self.stop)

    @property
    def is_driver(self) -> bool:
        return self.source == SOURCE_DRIVER

    def sort_key(self):
        """Total order: timestamp first, the remaining fields break ties."""
        return (
            self.timestamp,
            str(self.source),
            "" if self.bus_id is None else str(self.bus_id),
            repr(self.level),
        )

    @classmethod
    def from_row(cls, row) -> "Report":
        """Build a Report from a stored mapping (sqlite3.Row or dict)."""
        row = dict(row)
        ts = row.get("sk") or row.get("created_at")
        return cls(
            route=row.get("route"),
            stop=row.get("stop"),
            source=row.get("source") or SOURCE_RIDER,
            level=row.get("level"),
            timestamp=parse_instant(ts),
            bus_id=row.get("bus_id"),
            headcount=row.get("headcount"),
        )


class ReportStore(Protocol):
    """Store contract the engine depends on."""

    def query(self, pk: str, since: datetime, until: datetime) -> List[Report]:
        """Reports under pk with since <= timestamp <= until, any order."""
        ...

    def append(self, report: Report) -> Report:
        ...


class InMemoryReportStore:
    """List-backed store. Used by tests and REPORT_STORE=memory."""

    def __init__(self, reports=None):
        self._reports: List[Report] = list(reports or [])
        self._lock = threading.Lock()

    def query(self, pk, since, until):
        with self._lock:
            return [
                r for r in self._reports
                if r.partition_key == pk and since <= r.timestamp <= until
            ]

    def append(self, report):
        with self._lock:
            self._reports.append(report)
        return report

    def ping(self) -> bool:
        return True

    def __len__(self):
        return len(self._reports)


class SQLiteReportStore:
    """
    SQLite-backed store. One short-lived connection per call, so the store
    can be shared across worker threads.
    """

    def __init__(self, db_path):
        self.db_path = Path(db_path)
        self._initialized = False
        self._init_lock = threading.Lock()

    def _init_db(self):
        """Create table and index once."""
        if self._initialized:
            return
        with self._init_lock:
            if self._initialized:
                return
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path))
            try:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS reports (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        pk TEXT NOT NULL,
                        sk TEXT NOT NULL,
                        route TEXT NOT NULL,
                        stop TEXT NOT NULL,
                        bus_id TEXT,
                        source TEXT NOT NULL,
                        level,
                        headcount INTEGER,
                        created_at TEXT NOT NULL
                    )
                """)
                conn.execute("CREATE INDEX IF NOT EXISTS idx_reports_pk_sk ON reports(pk, sk)")
                conn.commit()
            finally:
                conn.close()
            self._initialized = True

    def _get_connection(self) -> sqlite3.Connection:
        self._init_db()
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def query(self, pk, since, until):
        try:
            conn = self._get_connection()
            try:
                rows = conn.execute(
                    "SELECT route, stop, bus_id, source, level, headcount, sk, created_at "
                    "FROM reports WHERE pk = ? AND sk BETWEEN ? AND ?",
                    (pk, format_instant(since), format_instant(until)),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"report query failed: {e}") from e

        reports = []
        for row in rows:
            try:
                reports.append(Report.from_row(row))
            except ValueError:
                logging.warning("Skipping report with unreadable timestamp: %r", row["sk"])
        return reports

    def append(self, report):
        sk = format_instant(report.timestamp)
        try:
            conn = self._get_connection()
            try:
                conn.execute(
                    """
                    INSERT INTO reports
                        (pk, sk, route, stop, bus_id, source, level, headcount, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        report.partition_key,
                        sk,
                        report.route,
                        report.stop,
                        report.bus_id,
                        report.source,
                        report.level,
                        report.headcount,
                        sk,
                    ),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"report write failed: {e}") from e
        return report

    def append_many(self, reports):
        """Bulk insert, one transaction. Returns the number written."""
        rows = []
        for r in reports:
            sk = format_instant(r.timestamp)
            rows.append((r.partition_key, sk, r.route, r.stop, r.bus_id,
                         r.source, r.level, r.headcount, sk))
        try:
            conn = self._get_connection()
            try:
                conn.executemany(
                    "INSERT INTO reports "
                    "(pk, sk, route, stop, bus_id, source, level, headcount, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    rows,
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"bulk write failed: {e}") from e
        return len(rows)

    def ping(self) -> bool:
        """True when the database answers a trivial query."""
        try:
            conn = self._get_connection()
            try:
                conn.execute("SELECT 1").fetchone()
            finally:
                conn.close()
            return True
        except sqlite3.Error:
            return False
