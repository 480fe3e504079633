"""
SQLite problem store for doc-doctor.

Keeps the findings of the last successful check run so they can be listed
and marked done/ignored between runs.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .models import ProblemRecord, ProblemStatus, ProblemType, StoredProblem

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# ── Schema ────────────────────────────────────────────────────────────────────

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT DEFAULT (datetime('now')),
    description TEXT
);

CREATE TABLE IF NOT EXISTS problems (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    problem_type INTEGER NOT NULL,
    file_path TEXT NOT NULL,
    function_signature TEXT,
    function_name TEXT NOT NULL,
    line_number INTEGER DEFAULT 1,
    column_number INTEGER DEFAULT 1,
    problem_description TEXT,
    function_snippet TEXT,
    check_timestamp TEXT NOT NULL,
    status INTEGER DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_problems_file ON problems(file_path);
CREATE INDEX IF NOT EXISTS idx_problems_status ON problems(status);
"""

_INSERT_SQL = """INSERT INTO problems
   (problem_type, file_path, function_signature, function_name,
    line_number, column_number, problem_description, function_snippet,
    check_timestamp, status)
   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"""


def _utcnow() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _row_values(p: ProblemRecord, timestamp: str) -> tuple:
    return (
        int(p.problem_type),
        p.file_path,
        p.function_signature,
        p.function_name,
        p.line,
        p.column,
        p.description,
        p.snippet,
        timestamp,
        int(ProblemStatus.NORMAL),
    )


# ── Store ─────────────────────────────────────────────────────────────────────


class ProblemStore:
    """Thread-safe SQLite store of documentation problems."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path).expanduser()
        self._local = threading.local()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _conn(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            return conn

        conn = sqlite3.connect(self.db_path, timeout=5.0, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute("PRAGMA busy_timeout=5000;")
        conn.row_factory = sqlite3.Row
        self._local.conn = conn
        return conn

    def initialize(self) -> None:
        """Create tables if this is a fresh database."""
        conn = self._conn()
        conn.executescript(SCHEMA_SQL)
        conn.execute(
            "INSERT OR IGNORE INTO schema_version (version, description) VALUES (?, ?)",
            (SCHEMA_VERSION, "doc-doctor problems schema"),
        )
        conn.commit()

    def close(self) -> None:
        conn = getattr(self._local, "conn", None)
        if conn:
            conn.close()
            self._local.conn = None

    # ── Writes ────────────────────────────────────────────────────────────

    def save_problem(self, problem: ProblemRecord) -> int:
        """Insert one problem, returning its id."""
        conn = self._conn()
        cur = conn.execute(_INSERT_SQL, _row_values(problem, _utcnow()))
        conn.commit()
        return cur.lastrowid

    def replace_all(self, problems: Iterable[ProblemRecord]) -> int:
        """Clear the store and insert ``problems`` in one transaction.

        An empty iterable still clears. Returns the number inserted.
        """
        conn = self._conn()
        now = _utcnow()
        rows = [_row_values(p, now) for p in problems]
        with conn:
            conn.execute("DELETE FROM problems")
            conn.executemany(_INSERT_SQL, rows)
        logger.debug(f"Stored {len(rows)} problems in {self.db_path}")
        return len(rows)

    def update_status(self, problem_id: int, status: ProblemStatus) -> bool:
        conn = self._conn()
        cur = conn.execute(
            "UPDATE problems SET status=? WHERE id=?",
            (int(status), problem_id),
        )
        conn.commit()
        return cur.rowcount > 0

    def clear(self) -> int:
        conn = self._conn()
        cur = conn.execute("DELETE FROM problems")
        conn.commit()
        return cur.rowcount

    # ── Reads ─────────────────────────────────────────────────────────────

    def get_problem(self, problem_id: int) -> Optional[StoredProblem]:
        row = (
            self._conn()
            .execute("SELECT * FROM problems WHERE id=?", (problem_id,))
            .fetchone()
        )
        return self._row_to_problem(row) if row else None

    def load_all(self, *, status: Optional[ProblemStatus] = None) -> List[StoredProblem]:
        conn = self._conn()
        if status is None:
            rows = conn.execute("SELECT * FROM problems ORDER BY id").fetchall()
        else:
            rows = conn.execute(
                "SELECT * FROM problems WHERE status=? ORDER BY id",
                (int(status),),
            ).fetchall()
        return [self._row_to_problem(r) for r in rows]

    def _row_to_problem(self, row: sqlite3.Row) -> StoredProblem:
        return StoredProblem(
            problem_type=ProblemType(row["problem_type"]),
            file_path=row["file_path"],
            function_name=row["function_name"],
            function_signature=row["function_signature"] or "",
            line=row["line_number"],
            column=row["column_number"],
            description=row["problem_description"] or "",
            snippet=row["function_snippet"] or "",
            id=row["id"],
            check_timestamp=row["check_timestamp"],
            status=ProblemStatus(row["status"]),
        )

    # ── Stats ─────────────────────────────────────────────────────────────

    def stats(self) -> Dict[str, Any]:
        conn = self._conn()
        total = conn.execute("SELECT COUNT(*) as c FROM problems").fetchone()["c"]
        ignored = conn.execute(
            "SELECT COUNT(*) as c FROM problems WHERE status=?",
            (int(ProblemStatus.IGNORED),),
        ).fetchone()["c"]
        files = conn.execute(
            "SELECT COUNT(DISTINCT file_path) as c FROM problems"
        ).fetchone()["c"]
        by_type = {
            ProblemType(r["problem_type"]).name: r["c"]
            for r in conn.execute(
                "SELECT problem_type, COUNT(*) as c FROM problems GROUP BY problem_type"
            ).fetchall()
        }
        last = conn.execute("SELECT MAX(check_timestamp) as t FROM problems").fetchone()["t"]

        db_size = self.db_path.stat().st_size if self.db_path.exists() else 0
        return {
            "db_path": str(self.db_path),
            "db_size_mb": round(db_size / (1024 * 1024), 2),
            "problems": total,
            "open": total - ignored,
            "ignored": ignored,
            "files": files,
            "by_type": by_type,
            "last_check": last,
        }


# ── Per-path accessor ─────────────────────────────────────────────────────────

_stores: Dict[str, ProblemStore] = {}
_stores_lock = threading.Lock()


def get_store(db_path: Path) -> ProblemStore:
    """Get or create the store for ``db_path`` (one instance per path)."""
    key = str(Path(db_path).expanduser().resolve())
    with _stores_lock:
        if key not in _stores:
            store = ProblemStore(Path(key))
            store.initialize()
            _stores[key] = store
        return _stores[key]
