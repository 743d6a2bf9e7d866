from __future__ import annotations
import sqlite3, json, threading
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import Optional, List

from ..workflow.store import RunStateStore
from ..workflow.types import RunState, RunStatus, iso

SCHEMA = [
    """CREATE TABLE IF NOT EXISTS runs (
        run_id TEXT PRIMARY KEY,
        pipeline_id TEXT NOT NULL,
        status TEXT NOT NULL,
        current_step_id TEXT NOT NULL,
        step_outputs TEXT NOT NULL,
        suspend_reason TEXT,
        error TEXT,
        last_modified TEXT NOT NULL
    );""",
    "CREATE INDEX IF NOT EXISTS runs_status ON runs(status);",
]

_COLUMNS = "run_id, pipeline_id, status, current_step_id, step_outputs, suspend_reason, error, last_modified"

class SQLiteRunStore(RunStateStore):
    """
    Store de RunState sur SQLite (un fichier partagé entre processus).
    Une connexion par opération: utilisable depuis les threads du serveur web.
    insert/compare_and_set s'appuient sur la base (clé primaire, UPDATE
    conditionnel) et restent atomiques entre processus.
    Les sorties d'étapes doivent être sérialisables en JSON.
    """

    def __init__(self, path: str | Path):
        self.path = str(path)
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        with closing(self._connect()) as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            cur = conn.cursor()
            for stmt in SCHEMA:
                cur.execute(stmt)
            conn.commit()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path, timeout=10)
        conn.row_factory = sqlite3.Row
        return conn

    @staticmethod
    def _row_to_state(r: sqlite3.Row) -> RunState:
        d = dict(r)
        d["step_outputs"] = json.loads(d["step_outputs"]) if d["step_outputs"] else {}
        return RunState.from_dict(d)

    @staticmethod
    def _params(state: RunState) -> tuple:
        # json.dumps en premier: une sortie non sérialisable lève avant toute écriture
        return (
            state.run_id,
            state.pipeline_id,
            state.status.value,
            state.current_step_id,
            json.dumps(state.step_outputs, ensure_ascii=False),
            state.suspend_reason,
            state.error,
            iso(state.last_modified),
        )

    def get(self, run_id: str) -> Optional[RunState]:
        with self._lock, closing(self._connect()) as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM runs WHERE run_id=?", (run_id,)).fetchone()
        return self._row_to_state(row) if row else None

    def put(self, state: RunState) -> None:
        params = self._params(state)
        with self._lock, closing(self._connect()) as conn:
            conn.execute(f"INSERT OR REPLACE INTO runs({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)", params)
            conn.commit()

    def insert(self, state: RunState) -> bool:
        params = self._params(state)
        with self._lock, closing(self._connect()) as conn:
            try:
                conn.execute(f"INSERT INTO runs({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)", params)
            except sqlite3.IntegrityError:
                conn.rollback()
                return False
            conn.commit()
            return True

    def compare_and_set(self, state: RunState, expected_status: RunStatus, expected_modified: datetime) -> bool:
        run_id, pipeline_id, status, step, outputs, reason, error, modified = self._params(state)
        with self._lock, closing(self._connect()) as conn:
            cur = conn.execute(
                """UPDATE runs SET pipeline_id=?, status=?, current_step_id=?, step_outputs=?,
                       suspend_reason=?, error=?, last_modified=?
                   WHERE run_id=? AND status=? AND last_modified=?""",
                (pipeline_id, status, step, outputs, reason, error, modified,
                 run_id, RunStatus(expected_status).value, iso(expected_modified)),
            )
            conn.commit()
            return cur.rowcount == 1

    def discard(self, run_id: str) -> bool:
        with self._lock, closing(self._connect()) as conn:
            cur = conn.execute("DELETE FROM runs WHERE run_id=?", (run_id,))
            conn.commit()
            return cur.rowcount > 0

    def list(self, status: Optional[RunStatus] = None) -> List[RunState]:
        with self._lock, closing(self._connect()) as conn:
            if status is not None:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM runs WHERE status=? ORDER BY last_modified ASC",
                    (RunStatus(status).value,),
                ).fetchall()
            else:
                rows = conn.execute(f"SELECT {_COLUMNS} FROM runs ORDER BY last_modified ASC").fetchall()
        return [self._row_to_state(r) for r in rows]
