from __future__ import annotations
import copy, threading
from datetime import datetime
from typing import Dict, List, Optional

from .types import RunState, RunStatus

class RunStateStore:
    """Contrat clé/valeur du runner: get / put / discard / list, plus insert et compare_and_set atomiques."""

    def get(self, run_id: str) -> Optional[RunState]:  # pragma: no cover - interface
        raise NotImplementedError

    def put(self, state: RunState) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def discard(self, run_id: str) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    def list(self, status: Optional[RunStatus] = None) -> List[RunState]:  # pragma: no cover - interface
        raise NotImplementedError

    def insert(self, state: RunState) -> bool:  # pragma: no cover - interface
        """Écrit un nouveau run; False si l'id existe déjà (rien n'est modifié)."""
        raise NotImplementedError

    def compare_and_set(self, state: RunState, expected_status: RunStatus, expected_modified: datetime) -> bool:  # pragma: no cover - interface
        """
        Remplace le run seulement si la version stockée a encore ce statut et
        ce last_modified. False sinon (run modifié ailleurs ou supprimé).
        """
        raise NotImplementedError


class InMemoryRunStore(RunStateStore):
    """Dict protégé par un verrou. Stocke et renvoie des copies profondes."""

    def __init__(self) -> None:
        self._runs: Dict[str, RunState] = {}
        self._lock = threading.Lock()

    def get(self, run_id: str) -> Optional[RunState]:
        with self._lock:
            state = self._runs.get(run_id)
            return copy.deepcopy(state) if state is not None else None

    def put(self, state: RunState) -> None:
        with self._lock:
            self._runs[state.run_id] = copy.deepcopy(state)

    def insert(self, state: RunState) -> bool:
        with self._lock:
            if state.run_id in self._runs:
                return False
            self._runs[state.run_id] = copy.deepcopy(state)
            return True

    def compare_and_set(self, state: RunState, expected_status: RunStatus, expected_modified: datetime) -> bool:
        snapshot = copy.deepcopy(state)
        with self._lock:
            current = self._runs.get(state.run_id)
            if current is None or current.status != expected_status or current.last_modified != expected_modified:
                return False
            self._runs[state.run_id] = snapshot
            return True

    def discard(self, run_id: str) -> bool:
        with self._lock:
            return self._runs.pop(run_id, None) is not None

    def list(self, status: Optional[RunStatus] = None) -> List[RunState]:
        with self._lock:
            states = [copy.deepcopy(s) for s in self._runs.values()]
        if status is not None:
            states = [s for s in states if s.status == RunStatus(status)]
        states.sort(key=lambda s: s.last_modified)
        return states

    def __len__(self) -> int:
        with self._lock:
            return len(self._runs)


def open_store(settings) -> RunStateStore:
    """Instancie le backend choisi dans la config ([store] backend)."""
    if settings.store.backend == "sqlite":
        from ..memory.db import SQLiteRunStore
        return SQLiteRunStore(settings.store.db_path)
    return InMemoryRunStore()
