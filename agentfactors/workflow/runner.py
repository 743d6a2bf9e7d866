from __future__ import annotations
from typing import Any, Dict, List, Optional

from ..security.kill import check_kill
from .errors import (
    InvalidStateError,
    PipelineDefinitionError,
    StepExecutionError,
    SuspensionContractViolation,
)
from .store import InMemoryRunStore, RunStateStore
from .types import (
    Completed,
    Failed,
    Pipeline,
    RunOutcome,
    RunState,
    RunStatus,
    Suspended,
    utcnow,
)

__all__ = ["PipelineRunner"]


class PipelineRunner:
    """
    Fait avancer un RunState à travers les étapes d'un Pipeline.

    - launch(): crée le run et exécute les étapes dans l'ordre
    - resume(): reprend un run suspendu à l'étape qui suit la suspension
    - inspect(): copie en lecture seule de l'état stocké

    Chaque transition est persistée (et journalisée si un journal est fourni)
    avant de rendre la main. Le runner ne génère jamais d'identifiant de run
    et ne réessaie jamais une étape.
    """

    def __init__(
        self,
        store: Optional[RunStateStore] = None,
        *,
        journal=None,
        kill_switch_path: str | None = None,
    ) -> None:
        self.store = store if store is not None else InMemoryRunStore()
        self.journal = journal
        self.kill_switch_path = kill_switch_path
        self._pipelines: Dict[str, Pipeline] = {}

    # ---------------- Pipelines ----------------
    def register(self, pipeline: Pipeline) -> Pipeline:
        known = self._pipelines.get(pipeline.id)
        if known is not None and known is not pipeline:
            # les runs suspendus reprennent avec les étapes de leur lancement
            raise PipelineDefinitionError(f"Un autre pipeline {pipeline.id!r} est déjà enregistré")
        self._pipelines[pipeline.id] = pipeline
        return pipeline

    def pipeline(self, pipeline_id: str) -> Optional[Pipeline]:
        return self._pipelines.get(pipeline_id)

    def pipelines(self) -> List[Pipeline]:
        return [self._pipelines[k] for k in sorted(self._pipelines)]

    # ---------------- Persistance ----------------
    def _journal(self, state: RunState) -> None:
        if self.journal is None:
            return
        try:
            self.journal.record(state)
        except OSError as e:
            self._mark_unpersistable(state, f"journal indisponible: {e}")
            raise

    def _persist(self, state: RunState) -> None:
        """Écrit la transition d'un run en cours (statut stocké: running)."""
        previous = state.last_modified
        state.last_modified = utcnow()
        try:
            ok = self.store.compare_and_set(state, RunStatus.RUNNING, previous)
        except Exception as e:
            self._mark_unpersistable(state, f"état non persistable: {e}")
            raise
        if not ok:
            raise InvalidStateError(
                state.run_id, "conflict",
                f"Le run {state.run_id!r} a été modifié ou supprimé pendant son exécution",
            )
        self._journal(state)

    def _mark_unpersistable(self, state: RunState, message: str) -> None:
        # repart de la dernière version stockée: le run ne doit pas rester "running"
        stored = self.store.get(state.run_id)
        if stored is None or stored.status != RunStatus.RUNNING:
            return
        previous = stored.last_modified
        stored.status = RunStatus.FAILED
        stored.current_step_id = state.current_step_id
        stored.suspend_reason = None
        stored.error = message
        stored.last_modified = utcnow()
        self.store.compare_and_set(stored, RunStatus.RUNNING, previous)

    # ---------------- API ----------------
    def launch(self, pipeline: Pipeline, initial_input: Any, run_id: str) -> RunOutcome:
        check_kill(self.kill_switch_path)
        self.register(pipeline)
        state = RunState(
            run_id=run_id,
            pipeline_id=pipeline.id,
            status=RunStatus.RUNNING,
            current_step_id=pipeline.steps[0].id,
        )
        if not self.store.insert(state):
            raise InvalidStateError(run_id, "duplicate_run", f"Un run existe déjà pour l'id {run_id!r}")
        self._journal(state)
        return self._advance(pipeline, state, start=0, current_input=initial_input)

    def resume(self, run_id: str, resume_data: Any) -> RunOutcome:
        check_kill(self.kill_switch_path)
        state = self.store.get(run_id)
        if state is None:
            raise InvalidStateError(run_id, "not_found", f"Aucun run suspendu pour l'id {run_id!r} (introuvable)")
        if state.status != RunStatus.SUSPENDED:
            raise self._not_suspended(run_id, state.status.value)
        pipeline = self._pipelines.get(state.pipeline_id)
        if pipeline is None:
            raise InvalidStateError(
                run_id, "unknown_pipeline",
                f"Pipeline {state.pipeline_id!r} non enregistré pour le run {run_id!r}",
            )

        # transition suspended -> running atomique dans le store: une seule reprise gagne
        previous = state.last_modified
        state.status = RunStatus.RUNNING
        state.suspend_reason = None
        state.last_modified = utcnow()
        if not self.store.compare_and_set(state, RunStatus.SUSPENDED, previous):
            current = self.store.get(run_id)
            if current is None:
                raise InvalidStateError(run_id, "not_found", f"Aucun run suspendu pour l'id {run_id!r} (introuvable)")
            raise self._not_suspended(run_id, current.status.value)
        self._journal(state)

        # les données de reprise tiennent lieu de sortie de l'étape suspendue
        start = pipeline.index_of(state.current_step_id) + 1
        return self._advance(pipeline, state, start=start, current_input=resume_data)

    @staticmethod
    def _not_suspended(run_id: str, status: str) -> InvalidStateError:
        return InvalidStateError(
            run_id, "not_suspended",
            f"Aucun run suspendu pour l'id {run_id!r} (statut: {status})",
        )

    def inspect(self, run_id: str) -> Optional[RunState]:
        return self.store.get(run_id)

    def discard(self, run_id: str) -> bool:
        return self.store.discard(run_id)

    def list_runs(self, status: RunStatus | str | None = None) -> List[RunState]:
        return self.store.list(RunStatus(status) if status is not None else None)


    # ---------------- Boucle d'avancement ----------------
    def _advance(self, pipeline: Pipeline, state: RunState, *, start: int, current_input: Any) -> RunOutcome:
        for step in pipeline.steps[start:]:
            state.current_step_id = step.id
            try:
                result = step.execute(current_input)
            except Exception as e:
                err = StepExecutionError(step.id, str(e) or type(e).__name__)
                err.__cause__ = e
                state.status = RunStatus.FAILED
                state.error = err.message
                self._persist(state)
                return Failed(run_id=state.run_id, error=err)

            if result.suspend and not (result.reason or "").strip():
                state.status = RunStatus.FAILED
                state.error = f"suspension sans raison ({step.id})"
                self._persist(state)
                raise SuspensionContractViolation(step.id)

            state.step_outputs[step.id] = result.output

            if result.suspend:
                state.status = RunStatus.SUSPENDED
                state.suspend_reason = result.reason
                self._persist(state)
                return Suspended(run_id=state.run_id, reason=result.reason, current_step_id=step.id)

            current_input = result.output

        state.status = RunStatus.COMPLETED
        self._persist(state)
        return Completed(run_id=state.run_id, result=current_input)
