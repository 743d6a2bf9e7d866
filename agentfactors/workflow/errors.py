from __future__ import annotations

class WorkflowError(Exception):
    """Base pour les erreurs du moteur de pipeline."""

class PipelineDefinitionError(WorkflowError, ValueError):
    """Pipeline vide ou identifiants d'étapes dupliqués."""

class StepExecutionError(WorkflowError):
    """Une étape a levé une exception pendant execute()."""

    def __init__(self, step_id: str, message: str) -> None:
        super().__init__(f"[{step_id}] {message}")
        self.step_id = step_id
        self.message = message

class InvalidStateError(WorkflowError):
    """
    Le run ciblé n'est pas dans l'état attendu.

    code: "not_found" | "not_suspended" | "unknown_pipeline" | "duplicate_run" | "conflict"
    """

    def __init__(self, run_id: str, code: str, message: str) -> None:
        super().__init__(message)
        self.run_id = run_id
        self.code = code

class SuspensionContractViolation(WorkflowError):
    """Une étape demande une suspension sans raison (erreur de programmation)."""

    def __init__(self, step_id: str) -> None:
        super().__init__(f"L'étape {step_id!r} demande une suspension sans raison")
        self.step_id = step_id
