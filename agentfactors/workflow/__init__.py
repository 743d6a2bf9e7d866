from .errors import (
    InvalidStateError,
    PipelineDefinitionError,
    StepExecutionError,
    SuspensionContractViolation,
    WorkflowError,
)
from .types import (
    Completed,
    Failed,
    FunctionStep,
    Pipeline,
    RunOutcome,
    RunState,
    RunStatus,
    Step,
    StepResult,
    Suspended,
)
from .store import InMemoryRunStore, RunStateStore, open_store
from .runner import PipelineRunner

__all__ = [
    "Completed", "Failed", "FunctionStep", "InMemoryRunStore", "InvalidStateError",
    "Pipeline", "PipelineDefinitionError", "PipelineRunner", "RunOutcome", "RunState",
    "RunStateStore", "RunStatus", "Step", "StepExecutionError", "StepResult",
    "Suspended", "SuspensionContractViolation", "WorkflowError", "open_store",
]
