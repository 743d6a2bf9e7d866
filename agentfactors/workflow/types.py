from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from .errors import PipelineDefinitionError, StepExecutionError

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def iso(ts: datetime) -> str:
    return ts.isoformat(timespec="microseconds").replace("+00:00", "Z")

def parse_iso(text: str) -> datetime:
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


class RunStatus(str, Enum):
    RUNNING = "running"
    SUSPENDED = "suspended"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class StepResult:
    output: Any = None
    suspend: bool = False
    reason: Optional[str] = None


class Step:
    """
    Étape de pipeline sans état.
    Ne lit que son entrée, ne touche jamais au RunState: elle renvoie un StepResult.
    """

    id: str

    def execute(self, input: Any) -> StepResult:  # pragma: no cover - interface
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id!r}>"


class FunctionStep(Step):
    """Adapte une fonction `input -> StepResult` en Step."""

    def __init__(self, id: str, fn: Callable[[Any], StepResult]) -> None:
        self.id = id
        self.fn = fn

    def execute(self, input: Any) -> StepResult:
        return self.fn(input)


class Pipeline:
    """Séquence ordonnée et figée d'étapes aux identifiants uniques."""

    def __init__(self, id: str, steps: Iterable[Step]) -> None:
        self.id = id
        self.steps: Tuple[Step, ...] = tuple(steps)
        if not self.steps:
            raise PipelineDefinitionError(f"Pipeline {id!r} sans étape")
        seen: set[str] = set()
        for s in self.steps:
            if s.id in seen:
                raise PipelineDefinitionError(f"Pipeline {id!r}: étape dupliquée {s.id!r}")
            seen.add(s.id)

    @property
    def step_ids(self) -> list[str]:
        return [s.id for s in self.steps]

    def index_of(self, step_id: str) -> int:
        for i, s in enumerate(self.steps):
            if s.id == step_id:
                return i
        raise KeyError(step_id)

    def __len__(self) -> int:
        return len(self.steps)


@dataclass
class RunState:
    run_id: str
    pipeline_id: str
    status: RunStatus
    current_step_id: str
    step_outputs: Dict[str, Any] = field(default_factory=dict)
    suspend_reason: Optional[str] = None
    error: Optional[str] = None
    last_modified: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "pipeline_id": self.pipeline_id,
            "status": self.status.value,
            "current_step_id": self.current_step_id,
            "step_outputs": self.step_outputs,
            "suspend_reason": self.suspend_reason,
            "error": self.error,
            "last_modified": iso(self.last_modified),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "RunState":
        return cls(
            run_id=d["run_id"],
            pipeline_id=d["pipeline_id"],
            status=RunStatus(d["status"]),
            current_step_id=d["current_step_id"],
            step_outputs=dict(d.get("step_outputs") or {}),
            suspend_reason=d.get("suspend_reason"),
            error=d.get("error"),
            last_modified=parse_iso(d["last_modified"]),
        )


# ---------------- Issues d'un launch/resume ----------------

@dataclass
class Completed:
    run_id: str
    result: Any
    kind: str = field(default="completed", init=False)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "run_id": self.run_id, "result": self.result}

@dataclass
class Suspended:
    run_id: str
    reason: str
    current_step_id: str
    kind: str = field(default="suspended", init=False)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "run_id": self.run_id, "reason": self.reason,
                "current_step_id": self.current_step_id}

@dataclass
class Failed:
    run_id: str
    error: StepExecutionError
    kind: str = field(default="failed", init=False)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "run_id": self.run_id, "step_id": self.error.step_id,
                "error": self.error.message}

RunOutcome = Completed | Suspended | Failed
