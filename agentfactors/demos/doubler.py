from __future__ import annotations
from typing import Any

from ..workflow import Pipeline, Step, StepResult
from .scenario import Scenario

PIPELINE_ID = "doubler"
DEFAULT_N = 5

class ParseStep(Step):
    id = "parse"

    def execute(self, input: Any) -> StepResult:
        n = (input or {}).get("n", DEFAULT_N)
        return StepResult(output={"n": int(n)})

class ClarifyStep(Step):
    id = "clarify"

    def __init__(self, below: int = 10) -> None:
        self.below = below

    def execute(self, input: Any) -> StepResult:
        n = input["n"]
        if n < self.below:
            return StepResult(output={"n": n}, suspend=True, reason="needs review")
        return StepResult(output={"n": n})

class ComputeStep(Step):
    id = "compute"

    def execute(self, input: Any) -> StepResult:
        return StepResult(output={"doubled": input["n"] * 2})

def build(settings=None, llm=None) -> Pipeline:
    below = settings.workflow.clarify_below if settings is not None else 10
    return Pipeline(PIPELINE_ID, [ParseStep(), ClarifyStep(below), ComputeStep()])

SCENARIOS = [
    Scenario("Revue requise", "n=5 par défaut: suspension 'needs review', reprise avec n=5", {}, [{"n": 5}]),
    Scenario("Sans revue", "n=21 dépasse le seuil: exécution d'une traite", {"n": 21}),
]
