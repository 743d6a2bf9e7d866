from __future__ import annotations
import re
from typing import Any

from ..workflow import Pipeline, Step, StepResult
from .scenario import Scenario

PIPELINE_ID = "calculator"

# ordre significatif: "add" avant "-" etc.
_OPERATIONS = [
    ("add", ("add", "+")),
    ("multiply", ("multiply", "*")),
    ("divide", ("divide", "/")),
    ("subtract", ("subtract", "-")),
]

def parse_request(text: str) -> dict:
    low = text.lower()
    numbers = [int(m) for m in re.findall(r"\d+", low)]
    operation = "unknown"
    for name, markers in _OPERATIONS:
        if any(m in low for m in markers):
            operation = name
            break
    return {
        "numbers": numbers,
        "operation": operation,
        "needs_clarification": len(numbers) < 2 or operation == "unknown",
        "original_input": text,
    }

class ParseRequestStep(Step):
    id = "parse-request"

    def execute(self, input: Any) -> StepResult:
        return StepResult(output=parse_request(input["user_input"]))

class ClarificationStep(Step):
    id = "clarification"

    def execute(self, input: Any) -> StepResult:
        if input.get("needs_clarification"):
            return StepResult(output={"suspended": True}, suspend=True, reason="clarification_needed")
        return StepResult(output={
            "final_numbers": input["numbers"],
            "final_operation": input["operation"],
            "clarification_provided": False,
        })

class CalculationStep(Step):
    id = "calculation"

    def __init__(self, approval_threshold: float = 50) -> None:
        self.approval_threshold = approval_threshold

    def execute(self, input: Any) -> StepResult:
        numbers = list(input.get("final_numbers") or [])
        a = numbers[0] if len(numbers) > 0 else 0
        b = numbers[1] if len(numbers) > 1 else 0
        op = input.get("final_operation")
        if op == "add":
            result = a + b
        elif op == "multiply":
            result = a * b
        elif op == "divide":
            if b == 0:
                raise ZeroDivisionError("Cannot divide by zero")
            result = a / b
        elif op == "subtract":
            result = a - b
        else:
            raise ValueError(f"Unknown operation: {op}")

        explanation = f"{a} {op} {b} = {result}"
        needs_approval = bool(self.approval_threshold) and abs(result) > self.approval_threshold
        return StepResult(
            output={"result": result, "explanation": explanation, "needs_approval": needs_approval},
            suspend=needs_approval,
            reason="approval_needed" if needs_approval else None,
        )

class ApprovalStep(Step):
    id = "approval"

    def execute(self, input: Any) -> StepResult:
        if input.get("needs_approval"):
            return StepResult(output={"suspended": True}, suspend=True, reason="approval_needed")
        approved = bool(input.get("approved", True))
        explanation = input.get("explanation", "")
        return StepResult(output={
            "approved": approved,
            "final_result": input.get("result"),
            "message": f"Completed: {explanation}" if approved else f"Rejected: {explanation}",
        })

def build(settings=None, llm=None) -> Pipeline:
    threshold = settings.workflow.approval_threshold if settings is not None else 50
    return Pipeline(PIPELINE_ID, [
        ParseRequestStep(),
        ClarificationStep(),
        CalculationStep(threshold),
        ApprovalStep(),
    ])

SCENARIOS = [
    Scenario(
        "Simple Completion",
        "Le workflow se termine sans suspension",
        {"user_input": "add 5 and 3"},
    ),
    Scenario(
        "Clarification Needed",
        "Suspension pour clarification, puis reprise",
        {"user_input": "do something with numbers"},
        [{"final_numbers": [10, 20], "final_operation": "add", "clarification_provided": True}],
    ),
    Scenario(
        "Approval Required",
        "Suspension pour approbation, puis reprise",
        {"user_input": "multiply 25 by 30"},
        [{"result": 750, "explanation": "25 multiply 30 = 750", "needs_approval": False}],
    ),
    Scenario(
        "Division by Zero",
        "L'étape de calcul échoue: le run passe en 'failed'",
        {"user_input": "divide 8 by 0"},
    ),
]
