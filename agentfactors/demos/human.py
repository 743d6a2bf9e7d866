from __future__ import annotations
from typing import Any

from ..llm import DummyLLM, LLM, LLMRequest
from ..workflow import Pipeline, Step, StepResult
from .scenario import Scenario

PIPELINE_ID = "human"

class ClarifyMessageStep(Step):
    id = "clarify-message"

    def execute(self, input: Any) -> StepResult:
        message = ((input or {}).get("user_message") or "").strip()
        if not message:
            return StepResult(output={"clarified_message": ""}, suspend=True, reason="message_needed")
        return StepResult(output={"clarified_message": message})

class DraftReplyStep(Step):
    """Rédige une réponse via le LLM configuré (DummyLLM hors ligne)."""

    id = "draft-reply"

    def __init__(self, llm: LLM, *, max_tokens: int = 256, temperature: float = 0.2) -> None:
        self.llm = llm
        self.max_tokens = max_tokens
        self.temperature = temperature

    def execute(self, input: Any) -> StepResult:
        message = input["clarified_message"]
        prompt = (
            "Tu es un assistant. Rédige une réponse courte et polie au message suivant.\n"
            f"{message}"
        )
        draft = self.llm.generate(LLMRequest(prompt=prompt, max_tokens=self.max_tokens, temperature=self.temperature))
        return StepResult(output={"message": message, "draft": draft.strip()})

class HumanApprovalStep(Step):
    id = "human-approval"

    def execute(self, input: Any) -> StepResult:
        # toujours une pause: un humain valide ou corrige le brouillon
        return StepResult(output={"draft": input["draft"]}, suspend=True, reason="human_approval")

class FinalizeStep(Step):
    id = "finalize"

    def execute(self, input: Any) -> StepResult:
        if "confirmed" not in (input or {}):
            raise ValueError("Réponse humaine sans champ 'confirmed'")
        return StepResult(output={"confirmed": bool(input["confirmed"]), "reply": input.get("reply")})

def build(settings=None, llm: LLM | None = None) -> Pipeline:
    llm = llm or DummyLLM()
    kwargs = {}
    if settings is not None:
        kwargs = {"max_tokens": settings.llm.max_tokens, "temperature": settings.llm.temperature}
    return Pipeline(PIPELINE_ID, [
        ClarifyMessageStep(),
        DraftReplyStep(llm, **kwargs),
        HumanApprovalStep(),
        FinalizeStep(),
    ])

SCENARIOS = [
    Scenario(
        "Message fourni",
        "Brouillon LLM puis validation humaine",
        {"user_message": "Pouvez-vous décaler la réunion à jeudi ?"},
        [{"confirmed": True, "reply": "C'est noté, rendez-vous jeudi."}],
    ),
    Scenario(
        "Message manquant",
        "Deux suspensions: clarification du message, puis validation humaine",
        {"user_message": ""},
        [
            {"clarified_message": "Merci d'envoyer le rapport Q3."},
            {"confirmed": False, "reply": None},
        ],
    ),
]
