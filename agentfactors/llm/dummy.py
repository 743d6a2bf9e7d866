from __future__ import annotations
from .base import LLM, LLMRequest

class DummyLLM(LLM):
    """
    LLM déterministe pour tests/démo.
    Rédige une réponse courte à partir de la dernière ligne non vide du prompt.
    """
    def generate(self, req: LLMRequest) -> str:
        lines = [l.strip() for l in req.prompt.strip().splitlines() if l.strip()]
        message = (lines[-1] if lines else "")[:200]
        return f"Bonjour, bien reçu : « {message} ». Nous revenons vers vous rapidement."
