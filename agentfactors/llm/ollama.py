from __future__ import annotations
import shutil, subprocess
from .base import LLM, LLMRequest
from .dummy import DummyLLM
from ..security.kill import check_kill

def has_ollama() -> bool:
    return bool(shutil.which("ollama"))

class OllamaCLI(LLM):
    """
    Appelle 'ollama run <model>' en local (pas d'HTTP).
    Nécessite que le binaire 'ollama' soit sur le PATH.
    """
    def __init__(self, model: str, *, kill_switch_path: str | None = "data/kill.switch"):
        self.model = model
        self.kill_switch_path = kill_switch_path

    def generate(self, req: LLMRequest) -> str:
        check_kill(self.kill_switch_path)
        if not has_ollama():
            raise RuntimeError("Ollama non disponible (binaire 'ollama' introuvable sur PATH).")
        cmd = ["ollama", "run", self.model, req.prompt]
        p = subprocess.run(
            cmd,
            text=True,
            encoding="utf-8",
            errors="replace",
            capture_output=True,
            check=False,
        )
        if p.returncode != 0:
            raise RuntimeError(f"ollama run a échoué: {p.stderr.strip() or p.stdout.strip()}")
        out = p.stdout.strip()
        return out if out else "(réponse vide)"

def make_llm(model: str, *, kill_switch_path: str | None = None) -> LLM:
    """'dummy' -> DummyLLM, sinon un tag Ollama (erreur si ollama est absent)."""
    if model.lower() == "dummy":
        return DummyLLM()
    if not has_ollama():
        raise RuntimeError(f"Ollama non disponible pour le modèle {model!r}; utilisez 'dummy'.")
    return OllamaCLI(model, kill_switch_path=kill_switch_path)
