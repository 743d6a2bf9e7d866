from __future__ import annotations
from .config import Settings
from .demos import register_all
from .journal import TransitionJournal
from .llm import LLM, make_llm
from .workflow import PipelineRunner, open_store

def build_runner(settings: Settings, *, llm: LLM | None = None) -> PipelineRunner:
    """Runner câblé depuis la config: store, journal, kill-switch et pipelines de démo."""
    journal = None
    if settings.journal.enabled:
        journal = TransitionJournal(settings.journal.path, secret=settings.journal.secret)
    runner = PipelineRunner(
        open_store(settings),
        journal=journal,
        kill_switch_path=settings.general.kill_switch_path,
    )
    if llm is None:
        llm = make_llm(settings.llm.model, kill_switch_path=settings.general.kill_switch_path)
    register_all(runner, settings, llm)
    return runner
