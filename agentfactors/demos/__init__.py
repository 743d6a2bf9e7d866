from __future__ import annotations
from typing import Callable, Dict

from ..workflow import Pipeline
from . import calculator, doubler, human
from .scenario import Scenario

PIPELINES: Dict[str, Callable[..., Pipeline]] = {
    calculator.PIPELINE_ID: calculator.build,
    doubler.PIPELINE_ID: doubler.build,
    human.PIPELINE_ID: human.build,
}

SCENARIOS: Dict[str, list[Scenario]] = {
    calculator.PIPELINE_ID: calculator.SCENARIOS,
    doubler.PIPELINE_ID: doubler.SCENARIOS,
    human.PIPELINE_ID: human.SCENARIOS,
}

def build_pipeline(name: str, settings=None, llm=None) -> Pipeline:
    try:
        factory = PIPELINES[name]
    except KeyError:
        raise KeyError(f"Pipeline inconnu: {name!r} (disponibles: {', '.join(sorted(PIPELINES))})") from None
    return factory(settings, llm)

def register_all(runner, settings=None, llm=None) -> None:
    """Enregistre toutes les démos (nécessaire pour reprendre un run stocké en SQLite)."""
    for name in PIPELINES:
        runner.register(build_pipeline(name, settings, llm))

__all__ = ["PIPELINES", "SCENARIOS", "Scenario", "build_pipeline", "register_all"]
