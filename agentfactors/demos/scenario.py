from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, List

@dataclass
class Scenario:
    name: str
    description: str
    input: Any
    # données fournies à chaque reprise successive (une par suspension attendue)
    resumes: List[Any] = field(default_factory=list)
