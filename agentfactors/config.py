from __future__ import annotations
from dataclasses import dataclass, field, fields
from pathlib import Path
import tomllib, os

PROFILES = ["safe", "balanced", "danger"]
STORE_BACKENDS = ["memory", "sqlite"]

@dataclass
class General:
    profile: str = "safe"
    log_dir: str = "data/logs"
    kill_switch_path: str = "data/kill.switch"

@dataclass
class Workflow:
    # |résultat| au-delà duquel le calculateur demande une approbation (0 = jamais)
    approval_threshold: float = 50
    # pipeline "doubler": n < clarify_below => suspension "needs review"
    clarify_below: int = 10

@dataclass
class Store:
    backend: str = "memory"
    db_path: str = "data/runs.db"

@dataclass
class Journal:
    enabled: bool = False
    path: str = "data/logs/transitions.jsonl"
    secret: str = ""

@dataclass
class LLM:
    model: str = "dummy"
    max_tokens: int = 256
    temperature: float = 0.2

@dataclass
class Web:
    host: str = "127.0.0.1"
    port: int = 8765

@dataclass
class Settings:
    general: General = field(default_factory=General)
    workflow: Workflow = field(default_factory=Workflow)
    store: Store = field(default_factory=Store)
    journal: Journal = field(default_factory=Journal)
    llm: LLM = field(default_factory=LLM)
    web: Web = field(default_factory=Web)

def _load_toml_if_exists(path: Path) -> dict:
    if path.exists():
        with path.open("rb") as f:
            return tomllib.load(f)
    return {}

def _read_profile_toml(config_path: Path, profile: str) -> dict:
    """
    Cherche dans:
      - config/defaults.toml et config/<profile>.toml
      - puis fallback: config/profiles/defaults.toml et config/profiles/<profile>.toml
    """
    cfg_dir = config_path if config_path.is_dir() else config_path.parent

    data = _load_toml_if_exists(cfg_dir / "defaults.toml")
    if not data:
        data = _load_toml_if_exists(cfg_dir / "profiles" / "defaults.toml")

    prof = _load_toml_if_exists(cfg_dir / f"{profile}.toml")
    if not prof:
        prof = _load_toml_if_exists(cfg_dir / "profiles" / f"{profile}.toml")

    # Fusion superficielle defaults <- profil
    base = data or {}
    for k, v in prof.items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            base[k].update(v)
        else:
            base[k] = v
    return base

def _filter_for_dataclass(cls, data: dict) -> dict:
    """Ne garde que les clés connues du dataclass (évite TypeError sur clés en trop)."""
    allowed = {f.name for f in fields(cls)}
    return {k: v for k, v in (data or {}).items() if k in allowed}

def load_settings(config: str | None, profile: str, overrides: dict | None = None) -> Settings:
    if profile not in PROFILES:
        raise ValueError(f"Profil inconnu: {profile!r} (attendu: {', '.join(PROFILES)})")
    config_path = Path(config) if config else Path("config")
    raw = _read_profile_toml(config_path, profile)

    # Secret HMAC du journal via env prioritaire
    if "journal" not in raw:
        raw["journal"] = {}
    env_secret = os.environ.get("AGENTFACTORS_JOURNAL_SECRET")
    if env_secret:
        raw["journal"]["secret"] = env_secret

    g = General(**_filter_for_dataclass(General, raw.get("general")))
    g.profile = profile
    w = Workflow(**_filter_for_dataclass(Workflow, raw.get("workflow")))
    st = Store(**_filter_for_dataclass(Store, raw.get("store")))
    j = Journal(**_filter_for_dataclass(Journal, raw.get("journal")))
    l = LLM(**_filter_for_dataclass(LLM, raw.get("llm")))
    web = Web(**_filter_for_dataclass(Web, raw.get("web")))

    if st.backend not in STORE_BACKENDS:
        raise ValueError(f"Backend de store inconnu: {st.backend!r}")

    # Overrides: clés de General, plus quelques raccourcis CLI
    if overrides:
        for k, v in overrides.items():
            if v is None:
                continue
            if k == "store_backend":
                st.backend = v
            elif k == "db_path":
                st.db_path = v
            elif k == "llm_model":
                l.model = v
            elif hasattr(g, k):
                setattr(g, k, v)

    return Settings(general=g, workflow=w, store=st, journal=j, llm=l, web=web)
