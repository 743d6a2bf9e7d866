from pathlib import Path
import pytest
from agentfactors.config import load_settings

def test_safe_defaults():
    s = load_settings(config=str(Path("config")), profile="safe")
    assert s.general.profile == "safe"
    assert s.workflow.approval_threshold == 50
    assert s.workflow.clarify_below == 10
    assert s.store.backend == "memory"
    assert s.journal.enabled is True
    assert s.llm.model == "dummy"

def test_danger_profile_overrides_defaults():
    s = load_settings(config=str(Path("config")), profile="danger")
    assert s.workflow.approval_threshold == 0
    assert s.store.backend == "sqlite"
    assert s.web.port == 8765

def test_cli_overrides_apply():
    s = load_settings(config=str(Path("config")), profile="balanced",
                      overrides={"store_backend": "sqlite", "db_path": "x.db", "llm_model": "llama3", "log_dir": "logs"})
    assert s.workflow.approval_threshold == 500
    assert s.store.backend == "sqlite" and s.store.db_path == "x.db"
    assert s.llm.model == "llama3"
    assert s.general.log_dir == "logs"

def test_missing_config_dir_uses_dataclass_defaults(tmp_path: Path):
    s = load_settings(config=str(tmp_path / "nothing"), profile="safe")
    assert s.store.backend == "memory"
    assert s.journal.enabled is False

def test_unknown_profile_rejected():
    with pytest.raises(ValueError):
        load_settings(config="config", profile="yolo")

def test_journal_secret_from_env(monkeypatch):
    monkeypatch.setenv("AGENTFACTORS_JOURNAL_SECRET", "s3cret")
    s = load_settings(config="config", profile="safe")
    assert s.journal.secret == "s3cret"
