from pathlib import Path
from starlette.testclient import TestClient
from agentfactors.config import Settings
from agentfactors.llm import DummyLLM
from agentfactors.orchestrator import build_runner
from agentfactors.web.app import create_app

def _client(tmp_path: Path) -> TestClient:
    s = Settings()
    s.general.kill_switch_path = str(tmp_path / "kill")
    runner = build_runner(s, llm=DummyLLM())
    return TestClient(create_app(runner, profile="safe", kill_switch_path=s.general.kill_switch_path))

def test_health_and_pipelines(tmp_path: Path):
    client = _client(tmp_path)
    r = client.get("/api/health")
    assert r.status_code == 200 and r.json()["status"] == "ok"
    r = client.get("/api/pipelines")
    ids = [p["id"] for p in r.json()["items"]]
    assert ids == ["calculator", "doubler", "human"]

def test_launch_resume_inspect_discard(tmp_path: Path):
    client = _client(tmp_path)
    r = client.post("/api/runs", json={"pipeline": "doubler", "run_id": "run-1", "input": {}})
    assert r.status_code == 200
    assert r.json() == {"kind": "suspended", "run_id": "run-1", "reason": "needs review", "current_step_id": "clarify"}

    r = client.get("/api/runs", params={"status": "suspended"})
    assert r.json()["count"] == 1

    r = client.post("/api/runs/run-1/resume", json={"data": {"n": 5}})
    assert r.status_code == 200
    assert r.json()["result"] == {"doubled": 10}

    r = client.get("/api/runs/run-1")
    assert r.status_code == 200 and r.json()["status"] == "completed"

    r = client.post("/api/runs/run-1/resume", json={"data": {"n": 5}})
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "not_suspended"

    r = client.get("/")
    assert r.status_code == 200 and "run-1" in r.text

    assert client.delete("/api/runs/run-1").status_code == 200
    assert client.get("/api/runs/run-1").status_code == 404

def test_launch_errors(tmp_path: Path):
    client = _client(tmp_path)
    assert client.post("/api/runs", json={"pipeline": "nope", "run_id": "x"}).status_code == 404
    client.post("/api/runs", json={"pipeline": "doubler", "run_id": "dup", "input": {}})
    r = client.post("/api/runs", json={"pipeline": "doubler", "run_id": "dup", "input": {}})
    assert r.status_code == 409 and r.json()["detail"]["code"] == "duplicate_run"
    r = client.post("/api/runs", json={"pipeline": "calculator", "run_id": "z", "input": {"user_input": "divide 3 by 0"}})
    assert r.status_code == 200
    assert r.json()["kind"] == "failed" and r.json()["step_id"] == "calculation"
