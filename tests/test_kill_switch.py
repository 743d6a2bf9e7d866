from pathlib import Path
import pytest
from starlette.testclient import TestClient

from agentfactors.demos import doubler
from agentfactors.security.kill import KillSwitchEngaged
from agentfactors.workflow import PipelineRunner, RunStatus
from agentfactors.web.app import create_app

def test_kill_file_blocks_launch_and_resume(tmp_path: Path):
    kill = tmp_path / "kill"
    runner = PipelineRunner(kill_switch_path=str(kill))
    runner.launch(doubler.build(), {}, "r")
    kill.write_text("KILLED", encoding="utf-8")
    with pytest.raises(KillSwitchEngaged):
        runner.launch(doubler.build(), {}, "other")
    with pytest.raises(KillSwitchEngaged):
        runner.resume("r", {"n": 5})
    assert runner.inspect("other") is None
    assert runner.inspect("r").status == RunStatus.SUSPENDED

def test_kill_http_endpoint(tmp_path: Path):
    kill = tmp_path / "kill"
    runner = PipelineRunner(kill_switch_path=str(kill))
    runner.register(doubler.build())
    client = TestClient(create_app(runner, kill_switch_path=str(kill)))
    r = client.post("/api/kill")
    assert r.status_code == 200
    assert kill.exists()
    r = client.post("/api/runs", json={"pipeline": "doubler", "run_id": "r", "input": {}})
    assert r.status_code == 423
