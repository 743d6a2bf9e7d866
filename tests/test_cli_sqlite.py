import subprocess, sys
from pathlib import Path

def run_cli(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run([sys.executable, "-m", "agentfactors", *args], text=True, capture_output=True, check=False)

def test_launch_then_resume_across_processes(tmp_path: Path):
    db = str(tmp_path / "runs.db")
    common = ("--store", "sqlite", "--db", db, "--profile", "balanced")

    p = run_cli("--pipeline", "doubler", "--run-id", "run-1", *common)
    assert p.returncode == 0
    assert "needs review" in p.stdout and "STATUS: suspended" in p.stdout

    p = run_cli("--list", "--status", "suspended", *common)
    assert "run-1: suspended @ clarify" in p.stdout

    p = run_cli("--resume", "run-1", "--data", '{"n": 5}', *common)
    assert p.returncode == 0
    assert '"doubled": 10' in p.stdout

    p = run_cli("--inspect", "run-1", *common)
    assert "status       = completed" in p.stdout

    p = run_cli("--resume", "run-1", "--data", '{"n": 5}', *common)
    assert p.returncode == 2 and "not_suspended" in p.stderr

    p = run_cli("--discard", "run-1", *common)
    assert p.returncode == 0
    p = run_cli("--inspect", "run-1", *common)
    assert p.returncode == 2
