import subprocess
import sys
from pathlib import Path

def run_cli(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-m", "agentfactors", *args],
        text=True,
        capture_output=True,
        check=False,
    )

def test_help_works():
    p = run_cli("--help")
    assert p.returncode == 0
    assert "agentfactors" in p.stdout

def test_version():
    p = run_cli("--version")
    assert p.returncode == 0
    assert p.stdout.strip().count(".") == 2

def test_demo_calculator_scenarios():
    assert Path("config").exists()
    p = run_cli("--demo", "calculator", "--config", "config", "--profile", "safe")
    assert p.returncode == 0
    assert "Suspendu à 'clarification': clarification_needed" in p.stdout
    assert "Suspendu à 'calculation': approval_needed" in p.stdout
    assert "Échec à 'calculation': Cannot divide by zero" in p.stdout
    assert "Inspection des runs" in p.stdout

def test_launch_single_run_and_failed_exit_code():
    p = run_cli("--pipeline", "calculator", "--input", '{"user_input": "add 2 and 3"}', "--run-id", "cli-1")
    assert p.returncode == 0
    assert "STATUS: completed" in p.stdout
    p = run_cli("--pipeline", "calculator", "--input", '{"user_input": "divide 1 by 0"}')
    assert p.returncode == 1
    assert "STATUS: failed" in p.stdout

def test_resume_unknown_run_is_invalid_state():
    p = run_cli("--resume", "ghost", "--data", "{}")
    assert p.returncode == 2
    assert "not_found" in p.stderr
