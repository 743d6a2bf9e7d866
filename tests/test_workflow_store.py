import threading
from pathlib import Path
import pytest
from agentfactors.memory.db import SQLiteRunStore
from agentfactors.workflow import (
    FunctionStep,
    InMemoryRunStore,
    InvalidStateError,
    Pipeline,
    PipelineRunner,
    RunState,
    RunStatus,
    StepResult,
)
from agentfactors.demos import doubler

def _state(run_id: str = "r", status: RunStatus = RunStatus.RUNNING) -> RunState:
    return RunState(run_id=run_id, pipeline_id="p", status=status, current_step_id="a",
                    step_outputs={"a": {"x": [1, 2]}})

def test_memory_store_does_not_alias():
    store = InMemoryRunStore()
    st = _state()
    store.put(st)
    st.step_outputs["a"]["x"].append(3)
    got = store.get("r")
    assert got.step_outputs == {"a": {"x": [1, 2]}}
    got.status = RunStatus.FAILED
    assert store.get("r").status == RunStatus.RUNNING

def test_sqlite_store_round_trip(tmp_path: Path):
    store = SQLiteRunStore(tmp_path / "runs.db")
    st = _state()
    st.suspend_reason = "needs review"
    store.put(st)
    assert store.get("r") == st
    assert store.get("missing") is None
    store.put(_state("other", RunStatus.SUSPENDED))
    assert [s.run_id for s in store.list(RunStatus.SUSPENDED)] == ["other"]
    assert {s.run_id for s in store.list()} == {"r", "other"}
    assert store.discard("r") is True
    assert store.discard("r") is False

def test_sqlite_store_resume_from_another_runner(tmp_path: Path):
    db = tmp_path / "runs.db"
    first = PipelineRunner(SQLiteRunStore(db))
    first.launch(doubler.build(), {}, "run-1")

    second = PipelineRunner(SQLiteRunStore(db))
    second.register(doubler.build())
    out = second.resume("run-1", {"n": 7})
    assert out.kind == "completed" and out.result == {"doubled": 14}
    assert first.inspect("run-1").status == RunStatus.COMPLETED

@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path):
    if request.param == "sqlite":
        return SQLiteRunStore(tmp_path / "runs.db")
    return InMemoryRunStore()

def test_insert_refuses_existing_run(store):
    st = _state(status=RunStatus.SUSPENDED)
    assert store.insert(st) is True
    other = _state()
    other.pipeline_id = "q"
    assert store.insert(other) is False
    assert store.get("r") == st

def test_compare_and_set_needs_matching_version(store):
    st = _state(status=RunStatus.SUSPENDED)
    store.insert(st)
    stale = st.last_modified

    running = _state(status=RunStatus.RUNNING)
    assert store.compare_and_set(running, RunStatus.RUNNING, stale) is False
    assert store.compare_and_set(running, RunStatus.SUSPENDED, stale) is True
    assert store.get("r").status == RunStatus.RUNNING
    # l'ancienne version ne matche plus
    assert store.compare_and_set(_state(status=RunStatus.FAILED), RunStatus.SUSPENDED, stale) is False
    assert store.compare_and_set(_state("missing"), RunStatus.RUNNING, stale) is False
    assert store.get("missing") is None

def test_two_sqlite_runners_resume_once(tmp_path: Path):
    db = tmp_path / "runs.db"
    executed = []

    def record(x):
        executed.append(x)
        return StepResult(output=x)

    pipeline = Pipeline("p", [
        FunctionStep("wait", lambda x: StepResult(output=x, suspend=True, reason="wait")),
        FunctionStep("record", record),
    ])
    runners = [PipelineRunner(SQLiteRunStore(db)) for _ in range(2)]
    runners[0].launch(pipeline, 0, "r")
    runners[1].register(pipeline)

    barrier = threading.Barrier(2)
    outcomes, errors = [], []

    def resume(runner, data):
        barrier.wait(5)
        try:
            outcomes.append(runner.resume("r", data))
        except InvalidStateError as e:
            errors.append(e.code)

    threads = [threading.Thread(target=resume, args=(r, n)) for n, r in enumerate(runners, 1)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)

    assert len(executed) == 1
    assert [o.kind for o in outcomes] == ["completed"]
    assert errors == ["not_suspended"]
    assert runners[1].inspect("r").status == RunStatus.COMPLETED

def test_two_sqlite_runners_cannot_launch_same_id(tmp_path: Path):
    db = tmp_path / "runs.db"
    first, second = PipelineRunner(SQLiteRunStore(db)), PipelineRunner(SQLiteRunStore(db))
    first.launch(doubler.build(), {}, "run-1")
    before = second.inspect("run-1")
    with pytest.raises(InvalidStateError) as ei:
        second.launch(doubler.build(), {"n": 50}, "run-1")
    assert ei.value.code == "duplicate_run"
    assert second.inspect("run-1") == before
