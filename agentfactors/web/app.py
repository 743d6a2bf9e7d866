from __future__ import annotations
from pathlib import Path
from typing import Any, Optional
from fastapi import FastAPI, Request, Query, HTTPException
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field

from .. import __version__
from ..security.kill import KillSwitchEngaged, engage
from ..workflow import InvalidStateError, PipelineRunner, RunStatus, SuspensionContractViolation

class LaunchRequest(BaseModel):
    pipeline: str
    run_id: str = Field(min_length=1)
    input: Any = None

class ResumeRequest(BaseModel):
    data: Any = None

def create_app(runner: PipelineRunner, *, profile: str = "safe", kill_switch_path: str | None = None) -> FastAPI:
    app = FastAPI(title="agentfactors", version=__version__, docs_url=None, redoc_url=None)

    tmpl_dir = Path(__file__).parent / "templates"
    templates = Jinja2Templates(directory=str(tmpl_dir))

    app.state.runner = runner
    app.state.profile = profile
    app.state.kill_switch_path = kill_switch_path

    def _state_or_404(run_id: str) -> dict:
        state = runner.inspect(run_id)
        if state is None:
            raise HTTPException(status_code=404, detail=f"Run introuvable: {run_id}")
        return state.to_dict()

    def _conflict(e: InvalidStateError) -> HTTPException:
        return HTTPException(status_code=409, detail={"code": e.code, "message": str(e)})

    @app.get("/api/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/api/pipelines")
    def pipelines() -> dict:
        items = [{"id": p.id, "steps": p.step_ids} for p in runner.pipelines()]
        return {"count": len(items), "items": items}

    @app.post("/api/kill")
    def kill() -> dict:
        if not app.state.kill_switch_path:
            raise HTTPException(status_code=400, detail="Kill-switch file path non configuré")
        p = engage(app.state.kill_switch_path)
        return {"status": "engaged", "path": str(p)}

    @app.post("/api/runs")
    def launch(req: LaunchRequest) -> dict:
        pipeline = runner.pipeline(req.pipeline)
        if pipeline is None:
            raise HTTPException(status_code=404, detail=f"Pipeline inconnu: {req.pipeline}")
        try:
            outcome = runner.launch(pipeline, req.input, req.run_id)
        except InvalidStateError as e:
            raise _conflict(e)
        except KillSwitchEngaged as e:
            raise HTTPException(status_code=423, detail=str(e))
        except SuspensionContractViolation as e:
            raise HTTPException(status_code=500, detail=str(e))
        return outcome.to_dict()

    @app.post("/api/runs/{run_id}/resume")
    def resume(run_id: str, req: ResumeRequest) -> dict:
        try:
            outcome = runner.resume(run_id, req.data)
        except InvalidStateError as e:
            raise _conflict(e)
        except KillSwitchEngaged as e:
            raise HTTPException(status_code=423, detail=str(e))
        except SuspensionContractViolation as e:
            raise HTTPException(status_code=500, detail=str(e))
        return outcome.to_dict()

    @app.get("/api/runs")
    def list_runs(status: Optional[RunStatus] = Query(default=None)) -> dict:
        runs = [s.to_dict() for s in runner.list_runs(status)]
        return {"count": len(runs), "items": runs}

    @app.get("/api/runs/{run_id}")
    def get_run(run_id: str) -> dict:
        return _state_or_404(run_id)

    @app.delete("/api/runs/{run_id}")
    def discard(run_id: str) -> dict:
        if not runner.discard(run_id):
            raise HTTPException(status_code=404, detail=f"Run introuvable: {run_id}")
        return {"status": "discarded", "run_id": run_id}

    @app.get("/", response_class=HTMLResponse)
    def home(request: Request):
        runs = runner.list_runs()
        stats = {st.value: sum(1 for r in runs if r.status == st) for st in RunStatus}
        return templates.TemplateResponse(
            request,
            "index.html",
            {"title": "agentfactors", "profile": app.state.profile, "stats": stats,
             "runs": list(reversed(runs))[:50]},
        )

    return app
