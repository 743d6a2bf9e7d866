from __future__ import annotations
import argparse, json, sys
from uuid import uuid4

from . import __version__
from .config import Settings, load_settings
from .demos import PIPELINES, SCENARIOS, build_pipeline
from .logs import log_event
from .orchestrator import build_runner
from .security.kill import KillSwitchEngaged
from .workflow import (
    Completed,
    Failed,
    InvalidStateError,
    PipelineRunner,
    RunOutcome,
    RunState,
    Suspended,
    SuspensionContractViolation,
)

RULE = "=" * 60
SUB_RULE = "-" * 50

# === Affichage ================================================================
def _print_banner(phase_label: str):
    print(f"agentfactors v{__version__} — {phase_label}")

def _print_settings(config: str, s: Settings):
    print(f"config  = {config!r}")
    print(f"profile = {s.general.profile}")
    print(f"store   = {s.store.backend}" + (f" ({s.store.db_path})" if s.store.backend == "sqlite" else ""))
    print(f"journal = {s.journal.path if s.journal.enabled else 'off'}")
    print(f"llm     = {s.llm.model}")
    print(f"workflow = {{approval_threshold={s.workflow.approval_threshold}, clarify_below={s.workflow.clarify_below}}}")

def _dump(value) -> str:
    return json.dumps(value, ensure_ascii=False, indent=2, default=str)

def _print_outcome(outcome: RunOutcome, *, phase: str) -> None:
    if isinstance(outcome, Completed):
        print(f"   ✅ [{phase}] Terminé ({outcome.run_id}) — résultat:")
        print(_indent(_dump(outcome.result)))
    elif isinstance(outcome, Suspended):
        print(f"   ⏸️  [{phase}] Suspendu à '{outcome.current_step_id}': {outcome.reason}")
    elif isinstance(outcome, Failed):
        print(f"   ❌ [{phase}] Échec à '{outcome.error.step_id}': {outcome.error.message}")

def _indent(text: str, prefix: str = "      ") -> str:
    return "\n".join(prefix + line for line in text.splitlines())

def _print_state(state: RunState) -> None:
    print(f"run_id       = {state.run_id}")
    print(f"pipeline     = {state.pipeline_id}")
    print(f"status       = {state.status.value}")
    print(f"current_step = {state.current_step_id}")
    if state.suspend_reason:
        print(f"reason       = {state.suspend_reason}")
    if state.error:
        print(f"error        = {state.error}")
    print(f"modified     = {state.last_modified.isoformat(timespec='seconds')}")
    print("step_outputs =")
    print(_indent(_dump(state.step_outputs)))

def _print_runs(runs: list[RunState]) -> None:
    if not runs:
        print("   (aucun run)")
        return
    for st in runs:
        detail = st.suspend_reason or st.error or ""
        print(f"   {st.run_id}: {st.status.value} @ {st.current_step_id}" + (f" ({detail})" if detail else ""))

def _log(settings: Settings, message: str) -> None:
    try:
        log_event(settings, message)
    except OSError as e:
        print(f"[log] écriture impossible: {e}", file=sys.stderr)

def _exit_code(outcome: RunOutcome) -> int:
    return 1 if isinstance(outcome, Failed) else 0

# === Démo par scénarios ======================================================
def run_demo(runner: PipelineRunner, settings: Settings, name: str) -> int:
    pipeline = runner.pipeline(name) or build_pipeline(name, settings)
    print(f"\n{RULE}\n🎭 Scénarios launch/pause/resume — pipeline '{name}'\n{RULE}")
    print("Étapes: " + " → ".join(pipeline.step_ids))

    run_ids: list[str] = []
    for i, sc in enumerate(SCENARIOS[name], 1):
        run_id = f"demo-{name}-{i}-{uuid4().hex[:6]}"
        run_ids.append(run_id)
        print(f"\n{SUB_RULE}\n📍 Scénario {i}: {sc.name}\n📝 {sc.description}\n{SUB_RULE}")
        print(f"1️⃣  LAUNCH {run_id} input={json.dumps(sc.input, ensure_ascii=False)}")
        outcome = runner.launch(pipeline, sc.input, run_id)
        _print_outcome(outcome, phase="launch")
        _log(settings, f"launch run={run_id} pipeline={name} outcome={outcome.kind}")

        for n, data in enumerate(sc.resumes, 2):
            if not isinstance(outcome, Suspended):
                break
            print(f"{n}️⃣  RESUME data={json.dumps(data, ensure_ascii=False)}")
            outcome = runner.resume(run_id, data)
            _print_outcome(outcome, phase="resume")
            _log(settings, f"resume run={run_id} pipeline={name} outcome={outcome.kind}")

        state = runner.inspect(run_id)
        print(f"📊 État final: {state.status.value} ({state.suspend_reason or state.error or 'sans suspension'})")

    print(f"\n{RULE}\n🔍 Inspection des runs\n{RULE}")
    _print_runs([s for s in runner.list_runs() if s.run_id in run_ids])
    return 0

# === Arguments ================================================================
def _json_arg(text: str):
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"JSON invalide: {e}") from e

def _argparser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser("agentfactors", description="agentfactors — pipelines suspendables (launch/pause/resume)")
    ap.add_argument("--config", default="config", help="Chemin vers le dossier de configuration.")
    ap.add_argument("--profile", choices=["safe", "balanced", "danger"], default="safe", help="Profil de configuration.")
    ap.add_argument("--store", choices=["memory", "sqlite"], default=None, help="Backend du store de runs (défaut: config).")
    ap.add_argument("--db", default=None, help="Chemin DB SQLite des runs (défaut: config.store.db_path).")
    ap.add_argument("--llm-model", default=None, help="dummy | tag Ollama (ex: llama3.1:8b-instruct-q4_K_M).")
    ap.add_argument("--version", action="store_true", help="Afficher la version et quitter.")
    # Démo
    ap.add_argument("--demo", choices=sorted(PIPELINES), help="Jouer les scénarios d'un pipeline de démo.")
    # Opérations unitaires
    ap.add_argument("--pipeline", choices=sorted(PIPELINES), help="Lancer un run de ce pipeline.")
    ap.add_argument("--input", type=_json_arg, default={}, help="Entrée JSON du premier step (avec --pipeline).")
    ap.add_argument("--run-id", help="Identifiant du run (avec --pipeline; défaut: généré).")
    ap.add_argument("--resume", metavar="RUN_ID", help="Reprendre un run suspendu.")
    ap.add_argument("--data", type=_json_arg, default=None, help="Données JSON de reprise (avec --resume).")
    ap.add_argument("--inspect", metavar="RUN_ID", help="Afficher l'état d'un run.")
    ap.add_argument("--discard", metavar="RUN_ID", help="Supprimer un run du store.")
    ap.add_argument("--list", action="store_true", help="Lister les runs du store.")
    ap.add_argument("--status", choices=["running", "suspended", "completed", "failed"], help="Filtre pour --list.")
    return ap

def build_parser() -> argparse.ArgumentParser:
    return _argparser()

# === Main ====================================================================
def main(argv: list[str] | None = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    s = load_settings(
        config=args.config,
        profile=args.profile,
        overrides={"store_backend": args.store, "db_path": args.db, "llm_model": args.llm_model},
    )

    _print_banner("pipelines suspendables")
    _print_settings(args.config, s)

    try:
        runner = build_runner(s)
    except RuntimeError as e:
        print(f"ERR: {e}", file=sys.stderr)
        return 2

    try:
        if args.demo:
            return run_demo(runner, s, args.demo)

        if args.pipeline:
            run_id = args.run_id or uuid4().hex
            outcome = runner.launch(runner.pipeline(args.pipeline), args.input, run_id)
            _print_outcome(outcome, phase="launch")
            _log(s, f"launch run={run_id} pipeline={args.pipeline} outcome={outcome.kind}")
            print(f"\nRUN: {run_id}")
            print(f"STATUS: {outcome.kind}")
            return _exit_code(outcome)

        if args.resume:
            if args.data is None:
                ap.error("--resume exige --data")
            outcome = runner.resume(args.resume, args.data)
            _print_outcome(outcome, phase="resume")
            _log(s, f"resume run={args.resume} outcome={outcome.kind}")
            print(f"\nSTATUS: {outcome.kind}")
            return _exit_code(outcome)

        if args.inspect:
            state = runner.inspect(args.inspect)
            if state is None:
                print(f"ERR: run introuvable: {args.inspect}", file=sys.stderr)
                return 2
            print()
            _print_state(state)
            return 0

        if args.discard:
            ok = runner.discard(args.discard)
            print(f"discard {args.discard}: {'ok' if ok else 'introuvable'}")
            return 0 if ok else 2

        if args.list:
            print()
            _print_runs(runner.list_runs(args.status))
            return 0
    except InvalidStateError as e:
        print(f"ERR [{e.code}]: {e}", file=sys.stderr)
        return 2
    except (KillSwitchEngaged, SuspensionContractViolation) as e:
        print(f"ERR: {e}", file=sys.stderr)
        return 2

    ap.print_help()
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
