from __future__ import annotations
import argparse
import uvicorn
from ..config import load_settings
from ..orchestrator import build_runner
from .app import create_app

def main() -> None:
    parser = argparse.ArgumentParser(description="agentfactors — API des runs (FastAPI)")
    parser.add_argument("--config", type=str, default="config", help="Dossier ou fichier config (par défaut: ./config)")
    parser.add_argument("--profile", type=str, default="safe", help="Profil config (safe|balanced|danger)")
    parser.add_argument("--store", choices=["memory", "sqlite"], default=None, help="Backend du store (défaut: config)")
    parser.add_argument("--db", type=str, default=None, help="Chemin base SQLite (défaut: config.store.db_path)")
    parser.add_argument("--host", type=str, default=None, help="Hôte (défaut: config.web.host)")
    parser.add_argument("--port", type=int, default=None, help="Port (défaut: config.web.port)")
    args = parser.parse_args()

    settings = load_settings(args.config, args.profile, overrides={"store_backend": args.store, "db_path": args.db})
    app = create_app(
        build_runner(settings),
        profile=settings.general.profile,
        kill_switch_path=settings.general.kill_switch_path,
    )

    uvicorn.run(app, host=args.host or settings.web.host, port=int(args.port or settings.web.port), log_level="info")

if __name__ == "__main__":
    main()
