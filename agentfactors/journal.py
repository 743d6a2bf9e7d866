from __future__ import annotations
from dataclasses import dataclass, asdict
from hashlib import sha256
import hmac, json, threading
from pathlib import Path
from typing import Optional

from .workflow.types import RunState, iso

GENESIS = "0" * 64

@dataclass
class JournalEntry:
    ts: str
    run_id: str
    pipeline_id: str
    status: str
    step: str
    reason: Optional[str]
    prev_hash: str
    hash: str
    sig: Optional[str] = None  # HMAC hex

_BASE_KEYS = ("ts", "run_id", "pipeline_id", "status", "step", "reason")

def _digest(base_obj: dict) -> str:
    base = json.dumps(base_obj, separators=(",", ":"), ensure_ascii=False)
    return sha256(base.encode("utf-8")).hexdigest()

def _sign(secret: str, digest: str) -> str:
    return hmac.new(secret.encode("utf-8"), digest.encode("utf-8"), sha256).hexdigest()

class TransitionJournal:
    """Append-only hash-chained JSONL journal of run transitions, optionally HMAC-signed."""

    def __init__(self, path: str | Path, *, secret: str = "") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.secret = secret or ""
        self._lock = threading.Lock()

    def _last_hash(self) -> str:
        if not self.path.exists():
            return GENESIS
        last = None
        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    last = line
        if not last:
            return GENESIS
        return json.loads(last).get("hash", GENESIS)

    def record(self, state: RunState) -> JournalEntry:
        with self._lock:
            base_obj = {
                "ts": iso(state.last_modified),
                "run_id": state.run_id,
                "pipeline_id": state.pipeline_id,
                "status": state.status.value,
                "step": state.current_step_id,
                "reason": state.suspend_reason or state.error,
                "prev_hash": self._last_hash(),
            }
            digest = _digest(base_obj)
            sig = _sign(self.secret, digest) if self.secret else None
            entry = JournalEntry(**base_obj, hash=digest, sig=sig)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(asdict(entry), ensure_ascii=False) + "\n")
            return entry

    def entries(self, run_id: str | None = None) -> list[JournalEntry]:
        if not self.path.exists():
            return []
        out = []
        for line in self.path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            e = JournalEntry(**json.loads(line))
            if run_id is None or e.run_id == run_id:
                out.append(e)
        return out

    @staticmethod
    def verify(path: str | Path, *, secret: str = "") -> bool:
        """Verify the chain and HMAC (if secret provided)."""
        prev = GENESIS
        for line in Path(path).read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            try:
                obj = json.loads(line)
                base_obj = {k: obj[k] for k in _BASE_KEYS}
            except (ValueError, KeyError):
                return False
            base_obj["prev_hash"] = prev
            digest = _digest(base_obj)
            if digest != obj.get("hash"):
                return False
            if secret and _sign(secret, digest) != obj.get("sig"):
                return False
            prev = digest
        return True
