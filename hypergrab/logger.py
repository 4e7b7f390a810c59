from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

from .capture import CaptureOutcome, CaptureRequest, CaptureSucceeded, outcome_path


class CaptureLog:
    """
    Per-run audit trail: one JSON line per finished capture in `captures.jsonl`.
    """

    def __init__(self, root_dir: str | Path = "logs", *, narrator: Optional[Callable[[str], None]] = None) -> None:
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        base = Path(root_dir) / ts
        p = base
        i = 2
        while p.exists():
            p = Path(root_dir) / f"{base.name}_{i}"
            i += 1
        p.mkdir(parents=True, exist_ok=False)
        self.run_root = p
        self.entries_path = p / "captures.jsonl"
        self._narrator = narrator

    def record(self, request: CaptureRequest, outcome: CaptureOutcome) -> None:
        path = outcome_path(outcome)
        entry: dict[str, Any] = {
            "timestamp": datetime.now().astimezone().isoformat(timespec="seconds"),
            "identifier": request.identifier,
            "directory": str(request.directory),
            "status": "saved" if isinstance(outcome, CaptureSucceeded) else "failed",
        }
        if path is not None:
            entry["path"] = str(path)
        else:
            entry["reason"] = getattr(outcome, "reason", "")
        with self.entries_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry, sort_keys=True, ensure_ascii=False) + "\n")

        if path is not None:
            self.narrate(f"[Capture] {request.identifier} -> {path}")
        else:
            self.narrate(f"[Capture] {request.identifier} failed: {entry['reason']}")

    def narrate(self, text: str) -> None:
        if self._narrator is not None:
            try:
                self._narrator(text)
                return
            except Exception:
                pass
        print(text, flush=True)
