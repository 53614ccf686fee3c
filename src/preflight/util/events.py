from __future__ import annotations

"""Event logging.

CONTRACT
- Inputs: Arbitrary kwargs
- Outputs:
  - Appends one JSON line per event to the configured log path
- Invariants:
  - Adds `ts_ms` timestamp automatically
  - Adds `session` when the log is bound to a session id
- Failure:
  - Raises OSError if log path is not writable
"""

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class EventLog:
    path: Path
    session: str | None = None

    def emit(self, **event: Any) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        event.setdefault("ts_ms", int(time.time() * 1000))
        if self.session and "session" not in event:
            event["session"] = self.session
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(event, ensure_ascii=False) + "\n")

    def read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        lines = self.path.read_text(encoding="utf-8").splitlines()
        return [json.loads(ln) for ln in lines if ln.strip()]
