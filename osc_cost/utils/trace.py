"""JSONL run trace.

Each line is one event: a run phase (``setup``, ``computed``, ``drift``) or a
resource that was dropped during resolution. Skips are also tallied per
resource type so the ``computed`` phase can report what is missing from the
estimate.
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

SKIP_PHASE = "resource_skipped"


@dataclass
class TraceLogger:
    path: Path
    enabled: bool = True
    skipped: Counter = field(default_factory=Counter, init=False, repr=False)
    _initialized: bool = field(default=False, init=False, repr=False)

    def _write(self, event: Dict[str, Any]) -> None:
        if not self._initialized:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._initialized = True
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(event, ensure_ascii=False) + "\n")

    def log(self, phase: str, payload: Dict[str, Any]) -> None:
        if not self.enabled:
            return
        self._write(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "phase": phase,
                "payload": payload,
            }
        )

    def resource_skipped(
        self,
        resource_type: str,
        resource_id: Optional[str],
        reason: str,
        key: Optional[str] = None,
    ) -> None:
        """Record a dropped resource; ``key`` is the catalog key that missed, if any."""
        self.skipped[resource_type] += 1
        if not self.enabled:
            return
        self._write(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "phase": SKIP_PHASE,
                "resource_type": resource_type,
                "resource_id": resource_id or "",
                "payload": {"reason": reason, "catalog_key": key},
            }
        )

    def skipped_summary(self) -> Dict[str, int]:
        return dict(sorted(self.skipped.items()))


def build_trace_logger(path: Path | str, enabled: bool = True) -> TraceLogger:
    return TraceLogger(Path(path), enabled=enabled)


__all__ = ["SKIP_PHASE", "TraceLogger", "build_trace_logger"]
