"""
Shared state between the frame loop and the web API.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Dict, Optional

from pipeline.engine import DetectionOrchestrator


class SharedState:
    """
    Holds the orchestrator the API reads from, plus runner stats.

    The CLI runner and the API run in different threads; the orchestrator
    guards its own pass state, so this only guards the reference itself.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._orchestrator: Optional[DetectionOrchestrator] = None
        self.system_stats: Dict[str, Any] = {
            "start_time": time.time(),
            "last_frame_ts": None,
        }

    def set_orchestrator(self, orchestrator: Optional[DetectionOrchestrator]) -> None:
        with self._lock:
            self._orchestrator = orchestrator

    def get_orchestrator(self) -> Optional[DetectionOrchestrator]:
        with self._lock:
            return self._orchestrator

    def mark_frame(self, timestamp: Optional[float] = None) -> None:
        self.system_stats["last_frame_ts"] = timestamp if timestamp is not None else time.time()

    def get_system_stats_copy(self) -> Dict[str, Any]:
        return dict(self.system_stats)


# Global instance
state = SharedState()
