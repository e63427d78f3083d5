# utils/progress.py
import logging
from typing import Callable, List, Optional, Tuple

STAGES = ("parse", "map", "build", "serialize", "send")

Listener = Callable[[str, str, object], None]

class ProgressChannel:
    """Best-effort progress / stage / eta notifications for one job.

    Percentages never go backwards. A failing listener is logged and ignored,
    the job keeps running.
    """
    def __init__(self, job_id: str, listener: Optional[Listener] = None):
        self.job_id = job_id
        self.listener = listener
        self.value = 0
        self.stage_name: Optional[str] = None
        self.eta_seconds: Optional[float] = None
        self.events: List[Tuple[str, object]] = []

    def _post(self, kind: str, value):
        self.events.append((kind, value))
        if self.listener is None:
            return
        try:
            self.listener(self.job_id, kind, value)
        except Exception:
            logging.exception("progress listener failed (job=%s, %s=%r)", self.job_id, kind, value)

    def progress(self, pct: float):
        pct = int(max(0, min(100, pct)))
        if pct < self.value:
            return
        self.value = pct
        self._post("progress", pct)

    def stage(self, name: str):
        if name not in STAGES:
            raise ValueError(f"Unknown stage: {name}")
        self.stage_name = name
        self._post("stage", name)

    def eta(self, seconds: float):
        self.eta_seconds = float(seconds)
        self._post("eta", self.eta_seconds)

    def done(self):
        self.progress(100)
