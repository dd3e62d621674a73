from __future__ import annotations

import logging
from threading import Event, Thread
from typing import Callable


logger = logging.getLogger(__name__)


class PeriodicSweeper:
    def __init__(self, *, name: str, interval_seconds: float, job: Callable[[], int]):
        self._name = name
        self._interval = interval_seconds
        self._job = job
        self._stop = Event()
        self._thread: Thread | None = None

    @property
    def name(self) -> str:
        return self._name

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = Thread(target=self._run, name=f"sweeper-{self._name}", daemon=True)
        self._thread.start()
        logger.info("sweeper: started name=%s interval=%ss", self._name, self._interval)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info("sweeper: stopped name=%s", self._name)

    def run_once(self) -> int | None:
        try:
            removed = self._job()
        except Exception:
            logger.exception("sweeper: job failed name=%s", self._name)
            return None
        if removed:
            logger.info("sweeper: removed name=%s count=%s", self._name, removed)
        return removed

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self.run_once()
