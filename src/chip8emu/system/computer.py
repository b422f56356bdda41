"""Computer scaffold providing run-state control and periodic tasks."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, List, Optional, Protocol

logger = logging.getLogger(__name__)


class PeriodicTask(Protocol):
    """Background activity owned by a computer."""

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


class Computer:
    """Host machine tying together hardware, CPU and background tasks.

    ``paused`` is a :class:`threading.Event` so background tasks can read the
    run state without sharing any larger lock with the main loop.
    """

    STATUS_RUNNING = 0
    STATUS_PAUSED = 1
    STATUS_STOPPED = 2

    def __init__(self, hardware: object) -> None:
        self.hardware = hardware
        self.paused = threading.Event()
        self._cpu: Optional[object] = None
        self._tasks: List[PeriodicTask] = []
        self._running_status: int = self.STATUS_STOPPED

    # ------------------------------------------------------------------
    # CPU integration
    # ------------------------------------------------------------------
    @property
    def cpu(self) -> Optional[object]:
        return self._cpu

    def set_cpu(self, cpu: object) -> None:
        self._cpu = cpu

    # ------------------------------------------------------------------
    # Task management
    # ------------------------------------------------------------------
    def add_task(self, task: PeriodicTask) -> None:
        self._tasks.append(task)

    def add_tasks(self, tasks: Iterable[PeriodicTask]) -> None:
        for task in tasks:
            self.add_task(task)

    @property
    def tasks(self) -> List[PeriodicTask]:
        return list(self._tasks)

    def _start_periodic_tasks(self) -> None:
        for task in self._tasks:
            task.start()

    def _stop_periodic_tasks(self) -> None:
        for task in reversed(self._tasks):
            task.stop()

    # ------------------------------------------------------------------
    # Control lifecycle
    # ------------------------------------------------------------------
    def power_on(self) -> None:
        if self._running_status != self.STATUS_STOPPED:
            return
        self.paused.clear()
        self._running_status = self.STATUS_RUNNING
        self._start_periodic_tasks()

    def power_off(self) -> None:
        """Stop background tasks, waiting for each to exit."""

        if self._running_status == self.STATUS_STOPPED:
            return
        self._running_status = self.STATUS_STOPPED
        self._stop_periodic_tasks()

    def pause(self) -> None:
        if self._running_status != self.STATUS_RUNNING:
            return
        self.paused.set()
        self._running_status = self.STATUS_PAUSED
        logger.info("paused")

    def resume(self) -> None:
        if self._running_status != self.STATUS_PAUSED:
            return
        self.paused.clear()
        self._running_status = self.STATUS_RUNNING
        logger.info("resumed")

    def toggle_pause(self) -> None:
        if self._running_status == self.STATUS_RUNNING:
            self.pause()
        elif self._running_status == self.STATUS_PAUSED:
            self.resume()

    def get_running_status(self) -> int:
        return self._running_status

    @property
    def is_paused(self) -> bool:
        return self._running_status == self.STATUS_PAUSED

    @property
    def is_stopped(self) -> bool:
        return self._running_status == self.STATUS_STOPPED
