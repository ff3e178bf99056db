from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List

logger = logging.getLogger("xpledger.scheduler")

Task = Callable[[], None]


@dataclass
class _RepeatingTask:
    task: Task
    interval: int
    remaining: int


class TickScheduler:
    """
    Cooperative single-queue scheduler driven by the host's game loop.

    The host calls `tick()` once per pass. A task queued with
    `run_after_one_tick()` runs on the next pass, never the current one,
    even if it was queued by another task that is running right now.
    A failing task is logged and does not stop the rest of the pass.
    """

    def __init__(self) -> None:
        self._pending: Deque[Task] = deque()
        self._repeating: List[_RepeatingTask] = []
        self.ticks = 0

    def run_after_one_tick(self, task: Task) -> None:
        self._pending.append(task)

    def run_repeating(self, task: Task, interval_ticks: int) -> None:
        if interval_ticks <= 0:
            raise ValueError("interval_ticks must be positive.")
        self._repeating.append(_RepeatingTask(task, interval_ticks, interval_ticks))

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _run(self, task: Task) -> None:
        try:
            task()
        except Exception:
            logger.exception("Scheduled task %r failed.", task)

    def tick(self) -> None:
        self.ticks += 1
        due = self._pending
        self._pending = deque()
        while due:
            self._run(due.popleft())

        for entry in self._repeating:
            entry.remaining -= 1
            if entry.remaining <= 0:
                entry.remaining = entry.interval
                self._run(entry.task)
