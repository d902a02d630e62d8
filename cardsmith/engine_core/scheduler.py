"""
Deferred Scheduler - Cancellable, keyed, delayed state mutations.

Used for cosmetic timing inside a single-threaded session:
- flipped cards turning back face-down
- peeked cards being hidden again
- bot "thinking" pauses

Nothing runs on its own. The owner pumps the scheduler (run_due) between
calls, so every callback executes synchronously on the caller's thread.
Scheduling a key that is already pending replaces the earlier task.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import time
from typing import Callable, Hashable

logger = logging.getLogger(__name__)


@dataclass
class ScheduledTask:
    key: Hashable
    due_at: float
    callback: Callable[[], None]
    label: str = ""


class DeferredScheduler:
    """
    Keyed delayed callbacks.

    Usage:
        scheduler = DeferredScheduler()
        scheduler.schedule("hearts-A", 1.0, revert, label="flip-revert")
        ...
        scheduler.cancel("hearts-A")   # card moved, revert is void
        scheduler.run_due()            # runs whatever is due now
    """

    def __init__(self, clock: Callable[[], float] | None = None):
        self.clock = clock or time.monotonic
        self._tasks: dict[Hashable, ScheduledTask] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._tasks

    @property
    def pending_keys(self) -> list[Hashable]:
        return list(self._tasks)

    def schedule(
        self,
        key: Hashable,
        delay: float,
        callback: Callable[[], None],
        label: str = "",
    ) -> ScheduledTask:
        task = ScheduledTask(key=key, due_at=self.clock() + max(0.0, delay), callback=callback, label=label)
        self._tasks[key] = task
        return task

    def cancel(self, key: Hashable) -> bool:
        """Drop a pending task. Returns True if one was pending."""
        task = self._tasks.pop(key, None)
        if task is not None:
            logger.debug("Cancelled deferred %s for %s", task.label or "task", key)
        return task is not None

    def cancel_all(self) -> int:
        count = len(self._tasks)
        self._tasks.clear()
        return count

    def run_now(self, key: Hashable) -> bool:
        """Run a pending task immediately, ahead of its due time."""
        task = self._tasks.pop(key, None)
        if task is None:
            return False
        task.callback()
        return True

    def run_due(self, now: float | None = None) -> int:
        """Run every task due at `now` in due order. Returns the count run."""
        now = self.clock() if now is None else now
        due = sorted(
            (task for task in self._tasks.values() if task.due_at <= now),
            key=lambda task: task.due_at,
        )
        ran = 0
        for task in due:
            # An earlier callback may have cancelled or replaced this one
            if self._tasks.get(task.key) is not task:
                continue
            del self._tasks[task.key]
            task.callback()
            ran += 1
        return ran

    def flush(self, max_passes: int = 100) -> int:
        """Run everything pending regardless of due time.

        Callbacks may schedule follow-up tasks; those run too, up to
        max_passes rounds.
        """
        ran = 0
        for _ in range(max_passes):
            if not self._tasks:
                break
            ran += self.run_due(now=float("inf"))
        return ran
