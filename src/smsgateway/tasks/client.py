"""Detached background tasks with a log-only failure channel.

Backends, selected via TASKS_BACKEND:
- thread (default): bounded ThreadPoolExecutor. When max_pending tasks are
  already in flight, new work is dropped and the drop is logged.
- inline: runs the task immediately in the caller's thread (tests/dev).

spawn() never returns a result and never raises on task failure: the only
trace a task leaves is in the logs.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from smsgateway.observability.correlation import bind_current_context
from smsgateway.observability.logging import get_logger
from smsgateway.observability.redaction import safe_log_context

logger = get_logger(__name__)

BACKENDS = ("thread", "inline")


class TasksClient:
    """Fire-and-forget task dispatcher.

    Args:
        backend: "thread" or "inline".
        max_workers: Worker threads for the thread backend.
        max_pending: Tasks allowed in flight (queued or running) before
            new ones are dropped.
    """

    def __init__(
        self,
        backend: str = "thread",
        max_workers: int = 4,
        max_pending: int = 100,
    ) -> None:
        if backend not in BACKENDS:
            raise ValueError(f"Unknown TASKS_BACKEND: {backend}")
        self._backend = backend
        self._max_pending = max_pending
        self._slots = threading.BoundedSemaphore(max_pending)
        self._executor: ThreadPoolExecutor | None = None
        if backend == "thread":
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers,
                thread_name_prefix="smsgateway-task",
            )
        self._dropped = 0
        self._dropped_lock = threading.Lock()

    @property
    def backend(self) -> str:
        return self._backend

    @property
    def dropped(self) -> int:
        """Number of tasks dropped because the pool was saturated."""
        with self._dropped_lock:
            return self._dropped

    def spawn(self, task_name: str, fn: Callable[..., Any], *args: Any) -> bool:
        """Run fn(*args) detached from the caller.

        Returns:
            True if the task was started or queued.
            False if it was dropped (pool saturated or shut down).
        """
        if self._backend == "inline":
            self._run(task_name, fn, args)
            return True

        if not self._slots.acquire(blocking=False):
            with self._dropped_lock:
                self._dropped += 1
            logger.warning(
                "background task dropped: pool saturated",
                extra={
                    "extra_fields": safe_log_context(
                        task_name=task_name,
                        max_pending=self._max_pending,
                    )
                },
            )
            return False

        try:
            future = self._executor.submit(
                bind_current_context(self._run), task_name, fn, args
            )
        except RuntimeError:
            self._slots.release()
            logger.warning(
                "background task dropped: executor shut down",
                extra={"extra_fields": safe_log_context(task_name=task_name)},
            )
            return False
        future.add_done_callback(lambda _f: self._slots.release())
        return True

    def _run(self, task_name: str, fn: Callable[..., Any], args: tuple) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception(
                "background task failed",
                extra={"extra_fields": safe_log_context(task_name=task_name)},
            )

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting tasks and optionally wait for in-flight ones."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
