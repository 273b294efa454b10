"""Run blocking metadata work off the UI loop and post results back as events."""

from __future__ import annotations

import contextvars
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from cqt_ui.tui.system.events import Event

logger = logging.getLogger(__name__)

Deliver = Callable[[Event], None]


@dataclass(frozen=True)
class Task:
    """A unit of background work.

    ``on_error`` turns an unexpected exception from ``run`` into the event
    the waiting component expects, so it never stays in a loading state.
    """

    name: str
    run: Callable[[], Event]
    on_error: Optional[Callable[[Exception], Event]] = None

    def execute(self) -> Event:
        try:
            return self.run()
        except Exception as exc:
            if self.on_error is None:
                raise
            logger.exception("Task %s failed", self.name)
            return self.on_error(exc)


class Scheduler(Protocol):
    def bind(self, deliver: Deliver) -> None: ...

    def submit(self, task: Task) -> None: ...

    def shutdown(self) -> None: ...


class TaskScheduler:
    """Thread-pool scheduler; completed tasks are handed to ``deliver``.

    ``deliver`` is called from a worker thread, so it must only enqueue and
    wake the loop. Tasks run in a copy of the submitter's context, which
    carries the bound log context into the worker.
    """

    def __init__(self, deliver: Deliver | None = None, *, max_workers: int = 2) -> None:
        self._deliver = deliver
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="cqt-task"
        )

    def bind(self, deliver: Deliver) -> None:
        self._deliver = deliver

    def submit(self, task: Task) -> None:
        logger.debug("Submitting task %s", task.name)
        context = contextvars.copy_context()
        future = self._executor.submit(context.run, task.execute)
        future.add_done_callback(lambda done: self._on_done(task, done))

    def _on_done(self, task: Task, future: Future[Event]) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Task %s crashed", task.name, exc_info=exc)
            return
        if self._deliver is None:
            logger.warning("Dropping result of %s, no delivery target", task.name)
            return
        self._deliver(future.result())

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


class InlineScheduler:
    """Runs tasks synchronously on submit; used by tests and headless callers."""

    def __init__(self, deliver: Deliver | None = None) -> None:
        self._deliver = deliver
        self.submitted: list[str] = []

    def bind(self, deliver: Deliver) -> None:
        self._deliver = deliver

    def submit(self, task: Task) -> None:
        self.submitted.append(task.name)
        if self._deliver is None:
            raise RuntimeError("InlineScheduler has no delivery target")
        self._deliver(task.execute())

    def shutdown(self) -> None:
        return None
