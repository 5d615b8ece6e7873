"""Bounded FIFO queue consumed by a fixed pool of worker threads."""

from __future__ import annotations

import contextlib
import logging
import queue
import threading
from dataclasses import dataclass

from agentic.orchestrator.backend.base import checked_result
from agentic.orchestrator.errors import SchedulerClosedError
from agentic.orchestrator.models import Task, TaskResult, TaskStatus
from agentic.orchestrator.registry import AgentRegistry

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass(slots=True)
class SchedulerStats:
    """Counters for tasks that reached a terminal state."""

    done: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.done + self.failed


class Scheduler:
    """Execute tasks concurrently on ``workers`` threads.

    Tasks are dequeued in FIFO order, but with more than one worker their
    completion order is not guaranteed: a task scheduled after another may
    finish first. Each worker resolves a provider through the registry,
    executes the task and records the outcome on the task itself; errors are
    folded into ``Task.result`` and never retried.

    ``schedule`` blocks while the queue is full. There is no drop policy and
    no overflow error, so callers that must not block should run submission
    on their own thread or pass ``timeout``.
    """

    def __init__(
        self,
        registry: AgentRegistry,
        queue_capacity: int,
        *,
        poll_interval_seconds: float = 0.1,
    ) -> None:
        if queue_capacity <= 0:
            raise ValueError("queue_capacity must be a positive integer.")
        self.registry = registry
        self.queue_capacity = queue_capacity
        self.poll_interval_seconds = poll_interval_seconds
        self._queue: queue.Queue[Task | object] = queue.Queue(maxsize=queue_capacity)
        self._cancel = threading.Event()
        self._closed = False
        self._state_lock = threading.Lock()
        self._threads: list[threading.Thread] = []
        self._stats = SchedulerStats()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cancel_event(self) -> threading.Event:
        """Cancellation signal shared with providers during ``execute``."""

        return self._cancel

    @property
    def stats(self) -> SchedulerStats:
        with self._state_lock:
            return SchedulerStats(done=self._stats.done, failed=self._stats.failed)

    def schedule(self, task: Task, *, timeout: float | None = None) -> None:
        """Enqueue ``task``, blocking while the queue is at capacity.

        Raises:
            SchedulerClosedError: if ``stop`` has already been called.
            queue.Full: if ``timeout`` elapses before capacity frees up.
        """

        if self._closed:
            raise SchedulerClosedError(f"Scheduler is stopped; cannot schedule {task.id}.")
        self._queue.put(task, timeout=timeout)
        logger.debug("Task %s queued (category=%s)", task.id, task.category)
        if self._cancel.is_set():
            # stop() completed while this call was blocked on a full queue
            self._fail_pending()

    def run(self, workers: int) -> None:
        """Start ``workers`` worker threads; may be called again to add more."""

        if workers <= 0:
            raise ValueError("workers must be a positive integer.")
        with self._state_lock:
            if self._closed:
                raise SchedulerClosedError("Scheduler is stopped; cannot start workers.")
            offset = len(self._threads)
            for index in range(offset, offset + workers):
                thread = threading.Thread(
                    target=self._worker_loop,
                    daemon=True,
                    name=f"agentic-worker-{index + 1}",
                )
                self._threads.append(thread)
                thread.start()
        logger.info("Scheduler started %d worker(s)", workers)

    def join(self) -> None:
        """Block until every task scheduled so far has been processed."""

        self._queue.join()

    def stop(self, *, drain: bool = True, timeout: float | None = None) -> None:
        """Close the queue and wait for all workers to exit.

        With ``drain`` (the default) workers finish every task already queued
        before exiting, and the cancellation signal is raised afterwards. With
        ``drain=False`` the cancellation signal is raised first: workers finish
        only their in-flight task, and tasks still queued are marked failed.
        Tasks never disappear silently: every scheduled task is terminal when
        this returns without timing out. In-flight executions are never
        interrupted. Later calls are no-ops.

        ``timeout`` bounds each wait: handing the stop signal to a full queue and
        joining each worker thread. When the queue stays full the scheduler
        falls back to cancelling. A worker still busy after the join is logged
        and left running as a daemon thread.
        """

        with self._state_lock:
            if self._closed:
                return
            self._closed = True
            threads = list(self._threads)

        if not drain:
            self._cancel.set()
        elif threads:
            for _ in threads:
                try:
                    self._queue.put(_STOP, timeout=timeout)
                except queue.Full:
                    logger.warning("Queue still full after %ss; cancelling instead", timeout)
                    self._cancel.set()
                    break

        for thread in threads:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Worker %s did not stop within %ss", thread.name, timeout)

        self._cancel.set()
        self._fail_pending()
        logger.info("Scheduler stopped (%d worker(s) joined)", len(threads))

    def _worker_loop(self) -> None:
        while not self._cancel.is_set():
            try:
                item = self._queue.get(timeout=self.poll_interval_seconds)
            except queue.Empty:
                continue
            try:
                if item is _STOP:
                    return
                if isinstance(item, Task):
                    self._process(item)
            finally:
                self._queue.task_done()

    def _process(self, task: Task) -> None:
        try:
            self._handle_task(task)
        except Exception as error:  # noqa: BLE001
            logger.exception("Unexpected error while handling task %s", task.id)
            if not task.is_terminal:
                # another worker may finish the task concurrently
                with contextlib.suppress(RuntimeError):
                    task.mark_failed(TaskResult(error=error))
                    self._record(failed=True)

    def _handle_task(self, task: Task) -> None:
        if task.status != TaskStatus.QUEUED:
            logger.warning("Task %s is already %s; skipped", task.id, task.status.value)
            return

        try:
            provider = self.registry.select(task.category)
        except Exception as error:  # noqa: BLE001
            task.mark_failed(TaskResult(error=error))
            self._record(failed=True)
            logger.debug("Task %s failed: %s", task.id, error)
            return

        task.mark_running(provider.name)
        logger.debug("Task %s running on %s", task.id, provider.name)
        try:
            result = checked_result(provider, provider.execute(task, self._cancel))
        except Exception as error:  # noqa: BLE001
            task.mark_failed(TaskResult(error=error))
            self._record(failed=True)
            logger.debug("Task %s failed in %s: %s", task.id, provider.name, error)
            return

        task.mark_done(result)
        self._record(failed=False)
        logger.debug("Task %s done", task.id)

    def _fail_pending(self) -> None:
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return
            try:
                if isinstance(item, Task) and item.status == TaskStatus.QUEUED:
                    item.mark_failed(
                        TaskResult(
                            error=SchedulerClosedError(
                                "Scheduler stopped before the task was started.",
                            ),
                        ),
                    )
                    self._record(failed=True)
            finally:
                self._queue.task_done()

    def _record(self, *, failed: bool) -> None:
        with self._state_lock:
            if failed:
                self._stats.failed += 1
            else:
                self._stats.done += 1
