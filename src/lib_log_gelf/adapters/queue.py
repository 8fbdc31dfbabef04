"""Bounded, non-blocking work queue drained by background threads.

Purpose
-------
Decouple the logging threads from socket I/O. Producers call :meth:`offer`,
which never blocks; worker threads feed each item to the configured handler.

Contents
--------
* :class:`QueueAdapter` - generic queue with start/offer/stop semantics.

System Role
-----------
Backbone of the GELF transports: it is the single concurrency boundary between
callers of ``try_send`` and the threads writing to the network.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from typing import Any, Generic, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_STOP = object()


class QueueAdapter(Generic[T]):
    """Process items on background threads with drop-on-full backpressure.

    Examples
    --------
    >>> processed = []
    >>> adapter = QueueAdapter(worker=processed.append, maxsize=4)
    >>> adapter.start()
    >>> adapter.offer("a")
    True
    >>> adapter.stop()
    True
    >>> processed
    ['a']
    >>> adapter.offer("late")
    False
    """

    def __init__(
        self,
        *,
        worker: Callable[[T], None] | None = None,
        maxsize: int = 512,
        workers: int = 1,
        on_drop: Callable[[T], None] | None = None,
        stop_timeout: float | None = 5.0,
        interrupt: Callable[[], None] | None = None,
        diagnostic: Callable[[str, dict[str, Any]], None] | None = None,
        name: str = "gelf-queue",
    ) -> None:
        """Create the queue.

        Parameters
        ----------
        worker:
            Callable invoked for each item on a worker thread.
        maxsize:
            Capacity; :meth:`offer` returns ``False`` once it is reached.
        workers:
            Number of worker threads draining the queue.
        on_drop:
            Optional callback invoked for items discarded during shutdown.
        stop_timeout:
            Default drain deadline (seconds) used by :meth:`stop`. ``None``
            waits indefinitely.
        interrupt:
            Called once when the drain deadline elapses with work still in
            flight, so blocked workers can be released (e.g. by closing a socket).
        diagnostic:
            Optional hook receiving ``(name, payload)`` telemetry.
        """
        if maxsize < 1:
            raise ValueError("maxsize must be positive")
        if workers < 1:
            raise ValueError("workers must be positive")
        self._worker = worker
        self._maxsize = maxsize
        self._worker_count = workers
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=maxsize)
        self._threads: list[threading.Thread] = []
        self._accepting = False
        self._drop_pending = False
        self._lock = threading.Lock()
        self._drain_event = threading.Event()
        self._drain_event.set()
        self._on_drop = on_drop
        self._stop_timeout = stop_timeout
        self._interrupt = interrupt
        self._diagnostic = diagnostic
        self._name = name

    @property
    def running(self) -> bool:
        """Return ``True`` while the queue accepts new items."""

        return self._accepting

    def __len__(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        """Start the worker threads unless they are already running."""
        with self._lock:
            if self._accepting:
                return
            self._queue = queue.Queue(maxsize=self._maxsize)
            self._drop_pending = False
            self._drain_event.set()
            self._threads = [
                threading.Thread(target=self._run, name=f"{self._name}-{index}", daemon=True) for index in range(self._worker_count)
            ]
            self._accepting = True
            for thread in self._threads:
                thread.start()

    def offer(self, item: T) -> bool:
        """Enqueue ``item`` without blocking.

        Returns ``True`` when accepted, ``False`` when the queue is full or
        the adapter is not running.
        """
        # Held across check and put so no item lands behind the stop signals.
        with self._lock:
            if not self._accepting:
                return False
            try:
                self._queue.put_nowait(item)
            except queue.Full:
                return False
            self._drain_event.clear()
        return True

    def stop(self, *, timeout: float | None = None) -> bool:
        """Stop accepting items, drain within the deadline, and join workers.

        Idempotent. Items still queued when the deadline expires are handed to
        the drop callback. Returns ``True`` when every accepted item was
        processed and all workers exited.
        """
        with self._lock:
            if not self._accepting and not self._threads:
                return True
            self._accepting = False
            threads = list(self._threads)

        effective_timeout = timeout if timeout is not None else self._stop_timeout
        deadline = time.monotonic() + effective_timeout if effective_timeout is not None else None

        def remaining_time() -> float | None:
            if deadline is None:
                return None
            return max(0.0, deadline - time.monotonic())

        drained = self._wait_for_drain(remaining_time())
        if not drained:
            self._drop_pending = True
            self._run_interrupt()
            dropped = self._drain_pending_items()
            if dropped:
                LOGGER.warning("Dropped %d queued item(s) while stopping %s", dropped, self._name)
                self._emit_diagnostic("queue_dropped_on_stop", {"count": dropped})

        for _ in threads:
            self._push_stop_signal()

        for thread in threads:
            join_timeout = remaining_time()
            thread.join(join_timeout if join_timeout is None else max(join_timeout, 0.05))

        alive = [thread.name for thread in threads if thread.is_alive()]
        with self._lock:
            self._threads = []
        if alive:
            LOGGER.warning("Queue worker(s) %s did not stop within %.2fs", ", ".join(alive), effective_timeout or 0.0)
            self._emit_diagnostic("queue_shutdown_timeout", {"timeout": effective_timeout, "threads": alive})
            return False
        return drained

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until all queued items are processed or ``timeout`` elapses."""

        return self._wait_for_drain(timeout)

    def _wait_for_drain(self, timeout: float | None) -> bool:
        # Poll in short slices: a producer may clear the event after a worker set it.
        deadline = time.monotonic() + timeout if timeout is not None else None
        while self._queue.unfinished_tasks:
            remaining = deadline - time.monotonic() if deadline is not None else None
            if remaining is not None and remaining <= 0:
                return False
            self._drain_event.wait(0.05 if remaining is None else min(remaining, 0.05))
        return True

    def _run(self) -> None:
        """Worker loop draining the queue until a stop signal arrives."""
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    break
                if self._drop_pending:
                    self._handle_drop(item)
                    continue
                if self._worker is not None:
                    try:
                        self._worker(item)
                    except Exception as exc:  # noqa: BLE001
                        self._report_worker_exception(exc)
            finally:
                self._queue.task_done()
                if self._queue.unfinished_tasks == 0:
                    self._drain_event.set()

    def _push_stop_signal(self) -> None:
        """Wake one worker up; make room by dropping an item if necessary."""

        while True:
            try:
                self._queue.put_nowait(_STOP)
                return
            except queue.Full:
                try:
                    dropped = self._queue.get_nowait()
                except queue.Empty:
                    continue
                if dropped is not _STOP:
                    self._handle_drop(dropped)
                self._queue.task_done()

    def _drain_pending_items(self) -> int:
        """Remove queued items left after the drain deadline expired."""

        count = 0
        while True:
            try:
                dropped = self._queue.get_nowait()
            except queue.Empty:
                break
            if dropped is not _STOP:
                self._handle_drop(dropped)
                count += 1
            self._queue.task_done()
        return count

    def _handle_drop(self, item: Any) -> None:
        if self._on_drop is None:
            return
        try:
            self._on_drop(item)
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Queue drop handler raised an exception; continuing", exc_info=exc)

    def _run_interrupt(self) -> None:
        if self._interrupt is None:
            return
        try:
            self._interrupt()
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Queue interrupt hook raised; continuing shutdown", exc_info=exc)

    def _report_worker_exception(self, exc: Exception) -> None:
        """Log worker failures without tearing down the thread."""

        LOGGER.error("Queue worker raised an exception; continuing", exc_info=exc)
        self._emit_diagnostic("queue_worker_error", {"exception": repr(exc)})

    def _emit_diagnostic(self, name: str, payload: dict[str, Any]) -> None:
        if self._diagnostic is None:
            return
        try:
            self._diagnostic(name, payload)
        except Exception as diagnostic_exc:  # noqa: BLE001
            LOGGER.error("Queue diagnostic hook raised while reporting %s", name, exc_info=diagnostic_exc)


__all__ = ["QueueAdapter"]
