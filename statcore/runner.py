"""Background execution of analyses with supersede-on-resubmit semantics.

Heavy runs (large simulations, big regressions) execute on a single worker
thread so the caller stays responsive. Submitting a new job supersedes the
previous one: its cancel event is set and whatever it returns is replaced by
a ``Failure(kind="cancelled")``, so a stale result is never delivered.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from .errors import RunCancelled
from .schema import Failure

logger = logging.getLogger(__name__)

SUPERSEDED = "Run was superseded by a newer request."


class AnalysisRunner:
    """Run one analysis at a time on a worker thread.

    Example:
        >>> with AnalysisRunner() as runner:
        ...     future = runner.submit(run_monte_carlo, variables, "X", 10000,
        ...                            cancellable=True)
        ...     result = future.result()
    """

    def __init__(self):
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="statcore")
        self._lock = threading.Lock()
        self._generation = 0
        self._cancel_event: Optional[threading.Event] = None
        self._latest: Optional[Future] = None

    def submit(
        self, fn: Callable[..., Any], *args, cancellable: bool = False, **kwargs
    ) -> Future:
        """Schedule ``fn(*args, **kwargs)``, superseding any earlier job.

        Args:
            fn: Analysis callable, typically one of the ``statcore.analysis``
                entry points.
            cancellable: Pass a fresh ``cancel_event`` keyword to ``fn`` so it
                can stop early when superseded.

        Returns:
            concurrent.futures.Future: Resolves to ``fn``'s return value, or
            to a cancelled ``Failure`` if a newer job was submitted first.
        """
        event = threading.Event()
        with self._lock:
            if self._cancel_event is not None:
                self._cancel_event.set()
            self._generation += 1
            generation = self._generation
            self._cancel_event = event
        if cancellable:
            kwargs["cancel_event"] = event

        def job():
            if event.is_set():
                return Failure(error=SUPERSEDED, kind=RunCancelled.kind)
            try:
                result = fn(*args, **kwargs)
            except RunCancelled:
                return Failure(error=SUPERSEDED, kind=RunCancelled.kind)
            with self._lock:
                current = generation == self._generation
            if not current:
                logger.debug("Discarding result of superseded run %d", generation)
                return Failure(error=SUPERSEDED, kind=RunCancelled.kind)
            return result

        future = self._executor.submit(job)
        with self._lock:
            if generation == self._generation:
                self._latest = future
        return future

    def latest(self, timeout: Optional[float] = None) -> Any:
        """Block for and return the result of the most recent job."""
        with self._lock:
            future = self._latest
        if future is None:
            return None
        return future.result(timeout=timeout)

    def cancel(self) -> None:
        """Supersede the current job without starting a new one."""
        with self._lock:
            if self._cancel_event is not None:
                self._cancel_event.set()
            self._generation += 1

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker; without ``wait`` the running job is superseded."""
        if not wait:
            self.cancel()
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "AnalysisRunner":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
