from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .engine import ImageResizer
from .results import ResizeOutcome
from .source import SourceLike


logger = logging.getLogger(__name__)

ResizeCallback = Callable[[ResizeOutcome], None]


class ResizeTask:
    """
    Runs ImageResizer.resize off the calling thread.

    By default every submission goes through one private worker thread, so
    requests against the resizer's store are serialized. Pass your own
    executor to run them elsewhere (e.g. an app-wide pool); then it is up to
    you not to run two resizes on the same store at once if you care about
    which files survive.
    """

    def __init__(self, resizer: ImageResizer, executor: Optional[Executor] = None) -> None:
        self.resizer = resizer
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="resizer")

    def submit(
        self,
        source: SourceLike,
        callback: Optional[ResizeCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> "Future[ResizeOutcome]":
        """
        Queue a resize. ``callback`` runs on the worker thread with the
        outcome once every profile has been attempted.

        Setting ``cancel_event`` stops the request at the next profile
        boundary; profiles not yet started come back as CANCELLED.
        """
        return self._executor.submit(self._run, source, callback, cancel_event)

    def _run(
        self,
        source: SourceLike,
        callback: Optional[ResizeCallback],
        cancel_event: Optional[threading.Event],
    ) -> ResizeOutcome:
        outcome = self.resizer.resize(source, cancel_event=cancel_event)
        if callback:
            callback(outcome)
        return outcome

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> "ResizeTask":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()


@dataclass(frozen=True)
class BatchSummary:
    total_sources: int
    attempted: int
    written: int
    failed: int
    cancelled: bool

    @property
    def skipped_sources(self) -> int:
        return self.total_sources - self.attempted


def resize_batch(
    sources: Sequence[SourceLike],
    resizer: ImageResizer,
    progress_callback: Optional[Callable[[int, int], None]] = None,
    cancel_event: Optional[threading.Event] = None,
) -> tuple[List[ResizeOutcome], BatchSummary]:
    """
    Resize several sources one after another into the resizer's store.

    Keep in mind the store is a ring: with the default capacity of 10 and
    three profiles each, only the last three or four sources' files are
    still on disk when this returns.
    """
    outcomes: List[ResizeOutcome] = []
    written = 0
    failed = 0
    cancelled = False

    total = len(sources)

    for idx, source in enumerate(sources, start=1):
        if cancel_event and cancel_event.is_set():
            cancelled = True
            break

        if progress_callback:
            progress_callback(idx, total)

        outcome = resizer.resize(source, cancel_event=cancel_event)
        outcomes.append(outcome)

        written += outcome.succeeded
        failed += outcome.failed

    if cancel_event and cancel_event.is_set():
        cancelled = True

    summary = BatchSummary(
        total_sources=total,
        attempted=len(outcomes),
        written=written,
        failed=failed,
        cancelled=cancelled,
    )
    if written > resizer.store.capacity:
        logger.info("batch wrote more files than the store holds; earlier outputs were overwritten")
    return outcomes, summary
