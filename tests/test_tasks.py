"""Tests for background submission, cancellation and batch runs."""

import threading
from concurrent.futures import ThreadPoolExecutor

from resizer.config import ResizeConfig
from resizer.engine import ImageResizer
from resizer.results import SkipReason
from resizer.tasks import ResizeTask, resize_batch


def test_submit_invokes_callback(resizer, make_image):
    received = []
    done = threading.Event()

    def on_complete(outcome):
        received.append((outcome, threading.current_thread().name))
        done.set()

    with ResizeTask(resizer) as task:
        future = task.submit(make_image((2000, 1000)), callback=on_complete)
        outcome = future.result(timeout=30)

    assert done.wait(5)
    assert received[0][0] is outcome
    assert received[0][1].startswith("resizer")
    assert outcome.succeeded == 3


def test_submissions_run_in_order(resizer, store, make_image):
    src = make_image((200, 200))
    with ResizeTask(resizer) as task:
        futures = [task.submit(src) for _ in range(3)]
        outcomes = [f.result(timeout=30) for f in futures]

    indices = [r.artifact.index for o in outcomes for r in o]
    assert indices == list(range(9))


def test_external_executor_is_left_running(resizer, make_image):
    pool = ThreadPoolExecutor(max_workers=1)
    try:
        task = ResizeTask(resizer, executor=pool)
        task.submit(make_image((100, 100))).result(timeout=30)
        task.shutdown()
        assert pool.submit(lambda: 42).result(timeout=5) == 42
    finally:
        pool.shutdown()


def test_cancelled_before_start(store, make_image):
    cancel = threading.Event()
    cancel.set()
    config = ResizeConfig().set_enabled("small", False)

    with ResizeTask(ImageResizer(config, store)) as task:
        outcome = task.submit(make_image((300, 300)), cancel_event=cancel).result(timeout=30)

    assert [r.reason for r in outcome] == [SkipReason.CANCELLED, SkipReason.CANCELLED, SkipReason.DISABLED]
    assert store.existing() == []


def test_cancel_between_profiles(resizer, make_image):
    cancel = threading.Event()

    def progress(idx, total):
        # set while the large profile is about to run
        cancel.set()

    outcome = resizer.resize(make_image((300, 300)), cancel_event=cancel, progress_callback=progress)

    assert outcome.large.ok
    assert outcome.medium.reason is SkipReason.CANCELLED
    assert outcome.small.reason is SkipReason.CANCELLED
    assert len(outcome) == 3


def test_progress_reports_each_enabled_profile(store, make_image):
    calls = []
    config = ResizeConfig().set_enabled("medium", False)
    ImageResizer(config, store).resize(make_image((100, 100)), progress_callback=lambda i, n: calls.append((i, n)))

    assert calls == [(1, 3), (3, 3)]


def test_resize_batch(resizer, make_image, tmp_path):
    sources = [make_image((300, 200), name="a.jpg"), tmp_path / "missing.jpg", make_image((200, 300), name="b.jpg")]
    progress = []

    outcomes, summary = resize_batch(sources, resizer, progress_callback=lambda i, n: progress.append(i))

    assert len(outcomes) == 3
    assert summary.total_sources == 3
    assert summary.attempted == 3
    assert summary.written == 6
    assert summary.failed == 3
    assert not summary.cancelled
    assert progress == [1, 2, 3]


def test_resize_batch_cancel(resizer, make_image):
    cancel = threading.Event()
    src = make_image((100, 100))

    def progress(idx, total):
        if idx == 2:
            cancel.set()

    outcomes, summary = resize_batch([src, src, src], resizer, progress_callback=progress, cancel_event=cancel)

    assert summary.cancelled
    assert summary.attempted == 2
    assert summary.skipped_sources == 1
    assert [r.reason for r in outcomes[1]] == [SkipReason.CANCELLED] * 3
