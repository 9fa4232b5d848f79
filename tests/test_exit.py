"""
Tests for the exit coordinator.
"""
import threading

import pytest

from blakebot.core.errors import ExitAborted
from blakebot.lifecycle import exit as exit_module
from blakebot.lifecycle.exit import EXIT_SUCCESS, ExitCoordinator, ExitHandler


class RecordingHandler(ExitHandler):
    """Records when it ran; can fail or block."""

    def __init__(self, name, log, error=None, release=None):
        self.name = name
        self.log = log
        self.error = error
        self.release = release
        self.calls = 0

    def handle(self):
        self.calls += 1
        if self.release is not None:
            self.release.wait(5)
        self.log.append(self.name)
        if self.error is not None:
            raise self.error


@pytest.fixture
def exit_codes():
    return []


@pytest.fixture
def coordinator(exit_codes):
    """Coordinator that records exit codes instead of exiting."""
    return ExitCoordinator(max_workers=4, terminate=exit_codes.append)


def test_all_handlers_run_before_terminate(exit_codes):
    """Every handler runs, even if one fails, then the program ends."""
    log = []

    def terminate(code):
        # All handlers have finished by the time terminate is called.
        exit_codes.append((code, sorted(log)))

    coordinator = ExitCoordinator(max_workers=4, terminate=terminate)
    handlers = [
        RecordingHandler("a", log),
        RecordingHandler("b", log, error=RuntimeError("boom")),
        RecordingHandler("c", log),
    ]
    for handler in handlers:
        coordinator.register(handler)

    coordinator.request_exit()

    assert exit_codes == [(EXIT_SUCCESS, ["a", "b", "c"])]
    assert coordinator.has_exited


def test_terminates_without_handlers(coordinator, exit_codes):
    """With no handlers the program ends straight away."""
    coordinator.request_exit()

    assert exit_codes == [EXIT_SUCCESS]


def test_handlers_run_concurrently(exit_codes):
    """Handlers run in parallel, bounded by the worker count."""
    barrier = threading.Barrier(3, timeout=5)
    log = []

    class BarrierHandler(ExitHandler):
        def handle(self):
            barrier.wait()
            log.append("done")

    coordinator = ExitCoordinator(max_workers=3, terminate=exit_codes.append)
    for _ in range(3):
        coordinator.register(BarrierHandler())

    coordinator.request_exit(timeout=10)

    assert log == ["done"] * 3
    assert exit_codes == [EXIT_SUCCESS]


def test_timeout_aborts_exit(coordinator, exit_codes):
    """Handlers that do not finish in time abort the exit."""
    release = threading.Event()
    log = []
    coordinator.register(RecordingHandler("slow", log, release=release))

    try:
        with pytest.raises(ExitAborted):
            coordinator.request_exit(timeout=0.05)
    finally:
        release.set()

    assert exit_codes == []
    assert not coordinator.has_exited


def test_retry_after_abort(coordinator, exit_codes):
    """An aborted exit can be requested again."""
    release = threading.Event()
    log = []
    coordinator.register(RecordingHandler("slow", log, release=release))

    with pytest.raises(ExitAborted):
        coordinator.request_exit(timeout=0.05)
    release.set()
    coordinator.request_exit(timeout=5)

    assert exit_codes == [EXIT_SUCCESS]


def test_retry_waits_for_handler_still_running(coordinator, exit_codes):
    """A retry waits on a handler left running instead of starting it twice."""
    release = threading.Event()
    log = []
    handler = RecordingHandler("slow", log, release=release)
    coordinator.register(handler)

    try:
        with pytest.raises(ExitAborted):
            coordinator.request_exit(timeout=0.05)
        with pytest.raises(ExitAborted):
            coordinator.request_exit(timeout=0.05)

        assert handler.calls == 1
    finally:
        release.set()

    coordinator.request_exit(timeout=5)

    assert handler.calls == 1
    assert log == ["slow"]
    assert exit_codes == [EXIT_SUCCESS]


def test_interrupt_aborts_exit(coordinator, exit_codes, monkeypatch):
    """An interrupted wait aborts the exit, and a later request succeeds."""
    log = []
    coordinator.register(RecordingHandler("a", log))
    real_wait = exit_module.wait
    calls = []

    def interrupted_wait(futures, timeout=None):
        calls.append(timeout)
        if len(calls) == 1:
            raise KeyboardInterrupt
        return real_wait(futures, timeout=timeout)

    monkeypatch.setattr(exit_module, "wait", interrupted_wait)

    with pytest.raises(ExitAborted):
        coordinator.request_exit()

    assert exit_codes == []
    assert not coordinator.has_exited

    coordinator.request_exit()

    assert exit_codes == [EXIT_SUCCESS]
    assert coordinator.has_exited


def test_exit_runs_once(coordinator, exit_codes):
    """After a successful exit, further requests are ignored."""
    log = []
    handler = RecordingHandler("a", log)
    coordinator.register(handler)

    coordinator.request_exit()
    coordinator.request_exit()

    assert handler.calls == 1
    assert exit_codes == [EXIT_SUCCESS]


def test_duplicate_and_unregister(coordinator, exit_codes):
    """Duplicates are ignored and unregistered handlers do not run."""
    log = []
    kept = RecordingHandler("kept", log)
    removed = RecordingHandler("removed", log)

    assert coordinator.register(kept) is True
    assert coordinator.register(kept) is False
    coordinator.register(removed)
    assert coordinator.unregister(removed) is True
    assert coordinator.unregister(removed) is False

    coordinator.request_exit()

    assert log == ["kept"]


def test_concurrent_requests_run_handlers_once(coordinator, exit_codes):
    """Simultaneous exit requests run the handlers a single time."""
    log = []
    handler = RecordingHandler("a", log)
    coordinator.register(handler)

    threads = [threading.Thread(target=coordinator.request_exit) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(5)

    assert handler.calls == 1
    assert exit_codes == [EXIT_SUCCESS]


def test_rejects_zero_workers():
    """At least one worker is needed."""
    with pytest.raises(ValueError):
        ExitCoordinator(max_workers=0)


def test_autosave_final_save_on_exit(settings, registry, exit_codes, tmp_path):
    """The autosave exit handler writes the settings before termination."""
    from blakebot.lifecycle.autosave import AutosaveScheduler

    def terminate(code):
        exit_codes.append((code, (tmp_path / "properties.xml").exists()))

    coordinator = ExitCoordinator(terminate=terminate)

    registry.register(settings)
    autosave = AutosaveScheduler(settings, registry)
    autosave.start()
    coordinator.register(autosave)
    settings.set("token", "abc")

    coordinator.request_exit()

    assert exit_codes == [(EXIT_SUCCESS, True)]
    assert autosave.task is None
