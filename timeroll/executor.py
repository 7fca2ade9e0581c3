"""ActionExecutor: runs synchronous actions inline and compression in a worker thread."""

import logging
import queue
import threading
from threading import Thread

from timeroll.actions import Action, RenameAction
from timeroll.errors import CompressionError, RolloverActionError

logger = logging.getLogger(__name__)


class _ActionWorker(Thread):
    def __init__(self, q: queue.Queue, executor: "ActionExecutor"):
        super().__init__(daemon=True, name="timeroll-actions")
        self._queue = q
        self._executor = executor
        self._running = True

    def run(self):
        while self._running:
            try:
                action = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue
            try:
                self._executor._run_async(action)
            finally:
                self._queue.task_done()

    def stop(self):
        self._running = False


class ActionExecutor:
    """Executes rollover actions.

    Synchronous actions run on the caller's thread, in order, and a failed
    mandatory rename raises RolloverActionError. Asynchronous actions run on a
    single background thread; their failures are logged and counted only.
    """

    def __init__(self):
        self._queue: queue.Queue = queue.Queue()
        self._worker: _ActionWorker | None = None
        self._lock = threading.Lock()
        self._completed = 0
        self._failures = 0

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    @property
    def failures(self) -> int:
        with self._lock:
            return self._failures

    def _count(self, ok: bool) -> None:
        with self._lock:
            if ok:
                self._completed += 1
            else:
                self._failures += 1

    def run_sync(self, actions) -> None:
        for action in actions:
            ok = action.execute()
            self._count(ok)
            if not ok and isinstance(action, RenameAction) and action.must_succeed:
                raise RolloverActionError(
                    f"Could not rename {action.source} to {action.target}", action=action
                )
            if not ok:
                logger.warning("Synchronous action %r did not complete", action)

    def submit(self, actions) -> None:
        actions = list(actions)
        if not actions:
            return
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = _ActionWorker(self._queue, self)
                self._worker.start()
        for action in actions:
            self._queue.put(action)

    def _run_async(self, action: Action) -> None:
        try:
            ok = action.execute()
        except (CompressionError, OSError) as exc:
            logger.error("Background action %r failed: %s", action, exc)
            self._count(False)
            return
        except Exception:
            # The worker must outlive any single action.
            logger.exception("Background action %r raised", action)
            self._count(False)
            return
        if not ok:
            logger.warning("Background action %r did not complete", action)
        self._count(ok)

    def join(self) -> None:
        """Block until every submitted action has been processed."""
        self._queue.join()

    def stop(self, timeout: float = 5.0) -> None:
        """Finish outstanding actions, then stop the worker thread."""
        worker = self._worker
        if worker is None:
            return
        self._queue.join()
        worker.stop()
        worker.join(timeout=timeout)
        self._worker = None
