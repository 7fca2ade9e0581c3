"""Append-only log writer driven by a time-based rolling policy."""

import logging
import os
import threading

from timeroll.errors import RolloverActionError
from timeroll.executor import ActionExecutor
from timeroll.policy import RolloverResult, TimeBasedRollingPolicy, current_millis

logger = logging.getLogger(__name__)


class RollingFileWriter:
    def __init__(self, policy: TimeBasedRollingPolicy, executor: ActionExecutor | None = None,
                 time_func=None):
        self._policy = policy
        self._executor = executor or ActionExecutor()
        self._time_func = time_func or current_millis
        self._lock = threading.Lock()
        self._file = None
        self._failed = False

        # The policy must be active before the first file is opened.
        self._policy.activate(self._time_func())
        self._active_path = self._policy.active_file_path()
        self._open()

    @property
    def active_path(self) -> str:
        return self._active_path

    @property
    def executor(self) -> ActionExecutor:
        return self._executor

    def _open(self):
        parent = os.path.dirname(self._active_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self._file = open(self._active_path, "a")

    def _close(self):
        if self._file and not self._file.closed:
            self._file.close()
        self._file = None

    def _rollover(self, now_ms: int) -> RolloverResult | None:
        result = self._policy.rollover(now_ms)

        if not result.did_rollover:
            if result.active_file_path != self._active_path:
                logger.info("Active file moved to %s", result.active_file_path)
                self._close()
                self._active_path = result.active_file_path
                self._open()
            return None

        self._close()
        try:
            self._executor.run_sync(result.sync_actions)
        except RolloverActionError:
            self._failed = True
            logger.error("Rollover aborted, writer halted on %s", self._active_path)
            raise
        self._active_path = result.active_file_path
        self._executor.submit(result.async_actions)
        try:
            self._open()
        except OSError:
            logger.error("Could not open %s after rollover, retrying on next write", self._active_path)
            raise
        return result

    def write(self, entry: str) -> RolloverResult | None:
        """Append a line. Returns the rollover result if a period boundary was crossed."""
        with self._lock:
            if self._failed:
                raise RolloverActionError(
                    f"Writer halted after a failed rollover of {self._active_path}"
                )

            result = None
            now_ms = self._time_func()
            if self._policy.is_triggering_event(now_ms):
                result = self._rollover(now_ms)

            # A previous rollover may have failed to open the new file.
            if self._file is None:
                self._open()

            self._file.write(entry if entry.endswith("\n") else entry + "\n")
            self._file.flush()
            return result

    def close(self):
        with self._lock:
            self._close()
