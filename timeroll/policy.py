"""Time-based rolling policy.

The file name pattern is both the rollover schedule and the archive naming
scheme. ``logs/foo.%d`` rolls over daily (the default ``yyyy-MM-dd``
sub-format), ``logs/foo.%d{yyyy-MM}.log`` monthly, and so on: the policy
rolls over whenever the render of "now" differs from the render at the
previous rollover.

A pattern ending in ``.gz`` or ``.zip`` enables compression of archived
files. During 2004-11-23 ``logs/foo.%d.gz`` writes to ``logs/foo.2004-11-23``;
at midnight that file is compressed to ``logs/foo.2004-11-23.gz`` in the
background and writes move on to ``logs/foo.2004-11-24``.

Setting ``active_file_name`` decouples the active file from the archives:
with ``logs/foo.log.%d`` and ``logs/foo.log`` the writer always writes to
``logs/foo.log``, which is renamed to ``logs/foo.log.2004-11-23`` at
midnight before any new write.

The policy keeps no lock. Its owner serialises ``is_triggering_event`` and
``rollover`` calls, and must call ``activate`` before opening its file.
"""

import logging
import os
import time
from dataclasses import dataclass

from timeroll import pattern
from timeroll.actions import Action, GzipCompressAction, RenameAction, ZipCompressAction
from timeroll.errors import ConfigurationError
from timeroll.pattern import CompressionSuffix, RotationTemplate

logger = logging.getLogger(__name__)


def current_millis() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class RolloverState:
    last_rendered_name: str
    next_check_ms: int = 0


@dataclass(frozen=True)
class RolloverResult:
    did_rollover: bool
    active_file_path: str
    sync_actions: tuple[Action, ...] = ()
    async_actions: tuple[Action, ...] = ()


class TimeBasedRollingPolicy:
    def __init__(self, file_name_pattern: str | None, active_file_name: str | None = None):
        self._file_name_pattern = file_name_pattern
        self._active_file_name = active_file_name or None
        self._template: RotationTemplate | None = None
        self._suffix = CompressionSuffix.NONE
        self._state: RolloverState | None = None

    @property
    def file_name_pattern(self) -> str | None:
        return self._file_name_pattern

    @property
    def active_file_name(self) -> str | None:
        return self._active_file_name

    @property
    def decoupled(self) -> bool:
        return self._active_file_name is not None

    @property
    def compression(self) -> CompressionSuffix:
        return self._suffix

    @property
    def template(self) -> RotationTemplate | None:
        return self._template

    @property
    def state(self) -> RolloverState | None:
        return self._state

    def activate(self, now_ms: int | None = None) -> RolloverState:
        """Parse the pattern and seed the state with the render of *now_ms*.

        Raises ConfigurationError when the pattern is missing or carries no
        date specifier.
        """
        if not self._file_name_pattern:
            logger.warning("The FileNamePattern option must be set before using TimeBasedRollingPolicy")
            raise ConfigurationError("FileNamePattern must be set")

        template = pattern.parse(self._file_name_pattern)
        if now_ms is None:
            now_ms = current_millis()

        last_name = template.render(now_ms)
        self._template = template
        self._suffix = CompressionSuffix.detect(last_name)
        self._state = RolloverState(last_rendered_name=last_name, next_check_ms=0)

        logger.info(
            "Activated time-based rolling: pattern=%s, active=%s, compression=%s",
            self._file_name_pattern, self.active_file_path(), self._suffix.name.lower(),
        )
        return self._state

    def _require_state(self) -> RolloverState:
        if self._state is None:
            raise ConfigurationError("TimeBasedRollingPolicy has not been activated")
        return self._state

    def active_file_path(self) -> str:
        """Path of the file the owner should be writing to right now."""
        state = self._require_state()
        if self._active_file_name is not None:
            return self._active_file_name
        return self._suffix.strip(state.last_rendered_name)

    def is_triggering_event(self, now_ms: int) -> bool:
        """True once *now_ms* reaches the next check instant. No I/O, never raises."""
        state = self._state
        return state is not None and now_ms >= state.next_check_ms

    def rollover(self, now_ms: int) -> RolloverResult:
        """Decide whether *now_ms* starts a new period and build the actions.

        Checks are throttled to once per wall-clock second. Within the same
        period the result carries the (recomputed) active path and no
        actions.
        """
        state = self._require_state()
        state.next_check_ms = (now_ms // 1000 + 1) * 1000

        new_name = self._template.render(now_ms)

        if new_name == state.last_rendered_name:
            if self._active_file_name is None:
                active = self._suffix.strip(new_name)
            else:
                active = self._active_file_name
            logger.debug("No period boundary at %d (%s), active file %s", now_ms, new_name, active)
            return RolloverResult(did_rollover=False, active_file_path=active)

        archive_base = self._suffix.strip(state.last_rendered_name)
        sync_actions: list[Action] = []
        async_actions: list[Action] = []

        if self._active_file_name is None:
            last_file_exists = os.path.exists(archive_base)
            active = self._suffix.strip(new_name)
        else:
            active = self._active_file_name
            last_file_exists = os.path.exists(active)
            sync_actions.append(RenameAction(active, archive_base, must_succeed=True))
        logger.debug(
            "Previous period file %s %s",
            archive_base if self._active_file_name is None else active,
            "exists" if last_file_exists else "was never written",
        )

        if last_file_exists:
            if self._suffix is CompressionSuffix.GZIP:
                async_actions.append(
                    GzipCompressAction(archive_base, state.last_rendered_name, delete_source=True)
                )
            elif self._suffix is CompressionSuffix.ZIP:
                async_actions.append(
                    ZipCompressAction(archive_base, state.last_rendered_name, delete_source=True)
                )

        logger.info(
            "Rolling over %s -> %s (%d sync, %d async action(s))",
            state.last_rendered_name, new_name, len(sync_actions), len(async_actions),
        )
        state.last_rendered_name = new_name

        return RolloverResult(
            did_rollover=True,
            active_file_path=active,
            sync_actions=tuple(sync_actions),
            async_actions=tuple(async_actions),
        )
