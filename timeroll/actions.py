"""Rollover actions: the file operations a rollover hands to the executor."""

import gzip
import logging
import os
import shutil
import zipfile
import zlib
from dataclasses import dataclass

from timeroll.errors import CompressionError

logger = logging.getLogger(__name__)


def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


class Action:
    """Base for rollover actions. ``execute`` returns True on success."""

    def execute(self) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class RenameAction(Action):
    source: str
    target: str
    must_succeed: bool = True

    def execute(self) -> bool:
        """Move source to target. A missing source leaves nothing to vacate."""
        if not os.path.exists(self.source):
            logger.debug("Rename skipped, %s does not exist", self.source)
            return True
        try:
            _ensure_parent(self.target)
            os.replace(self.source, self.target)
        except OSError as exc:
            logger.warning("Rename %s -> %s failed: %s", self.source, self.target, exc)
            return False
        logger.debug("Renamed %s -> %s", self.source, self.target)
        return True


@dataclass(frozen=True)
class _CompressAction(Action):
    source: str
    target: str
    delete_source: bool = True

    algorithm = "none"

    def _write_archive(self, tmp_path: str) -> None:
        raise NotImplementedError

    def execute(self) -> bool:
        """Compress source into target, then drop the source.

        The archive is written next to the target and moved into place, so a
        crash mid-way leaves the uncompressed source untouched.
        """
        if not os.path.exists(self.source):
            logger.warning("Nothing to compress, %s does not exist", self.source)
            return False

        tmp_path = self.target + ".tmp"
        try:
            _ensure_parent(self.target)
            self._write_archive(tmp_path)
            os.replace(tmp_path, self.target)
        except (OSError, ValueError, zlib.error) as exc:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise CompressionError(
                f"{self.algorithm} compression of {self.source} failed: {exc}",
                source=self.source, target=self.target,
            ) from exc

        if self.delete_source:
            try:
                os.remove(self.source)
            except OSError as exc:
                raise CompressionError(
                    f"Compressed {self.source} but could not delete it: {exc}",
                    source=self.source, target=self.target,
                ) from exc
        logger.debug("Compressed %s -> %s (%s)", self.source, self.target, self.algorithm)
        return True


@dataclass(frozen=True)
class GzipCompressAction(_CompressAction):
    algorithm = "gzip"

    def _write_archive(self, tmp_path: str) -> None:
        # The gzip header records the source name, not the temp file.
        with open(self.source, "rb") as f_in, open(tmp_path, "wb") as raw, \
                gzip.GzipFile(filename=os.path.basename(self.source), mode="wb", fileobj=raw) as f_out:
            shutil.copyfileobj(f_in, f_out)


@dataclass(frozen=True)
class ZipCompressAction(_CompressAction):
    algorithm = "zip"

    def _write_archive(self, tmp_path: str) -> None:
        with zipfile.ZipFile(tmp_path, "w", compression=zipfile.ZIP_DEFLATED,
                             strict_timestamps=False) as zf:
            zf.write(self.source, arcname=os.path.basename(self.source))
