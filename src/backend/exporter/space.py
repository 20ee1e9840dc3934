from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any, Callable, Protocol

from ..catalog.models import FileDescriptor


logger = logging.getLogger(__name__)


class SpaceChecker(Protocol):
    def has_sufficient_space(self, descriptor: FileDescriptor) -> bool:
        ...


class DiskSpaceChecker:
    """
    Compares free disk space at the export target with a file's declared size.

    The file needs strictly more free space than its size, plus min_free_bytes
    kept in reserve. A target that cannot be measured counts as full.
    """

    def __init__(
        self,
        target: Path,
        *,
        min_free_bytes: int = 0,
        disk_usage: Callable[[str], Any] = shutil.disk_usage,
    ) -> None:
        self._target = Path(target)
        self._min_free_bytes = max(0, int(min_free_bytes))
        self._disk_usage = disk_usage

    def free_bytes(self) -> int:
        # The export folder may not exist yet; measure the nearest existing parent.
        probe = self._target
        while not probe.exists() and probe.parent != probe:
            probe = probe.parent
        return int(self._disk_usage(str(probe)).free)

    def has_sufficient_space(self, descriptor: FileDescriptor) -> bool:
        try:
            free = self.free_bytes()
        except OSError as exc:
            logger.warning("Cannot measure free space at %s: %s", self._target, exc)
            return False
        return free > descriptor.declared_size + self._min_free_bytes
