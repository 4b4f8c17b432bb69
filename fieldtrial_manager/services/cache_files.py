"""Enumeration of cache files on disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from fieldtrial_manager.models import CACHE_SUFFIX

logger = logging.getLogger(__name__)


class CacheFileScanner:
    """List the files of a cache directory that carry the cache suffix."""

    def __init__(self, directory: Path, *, suffix: str = CACHE_SUFFIX) -> None:
        self.directory = Path(directory)
        self.suffix = suffix

    @property
    def pattern(self) -> str:
        return f"*{self.suffix}"

    def iter_paths(self) -> Iterator[Path]:
        """Yield matching files in filesystem enumeration order."""
        if not self.directory.is_dir():
            logger.warning("Cache directory %s does not exist", self.directory)
            return
        for path in self.directory.glob(self.pattern):
            if path.is_file():
                yield path


__all__ = ["CacheFileScanner"]
