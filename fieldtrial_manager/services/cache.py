"""Study cache management.

The study cache is a flat directory of ``<study>.json`` documents written by
the field trial service. This module exposes:

* enumeration of the cached entries with their modification time and size
* eviction of entries by explicit name or by the ``*`` wildcard

Names passed for eviction may omit the ``.json`` suffix and may be bare names
or paths already rooted in the cache directory; names that resolve outside
it are refused and counted as failures. Every operation on a cache
directory runs under a file lock kept inside that directory, so concurrent
listing and clearing from separate processes do not interleave.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from filelock import FileLock

from fieldtrial_manager.config import Settings
from fieldtrial_manager.models import (
    CACHE_WILDCARD,
    CacheClearResult,
    CacheClearSpec,
    CacheEntry,
    CacheListing,
    Job,
    OperationStatus,
    aggregate_status,
)
from fieldtrial_manager.services.cache_files import CacheFileScanner
from fieldtrial_manager.utils.progress import track

logger = logging.getLogger(__name__)

LOCK_FILENAME = ".cache.lock"
CACHE_ERROR_NAME = "cache"


class CacheManager:
    """List and evict entries of the configured study cache."""

    def __init__(
        self,
        settings: Settings,
        *,
        job: Optional[Job] = None,
        directory: Optional[Path] = None,
    ) -> None:
        self.settings = settings
        self.job = job
        configured = directory if directory is not None else settings.study_cache_root
        self.configured_directory: Optional[Path] = configured
        self.directory: Optional[Path] = (
            Path(configured).expanduser().resolve() if configured is not None else None
        )
        self.suffix = settings.cache_suffix

    @property
    def is_configured(self) -> bool:
        return self.directory is not None

    def _require_directory(self) -> Path:
        if self.directory is None:
            raise RuntimeError("No study cache path has been set")
        return self.directory

    def _scanner(self) -> CacheFileScanner:
        return CacheFileScanner(self._require_directory(), suffix=self.suffix)

    @contextmanager
    def _acquire_lock(self) -> Iterator[None]:
        if self.directory is None or not self.directory.is_dir():
            yield
            return
        lock = FileLock(str(self.directory / LOCK_FILENAME))
        lock.acquire()
        try:
            yield
        finally:
            lock.release()

    def resolve_path(self, name: str) -> Path:
        """Map a cache entry name to its on-disk path.

        Raises ``ValueError`` when the name points outside the cache directory.
        """
        directory = self._require_directory()
        filename = name if name.endswith(self.suffix) else f"{name}{self.suffix}"
        candidate = Path(filename) if self._has_directory_prefix(filename) else directory / filename
        target = candidate.parent.resolve() / candidate.name
        if target.parent != directory and directory not in target.parent.parents:
            raise ValueError(f"{name!r} resolves outside the cache directory {directory}")
        return target

    def _has_directory_prefix(self, filename: str) -> bool:
        prefixes = {str(self.directory), str(self.configured_directory)}
        return any(filename.startswith(f"{prefix}{os.sep}") for prefix in prefixes)

    def list_entries(self, full_path: bool = False) -> CacheListing:
        """Describe every cache entry currently on disk."""
        if not self.is_configured:
            logger.info("No study cache path has been set")
            return CacheListing(status=OperationStatus.IDLE)

        listing = CacheListing()
        with self._acquire_lock():
            paths = list(self._scanner().iter_paths())
            listing.files_seen = len(paths)
            for path in paths:
                try:
                    listing.entries.append(CacheEntry.from_path(path, full_path=full_path))
                except OSError as exc:
                    logger.warning("Could not read cache file information for %s: %s", path, exc)

        if not paths:
            logger.info("No cached files in %s", self.directory)
        listing.status = aggregate_status(
            len(listing.entries),
            listing.files_seen,
            when_empty=OperationStatus.SUCCEEDED,
        )
        return listing

    def clear(self, spec: CacheClearSpec) -> CacheClearResult:
        """Delete the entries selected by ``spec``.

        A failed deletion is recorded and the remaining entries are still
        processed. Names that resolve to the same file are removed once.
        """
        if not self.is_configured:
            logger.info("No study cache path has been set")
            return CacheClearResult(status=OperationStatus.IDLE)

        result = CacheClearResult()
        with self._acquire_lock():
            targets = self._resolve_targets(spec)
            result.attempted = len(targets)
            for name, path in track(
                targets,
                total=len(targets),
                desc="Clearing cache",
                enabled=self.settings.show_progress,
                unit="file",
            ):
                if path is None:
                    self._record_failure(result, name, "it resolves outside the cache directory")
                    continue
                try:
                    path.unlink()
                except OSError as exc:
                    logger.error("Failed to remove cache file %s: %s", path, exc)
                    self._record_failure(result, name, str(exc))
                    continue
                result.removed += 1
                result.removed_paths.append(path)

        result.status = aggregate_status(
            result.removed,
            result.attempted,
            when_empty=OperationStatus.SUCCEEDED,
        )
        logger.info(
            "Removed %d of %d cache entries from %s",
            result.removed,
            result.attempted,
            self.directory,
        )
        return result

    def _record_failure(self, result: CacheClearResult, name: str, reason: str) -> None:
        result.failed_names.append(name)
        if self.job is not None:
            self.job.add_error(CACHE_ERROR_NAME, f"Failed to remove {name}: {reason}")

    def _resolve_targets(self, spec: CacheClearSpec) -> List[Tuple[str, Optional[Path]]]:
        if spec.wildcard:
            return list(self._all_targets())

        targets: List[Tuple[str, Optional[Path]]] = []
        seen: set[Path] = set()
        for name in spec.names:
            if name == CACHE_WILDCARD:
                candidates = self._all_targets()
            else:
                try:
                    candidates = [(name, self.resolve_path(name))]
                except ValueError as exc:
                    logger.error("Refusing to remove cache entry %s: %s", name, exc)
                    targets.append((name, None))
                    continue
            for candidate_name, path in candidates:
                if path in seen:
                    logger.debug("Skipping duplicate cache entry %s", candidate_name)
                    continue
                seen.add(path)
                targets.append((candidate_name, path))
        return targets

    def _all_targets(self) -> List[Tuple[str, Path]]:
        return [(path.name, path) for path in self._scanner().iter_paths()]


__all__ = ["CacheManager", "LOCK_FILENAME"]
