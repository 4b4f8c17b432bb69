"""Study cache data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from .status import OperationStatus

CACHE_WILDCARD = "*"
CACHE_SUFFIX = ".json"
SCHEMA_ORG_PREFIX = "so:"


@dataclass(frozen=True)
class CacheEntry:
    """A cached file, read from the filesystem at enumeration time."""

    name: str
    last_modified: datetime
    size_bytes: int

    @classmethod
    def from_path(cls, path: Path, *, full_path: bool) -> "CacheEntry":
        info = path.stat()
        return cls(
            name=str(path) if full_path else path.name,
            last_modified=datetime.fromtimestamp(info.st_mtime),
            size_bytes=info.st_size,
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            f"{SCHEMA_ORG_PREFIX}name": self.name,
            f"{SCHEMA_ORG_PREFIX}DateTime": self.last_modified.isoformat(timespec="seconds"),
            f"{SCHEMA_ORG_PREFIX}fileSize": f"{self.size_bytes} B",
        }


@dataclass(frozen=True)
class CacheClearSpec:
    """Either the wildcard or an ordered list of cache entry names."""

    names: tuple[str, ...] = ()
    wildcard: bool = False

    @classmethod
    def all(cls) -> "CacheClearSpec":
        return cls(wildcard=True)

    @classmethod
    def parse(cls, value: Union[str, Sequence[str], None]) -> Optional["CacheClearSpec"]:
        """Build a spec from a whitespace separated string or a list of names.

        Returns ``None`` when nothing was requested.
        """
        if value is None:
            return None
        if isinstance(value, str):
            if value.strip() == CACHE_WILDCARD:
                return cls.all()
            tokens = value.split()
        else:
            tokens = [str(item).strip() for item in value]
        names = tuple(token for token in tokens if token)
        if not names:
            return None
        if names == (CACHE_WILDCARD,):
            return cls.all()
        return cls(names=names)


@dataclass
class CacheListing:
    """Entries found by a cache enumeration."""

    entries: List[CacheEntry] = field(default_factory=list)
    files_seen: int = 0
    status: OperationStatus = OperationStatus.IDLE

    @property
    def names(self) -> List[str]:
        return [entry.name for entry in self.entries]

    def to_records(self) -> List[Dict[str, str]]:
        return [entry.to_dict() for entry in self.entries]


@dataclass
class CacheClearResult:
    """Outcome of a cache eviction request."""

    attempted: int = 0
    removed: int = 0
    removed_paths: List[Path] = field(default_factory=list)
    failed_names: List[str] = field(default_factory=list)
    status: OperationStatus = OperationStatus.IDLE

    def to_dict(self) -> Dict[str, object]:
        return {
            "status": self.status.value,
            "attempted": self.attempted,
            "removed": self.removed,
            "removed_paths": [str(path) for path in self.removed_paths],
            "failed_names": list(self.failed_names),
        }


__all__ = [
    "CACHE_SUFFIX",
    "CACHE_WILDCARD",
    "CacheClearResult",
    "CacheClearSpec",
    "CacheEntry",
    "CacheListing",
]
