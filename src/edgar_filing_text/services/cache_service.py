"""
Persistent key → value cache with per-entry TTL.

Handles all cache operations for fetched documents and parsed sections:
- Lookup (lazy expiry: expired entries are deleted when read)
- Write (temp file + os.replace, last writer wins)
- Removal and clearing

The cache is strictly an optimization: I/O and deserialization failures are
logged and reported as a miss / no-op, never raised.
"""

import hashlib
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

logger = logging.getLogger(__name__)

TTL = Union[timedelta, float, int]


class CacheEntry(BaseModel):
    """On-disk cache record: ``{"value": ..., "expiresAt": "..."}``."""

    value: Any = None
    expires_at: datetime = Field(..., alias='expiresAt')

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('expires_at')
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Timestamps written without an offset are UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class CacheService(ABC):
    """
    Abstract cache contract used by DocumentService.

    Implementations must never raise from any of these methods.
    """

    @abstractmethod
    def get(self, key: str, model: Any = None) -> Optional[Any]:
        """
        Return the cached value for key, or None on miss/expiry.

        Args:
            key: Logical cache key
            model: Optional pydantic-compatible type (e.g., List[Section])
                   used to validate the stored value
        """

    @abstractmethod
    def set(self, key: str, value: Any, ttl: TTL) -> None:
        """Store value under key for ttl (timedelta or seconds)."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove key if present."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""


def hash_key(key: str) -> str:
    """
    One-way hash of a logical cache key.

    Example:
        >>> len(hash_key('filing-sections:0000320193-23-000106'))
        64
    """
    return hashlib.sha256(key.encode('utf-8')).hexdigest()


class FileCache(CacheService):
    """
    File-backed cache: one JSON file per key, named by the key's SHA-256.

    Layout:
        {cache_dir}/
            {sha256(key)}.json    # {"value": ..., "expiresAt": "2024-01-01T00:00:00+00:00"}

    No cross-process or cross-thread locking: concurrent writers to the same
    key race and the last write wins.

    Usage:
        >>> cache = FileCache(settings.cache_dir)
        >>> cache.set('filing-document:0000320193-23-000106:html', html, timedelta(hours=24))
        >>> cache.get('filing-document:0000320193-23-000106:html')
    """

    def __init__(
        self,
        cache_dir: Union[str, Path],
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the file cache.

        Args:
            cache_dir: Directory holding cache files (created if missing)
            clock: Injectable UTC clock (defaults to datetime.now(timezone.utc))
        """
        self.cache_dir = Path(cache_dir)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Failed to create cache directory {self.cache_dir}: {e}")

    def path_for(self, key: str) -> Path:
        """Storage location for a logical key."""
        return self.cache_dir / f"{hash_key(key)}.json"

    def get(self, key: str, model: Any = None) -> Optional[Any]:
        path = self.path_for(key)

        try:
            if not path.exists():
                return None

            entry = CacheEntry.model_validate(
                json.loads(path.read_text(encoding='utf-8'))
            )

            if entry.expires_at < self._clock():
                logger.debug(f"Cache entry expired for key: {key}")
                self._delete(path)
                return None

            if model is None:
                return entry.value
            return TypeAdapter(model).validate_python(entry.value)

        except Exception as e:
            # Any unreadable entry is a miss
            logger.warning(f"Failed to read from cache for key: {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: TTL) -> None:
        path = self.path_for(key)
        if not isinstance(ttl, timedelta):
            ttl = timedelta(seconds=ttl)

        tmp_path: Optional[str] = None
        try:
            payload = {
                'value': TypeAdapter(Any).dump_python(value, mode='json'),
                'expiresAt': (self._clock() + ttl).isoformat(),
            }

            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.cache_dir, prefix=f".{path.stem}.", suffix='.tmp'
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(payload, f, separators=(',', ':'))
            os.replace(tmp_path, path)
            tmp_path = None

        except Exception as e:
            logger.warning(f"Failed to write to cache for key: {key}: {e}")

        finally:
            if tmp_path is not None:
                self._delete(Path(tmp_path))

    def remove(self, key: str) -> None:
        self._delete(self.path_for(key))

    def clear(self) -> None:
        try:
            if not self.cache_dir.exists():
                return
            for file in self.cache_dir.iterdir():
                if file.is_file() and file.suffix in ('.json', '.tmp'):
                    self._delete(file)
        except OSError as e:
            logger.warning(f"Failed to clear cache directory {self.cache_dir}: {e}")

    @staticmethod
    def _delete(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to delete cache file {path}: {e}")
