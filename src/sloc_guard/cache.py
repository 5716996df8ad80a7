"""
Line-count cache for sloc-guard.

Uses diskcache for SQLite-based persistent caching in the state directory.
"""

import hashlib
from pathlib import Path
from typing import Optional, Tuple

from diskcache import Cache

from .counting import IgnoredFile, LineStats
from .counting.classifier import CountResult
from .logging_config import get_logger

logger = get_logger(__name__)


class StatsCache:
    """
    Cache of classifier results keyed by file metadata.

    A key combines the file path, modification time, size and a hash of
    the settings that influence counting, so editing either the file or
    the config invalidates the entry. Cache failures never fail a run.
    """

    def __init__(self, cache_dir: Path, config_hash: str, enabled: bool = True):
        self.enabled = enabled
        self.config_hash = config_hash
        self.cache: Optional[Cache] = None
        self.hits = 0
        self.misses = 0

        if self.enabled:
            try:
                self.cache = Cache(str(cache_dir))
                logger.debug(f"Cache initialized at {cache_dir}")
            except Exception as e:
                logger.warning(f"Cache unavailable, continuing without it: {e}")
                self.enabled = False
        else:
            logger.debug("Cache disabled")

    def _key(self, filepath: Path, language: str) -> Optional[str]:
        try:
            stat = filepath.stat()
        except OSError:
            return None
        key_data = f"{filepath}:{stat.st_mtime_ns}:{stat.st_size}:{language}:{self.config_hash}"
        return hashlib.sha256(key_data.encode()).hexdigest()

    def get(self, filepath: Path, language: str) -> Optional[Tuple[CountResult, str]]:
        """Cached (result, sha256) for a file, or None."""
        if not self.enabled or self.cache is None:
            return None
        key = self._key(filepath, language)
        if key is None:
            return None

        try:
            value = self.cache.get(key)
        except Exception as e:
            logger.warning(f"Cache get failed: {e}")
            return None
        if value is None:
            self.misses += 1
            return None

        self.hits += 1
        logger.debug(f"Cache hit: {filepath}")
        if value.get("ignored_file"):
            return IgnoredFile(total=value["total"]), value["hash"]
        return LineStats.from_dict(value["stats"]), value["hash"]

    def set(self, filepath: Path, language: str, result: CountResult, file_hash: str) -> None:
        if not self.enabled or self.cache is None:
            return
        key = self._key(filepath, language)
        if key is None:
            return

        if isinstance(result, IgnoredFile):
            value = {"ignored_file": True, "total": result.total, "hash": file_hash}
        else:
            value = {"stats": result.to_dict(), "hash": file_hash}
        try:
            self.cache.set(key, value)
        except Exception as e:
            logger.warning(f"Cache set failed: {e}")

    def clear(self) -> None:
        """Clear all cache entries."""
        if not self.enabled or self.cache is None:
            return

        try:
            self.cache.clear()
            logger.info("Cache cleared")
        except Exception as e:
            logger.warning(f"Cache clear failed: {e}")

    def close(self) -> None:
        """Close cache (cleanup)."""
        if self.cache is not None:
            self.cache.close()
            logger.debug(f"Cache closed ({self.hits} hits, {self.misses} misses)")
