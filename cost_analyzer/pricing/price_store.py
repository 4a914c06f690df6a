"""
Persistent price cache.

Resolved prices survive across runs in a single JSON metadata document:

    {cache_dir}/metadata.json
    {"version": 1, "entries": {"<cache key>": {"price": "0.023", "stored_at": 1700000000.0}}}

The whole document is read once at construction and rewritten on every
change (temp file + os.replace). The store is single-writer per process;
sharing a directory between processes is not supported. Losing the cache
only costs performance, so every disk failure degrades to an empty or
in-memory-only store instead of raising.
"""
from typing import Callable, Dict, Optional, Tuple
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
import json
import logging
import os
import tempfile
import threading
import time

from cost_analyzer.core.config import config
from cost_analyzer.pricing.price_query import PriceQuery


logger = logging.getLogger(__name__)

METADATA_FILENAME = "metadata.json"
METADATA_VERSION = 1


@dataclass(frozen=True)
class CacheEntry:
    """A previously resolved price and when it was stored (epoch seconds)."""
    price: Decimal
    stored_at: float

    def age(self, now: float) -> float:
        return now - self.stored_at


@dataclass(frozen=True)
class CacheStats:
    """Entry counts split by freshness."""
    total_entries: int
    fresh_entries: int
    stale_entries: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_entries": self.total_entries,
            "fresh_entries": self.fresh_entries,
            "stale_entries": self.stale_entries,
        }


class PersistentPriceStore:
    """On-disk key/value store of resolved prices with an expiry window."""

    def __init__(
        self,
        cache_dir: str = None,
        cache_duration_hours: float = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the store and load any existing metadata.

        Args:
            cache_dir: Directory holding the metadata document
            cache_duration_hours: Hours an entry stays fresh (default: 24)
            clock: Wall-clock time source in epoch seconds
        """
        self.cache_dir = Path(cache_dir or config.PRICING_CACHE_DIR)
        hours = cache_duration_hours if cache_duration_hours is not None else config.PRICING_CACHE_DURATION_HOURS
        if hours <= 0:
            raise ValueError(f"cache_duration_hours must be positive (got: {hours})")
        self.cache_duration_seconds = hours * 3600
        self.metadata_path = self.cache_dir / METADATA_FILENAME
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = self._load()

    def _load(self) -> Dict[str, CacheEntry]:
        """Read the metadata document; anything unreadable yields an empty store."""
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            logger.warning(f"Cannot create price cache directory {self.cache_dir}: {error}")

        try:
            with open(self.metadata_path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as error:
            logger.warning(f"Price cache at {self.metadata_path} is unreadable, starting empty: {error}")
            return {}

        raw_entries = document.get("entries") if isinstance(document, dict) else None
        if not isinstance(raw_entries, dict):
            logger.warning(f"Price cache at {self.metadata_path} has an unexpected shape, starting empty")
            return {}

        entries: Dict[str, CacheEntry] = {}
        for cache_key, raw in raw_entries.items():
            try:
                price = Decimal(str(raw["price"]))
                stored_at = float(raw["stored_at"])
            except (KeyError, TypeError, ValueError, InvalidOperation):
                logger.debug(f"Skipping malformed price cache entry {cache_key!r}")
                continue
            if not price.is_finite() or price < 0:
                continue
            entries[cache_key] = CacheEntry(price=price, stored_at=stored_at)

        logger.debug(f"Loaded {len(entries)} cached prices from {self.metadata_path}")
        return entries

    def _save(self) -> bool:
        """
        Rewrite the metadata document atomically. Caller must hold the lock.

        Returns:
            True if the document was written, False if the write failed
        """
        document = {
            "version": METADATA_VERSION,
            "entries": {
                cache_key: {"price": str(entry.price), "stored_at": entry.stored_at}
                for cache_key, entry in self._entries.items()
            },
        }

        temp_path = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                prefix=".metadata-", suffix=".json.tmp", dir=str(self.cache_dir)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, sort_keys=True)
            os.replace(temp_path, self.metadata_path)
            return True
        except OSError as error:
            logger.warning(f"Failed to save price cache metadata to {self.metadata_path}: {error}")
            if temp_path and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    logger.debug(f"Could not remove temporary cache file {temp_path}")
            return False

    def _is_fresh(self, entry: CacheEntry, now: float) -> bool:
        return entry.age(now) <= self.cache_duration_seconds

    def get(self, query: PriceQuery) -> Optional[Tuple[Decimal, bool]]:
        """
        Look up an entry regardless of age.

        Args:
            query: Price query

        Returns:
            (price, is_fresh) if an entry exists, None otherwise. Stale entries
            are kept so they can serve as a fallback when the catalog is down.
        """
        entry = self._entries.get(query.cache_key())
        if entry is None:
            return None
        return entry.price, self._is_fresh(entry, self._clock())

    def get_fresh(self, query: PriceQuery) -> Optional[Decimal]:
        """Price of a fresh entry, or None when missing or expired."""
        result = self.get(query)
        if result is None:
            return None
        price, is_fresh = result
        return price if is_fresh else None

    def put(self, query: PriceQuery, price: Decimal) -> bool:
        """
        Upsert an entry stamped with the current time and persist it.

        Args:
            query: Price query
            price: Resolved unit price

        Returns:
            True if persisted, False if the disk write failed (the entry is
            still kept in memory)
        """
        entry = CacheEntry(price=Decimal(price), stored_at=self._clock())
        with self._lock:
            self._entries[query.cache_key()] = entry
            return self._save()

    def prune(self) -> int:
        """
        Remove entries older than the expiry window.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            stale_keys = [k for k, e in self._entries.items() if not self._is_fresh(e, now)]
            for cache_key in stale_keys:
                del self._entries[cache_key]
            if stale_keys:
                self._save()
        if stale_keys:
            logger.info(f"Pruned {len(stale_keys)} stale price cache entries")
        return len(stale_keys)

    def clear(self) -> bool:
        """Empty the store. Returns False if the empty document could not be written."""
        with self._lock:
            self._entries = {}
            return self._save()

    def stats(self) -> CacheStats:
        now = self._clock()
        with self._lock:
            entries = list(self._entries.values())
        fresh = sum(1 for entry in entries if self._is_fresh(entry, now))
        return CacheStats(
            total_entries=len(entries),
            fresh_entries=fresh,
            stale_entries=len(entries) - fresh,
        )

    def __len__(self) -> int:
        return len(self._entries)
