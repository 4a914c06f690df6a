"""
Price resolver.

Turns a PriceQuery into a unit price using, in order:

1. the in-memory cache (no I/O),
2. a fresh entry from the persistent store,
3. the catalog, with up to ``max_attempts`` attempts and exponential backoff
   (1s, 2s, ...) between attempts on transport errors,
4. any cached entry at all, even stale, once the catalog is unreachable.

A catalog answer of "no matching price" stops immediately and is not retried.
Callers always receive a price or None; catalog and disk failures never
escape ``resolve_price``.
"""
from typing import Dict, Optional
from dataclasses import dataclass, field
from decimal import Decimal
import asyncio
import logging
import threading

from cost_analyzer.core.config import config
from cost_analyzer.pricing.aws_pricing_client import CatalogTransportError
from cost_analyzer.pricing.price_query import PriceQuery
from cost_analyzer.pricing.price_store import PersistentPriceStore


logger = logging.getLogger(__name__)


@dataclass
class ResolverMetrics:
    """Counters describing how prices were resolved."""
    memory_hits: int = 0
    store_hits: int = 0
    gateway_calls: int = 0
    retries: int = 0
    transport_errors: int = 0
    stale_fallbacks: int = 0
    absent: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def increment(self, name: str) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + 1)

    def to_dict(self) -> Dict[str, int]:
        return {
            "memory_hits": self.memory_hits,
            "store_hits": self.store_hits,
            "gateway_calls": self.gateway_calls,
            "retries": self.retries,
            "transport_errors": self.transport_errors,
            "stale_fallbacks": self.stale_fallbacks,
            "absent": self.absent,
        }


class PriceResolver:
    """
    Two-tier cached, retrying front for the pricing catalog.

    One resolver is created per analysis run or per long-lived process by the
    caller and passed to every calculator; it is never a module-level global.
    """

    def __init__(
        self,
        gateway,
        store: Optional[PersistentPriceStore] = None,
        max_attempts: int = None,
        backoff_base_seconds: float = None
    ):
        """
        Initialize price resolver.

        Args:
            gateway: Catalog client exposing ``async fetch(query) -> Decimal | None``
                and raising CatalogTransportError on transport failures
            store: Optional persistent price store
            max_attempts: Total catalog attempts per resolution (default: 3)
            backoff_base_seconds: Delay before the retry after attempt n is
                ``backoff_base_seconds * 2 ** n`` (default: 1.0)
        """
        self.gateway = gateway
        self.store = store
        self.max_attempts = max_attempts or config.PRICING_MAX_ATTEMPTS
        self.backoff_base_seconds = (
            backoff_base_seconds if backoff_base_seconds is not None
            else config.PRICING_BACKOFF_BASE_SECONDS
        )
        self.metrics = ResolverMetrics()
        self._memory: Dict[str, Decimal] = {}
        self._memory_lock = threading.Lock()

    def _memory_get(self, cache_key: str) -> Optional[Decimal]:
        with self._memory_lock:
            return self._memory.get(cache_key)

    def _memory_put(self, cache_key: str, price: Decimal) -> None:
        with self._memory_lock:
            self._memory[cache_key] = price

    def clear_memory(self) -> None:
        with self._memory_lock:
            self._memory.clear()

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after a failed attempt (0-based)."""
        return self.backoff_base_seconds * (2 ** attempt)

    async def resolve_price(self, query: PriceQuery) -> Optional[Decimal]:
        """
        Resolve the unit price for a query.

        Args:
            query: Normalized price query

        Returns:
            Unit price in USD, or None if no price could be determined
        """
        cache_key = query.cache_key()

        cached = self._memory_get(cache_key)
        if cached is not None:
            self.metrics.increment("memory_hits")
            return cached

        if self.store is not None:
            stored = self.store.get_fresh(query)
            if stored is not None:
                self.metrics.increment("store_hits")
                logger.debug(f"Persistent cache hit for {cache_key}")
                self._memory_put(cache_key, stored)
                return stored

        last_error: Optional[CatalogTransportError] = None
        for attempt in range(self.max_attempts):
            self.metrics.increment("gateway_calls")
            try:
                price = await self.gateway.fetch(query)
            except CatalogTransportError as error:
                last_error = error
            except Exception as error:
                # Any other gateway failure follows the transport policy
                logger.error(
                    f"Unexpected pricing gateway error for {cache_key}: {type(error).__name__}: {error}"
                )
                last_error = CatalogTransportError(f"Unexpected pricing gateway error: {error}")
            else:
                if price is None:
                    # Structural absence: retrying cannot change the answer
                    self.metrics.increment("absent")
                    return None

                await self._write_through(query, cache_key, price)
                return price

            self.metrics.increment("transport_errors")
            if attempt < self.max_attempts - 1:
                delay = self.backoff_delay(attempt)
                logger.warning(
                    f"Pricing lookup for {cache_key} failed "
                    f"(attempt {attempt + 1}/{self.max_attempts}), retrying in {delay:g}s: {last_error}"
                )
                self.metrics.increment("retries")
                await asyncio.sleep(delay)

        return self._stale_fallback(query, cache_key, last_error)

    async def _write_through(self, query: PriceQuery, cache_key: str, price: Decimal) -> None:
        self._memory_put(cache_key, price)
        if self.store is None:
            return
        saved = await asyncio.to_thread(self.store.put, query, price)
        if not saved:
            logger.debug(f"Price for {cache_key} kept in memory only; persistent cache write failed")

    def _stale_fallback(
        self,
        query: PriceQuery,
        cache_key: str,
        last_error: Optional[CatalogTransportError]
    ) -> Optional[Decimal]:
        """Any cached price for the key, however old, once the catalog is unreachable."""
        cached = self._memory_get(cache_key)
        if cached is None and self.store is not None:
            entry = self.store.get(query)
            if entry is not None:
                cached = entry[0]

        if cached is not None:
            self.metrics.increment("stale_fallbacks")
            logger.warning(
                f"Pricing catalog unavailable after {self.max_attempts} attempts; "
                f"using cached price for {cache_key}: {last_error}"
            )
            return cached

        self.metrics.increment("absent")
        logger.error(
            f"Pricing catalog unavailable after {self.max_attempts} attempts "
            f"and no cached price for {cache_key}: {last_error}"
        )
        return None
