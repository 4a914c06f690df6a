"""
Cost aggregation service.
Prices every resource of a template diff and aggregates the monthly cost delta.
"""
from typing import Iterable, List, Optional, Set
import asyncio
import logging

from cost_analyzer.core.config import config
from cost_analyzer.domain.cost_models import CostDelta, ModifiedResourceCost, MonthlyCost, ResourceCost
from cost_analyzer.domain.resource_models import ModifiedResource, ResourceDiff, ResourceWithId
from cost_analyzer.pricing.aws_pricing_client import AWSPricingClient
from cost_analyzer.pricing.calculators.base import ResourceCostCalculator
from cost_analyzer.pricing.calculators.registry import default_calculators
from cost_analyzer.pricing.price_resolver import PriceResolver
from cost_analyzer.pricing.price_store import PersistentPriceStore


logger = logging.getLogger(__name__)


class CostEstimatorError(Exception):
    """Raised when a cost computation request is invalid."""
    pass


class CostAggregationService:
    """Service for computing per-resource monthly costs and diff cost deltas."""

    def __init__(
        self,
        resolver: PriceResolver,
        calculators: Optional[List[ResourceCostCalculator]] = None,
        excluded_resource_types: Optional[Iterable[str]] = None
    ):
        """
        Initialize cost aggregation service.

        Args:
            resolver: Shared price resolver handed to every calculator
            calculators: Calculators in match order (default registry if None)
            excluded_resource_types: Resource types deliberately priced at zero
        """
        self.resolver = resolver
        self.calculators = calculators if calculators is not None else default_calculators()
        if excluded_resource_types is None:
            excluded_resource_types = config.EXCLUDED_RESOURCE_TYPES
        self.excluded_resource_types: Set[str] = set(excluded_resource_types)

    def find_calculator(self, resource_type: str) -> Optional[ResourceCostCalculator]:
        for calculator in self.calculators:
            if calculator.supports(resource_type):
                return calculator
        return None

    async def get_resource_cost(self, resource: ResourceWithId, region: str) -> MonthlyCost:
        """
        Compute the monthly cost of a single resource.

        Never raises for pricing problems: unsupported types and calculator
        failures become zero-cost estimates with unknown confidence.

        Args:
            resource: Resource to price
            region: AWS region code

        Returns:
            MonthlyCost for the resource
        """
        if resource.resource_type in self.excluded_resource_types:
            return MonthlyCost.excluded()

        calculator = self.find_calculator(resource.resource_type)
        if calculator is None:
            logger.debug(f"No calculator for {resource.logical_id} ({resource.resource_type})")
            return MonthlyCost.unknown(f"Resource type {resource.resource_type} is not supported")

        try:
            return await calculator.calculate_cost(resource, region, self.resolver)
        except Exception as error:
            # A broken calculator must not fail the whole diff
            logger.error(
                f"Unexpected error pricing {resource.logical_id} ({resource.resource_type}): "
                f"{type(error).__name__}: {error}",
                exc_info=True
            )
            return MonthlyCost.unknown(f"Failed to calculate cost: {error}")

    async def _resource_cost(self, resource: ResourceWithId, region: str) -> ResourceCost:
        monthly_cost = await self.get_resource_cost(resource, region)
        return ResourceCost(resource.logical_id, resource.resource_type, monthly_cost)

    async def _modified_cost(self, resource: ModifiedResource, region: str) -> ModifiedResourceCost:
        old_cost, new_cost = await asyncio.gather(
            self.get_resource_cost(resource.before(), region),
            self.get_resource_cost(resource.after(), region),
        )
        return ModifiedResourceCost(
            logical_id=resource.logical_id,
            resource_type=resource.resource_type,
            old_monthly_cost=old_cost,
            new_monthly_cost=new_cost,
        )

    async def compute_delta(self, diff: ResourceDiff, region: str) -> CostDelta:
        """
        Compute the monthly cost delta of a template diff.

        Every resource is priced concurrently; each appears exactly once in the
        result and the total is derived from the per-resource entries.

        Args:
            diff: Added, removed and modified resources
            region: AWS region code

        Returns:
            CostDelta for the diff

        Raises:
            CostEstimatorError: If no region is given
        """
        if not region:
            raise CostEstimatorError("Region is required to compute a cost delta")

        added, removed, modified = await asyncio.gather(
            asyncio.gather(*(self._resource_cost(r, region) for r in diff.added)),
            asyncio.gather(*(self._resource_cost(r, region) for r in diff.removed)),
            asyncio.gather(*(self._modified_cost(r, region) for r in diff.modified)),
        )

        delta = CostDelta(added_costs=added, removed_costs=removed, modified_costs=modified)
        logger.info(
            f"Cost delta for {diff.resource_count()} resources in {region}: "
            f"{delta.total_delta:+.2f} {delta.currency}/month"
        )
        return delta


def create_cost_service(
    gateway=None,
    store: Optional[PersistentPriceStore] = None,
    use_persistent_cache: Optional[bool] = None
) -> CostAggregationService:
    """
    Build a cost service with its resolver, store and catalog client from configuration.

    Args:
        gateway: Catalog client (AWSPricingClient if None)
        store: Persistent store (built from config if None and enabled)
        use_persistent_cache: Override PRICING_PERSISTENT_CACHE_ENABLED

    Returns:
        CostAggregationService owning a fresh PriceResolver
    """
    if use_persistent_cache is None:
        use_persistent_cache = config.PRICING_PERSISTENT_CACHE_ENABLED
    if store is None and use_persistent_cache:
        store = PersistentPriceStore()
    resolver = PriceResolver(gateway or AWSPricingClient(), store=store)
    return CostAggregationService(resolver)
