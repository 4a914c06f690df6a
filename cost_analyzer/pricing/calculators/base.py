"""
Base interface for resource cost calculators.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional

from cost_analyzer.core.config import config
from cost_analyzer.domain.cost_models import MonthlyCost
from cost_analyzer.domain.resource_models import ResourceWithId
from cost_analyzer.pricing.aws_region_map import get_region_prefix


class ResourceCostCalculator(ABC):
    """
    Computes the monthly cost of one family of resource types.

    Calculators are searched in registration order; the first one whose
    ``supports`` returns True prices the resource.
    """

    hours_per_month: int = config.HOURS_PER_MONTH

    @abstractmethod
    def supports(self, resource_type: str) -> bool:
        """Whether this calculator prices the given resource type."""

    @abstractmethod
    async def calculate_cost(
        self,
        resource: ResourceWithId,
        region: str,
        resolver
    ) -> MonthlyCost:
        """
        Compute the monthly cost of a resource.

        Args:
            resource: Resource with its properties
            region: AWS region code (e.g., 'us-east-1')
            resolver: PriceResolver used for every catalog lookup

        Returns:
            MonthlyCost for the resource
        """


def pricing_unavailable(what: str, region: str) -> MonthlyCost:
    return MonthlyCost.unknown(f"Pricing data not available for {what} in region {region}")


def as_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    """Integer from a template value, tolerating strings; default when missing or invalid."""
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def int_property(resource: ResourceWithId, name: str, default: Optional[int] = None) -> Optional[int]:
    return as_int(resource.properties.get(name), default)


def usage_type(region: str, suffix: str) -> str:
    """Billing usage type for a region, e.g. 'EUW1-NatGateway-Hours'."""
    prefix = get_region_prefix(region)
    return f"{prefix}-{suffix}" if prefix else suffix
