"""
Network calculators: NAT gateways.
"""
from cost_analyzer.core.config import config
from cost_analyzer.domain.cost_models import Confidence, MonthlyCost
from cost_analyzer.domain.resource_models import ResourceWithId
from cost_analyzer.pricing.aws_region_map import normalize_region
from cost_analyzer.pricing.calculators.base import ResourceCostCalculator, usage_type
from cost_analyzer.pricing.price_query import PriceQuery


class NatGatewayCalculator(ResourceCostCalculator):
    """NAT gateways priced by hours plus data processed."""

    def __init__(self, data_processed_gb: int = None):
        self.data_processed_gb = data_processed_gb or config.NAT_GATEWAY_DATA_PROCESSED_GB

    def supports(self, resource_type: str) -> bool:
        return resource_type == "AWS::EC2::NatGateway"

    async def calculate_cost(self, resource: ResourceWithId, region: str, resolver) -> MonthlyCost:
        location = normalize_region(region)
        hourly_rate = await resolver.resolve_price(PriceQuery.create(
            "AmazonEC2",
            location,
            [("productFamily", "NAT Gateway"), ("usagetype", usage_type(region, "NatGateway-Hours"))],
        ))
        per_gb_rate = await resolver.resolve_price(PriceQuery.create(
            "AmazonEC2",
            location,
            [("productFamily", "NAT Gateway"), ("usagetype", usage_type(region, "NatGateway-Bytes"))],
        ))

        if hourly_rate is None or per_gb_rate is None:
            return MonthlyCost(
                amount=0,
                confidence=Confidence.UNKNOWN,
                assumptions=(
                    f"Pricing data not available for NAT Gateway in region {region}",
                    f"Would assume {self.data_processed_gb} GB of data processing per month",
                    f"Would assume {self.hours_per_month} hours per month",
                ),
            )

        hourly_cost = hourly_rate * self.hours_per_month
        data_cost = per_gb_rate * self.data_processed_gb
        return MonthlyCost(
            amount=hourly_cost + data_cost,
            confidence=Confidence.MEDIUM,
            assumptions=(
                f"Hourly rate: ${hourly_rate}/hour × {self.hours_per_month} hours = ${hourly_cost:.2f}",
                f"Data processing: ${per_gb_rate}/GB × {self.data_processed_gb} GB = ${data_cost:.2f}",
                "Does not include data transfer out charges",
            ),
        )
