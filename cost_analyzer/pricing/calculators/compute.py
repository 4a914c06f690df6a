"""
Compute calculators: EC2 instances and Lambda functions.
"""
from decimal import Decimal

from cost_analyzer.core.config import config
from cost_analyzer.domain.cost_models import Confidence, MonthlyCost
from cost_analyzer.domain.resource_models import ResourceWithId
from cost_analyzer.pricing.aws_region_map import normalize_region
from cost_analyzer.pricing.calculators.base import (
    ResourceCostCalculator,
    int_property,
    pricing_unavailable,
)
from cost_analyzer.pricing.price_query import PriceQuery


class EC2Calculator(ResourceCostCalculator):
    """On-demand Linux EC2 instances running 24/7."""

    def supports(self, resource_type: str) -> bool:
        return resource_type == "AWS::EC2::Instance"

    async def calculate_cost(self, resource: ResourceWithId, region: str, resolver) -> MonthlyCost:
        instance_type = resource.properties.get("InstanceType")
        if not instance_type:
            return MonthlyCost.unknown("Instance type not specified")

        hourly_rate = await resolver.resolve_price(PriceQuery.create(
            "AmazonEC2",
            normalize_region(region),
            [
                ("instanceType", instance_type),
                ("operatingSystem", "Linux"),
                ("tenancy", "Shared"),
                ("preInstalledSw", "NA"),
                ("capacitystatus", "Used"),
            ],
        ))
        if hourly_rate is None:
            return pricing_unavailable(f"instance type {instance_type}", region)

        return MonthlyCost(
            amount=hourly_rate * self.hours_per_month,
            confidence=Confidence.HIGH,
            assumptions=(
                f"Assumes {self.hours_per_month} hours per month (24/7 operation)",
                "Assumes Linux OS, shared tenancy, on-demand pricing",
            ),
        )


class LambdaCalculator(ResourceCostCalculator):
    """Lambda functions priced by requests and GB-seconds of compute."""

    DEFAULT_MEMORY_MB = 128

    def __init__(self, invocations_per_month: int = None, average_duration_ms: int = None):
        self.invocations_per_month = invocations_per_month or config.LAMBDA_INVOCATIONS_PER_MONTH
        self.average_duration_ms = average_duration_ms or config.LAMBDA_AVERAGE_DURATION_MS

    def supports(self, resource_type: str) -> bool:
        return resource_type == "AWS::Lambda::Function"

    async def calculate_cost(self, resource: ResourceWithId, region: str, resolver) -> MonthlyCost:
        memory_mb = int_property(resource, "MemorySize", self.DEFAULT_MEMORY_MB)
        location = normalize_region(region)

        request_price = await resolver.resolve_price(PriceQuery.create(
            "AWSLambda", location, [("group", "AWS-Lambda-Requests")]
        ))
        duration_price = await resolver.resolve_price(PriceQuery.create(
            "AWSLambda", location, [("group", "AWS-Lambda-Duration")]
        ))
        if request_price is None or duration_price is None:
            return pricing_unavailable("Lambda", region)

        invocations = Decimal(self.invocations_per_month)
        gb_seconds = (
            Decimal(memory_mb) / Decimal(1024)
            * Decimal(self.average_duration_ms) / Decimal(1000)
            * invocations
        )
        request_cost = invocations * request_price
        compute_cost = gb_seconds * duration_price

        return MonthlyCost(
            amount=request_cost + compute_cost,
            confidence=Confidence.MEDIUM,
            assumptions=(
                f"Assumes {self.invocations_per_month:,} invocations per month",
                f"Assumes {self.average_duration_ms}ms average execution time",
                f"Assumes {memory_mb}MB memory allocation",
            ),
        )
