"""
Storage and database calculators: S3 buckets, RDS instances and DynamoDB tables.
"""
from typing import Dict

from cost_analyzer.core.config import config
from cost_analyzer.domain.cost_models import Confidence, MonthlyCost
from cost_analyzer.domain.resource_models import ResourceWithId
from cost_analyzer.pricing.aws_region_map import normalize_region
from cost_analyzer.pricing.calculators.base import (
    ResourceCostCalculator,
    as_int,
    int_property,
    pricing_unavailable,
    usage_type,
)
from cost_analyzer.pricing.price_query import PriceQuery


class S3Calculator(ResourceCostCalculator):
    """S3 buckets priced by an assumed volume of Standard storage."""

    def __init__(self, storage_gb: int = None):
        self.storage_gb = storage_gb or config.S3_STORAGE_GB

    def supports(self, resource_type: str) -> bool:
        return resource_type == "AWS::S3::Bucket"

    async def calculate_cost(self, resource: ResourceWithId, region: str, resolver) -> MonthlyCost:
        price_per_gb = await resolver.resolve_price(PriceQuery.create(
            "AmazonS3",
            normalize_region(region),
            [("storageClass", "General Purpose"), ("volumeType", "Standard")],
        ))
        if price_per_gb is None:
            return pricing_unavailable("S3", region)

        return MonthlyCost(
            amount=price_per_gb * self.storage_gb,
            confidence=Confidence.MEDIUM,
            assumptions=(
                f"Assumes {self.storage_gb} GB of standard storage",
                "Does not include request costs or data transfer",
            ),
        )


# CloudFormation engine names -> Pricing API databaseEngine values
RDS_ENGINES: Dict[str, str] = {
    "mysql": "MySQL",
    "postgres": "PostgreSQL",
    "mariadb": "MariaDB",
    "oracle-se2": "Oracle",
    "sqlserver-ex": "SQL Server",
    "aurora-mysql": "Aurora MySQL",
    "aurora-postgresql": "Aurora PostgreSQL",
}


class RDSCalculator(ResourceCostCalculator):
    """Single-AZ RDS instances plus General Purpose storage."""

    DEFAULT_STORAGE_GB = 100

    def supports(self, resource_type: str) -> bool:
        return resource_type == "AWS::RDS::DBInstance"

    async def calculate_cost(self, resource: ResourceWithId, region: str, resolver) -> MonthlyCost:
        instance_class = resource.properties.get("DBInstanceClass")
        engine = resource.properties.get("Engine")
        if not instance_class or not engine:
            return MonthlyCost.unknown("DB instance class or engine not specified")

        location = normalize_region(region)
        database_engine = RDS_ENGINES.get(str(engine).lower(), str(engine))
        storage_gb = int_property(resource, "AllocatedStorage", self.DEFAULT_STORAGE_GB)

        hourly_rate = await resolver.resolve_price(PriceQuery.create(
            "AmazonRDS",
            location,
            [
                ("instanceType", instance_class),
                ("databaseEngine", database_engine),
                ("deploymentOption", "Single-AZ"),
            ],
        ))
        if hourly_rate is None:
            return pricing_unavailable(f"instance class {instance_class}", region)

        storage_price = await resolver.resolve_price(PriceQuery.create(
            "AmazonRDS",
            location,
            [("volumeType", "General Purpose"), ("databaseEngine", database_engine)],
        ))

        assumptions = [
            f"Assumes {self.hours_per_month} hours per month (24/7 operation)",
            f"Assumes {storage_gb} GB of General Purpose (gp2) storage",
            "Assumes Single-AZ deployment",
        ]
        confidence = Confidence.HIGH
        amount = hourly_rate * self.hours_per_month
        if storage_price is None:
            assumptions.append("Storage pricing not available, storage cost excluded")
            confidence = Confidence.MEDIUM
        else:
            amount += storage_price * storage_gb

        return MonthlyCost(amount=amount, confidence=confidence, assumptions=tuple(assumptions))


class DynamoDBCalculator(ResourceCostCalculator):
    """DynamoDB tables in provisioned or on-demand billing mode."""

    DEFAULT_CAPACITY_UNITS = 5

    def __init__(self, read_requests_per_month: int = None, write_requests_per_month: int = None):
        self.read_requests_per_month = read_requests_per_month or config.DYNAMODB_READ_REQUESTS_PER_MONTH
        self.write_requests_per_month = write_requests_per_month or config.DYNAMODB_WRITE_REQUESTS_PER_MONTH

    def supports(self, resource_type: str) -> bool:
        return resource_type == "AWS::DynamoDB::Table"

    async def calculate_cost(self, resource: ResourceWithId, region: str, resolver) -> MonthlyCost:
        billing_mode = resource.properties.get("BillingMode") or "PROVISIONED"
        # ProvisionedThroughput implies provisioned mode whatever BillingMode says
        if resource.properties.get("ProvisionedThroughput") is not None or billing_mode == "PROVISIONED":
            return await self._provisioned_cost(resource, region, resolver)
        return await self._on_demand_cost(region, resolver)

    async def _provisioned_cost(self, resource: ResourceWithId, region: str, resolver) -> MonthlyCost:
        throughput = resource.properties.get("ProvisionedThroughput") or {}
        if not isinstance(throughput, dict):
            throughput = {}
        read_units = as_int(throughput.get("ReadCapacityUnits"), self.DEFAULT_CAPACITY_UNITS)
        write_units = as_int(throughput.get("WriteCapacityUnits"), self.DEFAULT_CAPACITY_UNITS)
        location = normalize_region(region)

        read_price = await resolver.resolve_price(PriceQuery.create(
            "AmazonDynamoDB", location, [("usagetype", usage_type(region, "ReadCapacityUnit-Hrs"))]
        ))
        write_price = await resolver.resolve_price(PriceQuery.create(
            "AmazonDynamoDB", location, [("usagetype", usage_type(region, "WriteCapacityUnit-Hrs"))]
        ))
        if read_price is None or write_price is None:
            return MonthlyCost.unknown(f"Pricing data not available for DynamoDB provisioned mode in region {region}")

        hourly = read_units * read_price + write_units * write_price
        return MonthlyCost(
            amount=hourly * self.hours_per_month,
            confidence=Confidence.HIGH,
            assumptions=(
                f"Provisioned billing mode: {read_units} RCU, {write_units} WCU",
                f"Assumes {self.hours_per_month} hours per month",
                "Does not include storage costs or other features (streams, backups, etc.)",
            ),
        )

    async def _on_demand_cost(self, region: str, resolver) -> MonthlyCost:
        location = normalize_region(region)
        read_price = await resolver.resolve_price(PriceQuery.create(
            "AmazonDynamoDB",
            location,
            [("group", "DDB-ReadUnits"), ("groupDescription", "OnDemand ReadRequestUnits")],
        ))
        write_price = await resolver.resolve_price(PriceQuery.create(
            "AmazonDynamoDB",
            location,
            [("group", "DDB-WriteUnits"), ("groupDescription", "OnDemand WriteRequestUnits")],
        ))
        if read_price is None or write_price is None:
            return MonthlyCost.unknown(f"Pricing data not available for DynamoDB on-demand mode in region {region}")

        amount = self.read_requests_per_month * read_price + self.write_requests_per_month * write_price
        return MonthlyCost(
            amount=amount,
            confidence=Confidence.MEDIUM,
            assumptions=(
                f"Assumes {self.read_requests_per_month:,} read requests per month",
                f"Assumes {self.write_requests_per_month:,} write requests per month",
                "On-demand billing mode",
                "Does not include storage costs or other features (streams, backups, etc.)",
            ),
        )
