"""
Default calculator registry, in the order calculators are matched.
"""
from typing import List

from cost_analyzer.pricing.calculators.base import ResourceCostCalculator
from cost_analyzer.pricing.calculators.compute import EC2Calculator, LambdaCalculator
from cost_analyzer.pricing.calculators.network import NatGatewayCalculator
from cost_analyzer.pricing.calculators.storage import DynamoDBCalculator, RDSCalculator, S3Calculator


def default_calculators() -> List[ResourceCostCalculator]:
    """
    Build the default calculator list.

    Usage assumptions (storage volumes, invocation counts, ...) come from
    configuration; first match wins, so more specific calculators go first.
    """
    return [
        EC2Calculator(),
        S3Calculator(),
        LambdaCalculator(),
        RDSCalculator(),
        DynamoDBCalculator(),
        NatGatewayCalculator(),
    ]
