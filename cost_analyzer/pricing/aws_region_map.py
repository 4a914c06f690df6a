"""
AWS region code to Pricing API location string mapping.
AWS Pricing API uses human-readable location strings, not region codes, and
usage types carry a short billing prefix per region (e.g. 'USE1').
"""
from typing import Dict, Optional, List
import logging


logger = logging.getLogger(__name__)


# AWS region code -> (Pricing API location string, billing usage-type prefix)
AWS_REGIONS: Dict[str, tuple] = {
    # US
    "us-east-1": ("US East (N. Virginia)", "USE1"),
    "us-east-2": ("US East (Ohio)", "USE2"),
    "us-west-1": ("US West (N. California)", "USW1"),
    "us-west-2": ("US West (Oregon)", "USW2"),
    "us-gov-west-1": ("AWS GovCloud (US-West)", "UGW1"),
    "us-gov-east-1": ("AWS GovCloud (US-East)", "UGE1"),

    # Europe
    "eu-west-1": ("EU (Ireland)", "EUW1"),
    "eu-west-2": ("EU (London)", "EUW2"),
    "eu-west-3": ("EU (Paris)", "EUW3"),
    "eu-central-1": ("EU (Frankfurt)", "EUC1"),
    "eu-central-2": ("EU (Zurich)", "EUC2"),
    "eu-north-1": ("EU (Stockholm)", "EUN1"),
    "eu-south-1": ("EU (Milan)", "EUS1"),
    "eu-south-2": ("EU (Spain)", "EUS2"),

    # Asia Pacific
    "ap-south-1": ("Asia Pacific (Mumbai)", "APS3"),
    "ap-south-2": ("Asia Pacific (Hyderabad)", "APS5"),
    "ap-southeast-1": ("Asia Pacific (Singapore)", "APS1"),
    "ap-southeast-2": ("Asia Pacific (Sydney)", "APS2"),
    "ap-southeast-3": ("Asia Pacific (Jakarta)", "APS6"),
    "ap-southeast-4": ("Asia Pacific (Melbourne)", "APS7"),
    "ap-northeast-1": ("Asia Pacific (Tokyo)", "APN1"),
    "ap-northeast-2": ("Asia Pacific (Seoul)", "APN2"),
    "ap-northeast-3": ("Asia Pacific (Osaka)", "APN3"),
    "ap-east-1": ("Asia Pacific (Hong Kong)", "APE1"),

    # Canada
    "ca-central-1": ("Canada (Central)", "CAN1"),
    "ca-west-1": ("Canada West (Calgary)", "CAW1"),

    # South America
    "sa-east-1": ("South America (Sao Paulo)", "SAE1"),

    # Middle East & Africa
    "me-south-1": ("Middle East (Bahrain)", "MES1"),
    "me-central-1": ("Middle East (UAE)", "MEC1"),
    "il-central-1": ("Israel (Tel Aviv)", "ILC1"),
    "af-south-1": ("Africa (Cape Town)", "AFS1"),
}


def get_aws_pricing_location(region_code: str) -> Optional[str]:
    """
    Get AWS Pricing API location string from region code.

    Args:
        region_code: AWS region code (e.g., 'ap-south-1')

    Returns:
        Pricing API location string (e.g., 'Asia Pacific (Mumbai)'), or None if not found
    """
    entry = AWS_REGIONS.get(region_code)
    return entry[0] if entry else None


def normalize_region(region_code: str) -> str:
    """Pricing API location for a region code, or the code itself when unknown."""
    location = get_aws_pricing_location(region_code)
    if location is None:
        logger.debug(f"AWS region code '{region_code}' not found in region map, using it as-is")
        return region_code
    return location


def get_region_prefix(region_code: str) -> str:
    """
    Get the billing usage-type prefix for a region code.

    Args:
        region_code: AWS region code (e.g., 'us-east-1')

    Returns:
        Prefix such as 'USE1', or an empty string if the region is unknown
    """
    entry = AWS_REGIONS.get(region_code)
    return entry[1] if entry else ""


def get_all_aws_regions() -> List[str]:
    """
    Get all supported AWS region codes.

    Returns:
        List of AWS region codes
    """
    return list(AWS_REGIONS.keys())
