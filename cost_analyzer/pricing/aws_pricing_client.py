"""
AWS Pricing API client.
Uses boto3 to query the official AWS Price List API, one query per
(service, region, filter-set), and extracts a single on-demand USD price.
"""
from typing import Dict, Any, Optional
from decimal import Decimal, InvalidOperation
import asyncio
import json
import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from cost_analyzer.core.config import config
from cost_analyzer.pricing.price_query import PriceQuery
from cost_analyzer.resilience.circuit_breaker import CircuitBreaker


logger = logging.getLogger(__name__)


class CatalogTransportError(Exception):
    """Raised when the pricing catalog cannot be reached or returns a server error."""
    pass


def extract_price(response: Dict[str, Any]) -> Optional[Decimal]:
    """
    Extract the first on-demand USD unit price from a GetProducts response.

    Walks PriceList[0] -> terms.OnDemand -> first term -> priceDimensions ->
    first dimension -> pricePerUnit.USD. Any missing piece means the catalog
    has no usable price, which is not an error.

    Args:
        response: GetProducts response dictionary

    Returns:
        Unit price in USD, or None if no usable price exists
    """
    price_list = response.get("PriceList") or []
    if not price_list:
        return None

    try:
        record = price_list[0]
        if isinstance(record, (str, bytes)):
            record = json.loads(record)

        on_demand = record.get("terms", {}).get("OnDemand", {})
        if not on_demand:
            return None
        term = next(iter(on_demand.values()))

        price_dimensions = term.get("priceDimensions", {})
        if not price_dimensions:
            return None
        dimension = next(iter(price_dimensions.values()))

        price_per_unit = dimension.get("pricePerUnit", {}).get("USD")
        if price_per_unit is None or price_per_unit == "":
            return None
        price = Decimal(str(price_per_unit))
    except (AttributeError, TypeError, ValueError, InvalidOperation) as error:
        logger.debug(f"Unexpected pricing response shape: {error}")
        return None

    if not price.is_finite() or price < 0:
        return None
    return price


class AWSPricingClient:
    """Client for querying AWS pricing using boto3."""

    def __init__(self, pricing_client=None, circuit_breaker: CircuitBreaker = None):
        """
        Initialize AWS pricing client.

        Args:
            pricing_client: Pre-built boto3 'pricing' client (creates new if None)
            circuit_breaker: Breaker guarding the catalog (creates new if None)
        """
        if pricing_client is None:
            # Each attempt carries its own timeout; retries belong to the resolver
            boto_config = Config(
                connect_timeout=config.PRICING_CONNECT_TIMEOUT_SECONDS,
                read_timeout=config.PRICING_READ_TIMEOUT_SECONDS,
                retries={"max_attempts": 0},
            )
            pricing_client = boto3.client(
                "pricing",
                region_name=config.AWS_PRICING_REGION,
                config=boto_config
            )
        self.pricing_client = pricing_client
        self.circuit_breaker = circuit_breaker or CircuitBreaker("aws_pricing")

    async def fetch(self, query: PriceQuery) -> Optional[Decimal]:
        """
        Look up the unit price for a query.

        Args:
            query: Normalized price query

        Returns:
            Unit price in USD, or None if the catalog has no matching price

        Raises:
            CatalogTransportError: If the catalog is unreachable, errors, or the
                circuit breaker is open
        """
        if not self.circuit_breaker.allow_request():
            raise CatalogTransportError(
                "AWS pricing service temporarily unavailable (circuit breaker open)"
            )

        try:
            response = await asyncio.to_thread(
                self.pricing_client.get_products,
                ServiceCode=query.service_code,
                Filters=query.to_api_filters(),
                MaxResults=1,
            )
        except ClientError as error:
            self.circuit_breaker.record_failure()
            logger.error(f"AWS pricing API error for {query.service_code}: {error}")
            raise CatalogTransportError(f"Failed to query AWS pricing: {error}") from error
        except BotoCoreError as error:
            self.circuit_breaker.record_failure()
            logger.error(f"AWS pricing transport error for {query.service_code}: {error}")
            raise CatalogTransportError(f"Failed to reach AWS pricing: {error}") from error
        except asyncio.CancelledError:
            # Cancelled callers must not hold the half-open probe slot forever
            self.circuit_breaker.release_probe()
            raise
        except Exception as error:
            self.circuit_breaker.record_failure()
            logger.error(
                f"Unexpected AWS pricing client error for {query.service_code}: "
                f"{type(error).__name__}: {error}",
                exc_info=True
            )
            raise CatalogTransportError(f"Unexpected AWS pricing client error: {error}") from error

        # Not found is not a failure
        self.circuit_breaker.record_success()
        price = extract_price(response)
        if price is None:
            logger.debug(f"No price found for {query.cache_key()}")
        return price
