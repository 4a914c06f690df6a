"""
Tests for the AWS pricing catalog client.
"""

import asyncio
import json
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, Mock, patch
from botocore.exceptions import ClientError, EndpointConnectionError
from cost_analyzer.pricing.aws_pricing_client import AWSPricingClient, CatalogTransportError, extract_price
from cost_analyzer.resilience.circuit_breaker import CircuitBreaker, CircuitState


def price_record(usd='0.0230000000'):
    """Minimal GetProducts PriceList record."""
    return {
        'product': {'attributes': {'storageClass': 'General Purpose'}},
        'terms': {
            'OnDemand': {
                'TERM.JRTCKXETXF': {
                    'priceDimensions': {
                        'TERM.JRTCKXETXF.6YS6EN2CT7': {
                            'unit': 'GB-Mo',
                            'pricePerUnit': {'USD': usd},
                        }
                    }
                }
            }
        },
    }


def response_with(record):
    return {'PriceList': [json.dumps(record)]}


def test_extract_price_from_json_string():
    assert extract_price(response_with(price_record())) == Decimal('0.023')


def test_extract_price_from_dict_record():
    assert extract_price({'PriceList': [price_record('0.0104')]}) == Decimal('0.0104')


def test_extract_price_zero_is_valid():
    assert extract_price(response_with(price_record('0.0000000000'))) == Decimal('0')


@pytest.mark.parametrize('response', [
    {},
    {'PriceList': []},
    {'PriceList': ['{not json']},
    response_with({'terms': {}}),
    response_with({'terms': {'OnDemand': {'T': {'priceDimensions': {}}}}}),
    response_with(price_record('')),
    response_with(price_record('-1')),
    response_with(price_record('NaN')),
])
def test_extract_price_structural_absence(response):
    """Any missing or unusable piece means no price, not an error."""
    assert extract_price(response) is None


@pytest.fixture
def pricing_api():
    """boto3 pricing client stub."""
    mock = Mock()
    mock.get_products = Mock(return_value=response_with(price_record()))
    return mock


@pytest.mark.asyncio
async def test_fetch_sends_filters_and_location(pricing_api, s3_query):
    client = AWSPricingClient(pricing_client=pricing_api, circuit_breaker=CircuitBreaker('test'))

    assert await client.fetch(s3_query) == Decimal('0.023')

    kwargs = pricing_api.get_products.call_args.kwargs
    assert kwargs['ServiceCode'] == 'AmazonS3'
    assert kwargs['MaxResults'] == 1
    assert {'Type': 'TERM_MATCH', 'Field': 'location', 'Value': 'US East (N. Virginia)'} in kwargs['Filters']


@pytest.mark.asyncio
async def test_fetch_not_found_returns_none(pricing_api, s3_query):
    pricing_api.get_products.return_value = {'PriceList': []}
    breaker = CircuitBreaker('test', failure_threshold=3)
    breaker.failure_count = 2
    client = AWSPricingClient(pricing_client=pricing_api, circuit_breaker=breaker)

    assert await client.fetch(s3_query) is None
    # Answered requests reset the failure streak
    assert breaker.failure_count == 0


@pytest.mark.asyncio
async def test_client_error_becomes_transport_error(pricing_api, s3_query):
    pricing_api.get_products.side_effect = ClientError(
        {'Error': {'Code': 'ThrottlingException', 'Message': 'Rate exceeded'}},
        'GetProducts'
    )
    breaker = CircuitBreaker('test', failure_threshold=5)
    client = AWSPricingClient(pricing_client=pricing_api, circuit_breaker=breaker)

    with pytest.raises(CatalogTransportError):
        await client.fetch(s3_query)
    assert breaker.failure_count == 1


@pytest.mark.asyncio
async def test_connection_error_becomes_transport_error(pricing_api, s3_query):
    pricing_api.get_products.side_effect = EndpointConnectionError(
        endpoint_url='https://api.pricing.us-east-1.amazonaws.com'
    )
    client = AWSPricingClient(pricing_client=pricing_api, circuit_breaker=CircuitBreaker('test'))

    with pytest.raises(CatalogTransportError):
        await client.fetch(s3_query)


@pytest.mark.asyncio
async def test_open_circuit_fails_fast(pricing_api, s3_query):
    """An open breaker raises without touching the catalog."""
    breaker = CircuitBreaker('test', failure_threshold=1, open_duration=60)
    breaker.record_failure()
    assert breaker.current_state() == CircuitState.OPEN
    client = AWSPricingClient(pricing_client=pricing_api, circuit_breaker=breaker)

    with pytest.raises(CatalogTransportError):
        await client.fetch(s3_query)
    pricing_api.get_products.assert_not_called()


@pytest.mark.asyncio
async def test_cancelled_probe_does_not_wedge_breaker(pricing_api, s3_query, clock):
    """A half-open probe cancelled mid-call lets the next request probe again."""
    breaker = CircuitBreaker('test', failure_threshold=1, open_duration=60, clock=clock)
    breaker.record_failure()
    clock.advance(61)
    client = AWSPricingClient(pricing_client=pricing_api, circuit_breaker=breaker)

    with patch(
        'cost_analyzer.pricing.aws_pricing_client.asyncio.to_thread',
        new_callable=AsyncMock,
        side_effect=asyncio.CancelledError()
    ):
        with pytest.raises(asyncio.CancelledError):
            await client.fetch(s3_query)

    clock.advance(10_000)
    assert await client.fetch(s3_query) == Decimal('0.023')
    assert breaker.current_state() == CircuitState.CLOSED


@pytest.mark.asyncio
async def test_unexpected_client_error_becomes_transport_error(pricing_api, s3_query):
    pricing_api.get_products.side_effect = RuntimeError('connection pool exhausted')
    breaker = CircuitBreaker('test', failure_threshold=5)
    client = AWSPricingClient(pricing_client=pricing_api, circuit_breaker=breaker)

    with pytest.raises(CatalogTransportError):
        await client.fetch(s3_query)
    assert breaker.failure_count == 1
