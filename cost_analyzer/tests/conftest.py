"""
Shared pytest fixtures for cost analyzer tests.
"""

import sys
import os
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

# Keep tests away from the working directory cache and real AWS settings
os.environ.setdefault('PRICING_PERSISTENT_CACHE_ENABLED', 'false')
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')

import pytest
from decimal import Decimal
from unittest.mock import Mock, AsyncMock
from cost_analyzer.pricing.price_query import PriceQuery
from cost_analyzer.pricing.price_store import PersistentPriceStore


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    """Fake wall clock starting at a fixed epoch."""
    return FakeClock()


@pytest.fixture
def store(tmp_path, clock):
    """Persistent price store in a temporary directory with a 24h window."""
    return PersistentPriceStore(cache_dir=str(tmp_path / 'cache'), cache_duration_hours=24, clock=clock)


@pytest.fixture
def s3_query():
    """Query for S3 Standard storage in us-east-1."""
    return PriceQuery.create(
        'AmazonS3',
        'US East (N. Virginia)',
        [('storageClass', 'General Purpose'), ('volumeType', 'Standard')]
    )


@pytest.fixture
def mock_gateway():
    """Catalog gateway answering $0.023 for every query."""
    mock = Mock()
    mock.fetch = AsyncMock(return_value=Decimal('0.023'))
    return mock


@pytest.fixture
def catalog_gateway():
    """Factory for gateways answering by service code; unknown services have no price."""
    def build(prices):
        mock = Mock()
        mock.fetch = AsyncMock(side_effect=lambda query: prices.get(query.service_code))
        return mock
    return build


@pytest.fixture
def mock_resolver():
    """Resolver stub used by calculator tests."""
    mock = Mock()
    mock.resolve_price = AsyncMock(return_value=Decimal('0.023'))
    return mock
