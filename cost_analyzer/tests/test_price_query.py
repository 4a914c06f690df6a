"""
Tests for price query identity and cache keys.
"""

from cost_analyzer.pricing.price_query import PriceFilter, PriceQuery


def test_filter_order_does_not_change_identity():
    """Queries with the same filters in any order are equal and share a cache key."""
    first = PriceQuery.create('AmazonEC2', 'EU (Ireland)', [('instanceType', 't3.micro'), ('tenancy', 'Shared')])
    second = PriceQuery.create('AmazonEC2', 'EU (Ireland)', [('tenancy', 'Shared'), ('instanceType', 't3.micro')])

    assert first == second
    assert hash(first) == hash(second)
    assert first.cache_key() == second.cache_key()


def test_cache_key_format(s3_query):
    """Cache key is service:region:sorted field:value pairs joined by '|'."""
    assert s3_query.cache_key() == (
        'AmazonS3:US East (N. Virginia):storageClass:General Purpose|volumeType:Standard'
    )


def test_cache_key_without_filters():
    query = PriceQuery.create('AWSLambda', 'US East (Ohio)')
    assert query.cache_key() == 'AWSLambda:US East (Ohio):'


def test_duplicate_filters_collapse():
    query = PriceQuery.create('AmazonS3', 'EU (Paris)', [('volumeType', 'Standard'), ('volumeType', 'Standard')])
    assert len(query.filters) == 1


def test_different_region_or_value_is_different_query():
    base = PriceQuery.create('AmazonS3', 'EU (Paris)', [('volumeType', 'Standard')])
    assert base != PriceQuery.create('AmazonS3', 'EU (London)', [('volumeType', 'Standard')])
    assert base != PriceQuery.create('AmazonS3', 'EU (Paris)', [('volumeType', 'Glacier')])


def test_mixed_filter_inputs():
    """PriceFilter objects, tuples and dicts are all accepted."""
    query = PriceQuery.create('AmazonEC2', 'EU (Ireland)', [
        PriceFilter('instanceType', 't3.micro'),
        ('tenancy', 'Shared'),
        {'field': 'operatingSystem', 'value': 'Linux'},
    ])
    assert {f.key() for f in query.filters} == {
        'instanceType:t3.micro', 'tenancy:Shared', 'operatingSystem:Linux'
    }


def test_api_filters_add_location(s3_query):
    """GetProducts filters are sorted and carry the region as location."""
    api_filters = s3_query.to_api_filters()

    assert api_filters[0] == {'Type': 'TERM_MATCH', 'Field': 'storageClass', 'Value': 'General Purpose'}
    assert api_filters[1] == {'Type': 'TERM_MATCH', 'Field': 'volumeType', 'Value': 'Standard'}
    assert api_filters[-1] == {'Type': 'TERM_MATCH', 'Field': 'location', 'Value': 'US East (N. Virginia)'}


def test_api_filters_keep_explicit_location():
    query = PriceQuery.create('AmazonS3', 'US East (N. Virginia)', [('location', 'US East (N. Virginia)')])
    locations = [f for f in query.to_api_filters() if f['Field'] == 'location']
    assert len(locations) == 1
