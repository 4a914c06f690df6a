"""
Tests for the persistent price cache.
"""

import json
import pytest
from decimal import Decimal
from unittest.mock import patch
from cost_analyzer.pricing.price_query import PriceQuery
from cost_analyzer.pricing.price_store import METADATA_FILENAME, PersistentPriceStore


HOUR = 3600


def test_put_then_get_is_fresh(store, s3_query):
    """A freshly stored price comes back as fresh."""
    assert store.put(s3_query, Decimal('0.023')) is True
    assert store.get(s3_query) == (Decimal('0.023'), True)
    assert store.get_fresh(s3_query) == Decimal('0.023')


def test_missing_entry(store, s3_query):
    assert store.get(s3_query) is None
    assert store.get_fresh(s3_query) is None


def test_entries_survive_restart(tmp_path, clock, s3_query):
    """A new store on the same directory sees previously written prices."""
    cache_dir = str(tmp_path / 'cache')
    PersistentPriceStore(cache_dir=cache_dir, cache_duration_hours=24, clock=clock).put(s3_query, Decimal('0.023'))

    reopened = PersistentPriceStore(cache_dir=cache_dir, cache_duration_hours=24, clock=clock)
    assert reopened.get(s3_query) == (Decimal('0.023'), True)


def test_metadata_document_layout(store, s3_query):
    store.put(s3_query, Decimal('0.023'))

    document = json.loads((store.cache_dir / METADATA_FILENAME).read_text())
    assert document['version'] == 1
    entry = document['entries'][s3_query.cache_key()]
    assert entry['price'] == '0.023'
    assert entry['stored_at'] == 1_700_000_000.0


def test_entry_goes_stale_after_window(store, clock, s3_query):
    """Expired entries are still returned, flagged as stale."""
    store.put(s3_query, Decimal('0.023'))
    clock.advance(25 * HOUR)

    assert store.get(s3_query) == (Decimal('0.023'), False)
    assert store.get_fresh(s3_query) is None
    assert len(store) == 1


def test_entry_fresh_at_exact_window(store, clock, s3_query):
    store.put(s3_query, Decimal('0.023'))
    clock.advance(24 * HOUR)
    assert store.get(s3_query) == (Decimal('0.023'), True)


def test_corrupt_metadata_starts_empty(tmp_path, clock, s3_query):
    """An unreadable metadata document yields an empty store, not an error."""
    cache_dir = tmp_path / 'cache'
    cache_dir.mkdir()
    (cache_dir / METADATA_FILENAME).write_text('{not json')

    store = PersistentPriceStore(cache_dir=str(cache_dir), cache_duration_hours=24, clock=clock)
    assert len(store) == 0
    assert store.get(s3_query) is None

    # Store stays usable and overwrites the corrupt file
    assert store.put(s3_query, Decimal('0.023')) is True


def test_unexpected_shape_starts_empty(tmp_path, clock):
    cache_dir = tmp_path / 'cache'
    cache_dir.mkdir()
    (cache_dir / METADATA_FILENAME).write_text(json.dumps(['not', 'a', 'dict']))

    store = PersistentPriceStore(cache_dir=str(cache_dir), cache_duration_hours=24, clock=clock)
    assert len(store) == 0


def test_malformed_entries_are_skipped(tmp_path, clock, s3_query):
    cache_dir = tmp_path / 'cache'
    cache_dir.mkdir()
    (cache_dir / METADATA_FILENAME).write_text(json.dumps({
        'version': 1,
        'entries': {
            s3_query.cache_key(): {'price': '0.023', 'stored_at': clock()},
            'broken:missing-price': {'stored_at': clock()},
            'broken:bad-price': {'price': 'abc', 'stored_at': clock()},
            'broken:negative': {'price': '-1', 'stored_at': clock()},
        },
    }))

    store = PersistentPriceStore(cache_dir=str(cache_dir), cache_duration_hours=24, clock=clock)
    assert len(store) == 1
    assert store.get_fresh(s3_query) == Decimal('0.023')


def test_failed_write_returns_false(store, s3_query):
    """Disk failures are reported, never raised, and the entry stays usable."""
    with patch('cost_analyzer.pricing.price_store.os.replace', side_effect=OSError('disk full')):
        assert store.put(s3_query, Decimal('0.023')) is False

    assert store.get(s3_query) == (Decimal('0.023'), True)
    assert list(store.cache_dir.glob('*.tmp')) == []


def test_prune_removes_only_stale_entries(store, clock, s3_query):
    old_query = PriceQuery.create('AmazonEC2', 'US East (N. Virginia)', [('instanceType', 't3.micro')])
    store.put(old_query, Decimal('0.0104'))
    clock.advance(25 * HOUR)
    store.put(s3_query, Decimal('0.023'))

    assert store.prune() == 1
    assert store.get(old_query) is None
    assert store.get(s3_query) == (Decimal('0.023'), True)
    assert store.prune() == 0


def test_clear_empties_store_and_document(store, s3_query):
    store.put(s3_query, Decimal('0.023'))

    assert store.clear() is True
    assert len(store) == 0
    document = json.loads((store.cache_dir / METADATA_FILENAME).read_text())
    assert document['entries'] == {}


def test_stats_split_by_freshness(store, clock, s3_query):
    old_query = PriceQuery.create('AmazonEC2', 'US East (N. Virginia)', [('instanceType', 't3.micro')])
    store.put(old_query, Decimal('0.0104'))
    clock.advance(25 * HOUR)
    store.put(s3_query, Decimal('0.023'))

    stats = store.stats()
    assert stats.to_dict() == {'total_entries': 2, 'fresh_entries': 1, 'stale_entries': 1}


def test_creates_missing_directory(tmp_path, clock):
    cache_dir = tmp_path / 'nested' / 'cache'
    PersistentPriceStore(cache_dir=str(cache_dir), cache_duration_hours=24, clock=clock)
    assert cache_dir.is_dir()


def test_rejects_non_positive_duration(tmp_path):
    with pytest.raises(ValueError):
        PersistentPriceStore(cache_dir=str(tmp_path), cache_duration_hours=0)


def test_unusable_directory_starts_empty(tmp_path, clock, s3_query):
    """A cache directory that cannot exist still yields a working, empty store."""
    cache_dir = tmp_path / ('x' * 300) / 'cache'

    store = PersistentPriceStore(cache_dir=str(cache_dir), cache_duration_hours=24, clock=clock)

    assert len(store) == 0
    assert store.put(s3_query, Decimal('0.023')) is False
    assert store.get(s3_query) == (Decimal('0.023'), True)


def test_unreadable_metadata_starts_empty(tmp_path, clock):
    with patch('cost_analyzer.pricing.price_store.open', side_effect=PermissionError('denied'), create=True):
        store = PersistentPriceStore(cache_dir=str(tmp_path / 'cache'), cache_duration_hours=24, clock=clock)
    assert len(store) == 0
