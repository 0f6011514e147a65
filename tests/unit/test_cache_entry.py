"""
Unit tests for the CacheEntryMetadata model.
"""
from decimal import Decimal

from build_cache.models import OCTET_STREAM, CacheEntryMetadata


def test_item_round_trip():
    metadata = CacheEntryMetadata(
        hash='abc123',
        size=42,
        created_at=1_700_000_000_000,
        last_accessed=1_700_000_000_500,
        expires_at=1_700_604_800,
    )

    assert CacheEntryMetadata.from_item(metadata.to_item()) == metadata


def test_to_item_uses_store_attribute_names():
    item = CacheEntryMetadata('abc', 1, 10, 20, expires_at=30).to_item()

    assert item == {
        'cacheKey': 'abc',
        'sizeBytes': 1,
        'createdAt': 10,
        'lastAccessed': 20,
        'contentType': OCTET_STREAM,
        'expiresAt': 30,
    }


def test_from_item_converts_decimals():
    item = {
        'cacheKey': 'abc',
        'sizeBytes': Decimal('42'),
        'createdAt': Decimal('1000'),
        'lastAccessed': Decimal('2000'),
        'expiresAt': Decimal('3'),
    }

    metadata = CacheEntryMetadata.from_item(item)

    assert metadata.size == 42
    assert metadata.created_at == 1000
    assert metadata.last_accessed == 2000
    assert metadata.expires_at == 3
    assert isinstance(metadata.size, int)


def test_from_item_defaults_for_missing_fields():
    metadata = CacheEntryMetadata.from_item({'cacheKey': 'abc', 'createdAt': 500})

    assert metadata.size == 0
    assert metadata.last_accessed == 500
    assert metadata.content_type == OCTET_STREAM
    assert metadata.expires_at == 0


def test_from_item_defaults_for_malformed_fields():
    metadata = CacheEntryMetadata.from_item({
        'cacheKey': 'abc',
        'sizeBytes': 'lots',
        'createdAt': 'yesterday',
        'lastAccessed': None,
    })

    assert metadata.size == 0
    assert metadata.created_at == 0
    assert metadata.last_accessed == 0


def test_from_item_clamps_negative_size():
    metadata = CacheEntryMetadata.from_item({'cacheKey': 'abc', 'sizeBytes': -5})
    assert metadata.size == 0


def test_from_item_without_key():
    assert CacheEntryMetadata.from_item(None) is None
    assert CacheEntryMetadata.from_item({}) is None
    assert CacheEntryMetadata.from_item({'sizeBytes': 3}) is None


def test_is_expired():
    metadata = CacheEntryMetadata('abc', 1, 0, 0, expires_at=100)

    assert not metadata.is_expired(99)
    assert metadata.is_expired(100)
    assert metadata.is_expired(101)


def test_zero_expiry_never_expires():
    metadata = CacheEntryMetadata('abc', 1, 0, 0)
    assert not metadata.is_expired(10 ** 12)


def test_to_dict_public_fields():
    metadata = CacheEntryMetadata('abc', 7, 100, 200, expires_at=300)

    assert metadata.to_dict() == {
        'hash': 'abc',
        'size': 7,
        'createdAt': 100,
        'lastAccessed': 200,
    }
