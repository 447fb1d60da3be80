"""Tests for the trusted source, blacklist and content identity registries."""

import logging

import pytest

from blacklist import BlacklistRegistry
from content import ContentIdentityRegistry, ContentKind
from database import MemoryDocumentStore, TRUSTED_SOURCES
from identity import hash_api_key
from sources import TrustedSourceRegistry, SourceExistsError


@pytest.mark.asyncio
async def test_authenticate_known_key():
    """Test that a registered key authenticates as its source."""
    registry = TrustedSourceRegistry(MemoryDocumentStore())
    api_key = await registry.add("Agent")

    source = await registry.authenticate(api_key)
    assert source.sourceName == "Agent"
    assert source.uploadCount == 0


@pytest.mark.asyncio
async def test_authenticate_unknown_key():
    """Test that an unknown key does not authenticate."""
    registry = TrustedSourceRegistry(MemoryDocumentStore())
    assert await registry.authenticate("nope") is None


@pytest.mark.asyncio
async def test_plaintext_key_is_not_stored():
    """Test that only the hashed API key is persisted."""
    store = MemoryDocumentStore()
    registry = TrustedSourceRegistry(store)
    await registry.add("Agent", "plaintext")

    assert await store.find_one(TRUSTED_SOURCES, "plaintext") is None
    assert await store.find_one(TRUSTED_SOURCES, hash_api_key("plaintext")) is not None


@pytest.mark.asyncio
async def test_duplicate_source_key():
    """Test that a key cannot be registered twice."""
    registry = TrustedSourceRegistry(MemoryDocumentStore())
    await registry.add("Agent", "key")
    with pytest.raises(SourceExistsError):
        await registry.add("Other", "key")


@pytest.mark.asyncio
async def test_record_usage_counts_uploads():
    """Test that usage accounting increments the source's counter."""
    registry = TrustedSourceRegistry(MemoryDocumentStore())
    await registry.add("Agent", "key")
    await registry.record_usage("key")
    assert await registry.record_usage("key") == 2
    assert (await registry.authenticate("key")).uploadCount == 2


@pytest.mark.asyncio
async def test_usage_counter_alone_does_not_authenticate():
    """Test that a key counted but never provisioned is not a trusted source."""
    registry = TrustedSourceRegistry(MemoryDocumentStore())
    assert await registry.record_usage("fresh-key") == 1
    assert await registry.authenticate("fresh-key") is None

@pytest.mark.asyncio
async def test_ban_is_idempotent():
    """Test that banning an already banned uploader is a no-op."""
    blacklist = BlacklistRegistry(MemoryDocumentStore())
    await blacklist.ban("uploader")
    await blacklist.ban("uploader")
    assert await blacklist.is_banned("uploader")
    assert not await blacklist.is_banned("someone-else")


@pytest.mark.asyncio
async def test_content_name_is_last_write_wins():
    """Test that the latest display name replaces the previous one."""
    registry = ContentIdentityRegistry(MemoryDocumentStore())
    await registry.set("abc", ContentKind.PLAYER, "Old Name")
    await registry.set("abc", ContentKind.PLAYER, "New Name")

    identity = await registry.get("abc")
    assert identity.characterName == "New Name"
    assert identity.contentType == ContentKind.PLAYER


@pytest.mark.asyncio
async def test_content_kind_is_fixed_by_first_write(caplog):
    """Test that a later write with a different kind keeps the original kind."""
    registry = ContentIdentityRegistry(MemoryDocumentStore())
    await registry.set("abc", ContentKind.RETAINER, "Shopkeep")

    with caplog.at_level(logging.WARNING):
        await registry.set("abc", ContentKind.PLAYER, "Renamed")

    identity = await registry.get("abc")
    assert identity.contentType == ContentKind.RETAINER
    assert identity.characterName == "Renamed"
    assert "already registered as retainer" in caplog.text


@pytest.mark.asyncio
async def test_unknown_content_identity():
    """Test that an unknown id has no identity."""
    registry = ContentIdentityRegistry(MemoryDocumentStore())
    assert await registry.get("missing") is None
