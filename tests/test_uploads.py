"""Tests for upload ingestion."""

import asyncio
import json

import pytest

from database import StoreError
from identity import hash_value
from uploads import (
    AuthenticationError, BlacklistedUploaderError, EmptyUploadError, UploadFailedError,
    ValidationError
)

from conftest import API_KEY, SOURCE_NAME, make_listing, make_entry


def body(**fields):
    upload = {"worldID": 74, "itemID": 5333, "uploaderID": "uploader-1"}
    upload.update(fields)
    return json.dumps(upload).encode()


@pytest.mark.asyncio
async def test_listing_upload_round_trip(context, api_key):
    """Test that uploaded listings are served anonymized with totals."""
    listings = [make_listing(), make_listing(listingID="1002", pricePerUnit=50, quantity=99, hq=False)]
    result = await context.uploads.submit_upload(api_key, body(listings=listings), "application/json")

    assert result.sourceName == SOURCE_NAME
    assert result.listings == 2

    record = await context.queries.get_snapshot("74", "5333")
    assert record['itemID'] == 5333
    assert record['worldID'] == 74
    assert len(record['listings']) == 2
    for stored, raw in zip(record['listings'], listings):
        assert stored['total'] == stored['pricePerUnit'] * stored['quantity']
        assert stored['listingID'] == hash_value(raw['listingID'])
        assert stored['sellerID'] == hash_value(raw['sellerID'])
        assert stored['retainerID'] == hash_value(raw['retainerID'])
    assert record['listings'][0]['retainerCity'] == 1
    assert record['listings'][0]['materia'] == [{'slotID': 0, 'materiaID': 5}]
    assert record['listings'][1]['onMannequin'] is False
    assert 'uploaderID' not in record


@pytest.mark.asyncio
async def test_upload_reveals_names(context, api_key):
    """Test that names next to ids are recorded as content identities."""
    await context.uploads.submit_upload(api_key, body(listings=[make_listing()]))

    creator = await context.queries.get_content_identity(hash_value("7001"))
    retainer = await context.queries.get_content_identity(hash_value("9001"))
    assert creator == {'contentID': hash_value("7001"), 'contentType': 'player', 'characterName': "Crafty Maker"}
    assert retainer['contentType'] == 'retainer'
    assert retainer['characterName'] == "Shopkeep"


@pytest.mark.asyncio
async def test_history_upload(context, api_key):
    """Test that sales are appended to history and mirrored as recent history."""
    entries = [make_entry(timestamp=100), make_entry(timestamp=200)]
    await context.uploads.submit_upload(api_key, body(entries=entries))
    await context.uploads.submit_upload(api_key, body(entries=entries))

    history = await context.queries.get_history("74", "5333")
    assert len(history['entries']) == 4
    assert history['entries'][0]['total'] == 1800
    assert all('uploaderID' not in e for e in history['entries'])

    snapshot = await context.queries.get_snapshot("74", "5333")
    assert [e['timestamp'] for e in snapshot['recentHistory']] == [200, 100]
    assert snapshot['listings'] == []


@pytest.mark.asyncio
async def test_character_upload(context, api_key):
    """Test that a character section registers a player name."""
    await context.uploads.submit_upload(api_key, body(contentID=42, characterName="Some One"))

    identity = await context.queries.get_content_identity(hash_value("42"))
    assert identity['characterName'] == "Some One"
    assert identity['contentType'] == 'player'


@pytest.mark.asyncio
async def test_upload_accounting(context, api_key):
    """Test that uploads are counted per source, per day and per item."""
    await context.uploads.submit_upload(api_key, body(listings=[make_listing()]))
    await context.uploads.submit_upload(api_key, body(listings=[make_listing()]))

    assert (await context.sources.authenticate(api_key)).uploadCount == 2
    assert (await context.stats.get_daily_uploads())[0]['count'] == 2
    recent = await context.stats.get_recently_updated()
    assert [(r['worldID'], r['itemID']) for r in recent] == [(74, 5333)]


@pytest.mark.asyncio
async def test_unknown_key_rejected(context):
    """Test that an unregistered key is rejected before anything is written."""
    with pytest.raises(AuthenticationError):
        await context.uploads.submit_upload("unknown", body(listings=[make_listing()]))
    assert await context.stats.get_daily_uploads() == []


@pytest.mark.asyncio
async def test_empty_upload_rejected(context, api_key):
    """Test that an upload without sections is rejected."""
    with pytest.raises(EmptyUploadError):
        await context.uploads.submit_upload(api_key, body())


@pytest.mark.asyncio
async def test_blacklisted_uploader_writes_nothing(context, api_key):
    """Test that data from a banned uploader is never stored."""
    await context.blacklist.ban(hash_value("uploader-1"))

    with pytest.raises(BlacklistedUploaderError):
        await context.uploads.submit_upload(api_key, body(listings=[make_listing()]))

    placeholder = await context.queries.get_snapshot("74", "5333")
    assert placeholder['listings'] == []
    assert placeholder['lastUploadTime'] == 0


@pytest.mark.asyncio
async def test_failed_write_fails_upload_without_rollback(context, api_key):
    """Test that one failing write fails the upload while other writes remain."""
    async def broken_append(*args, **kwargs):
        raise StoreError("disk full", "extendedHistory")

    context.history.append = broken_append

    with pytest.raises(UploadFailedError):
        await context.uploads.submit_upload(
            api_key, body(listings=[make_listing()], entries=[make_entry()])
        )

    snapshot = await context.queries.get_snapshot("74", "5333")
    assert len(snapshot['listings']) == 1


@pytest.mark.asyncio
async def test_concurrent_uploads_last_write_wins(context, api_key):
    """Test that racing uploads leave one complete listing set."""
    first = [make_listing(listingID=str(i), pricePerUnit=100 + i) for i in range(3)]
    second = [make_listing(listingID="99", pricePerUnit=999)]

    await asyncio.gather(
        context.uploads.submit_upload(api_key, body(uploaderID="a", listings=first)),
        context.uploads.submit_upload(api_key, body(uploaderID="b", listings=second)),
    )

    record = await context.queries.get_snapshot("74", "5333")
    prices = [l['pricePerUnit'] for l in record['listings']]
    assert prices in ([100, 101, 102], [999])


@pytest.mark.asyncio
@pytest.mark.parametrize("world_id", [16, 100])
async def test_out_of_range_world_writes_nothing(context, api_key, world_id):
    """Test that an upload for an excluded world stores no market data."""
    with pytest.raises(ValidationError):
        await context.uploads.submit_upload(
            api_key, body(worldID=world_id, listings=[make_listing()], entries=[make_entry()])
        )

    assert await context.snapshots.get(5333, world_id) is None
    assert await context.history.get(5333, world_id) is None
    assert await context.stats.get_recently_updated() == []
