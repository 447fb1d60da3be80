"""Tests for the snapshot and history stores and their statistics."""

import asyncio

import pytest

from database import MemoryDocumentStore
from market import SnapshotStore, HistoryStore
from market.statistics import listing_statistics, history_statistics

NOW = 1_700_000_000_000


def clock():
    return NOW


@pytest.fixture
def snapshots(worlds):
    return SnapshotStore(MemoryDocumentStore(), worlds, recent_history_size=2, clock=clock)


@pytest.fixture
def history(worlds):
    return HistoryStore(MemoryDocumentStore(), worlds, max_entries=500, clock=clock)


def listing(price, hq=False, quantity=1):
    return {'pricePerUnit': price, 'quantity': quantity, 'total': price * quantity, 'hq': hq}


def sale(price, timestamp, hq=False):
    return {'pricePerUnit': price, 'quantity': 1, 'total': price, 'hq': hq, 'timestamp': timestamp}


@pytest.mark.asyncio
async def test_replace_discards_previous_listings(snapshots):
    """Test that a replacement is wholesale, not a merge."""
    await snapshots.replace("u1", 5333, 74, [listing(100), listing(200)])
    await snapshots.replace("u2", 5333, 74, [listing(300)])

    record = await snapshots.get(5333, 74)
    assert record['listings'] == [listing(300)]
    assert record['dcName'] == "Crystal"
    assert record['lastUploadTime'] == NOW
    assert 'uploaderID' not in record


@pytest.mark.asyncio
async def test_concurrent_replacements_do_not_merge(snapshots):
    """Test that racing replacements leave exactly one uploader's listing set."""
    first = [listing(100), listing(110)]
    second = [listing(900)]
    await asyncio.gather(
        snapshots.replace("u1", 5333, 74, first),
        snapshots.replace("u2", 5333, 74, second),
    )

    record = await snapshots.get(5333, 74)
    assert record['listings'] in (first, second)


@pytest.mark.asyncio
async def test_recent_history_keeps_newest(snapshots):
    """Test that only the newest sales are kept on the snapshot."""
    await snapshots.set_recent_history(5333, 74, [sale(1, 10), sale(2, 30), sale(3, 20)])

    record = await snapshots.get(5333, 74)
    assert [e['timestamp'] for e in record['recentHistory']] == [30, 20]
    assert record['listings'] == []


@pytest.mark.asyncio
async def test_datacenter_snapshot_merges_worlds(snapshots):
    """Test that a datacenter query combines worlds ordered by price."""
    await snapshots.replace("u1", 5333, 74, [listing(300)])
    await snapshots.replace("u1", 5333, 34, [listing(100)])
    await snapshots.replace("u1", 5333, 63, [listing(50)])

    record = await snapshots.get_for_datacenter(5333, "Crystal")
    assert [(l['pricePerUnit'], l['worldID']) for l in record['listings']] == [(100, 34), (300, 74)]
    assert record['dcName'] == "Crystal"
    assert await snapshots.get_for_datacenter(1, "Crystal") is None


@pytest.mark.asyncio
async def test_history_appends_without_dedup(history):
    """Test that history only grows and keeps duplicate sales."""
    await history.append("u1", 5333, 74, [sale(100, 1)])
    await history.append("u2", 5333, 74, [sale(100, 1)])

    record = await history.get(5333, 74)
    assert len(record['entries']) == 2
    assert all('uploaderID' not in entry for entry in record['entries'])


@pytest.mark.asyncio
async def test_history_limit_larger_than_log(history):
    """Test that asking for more entries than exist returns them all."""
    await history.append("u1", 5333, 74, [sale(1, 1), sale(2, 2), sale(3, 3)])
    record = await history.get(5333, 74, entries_limit=10000)
    assert len(record['entries']) == 3


@pytest.mark.asyncio
async def test_history_is_capped(history):
    """Test that reads never return more than the maximum number of entries."""
    await history.append("u1", 5333, 74, [sale(i, i) for i in range(600)])

    assert len((await history.get(5333, 74))['entries']) == 500
    assert len((await history.get(5333, 74, entries_limit=10))['entries']) == 10
    assert len((await history.get(5333, 74, entries_limit=0))['entries']) == 500
    assert (await history.get(5333, 74, entries_limit=2))['entries'][0]['pricePerUnit'] == 0


@pytest.mark.asyncio
async def test_datacenter_history_ordered_by_time(history):
    """Test that a datacenter history interleaves worlds by sale time."""
    await history.append("u1", 5333, 74, [sale(1, 10), sale(2, 30)])
    await history.append("u1", 5333, 34, [sale(3, 20)])

    record = await history.get_for_datacenter(5333, "Crystal")
    assert [(e['timestamp'], e['worldID']) for e in record['entries']] == [(10, 74), (20, 34), (30, 74)]


def test_listing_statistics():
    """Test price summaries of active listings."""
    stats = listing_statistics([listing(100), listing(300, hq=True), listing(200)])
    assert stats == {
        'currentAveragePrice': 200,
        'currentAveragePriceNQ': 150,
        'currentAveragePriceHQ': 300,
        'minPrice': 100,
        'maxPrice': 300,
    }


def test_history_statistics_velocity():
    """Test that sale velocity only counts sales within the last week."""
    now_s = NOW // 1000
    entries = [sale(100, now_s - 60), sale(200, now_s - 3600), sale(600, now_s - 30 * 86400)]

    stats = history_statistics(entries, NOW)
    assert stats['averagePrice'] == 300
    assert stats['saleVelocity'] == round(2 / 7, 2)


def test_empty_statistics_are_zero():
    """Test that statistics of nothing are all zero."""
    assert set(listing_statistics([]).values()) == {0}
    assert set(history_statistics([], NOW).values()) == {0}
