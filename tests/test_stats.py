"""Tests for upload activity statistics."""

from datetime import datetime, timezone

import pytest

from database import MemoryDocumentStore
from stats import ActivityStatsRegistry


class FakeClock:
    def __init__(self, when: datetime):
        self.when = when

    def __call__(self) -> datetime:
        return self.when


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def registry(clock):
    return ActivityStatsRegistry(MemoryDocumentStore(), default_limit=2, max_limit=3, clock=clock)


@pytest.mark.asyncio
async def test_daily_uploads_counts_every_call(registry):
    """Test that N increments within a day yield a count of N."""
    for _ in range(5):
        await registry.increment_daily_uploads()

    assert await registry.get_daily_uploads() == [{'date': '2024-03-01', 'count': 5}]


@pytest.mark.asyncio
async def test_daily_uploads_newest_first(registry, clock):
    """Test that buckets are per date and returned newest first."""
    await registry.increment_daily_uploads()
    clock.when = datetime(2024, 3, 2, 0, 1, tzinfo=timezone.utc)
    await registry.increment_daily_uploads()
    await registry.increment_daily_uploads()
    clock.when = datetime(2024, 3, 3, 23, 59, tzinfo=timezone.utc)
    await registry.increment_daily_uploads()

    assert await registry.get_daily_uploads() == [
        {'date': '2024-03-03', 'count': 1},
        {'date': '2024-03-02', 'count': 2},
        {'date': '2024-03-01', 'count': 1},
    ]
    assert [d['date'] for d in await registry.get_daily_uploads(days=2)] == ['2024-03-03', '2024-03-02']


@pytest.mark.asyncio
async def test_recency_views(registry, clock):
    """Test most-recent-first and least-recent-first orderings."""
    for minute, (world_id, item_id) in enumerate([(74, 1), (74, 2), (34, 3)]):
        clock.when = datetime(2024, 3, 1, 12, minute, tzinfo=timezone.utc)
        await registry.mark_item_updated(world_id, item_id)

    recent = await registry.get_recently_updated(10)
    least = await registry.get_least_recently_updated(10)

    assert [r['itemID'] for r in recent] == [3, 2, 1]
    assert [r['itemID'] for r in least] == [1, 2, 3]
    assert recent[0]['worldID'] == 34


@pytest.mark.asyncio
async def test_updating_an_item_moves_it_to_the_front(registry, clock):
    """Test that marking a pair again refreshes its position."""
    await registry.mark_item_updated(74, 1)
    clock.when = datetime(2024, 3, 1, 13, 0, tzinfo=timezone.utc)
    await registry.mark_item_updated(74, 2)
    clock.when = datetime(2024, 3, 1, 14, 0, tzinfo=timezone.utc)
    await registry.mark_item_updated(74, 1)

    assert [r['itemID'] for r in await registry.get_recently_updated()] == [1, 2]


@pytest.mark.asyncio
async def test_recency_limits_are_clamped(registry, clock):
    """Test default and maximum limits on recency views."""
    for minute in range(5):
        clock.when = datetime(2024, 3, 1, 12, minute, tzinfo=timezone.utc)
        await registry.mark_item_updated(74, minute)

    assert len(await registry.get_recently_updated()) == 2
    assert len(await registry.get_recently_updated(100)) == 3
