"""Shared fixtures for the market board tests."""

import pytest
import pytest_asyncio

from config import DEFAULTS, validate_settings
from context import AppContext
from database import MemoryDocumentStore
from worlds import WorldTable

API_KEY = "test-api-key"
SOURCE_NAME = "Test Agent"


@pytest.fixture
def settings():
    """Built-in defaults on the in-memory backend."""
    return validate_settings(dict(DEFAULTS, store_backend='memory'))


@pytest.fixture
def worlds():
    return WorldTable.load()


@pytest.fixture
def store():
    return MemoryDocumentStore(timeout=1.0)


@pytest.fixture
def context(settings, store, worlds):
    """An application context on a fresh in-memory store."""
    return AppContext(settings, store, worlds)


@pytest_asyncio.fixture
async def api_key(context):
    """Register a trusted source and return its API key."""
    await context.sources.add(SOURCE_NAME, API_KEY)
    return API_KEY


def make_listing(**overrides):
    """A valid raw listing as an upload agent would send it."""
    listing = {
        "listingID": "1001",
        "sellerID": 5001,
        "creatorID": "7001",
        "creatorName": "Crafty Maker",
        "retainerID": "9001",
        "retainerName": "Shopkeep",
        "retainerCity": "Limsa Lominsa",
        "hq": True,
        "materia": [{"slotID": 0, "materiaID": 5}],
        "pricePerUnit": 1200,
        "quantity": 3,
        "lastReviewTime": 1600000000,
    }
    listing.update(overrides)
    return listing


def make_entry(**overrides):
    """A valid raw sale as an upload agent would send it."""
    entry = {
        "sellerID": "5002",
        "buyerName": "Buyer One",
        "hq": False,
        "pricePerUnit": 900,
        "quantity": 2,
        "timestamp": 1600000000,
    }
    entry.update(overrides)
    return entry
