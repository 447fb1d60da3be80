"""Summary statistics attached to market records on the read path."""

from statistics import fmean
from typing import Any, Dict, Iterable, List

SECONDS_PER_DAY = 86400
VELOCITY_WINDOW_DAYS = 7


def _average(prices: List[int]) -> float:
    return round(fmean(prices), 2) if prices else 0


def listing_statistics(listings: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Price summary of a set of active listings."""
    listings = list(listings)
    prices = [listing['pricePerUnit'] for listing in listings]
    return {
        'currentAveragePrice': _average(prices),
        'currentAveragePriceNQ': _average([l['pricePerUnit'] for l in listings if not l.get('hq')]),
        'currentAveragePriceHQ': _average([l['pricePerUnit'] for l in listings if l.get('hq')]),
        'minPrice': min(prices) if prices else 0,
        'maxPrice': max(prices) if prices else 0,
    }


def history_statistics(entries: Iterable[Dict[str, Any]], now_ms: int) -> Dict[str, Any]:
    """Price summary and sale velocity of a set of sale entries.

    Sale velocity is the number of sales per day within the trailing window,
    measured against entry timestamps in seconds.
    """
    entries = list(entries)
    window_start = now_ms // 1000 - VELOCITY_WINDOW_DAYS * SECONDS_PER_DAY
    recent = [e for e in entries if (e.get('timestamp') or 0) >= window_start]
    return {
        'averagePrice': _average([e['pricePerUnit'] for e in entries]),
        'averagePriceNQ': _average([e['pricePerUnit'] for e in entries if not e.get('hq')]),
        'averagePriceHQ': _average([e['pricePerUnit'] for e in entries if e.get('hq')]),
        'saleVelocity': round(len(recent) / VELOCITY_WINDOW_DAYS, 2),
    }


def empty_listing_statistics() -> Dict[str, Any]:
    return listing_statistics([])


def empty_history_statistics() -> Dict[str, Any]:
    return {
        'averagePrice': 0,
        'averagePriceNQ': 0,
        'averagePriceHQ': 0,
        'saleVelocity': 0,
    }
