"""Keys and timestamps shared by the market stores."""

import time


def now_ms() -> int:
    """Current time in milliseconds since the Unix epoch."""
    return int(time.time() * 1000)


def record_key(item_id: int, world_id: int) -> str:
    """Store key of the record for one (item, world) pair."""
    return f"{item_id}:{world_id}"
