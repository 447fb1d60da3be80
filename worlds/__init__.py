"""World reference table.

Translates world names to numeric world ids and world ids to the datacenter
that hosts them. The table is loaded once at startup, either from a JSON file
or from a remote URL, and is read-only afterwards.

The JSON document has the shape::

    {"datacenters": {"Aether": {"Gilgamesh": 63, ...}, ...}}
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_WORLDS_FILE = Path(__file__).resolve().parent / 'worlds.json'


class WorldTableError(Exception):
    """Raised when the world reference data cannot be loaded."""
    pass


class WorldTable:
    """Lookup tables for world names, ids and datacenters."""

    def __init__(self, datacenters: Optional[Dict[str, Dict[str, int]]] = None):
        self._world_ids: Dict[str, int] = {}
        self._world_names: Dict[int, str] = {}
        self._datacenters: Dict[int, str] = {}
        self._dc_worlds: Dict[str, List[int]] = {}

        for dc_name, worlds in (datacenters or {}).items():
            self._dc_worlds[dc_name] = []
            for world_name, world_id in worlds.items():
                world_id = int(world_id)
                self._world_ids[world_name] = world_id
                self._world_names[world_id] = world_name
                self._datacenters[world_id] = dc_name
                self._dc_worlds[dc_name].append(world_id)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> 'WorldTable':
        try:
            return cls(document['datacenters'])
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise WorldTableError(f"Malformed world table: {e}")

    @classmethod
    def load(cls, path: Path = DEFAULT_WORLDS_FILE) -> 'WorldTable':
        """Load the table from a JSON file."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise WorldTableError(f"Failed to read world table {path}: {e}")
        table = cls.from_document(document)
        logger.info(f"Loaded {len(table)} worlds from {path}")
        return table

    @classmethod
    def fetch(cls, url: str, timeout: float = 10.0) -> 'WorldTable':
        """Download the table from a URL serving the same JSON document."""
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
            document = response.json()
        except (requests.RequestException, ValueError) as e:
            raise WorldTableError(f"Failed to fetch world table from {url}: {e}")
        table = cls.from_document(document)
        logger.info(f"Fetched {len(table)} worlds from {url}")
        return table

    def __len__(self) -> int:
        return len(self._world_names)

    def world_id(self, world_name: str) -> Optional[int]:
        """Numeric id of a world, by its exact (capitalized) name."""
        return self._world_ids.get(world_name)

    def world_name(self, world_id: int) -> Optional[str]:
        return self._world_names.get(world_id)

    def datacenter_of(self, world_id: int) -> Optional[str]:
        """Name of the datacenter hosting a world, if known."""
        return self._datacenters.get(world_id)

    def worlds_in(self, dc_name: str) -> List[int]:
        return list(self._dc_worlds.get(dc_name, []))


__all__ = ['WorldTable', 'WorldTableError', 'DEFAULT_WORLDS_FILE']
