"""Normalized market documents as stored and served."""

from enum import IntEnum
from typing import List, Optional

from pydantic import BaseModel, Field


class City(IntEnum):
    """Cities a retainer can be registered in."""
    LimsaLominsa = 1
    Gridania = 2
    Uldah = 3
    Ishgard = 4
    Kugane = 7
    Crystarium = 10

    @classmethod
    def parse(cls, value) -> Optional[int]:
        """Accept a numeric city id or a city name and return the id."""
        if value is None:
            return None
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            name = ''.join(ch for ch in value if ch.isalnum()).lower()
            for city in cls:
                if city.name.lower() == name:
                    return city.value
            if value.strip().isdigit():
                return int(value)
        raise ValueError(f"Unknown retainer city: {value!r}")


class Materia(BaseModel):
    slotID: int
    materiaID: int


class Listing(BaseModel):
    """A single active listing with every identifier anonymized."""
    listingID: str
    sellerID: str
    creatorID: Optional[str] = None
    creatorName: Optional[str] = None
    retainerID: str
    retainerName: Optional[str] = None
    retainerCity: Optional[int] = None
    hq: bool = False
    onMannequin: bool = False
    materia: List[Materia] = Field(default_factory=list)
    pricePerUnit: int
    quantity: int
    total: int
    lastReviewTime: Optional[int] = None
    stainID: Optional[int] = None


class HistoryEntry(BaseModel):
    """A completed sale with the seller anonymized."""
    sellerID: str
    buyerName: Optional[str] = None
    hq: bool = False
    pricePerUnit: int
    quantity: int
    total: int
    timestamp: int
