"""Upload payload models.

Uploads arrive as loosely typed JSON from third-party agents. These models
cast the payload into typed sections; every section is independently
optional and drives its own write.
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from content import ContentKind
from market import City, Materia


def _reject_bool(value):
    if isinstance(value, bool):
        raise ValueError("must be a number, not a boolean")
    return value


class UploadListing(BaseModel):
    """A listing as submitted, before anonymization."""
    model_config = ConfigDict(extra='ignore')

    listingID: Any = None
    sellerID: Any = None
    creatorID: Any = None
    creatorName: Optional[str] = None
    retainerID: Any = None
    retainerName: Optional[str] = None
    retainerCity: Optional[int] = None
    hq: Optional[bool] = None
    onMannequin: Optional[bool] = None
    materia: Optional[List[Materia]] = None
    pricePerUnit: int = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    lastReviewTime: Optional[int] = None
    stainID: Optional[int] = None

    @field_validator('retainerCity', mode='before')
    @classmethod
    def parse_city(cls, value):
        return City.parse(value)

    @field_validator('pricePerUnit', 'quantity', mode='before')
    @classmethod
    def numeric(cls, value):
        return _reject_bool(value)


class UploadHistoryEntry(BaseModel):
    """A sale as submitted, before anonymization."""
    model_config = ConfigDict(extra='ignore')

    sellerID: Any = None
    buyerName: Optional[str] = None
    hq: Optional[bool] = None
    pricePerUnit: int = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    timestamp: int = Field(..., ge=0)

    @field_validator('pricePerUnit', 'quantity', 'timestamp', mode='before')
    @classmethod
    def numeric(cls, value):
        return _reject_bool(value)


class UploadData(BaseModel):
    """A full upload cast from its JSON body."""
    model_config = ConfigDict(extra='ignore')

    worldID: Optional[int] = None
    itemID: Optional[int] = None
    uploaderID: Any = None
    listings: Optional[List[UploadListing]] = None
    entries: Optional[List[UploadHistoryEntry]] = None
    contentID: Any = None
    characterName: Optional[str] = None

    @field_validator('worldID', 'itemID', mode='before')
    @classmethod
    def numeric(cls, value):
        return _reject_bool(value)

    @property
    def has_character(self) -> bool:
        return bool(self.contentID) and bool(self.characterName)

    @property
    def is_empty(self) -> bool:
        return self.listings is None and self.entries is None and not self.has_character


class CharacterSection(BaseModel):
    contentID: str
    characterName: str


class NormalizedUpload(BaseModel):
    """An upload with every identifier hashed and derived fields filled in.

    ``listings``, ``entries`` and ``character`` are None when the upload did
    not carry that section. ``identities`` holds the (id, kind, name)
    triples revealed by listings, at most one per id.
    """
    uploaderID: str
    itemID: int
    worldID: int
    listings: Optional[List[Dict[str, Any]]] = None
    entries: Optional[List[Dict[str, Any]]] = None
    character: Optional[CharacterSection] = None
    identities: List[Tuple[str, ContentKind, str]] = Field(default_factory=list)


class UploadResult(BaseModel):
    """Summary of an accepted upload."""
    sourceName: str
    uploaderID: str
    itemID: int
    worldID: int
    listings: int = 0
    entries: int = 0
    character: bool = False
