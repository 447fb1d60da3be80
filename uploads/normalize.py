"""Anonymization and normalization of cast uploads."""

from typing import Any, Dict, List, Tuple

from content import ContentKind
from identity import hash_value
from market import Listing, HistoryEntry
from .models import (
    CharacterSection, NormalizedUpload, UploadData, UploadHistoryEntry, UploadListing
)


def normalize_listing(listing: UploadListing) -> Dict[str, Any]:
    """Hash every identifier of a listing and fill in defaults and totals."""
    return Listing(
        listingID=hash_value(listing.listingID),
        sellerID=hash_value(listing.sellerID),
        creatorID=hash_value(listing.creatorID),
        creatorName=listing.creatorName,
        retainerID=hash_value(listing.retainerID),
        retainerName=listing.retainerName,
        retainerCity=listing.retainerCity,
        hq=bool(listing.hq),
        onMannequin=bool(listing.onMannequin),
        materia=listing.materia or [],
        pricePerUnit=listing.pricePerUnit,
        quantity=listing.quantity,
        total=listing.pricePerUnit * listing.quantity,
        lastReviewTime=listing.lastReviewTime,
        stainID=listing.stainID,
    ).model_dump()


def normalize_entry(entry: UploadHistoryEntry) -> Dict[str, Any]:
    """Hash the seller of a sale and fill in defaults and totals."""
    return HistoryEntry(
        sellerID=hash_value(entry.sellerID),
        buyerName=entry.buyerName,
        hq=bool(entry.hq),
        pricePerUnit=entry.pricePerUnit,
        quantity=entry.quantity,
        total=entry.pricePerUnit * entry.quantity,
        timestamp=entry.timestamp,
    ).model_dump()


def revealed_identities(listings: List[UploadListing]) -> List[Tuple[str, ContentKind, str]]:
    """Hashed ids paired with the plaintext names the listings disclose.

    Later listings win when the same id appears more than once.
    """
    identities: Dict[str, Tuple[str, ContentKind, str]] = {}
    for listing in listings:
        if listing.creatorID and listing.creatorName:
            content_id = hash_value(listing.creatorID)
            identities[content_id] = (content_id, ContentKind.PLAYER, listing.creatorName)
        if listing.retainerID and listing.retainerName:
            content_id = hash_value(listing.retainerID)
            identities[content_id] = (content_id, ContentKind.RETAINER, listing.retainerName)
    return list(identities.values())


def normalize_upload(upload: UploadData, uploader_id: str) -> NormalizedUpload:
    """Turn a validated upload into its anonymized, per-section form."""
    normalized = NormalizedUpload(
        uploaderID=uploader_id,
        itemID=upload.itemID,
        worldID=upload.worldID,
    )

    if upload.listings is not None:
        normalized.listings = [normalize_listing(listing) for listing in upload.listings]
        normalized.identities = revealed_identities(upload.listings)

    if upload.entries is not None:
        normalized.entries = [normalize_entry(entry) for entry in upload.entries]

    if upload.has_character:
        normalized.character = CharacterSection(
            contentID=hash_value(upload.contentID),
            characterName=upload.characterName,
        )

    return normalized
