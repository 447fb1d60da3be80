"""One-way anonymization of uploader, character, listing and API key identifiers.

Raw identifiers submitted by upload agents never leave this module: every
identifier is replaced by a fixed-length hex digest before it is stored or
compared.
"""

import hashlib
from typing import Any

IDENTITY_ALGORITHM = 'sha256'
API_KEY_ALGORITHM = 'sha512'


def _normalize(value: Any) -> str:
    """Convert an identifier into the text that gets digested.

    Strings pass through unchanged and integers use their decimal form, so a
    numeric id and its string spelling agree. Anything else (including None)
    becomes an empty string.

    Floats and booleans are not identifiers and also become an empty string,
    so distinct float ids such as 1.5 and 2.5 share one digest. Agents send
    ids as strings or integers.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return ''


def hash_value(value: Any, algorithm: str = IDENTITY_ALGORITHM) -> str:
    """Return the hex digest of an identifier.

    Args:
        value: Identifier to anonymize
        algorithm: hashlib algorithm name

    Returns:
        Lowercase hex digest
    """
    return hashlib.new(algorithm, _normalize(value).encode('utf-8')).hexdigest()


def hash_api_key(api_key: Any) -> str:
    """Return the digest under which an API key is stored."""
    return hash_value(api_key, API_KEY_ALGORITHM)


__all__ = ['hash_value', 'hash_api_key', 'IDENTITY_ALGORITHM', 'API_KEY_ALGORITHM']
