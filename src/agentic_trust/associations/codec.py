"""Association data codec — the ``data`` field of an ERC-8092 record.

The on-chain verifier reads ``data`` as the standard ABI encoding of the tuple
``(uint8 assocType, string description)``::

    word 0   assocType, left-padded to 32 bytes
    word 1   offset of the string tail (always 0x40)
    word 2   byte length of the UTF-8 description
    word 3+  description bytes, right-padded to a 32-byte boundary

Encoding must match that layout byte for byte, so it is delegated to
``eth_abi``. Decoding never raises: historical records are scanned in bulk and
one malformed entry must not abort the scan.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex, encode_hex

from agentic_trust.errors import ValueOutOfRangeError

logger = logging.getLogger(__name__)

ASSOCIATION_DATA_TYPES: tuple[str, str] = ("uint8", "string")


class AssocType(enum.IntEnum):
    """Association type codes understood by the platform."""

    DELEGATION = 1


def assoc_type_label(value: int) -> str:
    """Return a display label for an association type code."""
    try:
        return AssocType(value).name.title()
    except ValueError:
        return f"Type {value}"


@dataclass(frozen=True)
class AssociationData:
    """Decoded ``(assocType, description)`` pair."""

    assoc_type: int
    description: str

    def to_dict(self) -> dict[str, object]:
        """Serialize using the field names of the on-chain tuple."""
        return {"assocType": self.assoc_type, "description": self.description}


def encode_association_data(assoc_type: int, description: str) -> bytes:
    """ABI-encode ``(uint8 assoc_type, string description)``.

    Raises
    ------
    ValueOutOfRangeError
        If *assoc_type* is not an integer in ``0..255``.
    """
    if isinstance(assoc_type, bool) or not isinstance(assoc_type, int):
        raise ValueOutOfRangeError(f"assocType must be an integer, got {assoc_type!r}")
    if not 0 <= assoc_type <= 255:
        raise ValueOutOfRangeError(f"assocType {assoc_type} is outside the uint8 range 0..255")
    encoded = encode(list(ASSOCIATION_DATA_TYPES), [int(assoc_type), description])
    logger.debug(
        "Encoded association data: assocType=%d descriptionLength=%d bytes=%d",
        assoc_type,
        len(description),
        len(encoded),
    )
    return encoded


def encode_association_data_hex(assoc_type: int, description: str) -> str:
    """Same as :func:`encode_association_data` but returns a ``0x`` hex string."""
    return encode_hex(encode_association_data(assoc_type, description))


def decode_association_data(data: Union[bytes, str, None]) -> Optional[AssociationData]:
    """Decode association data, returning ``None`` on any layout mismatch.

    Parameters
    ----------
    data:
        Raw bytes or a ``0x``-prefixed hex string.

    Returns
    -------
    AssociationData or None
        ``None`` (with a logged warning) when *data* is not a valid encoding.
    """
    try:
        raw = decode_hex(data) if isinstance(data, str) else bytes(data or b"")
        assoc_type, description = decode(list(ASSOCIATION_DATA_TYPES), raw)
    except (DecodingError, ValueError, TypeError, OverflowError) as exc:
        logger.warning("Failed to decode association data: %s", exc)
        return None
    return AssociationData(assoc_type=int(assoc_type), description=description)


__all__ = [
    "ASSOCIATION_DATA_TYPES",
    "AssocType",
    "AssociationData",
    "assoc_type_label",
    "decode_association_data",
    "encode_association_data",
    "encode_association_data_hex",
]
