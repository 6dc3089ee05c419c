"""
Text encodings for fingerprints and catalogue records.

dHash bit strings are packed four bits per lowercase hex digit, most
significant bit first, so a 64-bit hash is 16 hex characters. HSV-mean
vectors are stored as a JSON numeric array, which round-trips floats
exactly. The encoded forms are what the persistence layer and the wire
protocol see; they must stay stable across processes.
"""

import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from .errors import CodecError
from .models import CatalogItem, Fingerprint, FingerprintKind

logger = logging.getLogger(__name__)

_BITS_RE = re.compile(r"^[01]*$")
_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")

INT64_HEX_DIGITS = 16


def bits_to_hex(bits: str) -> str:
    """
    Pack a bit string into lowercase hex, 4 bits per digit, MSB first.

    A trailing partial chunk is padded on the right with zeros, so pass the
    original bit length to hex_to_bits() to decode such values exactly.
    """
    if not _BITS_RE.match(bits):
        raise CodecError("Bit string may only contain '0' and '1'")

    remainder = len(bits) % 4
    if remainder:
        bits = bits + "0" * (4 - remainder)

    return "".join(
        format(int(bits[i:i + 4], 2), "x")
        for i in range(0, len(bits), 4)
    )


def hex_to_bits(text: str, bit_length: Optional[int] = None) -> str:
    """
    Expand hex digits back into a bit string.

    Args:
        text: Hex string, any case.
        bit_length: Original number of bits; trims the padding added by
                    bits_to_hex() when the length was not a multiple of 4.

    Raises:
        CodecError: On non-hex characters or an impossible bit_length.
    """
    if not text or not _HEX_RE.match(text):
        raise CodecError(f"Invalid hex fingerprint: {text!r}")

    bits = "".join(format(int(ch, 16), "04b") for ch in text)

    if bit_length is not None:
        if bit_length > len(bits) or bit_length <= len(bits) - 4:
            raise CodecError(
                f"Bit length {bit_length} does not fit a {len(text)}-digit hex fingerprint"
            )
        bits = bits[:bit_length]

    return bits


def hex_to_int64(text: str) -> int:
    """Reinterpret a 16-digit hex dHash as a signed 64-bit integer (BIGINT column)."""
    if len(text) != INT64_HEX_DIGITS or not _HEX_RE.match(text):
        raise CodecError(
            f"Fingerprint must be exactly {INT64_HEX_DIGITS} hex digits (64 bits), got {text!r}"
        )
    value = int(text, 16)
    if value >= 1 << 63:
        value -= 1 << 64
    return value


def int64_to_hex(value: int) -> str:
    """Inverse of hex_to_int64()."""
    if value < -(1 << 63) or value >= 1 << 63:
        raise CodecError(f"Value {value} is outside the signed 64-bit range")
    return format(value & 0xFFFFFFFFFFFFFFFF, "016x")


def encode_vector(values: Iterable[float]) -> str:
    """Encode an HSV-mean vector as a JSON numeric array (finite values only)."""
    try:
        return json.dumps([float(v) for v in values], separators=(",", ":"), allow_nan=False)
    except ValueError as e:
        raise CodecError(f"Vector fingerprint must be finite: {e}") from e


def decode_vector(text: str) -> tuple:
    """Decode a JSON numeric array produced by encode_vector()."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise CodecError(f"Invalid vector fingerprint: {e}") from e

    if not isinstance(data, list) or not all(
        isinstance(v, (int, float)) and not isinstance(v, bool) for v in data
    ):
        raise CodecError("Vector fingerprint must be a JSON array of numbers")

    return tuple(float(v) for v in data)


def encode_fingerprint(fingerprint: Fingerprint) -> str:
    """Encode a fingerprint in the storage form for its kind."""
    if fingerprint.kind == FingerprintKind.DHASH:
        return bits_to_hex(fingerprint.value)
    return encode_vector(fingerprint.value)


def decode_fingerprint(text: str,
                       kind: Optional[FingerprintKind] = None,
                       bit_length: Optional[int] = None) -> Fingerprint:
    """
    Decode a stored fingerprint string.

    Args:
        text: Output of encode_fingerprint().
        kind: Expected kind. Inferred from the text when omitted: a JSON
              array is HSV-mean, anything else is treated as dHash hex.
        bit_length: Exact dHash bit count, for sizes whose bit count is
                    not a multiple of 4.

    Returns:
        Decoded Fingerprint.
    """
    if not isinstance(text, str):
        raise CodecError(f"Encoded fingerprint must be a string, got {type(text).__name__}")

    text = text.strip()
    if kind is None:
        kind = FingerprintKind.HSV_MEAN if text.startswith("[") else FingerprintKind.DHASH
    try:
        kind = FingerprintKind(kind)
    except ValueError:
        raise CodecError(f"Unknown fingerprint kind {kind!r}") from None

    if bit_length is not None and (
        isinstance(bit_length, bool) or not isinstance(bit_length, int)
    ):
        raise CodecError(f"Bit length must be an integer, got {bit_length!r}")

    if kind == FingerprintKind.DHASH:
        return Fingerprint.dhash(hex_to_bits(text, bit_length))
    return Fingerprint.hsv_mean(decode_vector(text))


def encode_item(item: CatalogItem) -> Dict[str, Any]:
    """Serialize a catalogue item to a plain JSON-ready record."""
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "photo_url": item.photo_url,
        "tags": list(item.tags),
        "created_at": item.created_at,
        "kind": item.fingerprint.kind.value,
        "bit_length": len(item.fingerprint) if item.fingerprint.kind == FingerprintKind.DHASH else None,
        "fingerprint": encode_fingerprint(item.fingerprint),
    }


def decode_item(record: Dict[str, Any]) -> CatalogItem:
    """
    Build a CatalogItem from a stored record.

    Records written by other clients may omit ``kind``/``bit_length``; the
    fingerprint form is then inferred. Tags may be plain names or
    ``{"id": ..., "name": ...}`` objects as returned by the items API.
    """
    if "fingerprint" not in record or "id" not in record:
        raise CodecError("Catalogue record requires 'id' and 'fingerprint'")

    kind = record.get("kind")
    fingerprint = decode_fingerprint(
        record["fingerprint"],
        kind=kind or None,
        bit_length=record.get("bit_length"),
    )

    tags: List[str] = []
    for tag in record.get("tags") or []:
        if isinstance(tag, dict):
            tags.append(str(tag.get("name", "")))
        else:
            tags.append(str(tag))

    return CatalogItem(
        id=str(record["id"]),
        name=record.get("name") or "",
        description=record.get("description") or "",
        fingerprint=fingerprint,
        photo_url=record.get("photo_url") or record.get("photoUrl"),
        tags=tuple(tags),
        created_at=record.get("created_at") or record.get("createdAt"),
    )
