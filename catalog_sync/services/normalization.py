"""Identifier normalization.

Pure helpers shared by the mapping strategies and the device import:
- OEM / manufacturer numbers: trimmed, leading zeros (and blanks between them)
  stripped, lower-cased
- EANs: digits only, leading zeros stripped
- Order numbers: trimmed
- Local ids: 16-byte binary <-> 32-char lowercase hex
- Finder codes and device search keywords
"""

import re
from collections.abc import Iterable, Iterator, Sequence
from typing import TypeVar

T = TypeVar("T")

_NON_DIGITS = re.compile(r"[^0-9]")
_LEADING_ZEROS = re.compile(r"^[0\s]+")
_HEX_ID = re.compile(r"^[0-9a-f]{32}$")
_NON_CODE = re.compile(r"[^a-zA-Z0-9-]")
_WORD_SEPARATORS = re.compile(r"[-/+&.,]")
_KEYWORD_SQUASH = re.compile(r"[_/\-. ]")
_KEYWORD_SPACE = re.compile(r"[_/\-.]")
_WHITESPACE = re.compile(r"\s+")

# Largest external id the BIGINT id columns can hold.
MAX_EXTERNAL_ID = 2**63 - 1

KEYWORDS_MAX_LENGTH = 250


def normalize_oem(value: str | None) -> str:
    """Normalize an OEM/manufacturer number.

    Examples:
        "  00ABC-123 " -> "abc-123"
    """
    if value is None:
        return ""
    return _LEADING_ZEROS.sub("", str(value).strip()).lower()


def normalize_ean(value: str | None) -> str:
    """Normalize an EAN/GTIN: drop every non-digit, then leading zeros.

    Examples:
        "0 4006381-333931" -> "4006381333931"
    """
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value)).lstrip("0")


def normalize_order_number(value: str | None) -> str:
    """Normalize a distributor order number (whitespace only)."""
    if value is None:
        return ""
    return str(value).strip()


def is_numeric_product_number(value: str | None) -> bool:
    """True when the product number is usable as an external id (ASCII digits only)."""
    if not value:
        return False
    return value.isascii() and value.isdigit()



def form_code(label: str) -> str:
    """Finder code from a display label.

    Examples:
        "Hewlett Packard" -> "hewlett-packard"
        "Canon (Ink)" -> "canon-ink"
    """
    return _NON_CODE.sub("", label.replace(" ", "-")).lower()


def label_words(label: str) -> list[str]:
    """Words of a label, split on blanks and - / + & . ,"""
    return [w.strip() for w in _WORD_SEPARATORS.sub(" ", label).split(" ") if w.strip()]


def first_letters(label: str) -> str:
    """Initials of a label: "Hewlett Packard" -> "HP"."""
    return "".join(w[0] for w in label_words(label))


def search_keywords(phrases: Sequence[str], limit: int = KEYWORDS_MAX_LENGTH) -> str:
    """Device search keywords: each phrase lowercased, squashed and spaced out.

    Examples:
        ["HP LaserJet P-1005"] -> "hp laserjet p-1005 hplaserjetp1005 hp laserjet p 1005"
    """
    variants: list[str] = []
    for phrase in phrases:
        lowered = phrase.strip().lower()
        variants.append(lowered)
        variants.append(_KEYWORD_SQUASH.sub("", lowered))
        variants.append(_WHITESPACE.sub(" ", _KEYWORD_SPACE.sub(" ", lowered)).strip())
    return " ".join(unique(variants))[:limit]


def bytes_to_hex(value: bytes) -> str:
    """Binary id -> lowercase hex."""
    if len(value) != 16:
        raise ValueError(f"Expected a 16-byte id, got {len(value)} bytes")
    return value.hex()


def hex_to_bytes(value: str) -> bytes:
    """Hex id (any case) -> binary id."""
    normalized = value.strip().lower()
    if not _HEX_ID.match(normalized):
        raise ValueError(f"Invalid hex id: {value!r}")
    return bytes.fromhex(normalized)


def is_hex_id(value: object) -> bool:
    return isinstance(value, str) and _HEX_ID.match(value.lower()) is not None


def chunked(items: Iterable[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive lists of at most `size` items."""
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    batch: list[T] = []
    for item in items:
        batch.append(item)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


def unique(items: Sequence[T]) -> list[T]:
    """De-duplicate while keeping first-seen order."""
    return list(dict.fromkeys(items))
