"""Tests for identifier normalization."""

import pytest

from catalog_sync.services.normalization import (
    bytes_to_hex,
    chunked,
    first_letters,
    form_code,
    hex_to_bytes,
    is_numeric_product_number,
    normalize_ean,
    normalize_oem,
    normalize_order_number,
    search_keywords,
    unique,
)


class TestNormalizeOem:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("  00ABC-123 ", "abc-123"),
            ("TN-2420", "tn-2420"),
            ("000", ""),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert normalize_oem(raw) == expected

    @pytest.mark.parametrize("raw", ["  0012AB ", "C13T00", "0 0x", "ÄB-01"])
    def test_idempotent(self, raw):
        once = normalize_oem(raw)
        assert normalize_oem(once) == once


class TestNormalizeEan:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("04006381333931", "4006381333931"),
            ("0 4006381-333931", "4006381333931"),
            ("EAN: 000123", "123"),
            ("abc", ""),
            (None, ""),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert normalize_ean(raw) == expected

    @pytest.mark.parametrize("raw", ["0040 0638", "x0y1", "0000"])
    def test_idempotent(self, raw):
        once = normalize_ean(raw)
        assert normalize_ean(once) == once


def test_order_number_only_trims():
    assert normalize_order_number("  ABC 0012 ") == "ABC 0012"


@pytest.mark.parametrize(
    "value,expected",
    [("1001", True), ("0042", True), ("10-01", False), ("A100", False), ("", False), (None, False), ("١٢٣", False)],
)
def test_is_numeric_product_number(value, expected):
    assert is_numeric_product_number(value) is expected


class TestBinaryIds:
    def test_hex_conversion(self):
        raw = bytes(range(16))
        assert bytes_to_hex(raw) == "000102030405060708090a0b0c0d0e0f"
        assert hex_to_bytes("000102030405060708090A0B0C0D0E0F") == raw

    def test_rejects_bad_ids(self):
        with pytest.raises(ValueError):
            hex_to_bytes("xyz")
        with pytest.raises(ValueError):
            bytes_to_hex(b"\x00" * 8)


def test_chunked_and_unique():
    assert list(chunked(range(7), 3)) == [[0, 1, 2], [3, 4, 5], [6]]
    assert list(chunked([], 3)) == []
    assert unique([3, 1, 3, 2, 1]) == [3, 1, 2]


class TestFinderText:
    @pytest.mark.parametrize(
        "label,expected",
        [
            ("Hewlett Packard", "hewlett-packard"),
            ("Canon (Ink)", "canon-ink"),
            ("Brother  MFC-J4410DW", "brother--mfc-j4410dw"),
            ("Kyocera/Mita", "kyoceramita"),
        ],
    )
    def test_form_code(self, label, expected):
        assert form_code(label) == expected

    def test_first_letters(self):
        assert first_letters("Hewlett Packard") == "HP"
        assert first_letters("Konica-Minolta / Develop") == "KMD"
        assert first_letters("Canon") == "C"

    def test_search_keywords(self):
        keywords = search_keywords(["HP LaserJet P-1005", "LaserJet"])

        assert keywords == "hp laserjet p-1005 hplaserjetp1005 hp laserjet p 1005 laserjet"

    def test_search_keywords_are_capped(self):
        assert len(search_keywords(["x" * 300])) == 250
