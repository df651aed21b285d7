"""
Tests for magic-byte media type sniffing.
"""

import pytest

from cbzdrop.archive.sniffer import (
    GENERIC_MEDIA_TYPE,
    extension_for,
    is_image_type,
    sniff_media_type,
)

from conftest import jpeg_bytes, png_bytes


class TestSniffMediaType:
    """Classification by content, never by name."""

    @pytest.mark.parametrize(
        "data,expected",
        [
            (jpeg_bytes(32), "image/jpeg"),
            (png_bytes(32), "image/png"),
            (b"GIF89a" + b"\x00" * 10, "image/gif"),
            (b"GIF87a" + b"\x00" * 10, "image/gif"),
            (b"RIFF\x10\x00\x00\x00WEBPVP8 ", "image/webp"),
            (b"\x00\x00\x00\x1cftypavif\x00\x00\x00\x00", "image/avif"),
            (b"II*\x00\x08\x00\x00\x00", "image/tiff"),
            (b"%PDF-1.7\n", "application/pdf"),
            (b"PK\x03\x04\x14\x00", "application/zip"),
        ],
    )
    def test_known_signatures(self, data, expected):
        assert sniff_media_type(data) == expected

    def test_xml_with_bom_is_not_an_image(self):
        data = b"\xef\xbb\xbf<?xml version='1.0'?><ComicInfo/>"
        assert sniff_media_type(data) == "application/xml"

    def test_unknown_content_is_generic(self):
        assert sniff_media_type(b"just some text") == GENERIC_MEDIA_TYPE

    def test_empty_data_is_generic(self):
        assert sniff_media_type(b"") == GENERIC_MEDIA_TYPE

    def test_riff_without_webp_is_not_image(self):
        assert sniff_media_type(b"RIFF\x10\x00\x00\x00WAVEfmt ") == GENERIC_MEDIA_TYPE

    def test_unknown_ftyp_brand_is_not_image(self):
        assert sniff_media_type(b"\x00\x00\x00\x18ftypisom\x00\x00") == GENERIC_MEDIA_TYPE


class TestMediaTypeHelpers:

    def test_image_category(self):
        assert is_image_type("image/png")
        assert not is_image_type("application/xml")
        assert not is_image_type(GENERIC_MEDIA_TYPE)

    def test_extensions(self):
        assert extension_for("image/jpeg") == ".jpg"
        assert extension_for("image/webp") == ".webp"
        assert extension_for("image/unknown") == ".bin"
