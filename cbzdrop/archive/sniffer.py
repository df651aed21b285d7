"""
Content sniffing by magic bytes.

Classifies raw byte buffers by media type without trusting entry names.
Sniffing is pure and never fails: unrecognised content is reported as
application/octet-stream.
"""

from typing import Dict, Tuple

GENERIC_MEDIA_TYPE = "application/octet-stream"

# (offset, signature, media type). First match wins.
_SIGNATURES: Tuple[Tuple[int, bytes, str], ...] = (
    (0, b"\xff\xd8\xff", "image/jpeg"),
    (0, b"\x89PNG\r\n\x1a\n", "image/png"),
    (0, b"GIF87a", "image/gif"),
    (0, b"GIF89a", "image/gif"),
    (0, b"BM", "image/bmp"),
    (0, b"II*\x00", "image/tiff"),
    (0, b"MM\x00*", "image/tiff"),
    (0, b"\xff\x0a", "image/jxl"),
    (0, b"\x00\x00\x00\x0cJXL \r\n\x87\n", "image/jxl"),
    (0, b"\x00\x00\x01\x00", "image/x-icon"),
    (0, b"%PDF-", "application/pdf"),
    (0, b"PK\x03\x04", "application/zip"),
)

# ISO base media file format brands (bytes 8-12 after "ftyp")
_FTYP_BRANDS: Dict[bytes, str] = {
    b"avif": "image/avif",
    b"avis": "image/avif",
    b"heic": "image/heic",
    b"heix": "image/heic",
    b"heim": "image/heic",
    b"heis": "image/heic",
    b"mif1": "image/heif",
    b"msf1": "image/heif",
}

_EXTENSIONS: Dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
    "image/tiff": ".tif",
    "image/jxl": ".jxl",
    "image/avif": ".avif",
    "image/heic": ".heic",
    "image/heif": ".heif",
    "image/x-icon": ".ico",
}


def sniff_media_type(data: bytes) -> str:
    """
    Return a best-effort media type for ``data``.

    Args:
        data: Raw bytes (only the first few dozen bytes are inspected)

    Returns:
        Media type string such as ``image/png``; ``application/octet-stream``
        when nothing matches
    """
    head = bytes(data[:32])

    for offset, signature, media_type in _SIGNATURES:
        if head[offset:offset + len(signature)] == signature:
            return media_type

    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "image/webp"

    if head[4:8] == b"ftyp":
        brand = _FTYP_BRANDS.get(head[8:12])
        if brand:
            return brand

    text_head = head.lstrip(b"\xef\xbb\xbf").lstrip()
    if text_head.startswith(b"<?xml"):
        return "application/xml"

    return GENERIC_MEDIA_TYPE


def is_image_type(media_type: str) -> bool:
    """True when the media type belongs to the image category."""
    return media_type.startswith("image/")


def extension_for(media_type: str) -> str:
    """File extension (with dot) for a media type, ``.bin`` when unknown."""
    return _EXTENSIONS.get(media_type, ".bin")
