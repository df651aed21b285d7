"""
Shared fixtures: synthetic image payloads and CBZ archives built on the fly.
"""

import zipfile
from pathlib import Path
from typing import Dict, Union

import pytest

from cbzdrop.archive.models import ImageAsset

JPEG_HEADER = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00"
PNG_HEADER = b"\x89PNG\r\n\x1a\n"


def jpeg_bytes(size: int = 64, fill: bytes = b"\x00") -> bytes:
    """JPEG-signed payload of exactly ``size`` bytes."""
    assert size >= len(JPEG_HEADER)
    return JPEG_HEADER + fill * (size - len(JPEG_HEADER))


def png_bytes(size: int = 64) -> bytes:
    """PNG-signed payload of exactly ``size`` bytes."""
    assert size >= len(PNG_HEADER)
    return PNG_HEADER + b"\x00" * (size - len(PNG_HEADER))


def write_cbz(path: Union[str, Path], entries: Dict[str, bytes]) -> Path:
    """Write a CBZ archive containing ``entries`` in the given order."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return path


def comicinfo_xml(**fields: str) -> bytes:
    """ComicInfo.xml document with the given elements, in argument order."""
    body = "".join(f"<{name}>{value}</{name}>" for name, value in fields.items())
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        f"<ComicInfo>{body}</ComicInfo>"
    ).encode("utf-8")


def image_asset(name: str, size: int) -> ImageAsset:
    """Asset of exactly ``size`` bytes; content is not inspected after extraction."""
    return ImageAsset(name=name, data=b"\xff" * size, media_type="image/jpeg")


@pytest.fixture
def make_cbz(tmp_path):
    """Factory fixture: make_cbz("Series/Vol 01.cbz", {...}) -> absolute Path."""

    def _make(relative: str, entries: Dict[str, bytes]) -> Path:
        return write_cbz(tmp_path / relative, entries)

    return _make
