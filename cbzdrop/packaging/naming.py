"""
Title and filename resolution for output packages.

Title resolution order:
1. Descriptor title, else the caller's fallback title
2. If the descriptor names a series: "{series} - {title}"
3. For one of several parts: " (Part i of n)" is appended so sibling
   parts never share a title, identifier or filename
"""

import re
import unicodedata
from typing import Optional

from ..archive.models import Descriptor
from .models import PartIndex

UNKNOWN_AUTHOR = "Unknown"

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
# Most filesystems cap a filename at 255 bytes
_MAX_FILENAME_BYTES = 240


def resolve_base_title(descriptor: Optional[Descriptor], fallback_title: str) -> str:
    """Title before any part suffix is applied."""
    title = fallback_title
    if descriptor is not None and descriptor.title:
        title = descriptor.title
    if descriptor is not None and descriptor.series:
        title = f"{descriptor.series} - {title}"
    return title


def resolve_title(
    descriptor: Optional[Descriptor],
    fallback_title: str,
    part_index: Optional[PartIndex] = None,
) -> str:
    """Final title persisted in the package metadata."""
    title = resolve_base_title(descriptor, fallback_title)
    if part_index is not None:
        title = f"{title} ({part_index.label()})"
    return title


def resolve_author(descriptor: Optional[Descriptor]) -> str:
    """Descriptor writer, else the 'Unknown' placeholder."""
    if descriptor is not None and descriptor.writer:
        return descriptor.writer
    return UNKNOWN_AUTHOR


def truncate_utf8(text: str, max_bytes: int) -> str:
    """Cut ``text`` to at most ``max_bytes`` UTF-8 bytes on a character boundary."""
    encoded = text.encode("utf-8", errors="surrogateescape")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def sanitize_filename(name: str, max_bytes: int = _MAX_FILENAME_BYTES) -> str:
    """
    Make a title safe to use as a filename on common filesystems.

    Path separators and reserved characters become underscores; leading
    dots and trailing dots/spaces are removed. The result is at most
    ``max_bytes`` bytes in UTF-8. Never returns an empty string.
    """
    cleaned = unicodedata.normalize("NFC", name)
    cleaned = _INVALID_FILENAME_CHARS.sub("_", cleaned)
    cleaned = cleaned.strip().lstrip(".").rstrip(". ")
    cleaned = truncate_utf8(cleaned, max_bytes).rstrip(". ")
    return cleaned or "untitled"


def package_filename(
    base_title: str,
    part_index: Optional[PartIndex] = None,
    extension: str = ".epub",
) -> str:
    """
    Filename for a package.

    The base title is shortened first so the part suffix and extension are
    never cut off; sibling parts always get distinct names.
    """
    suffix = f" ({part_index.label()})" if part_index is not None else ""
    reserved = len(f"{suffix}{extension}".encode("utf-8"))
    base = sanitize_filename(base_title, max_bytes=_MAX_FILENAME_BYTES - reserved)
    return f"{base}{suffix}{extension}"
