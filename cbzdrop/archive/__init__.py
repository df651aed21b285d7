"""
Archive reading for cbzdrop.

Read-only: source archives are never modified.

Usage:
    from cbzdrop.archive import extract_archive

    extracted = extract_archive("/comics/Series/Volume 01.cbz")
    for image in extracted.images:
        print(image.name, image.media_type)
"""

from .errors import ArchiveError, ExtractionError
from .models import RawEntry, ImageAsset, Descriptor, ExtractedArchive
from .sniffer import (
    GENERIC_MEDIA_TYPE,
    sniff_media_type,
    is_image_type,
    extension_for,
)
from .comicinfo import SIDECAR_NAME, parse_comicinfo
from .extractor import ARCHIVE_EXTENSION, extract_archive

__all__ = [
    # Errors
    "ArchiveError",
    "ExtractionError",
    # Models
    "RawEntry",
    "ImageAsset",
    "Descriptor",
    "ExtractedArchive",
    # Sniffing
    "GENERIC_MEDIA_TYPE",
    "sniff_media_type",
    "is_image_type",
    "extension_for",
    # Metadata
    "SIDECAR_NAME",
    "parse_comicinfo",
    # Extraction
    "ARCHIVE_EXTENSION",
    "extract_archive",
]
