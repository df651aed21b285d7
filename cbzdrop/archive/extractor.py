"""
CBZ extraction.

Opens a ZIP container, reads every entry into memory, and classifies each
entry by content. The ComicInfo.xml sidecar is routed to the metadata
parser; image entries are retained; anything else is dropped and reported.

Retained images are sorted by entry name. That order is the page order.
"""

import logging
import zipfile
import zlib
from pathlib import Path
from typing import List, Optional, Union

from .comicinfo import SIDECAR_NAME, parse_comicinfo
from .errors import ExtractionError
from .models import Descriptor, ExtractedArchive, ImageAsset, RawEntry
from .sniffer import is_image_type, sniff_media_type

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = ".cbz"


def extract_archive(filepath: Union[str, Path]) -> ExtractedArchive:
    """
    Extract page images and metadata from a CBZ archive.

    Args:
        filepath: Path to the archive

    Returns:
        ExtractedArchive with images sorted by name (possibly empty)

    Raises:
        ExtractionError: If the container cannot be opened or an entry
            cannot be read
    """
    path = Path(filepath)
    path_str = str(path)

    if not path.exists():
        raise ExtractionError(path_str, "File does not exist")
    if not path.is_file():
        raise ExtractionError(path_str, "Path is not a file")

    logger.info(f"Extracting archive: {path.name}")

    try:
        entries = _read_entries(path)
    except zipfile.BadZipFile as e:
        raise ExtractionError(path_str, f"Not a valid ZIP container: {e}") from e
    except (zipfile.LargeZipFile, NotImplementedError, RuntimeError, zlib.error) as e:
        raise ExtractionError(path_str, f"Unreadable entry: {e}") from e
    except OSError as e:
        raise ExtractionError(path_str, f"I/O error: {e}") from e

    images: List[ImageAsset] = []
    skipped: List[str] = []
    descriptor: Optional[Descriptor] = None

    for entry in entries:
        if entry.name == SIDECAR_NAME:
            if descriptor is None:
                descriptor = parse_comicinfo(entry.data)
            else:
                logger.warning(f"Ignoring additional {SIDECAR_NAME} in {path.name}")
            continue

        media_type = sniff_media_type(entry.data)
        if not is_image_type(media_type):
            logger.info(f"Skipping non-image entry: {entry.name} ({media_type})")
            skipped.append(entry.name)
            continue

        images.append(
            ImageAsset(name=entry.name, data=entry.data, media_type=media_type)
        )

    images.sort(key=lambda image: image.name)

    if not images:
        logger.warning(f"No images found in archive: {path.name}")
    else:
        logger.info(f"Extracted {len(images)} image(s) from {path.name}")

    return ExtractedArchive(
        source_path=path_str,
        images=images,
        descriptor=descriptor,
        skipped=skipped,
    )


def _read_entries(path: Path) -> List[RawEntry]:
    """Read every file entry of the container into memory, in stored order."""
    entries: List[RawEntry] = []
    with zipfile.ZipFile(path, "r") as zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            entries.append(RawEntry(name=info.filename, data=zf.read(info)))
    return entries
