"""
ComicInfo.xml parsing.

The sidecar is read as an incremental event stream. Parsing is tolerant:
unknown elements are ignored, and when the document turns out not to be
well-formed the loop stops and whatever fields were already recovered are
returned. This function never raises.
"""

import logging
from typing import Dict
from xml.etree import ElementTree

from .models import Descriptor

logger = logging.getLogger(__name__)

SIDECAR_NAME = "ComicInfo.xml"

# ComicInfo element -> Descriptor field
_FIELD_MAP: Dict[str, str] = {
    "Title": "title",
    "Series": "series",
    "Writer": "writer",
    "Number": "number",
    "LanguageISO": "language",
}

_FEED_CHUNK = 4096


def _local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an element tag."""
    return tag.rsplit("}", 1)[-1]


def parse_comicinfo(data: bytes) -> Descriptor:
    """
    Parse ComicInfo.xml bytes into a Descriptor.

    Args:
        data: Raw sidecar bytes

    Returns:
        Descriptor with the fields found before end of document or the
        first well-formedness error
    """
    found: Dict[str, str] = {}
    parser = ElementTree.XMLPullParser(events=("end",))

    try:
        for start in range(0, len(data), _FEED_CHUNK):
            parser.feed(data[start:start + _FEED_CHUNK])
            _collect(parser, found)
        parser.close()
        _collect(parser, found)
    except ElementTree.ParseError as e:
        logger.warning(
            f"Malformed {SIDECAR_NAME}, keeping {len(found)} field(s) parsed before the error: {e}"
        )

    return Descriptor(**found)


def _collect(parser: ElementTree.XMLPullParser, found: Dict[str, str]) -> None:
    """Drain pending events into ``found``. First non-empty value wins."""
    for _event, element in parser.read_events():
        field_name = _FIELD_MAP.get(_local_name(element.tag))
        if field_name is None or field_name in found:
            continue
        text = "".join(element.itertext()).strip()
        if text:
            found[field_name] = text
