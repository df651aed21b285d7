"""
EPUB 3 package builder.

Assembles one package from a PackagePlan:
- The first asset is the cover image and the first page
- Every remaining asset becomes one XHTML page, in plan order
- content.opf carries title, author, language and identifier metadata
- nav.xhtml (EPUB 3) and toc.ncx (older readers) list the pages

Writes are atomic: the package is built in a temporary file inside the
output directory and renamed into place only after it is complete. A
failed build never leaves a truncated .epub behind.
"""

import logging
import os
import tempfile
import uuid
import zipfile
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple, Union
from xml.sax.saxutils import escape, quoteattr

from ..archive.models import Descriptor, ImageAsset
from ..archive.sniffer import extension_for
from .errors import PackagingError
from .models import BuiltPackage, PackagePlan
from .naming import package_filename, resolve_author, resolve_base_title, resolve_title

logger = logging.getLogger(__name__)

EPUB_MEDIA_TYPE = "application/epub+zip"
DEFAULT_LANGUAGE = "en"
IDENTIFIER_NAMESPACE = uuid.UUID("6f1d3c1e-8f3a-4b8e-9a57-2b0c1f6d9e41")

_CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="OEBPS/content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

_STYLESHEET = """html, body { margin: 0; padding: 0; }
body { text-align: center; }
div.page { height: 100%; }
img { max-width: 100%; max-height: 100vh; height: auto; }
"""

# (manifest id, href, media type, page title) for one page
_PageEntry = Tuple[str, str, str, str]


class PackageBuilder:
    """
    Writes EPUB packages into one output directory.

    Example:
        builder = PackageBuilder(output_dir)
        built = builder.build(plan, fallback_title="Volume 01", descriptor=None)
        print(built.path)
    """

    def __init__(self, output_dir: Union[str, Path], language: str = DEFAULT_LANGUAGE):
        self.output_dir = Path(output_dir)
        self.language = language

    def build(
        self,
        plan: PackagePlan,
        fallback_title: str,
        descriptor: Optional[Descriptor] = None,
    ) -> BuiltPackage:
        """
        Build one package from ``plan``.

        Raises:
            PackagingError: If the plan is empty or the package cannot be written
        """
        if not plan.assets:
            raise PackagingError("Plan contains no images")

        title = resolve_title(descriptor, fallback_title, plan.part_index)
        author = resolve_author(descriptor)
        language = (descriptor.language if descriptor and descriptor.language else self.language)
        output_path = self.output_dir / package_filename(
            resolve_base_title(descriptor, fallback_title), plan.part_index
        )

        if not self.output_dir.is_dir():
            raise PackagingError(
                f"Output directory does not exist: {self.output_dir}", str(output_path)
            )

        self._write_atomic(
            output_path,
            plan.assets,
            title=title,
            author=author,
            language=language,
            series=descriptor.series if descriptor else None,
        )

        size_bytes = output_path.stat().st_size
        logger.info(
            f"Package written: {output_path.name} ({len(plan.assets)} page(s), {size_bytes} bytes)"
        )

        return BuiltPackage(
            path=str(output_path.resolve()),
            title=title,
            part_index=plan.part_index,
            page_count=len(plan.assets),
            size_bytes=size_bytes,
        )

    def _write_atomic(self, output_path: Path, assets: List[ImageAsset], **metadata) -> None:
        """Write the package to a temp file, then rename it into place."""
        fd, temp_name = tempfile.mkstemp(
            prefix=".cbzdrop-", suffix=".epub.tmp", dir=str(self.output_dir)
        )
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                _write_epub(handle, assets, **metadata)
                handle.flush()
                os.fsync(handle.fileno())
            # mkstemp creates 0600; finished packages follow the process umask
            os.chmod(temp_path, 0o666 & ~_current_umask())
            os.replace(temp_path, output_path)
        except Exception as e:
            try:
                temp_path.unlink()
            except FileNotFoundError:
                pass
            raise PackagingError(str(e), str(output_path)) from e


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def build_package(
    plan: PackagePlan,
    fallback_title: str,
    descriptor: Optional[Descriptor],
    output_dir: Union[str, Path],
) -> Path:
    """
    Build one package and return its path.

    Raises:
        PackagingError: If the plan is empty or the package cannot be written
    """
    built = PackageBuilder(output_dir).build(plan, fallback_title, descriptor)
    return Path(built.path)


def _write_epub(
    handle,
    assets: List[ImageAsset],
    title: str,
    author: str,
    language: str,
    series: Optional[str],
) -> None:
    """Serialise the EPUB container into an open binary file handle."""
    images: List[Tuple[str, str, ImageAsset]] = []
    pages: List[_PageEntry] = []

    for number, asset in enumerate(assets, start=1):
        image_href = f"images/p{number:04d}{extension_for(asset.media_type)}"
        images.append((f"img{number:04d}", image_href, asset))
        page_title = "Cover" if number == 1 else f"Page {number}"
        pages.append((f"page{number:04d}", f"pages/p{number:04d}.xhtml", image_href, page_title))

    identifier = uuid.uuid5(IDENTIFIER_NAMESPACE, title).urn

    with zipfile.ZipFile(handle, "w", zipfile.ZIP_DEFLATED) as zf:
        # mimetype must be the first entry and stored uncompressed
        zf.writestr(zipfile.ZipInfo("mimetype"), EPUB_MEDIA_TYPE, compress_type=zipfile.ZIP_STORED)
        zf.writestr("META-INF/container.xml", _CONTAINER_XML)
        zf.writestr("OEBPS/style.css", _STYLESHEET)

        for _item_id, href, asset in images:
            # Images are already compressed
            zf.writestr(f"OEBPS/{href}", asset.data, compress_type=zipfile.ZIP_STORED)

        for _page_id, page_href, image_href, page_title in pages:
            zf.writestr(f"OEBPS/{page_href}", _page_xhtml(page_title, f"../{image_href}", language))

        zf.writestr("OEBPS/nav.xhtml", _nav_xhtml(title, pages, language))
        zf.writestr("OEBPS/toc.ncx", _toc_ncx(title, identifier, pages))
        zf.writestr(
            "OEBPS/content.opf",
            _content_opf(title, author, language, identifier, series, images, pages),
        )


def _page_xhtml(page_title: str, image_src: str, language: str) -> str:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops" xml:lang={quoteattr(language)} lang={quoteattr(language)}>
<head>
  <meta charset="utf-8"/>
  <title>{escape(page_title)}</title>
  <link rel="stylesheet" type="text/css" href="../style.css"/>
</head>
<body>
  <div class="page">
    <img src={quoteattr(image_src)} alt={quoteattr(page_title)}/>
  </div>
</body>
</html>
"""


def _nav_xhtml(title: str, pages: List[_PageEntry], language: str) -> str:
    items = "\n".join(
        f'      <li><a href={quoteattr(page_href)}>{escape(page_title)}</a></li>'
        for _page_id, page_href, _image_href, page_title in pages
    )
    cover_href = pages[0][1]
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops" xml:lang={quoteattr(language)} lang={quoteattr(language)}>
<head>
  <meta charset="utf-8"/>
  <title>{escape(title)}</title>
</head>
<body>
  <nav epub:type="toc" id="toc">
    <h1>{escape(title)}</h1>
    <ol>
{items}
    </ol>
  </nav>
  <nav epub:type="landmarks" hidden="">
    <ol>
      <li><a epub:type="cover" href={quoteattr(cover_href)}>Cover</a></li>
    </ol>
  </nav>
</body>
</html>
"""


def _toc_ncx(title: str, identifier: str, pages: List[_PageEntry]) -> str:
    nav_points = "\n".join(
        f"""    <navPoint id="nav{order}" playOrder="{order}">
      <navLabel><text>{escape(page_title)}</text></navLabel>
      <content src={quoteattr(page_href)}/>
    </navPoint>"""
        for order, (_page_id, page_href, _image_href, page_title) in enumerate(pages, start=1)
    )
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">
  <head>
    <meta name="dtb:uid" content={quoteattr(identifier)}/>
    <meta name="dtb:depth" content="1"/>
    <meta name="dtb:totalPageCount" content="0"/>
    <meta name="dtb:maxPageNumber" content="0"/>
  </head>
  <docTitle><text>{escape(title)}</text></docTitle>
  <navMap>
{nav_points}
  </navMap>
</ncx>
"""


def _content_opf(
    title: str,
    author: str,
    language: str,
    identifier: str,
    series: Optional[str],
    images: List[Tuple[str, str, ImageAsset]],
    pages: List[_PageEntry],
) -> str:
    modified = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    manifest_lines = [
        '    <item id="nav" href="nav.xhtml" media-type="application/xhtml+xml" properties="nav"/>',
        '    <item id="ncx" href="toc.ncx" media-type="application/x-dtbncx+xml"/>',
        '    <item id="css" href="style.css" media-type="text/css"/>',
    ]
    for position, (item_id, href, asset) in enumerate(images):
        properties = ' properties="cover-image"' if position == 0 else ""
        manifest_lines.append(
            f"    <item id={quoteattr(item_id)} href={quoteattr(href)} "
            f"media-type={quoteattr(asset.media_type)}{properties}/>"
        )
    for page_id, page_href, _image_href, _page_title in pages:
        manifest_lines.append(
            f"    <item id={quoteattr(page_id)} href={quoteattr(page_href)} "
            f'media-type="application/xhtml+xml"/>'
        )

    spine_lines = [
        f"    <itemref idref={quoteattr(page_id)}/>"
        for page_id, _page_href, _image_href, _page_title in pages
    ]

    series_meta = ""
    if series:
        series_meta = f"\n    <meta name=\"calibre:series\" content={quoteattr(series)}/>"

    manifest = "\n".join(manifest_lines)
    spine = "\n".join(spine_lines)
    cover_id = images[0][0]
    cover_page_href = pages[0][1]

    return f"""<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="3.0" unique-identifier="book-id" xml:lang={quoteattr(language)}>
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
    <dc:identifier id="book-id">{escape(identifier)}</dc:identifier>
    <dc:title>{escape(title)}</dc:title>
    <dc:creator>{escape(author)}</dc:creator>
    <dc:language>{escape(language)}</dc:language>
    <meta property="dcterms:modified">{modified}</meta>
    <meta name="cover" content={quoteattr(cover_id)}/>{series_meta}
  </metadata>
  <manifest>
{manifest}
  </manifest>
  <spine toc="ncx">
{spine}
  </spine>
  <guide>
    <reference type="cover" title="Cover" href={quoteattr(cover_page_href)}/>
  </guide>
</package>
"""
