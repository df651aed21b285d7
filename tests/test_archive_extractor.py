"""
Tests for CBZ extraction.
"""

import zipfile

import pytest

from cbzdrop.archive.errors import ExtractionError
from cbzdrop.archive.extractor import extract_archive

from conftest import comicinfo_xml, jpeg_bytes, png_bytes


class TestExtractArchive:

    def test_images_sorted_by_name(self, make_cbz):
        archive = make_cbz(
            "Series/Vol 01.cbz",
            {
                "003.jpg": jpeg_bytes(40),
                "001.jpg": jpeg_bytes(50),
                "002.png": png_bytes(60),
            },
        )

        extracted = extract_archive(archive)

        assert [image.name for image in extracted.images] == ["001.jpg", "002.png", "003.jpg"]
        assert [image.media_type for image in extracted.images] == [
            "image/jpeg", "image/png", "image/jpeg"
        ]
        assert extracted.descriptor is None
        assert extracted.total_bytes == 150

    def test_classification_ignores_entry_names(self, make_cbz):
        archive = make_cbz(
            "a.cbz",
            {
                "cover.txt": png_bytes(40),
                "notes.jpg": b"plain text, not an image",
            },
        )

        extracted = extract_archive(archive)

        assert [image.name for image in extracted.images] == ["cover.txt"]
        assert extracted.skipped == ["notes.jpg"]

    def test_comicinfo_is_parsed_not_kept_as_page(self, make_cbz):
        archive = make_cbz(
            "a.cbz",
            {
                "ComicInfo.xml": comicinfo_xml(Series="Foo", Title="Bar"),
                "001.jpg": jpeg_bytes(),
            },
        )

        extracted = extract_archive(archive)

        assert extracted.descriptor is not None
        assert extracted.descriptor.series == "Foo"
        assert extracted.descriptor.title == "Bar"
        assert len(extracted.images) == 1
        assert extracted.skipped == []

    def test_first_sidecar_wins(self, tmp_path):
        path = tmp_path / "dup.cbz"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("ComicInfo.xml", comicinfo_xml(Title="First"))
            zf.writestr("001.jpg", jpeg_bytes())
            with pytest.warns(UserWarning):
                zf.writestr("ComicInfo.xml", comicinfo_xml(Title="Second"))

        extracted = extract_archive(path)

        assert extracted.descriptor.title == "First"

    def test_directories_are_skipped(self, tmp_path):
        path = tmp_path / "dirs.cbz"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("pages/", b"")
            zf.writestr("pages/001.jpg", jpeg_bytes())

        extracted = extract_archive(path)

        assert [image.name for image in extracted.images] == ["pages/001.jpg"]

    def test_no_images_yields_empty_list(self, make_cbz):
        archive = make_cbz("empty.cbz", {"readme.txt": b"hello"})

        extracted = extract_archive(archive)

        assert extracted.images == []

    def test_not_a_zip_raises(self, tmp_path):
        path = tmp_path / "broken.cbz"
        path.write_bytes(b"this is not a zip archive")

        with pytest.raises(ExtractionError) as exc_info:
            extract_archive(path)

        assert exc_info.value.filepath == str(path)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ExtractionError):
            extract_archive(tmp_path / "missing.cbz")

    def test_directory_path_raises(self, tmp_path):
        with pytest.raises(ExtractionError):
            extract_archive(tmp_path)
