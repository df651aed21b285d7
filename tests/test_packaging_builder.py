"""
Tests for the EPUB package builder.
"""

import os
import sys
import zipfile
from unittest.mock import patch
from xml.etree import ElementTree

import pytest

from cbzdrop.archive.models import Descriptor
from cbzdrop.packaging.builder import EPUB_MEDIA_TYPE, PackageBuilder, build_package
from cbzdrop.packaging.errors import PackagingError
from cbzdrop.packaging.models import PackagePlan, PartIndex

from conftest import image_asset

OPF_NS = {"opf": "http://www.idpf.org/2007/opf", "dc": "http://purl.org/dc/elements/1.1/"}


def _plan(count=3, part_index=None):
    assets = [image_asset(f"{i:03d}.jpg", 100 + i) for i in range(1, count + 1)]
    return PackagePlan(assets=assets, part_index=part_index)


def _opf(epub_path):
    with zipfile.ZipFile(epub_path) as zf:
        return ElementTree.fromstring(zf.read("OEBPS/content.opf"))


class TestPackageLayout:

    def test_mimetype_first_and_stored(self, tmp_path):
        built = PackageBuilder(tmp_path).build(_plan(), "Vol 01")

        with zipfile.ZipFile(built.path) as zf:
            first = zf.infolist()[0]
            assert first.filename == "mimetype"
            assert first.compress_type == zipfile.ZIP_STORED
            assert zf.read("mimetype").decode("ascii") == EPUB_MEDIA_TYPE
            names = zf.namelist()

        assert "META-INF/container.xml" in names
        assert "OEBPS/nav.xhtml" in names
        assert "OEBPS/toc.ncx" in names

    def test_pages_in_plan_order(self, tmp_path):
        plan = _plan(3)

        built = PackageBuilder(tmp_path).build(plan, "Vol 01")

        with zipfile.ZipFile(built.path) as zf:
            images = [zf.read(f"OEBPS/images/p{n:04d}.jpg") for n in (1, 2, 3)]
        assert images == [asset.data for asset in plan.assets]
        assert built.page_count == 3

        opf = _opf(built.path)
        spine = [item.get("idref") for item in opf.findall("opf:spine/opf:itemref", OPF_NS)]
        assert spine == ["page0001", "page0002", "page0003"]

    def test_first_image_is_cover(self, tmp_path):
        built = PackageBuilder(tmp_path).build(_plan(), "Vol 01")

        opf = _opf(built.path)
        covers = [
            item.get("href")
            for item in opf.findall("opf:manifest/opf:item", OPF_NS)
            if item.get("properties") == "cover-image"
        ]
        assert covers == ["images/p0001.jpg"]


class TestPackageMetadata:

    def test_fallback_title_and_unknown_author(self, tmp_path):
        built = PackageBuilder(tmp_path).build(_plan(), "Vol 01")

        opf = _opf(built.path)
        assert opf.findtext("opf:metadata/dc:title", namespaces=OPF_NS) == "Vol 01"
        assert opf.findtext("opf:metadata/dc:creator", namespaces=OPF_NS) == "Unknown"
        assert opf.findtext("opf:metadata/dc:language", namespaces=OPF_NS) == "en"
        assert built.title == "Vol 01"

    def test_descriptor_metadata(self, tmp_path):
        descriptor = Descriptor(series="Foo", title="Bar", writer="Jane Doe", language="ja")

        built = PackageBuilder(tmp_path).build(_plan(), "Vol 01", descriptor)

        opf = _opf(built.path)
        assert opf.findtext("opf:metadata/dc:title", namespaces=OPF_NS) == "Foo - Bar"
        assert opf.findtext("opf:metadata/dc:creator", namespaces=OPF_NS) == "Jane Doe"
        assert opf.findtext("opf:metadata/dc:language", namespaces=OPF_NS) == "ja"

    def test_part_titles_and_files_are_distinct(self, tmp_path):
        builder = PackageBuilder(tmp_path)

        first = builder.build(_plan(part_index=PartIndex(index=1, total=2)), "Vol 01")
        second = builder.build(_plan(part_index=PartIndex(index=2, total=2)), "Vol 01")

        assert first.title == "Vol 01 (Part 1 of 2)"
        assert second.title == "Vol 01 (Part 2 of 2)"
        assert first.path != second.path

        first_id = _opf(first.path).findtext("opf:metadata/dc:identifier", namespaces=OPF_NS)
        second_id = _opf(second.path).findtext("opf:metadata/dc:identifier", namespaces=OPF_NS)
        assert first_id != second_id

    def test_special_characters_are_escaped(self, tmp_path):
        built = PackageBuilder(tmp_path).build(_plan(), "Tom & Jerry <3>")

        opf = _opf(built.path)
        assert opf.findtext("opf:metadata/dc:title", namespaces=OPF_NS) == "Tom & Jerry <3>"


class TestLongTitles:

    def test_long_title_parts_get_distinct_files(self, tmp_path):
        descriptor = Descriptor(series="S" * 100, title="T" * 100)
        builder = PackageBuilder(tmp_path)

        built = [
            builder.build(_plan(part_index=PartIndex(index=i, total=2)), "Vol 01", descriptor)
            for i in (1, 2)
        ]

        paths = [package.path for package in built]
        assert len(set(paths)) == 2
        assert paths[0].endswith(" (Part 1 of 2).epub")
        assert paths[1].endswith(" (Part 2 of 2).epub")
        assert sorted(p.name for p in tmp_path.iterdir()) == sorted(
            os.path.basename(p) for p in paths
        )

    def test_long_non_ascii_title_fits_filesystem_limit(self, tmp_path):
        built = PackageBuilder(tmp_path).build(_plan(), "Vol 01", Descriptor(title="漫" * 100))

        assert len(os.path.basename(built.path).encode("utf-8")) <= 255
        assert built.title == "漫" * 100


class TestBuildFailures:

    def test_empty_plan_raises(self, tmp_path):
        with pytest.raises(PackagingError):
            PackageBuilder(tmp_path).build(PackagePlan(assets=[]), "Vol 01")

    def test_missing_output_dir_raises(self, tmp_path):
        with pytest.raises(PackagingError):
            PackageBuilder(tmp_path / "missing").build(_plan(), "Vol 01")

    def test_failed_write_leaves_no_files(self, tmp_path):
        with patch("cbzdrop.packaging.builder._write_epub", side_effect=OSError("disk full")):
            with pytest.raises(PackagingError) as exc_info:
                PackageBuilder(tmp_path).build(_plan(), "Vol 01")

        assert "disk full" in str(exc_info.value)
        assert list(tmp_path.iterdir()) == []


class TestFilePermissions:

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions only")
    def test_package_follows_umask(self, tmp_path):
        previous = os.umask(0o022)
        try:
            built = PackageBuilder(tmp_path).build(_plan(), "Vol 01")
        finally:
            os.umask(previous)

        assert os.stat(built.path).st_mode & 0o777 == 0o644


class TestBuildPackage:

    def test_returns_written_path(self, tmp_path):
        path = build_package(_plan(), "Vol 01", None, tmp_path)

        assert path.exists()
        assert path.name == "Vol 01.epub"
        assert zipfile.is_zipfile(path)
