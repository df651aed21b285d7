"""
Tests for filesystem scanning.
"""

import os

import pytest

from cbzdrop.watchfolders.models import WatchFolder
from cbzdrop.watchfolders.scanner import FileScanner


def _touch(path, data=b"x"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


class TestFileScanner:

    def test_recursive_sorted_matches(self, tmp_path):
        b = _touch(tmp_path / "B" / "vol2.cbz")
        a = _touch(tmp_path / "A" / "vol1.cbz")
        top = _touch(tmp_path / "top.cbz")

        found = FileScanner().scan(WatchFolder(path=str(tmp_path)))

        assert found == sorted([a.resolve(), b.resolve(), top.resolve()])

    def test_extension_is_case_sensitive(self, tmp_path):
        _touch(tmp_path / "upper.CBZ")
        _touch(tmp_path / "other.zip")
        keep = _touch(tmp_path / "lower.cbz")

        found = FileScanner().scan(WatchFolder(path=str(tmp_path)))

        assert found == [keep.resolve()]

    def test_hidden_files_and_dirs_skipped(self, tmp_path):
        _touch(tmp_path / ".partial.cbz")
        _touch(tmp_path / ".cache" / "vol.cbz")

        assert FileScanner().scan(WatchFolder(path=str(tmp_path))) == []

    def test_excluded_dirs_skipped(self, tmp_path):
        _touch(tmp_path / "cbzdrop_output" / "run" / "vol.cbz")
        keep = _touch(tmp_path / "vol.cbz")

        folder = WatchFolder(path=str(tmp_path), excluded_dirs=["cbzdrop_output"])

        assert FileScanner().scan(folder) == [keep.resolve()]

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
    def test_symlinks_skipped(self, tmp_path):
        target = _touch(tmp_path / "real" / "vol.cbz")
        (tmp_path / "link.cbz").symlink_to(target)

        found = FileScanner().scan(WatchFolder(path=str(tmp_path)))

        assert found == [target.resolve()]

    def test_missing_folder_yields_nothing(self, tmp_path):
        folder = WatchFolder(path=str(tmp_path / "gone"))
        assert FileScanner().scan(folder) == []


class TestWatchFolderModel:

    def test_relative_path_rejected(self):
        with pytest.raises(ValueError):
            WatchFolder(path="relative/dir")

    def test_extension_must_start_with_dot(self, tmp_path):
        with pytest.raises(ValueError):
            WatchFolder(path=str(tmp_path), extension="cbz")
