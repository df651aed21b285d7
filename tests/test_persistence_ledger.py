"""
Tests for the append-only processed ledger.
"""

import threading
from unittest.mock import patch

import pytest

from cbzdrop.persistence.errors import LedgerError
from cbzdrop.persistence.ledger import ProcessedLedger, default_ledger_path


@pytest.fixture
def ledger(tmp_path):
    return ProcessedLedger(tmp_path / "cache" / "processed.txt")


class TestMembership:

    def test_new_ledger_is_empty(self, ledger):
        assert not ledger.has_processed("/comics/vol.cbz")
        assert ledger.entries() == set()

    def test_mark_then_has(self, ledger):
        assert ledger.mark_processed("/comics/vol.cbz") is True
        assert ledger.has_processed("/comics/vol.cbz")

    def test_mark_is_idempotent(self, ledger):
        ledger.mark_processed("/comics/vol.cbz")

        assert ledger.mark_processed("/comics/vol.cbz") is False
        assert ledger.ledger_path.read_text(encoding="utf-8").splitlines() == ["/comics/vol.cbz"]

    def test_exact_match_not_substring(self, ledger):
        ledger.mark_processed("/comics/Vol 10.cbz")

        assert not ledger.has_processed("/comics/Vol 1")
        assert not ledger.has_processed("Vol 10.cbz")

    def test_entries_survive_restart(self, tmp_path):
        path = tmp_path / "processed.txt"
        ProcessedLedger(path).mark_processed("/comics/a.cbz")

        reopened = ProcessedLedger(path)

        assert reopened.has_processed("/comics/a.cbz")

    def test_non_ascii_names(self, ledger):
        ledger.mark_processed("/comics/ワンピース 01.cbz")
        assert ledger.has_processed("/comics/ワンピース 01.cbz")

    @pytest.mark.parametrize("bad", ["", "a\nb", "a\rb"])
    def test_invalid_names_rejected(self, ledger, bad):
        with pytest.raises(ValueError):
            ledger.mark_processed(bad)


class TestClaim:

    def test_claim_marks(self, ledger):
        assert ledger.claim("/comics/vol.cbz") is True
        assert ledger.claim("/comics/vol.cbz") is False
        assert ledger.has_processed("/comics/vol.cbz")

    def test_concurrent_claims_admit_exactly_one(self, ledger):
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(ledger.claim("/comics/vol.cbz"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert len(ledger.ledger_path.read_text(encoding="utf-8").splitlines()) == 1


class TestFailClosed:

    def test_unreadable_ledger_answers_false(self, ledger):
        ledger.mark_processed("/comics/vol.cbz")

        with patch("pathlib.Path.read_text", side_effect=OSError("permission denied")):
            assert ledger.has_processed("/comics/vol.cbz") is False

    def test_unreadable_ledger_claim_lets_archive_through(self, ledger):
        ledger.mark_processed("/comics/vol.cbz")

        with patch("pathlib.Path.read_text", side_effect=OSError("permission denied")):
            assert ledger.claim("/comics/vol.cbz") is True

    def test_failed_append_returns_false(self, ledger):
        with patch("builtins.open", side_effect=OSError("read-only filesystem")):
            assert ledger.mark_processed("/comics/vol.cbz") is False

        assert not ledger.has_processed("/comics/vol.cbz")

    def test_entries_raises_ledger_error(self, ledger):
        ledger.mark_processed("/comics/vol.cbz")

        with patch("pathlib.Path.read_text", side_effect=OSError("permission denied")):
            with pytest.raises(LedgerError):
                ledger.entries()


class TestDefaultPath:

    def test_xdg_cache_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
        assert default_ledger_path() == tmp_path / "cbzdrop" / "processed.txt"

    def test_home_fallback(self, tmp_path, monkeypatch):
        monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
        monkeypatch.delenv("LOCALAPPDATA", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        assert default_ledger_path() == tmp_path / ".cache" / "cbzdrop" / "processed.txt"
