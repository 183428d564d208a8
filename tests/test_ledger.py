"""Tests for the version ledger."""

import json
import pytest
from unittest.mock import patch

import portalocker

from blobframe.errors import InvalidVersionError, LedgerCorruptionError, LedgerError, LedgerLockError
from blobframe.ledger import VersionEntry, VersionLedger, increment_version


class TestIncrementVersion:
    """Version bump rules."""

    @pytest.mark.parametrize("current,expected", [
        ("0.1.0", "0.1.1"),
        ("1.2.9", "1.2.10"),
        ("1.2", "1.2.1"),
        ("1", "1.0.1"),
        ("1.2.3.4", "1.2.4"),
    ])
    def test_increment(self, current, expected):
        assert increment_version(current) == expected

    def test_non_integer_patch(self):
        with pytest.raises(InvalidVersionError) as exc_info:
            increment_version("1.2.beta")
        assert exc_info.value.version == "1.2.beta"


class TestVersionLedger:
    """Persisted identity -> version history."""

    def test_missing_file_is_empty(self, ledger):
        assert ledger.load() == {}
        assert ledger.get("a.tar") is None

    def test_first_version_is_seed(self, ledger):
        assert ledger.next_version("a.tar") == "0.1.0"

    def test_manual_override_verbatim(self, ledger):
        ledger.record("a.tar", "0.1.0")
        assert ledger.next_version("a.tar", "2.0.0-rc1") == "2.0.0-rc1"

    def test_empty_override_counts_as_absent(self, ledger):
        ledger.record("a.tar", "0.1.0")
        assert ledger.next_version("a.tar", "") == "0.1.1"

    def test_upload_sequence(self, ledger):
        """Three recorded uploads step 0.1.0 -> 0.1.1 -> 0.1.2."""
        for expected in ["0.1.0", "0.1.1", "0.1.2"]:
            version = ledger.next_version("dist/app.tar")
            assert version == expected
            ledger.record("dist/app.tar", version)

        entry = ledger.get("dist/app.tar")
        assert entry.last_version == "0.1.2"
        assert entry.upload_count == 3

    def test_next_version_does_not_mutate(self, ledger):
        ledger.next_version("a.tar")
        ledger.next_version("a.tar")
        assert not ledger.path.exists()

    def test_manual_version_recorded_then_incremented(self, ledger):
        ledger.record("a.tar", ledger.next_version("a.tar", "5.0.0"))
        assert ledger.next_version("a.tar") == "5.0.1"

    def test_identities_are_independent(self, ledger):
        ledger.record("a.tar", "0.1.0")
        ledger.record("a.tar", "0.1.1")
        ledger.record("b.tar", "0.1.0")

        assert ledger.get("a.tar").upload_count == 2
        assert ledger.get("b.tar").upload_count == 1
        assert ledger.next_version("./a.tar") == "0.1.0"

    def test_file_format(self, ledger):
        """Persisted as pretty-printed JSON with camelCase keys."""
        ledger.record("a.tar", "0.1.0")

        text = ledger.path.read_text()
        data = json.loads(text)

        assert text.startswith("{\n  ")
        assert set(data["a.tar"]) == {"lastVersion", "lastUpdated", "uploadCount"}
        assert data["a.tar"]["lastVersion"] == "0.1.0"
        assert data["a.tar"]["uploadCount"] == 1
        assert data["a.tar"]["lastUpdated"].endswith("Z")

    def test_reads_existing_file(self, tmp_path):
        path = tmp_path / "versions.json"
        path.write_text(json.dumps({
            "app.tar": {
                "lastVersion": "0.1",
                "lastUpdated": "2025-08-26T02:51:17.317Z",
                "uploadCount": 4,
            }
        }))
        ledger = VersionLedger(path)

        assert ledger.next_version("app.tar") == "0.1.1"
        entry = ledger.record("app.tar", "0.1.1")
        assert entry.upload_count == 5
        assert entry.last_updated != "2025-08-26T02:51:17.317Z"

    def test_record_survives_new_instance(self, ledger):
        ledger.record("a.tar", "0.1.0")
        assert VersionLedger(ledger.path).get("a.tar").last_version == "0.1.0"

    def test_entries_sorted(self, ledger):
        ledger.record("b", "0.1.0")
        ledger.record("a", "0.1.0")
        assert list(ledger.entries()) == ["a", "b"]

    def test_save_overwrites(self, ledger):
        ledger.record("a.tar", "0.1.0")
        ledger.save({"b.tar": VersionEntry(last_version="1.0.0")})
        assert list(ledger.load()) == ["b.tar"]

    def test_record_takes_lock(self, ledger):
        with patch("portalocker.Lock") as mock_lock:
            ledger.record("a.tar", "0.1.0")

        mock_lock.assert_called_once()
        assert mock_lock.call_args[0][0] == str(ledger.lock_path)

    def test_lock_timeout(self, ledger):
        """A held lock surfaces as a ledger error and leaves the file untouched."""
        ledger.record("a.tar", "0.1.0")

        with patch("portalocker.Lock", side_effect=portalocker.exceptions.LockException("timeout")):
            with pytest.raises(LedgerLockError) as exc_info:
                ledger.record("a.tar", "0.1.1")

        assert isinstance(exc_info.value, LedgerError)
        assert isinstance(exc_info.value.__cause__, portalocker.exceptions.LockException)
        assert str(ledger.lock_path) in str(exc_info.value)
        assert ledger.load()["a.tar"].last_version == "0.1.0"


class TestLedgerCorruption:
    """Unreadable ledger files."""

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"a": {"uploadCount": 1}}'])
    def test_lenient_treats_corrupt_as_empty(self, tmp_path, content, caplog):
        path = tmp_path / "versions.json"
        path.write_text(content)
        ledger = VersionLedger(path)

        assert ledger.load() == {}
        assert ledger.next_version("a") == "0.1.0"
        assert "Could not load version data" in caplog.text

    def test_lenient_record_replaces_corrupt_file(self, tmp_path):
        path = tmp_path / "versions.json"
        path.write_text("{not json")
        ledger = VersionLedger(path)

        ledger.record("a.tar", "0.1.0")

        assert json.loads(path.read_text())["a.tar"]["uploadCount"] == 1

    def test_strict_raises(self, tmp_path):
        path = tmp_path / "versions.json"
        path.write_text("{not json")
        ledger = VersionLedger(path, strict=True)

        with pytest.raises(LedgerCorruptionError) as exc_info:
            ledger.load()
        assert exc_info.value.path == str(path)

    def test_strict_record_leaves_file_alone(self, tmp_path):
        path = tmp_path / "versions.json"
        path.write_text("{not json")
        ledger = VersionLedger(path, strict=True)

        with pytest.raises(LedgerCorruptionError):
            ledger.record("a.tar", "0.1.0")
        assert path.read_text() == "{not json"

    def test_invalid_recorded_version(self, tmp_path):
        path = tmp_path / "versions.json"
        path.write_text(json.dumps({"a": {"lastVersion": "1.0.x", "uploadCount": 1}}))

        with pytest.raises(InvalidVersionError):
            VersionLedger(path).next_version("a")
