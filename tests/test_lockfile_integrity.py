"""Tests for the lockfile integrity checker."""

import hashlib

from resolution.integrity import LockfileStatus, check_lockfile
from state.lockfile import LockEntry


def _lock(mod_id, file_name, content):
    return LockEntry(
        id=mod_id,
        name=None,
        download_url="https://cdn.example/" + file_name,
        file_name=file_name,
        hash=hashlib.sha1(content).hexdigest(),
        released_on="2024-01-01T00:00:00Z",
    )


class TestCheckLockfile:
    """Test the two independent passes."""

    def test_clean_directory(self, tmp_path):
        """Test matching files produce no errors."""
        (tmp_path / "a.jar").write_bytes(b"aaa")
        assert check_lockfile(str(tmp_path), [_lock("a", "a.jar", b"aaa")]) == []

    def test_untracked_file(self, tmp_path):
        """Test a file absent from the lockfile yields exactly one NOT_TRACKED."""
        (tmp_path / "a.jar").write_bytes(b"aaa")
        (tmp_path / "extra.jar").write_bytes(b"zzz")

        errors = check_lockfile(str(tmp_path), [_lock("a", "a.jar", b"aaa")])

        assert len(errors) == 1
        assert errors[0].status is LockfileStatus.NOT_TRACKED
        assert errors[0].file == str(tmp_path / "extra.jar")
        assert errors[0].entry is None

    def test_deleted_file(self, tmp_path):
        """Test a lock entry whose file was deleted yields exactly one NOT_EXISTS."""
        entry = _lock("a", "a.jar", b"aaa")

        errors = check_lockfile(str(tmp_path), [entry])

        assert len(errors) == 1
        assert errors[0].status is LockfileStatus.NOT_EXISTS
        assert errors[0].entry is entry

    def test_checksum_mismatch(self, tmp_path):
        """Test a tampered file is reported with its entry."""
        (tmp_path / "a.jar").write_bytes(b"tampered")
        entry = _lock("a", "a.jar", b"aaa")

        errors = check_lockfile(str(tmp_path), [entry])

        assert [(e.status, e.entry) for e in errors] == [(LockfileStatus.CHECKSUM_MISMATCH, entry)]

    def test_passes_are_independent(self, tmp_path):
        """Test an untracked file and an unrelated missing entry are both reported, in pass order."""
        (tmp_path / "b.jar").write_bytes(b"bbb")

        errors = check_lockfile(str(tmp_path), [_lock("a", "a.jar", b"aaa")])

        assert [e.status for e in errors] == [LockfileStatus.NOT_TRACKED, LockfileStatus.NOT_EXISTS]

    def test_missing_directory(self, tmp_path):
        """Test a missing mods directory only reports missing entries."""
        errors = check_lockfile(str(tmp_path / "mods"), [_lock("a", "a.jar", b"aaa")])
        assert [e.status for e in errors] == [LockfileStatus.NOT_EXISTS]

    def test_ignores_non_archives(self, tmp_path):
        """Test only *.jar files are considered."""
        (tmp_path / "notes.txt").write_text("hello", encoding="utf-8")
        assert check_lockfile(str(tmp_path), []) == []
