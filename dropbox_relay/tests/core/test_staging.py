from pathlib import Path
from unittest.mock import patch

import pytest

from dropbox_relay.core.staging import StagingScope


def test_registered_files_are_removed_on_exit(tmp_path: Path) -> None:
    first = tmp_path / "a.wav"
    second = tmp_path / "b.wav"
    first.write_bytes(b"a")
    second.write_bytes(b"b")

    with StagingScope() as staging:
        staging.register(first)
        staging.register(str(second))

    assert not first.exists()
    assert not second.exists()


def test_files_are_removed_when_scope_exits_with_error(tmp_path: Path) -> None:
    staged = tmp_path / "a.wav"
    staged.write_bytes(b"a")

    with pytest.raises(RuntimeError, match="boom"), StagingScope() as staging:
        staging.register(staged)
        raise RuntimeError("boom")

    assert not staged.exists()


def test_missing_files_are_ignored(tmp_path: Path) -> None:
    with StagingScope() as staging:
        staging.register(tmp_path / "never-written.zip")

    assert staging.paths == ()


def test_release_failure_is_reported_not_raised(tmp_path: Path) -> None:
    staged = tmp_path / "locked.wav"
    other = tmp_path / "other.wav"
    staged.write_bytes(b"a")
    other.write_bytes(b"b")
    staging = StagingScope()
    staging.register(staged)
    staging.register(other)
    original_unlink = Path.unlink

    def flaky_unlink(self: Path, missing_ok: bool = False) -> None:
        if self == staged:
            raise PermissionError("locked")
        original_unlink(self, missing_ok=missing_ok)

    with patch.object(Path, "unlink", flaky_unlink):
        failed = staging.release()

    assert failed == [staged]
    assert not other.exists()


def test_register_after_release_raises(tmp_path: Path) -> None:
    staging = StagingScope()
    staging.release()

    with pytest.raises(RuntimeError, match="already released"):
        staging.register(tmp_path / "late.zip")


def test_register_deduplicates_paths(tmp_path: Path) -> None:
    staging = StagingScope()
    staging.register(tmp_path / "a.zip")
    staging.register(tmp_path / "a.zip")

    assert staging.paths == (tmp_path / "a.zip",)
