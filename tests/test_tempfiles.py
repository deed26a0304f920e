"""Tests for scoped temporary artifacts."""

import pytest

from tubemp3.utils.tempfiles import temporary_artifact


class TestTemporaryArtifact:
    def test_created_with_prefix_and_removed(self, tmp_path):
        with temporary_artifact(tmp_path, "AAAAAAAAAAA", ".webm") as path:
            assert path.exists()
            assert path.parent == tmp_path
            assert path.name.startswith("AAAAAAAAAAA_")
            assert path.suffix == ".webm"
            path.write_bytes(b"data")
        assert not path.exists()

    def test_removed_on_exception(self, tmp_path):
        with pytest.raises(RuntimeError), temporary_artifact(tmp_path, "vid") as path:
            path.write_bytes(b"partial")
            raise RuntimeError("boom")
        assert not path.exists()
        assert list(tmp_path.iterdir()) == []

    def test_already_deleted_is_fine(self, tmp_path):
        with temporary_artifact(tmp_path, "vid") as path:
            path.unlink()
        assert not path.exists()

    def test_concurrent_names_do_not_collide(self, tmp_path):
        with (
            temporary_artifact(tmp_path, "vid") as first,
            temporary_artifact(tmp_path, "vid") as second,
        ):
            assert first != second
        assert list(tmp_path.iterdir()) == []

    def test_creates_directory(self, tmp_path):
        target = tmp_path / "nested" / "dir"
        with temporary_artifact(target, "vid") as path:
            assert path.parent == target
