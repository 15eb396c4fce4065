"""Tests for the local filesystem host."""

from __future__ import annotations

from pathlib import Path

import pytest

from sopsview.host import FilesystemError, LocalHost, same_file


class TestLocalHost:
    """Tests for LocalHost file operations and visibility."""

    def test_read_write(self, tmp_path: Path):
        host = LocalHost()
        path = tmp_path / "a.yaml"
        host.write_file(path, b"a: 1\n")
        assert host.exists(path)
        assert host.read_file(path) == b"a: 1\n"
        assert host.mtime(path) == path.stat().st_mtime

    def test_errors_are_wrapped(self, tmp_path: Path):
        host = LocalHost()
        missing = tmp_path / "missing.yaml"
        with pytest.raises(FilesystemError, match="Cannot read"):
            host.read_file(missing)
        with pytest.raises(FilesystemError, match="Cannot stat"):
            host.mtime(missing)
        with pytest.raises(FilesystemError, match="Cannot delete") as excinfo:
            host.delete_file(missing)
        assert isinstance(excinfo.value.cause, FileNotFoundError)
        with pytest.raises(FilesystemError, match="Cannot write"):
            host.write_file(tmp_path / "no-such-dir" / "a.yaml", b"")

    def test_delete(self, tmp_path: Path):
        host = LocalHost()
        path = tmp_path / "a.yaml"
        path.write_text("a: 1\n")
        host.delete_file(path)
        assert not host.exists(path)

    def test_visibility(self, tmp_path: Path):
        a = tmp_path / "a.yaml"
        host = LocalHost(visible=[a])
        host.show_document(a)
        host.show_document(tmp_path / "b.yaml")
        assert host.visible_documents() == [a, tmp_path / "b.yaml"]

        host.hide_document(a)
        assert host.visible_documents() == [tmp_path / "b.yaml"]

    def test_show_error_logs(self, caplog):
        LocalHost().show_error("sops failed")
        assert "sops failed" in caplog.text


def test_same_file(tmp_path: Path):
    (tmp_path / "x").mkdir()
    assert same_file(tmp_path / "a.yaml", tmp_path / "x" / ".." / "a.yaml")
    assert not same_file(tmp_path / "a.yaml", tmp_path / "b.yaml")
