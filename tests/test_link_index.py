"""Tests for filesystem enumeration helpers."""

import os

import pytest

from link_index import FileType, is_symlink, link_count, scan_hardlinks, walk_tree


class TestWalkTree:
    def test_yields_root_and_descendants(self, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "a").write_bytes(b"abc")
        (tmp_path / "b").write_bytes(b"")
        (tmp_path / "ln").symlink_to(tmp_path / "b")

        entries = {e.path.relative_to(tmp_path).as_posix(): e for e in walk_tree(tmp_path)}

        assert set(entries) == {".", "sub", "sub/a", "b", "ln"}
        assert entries["."].file_type is FileType.DIR
        assert entries["sub/a"].file_type is FileType.FILE
        assert entries["sub/a"].size == 3
        assert entries["sub/a"].inode == os.lstat(tmp_path / "sub" / "a").st_ino
        assert entries["ln"].file_type is FileType.SYMLINK

    def test_does_not_follow_directory_symlinks(self, tmp_path):
        target = tmp_path / "target"
        target.mkdir()
        (target / "inner").write_bytes(b"x")
        top = tmp_path / "top"
        top.mkdir()
        (top / "alias").symlink_to(target)

        paths = [e.path.name for e in walk_tree(top)]

        assert "inner" not in paths
        assert "alias" in paths

    def test_file_root(self, tmp_path):
        f = tmp_path / "f"
        f.write_bytes(b"12345")
        entries = list(walk_tree(f))
        assert len(entries) == 1
        assert entries[0].file_type is FileType.FILE
        assert entries[0].size == 5

    def test_accepts_bytes(self, tmp_path):
        (tmp_path / "f").write_bytes(b"1")
        assert len(list(walk_tree(os.fsencode(str(tmp_path))))) == 2

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            list(walk_tree(tmp_path / "nope"))


class TestMetadata:
    def test_is_symlink(self, tmp_path):
        (tmp_path / "f").write_bytes(b"")
        (tmp_path / "l").symlink_to(tmp_path / "f")
        assert not is_symlink(tmp_path / "f")
        assert is_symlink(tmp_path / "l")

    def test_is_symlink_on_dangling_link(self, tmp_path):
        (tmp_path / "l").symlink_to(tmp_path / "missing")
        assert is_symlink(tmp_path / "l")

    def test_link_count_and_scan(self, tmp_path):
        (tmp_path / "f").write_bytes(b"x")
        os.link(tmp_path / "f", tmp_path / "g")
        (tmp_path / "h").write_bytes(b"y")

        assert link_count(tmp_path / "f") == 2
        report = {e.path.name: e for e in scan_hardlinks(tmp_path)}
        assert set(report) == {"f", "g", "h"}
        assert report["f"].is_hardlink and report["g"].is_hardlink
        assert report["f"].inode == report["g"].inode
        assert not report["h"].is_hardlink
