# ============================================================================
# test_enumerator.py -- Tests for the File Enumerator
# ============================================================================
#
# COVERS:
#   TestEnumerateFiles -- order, skip names, nesting, regular files only
#
# RUN:
#   python -m pytest tests/test_enumerator.py -v
#
# INTERNET ACCESS: NONE
# ============================================================================

import os

import pytest

from cloudshift.core.enumerator import enumerate_files


class TestEnumerateFiles:

    @pytest.fixture(autouse=True)
    def setup_tree(self, tmp_path):
        self.root = tmp_path / "src"
        (self.root / "Docs" / "Deep").mkdir(parents=True)
        (self.root / "Empty").mkdir()
        (self.root / "big.bin").write_bytes(b"x" * 500)
        (self.root / "b.txt").write_bytes(b"x" * 10)
        (self.root / "a.txt").write_bytes(b"x" * 10)
        (self.root / "Docs" / "mid.pdf").write_bytes(b"x" * 100)
        (self.root / "Docs" / "Deep" / "tiny.md").write_bytes(b"x")
        (self.root / "Docs" / "Desktop.INI").write_bytes(b"[.ShellClassInfo]")
        (self.root / "Thumbs.db").write_bytes(b"x" * 3)

    def test_sorted_by_size_then_path(self):
        """
        WHAT: Smallest files first; equal sizes in path order.
        WHY:  Progress moves quickly at the start of a long run, and the
              order is identical every run.
        """
        tasks = enumerate_files(str(self.root), {"desktop.ini", "thumbs.db"})
        rels = [t.relative_path for t in tasks]
        assert rels == [
            os.path.join("Docs", "Deep", "tiny.md"),
            "a.txt",
            "b.txt",
            os.path.join("Docs", "mid.pdf"),
            "big.bin",
        ]
        assert [t.size_bytes for t in tasks] == [1, 10, 10, 100, 500]

    def test_skip_names_are_case_insensitive(self):
        tasks = enumerate_files(str(self.root), {"DESKTOP.ini", "thumbs.DB"})
        names = {os.path.basename(t.source_path) for t in tasks}
        assert "Desktop.INI" not in names
        assert "Thumbs.db" not in names

    def test_no_skip_set_lists_everything(self):
        assert len(enumerate_files(str(self.root))) == 7

    def test_directories_are_not_tasks(self):
        tasks = enumerate_files(str(self.root), {"desktop.ini", "thumbs.db"})
        assert all(os.path.isfile(t.source_path) for t in tasks)
        assert not any(t.relative_path.startswith("Empty") for t in tasks)

    def test_source_paths_are_absolute_under_root(self):
        for t in enumerate_files(str(self.root)):
            assert os.path.isabs(t.source_path)
            assert t.source_path == os.path.join(str(self.root), t.relative_path)

    def test_symlinks_are_excluded(self, tmp_path):
        """
        WHAT: A symlink to a file outside the root is not migrated.
        WHY:  Only regular files are in scope; following links could
              copy data that does not belong to this cloud folder.
        """
        outside = tmp_path / "outside.txt"
        outside.write_text("secret", encoding="utf-8")
        try:
            os.symlink(str(outside), str(self.root / "link.txt"))
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not available on this platform/account")

        names = {os.path.basename(t.source_path) for t in enumerate_files(str(self.root))}
        assert "link.txt" not in names

    def test_empty_root(self, tmp_path):
        empty = tmp_path / "nothing"
        empty.mkdir()
        assert enumerate_files(str(empty)) == []
