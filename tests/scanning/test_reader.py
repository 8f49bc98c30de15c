"""Tests for PHP file discovery and reading."""

import pytest

from php_insight.exceptions import FileAccessError, InvalidPathError
from php_insight.scanning.models import CorpusSnapshot, SourceFile
from php_insight.scanning.reader import discover_php_files, read_source_file


@pytest.fixture
def project(tmp_path):
    """A small Laravel-like tree."""
    files = {
        "app/Models/User.php": "<?php class User {}",
        "app/Http/Controller.php": "<?php class Controller {}",
        "routes/web.php": "<?php\n",
        "vendor/lib/Lib.php": "<?php class Lib {}",
        ".cache/Cached.php": "<?php",
        "README.md": "# readme",
    }
    for relative, content in files.items():
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return tmp_path


class TestDiscoverPhpFiles:
    """Test discover_php_files()."""

    def test_sorted_relative_posix_paths(self, project):
        files = discover_php_files(project, exclude_dirs=["vendor"])
        assert files == ["app/Http/Controller.php", "app/Models/User.php", "routes/web.php"]

    def test_hidden_directories_skipped(self, project):
        assert ".cache/Cached.php" not in discover_php_files(project)

    def test_without_excludes_includes_vendor(self, project):
        assert "vendor/lib/Lib.php" in discover_php_files(project)

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(InvalidPathError):
            discover_php_files(tmp_path / "missing")


class TestReadSourceFile:
    """Test read_source_file()."""

    def test_reads_content(self, project):
        source = read_source_file(project, "app/Models/User.php")
        assert source == SourceFile(path="app/Models/User.php", content="<?php class User {}")

    def test_missing_file(self, project):
        with pytest.raises(FileAccessError) as exc_info:
            read_source_file(project, "app/Nope.php")
        assert exc_info.value.reason == "not found"

    def test_invalid_utf8(self, project):
        (project / "bad.php").write_bytes(b"<?php echo '\xff\xfe';")
        with pytest.raises(FileAccessError):
            read_source_file(project, "bad.php")


class TestCorpusSnapshot:
    """Test the read-only corpus view."""

    def test_mapping_interface(self):
        corpus = CorpusSnapshot({"a.php": "A", "b.php": "B"})
        assert len(corpus) == 2
        assert corpus["a.php"] == "A"
        assert list(corpus) == ["a.php", "b.php"]

    def test_read_only(self):
        corpus = CorpusSnapshot({"a.php": "A"})
        with pytest.raises(TypeError):
            corpus["b.php"] = "B"
        with pytest.raises(AttributeError):
            corpus.extra = 1

    def test_detached_from_source_dict(self):
        files = {"a.php": "A"}
        corpus = CorpusSnapshot(files)
        files["b.php"] = "B"
        assert "b.php" not in corpus

    def test_from_sources_and_others(self):
        corpus = CorpusSnapshot.from_sources(
            [SourceFile("a.php", "A"), SourceFile("b.php", "B"), SourceFile("c.php", "C")]
        )
        assert [path for path, _ in corpus.others("b.php")] == ["a.php", "c.php"]
        assert list(corpus.sources())[0] == SourceFile("a.php", "A")
