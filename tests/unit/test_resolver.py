"""
Unit tests for path resolution and the path-escape rules.
"""

import os
from pathlib import Path

import pytest

from staticserver.core.filesystem import LocalFilesystem
from staticserver.handlers.resolver import (
    PathResolver,
    PathEscapeError,
    FileTarget,
    DirectoryTarget,
    NotFound,
    IllegalPath,
    normalize_segments,
    split_target,
)


class DenyingFilesystem(LocalFilesystem):
    """Local disk, except open() always fails with a permission error."""

    def open(self, path):
        raise PermissionError(13, "Permission denied", str(path))


@pytest.fixture
def resolver(site_root: Path) -> PathResolver:
    return PathResolver(site_root, LocalFilesystem())


class TestNormalizeSegments:
    """Tests for the component accumulator."""

    @pytest.mark.parametrize("target,expected", [
        ("/", ()),
        ("", ()),
        ("/a/b", ("a", "b")),
        ("//a///b/", ("a", "b")),
        ("/a/./b", ("a", "b")),
        ("/a/b/../c", ("a", "c")),
        ("/a/..", ()),
        ("/a/../b/../c", ("c",)),
        ("/a..b/c", ("a..b", "c")),
        ("/...", ("...",)),
    ])
    def test_normalized(self, target, expected):
        assert normalize_segments(target) == expected

    @pytest.mark.parametrize("target", [
        "/..",
        "/../",
        "/../etc/passwd",
        "/../../etc/passwd",
        "/a/../..",
        "/a/b/../../../x",
        "..",
        "/./..",
    ])
    def test_escape_rejected(self, target):
        with pytest.raises(PathEscapeError):
            normalize_segments(target)

    def test_escape_not_clamped(self):
        """Climbing above the root and back down is still an escape."""
        with pytest.raises(PathEscapeError):
            normalize_segments("/../site/index.html")


class TestSplitTarget:
    """Tests for decoding and splitting."""

    def test_query_and_fragment_dropped(self):
        assert split_target("/a/b.txt?x=1#frag") == ["", "a", "b.txt"]
        assert split_target("/a#x?y") == ["", "a"]

    def test_percent_decoded_before_split(self):
        assert split_target("/a%2Fb") == ["", "a", "b"]
        assert split_target("/%2e%2e/etc") == ["", "..", "etc"]

    def test_backslash_is_separator(self):
        assert split_target("/a\\b") == ["", "a", "b"]
        assert split_target("/a%5c..%5c..") == ["", "a", "..", ".."]

    def test_encoded_space(self):
        assert split_target("/b%20c.txt") == ["", "b c.txt"]


class TestPathResolver:
    """Tests for PathResolver.resolve()."""

    def test_regular_file(self, resolver, site_root):
        outcome = resolver.resolve("/data.json")

        assert isinstance(outcome, FileTarget)
        with outcome:
            assert outcome.path == site_root.resolve() / "data.json"
            assert outcome.handle.read() == b'{"answer": 42}'
        assert outcome.handle.closed

    def test_normalized_join(self, resolver, site_root):
        outcome = resolver.resolve("/assets/./../assets//a.txt")

        assert isinstance(outcome, FileTarget)
        with outcome:
            assert outcome.path == site_root.resolve() / "assets" / "a.txt"

    def test_root_directory(self, resolver, site_root):
        outcome = resolver.resolve("/")

        assert outcome == DirectoryTarget(path=site_root.resolve(), segments=())
        assert outcome.url_path == "/"

    def test_sub_directory(self, resolver, site_root):
        outcome = resolver.resolve("/assets")

        assert isinstance(outcome, DirectoryTarget)
        assert outcome.path == site_root.resolve() / "assets"
        assert outcome.url_path == "/assets/"

    def test_missing(self, resolver):
        assert resolver.resolve("/missing.txt") == NotFound("/missing.txt")

    def test_missing_below_file(self, resolver):
        assert isinstance(resolver.resolve("/data.json/x"), NotFound)

    @pytest.mark.parametrize("target", [
        "/../../etc/passwd",
        "/%2e%2e/%2e%2e/etc/passwd",
        "/..%2f..%2fetc/passwd",
        "/..\\..\\etc\\passwd",
        "/assets/../../site/index.html",
    ])
    def test_escape_is_illegal(self, resolver, target):
        assert resolver.resolve(target) == IllegalPath(target)

    def test_escape_never_touches_filesystem(self, site_root):
        class ExplodingFilesystem(LocalFilesystem):
            def is_dir(self, path):
                raise AssertionError("filesystem consulted")

            is_file = open = is_dir

        resolver = PathResolver(site_root, ExplodingFilesystem())
        assert isinstance(resolver.resolve("/../secret"), IllegalPath)

    def test_permission_error_is_not_found(self, site_root):
        resolver = PathResolver(site_root, DenyingFilesystem())
        assert resolver.resolve("/data.json") == NotFound("/data.json")

    def test_nul_byte_is_not_found(self, resolver):
        assert isinstance(resolver.resolve("/data%00.json"), NotFound)

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs FIFOs")
    def test_fifo_is_not_found(self, resolver, site_root):
        os.mkfifo(site_root / "pipe")
        assert resolver.resolve("/pipe") == NotFound("/pipe")

    def test_root_is_made_absolute(self, site_root, monkeypatch):
        monkeypatch.chdir(site_root.parent)
        resolver = PathResolver(Path(site_root.name), LocalFilesystem())
        assert resolver.root == site_root.resolve()

    def test_results_always_inside_root(self, resolver, site_root):
        root = site_root.resolve()
        for target in ["/a/../../b", "/assets/a.txt", "/./x/../assets/", "/%2e%2e", "/x/y/z"]:
            outcome = resolver.resolve(target)
            if isinstance(outcome, (FileTarget, DirectoryTarget)):
                assert outcome.path == root or root in outcome.path.parents
                if isinstance(outcome, FileTarget):
                    outcome.close()
