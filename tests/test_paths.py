"""
test_paths.py — Tests para el Path Resolver.
"""

from __future__ import annotations

from gitdrop.publishing.models import (
    ConflictRecord,
    PendingUploadItem,
    ResolutionPolicy,
    SourceKind,
)
from gitdrop.publishing.paths import normalize_path, resolve_paths, target_base_path


def _items(*paths: str) -> list[PendingUploadItem]:
    return [
        PendingUploadItem(source_kind=SourceKind.ARCHIVE_ENTRY, relative_path=p, content=b"x")
        for p in paths
    ]


README_CONFLICT = [ConflictRecord("README.md", "README.md")]


class TestNormalizePath:
    def test_strips_leading_slashes(self):
        assert normalize_path("//F/a.txt") == "F/a.txt"

    def test_collapses_empty_segments(self):
        assert normalize_path("F//sub///a.txt") == "F/sub/a.txt"

    def test_empty(self):
        assert normalize_path("///") == ""


class TestTargetBasePath:
    def test_root(self):
        assert target_base_path("/", "F") == "F"

    def test_nested_browsed_path(self):
        assert target_base_path("/docs/guias/", "F") == "docs/guias/F"

    def test_folder_with_slashes(self):
        assert target_base_path("/", "/F/") == "F"


class TestResolvePaths:
    def test_no_conflicts(self):
        """{a.txt, sub/b.txt} + carpeta F → {F/a.txt, F/sub/b.txt}."""
        resultado = resolve_paths(_items("a.txt", "sub/b.txt"), [], None, "/", "F")
        assert [r.path for r in resultado.resolved] == ["F/a.txt", "F/sub/b.txt"]
        assert resultado.skipped == 0

    def test_relative_to_browsed_directory(self):
        resultado = resolve_paths(_items("a.txt"), [], None, "/docs", "F")
        assert [r.path for r in resultado.resolved] == ["docs/F/a.txt"]

    def test_loose_files_ignore_conflicts(self):
        suelto = PendingUploadItem(source_kind=SourceKind.LOOSE_FILE, relative_path="README.md", content=b"x")
        for policy in ResolutionPolicy:
            resultado = resolve_paths([suelto], README_CONFLICT, policy, "/", "F")
            assert [r.path for r in resultado.resolved] == ["F/README.md"]
            assert resultado.skipped == 0

    def test_replace_goes_to_root(self):
        resultado = resolve_paths(
            _items("README.md", "notes.txt"),
            README_CONFLICT,
            ResolutionPolicy.REPLACE,
            "/docs",
            "F",
        )
        assert [r.path for r in resultado.resolved] == ["README.md", "docs/F/notes.txt"]

    def test_replace_nested_entry_uses_bare_name(self):
        resultado = resolve_paths(
            _items("deep/dir/README.md"),
            README_CONFLICT,
            ResolutionPolicy.REPLACE,
            "/",
            "F",
        )
        assert [r.path for r in resultado.resolved] == ["README.md"]

    def test_skip_drops_conflicting(self):
        resultado = resolve_paths(
            _items("README.md", "notes.txt"),
            README_CONFLICT,
            ResolutionPolicy.SKIP,
            "/",
            "F",
        )
        assert [r.path for r in resultado.resolved] == ["F/notes.txt"]
        assert resultado.skipped == 1

    def test_case_insensitive_match(self):
        resultado = resolve_paths(
            _items("readme.MD"), README_CONFLICT, ResolutionPolicy.SKIP, "/", "F"
        )
        assert resultado.resolved == []
        assert resultado.skipped == 1

    def test_duplicate_destination_keeps_first(self):
        """Con REPLACE, dos README.md terminan en la raíz: solo entra el primero."""
        items = _items("a/README.md", "b/README.md")
        resultado = resolve_paths(items, README_CONFLICT, ResolutionPolicy.REPLACE, "/", "F")
        assert [r.path for r in resultado.resolved] == ["README.md"]
        assert resultado.resolved[0].item is items[0]
        assert resultado.skipped == 1

    def test_paths_are_unique(self):
        resultado = resolve_paths(_items("a.txt", "a.txt", "/a.txt"), [], None, "/", "F")
        rutas = [r.path for r in resultado.resolved]
        assert rutas == ["F/a.txt"]
        assert resultado.skipped == 2

    def test_empty_final_path_is_skipped(self):
        resultado = resolve_paths(
            _items("/"), [ConflictRecord("/", "")], ResolutionPolicy.REPLACE, "/", "F"
        )
        assert resultado.resolved == []
        assert resultado.skipped == 1
