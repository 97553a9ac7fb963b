"""
test_archive.py — Tests para el Archive Expander.
"""

from __future__ import annotations

import pytest

from gitdrop.publishing.archive import expand_archive, is_archive_name
from gitdrop.publishing.errors import ArchiveCorrupt


class TestIsArchiveName:
    def test_zip(self):
        assert is_archive_name("fotos.zip") is True

    def test_case_insensitive(self):
        assert is_archive_name("FOTOS.ZIP") is True

    def test_not_archive(self):
        assert is_archive_name("notas.txt") is False

    def test_custom_extensions(self):
        assert is_archive_name("bundle.jar", [".zip", ".jar"]) is True


class TestExpandArchive:
    def test_entries_with_content(self, make_zip):
        data = make_zip({"a.txt": b"A", "sub/b.txt": b"B"})
        entries = dict(expand_archive(data, "x.zip"))
        assert entries == {"a.txt": b"A", "sub/b.txt": b"B"}

    def test_directories_skipped(self, make_zip):
        data = make_zip({"sub/b.txt": b"B"}, dirs=("sub", "empty"))
        rutas = [ruta for ruta, _ in expand_archive(data, "x.zip")]
        assert rutas == ["sub/b.txt"]

    def test_macosx_metadata_skipped(self, make_zip):
        data = make_zip({"a.txt": b"A", "__MACOSX/._a.txt": b"meta"})
        rutas = [ruta for ruta, _ in expand_archive(data, "x.zip")]
        assert rutas == ["a.txt"]

    def test_sequence_is_single_pass(self, make_zip):
        """El iterador no se puede reiniciar."""
        entries = expand_archive(make_zip({"a.txt": b"A"}), "x.zip")
        assert len(list(entries)) == 1
        assert list(entries) == []

    def test_corrupt_raises_immediately(self):
        with pytest.raises(ArchiveCorrupt) as exc:
            expand_archive(b"esto no es un zip", "roto.zip")
        assert exc.value.archive_name == "roto.zip"
        assert "roto.zip" in exc.value.message

    def test_corrupt_is_a_warning(self):
        error = ArchiveCorrupt("roto.zip")
        assert error.kind == "warning"
        assert error.stage == "archive"

    def test_empty_archive(self, make_zip):
        assert list(expand_archive(make_zip({}), "vacio.zip")) == []
