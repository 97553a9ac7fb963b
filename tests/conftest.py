"""
conftest.py — Fixtures compartidas por los tests de GitDrop.
"""

from __future__ import annotations

import io
import zipfile

import pytest

from gitdrop.config import AppConfig, RefreshConfig
from gitdrop.remote.memory import InMemoryObjectStore


def build_zip(files: dict[str, bytes], dirs: tuple[str, ...] = ()) -> bytes:
    """Arma un ZIP en memoria con `files` y entradas de directorio `dirs`."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for d in dirs:
            zf.writestr(d.rstrip("/") + "/", b"")
        for name, data in files.items():
            zf.writestr(name, data)
    return buffer.getvalue()


@pytest.fixture
def make_zip():
    return build_zip


@pytest.fixture
def store():
    """Store en memoria con readme.md, LICENSE y src/app.py en main."""
    s = InMemoryObjectStore()
    s.init_branch("main", {"readme.md": b"# hola", "LICENSE": b"MIT", "src/app.py": b"print(1)"})
    return s


@pytest.fixture
def fast_config():
    """Config sin esperas para que el refresh no retrase los tests."""
    cfg = AppConfig()
    cfg.refresh = RefreshConfig(initial_delay=0, retry_delay=0, max_attempts=3, backoff_base=0)
    return cfg
