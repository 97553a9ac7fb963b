"""
store.py — Protocolo del object store que consume el motor.

Es la misma forma que la API de Git Data de GitHub:
blobs, trees, commits y refs. Los métodos son síncronos; el
orquestador los ejecuta en hilos (asyncio.to_thread) para que
el event loop nunca se bloquee esperando la red.

Implementaciones:
    GitHubObjectStore   → API REST real (requests)
    InMemoryObjectStore → content-addressed en memoria
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class DirectoryEntry:
    """Un elemento del listado de un directorio remoto."""
    name: str
    path: str
    type: str  # "file" | "dir"


class ObjectStore(ABC):
    """
    Interfaz del object store remoto.

    Todas las llamadas pueden fallar con RemoteError. Solo
    update_ref distingue el caso de conflicto (RefConflict).
    """

    @abstractmethod
    def create_blob(self, content: bytes) -> str:
        """Guarda contenido y devuelve su blob id. Idempotente."""
        ...

    @abstractmethod
    def get_blob(self, blob_id: str) -> bytes:
        ...

    @abstractmethod
    def get_commit(self, commit_id: str) -> str:
        """Devuelve el tree id del commit."""
        ...

    @abstractmethod
    def get_tree(self, tree_id: str) -> dict[str, tuple[str, str]]:
        """Devuelve {ruta: (modo, blob id)} de forma recursiva."""
        ...

    @abstractmethod
    def create_tree(self, base_tree_id: str, entries: list[dict]) -> str:
        """Crea un tree = base + entries (agregados o sobrescritos)."""
        ...

    @abstractmethod
    def create_commit(self, message: str, tree_id: str, parent_ids: list[str]) -> str:
        ...

    @abstractmethod
    def get_ref(self, branch: str) -> str:
        """Commit id al que apunta el branch."""
        ...

    @abstractmethod
    def update_ref(self, branch: str, new_id: str, expected_old_id: str) -> None:
        """
        Compare-and-swap del branch. Nunca fuerza.

        Raises:
            RefConflict: Si el branch ya no apunta a expected_old_id.
        """
        ...

    @abstractmethod
    def list_directory(self, branch: str, path: str = "") -> list[DirectoryEntry]:
        """Listado de un directorio en la punta del branch (vacío si no existe)."""
        ...
