"""
memory.py — Object store content-addressed en memoria.

Implementa el mismo protocolo que GitHub pero sin red. Los ids se
calculan como en Git (sha1 de "tipo tamaño\\0contenido"), así que el
mismo contenido siempre produce el mismo id y crear un blob dos
veces no duplica nada.

Los refs se actualizan con compare-and-swap real bajo un lock,
así que dos escritores concurrentes no pueden pisarse.

Uso:
    store = InMemoryObjectStore()
    store.init_branch("main", {"README.md": b"hola"})
    blob_id = store.create_blob(b"contenido")
"""

from __future__ import annotations

import hashlib
import json
import threading

from gitdrop.publishing.errors import RefConflict, RemoteError
from gitdrop.remote.store import DirectoryEntry, ObjectStore


def _object_id(kind: str, payload: bytes) -> str:
    header = f"{kind} {len(payload)}\0".encode()
    return hashlib.sha1(header + payload).hexdigest()


class InMemoryObjectStore(ObjectStore):
    """
    Object store en memoria, seguro entre hilos.

    Los trees se guardan "aplanados" ({ruta: (modo, blob id)}) porque
    el motor solo necesita rutas completas.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._blobs: dict[str, bytes] = {}
        self._trees: dict[str, dict[str, tuple[str, str]]] = {}
        self._commits: dict[str, dict] = {}
        self._refs: dict[str, str] = {}

    # ============================================================
    # Helpers de inicialización (tests y --dry-run)
    # ============================================================

    def init_branch(
        self,
        branch: str = "main",
        files: dict[str, bytes] | None = None,
        message: str = "Initial commit",
    ) -> str:
        """Crea un commit raíz con `files` y apunta el branch a él."""
        entries = [
            {"path": path, "mode": "100644", "type": "blob", "sha": self.create_blob(data)}
            for path, data in (files or {}).items()
        ]
        tree_id = self.create_tree("", entries)
        commit_id = self.create_commit(message, tree_id, [])
        with self._lock:
            self._refs[branch] = commit_id
        return commit_id

    def tree_at(self, branch: str) -> dict[str, tuple[str, str]]:
        """Tree aplanado en la punta del branch."""
        return self.get_tree(self.get_commit(self.get_ref(branch)))

    def commit_parents(self, commit_id: str) -> list[str]:
        return list(self._commit(commit_id)["parents"])

    @property
    def blob_count(self) -> int:
        return len(self._blobs)

    # ============================================================
    # Protocolo ObjectStore
    # ============================================================

    def create_blob(self, content: bytes) -> str:
        blob_id = _object_id("blob", content)
        with self._lock:
            self._blobs.setdefault(blob_id, bytes(content))
        return blob_id

    def get_blob(self, blob_id: str) -> bytes:
        try:
            return self._blobs[blob_id]
        except KeyError:
            raise RemoteError(f"Blob no encontrado: {blob_id}", status_code=404) from None

    def get_commit(self, commit_id: str) -> str:
        return self._commit(commit_id)["tree"]

    def get_tree(self, tree_id: str) -> dict[str, tuple[str, str]]:
        try:
            return dict(self._trees[tree_id])
        except KeyError:
            raise RemoteError(f"Tree no encontrado: {tree_id}", status_code=404) from None

    def create_tree(self, base_tree_id: str, entries: list[dict]) -> str:
        contenido = self.get_tree(base_tree_id) if base_tree_id else {}
        for entry in entries:
            if entry["sha"] not in self._blobs:
                raise RemoteError(
                    f"Tree entry inválida: blob {entry['sha']} no existe",
                    status_code=422,
                )
            contenido[entry["path"]] = (entry.get("mode", "100644"), entry["sha"])

        payload = json.dumps(sorted(contenido.items())).encode()
        tree_id = _object_id("tree", payload)
        with self._lock:
            self._trees.setdefault(tree_id, contenido)
        return tree_id

    def create_commit(self, message: str, tree_id: str, parent_ids: list[str]) -> str:
        if tree_id not in self._trees:
            raise RemoteError(f"Tree no encontrado: {tree_id}", status_code=422)
        for parent in parent_ids:
            self._commit(parent)

        payload = json.dumps(
            {"tree": tree_id, "parents": list(parent_ids), "message": message}
        ).encode()
        commit_id = _object_id("commit", payload)
        with self._lock:
            self._commits.setdefault(
                commit_id,
                {"tree": tree_id, "parents": tuple(parent_ids), "message": message},
            )
        return commit_id

    def get_ref(self, branch: str) -> str:
        try:
            return self._refs[branch]
        except KeyError:
            raise RemoteError(f"Branch no encontrado: {branch}", status_code=404) from None

    def update_ref(self, branch: str, new_id: str, expected_old_id: str) -> None:
        self._commit(new_id)
        with self._lock:
            actual = self._refs.get(branch)
            if actual != expected_old_id:
                raise RefConflict(branch, expected_old_id, actual)
            self._refs[branch] = new_id

    def list_directory(self, branch: str, path: str = "") -> list[DirectoryEntry]:
        if branch not in self._refs:
            return []
        prefijo = path.strip("/")
        prefijo = f"{prefijo}/" if prefijo else ""

        vistos: dict[str, DirectoryEntry] = {}
        for ruta in self.tree_at(branch):
            if not ruta.startswith(prefijo):
                continue
            resto = ruta[len(prefijo):]
            nombre, _, subruta = resto.partition("/")
            tipo = "dir" if subruta else "file"
            vistos.setdefault(nombre, DirectoryEntry(nombre, prefijo + nombre, tipo))
        return sorted(vistos.values(), key=lambda e: e.name)

    def _commit(self, commit_id: str) -> dict:
        try:
            return self._commits[commit_id]
        except KeyError:
            raise RemoteError(f"Commit no encontrado: {commit_id}", status_code=404) from None
