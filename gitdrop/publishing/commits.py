"""
commits.py — Tree/Commit Assembler.

Arma el commit nuevo en dos pasos:
    1. Tree nuevo = tree base (el de la punta del branch) + nuestras
       entradas. Es una actualización "sparse": las rutas que no
       tocamos se conservan tal cual.
    2. Commit que apunta a ese tree, con la punta del branch como
       único padre y el mensaje del usuario.

Nada de esto es visible todavía: hasta que el Ref Advancer mueva el
branch, el tree y el commit son objetos huérfanos.
"""

from __future__ import annotations

import asyncio

from gitdrop.publishing.errors import (
    CommitCreationFailure,
    EmptyChangeSet,
    RemoteError,
    TreeCreationFailure,
)
from gitdrop.publishing.models import CommitInfo, TreeEntry
from gitdrop.remote.store import ObjectStore
from gitdrop.utils.logger import get_logger

logger = get_logger("gitdrop.publishing.commits")


class TreeCommitAssembler:
    """Crea tree + commit sobre la punta del branch."""

    def __init__(self, store: ObjectStore):
        self._store = store

    async def base_tree(self, parent_id: str) -> str:
        """Tree id del commit padre."""
        try:
            return await asyncio.to_thread(self._store.get_commit, parent_id)
        except RemoteError as e:
            raise TreeCreationFailure(
                f"No se pudo leer el commit base {parent_id[:7]}: {e.message}"
            ) from e
        except Exception as e:
            raise TreeCreationFailure(
                f"Respuesta inesperada leyendo el commit base {parent_id[:7]}: {e!r}"
            ) from e

    async def assemble(self, parent_id: str, entries: list[TreeEntry], message: str) -> CommitInfo:
        """
        Crea el tree y el commit.

        Raises:
            EmptyChangeSet: Si no hay entradas (un commit vacío no tiene sentido).
            TreeCreationFailure: Si falla leer el tree base o crear el nuevo.
            CommitCreationFailure: Si falla crear el commit.
        """
        if not entries:
            raise EmptyChangeSet("No hay archivos para subir")

        rutas = [entry.path for entry in entries]
        if len(set(rutas)) != len(rutas):
            raise TreeCreationFailure("Hay rutas repetidas en las entradas del tree")

        base_tree_id = await self.base_tree(parent_id)

        try:
            tree_id = await asyncio.to_thread(
                self._store.create_tree,
                base_tree_id,
                [entry.to_api() for entry in entries],
            )
        except RemoteError as e:
            raise TreeCreationFailure(f"No se pudo crear el tree: {e.message}") from e
        except Exception as e:
            raise TreeCreationFailure(f"Respuesta inesperada creando el tree: {e!r}") from e

        try:
            commit_id = await asyncio.to_thread(
                self._store.create_commit, message, tree_id, [parent_id]
            )
        except RemoteError as e:
            raise CommitCreationFailure(f"No se pudo crear el commit: {e.message}") from e
        except Exception as e:
            raise CommitCreationFailure(f"Respuesta inesperada creando el commit: {e!r}") from e

        logger.info(f"Commit {commit_id[:7]} creado (tree {tree_id[:7]}, {len(entries)} entradas)")
        return CommitInfo(
            message=message,
            tree_id=tree_id,
            parent_id=parent_id,
            commit_id=commit_id,
        )
