"""
refs.py — Ref Advancer: mueve el branch al commit nuevo.

Es el ÚNICO paso que cambia algo visible. Usa compare-and-swap:
el branch solo avanza si todavía apunta al commit que usamos como
padre. Si otro escritor lo movió en el intermedio → RefConflict.
Nunca se fuerza.
"""

from __future__ import annotations

import asyncio

from gitdrop.publishing.errors import PublishError, RefConflict, RemoteError
from gitdrop.publishing.models import CommitInfo
from gitdrop.remote.store import ObjectStore
from gitdrop.utils.logger import get_logger

logger = get_logger("gitdrop.publishing.refs")


class RefAdvancer:

    def __init__(self, store: ObjectStore):
        self._store = store

    async def read_tip(self, branch: str) -> str:
        """Commit id actual del branch."""
        try:
            return await asyncio.to_thread(self._store.get_ref, branch)
        except RemoteError as e:
            raise PublishError(
                f"No se pudo leer el branch '{branch}': {e.message}", stage="ref"
            ) from e
        except Exception as e:
            raise PublishError(
                f"Respuesta inesperada leyendo el branch '{branch}': {e!r}", stage="ref"
            ) from e

    async def advance(self, branch: str, commit: CommitInfo) -> None:
        """
        CAS: branch = commit.commit_id solo si branch == commit.parent_id.

        Raises:
            RefConflict: Si el branch avanzó mientras armábamos el commit.
        """
        try:
            await asyncio.to_thread(
                self._store.update_ref, branch, commit.commit_id, commit.parent_id
            )
        except RefConflict:
            logger.warning(f"El branch '{branch}' cambió; no se sobrescribe")
            raise
        except RemoteError as e:
            raise PublishError(
                f"No se pudo actualizar el branch '{branch}': {e.message}", stage="ref"
            ) from e
        except Exception as e:
            raise PublishError(
                f"Respuesta inesperada actualizando el branch '{branch}': {e!r}", stage="ref"
            ) from e

        logger.success(f"{branch}: {commit.parent_id[:7]} → {commit.commit_id[:7]}")
