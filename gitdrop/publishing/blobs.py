"""
blobs.py — Blob Builder: contenido → blob id.

Cada item resuelto se sube al object store y se convierte en un
TreeEntry (ruta, modo, blob id). Los blobs son content-addressed:
el mismo contenido siempre da el mismo id, así que subir dos veces
no duplica nada y reintentar es seguro.

Los items no dependen entre sí, así que se suben en paralelo
(con un semáforo para no saturar la API). Aquí NO se reintenta:
si una llamada falla, se espera a que las demás terminen y se
reporta el primer error.

Origen del contenido:
    - bytes en memoria        → directo
    - archivo local           → se lee en un hilo con timeout corto
    - blob de otro repo       → se descarga de ese repo y se vuelve a subir
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path

from gitdrop.publishing.errors import (
    BlobCreationFailure,
    ContentReadFailure,
    PublishError,
    RemoteError,
)
from gitdrop.publishing.models import PendingUploadItem, ResolvedItem, TreeEntry
from gitdrop.remote.store import ObjectStore
from gitdrop.utils.logger import get_logger

logger = get_logger("gitdrop.publishing.blobs")


async def read_local(path: Path, timeout: float) -> bytes:
    """
    Lee un archivo local en un hilo, sin colgarse más de `timeout`.

    Raises:
        ContentReadFailure: Si se pasa del timeout o el archivo no se puede leer.
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(path.read_bytes), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise ContentReadFailure(f"Timeout leyendo {path} (>{timeout}s)") from e
    except OSError as e:
        raise ContentReadFailure(f"No se pudo leer {path}: {e}") from e


class BlobBuilder:
    """
    Sube el contenido de cada item y devuelve sus TreeEntries.

    Args:
        store: Object store del repo destino.
        repository: Id del repo destino ("owner/name").
        source_stores: Object stores de otros repos, por id, para copiar blobs.
        concurrency: Máximo de subidas simultáneas.
        read_timeout: Segundos máximos para leer un archivo local.
        file_mode: Modo de los TreeEntries.
    """

    def __init__(
        self,
        store: ObjectStore,
        repository: str = "",
        source_stores: Mapping[str, ObjectStore] | None = None,
        concurrency: int = 8,
        read_timeout: float = 10.0,
        file_mode: str = "100644",
    ):
        self._store = store
        self._repository = repository
        self._source_stores = dict(source_stores or {})
        self._semaphore = asyncio.Semaphore(max(1, concurrency))
        self._read_timeout = read_timeout
        self._file_mode = file_mode

    async def create_blob(self, content: bytes) -> str:
        """Sube contenido y devuelve su id. Mismo contenido → mismo id."""
        try:
            return await asyncio.to_thread(self._store.create_blob, content)
        except RemoteError as e:
            raise BlobCreationFailure(f"No se pudo crear el blob: {e.message}") from e

    async def build(self, resolved: list[ResolvedItem]) -> list[TreeEntry]:
        """
        Sube todos los items en paralelo, conservando el orden de entrada.

        Raises:
            ContentReadFailure: Si no se pudo leer un archivo local.
            BlobCreationFailure: Si falló alguna subida.
        """
        resultados = await asyncio.gather(
            *(self._build_one(r) for r in resolved),
            return_exceptions=True,
        )

        entries: list[TreeEntry] = []
        for resultado in resultados:
            if isinstance(resultado, PublishError):
                raise resultado
            if isinstance(resultado, BaseException):
                raise BlobCreationFailure(f"Error inesperado creando blobs: {resultado}") from resultado
            entries.append(resultado)

        logger.info(f"{len(entries)} blobs listos")
        return entries

    async def _build_one(self, resolved: ResolvedItem) -> TreeEntry:
        async with self._semaphore:
            item = resolved.item
            ref = item.content_ref
            if ref is not None and ref.repository == self._repository:
                # El blob ya vive en el repo destino
                blob_id = ref.blob_id
            else:
                contenido = await self._load_content(item)
                blob_id = await self.create_blob(contenido)
            logger.debug(f"{resolved.path} → {blob_id[:7]}")
            return TreeEntry(path=resolved.path, blob_id=blob_id, mode=self._file_mode)

    async def _load_content(self, item: PendingUploadItem) -> bytes:
        if item.content is not None:
            return item.content

        if item.local_path is not None:
            return await read_local(item.local_path, self._read_timeout)

        if item.content_ref is not None:
            ref = item.content_ref
            origen = self._source_stores.get(ref.repository)
            if origen is None:
                raise BlobCreationFailure(
                    f"Repositorio de origen no disponible: {ref.repository}"
                )
            try:
                return await asyncio.to_thread(origen.get_blob, ref.blob_id)
            except RemoteError as e:
                raise BlobCreationFailure(
                    f"No se pudo copiar {ref.blob_id[:7]} desde {ref.repository}: {e.message}"
                ) from e

        raise ContentReadFailure(f"{item.relative_path} no tiene contenido")
