"""
refresh.py — Refresca el listado después de publicar.

El lado de lectura de GitHub puede ir un poco atrasado respecto al
de escritura. Por eso, después de un commit exitoso:

    1. Esperar `initial_delay` y pedir el listado.
    2. Si todavía no aparecen los nombres que subimos, esperar
       `retry_delay` y pedirlo UNA vez más.

Cada petición pasa por retry_async: reintentos acotados (máximo 3)
con backoff exponencial, solo para fallas de red. Es el único lugar
del proyecto donde se reintenta; la construcción del commit falla
rápido.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable

from gitdrop.config import RefreshConfig
from gitdrop.publishing.errors import RemoteError
from gitdrop.publishing.paths import normalize_path
from gitdrop.remote.store import DirectoryEntry, ObjectStore
from gitdrop.utils.logger import get_logger

logger = get_logger("gitdrop.publishing.refresh")

MAX_ATTEMPTS = 3


async def retry_async(
    fn: Callable[[], Awaitable],
    attempts: int = 3,
    base_delay: float = 0.5,
    retry_on: tuple[type[BaseException], ...] = (RemoteError,),
):
    """
    Ejecuta `fn` con reintentos acotados y backoff exponencial.

    Espera base_delay, luego 2×, luego 4×... Nunca más de MAX_ATTEMPTS
    intentos. Si todos fallan, relanza el último error.
    """
    intentos = max(1, min(attempts, MAX_ATTEMPTS))
    ultimo_error: BaseException | None = None

    for intento in range(intentos):
        try:
            return await fn()
        except retry_on as e:
            ultimo_error = e
            if intento + 1 < intentos:
                espera = base_delay * (2 ** intento)
                logger.warning(
                    f"Falló el intento {intento + 1}/{intentos}: {e}. "
                    f"Reintentando en {espera}s..."
                )
                await asyncio.sleep(espera)

    raise ultimo_error  # type: ignore[misc]


def expected_names(paths: Iterable[str], browsed_path: str) -> set[str]:
    """
    Nombres que deberían aparecer en el directorio navegado.

    expected_names(["docs/F/a.txt", "README.md"], "/docs") → {"F"}
    """
    prefijo = normalize_path(browsed_path)
    prefijo = f"{prefijo}/" if prefijo else ""
    nombres = set()
    for ruta in paths:
        if ruta.startswith(prefijo):
            resto = ruta[len(prefijo):]
            if resto:
                nombres.add(resto.split("/")[0])
    return nombres


class ListingRefresher:
    """
    Vuelve a pedir el listado del directorio navegado.

    Args:
        store: Object store del repo.
        config: Delays y reintentos.
        on_listing: Callback que recibe el listado nuevo (la UI lo pinta).
    """

    def __init__(
        self,
        store: ObjectStore,
        config: RefreshConfig | None = None,
        on_listing: Callable[[list[DirectoryEntry]], None] | None = None,
    ):
        self._store = store
        self._config = config or RefreshConfig()
        self._on_listing = on_listing

    async def refresh(
        self,
        branch: str,
        browsed_path: str,
        written_paths: Iterable[str] = (),
    ) -> list[DirectoryEntry] | None:
        """
        Refresca una vez y, si hace falta, una segunda vez.

        Returns:
            El último listado obtenido, o None si no se pudo obtener.
            Un refresco fallido nunca tumba la publicación.
        """
        esperados = expected_names(written_paths, browsed_path)

        await asyncio.sleep(self._config.initial_delay)
        listing = await self._fetch(branch, browsed_path)

        if listing is not None and not self._caught_up(listing, esperados):
            logger.info("El listado todavía no refleja el commit; reintentando...")
            await asyncio.sleep(self._config.retry_delay)
            listing = await self._fetch(branch, browsed_path)

        if listing is not None and self._on_listing is not None:
            self._on_listing(listing)
        return listing

    async def _fetch(self, branch: str, browsed_path: str) -> list[DirectoryEntry] | None:
        try:
            return await retry_async(
                lambda: asyncio.to_thread(self._store.list_directory, branch, browsed_path),
                attempts=self._config.max_attempts,
                base_delay=self._config.backoff_base,
            )
        except RemoteError as e:
            logger.warning(f"No se pudo refrescar el listado: {e}")
            return None

    @staticmethod
    def _caught_up(listing: list[DirectoryEntry], esperados: set[str]) -> bool:
        presentes = {entry.name for entry in listing}
        return esperados.issubset(presentes)
