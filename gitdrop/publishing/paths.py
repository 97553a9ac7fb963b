"""
paths.py — Path Resolver: calcula la ruta final de cada item.

Reglas:
    Solo las entradas de ZIP pueden chocar; los archivos sueltos y los
    blobs de otros repos siempre van a la carpeta destino.

    1. Si el nombre base de una entrada de ZIP choca (ConflictRecord) y la política
       es SKIP → el item se descarta.
    2. Si choca y la política es REPLACE → va a la RAÍZ con su nombre
       base, ignorando la carpeta destino (reemplaza el existente).
    3. Si no choca → targetFolder/rutaRelativa, donde targetFolder es
       relativo al directorio que se está navegando.

Después se quitan los "/" iniciales y los segmentos vacíos. Una ruta
que queda vacía se descarta y cuenta como saltada.

Nota: el choque se compara sin mayúsculas, pero las rutas que se
construyen aquí SÍ distinguen mayúsculas (así las guarda Git).
"""

from __future__ import annotations

from collections.abc import Iterable

from gitdrop.publishing.conflicts import find_conflict
from gitdrop.publishing.models import (
    ConflictRecord,
    PathResolution,
    PendingUploadItem,
    ResolutionPolicy,
    ResolvedItem,
    SourceKind,
)
from gitdrop.utils.logger import get_logger

logger = get_logger("gitdrop.publishing.paths")


def normalize_path(path: str) -> str:
    """Quita "/" iniciales/finales y colapsa segmentos vacíos."""
    return "/".join(segmento for segmento in path.split("/") if segmento)


def target_base_path(browsed_path: str, folder_name: str) -> str:
    """
    Carpeta destino relativa al directorio navegado.

    target_base_path("/", "F")        → "F"
    target_base_path("/docs/", "F")   → "docs/F"
    """
    return normalize_path(f"{browsed_path}/{folder_name}")


def resolve_paths(
    items: Iterable[PendingUploadItem],
    conflicts: list[ConflictRecord],
    policy: ResolutionPolicy | None,
    browsed_path: str,
    folder_name: str,
) -> PathResolution:
    """
    Aplica las reglas a cada item y devuelve los que sobreviven.

    Si dos items terminan en la misma ruta, gana el primero y el
    otro cuenta como saltado: un tree no puede tener rutas repetidas.
    """
    base = target_base_path(browsed_path, folder_name)
    resultado = PathResolution()
    usadas: set[str] = set()

    for item in items:
        conflicto = None
        if conflicts and item.source_kind is SourceKind.ARCHIVE_ENTRY:
            conflicto = find_conflict(conflicts, item.relative_path)

        if conflicto is not None and policy is ResolutionPolicy.SKIP:
            logger.debug(f"Saltando {item.relative_path}: choca con {conflicto.colliding_destination_name}")
            resultado.skipped += 1
            continue

        if conflicto is not None and policy is ResolutionPolicy.REPLACE:
            ruta = normalize_path(conflicto.colliding_destination_name)
        else:
            ruta = normalize_path(f"{base}/{item.relative_path}")

        if not ruta:
            resultado.skipped += 1
            continue

        if ruta in usadas:
            logger.warning(f"Ruta repetida en la subida, se conserva la primera: {ruta}")
            resultado.skipped += 1
            continue

        usadas.add(ruta)
        resultado.resolved.append(ResolvedItem(item=item, path=ruta))

    return resultado
