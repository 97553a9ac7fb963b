"""
conflicts.py — Conflict Detector: ¿algún archivo nuevo choca con la raíz?

Compara SOLO el nombre base (la hoja), sin distinguir mayúsculas:
"docs/README.md" choca con "readme.md" en la raíz.

Solo vale la pena correrlo cuando hay al menos un ZIP en la subida
y la raíz tiene archivos; si no, nos ahorramos la llamada a la red.
"""

from __future__ import annotations

from collections.abc import Iterable

from gitdrop.publishing.models import ConflictRecord, PendingUploadItem, SourceKind, base_name


def should_check_conflicts(items: Iterable[PendingUploadItem], existing_names: Iterable[str] | None) -> bool:
    """True si hay entradas de ZIP y el snapshot de nombres no está vacío."""
    if not existing_names:
        return False
    return any(item.source_kind is SourceKind.ARCHIVE_ENTRY for item in items)


def detect_conflicts(
    existing_names: Iterable[str],
    candidate_paths: Iterable[str],
) -> list[ConflictRecord]:
    """
    Clasifica los candidatos contra los nombres existentes.

    Args:
        existing_names: Nombres en la raíz (se pasan a minúsculas aquí también).
        candidate_paths: Rutas relativas de lo que se va a subir, en orden.

    Returns:
        ConflictRecords en orden de aparición, sin repetir nombre
        destino (gana la primera aparición).
    """
    existentes = {nombre.lower() for nombre in existing_names}
    vistos: set[str] = set()
    conflictos: list[ConflictRecord] = []

    for ruta in candidate_paths:
        nombre = base_name(ruta)
        clave = nombre.lower()
        if not nombre or clave not in existentes or clave in vistos:
            continue
        vistos.add(clave)
        conflictos.append(ConflictRecord(source_path=ruta, colliding_destination_name=nombre))

    return conflictos


def find_conflict(conflicts: Iterable[ConflictRecord], path: str) -> ConflictRecord | None:
    """ConflictRecord cuyo nombre coincide con la hoja de `path`, si existe."""
    clave = base_name(path).lower()
    for conflicto in conflicts:
        if conflicto.colliding_destination_name.lower() == clave:
            return conflicto
    return None
