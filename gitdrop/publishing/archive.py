"""
archive.py — Archive Expander: abre un ZIP y entrega sus archivos.

Entrega una secuencia perezosa de (ruta relativa, bytes), sin las
entradas de directorio. La secuencia se puede recorrer UNA sola vez:
el ZIP se cierra al terminar.

Si los bytes no son un ZIP válido se lanza ArchiveCorrupt. Ese error
es por archivo: el orquestador salta el ZIP, avisa, y sigue con el
resto de la publicación.

Uso:
    for ruta, contenido in expand_archive(datos, "fotos.zip"):
        print(ruta, len(contenido))
"""

from __future__ import annotations

import io
import zipfile
from collections.abc import Iterator

from gitdrop.publishing.errors import ArchiveCorrupt

# Metadatos que macOS mete en los ZIPs
_IGNORED_PREFIXES = ("__MACOSX/",)


def is_archive_name(name: str, extensions: list[str] | tuple[str, ...] = (".zip",)) -> bool:
    nombre = name.lower()
    return any(nombre.endswith(ext.lower()) for ext in extensions)


def expand_archive(data: bytes, archive_name: str) -> Iterator[tuple[str, bytes]]:
    """
    Abre el ZIP y devuelve un iterador de (ruta, contenido).

    La validación del formato ocurre aquí mismo (no al iterar), así
    que un ZIP corrupto falla antes de que se consuma nada.

    Raises:
        ArchiveCorrupt: Si los bytes no se pueden leer como ZIP.
    """
    try:
        archivo = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as e:
        raise ArchiveCorrupt(archive_name, str(e)) from e

    return _iter_entries(archivo, archive_name)


def _iter_entries(archivo: zipfile.ZipFile, archive_name: str) -> Iterator[tuple[str, bytes]]:
    with archivo:
        for info in archivo.infolist():
            if info.is_dir() or info.filename.startswith(_IGNORED_PREFIXES):
                continue
            try:
                contenido = archivo.read(info)
            except (zipfile.BadZipFile, NotImplementedError, RuntimeError, EOFError) as e:
                raise ArchiveCorrupt(archive_name, f"{info.filename}: {e}") from e
            yield info.filename, contenido
