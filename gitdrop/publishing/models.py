"""
models.py — Modelo de datos del motor de publicación.

Flujo de los datos:
    UploadSource      → lo que el usuario eligió (archivo, ZIP, blob de otro repo)
    PendingUploadItem → cada archivo individual a publicar (los ZIPs se expanden)
    ConflictRecord    → nombre que choca con un archivo existente en la raíz
    ResolvedItem      → item con su ruta final ya calculada
    TreeEntry         → (ruta, modo, blob id) que entra al tree nuevo
    CommitInfo        → el commit creado (inmutable)
    PublishResult     → resumen final de la operación
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from gitdrop.publishing.archive import is_archive_name


class SourceKind(Enum):
    """De dónde viene el contenido de un item."""
    LOOSE_FILE = "loose_file"
    ARCHIVE_ENTRY = "archive_entry"
    CROSS_REPOSITORY = "cross_repository"


class ResolutionPolicy(Enum):
    """
    Qué hacer con TODOS los conflictos de una publicación.

    Se elige una sola vez por operación, no por archivo.
    """
    REPLACE = "replace"
    SKIP = "skip"


def base_name(path: str) -> str:
    """Último segmento de una ruta ("sub/b.txt" → "b.txt")."""
    return path.rstrip("/").split("/")[-1]


@dataclass(frozen=True)
class ContentRef:
    """Referencia a un blob que vive en otro repositorio."""
    repository: str
    blob_id: str


@dataclass(frozen=True)
class UploadSource:
    """
    Una selección del usuario antes de expandirse.

    Exactamente una de content / local_path / content_ref trae el contenido.
    """
    name: str
    content: bytes | None = None
    local_path: Path | None = None
    content_ref: ContentRef | None = None

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> UploadSource:
        return cls(name=name, content=data)

    @classmethod
    def from_path(cls, path: str | Path) -> UploadSource:
        ruta = Path(path)
        return cls(name=ruta.name, local_path=ruta)

    @classmethod
    def from_repository(cls, repository: str, blob_id: str, path: str) -> UploadSource:
        """Item copiado de otro repo; `path` es su ruta relativa de destino."""
        return cls(name=path, content_ref=ContentRef(repository, blob_id))

    def is_archive(self, extensions: list[str] | tuple[str, ...] = (".zip",)) -> bool:
        if self.content_ref is not None:
            return False
        return is_archive_name(self.name, extensions)


@dataclass
class PendingUploadItem:
    """
    Un archivo individual pendiente de publicar.

    Campos:
        source_kind: Archivo suelto, entrada de ZIP o blob de otro repo
        relative_path: Ruta relativa inferida (para ZIPs, la ruta dentro del ZIP)
        content: Bytes ya en memoria (si los hay)
        local_path: Archivo local que se lee al publicar
        content_ref: Blob de otro repo que se copia
        origin: Nombre del ZIP de donde salió (solo entradas de ZIP)
    """
    source_kind: SourceKind
    relative_path: str
    content: bytes | None = None
    local_path: Path | None = None
    content_ref: ContentRef | None = None
    origin: str = ""

    @property
    def base_name(self) -> str:
        return base_name(self.relative_path)


@dataclass(frozen=True)
class ConflictRecord:
    """Un nombre que ya existe en la raíz del repo (comparado sin mayúsculas)."""
    source_path: str
    colliding_destination_name: str


@dataclass(frozen=True)
class TargetLocation:
    """A dónde se publica: repo, branch y directorio que se está navegando."""
    repository: str
    branch: str = "main"
    base_directory: str = "/"


@dataclass(frozen=True)
class ResolvedItem:
    item: PendingUploadItem
    path: str


@dataclass
class PathResolution:
    """Resultado del Path Resolver: items con ruta + cuántos se saltaron."""
    resolved: list[ResolvedItem] = field(default_factory=list)
    skipped: int = 0


@dataclass(frozen=True)
class TreeEntry:
    path: str
    blob_id: str
    mode: str = "100644"

    def to_api(self) -> dict:
        """Formato que espera la API de Git Data."""
        return {"path": self.path, "mode": self.mode, "type": "blob", "sha": self.blob_id}


@dataclass(frozen=True)
class CommitInfo:
    message: str
    tree_id: str
    parent_id: str
    commit_id: str


@dataclass(frozen=True)
class PublishRequest:
    """
    Todo lo que el orquestador necesita para iniciar una publicación.

    Campos:
        target: Repo, branch y directorio navegado
        folder_name: Carpeta destino (relativa al directorio navegado)
        message: Mensaje del commit
        sources: Archivos, ZIPs y blobs elegidos
        existing_names: Snapshot previo de nombres en la raíz (None = pedirlo)
    """
    target: TargetLocation
    folder_name: str
    message: str
    sources: tuple[UploadSource, ...] = ()
    existing_names: frozenset[str] | None = None


@dataclass(frozen=True)
class PublishResult:
    """Resumen de una publicación terminada."""
    commit: CommitInfo | None = None
    entries: tuple[TreeEntry, ...] = ()
    skipped: int = 0
    warnings: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return self.commit is not None

    @property
    def paths(self) -> list[str]:
        return [entry.path for entry in self.entries]
