"""
errors.py — Taxonomía de errores del motor de publicación.

Cada error sabe en qué etapa ocurrió (stage) y qué tipo de
notificación genera (kind). El orquestador los atrapa en las
costuras entre componentes y los convierte en estados Failed
o en advertencias, según su naturaleza:

    ValidationError           → local, antes de tocar la red
    ArchiveCorrupt            → se salta el ZIP y se avisa
    ConflictDetectionFailure  → se continúa sin conflictos conocidos
    EmptyChangeSet            → NO es error: éxito sin cambios
    ContentReadFailure        → aborta (no se pudo leer contenido local)
    BlobCreationFailure       → aborta
    TreeCreationFailure       → aborta
    CommitCreationFailure     → aborta
    RefConflict               → aborta; el branch avanzó mientras tanto
"""

from __future__ import annotations


class PublishError(Exception):
    """Error base de GitDrop."""

    stage: str = "publish"
    kind: str = "error"

    def __init__(self, message: str = "", stage: str | None = None):
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage


class RemoteError(PublishError):
    """Falla HTTP del cliente del object store."""

    stage = "remote"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(PublishError):
    stage = "initiating"


class ArchiveCorrupt(PublishError):
    stage = "archive"
    kind = "warning"

    def __init__(self, archive_name: str, reason: str = ""):
        mensaje = f"No se pudo leer {archive_name}"
        if reason:
            mensaje += f": {reason}"
        super().__init__(mensaje)
        self.archive_name = archive_name


class ConflictDetectionFailure(PublishError):
    stage = "conflict_check"
    kind = "warning"


class EmptyChangeSet(PublishError):
    """No hay nada que subir. El orquestador lo trata como éxito."""

    stage = "assemble"
    kind = "warning"


class ContentReadFailure(PublishError):
    stage = "read"


class BlobCreationFailure(PublishError):
    stage = "blobs"


class TreeCreationFailure(PublishError):
    stage = "tree"


class CommitCreationFailure(PublishError):
    stage = "commit"


class RefConflict(PublishError):
    """El branch ya no apunta al commit padre esperado."""

    stage = "ref"

    def __init__(self, branch: str, expected: str, actual: str | None = None):
        mensaje = (
            f"El branch '{branch}' avanzó durante la publicación "
            f"(esperado {expected[:7]}"
        )
        if actual:
            mensaje += f", actual {actual[:7]}"
        mensaje += "). Refresca y vuelve a intentar."
        super().__init__(mensaje)
        self.branch = branch
        self.expected = expected
        self.actual = actual


class PublishInProgress(PublishError):
    """Ya hay una publicación en curso en este orquestador."""

    stage = "initiating"


class InvalidTransition(PublishError):
    """La acción no está permitida en el estado actual."""

    stage = "workflow"
