"""
workflow.py — Máquina de estados de una publicación.

Cada estado es un valor inmutable (dataclass frozen) y cada
transición es una función pura: recibe un estado, devuelve otro.
Nada de flags sueltos; así cada transición se puede probar sola.

    Idle → Initiating → ConflictCheck → AwaitingResolution → Publishing
                                      ↘                    ↗
                                        ───────────────────
    Publishing → Succeeded | Failed

Reglas de cancelación:
    Se puede cancelar en Idle, Initiating y AwaitingResolution.
    Una vez en Publishing, las llamadas remotas terminan solas.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from gitdrop.publishing.errors import (
    InvalidTransition,
    PublishError,
    PublishInProgress,
    ValidationError,
)
from gitdrop.publishing.models import (
    ConflictRecord,
    PendingUploadItem,
    PublishRequest,
    PublishResult,
    ResolutionPolicy,
)


# ============================================================
# Operación ligada
# ============================================================

@dataclass(frozen=True)
class Operation:
    """
    Todo lo que una publicación acumula entre estados.

    La política de resolución es un campo explícito de la operación:
    se fija UNA vez y aplica a todos los conflictos.
    """
    request: PublishRequest
    items: tuple[PendingUploadItem, ...] = ()
    conflicts: tuple[ConflictRecord, ...] = ()
    policy: ResolutionPolicy | None = None
    warnings: tuple[str, ...] = ()


# ============================================================
# Estados
# ============================================================

@dataclass(frozen=True)
class Idle:
    name = "idle"
    error: PublishError | None = None


@dataclass(frozen=True)
class Initiating:
    name = "initiating"
    request: PublishRequest


@dataclass(frozen=True)
class ConflictCheck:
    name = "conflict_check"
    request: PublishRequest


@dataclass(frozen=True)
class AwaitingResolution:
    name = "awaiting_resolution"
    operation: Operation

    @property
    def conflicts(self) -> tuple[ConflictRecord, ...]:
        return self.operation.conflicts


@dataclass(frozen=True)
class Publishing:
    name = "publishing"
    operation: Operation


@dataclass(frozen=True)
class Succeeded:
    name = "succeeded"
    operation: Operation
    result: PublishResult = field(default_factory=PublishResult)


@dataclass(frozen=True)
class Failed:
    name = "failed"
    stage: str
    error: PublishError
    operation: Operation | None = None


State = Idle | Initiating | ConflictCheck | AwaitingResolution | Publishing | Succeeded | Failed

BUSY_STATES = (Initiating, ConflictCheck, AwaitingResolution, Publishing)
CANCELLABLE_STATES = (Idle, Initiating, AwaitingResolution)


def is_busy(state: State) -> bool:
    return isinstance(state, BUSY_STATES)


# ============================================================
# Transiciones
# ============================================================

def initiate(state: State, request: PublishRequest) -> Initiating:
    """Empieza una publicación. Se rechaza si ya hay una en curso."""
    if is_busy(state):
        raise PublishInProgress(
            f"Ya hay una publicación en curso (estado: {state.name})"
        )
    return Initiating(request=request)


def validate(state: Initiating) -> ConflictCheck | Idle:
    """
    Valida carpeta destino y mensaje. No toca la red.

    Si algo falta, regresa a Idle cargando el ValidationError.
    """
    _expect(state, Initiating, "validate")
    request = state.request
    if not request.folder_name.strip():
        return Idle(error=ValidationError("Escribe un nombre de carpeta para la subida."))
    if not request.message.strip():
        return Idle(error=ValidationError("Escribe un mensaje para el commit."))
    return ConflictCheck(request=request)


def conflicts_checked(
    state: ConflictCheck,
    items: list[PendingUploadItem] | tuple[PendingUploadItem, ...],
    conflicts: list[ConflictRecord] | tuple[ConflictRecord, ...],
    warnings: list[str] | tuple[str, ...] = (),
) -> AwaitingResolution | Publishing:
    """Con conflictos → esperar decisión; sin conflictos → publicar directo."""
    _expect(state, ConflictCheck, "conflicts_checked")
    operation = Operation(
        request=state.request,
        items=tuple(items),
        conflicts=tuple(conflicts),
        warnings=tuple(warnings),
    )
    if operation.conflicts:
        return AwaitingResolution(operation=operation)
    return Publishing(operation=operation)


def resolve(state: AwaitingResolution, policy: ResolutionPolicy) -> Publishing:
    """Fija la política para toda la operación y pasa a publicar."""
    _expect(state, AwaitingResolution, "resolve")
    if not isinstance(policy, ResolutionPolicy):
        raise InvalidTransition(f"Política desconocida: {policy!r}")
    return Publishing(operation=replace(state.operation, policy=policy))


def publish_succeeded(state: Publishing, result: PublishResult) -> Succeeded:
    _expect(state, Publishing, "publish_succeeded")
    return Succeeded(operation=state.operation, result=result)


def publish_failed(state: ConflictCheck | Publishing, error: PublishError) -> Failed:
    """Cualquier falla durante ConflictCheck o Publishing, con su etapa."""
    _expect(state, (ConflictCheck, Publishing), "publish_failed")
    operation = state.operation if isinstance(state, Publishing) else None
    return Failed(stage=error.stage, error=error, operation=operation)


def cancel(state: State) -> Idle:
    """Cancela si el estado lo permite; en Publishing no hay vuelta atrás."""
    if not isinstance(state, CANCELLABLE_STATES):
        raise InvalidTransition(f"No se puede cancelar en el estado {state.name}")
    return Idle()


def reset(state: State) -> Idle:
    """Después de terminar (Succeeded/Failed) se regresa a Idle."""
    _expect(state, (Idle, Succeeded, Failed), "reset")
    return Idle()


def _expect(state: State, expected, action: str) -> None:
    if not isinstance(state, expected):
        raise InvalidTransition(f"'{action}' no es válido en el estado {state.name}")
