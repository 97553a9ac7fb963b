"""
orchestrator.py — Orquestador de la publicación.

Conecta todos los componentes siguiendo la máquina de estados de
workflow.py:

    initiate()  → valida → expande ZIPs + detecta conflictos
                  ├── hay conflictos → AwaitingResolution (pausa)
                  └── no hay        → publica
    resolve()   → fija replace/skip para TODA la operación → publica
    cancel()    → solo en Idle, Initiating o AwaitingResolution

Publicar (en orden de dependencia de datos):
    1. Path Resolver           → rutas finales
    2. Blob Builder (paralelo) → blob ids
    3. Tree/Commit Assembler   → tree + commit (todavía invisibles)
    4. Ref Advancer (CAS)      → el branch avanza, o no

El branch se mueve una vez o ninguna. Si algo falla antes del paso 4,
los blobs/trees creados quedan huérfanos y el repo no cambia.

Un orquestador maneja UNA publicación a la vez: iniciar otra mientras
hay una en curso se rechaza con PublishInProgress.

Uso:
    orquestador = PublishOrchestrator(store, repository="owner/repo")
    estado = await orquestador.initiate(request)
    if isinstance(estado, AwaitingResolution):
        estado = await orquestador.resolve(ResolutionPolicy.SKIP)
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping

from gitdrop.config import AppConfig
from gitdrop.notifications.notifier import NotificationKind, Notifier
from gitdrop.publishing import workflow
from gitdrop.publishing.archive import expand_archive
from gitdrop.publishing.blobs import BlobBuilder, read_local
from gitdrop.publishing.commits import TreeCommitAssembler
from gitdrop.publishing.conflicts import detect_conflicts, should_check_conflicts
from gitdrop.publishing.errors import (
    ArchiveCorrupt,
    ConflictDetectionFailure,
    EmptyChangeSet,
    PublishError,
    RefConflict,
    RemoteError,
)
from gitdrop.publishing.models import (
    ConflictRecord,
    PendingUploadItem,
    PublishRequest,
    PublishResult,
    ResolutionPolicy,
    SourceKind,
    UploadSource,
)
from gitdrop.publishing.paths import normalize_path, resolve_paths
from gitdrop.publishing.refresh import ListingRefresher
from gitdrop.publishing.refs import RefAdvancer
from gitdrop.publishing.workflow import AwaitingResolution, Failed, Idle, State
from gitdrop.remote.store import ObjectStore
from gitdrop.utils.logger import get_logger

logger = get_logger("gitdrop.publishing.orchestrator")

NOTHING_TO_UPLOAD = "No se procesó ningún archivo (todos saltados o vacíos). Nada que subir."


class PublishOrchestrator:
    """
    Dueño del estado de una publicación y de su secuencia.

    Args:
        store: Object store del repo destino.
        repository: Id del repo destino ("owner/name").
        source_stores: Object stores de otros repos para copiar blobs.
        config: Configuración (concurrencia, timeouts, refresh...).
        notifier: A dónde van las notificaciones tipadas.
        refresher: Refresco del listado tras publicar (None = no refrescar).
        on_state: Callback que recibe cada estado nuevo (para mostrar progreso).
    """

    def __init__(
        self,
        store: ObjectStore,
        repository: str = "",
        source_stores: Mapping[str, ObjectStore] | None = None,
        config: AppConfig | None = None,
        notifier: Notifier | None = None,
        refresher: ListingRefresher | None = None,
        on_state: Callable[[State], None] | None = None,
    ):
        self._config = config or AppConfig()
        self._store = store
        self._notifier = notifier or Notifier(ttl_seconds=self._config.notifications.ttl_seconds)
        self._refresher = refresher
        self._on_state = on_state
        self._state: State = Idle()
        self._refresh_task: asyncio.Task | None = None

        publish_cfg = self._config.publish
        self._blobs = BlobBuilder(
            store,
            repository=repository,
            source_stores=source_stores,
            concurrency=publish_cfg.blob_concurrency,
            read_timeout=publish_cfg.read_timeout,
            file_mode=publish_cfg.file_mode,
        )
        self._assembler = TreeCommitAssembler(store)
        self._refs = RefAdvancer(store)

    @property
    def state(self) -> State:
        return self._state

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    # ============================================================
    # Acciones públicas
    # ============================================================

    async def initiate(self, request: PublishRequest) -> State:
        """
        Inicia una publicación: valida, expande y busca conflictos.

        Returns:
            AwaitingResolution si hay conflictos; si no, el estado
            final (Succeeded/Failed), o Idle si la validación falló.

        Raises:
            PublishInProgress: Si ya hay una publicación en curso.
        """
        try:
            estado = workflow.initiate(self._state, request)
        except PublishError as e:
            self._notify(NotificationKind.ERROR, e.message)
            raise
        self._set(estado)

        estado = workflow.validate(estado)
        if isinstance(estado, Idle):
            self._notify(NotificationKind.ERROR, estado.error.message)
            self._set(estado)
            return estado

        self._set(estado)
        self._notify(NotificationKind.INFO, "Revisando posibles conflictos de archivos...")
        try:
            items, warnings = await self._expand(request)
            conflicts = await self._detect(request, items, warnings)
        except PublishError as e:
            return self._fail(e)
        except Exception as e:
            return self._fail(PublishError(f"Error inesperado: {e!r}", stage="conflict_check"))

        estado = workflow.conflicts_checked(estado, items, conflicts, warnings)
        self._set(estado)

        if isinstance(estado, AwaitingResolution):
            nombres = ", ".join(c.colliding_destination_name for c in conflicts)
            self._notify(
                NotificationKind.WARNING,
                f"Conflictos detectados ({nombres}). Elige reemplazar u omitir.",
            )
            return estado

        self._notify(NotificationKind.INFO, "Sin conflictos. Subiendo...")
        return await self._publish()

    async def resolve(self, policy: ResolutionPolicy | str) -> State:
        """Recibe la decisión (replace/skip) y continúa con la publicación."""
        try:
            politica = ResolutionPolicy(policy)
        except ValueError:
            politica = policy  # workflow.resolve lo rechaza con InvalidTransition
        try:
            estado = workflow.resolve(self._state, politica)
        except PublishError as e:
            self._notify(NotificationKind.ERROR, e.message)
            raise
        self._set(estado)
        self._notify(
            NotificationKind.INFO,
            f"Resolución: {politica.value}. Subiendo...",
        )
        return await self._publish()

    def cancel(self) -> State:
        """
        Cancela la publicación pendiente.

        Raises:
            InvalidTransition: Si ya empezó a publicar (no hay abort a medio vuelo).
        """
        try:
            estado = workflow.cancel(self._state)
        except PublishError as e:
            self._notify(NotificationKind.ERROR, e.message)
            raise
        self._set(estado)
        logger.info("Publicación cancelada")
        return self._state

    def reset(self) -> State:
        """Regresa a Idle después de Succeeded/Failed."""
        self._set(workflow.reset(self._state))
        return self._state

    async def wait_for_refresh(self):
        """Espera el refresco programado tras el último éxito (si lo hay)."""
        if self._refresh_task is None:
            return None
        return await self._refresh_task

    # ============================================================
    # ConflictCheck
    # ============================================================

    async def _expand(self, request: PublishRequest) -> tuple[list[PendingUploadItem], list[str]]:
        """Convierte las selecciones en items; los ZIPs se abren aquí, una vez."""
        items: list[PendingUploadItem] = []
        warnings: list[str] = []
        extensiones = self._config.publish.archive_extensions

        for source in request.sources:
            if source.content_ref is not None:
                items.append(PendingUploadItem(
                    source_kind=SourceKind.CROSS_REPOSITORY,
                    relative_path=normalize_path(source.name),
                    content_ref=source.content_ref,
                ))
            elif source.is_archive(extensiones):
                try:
                    items.extend(await self._expand_archive(source))
                except ArchiveCorrupt as e:
                    warnings.append(e.message)
                    self._notify(NotificationKind.WARNING, f"{e.message}. Se omite este archivo.")
            else:
                items.append(PendingUploadItem(
                    source_kind=SourceKind.LOOSE_FILE,
                    relative_path=source.name,
                    content=source.content,
                    local_path=source.local_path,
                ))

        return items, warnings

    async def _expand_archive(self, source: UploadSource) -> list[PendingUploadItem]:
        data = source.content
        if data is None:
            data = await read_local(source.local_path, self._config.publish.read_timeout)

        # Todo o nada por ZIP: si una entrada falla, se omite el ZIP completo
        return [
            PendingUploadItem(
                source_kind=SourceKind.ARCHIVE_ENTRY,
                relative_path=ruta,
                content=contenido,
                origin=source.name,
            )
            for ruta, contenido in expand_archive(data, source.name)
        ]

    async def _detect(
        self,
        request: PublishRequest,
        items: list[PendingUploadItem],
        warnings: list[str],
    ) -> list[ConflictRecord]:
        if not any(item.source_kind is SourceKind.ARCHIVE_ENTRY for item in items):
            return []

        try:
            nombres = request.existing_names
            if nombres is None:
                nombres = await self._fetch_root_names(request.target.branch)
            if not should_check_conflicts(items, nombres):
                return []
            candidatos = [
                item.relative_path
                for item in items
                if item.source_kind is SourceKind.ARCHIVE_ENTRY
            ]
            return detect_conflicts(nombres, candidatos)
        except ConflictDetectionFailure as e:
            if self._config.publish.strict_conflict_check:
                raise
            mensaje = f"{e.message}. Se continúa sin revisar conflictos."
            warnings.append(mensaje)
            self._notify(NotificationKind.WARNING, mensaje)
            return []

    async def _fetch_root_names(self, branch: str) -> frozenset[str]:
        """Nombres (en minúsculas) de los ARCHIVOS en la raíz del branch."""
        try:
            listing = await asyncio.to_thread(self._store.list_directory, branch, "")
        except RemoteError as e:
            raise ConflictDetectionFailure(
                f"No se pudo revisar la raíz del repo: {e.message}"
            ) from e
        except Exception as e:
            raise ConflictDetectionFailure(
                f"Respuesta inesperada al revisar la raíz del repo: {e!r}"
            ) from e
        return frozenset(entry.name.lower() for entry in listing if entry.type == "file")

    # ============================================================
    # Publishing
    # ============================================================

    async def _publish(self) -> State:
        estado = self._state
        operation = estado.operation
        request = operation.request
        branch = request.target.branch

        try:
            logger.step(1, 4, "Resolviendo rutas...")
            resolution = resolve_paths(
                operation.items,
                list(operation.conflicts),
                operation.policy,
                request.target.base_directory,
                request.folder_name,
            )
            logger.step(2, 4, f"Creando {len(resolution.resolved)} blobs...")
            entries = await self._blobs.build(resolution.resolved)
            parent_id = await self._refs.read_tip(branch) if entries else ""
            logger.step(3, 4, "Armando tree y commit...")
            commit = await self._assembler.assemble(parent_id, entries, request.message)
            logger.step(4, 4, f"Avanzando {branch}...")
            await self._refs.advance(branch, commit)
        except EmptyChangeSet:
            result = PublishResult(
                skipped=resolution.skipped,
                warnings=operation.warnings + (NOTHING_TO_UPLOAD,),
            )
            self._set(workflow.publish_succeeded(estado, result))
            self._notify(NotificationKind.WARNING, NOTHING_TO_UPLOAD)
            return self._state
        except PublishError as e:
            return self._fail(e)
        except Exception as e:
            # Publishing no puede quedar colgado
            return self._fail(PublishError(f"Error inesperado: {e!r}", stage="publish"))

        result = PublishResult(
            commit=commit,
            entries=tuple(entries),
            skipped=resolution.skipped,
            warnings=operation.warnings,
        )
        self._set(workflow.publish_succeeded(estado, result))
        self._notify(
            NotificationKind.SUCCESS,
            f"{len(entries)} archivo(s) subidos a la carpeta '{request.folder_name}' "
            f"en {branch} ({commit.commit_id[:7]}).",
        )
        self._schedule_refresh(request, result)
        return self._state

    def _schedule_refresh(self, request: PublishRequest, result: PublishResult) -> None:
        if self._refresher is None:
            return
        self._refresh_task = asyncio.create_task(
            self._refresher.refresh(
                request.target.branch,
                request.target.base_directory,
                result.paths,
            )
        )

    # ============================================================
    # Helpers
    # ============================================================

    def _fail(self, error: PublishError) -> Failed:
        self._set(workflow.publish_failed(self._state, error))
        if isinstance(error, RefConflict):
            mensaje = f"Falló la subida: conflicto al actualizar el branch. {error.message}"
        else:
            mensaje = f"Falló la subida ({error.stage}): {error.message}"
        self._notify(NotificationKind.ERROR, mensaje)
        return self._state

    def _set(self, estado: State) -> None:
        self._state = estado
        logger.debug(f"Estado → {estado.name}")
        if self._on_state is not None:
            self._on_state(estado)

    def _notify(self, kind: NotificationKind, message: str) -> None:
        self._notifier.notify(kind, message)
