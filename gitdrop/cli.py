"""
cli.py — Punto de entrada de GitDrop.

Comandos disponibles:
    python -m gitdrop publish a.txt fotos.zip --repo owner/repo --folder F -m "msg"
    python -m gitdrop publish notas.zip ... --on-conflict skip
    python -m gitdrop publish ... --copy otro/repo:SHA:ruta/archivo.txt
    python -m gitdrop publish ... --dry-run      → publica en memoria, no toca GitHub
    python -m gitdrop config --show              → muestra configuración
    python -m gitdrop config --validate          → valida configuración
    python -m gitdrop -v publish ...             → incluye mensajes de debug

Desde código (testing):
    from click.testing import CliRunner
    from gitdrop.cli import main
    CliRunner().invoke(main, ["config", "--show"])
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from gitdrop import __version__
from gitdrop.config import AppConfig, load_config, validate_config
from gitdrop.notifications.notifier import ConsoleChannel, Notifier
from gitdrop.publishing.models import (
    PublishRequest,
    ResolutionPolicy,
    TargetLocation,
    UploadSource,
)
from gitdrop.publishing.orchestrator import PublishOrchestrator
from gitdrop.publishing.refresh import ListingRefresher
from gitdrop.publishing.workflow import AwaitingResolution, Succeeded
from gitdrop.remote.github import GitHubObjectStore
from gitdrop.remote.memory import InMemoryObjectStore
from gitdrop.remote.store import DirectoryEntry, ObjectStore
from gitdrop.utils.logger import console as rich_console
from gitdrop.utils.logger import get_logger, set_console_level

logger = get_logger("gitdrop.cli")


@click.group()
@click.version_option(version=__version__, prog_name="GitDrop")
@click.option("--verbose", "-v", is_flag=True, help="Muestra también los mensajes de debug")
@click.option("--quiet", "-q", is_flag=True, help="Solo advertencias y errores")
def main(verbose: bool, quiet: bool):
    """GitDrop — sube archivos y ZIPs a un repo de GitHub en un solo commit."""
    if verbose:
        set_console_level("debug")
    elif quiet:
        set_console_level("warning")


@main.command()
@click.argument(
    "files",
    nargs=-1,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--repo", "-r", required=True, help="Repo destino (owner/name)")
@click.option("--branch", "-b", default=None, help="Branch destino (default: config)")
@click.option("--folder", "-f", default="", help="Carpeta destino, relativa a --path")
@click.option("--message", "-m", default="", help="Mensaje del commit")
@click.option("--path", "browsed_path", default="/", help="Directorio navegado (default: raíz)")
@click.option(
    "--on-conflict",
    type=click.Choice(["ask", "replace", "skip"]),
    default="ask",
    help="Qué hacer si un archivo de un ZIP choca con la raíz",
)
@click.option(
    "--copy",
    "copies",
    multiple=True,
    help="Copia un blob de otro repo: owner/repo:SHA:ruta/destino",
)
@click.option("--dry-run", is_flag=True, default=False, help="Publica en memoria, NO toca GitHub")
def publish(
    files: tuple[Path, ...],
    repo: str,
    branch: str | None,
    folder: str,
    message: str,
    browsed_path: str,
    on_conflict: str,
    copies: tuple[str, ...],
    dry_run: bool,
):
    """Publica archivos, ZIPs y blobs de otros repos en un commit."""
    cfg = load_config()
    branch = branch or cfg.publish.default_branch

    if not dry_run:
        problemas = validate_config(cfg)
        if problemas:
            for p in problemas:
                logger.error(p)
            sys.exit(1)

    try:
        sources = [UploadSource.from_path(f) for f in files]
        sources.extend(_parse_copy(valor) for valor in copies)
    except click.BadParameter as e:
        logger.error(str(e))
        sys.exit(1)

    request = PublishRequest(
        target=TargetLocation(repository=repo, branch=branch, base_directory=browsed_path),
        folder_name=folder,
        message=message,
        sources=tuple(sources),
    )

    estado = asyncio.run(_run_publish(cfg, request, on_conflict, dry_run))

    if isinstance(estado, Succeeded):
        _show_summary(estado)
        return
    sys.exit(1)


@main.command()
@click.option("--show", is_flag=True, help="Muestra la configuración actual")
@click.option("--validate", is_flag=True, help="Valida la configuración")
def config(show: bool, validate: bool):
    """Gestiona la configuración de GitDrop."""
    cfg = load_config()

    if show:
        tabla = Table(title="Configuración de GitDrop")
        tabla.add_column("Parámetro", style="cyan")
        tabla.add_column("Valor", style="green")

        tabla.add_row("API", cfg.github.api_base)
        tabla.add_row("Timeout", f"{cfg.github.timeout}s")
        tabla.add_row("Branch por defecto", cfg.publish.default_branch)
        tabla.add_row("Subidas en paralelo", str(cfg.publish.blob_concurrency))
        tabla.add_row("Timeout de lectura", f"{cfg.publish.read_timeout}s")
        tabla.add_row("Extensiones de archivo", ", ".join(cfg.publish.archive_extensions))
        tabla.add_row("Conflictos estrictos", "Sí" if cfg.publish.strict_conflict_check else "No")
        tabla.add_row(
            "Refresh",
            f"{cfg.refresh.initial_delay}s + {cfg.refresh.retry_delay}s "
            f"({cfg.refresh.max_attempts} intentos)",
        )
        tabla.add_row("GITHUB_TOKEN", "Configurado" if cfg.github_token else "Falta")

        rich_console.print(tabla)

    if validate:
        problemas = validate_config(cfg)
        if problemas:
            for p in problemas:
                logger.error(p)
            sys.exit(1)
        logger.success("Configuración válida")


# ============================================================
# Funciones auxiliares (privadas)
# ============================================================

async def _run_publish(
    cfg: AppConfig,
    request: PublishRequest,
    on_conflict: str,
    dry_run: bool,
):
    """Arma el orquestador, publica y espera el refresco del listado."""
    store, source_stores = _build_stores(cfg, request, dry_run)

    orquestador = PublishOrchestrator(
        store,
        repository=request.target.repository,
        source_stores=source_stores,
        config=cfg,
        notifier=Notifier(
            channels=[ConsoleChannel()],
            ttl_seconds=cfg.notifications.ttl_seconds,
        ),
        refresher=ListingRefresher(store, cfg.refresh, on_listing=_show_listing),
        on_state=lambda estado: logger.debug(f"Estado: {estado.name}"),
    )

    estado = await orquestador.initiate(request)

    if isinstance(estado, AwaitingResolution):
        estado = await _ask_resolution(orquestador, estado, on_conflict)

    if isinstance(estado, Succeeded):
        await orquestador.wait_for_refresh()
    return estado


async def _ask_resolution(orquestador: PublishOrchestrator, estado: AwaitingResolution, on_conflict: str):
    """Pide al usuario replace/skip (o usa --on-conflict)."""
    tabla = Table(title="Archivos que chocan con la raíz del repo")
    tabla.add_column("En la subida", style="cyan")
    tabla.add_column("En la raíz", style="yellow")
    for conflicto in estado.conflicts:
        tabla.add_row(conflicto.source_path, conflicto.colliding_destination_name)
    rich_console.print(tabla)

    eleccion = on_conflict
    if eleccion == "ask":
        eleccion = Prompt.ask(
            "¿Reemplazar los archivos de la raíz u omitir los que chocan?",
            choices=["replace", "skip", "cancel"],
            default="skip",
        )

    if eleccion == "cancel":
        return orquestador.cancel()
    return await orquestador.resolve(ResolutionPolicy(eleccion))


def _build_stores(
    cfg: AppConfig,
    request: PublishRequest,
    dry_run: bool,
) -> tuple[ObjectStore, dict[str, ObjectStore]]:
    """Object store destino + uno por cada repo de origen de --copy."""
    if dry_run:
        store = InMemoryObjectStore()
        store.init_branch(request.target.branch)
        logger.warning("Modo dry-run: se publica en memoria, GitHub no se toca")
        return store, {}

    def _github(repository: str) -> GitHubObjectStore:
        return GitHubObjectStore(
            repository,
            cfg.github_token,
            api_base=cfg.github.api_base,
            timeout=cfg.github.timeout,
            user_agent=cfg.github.user_agent,
        )

    origenes = {
        source.content_ref.repository
        for source in request.sources
        if source.content_ref is not None
        and source.content_ref.repository != request.target.repository
    }
    return _github(request.target.repository), {repo: _github(repo) for repo in origenes}


def _parse_copy(valor: str) -> UploadSource:
    """
    Convierte "owner/repo:SHA:ruta" en un UploadSource de otro repo.

    Raises:
        click.BadParameter: Si el formato no es válido.
    """
    partes = valor.split(":", 2)
    if len(partes) != 3 or not all(p.strip() for p in partes) or "/" not in partes[0]:
        raise click.BadParameter(
            f"--copy inválido: '{valor}'. Formato: owner/repo:SHA:ruta/destino"
        )
    repository, blob_id, path = (p.strip() for p in partes)
    return UploadSource.from_repository(repository, blob_id, path)


def _show_listing(listing: list[DirectoryEntry]) -> None:
    """Pinta el listado refrescado del directorio navegado."""
    tabla = Table(title="Contenido actualizado")
    tabla.add_column("Tipo", style="cyan")
    tabla.add_column("Nombre", style="green")
    for entry in listing:
        tabla.add_row("dir" if entry.type == "dir" else "file", entry.name)
    rich_console.print(tabla)


def _show_summary(estado: Succeeded) -> None:
    """Muestra resumen después de publicar."""
    result = estado.result
    if not result.changed:
        rich_console.print(Panel(
            "Nada que subir: el branch no cambió.",
            title="Sin cambios",
            border_style="yellow",
        ))
        return

    lineas = [
        f"[bold]Commit:[/bold] {result.commit.commit_id[:7]}",
        f"[bold]Padre:[/bold] {result.commit.parent_id[:7]}",
        f"[bold]Archivos:[/bold] {len(result.entries)}",
        f"[bold]Omitidos:[/bold] {result.skipped}",
    ]
    lineas.extend(f"[yellow]! {w}[/yellow]" for w in result.warnings)
    lineas.extend(f"  → {path}" for path in result.paths[:20])
    if len(result.paths) > 20:
        lineas.append(f"  ... y {len(result.paths) - 20} más")

    rich_console.print(Panel(
        "\n".join(lineas),
        title="Publicación completada",
        border_style="green",
    ))


if __name__ == "__main__":
    main()
