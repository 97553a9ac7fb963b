"""
logger.py — Logging de GitDrop: consola Rich + archivo rotativo.

Cada mensaje va a dos lados:
- Consola (Rich): lo que el usuario ve mientras publica. El nivel
  se ajusta con --verbose / --quiet o con GITDROP_LOG_LEVEL.
- Archivo: logs/gitdrop.log, siempre en DEBUG, para revisar después
  qué llamadas se hicieron contra la API y en qué orden.

Uso:
    from gitdrop.utils.logger import get_logger, console
    logger = get_logger("gitdrop.publishing.blobs")
    logger.info("Creando blobs...")
    logger.success("Commit publicado")
    logger.step(2, 4, "Armando tree")
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.theme import Theme

# Bajo pytest no se escriben archivos de log
_in_pytest = "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ

gitdrop_theme = Theme({
    "debug": "dim",
    "info": "cyan",
    "success": "bold green",
    "warning": "bold yellow",
    "error": "bold red",
    "step": "bold magenta",
    "origin": "dim cyan",
})

console = Console(theme=gitdrop_theme)

# success y step se muestran con el nivel de info
_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_console_level = _LEVELS.get(os.environ.get("GITDROP_LOG_LEVEL", "info").lower(), logging.INFO)
_file_logger: logging.Logger | None = None


def set_console_level(level: str) -> None:
    """
    Cambia qué tanto se imprime en consola ("debug", "info", "warning", "error").

    El archivo de log no se ve afectado: siempre guarda todo.
    """
    global _console_level
    try:
        _console_level = _LEVELS[level.lower()]
    except KeyError:
        raise ValueError(f"Nivel de log desconocido: {level}") from None


def _setup_file_logger() -> logging.Logger:
    global _file_logger
    if _file_logger is not None:
        return _file_logger

    if _in_pytest:
        _file_logger = logging.getLogger("gitdrop.null")
        _file_logger.addHandler(logging.NullHandler())
        _file_logger.propagate = False
        return _file_logger

    log_dir = Path(os.environ.get("GITDROP_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)

    _file_logger = logging.getLogger("gitdrop.file")
    _file_logger.setLevel(logging.DEBUG)
    _file_logger.propagate = False

    if not _file_logger.handlers:
        handler = RotatingFileHandler(
            log_dir / "gitdrop.log",
            maxBytes=5 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)-7s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        _file_logger.addHandler(handler)

    return _file_logger


class GitDropLogger:
    """
    Logger por módulo.

    En consola el nombre del módulo solo aparece en modo debug,
    para que la salida normal quede limpia; en el archivo siempre va.

    Args:
        name: Nombre del módulo (ej: "gitdrop.remote.github")
    """

    def __init__(self, name: str):
        self._name = name
        self._file = _setup_file_logger()

    @property
    def name(self) -> str:
        return self._name

    def debug(self, message: str) -> None:
        self._emit(logging.DEBUG, "debug", "   ", message)

    def info(self, message: str) -> None:
        self._emit(logging.INFO, "info", "i  ", message)

    def success(self, message: str) -> None:
        self._emit(logging.INFO, "success", "[OK] ", message)

    def warning(self, message: str) -> None:
        self._emit(logging.WARNING, "warning", "[!] ", message)

    def error(self, message: str) -> None:
        self._emit(logging.ERROR, "error", "[X] ", message)

    def step(self, number: int, total: int, message: str) -> None:
        """Paso numerado de un proceso (ej: las 4 etapas de publicar)."""
        self._emit(logging.INFO, "step", f"  [{number}/{total}] ", message)

    def _emit(self, level: int, style: str, prefix: str, message: str) -> None:
        self._file.log(level, f"[{self._name}] {message}")
        if level < _console_level:
            return
        origen = f"[origin]{self._name}[/origin] " if _console_level <= logging.DEBUG else ""
        console.print(f"{origen}[{style}]{prefix}{message}[/{style}]", markup=True, highlight=False)


def get_logger(name: str = "gitdrop") -> GitDropLogger:
    """
    Obtiene un logger para el módulo especificado.

    Ejemplo:
        logger = get_logger("gitdrop.remote.github")
        logger.debug("PATCH git/refs/heads/main")
    """
    return GitDropLogger(name)
