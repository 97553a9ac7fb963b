"""
config.py — Carga y gestiona la configuración de GitDrop.

Se encarga de:
1. Cargar config.yaml (configuración general, opcional)
2. Cargar .env (secretos: GITHUB_TOKEN)
3. Resolver variables de entorno ${VAR} en los valores de config
4. Validar que la configuración tenga sentido

¿Por qué separar config.yaml de .env?
    - config.yaml: valores que SÍ se suben a Git (timeouts, delays, branch)
    - .env: valores que NUNCA se suben a Git (tokens)

Uso:
    from gitdrop.config import load_config
    config = load_config()
    print(config.publish.default_branch)  # "main"
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv


# ============================================================
# Dataclasses de configuración
# ============================================================
# Cada sección de config.yaml tiene su propia dataclass.
# ============================================================

@dataclass
class GitHubConfig:
    """Conexión con la API REST de GitHub."""
    api_base: str = "https://api.github.com"
    timeout: float = 30.0
    user_agent: str = "gitdrop/1.0"


@dataclass
class PublishConfig:
    """Parámetros del motor de publicación."""
    default_branch: str = "main"
    file_mode: str = "100644"
    blob_concurrency: int = 8
    read_timeout: float = 10.0
    archive_extensions: list[str] = field(default_factory=lambda: [".zip"])
    strict_conflict_check: bool = False


@dataclass
class RefreshConfig:
    """Refresco del listado después de publicar."""
    initial_delay: float = 1.0
    retry_delay: float = 2.0
    max_attempts: int = 3
    backoff_base: float = 0.5


@dataclass
class NotificationsConfig:
    """Duración de las notificaciones en pantalla."""
    ttl_seconds: float = 5.0


@dataclass
class AppConfig:
    """Configuración completa de la aplicación."""
    github: GitHubConfig = field(default_factory=GitHubConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)

    # Valores del .env (no están en config.yaml)
    github_token: str = ""


# ============================================================
# Funciones de carga
# ============================================================

def _resolve_env_vars(value: str) -> str:
    """
    Resuelve variables de entorno en un string.

    Ejemplo:
        "${GITDROP_BRANCH}" → "develop"

    Si la variable no existe, se deja el texto original.
    """
    patron = re.compile(r"\$\{(\w+)\}")

    def reemplazar(match: re.Match) -> str:
        nombre_var = match.group(1)
        return os.environ.get(nombre_var, match.group(0))

    return patron.sub(reemplazar, value)


def _resolve_env_recursive(data: Any) -> Any:
    """Resuelve ${VARIABLE} recursivamente en un dict/list del YAML."""
    if isinstance(data, str):
        return _resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_recursive(item) for item in data]
    return data


def _dict_to_dataclass(data: dict, cls: type) -> Any:
    """
    Convierte un diccionario a una dataclass, ignorando keys desconocidas.

    Si el YAML trae un campo que la dataclass no conoce, simplemente
    se ignora en vez de explotar.
    """
    campos_validos = {f.name for f in cls.__dataclass_fields__.values()}
    datos_filtrados = {k: v for k, v in (data or {}).items() if k in campos_validos}
    return cls(**datos_filtrados)


def _find_config_dir() -> Path:
    """
    Encuentra el directorio raíz del proyecto (donde está config.yaml).

    Busca hacia arriba desde el directorio actual; si no lo encuentra,
    usa el directorio actual.
    """
    current = Path.cwd()
    for parent in [current] + list(current.parents):
        if (parent / "config.yaml").exists():
            return parent
    return current


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Carga la configuración completa de GitDrop.

    Pasos:
    1. Carga .env para tener las variables de entorno disponibles
    2. Lee config.yaml (si existe)
    3. Resuelve ${VARIABLES} en los valores del YAML
    4. Convierte cada sección a su dataclass correspondiente
    5. Agrega los valores del .env

    Args:
        config_path: Ruta al config.yaml. Si es None, busca automáticamente.

    Returns:
        AppConfig lista para usar.
    """
    proyecto_dir = _find_config_dir()
    env_path = proyecto_dir / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    if config_path is None:
        config_path = proyecto_dir / "config.yaml"

    raw_config: dict = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}

    config_resuelto = _resolve_env_recursive(raw_config)

    app_config = AppConfig(
        github=_dict_to_dataclass(
            config_resuelto.get("github", {}), GitHubConfig
        ),
        publish=_dict_to_dataclass(
            config_resuelto.get("publish", {}), PublishConfig
        ),
        refresh=_dict_to_dataclass(
            config_resuelto.get("refresh", {}), RefreshConfig
        ),
        notifications=_dict_to_dataclass(
            config_resuelto.get("notifications", {}), NotificationsConfig
        ),
    )

    app_config.github_token = os.environ.get("GITHUB_TOKEN", "")

    return app_config


def validate_config(cfg: AppConfig, require_token: bool = True) -> list[str]:
    """
    Revisa la configuración y devuelve la lista de problemas encontrados.

    Una lista vacía significa que todo está bien.
    """
    problemas = []

    if require_token and not cfg.github_token:
        problemas.append("GITHUB_TOKEN no configurado en .env")
    if cfg.publish.blob_concurrency < 1:
        problemas.append("publish.blob_concurrency debe ser >= 1")
    if cfg.publish.read_timeout <= 0:
        problemas.append("publish.read_timeout debe ser > 0")
    if not 1 <= cfg.refresh.max_attempts <= 3:
        problemas.append("refresh.max_attempts debe estar entre 1 y 3")
    if cfg.refresh.initial_delay < 0 or cfg.refresh.retry_delay < 0:
        problemas.append("Los delays de refresh no pueden ser negativos")
    if not cfg.publish.archive_extensions:
        problemas.append("publish.archive_extensions no puede estar vacío")

    return problemas
