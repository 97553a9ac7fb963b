"""
notifier.py — Sistema de notificaciones de GitDrop.

Patrón Strategy: una interfaz que cualquier canal puede implementar.
Hoy es la consola (Rich); mañana podría ser un webhook o un toast
en una UI web, sin tocar el motor de publicación.

Cada notificación es tipada (kind + mensaje) y de vida corta:
después de `ttl_seconds` deja de estar "activa".

Uso:
    from gitdrop.notifications.notifier import Notifier, ConsoleChannel, NotificationKind

    notifier = Notifier(channels=[ConsoleChannel()])
    notifier.notify(NotificationKind.SUCCESS, "Archivos subidos a 'docs'")
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from gitdrop.utils.logger import get_logger

logger = get_logger("gitdrop.notifications")


class NotificationKind(Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """
    Una notificación para el usuario.

    Campos:
        kind: Tipo (success, info, warning, error)
        message: Texto a mostrar
        ttl_seconds: Cuánto tiempo se muestra
        created_at: time.monotonic() al crearla
    """
    kind: NotificationKind
    message: str
    ttl_seconds: float = 5.0
    created_at: float = field(default_factory=time.monotonic)

    def is_active(self, now: float | None = None) -> bool:
        ahora = time.monotonic() if now is None else now
        return ahora - self.created_at < self.ttl_seconds


class NotificationChannel(ABC):
    """
    Interfaz abstracta para un canal de notificación.

    Las clases hijas DEBEN implementar send() e is_configured().
    """

    @abstractmethod
    def send(self, notification: Notification) -> bool:
        """
        Muestra/envía la notificación.

        Returns:
            True si el envío fue exitoso, False si falló.
        """
        ...

    @abstractmethod
    def is_configured(self) -> bool:
        ...


class ConsoleChannel(NotificationChannel):
    """Pinta las notificaciones en la terminal con el logger de Rich."""

    def send(self, notification: Notification) -> bool:
        mensaje = notification.message
        if notification.kind is NotificationKind.SUCCESS:
            logger.success(mensaje)
        elif notification.kind is NotificationKind.WARNING:
            logger.warning(mensaje)
        elif notification.kind is NotificationKind.ERROR:
            logger.error(mensaje)
        else:
            logger.info(mensaje)
        return True

    def is_configured(self) -> bool:
        return True


class Notifier:
    """
    Gestor central de notificaciones.

    Envía cada notificación a todos los canales configurados. Si un
    canal falla, loggea el error y sigue con los demás: notificar
    nunca debe interrumpir una publicación.

    Args:
        channels: Canales de notificación.
        ttl_seconds: Vida por defecto de cada notificación.
    """

    def __init__(
        self,
        channels: list[NotificationChannel] | None = None,
        ttl_seconds: float = 5.0,
    ):
        self._channels = channels or []
        self._ttl = ttl_seconds
        self._history: list[Notification] = []

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    def notify(self, kind: NotificationKind | str, message: str) -> Notification:
        """Crea la notificación y la manda a todos los canales."""
        notification = Notification(
            kind=NotificationKind(kind), message=message, ttl_seconds=self._ttl
        )
        self._history.append(notification)

        for channel in self._channels:
            if not channel.is_configured():
                continue
            try:
                if not channel.send(notification):
                    logger.warning(
                        f"Notificación falló en {channel.__class__.__name__}"
                    )
            except Exception as e:
                # Las notificaciones NUNCA deben tumbar la publicación
                logger.error(
                    f"Error en notificación ({channel.__class__.__name__}): {e}"
                )

        return notification

    def active(self, now: float | None = None) -> list[Notification]:
        """Notificaciones que todavía no expiran."""
        return [n for n in self._history if n.is_active(now)]

    def add_channel(self, channel: NotificationChannel) -> None:
        self._channels.append(channel)
