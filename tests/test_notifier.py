"""
test_notifier.py — Tests para el sistema de notificaciones.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from gitdrop.notifications.notifier import (
    ConsoleChannel,
    Notification,
    NotificationChannel,
    NotificationKind,
    Notifier,
)


class TestNotification:
    def test_active_until_ttl(self):
        n = Notification(NotificationKind.INFO, "hola", ttl_seconds=5.0, created_at=100.0)
        assert n.is_active(now=104.9)
        assert not n.is_active(now=105.0)


class TestNotifier:
    def test_history_and_kind_from_string(self):
        notifier = Notifier(ttl_seconds=3.0)
        n = notifier.notify("warning", "cuidado")
        assert n.kind is NotificationKind.WARNING
        assert n.ttl_seconds == 3.0
        assert notifier.history == [n]

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            Notifier().notify("desconocido", "x")

    def test_sends_to_configured_channels(self):
        canal = MagicMock(spec=NotificationChannel)
        canal.is_configured.return_value = True
        canal.send.return_value = True
        apagado = MagicMock(spec=NotificationChannel)
        apagado.is_configured.return_value = False

        notifier = Notifier(channels=[canal, apagado])
        n = notifier.notify(NotificationKind.SUCCESS, "listo")

        canal.send.assert_called_once_with(n)
        apagado.send.assert_not_called()

    def test_channel_error_is_swallowed(self):
        roto = MagicMock(spec=NotificationChannel)
        roto.is_configured.return_value = True
        roto.send.side_effect = RuntimeError("boom")
        bueno = MagicMock(spec=NotificationChannel)
        bueno.is_configured.return_value = True
        bueno.send.return_value = True

        notifier = Notifier(channels=[roto, bueno])
        notifier.notify(NotificationKind.ERROR, "falló")

        bueno.send.assert_called_once()

    def test_active_filters_expired(self):
        notifier = Notifier(ttl_seconds=1.0)
        n = notifier.notify(NotificationKind.INFO, "x")
        assert notifier.active(now=n.created_at) == [n]
        assert notifier.active(now=n.created_at + 2) == []

    def test_add_channel(self):
        notifier = Notifier()
        notifier.add_channel(ConsoleChannel())
        notifier.notify(NotificationKind.INFO, "consola")
        assert len(notifier.history) == 1


class TestConsoleChannel:
    @pytest.mark.parametrize("kind", list(NotificationKind))
    def test_send_every_kind(self, kind):
        assert ConsoleChannel().send(Notification(kind, "mensaje")) is True
