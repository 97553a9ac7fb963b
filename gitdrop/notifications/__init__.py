"""
notifications/ — Notificaciones tipadas (tipo + mensaje).

Módulos:
- notifier.py → Notification, NotificationChannel, Notifier, ConsoleChannel
"""
