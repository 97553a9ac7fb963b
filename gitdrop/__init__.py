"""
GitDrop — Publica archivos, ZIPs y blobs de otros repos en un solo commit.

Este paquete contiene todo el motor de publicación:
- publishing/    → Motor de publicación (archivos → blobs → tree → commit → ref)
- remote/        → Clientes del object store (GitHub REST, memoria)
- notifications/ → Notificaciones tipadas (consola)
- utils/         → Utilidades compartidas

Uso:
    python -m gitdrop publish notas.zip --repo owner/repo --folder docs -m "Subir docs"
    python -m gitdrop config --show
"""

__version__ = "1.0.0"
