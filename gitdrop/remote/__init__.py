"""
remote/ — Clientes del object store remoto.

Módulos:
- store.py  → Interfaz ObjectStore (el protocolo que consume el motor)
- github.py → Implementación sobre la API REST de Git Data de GitHub
- memory.py → Implementación en memoria (tests y --dry-run)
"""
