"""
publishing/ — El motor de publicación.

Módulos (de las hojas hacia arriba):
- models.py       → Modelo de datos (items, conflictos, entries, commit)
- errors.py       → Taxonomía de errores
- archive.py      → Archive Expander (ZIP → archivos)
- conflicts.py    → Conflict Detector (nombres que chocan con la raíz)
- paths.py        → Path Resolver (ruta final de cada item)
- blobs.py        → Blob Builder (contenido → blob id, en paralelo)
- commits.py      → Tree/Commit Assembler
- refs.py         → Ref Advancer (compare-and-swap del branch)
- workflow.py     → Estados y transiciones puras
- orchestrator.py → Orquestador (pausa/reanuda, notifica, refresca)
- refresh.py      → Refresco del listado con reintentos acotados
"""
