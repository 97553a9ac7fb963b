"""
__main__.py — Permite ejecutar GitDrop como módulo.

Esto hace posible ejecutar:
    python -m gitdrop publish archivo.zip --repo owner/repo ...
"""

from gitdrop.cli import main

if __name__ == "__main__":
    main()
