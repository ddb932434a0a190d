"""
DexDeps Entry Point
====================

Allows running the DexDeps CLI via: python -m dexdeps
"""

from dexdeps.cli import main

if __name__ == "__main__":
    main()
