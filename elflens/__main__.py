"""
ElfLens Module Entry Point
===========================

Allows running the ElfLens CLI via: python -m elflens
"""

from elflens.cli import main

if __name__ == "__main__":
    main()
