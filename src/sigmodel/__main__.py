"""
sigmodel package entry point.

Allows running sigmodel as a module:
    python -m sigmodel
"""

from sigmodel.cli import main

if __name__ == "__main__":
    main()
