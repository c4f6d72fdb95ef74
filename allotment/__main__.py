# allotment/__main__.py
"""
`python -m allotment …` forwards to the Typer CLI defined in `allotment.cli`.
"""

from __future__ import annotations

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
