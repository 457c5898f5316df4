"""
CLI entry point using Typer.

Commands:
- init / equipment / recovery: profile setup
- generate / program / next / swap / deload / exercises: weekly planning
- workout / history: live session logging
"""

from . import commands  # noqa: F401  (registers commands on the app)
from .app import app

__all__ = ["app"]


if __name__ == "__main__":
    app()
