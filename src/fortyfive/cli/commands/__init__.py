"""Command modules; importing them registers their commands on the shared app."""

from . import planning, profile, workout  # noqa: F401
