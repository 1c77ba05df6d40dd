"""Packsmith CLI — Typer-based command-line interface.

Provides the ``packsmith`` command with the two pipeline entry points
(``build`` and ``typo-build``) plus informational listings.

All output uses Rich for formatted terminal display.
"""
