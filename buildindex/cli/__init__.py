"""buildindex CLI — Typer-based command-line interface.

Provides the ``buildindex`` command with subcommands for building a
branch database, inspecting its latest builds and pending runs, and
publishing redirect pages.

All output uses Rich for formatted terminal display.
"""
