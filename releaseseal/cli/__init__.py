"""releaseseal CLI — Typer-based command-line interface.

Provides the ``releaseseal`` command with subcommands for generating signing
keys, creating and verifying releases, and printing the version.

All output uses Rich for formatted terminal display.
"""
