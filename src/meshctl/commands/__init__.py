"""Subcommand modules for meshctl.

Provides register_commands() which uses deferred imports to keep
``meshctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups on the root CLI group."""
    from meshctl.commands.mesh import mesh

    cli.add_command(mesh)
