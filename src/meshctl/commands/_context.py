"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Builds the API client on demand and centralizes
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import click

from meshctl.domain.errors import MeshctlError
from meshctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from pathlib import Path

    from meshctl.config.settings import MeshctlSettings
    from meshctl.infrastructure.api import MesheryClient
    from meshctl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    No network access happens until a command asks for a client, so
    ``--help`` and ``--version`` work without a reachable server.
    """

    def __init__(self, settings: MeshctlSettings) -> None:
        self.settings = settings

        from meshctl.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            quiet=not self.interactive,
            log_json=settings.log_json,
        )

    @property
    def interactive(self) -> bool:
        """Whether progress UI may be shown."""
        return not (self.settings.json_output or self.settings.quiet)

    def open_client(self, op: str, *, token_path: Path | None = None) -> MesheryClient:
        """Create an API client for the configured server.

        Token problems are reported through :meth:`fail` as a failure of *op*.
        """
        from meshctl.infrastructure.api import MesheryClient
        from meshctl.infrastructure.http import build_http_client

        try:
            http = build_http_client(self.settings.server, token_path=token_path)
        except MeshctlError as exc:
            self.fail(op, exc)
        return MesheryClient(self.settings.server.endpoint, http)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)

    def fail(self, op: str, exc: MeshctlError) -> NoReturn:
        """Emit a failed result for an error raised outside a service."""
        from meshctl.services.result import ServiceError, ServiceResult

        self.emit(ServiceResult(ok=False, op=op, error=ServiceError.from_exception(exc)))
        raise SystemExit(1)
