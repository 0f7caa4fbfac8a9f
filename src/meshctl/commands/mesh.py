"""Command group: service mesh lifecycle operations."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from meshctl.commands._base import MeshctlGroup
from meshctl.domain.operation import VALIDATION_SPECS

if TYPE_CHECKING:
    from meshctl.commands._context import AppContext

_MESH_EXAMPLES = """\
  meshctl mesh validate istio --adapter meshery-istio --spec smi
  meshctl mesh validate --adapter meshery-osm --watch"""


@click.group(cls=MeshctlGroup, examples=_MESH_EXAMPLES)
@click.pass_obj
def mesh(app: AppContext) -> None:
    """Manage service meshes through their adapters."""


@mesh.command(
    examples="""\
  # Validate conformance to service mesh standards
  meshctl mesh validate [mesh name] --adapter [adapter] --token [token file] --spec [spec]

  # Validate Istio against SMI and wait for the test result
  meshctl mesh validate istio --adapter meshery-istio --spec smi --watch

  # Machine-readable result
  meshctl --json mesh validate osm -a meshery-osm -w""",
)
@click.argument("mesh_name", required=False)
@click.option(
    "-s",
    "--spec",
    type=click.Choice(sorted(VALIDATION_SPECS)),
    default=None,
    help="Specification to be used for the conformance test (default: smi).",
)
@click.option(
    "-a",
    "--adapter",
    default=None,
    help="Adapter to use for validation (default: meshery-osm).",
)
@click.option("-n", "--namespace", default=None, help="Namespace to run the operation in.")
@click.option(
    "-t",
    "--token",
    "token_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to token for authenticating to the API.",
)
@click.option("-w", "--watch", is_flag=True, help="Watch for events and verify the result.")
@click.pass_obj
def validate(
    app: AppContext,
    mesh_name: str | None,
    spec: str | None,
    adapter: str | None,
    namespace: str | None,
    token_path: Path | None,
    watch: bool,
) -> None:
    """Validate service mesh conformance to standard specifications."""
    from meshctl.output.console import spinner
    from meshctl.services.validate import ValidateService

    label = mesh_name or adapter or app.settings.validation.adapter
    with app.open_client("validate", token_path=token_path) as client:
        svc = ValidateService(client, app.settings.validation)
        with spinner(f"Validating {label}", enabled=app.interactive):
            result = svc.validate(
                mesh_name=mesh_name,
                spec=spec,
                adapter=adapter,
                namespace=namespace,
                watch=watch,
            )
    app.emit(result)
