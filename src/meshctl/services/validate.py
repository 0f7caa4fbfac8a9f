"""ValidateService — service mesh conformance validation.

Pipeline: SESSION → RESOLVE → VERIFY → REQUEST → (WATCH) → REPORT

Every stage raises a :class:`~meshctl.domain.errors.MeshctlError`
subclass on failure; :meth:`ValidateService.validate` converts the first
one into a failed :class:`ServiceResult`.  Nothing here exits the process.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from meshctl.config.models import ValidationConfig
from meshctl.domain.adapters import AdapterTarget, ensure_adapter_available, resolve_adapter
from meshctl.domain.errors import ConformanceFailedError, MeshctlError, WaitTimeoutError
from meshctl.domain.events import WaitResult
from meshctl.domain.operation import build_validate_operation, get_validation_spec
from meshctl.services.base import BaseService
from meshctl.services.result import ServiceError, ServiceResult
from meshctl.services.watcher import EventStreamWatcher

if TYPE_CHECKING:
    from meshctl.infrastructure.api import MesheryClient

logger = logging.getLogger(__name__)


class ValidateService(BaseService):
    """Trigger conformance validation and optionally watch for its result."""

    def __init__(self, client: MesheryClient, config: ValidationConfig | None = None) -> None:
        super().__init__(client)
        self._config = config or ValidationConfig()

    def verify_prerequisites(self, adapter: str, *, mesh_name: str | None = None) -> AdapterTarget:
        """Resolve *adapter* against the server's adapters and check it exists."""
        logger.info("Verifying prerequisites...")
        session = self._client.get_session_data()
        target = resolve_adapter(adapter, session.mesh_adapters, mesh_name=mesh_name)
        ensure_adapter_available(target.adapter, session.mesh_adapters)
        logger.info("Verified prerequisites for adapter %s", target.adapter)
        return target

    def validate(
        self,
        *,
        mesh_name: str | None = None,
        spec: str | None = None,
        adapter: str | None = None,
        namespace: str | None = None,
        watch: bool = False,
    ) -> ServiceResult:
        """Run the validation pipeline and report its outcome.

        Args:
            mesh_name: Mesh label used for reporting until the adapter
                resolves to a location.
            spec: Conformance specification (default from config).
            adapter: Adapter short name or location (default from config).
            namespace: Namespace for the operation (default from config).
            watch: Wait on the event stream for the test result.
        """
        op = "validate"
        spec_name = spec or self._config.spec
        requested = adapter or self._config.adapter
        data: dict[str, Any] = {
            "mesh": mesh_name or requested,
            "adapter": requested,
            "spec": spec_name,
            "watched": watch,
        }
        started = time.monotonic()

        try:
            validation_spec = get_validation_spec(spec_name)
            target = self.verify_prerequisites(requested, mesh_name=mesh_name)
            data.update(mesh=target.mesh, adapter=target.adapter)

            operation = build_validate_operation(
                target.adapter,
                validation_spec,
                namespace=namespace or self._config.namespace,
            )
            logger.info("Starting service mesh validation of %s", target.mesh)
            data["acknowledgement"] = self._client.send_validate_request(operation)
            data["query"] = operation.query

            if watch:
                logger.info("Verifying operation")
                watcher = EventStreamWatcher(
                    self._client,
                    timeout=self._config.watch_timeout,
                    client_name=self._config.event_client,
                    error_marker=self._config.error_marker,
                )
                try:
                    outcome = watcher.wait_for(validation_spec.watch_summary)
                except WaitTimeoutError:
                    data["result"] = WaitResult.TIMEOUT.value
                    raise
                except ConformanceFailedError:
                    data["result"] = WaitResult.ERROR.value
                    raise
                data["result"] = outcome.result.value
                if outcome.event is not None:
                    data["summary"] = outcome.event.summary
                    data["details"] = outcome.event.details
        except MeshctlError as exc:
            logger.debug("Validation failed: %s", exc.code, exc_info=True)
            return ServiceResult(
                ok=False,
                op=op,
                data=data,
                error=ServiceError.from_exception(exc),
                meta=self._meta(started),
            )

        return ServiceResult(ok=True, op=op, data=data, meta=self._meta(started))

    def _meta(self, started: float) -> dict[str, Any]:
        return {
            "endpoint": self._client.base_url,
            "duration_ms": round((time.monotonic() - started) * 1000, 2),
        }
