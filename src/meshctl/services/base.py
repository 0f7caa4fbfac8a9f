"""BaseService — foundation for meshctl services.

Every service receives a :class:`MesheryClient` at construction time and
talks to the server only through it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from meshctl.infrastructure.api import MesheryClient


class BaseService:
    """Base for service-layer classes.

    Usage::

        class ValidateService(BaseService):
            def validate(self, ...) -> ServiceResult:
                session = self._client.get_session_data()
                ...
    """

    def __init__(self, client: MesheryClient) -> None:
        self._client = client
