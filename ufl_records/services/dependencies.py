"""FastAPI dependency wiring for the records service.

The service is built once by the application lifespan and parked on
``app.state``; routers only ever resolve it through this module so tests can
swap it with ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Request

from ufl_records.services.records_service import RecordsService


def get_records_service(request: Request) -> RecordsService:
    """Return the process-wide :class:`RecordsService`."""

    return request.app.state.records_service


__all__ = ["get_records_service"]
