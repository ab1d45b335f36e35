"""Operational endpoints for the sync coordinator."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ufl_records.services.dependencies import get_records_service
from ufl_records.services.records_service import RecordsService

router = APIRouter()


class ReloadResponse(BaseModel):
    source: str
    fighters: int
    fights: int
    champions: int


@router.post("/reload", response_model=ReloadResponse)
async def reload_records(
    service: RecordsService = Depends(get_records_service),
) -> ReloadResponse:
    """Discard the working set and load it again from the canonical store."""
    source = await service.coordinator.reload()
    return ReloadResponse(
        source=source.value,
        fighters=len(service.fighters()),
        fights=len(service.fights()),
        champions=len(service.champions()),
    )
