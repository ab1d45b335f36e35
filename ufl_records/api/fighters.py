from fastapi import APIRouter, Depends, Query, status

from ufl_records.schemas.fighter import (
    Division,
    FighterCreate,
    FighterListItem,
    FighterRename,
    FightersResponse,
)
from ufl_records.schemas.mutation import MutationResult
from ufl_records.services.dependencies import get_records_service
from ufl_records.services.records_service import RecordsService

router = APIRouter()


@router.get("/", response_model=FightersResponse)
@router.get("", response_model=FightersResponse, include_in_schema=False)
async def list_fighters(
    q: str | None = Query(None, description="Case-insensitive substring of the fighter name"),
    division: Division | None = Query(None, description="Restrict results to one division"),
    service: RecordsService = Depends(get_records_service),
) -> FightersResponse:
    """List fighters with their aggregated records."""
    champions = service.champions()
    fighters = [
        FighterListItem.from_fighter(
            fighter, is_champion=champions.get(fighter.division) == fighter.name
        )
        for fighter in service.search_fighters(q)
        if division is None or fighter.division == division
    ]
    return FightersResponse(fighters=fighters, total=len(fighters))


@router.post("/", response_model=MutationResult, status_code=status.HTTP_201_CREATED)
@router.post(
    "",
    response_model=MutationResult,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
async def create_fighter(
    payload: FighterCreate,
    service: RecordsService = Depends(get_records_service),
) -> MutationResult:
    """Register a fighter with a zeroed record."""
    outcome = await service.add_fighter(payload.name, payload.division)
    return MutationResult(remote_confirmed=outcome.remote_confirmed, source=outcome.source.value)


@router.patch("/{name}", response_model=MutationResult)
async def rename_fighter(
    name: str,
    payload: FighterRename,
    service: RecordsService = Depends(get_records_service),
) -> MutationResult:
    """Rename a fighter across the roster, the fight ledger and champion slots."""
    outcome = await service.edit_fighter_name(name, payload.new_name)
    return MutationResult(remote_confirmed=outcome.remote_confirmed, source=outcome.source.value)


@router.delete("/{name}", response_model=MutationResult)
async def delete_fighter(
    name: str,
    service: RecordsService = Depends(get_records_service),
) -> MutationResult:
    """Remove a fighter together with every fight and title that names them."""
    outcome = await service.delete_fighter(name)
    return MutationResult(remote_confirmed=outcome.remote_confirmed, source=outcome.source.value)
