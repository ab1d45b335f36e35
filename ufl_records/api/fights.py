from fastapi import APIRouter, Depends, Query, status

from ufl_records.schemas.fight import Fight, FightListItem, FightsResponse, FightUpdate
from ufl_records.schemas.mutation import MutationResult
from ufl_records.services.dependencies import get_records_service
from ufl_records.services.records_service import RecordsService

router = APIRouter()


@router.get("/", response_model=FightsResponse)
@router.get("", response_model=FightsResponse, include_in_schema=False)
async def list_fights(
    q: str | None = Query(None, description="Case-insensitive substring of either participant"),
    service: RecordsService = Depends(get_records_service),
) -> FightsResponse:
    """List the fight ledger in recorded order.

    ``index`` is the ledger position used by the edit and delete endpoints. It
    shifts when earlier fights are deleted.
    """
    fights = [
        FightListItem(index=index, **fight.model_dump())
        for index, fight in service.search_fights(q)
    ]
    return FightsResponse(fights=fights, total=len(fights))


@router.post("/", response_model=MutationResult, status_code=status.HTTP_201_CREATED)
@router.post(
    "",
    response_model=MutationResult,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
async def record_fight(
    payload: Fight,
    service: RecordsService = Depends(get_records_service),
) -> MutationResult:
    """Append a fight to the ledger and update both participants' records."""
    outcome = await service.add_fight(payload)
    return MutationResult(remote_confirmed=outcome.remote_confirmed, source=outcome.source.value)


@router.patch("/{index}", response_model=MutationResult)
async def edit_fight(
    index: int,
    payload: FightUpdate,
    service: RecordsService = Depends(get_records_service),
) -> MutationResult:
    """Replace the outcome of the fight at ``index``."""
    outcome = await service.edit_fight(
        index, winner=payload.winner, method=payload.method, fight_date=payload.date
    )
    return MutationResult(remote_confirmed=outcome.remote_confirmed, source=outcome.source.value)


@router.delete("/{index}", response_model=MutationResult)
async def delete_fight(
    index: int,
    service: RecordsService = Depends(get_records_service),
) -> MutationResult:
    """Remove the fight at ``index`` and recount both participants."""
    outcome = await service.delete_fight(index)
    return MutationResult(remote_confirmed=outcome.remote_confirmed, source=outcome.source.value)
