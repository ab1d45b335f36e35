from fastapi import APIRouter, Depends

from ufl_records.schemas.champion import ChampionsResponse, ChampionUpdate
from ufl_records.schemas.fighter import Division
from ufl_records.schemas.mutation import MutationResult
from ufl_records.services.dependencies import get_records_service
from ufl_records.services.records_service import RecordsService

router = APIRouter()


@router.get("/", response_model=ChampionsResponse)
@router.get("", response_model=ChampionsResponse, include_in_schema=False)
async def list_champions(
    service: RecordsService = Depends(get_records_service),
) -> ChampionsResponse:
    """Return the title holder of every division, null where vacant."""
    holders = service.champions()
    return ChampionsResponse(champions={division: holders.get(division) for division in Division})


@router.put("/{division}", response_model=MutationResult)
async def set_champion(
    division: Division,
    payload: ChampionUpdate,
    service: RecordsService = Depends(get_records_service),
) -> MutationResult:
    """Crown a champion, or vacate the title with an empty name."""
    outcome = await service.set_champion(division, payload.name)
    return MutationResult(remote_confirmed=outcome.remote_confirmed, source=outcome.source.value)
