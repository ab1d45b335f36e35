"""API endpoints for division leaderboards."""

from fastapi import APIRouter, Depends

from ufl_records.schemas.fighter import Division
from ufl_records.schemas.ranking import AllRankingsResponse, DivisionRankingsResponse
from ufl_records.services.dependencies import get_records_service
from ufl_records.services.records_service import RecordsService

router = APIRouter()


@router.get("/", response_model=AllRankingsResponse)
@router.get("", response_model=AllRankingsResponse, include_in_schema=False)
async def get_all_rankings(
    service: RecordsService = Depends(get_records_service),
) -> AllRankingsResponse:
    """Get the current top ten of every division."""
    return service.rankings().get_all_rankings()


@router.get("/{division}", response_model=DivisionRankingsResponse)
async def get_division_rankings(
    division: Division,
    service: RecordsService = Depends(get_records_service),
) -> DivisionRankingsResponse:
    """Get the current top ten of one division.

    The reigning champion is reported separately and never ranked.

    Args:
        division: Division value, e.g. ``UFL PC``
        service: Records service dependency

    Returns:
        Ranked fighters ordered by score, best first
    """
    return service.rankings().get_division_rankings(division)
