"""Pydantic schemas for division leaderboards."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ufl_records.schemas.fighter import Fighter, Division


class RankedFighter(Fighter):
    """Fighter enriched with the values that placed it on the leaderboard."""

    quality: int = Field(description="Sum of current win totals of past opponents")
    score: int = Field(description="wins * 5 + quality - losses * 2")
    rank: int = Field(description="1-based leaderboard position")
    rank_movement: int | None = Field(
        default=None,
        description=(
            "Positions gained since the previous ranking (positive=moved up);"
            " null when the fighter has no previous rank"
        ),
    )


class DivisionRankingsResponse(BaseModel):
    division: Division
    champion: str | None = Field(None, description="Title holder, excluded from rankings")
    rankings: list[RankedFighter] = Field(default_factory=list)
    total_fighters: int


class AllRankingsResponse(BaseModel):
    divisions: list[DivisionRankingsResponse] = Field(default_factory=list)
    total_divisions: int
    total_fighters: int
