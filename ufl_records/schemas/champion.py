from __future__ import annotations

from pydantic import BaseModel, Field

from ufl_records.schemas.fighter import Division


class ChampionUpdate(BaseModel):
    name: str | None = Field(
        default=None, description="Fighter name to crown; empty or null vacates the title"
    )


class ChampionsResponse(BaseModel):
    champions: dict[Division, str | None] = Field(
        default_factory=dict, description="Title holder per division, null when vacant"
    )
