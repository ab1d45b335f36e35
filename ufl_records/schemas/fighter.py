from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Division(str, Enum):
    """Platform pools fighters and fights belong to."""

    PC = "UFL PC"
    PS5 = "UFL PS5"
    XBOX = "UFL XBOX"


class Fighter(BaseModel):
    name: str
    division: Division
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    draws: int = Field(default=0, ge=0)
    ko_wins: int = Field(default=0, ge=0)
    previous_rank: int = 0

    @property
    def ko_percentage(self) -> float:
        if self.wins <= 0:
            return 0.0
        return round(self.ko_wins / self.wins * 100, 1)

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}-{self.draws}"


class FighterListItem(BaseModel):
    name: str
    division: Division
    wins: int
    losses: int
    draws: int
    ko_wins: int
    previous_rank: int
    record: str
    ko_percentage: float
    is_champion: bool = False

    @classmethod
    def from_fighter(cls, fighter: Fighter, *, is_champion: bool = False) -> FighterListItem:
        return cls(
            **fighter.model_dump(),
            record=fighter.record,
            ko_percentage=fighter.ko_percentage,
            is_champion=is_champion,
        )


class FighterCreate(BaseModel):
    name: str = Field(min_length=1, description="Display name, unique per division")
    division: Division


class FighterRename(BaseModel):
    new_name: str = Field(description="Replacement name; must not be used by any fighter")


class FightersResponse(BaseModel):
    fighters: list[FighterListItem]
    total: int
