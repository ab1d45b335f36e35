from __future__ import annotations

from datetime import date as date_type
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, Field

from ufl_records.schemas.fighter import Division

DRAW = "Draw"


class FightMethod(str, Enum):
    KO = "KO"
    DECISION = "Decision"
    DRAW = "Draw"


class FightKey(NamedTuple):
    """Natural key used to address a fight in the canonical store.

    Fights carry no generated identifier, so two entries sharing all four
    fields are indistinguishable remotely and are updated or deleted together.
    """

    fighter1: str
    fighter2: str
    division: Division
    date: date_type

    def as_filter(self) -> dict[str, object]:
        return {
            "fighter1": self.fighter1,
            "fighter2": self.fighter2,
            "division": self.division.value,
            "date": self.date,
        }


class Fight(BaseModel):
    fighter1: str
    fighter2: str
    winner: str = Field(description="Name of the winning fighter or 'Draw'")
    method: FightMethod
    division: Division
    date: date_type

    @property
    def key(self) -> FightKey:
        return FightKey(self.fighter1, self.fighter2, self.division, self.date)

    @property
    def is_draw(self) -> bool:
        return self.winner == DRAW

    def involves(self, name: str) -> bool:
        return name in (self.fighter1, self.fighter2)

    def opponent_of(self, name: str) -> str:
        return self.fighter2 if self.fighter1 == name else self.fighter1


class FightUpdate(BaseModel):
    winner: str
    method: FightMethod
    date: date_type


class FightListItem(Fight):
    index: int = Field(description="Position of the fight in the ledger")


class FightsResponse(BaseModel):
    fights: list[FightListItem]
    total: int
