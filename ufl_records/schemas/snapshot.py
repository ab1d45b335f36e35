"""Serializable view of the full record state."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ufl_records.schemas.fight import Fight
from ufl_records.schemas.fighter import Division, Fighter


class StoreSnapshot(BaseModel):
    """The three record collections exchanged between the in-memory working set,
    the canonical store and the fallback cache.

    ``champions`` only holds occupied titles; a missing division means vacant.
    """

    fighters: list[Fighter] = Field(default_factory=list)
    fights: list[Fight] = Field(default_factory=list)
    champions: dict[Division, str] = Field(default_factory=dict)

    def champion_of(self, division: Division) -> str | None:
        return self.champions.get(division)
