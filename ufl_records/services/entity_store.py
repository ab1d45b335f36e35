"""Process-scoped working set of fighters, fights and champion assignments."""

from __future__ import annotations

from ufl_records.schemas.fight import Fight
from ufl_records.schemas.fighter import Division, Fighter
from ufl_records.schemas.snapshot import StoreSnapshot


class EntityStore:
    """In-memory collections that every query reads from.

    State is swapped as a whole snapshot so readers never observe a half-applied
    command. The store itself knows nothing about persistence; the sync
    coordinator is the only writer and mirrors each swap into the fallback cache.
    """

    def __init__(self, snapshot: StoreSnapshot | None = None) -> None:
        self._snapshot = snapshot or StoreSnapshot()

    @property
    def fighters(self) -> list[Fighter]:
        return list(self._snapshot.fighters)

    @property
    def fights(self) -> list[Fight]:
        return list(self._snapshot.fights)

    @property
    def champions(self) -> dict[Division, str]:
        return dict(self._snapshot.champions)

    def snapshot(self) -> StoreSnapshot:
        return self._snapshot.model_copy(deep=True)

    def replace(self, snapshot: StoreSnapshot) -> None:
        self._snapshot = snapshot.model_copy(deep=True)

    def find_fighter(self, name: str, division: Division | None = None) -> Fighter | None:
        for fighter in self._snapshot.fighters:
            if fighter.name == name and (division is None or fighter.division == division):
                return fighter
        return None

    def champion_of(self, division: Division) -> str | None:
        return self._snapshot.champion_of(division)


__all__ = ["EntityStore"]
