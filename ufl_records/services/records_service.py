"""Commands and queries over the fighter records working set.

Each command validates against the current in-memory state, builds the next
snapshot (re-aggregating whenever the ledger changes) and hands it to the
:class:`SyncCoordinator` together with the remote writes that mirror it.
Validation failures raise before anything changes; remote failures never reach
the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from ufl_records.schemas.fight import DRAW, Fight, FightMethod
from ufl_records.schemas.fighter import Division, Fighter
from ufl_records.schemas.ranking import RankedFighter
from ufl_records.schemas.snapshot import StoreSnapshot
from ufl_records.services.aggregation import aggregate
from ufl_records.services.entity_store import EntityStore
from ufl_records.services.ranking_service import RankingService, rank
from ufl_records.services.sync_coordinator import (
    MutationOutcome,
    RemoteWrite,
    SyncCoordinator,
    counter_values,
    fight_row,
    fighter_row,
)

logger = logging.getLogger(__name__)


class CommandRejectedError(ValueError):
    """Raised when a command fails validation. No state has changed."""


class DuplicateFighterError(CommandRejectedError):
    """Raised when a name is already taken."""


class InvalidFighterNameError(CommandRejectedError):
    """Raised when a fighter name is empty."""


class InvalidFightError(CommandRejectedError):
    """Raised when a fight's participants or winner are inconsistent."""


class FighterNotFoundError(CommandRejectedError):
    """Raised when no fighter has the requested name."""


class FightNotFoundError(CommandRejectedError):
    """Raised when a ledger index is out of range."""


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidFighterNameError("Fighter name must not be empty")
    return cleaned


def _validate_winner(fighter1: str, fighter2: str, winner: str) -> None:
    if winner not in (fighter1, fighter2, DRAW):
        raise InvalidFightError(
            f"Winner must be '{fighter1}', '{fighter2}' or '{DRAW}', got '{winner}'"
        )


def _counter_writes(
    coordinator: SyncCoordinator,
    before: Sequence[Fighter],
    after: Sequence[Fighter],
) -> list[RemoteWrite]:
    """Return remote counter updates for fighters whose record changed.

    ``before`` and ``after`` must come from :func:`aggregate` over the same
    roster so positions line up.
    """

    writes: list[RemoteWrite] = []
    for old, new in zip(before, after, strict=True):
        if counter_values(old) == counter_values(new):
            continue
        writes.append(_update_counters(coordinator, new))
    return writes


def _update_counters(coordinator: SyncCoordinator, fighter: Fighter) -> RemoteWrite:
    async def write() -> int:
        return await coordinator.store.update(
            "fighters",
            counter_values(fighter),
            {"name": fighter.name, "division": fighter.division},
        )

    return write


class RecordsService:
    """Entry point for every record command and read-only query."""

    def __init__(self, coordinator: SyncCoordinator) -> None:
        self.coordinator = coordinator

    @property
    def _entities(self) -> EntityStore:
        return self.coordinator.entities

    # -- Queries --------------------------------------------------------------

    def fighters(self) -> list[Fighter]:
        return self._entities.fighters

    def fights(self) -> list[Fight]:
        return self._entities.fights

    def champions(self) -> dict[Division, str]:
        return self._entities.champions

    def ranked_fighters(self, division: Division) -> list[RankedFighter]:
        return rank(
            division,
            self._entities.fighters,
            self._entities.fights,
            self._entities.champion_of(division),
        )

    def rankings(self) -> RankingService:
        return RankingService(
            self._entities.fighters,
            self._entities.fights,
            self._entities.champions,
        )

    def search_fighters(self, query: str | None = None) -> list[Fighter]:
        """Case-insensitive substring match on fighter names."""

        needle = (query or "").strip().lower()
        return [fighter for fighter in self._entities.fighters if needle in fighter.name.lower()]

    def search_fights(self, query: str | None = None) -> list[tuple[int, Fight]]:
        """Return ``(ledger index, fight)`` pairs where either participant matches."""

        needle = (query or "").strip().lower()
        return [
            (index, fight)
            for index, fight in enumerate(self._entities.fights)
            if needle in fight.fighter1.lower() or needle in fight.fighter2.lower()
        ]

    # -- Commands -------------------------------------------------------------

    async def add_fighter(self, name: str, division: Division) -> MutationOutcome:
        name = _clean_name(name)
        if self._entities.find_fighter(name, division) is not None:
            raise DuplicateFighterError(f"Fighter '{name}' already exists in {division.value}")

        fighter = Fighter(name=name, division=division)
        current = self._entities.snapshot()
        snapshot = current.model_copy(update={"fighters": [*current.fighters, fighter]})

        async def insert_fighter() -> None:
            await self.coordinator.store.insert("fighters", [fighter_row(fighter)])

        logger.info("Adding fighter %s to %s", name, division.value)
        return await self.coordinator.mutate(
            snapshot, [insert_fighter], description=f"add fighter {name}"
        )

    async def add_fight(self, fight: Fight) -> MutationOutcome:
        fighter1 = _clean_name(fight.fighter1)
        fighter2 = _clean_name(fight.fighter2)
        if fighter1 == fighter2:
            raise InvalidFightError("A fighter cannot fight themselves")
        winner = fight.winner.strip()
        _validate_winner(fighter1, fighter2, winner)
        fight = fight.model_copy(
            update={"fighter1": fighter1, "fighter2": fighter2, "winner": winner}
        )

        current = self._entities.snapshot()
        fights = [*current.fights, fight]
        fighters = aggregate(fights, current.fighters)
        snapshot = StoreSnapshot(fighters=fighters, fights=fights, champions=current.champions)

        async def insert_fight() -> None:
            await self.coordinator.store.insert("fights", [fight_row(fight)])

        writes: list[RemoteWrite] = [insert_fight]
        writes.extend(_counter_writes(self.coordinator, current.fighters, fighters))

        logger.info("Recording fight %s vs %s (%s)", fighter1, fighter2, fight.division.value)
        return await self.coordinator.mutate(
            snapshot, writes, description=f"add fight {fighter1} vs {fighter2}"
        )

    async def edit_fighter_name(self, old_name: str, new_name: str) -> MutationOutcome:
        """Rename a fighter everywhere it is referenced.

        Every fighter record named ``old_name`` is renamed, together with the
        ledger's participant and winner fields and any champion slot. The
        recomputed counters match the old ones because the ledger is only
        relabelled.
        """

        new_name = _clean_name(new_name)
        if self._entities.find_fighter(new_name) is not None:
            raise DuplicateFighterError(f"Fighter name '{new_name}' is already in use")
        if self._entities.find_fighter(old_name) is None:
            raise FighterNotFoundError(f"Fighter '{old_name}' not found")

        def relabel(name: str) -> str:
            return new_name if name == old_name else name

        current = self._entities.snapshot()
        renamed = [
            fighter.model_copy(update={"name": relabel(fighter.name)})
            for fighter in current.fighters
        ]
        fights = [
            fight.model_copy(
                update={
                    "fighter1": relabel(fight.fighter1),
                    "fighter2": relabel(fight.fighter2),
                    "winner": relabel(fight.winner),
                }
            )
            for fight in current.fights
        ]
        champions = {division: relabel(name) for division, name in current.champions.items()}
        fighters = aggregate(fights, renamed)
        snapshot = StoreSnapshot(fighters=fighters, fights=fights, champions=champions)

        store = self.coordinator.store

        async def rename_fighter() -> None:
            await store.update("fighters", {"name": new_name}, {"name": old_name})

        def rename_in_fights(column: str) -> RemoteWrite:
            async def write() -> None:
                await store.update("fights", {column: new_name}, {column: old_name})

            return write

        async def rename_champion() -> None:
            await store.update("champions", {"name": new_name}, {"name": old_name})

        writes: list[RemoteWrite] = [
            rename_fighter,
            rename_in_fights("fighter1"),
            rename_in_fights("fighter2"),
            rename_in_fights("winner"),
            rename_champion,
        ]
        writes.extend(_counter_writes(self.coordinator, renamed, fighters))

        logger.info("Renaming fighter %s to %s", old_name, new_name)
        return await self.coordinator.mutate(
            snapshot, writes, description=f"rename {old_name} to {new_name}"
        )

    async def edit_fight(
        self,
        index: int,
        *,
        winner: str,
        method: FightMethod,
        fight_date: date,
    ) -> MutationOutcome:
        """Replace the outcome of the fight at ``index``.

        The remote row is matched by the fight's key *before* the edit, so a
        date change moves the row rather than missing it.
        """

        current = self._entities.snapshot()
        original = self._fight_at(current, index)
        winner = winner.strip()
        _validate_winner(original.fighter1, original.fighter2, winner)

        edited = original.model_copy(
            update={"winner": winner, "method": method, "date": fight_date}
        )
        fights = list(current.fights)
        fights[index] = edited
        fighters = aggregate(fights, current.fighters)
        snapshot = StoreSnapshot(fighters=fighters, fights=fights, champions=current.champions)

        async def update_fight() -> None:
            await self.coordinator.store.update(
                "fights",
                {"winner": winner, "method": method, "date": fight_date},
                original.key.as_filter(),
            )

        writes: list[RemoteWrite] = [update_fight]
        writes.extend(_counter_writes(self.coordinator, current.fighters, fighters))

        logger.info("Editing fight #%d (%s vs %s)", index, original.fighter1, original.fighter2)
        return await self.coordinator.mutate(snapshot, writes, description=f"edit fight #{index}")

    async def delete_fight(self, index: int) -> MutationOutcome:
        """Remove the fight at ``index`` from the ledger.

        Remotely every row sharing its natural key is deleted.
        """

        current = self._entities.snapshot()
        removed = self._fight_at(current, index)

        fights = [fight for position, fight in enumerate(current.fights) if position != index]
        fighters = aggregate(fights, current.fighters)
        snapshot = StoreSnapshot(fighters=fighters, fights=fights, champions=current.champions)

        async def delete_remote_fight() -> None:
            await self.coordinator.store.delete("fights", removed.key.as_filter())

        writes: list[RemoteWrite] = [delete_remote_fight]
        writes.extend(_counter_writes(self.coordinator, current.fighters, fighters))

        logger.info("Deleting fight #%d (%s vs %s)", index, removed.fighter1, removed.fighter2)
        return await self.coordinator.mutate(snapshot, writes, description=f"delete fight #{index}")

    async def delete_fighter(self, name: str) -> MutationOutcome:
        """Remove every fighter named ``name`` and detach it from the ledger and titles.

        Fights naming the fighter are dropped, which also changes the records of
        their opponents.
        """

        if self._entities.find_fighter(name) is None:
            raise FighterNotFoundError(f"Fighter '{name}' not found")

        current = self._entities.snapshot()
        remaining = [fighter for fighter in current.fighters if fighter.name != name]
        fights = [fight for fight in current.fights if not fight.involves(name)]
        champions = {
            division: holder for division, holder in current.champions.items() if holder != name
        }
        fighters = aggregate(fights, remaining)
        snapshot = StoreSnapshot(fighters=fighters, fights=fights, champions=champions)

        store = self.coordinator.store

        async def delete_remote_fighter() -> None:
            await store.delete("fighters", {"name": name})

        def delete_fights_by(column: str) -> RemoteWrite:
            async def write() -> None:
                await store.delete("fights", {column: name})

            return write

        async def vacate_titles() -> None:
            await store.delete("champions", {"name": name})

        writes: list[RemoteWrite] = [
            delete_remote_fighter,
            delete_fights_by("fighter1"),
            delete_fights_by("fighter2"),
            vacate_titles,
        ]
        writes.extend(_counter_writes(self.coordinator, remaining, fighters))

        logger.info("Deleting fighter %s", name)
        return await self.coordinator.mutate(snapshot, writes, description=f"delete fighter {name}")

    async def set_champion(self, division: Division, name: str | None) -> MutationOutcome:
        """Crown ``name`` in ``division``, or vacate the title when ``name`` is blank.

        The name is not checked against the roster.
        """

        holder = (name or "").strip()
        current = self._entities.snapshot()
        champions = dict(current.champions)
        store = self.coordinator.store

        if holder:
            champions[division] = holder

            async def write() -> None:
                await store.upsert(
                    "champions", [{"division": division, "name": holder}], on_conflict="division"
                )

            logger.info("Setting %s champion to %s", division.value, holder)
        else:
            champions.pop(division, None)

            async def write() -> None:
                await store.delete("champions", {"division": division})

            logger.info("Vacating %s title", division.value)

        snapshot = current.model_copy(update={"champions": champions})
        return await self.coordinator.mutate(
            snapshot, [write], description=f"set {division.value} champion"
        )

    @staticmethod
    def _fight_at(snapshot: StoreSnapshot, index: int) -> Fight:
        if index < 0 or index >= len(snapshot.fights):
            raise FightNotFoundError(f"No fight at index {index}")
        return snapshot.fights[index]


__all__ = [
    "CommandRejectedError",
    "DuplicateFighterError",
    "FightNotFoundError",
    "FighterNotFoundError",
    "InvalidFightError",
    "InvalidFighterNameError",
    "RecordsService",
]
