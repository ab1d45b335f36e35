"""Reconcile the in-memory working set with the canonical store and the cache.

Reconciliation is optimistic and eventually consistent: a command applies its
change locally first, issues best-effort remote writes, then reloads the whole
state from the canonical store. Nothing is rolled back. If a write fails, the
reload replaces the optimistic change with whatever the remote actually holds.
If the remote cannot be read at all, the cached snapshot is used instead.

Reloads are neither debounced nor serialised. When two overlap, the one that
finishes last wins.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import ValidationError

from ufl_records.cache import CHAMPIONS_KEY, FIGHTERS_KEY, FIGHTS_KEY, SnapshotCache
from ufl_records.db.repositories.canonical_store import (
    CanonicalStoreProtocol,
    PersistenceError,
)
from ufl_records.schemas.fight import Fight
from ufl_records.schemas.fighter import Fighter
from ufl_records.schemas.snapshot import StoreSnapshot
from ufl_records.services.aggregation import aggregate
from ufl_records.services.entity_store import EntityStore

logger = logging.getLogger(__name__)

RemoteWrite = Callable[[], Awaitable[Any]]


class SyncSource(str, Enum):
    """Where the working set came from on the last load."""

    REMOTE = "remote"
    CACHE = "cache"
    EMPTY = "empty"


@dataclass(frozen=True)
class MutationOutcome:
    remote_confirmed: bool
    source: SyncSource


def fighter_row(fighter: Fighter) -> dict[str, Any]:
    return fighter.model_dump()


def fight_row(fight: Fight) -> dict[str, Any]:
    return fight.model_dump()


def counter_values(fighter: Fighter) -> dict[str, int]:
    return {
        "wins": fighter.wins,
        "losses": fighter.losses,
        "draws": fighter.draws,
        "ko_wins": fighter.ko_wins,
    }


class SyncCoordinator:
    """Own the working set and every transition applied to it.

    Every transition, confirmed by the remote or not, is mirrored into the
    fallback cache as soon as it is applied.
    """

    def __init__(
        self,
        store: CanonicalStoreProtocol,
        cache: SnapshotCache,
        entities: EntityStore | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.entities = entities or EntityStore()
        self.last_source: SyncSource | None = None

    async def load(self) -> SyncSource:
        """Replace the working set from the canonical store, or the cache if unreachable.

        Remote data is re-aggregated before it is installed because the stored
        counters may lag behind the stored ledger.
        """

        try:
            snapshot = await self._fetch_remote()
        except (PersistenceError, ValidationError) as exc:
            logger.warning("Canonical store load failed, falling back to cached snapshot: %s", exc)
            snapshot, source = await self._read_cache()
        else:
            source = SyncSource.REMOTE

        await self.commit(snapshot)
        self.last_source = source
        logger.info(
            "Loaded %d fighters, %d fights, %d champions from %s",
            len(snapshot.fighters),
            len(snapshot.fights),
            len(snapshot.champions),
            source.value,
        )
        return source

    async def reload(self) -> SyncSource:
        return await self.load()

    async def commit(self, snapshot: StoreSnapshot) -> None:
        """Install ``snapshot`` in memory and mirror it into the cache."""

        self.entities.replace(snapshot)
        await self._write_cache(snapshot)

    async def mutate(
        self,
        snapshot: StoreSnapshot,
        writes: Sequence[RemoteWrite],
        *,
        description: str,
    ) -> MutationOutcome:
        """Run one optimistic mutation cycle.

        ``snapshot`` becomes visible immediately. ``writes`` run in order and
        stop at the first failure, which is logged rather than raised. A reload
        always follows.
        """

        await self.commit(snapshot)

        confirmed = True
        for write in writes:
            try:
                await write()
            except PersistenceError as exc:
                logger.error(
                    "Remote write for %s failed; optimistic state kept until reload: %s",
                    description,
                    exc,
                )
                confirmed = False
                break

        source = await self.reload()
        return MutationOutcome(remote_confirmed=confirmed, source=source)

    async def _fetch_remote(self) -> StoreSnapshot:
        fighter_rows = await self.store.select_all("fighters")
        fight_rows = await self.store.select_all("fights")
        champion_rows = await self.store.select_all("champions")

        # Rows with an unknown division fail validation like any other corrupt row.
        remote = StoreSnapshot.model_validate(
            {
                "fighters": fighter_rows,
                "fights": fight_rows,
                "champions": {
                    row.get("division"): row["name"] for row in champion_rows if row.get("name")
                },
            }
        )
        return remote.model_copy(update={"fighters": aggregate(remote.fights, remote.fighters)})

    async def _read_cache(self) -> tuple[StoreSnapshot, SyncSource]:
        fighters = await self.cache.get(FIGHTERS_KEY)
        fights = await self.cache.get(FIGHTS_KEY)
        champions = await self.cache.get(CHAMPIONS_KEY)

        if fighters is None and fights is None and champions is None:
            logger.warning("No cached snapshot available; starting with empty records")
            return StoreSnapshot(), SyncSource.EMPTY

        try:
            snapshot = StoreSnapshot.model_validate(
                {
                    "fighters": fighters or [],
                    "fights": fights or [],
                    "champions": {key: value for key, value in (champions or {}).items() if value},
                }
            )
        except ValidationError as exc:
            logger.error("Cached snapshot is unreadable; starting with empty records: %s", exc)
            return StoreSnapshot(), SyncSource.EMPTY
        return snapshot, SyncSource.CACHE

    async def _write_cache(self, snapshot: StoreSnapshot) -> None:
        await self.cache.set(
            FIGHTERS_KEY, [fighter.model_dump(mode="json") for fighter in snapshot.fighters]
        )
        await self.cache.set(
            FIGHTS_KEY, [fight.model_dump(mode="json") for fight in snapshot.fights]
        )
        await self.cache.set(
            CHAMPIONS_KEY,
            {division.value: name for division, name in snapshot.champions.items()},
        )


__all__ = [
    "MutationOutcome",
    "RemoteWrite",
    "SyncCoordinator",
    "SyncSource",
    "counter_values",
    "fight_row",
    "fighter_row",
]
