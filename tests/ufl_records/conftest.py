"""Shared fixtures for record, ranking and sync tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import date

import pytest

from tests.ufl_records.support.in_memory_store import InMemoryCanonicalStore
from ufl_records import cache
from ufl_records.schemas.fight import Fight, FightMethod
from ufl_records.schemas.fighter import Division, Fighter
from ufl_records.services.records_service import RecordsService
from ufl_records.services.sync_coordinator import SyncCoordinator


@pytest.fixture(autouse=True)
def _isolated_cache() -> Iterator[None]:
    """Give every test an empty in-process snapshot tier."""
    cache._local_cache.clear()
    yield
    cache._local_cache.clear()


@pytest.fixture
def make_fight() -> Callable[..., Fight]:
    """Build a fight with sensible defaults for the fields a test does not care about."""

    def _make(
        fighter1: str,
        fighter2: str,
        winner: str,
        *,
        method: FightMethod = FightMethod.DECISION,
        division: Division = Division.PC,
        on: date = date(2023, 1, 1),
    ) -> Fight:
        return Fight(
            fighter1=fighter1,
            fighter2=fighter2,
            winner=winner,
            method=method,
            division=division,
            date=on,
        )

    return _make


@pytest.fixture
def roster() -> list[Fighter]:
    return [
        Fighter(name="Ryu", division=Division.PC),
        Fighter(name="Ken", division=Division.PC),
        Fighter(name="Chun", division=Division.PC),
        Fighter(name="Guile", division=Division.PS5),
    ]


@pytest.fixture
def store() -> InMemoryCanonicalStore:
    return InMemoryCanonicalStore()


@pytest.fixture
def snapshot_cache() -> cache.SnapshotCache:
    return cache.SnapshotCache()


@pytest.fixture
def coordinator(
    store: InMemoryCanonicalStore, snapshot_cache: cache.SnapshotCache
) -> SyncCoordinator:
    return SyncCoordinator(store, snapshot_cache)


@pytest.fixture
def service(coordinator: SyncCoordinator) -> RecordsService:
    return RecordsService(coordinator)
