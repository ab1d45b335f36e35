"""Tests for record commands and queries against an in-memory canonical store."""

from __future__ import annotations

from datetime import date

import pytest

from tests.ufl_records.support.in_memory_store import FailingCanonicalStore
from ufl_records.cache import SnapshotCache
from ufl_records.schemas.fight import DRAW, FightMethod
from ufl_records.schemas.fighter import Division
from ufl_records.services.aggregation import aggregate
from ufl_records.services.records_service import (
    DuplicateFighterError,
    FighterNotFoundError,
    FightNotFoundError,
    InvalidFighterNameError,
    InvalidFightError,
    RecordsService,
)
from ufl_records.services.sync_coordinator import SyncCoordinator


async def _seed(service: RecordsService, make_fight) -> None:
    for name in ("Ryu", "Ken", "Chun"):
        await service.add_fighter(name, Division.PC)
    await service.add_fight(make_fight("Ryu", "Ken", "Ryu", method=FightMethod.KO))
    await service.add_fight(make_fight("Ken", "Chun", DRAW, method=FightMethod.DRAW))
    await service.add_fight(make_fight("Chun", "Ryu", "Chun", on=date(2023, 2, 1)))


def _records(service: RecordsService) -> dict[str, tuple[int, int, int, int]]:
    return {f.name: (f.wins, f.losses, f.draws, f.ko_wins) for f in service.fighters()}


@pytest.mark.asyncio
async def test_add_fighter_twice_is_rejected(service, store) -> None:
    await service.add_fighter("A", Division.PC)

    with pytest.raises(DuplicateFighterError):
        await service.add_fighter("A", Division.PC)

    assert [(f.name, f.division) for f in service.fighters()] == [("A", Division.PC)]
    assert len(store.tables["fighters"]) == 1


@pytest.mark.asyncio
async def test_same_name_allowed_in_other_division(service) -> None:
    await service.add_fighter("A", Division.PC)
    await service.add_fighter("A", Division.XBOX)

    assert {f.division for f in service.fighters()} == {Division.PC, Division.XBOX}


@pytest.mark.asyncio
async def test_blank_fighter_name_is_rejected(service, store) -> None:
    with pytest.raises(InvalidFighterNameError):
        await service.add_fighter("   ", Division.PC)

    assert store.calls == []


@pytest.mark.asyncio
async def test_add_fight_updates_records_locally_and_remotely(service, store, make_fight) -> None:
    await _seed(service, make_fight)

    assert _records(service) == {
        "Ryu": (1, 1, 0, 1),
        "Ken": (0, 1, 1, 0),
        "Chun": (1, 0, 1, 0),
    }
    remote = {
        row["name"]: (row["wins"], row["losses"], row["draws"])
        for row in store.tables["fighters"]
    }
    assert remote == {"Ryu": (1, 1, 0), "Ken": (0, 1, 1), "Chun": (1, 0, 1)}
    assert len(store.tables["fights"]) == 3


@pytest.mark.asyncio
async def test_self_fight_is_rejected(service, make_fight) -> None:
    await service.add_fighter("Ryu", Division.PC)

    with pytest.raises(InvalidFightError):
        await service.add_fight(make_fight("Ryu", "Ryu", "Ryu"))

    assert service.fights() == []


@pytest.mark.asyncio
async def test_winner_must_be_participant_or_draw(service, make_fight) -> None:
    with pytest.raises(InvalidFightError):
        await service.add_fight(make_fight("Ryu", "Ken", "Akuma"))


@pytest.mark.asyncio
async def test_padded_winner_is_trimmed_like_participants(service, store, make_fight) -> None:
    for name in ("Ryu", "Ken"):
        await service.add_fighter(name, Division.PC)

    await service.add_fight(make_fight(" Ryu", "Ken", " Ryu"))
    await service.edit_fight(
        0, winner="Ken ", method=FightMethod.KO, fight_date=date(2023, 1, 1)
    )

    assert service.fights()[0].winner == "Ken"
    assert store.tables["fights"][0]["winner"] == "Ken"
    assert _records(service)["Ken"] == (1, 0, 0, 1)


@pytest.mark.asyncio
async def test_rename_relabels_ledger_and_champion(service, store, make_fight) -> None:
    await _seed(service, make_fight)
    await service.set_champion(Division.PC, "Ryu")
    before = _records(service)

    await service.edit_fighter_name("Ryu", "Ryu2")

    after = _records(service)
    assert after["Ryu2"] == before["Ryu"]
    assert "Ryu" not in after
    assert all(fight.fighter1 != "Ryu" and fight.fighter2 != "Ryu" for fight in service.fights())
    assert service.fights()[0].winner == "Ryu2"
    assert service.champions() == {Division.PC: "Ryu2"}
    assert store.tables["champions"] == [{"division": "UFL PC", "name": "Ryu2"}]


@pytest.mark.asyncio
async def test_rename_to_taken_name_is_rejected(service, make_fight) -> None:
    await _seed(service, make_fight)

    with pytest.raises(DuplicateFighterError):
        await service.edit_fighter_name("Ryu", "Ken")
    with pytest.raises(InvalidFighterNameError):
        await service.edit_fighter_name("Ryu", "")
    with pytest.raises(FighterNotFoundError):
        await service.edit_fighter_name("Nobody", "Somebody")


@pytest.mark.asyncio
async def test_delete_fight_matches_fresh_aggregate(service, store, make_fight) -> None:
    await _seed(service, make_fight)
    expected_ledger = [fight for i, fight in enumerate(service.fights()) if i != 0]

    await service.delete_fight(0)

    assert service.fights() == expected_ledger
    assert service.fighters() == aggregate(expected_ledger, service.fighters())
    assert len(store.tables["fights"]) == 2
    assert _records(service)["Ryu"] == (0, 1, 0, 0)


@pytest.mark.asyncio
async def test_delete_fight_out_of_range(service) -> None:
    with pytest.raises(FightNotFoundError):
        await service.delete_fight(0)


@pytest.mark.asyncio
async def test_delete_fight_removes_every_remote_duplicate(service, store, make_fight) -> None:
    for name in ("Ryu", "Ken"):
        await service.add_fighter(name, Division.PC)
    await service.add_fight(make_fight("Ryu", "Ken", "Ryu"))
    await service.add_fight(make_fight("Ryu", "Ken", "Ryu"))

    await service.delete_fight(1)

    assert store.tables["fights"] == []
    assert service.fights() == []


@pytest.mark.asyncio
async def test_edit_fight_moves_remote_row(service, store, make_fight) -> None:
    await _seed(service, make_fight)

    await service.edit_fight(
        0, winner="Ken", method=FightMethod.DECISION, fight_date=date(2023, 3, 3)
    )

    edited = service.fights()[0]
    assert edited.winner == "Ken"
    assert edited.method is FightMethod.DECISION
    assert edited.date == date(2023, 3, 3)
    assert _records(service)["Ryu"] == (0, 2, 0, 0)
    assert store.tables["fights"][0]["date"] == date(2023, 3, 3)


@pytest.mark.asyncio
async def test_edit_fight_rejects_outsider_winner(service, make_fight) -> None:
    await _seed(service, make_fight)

    with pytest.raises(InvalidFightError):
        await service.edit_fight(
            0, winner="Chun", method=FightMethod.KO, fight_date=date(2023, 1, 1)
        )


@pytest.mark.asyncio
async def test_delete_fighter_cascades(service, store, make_fight) -> None:
    await _seed(service, make_fight)
    await service.set_champion(Division.PC, "Ryu")

    await service.delete_fighter("Ryu")

    assert [f.name for f in service.fighters()] == ["Ken", "Chun"]
    assert len(service.fights()) == 1
    assert service.champions() == {}
    assert _records(service)["Ken"] == (0, 0, 1, 0)
    assert store.tables["champions"] == []
    assert len(store.tables["fights"]) == 1


@pytest.mark.asyncio
async def test_delete_unknown_fighter(service) -> None:
    with pytest.raises(FighterNotFoundError):
        await service.delete_fighter("Nobody")


@pytest.mark.asyncio
async def test_set_champion_upserts_and_vacates(service, store) -> None:
    await service.set_champion(Division.XBOX, "Unlisted")
    await service.set_champion(Division.XBOX, "Someone")

    assert service.champions() == {Division.XBOX: "Someone"}
    assert store.tables["champions"] == [{"division": "UFL XBOX", "name": "Someone"}]

    await service.set_champion(Division.XBOX, "  ")

    assert service.champions() == {}
    assert store.tables["champions"] == []


@pytest.mark.asyncio
async def test_champion_is_not_ranked(service, make_fight) -> None:
    await _seed(service, make_fight)
    await service.set_champion(Division.PC, "Chun")

    assert [entry.name for entry in service.ranked_fighters(Division.PC)] == ["Ryu", "Ken"]


@pytest.mark.asyncio
async def test_search_queries(service, make_fight) -> None:
    await _seed(service, make_fight)

    assert [f.name for f in service.search_fighters("KE")] == ["Ken"]
    assert [index for index, _ in service.search_fights("chun")] == [1, 2]
    assert len(service.search_fighters(None)) == 3


@pytest.mark.asyncio
async def test_remote_failure_is_not_raised(make_fight) -> None:
    store = FailingCanonicalStore(fail_on={"insert"})
    service = RecordsService(SyncCoordinator(store, SnapshotCache()))

    outcome = await service.add_fighter("Ryu", Division.PC)

    assert outcome.remote_confirmed is False
    assert service.fighters() == []
