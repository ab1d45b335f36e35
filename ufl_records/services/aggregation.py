"""Derive fighter records from the fight ledger.

Fighter counters are a cache of the ledger, never authoritative state. This
module is the single place they are computed: every ledger change and every
load runs :func:`aggregate` before the result is persisted anywhere.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ufl_records.schemas.fight import Fight, FightMethod
from ufl_records.schemas.fighter import Fighter


@dataclass
class _Tally:
    wins: int = 0
    losses: int = 0
    draws: int = 0
    ko_wins: int = 0

    def record(self, fight: Fight, name: str) -> None:
        if fight.winner == name:
            self.wins += 1
            if fight.method == FightMethod.KO:
                self.ko_wins += 1
        elif fight.is_draw:
            self.draws += 1
        else:
            self.losses += 1


def tally_fighter(fighter: Fighter, ledger: Iterable[Fight]) -> Fighter:
    """Return ``fighter`` with counters recomputed from zero over ``ledger``.

    Only entries naming the fighter *and* recorded in the fighter's own division
    count; a same-named fighter in another division keeps a separate record.
    """

    tally = _Tally()
    for fight in ledger:
        if fight.division == fighter.division and fight.involves(fighter.name):
            tally.record(fight, fighter.name)
    return fighter.model_copy(
        update={
            "wins": tally.wins,
            "losses": tally.losses,
            "draws": tally.draws,
            "ko_wins": tally.ko_wins,
        }
    )


def aggregate(ledger: Sequence[Fight], fighters: Sequence[Fighter]) -> list[Fighter]:
    """Recompute win/loss/draw/KO counters for every fighter.

    Pure and idempotent: the inputs are never mutated and the output depends
    only on the ledger contents and the fighters' names and divisions. Fighter
    order is preserved.
    """

    return [tally_fighter(fighter, ledger) for fighter in fighters]


__all__ = ["aggregate", "tally_fighter"]
