import datetime as dt

from sqlalchemy import Date, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class FighterRow(Base):
    __tablename__ = "fighters"

    # Surrogate key only preserves insertion order; rows are addressed by name.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    division: Mapped[str] = mapped_column(String, nullable=False)
    wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    losses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    draws: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ko_wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    previous_rank: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class FightRow(Base):
    __tablename__ = "fights"
    __table_args__ = (
        Index("ix_fights_natural_key", "fighter1", "fighter2", "division", "date"),
    )

    # Ledger order; fights are addressed by (fighter1, fighter2, division, date).
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    fighter1: Mapped[str] = mapped_column(String, nullable=False)
    fighter2: Mapped[str] = mapped_column(String, nullable=False)
    winner: Mapped[str] = mapped_column(String, nullable=False)
    method: Mapped[str] = mapped_column(String, nullable=False)
    division: Mapped[str] = mapped_column(String, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)


class ChampionRow(Base):
    __tablename__ = "champions"

    division: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
