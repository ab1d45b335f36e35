#!/usr/bin/env python
"""Create the fighters, fights and champions tables in the canonical store."""
import asyncio

from dotenv import load_dotenv

load_dotenv()

from ufl_records.db.connection import create_engine, create_tables
from ufl_records.main import validate_environment
from ufl_records.settings import get_settings


async def init_db() -> None:
    engine = create_engine()
    await create_tables(engine)
    await engine.dispose()
    print(f"✓ Tables created in {get_settings().database_type} store")


if __name__ == "__main__":
    validate_environment()
    asyncio.run(init_db())
