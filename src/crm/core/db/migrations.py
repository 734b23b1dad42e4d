"""Reusable migration runner for both production and tests."""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from alembic.config import Config

from alembic import command

_ALEMBIC_DIR = Path(__file__).resolve().parents[3] / "alembic"


def _alembic_config() -> Config:
    alembic_cfg = Config()
    alembic_cfg.set_main_option("script_location", str(_ALEMBIC_DIR))
    return alembic_cfg


def run_migrations_sync(data_source_url: str | None = None) -> None:
    """Run Alembic migrations synchronously.

    Args:
        data_source_url: If provided, runs data source migrations against this URL.
                         If None, runs application database migrations.
    """
    alembic_cfg = _alembic_config()
    if data_source_url:
        command.upgrade(alembic_cfg, "head", tag=data_source_url)
    else:
        command.upgrade(alembic_cfg, "head")


async def run_migrations_async(data_source_url: str | None = None) -> None:
    """Run Alembic migrations from async context.

    Uses ThreadPoolExecutor to avoid event loop conflicts with Alembic.
    """
    loop = asyncio.get_running_loop()
    with ThreadPoolExecutor() as pool:
        await loop.run_in_executor(pool, run_migrations_sync, data_source_url)
