"""Database utilities - engine, session, migrations."""

from src.crm.core.db.engine import build_connect_args, dispose_engine, get_engine
from src.crm.core.db.migrations import run_migrations_async, run_migrations_sync
from src.crm.core.db.session import create_session_factory, get_app_session, get_data_session

__all__ = [
    # Engine
    "build_connect_args",
    "dispose_engine",
    "get_engine",
    # Session
    "create_session_factory",
    "get_app_session",
    "get_data_session",
    # Migrations
    "run_migrations_async",
    "run_migrations_sync",
]
