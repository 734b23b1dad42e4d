from __future__ import annotations

from alembic import context


def is_data_migration() -> bool:
    """True when Alembic was invoked with `--tag=<data source url>`.

    Tagged runs target a tenant data source; application database migrations
    must no-op in that mode, and data source migrations must no-op without it.
    """
    return bool(context.get_tag_argument())
