"""Sequential per-tenant document numbers (INV-00001, Q-00001, C-00001)."""

import re
from typing import Any

from sqlmodel import select

from src.crm.repositories.data import TenantScopedRepository

INVOICE_PREFIX = "INV"
QUOTE_PREFIX = "Q"
CONTRACT_PREFIX = "C"

_WIDTH = 5


def format_number(prefix: str, n: int) -> str:
    return f"{prefix}-{n:0{_WIDTH}d}"


async def next_document_number(
    repo: TenantScopedRepository[Any], column: str, prefix: str
) -> str:
    """Next number after the highest existing ``{prefix}-n`` for the tenant.

    Numbers typed in by users that do not follow the pattern are ignored.
    Two concurrent creates can pick the same number; the unique constraint
    on (tenant_id, number) rejects the second one.
    """
    field = getattr(repo.model, column)
    result = await repo.session.execute(
        repo.scope(select(field)).where(field.like(f"{prefix}-%"))
    )
    pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
    highest = 0
    for (value,) in result.all():
        match = pattern.match(value or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return format_number(prefix, highest + 1)
