"""In-memory stand-ins for database sessions used by unit tests."""

from collections.abc import Iterable
from typing import Any

from sqlalchemy.dialects import postgresql


def compile_sql(statement: Any) -> tuple[str, dict[str, Any]]:
    """Render a statement as PostgreSQL would receive it."""
    compiled = statement.compile(dialect=postgresql.dialect())
    return str(compiled), dict(compiled.params)


class FakeResult:
    def __init__(self, rows: Iterable[Any]):
        self._rows = list(rows)

    def scalar_one_or_none(self) -> Any:
        return self._rows[0] if self._rows else None

    def scalars(self) -> "FakeResult":
        return self

    def all(self) -> list[Any]:
        return list(self._rows)


class RecordingSession:
    """Records statements and returns canned rows, like an AsyncSession with no database.

    ``tables`` maps a model to the rows a select over that model returns;
    added and deleted objects of those models are reflected in later selects.
    Statements over any other model return ``rows``.
    """

    def __init__(
        self,
        rows: Iterable[Any] = (),
        objects: dict[tuple[type, Any], Any] | None = None,
        tables: dict[type, list[Any]] | None = None,
    ):
        self.rows = list(rows)
        self.tables = tables or {}
        self.objects = objects or {}
        self.statements: list[Any] = []
        self.added: list[Any] = []
        self.deleted: list[Any] = []
        self.commits = 0
        self.rollbacks = 0

    async def execute(self, statement: Any) -> FakeResult:
        self.statements.append(statement)
        descriptions = getattr(statement, "column_descriptions", None) or [{}]
        entity = descriptions[0].get("entity")
        if entity in self.tables:
            return FakeResult(self.tables[entity])
        return FakeResult(self.rows)

    async def get(self, model: type, id: Any) -> Any:
        return self.objects.get((model, id))

    def add(self, obj: Any) -> None:
        self.added.append(obj)
        table = self.tables.get(type(obj))
        if table is not None and obj not in table:
            table.append(obj)

    async def delete(self, obj: Any) -> None:
        self.deleted.append(obj)
        table = self.tables.get(type(obj))
        if table is not None and obj in table:
            table.remove(obj)

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    async def refresh(self, obj: Any) -> None:
        pass

    async def __aenter__(self) -> "RecordingSession":
        return self

    async def __aexit__(self, *exc: object) -> None:
        pass


async def login(client: Any, member: dict[str, str]) -> dict[str, str]:
    """Log a member in and return the headers for authenticated tenant requests."""
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": member["email"], "password": member["password"]},
        headers={"X-Tenant-Slug": member["tenant_slug"]},
    )
    assert response.status_code == 200, response.text
    return {
        "Authorization": f"Bearer {response.json()['access_token']}",
        "X-Tenant-Slug": member["tenant_slug"],
    }
