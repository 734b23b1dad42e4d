"""Pipeline statistics for the opportunities dashboard."""

from decimal import Decimal
from typing import Any
from uuid import uuid4

import pytest

from src.crm.services.opportunity_service import OpportunityService
from tests.helpers import FakeResult, RecordingSession, compile_sql

pytestmark = pytest.mark.unit

TENANT_ID = uuid4()


class QueuedSession(RecordingSession):
    """Answers each statement with the next canned result set."""

    def __init__(self, *results: list[tuple]):
        super().__init__()
        self.results = list(results)

    async def execute(self, statement: Any) -> FakeResult:
        self.statements.append(statement)
        return FakeResult(self.results.pop(0))


async def test_stats_per_stage_and_pipeline_values():
    session = QueuedSession(
        [
            ("qualification", 2, Decimal("3000")),
            ("proposal", 1, Decimal("5000")),
            ("closed_won", 1, Decimal("2000")),
        ],
        [
            (Decimal("1000.00"), 20),
            (Decimal("2000.00"), 50),
            (Decimal("5000.00"), 75),
            (None, 10),
        ],
    )

    stats = await OpportunityService(session, TENANT_ID, None).stats()

    assert stats.total_count == 4
    assert stats.total_amount == Decimal("10000.00")
    assert stats.open_pipeline_value == Decimal("8000.00")
    # 1000*20% + 2000*50% + 5000*75%
    assert stats.weighted_pipeline_value == Decimal("4950.00")
    assert [(s.stage, s.count, s.amount) for s in stats.by_stage] == [
        ("closed_won", 1, Decimal("2000.00")),
        ("proposal", 1, Decimal("5000.00")),
        ("qualification", 2, Decimal("3000.00")),
    ]


async def test_open_pipeline_excludes_closed_stages_and_other_tenants():
    session = QueuedSession([], [])

    stats = await OpportunityService(session, TENANT_ID, None).stats()

    assert stats.total_count == 0
    assert stats.weighted_pipeline_value == Decimal("0.00")
    for statement in session.statements:
        _, params = compile_sql(statement)
        assert TENANT_ID in params.values()
    sql, params = compile_sql(session.statements[1])
    assert "NOT IN" in sql
    assert {"closed_won", "closed_lost"} <= set(_flatten(params.values()))
    assert "open" in params.values()


def _flatten(values):
    for value in values:
        if isinstance(value, (list, tuple)):
            yield from value
        else:
            yield value
