"""Opportunity to event conversion against a real data source."""

from datetime import date, timedelta

import pytest

from tests.helpers import login

pytestmark = pytest.mark.integration

EVENT_DAY = date(2026, 9, 12)


@pytest.fixture
async def headers(make_tenant, make_member, client):
    tenant = await make_tenant()
    return await login(client, await make_member(tenant))


async def post(client, headers, url: str, body: dict) -> dict:
    response = await client.post(url, json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_convert_lead_backed_opportunity(client, headers):
    lead = await post(
        client,
        headers,
        "/api/v1/leads",
        {"first_name": "Dana", "last_name": "Reyes", "company": "Harbor Events"},
    )
    opportunity = await post(
        client,
        headers,
        "/api/v1/opportunities",
        {"name": "Harbor gala", "lead_id": lead["id"], "stage": "negotiation"},
    )
    await post(
        client,
        headers,
        f"/api/v1/opportunities/{opportunity['id']}/dates",
        {"event_date": EVENT_DAY.isoformat()},
    )
    quote = await post(
        client,
        headers,
        "/api/v1/quotes",
        {
            "opportunity_id": opportunity["id"],
            "subtotal": "1000.00",
            "tax_rate": "0.08",
            "status": "accepted",
        },
    )
    assert quote["quote_number"].startswith("Q-")

    result = await post(
        client, headers, f"/api/v1/opportunities/{opportunity['id']}/convert-to-event", {}
    )

    assert result["lead_converted"] is True
    assert result["event_dates_moved"] == 1
    assert result["account_id"] is not None
    assert result["contact_id"] is not None

    event = (await client.get(f"/api/v1/events/{result['event_id']}", headers=headers)).json()
    assert event["name"] == "Harbor gala"
    assert event["event_date"] == EVENT_DAY.isoformat()
    assert event["status"] == "scheduled"

    dates = await client.get(f"/api/v1/events/{result['event_id']}/dates", headers=headers)
    assert [d["event_date"] for d in dates.json()] == [EVENT_DAY.isoformat()]
    leftover = await client.get(f"/api/v1/opportunities/{opportunity['id']}/dates", headers=headers)
    assert leftover.json() == []

    invoice = (await client.get(f"/api/v1/invoices/{result['invoice_id']}", headers=headers)).json()
    assert invoice["status"] == "draft"
    assert invoice["invoice_number"] == "INV-00001"
    assert invoice["total"] == "1080.00"
    assert invoice["balance_due"] == "1080.00"
    assert invoice["due_date"] == (EVENT_DAY + timedelta(days=30)).isoformat()

    account = (await client.get(f"/api/v1/accounts/{result['account_id']}", headers=headers)).json()
    assert account["name"] == "Harbor Events"

    converted = (
        await client.get(f"/api/v1/opportunities/{opportunity['id']}", headers=headers)
    ).json()
    assert converted["is_converted"] is True
    assert converted["stage"] == "closed_won"
    assert converted["converted_event_id"] == result["event_id"]


async def test_second_conversion_conflicts(client, headers):
    opportunity = await post(client, headers, "/api/v1/opportunities", {"name": "Corporate picnic"})
    url = f"/api/v1/opportunities/{opportunity['id']}/convert-to-event"

    first = await client.post(url, headers=headers)
    second = await client.post(url, headers=headers)

    assert first.status_code == 201
    assert first.json()["invoice_id"] is None
    assert second.status_code == 409
    assert "request_id" in second.json()


async def test_payment_flow_settles_invoice(client, headers):
    invoice = await post(
        client, headers, "/api/v1/invoices", {"issue_date": EVENT_DAY.isoformat()}
    )
    url = f"/api/v1/invoices/{invoice['id']}"
    await post(
        client,
        headers,
        f"{url}/line-items",
        {"description": "Stage rental", "quantity": "1", "unit_price": "500.00"},
    )

    too_much = await client.post(f"{url}/payments", json={"amount": "500.01"}, headers=headers)
    assert too_much.status_code == 400

    await post(client, headers, f"{url}/payments", {"amount": "200.00"})
    partial = (await client.get(url, headers=headers)).json()
    assert partial["status"] == "partially_paid"
    assert partial["balance_due"] == "300.00"

    await post(client, headers, f"{url}/payments", {"amount": "300.00"})
    settled = (await client.get(url, headers=headers)).json()
    assert settled["status"] == "paid_in_full"
    assert settled["balance_due"] == "0.00"

    again = await client.post(f"{url}/payments", json={"amount": "1.00"}, headers=headers)
    assert again.status_code == 400
