"""기본 포지션 카탈로그 API 테스트.

Per-store (weekday, period) catalog: upsert, lookup, listing order,
role checks and cross-store protection.
"""

import uuid

from httpx import AsyncClient

from tests.conftest import API, auth_header, create_week

CATALOG = f"{API}/default-positions"


async def upsert(client: AsyncClient, token: str, **body):
    payload = {"weekday": 0, "period": "opening", "positions": [
        {"name": "Register 1", "department": "FC"},
        {"name": "Fryer", "department": "Kitchen"},
    ], **body}
    return await client.put(CATALOG, json=payload, headers=auth_header(token))


class TestCatalog:
    """카탈로그 CRUD."""

    async def test_upsert_creates_then_replaces(self, client: AsyncClient, manager_token):
        res = await upsert(client, manager_token)
        assert res.status_code == 201
        created = res.json()
        assert created["period"] == "Opening"
        assert created["name"] == "Sunday Opening"
        assert created["positions"][1] == {"name": "Fryer", "department": "KT"}

        res = await upsert(client, manager_token, positions=[{"name": "Window", "department": "DT"}])
        assert res.status_code == 200
        assert res.json()["id"] == created["id"]
        assert res.json()["positions"] == [{"name": "Window", "department": "DT"}]

    async def test_get_by_weekday_and_period(self, client: AsyncClient, manager_token):
        await upsert(client, manager_token)
        res = await client.get(f"{CATALOG}/0/OPENING", headers=auth_header(manager_token))
        assert res.status_code == 200
        assert len(res.json()["positions"]) == 2

        res = await client.get(f"{CATALOG}/1/Opening", headers=auth_header(manager_token))
        assert res.status_code == 404

        res = await client.get(f"{CATALOG}/0/Brunch", headers=auth_header(manager_token))
        assert res.status_code == 400

    async def test_list_is_ordered(self, client: AsyncClient, manager_token):
        await upsert(client, manager_token, weekday=2, period="Dinner")
        await upsert(client, manager_token, weekday=2, period="Morning")
        await upsert(client, manager_token, weekday=0, period="Closing")

        res = await client.get(CATALOG, headers=auth_header(manager_token))
        assert [(e["weekday"], e["period"]) for e in res.json()] == [
            (0, "Closing"), (2, "Morning"), (2, "Dinner"),
        ]
        res = await client.get(CATALOG, params={"weekday": 2}, headers=auth_header(manager_token))
        assert len(res.json()) == 2

    async def test_unknown_department_rejected(self, client: AsyncClient, manager_token):
        res = await upsert(client, manager_token, positions=[{"name": "Host", "department": "Lobby"}])
        assert res.status_code == 400

    async def test_supervisor_can_read_not_write(self, client: AsyncClient, supervisor_token):
        res = await client.get(CATALOG, headers=auth_header(supervisor_token))
        assert res.status_code == 200
        res = await upsert(client, supervisor_token)
        assert res.status_code == 403

    async def test_delete_other_store_forbidden(self, client: AsyncClient, manager_token, other_token):
        created = (await upsert(client, manager_token)).json()

        res = await client.delete(f"{CATALOG}/{created['id']}", headers=auth_header(other_token))
        assert res.status_code == 403

        res = await client.delete(f"{CATALOG}/{created['id']}", headers=auth_header(manager_token))
        assert res.status_code == 204
        res = await client.delete(f"{CATALOG}/{uuid.uuid4()}", headers=auth_header(manager_token))
        assert res.status_code == 404

    async def test_new_schedule_is_seeded_from_catalog(self, client: AsyncClient, manager_token):
        await upsert(client, manager_token)
        data = await create_week(client, manager_token)
        sunday_opening = data["days"][0]["shifts"][0]["positions"]
        monday_opening = data["days"][1]["shifts"][0]["positions"]
        assert [(p["name"], p["department"]) for p in sunday_opening] == [("Register 1", "FC"), ("Fryer", "KT")]
        assert monday_opening == []
