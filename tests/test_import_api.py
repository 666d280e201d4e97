"""스프레드시트 임포트 API 테스트.

Import into a new or existing schedule, auto-assignment onto seeded
positions, skipped-row reporting, publish lock and temp file cleanup.
"""

from io import BytesIO

from httpx import AsyncClient
from openpyxl import load_workbook

from tests.conftest import API, WEEK_START, auth_header, create_week

IMPORT = f"{API}/schedules/import"

ROSTER_CSV = (
    "Name,Day,Shift Time,Department\n"
    "Ann Lee,Sunday,5:00a - 9:00a,FC\n"
    "Bob Ray,Sunday,abc,FC\n"
    "Cat Wu,Monday,11:00a - 2:00p,Kitchen\n"
).encode("utf-8")


def opening(schedule: dict, day_index: int, period_index: int = 0) -> list[dict]:
    return schedule["days"][day_index]["shifts"][period_index]["positions"]


class TestImport:
    """임포트 흐름."""

    async def test_import_creates_schedule_and_assigns(
        self, client: AsyncClient, supervisor_token, catalog, upload_dir,
    ):
        res = await client.post(
            IMPORT,
            files={"file": ("roster.csv", ROSTER_CSV, "text/csv")},
            data={"week_start_date": WEEK_START.isoformat()},
            headers=auth_header(supervisor_token),
        )
        assert res.status_code == 201, res.text
        body = res.json()

        assert body["imported_count"] == 2
        assert body["skipped_count"] == 1
        assert body["skipped_rows"][0]["row"] == 3
        assert body["assigned_count"] == 3
        assert body["unplaced"] == []

        schedule = body["schedule"]
        assert schedule["week_start_date"] == WEEK_START.isoformat()
        assert opening(schedule, 0, 0)[0]["assigned_employee_name"] == "Ann Lee"
        assert opening(schedule, 0, 1)[0]["assigned_employee_name"] == "Ann Lee"
        lunch_kitchen = [p for p in opening(schedule, 1, 2) if p["department"] == "KT"]
        assert lunch_kitchen[0]["assigned_employee_name"] == "Cat Wu"
        assert [e["name"] for e in schedule["uploaded_employees"]] == ["Ann Lee", "Cat Wu"]

        assert list(upload_dir.iterdir()) == []

    async def test_import_into_existing_schedule(self, client: AsyncClient, supervisor_token):
        data = await create_week(client, supervisor_token)
        res = await client.post(
            IMPORT,
            files={"file": ("roster.csv", ROSTER_CSV, "text/csv")},
            data={"target_schedule_id": data["id"]},
            headers=auth_header(supervisor_token),
        )
        assert res.status_code == 201
        body = res.json()
        assert body["schedule"]["id"] == data["id"]
        assert body["assigned_count"] == 0
        assert body["unplaced"] == ["Ann Lee", "Cat Wu"]

        res = await client.get(f"{API}/schedules/{data['id']}/employees", headers=auth_header(supervisor_token))
        assert [e["is_uploaded"] for e in res.json()] == [True, True]

    async def test_import_into_published_schedule_locked(
        self, client: AsyncClient, manager_token, upload_dir,
    ):
        data = await create_week(client, manager_token)
        await client.post(f"{API}/schedules/{data['id']}/publish", headers=auth_header(manager_token))
        res = await client.post(
            IMPORT,
            files={"file": ("roster.csv", ROSTER_CSV, "text/csv")},
            data={"target_schedule_id": data["id"]},
            headers=auth_header(manager_token),
        )
        assert res.status_code == 409
        assert list(upload_dir.iterdir()) == []

    async def test_no_usable_rows(self, client: AsyncClient, supervisor_token):
        content = b"Name,Day,Shift Time,Department\nBob,Sunday,abc,FC\n"
        res = await client.post(IMPORT, files={"file": ("roster.csv", content, "text/csv")},
                                headers=auth_header(supervisor_token))
        assert res.status_code == 400

    async def test_missing_columns(self, client: AsyncClient, supervisor_token):
        content = b"Name,Day\nAnn,Sunday\n"
        res = await client.post(IMPORT, files={"file": ("roster.csv", content, "text/csv")},
                                headers=auth_header(supervisor_token))
        assert res.status_code == 400
        assert "Missing required columns" in res.json()["detail"]

    async def test_sample_download(self, client: AsyncClient, supervisor_token):
        res = await client.get(f"{IMPORT}/sample", headers=auth_header(supervisor_token))
        assert res.status_code == 200
        wb = load_workbook(BytesIO(res.content))
        assert wb.active.title == "Roster"
