"""스케줄 구조 API 테스트 — 타임 블록, 포지션, 직원 배정.

Time block and position CRUD on one day of a schedule, employee
assignment by directory id, temporary id and free-text name, and the
before/after counts reported by deletions.
"""

import uuid

from httpx import AsyncClient

from tests.conftest import API, auth_header, create_week


def day_url(schedule_id: str, day_index: int = 0) -> str:
    return f"{API}/schedules/{schedule_id}/days/{day_index}"


def find_position(schedule: dict, position_id: str, day_index: int = 0) -> dict:
    day = schedule["days"][day_index]
    blocks = day["shifts"] if day["layout"] == "fixed" else day["time_blocks"]
    for block in blocks:
        for position in block["positions"]:
            if position["id"] == position_id:
                return position
    raise AssertionError(f"position {position_id} not found")


async def add_position(client: AsyncClient, token: str, schedule_id: str,
                       block_id: str = "Opening", **body) -> dict:
    payload = {"name": "Register 1", "department": "FC", **body}
    res = await client.post(f"{day_url(schedule_id)}/blocks/{block_id}/positions",
                            json=payload, headers=auth_header(token))
    assert res.status_code == 201, res.text
    return res.json()


class TestPositions:
    """포지션 CRUD."""

    async def test_add_position_to_shift(self, client: AsyncClient, supervisor_token):
        data = await create_week(client, supervisor_token)
        updated = await add_position(client, supervisor_token, data["id"], block_id="opening",
                                     department="Front Counter")
        position = updated["days"][0]["shifts"][0]["positions"][-1]
        assert position["name"] == "Register 1"
        assert position["department"] == "FC"
        assert position["status"] == "unassigned"
        assert position["id"].startswith("pos-")
        assert updated["version"] == data["version"] + 1

    async def test_add_position_missing_department(self, client: AsyncClient, supervisor_token):
        data = await create_week(client, supervisor_token)
        res = await client.post(f"{day_url(data['id'])}/blocks/Opening/positions",
                                json={"name": "Register 1"}, headers=auth_header(supervisor_token))
        assert res.status_code == 400
        assert res.json()["detail"].startswith("department:")

    async def test_unknown_block_and_day(self, client: AsyncClient, supervisor_token):
        data = await create_week(client, supervisor_token)
        res = await client.post(f"{day_url(data['id'])}/blocks/Brunch/positions",
                                json={"name": "X", "department": "FC"}, headers=auth_header(supervisor_token))
        assert res.status_code == 404

        res = await client.post(f"{day_url(data['id'], 7)}/blocks/Opening/positions",
                                json={"name": "X", "department": "FC"}, headers=auth_header(supervisor_token))
        assert res.status_code == 400
        assert "day_index" in res.json()["detail"]

    async def test_update_position(self, client: AsyncClient, supervisor_token):
        data = await create_week(client, supervisor_token)
        updated = await add_position(client, supervisor_token, data["id"])
        pid = updated["days"][0]["shifts"][0]["positions"][-1]["id"]

        res = await client.put(f"{day_url(data['id'])}/blocks/Opening/positions/{pid}",
                               json={"name": "Drive Window", "department": "DT", "status": "open"},
                               headers=auth_header(supervisor_token))
        assert res.status_code == 200
        position = find_position(res.json(), pid)
        assert (position["name"], position["department"], position["status"]) == ("Drive Window", "DT", "open")

    async def test_delete_position_counts(self, client: AsyncClient, supervisor_token):
        data = await create_week(client, supervisor_token)
        updated = await add_position(client, supervisor_token, data["id"])
        pid = updated["days"][0]["shifts"][0]["positions"][-1]["id"]
        url = f"{day_url(data['id'])}/blocks/Opening/positions/{pid}"

        res = await client.delete(url, headers=auth_header(supervisor_token))
        assert res.status_code == 200
        body = res.json()
        assert body["deleted"] is True
        assert body["position_count_before"] - body["position_count_after"] == 1

        res = await client.delete(url, headers=auth_header(supervisor_token))
        body = res.json()
        assert body["deleted"] is False
        assert body["position_count_before"] == body["position_count_after"]
        assert body["schedule"]["version"] == updated["version"] + 1

    async def test_list_blocks_and_positions(self, client: AsyncClient, supervisor_token, catalog):
        data = await create_week(client, supervisor_token)
        res = await client.get(f"{day_url(data['id'])}/blocks", headers=auth_header(supervisor_token))
        assert res.status_code == 200
        blocks = res.json()
        assert [b["id"] for b in blocks][:2] == ["Opening", "Morning"]
        assert blocks[0]["period"] == "Opening"

        res = await client.get(f"{day_url(data['id'])}/blocks/lunch/positions",
                               headers=auth_header(supervisor_token))
        assert res.status_code == 200
        assert "Primary" in [p["name"] for p in res.json()]


class TestTimeBlocks:
    """타임 블록 CRUD (유연 레이아웃 전용)."""

    async def test_time_block_lifecycle(self, client: AsyncClient, supervisor_token):
        data = await create_week(client, supervisor_token, schema_version=2)
        before = len(data["days"][0]["time_blocks"])

        res = await client.post(f"{day_url(data['id'])}/time-blocks", json={
            "start_time": "09:30", "end_time": "13:00",
            "positions": [{"name": "Runner", "department": "FC"}],
        }, headers=auth_header(supervisor_token))
        assert res.status_code == 201
        block = res.json()["days"][0]["time_blocks"][-1]
        assert block["positions"][0]["name"] == "Runner"
        assert len(res.json()["days"][0]["time_blocks"]) == before + 1

        res = await client.put(f"{day_url(data['id'])}/time-blocks/{block['id']}",
                               json={"end_time": "14:00"}, headers=auth_header(supervisor_token))
        assert res.status_code == 200
        assert res.json()["days"][0]["time_blocks"][-1]["end_time"] == "14:00"

        res = await client.delete(f"{day_url(data['id'])}/time-blocks/{block['id']}",
                                  headers=auth_header(supervisor_token))
        body = res.json()
        assert body["deleted"] is True
        assert body["time_block_count_before"] - body["time_block_count_after"] == 1

        res = await client.delete(f"{day_url(data['id'])}/time-blocks/{block['id']}",
                                  headers=auth_header(supervisor_token))
        assert res.json()["deleted"] is False

    async def test_malformed_time_rejected(self, client: AsyncClient, supervisor_token):
        data = await create_week(client, supervisor_token, schema_version=2)
        res = await client.post(f"{day_url(data['id'])}/time-blocks",
                                json={"start_time": "9am", "end_time": "13:00"},
                                headers=auth_header(supervisor_token))
        assert res.status_code == 400
        assert res.json()["detail"].startswith("start_time:")

    async def test_time_block_on_fixed_day_rejected(self, client: AsyncClient, supervisor_token):
        data = await create_week(client, supervisor_token)
        res = await client.post(f"{day_url(data['id'])}/time-blocks",
                                json={"start_time": "09:00", "end_time": "13:00"},
                                headers=auth_header(supervisor_token))
        assert res.status_code == 400

    async def test_positions_on_time_block(self, client: AsyncClient, supervisor_token):
        data = await create_week(client, supervisor_token, schema_version=2)
        block_id = data["days"][0]["time_blocks"][0]["id"]
        updated = await add_position(client, supervisor_token, data["id"], block_id=block_id, department="KT")
        assert updated["days"][0]["time_blocks"][0]["positions"][-1]["department"] == "KT"


class TestAssignment:
    """직원 배정."""

    async def _setup(self, client: AsyncClient, token: str) -> tuple[dict, str]:
        data = await create_week(client, token)
        updated = await add_position(client, token, data["id"])
        return updated, updated["days"][0]["shifts"][0]["positions"][-1]["id"]

    async def _assign(self, client: AsyncClient, token: str, schedule_id: str, pid: str, employee):
        return await client.post(f"{API}/schedules/{schedule_id}/assign", json={
            "day_index": 0, "block_id": "Opening", "position_id": pid, "employee": employee,
        }, headers=auth_header(token))

    async def test_assign_unassign_round_trip(self, client: AsyncClient, supervisor_token):
        data, pid = await self._setup(client, supervisor_token)
        original = find_position(data, pid)

        res = await self._assign(client, supervisor_token, data["id"], pid, "Ann Lee")
        assert res.status_code == 200
        assigned = find_position(res.json(), pid)
        assert assigned["status"] == "assigned"
        assert assigned["assigned_employee"] == {"kind": "name", "name": "Ann Lee"}
        assert assigned["assigned_employee_name"] == "Ann Lee"

        res = await self._assign(client, supervisor_token, data["id"], pid, None)
        assert find_position(res.json(), pid) == original

    async def test_assign_directory_user(self, client: AsyncClient, supervisor_token, staff_user):
        data, pid = await self._setup(client, supervisor_token)
        res = await self._assign(client, supervisor_token, data["id"], pid, str(staff_user.id))
        position = find_position(res.json(), pid)
        assert position["assigned_employee"] == {"kind": "user", "user_id": str(staff_user.id)}
        assert position["assigned_employee_name"] == "Test Staff"

    async def test_assign_temp_id(self, client: AsyncClient, supervisor_token):
        data, pid = await self._setup(client, supervisor_token)
        res = await self._assign(client, supervisor_token, data["id"], pid, "temp-megan-silvernail")
        assert find_position(res.json(), pid)["assigned_employee_name"] == "Megan Silvernail"

    async def test_unknown_user_id_not_found(self, client: AsyncClient, supervisor_token):
        data, pid = await self._setup(client, supervisor_token)
        res = await self._assign(client, supervisor_token, data["id"], pid, str(uuid.uuid4()))
        assert res.status_code == 404

    async def test_other_store_user_not_found(self, client: AsyncClient, supervisor_token, other_store_manager):
        data, pid = await self._setup(client, supervisor_token)
        res = await self._assign(client, supervisor_token, data["id"], pid, str(other_store_manager.id))
        assert res.status_code == 404

    async def test_inactive_user_not_found(self, client: AsyncClient, db, supervisor_token, staff_user):
        data, pid = await self._setup(client, supervisor_token)
        staff_user.is_active = False
        await db.flush()

        res = await self._assign(client, supervisor_token, data["id"], pid, str(staff_user.id))
        assert res.status_code == 404

    async def test_unknown_position_not_found(self, client: AsyncClient, supervisor_token):
        data, _ = await self._setup(client, supervisor_token)
        res = await self._assign(client, supervisor_token, data["id"], "pos-missing", "Ann")
        assert res.status_code == 404

    async def test_roster_views(self, client: AsyncClient, supervisor_token, staff_user):
        data, pid = await self._setup(client, supervisor_token)
        await self._assign(client, supervisor_token, data["id"], pid, str(staff_user.id))

        res = await client.get(f"{API}/schedules/{data['id']}/employees", headers=auth_header(supervisor_token))
        assert res.status_code == 200
        entry = res.json()[0]
        assert entry["name"] == "Test Staff"
        assert entry["day"] == "Sunday"
        assert entry["shift_time"] == "05:00 - 08:00"
        assert entry["position"] == "Register 1"
        assert entry["is_uploaded"] is False

        res = await client.get(f"{API}/schedules/{data['id']}/uploaded-employees",
                               headers=auth_header(supervisor_token))
        assert res.json() == []
