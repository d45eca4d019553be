"""
HTTP surface: envelopes, status codes and end-to-end flows through FastAPI.
"""

import pytest

from app.core import config
from app.utils.pdf_generators import delivery_note_pdf

from tests.conftest import PASSWORD


def _ok(response, status=200):
    assert response.status_code == status, response.text
    body = response.json()
    assert body["success"] is True
    return body["data"]


def _fail(response, status, error_code):
    assert response.status_code == status, response.text
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == error_code
    return body


async def _create_request(client, seed, qty=5):
    return _ok(
        await client.post(
            "/requests/",
            json={"actor_user_id": seed.staff, "item_id": seed.item_id, "qty": qty},
        )
    )


async def test_health(client):
    body = (await client.get("/")).json()
    assert body["status"] == "ok"
    assert body["environment"] == "test"


class TestAuthAndActors:
    async def test_login_success(self, client, seed):
        data = _ok(await client.post("/auth/login", json={"name": "SAMI", "password": PASSWORD}))
        assert data["id"] == seed.staff
        assert "password_hash" not in data

    async def test_login_failure_is_401(self, client, seed):
        _fail(
            await client.post("/auth/login", json={"name": "Sami", "password": "nope"}),
            401,
            "UNAUTHORIZED",
        )

    async def test_unknown_actor_is_401(self, client):
        _fail(
            await client.get("/requests/pending", params={"actor_user_id": "U-ghost"}),
            401,
            "UNAUTHORIZED",
        )

    async def test_missing_actor_is_a_validation_error(self, client):
        _fail(await client.get("/requests/pending"), 422, "VALIDATION_ERROR")

    async def test_admin_only_route_rejects_staff(self, client, seed):
        _fail(
            await client.get("/users/", params={"actor_user_id": seed.staff}),
            403,
            "PERMISSION_DENIED",
        )


class TestRequestFlow:
    async def test_create_assign_confirm(self, client, seed):
        request = await _create_request(client, seed)
        assert request["status"] == "pending"

        assigned = _ok(
            await client.post(
                f"/requests/{request['id']}/assign",
                json={"actor_user_id": seed.admin, "driver_user_id": seed.driver},
            )
        )
        assert assigned["status"] == "assigned"

        delivered = _ok(
            await client.post(
                f"/requests/{request['id']}/confirm",
                json={"actor_user_id": seed.staff},
            )
        )
        assert delivered["request"]["status"] == "delivered"
        assert [m["type"] for m in delivered["movements"]] == ["OUT", "IN"]

        items = _ok(
            await client.get(
                "/items/", params={"actor_user_id": seed.admin, "search": "cement"}
            )
        )
        stock = {i["branch_id"]: i["base_qty"] for i in items["items"]}
        assert stock == {"B001": 5, "B002": 5}

        _fail(
            await client.post(
                f"/requests/{request['id']}/confirm",
                json={"actor_user_id": seed.staff},
            ),
            409,
            "REQUEST_ALREADY_DELIVERED",
        )

    async def test_shortage_is_409_with_details(self, client, seed):
        request = await _create_request(client, seed, qty=50)

        body = _fail(
            await client.post(
                f"/requests/{request['id']}/confirm",
                json={"actor_user_id": seed.staff},
            ),
            409,
            "INSUFFICIENT_STOCK",
        )
        assert body["details"]["available"] == 10
        assert body["details"]["requested"] == 50

    async def test_driver_create_is_403(self, client, seed):
        _fail(
            await client.post(
                "/requests/",
                json={"actor_user_id": seed.driver, "item_id": seed.item_id, "qty": 1},
            ),
            403,
            "PERMISSION_DENIED",
        )

    async def test_zero_qty_is_rejected_by_schema(self, client, seed):
        _fail(
            await client.post(
                "/requests/",
                json={"actor_user_id": seed.staff, "item_id": seed.item_id, "qty": 0},
            ),
            422,
            "VALIDATION_ERROR",
        )

    async def test_claim_eta_and_pending_listing(self, client, seed):
        request = await _create_request(client, seed, qty=1)

        pending = _ok(
            await client.get("/requests/pending", params={"actor_user_id": seed.driver})
        )
        assert [r["id"] for r in pending] == [request["id"]]

        _ok(
            await client.post(
                f"/requests/{request['id']}/claim",
                json={"actor_user_id": seed.driver},
            )
        )
        updated = _ok(
            await client.post(
                f"/requests/{request['id']}/eta",
                json={
                    "actor_user_id": seed.driver,
                    "eta": "2030-05-01T09:00:00Z",
                    "eta_label": "morning",
                },
            )
        )
        assert updated["delivery_eta_label"] == "morning"

        _fail(
            await client.post(
                f"/requests/{request['id']}/claim",
                json={"actor_user_id": seed.driver_b},
            ),
            403,
            "REQUEST_ASSIGNED_TO_OTHER_DRIVER",
        )

    async def test_edit_and_delete(self, client, seed):
        request = await _create_request(client, seed, qty=3)

        edited = _ok(
            await client.patch(
                f"/requests/{request['id']}",
                json={"actor_user_id": seed.staff, "note": "back door", "priority": "urgent"},
            )
        )
        assert edited["note"] == "back door"
        assert edited["priority"] == "urgent"

        _ok(
            await client.delete(
                f"/requests/{request['id']}", params={"actor_user_id": seed.manager}
            )
        )
        _fail(
            await client.get(
                f"/requests/{request['id']}", params={"actor_user_id": seed.manager}
            ),
            404,
            "REQUEST_NOT_FOUND",
        )

    async def test_null_for_required_field_is_a_validation_error(self, client, seed):
        request = await _create_request(client, seed)

        body = _fail(
            await client.patch(
                f"/requests/{request['id']}",
                json={"actor_user_id": seed.staff, "note": None},
            ),
            400,
            "VALIDATION_ERROR",
        )
        assert body["details"] == {"fields": ["note"]}

        _fail(
            await client.patch(
                f"/requests/{request['id']}",
                json={"actor_user_id": seed.manager, "priority": None},
            ),
            400,
            "VALIDATION_ERROR",
        )

    async def test_delivery_note_pdf(self, client, seed, tmp_path, monkeypatch):
        monkeypatch.setattr(delivery_note_pdf, "DELIVERY_NOTE_DIR", str(tmp_path))
        request = await _create_request(client, seed, qty=2)

        _fail(
            await client.get(
                f"/requests/{request['id']}/delivery-note",
                params={"actor_user_id": seed.staff},
            ),
            409,
            "REQUEST_NOT_DELIVERED",
        )

        _ok(
            await client.post(
                f"/requests/{request['id']}/confirm",
                json={"actor_user_id": seed.staff},
            )
        )
        response = await client.get(
            f"/requests/{request['id']}/delivery-note",
            params={"actor_user_id": seed.staff},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    async def test_delivery_note_escapes_markup_in_free_text(
        self, client, seed, tmp_path, monkeypatch
    ):
        monkeypatch.setattr(delivery_note_pdf, "DELIVERY_NOTE_DIR", str(tmp_path))
        request = _ok(
            await client.post(
                "/requests/",
                json={
                    "actor_user_id": seed.staff,
                    "item_id": seed.item_id,
                    "qty": 1,
                    "note": "need qty < 5 & fast <urgent",
                },
            )
        )
        _ok(
            await client.post(
                f"/requests/{request['id']}/confirm",
                json={"actor_user_id": seed.staff},
            )
        )

        response = await client.get(
            f"/requests/{request['id']}/delivery-note",
            params={"actor_user_id": seed.staff},
        )

        assert response.status_code == 200, response.text
        assert response.content.startswith(b"%PDF")


class TestLedgerEndpoints:
    async def test_direct_out_and_replay(self, client, seed):
        _ok(
            await client.post(
                "/items/",
                json={
                    "actor_user_id": seed.manager,
                    "id": "ITEM-100",
                    "name": "Sand",
                    "branch_id": "B003",
                    "base_qty": 4,
                },
            )
        )
        _ok(
            await client.post(
                "/movements/",
                json={
                    "actor_user_id": seed.manager,
                    "item_id": "ITEM-100",
                    "type": "OUT",
                    "qty": 3,
                },
            )
        )
        _fail(
            await client.post(
                "/movements/",
                json={
                    "actor_user_id": seed.manager,
                    "item_id": "ITEM-100",
                    "type": "OUT",
                    "qty": 3,
                },
            ),
            409,
            "INSUFFICIENT_STOCK",
        )

        replay = _ok(
            await client.get(
                "/movements/replay",
                params={"actor_user_id": seed.admin, "item_id": "ITEM-100", "branch_id": "B003"},
            )
        )
        assert replay["replayed_qty"] == replay["current_qty"] == 1

        listing = _ok(
            await client.get(
                "/movements/",
                params={"actor_user_id": seed.admin, "item_id": "ITEM-100"},
            )
        )
        assert listing["total"] == 2

    async def test_low_stock(self, client, seed):
        _ok(
            await client.post(
                "/items/",
                json={
                    "actor_user_id": seed.admin,
                    "id": "ITEM-101",
                    "name": "Nails",
                    "branch_id": "B002",
                    "min_qty": 10,
                    "base_qty": 1,
                },
            )
        )
        low = _ok(
            await client.get(
                "/items/low-stock", params={"actor_user_id": seed.staff, "branch_id": "B002"}
            )
        )
        assert [i["id"] for i in low] == ["ITEM-101"]


class TestCatalog:
    async def test_branches(self, client, seed):
        created = _ok(
            await client.post(
                "/branches/",
                json={"actor_user_id": seed.admin, "id": "B004", "name": "East"},
            )
        )
        assert created["is_main_storage"] is False

        branches = _ok(await client.get("/branches/", params={"actor_user_id": seed.driver}))
        main = [b for b in branches if b["is_main_storage"]]
        assert [b["id"] for b in main] == ["B001"]

        _fail(
            await client.post(
                "/branches/",
                json={"actor_user_id": seed.admin, "id": "B004", "name": "Again"},
            ),
            409,
            "BRANCH_EXISTS",
        )

    async def test_budgets_upsert(self, client, seed):
        payload = {"actor_user_id": seed.admin, "branch_id": "B002", "month": "2025-03", "planned": "1000.50"}
        first = _ok(await client.post("/budgets/", json=payload))
        second = _ok(await client.post("/budgets/", json={**payload, "planned": "2000"}))

        assert first["id"] == second["id"]
        budgets = _ok(await client.get("/budgets/", params={"actor_user_id": seed.manager}))
        assert len(budgets) == 1
        assert float(budgets[0]["planned"]) == 2000.0

    async def test_budget_month_format(self, client, seed):
        _fail(
            await client.post(
                "/budgets/",
                json={"actor_user_id": seed.admin, "branch_id": "B002", "month": "2025-13"},
            ),
            422,
            "VALIDATION_ERROR",
        )

    async def test_vehicles(self, client, seed):
        created = _ok(
            await client.post(
                "/vehicles/",
                json={"actor_user_id": seed.manager, "plate": "kd 2291", "name": "Truck"},
            )
        )
        assert created["plate"] == "KD 2291"
        _fail(
            await client.post(
                "/vehicles/",
                json={"actor_user_id": seed.admin, "plate": "KD 2291"},
            ),
            409,
            "VEHICLE_PLATE_EXISTS",
        )
        vehicles = _ok(await client.get("/vehicles/", params={"actor_user_id": seed.driver}))
        assert len(vehicles) == 1


class TestUsersApi:
    async def test_user_crud(self, client, seed):
        created = _ok(
            await client.post(
                "/users/",
                json={
                    "actor_user_id": seed.admin,
                    "name": "Noor",
                    "role": "supervisor",
                    "password": "noor-pass",
                    "branch_id": "B003",
                },
            )
        )

        fetched = _ok(
            await client.get(f"/users/{created['id']}", params={"actor_user_id": seed.admin})
        )
        assert fetched["name"] == "Noor"

        updated = _ok(
            await client.patch(
                f"/users/{created['id']}",
                json={"actor_user_id": seed.admin, "role": "staff"},
            )
        )
        assert updated["role"] == "staff"

        _ok(
            await client.delete(f"/users/{created['id']}", params={"actor_user_id": seed.admin})
        )
        _fail(
            await client.get(f"/users/{created['id']}", params={"actor_user_id": seed.admin}),
            404,
            "USER_NOT_FOUND",
        )

    async def test_self_delete_is_rejected(self, client, seed):
        _fail(
            await client.delete(f"/users/{seed.admin}", params={"actor_user_id": seed.admin}),
            400,
            "USER_SELF_DELETE",
        )

    async def test_activities_are_admin_only(self, client, seed):
        await client.post("/auth/login", json={"name": "Sami", "password": PASSWORD})

        data = _ok(await client.get("/activities/", params={"actor_user_id": seed.admin}))
        assert data["total"] >= 1

        _fail(
            await client.get("/activities/", params={"actor_user_id": seed.manager}),
            403,
            "PERMISSION_DENIED",
        )

    async def test_own_trail_is_visible_to_any_user(self, client, seed):
        await client.post("/auth/login", json={"name": "Sami", "password": PASSWORD})
        await client.post("/auth/login", json={"name": "Dina", "password": PASSWORD})

        data = _ok(await client.get("/activities/mine", params={"actor_user_id": seed.staff}))

        assert data["total"] == 1
        assert data["items"][0]["message"] == "Staff (Sami) logged in"


class TestStateEndpoints:
    async def test_state_is_sanitized(self, client, seed):
        document = _ok(await client.get("/state", params={"actor_user_id": seed.staff}))
        assert document["users"]
        assert all("passwordHash" not in u for u in document["users"])

    async def test_export_requires_matching_key(self, client, seed):
        _fail(await client.get("/state/export", params={"key": "wrong"}), 403, "PERMISSION_DENIED")
        _fail(await client.get("/state/export"), 403, "PERMISSION_DENIED")

        document = _ok(await client.get("/state/export", params={"key": "test-export-key"}))
        assert all(u["passwordHash"] for u in document["users"])

    async def test_export_disabled_without_key(self, client, seed, monkeypatch):
        monkeypatch.setattr(config, "STATE_EXPORT_KEY", "")
        _fail(
            await client.get("/state/export", params={"key": "anything"}),
            503,
            "SERVICE_UNAVAILABLE",
        )
