"""
Legacy data.json import/export.
"""

import json

import pytest
from sqlalchemy import select

from app.core.exceptions import ValidationError
from app.core.security import verify_password
from app.models.catalog.branch_models import Branch
from app.models.logistics.request_models import TransferRequest
from app.models.enums.request_status import RequestStatus
from app.services.support.snapshot_service import (
    export_state,
    import_state,
    normalize_document,
    write_snapshot,
)
from app.services.logistics.request_service import confirm_request

LEGACY_DOCUMENT = {
    "branches": [{"id": "B001", "name": "Main Storage"}, {"id": "B010", "name": "Harbour"}],
    "users": [
        {"id": "USR-1700000000000", "name": "Hana", "role": "Staff", "password": "1234", "branchId": "B010"},
        {"id": "USR-1700000000001", "name": "Fahd", "role": "driver", "password": "abcd"},
    ],
    "items": [
        {"id": "ITM-9", "name": "Tiles", "branchId": "B001", "minQty": 2, "baseQty": 6, "unitCost": 3.5},
        {"id": "ITM-9", "name": "Tiles", "branchId": "B010", "minQty": 0, "baseQty": 1},
    ],
    "movements": [
        {
            "id": "MOV-1700000000100",
            "itemId": "ITM-9",
            "type": "in",
            "qty": 6,
            "userId": "USR-1700000000000",
            "branchId": "B001",
            "createdAt": "2024-01-02T10:00:00.000Z",
        }
    ],
    "requests": [
        {
            "id": "REQ-1700000000200",
            "itemId": "ITM-9",
            "qty": 2,
            "fromBranchId": "B001",
            "toBranchId": "B010",
            "createdByUserId": "USR-1700000000000",
            "status": "pending",
            "createdAt": "2024-01-03T08:30:00Z",
        }
    ],
    "budgets": [{"branchId": "B010", "month": "2024-01", "planned": 1500}],
    "vehicles": [{"id": "VEH-1", "plate": "abc 123", "name": "Van"}],
    "vehicleReminders": [{"id": "REM-1", "vehicleId": "VEH-1", "text": "oil"}],
}


class TestImport:
    async def test_legacy_document_is_loaded(self, db, seed):
        counts = await import_state(db, LEGACY_DOCUMENT)

        assert counts["branches"] == 1  # B001 already seeded
        assert counts["users"] == 2
        assert counts["items"] == 2
        assert counts["movements"] == 1
        assert counts["requests"] == 1
        assert counts["budgets"] == 1
        assert counts["vehicles"] == 1
        assert counts["vehicleReminders"] == 1

    async def test_imported_passwords_are_hashed(self, db, seed, helpers):
        await import_state(db, LEGACY_DOCUMENT)

        hana = await helpers.user("USR-1700000000000")
        assert hana.role == "staff"
        assert hana.password_hash != "1234"
        assert verify_password("1234", hana.password_hash)

    async def test_import_is_additive_and_idempotent(self, db, seed):
        await import_state(db, LEGACY_DOCUMENT)
        again = await import_state(db, LEGACY_DOCUMENT)

        assert all(count == 0 for count in again.values())

    async def test_imported_request_can_be_delivered(self, db, seed, helpers):
        await import_state(db, LEGACY_DOCUMENT)
        hana = await helpers.user("USR-1700000000000")

        result = await confirm_request(db, "REQ-1700000000200", hana)

        assert result.request.status == RequestStatus.delivered
        assert await helpers.stock("ITM-9", "B001") == 4
        assert await helpers.stock("ITM-9", "B010") == 3

    async def test_unknown_branch_gets_placeholder(self, db, seed):
        await import_state(
            db,
            {"items": [{"id": "X", "name": "Loose", "branchId": "B077", "baseQty": 1}]},
        )
        branch = await db.get(Branch, "B077")
        assert branch is not None
        assert branch.name == "B077"

    async def test_missing_collections_default_to_empty(self):
        normalized = normalize_document({"users": []})
        assert normalized["requests"] == []
        assert normalized["carMaintenances"] == []

    @pytest.mark.parametrize(
        "document",
        [
            {"users": [{"id": "U1", "name": "X", "role": "pilot", "password": "p"}]},
            {"movements": [{"id": "M1", "itemId": "I", "branchId": "B001", "type": "SIDEWAYS", "qty": 1}]},
            {"movements": [{"id": "M1", "itemId": "I", "branchId": "B001", "type": "IN", "qty": 0}]},
            {"requests": [{"id": "R1", "qty": 1}]},
            {"items": "not-a-list"},
        ],
    )
    async def test_malformed_entries_are_rejected(self, db, seed, document):
        with pytest.raises(ValidationError):
            await import_state(db, document)

    async def test_repeated_ids_in_one_document_keep_the_first(self, db, seed):
        movement = LEGACY_DOCUMENT["movements"][0]
        request = LEGACY_DOCUMENT["requests"][0]
        document = {
            **LEGACY_DOCUMENT,
            "items": LEGACY_DOCUMENT["items"] + [dict(LEGACY_DOCUMENT["items"][0], baseQty=99)],
            "movements": [movement, dict(movement, qty=3)],
            "requests": [request, dict(request, qty=9)],
            "vehicles": LEGACY_DOCUMENT["vehicles"] + [{"id": "VEH-2", "plate": "ABC 123"}],
        }

        counts = await import_state(db, document)

        assert counts["items"] == 2
        assert counts["movements"] == 1
        assert counts["requests"] == 1
        assert counts["vehicles"] == 1
        stored = await db.get(TransferRequest, "REQ-1700000000200")
        assert stored.qty == 2

    async def test_repeated_user_name_is_rejected(self, db, seed):
        document = {
            "users": [
                {"id": "USR-1", "name": "Hana", "role": "staff", "password": "x"},
                {"id": "USR-2", "name": "hana", "role": "driver", "password": "y"},
            ]
        }
        with pytest.raises(ValidationError) as exc:
            await import_state(db, document)
        assert exc.value.details == {"fields": ["users.name"]}

    async def test_legacy_timestamp_with_z_suffix_is_parsed(self, db, seed):
        await import_state(db, LEGACY_DOCUMENT)

        request = await db.scalar(
            select(TransferRequest).where(TransferRequest.id == "REQ-1700000000200")
        )
        assert request.created_at.year == 2024
        assert request.created_at.hour == 8


class TestExport:
    async def test_sanitized_export_has_no_password_hashes(self, db, seed):
        document = await export_state(db)

        assert {b["id"] for b in document["branches"]} == {"B001", "B002", "B003"}
        assert all("passwordHash" not in u for u in document["users"])
        assert document["items"][0]["unitCost"] == 12.5
        assert document["vehicleReminders"] == []

    async def test_full_export_includes_secrets_and_extras(self, db, seed):
        await import_state(db, LEGACY_DOCUMENT)
        document = await export_state(db, include_secrets=True)

        assert all(u["passwordHash"] for u in document["users"])
        reminder_ids = [r["id"] for r in document["vehicleReminders"]]
        assert reminder_ids == ["REM-1"]
        # Exported document is plain JSON
        json.dumps(document)

    async def test_write_snapshot_is_atomic_file(self, db, seed, tmp_path):
        target = tmp_path / "nested" / "data.json"

        path = await write_snapshot(db, str(target))

        assert path == str(target)
        saved = json.loads(target.read_text(encoding="utf-8"))
        assert {u["name"] for u in saved["users"]} >= {"Admin", "Sami"}
        assert not list(target.parent.glob("*.tmp"))
