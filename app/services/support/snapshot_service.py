# app/services/support/snapshot_service.py

import json
import os
import tempfile
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.exceptions import ValidationError
from app.core.security import hash_password
from app.constants.activity_codes import ActivityCode
from app.constants.movement_reference import MovementReference
from app.constants.roles import ALLOWED_ROLES

from app.models.budgets.budget_models import Budget
from app.models.catalog.branch_models import Branch
from app.models.catalog.item_models import Item
from app.models.fleet.vehicle_models import Vehicle
from app.models.logistics.movement_models import Movement
from app.models.logistics.request_models import TransferRequest
from app.models.enums.movement_type import MovementType
from app.models.enums.request_priority import RequestPriority
from app.models.enums.request_status import RequestStatus
from app.models.support.snapshot_models import SnapshotCollection
from app.models.users.user_models import User

from app.utils.activity_helpers import emit_activity
from app.utils.get_user import find_user_by_name
from app.utils.json_safe import to_json_safe
from app.utils.ids import new_id
from app.utils.logger import get_logger

logger = get_logger(__name__)

CORE_COLLECTIONS = (
    "branches",
    "users",
    "items",
    "movements",
    "budgets",
    "requests",
    "vehicles",
)

# Carried verbatim; no operations are exposed on them
OPAQUE_COLLECTIONS = (
    "vehicleReminders",
    "carAssignments",
    "carMaintenances",
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_dt(value: Any, field: str) -> datetime | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid timestamp in snapshot: {value!r}", [field])
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _positive_int(value: Any, field: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid number in snapshot: {value!r}", [field])
    if number <= 0:
        raise ValidationError(f"{field} must be positive", [field])
    return number


def _non_negative_int(value: Any, field: str) -> int:
    try:
        number = int(value or 0)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid number in snapshot: {value!r}", [field])
    if number < 0:
        raise ValidationError(f"{field} cannot be negative", [field])
    return number


# =====================================================
# EXPORT
# =====================================================
def _user_doc(u: User, include_secrets: bool) -> dict:
    doc = {
        "id": u.id,
        "name": u.name,
        "role": u.role,
        "branchId": u.branch_id,
    }
    if include_secrets:
        doc["passwordHash"] = u.password_hash
    return doc


def _item_doc(i: Item) -> dict:
    return {
        "id": i.id,
        "name": i.name,
        "nameEn": i.name_en,
        "nameAr": i.name_ar,
        "branchId": i.branch_id,
        "minQty": i.min_qty,
        "baseQty": i.base_qty,
        "unitCost": i.unit_cost,
    }


def _movement_doc(m: Movement) -> dict:
    return {
        "id": m.id,
        "itemId": m.item_id,
        "type": m.type,
        "qty": m.qty,
        "userId": m.user_id,
        "branchId": m.branch_id,
        "note": m.note,
        "referenceType": m.reference_type,
        "referenceId": m.reference_id,
        "createdAt": _iso(m.created_at),
    }


def _request_doc(r: TransferRequest) -> dict:
    return {
        "id": r.id,
        "itemId": r.item_id,
        "qty": r.qty,
        "fromBranchId": r.from_branch_id,
        "toBranchId": r.to_branch_id,
        "createdByUserId": r.created_by_user_id,
        "note": r.note,
        "priority": r.priority,
        "urgentNote": r.urgent_note,
        "image": r.image_url,
        "status": r.status,
        "driverUserId": r.driver_user_id,
        "assignedAt": _iso(r.assigned_at),
        "assignedByUserId": r.assigned_by_user_id,
        "deliveryEta": _iso(r.delivery_eta),
        "deliveryEtaLabel": r.delivery_eta_label,
        "createdAt": _iso(r.created_at),
        "deliveredAt": _iso(r.delivered_at),
        "receivedByUserId": r.received_by_user_id,
    }


async def export_state(db: AsyncSession, *, include_secrets: bool = False) -> dict:
    """Whole state as one document, in the legacy data.json layout."""
    branches = (await db.scalars(select(Branch).order_by(Branch.id))).all()
    users = (await db.scalars(select(User).order_by(User.id))).all()
    items = (await db.scalars(select(Item).order_by(Item.branch_id, Item.id))).all()
    movements = (
        await db.scalars(select(Movement).order_by(Movement.created_at, Movement.id))
    ).all()
    budgets = (await db.scalars(select(Budget).order_by(Budget.month, Budget.branch_id))).all()
    requests = (
        await db.scalars(select(TransferRequest).order_by(TransferRequest.created_at))
    ).all()
    vehicles = (await db.scalars(select(Vehicle).order_by(Vehicle.plate))).all()
    extras = {
        c.name: c.payload
        for c in (await db.scalars(select(SnapshotCollection))).all()
    }

    document = {
        "branches": [{"id": b.id, "name": b.name} for b in branches],
        "users": [_user_doc(u, include_secrets) for u in users],
        "items": [_item_doc(i) for i in items],
        "movements": [_movement_doc(m) for m in movements],
        "budgets": [
            {"id": b.id, "branchId": b.branch_id, "month": b.month, "planned": b.planned}
            for b in budgets
        ],
        "requests": [_request_doc(r) for r in requests],
        "vehicles": [
            {"id": v.id, "plate": v.plate, "name": v.name, "branchId": v.branch_id}
            for v in vehicles
        ],
    }
    for name in OPAQUE_COLLECTIONS:
        document[name] = list(extras.get(name) or [])

    return to_json_safe(document)


async def write_snapshot(db: AsyncSession, path: str) -> str:
    document = await export_state(db, include_secrets=True)

    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    # Write then rename so readers never see a half-written file
    fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(document, fh, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    except OSError:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    logger.info("Snapshot written", extra={"path": path})
    return path


# =====================================================
# IMPORT
# =====================================================
def normalize_document(document: dict | None) -> dict:
    """Missing collections default to empty; unknown keys are ignored."""
    document = document or {}
    if not isinstance(document, dict):
        raise ValidationError("Snapshot must be a JSON object")

    normalized = {}
    for name in CORE_COLLECTIONS + OPAQUE_COLLECTIONS:
        value = document.get(name) or []
        if not isinstance(value, list):
            raise ValidationError(f"Snapshot collection {name} must be a list", [name])
        normalized[name] = value
    return normalized


def _first_sighting(seen: set, key) -> bool:
    if key in seen:
        logger.warning("Duplicate snapshot entry skipped", extra={"entry": str(key)})
        return False
    seen.add(key)
    return True


async def _ensure_branch(db: AsyncSession, branch_id: str | None, known: set[str], counts: dict) -> None:
    if not branch_id or branch_id in known:
        return
    if not await db.get(Branch, branch_id):
        logger.warning("Snapshot references unknown branch; creating placeholder", extra={"branch_id": branch_id})
        db.add(Branch(id=branch_id, name=branch_id))
        counts["branches"] += 1
    known.add(branch_id)


async def import_state(db: AsyncSession, document: dict) -> dict:
    """Load a legacy document additively: records whose id already exists are kept as-is."""
    doc = normalize_document(document)
    counts = {name: 0 for name in CORE_COLLECTIONS + OPAQUE_COLLECTIONS}
    known_branches: set[str] = set()
    # Pending rows are invisible to db.get, so repeats inside the document are tracked here
    seen: dict[str, set] = {name: set() for name in CORE_COLLECTIONS}
    seen["userNames"] = set()
    seen["plates"] = set()

    for b in doc["branches"]:
        if not b.get("id"):
            raise ValidationError("Branch without id in snapshot", ["branches.id"])
        if b["id"] in known_branches or await db.get(Branch, b["id"]):
            continue
        db.add(Branch(id=b["id"], name=b.get("name") or b["id"]))
        known_branches.add(b["id"])
        counts["branches"] += 1
    await db.flush()

    for u in doc["users"]:
        if not u.get("id") or not u.get("name"):
            raise ValidationError("User without id or name in snapshot", ["users.id", "users.name"])
        if not _first_sighting(seen["users"], u["id"]) or await db.get(User, u["id"]):
            continue
        name_key = u["name"].strip().lower()
        if name_key in seen["userNames"] or await find_user_by_name(db, name_key):
            raise ValidationError(f"Duplicate user name {u['name']!r} in snapshot", ["users.name"])
        seen["userNames"].add(name_key)
        role = str(u.get("role") or "").lower()
        if role not in ALLOWED_ROLES:
            raise ValidationError(f"Invalid role {role!r} for user {u['id']}", ["users.role"])

        password_hash = u.get("passwordHash")
        if not password_hash:
            if not u.get("password"):
                raise ValidationError(f"User {u['id']} has no password", ["users.password"])
            password_hash = hash_password(str(u["password"]))

        await _ensure_branch(db, u.get("branchId"), known_branches, counts)
        db.add(
            User(
                id=u["id"],
                name=u["name"],
                name_key=name_key,
                password_hash=password_hash,
                role=role,
                branch_id=u.get("branchId"),
            )
        )
        counts["users"] += 1
    await db.flush()

    for i in doc["items"]:
        if not i.get("id") or not i.get("branchId"):
            raise ValidationError("Item without id or branchId in snapshot", ["items.id", "items.branchId"])
        key = (i["id"], i["branchId"])
        if not _first_sighting(seen["items"], key) or await db.get(Item, key):
            continue
        await _ensure_branch(db, i["branchId"], known_branches, counts)
        db.add(
            Item(
                id=i["id"],
                branch_id=i["branchId"],
                name=i.get("name") or i.get("nameEn") or i.get("nameAr") or i["id"],
                name_en=i.get("nameEn"),
                name_ar=i.get("nameAr"),
                min_qty=_non_negative_int(i.get("minQty"), "items.minQty"),
                base_qty=_non_negative_int(i.get("baseQty"), "items.baseQty"),
                unit_cost=Decimal(str(i.get("unitCost") or 0)),
            )
        )
        counts["items"] += 1
    await db.flush()

    for m in doc["movements"]:
        if not m.get("id"):
            raise ValidationError("Movement without id in snapshot", ["movements.id"])
        if not _first_sighting(seen["movements"], m["id"]) or await db.get(Movement, m["id"]):
            continue
        try:
            movement_type = MovementType(str(m.get("type")).upper())
        except ValueError:
            raise ValidationError(f"Invalid movement type for {m['id']}", ["movements.type"])
        db.add(
            Movement(
                id=m["id"],
                item_id=m.get("itemId"),
                branch_id=m.get("branchId"),
                type=movement_type,
                qty=_positive_int(m.get("qty"), "movements.qty"),
                user_id=m.get("userId"),
                note=m.get("note") or "",
                reference_type=m.get("referenceType") or MovementReference.IMPORT.value,
                reference_id=m.get("referenceId"),
                created_at=_parse_dt(m.get("createdAt"), "movements.createdAt") or datetime.now(timezone.utc),
            )
        )
        counts["movements"] += 1

    for b in doc["budgets"]:
        if not b.get("branchId") or not b.get("month"):
            raise ValidationError("Budget without branchId or month", ["budgets.branchId", "budgets.month"])
        if not _first_sighting(seen["budgets"], (b["branchId"], b["month"])):
            continue
        exists = await db.scalar(
            select(Budget.id).where(Budget.branch_id == b["branchId"], Budget.month == b["month"])
        )
        if exists:
            continue
        await _ensure_branch(db, b["branchId"], known_branches, counts)
        db.add(
            Budget(
                id=b.get("id") or new_id("BUD"),
                branch_id=b["branchId"],
                month=b["month"],
                planned=Decimal(str(b.get("planned") or 0)),
            )
        )
        counts["budgets"] += 1

    for r in doc["requests"]:
        if not r.get("id"):
            raise ValidationError("Request without id in snapshot", ["requests.id"])
        if not _first_sighting(seen["requests"], r["id"]) or await db.get(TransferRequest, r["id"]):
            continue
        missing = [f for f in ("itemId", "fromBranchId", "toBranchId", "createdByUserId") if not r.get(f)]
        if missing:
            raise ValidationError(
                f"Request {r['id']} is missing fields",
                [f"requests.{f}" for f in missing],
            )
        await _ensure_branch(db, r.get("fromBranchId"), known_branches, counts)
        await _ensure_branch(db, r.get("toBranchId"), known_branches, counts)
        try:
            status = RequestStatus(r.get("status") or RequestStatus.pending.value)
            priority = RequestPriority(r.get("priority") or RequestPriority.normal.value)
        except ValueError:
            raise ValidationError(f"Invalid status or priority for request {r['id']}", ["requests.status"])
        db.add(
            TransferRequest(
                id=r["id"],
                item_id=r.get("itemId"),
                qty=_positive_int(r.get("qty"), "requests.qty"),
                from_branch_id=r.get("fromBranchId"),
                to_branch_id=r.get("toBranchId"),
                created_by_user_id=r.get("createdByUserId"),
                note=r.get("note") or "",
                priority=priority,
                urgent_note=r.get("urgentNote"),
                image_url=r.get("image"),
                status=status,
                driver_user_id=r.get("driverUserId"),
                assigned_at=_parse_dt(r.get("assignedAt"), "requests.assignedAt"),
                assigned_by_user_id=r.get("assignedByUserId"),
                delivery_eta=_parse_dt(r.get("deliveryEta"), "requests.deliveryEta"),
                delivery_eta_label=r.get("deliveryEtaLabel"),
                created_at=_parse_dt(r.get("createdAt"), "requests.createdAt") or datetime.now(timezone.utc),
                delivered_at=_parse_dt(r.get("deliveredAt"), "requests.deliveredAt"),
                received_by_user_id=r.get("receivedByUserId"),
            )
        )
        counts["requests"] += 1

    for v in doc["vehicles"]:
        plate = str(v.get("plate") or v.get("plateNumber") or v.get("id") or "").strip().upper()
        if not plate:
            raise ValidationError("Vehicle without plate in snapshot", ["vehicles.plate"])
        if v.get("id") and not _first_sighting(seen["vehicles"], v["id"]):
            continue
        if not _first_sighting(seen["plates"], plate):
            continue
        if (v.get("id") and await db.get(Vehicle, v["id"])) or await db.scalar(
            select(Vehicle.id).where(Vehicle.plate == plate)
        ):
            continue
        await _ensure_branch(db, v.get("branchId"), known_branches, counts)
        db.add(
            Vehicle(
                id=v.get("id") or new_id("VEH"),
                plate=plate,
                name=v.get("name"),
                branch_id=v.get("branchId"),
            )
        )
        counts["vehicles"] += 1

    for name in OPAQUE_COLLECTIONS:
        entries = doc[name]
        if not entries:
            continue
        collection = await db.get(SnapshotCollection, name)
        if collection is None:
            db.add(SnapshotCollection(name=name, payload=list(entries)))
            counts[name] = len(entries)
            continue
        seen = {e.get("id") for e in collection.payload if isinstance(e, dict)}
        added = [e for e in entries if not (isinstance(e, dict) and e.get("id") in seen)]
        if added:
            # Reassign so the JSON column is flagged dirty
            collection.payload = list(collection.payload) + added
            counts[name] = len(added)

    await emit_activity(
        db,
        user_id=None,
        username="system",
        code=ActivityCode.IMPORT_SNAPSHOT,
        actor_role="System",
        actor_name="snapshot import",
        changes=", ".join(f"{k}={v}" for k, v in counts.items() if v),
    )

    await db.commit()

    logger.info("Snapshot imported", extra={"counts": counts})
    return counts
