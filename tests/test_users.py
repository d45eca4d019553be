import pytest
from sqlalchemy import select

from app.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.core.security import verify_password
from app.constants.error_codes import ErrorCode
from app.models.support.activity_models import UserActivity
from app.models.users.user_models import User
from app.schemas.support.activity_schemas import UserActivityFilters
from app.schemas.users.user_schemas import UserCreateSchema, UserUpdateSchema
from app.services.auth.activity_service import list_user_activities
from app.services.auth.auth_service import login_user
from app.services.users.user_services import (
    create_user,
    delete_user,
    get_user_by_id,
    list_users,
    update_user,
)

from tests.conftest import PASSWORD


def _new_user(admin_id, **overrides):
    data = {
        "actor_user_id": admin_id,
        "name": "Lina",
        "role": "staff",
        "password": "lina-pass",
        "branch_id": "B003",
    }
    data.update(overrides)
    return UserCreateSchema(**data)


class TestCreateUser:
    async def test_admin_creates_user_with_hashed_password(self, db, seed, helpers):
        admin = await helpers.user(seed.admin)

        created = await create_user(db, _new_user(admin.id), admin)

        stored = await helpers.user(created.id)
        assert created.role == "staff"
        assert created.branch_id == "B003"
        assert stored.password_hash != "lina-pass"
        assert verify_password("lina-pass", stored.password_hash)
        assert stored.created_by_admin_id == seed.admin

    async def test_duplicate_name_conflicts_case_insensitively(self, db, seed, helpers):
        admin = await helpers.user(seed.admin)
        with pytest.raises(ConflictError) as exc:
            await create_user(db, _new_user(admin.id, name="SAMI"), admin)
        assert exc.value.error_code == ErrorCode.USER_NAME_EXISTS

    async def test_unknown_role_is_rejected(self, db, seed, helpers):
        admin = await helpers.user(seed.admin)
        with pytest.raises(ValidationError) as exc:
            await create_user(db, _new_user(admin.id, role="cashier"), admin)
        assert exc.value.error_code == ErrorCode.USER_ROLE_INVALID

    async def test_unknown_branch_is_not_found(self, db, seed, helpers):
        admin = await helpers.user(seed.admin)
        with pytest.raises(NotFoundError):
            await create_user(db, _new_user(admin.id, branch_id="B404"), admin)

    async def test_manager_cannot_create_users(self, db, seed, helpers):
        manager = await helpers.user(seed.manager)
        with pytest.raises(ForbiddenError):
            await create_user(db, _new_user(manager.id), manager)


class TestUpdateAndDelete:
    async def test_update_moves_user_and_logs_changes(self, db, seed, helpers):
        admin = await helpers.user(seed.admin)

        updated = await update_user(
            db,
            seed.staff,
            UserUpdateSchema(actor_user_id=admin.id, role="supervisor", branch_id="B003"),
            admin,
        )

        assert updated.role == "supervisor"
        assert updated.branch_id == "B003"
        messages = (await db.scalars(select(UserActivity.message))).all()
        assert "Admin (Admin) updated user Sami: role, branch" in messages

    async def test_branch_can_be_cleared_explicitly(self, db, seed, helpers):
        admin = await helpers.user(seed.admin)
        updated = await update_user(
            db, seed.staff, UserUpdateSchema(actor_user_id=admin.id, branch_id=None), admin
        )
        assert updated.branch_id is None

    async def test_noop_update_is_rejected(self, db, seed, helpers):
        admin = await helpers.user(seed.admin)
        with pytest.raises(ValidationError):
            await update_user(
                db, seed.staff, UserUpdateSchema(actor_user_id=admin.id, name="Sami"), admin
            )

    async def test_admin_cannot_delete_self(self, db, seed, helpers):
        admin = await helpers.user(seed.admin)
        with pytest.raises(ValidationError) as exc:
            await delete_user(db, admin.id, admin)
        assert exc.value.error_code == ErrorCode.USER_SELF_DELETE

    async def test_delete_removes_user(self, db, seed, helpers):
        admin = await helpers.user(seed.admin)

        await delete_user(db, seed.driver_b, admin)

        assert await db.get(User, seed.driver_b) is None
        with pytest.raises(NotFoundError):
            await get_user_by_id(db, seed.driver_b)

    async def test_list_filters_by_role(self, db, seed):
        drivers = await list_users(db, role="DRIVER", branch_id=None)
        assert drivers.total == 2
        assert {u.id for u in drivers.items} == {seed.driver, seed.driver_b}


class TestLogin:
    async def test_login_returns_public_profile(self, db, seed):
        profile = await login_user(db, "sami", PASSWORD)

        assert profile.id == seed.staff
        assert profile.role == "staff"
        assert profile.branch_id == "B002"
        assert not hasattr(profile, "password_hash")

    @pytest.mark.parametrize("name,password", [("Sami", "wrong"), ("Nobody", PASSWORD)])
    async def test_bad_credentials_are_unauthorized(self, db, seed, name, password):
        with pytest.raises(UnauthorizedError):
            await login_user(db, name, password)

    async def test_login_is_recorded_in_activity_log(self, db, seed):
        await login_user(db, "Dina", PASSWORD)

        result = await list_user_activities(
            db=db,
            filters=UserActivityFilters(
                user_id=seed.driver,
                username=None,
                page=1,
                page_size=20,
                sort_by="created_at",
                sort_order="desc",
            ),
        )

        assert result["total"] == 1
        assert result["items"][0].message == "Driver (Dina) logged in"

    async def test_activity_sort_field_is_validated(self, db, seed):
        with pytest.raises(ValidationError):
            await list_user_activities(
                db=db,
                filters=UserActivityFilters(
                    user_id=None,
                    username=None,
                    page=1,
                    page_size=20,
                    sort_by="password",
                    sort_order="desc",
                ),
            )

    async def test_activity_search_matches_message_text(self, db, seed):
        await login_user(db, "Dina", PASSWORD)
        await login_user(db, "Sami", PASSWORD)

        result = await list_user_activities(
            db=db,
            filters=UserActivityFilters(
                user_id=None,
                username=None,
                search="(dina)",
                since=None,
                until=None,
                page=1,
                page_size=20,
                sort_by="created_at",
                sort_order="desc",
            ),
        )

        assert [a.user_id for a in result["items"]] == [seed.driver]
