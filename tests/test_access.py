import pytest

from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.constants.roles import Role, MANAGEMENT_ROLES
from app.utils.check_roles import check_role, ensure_role, has_role
from app.utils.get_user import find_user_by_name, get_actor


class TestRolePredicates:
    async def test_has_role_matches_enum_and_plain_strings(self, seed, helpers):
        manager = await helpers.user(seed.manager)

        assert has_role(manager, MANAGEMENT_ROLES)
        assert has_role(manager, ["MANAGER"])
        assert not has_role(manager, {Role.DRIVER})
        assert not has_role(None, MANAGEMENT_ROLES)

    async def test_check_role_returns_structured_decision(self, seed, helpers):
        staff = await helpers.user(seed.staff)

        decision = check_role(staff, MANAGEMENT_ROLES, "assign drivers")

        assert not decision
        assert decision.allowed is False
        assert decision.reason == "Only admin/manager can assign drivers"
        assert check_role(staff, {Role.STAFF}, "confirm").allowed

    async def test_ensure_role_raises_forbidden(self, seed, helpers):
        driver = await helpers.user(seed.driver)
        with pytest.raises(ForbiddenError) as exc:
            ensure_role(driver, {Role.ADMIN}, "create users")
        assert exc.value.status_code == 403


class TestActorResolution:
    async def test_known_actor_resolves(self, db, seed):
        actor = await get_actor(db, seed.staff)
        assert actor.id == seed.staff

    @pytest.mark.parametrize("actor_id", [None, "", "U-ghost"])
    async def test_unknown_actor_is_unauthorized(self, db, seed, actor_id):
        with pytest.raises(UnauthorizedError) as exc:
            await get_actor(db, actor_id)
        assert exc.value.status_code == 401

    async def test_name_lookup_is_case_insensitive(self, db, seed):
        user = await find_user_by_name(db, "  sAmI ")
        assert user is not None
        assert user.id == seed.staff
