from dataclasses import dataclass
from typing import Iterable

from fastapi import Depends

from app.core.exceptions import ForbiddenError
from app.models.users.user_models import User
from app.utils.get_user import get_query_actor


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


def _normalize(roles: Iterable) -> set[str]:
    return {getattr(r, "value", r).lower() for r in roles}


def has_role(user: User | None, roles: Iterable) -> bool:
    return user is not None and (user.role or "").lower() in _normalize(roles)


def check_role(user: User | None, roles: Iterable, action: str) -> AccessDecision:
    allowed = _normalize(roles)
    if has_role(user, allowed):
        return AccessDecision(True)
    return AccessDecision(
        False,
        f"Only {'/'.join(sorted(allowed))} can {action}",
    )


def ensure_role(user: User, roles: Iterable, action: str) -> User:
    decision = check_role(user, roles, action)
    if not decision:
        raise ForbiddenError(decision.reason)
    return user


def require_role(roles: list[str]):
    async def role_checker(user: User = Depends(get_query_actor)):
        return ensure_role(user, roles, "access this resource")
    return role_checker
