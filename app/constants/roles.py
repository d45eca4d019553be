# app/constants/roles.py

from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"
    SUPERVISOR = "supervisor"
    DRIVER = "driver"


ALLOWED_ROLES = {r.value for r in Role}

# Role groups used across services
MANAGEMENT_ROLES = {Role.ADMIN, Role.MANAGER}
RECEIVING_ROLES = {Role.STAFF, Role.SUPERVISOR, Role.ADMIN, Role.MANAGER}
BRANCH_SCOPED_ROLES = {Role.STAFF, Role.SUPERVISOR}
PENDING_VIEW_ROLES = {Role.ADMIN, Role.MANAGER, Role.DRIVER}
