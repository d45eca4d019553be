# app/routers/__init__.py

from .users.user_router import router as user_router

from .auth.auth_router import router as auth_router
from .auth.activity_router import router as activity_router

from .catalog.branch_router import router as branch_router
from .catalog.item_router import router as item_router
from .catalog.vehicle_router import router as vehicle_router
from .catalog.budget_router import router as budget_router

from .logistics.movement_router import router as movement_router
from .logistics.request_router import router as request_router

from .support.state_router import router as state_router


__all__ = [
"user_router",

"auth_router",
"activity_router",

"branch_router",
"item_router",
"vehicle_router",
"budget_router",

"movement_router",
"request_router",

"state_router",
]
