# Catalog
from app.models.catalog.branch_models import Branch
from app.models.catalog.item_models import Item

# Logistics
from app.models.logistics.movement_models import Movement
from app.models.logistics.request_models import TransferRequest

# Budgets / fleet
from app.models.budgets.budget_models import Budget
from app.models.fleet.vehicle_models import Vehicle

#users and auth
from app.models.users.user_models import User
from app.models.support.activity_models import UserActivity

# Support
from app.models.support.snapshot_models import SnapshotCollection
