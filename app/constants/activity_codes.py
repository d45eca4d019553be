# app/constants/activity_codes.py

from enum import Enum


class ActivityCode(str, Enum):
    # ---------------- AUTH ----------------
    LOGIN = "LOGIN"

    # ---------------- USERS ----------------
    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"

    # ---------------- CATALOG ----------------
    CREATE_BRANCH = "CREATE_BRANCH"
    CREATE_ITEM = "CREATE_ITEM"
    CREATE_VEHICLE = "CREATE_VEHICLE"
    UPSERT_BUDGET = "UPSERT_BUDGET"

    # ---------------- LEDGER ----------------
    INVENTORY_MOVEMENT = "INVENTORY_MOVEMENT"

    # ---------------- REQUESTS ----------------
    CREATE_REQUEST = "CREATE_REQUEST"
    ASSIGN_REQUEST = "ASSIGN_REQUEST"
    CLAIM_REQUEST = "CLAIM_REQUEST"
    UPDATE_REQUEST_ETA = "UPDATE_REQUEST_ETA"
    UPDATE_REQUEST = "UPDATE_REQUEST"
    CONFIRM_REQUEST = "CONFIRM_REQUEST"
    DELETE_REQUEST = "DELETE_REQUEST"

    # ---------------- SNAPSHOT ----------------
    IMPORT_SNAPSHOT = "IMPORT_SNAPSHOT"
