# app/constants/error_codes.py

from enum import Enum


class ErrorCode(str, Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # ---------------- USERS ----------------
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_NAME_EXISTS = "USER_NAME_EXISTS"
    USER_ROLE_INVALID = "USER_ROLE_INVALID"
    USER_SELF_DELETE = "USER_SELF_DELETE"

    # ---------------- CATALOG ----------------
    BRANCH_NOT_FOUND = "BRANCH_NOT_FOUND"
    BRANCH_EXISTS = "BRANCH_EXISTS"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    ITEM_EXISTS = "ITEM_EXISTS"
    ITEM_AMBIGUOUS = "ITEM_AMBIGUOUS"
    VEHICLE_PLATE_EXISTS = "VEHICLE_PLATE_EXISTS"

    # ---------------- STOCK ----------------
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    MOVEMENT_IMMUTABLE = "MOVEMENT_IMMUTABLE"

    # ---------------- REQUESTS ----------------
    REQUEST_NOT_FOUND = "REQUEST_NOT_FOUND"
    REQUEST_ALREADY_DELIVERED = "REQUEST_ALREADY_DELIVERED"
    REQUEST_NOT_PENDING = "REQUEST_NOT_PENDING"
    REQUEST_NOT_DELIVERED = "REQUEST_NOT_DELIVERED"
    REQUEST_ASSIGNED_TO_OTHER_DRIVER = "REQUEST_ASSIGNED_TO_OTHER_DRIVER"
    REQUEST_FIELD_NOT_EDITABLE = "REQUEST_FIELD_NOT_EDITABLE"
    DRIVER_INVALID = "DRIVER_INVALID"
