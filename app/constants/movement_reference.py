# app/constants/movement_reference.py

from enum import Enum


class MovementReference(str, Enum):
    REQUEST = "REQUEST"
    ADJUSTMENT = "ADJUSTMENT"
    IMPORT = "IMPORT"
