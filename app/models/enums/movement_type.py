import enum

class MovementType(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"
