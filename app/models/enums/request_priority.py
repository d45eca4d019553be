import enum

class RequestPriority(str, enum.Enum):
    normal = "normal"
    urgent = "urgent"
