import enum

class RequestStatus(str, enum.Enum):
    pending = "pending"
    assigned = "assigned"
    delivered = "delivered"
