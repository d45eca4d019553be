from datetime import date, datetime
from decimal import Decimal
from enum import Enum


def to_json_safe(obj):
    """
    Walk dicts/lists and turn DB values into plain JSON types.

    Decimal -> float, Enum -> value, date/datetime -> ISO string.
    """
    if isinstance(obj, dict):
        return {k: to_json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_json_safe(v) for v in obj]
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return obj
