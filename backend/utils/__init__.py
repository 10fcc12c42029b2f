from datetime import datetime
import enum

import pytz
from sqlalchemy.orm import class_mapper

from config import APP_TIMEZONE
from .formatting import to_money, format_currency


def local_now() -> datetime:
    """Timezone-aware "now" in the configured application timezone."""
    return datetime.now(pytz.timezone(APP_TIMEZONE))


def to_json_value(value):
    """Convert a column value into something the JSON audit columns can store."""
    # Convert datetime/date objects to ISO format strings
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    # Decimals are kept exact as strings
    if hasattr(value, 'normalize') and hasattr(value, 'quantize'):
        return str(value)
    # Convert enum types to their stored value
    if isinstance(value, enum.Enum):
        return value.value
    return value


def sqlalchemy_to_dict(obj):
    """Convert a SQLAlchemy object to a dictionary."""
    if not obj:
        return None
    mapper = class_mapper(obj.__class__)
    result = {}
    for c in mapper.columns:
        result[c.key] = to_json_value(getattr(obj, c.key))
    return result


__all__ = ['format_currency', 'local_now', 'sqlalchemy_to_dict', 'to_json_value', 'to_money']
