"""Small payload checks shared by the HTTP routes.

JSON numbers arrive as ``int`` or ``float`` and booleans are ``int``
subclasses in Python, so the integer checks are explicit about both.
"""
from typing import Any, List, Optional


class PayloadError(ValueError):
    """Raised when a request body fails validation; carries per-field messages."""

    def __init__(self, details: List[str]):
        super().__init__('Invalid payload')
        self.details = details

    def to_dict(self):
        return {'error': 'Invalid payload', 'details': self.details}


def as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def require_object(data: Any) -> dict:
    if not isinstance(data, dict):
        raise PayloadError(['body must be a JSON object'])
    return data


def require_string(data: dict, field: str, errors: List[str], allow_empty: bool = False) -> Optional[str]:
    value = data.get(field)
    if not isinstance(value, str):
        errors.append(f'{field} must be a string')
        return None
    value = value.strip()
    if not value and not allow_empty:
        errors.append(f'{field} must not be empty')
        return None
    return value


def optional_string(data: dict, field: str, errors: List[str]) -> Optional[str]:
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        errors.append(f'{field} must be a string')
        return None
    return value.strip()
