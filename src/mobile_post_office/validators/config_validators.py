"""
Plain value coercions shared by the Settings field validators.

They run in `mode="before"`, on raw environment strings, ahead of pydantic's own type checks.
"""


def to_uppercase(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip().upper()


def to_lowercase(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip().lower()


def blank_to_none(value: str | None) -> str | None:
    """`API_KEY=` in a .env file means "not set", not "the empty key"."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def require_positive(value: int | float, name: str) -> int | float:
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value
