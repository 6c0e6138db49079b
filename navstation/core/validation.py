from typing import Optional


def required_text(value: str, field: str = "value") -> str:
    """Strip surrounding whitespace and reject empty strings."""
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{field} must not be empty")
    return value


def optional_text(value: Optional[str], field: str = "value") -> Optional[str]:
    """Like required_text, but None (field omitted) passes through."""
    if value is None:
        return None
    return required_text(value, field)
