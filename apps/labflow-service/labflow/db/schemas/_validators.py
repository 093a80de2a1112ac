"""Shared field checks for form-style payloads."""


def min_length(value: str, length: int, label: str) -> str:
    cleaned = (value or "").strip()
    if len(cleaned) < length:
        if length == 1:
            raise ValueError(f"{label} is required")
        raise ValueError(f"{label} must be at least {length} characters")
    return cleaned


def not_null(value, label: str):
    # Update validators only run for fields the client sent
    if value is None:
        raise ValueError(f"{label} cannot be null")
    return value


def optional_min_length(value, length: int, label: str):
    return min_length(not_null(value, label), length, label)
