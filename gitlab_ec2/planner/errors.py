from __future__ import annotations

from typing import Sequence


class ValidationError(ValueError):
    """Raised by plan() before anything is derived from a bad config."""

    def __init__(self, fields: Sequence[str], message: str) -> None:
        super().__init__(message)
        self.fields = tuple(fields)


class MissingRequiredField(ValidationError):
    def __init__(self, fields: Sequence[str]) -> None:
        super().__init__(
            fields,
            "Required environment variables are missing: " + ", ".join(fields),
        )


class InvalidEnum(ValidationError):
    def __init__(self, field: str, value: object, allowed: Sequence[str]) -> None:
        super().__init__(
            [field],
            f"{field} must be one of {', '.join(repr(a) for a in allowed)}. Got: {value!r}",
        )


class OutOfRange(ValidationError):
    def __init__(self, field: str, value: object, constraint: str) -> None:
        super().__init__([field], f"{field} must be {constraint}. Got: {value!r}")


class InvalidFormat(ValidationError):
    def __init__(self, field: str, value: object, expected: str) -> None:
        super().__init__([field], f"{field} must be {expected}. Got: {value!r}")
