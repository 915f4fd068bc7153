"""Absent/Present states of a delta slot."""

from dataclasses import dataclass
from typing import Any


class _Absent:
    """Singleton marking an unchanged field."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Absent, ())


ABSENT = _Absent()


@dataclass(frozen=True)
class Present:
    """A changed field together with its payload.

    The payload is a replacement value, a nested delta, or a container
    delta depending on the field's policy. ``Present(None)`` is a valid
    change to a nullable field and is distinct from ``ABSENT``.
    """
    payload: Any

    def __bool__(self) -> bool:
        return True
