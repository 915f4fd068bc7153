"""Diffing policy constants for deltarecord fields.

These constants prevent stringly-typed policy names and ensure
record declarations use a policy the engine knows how to diff.
"""

from enum import Enum


class FieldPolicy(str, Enum):
    """How a single record field is compared and patched."""

    # Leaf policies
    SCALAR = "scalar"  # equality check, full replacement payload
    DELTA = "delta"  # nested Record, payload is the nested delta

    # Container policies
    REPLACE = "replace"  # whole container transmitted when any element changes
    ORDERED = "ordered"  # list/tuple: index-keyed element deltas + final length
    KEYED = "keyed"  # dict: updated/inserted/removed keys
    UNORDERED = "unordered"  # set/frozenset: added/removed members
