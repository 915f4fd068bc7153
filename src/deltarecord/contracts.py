"""Public result models for deltarecord package."""

from typing import List
from pydantic import BaseModel, ConfigDict


class DeltaSummary(BaseModel):
    """Human-facing overview of a delta."""
    record_type: str  # Record class name the delta belongs to
    empty: bool  # True if applying the delta is a no-op
    changed_fields: List[str]  # top-level Present slots, declaration order
    changed_paths: List[str]  # leaf paths, nested records expanded (e.g. "addr.zip")

    model_config = ConfigDict(extra="forbid")
