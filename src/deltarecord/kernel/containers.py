"""Fine-grained container delta models.

A container field diffed with a fine-grained policy carries one of these
instead of the whole new container. Each model is generic over the element
type and the element payload type; the payload is the element's own delta
when elements are Records and the new element value otherwise.

Sequence layout (``SequenceDelta``):
    prefix = length - len(tail)
    result[:prefix]  <- base[:prefix] with ``updated`` applied by index
    result[prefix:]  <- tail

Mapping layout (``MappingDelta``):
    removed keys are dropped, ``updated`` patches keys present on both
    sides, ``inserted`` adds keys that only exist in the new mapping.

Set layout (``SetDelta``):
    result = (base - removed) | added
"""

from __future__ import annotations

from typing import Any, Dict, Generic, Iterable, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

ItemT = TypeVar("ItemT")
PayloadT = TypeVar("PayloadT")
KeyT = TypeVar("KeyT")


def stable_order(items: Iterable[Any]) -> List[Any]:
    """Order set members deterministically regardless of hash seed."""
    return sorted(items, key=lambda item: (type(item).__name__, repr(item)))


class SequenceDelta(BaseModel, Generic[ItemT, PayloadT]):
    """Index-keyed element changes plus the final length."""
    length: int = Field(..., ge=0)
    updated: Dict[int, PayloadT] = Field(default_factory=dict)
    tail: List[ItemT] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _check_layout(self) -> "SequenceDelta":
        if len(self.tail) > self.length:
            raise ValueError(f"tail of {len(self.tail)} items exceeds final length {self.length}")
        prefix = self.length - len(self.tail)
        out_of_range = sorted(i for i in self.updated if i < 0 or i >= prefix)
        if out_of_range:
            raise ValueError(f"updated indices {out_of_range} outside shared prefix of length {prefix}")
        return self

    @property
    def prefix_length(self) -> int:
        """Number of leading elements carried over from the base."""
        return self.length - len(self.tail)


class MappingDelta(BaseModel, Generic[KeyT, ItemT, PayloadT]):
    """Upserted and removed keys of a mapping."""
    updated: Dict[KeyT, PayloadT] = Field(default_factory=dict)
    inserted: Dict[KeyT, ItemT] = Field(default_factory=dict)
    removed: List[KeyT] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")

    def is_empty(self) -> bool:
        return not (self.updated or self.inserted or self.removed)


class SetDelta(BaseModel, Generic[ItemT]):
    """Members added to and removed from a set."""
    added: List[ItemT] = Field(default_factory=list)
    removed: List[ItemT] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")

    def is_empty(self) -> bool:
        return not (self.added or self.removed)
