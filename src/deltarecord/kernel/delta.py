"""Base model for generated record deltas."""

from typing import Any, ClassVar, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_serializer

from .slots import ABSENT, Present


def _drop_slot_defaults(schema: Dict[str, Any]) -> None:
    # an omitted slot means Absent, not null
    for prop in schema.get("properties", {}).values():
        prop.pop("default", None)


class RecordDelta(BaseModel):
    """Sparse, shape-parallel change set for one Record type.

    Every record field has a slot. A slot is Present when its name is in
    ``model_fields_set`` and Absent otherwise; the stored attribute value
    of an Absent slot is meaningless. Only Present slots are serialized,
    so an empty delta dumps to ``{}``.

    Concrete subclasses are generated per Record class by
    ``deltarecord.kernel.fields.delta_model_for``.
    """

    record_type: ClassVar[Optional[type]] = None
    field_specs: ClassVar[Tuple[Any, ...]] = ()

    model_config = ConfigDict(frozen=True, extra="forbid", json_schema_extra=_drop_slot_defaults)

    @model_serializer(mode="plain")
    def serialize_slots(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.present_fields()}

    def present_fields(self) -> Tuple[str, ...]:
        """Names of Present slots, in field declaration order."""
        fields_set = self.model_fields_set
        return tuple(name for name in type(self).model_fields if name in fields_set)

    def slot(self, name: str):
        """Return ``ABSENT`` or ``Present(payload)`` for a field."""
        if name not in type(self).model_fields:
            raise KeyError(f"{type(self).__name__} has no slot '{name}'")
        if name in self.model_fields_set:
            return Present(getattr(self, name))
        return ABSENT

    def is_empty(self) -> bool:
        """True when every slot is Absent (applying is a no-op)."""
        return not self.model_fields_set

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, RecordDelta):
            return NotImplemented
        if type(self) is not type(other) or self.model_fields_set != other.model_fields_set:
            return False
        return all(getattr(self, name) == getattr(other, name) for name in self.model_fields_set)

    def __repr_args__(self):
        for name in self.present_fields():
            yield name, getattr(self, name)
