"""Delta-capable record base class."""

from typing import ClassVar, Type, TypeVar

from pydantic import BaseModel, ConfigDict

from .delta import RecordDelta

R = TypeVar("R", bound="Record")


class Record(BaseModel):
    """A pydantic model whose instances can be diffed and patched.

    Field policies come from ``DeltaField`` markers in ``Annotated``
    metadata. Unmarked fields are inferred: nested Records recurse,
    containers are replaced whole, everything else is a scalar. Set
    ``delta_fine_grained = True`` on a subclass to make unmarked
    containers use their element-level policy instead.

    A subclass instance assigned to a nested Record field is revalidated
    into the declared class, so both sides of a diff share one schema.
    """

    delta_fine_grained: ClassVar[bool] = False

    model_config = ConfigDict(revalidate_instances="subclass-instances")

    @classmethod
    def delta_model(cls) -> Type[RecordDelta]:
        """The generated ``<Name>Delta`` model for this record type."""
        from .fields import delta_model_for
        return delta_model_for(cls)

    def compute(self, other: "Record") -> RecordDelta:
        """Delta turning ``self`` into ``other``."""
        from .engine import compute
        return compute(self, other)

    def apply(self: R, delta) -> R:
        """New record equal to ``self`` with ``delta`` applied."""
        from .engine import apply
        return apply(self, delta)

    def apply_in_place(self, delta) -> None:
        """Apply ``delta`` by assigning changed fields on ``self``."""
        from .engine import apply_in_place
        apply_in_place(self, delta)
