"""Delta engine: whole-record compute and apply.

Laws (for records ``a`` and ``b`` of the same type):
- ``apply(a, compute(a, b)) == b``
- ``compute(a, a)`` is empty and ``apply(a, empty) == a``
- ``apply(apply(a, d), d) == apply(a, d)`` for ``d = compute(a, b)``

Neither operation mutates its inputs; both are safe to call from many
threads at once.
"""

import logging
from collections.abc import Mapping
from typing import Any, Sequence, Type, TypeVar, Union

from pydantic import ValidationError

from .comparator import apply_field, compare
from .delta import RecordDelta
from .errors import SchemaMismatchError
from .fields import delta_model_for
from .record import Record

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)


def _require_record(value: Any, role: str) -> None:
    if not isinstance(value, Record):
        raise TypeError(f"{role} must be a Record instance, got {type(value).__name__}")


def compute(old: Record, new: Record) -> RecordDelta:
    """Compute the delta that turns ``old`` into ``new``.

    Fields are compared in declaration order. Unchanged fields are left
    Absent in the returned delta.

    Raises:
        TypeError: If ``old`` and ``new`` are not instances of the same Record class.
    """
    _require_record(old, "old")
    record_cls = type(old)
    if type(new) is not record_cls:
        raise TypeError(
            f"cannot diff {record_cls.__name__} against {type(new).__name__}; "
            f"both sides must be the same Record class"
        )
    delta_cls = delta_model_for(record_cls)
    if old is new:
        return delta_cls.model_construct()

    present = {}
    for spec in delta_cls.field_specs:
        outcome = compare(spec, getattr(old, spec.name), getattr(new, spec.name))
        if outcome:
            present[spec.name] = outcome.payload

    logger.debug("%s: %d of %d fields changed", record_cls.__name__, len(present), len(delta_cls.field_specs))
    return delta_cls.model_construct(**present)


def validate_delta(record_cls: Type[Record], data: Any) -> RecordDelta:
    """Validate raw delta data (a mapping or JSON text) against a record's delta model.

    Raises:
        SchemaMismatchError: If the data does not fit the delta model
            (unknown slot, wrongly typed payload, malformed container delta).
    """
    delta_cls = delta_model_for(record_cls)
    try:
        if isinstance(data, (str, bytes, bytearray)):
            return delta_cls.model_validate_json(data)
        return delta_cls.model_validate(data)
    except ValidationError as e:
        raise SchemaMismatchError(
            f"delta does not match {delta_cls.__name__}: {e.error_count()} error(s)\n{e}",
            record_type=record_cls,
        ) from e


def coerce_delta(record_cls: Type[Record], delta: Any, path: Sequence[object] = ()) -> RecordDelta:
    """Return ``delta`` as an instance of ``record_cls``'s delta model.

    Raw mappings are validated first. A delta built for another record
    type is rejected.
    """
    if isinstance(delta, Mapping):
        return validate_delta(record_cls, delta)
    delta_cls = delta_model_for(record_cls)
    if type(delta) is delta_cls:
        return delta
    if isinstance(delta, RecordDelta):
        source = delta.record_type.__name__ if delta.record_type is not None else type(delta).__name__
        raise SchemaMismatchError(
            f"delta was computed for {source}, cannot apply it to {record_cls.__name__}",
            path,
            record_cls,
        )
    raise SchemaMismatchError(
        f"expected {delta_cls.__name__}, got {type(delta).__name__}",
        path,
        record_cls,
    )


def apply_at(base: R, delta: Union[RecordDelta, Mapping], path: Sequence[object]) -> R:
    """``apply`` for a record found at ``path`` inside an enclosing record."""
    _require_record(base, "base")
    delta = coerce_delta(type(base), delta, path)
    updates = {}
    for spec in type(delta).field_specs:
        if spec.name in delta.model_fields_set:
            updates[spec.name] = apply_field(
                spec,
                getattr(base, spec.name),
                getattr(delta, spec.name),
                list(path) + [spec.name],
            )
    return base.model_copy(update=updates, deep=True)


def _check_valid(record: Record) -> None:
    """Run the record's own validation over a freshly patched copy."""
    record_cls = type(record)
    try:
        record_cls.model_validate(record.model_dump(by_alias=True, round_trip=True))
    except ValidationError as e:
        raise SchemaMismatchError(
            f"patched {record_cls.__name__} fails validation: {e.error_count()} error(s)\n{e}",
            record_type=record_cls,
        ) from e


def apply(base: R, delta: Union[RecordDelta, Mapping]) -> R:
    """Return a new record equal to ``base`` with ``delta`` applied.

    Absent slots keep the base value; Present slots are replaced,
    recursed into, or merged according to the field's policy. The base
    and the delta are left untouched. The result is checked against the
    record's validators (field constraints, model validators) before it
    is returned.

    Raises:
        SchemaMismatchError: If the delta does not fit ``type(base)`` or
            the patched record fails validation.
    """
    result = apply_at(base, delta, ())
    _check_valid(result)
    return result


def apply_in_place(base: Record, delta: Union[RecordDelta, Mapping]) -> None:
    """Apply ``delta`` to ``base`` by assigning every changed field.

    The patched record is built and validated as a whole before the
    first assignment, so a failing delta leaves ``base`` unchanged.

    Raises:
        SchemaMismatchError: If the delta does not fit ``type(base)`` or
            the patched record fails validation.
        TypeError: If the record class, or a field the delta changes, is frozen.
    """
    _require_record(base, "base")
    record_cls = type(base)
    if base.model_config.get("frozen"):
        raise TypeError(f"{record_cls.__name__} is frozen; use apply() to get an updated copy")
    delta = coerce_delta(record_cls, delta)
    frozen = [name for name in delta.present_fields() if record_cls.model_fields[name].frozen]
    if frozen:
        raise TypeError(
            f"{record_cls.__name__} field(s) {', '.join(frozen)} are frozen; use apply() to get an updated copy"
        )
    updated = apply(base, delta)
    values = {name: getattr(updated, name) for name in delta.present_fields()}
    # same update model_copy performs: no per-field assignment validation
    base.__dict__.update(values)
    base.__pydantic_fields_set__.update(values)
