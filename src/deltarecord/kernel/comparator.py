"""Field comparator: per-field diff and its inverse.

``compare`` decides whether one field changed between two records and,
if so, builds the payload stored in the delta slot. ``apply_field``
turns a base value plus that payload back into the new value.

Both dispatch on the field's policy:
- scalar / replace: equality, payload is a copy of the new value
- delta: payload is the nested record delta (never a full replacement)
- ordered / keyed / unordered: payload is a container delta

Nested records are handled through the engine, which in turn calls
back into this module for each of their fields.
"""

import copy
from functools import partial
from typing import Any, Callable, Sequence

from ..codes import FieldPolicy
from .containers import MappingDelta, SequenceDelta, SetDelta, stable_order
from .delta import RecordDelta
from .errors import SchemaMismatchError
from .fields import FieldSpec
from .slots import ABSENT, Present


def _compare_value(old: Any, new: Any):
    if old == new:
        return ABSENT
    return Present(copy.deepcopy(new))


def as_declared(record_cls: type, value: Any) -> Any:
    """Bring a subclass instance down to the field's declared Record class."""
    if type(value) is record_cls or not isinstance(value, record_cls):
        return value
    return record_cls.model_validate(value)


def _compare_record(record_cls: type, old: Any, new: Any):
    from .engine import compute

    delta = compute(as_declared(record_cls, old), as_declared(record_cls, new))
    if delta.is_empty():
        return ABSENT
    return Present(delta)


def _item_comparator(spec: FieldSpec) -> Callable[[Any, Any], Any]:
    if spec.item_record is not None:
        return partial(_compare_record, spec.item_record)
    return _compare_value


def _compare_sequence(spec: FieldSpec, old: Sequence[Any], new: Sequence[Any]):
    compare_item = _item_comparator(spec)
    updated = {}
    for index in range(min(len(old), len(new))):
        outcome = compare_item(old[index], new[index])
        if outcome:
            updated[index] = outcome.payload
    if not updated and len(old) == len(new):
        return ABSENT
    tail = [copy.deepcopy(item) for item in new[len(old):]]
    return Present(spec.payload_type.model_construct(length=len(new), updated=updated, tail=tail))


def _compare_mapping(spec: FieldSpec, old: dict, new: dict):
    compare_item = _item_comparator(spec)
    removed = [key for key in old if key not in new]
    inserted = {}
    updated = {}
    for key, value in new.items():
        if key not in old:
            inserted[key] = copy.deepcopy(value)
            continue
        outcome = compare_item(old[key], value)
        if outcome:
            updated[key] = outcome.payload
    delta = spec.payload_type.model_construct(updated=updated, inserted=inserted, removed=removed)
    if delta.is_empty():
        return ABSENT
    return Present(delta)


def _compare_set(spec: FieldSpec, old, new):
    delta = spec.payload_type.model_construct(added=stable_order(new - old), removed=stable_order(old - new))
    if delta.is_empty():
        return ABSENT
    return Present(delta)


def compare(spec: FieldSpec, old: Any, new: Any):
    """Compare one field of two records.

    Returns ``ABSENT`` when the values are equal under the field's
    policy, else ``Present(payload)``. Never mutates either value.
    """
    policy = spec.policy
    if policy is FieldPolicy.DELTA:
        return _compare_record(spec.record_type, old, new)
    if policy is FieldPolicy.ORDERED:
        return _compare_sequence(spec, old, new)
    if policy is FieldPolicy.KEYED:
        return _compare_mapping(spec, old, new)
    if policy is FieldPolicy.UNORDERED:
        return _compare_set(spec, old, new)
    return _compare_value(old, new)


def _apply_record(record_cls: type, base: Any, payload: Any, path: Sequence[object]):
    from .engine import apply_at

    return apply_at(as_declared(record_cls, base), payload, path)


def _expect(payload: Any, payload_cls: type, spec: FieldSpec, path: Sequence[object]) -> None:
    if not isinstance(payload, payload_cls):
        raise SchemaMismatchError(
            f"expected {payload_cls.__name__} for a \"{spec.policy.value}\" field, got {type(payload).__name__}",
            path,
        )


def _apply_item(spec: FieldSpec, base_item: Any, payload: Any, path: Sequence[object]):
    if spec.item_record is not None:
        return _apply_record(spec.item_record, base_item, payload, path)
    return copy.deepcopy(payload)


def _apply_sequence(spec: FieldSpec, base: Sequence[Any], payload: SequenceDelta, path: Sequence[object]):
    _expect(payload, SequenceDelta, spec, path)
    prefix = payload.prefix_length
    if len(base) < prefix:
        raise SchemaMismatchError(
            f"sequence delta keeps {prefix} leading items but the base has only {len(base)}",
            path,
        )
    items = copy.deepcopy(list(base[:prefix]))
    for index, item_payload in sorted(payload.updated.items()):
        if not 0 <= index < prefix:
            raise SchemaMismatchError(f"updated index {index} outside kept prefix of {prefix}", path)
        items[index] = _apply_item(spec, items[index], item_payload, list(path) + [index])
    items.extend(copy.deepcopy(payload.tail))
    if spec.container is tuple:
        return tuple(items)
    return items


def _apply_mapping(spec: FieldSpec, base: dict, payload: MappingDelta, path: Sequence[object]):
    _expect(payload, MappingDelta, spec, path)
    result = copy.deepcopy(dict(base))
    for key in payload.removed:
        result.pop(key, None)
    for key, item_payload in payload.updated.items():
        if spec.item_record is not None and key not in result:
            raise SchemaMismatchError(f"cannot patch missing key {key!r}", path)
        result[key] = _apply_item(spec, result.get(key), item_payload, list(path) + [key])
    for key, value in payload.inserted.items():
        result[key] = copy.deepcopy(value)
    return result


def _apply_set(spec: FieldSpec, base, payload: SetDelta, path: Sequence[object]):
    _expect(payload, SetDelta, spec, path)
    members = (set(base) - set(payload.removed)) | set(payload.added)
    return spec.container(members)


def apply_field(spec: FieldSpec, base: Any, payload: Any, path: Sequence[object] = ()):
    """Return the field value obtained by applying ``payload`` to ``base``.

    Raises:
        SchemaMismatchError: If the payload does not fit the field.
    """
    policy = spec.policy
    if policy is FieldPolicy.DELTA:
        if not isinstance(payload, RecordDelta):
            raise SchemaMismatchError(
                f"expected a nested delta, got {type(payload).__name__}",
                path,
            )
        return _apply_record(spec.record_type, base, payload, path)
    if policy is FieldPolicy.ORDERED:
        return _apply_sequence(spec, base, payload, path)
    if policy is FieldPolicy.KEYED:
        return _apply_mapping(spec, base, payload, path)
    if policy is FieldPolicy.UNORDERED:
        return _apply_set(spec, base, payload, path)
    return copy.deepcopy(payload)
