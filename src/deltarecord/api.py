"""Public API for deltarecord package.

High-level functions over the kernel. Callers should use these (or the
``Record`` methods) instead of importing kernel modules directly.
"""

from typing import Any, Dict, Iterator, List, Literal, Mapping, Optional, Sequence, Type, TypeVar, Union

from deltarecord._internal.canonical_json import canonical_dumps
from deltarecord.contracts import DeltaSummary
from deltarecord.kernel import engine
from deltarecord.kernel.delta import RecordDelta
from deltarecord.kernel.errors import format_path
from deltarecord.kernel.fields import delta_model_for
from deltarecord.kernel.record import Record

R = TypeVar("R", bound=Record)


def compute_delta(old: Record, new: Record) -> RecordDelta:
    """Compute the delta turning ``old`` into ``new`` (empty if they are equal)."""
    return engine.compute(old, new)


def diff(old: Record, new: Record) -> Optional[RecordDelta]:
    """Like ``compute_delta`` but returns None when nothing changed."""
    delta = engine.compute(old, new)
    if delta.is_empty():
        return None
    return delta


def apply_delta(base: R, delta: Union[RecordDelta, Mapping[str, Any]]) -> R:
    """Return a new record: ``base`` with ``delta`` applied.

    Raises:
        SchemaMismatchError: If the delta does not fit ``type(base)``.
    """
    return engine.apply(base, delta)


def dump_delta(delta: RecordDelta, mode: Literal["json", "python"] = "json") -> Dict[str, Any]:
    """Serialize a delta; Absent slots are omitted, an empty delta is ``{}``."""
    return delta.model_dump(mode=mode)


def dumps_delta(delta: RecordDelta) -> str:
    """Canonical JSON encoding of a delta (equal deltas give equal strings)."""
    return canonical_dumps(delta.model_dump(mode="json"))


def load_delta(record_cls: Type[Record], data: Union[str, bytes, Mapping[str, Any]]) -> RecordDelta:
    """Deserialize a delta for ``record_cls`` from JSON text or a mapping.

    Raises:
        SchemaMismatchError: If the data does not match the record's delta model.
    """
    return engine.validate_delta(record_cls, data)


def delta_json_schema(record_cls: Type[Record]) -> Dict[str, Any]:
    """JSON schema of the delta model generated for ``record_cls``."""
    return delta_model_for(record_cls).model_json_schema()


def _walk_paths(delta: RecordDelta, prefix: Sequence[object]) -> Iterator[str]:
    for name in delta.present_fields():
        payload = getattr(delta, name)
        path = list(prefix) + [name]
        if isinstance(payload, RecordDelta):
            yield from _walk_paths(payload, path)
        else:
            yield format_path(path)


def changed_paths(delta: RecordDelta) -> List[str]:
    """Leaf paths touched by a delta.

    Nested record deltas are expanded (``addr.zip``); scalar and
    container fields are reported by their own path.
    """
    return list(_walk_paths(delta, ()))


def summarize(delta: RecordDelta) -> DeltaSummary:
    """Build a DeltaSummary for display or logging."""
    record_type = delta.record_type.__name__ if delta.record_type is not None else type(delta).__name__
    return DeltaSummary(
        record_type=record_type,
        empty=delta.is_empty(),
        changed_fields=list(delta.present_fields()),
        changed_paths=changed_paths(delta),
    )
