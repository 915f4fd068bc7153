"""Field descriptors and delta model generation.

This module plays the part of a code generator: it reads a Record's
pydantic field metadata once, decides a diffing policy per field, and
builds the matching ``<Name>Delta`` model. Results are cached per record
class; the cache is shared across threads.

Policy resolution, in order:
1. an explicit ``DeltaField`` marker in the field's ``Annotated`` metadata
2. the record's ``delta_fine_grained`` class default (containers only)
3. inference from the annotation
"""

import logging
import threading
import types
import typing
from dataclasses import dataclass, replace
from typing import Annotated, Any, Dict, Optional, Set, Tuple, Type, Union

from pydantic import create_model

from ..codes import FieldPolicy
from .containers import MappingDelta, SequenceDelta, SetDelta
from .delta import RecordDelta
from .errors import DeltaDefinitionError
from .record import Record

logger = logging.getLogger(__name__)

_SEQUENCE_TYPES = (list, tuple)
_CONTAINER_TYPES = (list, tuple, dict, set, frozenset)

# Slot names that would shadow RecordDelta's own API.
RESERVED_SLOT_NAMES = frozenset({
    "record_type",
    "field_specs",
    "present_fields",
    "slot",
    "is_empty",
    "serialize_slots",
})


@dataclass(frozen=True)
class DeltaField:
    """``Annotated`` marker that pins a field's diffing policy.

    Example:
        tags: Annotated[list[str], DeltaField(FieldPolicy.ORDERED)] = []
    """
    policy: FieldPolicy

    def __post_init__(self):
        try:
            policy = FieldPolicy(self.policy)
        except ValueError:
            valid = ", ".join(f'"{p.value}"' for p in FieldPolicy)
            raise DeltaDefinitionError(f"Unknown delta policy {self.policy!r}, expected one of {valid}")
        object.__setattr__(self, "policy", policy)


def delta_field(policy: Union[FieldPolicy, str]) -> DeltaField:
    """Shorthand for ``DeltaField(FieldPolicy(policy))``."""
    return DeltaField(policy)


@dataclass(frozen=True)
class FieldSpec:
    """Resolved diffing contract for one record field."""
    name: str
    annotation: Any
    policy: FieldPolicy
    nullable: bool = False
    container: Optional[type] = None  # list / tuple / dict / set / frozenset
    key_type: Any = None
    item_type: Any = None
    record_type: Optional[type] = None  # nested Record class (DELTA)
    item_record: Optional[type] = None  # Record element class (fine-grained containers)
    payload_type: Any = None  # annotation of the delta slot
    constraints: Tuple[Any, ...] = ()  # pydantic field metadata other than DeltaField


def _unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    origin = typing.get_origin(annotation)
    if origin is Union or (hasattr(types, "UnionType") and origin is types.UnionType):
        args = typing.get_args(annotation)
        non_none = [a for a in args if a is not type(None)]
        nullable = len(non_none) != len(args)
        if len(non_none) == 1:
            return non_none[0], nullable
        return annotation, nullable
    return annotation, False


def _container_parts(annotation: Any) -> Tuple[Optional[type], Any, Any, bool]:
    """Return (container, key_type, item_type, variadic) for a container annotation."""
    if annotation in _CONTAINER_TYPES:
        return annotation, Any, Any, True
    origin = typing.get_origin(annotation)
    if origin not in _CONTAINER_TYPES:
        return None, None, None, False
    args = typing.get_args(annotation)
    if origin is dict:
        key_type, item_type = args if len(args) == 2 else (Any, Any)
        return dict, key_type, item_type, True
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple, None, args[0], True
        # fixed-length tuples are compared as a whole
        return tuple, None, None, False
    return origin, None, (args[0] if args else Any), True


def _is_record(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, Record)


def _fine_grained_policy(container: type) -> FieldPolicy:
    if container is dict:
        return FieldPolicy.KEYED
    if container in (set, frozenset):
        return FieldPolicy.UNORDERED
    return FieldPolicy.ORDERED


def _check_policy(record_cls: type, spec: FieldSpec, variadic: bool) -> None:
    policy = spec.policy
    where = f"{record_cls.__name__}.{spec.name}"
    if policy is FieldPolicy.DELTA:
        if spec.record_type is None or spec.nullable:
            raise DeltaDefinitionError(
                f"{where}: policy \"delta\" needs a non-optional Record annotation, got {spec.annotation!r}"
            )
    elif policy is FieldPolicy.REPLACE:
        if spec.container is None:
            raise DeltaDefinitionError(f"{where}: policy \"replace\" needs a container annotation, got {spec.annotation!r}")
    elif policy is FieldPolicy.ORDERED:
        if spec.container not in _SEQUENCE_TYPES or not variadic or spec.nullable:
            raise DeltaDefinitionError(
                f"{where}: policy \"ordered\" needs list[T] or tuple[T, ...], got {spec.annotation!r}"
            )
    elif policy is FieldPolicy.KEYED:
        if spec.container is not dict or spec.nullable:
            raise DeltaDefinitionError(f"{where}: policy \"keyed\" needs dict[K, V], got {spec.annotation!r}")
    elif policy is FieldPolicy.UNORDERED:
        if spec.container not in (set, frozenset) or spec.nullable:
            raise DeltaDefinitionError(
                f"{where}: policy \"unordered\" needs set[T] or frozenset[T], got {spec.annotation!r}"
            )


def resolve_field(record_cls: type, name: str, field_info) -> FieldSpec:
    """Build the FieldSpec for one pydantic field of ``record_cls``."""
    annotation = field_info.annotation
    marker = next((m for m in field_info.metadata if isinstance(m, DeltaField)), None)
    inner, nullable = _unwrap_optional(annotation)
    container, key_type, item_type, variadic = _container_parts(inner)

    if marker is not None:
        policy = marker.policy
    elif _is_record(inner) and not nullable:
        policy = FieldPolicy.DELTA
    elif container is not None:
        fine = _fine_grained_policy(container)
        use_fine = record_cls.delta_fine_grained and not nullable and variadic
        policy = fine if use_fine else FieldPolicy.REPLACE
    else:
        policy = FieldPolicy.SCALAR

    spec = FieldSpec(
        name=name,
        annotation=annotation,
        policy=policy,
        nullable=nullable,
        container=container,
        key_type=key_type,
        item_type=item_type,
        record_type=inner if _is_record(inner) else None,
        item_record=item_type if _is_record(item_type) else None,
        constraints=tuple(m for m in field_info.metadata if not isinstance(m, DeltaField)),
    )
    _check_policy(record_cls, spec, variadic)
    return spec


class _DeltaModelCache:
    """Per-record-class FieldSpecs and delta models, built once."""

    def __init__(self):
        self._models: Dict[type, Type[RecordDelta]] = {}
        self._building: Set[type] = set()
        self._lock = threading.RLock()

    def get(self, record_cls: type) -> Type[RecordDelta]:
        model = self._models.get(record_cls)
        if model is not None:
            return model
        with self._lock:
            model = self._models.get(record_cls)
            if model is None:
                model = self._build(record_cls)
                self._models[record_cls] = model
            return model

    def _build(self, record_cls: type) -> Type[RecordDelta]:
        if record_cls in self._building:
            raise DeltaDefinitionError(
                f"{record_cls.__name__} contains itself through a diffed field; cyclic records are not supported"
            )
        self._building.add(record_cls)
        try:
            return self._build_model(record_cls)
        finally:
            self._building.discard(record_cls)

    def _build_model(self, record_cls: type) -> Type[RecordDelta]:
        if not record_cls.__pydantic_complete__:
            record_cls.model_rebuild()
        if record_cls.model_config.get("extra") == "allow":
            raise DeltaDefinitionError(
                f"{record_cls.__name__}: records with extra=\"allow\" cannot be diffed (extra fields have no slot)"
            )

        specs = []
        for name, field_info in record_cls.model_fields.items():
            if name in RESERVED_SLOT_NAMES:
                raise DeltaDefinitionError(f"{record_cls.__name__}.{name}: field name is reserved by RecordDelta")
            spec = resolve_field(record_cls, name, field_info)
            specs.append(replace(spec, payload_type=self._payload_type(spec)))

        slots = {spec.name: (spec.payload_type, None) for spec in specs}
        model = create_model(
            f"{record_cls.__name__}Delta",
            __base__=RecordDelta,
            __module__=record_cls.__module__,
            **slots,
        )
        model.record_type = record_cls
        model.field_specs = tuple(specs)
        logger.debug(
            "built %s with policies %s",
            model.__name__,
            {spec.name: spec.policy.value for spec in specs},
        )
        return model

    def _item_payload(self, spec: FieldSpec) -> Any:
        if spec.item_record is not None:
            return self.get(spec.item_record)
        return spec.item_type

    def _payload_type(self, spec: FieldSpec) -> Any:
        policy = spec.policy
        if policy is FieldPolicy.DELTA:
            return self.get(spec.record_type)
        if policy is FieldPolicy.ORDERED:
            return SequenceDelta[spec.item_type, self._item_payload(spec)]
        if policy is FieldPolicy.KEYED:
            return MappingDelta[spec.key_type, spec.item_type, self._item_payload(spec)]
        if policy is FieldPolicy.UNORDERED:
            return SetDelta[spec.item_type]
        if spec.constraints:
            # whole-value slots validate like the record field itself
            return Annotated[(spec.annotation, *spec.constraints)]
        return spec.annotation


_CACHE = _DeltaModelCache()


def delta_model_for(record_cls: type) -> Type[RecordDelta]:
    """Return (building on first use) the delta model of a Record class."""
    if not _is_record(record_cls):
        raise TypeError(f"{record_cls!r} is not a Record subclass")
    return _CACHE.get(record_cls)


def field_specs(record_cls: type) -> Tuple[FieldSpec, ...]:
    """FieldSpecs of a Record class in declaration order."""
    return delta_model_for(record_cls).field_specs
