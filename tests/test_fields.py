"""Tests for policy resolution and delta model generation."""

from typing import Annotated, Dict, List, Optional

import pytest
from pydantic import ConfigDict

from deltarecord import DeltaDefinitionError, DeltaField, FieldPolicy, Record, RecordDelta, delta_field
from deltarecord.kernel.engine import apply, compute
from deltarecord.kernel.fields import delta_model_for, field_specs

from record_fixtures import Address, Profile, Team


def _policies(record_cls):
    return {spec.name: spec.policy for spec in field_specs(record_cls)}


def test_inferred_and_explicit_policies():
    assert _policies(Profile) == {
        "name": FieldPolicy.SCALAR,
        "age": FieldPolicy.SCALAR,
        "nickname": FieldPolicy.SCALAR,
        "color": FieldPolicy.SCALAR,
        "address": FieldPolicy.DELTA,
        "tags": FieldPolicy.REPLACE,
        "scores": FieldPolicy.ORDERED,
        "history": FieldPolicy.ORDERED,
        "settings": FieldPolicy.KEYED,
        "homes": FieldPolicy.KEYED,
        "roles": FieldPolicy.UNORDERED,
        "coords": FieldPolicy.REPLACE,
        "backup": FieldPolicy.SCALAR,
    }


def test_fine_grained_class_default_policies():
    assert _policies(Team) == {
        "name": FieldPolicy.SCALAR,
        "members": FieldPolicy.ORDERED,
        "ranks": FieldPolicy.ORDERED,
        "labels": FieldPolicy.KEYED,
        "flags": FieldPolicy.UNORDERED,
        "snapshot": FieldPolicy.REPLACE,
        "bounds": FieldPolicy.REPLACE,
        "alias": FieldPolicy.REPLACE,
    }


def test_field_specs_follow_declaration_order():
    assert [spec.name for spec in field_specs(Profile)] == list(Profile.model_fields)


def test_element_record_detection():
    specs = {spec.name: spec for spec in field_specs(Profile)}
    assert specs["history"].item_record is Address
    assert specs["homes"].item_record is Address
    assert specs["scores"].item_record is None
    assert specs["address"].record_type is Address
    assert specs["backup"].nullable is True


def test_delta_model_is_generated_once():
    model = Profile.delta_model()

    assert model is Profile.delta_model()
    assert model is delta_model_for(Profile)
    assert issubclass(model, RecordDelta)
    assert model.__name__ == "ProfileDelta"
    assert model.record_type is Profile
    assert list(model.model_fields) == list(Profile.model_fields)


def test_delta_field_accepts_strings():
    assert DeltaField("keyed").policy is FieldPolicy.KEYED
    assert delta_field(FieldPolicy.ORDERED) == DeltaField(FieldPolicy.ORDERED)


def test_unknown_policy_name_rejected():
    with pytest.raises(DeltaDefinitionError):
        delta_field("sideways")


def test_ordered_on_mapping_rejected():
    class BadOrdered(Record):
        values: Annotated[Dict[str, int], delta_field("ordered")] = {}

    with pytest.raises(DeltaDefinitionError) as excinfo:
        BadOrdered.delta_model()
    assert "BadOrdered.values" in str(excinfo.value)


def test_delta_on_optional_record_rejected():
    class BadNested(Record):
        addr: Annotated[Optional[Address], delta_field("delta")] = None

    with pytest.raises(DeltaDefinitionError):
        BadNested.delta_model()


def test_replace_on_scalar_rejected():
    class BadReplace(Record):
        count: Annotated[int, delta_field("replace")] = 0

    with pytest.raises(DeltaDefinitionError):
        BadReplace.delta_model()


def test_keyed_on_optional_mapping_rejected():
    class BadKeyed(Record):
        values: Annotated[Optional[Dict[str, int]], delta_field("keyed")] = None

    with pytest.raises(DeltaDefinitionError):
        BadKeyed.delta_model()


def test_reserved_slot_name_rejected():
    class Reserved(Record):
        slot: int

    with pytest.raises(DeltaDefinitionError):
        Reserved.delta_model()


def test_extra_allow_rejected():
    class Loose(Record):
        name: str

        model_config = ConfigDict(extra="allow")

    with pytest.raises(DeltaDefinitionError):
        Loose.delta_model()


def test_non_record_rejected():
    with pytest.raises(TypeError):
        delta_model_for(dict)


class TreeNode(Record):
    value: int
    children: List["TreeNode"] = []


class LoopNode(Record):
    value: int
    children: Annotated[List["LoopNode"], delta_field("ordered")] = []


def test_self_referential_record_with_replace_policy_works():
    old = TreeNode(value=1, children=[TreeNode(value=2)])
    new = TreeNode(value=1, children=[TreeNode(value=3)])

    delta = compute(old, new)

    assert delta.present_fields() == ("children",)
    assert apply(old, delta) == new


def test_cyclic_diffed_record_rejected():
    with pytest.raises(DeltaDefinitionError) as excinfo:
        LoopNode.delta_model()
    assert "cyclic" in str(excinfo.value)
