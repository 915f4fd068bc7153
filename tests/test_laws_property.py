"""Property tests for the compute/apply laws (skipped without hypothesis)."""

import pytest

hypothesis = pytest.importorskip("hypothesis")
from hypothesis import given, settings, strategies as st  # noqa: E402

from deltarecord.api import dumps_delta, load_delta  # noqa: E402
from deltarecord.kernel.engine import apply, compute  # noqa: E402

from record_fixtures import Address, Color, Profile  # noqa: E402

_text = st.text(max_size=6)
_ints = st.integers(min_value=-10**9, max_value=10**9)
_addresses = st.builds(Address, city=_text, zip=_text)

_profiles = st.builds(
    Profile,
    name=_text,
    age=st.integers(min_value=-1000, max_value=1000),
    nickname=st.none() | _text,
    color=st.sampled_from(list(Color)),
    address=_addresses,
    tags=st.lists(_text, max_size=4),
    scores=st.lists(_ints, max_size=6),
    history=st.lists(_addresses, max_size=3),
    settings=st.dictionaries(_text, _ints, max_size=4),
    homes=st.dictionaries(_text, _addresses, max_size=3),
    roles=st.sets(_text, max_size=4),
    coords=st.tuples(_ints, _ints),
    backup=st.none() | _addresses,
)


@settings(max_examples=60, deadline=None)
@given(_profiles, _profiles)
def test_round_trip(old, new):
    assert apply(old, compute(old, new)) == new


@settings(max_examples=40, deadline=None)
@given(_profiles)
def test_identity(record):
    delta = compute(record, record)
    assert delta.is_empty()
    assert apply(record, delta) == record


@settings(max_examples=60, deadline=None)
@given(_profiles, _profiles)
def test_idempotent_reapply(old, new):
    delta = compute(old, new)
    once = apply(old, delta)
    assert apply(once, delta) == once


@settings(max_examples=40, deadline=None)
@given(_profiles, _profiles)
def test_wire_round_trip(old, new):
    delta = compute(old, new)
    assert apply(old, load_delta(Profile, dumps_delta(delta))) == new
