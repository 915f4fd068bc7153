"""Pytest configuration for tests.

No sys.path hacks - tests import deltarecord from the installed package.
Shared record types live in record_fixtures.py next to this file.
"""

import pytest

from record_fixtures import Address, Contact, Person, make_profile


@pytest.fixture
def alice():
    return Person(name="Alice", age=30)


@pytest.fixture
def contact_pair():
    """Two contacts that differ only in addr.zip."""
    old = Contact(addr=Address(city="A", zip="1"))
    new = Contact(addr=Address(city="A", zip="2"))
    return old, new


@pytest.fixture
def profile_pair():
    """Two profiles that differ in every field."""
    old = make_profile()
    new = make_profile(
        name="Alicia",
        age=31,
        nickname=None,
        color="blue",
        address=Address(city="Paris", zip="75002"),
        tags=["b"],
        scores=[1, 5, 3, 4],
        history=[Address(city="Lyon", zip="69001"), Address(city="Nice", zip="06100")],
        settings={"volume": 4, "contrast": 1},
        homes={"main": Address(city="Paris", zip="75002"), "beach": Address(city="Nice", zip="06000")},
        roles={"dev", "ops"},
        coords=(3, 4),
        backup=Address(city="Lille", zip="59000"),
    )
    return old, new
