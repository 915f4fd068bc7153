"""Packaging regression tests.

Tests that verify the installed package structure and behavior.
"""

from pathlib import Path


def test_source_layout():
    """Test that the src/ layout has the package, kernel and _internal."""
    here = Path(__file__).resolve().parent
    repo_root = here.parent
    src_pkg = repo_root / "src" / "deltarecord"

    assert src_pkg.exists(), "deltarecord package should exist in src/"
    assert (src_pkg / "kernel").exists(), "deltarecord.kernel should exist in src/"
    assert (src_pkg / "_internal").exists(), "deltarecord._internal should exist"
    assert not (repo_root / "src" / "tests").exists(), "tests should not be packaged"


def test_import_boundary():
    import deltarecord
    import deltarecord.kernel.engine  # noqa: F401
    import deltarecord.cli  # noqa: F401

    # Check version: in dev mode it's "dev", in installed mode it's "1.0.0"
    assert deltarecord.__version__ in ("1.0.0", "dev")
