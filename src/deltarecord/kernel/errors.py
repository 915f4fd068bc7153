"""Exceptions raised by the delta kernel."""

from typing import Optional, Sequence


def format_path(path: Sequence[object]) -> str:
    """Render a field path as ``addr.lines[2]`` for error messages."""
    out = ""
    for part in path:
        if isinstance(part, int):
            out += f"[{part}]"
        elif out:
            out += f".{part}"
        else:
            out = str(part)
    return out or "<root>"


class SchemaMismatchError(ValueError):
    """A delta does not fit the record it is applied to.

    Raised instead of attempting a partial merge. Typical causes are
    version skew between sender and receiver, or a delta computed for
    another record type.
    """

    def __init__(self, message: str, path: Sequence[object] = (), record_type: Optional[type] = None):
        self.path = format_path(path)
        self.record_type = record_type
        where = f" at {self.path}" if path else ""
        owner = f" ({record_type.__name__})" if record_type is not None else ""
        super().__init__(f"Schema mismatch{owner}{where}: {message}")


class DeltaDefinitionError(TypeError):
    """A Record class cannot be given a delta model.

    Raised when a field's declared policy does not fit its annotation,
    or when a record nests itself through a diffed field.
    """
    pass
