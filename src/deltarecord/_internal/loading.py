"""Loading helpers for the CLI: record types by import path, JSON files."""

import importlib
import json
from pathlib import Path
from typing import Any, Type

from deltarecord.kernel.record import Record


def load_record_type(target: str) -> Type[Record]:
    """Resolve ``"package.module:ClassName"`` to a Record subclass.

    Args:
        target: Import path, module and attribute separated by ":"

    Returns:
        The Record subclass

    Raises:
        ValueError: If the path is malformed or does not name a Record subclass
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise ValueError(f"Record type must look like 'package.module:ClassName', got '{target}'")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import module '{module_name}': {e}") from e
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise ValueError(f"Module '{module_name}' has no attribute '{attr_path}'")
    if not (isinstance(obj, type) and issubclass(obj, Record)):
        raise ValueError(f"'{target}' is not a deltarecord.Record subclass")
    return obj


def read_json(path: Path) -> Any:
    """Load a JSON document from a file."""
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def read_record(record_cls: Type[Record], path: Path) -> Record:
    """Load and validate a record instance from a JSON file."""
    with open(path, 'r', encoding='utf-8') as f:
        return record_cls.model_validate_json(f.read())
