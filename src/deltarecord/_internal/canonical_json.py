"""Canonical JSON text for deltas and records.

Two equal deltas must encode to the same string no matter which process
built them, so that a delta can be compared, cached or signed by its text.
"""

import json
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """Encode an already JSON-compatible object canonically.

    Object keys are sorted and separators carry no whitespace. Non-ASCII
    text is kept as is (the caller writes UTF-8). List order is preserved,
    so set-valued payloads must be ordered before they get here, which
    ``SetDelta`` does through ``stable_order``.

    Args:
        obj: Output of ``model_dump(mode="json")``

    Returns:
        Canonical JSON string
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
