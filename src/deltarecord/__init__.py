"""deltarecord: structural deltas for pydantic records."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("deltarecord")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
# Note: compute/apply live on Record and in deltarecord.api, not at root
from deltarecord.codes import FieldPolicy
from deltarecord.contracts import DeltaSummary
from deltarecord.kernel.delta import RecordDelta
from deltarecord.kernel.errors import DeltaDefinitionError, SchemaMismatchError
from deltarecord.kernel.fields import DeltaField, delta_field
from deltarecord.kernel.record import Record
from deltarecord.kernel.slots import ABSENT, Present

__all__ = [
    "__version__",
    "Record",
    "RecordDelta",
    "FieldPolicy",
    "DeltaField",
    "delta_field",
    "ABSENT",
    "Present",
    "SchemaMismatchError",
    "DeltaDefinitionError",
    "DeltaSummary",
]
