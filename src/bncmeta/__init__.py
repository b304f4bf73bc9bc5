"""BNC spoken-corpus metadata normalizer."""

__version__ = "0.1.0"

from bncmeta.errors import FormatError
from bncmeta.models import (
    Diagnostic,
    DiagnosticKind,
    EntityKind,
    EventCounts,
    Record,
    SentenceSummary,
    WordTag,
)

__all__ = [
    "Diagnostic",
    "DiagnosticKind",
    "EntityKind",
    "EventCounts",
    "FormatError",
    "Record",
    "SentenceSummary",
    "WordTag",
    "__version__",
]
