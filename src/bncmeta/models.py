"""Data models and enums for the BNC metadata normalizer."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from bncmeta.errors import FormatError

ID_ATTRIBUTE = "xml:id"
ALIAS_ATTRIBUTE = "n"


class EntityKind(str, Enum):
    """Kinds of entity declared in a document header."""

    RECORDING = "recording"
    PERSON = "person"
    SETTING = "setting"


class DiagnosticKind(str, Enum):
    """Non-fatal conditions reported while processing a batch."""

    UNKNOWN_SETTING = "unknown setting"
    UNKNOWN_PERSON = "unknown person"
    MULTI_SPEAKER = "multi-speaker turn"
    PARSE_ERROR = "parse error"
    SKIPPED = "skipped document"


@dataclass(frozen=True, slots=True)
class Record:
    """A declared recording, person or setting.

    ``xml:id`` and ``n`` are reserved and stored as ``primary_id`` and
    ``alias_name``; everything else lands in the read-only ``attributes``
    mapping in the order it was read.
    """

    primary_id: str
    alias_name: str | None = None
    attributes: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.primary_id:
            raise FormatError("declared entity has an empty identifier")
        if not isinstance(self.attributes, MappingProxyType):
            object.__setattr__(
                self, "attributes", MappingProxyType(dict(self.attributes))
            )

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> Record:
        """Build a Record from (name, value) pairs in document order.

        Values are trimmed. A name may only be given once.

        Raises:
            FormatError: If a name repeats or the identifier is empty.
        """
        primary_id = ""
        alias_name: str | None = None
        attributes: dict[str, str] = {}
        for name, value in pairs:
            value = value.strip()
            if name == ID_ATTRIBUTE:
                primary_id = value
            elif name == ALIAS_ATTRIBUTE:
                alias_name = value or None
            elif name in attributes:
                raise FormatError(
                    f"{primary_id or '?'}: attribute {name!r} given twice"
                )
            else:
                attributes[name] = value
        return cls(primary_id=primary_id, alias_name=alias_name, attributes=attributes)

    @classmethod
    def placeholder(cls, identifier: str) -> Record:
        """Empty Record standing in for an undeclared identifier."""
        return cls(primary_id=identifier)

    def get(self, name: str) -> str | None:
        return self.attributes.get(name)


@dataclass(frozen=True, slots=True)
class WordTag:
    """Linguistic tags of one word, positioned within its sentence."""

    position: int
    headword: str | None
    tag: str | None
    pos: str | None


@dataclass(frozen=True, slots=True)
class EventCounts:
    """Structural events tallied over one sentence."""

    words: int = 0
    punctuation: int = 0
    unclear: int = 0
    vocal: int = 0
    gap: int = 0
    word_tags: tuple[WordTag, ...] = ()

    @property
    def is_empty(self) -> bool:
        """True when the sentence has no transcribed content at all."""
        return not (
            self.words or self.punctuation or self.unclear or self.vocal or self.gap
        )

    def as_columns(self) -> tuple[int, int, int, int, int]:
        return (self.words, self.punctuation, self.unclear, self.vocal, self.gap)


@dataclass(frozen=True, slots=True)
class SentenceSummary:
    """One kept sentence attributed to a speaker and a setting."""

    document: str
    sentence: str
    speaker: str
    setting: str
    counts: EventCounts


@dataclass(frozen=True, slots=True, order=True)
class Diagnostic:
    """A non-fatal data-quality condition, printed as ``doc: id: kind``."""

    document: str
    identifier: str
    kind: DiagnosticKind

    def __str__(self) -> str:
        return f"{self.document}: {self.identifier}: {self.kind.value}"


@dataclass(frozen=True, slots=True)
class Row:
    """One normalized row: target table plus ordered (column, value) pairs."""

    table: str
    values: tuple[tuple[str, object], ...]

    def as_dict(self) -> dict[str, object]:
        return dict(self.values)
