"""Assembly of normalized rows for one document.

Takes the header tables and the body resolution and produces the rows for
the five tables in foreign-key order: settings, people, setting/person
links, sentence summaries, word tags. Dangling references are reported as
diagnostics and still emitted with empty attributes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from bncmeta.constants import (
    COUNT_COLUMNS,
    LINKS_TABLE,
    PEOPLE_TABLE,
    PERSON_ATTRIBUTES,
    PLACEHOLDER_SPEAKERS,
    SENTENCES_TABLE,
    SETTING_ATTRIBUTES,
    SETTINGS_TABLE,
    WORDS_TABLE,
)
from bncmeta.errors import FormatError
from bncmeta.models import Diagnostic, DiagnosticKind, Record, Row, SentenceSummary
from bncmeta.resolver import Resolution
from bncmeta.tables import EntityTable

logger = logging.getLogger(__name__)


@dataclass
class NormalizedDocument:
    """All rows and diagnostics produced for one document."""

    document: str
    rows: list[Row] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def rows_for(self, table: str) -> list[Row]:
        return [row for row in self.rows if row.table == table]

    def counts(self) -> dict[str, int]:
        """Number of rows per table."""
        result: dict[str, int] = {}
        for row in self.rows:
            result[row.table] = result.get(row.table, 0) + 1
        return result


def _entity_row(
    table: str,
    key_column: str,
    document: str,
    record: Record,
    columns: tuple[str, ...],
) -> Row:
    extra = set(record.attributes) - set(columns)
    if extra:
        raise FormatError(
            f"{document}: {record.primary_id}: unsupported attribute(s) "
            f"{', '.join(sorted(extra))}"
        )
    values: list[tuple[str, object]] = [
        ("doc", document),
        (key_column, record.primary_id),
        ("n", record.alias_name),
    ]
    values.extend((name, record.get(name)) for name in columns)
    return Row(table, tuple(values))


def _sentence_rows(summary: SentenceSummary) -> Iterable[Row]:
    yield Row(
        SENTENCES_TABLE,
        (
            ("doc", summary.document),
            ("s", summary.sentence),
            ("person", summary.speaker),
            ("setting", summary.setting),
            *zip(COUNT_COLUMNS, summary.counts.as_columns()),
        ),
    )
    for word in summary.counts.word_tags:
        yield Row(
            WORDS_TABLE,
            (
                ("doc", summary.document),
                ("s", summary.sentence),
                ("person", summary.speaker),
                ("position", word.position),
                ("hw", word.headword),
                ("c5", word.tag),
                ("pos", word.pos),
            ),
        )


def normalize(
    document: str,
    people: EntityTable,
    settings: EntityTable,
    resolution: Resolution,
    placeholders: Iterable[str] = PLACEHOLDER_SPEAKERS,
) -> NormalizedDocument:
    """Cross-check referenced identifiers and build the document's rows.

    Args:
        document: Document identifier.
        people: Declared people.
        settings: Declared settings.
        resolution: Output of ReferenceResolver.resolve().
        placeholders: Speaker codes never reported as unknown.

    Returns:
        NormalizedDocument with rows in emission order.

    Raises:
        FormatError: A declared Record carries an attribute with no column.
    """
    placeholders = frozenset(placeholders)
    result = NormalizedDocument(document)
    result.diagnostics.extend(resolution.diagnostics)

    seen_people = dict(resolution.seen_people)
    links: dict[tuple[str, str], None] = {}

    setting_rows: list[Row] = []
    for setting_id in resolution.seen_settings:
        record = settings.get(setting_id)
        if record is None:
            logger.debug("%s: %s: unknown setting", document, setting_id)
            result.diagnostics.append(
                Diagnostic(document, setting_id, DiagnosticKind.UNKNOWN_SETTING)
            )
            record = Record.placeholder(setting_id)
        setting_rows.append(
            _entity_row(SETTINGS_TABLE, "setting", document, record, SETTING_ATTRIBUTES)
        )
        # an empty who list is the same as none
        for token in (record.get("who") or "").split():
            person_id = people.canonical(token) or token
            seen_people.setdefault(person_id)
            links.setdefault((record.primary_id, person_id))

    person_rows: list[Row] = []
    for person_id in seen_people:
        record = people.get(person_id)
        if record is None:
            if person_id not in placeholders:
                logger.debug("%s: %s: unknown person", document, person_id)
                result.diagnostics.append(
                    Diagnostic(document, person_id, DiagnosticKind.UNKNOWN_PERSON)
                )
            record = Record.placeholder(person_id)
        person_rows.append(
            _entity_row(PEOPLE_TABLE, "person", document, record, PERSON_ATTRIBUTES)
        )

    result.rows.extend(setting_rows)
    result.rows.extend(person_rows)
    result.rows.extend(
        Row(LINKS_TABLE, (("doc", document), ("setting", s), ("person", p)))
        for s, p in links
    )
    for summary in resolution.sentences:
        result.rows.extend(_sentence_rows(summary))

    return result
