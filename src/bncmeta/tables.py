"""Per-document lookup tables of declared recordings, people and settings.

Each table maps a primary identifier to its Record and keeps a separate
alias index (the ``n`` label) pointing back at the primary identifier, so
a Record is stored once and reachable under either key.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterator

from bncmeta.constants import RENAMED_ELEMENTS
from bncmeta.errors import FormatError
from bncmeta.models import EntityKind, Record
from bncmeta.xmltree import attribute_pairs, children, local_name, text_content

logger = logging.getLogger(__name__)


class EntityTable:
    """Lookup of declared entities of one kind by identifier or alias.

    Usage:
        table = EntityTable(EntityKind.PERSON)
        table.add(record)
        table.get("PS001") is table.get("JOHN")
    """

    def __init__(self, kind: EntityKind) -> None:
        self.kind = kind
        self._records: dict[str, Record] = {}
        self._aliases: dict[str, str] = {}

    def add(self, record: Record) -> None:
        """Register a Record under its primary id and, if set, its alias.

        Raises:
            FormatError: If either key is already taken by another Record.
        """
        if record.primary_id in self:
            raise FormatError(
                f"duplicate {self.kind.value} identifier {record.primary_id!r}"
            )
        alias = record.alias_name
        if alias and alias != record.primary_id and alias in self:
            raise FormatError(
                f"{self.kind.value} {record.primary_id!r}: alias {alias!r} "
                "already in use"
            )
        self._records[record.primary_id] = record
        if alias and alias != record.primary_id:
            self._aliases[alias] = record.primary_id

    def canonical(self, key: str) -> str | None:
        """Primary identifier for a primary id or alias, None if undeclared."""
        if key in self._records:
            return key
        return self._aliases.get(key)

    def get(self, key: str) -> Record | None:
        primary = self.canonical(key)
        return self._records[primary] if primary is not None else None

    def __contains__(self, key: object) -> bool:
        return key in self._records or key in self._aliases

    def __len__(self) -> int:
        return len(self._records)


def _element_pairs(node: ET.Element) -> Iterator[tuple[str, str]]:
    yield from attribute_pairs(node)
    for sub in children(node):
        name = local_name(sub.tag)
        yield RENAMED_ELEMENTS.get(name, name), text_content(sub)


def build_entity_table(parent: ET.Element | None, kind: EntityKind) -> EntityTable:
    """Build the table for ``kind`` from the ``<kind>`` children of ``parent``.

    Every XML attribute and every child element's text becomes a Record
    field; ``dialect`` child elements are stored as ``dialectDetail``.

    Args:
        parent: Header section holding the declarations.
        kind: Which entity element to collect.

    Returns:
        EntityTable populated in document order.

    Raises:
        FormatError: Missing section, empty identifier, duplicate key.
    """
    if parent is None:
        raise FormatError(f"header section for {kind.value} declarations is missing")

    table = EntityTable(kind)
    for node in children(parent, kind.value):
        table.add(Record.from_pairs(_element_pairs(node)))

    logger.debug("Loaded %d %s declarations", len(table), kind.value)
    return table
