"""Per-document driver: header tables, body resolution, normalization.

Only conversational spoken texts are normalized. Written texts (no
``<stext>``) and context-governed spoken texts are skipped.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterable

from bncmeta.constants import (
    CONTEXT_GOVERNED_TYPE,
    CONVERSATION_TYPE,
    PLACEHOLDER_SPEAKERS,
)
from bncmeta.errors import FormatError
from bncmeta.models import EntityKind
from bncmeta.normalizer import NormalizedDocument, normalize
from bncmeta.resolver import ReferenceResolver
from bncmeta.tables import build_entity_table
from bncmeta.xmltree import child, find_path, get_attr, local_name

logger = logging.getLogger(__name__)

ROOT = "bncDoc"
HEADER = "teiHeader"
SPOKEN_TEXT = "stext"


def process_document(
    root: ET.Element,
    document: str,
    placeholders: Iterable[str] = PLACEHOLDER_SPEAKERS,
) -> NormalizedDocument | None:
    """Normalize one parsed corpus document.

    Args:
        root: Root element returned by the parser.
        document: Identifier derived from the file's base name.
        placeholders: Speaker codes exempt from unknown-person diagnostics.

    Returns:
        The document's rows and diagnostics, or None for a document that is
        not a conversational transcript.

    Raises:
        FormatError: The document violates the corpus format contract.
    """
    if local_name(root.tag) != ROOT:
        raise FormatError(f"{document}: root element is <{root.tag}>, not <{ROOT}>")
    declared = get_attr(root, "xml:id")
    if not declared:
        raise FormatError(f"{document}: root element has no xml:id")
    if declared != document:
        raise FormatError(
            f"{document}: root identifier {declared!r} does not match the file name"
        )

    stext = child(root, SPOKEN_TEXT)
    if stext is None:
        logger.debug("%s: no spoken text, skipping", document)
        return None
    text_type = get_attr(stext, "type")
    if text_type == CONTEXT_GOVERNED_TYPE:
        logger.debug("%s: context-governed text, skipping", document)
        return None
    if text_type != CONVERSATION_TYPE:
        raise FormatError(f"{document}: unexpected spoken text type {text_type!r}")

    header = child(root, HEADER)
    recordings = build_entity_table(
        find_path(header, "fileDesc", "sourceDesc", "recordingStmt"),
        EntityKind.RECORDING,
    )
    profile = child(header, "profileDesc")
    people = build_entity_table(child(profile, "particDesc"), EntityKind.PERSON)
    settings = build_entity_table(child(profile, "settingDesc"), EntityKind.SETTING)

    resolver = ReferenceResolver(document, recordings, people, settings)
    resolution = resolver.resolve(stext)
    result = normalize(document, people, settings, resolution, placeholders)

    logger.info(
        "%s: %d rows, %d diagnostics", document, len(result.rows), len(result.diagnostics)
    )
    return result
