"""Thin navigation layer over ElementTree for corpus documents.

The rest of the package only needs element names, ordered attributes,
ordered children and concatenated text; everything namespace-related is
handled here so callers can use the attribute names as written in the
corpus (``xml:id``).
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterator
from itertools import islice
from pathlib import Path

logger = logging.getLogger(__name__)

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

ParseError = ET.ParseError


def parse_document(path: str | Path) -> ET.Element:
    """Parse one corpus file and return its root element.

    Raises:
        ET.ParseError: Malformed markup.
        OSError: The file cannot be read.
    """
    logger.debug("Parsing %s", path)
    tree = ET.parse(path)
    return tree.getroot()


def local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an element or attribute name."""
    if tag.startswith("{"):
        return tag.rpartition("}")[2]
    return tag


def _attribute_name(name: str) -> str:
    if name.startswith("{" + XML_NAMESPACE + "}"):
        return "xml:" + local_name(name)
    return local_name(name)


def attribute_pairs(elem: ET.Element) -> list[tuple[str, str]]:
    """Return the element's attributes as (name, value) pairs in document order."""
    return [(_attribute_name(name), value) for name, value in elem.attrib.items()]


def get_attr(elem: ET.Element, name: str) -> str:
    """Trimmed attribute value, or an empty string when absent.

    ``name`` may use the ``xml:`` prefix for attributes in the XML namespace.
    """
    if name.startswith("xml:"):
        name = "{" + XML_NAMESPACE + "}" + name[4:]
    return elem.get(name, "").strip()


def text_content(elem: ET.Element) -> str:
    """Concatenated text of the element and all its descendants."""
    return "".join(elem.itertext())


def child(elem: ET.Element | None, name: str) -> ET.Element | None:
    """First child element called ``name``, or None."""
    if elem is None:
        return None
    return next(children(elem, name), None)


def children(elem: ET.Element, name: str | None = None) -> Iterator[ET.Element]:
    """Child elements in document order, optionally filtered by name."""
    for node in elem:
        if not isinstance(node.tag, str):
            # comments and processing instructions
            continue
        if name is None or local_name(node.tag) == name:
            yield node


def iter_descendants(elem: ET.Element) -> Iterator[ET.Element]:
    """Lazily yield every descendant element, depth-first in document order."""
    for node in islice(elem.iter(), 1, None):
        if isinstance(node.tag, str):
            yield node


def find_path(elem: ET.Element | None, *names: str) -> ET.Element | None:
    """Follow a chain of child names, returning None at the first gap."""
    node: ET.Element | None = elem
    for name in names:
        node = child(node, name)
    return node
