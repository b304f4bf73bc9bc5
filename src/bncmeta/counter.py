"""Structural event counting over a sentence subtree.

A sentence is folded element by element, in document order, into an
EventCounts accumulator. Word positions are assigned in that same order and
become part of the word rows' primary key.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import replace
from functools import reduce

from bncmeta.models import EventCounts, WordTag
from bncmeta.xmltree import iter_descendants, local_name

WORD = "w"
PUNCTUATION = "c"
UNCLEAR = "unclear"
VOCAL = "vocal"
GAP = "gap"

# element name -> EventCounts field
_COUNTED: dict[str, str] = {
    PUNCTUATION: "punctuation",
    UNCLEAR: "unclear",
    VOCAL: "vocal",
    GAP: "gap",
}


def _word_tag(node: ET.Element, position: int) -> WordTag:
    return WordTag(
        position=position,
        headword=node.get("hw"),
        tag=node.get("c5"),
        pos=node.get("pos"),
    )


def _tally(acc: EventCounts, node: ET.Element) -> EventCounts:
    name = local_name(node.tag)
    if name == WORD:
        return replace(
            acc,
            words=acc.words + 1,
            word_tags=acc.word_tags + (_word_tag(node, len(acc.word_tags)),),
        )
    field_name = _COUNTED.get(name)
    if field_name is None:
        # pause, mw, shift, trunc, event, ...
        return acc
    return replace(acc, **{field_name: getattr(acc, field_name) + 1})


def count_events(sentence: ET.Element) -> EventCounts:
    """Count words, punctuation, unclear passages, vocalizations and gaps.

    Args:
        sentence: The ``<s>`` element.

    Returns:
        EventCounts whose ``words`` always equals ``len(word_tags)``.
    """
    return reduce(_tally, iter_descendants(sentence), EventCounts())
