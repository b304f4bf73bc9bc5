"""Resolution of each turn's setting and speaker.

A block (``<div>``) gets its setting either from a ``decls`` pair naming a
declared recording and setting, or, when ``decls`` is absent, from its own
``n`` attribute. Only the first path is checked against the header; an
unknown fallback setting is left for the normalizer to report.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

from bncmeta.counter import count_events
from bncmeta.errors import FormatError
from bncmeta.models import Diagnostic, DiagnosticKind, SentenceSummary
from bncmeta.tables import EntityTable
from bncmeta.xmltree import children, get_attr, local_name

logger = logging.getLogger(__name__)

BLOCK = "div"
TURN = "u"
SENTENCE = "s"


@dataclass
class Resolution:
    """Identifiers referenced by the body and the sentences that were kept.

    ``seen_settings`` and ``seen_people`` keep first-reference order.
    """

    seen_settings: dict[str, None] = field(default_factory=dict)
    seen_people: dict[str, None] = field(default_factory=dict)
    sentences: list[SentenceSummary] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    dropped_sentences: int = 0


class ReferenceResolver:
    """Walks a spoken text body and attributes every sentence.

    Usage:
        resolver = ReferenceResolver("KB7", recordings, people, settings)
        resolution = resolver.resolve(stext)
    """

    def __init__(
        self,
        document: str,
        recordings: EntityTable,
        people: EntityTable,
        settings: EntityTable,
    ) -> None:
        self.document = document
        self.recordings = recordings
        self.people = people
        self.settings = settings

    def resolve(self, stext: ET.Element) -> Resolution:
        """Resolve every block of the text body.

        Raises:
            FormatError: Malformed ``decls``, empty block or speaker id.
        """
        resolution = Resolution()
        for node in children(stext):
            if local_name(node.tag) != BLOCK:
                logger.debug("%s: ignoring <%s> in text body", self.document, node.tag)
                continue
            self._resolve_block(node, resolution)

        logger.debug(
            "%s: %d sentences kept, %d empty, %d settings, %d speakers",
            self.document,
            len(resolution.sentences),
            resolution.dropped_sentences,
            len(resolution.seen_settings),
            len(resolution.seen_people),
        )
        return resolution

    def effective_setting(self, block: ET.Element) -> str:
        """Setting identifier a block's turns are attributed to."""
        decls = get_attr(block, "decls")
        if decls:
            parts = decls.split()
            if len(parts) != 2:
                raise FormatError(
                    f"{self.document}: decls {decls!r} is not a recording/setting pair"
                )
            recording, setting = parts
            if recording not in self.recordings:
                raise FormatError(
                    f"{self.document}: decls names undeclared recording {recording!r}"
                )
            if setting not in self.settings:
                raise FormatError(
                    f"{self.document}: decls names undeclared setting {setting!r}"
                )
            return self.settings.canonical(setting)

        n = get_attr(block, "n")
        if not n:
            raise FormatError(f"{self.document}: block has neither decls nor n")
        return self.settings.canonical(n) or n

    def speakers(self, turn: ET.Element, resolution: Resolution) -> list[str]:
        """Speaker identifiers of a turn, canonicalized where declared."""
        who = get_attr(turn, "who")
        if not who:
            raise FormatError(f"{self.document}: turn without a speaker")
        parts = who.split()
        if len(parts) > 1:
            diagnostic = Diagnostic(self.document, who, DiagnosticKind.MULTI_SPEAKER)
            if diagnostic not in resolution.diagnostics:
                resolution.diagnostics.append(diagnostic)
        # an id listed twice, or next to its own alias, is one speaker
        return list(dict.fromkeys(self.people.canonical(p) or p for p in parts))

    def _resolve_block(self, block: ET.Element, resolution: Resolution) -> None:
        setting = self.effective_setting(block)
        resolution.seen_settings.setdefault(setting)

        for turn in children(block):
            if local_name(turn.tag) != TURN:
                continue
            speakers = self.speakers(turn, resolution)
            for speaker in speakers:
                resolution.seen_people.setdefault(speaker)

            for sentence in children(turn, SENTENCE):
                counts = count_events(sentence)
                if counts.is_empty:
                    resolution.dropped_sentences += 1
                    continue
                number = get_attr(sentence, "n")
                for speaker in speakers:
                    resolution.sentences.append(
                        SentenceSummary(
                            document=self.document,
                            sentence=number,
                            speaker=speaker,
                            setting=setting,
                            counts=counts,
                        )
                    )
