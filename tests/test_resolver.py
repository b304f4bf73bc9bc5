"""Reference resolver tests.

Validates:
  - decls pairs must name a declared recording and setting (fatal otherwise)
  - Fallback settings (div/@n) may be undeclared without aborting
  - Speakers are required; multi-speaker turns fan out and are flagged
  - Empty sentences are dropped
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest

from bncmeta.errors import FormatError
from bncmeta.models import DiagnosticKind, EntityKind, Record
from bncmeta.resolver import ReferenceResolver
from bncmeta.tables import EntityTable

SENTENCE = '<s n="{n}"><w hw="yes">yes</w></s>'


def _table(kind: EntityKind, *records: Record) -> EntityTable:
    table = EntityTable(kind)
    for record in records:
        table.add(record)
    return table


@pytest.fixture
def resolver() -> ReferenceResolver:
    recordings = _table(EntityKind.RECORDING, Record("R1"))
    people = _table(
        EntityKind.PERSON, Record("PS001", "JOHN"), Record("PS002", "MARY")
    )
    settings = _table(EntityKind.SETTING, Record("S1", "001"), Record("S2"))
    return ReferenceResolver("KB0", recordings, people, settings)


def _body(inner: str) -> ET.Element:
    return ET.fromstring(f'<stext type="CONVRSN">{inner}</stext>')


class TestEffectiveSetting:
    """decls pair and fallback paths."""

    def test_decls_pair(self, resolver: ReferenceResolver) -> None:
        block = ET.fromstring('<div decls="R1 S2" n="S1"/>')

        assert resolver.effective_setting(block) == "S2"

    def test_decls_alias_is_canonicalized(self, resolver: ReferenceResolver) -> None:
        block = ET.fromstring('<div decls="R1 001"/>')

        assert resolver.effective_setting(block) == "S1"

    @pytest.mark.parametrize("decls", ["R1", "R1 S1 S2"])
    def test_decls_wrong_arity(self, resolver: ReferenceResolver, decls: str) -> None:
        block = ET.fromstring(f'<div decls="{decls}"/>')

        with pytest.raises(FormatError, match="pair"):
            resolver.effective_setting(block)

    def test_decls_unknown_recording(self, resolver: ReferenceResolver) -> None:
        block = ET.fromstring('<div decls="R9 S1"/>')

        with pytest.raises(FormatError, match="recording"):
            resolver.effective_setting(block)

    def test_decls_unknown_setting(self, resolver: ReferenceResolver) -> None:
        block = ET.fromstring('<div decls="R1 S9"/>')

        with pytest.raises(FormatError, match="setting"):
            resolver.effective_setting(block)

    def test_fallback_declared(self, resolver: ReferenceResolver) -> None:
        assert resolver.effective_setting(ET.fromstring('<div n="001"/>')) == "S1"

    def test_fallback_undeclared_is_kept(self, resolver: ReferenceResolver) -> None:
        """An unknown fallback setting is passed through, not rejected."""
        assert resolver.effective_setting(ET.fromstring('<div n=" S9 "/>')) == "S9"

    def test_fallback_requires_identifier(self, resolver: ReferenceResolver) -> None:
        with pytest.raises(FormatError):
            resolver.effective_setting(ET.fromstring("<div/>"))


class TestResolve:
    """Whole-body resolution."""

    def test_sentences_attributed(self, resolver: ReferenceResolver) -> None:
        body = _body(
            '<div n="S1">'
            f'<u who="PS001">{SENTENCE.format(n=1)}{SENTENCE.format(n=2)}</u>'
            f'<u who="MARY">{SENTENCE.format(n=3)}</u>'
            "</div>"
            f'<div decls="R1 S2"><u who="PS001">{SENTENCE.format(n=4)}</u></div>'
        )

        resolution = resolver.resolve(body)

        assert [(s.sentence, s.speaker, s.setting) for s in resolution.sentences] == [
            ("1", "PS001", "S1"),
            ("2", "PS001", "S1"),
            ("3", "PS002", "S1"),
            ("4", "PS001", "S2"),
        ]
        assert list(resolution.seen_settings) == ["S1", "S2"]
        assert list(resolution.seen_people) == ["PS001", "PS002"]
        assert resolution.diagnostics == []

    def test_empty_sentences_dropped(self, resolver: ReferenceResolver) -> None:
        body = _body(
            '<div n="S1"><u who="PS001">'
            '<s n="1"><pause/></s>'
            f"{SENTENCE.format(n=2)}"
            "</u></div>"
        )

        resolution = resolver.resolve(body)

        assert [s.sentence for s in resolution.sentences] == ["2"]
        assert resolution.dropped_sentences == 1

    def test_speaker_of_empty_turn_still_referenced(
        self, resolver: ReferenceResolver
    ) -> None:
        body = _body('<div n="S1"><u who="PS009"><s n="1"><pause/></s></u></div>')

        resolution = resolver.resolve(body)

        assert resolution.sentences == []
        assert list(resolution.seen_people) == ["PS009"]

    def test_missing_speaker_rejected(self, resolver: ReferenceResolver) -> None:
        body = _body(f'<div n="S1"><u>{SENTENCE.format(n=1)}</u></div>')

        with pytest.raises(FormatError, match="speaker"):
            resolver.resolve(body)

    def test_multi_speaker_turn_fans_out(self, resolver: ReferenceResolver) -> None:
        body = _body(
            f'<div n="S1"><u who="PS001 PS002">{SENTENCE.format(n=1)}</u>'
            f'<u who="PS001 PS002">{SENTENCE.format(n=2)}</u></div>'
        )

        resolution = resolver.resolve(body)

        assert [(s.sentence, s.speaker) for s in resolution.sentences] == [
            ("1", "PS001"),
            ("1", "PS002"),
            ("2", "PS001"),
            ("2", "PS002"),
        ]
        assert len(resolution.diagnostics) == 1
        assert resolution.diagnostics[0].kind == DiagnosticKind.MULTI_SPEAKER
        assert resolution.diagnostics[0].identifier == "PS001 PS002"

    @pytest.mark.parametrize("who", ["PS001 JOHN", "PS001 PS001"])
    def test_repeated_speaker_counted_once(
        self, resolver: ReferenceResolver, who: str
    ) -> None:
        """An id given twice, or with its own alias, yields one summary."""
        body = _body(f'<div n="S1"><u who="{who}">{SENTENCE.format(n=1)}</u></div>')

        resolution = resolver.resolve(body)

        assert [(s.sentence, s.speaker) for s in resolution.sentences] == [("1", "PS001")]
        assert list(resolution.seen_people) == ["PS001"]

    def test_non_turn_children_ignored(self, resolver: ReferenceResolver) -> None:
        body = _body(
            '<head>ignored</head>'
            f'<div n="S1"><event desc="door"/><u who="PS001">{SENTENCE.format(n=1)}</u></div>'
        )

        resolution = resolver.resolve(body)

        assert len(resolution.sentences) == 1

    def test_block_without_turns_references_setting(
        self, resolver: ReferenceResolver
    ) -> None:
        resolution = resolver.resolve(_body('<div n="S9"/>'))

        assert list(resolution.seen_settings) == ["S9"]
