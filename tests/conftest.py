"""Shared pytest fixtures for BNC metadata normalizer tests.

Provides temporary file-backed and in-memory databases, a builder for
corpus documents in the BNC XML layout, and a small corpus tree on disk.
"""

from __future__ import annotations

import sqlite3
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from bncmeta.config import IngestConfig
from bncmeta.database import Database

DOCUMENT_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<bncDoc xml:id="{doc_id}">
<teiHeader>
<fileDesc>
<titleStmt><title>{doc_id} test transcript</title></titleStmt>
<sourceDesc><recordingStmt>{recordings}</recordingStmt></sourceDesc>
</fileDesc>
<profileDesc>
<particDesc>{people}</particDesc>
<settingDesc>{settings}</settingDesc>
</profileDesc>
</teiHeader>
<stext type="{text_type}">{body}</stext>
</bncDoc>
"""

RECORDING_R1 = '<recording xml:id="R1" n="086601" date="1991-12-03" dur="1810" type="DAT"/>'

PERSON_JOHN = (
    '<person xml:id="PS001" n="JOHN" ageGroup="Ag3" sex="m" soc="C1">'
    "<age> 40 </age><persName>John</persName><occupation>teacher</occupation>"
    "<dialect>Northern</dialect></person>"
)
PERSON_MARY = '<person xml:id="PS002" n="MARY" sex="f"><persName>Mary</persName></person>'

SETTING_S1 = (
    '<setting xml:id="S1" n="001" who="PS001">'
    "<placeName>Leeds</placeName><locale>at home</locale>"
    "<activity>chatting</activity></setting>"
)

SENTENCE_TWO_WORDS = (
    '<s n="1"><w c5="PNP" hw="i" pos="PRON">I </w>'
    '<w c5="VVB" hw="know" pos="VERB">know</w></s>'
)


def bnc_document(
    doc_id: str = "KB0",
    *,
    recordings: str = RECORDING_R1,
    people: str = PERSON_JOHN,
    settings: str = SETTING_S1,
    body: str = f'<div n="S1"><u who="PS001">{SENTENCE_TWO_WORDS}</u></div>',
    text_type: str = "CONVRSN",
) -> str:
    """Render a spoken corpus document with the given header and body."""
    return DOCUMENT_TEMPLATE.format(
        doc_id=doc_id,
        recordings=recordings,
        people=people,
        settings=settings,
        body=body,
        text_type=text_type,
    )


@pytest.fixture
def render_document():
    """Callable rendering a document to XML text (see bnc_document)."""
    return bnc_document


@pytest.fixture
def make_document():
    """Callable returning the parsed root of a rendered document."""

    def _make(doc_id: str = "KB0", **kwargs: str) -> ET.Element:
        return ET.fromstring(bnc_document(doc_id, **kwargs).encode("utf-8"))

    return _make


@pytest.fixture
def tmp_db(tmp_path: Path) -> Database:
    """Create a temporary SQLite database (file-based for WAL support)."""
    db_path = tmp_path / "test.db"
    db = Database(db_path)
    yield db
    db.close()


@pytest.fixture
def in_memory_db():
    """Fresh initialized in-memory SQLite database.

    Uses Database.__new__() to bypass __init__ path handling and calls the
    real Database._setup_schema().
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    db = Database.__new__(Database)
    db.conn = conn
    db.db_path = ":memory:"
    db._setup_schema()
    yield db
    conn.close()


@pytest.fixture
def tmp_corpus(tmp_path: Path) -> Path:
    """Create a temporary corpus tree mimicking the BNC XML edition layout.

    Structure:
        Texts/
          K/
            KB/
              KB0.xml   conversation, scenario A
              KB1.xml   conversation, undeclared setting S9
              KB2.xml   written text (no stext), skipped
              KB3.xml   malformed markup, parse failure
              .KB4.xml  hidden, not discovered
              notes.txt wrong extension, not discovered
          A/
            A0/
              A00.xml   context-governed spoken text, skipped
    """
    root = tmp_path / "Texts"
    kb = root / "K" / "KB"
    kb.mkdir(parents=True)
    a0 = root / "A" / "A0"
    a0.mkdir(parents=True)

    (kb / "KB0.xml").write_text(bnc_document("KB0"), encoding="utf-8")
    (kb / "KB1.xml").write_text(
        bnc_document(
            "KB1",
            body=f'<div n="S9"><u who="PS001">{SENTENCE_TWO_WORDS}</u></div>',
        ),
        encoding="utf-8",
    )
    (kb / "KB2.xml").write_text(
        '<bncDoc xml:id="KB2"><teiHeader/><wtext type="FICTION"/></bncDoc>',
        encoding="utf-8",
    )
    (kb / "KB3.xml").write_text('<bncDoc xml:id="KB3"><stext>', encoding="utf-8")
    (kb / ".KB4.xml").write_text(bnc_document("KB4"), encoding="utf-8")
    (kb / "notes.txt").write_text("not a corpus file", encoding="utf-8")
    (a0 / "A00.xml").write_text(
        bnc_document("A00", text_type="OTHERSP"), encoding="utf-8"
    )
    return root


@pytest.fixture
def ingest_config(tmp_corpus: Path, tmp_path: Path) -> IngestConfig:
    """IngestConfig pointing at the temporary corpus."""
    return IngestConfig(corpus_paths=[tmp_corpus], db_path=tmp_path / "bnc.db")
