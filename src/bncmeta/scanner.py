"""Corpus scanner: discovery and batch normalization.

Discovers corpus XML files under the configured roots in sorted order,
normalizes each document and emits all rows inside a single transaction.
A document that fails to parse is skipped; a FormatError or a storage
error aborts the batch and nothing is committed.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from bncmeta.config import IngestConfig
from bncmeta.constants import TABLES
from bncmeta.database import Database
from bncmeta.document import process_document
from bncmeta.models import Diagnostic, DiagnosticKind
from bncmeta.normalizer import NormalizedDocument
from bncmeta.xmltree import ParseError, parse_document

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    """Outcome of one batch run."""

    files: int = 0
    emitted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    row_counts: dict[str, int] = field(
        default_factory=lambda: {table: 0 for table in TABLES}
    )
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def summary(self) -> str:
        """Human-readable summary of the run."""
        rows = ", ".join(f"{t}={n}" for t, n in self.row_counts.items())
        return (
            f"files={self.files}, emitted={len(self.emitted)}, "
            f"skipped={len(self.skipped)}, failed={len(self.failed)}, {rows}"
        )


class CorpusScanner:
    """Discovers corpus files and normalizes them into the store.

    Usage:
        config = IngestConfig(corpus_paths=[Path("Texts")])
        with Database(config.db_path) as db:
            report = CorpusScanner(config, db).ingest()
        print(report.summary)
    """

    def __init__(self, config: IngestConfig, db: Database | None = None) -> None:
        self.config = config
        self.db = db

    def discover_files(self) -> list[Path]:
        """Discover corpus files under every configured root.

        A root may be a directory (walked recursively) or a single file.
        Files of each root are returned in sorted path order, roots in the
        order given.

        Returns:
            List of Path objects for files with the configured extension.
        """
        matched: list[Path] = []
        for root in self.config.corpus_paths:
            if root.is_file():
                if root.suffix.lower() == self.config.extension:
                    matched.append(root)
                continue
            if not root.is_dir():
                logger.warning("Corpus path does not exist: %s", root)
                continue
            matched.extend(sorted(self._walk(root)))

        logger.info("Discovered %d corpus files", len(matched))
        return matched

    def _walk(self, root: Path) -> list[Path]:
        found: list[Path] = []
        visited_inodes: set[tuple[int, int]] = set()

        try:
            root_stat = root.stat()
            visited_inodes.add((root_stat.st_dev, root_stat.st_ino))
        except OSError as e:
            logger.error("Cannot stat corpus root %s: %s", root, e)
            return found

        for dirpath, dirnames, filenames in os.walk(
            str(root), followlinks=self.config.follow_symlinks
        ):
            current = Path(dirpath)

            # Symlink cycle detection
            if self.config.follow_symlinks and current != root:
                try:
                    st = current.stat()
                    dir_id = (st.st_dev, st.st_ino)
                    if dir_id in visited_inodes:
                        logger.warning("Symlink cycle detected: %s", current)
                        dirnames.clear()
                        continue
                    visited_inodes.add(dir_id)
                except OSError as e:
                    logger.warning("Cannot stat directory %s: %s", current, e)
                    dirnames.clear()
                    continue

            dirnames[:] = [
                d
                for d in dirnames
                if d not in self.config.skip_patterns
                and not (self.config.skip_hidden and d.startswith("."))
            ]

            for filename in filenames:
                if self.config.skip_hidden and filename.startswith("."):
                    continue
                if filename in self.config.skip_patterns:
                    continue
                if Path(filename).suffix.lower() != self.config.extension:
                    continue
                found.append(current / filename)

        return found

    def process_file(
        self, file_path: Path, report: IngestReport
    ) -> NormalizedDocument | None:
        """Parse and normalize one file, recording skips in ``report``.

        Raises:
            FormatError: Propagated from the document driver.
        """
        document = file_path.stem
        report.files += 1
        try:
            root = parse_document(file_path)
        except (ParseError, OSError) as e:
            report.failed.append(document)
            diagnostic = Diagnostic(document, str(e), DiagnosticKind.PARSE_ERROR)
            self._report([diagnostic], report)
            self._log_skip(document, file_path, f"parse_error: {e}")
            return None

        normalized = process_document(
            root, document, self.config.placeholder_speakers
        )
        if normalized is None:
            report.skipped.append(document)
            self._log_skip(document, file_path, "not_conversational")
            return None

        self._report(normalized.diagnostics, report)
        for table, count in normalized.counts().items():
            report.row_counts[table] += count
        return normalized

    def _report(self, diagnostics: list[Diagnostic], report: IngestReport) -> None:
        # logged per document, before the batch commits
        for diagnostic in diagnostics:
            logger.warning("%s", diagnostic)
        report.diagnostics.extend(diagnostics)

    def _log_skip(self, document: str, file_path: Path, reason: str) -> None:
        if self.db is not None:
            self.db.log_skipped_document(document, str(file_path), reason)

    def check(self) -> IngestReport:
        """Run discovery and normalization without touching a store."""
        report = IngestReport()
        for file_path in self.discover_files():
            normalized = self.process_file(file_path, report)
            if normalized is not None:
                report.emitted.append(normalized.document)
        logger.info("Check complete: %s", report.summary)
        return report

    def ingest(self, reset: bool = False) -> IngestReport:
        """Normalize every discovered document into the store.

        All rows are emitted inside one transaction that is committed only
        after the last document; any FormatError or sqlite3.Error rolls
        the whole batch back and propagates.

        Args:
            reset: Clear existing rows first, within the same transaction.

        Returns:
            IngestReport describing the committed batch.
        """
        if self.db is None:
            raise RuntimeError("ingest() needs a Database; use check() for a dry run")

        report = IngestReport()
        files = self.discover_files()
        with self.db.batch():
            if reset:
                self.db.reset()
            for file_path in files:
                normalized = self.process_file(file_path, report)
                if normalized is None:
                    continue
                self.db.emit(normalized)
                report.emitted.append(normalized.document)

        logger.info("Ingest complete: %s", report.summary)
        return report
