"""Configuration loading and validation for a corpus ingest run."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from bncmeta.constants import PLACEHOLDER_SPEAKERS


@dataclass
class IngestConfig:
    """Ingest configuration with defaults suited to a BNC XML edition checkout."""

    corpus_paths: list[Path] = field(default_factory=list)
    db_path: Path = field(default_factory=lambda: Path("data/bnc.db"))
    extension: str = ".xml"
    skip_hidden: bool = True
    skip_patterns: set[str] = field(
        default_factory=lambda: {".DS_Store", ".git", "__pycache__"}
    )
    follow_symlinks: bool = True
    placeholder_speakers: frozenset[str] = PLACEHOLDER_SPEAKERS

    def __post_init__(self) -> None:
        """Ensure paths are Path objects and the extension is dotted."""
        self.corpus_paths = [Path(p) for p in self.corpus_paths]
        if isinstance(self.db_path, str):
            self.db_path = Path(self.db_path)
        if not self.extension.startswith("."):
            self.extension = "." + self.extension
        self.extension = self.extension.lower()
        self.placeholder_speakers = frozenset(self.placeholder_speakers)


def load_config(config_path: Path) -> IngestConfig:
    """Load ingest configuration from JSON, merging with defaults.

    Args:
        config_path: Path to a JSON file such as ``config/ingest.json``.

    Returns:
        IngestConfig with values from file merged over defaults.
    """
    with open(config_path) as f:
        data = json.load(f)

    kwargs: dict[str, object] = {}

    if "corpus_paths" in data:
        kwargs["corpus_paths"] = [Path(p) for p in data["corpus_paths"]]

    if "db_path" in data:
        kwargs["db_path"] = Path(data["db_path"])

    if "extension" in data:
        kwargs["extension"] = data["extension"]

    if "skip_hidden_files" in data:
        kwargs["skip_hidden"] = data["skip_hidden_files"]

    if "skip_patterns" in data:
        kwargs["skip_patterns"] = set(data["skip_patterns"])

    if "follow_symlinks" in data:
        kwargs["follow_symlinks"] = data["follow_symlinks"]

    if "placeholder_speakers" in data:
        kwargs["placeholder_speakers"] = frozenset(data["placeholder_speakers"])

    return IngestConfig(**kwargs)
