"""Core Note dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class Note:
    """A single parsed note of the notebook.

    Notes are values: the index replaces a note wholesale on reload instead
    of mutating it.
    """

    #: Filename without extension; the note's identifier
    stem: str
    filename: str
    #: Path relative to the notebook root
    relative_path: Path
    absolute_path: Path
    title: str
    #: Body up to the first blank line
    lead: str
    body: str
    raw_content: str
    word_count: int
    tags: tuple[str, ...]
    aliases: tuple[str, ...]
    #: Stems referenced by internal links, in order of appearance
    outgoing_links: tuple[str, ...]
    created: datetime
    modified: datetime

    @property
    def link(self) -> str:
        """Markdown link pointing at this note."""
        return f"[{self.title}]({self.relative_path.as_posix()})"

    def has(self, tag: str) -> bool:
        """Case-insensitive tag membership."""
        wanted = tag.lower()
        return any(t.lower() == wanted for t in self.tags)

    def snippet(self, length: int = 30) -> str:
        return f"{self.body[:length]}..."

    def to_dict(self) -> dict[str, Any]:
        return {
            "stem": self.stem,
            "filename": self.filename,
            "path": self.relative_path.as_posix(),
            "title": self.title,
            "lead": self.lead,
            "body": self.body,
            "word_count": self.word_count,
            "tags": list(self.tags),
            "aliases": list(self.aliases),
            "outgoing_links": list(self.outgoing_links),
            "created": self.created.isoformat(),
            "modified": self.modified.isoformat(),
        }
