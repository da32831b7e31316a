"""NotebookIndex: in-memory index of all notes and their relationships."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import networkx as nx

from zettel.config import NotebookConfig
from zettel.errors import NotANotebookError, NoteReadError
from zettel.note import Note
from zettel.parser import parse_note
from zettel.search import rank_notes

logger = logging.getLogger(__name__)


class NotebookIndex:
    """Loads a notebook directory and keeps stem and tag indexes over it.

    ``tags`` maps every lowercased tag to the stems carrying it and is kept
    exactly inverse to the notes' tags after every mutation.  A single
    re-entrant lock serialises all access; readers take it too.
    """

    def __init__(self, root: Path, config: NotebookConfig | None = None) -> None:
        self.root = Path(root)
        self.config = config or NotebookConfig()
        self.notes: list[Note] = []
        self.stems: dict[str, int] = {}
        self.tags: dict[str, list[str]] = {}
        self._lock = threading.RLock()

    @classmethod
    def load(cls, root: Path, config: NotebookConfig | None = None) -> "NotebookIndex":
        index = cls(root, config)
        index.build()
        return index

    def __len__(self) -> int:
        with self._lock:
            return len(self.notes)

    def __contains__(self, stem: object) -> bool:
        with self._lock:
            return stem in self.stems

    # ------------------------------------------------------------------
    # Build / refresh
    # ------------------------------------------------------------------

    def build(self) -> None:
        """(Re-)scan the notebook and rebuild all indexes.

        On failure the current state is kept and the error propagates.
        """
        if not (self.root / self.config.marker_dir).is_dir():
            raise NotANotebookError(self.root, self.config.marker_dir)

        notes: list[Note] = []
        stems: dict[str, int] = {}
        for path in self._discover():
            note = parse_note(path, self.root)
            if note.stem in stems:
                previous = notes[stems[note.stem]]
                logger.warning(
                    "duplicate stem %r: %s replaces %s",
                    note.stem,
                    note.relative_path,
                    previous.relative_path,
                )
                notes[stems[note.stem]] = note
            else:
                stems[note.stem] = len(notes)
                notes.append(note)

        tags: dict[str, list[str]] = {}
        for note in notes:
            _add_tags(tags, note)

        with self._lock:
            self.notes, self.stems, self.tags = notes, stems, tags
        logger.info("loaded %d notes with %d tags from %s", len(notes), len(tags), self.root)

    def reload(self, stem: str) -> None:
        """Re-read the note *stem* from disk.

        An unknown stem triggers a walk for a matching file, which is appended
        when found.  If no file matches, nothing happens.
        """
        with self._lock:
            idx = self.stems.get(stem)
            if idx is not None:
                old = self.notes[idx]
                note = parse_note(old.absolute_path, self.root)
                _remove_tags(self.tags, old)
                _add_tags(self.tags, note)
                self.notes[idx] = note
                logger.info("reloaded %s", stem)
                return

            for path in self._discover():
                if path.stem == stem:
                    note = parse_note(path, self.root)
                    self.stems[stem] = len(self.notes)
                    self.notes.append(note)
                    _add_tags(self.tags, note)
                    logger.info("added %s", stem)
                    return
            logger.debug("reload of unknown stem %s ignored", stem)

    def remove(self, stem: str) -> None:
        """Drop the note *stem* and prune tag buckets it leaves empty."""
        with self._lock:
            idx = self.stems.pop(stem, None)
            if idx is None:
                return
            note = self.notes.pop(idx)
            _remove_tags(self.tags, note)
            for later in self.notes[idx:]:
                self.stems[later.stem] -= 1
            logger.info("removed %s", stem)

    def _discover(self) -> list[Path]:
        """Return every note file under the root, hidden entries skipped, sorted."""
        files: list[Path] = []
        self._walk(self.root, files)
        return sorted(files)

    def _walk(self, directory: Path, files: list[Path]) -> None:
        try:
            entries = list(directory.iterdir())
        except OSError as exc:
            raise NoteReadError(directory, str(exc)) from exc
        for entry in entries:
            if entry.name.startswith("."):
                continue
            if entry.is_dir():
                self._walk(entry, files)
            elif entry.suffix == self.config.extension:
                files.append(entry)

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------

    def note(self, stem: str) -> Note | None:
        with self._lock:
            idx = self.stems.get(stem)
            return None if idx is None else self.notes[idx]

    def all_notes(self, tag: str | None = None) -> list[Note]:
        """Return notes in index order, optionally only those tagged *tag*."""
        with self._lock:
            if tag is None:
                return list(self.notes)
            members = set(self.tags.get(tag.lower(), ()))
            return [n for n in self.notes if n.stem in members]

    def recent_notes(self, tag: str | None = None) -> list[Note]:
        """Like :meth:`all_notes`, most recently modified first."""
        return sorted(self.all_notes(tag), key=lambda n: n.modified, reverse=True)

    def all_tags(self) -> list[str]:
        with self._lock:
            return sorted(self.tags)

    def tag_index(self) -> dict[str, list[str]]:
        """Snapshot of the tag → stems inverted index."""
        with self._lock:
            return {tag: list(stems) for tag, stems in self.tags.items()}

    def notes_with_tags(self, tags: list[str]) -> list[Note]:
        """Return notes carrying *every* tag in *tags*."""
        with self._lock:
            return [n for n in self.notes if all(n.has(t) for t in tags)]

    def backlinks(self, stem: str, public_only: bool = False) -> list[Note]:
        """Return notes that link to *stem*."""
        with self._lock:
            return [
                n
                for n in self.notes
                if stem in n.outgoing_links and self._visible(n, public_only)
            ]

    def linked_notes(self, stem: str, public_only: bool = False) -> list[Note]:
        """Return the indexed notes *stem* links to, each once, in link order."""
        with self._lock:
            source = self.note(stem)
            if source is None:
                return []
            result: list[Note] = []
            for target in dict.fromkeys(source.outgoing_links):
                note = self.note(target)
                if note is not None and self._visible(note, public_only):
                    result.append(note)
            return result

    def search_titles(self, query: str, tag: str | None = None) -> list[Note]:
        """Fuzzy-match *query* against titles; an empty query lists all notes."""
        candidates = self.all_notes(tag)
        if not query:
            return candidates
        return rank_notes(candidates, query)

    def link_graph(self) -> nx.DiGraph:
        """Return a directed graph of wiki-links between indexed notes."""
        graph: nx.DiGraph = nx.DiGraph()
        with self._lock:
            for note in self.notes:
                graph.add_node(note.stem, title=note.title)
            for note in self.notes:
                for target in note.outgoing_links:
                    if target in self.stems:
                        graph.add_edge(note.stem, target)
        return graph

    def _visible(self, note: Note, public_only: bool) -> bool:
        return not public_only or note.has(self.config.public_tag)


def _add_tags(tags: dict[str, list[str]], note: Note) -> None:
    for tag in note.tags:
        tags.setdefault(tag.lower(), []).append(note.stem)


def _remove_tags(tags: dict[str, list[str]], note: Note) -> None:
    for tag in note.tags:
        key = tag.lower()
        stems = tags.get(key)
        if stems is None:
            continue
        stems[:] = [s for s in stems if s != note.stem]
        if not stems:
            del tags[key]
