"""Zettel notebook library: index a directory of notes and render them."""

from zettel.config import NotebookConfig, load_config
from zettel.errors import NotANotebookError, NoteReadError, PreambleError, ZettelError
from zettel.highlight import (
    clear_highlight_cache,
    configure_highlight_cache,
    highlight_cache_info,
    highlight_css,
)
from zettel.index import NotebookIndex
from zettel.note import Note
from zettel.parser import parse_note
from zettel.render import RenderedNote, render_markdown, render_markdown_async
from zettel.tree import Heading

__all__ = [
    "Heading",
    "Note",
    "NotebookConfig",
    "NotebookIndex",
    "NotANotebookError",
    "NoteReadError",
    "PreambleError",
    "RenderedNote",
    "ZettelError",
    "clear_highlight_cache",
    "configure_highlight_cache",
    "highlight_cache_info",
    "highlight_css",
    "load_config",
    "parse_note",
    "render_markdown",
    "render_markdown_async",
]
