"""Exceptions raised while loading a notebook."""

from __future__ import annotations

from pathlib import Path


class ZettelError(Exception):
    """Base class for every error raised by :mod:`zettel`."""


class NotANotebookError(ZettelError):
    """*root* has no marker directory, so it is not a notebook."""

    def __init__(self, root: Path, marker_dir: str = ".zk") -> None:
        self.root = Path(root)
        self.marker_dir = marker_dir
        super().__init__(f"not a notebook (missing {marker_dir}/ directory): {self.root}")


class NoteReadError(ZettelError):
    """A note file, its metadata or a notebook directory could not be read."""

    def __init__(self, path: Path, reason: str = "") -> None:
        self.path = Path(path)
        message = f"failed to read {self.path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class PreambleError(ZettelError):
    """The YAML preamble of a note is malformed."""

    def __init__(self, path: Path | str, reason: str = "") -> None:
        self.path = Path(path)
        message = f"failed to parse YAML preamble in {self.path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
