"""Notebook configuration.

Settings live in the ``[zettel]`` table of ``<root>/.zk/config.toml``::

    [zettel]
    public_tag           = "public"
    note_url             = "/note/{stem}"
    highlight_cache_size = 1024
    light_style          = "default"
    dark_style           = "nord"

Every key is optional; unknown keys are ignored so the table can sit next
to other tools' settings in the same file.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.toml"
CONFIG_TABLE = "zettel"


@dataclass(frozen=True)
class NotebookConfig:
    marker_dir: str = ".zk"
    extension: str = ".md"
    public_tag: str = "public"
    #: href template for wiki-links, ``{stem}`` is substituted
    note_url: str = "/note/{stem}"
    #: LRU bound of the highlight memo; ``0`` disables the bound
    highlight_cache_size: int = 1024
    light_style: str = "default"
    dark_style: str = "nord"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NotebookConfig":
        section = data.get(CONFIG_TABLE, data)
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in section.items() if k in known}
        ignored = sorted(set(section) - known)
        if ignored:
            logger.debug("ignoring unknown config keys: %s", ", ".join(ignored))
        config = cls(**values)
        if not config.extension.startswith("."):
            config = cls(**{**values, "extension": f".{config.extension}"})
        return config

    def note_href(self, stem: str) -> str:
        return self.note_url.format(stem=stem)


def load_config(root: Path, marker_dir: str = ".zk") -> NotebookConfig:
    """Read ``config.toml`` from the marker directory under *root*.

    A missing file yields the defaults.
    """
    path = Path(root) / marker_dir / CONFIG_FILENAME
    if not path.is_file():
        return NotebookConfig(marker_dir=marker_dir)
    with open(path, "rb") as fh:
        data = tomllib.load(fh)
    section = data.get(CONFIG_TABLE, {})
    return NotebookConfig.from_dict({**section, "marker_dir": marker_dir})
