"""Syntax highlighting of code blocks with a process-wide memo.

Highlighted markup is cached under a digest of ``(language, source)``.  The
cache is never authoritative: clearing or shrinking it only costs
re-highlighting.  It is bounded LRU; because a hit moves the entry to the
most-recent end, reads and writes share one lock.  Highlighting itself runs
outside the lock, so concurrent renders highlight in parallel.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from collections import OrderedDict
from typing import NamedTuple

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from zettel.config import NotebookConfig

logger = logging.getLogger(__name__)

CLASS_PREFIX = "hl-"
DEFAULT_CACHE_SIZE = 1024


class CacheInfo(NamedTuple):
    hits: int
    misses: int
    maxsize: int
    currsize: int


class HighlightCache:
    """Thread-safe LRU mapping of cache keys to highlighted markup.

    ``maxsize == 0`` means unbounded.
    """

    def __init__(self, maxsize: int = DEFAULT_CACHE_SIZE) -> None:
        self.maxsize = maxsize
        self.hits = 0
        self.misses = 0
        self._entries: OrderedDict[str, str] = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def key(lang: str, source: str) -> str:
        digest = hashlib.sha256()
        digest.update(lang.encode("utf-8"))
        digest.update(b"\0")
        digest.update(source.encode("utf-8"))
        return digest.hexdigest()

    def get(self, key: str) -> str | None:
        with self._lock:
            value = self._entries.get(key)
            if value is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return value

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            self._evict()

    def resize(self, maxsize: int) -> None:
        with self._lock:
            self.maxsize = maxsize
            self._evict()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = self.misses = 0

    def info(self) -> CacheInfo:
        with self._lock:
            return CacheInfo(self.hits, self.misses, self.maxsize, len(self._entries))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _evict(self) -> None:
        if self.maxsize <= 0:
            return
        while len(self._entries) > self.maxsize:
            self._entries.popitem(last=False)


_cache = HighlightCache()


def highlight_cache() -> HighlightCache:
    """Return the process-wide highlight cache."""
    return _cache


def configure_highlight_cache(config: NotebookConfig) -> None:
    """Apply the cache bound of *config* to the process-wide cache."""
    _cache.resize(config.highlight_cache_size)


def clear_highlight_cache() -> None:
    _cache.clear()


def highlight_cache_info() -> CacheInfo:
    return _cache.info()


def highlight_code(source: str, lang: str | None) -> str | None:
    """Return highlighted markup for *source*, or ``None`` to render it plain.

    ``None`` is returned when *lang* is empty, names no known lexer, or the
    lexer fails on the input.
    """
    if not lang:
        return None

    key = HighlightCache.key(lang, source)
    cached = _cache.get(key)
    if cached is not None:
        logger.debug("highlight cache hit for %s block", lang)
        return cached

    try:
        lexer = get_lexer_by_name(lang, stripnl=False)
    except ClassNotFound:
        return None

    try:
        markup = highlight(source, lexer, HtmlFormatter(nowrap=True, classprefix=CLASS_PREFIX))
    except Exception as exc:  # noqa: BLE001
        logger.warning("failed to highlight %s block, rendering it plain: %s", lang, exc)
        return None

    _cache.put(key, markup)
    return markup


def highlight_css(light_style: str = "default", dark_style: str = "nord") -> str:
    """Return CSS for the ``hl-`` token classes.

    The dark style applies under ``prefers-color-scheme: dark``.  Background
    colours are left to the page.
    """
    light = _token_css(light_style)
    dark = _token_css(dark_style)
    return f"{light}\n@media (prefers-color-scheme: dark) {{\n{dark}\n}}\n"


def _token_css(style: str) -> str:
    formatter = HtmlFormatter(style=style, classprefix=CLASS_PREFIX)
    rules = formatter.get_token_style_defs("")
    return "\n".join(rule for rule in rules if "background-color" not in rule)
