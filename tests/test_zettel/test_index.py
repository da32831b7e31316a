"""Unit tests for zettel.index.NotebookIndex."""

import dataclasses
import logging
import textwrap
from pathlib import Path

import networkx as nx
import pytest

from zettel.config import NotebookConfig
from zettel.errors import NotANotebookError, PreambleError
from zettel.index import NotebookIndex


def _write_note(directory: Path, name: str, content: str) -> Path:
    path = directory / f"{name}.md"
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


def _inverse(index: NotebookIndex) -> dict[str, set[str]]:
    expected: dict[str, set[str]] = {}
    for note in index.all_notes():
        for tag in note.tags:
            expected.setdefault(tag.lower(), set()).add(note.stem)
    return expected


def _assert_tag_invariant(index: NotebookIndex) -> None:
    actual = {tag: set(stems) for tag, stems in index.tag_index().items()}
    assert actual == _inverse(index)


@pytest.fixture()
def notebook(tmp_path: Path) -> NotebookIndex:
    """Notebook fixture with three inter-linked notes."""
    (tmp_path / ".zk").mkdir()
    _write_note(tmp_path, "alpha", """\
        ---
        title: Alpha
        tags: [first, public]
        ---
        See [beta](beta) and [gamma](gamma) and [beta again](beta).
    """)
    _write_note(tmp_path, "beta", """\
        ---
        title: Beta
        tags: [second]
        ---
        Links back to [alpha](alpha).
    """)
    _write_note(tmp_path, "gamma", """\
        ---
        title: Gamma
        tags: [first, second, public]
        ---
        Standalone note. #extra, links to [alpha](../alpha) and [missing](nowhere).
    """)
    return NotebookIndex.load(tmp_path)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestNotebookIndexLoad:
    def test_all_notes_loaded_in_path_order(self, notebook: NotebookIndex):
        assert [n.stem for n in notebook.all_notes()] == ["alpha", "beta", "gamma"]

    def test_len_and_contains(self, notebook: NotebookIndex):
        assert len(notebook) == 3
        assert "beta" in notebook
        assert "delta" not in notebook

    def test_tag_index_is_inverse(self, notebook: NotebookIndex):
        _assert_tag_invariant(notebook)
        assert notebook.all_tags() == ["extra", "first", "public", "second"]

    def test_missing_marker_dir(self, tmp_path: Path):
        with pytest.raises(NotANotebookError):
            NotebookIndex.load(tmp_path)

    def test_custom_marker_dir(self, tmp_path: Path):
        (tmp_path / ".notes").mkdir()
        _write_note(tmp_path, "one", "One")
        index = NotebookIndex.load(tmp_path, NotebookConfig(marker_dir=".notes"))
        assert "one" in index

    def test_hidden_entries_and_other_files_skipped(self, tmp_path: Path):
        (tmp_path / ".zk").mkdir()
        (tmp_path / ".trash").mkdir()
        _write_note(tmp_path / ".trash", "gone", "x")
        _write_note(tmp_path / ".zk", "cfg", "x")
        (tmp_path / ".hidden.md").write_text("x", encoding="utf-8")
        (tmp_path / "image.png").write_bytes(b"\x89PNG")
        (tmp_path / "sub").mkdir()
        _write_note(tmp_path / "sub", "nested", "x")
        index = NotebookIndex.load(tmp_path)
        assert [n.stem for n in index.all_notes()] == ["nested"]

    def test_duplicate_stem_later_path_wins(self, tmp_path: Path, caplog):
        (tmp_path / ".zk").mkdir()
        (tmp_path / "z").mkdir()
        _write_note(tmp_path, "dup", "# Top")
        _write_note(tmp_path / "z", "dup", "# Nested")
        with caplog.at_level(logging.WARNING, logger="zettel.index"):
            index = NotebookIndex.load(tmp_path)
        assert len(index) == 1
        assert index.note("dup").title == "Nested"
        assert "duplicate stem" in caplog.text

    def test_failed_build_keeps_previous_state(self, notebook: NotebookIndex):
        _write_note(notebook.root, "broken", "---\ntitle: [bad\n---\n")
        with pytest.raises(PreambleError):
            notebook.build()
        assert len(notebook) == 3
        _assert_tag_invariant(notebook)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


class TestNotebookIndexLookup:
    def test_note_by_stem(self, notebook: NotebookIndex):
        assert notebook.note("alpha").title == "Alpha"

    def test_unknown_stem(self, notebook: NotebookIndex):
        assert notebook.note("nope") is None

    def test_all_notes_by_tag(self, notebook: NotebookIndex):
        assert [n.stem for n in notebook.all_notes("FIRST")] == ["alpha", "gamma"]

    def test_all_notes_unknown_tag(self, notebook: NotebookIndex):
        assert notebook.all_notes("nothing") == []

    def test_notes_with_tags_is_intersection(self, notebook: NotebookIndex):
        both = notebook.notes_with_tags(["first", "second"])
        first = {n.stem for n in notebook.all_notes("first")}
        second = {n.stem for n in notebook.all_notes("second")}
        assert {n.stem for n in both} == first & second == {"gamma"}

    def test_recent_notes(self, notebook: NotebookIndex):
        recent = notebook.recent_notes()
        stamps = [n.modified for n in recent]
        assert stamps == sorted(stamps, reverse=True)


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------


class TestNotebookIndexLinks:
    def test_backlinks(self, notebook: NotebookIndex):
        assert [n.stem for n in notebook.backlinks("alpha")] == ["beta", "gamma"]

    def test_backlinks_public_only(self, notebook: NotebookIndex):
        assert [n.stem for n in notebook.backlinks("alpha", public_only=True)] == ["gamma"]

    def test_backlinks_unknown(self, notebook: NotebookIndex):
        assert notebook.backlinks("nowhere") == [notebook.note("gamma")]
        assert notebook.backlinks("zzz") == []

    def test_linked_notes_deduplicated(self, notebook: NotebookIndex):
        assert [n.stem for n in notebook.linked_notes("alpha")] == ["beta", "gamma"]

    def test_linked_notes_drop_unknown_and_private(self, notebook: NotebookIndex):
        assert [n.stem for n in notebook.linked_notes("gamma")] == ["alpha"]
        assert [n.stem for n in notebook.linked_notes("alpha", public_only=True)] == ["gamma"]

    def test_link_graph(self, notebook: NotebookIndex):
        graph = notebook.link_graph()
        assert isinstance(graph, nx.DiGraph)
        assert set(graph.nodes) == {"alpha", "beta", "gamma"}
        assert graph.nodes["alpha"]["title"] == "Alpha"
        assert set(graph.edges) == {
            ("alpha", "beta"),
            ("alpha", "gamma"),
            ("beta", "alpha"),
            ("gamma", "alpha"),
        }


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class TestNotebookIndexSearch:
    def test_empty_query_lists_everything(self, notebook: NotebookIndex):
        assert notebook.search_titles("") == notebook.all_notes()

    def test_empty_query_with_tag(self, notebook: NotebookIndex):
        assert notebook.search_titles("", tag="second") == notebook.all_notes("second")

    def test_fuzzy_match(self, notebook: NotebookIndex):
        assert [n.stem for n in notebook.search_titles("gma")] == ["gamma"]

    def test_no_match(self, notebook: NotebookIndex):
        assert notebook.search_titles("xyz") == []


# ---------------------------------------------------------------------------
# Reload / remove
# ---------------------------------------------------------------------------


class TestNotebookIndexMutation:
    def test_reload_unchanged_note_is_equal(self, notebook: NotebookIndex):
        before = notebook.note("beta")
        notebook.reload("beta")
        after = notebook.note("beta")
        assert after.modified >= before.modified
        assert dataclasses.replace(after, modified=before.modified) == before

    def test_reload_replaces_in_place(self, notebook: NotebookIndex):
        _write_note(notebook.root, "beta", """\
            ---
            title: Beta Two
            tags: [third]
            ---
            No links now.
        """)
        notebook.reload("beta")
        assert [n.stem for n in notebook.all_notes()] == ["alpha", "beta", "gamma"]
        assert notebook.note("beta").title == "Beta Two"
        assert notebook.all_notes("second") == [notebook.note("gamma")]
        assert [n.stem for n in notebook.all_notes("third")] == ["beta"]
        assert [n.stem for n in notebook.backlinks("alpha")] == ["gamma"]
        _assert_tag_invariant(notebook)

    def test_reload_new_note_is_appended(self, notebook: NotebookIndex):
        (notebook.root / "later").mkdir()
        _write_note(notebook.root / "later", "delta", "# Delta\n#fresh")
        notebook.reload("delta")
        assert [n.stem for n in notebook.all_notes()][-1] == "delta"
        assert notebook.all_notes("fresh") == [notebook.note("delta")]
        _assert_tag_invariant(notebook)

    def test_reload_unknown_without_file_is_noop(self, notebook: NotebookIndex):
        notebook.reload("phantom")
        assert len(notebook) == 3
        _assert_tag_invariant(notebook)

    def test_failed_reload_keeps_note(self, notebook: NotebookIndex):
        _write_note(notebook.root, "beta", "---\ntitle: [bad\n---\n")
        with pytest.raises(PreambleError):
            notebook.reload("beta")
        assert notebook.note("beta").title == "Beta"
        _assert_tag_invariant(notebook)

    def test_remove_prunes_empty_buckets(self, notebook: NotebookIndex):
        notebook.remove("gamma")
        assert "gamma" not in notebook
        assert "extra" not in notebook.all_tags()
        assert [n.stem for n in notebook.all_notes("first")] == ["alpha"]
        _assert_tag_invariant(notebook)

    def test_remove_keeps_stem_positions(self, notebook: NotebookIndex):
        notebook.remove("alpha")
        assert notebook.note("beta").title == "Beta"
        assert notebook.note("gamma").title == "Gamma"

    def test_remove_twice_is_noop(self, notebook: NotebookIndex):
        notebook.remove("beta")
        tags = notebook.tag_index()
        notebook.remove("beta")
        assert notebook.tag_index() == tags
        assert len(notebook) == 2

    def test_rename_as_remove_then_reload(self, notebook: NotebookIndex):
        (notebook.root / "beta.md").rename(notebook.root / "bravo.md")
        notebook.remove("beta")
        notebook.reload("bravo")
        assert "beta" not in notebook
        assert notebook.note("bravo").title == "Beta"
        _assert_tag_invariant(notebook)
