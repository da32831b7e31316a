"""Unit tests for zettel.search."""

from datetime import datetime, timezone
from pathlib import Path

from zettel.note import Note
from zettel.search import fuzzy_score, rank_notes

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _note(stem: str, title: str) -> Note:
    path = Path(f"{stem}.md")
    return Note(
        stem=stem,
        filename=path.name,
        relative_path=path,
        absolute_path=path,
        title=title,
        lead="",
        body="",
        raw_content="",
        word_count=0,
        tags=(),
        aliases=(),
        outgoing_links=(),
        created=_EPOCH,
        modified=_EPOCH,
    )


# ---------------------------------------------------------------------------
# fuzzy_score
# ---------------------------------------------------------------------------


class TestFuzzyScore:
    def test_subsequence_matches(self):
        assert fuzzy_score("mtg", "Meeting notes") is not None

    def test_out_of_order_does_not_match(self):
        assert fuzzy_score("gtm", "Meeting") is None

    def test_case_and_diacritics_ignored(self):
        assert fuzzy_score("zurich", "Zürich trip") is not None
        assert fuzzy_score("ZÜR", "zurich") is not None

    def test_all_atoms_must_match(self):
        assert fuzzy_score("meet xyz", "Meeting notes") is None
        assert fuzzy_score("meet not", "Meeting notes") > fuzzy_score("meet", "Meeting notes")

    def test_contiguous_beats_scattered(self):
        assert fuzzy_score("note", "Notebook") > fuzzy_score("note", "No time")

    def test_word_boundary_bonus(self):
        assert fuzzy_score("fn", "First Note") > fuzzy_score("fn", "Often")

    def test_empty_query_scores_zero(self):
        assert fuzzy_score("", "anything") == 0


# ---------------------------------------------------------------------------
# rank_notes
# ---------------------------------------------------------------------------


class TestRankNotes:
    def test_non_matching_notes_excluded(self):
        notes = [_note("a", "Alpha"), _note("b", "Beta")]
        assert [n.stem for n in rank_notes(notes, "bt")] == ["b"]

    def test_best_match_first(self):
        notes = [_note("scattered", "Planning Roadmap Overview"), _note("tight", "Prose")]
        assert [n.stem for n in rank_notes(notes, "pro")] == ["tight", "scattered"]

    def test_ties_keep_input_order(self):
        notes = [_note("one", "Same"), _note("two", "Same")]
        assert [n.stem for n in rank_notes(notes, "same")] == ["one", "two"]
