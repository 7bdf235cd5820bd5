# tests/test_reconciler.py
from models import ChunkResult, Correction
from processing.reconciler import (
    SINGLE_SUMMARY_DEFAULT,
    apply_corrections_to_text,
    extract_substitution,
    reconcile,
)


def _c(issue: str, correction: str, location: str = "line 1") -> Correction:
    return Correction(issue=issue, location=location, correction=correction)


class TestExtractSubstitution:
    def test_quoted_changed_to(self) -> None:
        assert extract_substitution(_c("teh", "Changed 'teh' to 'the'"), "teh") == ("teh", "the")

    def test_double_quotes_and_multiword_snippets(self) -> None:
        pair = extract_substitution(_c("could of", 'changed "could of" to "could have"'), "")
        assert pair == ("could of", "could have")

    def test_curly_quotes_with_replaced_with(self) -> None:
        pair = extract_substitution(_c("recieve", "Replaced “recieve” with “receive”."), "")
        assert pair == ("recieve", "receive")

    def test_bare_tokens_drop_sentence_punctuation(self) -> None:
        assert extract_substitution(_c("teh", "changed teh to the."), "") == ("teh", "the")

    def test_bare_tokens_keep_punctuation_that_was_there(self) -> None:
        assert extract_substitution(_c("end.", "Changed end. to stop."), "") == ("end.", "stop.")

    def test_issue_text_with_quoted_target(self) -> None:
        pair = extract_substitution(_c("alot", "Replace with 'a lot'"), "I like it alot.")
        assert pair == ("alot", "a lot")

    def test_issue_text_with_bare_target(self) -> None:
        pair = extract_substitution(_c("irregardless", "Shorten to regardless."), "irregardless of it")
        assert pair == ("irregardless", "regardless")

    def test_unrecognized_description(self) -> None:
        assert extract_substitution(_c("tone", "Consider rephrasing for clarity"), "Some text") is None


class TestApplyCorrectionsToText:
    def test_applies_edits_from_end_to_start(self) -> None:
        text = "I recieve teh letter."
        report = apply_corrections_to_text(
            text,
            [_c("recieve", "Changed 'recieve' to 'receive'"), _c("teh", "Changed 'teh' to 'the'")],
        )

        assert report.text == "I receive the letter."
        assert len(report.applied) == 2
        assert report.unapplied == []

    def test_only_first_occurrence_is_replaced(self) -> None:
        text = "teh cat saw teh dog."
        report = apply_corrections_to_text(text, [_c("teh", "Changed 'teh' to 'the'")])
        assert report.text == "the cat saw teh dog."

    def test_unmatched_corrections_are_left_as_suggestions(self) -> None:
        text = "The results was good."
        corrections = [
            _c("results was", "Changed 'results was' to 'results were'"),
            _c("tone", "Consider a more formal tone"),
            _c("missing", "Changed 'missing' to 'present'"),
            _c("blank", ""),
        ]

        report = apply_corrections_to_text(text, corrections)

        assert report.text == "The results were good."
        assert [c.issue for c in report.applied] == ["results was"]
        assert {c.issue for c in report.unapplied} == {"tone", "missing", "blank"}

    def test_no_op_substitution_is_unapplied(self) -> None:
        report = apply_corrections_to_text("same", [_c("same", "Changed 'same' to 'same'")])
        assert report.text == "same"
        assert len(report.unapplied) == 1


class TestReconcileSingle:
    def test_full_corrected_text_is_used_verbatim(self) -> None:
        original = "Hello teh world."
        result = reconcile(
            original,
            [
                ChunkResult(
                    chunk_index=0,
                    corrections=[_c("teh", "Changed 'teh' to 'the'")],
                    corrected_text="Hello the world.",
                    summary="One typo.",
                )
            ],
            chunk_count=1,
        )

        assert result.corrected_text == "Hello the world."
        assert result.summary == "One typo."
        assert not result.chunked
        assert not result.partial
        assert result.can_preview_diff
        assert result.can_auto_apply

    def test_missing_corrected_text_falls_back_to_original(self) -> None:
        original = "Hello teh world."
        result = reconcile(
            original,
            [ChunkResult(chunk_index=0, corrections=[_c("teh", "Changed 'teh' to 'the'")])],
            chunk_count=1,
        )

        assert result.corrected_text == original
        assert result.summary == SINGLE_SUMMARY_DEFAULT
        assert not result.has_changes
        assert not result.can_auto_apply
        assert len(result.corrections) == 1

    def test_salvaged_result_is_partial(self) -> None:
        original = "Hello teh world."
        result = reconcile(
            original,
            [ChunkResult(chunk_index=0, corrections=[_c("teh", "the")], salvaged=True)],
            chunk_count=1,
        )

        assert result.partial
        assert not result.can_preview_diff

    def test_ungrounded_corrections_are_filtered(self) -> None:
        original = "Hello teh world."
        result = reconcile(
            original,
            [
                ChunkResult(
                    chunk_index=0,
                    corrections=[_c("teh", "the"), _c("wrold", "world")],
                    corrected_text="Hello the world.",
                )
            ],
            chunk_count=1,
        )
        assert [c.issue for c in result.corrections] == ["teh"]

    def test_no_results_yields_empty_review(self) -> None:
        result = reconcile("Fine text.", [], chunk_count=1)
        assert result.corrections == []
        assert result.corrected_text == "Fine text."
        assert result.summary == SINGLE_SUMMARY_DEFAULT


class TestReconcileChunked:
    ORIGINAL = "First paragraph has teh typo.\n\nSecond paragraph has a recieve error."

    def _results(self) -> list[ChunkResult]:
        # Deliberately out of order; reconciliation must sort by chunk index.
        return [
            ChunkResult(
                chunk_index=1,
                corrections=[_c("recieve", "Changed 'recieve' to 'receive'", "sentence 1")],
                corrected_text="Second paragraph has a receive error.",
                summary="Section two summary",
            ),
            ChunkResult(
                chunk_index=0,
                corrections=[_c("teh", "Changed 'teh' to 'the'", "sentence 1")],
                summary="Section one summary",
            ),
        ]

    def test_locations_are_prefixed_in_chunk_order(self) -> None:
        result = reconcile(self.ORIGINAL, self._results(), chunk_count=2)

        assert [c.location for c in result.corrections] == [
            "Section 1: sentence 1",
            "Section 2: sentence 1",
        ]
        assert result.summary == "Checked 2 sections of the note"
        assert result.chunked
        assert result.chunk_count == 2

    def test_corrected_text_is_rebuilt_by_substitution(self) -> None:
        result = reconcile(self.ORIGINAL, self._results(), chunk_count=2)

        assert result.corrected_text == (
            "First paragraph has the typo.\n\nSecond paragraph has a receive error."
        )

    def test_chunked_result_never_offers_preview_or_apply(self) -> None:
        result = reconcile(self.ORIGINAL, self._results(), chunk_count=2)

        assert result.has_changes
        assert not result.can_preview_diff
        assert not result.can_auto_apply

    def test_failed_chunks_are_reported(self) -> None:
        results = self._results()[:1]
        result = reconcile(self.ORIGINAL, results, chunk_count=3, failed_chunks=[2, 0])

        assert result.failed_chunks == [0, 2]
        assert [c.location for c in result.corrections] == ["Section 2: sentence 1"]

    def test_dropped_correction_never_edits_the_rebuilt_text(self) -> None:
        original = "Alpha para one.\n\nBeta para two with there cat."
        results = [
            ChunkResult(chunk_index=0, corrections=[_c("Alpha", "Changed 'Alpha para' to 'Alpha! para'")]),
            ChunkResult(chunk_index=1, corrections=[_c("teh dog", "Changed 'there' to 'their'")]),
        ]

        result = reconcile(original, results, chunk_count=2)

        assert [c.issue for c in result.corrections] == ["Alpha"]
        assert result.corrected_text == "Alpha! para one.\n\nBeta para two with there cat."

    def test_fallback_section_is_listed_but_not_substituted(self) -> None:
        original = "Alpha para one.\n\nBeta para two with there cat."
        results = [ChunkResult(chunk_index=1, corrections=[_c("teh dog", "Changed 'there' to 'their'")])]

        result = reconcile(original, results, chunk_count=2)

        assert [c.location for c in result.corrections] == ["Section 2: line 1"]
        assert result.corrected_text == original
        assert not result.has_changes
