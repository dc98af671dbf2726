import pytest
from cutengine.cleanup_diff import (
    CATEGORY_INSTRUCTIONS,
    build_instruction,
    chunk_ranges,
    chunk_removals,
    classify_span,
    consensus_removed,
    detect_cleanup_mistakes,
    earliest_take,
    group_spans,
    lcs_removed_indices,
    tokenize,
)
from cutengine.errors import ServiceError
from cutengine.filler_words import get_filler_table, normalize_word
from cutengine.models import MistakeKind, TranscriptWord


def make_words(text, word_len=0.3, gap=0.05):
    words, t = [], 0.0
    for token in text.split():
        words.append(TranscriptWord(token, round(t, 3), round(t + word_len, 3)))
        t += word_len + gap
    return words


class FakeService:
    """Drops whole words. ``drop`` maps a chunk's text to the words to remove from it."""

    def __init__(self, drop=None, fail_when=None, response=None):
        self.drop = drop or (lambda text: set())
        self.fail_when = fail_when or (lambda text: False)
        self.response = response
        self.calls = []

    def clean(self, text, instruction):
        self.calls.append((text, instruction))
        if self.fail_when(text):
            raise ServiceError("service down")
        if self.response is not None:
            return self.response
        dropped = self.drop(text)
        kept = []
        for w in text.split():
            if normalize_word(w) in dropped:
                dropped = dropped - {normalize_word(w)} if isinstance(dropped, set) else dropped
                continue
            kept.append(w)
        return " ".join(kept)


def test_lcs_finds_filler_and_duplicate():
    original = ["um", "i", "went", "to", "the", "the", "store"]
    cleaned = tokenize("I went to the store")
    assert lcs_removed_indices(original, cleaned) == {0, 5}


def test_lcs_identity_and_insertions():
    tokens = ["we", "need", "to", "go"]
    assert lcs_removed_indices(tokens, tokens) == set()
    # words the service invented are simply unmatched
    assert lcs_removed_indices(["a", "b", "c"], ["a", "x", "b", "c"]) == set()
    assert lcs_removed_indices(["a", "b"], []) == {0, 1}


def test_tokenize_normalizes():
    assert tokenize("Um, I went -- to the store.") == ["um", "i", "went", "to", "the", "store"]


def test_chunk_ranges():
    assert chunk_ranges(0) == []
    assert chunk_ranges(150) == [(0, 150)]
    assert chunk_ranges(450, 200, 20) == [(0, 200), (180, 380), (360, 450)]


def test_chunk_removals_rejects_gutted_response():
    tokens = ["a", "b", "c", "d"]
    assert chunk_removals(tokens, "a") is None
    assert chunk_removals(tokens, "a b") == {2, 3}


def test_consensus_requires_every_covering_chunk():
    assert consensus_removed(5, [((0, 3), {2}), ((2, 5), {0, 1})]) == {2, 3}
    assert consensus_removed(5, [((0, 3), {2}), ((2, 5), set())]) == set()
    # an invalid chunk votes to keep everything it covers
    assert consensus_removed(5, [((0, 3), None), ((2, 5), {0, 2})]) == {4}


def test_group_spans():
    assert group_spans([5, 1, 2, 3, 7, 8]) == [(1, 3), (5, 5), (7, 8)]
    assert group_spans([]) == []


def test_earliest_take_moves_to_first_of_identical_takes():
    assert earliest_take(["the", "the", "store"], 1, 1) == (0, 0)
    tokens = ["we", "need", "to", "we", "need", "to", "go"]
    assert earliest_take(tokens, 3, 5) == (0, 2)
    assert earliest_take(["i", "went", "home"], 1, 1) == (1, 1)
    assert earliest_take(["the", "the"], 0, 0) == (0, 0)


@pytest.mark.parametrize("tokens,first,last,kind,confidence", [
    (["um", "i", "went"], 0, 0, MistakeKind.FILLER_WORD, 0.85),
    (["basically", "it", "works"], 0, 0, MistakeKind.FILLER_WORD, 0.75),
    (["the", "the", "store"], 1, 1, MistakeKind.REPEATED_WORD, 0.90),
    (["st", "store"], 0, 0, MistakeKind.STUTTER, 0.80),
    (["we", "need", "to", "we", "need", "to", "go"], 0, 2, MistakeKind.REPEATED_PHRASE, 0.85),
    (["fifty", "sorry", "sixty", "dollars"], 0, 1, MistakeKind.SELF_CORRECTION, 0.80),
    (["i", "was", "going", "i", "went", "home"], 0, 2, MistakeKind.FALSE_START, 0.80),
    (["we", "went", "cat", "home"], 2, 2, MistakeKind.FALSE_START, 0.75),
])
def test_classify_span(tokens, first, last, kind, confidence):
    result = classify_span(tokens, first, last, get_filler_table("en"))
    assert result.kind == kind
    assert result.confidence == pytest.approx(confidence)


def test_instruction_names_only_enabled_categories():
    text = build_instruction(["filler_words"], "conservative")
    assert CATEGORY_INSTRUCTIONS["filler_words"] in text
    assert CATEGORY_INSTRUCTIONS["repeated_phrases"] not in text
    assert "conservative" in text


def test_detect_end_to_end():
    words = make_words("um I went to the the store")
    service = FakeService(response="I went to the store")
    mistakes = detect_cleanup_mistakes(words, service)

    assert [(m.kind, m.text) for m in mistakes] == [
        (MistakeKind.FILLER_WORD, "um"),
        (MistakeKind.REPEATED_WORD, "the"),
    ]
    assert mistakes[0].start == words[0].start
    # reported on the first take, where the rule detector puts it too
    assert mistakes[1].start == words[4].start and mistakes[1].end == words[4].end
    assert all(m.sources == frozenset({"cleanup"}) for m in mistakes)
    assert len(service.calls) == 1


def test_disabled_categories_are_dropped():
    words = make_words("um I went to the the store")
    service = FakeService(response="I went to the store")
    mistakes = detect_cleanup_mistakes(words, service, categories=["repeated_words"])
    assert [m.kind for m in mistakes] == [MistakeKind.REPEATED_WORD]
    assert CATEGORY_INSTRUCTIONS["filler_words"] not in service.calls[0][1]


def test_failed_chunk_keeps_its_words():
    words = make_words("um I went to the the store")
    service = FakeService(
        drop=lambda text: {"um", "the"} if "um" in text else {"the"},
        fail_when=lambda text: "store" in text,
    )
    mistakes = detect_cleanup_mistakes(words, service, chunk_size=4, overlap=1)
    assert [m.text for m in mistakes] == ["um"]


def test_overlapping_chunks_must_agree():
    words = make_words("so I went to the store today")
    # only the second chunk wants to drop "to", which both chunks cover
    service = FakeService(drop=lambda text: {"to"} if "store" in text else set())
    assert detect_cleanup_mistakes(words, service, chunk_size=4, overlap=1) == []


def test_all_chunks_failing_raises():
    words = make_words("um I went to the store")
    with pytest.raises(ServiceError):
        detect_cleanup_mistakes(words, FakeService(fail_when=lambda text: True))
    with pytest.raises(ServiceError):
        detect_cleanup_mistakes(words, FakeService(response=""))


def test_nothing_to_do():
    service = FakeService()
    assert detect_cleanup_mistakes([], service) == []
    assert detect_cleanup_mistakes(make_words("hello there"), service, categories=[]) == []
    assert service.calls == []


if __name__ == "__main__":
    pytest.main([__file__])
