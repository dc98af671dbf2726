import pytest
from cutengine.filler_words import get_filler_table
from cutengine.models import MistakeKind, TranscriptWord
from cutengine.rule_detector import detect_rule_mistakes


def make_words(text, start=0.0, word_len=0.3, gap=0.05, pauses=None):
    """Sequential words; ``pauses`` maps a word index to the pause before it."""
    pauses = pauses or {}
    words = []
    t = start
    for i, token in enumerate(text.split()):
        t += pauses.get(i, gap if i else 0.0)
        words.append(TranscriptWord(token, t, t + word_len))
        t += word_len
    return words


def kinds(mistakes):
    return [(m.kind, m.text) for m in mistakes]


def test_tier_one_filler():
    mistakes = detect_rule_mistakes(make_words("um I went to the store"))
    assert kinds(mistakes) == [(MistakeKind.FILLER_WORD, "um")]
    assert mistakes[0].confidence == pytest.approx(0.85)
    assert mistakes[0].sources == frozenset({"rules"})


def test_tier_two_needs_context():
    plain = detect_rule_mistakes(make_words("it was basically great"))
    assert plain == []

    paused = detect_rule_mistakes(make_words("it was basically great", pauses={2: 0.5}))
    assert kinds(paused) == [(MistakeKind.FILLER_WORD, "basically")]
    assert paused[0].confidence == pytest.approx(0.65)

    rushed = detect_rule_mistakes(make_words("it was basically great")[:2] + [
        TranscriptWord("basically", 0.7, 0.8), TranscriptWord("great", 0.85, 1.1),
    ])
    assert kinds(rushed) == [(MistakeKind.FILLER_WORD, "basically")]


def test_like_exceptions():
    for text in ["I like this song", "it looks like rain", "it was like this"]:
        words = make_words(text, pauses={2: 0.6} if text.startswith("it was") else {1: 0.6})
        assert detect_rule_mistakes(words) == [], text

    filler = detect_rule_mistakes(make_words("it was like great", pauses={2: 0.6}))
    assert kinds(filler) == [(MistakeKind.FILLER_WORD, "like")]


def test_tier_three_needs_long_pause():
    assert detect_rule_mistakes(make_words("and so we left")) == []

    mistakes = detect_rule_mistakes(make_words("we left so the end", pauses={2: 0.8}))
    assert kinds(mistakes) == [(MistakeKind.FILLER_WORD, "so")]
    assert mistakes[0].confidence == pytest.approx(0.50)


def test_repeated_word_marks_first_occurrence():
    words = make_words("I went to the the store")
    mistakes = detect_rule_mistakes(words)
    assert len(mistakes) == 1
    assert mistakes[0].kind == MistakeKind.REPEATED_WORD
    assert mistakes[0].start == words[3].start
    assert mistakes[0].end == words[3].end
    assert mistakes[0].confidence == pytest.approx(0.90)


def test_emphasis_doubles_kept():
    assert detect_rule_mistakes(make_words("it was very very good")) == []


def test_stutter():
    words = make_words("the st store is open")
    mistakes = detect_rule_mistakes(words)
    assert kinds(mistakes) == [(MistakeKind.STUTTER, "st")]
    assert mistakes[0].confidence == pytest.approx(0.80)


def test_standalone_prefix_is_not_a_stutter():
    assert detect_rule_mistakes(make_words("it is a about time")) == []
    cut_off = detect_rule_mistakes(make_words("it is a- about time"))
    assert kinds(cut_off) == [(MistakeKind.STUTTER, "a-")]


def test_repeated_phrase():
    words = make_words("we need to we need to go home")
    mistakes = detect_rule_mistakes(words)
    assert kinds(mistakes) == [(MistakeKind.REPEATED_PHRASE, "we need to")]
    assert mistakes[0].start == words[0].start
    assert mistakes[0].end == words[2].end
    assert mistakes[0].confidence == pytest.approx(0.85)


def test_repeated_phrase_gap_and_skip_list():
    assert detect_rule_mistakes(make_words("I think I think it works")) == []
    far_apart = make_words("we need to we need to go", pauses={3: 1.5})
    assert detect_rule_mistakes(far_apart) == []


def test_filler_phrase():
    mistakes = detect_rule_mistakes(make_words("it is you know really fast"))
    assert kinds(mistakes) == [(MistakeKind.FILLER_WORD, "you know")]
    assert mistakes[0].confidence == pytest.approx(0.65)


def test_category_flags():
    words = make_words("um the the store")
    no_fillers = detect_rule_mistakes(words, remove_filler_words=False)
    assert kinds(no_fillers) == [(MistakeKind.REPEATED_WORD, "the the")]
    no_repeats = detect_rule_mistakes(words, remove_repeated_words=False)
    assert kinds(no_repeats) == [(MistakeKind.FILLER_WORD, "um")]


def test_each_word_claimed_once():
    words = make_words("um um you know the the st store so", pauses={9: 0.0})
    mistakes = detect_rule_mistakes(words)
    spans = sorted((m.start, m.end) for m in mistakes)
    for (_, end), (start, _) in zip(spans, spans[1:]):
        assert end <= start


def test_custom_language_table():
    table = get_filler_table("de")
    mistakes = detect_rule_mistakes(make_words("das ist ähm gut"), table)
    assert kinds(mistakes) == [(MistakeKind.FILLER_WORD, "ähm")]


def test_empty_transcript():
    assert detect_rule_mistakes([]) == []


if __name__ == "__main__":
    pytest.main([__file__])
