import pytest
from cutengine import pipeline
from cutengine.errors import AnalysisError, EmptyResultError, ServiceError
from cutengine.models import KeepSegment, MistakeKind, SilenceInterval, SpeechMistake, TranscriptWord, words_from_dicts
from cutengine.pipeline import (
    MistakeConfig,
    compute_mistake_keep_segments,
    compute_silence_keep_segments,
    silence_cut_plan,
)
from cutengine.silence import SilenceAnalysis, SilenceOptions


def make_words(text, word_len=0.3, gap=0.05):
    words, t = [], 0.0
    for token in text.split():
        words.append(TranscriptWord(token, round(t, 3), round(t + word_len, 3)))
        t += word_len + gap
    return words


class StaticService:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error

    def clean(self, text, instruction):
        if self.error:
            raise self.error
        return self.response


@pytest.fixture(autouse=True)
def no_default_service(monkeypatch):
    monkeypatch.setattr(pipeline, "default_cleanup_service", lambda: None)


def spans(segments):
    return [(round(s.start, 3), round(s.end, 3)) for s in segments]


def test_aggressiveness_presets():
    assert MistakeConfig("conservative").effective_threshold == 0.80
    assert MistakeConfig("moderate").effective_threshold == 0.60
    assert MistakeConfig("aggressive").effective_threshold == 0.40
    assert MistakeConfig("aggressive", confidence_threshold=0.9).effective_threshold == 0.9
    with pytest.raises(ValueError):
        MistakeConfig("reckless")


def test_enabled_categories():
    config = MistakeConfig(remove_repeated_phrases=False, remove_self_corrections=False)
    assert config.enabled_categories() == ["filler_words", "repeated_words", "false_starts"]


def test_rules_only_mistake_cut():
    words = make_words("um I went to the the store")
    mistakes, keep = compute_mistake_keep_segments(words, duration=3.0)

    assert [m.kind for m in mistakes] == [MistakeKind.FILLER_WORD, MistakeKind.REPEATED_WORD]
    assert spans(keep) == [(0.315, 1.385), (1.715, 3.0)]


def test_transcript_dicts_are_accepted():
    raw = [{"word": w.text, "start": w.start, "end": w.end} for w in make_words("um I went home")]
    mistakes, keep = compute_mistake_keep_segments(raw, duration=2.0)
    assert [m.text for m in mistakes] == ["um"]
    assert spans(keep) == [(0.315, 2.0)]


def test_millisecond_transcript_uses_probed_duration(monkeypatch):
    probed = []

    def fake_probe(path):
        probed.append(path)
        return 2.0

    monkeypatch.setattr(pipeline, "probe_duration", fake_probe)
    raw = [
        {"word": "um", "start": 0, "end": 300},
        {"word": "I", "start": 350, "end": 650},
        {"word": "went", "start": 700, "end": 1000},
        {"word": "home", "start": 1050, "end": 1350},
    ]
    mistakes, keep = compute_mistake_keep_segments(
        raw, audio_track="talk.wav", config=MistakeConfig(use_acoustic=False),
    )
    assert probed == ["talk.wav"]
    assert [m.text for m in mistakes] == ["um"]
    assert spans(keep) == [(0.315, 2.0)]


def test_transcript_unit_is_decided_once():
    # the first word starts at 0 but still needs converting
    raw = [{"text": "so", "start": 0, "end": 400}, {"text": "yes", "start": 500, "end": 900}]
    words = words_from_dicts(raw, duration=1.0)
    assert [(w.start, w.end) for w in words] == [(0.0, 0.4), (0.5, 0.9)]
    # already in seconds
    assert words_from_dicts([{"text": "so", "start": 0.0, "end": 0.4}], duration=1.0)[0].end == 0.4


def test_below_threshold_mistakes_are_reported_not_cut():
    words = make_words("um I went to the the store")
    config = MistakeConfig(confidence_threshold=0.95)
    mistakes, keep = compute_mistake_keep_segments(words, config=config, duration=3.0)
    assert len(mistakes) == 2
    assert keep == [KeepSegment(0.0, 3.0)]


def test_cleanup_service_corroborates():
    words = make_words("um I went to the the store")
    service = StaticService(response="I went to the store")
    mistakes, keep = compute_mistake_keep_segments(words, cleanup_service=service, duration=3.0)

    assert len(mistakes) == 2
    assert all(m.sources == frozenset({"rules", "cleanup"}) for m in mistakes)
    assert all(m.confidence == pytest.approx(0.95) for m in mistakes)
    assert spans(keep) == [(0.315, 1.385), (1.715, 3.0)]


def test_failing_cleanup_service_degrades_to_rules():
    words = make_words("um I went to the the store")
    service = StaticService(error=ServiceError("quota exceeded"))
    mistakes, keep = compute_mistake_keep_segments(words, cleanup_service=service, duration=3.0)
    assert all(m.sources == frozenset({"rules"}) for m in mistakes)
    assert spans(keep) == [(0.315, 1.385), (1.715, 3.0)]


def test_acoustic_detector_runs_only_with_audio(monkeypatch):
    calls = []

    def fake_acoustic(audio_path, words, table):
        calls.append(audio_path)
        return [SpeechMistake(MistakeKind.FILLER_WORD, 2.5, 2.7, "[filler sound]", "test", 0.35,
                              frozenset({"acoustic"}))]

    monkeypatch.setattr(pipeline, "detect_acoustic_mistakes", fake_acoustic)
    words = make_words("um I went home")

    mistakes, _ = compute_mistake_keep_segments(words, duration=3.0)
    assert calls == []

    mistakes, keep = compute_mistake_keep_segments(
        words, audio_track="talk.wav", config=MistakeConfig("aggressive", confidence_threshold=0.3), duration=3.0,
    )
    assert calls == ["talk.wav"]
    assert [m.text for m in mistakes] == ["um", "[filler sound]"]
    assert spans(keep) == [(0.315, 2.485), (2.715, 3.0)]

    compute_mistake_keep_segments(
        words, audio_track="talk.wav", config=MistakeConfig(use_acoustic=False), duration=3.0,
    )
    assert calls == ["talk.wav"]


def test_failing_acoustic_detector_is_skipped(monkeypatch):
    def broken(audio_path, words, table):
        raise AnalysisError("cannot decode")

    monkeypatch.setattr(pipeline, "detect_acoustic_mistakes", broken)
    mistakes, _ = compute_mistake_keep_segments(make_words("um I went home"), audio_track="talk.wav", duration=2.0)
    assert [m.text for m in mistakes] == ["um"]


def test_empty_transcript_keeps_everything():
    assert compute_mistake_keep_segments([], duration=12.0) == ([], [KeepSegment(0.0, 12.0)])
    assert compute_mistake_keep_segments(None, duration=12.0) == ([], [KeepSegment(0.0, 12.0)])


def test_unknown_duration():
    with pytest.raises(AnalysisError):
        compute_mistake_keep_segments([])


def test_everything_cut_is_rejected():
    words = [TranscriptWord("um", 0.0, 1.0), TranscriptWord("uh", 1.0, 2.0)]
    with pytest.raises(EmptyResultError):
        compute_mistake_keep_segments(words, duration=2.0)


def fake_analysis(silences, duration):
    def analyze(path, options=None, duration_=None):
        return SilenceAnalysis(
            silences=[SilenceInterval(s, e) for s, e in silences],
            threshold_db=-25.0,
            was_adjusted=False,
            duration=duration,
            analysis_info="Fixed: threshold=-25.0dB",
        )
    return analyze


def test_silence_cut_plan(monkeypatch):
    monkeypatch.setattr(pipeline, "analyze_silence", fake_analysis([(10.0, 12.0), (40.0, 41.5)], 60.0))
    analysis, keep = silence_cut_plan("talk.wav", SilenceOptions(threshold_db=-25.0))
    assert analysis.threshold_db == -25.0
    assert spans(keep) == [(0.0, 10.185), (11.865, 40.185), (41.365, 60.0)]
    assert compute_silence_keep_segments("talk.wav") == keep


def test_silence_only_track_is_rejected(monkeypatch):
    monkeypatch.setattr(pipeline, "analyze_silence", fake_analysis([(0.0, 60.0)], 60.0))
    with pytest.raises(EmptyResultError):
        compute_silence_keep_segments("talk.wav")


if __name__ == "__main__":
    pytest.main([__file__])
