import pytest
from cutengine import silence
from cutengine.models import ChunkAnalysis, PercentileSample, SilenceInterval
from cutengine.segments import SegmentOptions, synthesize_keep_segments
from cutengine.silence import (
    SilenceEventParser,
    SilenceOptions,
    analyze_silence,
    choose_pass,
    dual_pass_detect,
    silence_percent,
)

SILENCEDETECT_LINES = [
    "[silencedetect @ 0x5612] silence_start: 10",
    "frame=  250 fps=0.0 q=-0.0 size=N/A time=00:00:10.50",
    "[silencedetect @ 0x5612] silence_end: 12 | silence_duration: 2",
    "[silencedetect @ 0x5612] silence_start: 40",
    "[silencedetect @ 0x5612] silence_end: 41.5 | silence_duration: 1.5",
]


def test_event_parser():
    parser = SilenceEventParser()
    closed = [parser.feed(line) for line in SILENCEDETECT_LINES]
    assert closed[2] == SilenceInterval(10.0, 12.0)
    assert parser.close(60.0) == [SilenceInterval(10.0, 12.0), SilenceInterval(40.0, 41.5)]


def test_event_parser_closes_trailing_silence_at_duration():
    parser = SilenceEventParser()
    parser.feed("[silencedetect @ 0x1] silence_start: 55.2")
    assert parser.close(60.0) == [SilenceInterval(55.2, 60.0)]

    parser = SilenceEventParser()
    parser.feed("[silencedetect @ 0x1] silence_start: 55.2")
    assert parser.close() == []


def test_event_parser_ignores_orphan_end():
    parser = SilenceEventParser()
    assert parser.feed("[silencedetect @ 0x1] silence_end: 3.0 | silence_duration: 1") is None
    assert parser.close(10.0) == []


def test_silence_percent():
    assert silence_percent([SilenceInterval(0, 5), SilenceInterval(10, 15)], 100.0) == pytest.approx(10.0)
    assert silence_percent([SilenceInterval(0, 5)], 0.0) == 0.0


def test_choose_pass_prefers_sensitive_when_clearly_better():
    primary = [SilenceInterval(0, 10)]            # 10%
    sensitive = [SilenceInterval(0, 12)]          # 12% >= 1.15x
    result = choose_pass(primary, sensitive, 100.0, -30.0)
    assert result.was_adjusted
    assert result.threshold_db == -33.0
    assert result.silences == sensitive


def test_choose_pass_keeps_primary_on_small_gain():
    primary = [SilenceInterval(0, 10)]
    sensitive = [SilenceInterval(0, 11)]          # only 1.1x
    result = choose_pass(primary, sensitive, 100.0, -30.0)
    assert not result.was_adjusted
    assert result.threshold_db == -30.0


def test_choose_pass_keeps_primary_when_already_high():
    primary = [SilenceInterval(0, 50)]
    sensitive = [SilenceInterval(0, 80)]
    assert not choose_pass(primary, sensitive, 100.0, -30.0).was_adjusted


def test_choose_pass_empty_primary():
    result = choose_pass([], [SilenceInterval(1, 2)], 100.0, -30.0)
    assert result.was_adjusted
    assert result.silences == [SilenceInterval(1, 2)]

    neither = choose_pass([], [], 100.0, -30.0)
    assert not neither.was_adjusted
    assert neither.threshold_db == -30.0


def test_dual_pass_runs_primary_then_sensitive():
    thresholds = []

    def detect(threshold):
        thresholds.append(threshold)
        return [SilenceInterval(1.0, 2.0)]

    result = dual_pass_detect(detect, -28.0, 60.0)
    assert thresholds == [-28.0, -31.0]
    assert not result.was_adjusted


def test_clean_narration_scenario(monkeypatch):
    """60 s narration with two pauses, fixed -25 dB threshold."""
    calls = []

    def fake_detect(path, threshold_db, min_duration=0.3, speech_band=True, duration=None):
        calls.append((threshold_db, min_duration))
        return [SilenceInterval(10.0, 12.0), SilenceInterval(40.0, 41.5)]

    monkeypatch.setattr(silence, "detect_silence", fake_detect)
    options = SilenceOptions(threshold_db=-25.0, min_silence_duration=0.3)
    analysis = analyze_silence("narration.mp4", options, duration=60.0)

    assert calls == [(-25.0, 0.3)]
    assert analysis.silences == [SilenceInterval(10.0, 12.0), SilenceInterval(40.0, 41.5)]
    assert analysis.threshold_db == -25.0
    assert not analysis.was_adjusted

    padding_only = SegmentOptions(
        edge_padding=0.0, min_segment=0.1, merge_gap=0.0, padding_before=0.05, padding_after=0.05,
    )
    keep = synthesize_keep_segments(analysis.silences, analysis.duration, padding_only)
    assert [(s.start, s.end) for s in keep] == [
        pytest.approx((0.0, 10.05)),
        pytest.approx((11.95, 40.05)),
        pytest.approx((41.45, 60.0)),
    ]


def test_adaptive_analysis_uses_estimate_and_dual_pass(monkeypatch):
    thresholds = []

    def fake_detect(path, threshold_db, min_duration=0.3, speech_band=True, duration=None):
        thresholds.append(threshold_db)
        return [SilenceInterval(5.0, 6.0)]

    monkeypatch.setattr(silence, "detect_silence", fake_detect)
    monkeypatch.setattr(silence, "analyze_full_track",
                        lambda path, duration, chunk_duration: ChunkAnalysis([-20.0], [-35.0], -20.0, -35.0))
    monkeypatch.setattr(silence, "analyze_percentiles", lambda path, sample_duration: None)

    analysis = analyze_silence("talk.mp4", SilenceOptions(), duration=30.0)
    assert analysis.estimate is not None
    assert thresholds == [pytest.approx(-32.25), pytest.approx(-35.25)]
    assert analysis.threshold_db == pytest.approx(-32.25)
    assert "Adaptive" in analysis.analysis_info


if __name__ == "__main__":
    pytest.main([__file__])
