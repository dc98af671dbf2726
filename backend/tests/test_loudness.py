import pytest
from cutengine import loudness
from cutengine.loudness import (
    DEFAULT_MEDIAN_MAX,
    DEFAULT_MEDIAN_MEAN,
    analyze_full_track,
    parse_astats,
    parse_volumedetect,
)
from cutengine.models import VolumeSample

VOLUMEDETECT_OUTPUT = """
[Parsed_volumedetect_2 @ 0x5581] n_samples: 1323000
[Parsed_volumedetect_2 @ 0x5581] mean_volume: -31.4 dB
[Parsed_volumedetect_2 @ 0x5581] max_volume: -9.8 dB
[Parsed_volumedetect_2 @ 0x5581] histogram_9db: 12
"""

ASTATS_OUTPUT = """
[Parsed_astats_2 @ 0x55] Channel: 1
[Parsed_astats_2 @ 0x55] Peak level dB: -6.100000
[Parsed_astats_2 @ 0x55] RMS level dB: -24.500000
[Parsed_astats_2 @ 0x55] Overall
[Parsed_astats_2 @ 0x55] Peak level dB: -5.000000
[Parsed_astats_2 @ 0x55] RMS level dB: -23.000000
"""


def test_parse_volumedetect():
    sample = parse_volumedetect(VOLUMEDETECT_OUTPUT)
    assert sample == VolumeSample(max_volume_db=-9.8, mean_volume_db=-31.4)


def test_parse_volumedetect_missing_mean_falls_back():
    sample = parse_volumedetect("[Parsed_volumedetect_2 @ 0x1] max_volume: -12.0 dB")
    assert sample.mean_volume_db == pytest.approx(-27.0)


def test_parse_volumedetect_unusable():
    assert parse_volumedetect("no stats here") is None
    assert parse_volumedetect("max_volume: -inf dB") is None


def test_parse_astats_prefers_overall():
    sample = parse_astats(ASTATS_OUTPUT)
    assert sample.peak_level_db == -5.0
    assert sample.rms_level_db == -23.0
    assert sample.dynamic_range_db == pytest.approx(18.0)


def test_parse_astats_missing():
    assert parse_astats("Peak level dB: -3.0") is None


def test_full_track_uses_medians_and_skips_short_chunks(monkeypatch):
    calls = []
    values = {0.0: VolumeSample(-10.0, -30.0), 30.0: VolumeSample(-20.0, -40.0)}

    def fake_chunk(path, start, duration):
        calls.append((start, duration))
        return values.get(start)

    monkeypatch.setattr(loudness, "analyze_chunk", fake_chunk)
    result = analyze_full_track("talk.mp4", 60.5, chunk_duration=30.0)

    # The trailing 0.5 s chunk is too short to analyze
    assert sorted(calls) == [(0.0, 30.0), (30.0, 30.0)]
    assert result.median_max == pytest.approx(-15.0)
    assert result.median_mean == pytest.approx(-35.0)


def test_full_track_defaults(monkeypatch):
    monkeypatch.setattr(loudness, "analyze_chunk", lambda path, start, duration: None)
    result = analyze_full_track("talk.mp4", 90.0)
    assert (result.median_max, result.median_mean) == (DEFAULT_MEDIAN_MAX, DEFAULT_MEDIAN_MEAN)

    invalid = analyze_full_track("talk.mp4", 0.0)
    assert invalid.max_volumes == []
    assert invalid.median_max == DEFAULT_MEDIAN_MAX


if __name__ == "__main__":
    pytest.main([__file__])
