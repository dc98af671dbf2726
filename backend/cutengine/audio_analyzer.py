import os
import logging
import subprocess
import tempfile
from typing import List, Optional, Tuple

import numpy as np
import librosa

from .config import settings
from .errors import AnalysisError

logger = logging.getLogger(__name__)

ANALYSIS_SAMPLE_RATE = 16000
HOP_LENGTH = 160      # 10 ms frames at 16 kHz
FRAME_LENGTH = 400    # 25 ms window


class AudioAnalyzer:
    """Frame-level loudness of a media file's audio track, in dBFS."""

    def __init__(self, media_path: Optional[str] = None):
        self.media_path = media_path
        self.y = None
        self.sr = ANALYSIS_SAMPLE_RATE
        self.rms_db = None
        if media_path is not None:
            self._load_audio()

    @classmethod
    def from_samples(cls, y: np.ndarray, sr: int = ANALYSIS_SAMPLE_RATE) -> "AudioAnalyzer":
        analyzer = cls()
        analyzer.y = np.asarray(y, dtype=np.float32)
        analyzer.sr = sr
        analyzer._compute_features()
        return analyzer

    @property
    def duration(self) -> float:
        return 0.0 if self.y is None else len(self.y) / float(self.sr)

    def _extract_to_wav(self, path: str) -> str:
        """Extract mono 16 kHz PCM audio to a temp WAV so librosa can load it quickly."""
        fd, wav_path = tempfile.mkstemp(prefix="cutengine_", suffix=".wav")
        os.close(fd)
        cmd = [settings.ffmpeg_path, "-y", "-i", path, "-vn", "-ar", str(ANALYSIS_SAMPLE_RATE),
               "-ac", "1", "-c:a", "pcm_s16le", wav_path]
        try:
            subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                           timeout=settings.analysis_timeout)
        except FileNotFoundError as e:
            os.remove(wav_path)
            raise AnalysisError(f"ffmpeg binary not found: {cmd[0]}") from e
        except subprocess.CalledProcessError as e:
            os.remove(wav_path)
            raise AnalysisError(f"Audio extraction failed: {e.stderr.decode(errors='replace')[-200:]}") from e
        except subprocess.TimeoutExpired as e:
            os.remove(wav_path)
            raise AnalysisError(f"Audio extraction timed out for {path}") from e
        logger.info(f"AudioAnalyzer: extracted WAV to {wav_path}")
        return wav_path

    def _load_audio(self):
        if not os.path.exists(self.media_path):
            raise AnalysisError(f"Media file not found: {self.media_path}")

        logger.info(f"Loading audio from {self.media_path}...")
        wav_path = self._extract_to_wav(self.media_path)
        try:
            self.y, self.sr = librosa.load(wav_path, sr=ANALYSIS_SAMPLE_RATE, mono=True)
        except Exception as e:
            raise AnalysisError(f"Could not decode audio from {self.media_path}: {e}") from e
        finally:
            if os.path.exists(wav_path):
                os.remove(wav_path)
        self._compute_features()

    def _compute_features(self):
        rms = librosa.feature.rms(y=self.y, frame_length=FRAME_LENGTH, hop_length=HOP_LENGTH)[0]
        self.rms_db = librosa.amplitude_to_db(rms, ref=1.0, top_db=None)
        logger.info(f"Audio features pre-calculated: {len(self.rms_db)} frames, {self.duration:.2f}s")

    def silent_intervals(self, threshold_db: float = -40.0, min_duration: float = 0.08) -> List[Tuple[float, float]]:
        """Runs of frames below ``threshold_db`` lasting at least ``min_duration`` seconds."""
        if self.rms_db is None or len(self.rms_db) == 0:
            return []

        quiet = np.concatenate(([0], (self.rms_db < threshold_db).astype(np.int8), [0]))
        edges = np.diff(quiet)
        starts = np.flatnonzero(edges == 1)
        ends = np.flatnonzero(edges == -1)

        intervals = []
        for s, e in zip(starts, ends):
            start = float(librosa.frames_to_time(s, sr=self.sr, hop_length=HOP_LENGTH))
            end = min(self.duration, float(librosa.frames_to_time(e, sr=self.sr, hop_length=HOP_LENGTH)))
            if end - start >= min_duration:
                intervals.append((start, end))
        return intervals
