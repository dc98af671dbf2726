"""
Thin wrappers around the ffmpeg / ffprobe binaries used for analysis.

Analysis runs are short and read-only; they are not supervised or retried.
Encoder invocations that produce output go through ``supervisor`` instead.
"""
import json
import logging
import subprocess
from typing import List, Optional

from .config import settings
from .errors import AnalysisError

logger = logging.getLogger(__name__)

# Keep only the voice band: rejects HVAC rumble below and hiss above.
SPEECH_BAND_FILTER = "highpass=f=200,lowpass=f=3500"


def ffmpeg_analysis_command(
    path: str,
    audio_filter: str,
    start: Optional[float] = None,
    duration: Optional[float] = None,
) -> List[str]:
    """Build an ffmpeg invocation that decodes audio through a filter and discards the output."""
    cmd = [settings.ffmpeg_path, "-hide_banner", "-nostats"]
    if start is not None:
        cmd += ["-ss", f"{start:.3f}"]
    if duration is not None:
        cmd += ["-t", f"{duration:.3f}"]
    cmd += ["-i", path, "-vn", "-af", audio_filter, "-f", "null", "-"]
    return cmd


def run_ffmpeg_analysis(cmd: List[str], timeout: Optional[float] = None) -> str:
    """
    Run an analysis command and return its stderr, where ffmpeg writes filter stats.

    Raises AnalysisError if the binary is missing, the run times out or ffmpeg exits non-zero.
    """
    timeout = timeout if timeout is not None else settings.analysis_timeout
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            timeout=timeout,
            text=True,
            errors="replace",
        )
    except FileNotFoundError as e:
        raise AnalysisError(f"ffmpeg binary not found: {cmd[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise AnalysisError(f"Audio analysis timed out after {timeout}s") from e

    if result.returncode != 0:
        tail = result.stderr[-500:] if result.stderr else ""
        raise AnalysisError(f"ffmpeg exited with code {result.returncode}: {tail}")
    return result.stderr


def probe_duration(path: str) -> float:
    """Return the container duration in seconds using ffprobe."""
    cmd = [
        settings.ffprobe_path, "-v", "error",
        "-show_entries", "format=duration",
        "-of", "json", path,
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=60)
    except FileNotFoundError as e:
        raise AnalysisError(f"ffprobe binary not found: {cmd[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise AnalysisError(f"ffprobe timed out on {path}") from e

    if result.returncode != 0:
        raise AnalysisError(f"ffprobe could not read {path}: {result.stderr.strip()[:300]}")

    try:
        duration = float(json.loads(result.stdout)["format"]["duration"])
    except (ValueError, KeyError, TypeError) as e:
        raise AnalysisError(f"No duration reported for {path}") from e

    if duration <= 0:
        raise AnalysisError(f"Invalid duration {duration} for {path}")
    logger.info(f"Probed duration of {path}: {duration:.2f}s")
    return duration
