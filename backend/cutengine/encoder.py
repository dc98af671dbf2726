"""
Encoder adapter: the only place keep segments become ffmpeg filter-graph text.
"""
import logging
import shutil
from typing import List, Optional, Sequence

from .config import settings
from .errors import EmptyResultError
from .models import KeepSegment
from .supervisor import CommandSpec, ProcessConfig, ProcessOutcome, ProcessSupervisor, ProcessRegistry

logger = logging.getLogger(__name__)

# Memory-efficient output settings for constrained servers
VIDEO_OUTPUT_OPTIONS = [
    "-c:v", "libx264",
    "-preset", "ultrafast",
    "-crf", "28",
    "-threads", "4",
    "-max_muxing_queue_size", "512",
    "-bufsize", "1M",
]
AUDIO_OUTPUT_OPTIONS = ["-c:a", "aac", "-b:a", "128k"]

# Tolerance when deciding a single segment spans the whole input
FULL_SPAN_TOLERANCE = 0.001


def _ts(value: float) -> str:
    return f"{value:.3f}"


def build_concat_filter(segments: Sequence[KeepSegment], include_video: bool = True) -> str:
    """trim/atrim every segment and concatenate them into [outv][outa] (or just [outa])."""
    parts: List[str] = []
    concat_inputs = []
    for i, seg in enumerate(segments):
        if include_video:
            parts.append(f"[0:v]trim=start={_ts(seg.start)}:end={_ts(seg.end)},setpts=PTS-STARTPTS[v{i}]")
            concat_inputs.append(f"[v{i}]")
        parts.append(f"[0:a]atrim=start={_ts(seg.start)}:end={_ts(seg.end)},asetpts=PTS-STARTPTS[a{i}]")
        concat_inputs.append(f"[a{i}]")

    if include_video:
        parts.append(f"{''.join(concat_inputs)}concat=n={len(segments)}:v=1:a=1[outv][outa]")
    else:
        parts.append(f"{''.join(concat_inputs)}concat=n={len(segments)}:v=0:a=1[outa]")
    return ";".join(parts)


def build_cut_command(
    input_path: str,
    output_path: str,
    segments: Sequence[KeepSegment],
    include_video: bool = True,
    context: str = "cut",
) -> CommandSpec:
    argv = [settings.ffmpeg_path, "-y", "-hide_banner", "-i", input_path,
            "-filter_complex", build_concat_filter(segments, include_video)]
    if include_video:
        argv += ["-map", "[outv]", "-map", "[outa]"] + VIDEO_OUTPUT_OPTIONS
    else:
        argv += ["-map", "[outa]"]
    argv += AUDIO_OUTPUT_OPTIONS + [output_path]
    return CommandSpec(argv=tuple(argv), context=context)


def is_full_span(segments: Sequence[KeepSegment], duration: Optional[float]) -> bool:
    return (
        duration is not None
        and len(segments) == 1
        and segments[0].start <= FULL_SPAN_TOLERANCE
        and segments[0].end >= duration - FULL_SPAN_TOLERANCE
    )


def render_keep_segments(
    input_path: str,
    output_path: str,
    segments: Sequence[KeepSegment],
    duration: Optional[float] = None,
    supervisor: Optional[ProcessSupervisor] = None,
    config: Optional[ProcessConfig] = None,
    include_video: bool = True,
    context: str = "cut",
) -> ProcessOutcome:
    """
    Materialize ``segments`` of ``input_path`` into ``output_path``.

    An empty list is rejected before anything runs. A single segment covering
    the whole input is a plain copy; everything else goes through the supervisor.
    """
    if not segments:
        raise EmptyResultError(f"[{context}] Refusing to render an empty segment list")

    if is_full_span(segments, duration):
        logger.info(f"[{context}] Nothing to cut, copying {input_path}")
        shutil.copyfile(input_path, output_path)
        return ProcessOutcome(success=True, exit_code=0, attempts=0)

    kept = sum(s.duration for s in segments)
    logger.info(f"[{context}] Rendering {len(segments)} segments ({kept:.1f}s) to {output_path}")
    command = build_cut_command(input_path, output_path, segments, include_video, context)
    supervisor = supervisor or ProcessSupervisor(ProcessRegistry())
    return supervisor.run(command, config)
