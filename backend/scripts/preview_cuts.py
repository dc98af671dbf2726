"""Print the keep segments the engine would produce for a media file.

  python scripts/preview_cuts.py talk.mp4                      # silence cut
  python scripts/preview_cuts.py talk.mp4 --transcript w.json  # speech cut
  python scripts/preview_cuts.py talk.mp4 --render out.mp4     # also render
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path

# Add backend to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cutengine.encoder import render_keep_segments
from cutengine.errors import CutEngineError
from cutengine.pipeline import MistakeConfig, compute_mistake_keep_segments, silence_cut_plan
from cutengine.silence import SilenceOptions


def main() -> None:
    parser = argparse.ArgumentParser(description="Preview silence or speech-mistake cuts for a media file")
    parser.add_argument("input", type=Path, help="Input video or audio file")
    parser.add_argument("--transcript", type=Path, help="JSON list of {text|word, start, end} words")
    parser.add_argument("--threshold", type=float, help="Fixed silence threshold in dB (disables auto)")
    parser.add_argument("--min-silence", type=float, default=0.3, help="Minimum silence duration (s)")
    parser.add_argument(
        "--aggressiveness",
        choices=["conservative", "moderate", "aggressive"],
        default="moderate",
    )
    parser.add_argument("--language", default="auto")
    parser.add_argument("--no-acoustic", action="store_true", help="Skip acoustic corroboration")
    parser.add_argument("--render", type=Path, help="Render the cut to this output file")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        if args.transcript:
            words = json.loads(args.transcript.read_text())
            config = MistakeConfig(
                aggressiveness=args.aggressiveness,
                language=args.language,
                use_acoustic=not args.no_acoustic,
            )
            mistakes, keep = compute_mistake_keep_segments(words, str(args.input), config)
            for m in mistakes:
                marker = "CUT " if m.confidence >= config.effective_threshold else "keep"
                print(f"{marker} [{m.kind.value}] {m.start:7.2f}-{m.end:7.2f} "
                      f"({m.confidence:.2f}) \"{m.text}\" - {m.reason}")
            duration = None
        else:
            options = SilenceOptions(threshold_db=args.threshold, min_silence_duration=args.min_silence)
            analysis, keep = silence_cut_plan(str(args.input), options)
            print(analysis.analysis_info)
            duration = analysis.duration

        print(f"\n{len(keep)} keep segments:")
        for seg in keep:
            print(f"  {seg.start:8.3f} - {seg.end:8.3f}  ({seg.duration:.2f}s)")

        if args.render:
            outcome = render_keep_segments(str(args.input), str(args.render), keep, duration=duration)
            print(f"\nRendered {args.render} in {outcome.attempts} attempt(s)")
    except CutEngineError as e:
        print(f"Error: {e.user_message} ({e})", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
