"""
Timeline Assembler

Turns a master duration and an unordered set of clip windows into an
ordered, gapless sequence of clip and black-filler segments.

Every boundary is snapped to the output frame grid, so the segment frame
counts add up exactly to the master duration in frames and the summed
durations stay within half a frame of the requested master duration.
"""

import logging
import math
from typing import Iterable, List, Tuple

from .errors import InvalidTimelineInputError
from .models import BlackSegment, ClipSegment, ClipSpec, SkippedClip, Timeline

logger = logging.getLogger(__name__)


def to_frames(seconds: float, frame_rate: float) -> int:
    """Nearest whole frame for a time in seconds (half frames round up)"""
    return int(math.floor(seconds * frame_rate + 0.5))


def _require_positive(value: float, field: str) -> None:
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        raise InvalidTimelineInputError(f"{field} must be a positive number, got {value!r}", field=field)


def _filter_clips(clips: Iterable[ClipSpec]) -> Tuple[List[Tuple[int, ClipSpec]], List[SkippedClip]]:
    usable = []
    skipped = []
    for index, clip in enumerate(clips):
        if not (math.isfinite(clip.start_time) and math.isfinite(clip.end_time)):
            skipped.append(SkippedClip(
                index=index, source_ref=clip.source_ref, field="end_time",
                reason="clip window must have finite start and end times",
            ))
        elif clip.target_duration <= 0:
            skipped.append(SkippedClip(
                index=index, source_ref=clip.source_ref, field="end_time",
                reason=f"end_time {clip.end_time:g}s is not after start_time {clip.start_time:g}s",
            ))
        else:
            usable.append((index, clip))
    return usable, skipped


def assemble_timeline(master_duration: float,
                      clips: Iterable[ClipSpec],
                      frame_rate: float) -> Timeline:
    """
    Build the segment plan for one render.

    Args:
        master_duration: Length of the master audio in seconds
        clips: Clip windows in any order
        frame_rate: Output frame rate, defines the smallest representable segment

    Returns:
        Timeline whose segments cover [0, master_duration) exactly once

    Raises:
        InvalidTimelineInputError: master_duration or frame_rate is not positive
    """
    _require_positive(master_duration, "master_duration")
    _require_positive(frame_rate, "frame_rate")

    master_frames = max(1, to_frames(master_duration, frame_rate))
    usable, skipped = _filter_clips(clips)
    segments = []

    def seconds(frames: int) -> float:
        return frames / frame_rate

    def fill_black(start: int, end: int) -> None:
        segments.append(BlackSegment(start=seconds(start), duration=seconds(end - start), frames=end - start))

    # sorted() is stable, clips sharing a start keep their input order
    cursor = 0
    for index, clip in sorted(usable, key=lambda item: item[1].start_time):
        start = to_frames(clip.start_time, frame_rate)
        # Sub-frame windows still get one frame
        end = max(to_frames(clip.end_time, frame_rate), start + 1)

        if start >= master_frames:
            skipped.append(SkippedClip(
                index=index, source_ref=clip.source_ref, field="start_time",
                reason=f"starts at {clip.start_time:g}s, after the {master_duration:g}s master duration",
            ))
            continue

        if start > cursor:
            fill_black(cursor, start)
            cursor = start
        elif start < cursor:
            logger.warning(
                f"Clip #{index + 1} '{clip.source_ref}' overlaps the previous clip, "
                f"moving its start from {clip.start_time:g}s to {seconds(cursor):g}s"
            )

        end = min(end, master_frames)
        if end <= cursor:
            skipped.append(SkippedClip(
                index=index, source_ref=clip.source_ref, field="end_time",
                reason=f"window ends at {clip.end_time:g}s, already covered by earlier clips",
            ))
            continue

        segments.append(ClipSegment(
            ref=clip.source_ref,
            start=seconds(cursor),
            duration=seconds(end - cursor),
            frames=end - cursor,
            requested_start=clip.start_time,
        ))
        cursor = end

    if cursor < master_frames:
        fill_black(cursor, master_frames)

    skipped.sort(key=lambda skip: skip.index)
    for skip in skipped:
        logger.warning(skip.describe())

    timeline = Timeline(
        master_duration=master_duration,
        frame_rate=frame_rate,
        segments=segments,
        skipped=skipped,
    )
    logger.info(
        f"Timeline built: {len(timeline.clip_segments)} clips, {len(timeline.black_segments)} black fillers, "
        f"{timeline.total_duration:.2f}s at {frame_rate:g} fps"
    )
    return timeline
