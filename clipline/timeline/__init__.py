"""
Timeline Assembly

Pure planning layer: decides which clip or black filler plays when, so the
media engine only has to render and concatenate segments in order.
"""

from .assembler import assemble_timeline, to_frames
from .duration import resolve_master_duration
from .errors import DurationUnavailableError, InvalidTimelineInputError, TimelineError
from .models import BlackSegment, ClipSegment, ClipSpec, Segment, SkippedClip, Timeline

__all__ = [
    'assemble_timeline',
    'to_frames',
    'resolve_master_duration',
    'TimelineError',
    'InvalidTimelineInputError',
    'DurationUnavailableError',
    'ClipSpec',
    'ClipSegment',
    'BlackSegment',
    'Segment',
    'SkippedClip',
    'Timeline',
]
