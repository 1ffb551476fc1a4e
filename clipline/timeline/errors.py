"""
Timeline Errors

Fatal input errors raised while building a timeline. Skippable per-clip
problems are not errors; they are reported as SkippedClip warnings.
"""

from typing import Optional


class TimelineError(ValueError):
    """Base class for timeline input errors"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidTimelineInputError(TimelineError):
    """Master duration or frame rate cannot produce a timeline"""


class DurationUnavailableError(TimelineError):
    """Master duration could not be probed and no fallback was supplied"""

    def __init__(self, audio_ref: str, reason: str):
        super().__init__(
            f"Could not determine duration of '{audio_ref}' ({reason}) and no fallback duration was supplied",
            field="master_duration",
        )
        self.audio_ref = audio_ref
        self.reason = reason
