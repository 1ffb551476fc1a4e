"""
Timeline Data Models

Pydantic models for clip assignments and the assembled timeline.
"""

from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field


class ClipSpec(BaseModel):
    """One user-supplied clip assigned to a window on the output timeline"""
    source_ref: str
    start_time: float = Field(ge=0.0)  # seconds on the output timeline
    end_time: float = Field(ge=0.0)

    @property
    def target_duration(self) -> float:
        return self.end_time - self.start_time


class ClipSegment(BaseModel):
    """Play a source clip for the given duration"""
    kind: Literal["clip"] = "clip"
    ref: str
    start: float
    duration: float
    frames: int
    requested_start: float  # start_time as supplied, before overlap coercion


class BlackSegment(BaseModel):
    """Generated black filler"""
    kind: Literal["black"] = "black"
    start: float
    duration: float
    frames: int


Segment = Annotated[Union[ClipSegment, BlackSegment], Field(discriminator="kind")]


class SkippedClip(BaseModel):
    """A clip excluded from the timeline, reported as a warning"""
    index: int  # position in the caller's input
    source_ref: str
    field: str
    reason: str

    def describe(self) -> str:
        return f"Skipped clip #{self.index + 1} '{self.source_ref}' ({self.field}): {self.reason}"


class Timeline(BaseModel):
    """Ordered, gapless segment plan covering the master duration"""
    master_duration: float
    frame_rate: float
    segments: List[Segment] = Field(default_factory=list)
    skipped: List[SkippedClip] = Field(default_factory=list)

    @property
    def total_frames(self) -> int:
        return sum(seg.frames for seg in self.segments)

    @property
    def total_duration(self) -> float:
        return self.total_frames / self.frame_rate

    @property
    def clip_segments(self) -> List[ClipSegment]:
        return [seg for seg in self.segments if isinstance(seg, ClipSegment)]

    @property
    def black_segments(self) -> List[BlackSegment]:
        return [seg for seg in self.segments if isinstance(seg, BlackSegment)]

    @property
    def warnings(self) -> List[str]:
        return [skip.describe() for skip in self.skipped]

    def __len__(self) -> int:
        return len(self.segments)
