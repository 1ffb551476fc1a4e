"""
Video Assembly Data Models

Pydantic models for the render request, progress and result.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

from ..timeline.models import ClipSpec


class RenderSettings(BaseModel):
    """Common output parameters every segment is normalised to"""
    width: int = Field(default=1280, gt=0)
    height: int = Field(default=720, gt=0)
    fps: float = Field(default=30.0, gt=0)

    @property
    def size(self) -> str:
        return f"{self.width}x{self.height}"


class VideoAssemblyRequest(BaseModel):
    """Request for video assembly"""
    audio_path: Path
    clips: List[ClipSpec] = Field(default_factory=list)
    render: RenderSettings = Field(default_factory=RenderSettings)
    output_filename: Optional[str] = None
    fallback_duration: Optional[float] = Field(default=None, gt=0)

    @classmethod
    def load(cls, request_path: str,
             default_render: Optional[RenderSettings] = None) -> "VideoAssemblyRequest":
        """Load a request from a YAML or JSON file

        Missing render fields are taken from ``default_render`` when given.
        Malformed files raise ``ValueError`` naming the file.
        """
        request_file = Path(request_path)
        if not request_file.exists():
            raise FileNotFoundError(f"Request file not found: {request_path}")

        text = request_file.read_text(encoding='utf-8')
        try:
            if request_file.suffix.lower() == '.json':
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValueError(f"Request file {request_path} could not be parsed: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Request file {request_path} must contain a mapping, got {type(data).__name__}")

        clips = data.get('clips') or []
        if not isinstance(clips, list):
            raise ValueError(f"Request file {request_path}: 'clips' must be a list")
        for i, clip in enumerate(clips):
            if not isinstance(clip, dict):
                raise ValueError(f"Request file {request_path}: clip {i} must be a mapping")
        data['clips'] = clips

        render = data.get('render') or {}
        if not isinstance(render, dict):
            raise ValueError(f"Request file {request_path}: 'render' must be a mapping")
        if default_render is not None:
            render = {**default_render.model_dump(), **render}
        if render:
            data['render'] = render
        else:
            data.pop('render', None)

        # Relative media paths are resolved against the request file
        base = request_file.parent
        audio = data.get('audio_path')
        if isinstance(audio, str) and audio and not Path(audio).is_absolute():
            data['audio_path'] = str(base / audio)
        for clip in clips:
            ref = clip.get('source_ref')
            if isinstance(ref, str) and ref and not Path(ref).is_absolute():
                clip['source_ref'] = str(base / ref)
        return cls(**data)


class RenderProgress(BaseModel):
    """Progress tracking for video rendering"""
    current_segment: int = 0
    total_segments: int = 0
    current_step: str = "initializing"
    progress_percent: float = Field(default=0.0, ge=0.0, le=100.0)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class VideoAssemblyResult(BaseModel):
    """Result of video assembly process"""
    success: bool
    output_path: Optional[Path] = None

    # Render statistics
    total_duration: float = 0.0  # seconds
    file_size_mb: float = 0.0
    render_time_seconds: float = 0.0

    clips_rendered: int = 0
    fillers_rendered: int = 0

    # Logs and errors
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=datetime.now)
