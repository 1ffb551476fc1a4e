"""
Video Assembly Pipeline

Renders a planned timeline with FFmpeg:
- Black fillers for uncovered time
- Muted, resized, retimed clips
- Concatenation in timeline order
- Mux against the master audio, trimmed to its duration
"""

from .media_engine import FFmpegEngine
from .media_errors import DurationProbeError, MediaEngineError, MediaError
from .media_probe import probe_duration
from .video_assembler import VideoAssembler
from .video_models import RenderProgress, RenderSettings, VideoAssemblyRequest, VideoAssemblyResult

__all__ = [
    'FFmpegEngine',
    'MediaError',
    'MediaEngineError',
    'DurationProbeError',
    'probe_duration',
    'VideoAssembler',
    'RenderProgress',
    'RenderSettings',
    'VideoAssemblyRequest',
    'VideoAssemblyResult'
]
