"""
Media Probe

Duration lookup through ffprobe (via ffmpeg-python).
"""

import logging
from pathlib import Path
from typing import Union

import ffmpeg

from .media_errors import DurationProbeError

logger = logging.getLogger(__name__)


def probe_duration(media_path: Union[str, Path], ffprobe_binary: str = "ffprobe") -> float:
    """Return the duration of a media file in seconds"""
    try:
        probe = ffmpeg.probe(str(media_path), cmd=ffprobe_binary)
    except ffmpeg.Error as e:
        stderr = e.stderr.decode(errors='replace').strip() if e.stderr else str(e)
        raise DurationProbeError(f"ffprobe failed for {media_path}: {stderr}") from e
    except FileNotFoundError as e:
        raise DurationProbeError(f"ffprobe binary not found: {ffprobe_binary}") from e

    # Container duration first, then the first stream that reports one
    candidates = [probe.get('format', {}).get('duration')]
    candidates += [stream.get('duration') for stream in probe.get('streams', [])]
    for value in candidates:
        if value in (None, 'N/A'):
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring unparsable duration {value!r} for {media_path}")

    raise DurationProbeError(f"No duration reported for {media_path}")
