"""Errors raised by the media probe and the FFmpeg engine"""


class MediaError(RuntimeError):
    """Base class for failures of the external media tools"""


class DurationProbeError(MediaError):
    """ffprobe could not report a usable duration"""


class MediaEngineError(MediaError):
    """An ffmpeg operation failed or the engine was used outside its lifecycle"""
