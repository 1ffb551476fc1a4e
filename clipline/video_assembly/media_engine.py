"""
FFmpeg Media Engine

Renders the pieces of a timeline: black fillers, normalised clips, the
concatenated video and the final mux against the master audio.

The engine is a caller-owned handle. Start it once, pass it to whoever
needs it, close it when done. One instance runs one ffmpeg process at a
time; use separate instances to render in parallel.
"""

import asyncio
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Union

import ffmpeg

from ..utils.config import Config
from ..utils.logger import LoggerMixin
from .media_errors import MediaEngineError
from .video_models import RenderSettings

PathLike = Union[str, Path]


class FFmpegEngine(LoggerMixin):
    """Thin async wrapper over the ffmpeg binary"""

    def __init__(self, config: Config):
        self.ffmpeg_binary = config.binaries.ffmpeg
        self.encoder = config.render.encoder
        self.pix_fmt = config.render.pix_fmt
        self.audio_codec = config.render.audio_codec
        self.audio_bitrate = config.render.audio_bitrate
        self.quality = config.render.get_quality_preset()

        self._started = False
        self._lock: Optional[asyncio.Lock] = None
        self.version: Optional[str] = None

    # Lifecycle

    def start(self) -> "FFmpegEngine":
        """Verify the ffmpeg binary is usable"""
        if self._started:
            return self
        try:
            result = subprocess.run([self.ffmpeg_binary, '-version'],
                                    capture_output=True, text=True, timeout=10)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise MediaEngineError(f"FFmpeg not available ({self.ffmpeg_binary}): {e}") from e

        if result.returncode != 0:
            raise MediaEngineError(f"FFmpeg check failed ({self.ffmpeg_binary}): {result.stderr.strip()}")

        self.version = result.stdout.splitlines()[0] if result.stdout else "unknown"
        self._started = True
        self.logger.info(f"FFmpeg engine started: {self.version}")
        return self

    def close(self) -> None:
        if self._started:
            self.logger.info("FFmpeg engine closed")
        self._started = False

    @property
    def is_running(self) -> bool:
        return self._started

    def __enter__(self) -> "FFmpegEngine":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Command construction

    def _encode_args(self, render: RenderSettings) -> dict:
        return {
            'vcodec': self.encoder,
            'preset': self.quality.preset,
            'crf': self.quality.crf,
            'pix_fmt': self.pix_fmt,
            'r': render.fps,
        }

    def _compile(self, stream) -> List[str]:
        return stream.global_args('-nostdin', '-hide_banner').overwrite_output().compile(cmd=self.ffmpeg_binary)

    def build_black_command(self, duration: float, output: PathLike, render: RenderSettings) -> List[str]:
        source = ffmpeg.input(f"color=c=black:s={render.size}:r={render.fps:g}:d={duration:.6f}", f='lavfi')
        stream = source.output(str(output), t=duration, **self._encode_args(render))
        return self._compile(stream)

    def build_clip_command(self,
                           source: PathLike,
                           duration: float,
                           output: PathLike,
                           render: RenderSettings,
                           source_duration: Optional[float] = None) -> List[str]:
        """Mute, resize, retime and cut a clip to exactly `duration` seconds"""
        video = ffmpeg.input(str(source)).video
        video = video.filter('scale', render.width, render.height).filter('setsar', 1)

        if source_duration and source_duration > 0:
            # Stretch or compress the whole source into the window
            video = video.filter('setpts', f"{duration / source_duration:.6f}*(PTS-STARTPTS)")
        else:
            video = video.filter('setpts', 'PTS-STARTPTS')

        video = video.filter('fps', fps=render.fps)
        # Sources shorter than the window hold their last frame
        video = video.filter('tpad', stop_mode='clone', stop_duration=duration)

        stream = ffmpeg.output(video, str(output), an=None, t=duration, **self._encode_args(render))
        return self._compile(stream)

    def build_concat_command(self, list_file: PathLike, output: PathLike) -> List[str]:
        stream = ffmpeg.input(str(list_file), f='concat', safe=0).output(str(output), c='copy')
        return self._compile(stream)

    def build_mux_command(self, video_path: PathLike, audio_path: PathLike,
                          duration: float, output: PathLike) -> List[str]:
        video = ffmpeg.input(str(video_path)).video
        audio = ffmpeg.input(str(audio_path)).audio
        stream = ffmpeg.output(
            video, audio, str(output),
            vcodec='copy',
            acodec=self.audio_codec,
            audio_bitrate=self.audio_bitrate,
            t=duration,
            movflags='+faststart',
        )
        return self._compile(stream)

    @staticmethod
    def write_concat_list(segment_paths: Sequence[PathLike], list_file: PathLike) -> Path:
        """Write an ffmpeg concat demuxer list, one segment per line"""
        list_file = Path(list_file)
        with open(list_file, 'w', encoding='utf-8') as f:
            for path in segment_paths:
                escaped = str(Path(path).absolute()).replace("'", "'\\''")
                f.write(f"file '{escaped}'\n")
        return list_file

    # Operations

    async def render_black(self, duration: float, output: PathLike, render: RenderSettings) -> Path:
        self.logger.info(f"Creating black segment: {Path(output).name} for {duration:.2f}s")
        await self._run(self.build_black_command(duration, output, render), "black filler")
        return Path(output)

    async def render_clip(self, source: PathLike, duration: float, output: PathLike,
                          render: RenderSettings, source_duration: Optional[float] = None) -> Path:
        self.logger.info(f"Processing clip: {Path(source).name} -> {duration:.2f}s at {render.size}")
        await self._run(self.build_clip_command(source, duration, output, render, source_duration), "clip")
        return Path(output)

    async def concat(self, segment_paths: Sequence[PathLike], output: PathLike) -> Path:
        if not segment_paths:
            raise MediaEngineError("No video segments to concatenate")
        output = Path(output)
        list_file = self.write_concat_list(segment_paths, output.with_suffix('.txt'))
        self.logger.info(f"Concatenating {len(segment_paths)} segments")
        await self._run(self.build_concat_command(list_file, output), "concat")
        return output

    async def mux(self, video_path: PathLike, audio_path: PathLike, duration: float, output: PathLike) -> Path:
        self.logger.info(f"Adding master audio and trimming to {duration:.2f}s")
        await self._run(self.build_mux_command(video_path, audio_path, duration, output), "mux")
        return Path(output)

    async def _run(self, args: List[str], label: str) -> None:
        if not self._started:
            raise MediaEngineError(f"FFmpeg engine is not running, cannot run {label}")

        # Created inside the running loop that uses it
        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            self.logger.debug(f"Running FFmpeg: {' '.join(args)}")
            try:
                process = await asyncio.create_subprocess_exec(
                    *args,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE
                )
            except OSError as e:
                raise MediaEngineError(f"FFmpeg {label} could not start: {e}") from e

            try:
                _, stderr = await process.communicate()
            except BaseException:
                # Cancelled or interrupted: the child must not outlive the call
                if process.returncode is None:
                    try:
                        process.kill()
                    except ProcessLookupError:
                        pass
                    await process.wait()
                    self.logger.warning(f"FFmpeg {label} interrupted, process {process.pid} killed")
                raise

        if process.returncode != 0:
            tail = '\n'.join(stderr.decode(errors='replace').strip().splitlines()[-20:])
            self.logger.error(f"FFmpeg {label} failed: {tail}")
            raise MediaEngineError(f"FFmpeg {label} failed: {tail}")
