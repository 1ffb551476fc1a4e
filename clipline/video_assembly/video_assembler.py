"""
Video Assembler

Drives a full render:
- Master audio duration (probe, then fallback)
- Timeline planning
- Per-segment rendering through the FFmpeg engine
- Concatenation, muxing with the master audio, final trim
"""

import logging
import shutil
import tempfile
import time
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional

from ..timeline import BlackSegment, Timeline, assemble_timeline, resolve_master_duration
from ..timeline.duration import DurationProbe
from ..utils.config import Config
from .media_engine import FFmpegEngine
from .media_errors import MediaError
from .media_probe import probe_duration
from .video_models import RenderProgress, RenderSettings, VideoAssemblyRequest, VideoAssemblyResult

ProgressCallback = Callable[[RenderProgress], None]


class VideoAssembler:
    """
    Turns a VideoAssemblyRequest into a single output file.

    The engine is owned by the caller and must already be started.
    Segments are rendered one at a time on that engine.
    """

    def __init__(self, config: Config, engine: FFmpegEngine, probe: Optional[DurationProbe] = None):
        self.config = config
        self.engine = engine
        self.probe = probe or partial(probe_duration, ffprobe_binary=config.binaries.ffprobe)
        self.logger = logging.getLogger(__name__)

        self.output_dir = Path(config.paths.output)
        self.temp_dir = Path(config.paths.temp)

    def plan(self, request: VideoAssemblyRequest) -> Timeline:
        """Resolve the master duration and build the timeline without rendering"""
        fallback = request.fallback_duration or self.config.assembly.fallback_duration
        master_duration = resolve_master_duration(str(request.audio_path), self.probe, fallback)
        return assemble_timeline(master_duration, request.clips, request.render.fps)

    async def assemble_video(self,
                             request: VideoAssemblyRequest,
                             progress_callback: Optional[ProgressCallback] = None) -> VideoAssemblyResult:
        """
        Assemble the output video for a request.

        Input errors (no usable master duration) are raised to the caller.
        Media failures are logged and reported in the result.
        """
        start_time = time.time()
        timeline = self.plan(request)
        return await self.render_timeline(timeline, request, progress_callback, start_time)

    async def render_timeline(self,
                              timeline: Timeline,
                              request: VideoAssemblyRequest,
                              progress_callback: Optional[ProgressCallback] = None,
                              start_time: Optional[float] = None) -> VideoAssemblyResult:
        start_time = start_time or time.time()
        output_name = request.output_filename or self.config.assembly.default_output_filename
        output_path = self.output_dir / output_name

        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        work_dir = Path(tempfile.mkdtemp(prefix='render_', dir=self.temp_dir))

        progress = RenderProgress(total_segments=len(timeline), warnings=list(timeline.warnings))
        self._report(progress, progress_callback)

        try:
            self.logger.info(f"Starting video assembly with {len(timeline)} segments -> {output_path}")
            segment_paths = await self._render_segments(timeline, request.render, work_dir,
                                                        progress, progress_callback)

            progress.current_step = "concatenating"
            progress.progress_percent = 85.0
            self._report(progress, progress_callback)
            video_path = await self.engine.concat(segment_paths, work_dir / "video_concat.mp4")

            progress.current_step = "muxing_audio"
            progress.progress_percent = 95.0
            self._report(progress, progress_callback)
            await self.engine.mux(video_path, request.audio_path, timeline.master_duration, output_path)

            progress.current_step = "completed"
            progress.progress_percent = 100.0
            self._report(progress, progress_callback)

            render_time = time.time() - start_time
            file_size = output_path.stat().st_size / (1024**2) if output_path.exists() else 0.0
            self.logger.info(f"Video assembly completed in {render_time:.1f}s: {output_path}")

            return VideoAssemblyResult(
                success=True,
                output_path=output_path,
                total_duration=timeline.master_duration,
                file_size_mb=file_size,
                render_time_seconds=render_time,
                clips_rendered=len(timeline.clip_segments),
                fillers_rendered=len(timeline.black_segments),
                warnings=list(timeline.warnings),
            )

        except (MediaError, OSError) as e:
            self.logger.error(f"Video assembly failed: {e}")
            progress.errors.append(str(e))
            return VideoAssemblyResult(
                success=False,
                errors=[str(e)],
                warnings=list(timeline.warnings),
                render_time_seconds=time.time() - start_time
            )
        finally:
            if self.config.assembly.keep_temp_files:
                self.logger.info(f"Keeping temporary files in {work_dir}")
            else:
                shutil.rmtree(work_dir, ignore_errors=True)

    async def _render_segments(self,
                               timeline: Timeline,
                               render: RenderSettings,
                               work_dir: Path,
                               progress: RenderProgress,
                               progress_callback: Optional[ProgressCallback]) -> List[Path]:
        """Render every segment in timeline order"""
        paths = []
        total = len(timeline)

        for i, segment in enumerate(timeline.segments):
            progress.current_segment = i + 1
            progress.current_step = f"processing_segment_{i+1}_of_{total}"
            progress.progress_percent = (i / total) * 80.0
            self._report(progress, progress_callback)

            output = work_dir / f"segment_{i:04d}.mp4"
            if isinstance(segment, BlackSegment):
                await self.engine.render_black(segment.duration, output, render)
            else:
                source_duration = self._source_duration(segment.ref)
                await self.engine.render_clip(segment.ref, segment.duration, output, render, source_duration)
            paths.append(output)

        return paths

    def _source_duration(self, source_ref: str) -> Optional[float]:
        """Source length for retiming, None when clips are only trimmed"""
        if self.config.assembly.clip_fit != "stretch":
            return None
        try:
            return self.probe(source_ref)
        except Exception as e:
            self.logger.warning(f"Could not get clip duration for {source_ref}, trimming instead: {e}")
            return None

    @staticmethod
    def _report(progress: RenderProgress, progress_callback: Optional[ProgressCallback]) -> None:
        if progress_callback:
            progress_callback(progress)
