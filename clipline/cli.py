"""
clipline command line

Assemble one video from a master audio track and clips placed on its timeline.
Installed as the `clipline` console script; `python main.py` runs the same code.
"""

import asyncio
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn
from rich.table import Table

from .timeline import ClipSpec, Timeline, TimelineError
from .utils.config import Config
from .utils.logger import setup_logging
from .video_assembly import FFmpegEngine, VideoAssembler, VideoAssemblyRequest, RenderSettings

DEFAULT_CONFIG_PATH = Path("configs") / "config.yaml"

console = Console()


def render_defaults(config: Config) -> RenderSettings:
    return RenderSettings(width=config.render.width, height=config.render.height, fps=config.render.fps)


def load_config(config_path: Optional[str] = None) -> Config:
    """Load the given config, else ./configs/config.yaml if present, else built-in defaults"""
    if config_path:
        return Config.load(config_path)
    if DEFAULT_CONFIG_PATH.exists():
        return Config.load(str(DEFAULT_CONFIG_PATH))
    return Config().apply_env_overrides()


def parse_clip_arg(value: str) -> Optional[ClipSpec]:
    """Parse PATH:START:END. Rows with an empty path or time are ignored."""
    parts = value.rsplit(':', 2)
    if len(parts) != 3:
        raise ValueError(f"Clip must look like PATH:START:END, got '{value}'")
    path, start, end = (part.strip() for part in parts)
    if not path or not start or not end:
        return None
    return ClipSpec(source_ref=path, start_time=float(start), end_time=float(end))


def build_request(args: argparse.Namespace, config: Config) -> VideoAssemblyRequest:
    """Combine a request file (if any) with command line overrides"""
    if args.request:
        request = VideoAssemblyRequest.load(args.request, default_render=render_defaults(config))
    elif args.audio:
        request = VideoAssemblyRequest(audio_path=Path(args.audio), render=render_defaults(config))
    else:
        raise ValueError("Main audio file is required (--audio or --request)")

    clips: List[ClipSpec] = []
    for value in args.clip or []:
        clip = parse_clip_arg(value)
        if clip is None:
            console.print(f"[yellow]⚠[/yellow] Ignoring incomplete clip '{value}'")
            continue
        clips.append(clip)

    updates = {}
    if clips:
        updates['clips'] = list(request.clips) + clips
    if args.audio:
        updates['audio_path'] = Path(args.audio)
    if args.output:
        updates['output_filename'] = args.output
    if args.fallback_duration is not None:
        updates['fallback_duration'] = args.fallback_duration

    render_updates = {k: v for k, v in (('width', args.width), ('height', args.height), ('fps', args.fps))
                      if v is not None}
    if render_updates:
        updates['render'] = RenderSettings(**{**request.render.model_dump(), **render_updates})

    # Re-validate so overrides go through the same checks as file input
    return VideoAssemblyRequest(**{**request.model_dump(), **updates})


class ClipLineApp:
    """Main coordinator: config, logging, engine lifecycle"""

    def __init__(self, config_path: Optional[str] = None):
        self.config = load_config(config_path)
        self.logger = setup_logging(self.config)

    def show_plan(self, timeline: Timeline, as_json: bool = False) -> None:
        """Print the planned segments"""
        if as_json:
            console.print_json(timeline.model_dump_json())
            return

        table = Table(title=f"Timeline - {timeline.master_duration:.2f}s @ {timeline.frame_rate:g} fps")
        table.add_column("#", justify="right")
        table.add_column("Type")
        table.add_column("Start", justify="right")
        table.add_column("Duration", justify="right")
        table.add_column("Frames", justify="right")
        table.add_column("Source")
        for i, segment in enumerate(timeline.segments, start=1):
            source = getattr(segment, 'ref', '')
            table.add_row(str(i), segment.kind, f"{segment.start:.3f}s", f"{segment.duration:.3f}s",
                          str(segment.frames), source)
        console.print(table)

        for warning in timeline.warnings:
            console.print(f"[yellow]⚠[/yellow] {warning}")

    async def generate_video(self, request: VideoAssemblyRequest, plan_only: bool = False,
                             as_json: bool = False) -> Optional[str]:
        """Plan and (unless plan_only) render a single video"""
        if not request.clips:
            console.print("[yellow]⚠[/yellow] No video clips added. Will create black video with audio.")

        engine = FFmpegEngine(self.config)
        assembler = VideoAssembler(self.config, engine)
        timeline = assembler.plan(request)
        self.show_plan(timeline, as_json)
        if plan_only:
            return None

        with engine:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
                TimeElapsedColumn(),
                console=console,
                refresh_per_second=4,
                transient=False
            ) as progress:
                video_task = progress.add_task("[magenta]🎞️ Assembling video...", total=100)

                def assembly_progress_callback(render_progress):
                    progress.update(video_task, completed=render_progress.progress_percent,
                                    description=f"[magenta]🎞️ {render_progress.current_step}")

                result = await assembler.render_timeline(timeline, request, assembly_progress_callback)

        if not result.success:
            raise RuntimeError(f"Video assembly failed: {'; '.join(result.errors)}")

        console.print("\n[bold green]🎉 Video Generation Complete![/bold green]")
        console.print(f"[green]🎬[/green] Duration: {result.total_duration:.2f}s "
                      f"({result.clips_rendered} clips, {result.fillers_rendered} black fillers)")
        console.print(f"[green]💾[/green] File size: {result.file_size_mb:.1f}MB")
        console.print(f"[green]⏱️[/green] Render time: {result.render_time_seconds:.1f}s")
        console.print(f"[green]✅[/green] Video saved: {result.output_path}")
        return str(result.output_path)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Assemble a video from a master audio track and timed clips")
    parser.add_argument("--audio", type=str, help="Master audio file (defines the output length)")
    parser.add_argument("--clip", action="append", metavar="PATH:START:END",
                        help="Clip and its window on the output timeline in seconds (repeatable)")
    parser.add_argument("--request", type=str, help="YAML/JSON request file with audio, clips and render settings")
    parser.add_argument("--width", type=int, help="Output width")
    parser.add_argument("--height", type=int, help="Output height")
    parser.add_argument("--fps", type=float, help="Output frame rate")
    parser.add_argument("--output", type=str, help="Output file name (default from config: web_video.mp4)")
    parser.add_argument("--fallback-duration", type=float,
                        help="Duration in seconds to use when the audio cannot be probed")
    parser.add_argument("--config", type=str, default=None,
                        help="Path to configuration file (default: ./configs/config.yaml, else built-in defaults)")
    parser.add_argument("--plan-only", action="store_true", help="Print the timeline without rendering")
    parser.add_argument("--json", action="store_true", help="Print the timeline as JSON")
    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    # Local env for binary overrides (FFMPEG_BINARY, FFPROBE_BINARY)
    load_dotenv(dotenv_path=Path.cwd() / ".env.local")

    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        app = ClipLineApp(args.config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]💥[/red] Could not load configuration: {e}")
        sys.exit(1)

    try:
        request = build_request(args, app.config)
    except (FileNotFoundError, ValueError) as e:
        parser.error(str(e))

    try:
        asyncio.run(app.generate_video(request, plan_only=args.plan_only, as_json=args.json))
    except KeyboardInterrupt:
        console.print("\n[yellow]⏹️[/yellow] Stopped by user")
    except TimelineError as e:
        console.print(f"[red]💥[/red] Invalid input ({e.field}): {e}")
        sys.exit(1)
    except Exception as e:
        app.logger.error(f"Video generation failed: {e}")
        console.print(f"[red]💥[/red] Fatal error: {e}")
        sys.exit(1)
