"""Tests for FFmpeg command construction and engine lifecycle"""

import asyncio
import os
import subprocess
import sys

import ffmpeg
import pytest

from clipline.video_assembly import FFmpegEngine, MediaEngineError, RenderSettings, probe_duration
from clipline.video_assembly import DurationProbeError

RENDER = RenderSettings(width=1280, height=720, fps=30)


@pytest.fixture
def engine(config):
    return FFmpegEngine(config)


@pytest.fixture
def started_engine(engine, monkeypatch):
    def fake_run(args, **kwargs):
        return subprocess.CompletedProcess(args, 0, stdout="ffmpeg version 6.1\n", stderr="")

    monkeypatch.setattr(subprocess, 'run', fake_run)
    return engine.start()


class FakeProcess:
    def __init__(self, returncode, stderr=b""):
        self.returncode = returncode
        self._stderr = stderr

    async def communicate(self):
        return b"", self._stderr


def test_black_command_uses_lavfi_color_source(engine, tmp_path):
    args = engine.build_black_command(5.0, tmp_path / 'black.mp4', RENDER)
    joined = ' '.join(args)

    assert args[0] == 'ffmpeg'
    assert '-f lavfi' in joined
    assert 'color=c=black:s=1280x720:r=30:d=5.000000' in joined
    assert '-t 5.0' in joined
    assert 'libx264' in args
    assert args[-1] == '-y'


def test_clip_command_mutes_scales_and_retimes(engine, tmp_path):
    args = engine.build_clip_command(tmp_path / 'in.mp4', 5.0, tmp_path / 'out.mp4', RENDER, source_duration=10.0)
    joined = ' '.join(args)

    assert '-an' in args
    assert 'scale=1280:720' in joined
    assert 'setpts=0.500000*(PTS-STARTPTS)' in joined
    assert 'fps=fps=30' in joined
    assert 'tpad=' in joined and 'stop_mode=clone' in joined
    assert '-t 5.0' in joined
    assert str(tmp_path / 'out.mp4') in args


def test_clip_command_without_source_duration_only_trims(engine, tmp_path):
    joined = ' '.join(engine.build_clip_command('in.mp4', 5.0, tmp_path / 'out.mp4', RENDER))

    assert 'setpts=PTS-STARTPTS' in joined
    assert '*(PTS-STARTPTS)' not in joined


def test_mux_command_trims_to_master_duration(engine, tmp_path):
    args = engine.build_mux_command('video.mp4', 'song.mp3', 42.0, tmp_path / 'final.mp4')
    joined = ' '.join(args)

    assert '-i video.mp4' in joined
    assert '-i song.mp3' in joined
    assert '-t 42.0' in joined
    assert 'aac' in args


def test_concat_list_escapes_quotes(tmp_path):
    list_file = FFmpegEngine.write_concat_list([tmp_path / "it's.mp4", tmp_path / 'b.mp4'], tmp_path / 'list.txt')
    lines = list_file.read_text(encoding='utf-8').splitlines()

    assert lines[0] == f"file '{tmp_path}/it'\\''s.mp4'"
    assert lines[1] == f"file '{tmp_path / 'b.mp4'}'"


def test_operations_require_started_engine(engine, tmp_path):
    with pytest.raises(MediaEngineError, match='not running'):
        asyncio.run(engine.render_black(1.0, tmp_path / 'black.mp4', RENDER))


def test_start_fails_for_missing_binary(config):
    config.binaries.ffmpeg = 'clipline-no-such-ffmpeg'
    with pytest.raises(MediaEngineError, match='not available'):
        FFmpegEngine(config).start()


def test_context_manager_closes_engine(engine, monkeypatch):
    monkeypatch.setattr(subprocess, 'run',
                        lambda args, **kwargs: subprocess.CompletedProcess(args, 0, stdout="ffmpeg version 6.1\n"))
    with engine as running:
        assert running.is_running
        assert running.version == "ffmpeg version 6.1"
    assert not engine.is_running


def test_failed_ffmpeg_run_raises_with_stderr(started_engine, monkeypatch, tmp_path):
    async def fake_exec(*args, **kwargs):
        return FakeProcess(1, b"line one\nInvalid data found when processing input\n")

    monkeypatch.setattr(asyncio, 'create_subprocess_exec', fake_exec)

    with pytest.raises(MediaEngineError, match='Invalid data found'):
        asyncio.run(started_engine.render_clip('broken.mp4', 2.0, tmp_path / 'out.mp4', RENDER))


def test_successful_run_returns_output_path(started_engine, monkeypatch, tmp_path):
    seen = []

    async def fake_exec(*args, **kwargs):
        seen.append(args)
        return FakeProcess(0)

    monkeypatch.setattr(asyncio, 'create_subprocess_exec', fake_exec)

    output = asyncio.run(started_engine.concat([tmp_path / 'a.mp4', tmp_path / 'b.mp4'], tmp_path / 'joined.mp4'))

    assert output == tmp_path / 'joined.mp4'
    assert (tmp_path / 'joined.txt').exists()
    assert 'concat' in seen[0]


def test_concat_without_segments_fails(started_engine, tmp_path):
    with pytest.raises(MediaEngineError, match='No video segments'):
        asyncio.run(started_engine.concat([], tmp_path / 'joined.mp4'))


def test_probe_reads_format_duration(monkeypatch):
    monkeypatch.setattr(ffmpeg, 'probe', lambda path, cmd: {'format': {'duration': '12.480000'}, 'streams': []})
    assert probe_duration('song.mp3') == pytest.approx(12.48)


def test_probe_falls_back_to_stream_duration(monkeypatch):
    probe = {'format': {}, 'streams': [{'codec_type': 'audio', 'duration': 'N/A'}, {'duration': '7.5'}]}
    monkeypatch.setattr(ffmpeg, 'probe', lambda path, cmd: probe)
    assert probe_duration('song.mp3') == 7.5


def test_probe_error_is_wrapped(monkeypatch):
    def raise_error(path, cmd):
        raise ffmpeg.Error('ffprobe', b'', b'song.mp3: No such file or directory')

    monkeypatch.setattr(ffmpeg, 'probe', raise_error)
    with pytest.raises(DurationProbeError, match='No such file'):
        probe_duration('song.mp3')


def test_probe_without_duration_fails(monkeypatch):
    monkeypatch.setattr(ffmpeg, 'probe', lambda path, cmd: {'format': {}, 'streams': [{}]})
    with pytest.raises(DurationProbeError, match='No duration'):
        probe_duration('song.mp3')


SLOW_FFMPEG = """#!/bin/sh
if [ "$1" = "-version" ]; then
    echo "ffmpeg version 6.1-slow"
    exit 0
fi
echo $$ > "{pid_file}"
exec sleep 30
"""


@pytest.mark.skipif(sys.platform == 'win32', reason="needs a POSIX shell script as ffmpeg")
def test_cancelled_render_kills_ffmpeg(config, tmp_path):
    pid_file = tmp_path / 'ffmpeg.pid'
    script = tmp_path / 'slow-ffmpeg'
    script.write_text(SLOW_FFMPEG.format(pid_file=pid_file), encoding='utf-8')
    script.chmod(0o755)
    config.binaries.ffmpeg = str(script)

    async def render_then_cancel(engine):
        task = asyncio.create_task(engine.render_black(5.0, tmp_path / 'black.mp4', RENDER))
        for _ in range(200):
            if pid_file.exists() and pid_file.read_text().strip():
                break
            await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return int(pid_file.read_text().strip())

    with FFmpegEngine(config) as engine:
        pid = asyncio.run(render_then_cancel(engine))

    # The child was killed and reaped before the cancellation propagated
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


def test_engine_reused_across_event_loops(started_engine, monkeypatch, tmp_path):
    async def fake_exec(*args, **kwargs):
        return FakeProcess(0)

    monkeypatch.setattr(asyncio, 'create_subprocess_exec', fake_exec)

    # One engine handle reused across separate asyncio.run calls
    asyncio.run(started_engine.render_black(1.0, tmp_path / 'one.mp4', RENDER))
    asyncio.run(started_engine.render_black(1.0, tmp_path / 'two.mp4', RENDER))
