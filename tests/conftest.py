"""Shared fixtures for clipline tests"""

from pathlib import Path

import pytest

from clipline.utils.config import Config
from clipline.video_assembly.media_errors import MediaEngineError


class FakeEngine:
    """Records engine calls instead of running ffmpeg"""

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if name == self.fail_on:
            raise MediaEngineError(f"FFmpeg {name} failed: boom")

    async def render_black(self, duration, output, render):
        self._record('render_black', duration, Path(output))
        Path(output).write_bytes(b'black')
        return Path(output)

    async def render_clip(self, source, duration, output, render, source_duration=None):
        self._record('render_clip', source, duration, Path(output), source_duration)
        Path(output).write_bytes(b'clip')
        return Path(output)

    async def concat(self, segment_paths, output):
        self._record('concat', [Path(p) for p in segment_paths], Path(output))
        Path(output).write_bytes(b'video')
        return Path(output)

    async def mux(self, video_path, audio_path, duration, output):
        self._record('mux', Path(video_path), Path(audio_path), duration, Path(output))
        Path(output).write_bytes(b'final')
        return Path(output)

    def names(self):
        return [call[0] for call in self.calls]


@pytest.fixture
def config(tmp_path):
    cfg = Config()
    cfg.paths.output = str(tmp_path / 'output')
    cfg.paths.temp = str(tmp_path / 'temp')
    cfg.paths.logs = str(tmp_path / 'logs')
    return cfg


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def repo_root():
    return Path(__file__).resolve().parent.parent


@pytest.fixture
def make_engine():
    return FakeEngine
