"""Configuration management for clipline"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field


class QualityPreset(BaseModel):
    """x264 settings for one quality level"""
    preset: str = "medium"
    crf: int = Field(default=23, ge=0, le=51)


class RenderConfig(BaseModel):
    width: int = Field(default=1280, gt=0)
    height: int = Field(default=720, gt=0)
    fps: float = Field(default=30.0, gt=0)
    encoder: str = "libx264"
    pix_fmt: str = "yuv420p"
    audio_codec: str = "aac"
    audio_bitrate: str = "128k"
    quality: str = "balanced"
    quality_presets: Dict[str, QualityPreset] = {
        "draft": QualityPreset(preset="ultrafast", crf=28),
        "balanced": QualityPreset(preset="medium", crf=23),
        "quality": QualityPreset(preset="slow", crf=20),
    }

    def get_quality_preset(self, name: Optional[str] = None) -> QualityPreset:
        """Get encoder settings for a quality level, falling back to balanced"""
        return self.quality_presets.get(name or self.quality,
                                        self.quality_presets.get('balanced', QualityPreset()))


class AssemblyConfig(BaseModel):
    fallback_duration: Optional[float] = Field(default=None, gt=0)
    default_output_filename: str = "web_video.mp4"
    keep_temp_files: bool = False
    clip_fit: Literal["stretch", "trim"] = "stretch"  # stretch: retime whole source into its window


class BinariesConfig(BaseModel):
    ffmpeg: str = "ffmpeg"
    ffprobe: str = "ffprobe"


class PathsConfig(BaseModel):
    """Storage paths configuration"""
    output: str = "./output"
    temp: str = "./temp"
    logs: str = "./logs"


class Config(BaseModel):
    render: RenderConfig = Field(default_factory=RenderConfig)
    assembly: AssemblyConfig = Field(default_factory=AssemblyConfig)
    binaries: BinariesConfig = Field(default_factory=BinariesConfig)
    paths: PathsConfig = PathsConfig()
    logging: Dict[str, Any] = {}

    def apply_env_overrides(self) -> "Config":
        """Let FFMPEG_BINARY / FFPROBE_BINARY point at non-PATH installs"""
        self.binaries.ffmpeg = os.environ.get('FFMPEG_BINARY', self.binaries.ffmpeg)
        self.binaries.ffprobe = os.environ.get('FFPROBE_BINARY', self.binaries.ffprobe)
        return self

    @classmethod
    def load(cls, config_path: str) -> "Config":
        """Load configuration from YAML file"""
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data).apply_env_overrides()

    def save(self, config_path: str):
        """Save configuration to YAML file"""
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.model_dump(), f, default_flow_style=False)
