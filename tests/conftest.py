"""Shared fixtures: real images on disk and a scripted codec double."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from optimizer.conversion.codec import Codec
from optimizer.conversion.models import EncodeParams, EncodeResult, MediaInfo
from optimizer.errors import EncodeFailure, UnreadableInput

ENV_VARS = (
    "ASSETS_DIR",
    "WEBP_QUALITY",
    "WEBP_EFFORT",
    "AVIF_QUALITY",
    "AVIF_EFFORT",
    "LOSSLESS",
    "INCLUDE_VIDEO",
    "AVIF_ANIMATED_MAX_EFFORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# === Image factories ===


def write_jpeg(path: Path, size=(32, 24), color=(200, 30, 30)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, "JPEG", quality=95)
    return path


def write_png(path: Path, size=(20, 20), color=(10, 120, 240, 128)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path, "PNG")
    return path


def write_gif(path: Path, frames: int = 3, size=(16, 16)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    colors = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0), (0, 255, 255)]
    images = [Image.new("RGB", size, colors[i % len(colors)]) for i in range(frames)]
    images[0].save(path, "GIF", save_all=True, append_images=images[1:], duration=100, loop=0)
    return path


def write_corrupt(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"this is not an image at all")
    return path


@pytest.fixture
def image_tree(tmp_path: Path) -> Path:
    """a.jpg (new), b.png (already has b.webp), c.jpg (corrupt)."""
    write_jpeg(tmp_path / "a.jpg")
    write_png(tmp_path / "b.png")
    (tmp_path / "b.webp").write_bytes(b"previous output")
    write_corrupt(tmp_path / "c.jpg")
    return tmp_path


# === Codec double ===


class FakeCodec(Codec):
    """Writes a fixed payload; fails for configured file names."""

    def __init__(self, unreadable=(), broken=(), frames=None, payload=b"x" * 10):
        self.unreadable = set(unreadable)
        self.broken = set(broken)
        self.frames = frames or {}
        self.payload = payload
        self.probed: list[Path] = []
        self.encoded: list[tuple[Path, Path, EncodeParams]] = []

    def probe(self, path: Path) -> MediaInfo:
        self.probed.append(path)
        if path.name in self.unreadable:
            raise UnreadableInput(path, "cannot identify image file")
        return MediaInfo(width=8, height=8, frame_count=self.frames.get(path.name, 1))

    def encode(self, path: Path, output_path: Path, params: EncodeParams) -> EncodeResult:
        self.encoded.append((path, output_path, params))
        if path.name in self.broken:
            raise EncodeFailure(path, "encoder exploded")
        output_path.write_bytes(self.payload)
        return EncodeResult(output_bytes=len(self.payload))


@pytest.fixture
def fake_codec() -> FakeCodec:
    return FakeCodec()
