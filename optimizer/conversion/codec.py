"""Codec adapters: Pillow for images, ffmpeg for video. One file per call, no retries."""
import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

from PIL import Image

from optimizer.config import (
    FFMPEG_BIN,
    FFMPEG_TIMEOUT,
    FFPROBE_BIN,
    IMAGE_EXTENSIONS,
    VIDEO_EXTENSIONS,
)
from optimizer.conversion.models import (
    LOSSLESS_AVIF_UNSUPPORTED,
    EncodeParams,
    EncodeResult,
    MediaInfo,
    MediaType,
    OutputFormat,
)
from optimizer.errors import EncodeFailure, UnreadableInput

logger = logging.getLogger("optimizer.codec")

PILLOW_FORMATS = {OutputFormat.WEBP: "WEBP", OutputFormat.AVIF: "AVIF"}


def _partial_path(output_path: Path) -> Path:
    # Hidden sibling with a suffix no scan ever picks up
    return output_path.with_name(f".{output_path.name}.part")


def _finish(partial: Path, output_path: Path) -> EncodeResult:
    os.replace(partial, output_path)
    return EncodeResult(output_bytes=output_path.stat().st_size)


class Codec:
    """Capability surface the batch driver calls through."""

    def probe(self, path: Path) -> MediaInfo:
        raise NotImplementedError

    def encode(self, path: Path, output_path: Path, params: EncodeParams) -> EncodeResult:
        raise NotImplementedError


class PillowCodec(Codec):
    """Still and animated images through Pillow's WebP and AVIF plugins."""

    def probe(self, path: Path) -> MediaInfo:
        try:
            with Image.open(path) as img:
                width, height = img.size
                frames = getattr(img, "n_frames", 1)
        except Exception as e:
            raise UnreadableInput(path, str(e)) from e
        return MediaInfo(width=width, height=height, frame_count=frames)

    @staticmethod
    def save_options(params: EncodeParams) -> dict:
        if params.output_format is OutputFormat.AVIF:
            # libavif speed runs the other way: 0 slowest, 9 and up fastest
            save_kw: dict = {"quality": params.quality, "speed": 9 - params.effort}
        else:
            save_kw = {"quality": params.quality, "method": params.effort, "lossless": params.lossless}
            if params.animated:
                save_kw["loop"] = params.loop
        if params.animated:
            save_kw["save_all"] = True
        return save_kw

    def encode(self, path: Path, output_path: Path, params: EncodeParams) -> EncodeResult:
        if params.lossless and params.output_format is OutputFormat.AVIF:
            raise EncodeFailure(path, LOSSLESS_AVIF_UNSUPPORTED)
        partial = _partial_path(output_path)
        save_kw = self.save_options(params)
        try:
            with Image.open(path) as img:
                if params.animated:
                    out_img = img
                elif img.mode not in ("RGB", "RGBA"):
                    out_img = img.convert("RGBA" if img.has_transparency_data else "RGB")
                else:
                    out_img = img
                out_img.save(partial, format=PILLOW_FORMATS[params.output_format], **save_kw)
            return _finish(partial, output_path)
        except Exception as e:
            raise EncodeFailure(path, str(e)) from e
        finally:
            partial.unlink(missing_ok=True)


class FfmpegCodec(Codec):
    """Video sources, encoded to animated WebP or AVIF by the ffmpeg executable."""

    def __init__(self, ffmpeg: str = FFMPEG_BIN, ffprobe: str = FFPROBE_BIN, timeout: int = FFMPEG_TIMEOUT):
        self.ffmpeg = ffmpeg
        self.ffprobe = ffprobe
        self.timeout = timeout

    def probe(self, path: Path) -> MediaInfo:
        cmd = [
            self.ffprobe, "-v", "error",
            "-select_streams", "v:0",
            "-show_entries", "stream=width,height,nb_frames",
            "-of", "json",
            str(path),
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise UnreadableInput(path, "ffprobe not installed") from e
        except subprocess.TimeoutExpired as e:
            raise UnreadableInput(path, f"ffprobe timed out after {self.timeout}s") from e
        if result.returncode != 0:
            raise UnreadableInput(path, (result.stderr or "ffprobe failed").strip())
        try:
            streams = json.loads(result.stdout or "{}").get("streams") or []
        except ValueError as e:
            raise UnreadableInput(path, f"unexpected ffprobe output: {e}") from e
        if not streams:
            raise UnreadableInput(path, "no video stream")
        stream = streams[0]
        nb_frames = str(stream.get("nb_frames", ""))
        return MediaInfo(
            width=int(stream.get("width") or 0),
            height=int(stream.get("height") or 0),
            frame_count=int(nb_frames) if nb_frames.isdigit() else 0,
            media_type=MediaType.VIDEO,
        )

    @staticmethod
    def encoder_args(params: EncodeParams) -> list[str]:
        if params.output_format is OutputFormat.AVIF:
            return [
                "-c:v", "libaom-av1",
                "-crf", str(round(63 - params.quality * 63 / 100)), "-b:v", "0",
                "-cpu-used", str(round((9 - params.effort) * 8 / 9)),
                "-pix_fmt", "yuv420p",
                "-f", "avif",
            ]
        return [
            "-c:v", "libwebp",
            "-lossless", "1" if params.lossless else "0",
            "-compression_level", str(params.effort),
            "-q:v", str(params.quality),
            "-loop", str(params.loop),
            "-f", "webp",
        ]

    def encode(self, path: Path, output_path: Path, params: EncodeParams) -> EncodeResult:
        if params.lossless and params.output_format is OutputFormat.AVIF:
            raise EncodeFailure(path, LOSSLESS_AVIF_UNSUPPORTED)
        partial = _partial_path(output_path)
        cmd = [
            self.ffmpeg, "-y", "-i", str(path),
            "-map", "0:v:0", "-an", "-fps_mode", "passthrough",
            *self.encoder_args(params),
            str(partial),
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
            if result.returncode != 0:
                message = (result.stderr or result.stdout or "").strip()
                raise RuntimeError(message.splitlines()[-1] if message else "ffmpeg failed")
            return _finish(partial, output_path)
        except FileNotFoundError as e:
            logger.error("ffmpeg not found. Install ffmpeg for video conversion.")
            raise EncodeFailure(path, "ffmpeg not installed") from e
        except subprocess.TimeoutExpired as e:
            raise EncodeFailure(path, f"ffmpeg timed out after {self.timeout}s") from e
        except (RuntimeError, OSError) as e:
            raise EncodeFailure(path, str(e)) from e
        finally:
            partial.unlink(missing_ok=True)


class MediaCodec(Codec):
    """Routes each file to the image or video codec by extension."""

    def __init__(self, image_codec: Optional[Codec] = None, video_codec: Optional[Codec] = None):
        self.image_codec = image_codec or PillowCodec()
        self.video_codec = video_codec or FfmpegCodec()

    @staticmethod
    def get_media_type(path: Path) -> Optional[MediaType]:
        ext = path.suffix.lower()
        if ext in IMAGE_EXTENSIONS:
            return MediaType.IMAGE
        if ext in VIDEO_EXTENSIONS:
            return MediaType.VIDEO
        return None

    def _codec_for(self, path: Path) -> Codec:
        media_type = self.get_media_type(path)
        if media_type is MediaType.VIDEO:
            return self.video_codec
        if media_type is MediaType.IMAGE:
            return self.image_codec
        raise UnreadableInput(path, f"Unsupported file type: {path.suffix}")

    def probe(self, path: Path) -> MediaInfo:
        return self._codec_for(path).probe(path)

    def encode(self, path: Path, output_path: Path, params: EncodeParams) -> EncodeResult:
        return self._codec_for(path).encode(path, output_path, params)
