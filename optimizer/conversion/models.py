"""Conversion configuration, task and outcome models."""
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

from optimizer import config as app_config
from optimizer.errors import ConfigError


class OutputFormat(str, Enum):
    WEBP = "webp"
    AVIF = "avif"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @property
    def effort_range(self) -> tuple[int, int]:
        if self is OutputFormat.AVIF:
            return app_config.AVIF_EFFORT_RANGE
        return app_config.WEBP_EFFORT_RANGE

    @classmethod
    def parse(cls, value: str) -> "OutputFormat":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ConfigError(f"Unsupported output format: {value!r} (expected webp or avif)") from None


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class OutcomeStatus(str, Enum):
    CONVERTED = "converted"
    SKIPPED = "skipped"
    FAILED = "failed"


OUTPUT_EXTENSIONS = frozenset(f.extension for f in OutputFormat)

# Pillow and libaom both go through YUV, so decoded AVIF never matches the input bit for bit
LOSSLESS_AVIF_UNSUPPORTED = "lossless output is only supported for webp (avif round-trips through YUV)"

DEFAULT_ANIMATED_EFFORT_CAPS = {
    OutputFormat.WEBP: app_config.WEBP_EFFORT_RANGE[1],
    OutputFormat.AVIF: app_config.ANIMATED_AVIF_MAX_EFFORT,
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _env_bool(environ: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean (true/false), got {raw!r}")


def _check_range(name: str, value: int, bounds: tuple[int, int]) -> None:
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if not low <= value <= high:
        raise ConfigError(f"{name} must be between {low} and {high}, got {value}")


@dataclass(frozen=True)
class ConversionConfig:
    """Settings for one run. Validated on construction, never mutated."""

    output_format: OutputFormat = OutputFormat.WEBP
    quality: int = app_config.WEBP_DEFAULT_QUALITY
    effort: int = app_config.WEBP_DEFAULT_EFFORT
    lossless: bool = False
    input_root: Optional[Path] = None
    files: tuple[Path, ...] = ()
    include_video: bool = False
    animated_effort_caps: Mapping[OutputFormat, int] = field(
        default_factory=lambda: dict(DEFAULT_ANIMATED_EFFORT_CAPS)
    )

    def __post_init__(self):
        if not isinstance(self.output_format, OutputFormat):
            object.__setattr__(self, "output_format", OutputFormat.parse(str(self.output_format)))
        if self.input_root is not None:
            object.__setattr__(self, "input_root", Path(self.input_root))
        object.__setattr__(self, "files", tuple(Path(p) for p in self.files))
        if self.input_root is None and not self.files:
            raise ConfigError("Either a scan directory or at least one file is required")
        if self.input_root is not None and self.files:
            raise ConfigError("A scan directory and explicit files cannot be combined")
        _check_range("quality", self.quality, app_config.QUALITY_RANGE)
        _check_range(f"{self.output_format.value} effort", self.effort, self.output_format.effort_range)
        if self.lossless and self.output_format is OutputFormat.AVIF:
            raise ConfigError(LOSSLESS_AVIF_UNSUPPORTED)
        for fmt, cap in self.animated_effort_caps.items():
            _check_range(f"animated {OutputFormat(fmt).value} effort cap", cap, OutputFormat(fmt).effort_range)

    @property
    def allowed_extensions(self) -> frozenset[str]:
        if self.include_video:
            return app_config.IMAGE_EXTENSIONS | app_config.VIDEO_EXTENSIONS
        return app_config.IMAGE_EXTENSIONS

    def animated_effort_cap(self) -> int:
        return self.animated_effort_caps.get(self.output_format, self.output_format.effort_range[1])

    @classmethod
    def from_env(
        cls,
        output_format: OutputFormat = OutputFormat.WEBP,
        environ: Optional[Mapping[str, str]] = None,
        files: tuple[Path, ...] = (),
        **overrides,
    ) -> "ConversionConfig":
        """
        Build a config from environment variables. Explicit keyword overrides
        (from the command line) win over the environment; a None override is ignored.
        """
        env = os.environ if environ is None else environ
        fmt = output_format if isinstance(output_format, OutputFormat) else OutputFormat.parse(output_format)
        if fmt is OutputFormat.AVIF:
            quality = _env_int(env, "AVIF_QUALITY", app_config.AVIF_DEFAULT_QUALITY)
            effort = _env_int(env, "AVIF_EFFORT", app_config.AVIF_DEFAULT_EFFORT)
        else:
            quality = _env_int(env, "WEBP_QUALITY", app_config.WEBP_DEFAULT_QUALITY)
            effort = _env_int(env, "WEBP_EFFORT", app_config.WEBP_DEFAULT_EFFORT)
        caps = dict(DEFAULT_ANIMATED_EFFORT_CAPS)
        caps[OutputFormat.AVIF] = _env_int(env, "AVIF_ANIMATED_MAX_EFFORT", caps[OutputFormat.AVIF])
        values = {
            "output_format": fmt,
            "quality": quality,
            "effort": effort,
            "lossless": _env_bool(env, "LOSSLESS"),
            "include_video": _env_bool(env, "INCLUDE_VIDEO"),
            "animated_effort_caps": caps,
        }
        if files:
            values["files"] = tuple(files)
        else:
            values["input_root"] = Path(env.get("ASSETS_DIR") or app_config.DEFAULT_ASSETS_DIR)
        values.update({k: v for k, v in overrides.items() if v is not None})
        if values.get("files"):
            values.pop("input_root", None)
        return cls(**values)


def output_path_for(input_path: Path, output_format: OutputFormat) -> Path:
    """name.ext -> name.webp / name.avif in the same directory."""
    return input_path.with_suffix(output_format.extension)


@dataclass(frozen=True)
class FileTask:
    input_path: Path
    output_path: Path

    @classmethod
    def for_path(cls, input_path: Path, output_format: OutputFormat) -> "FileTask":
        return cls(input_path=input_path, output_path=output_path_for(input_path, output_format))


@dataclass(frozen=True)
class EncodeParams:
    """Every encoder option, always present. Built by the conversion policy."""

    output_format: OutputFormat
    quality: int
    effort: int
    lossless: bool = False
    animated: bool = False
    loop: int = 0  # 0 = loop forever; only meaningful when animated


@dataclass(frozen=True)
class MediaInfo:
    width: int
    height: int
    frame_count: int = 1  # 0 when the container does not report it
    media_type: MediaType = MediaType.IMAGE

    @property
    def is_animated(self) -> bool:
        return self.frame_count > 1 or self.media_type is MediaType.VIDEO


@dataclass(frozen=True)
class EncodeResult:
    output_bytes: int


@dataclass(frozen=True)
class ConversionOutcome:
    """Result of one FileTask: converted, skipped or failed."""

    task: FileTask
    status: OutcomeStatus
    original_bytes: int = 0
    output_bytes: int = 0
    reason: Optional[str] = None
    error: Optional[Exception] = None
    media: Optional[MediaInfo] = None

    @classmethod
    def converted(
        cls, task: FileTask, original_bytes: int, output_bytes: int, media: Optional[MediaInfo] = None
    ) -> "ConversionOutcome":
        return cls(task, OutcomeStatus.CONVERTED, original_bytes=original_bytes, output_bytes=output_bytes, media=media)

    @classmethod
    def skipped(cls, task: FileTask, reason: str) -> "ConversionOutcome":
        return cls(task, OutcomeStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, task: FileTask, error: Exception) -> "ConversionOutcome":
        reason = getattr(error, "reason", None) or str(error)
        return cls(task, OutcomeStatus.FAILED, reason=reason, error=error)

    @property
    def savings_percent(self) -> float:
        if self.status is not OutcomeStatus.CONVERTED or self.original_bytes <= 0:
            return 0.0
        return (1 - self.output_bytes / self.original_bytes) * 100.0
