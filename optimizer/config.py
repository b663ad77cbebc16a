"""Application configuration. Loads defaults from environment and .env file."""
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from cwd; real environment variables win
load_dotenv()

# Directory scanned when no files are given on the command line
DEFAULT_ASSETS_DIR = Path.cwd() / "src" / "assets" / "images"

# Supported input formats
IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".webm", ".mov", ".avi", ".mkv", ".m4v"})

# Encoder defaults per output format (env overrides are applied per run)
WEBP_DEFAULT_QUALITY = 80
WEBP_DEFAULT_EFFORT = 6
AVIF_DEFAULT_QUALITY = 50
AVIF_DEFAULT_EFFORT = 4

# Valid ranges: quality is 0-100 for both, effort 0-6 for WebP and 0-9 for AVIF
QUALITY_RANGE = (0, 100)
WEBP_EFFORT_RANGE = (0, 6)
AVIF_EFFORT_RANGE = (0, 9)

# Multi-frame sources hold every decoded frame in memory, so effort is capped
ANIMATED_AVIF_MAX_EFFORT = 4

# ffmpeg / ffprobe (video sources only)
FFMPEG_BIN = os.getenv("FFMPEG_BIN", "ffmpeg")
FFPROBE_BIN = os.getenv("FFPROBE_BIN", "ffprobe")
FFMPEG_TIMEOUT = int(os.getenv("FFMPEG_TIMEOUT", "600"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("optimizer")


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
