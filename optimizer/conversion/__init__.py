from .codec import Codec, FfmpegCodec, MediaCodec, PillowCodec
from .models import ConversionConfig, ConversionOutcome, EncodeParams, FileTask, OutcomeStatus, OutputFormat
from .policy import Decision, decide

__all__ = [
    "Codec",
    "ConversionConfig",
    "ConversionOutcome",
    "Decision",
    "EncodeParams",
    "FfmpegCodec",
    "FileTask",
    "MediaCodec",
    "OutcomeStatus",
    "OutputFormat",
    "PillowCodec",
    "decide",
]
