"""Per-file conversion decision: output path, skip, encoder parameters."""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from optimizer.conversion.models import ConversionConfig, EncodeParams, MediaInfo, output_path_for
from optimizer.errors import EncodeFailure

logger = logging.getLogger("optimizer.policy")

SKIP_REASON_EXISTS = "already converted"


@dataclass(frozen=True)
class Decision:
    output_path: Path
    skip: bool
    params: EncodeParams
    reason: Optional[str] = None
    media: Optional[MediaInfo] = None


def build_encode_params(config: ConversionConfig, animated: bool = False) -> EncodeParams:
    effort = config.effort
    if animated:
        effort = min(effort, config.animated_effort_cap())
    return EncodeParams(
        output_format=config.output_format,
        quality=config.quality,
        effort=effort,
        lossless=config.lossless,
        animated=animated,
        loop=0,
    )


def decide(input_path: Path, config: ConversionConfig, codec) -> Decision:
    """
    Decide what to do with one input file.
    - skip when the output already exists (the codec is not consulted)
    - otherwise probe the input; multi-frame and video sources keep all frames,
      loop forever, and have effort capped for the output format.
    The input path is never chosen as the output path.
    """
    output_path = output_path_for(input_path, config.output_format)
    if output_path == input_path:
        raise EncodeFailure(input_path, "output would overwrite the input file")
    if output_path.exists():
        return Decision(
            output_path=output_path,
            skip=True,
            params=build_encode_params(config),
            reason=SKIP_REASON_EXISTS,
        )
    media = codec.probe(input_path)
    params = build_encode_params(config, animated=media.is_animated)
    if params.effort != config.effort:
        logger.debug("Capped effort %s -> %s for animated %s", config.effort, params.effort, input_path.name)
    return Decision(output_path=output_path, skip=False, params=params, media=media)
