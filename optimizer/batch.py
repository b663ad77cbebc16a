"""Sequential batch driver and its run statistics."""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional

from optimizer.conversion.codec import Codec
from optimizer.conversion.models import ConversionConfig, ConversionOutcome, FileTask, OutcomeStatus
from optimizer.conversion.policy import decide
from optimizer.errors import ConversionError, EncodeFailure

logger = logging.getLogger("optimizer.batch")

OutcomeCallback = Callable[[FileTask, ConversionOutcome], None]


@dataclass
class RunStatistics:
    """Counters for one run. Owned by run_batch; read-only once returned."""

    total: int = 0
    converted: int = 0
    skipped: int = 0
    failed: int = 0
    original_bytes: int = 0
    output_bytes: int = 0
    cancelled: bool = False
    failures: list[ConversionOutcome] = field(default_factory=list)

    def record(self, outcome: ConversionOutcome) -> None:
        self.total += 1
        if outcome.status is OutcomeStatus.CONVERTED:
            self.converted += 1
            self.original_bytes += outcome.original_bytes
            self.output_bytes += outcome.output_bytes
        elif outcome.status is OutcomeStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
            self.failures.append(outcome)

    @property
    def saved_bytes(self) -> int:
        return self.original_bytes - self.output_bytes

    @property
    def savings_percent(self) -> float:
        if self.original_bytes <= 0:
            return 0.0
        return (1 - self.output_bytes / self.original_bytes) * 100.0


def convert_one(task: FileTask, config: ConversionConfig, codec: Codec) -> ConversionOutcome:
    """Run one task to an outcome. Per-file errors become a FAILED outcome."""
    try:
        decision = decide(task.input_path, config, codec)
        if decision.skip:
            return ConversionOutcome.skipped(task, decision.reason)
        original_bytes = task.input_path.stat().st_size
        result = codec.encode(task.input_path, decision.output_path, decision.params)
    except ConversionError as e:
        return ConversionOutcome.failed(task, e)
    except OSError as e:
        return ConversionOutcome.failed(task, EncodeFailure(task.input_path, e.strerror or str(e)))
    return ConversionOutcome.converted(task, original_bytes, result.output_bytes, media=decision.media)


def run_batch(
    tasks: Iterable[FileTask],
    config: ConversionConfig,
    codec: Codec,
    on_outcome: Optional[OutcomeCallback] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> RunStatistics:
    """
    Convert tasks strictly one at a time; each encode may hold a whole decoded
    frame set in memory. A failing file never stops the batch. When two inputs
    map to the same output (photo.jpg, photo.png) every input after the first
    fails. should_cancel is checked between tasks; remaining tasks are left
    unconsumed when it returns True.
    """
    stats = RunStatistics()
    # output path -> input that claimed it earlier in this run
    claimed: dict[Path, Path] = {}
    for task in tasks:
        if should_cancel and should_cancel():
            stats.cancelled = True
            logger.warning("Run cancelled after %s files", stats.total)
            break
        owner = claimed.setdefault(task.output_path, task.input_path)
        if owner != task.input_path:
            outcome = ConversionOutcome.failed(
                task, EncodeFailure(task.input_path, f"output {task.output_path.name} already claimed by {owner.name}")
            )
        else:
            outcome = convert_one(task, config, codec)
        if outcome.status is OutcomeStatus.FAILED:
            logger.error("Error converting %s: %s", task.input_path, outcome.reason)
        elif outcome.status is OutcomeStatus.CONVERTED:
            logger.debug("Converted %s -> %s", task.input_path.name, task.output_path.name)
        stats.record(outcome)
        if on_outcome:
            on_outcome(task, outcome)
    logger.info(
        "Batch finished: %s total, %s converted, %s skipped, %s failed",
        stats.total, stats.converted, stats.skipped, stats.failed,
    )
    return stats
