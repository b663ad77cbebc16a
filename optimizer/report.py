"""Console output: configuration banner, per-file lines and the run summary."""
import sys
from typing import Optional, TextIO

from optimizer.batch import RunStatistics
from optimizer.conversion.models import ConversionConfig, ConversionOutcome, FileTask, OutcomeStatus

RULE = "=" * 60


def format_bytes(size: int) -> str:
    """1536 -> '1.5 KB'. Negative sizes keep their sign."""
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    value = float(abs(size))
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    sign = "-" if size < 0 else ""
    return f"{sign}{round(value, 2):g} {units[i]}"


class Reporter:
    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    def _print(self, line: str = "") -> None:
        print(line, file=self.stream)

    def print_config(self, config: ConversionConfig) -> None:
        fmt = config.output_format.value.upper()
        self._print("Configuration:")
        self._print(RULE)
        if config.files:
            self._print(f"Files:             {len(config.files)} given on the command line")
        else:
            self._print(f"Assets Directory:  {config.input_root}")
        self._print(f"Supported Formats: {', '.join(sorted(config.allowed_extensions))}")
        self._print(f"Output Format:     {fmt}")
        self._print(f"{fmt} Quality:      {'lossless' if config.lossless else config.quality}")
        self._print(f"{fmt} Effort:       {config.effort}")
        self._print(RULE)
        self._print()

    def print_scanning(self, root) -> None:
        self._print(f"Scanning directory: {root}")
        self._print()

    def print_found(self, count: int) -> None:
        if count == 0:
            self._print("No files found. Please check the ASSETS_DIR path.")
        else:
            self._print(f"Found {count} files to process")
            self._print()

    def print_outcome(self, task: FileTask, outcome: ConversionOutcome) -> None:
        name = task.input_path.name
        if outcome.status is OutcomeStatus.SKIPPED:
            self._print(f"Skipped ({outcome.reason}): {name}")
        elif outcome.status is OutcomeStatus.FAILED:
            self._print(f"Error converting {name}: {outcome.reason}")
        else:
            dims = f" ({outcome.media.width}x{outcome.media.height})" if outcome.media else ""
            self._print(f"Converted: {name}{dims}")
            self._print(
                f"  {task.output_path.suffix.lstrip('.').upper()}: {format_bytes(outcome.output_bytes)}"
                f" ({outcome.savings_percent:.1f}% smaller)"
            )

    def print_summary(self, stats: RunStatistics, config: ConversionConfig) -> None:
        fmt = config.output_format.value.upper()
        self._print()
        self._print(RULE)
        self._print("OPTIMIZATION SUMMARY")
        self._print(RULE)
        self._print(f"Total files found:      {stats.total}")
        self._print(f"Successfully converted: {stats.converted}")
        self._print(f"Skipped (existing):     {stats.skipped}")
        self._print(f"Errors:                 {stats.failed}")
        self._print()
        self._print(f"Original total size:    {format_bytes(stats.original_bytes)}")
        self._print(f"{fmt} total size:{' ' * (11 - len(fmt))}{format_bytes(stats.output_bytes)}")
        if stats.original_bytes > 0:
            self._print()
            self._print(f"{fmt} savings:          {stats.savings_percent:.1f}% ({format_bytes(stats.saved_bytes)})")
        if stats.failures:
            self._print()
            self._print("Failed files:")
            for outcome in stats.failures:
                self._print(f"  - {outcome.task.input_path}: {outcome.reason}")
        if stats.cancelled:
            self._print()
            self._print("Run cancelled before all files were processed.")
        self._print(RULE)
