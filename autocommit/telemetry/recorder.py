"""Telemetry recorder - Persist generation stats on every exit path.

`TelemetryRecorder` is used as a context manager around everything that
follows a generation (commit, push). Its `__exit__` always records, so a
failed commit still leaves a log entry for the tokens already spent.
"""

import logging
import time
from pathlib import Path

from autocommit.errors import LogWriteError
from autocommit.output import print_warning, timing_line
from autocommit.telemetry.retry import enrich_result
from autocommit.telemetry.stats import GenerationStats, append_stats, global_log_path, repo_log_path

logger = logging.getLogger(__name__)


def record_generation(result, config, dry_run: bool, backend=None,
                      repo_root: Path | None = None, data_dir: Path | None = None,
                      sleep=time.sleep) -> GenerationStats:
    """Enrich `result` with backend stats and append it to the global and repo logs.

    Each sink is written independently; a failing sink is reported as a
    warning and never raises.
    """
    return record_generations([result], config, dry_run, backend, repo_root, data_dir, sleep)[0]


def record_generations(results, config, dry_run: bool, backend=None,
                       repo_root: Path | None = None, data_dir: Path | None = None,
                       sleep=time.sleep) -> list[GenerationStats]:
    stats_list = []
    for result in results:
        try:
            enriched = enrich_result(result, backend, sleep=sleep)
        except Exception as e:
            # Stats are best-effort; keep the optimistic values
            logger.debug("Stats enrichment for %s failed: %r", result.generation_id, e)
            enriched = result
        stats_list.append(GenerationStats.from_result(
            enriched,
            backend=config.backend,
            model=config.model,
            provider=config.provider,
            dry_run=dry_run,
        ))

    sinks = [global_log_path(data_dir)]
    if repo_root is not None:
        sinks.append(repo_log_path(repo_root))

    for sink in sinks:
        try:
            append_stats(stats_list, sink)
        except LogWriteError as e:
            logger.debug("Stats sink failed: %s", e)
            print_warning(f"Could not save generation stats: {e}")
    return stats_list


class TelemetryRecorder:
    """Records every added generation when the block exits, however it exits."""

    def __init__(self, config, dry_run: bool = False, backend=None,
                 repo_root: Path | None = None, data_dir: Path | None = None,
                 sleep=time.sleep):
        self.config = config
        self.dry_run = dry_run
        self.backend = backend
        self.repo_root = repo_root
        self.data_dir = data_dir
        self._sleep = sleep
        self._results = []
        self._start = None
        self._llm_seconds = None
        self.recorded: list[GenerationStats] = []

    def add(self, result) -> None:
        self._results.append(result)

    def set_llm_time(self, seconds: float) -> None:
        self._llm_seconds = seconds

    def __enter__(self):
        self._start = time.monotonic()
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._results:
            self.recorded = record_generations(
                self._results, self.config, self.dry_run, self.backend,
                self.repo_root, self.data_dir, self._sleep,
            )
        if self.config.timing_enabled:
            self._print_timing()
        return False

    def _print_timing(self) -> None:
        model = self.config.model
        if self.config.provider:
            model += f" (provider: {self.config.provider})"
        if self.config.temperature >= 0:
            model += f" temperature: {self.config.temperature}"
        print(timing_line(f"Model: {model}"))

        total = time.monotonic() - self._start
        line = f"Total time: {format_duration(total)}"
        if self._llm_seconds is not None:
            line += f" LLM query time: {format_duration(self._llm_seconds)}"
        print(timing_line(line))


def format_duration(seconds: float) -> str:
    ms = int(seconds * 1000)
    if ms < 1000:
        return f"{ms}ms"
    return f"{ms / 1000:.2f}s"
