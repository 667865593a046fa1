"""Generation Telemetry Package"""

from autocommit.telemetry.stats import (
    GenerationStats, append_stats, data_home, global_log_path, repo_log_path, utc_timestamp,
)
from autocommit.telemetry.retry import MAX_ATTEMPTS, RETRY_DELAY, enrich_result, fetch_with_retry
from autocommit.telemetry.recorder import TelemetryRecorder, format_duration, record_generation
from autocommit.telemetry.summary import StatsSummary, load_summary, summarize

__all__ = [
    "GenerationStats",
    "append_stats",
    "data_home",
    "global_log_path",
    "repo_log_path",
    "utc_timestamp",
    "MAX_ATTEMPTS",
    "RETRY_DELAY",
    "enrich_result",
    "fetch_with_retry",
    "TelemetryRecorder",
    "format_duration",
    "record_generation",
    "StatsSummary",
    "load_summary",
    "summarize",
]
