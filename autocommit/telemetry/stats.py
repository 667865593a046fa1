"""Generation stats records and the append-only logs they go to."""

import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from autocommit import APP_DIR_NAME, UNKNOWN
from autocommit.errors import LogWriteError

STATS_FILENAME = "generation_stats.log"
REPO_DATA_DIR = ".commit"


@dataclass(frozen=True)
class GenerationStats:
    """Loggable projection of one generation."""
    date: str
    backend: str
    model: str
    provider: str = ""
    input_tokens: int = UNKNOWN
    output_tokens: int = UNKNOWN
    total_cost: float = UNKNOWN
    latency: int = UNKNOWN
    generation_time: int = UNKNOWN
    dry_run: bool = False

    @classmethod
    def from_result(cls, result, backend: str, model: str, provider: str = "",
                    dry_run: bool = False, date: str | None = None) -> 'GenerationStats':
        return cls(
            date=date or utc_timestamp(),
            backend=backend,
            model=model,
            provider=provider or "",
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
            total_cost=result.total_cost,
            latency=result.latency,
            generation_time=result.generation_time,
            dry_run=dry_run,
        )

    def to_dict(self) -> dict:
        record = {
            "date": self.date,
            "backend": self.backend,
            "model": self.model,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_cost": self.total_cost,
            "latency": self.latency,
            "generation_time": self.generation_time,
            "dry_run": self.dry_run,
        }
        if self.provider:
            record["provider"] = self.provider
        return record

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def utc_timestamp(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%SZ")


def data_home() -> Path:
    """$XDG_DATA_HOME/commit, falling back to ~/.local/share/commit."""
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME


def global_log_path(data_dir: Path | None = None) -> Path:
    return (data_dir or data_home()) / STATS_FILENAME


def repo_log_path(repo_root: Path) -> Path:
    return Path(repo_root) / REPO_DATA_DIR / STATS_FILENAME


def append_stats(stats_list, log_path: Path) -> None:
    """Append one JSON line per record. Raises LogWriteError on I/O failure."""
    log_path = Path(log_path)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        # Line buffered: each record reaches the file in its own append
        with open(log_path, 'a', encoding='utf-8', buffering=1) as f:
            for stats in stats_list:
                f.write(stats.to_json() + '\n')
    except OSError as e:
        raise LogWriteError(log_path, e)
