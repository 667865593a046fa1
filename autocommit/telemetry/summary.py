"""Summarize a generation stats log."""

import json
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class StatsSummary:
    """Aggregates over every valid line of a stats log.

    Negative (unknown) costs and token counts are counted as generations
    but contribute nothing to the totals.
    """
    count: int = 0
    actual_count: int = 0
    dry_run_count: int = 0
    total_cost: float = 0.0
    actual_cost: float = 0.0
    dry_run_cost: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0
    model_counts: dict = field(default_factory=lambda: defaultdict(int))
    model_costs: dict = field(default_factory=lambda: defaultdict(float))

    def add(self, entry: dict) -> None:
        cost = _number(entry.get("total_cost"), -1.0)
        input_tokens = _number(entry.get("input_tokens"), -1)
        output_tokens = _number(entry.get("output_tokens"), -1)
        is_dry_run = entry.get("dry_run") is True
        model = str(entry.get("model") or "unknown")

        self.count += 1
        if is_dry_run:
            self.dry_run_count += 1
        else:
            self.actual_count += 1

        if cost >= 0:
            self.total_cost += cost
            if is_dry_run:
                self.dry_run_cost += cost
            else:
                self.actual_cost += cost
            self.model_costs[model] += cost
        if input_tokens >= 0:
            self.input_tokens += int(input_tokens)
        if output_tokens >= 0:
            self.output_tokens += int(output_tokens)
        self.model_counts[model] += 1

    def render(self) -> str:
        lines = ["Generation Statistics Summary:"]

        generations = f"Total generations: {self.count}"
        cost = f"Total cost: ${self.total_cost:.4f}"
        if self.dry_run_count > 0:
            generations += f" ({self.actual_count} actual, {self.dry_run_count} dry runs)"
            cost += f" (${self.actual_cost:.4f} actual, ${self.dry_run_cost:.4f} dry runs)"
        lines.append(generations)
        lines.append(cost)
        lines.append(f"Total input tokens: {self.input_tokens}")
        lines.append(f"Total output tokens: {self.output_tokens}")
        lines.append(f"Average cost per generation: ${self.total_cost / self.count:.4f}")
        if self.actual_count > 0:
            lines.append(f"Average cost per actual generation: ${self.actual_cost / self.actual_count:.4f}")

        lines.append("")
        lines.append("Cost by model:")
        for model in sorted(self.model_counts):
            lines.append(
                f"  {model}: ${self.model_costs.get(model, 0.0):.4f} ({self.model_counts[model]} generations)"
            )
        return '\n'.join(lines)


def _number(value, default):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


def load_summary(log_path: Path) -> StatsSummary | None:
    """Stream the log into a StatsSummary; None if the file doesn't exist."""
    log_path = Path(log_path)
    if not log_path.exists():
        return None

    summary = StatsSummary()
    with open(log_path, 'r', encoding='utf-8', errors='replace') as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(entry, dict):
                summary.add(entry)
    return summary


def summarize(log_path: Path) -> str:
    """Human-readable report for the log at `log_path`."""
    summary = load_summary(log_path)
    if summary is None:
        return f"No generation stats found at {log_path}"
    if summary.count == 0:
        return "No valid generation stats found"
    return summary.render()
