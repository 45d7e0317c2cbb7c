"""Domain-level results for the deficit report."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

from .models import DeficitMetrics, ReportRow


@dataclass(frozen=True)
class ReportSummary:
    total_targets: int
    targets_in_deficit: int
    targets_needing_top_up: int
    skipped_logs: int
    block_number: int | None
    generated_at: datetime


@dataclass(frozen=True)
class DeficitReport:
    summary: ReportSummary
    rows: Sequence[ReportRow] = field(default_factory=tuple)
    metrics: Sequence[DeficitMetrics] = field(default_factory=tuple)

    def has_deficits(self) -> bool:
        return any([self.summary.targets_in_deficit, self.summary.targets_needing_top_up])

    def iter_deficit_rows(self) -> Iterable[ReportRow]:
        for row, metrics in zip(self.rows, self.metrics):
            if metrics.deficit_seconds or metrics.required_top_up:
                yield row


def summarize(
    rows: Sequence[ReportRow],
    metrics: Sequence[DeficitMetrics],
    skipped_logs: int,
    block_number: int | None,
    generated_at: datetime,
) -> DeficitReport:
    summary = ReportSummary(
        total_targets=len(rows),
        targets_in_deficit=len([m for m in metrics if m.deficit_seconds > 0]),
        targets_needing_top_up=len([m for m in metrics if m.required_top_up > 0]),
        skipped_logs=skipped_logs,
        block_number=block_number,
        generated_at=generated_at,
    )
    return DeficitReport(summary=summary, rows=tuple(rows), metrics=tuple(metrics))
