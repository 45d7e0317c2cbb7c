"""Tabular renderers for the deficit report."""
from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Sequence

import pandas as pd

from streamer_deficit.domain.models import ReportRow

# header -> ReportRow attribute, in output order
REPORT_COLUMNS: tuple[tuple[str, str], ...] = (
    ("address", "address"),
    ("vendor", "vendor"),
    ("claim asset", "claim_asset"),
    ("claimed amount", "claimed_amount"),
    ("comp balance", "comp_balance"),
    ("Available to claim COMP", "available_to_claim_comp"),
    ("available to claim", "available_to_claim_native"),
    ("Stream finishes ts", "stream_finish_ts"),
    ("Stream finishes utc", "stream_finish_utc"),
    ("Budget for days", "budget_for_days"),
    ("Days deficit", "days_deficit"),
    ("Required top up", "required_top_up"),
    ("Avg claim COMP price", "avg_claim_comp_price"),
    ("Unclaimable value", "unclaimable_value"),
    ("Total budget", "total_budget"),
    ("Projected remaining after claim", "projected_remaining"),
)


def rows_to_records(rows: Sequence[ReportRow]) -> list[dict[str, str]]:
    return [{header: getattr(row, attr) for header, attr in REPORT_COLUMNS} for row in rows]


def render_csv(rows: Sequence[ReportRow]) -> bytes:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=[header for header, _ in REPORT_COLUMNS], lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows_to_records(rows))
    return buffer.getvalue().encode("utf-8")


def rows_to_dataframe(rows: Sequence[ReportRow]) -> pd.DataFrame:
    return pd.DataFrame(rows_to_records(rows), columns=[header for header, _ in REPORT_COLUMNS])


def write_csv(rows: Sequence[ReportRow], path: Path) -> Path:
    path.write_bytes(render_csv(rows))
    return path
