import csv
import io

from streamer_deficit.domain.models import ClaimTotals, StreamTarget, StreamVersion
from streamer_deficit.domain.services import build_report_row, compute_deficit
from streamer_deficit.presentation.deficit_report import (
    REPORT_COLUMNS,
    render_csv,
    rows_to_dataframe,
    write_csv,
)
from tests.fakes import make_facts

TARGET = StreamTarget("0xF088339DD8e79819A41aDD5FFB75d9F245AfaAb1", "Woof, Software", StreamVersion.V1)


def make_row():
    facts = make_facts()
    return build_report_row(TARGET, facts, ClaimTotals(), compute_deficit(facts))


def test_csv_header_has_fixed_order():
    text = render_csv([]).decode("utf-8")
    assert text.splitlines()[0].split(",")[:4] == ["address", "vendor", "claim asset", "claimed amount"]
    assert text.splitlines()[0].endswith("Projected remaining after claim")


def test_csv_rows_are_quoted_when_needed():
    text = render_csv([make_row()]).decode("utf-8")
    records = list(csv.DictReader(io.StringIO(text)))
    assert len(records) == 1
    assert records[0]["vendor"] == "Woof, Software"
    assert records[0]["claimed amount"] == "200000.0"
    assert '"Woof, Software"' in text


def test_dataframe_columns_match_csv():
    frame = rows_to_dataframe([make_row(), make_row()])
    assert list(frame.columns) == [header for header, _ in REPORT_COLUMNS]
    assert len(frame) == 2


def test_write_csv(tmp_path):
    path = write_csv([make_row()], tmp_path / "report.csv")
    assert path.read_bytes() == render_csv([make_row()])
