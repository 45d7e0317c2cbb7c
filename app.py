"""Streamlit front-end for the streamer deficit report."""
from __future__ import annotations

import asyncio

import pandas as pd
import streamlit as st

from streamer_deficit import run_report
from streamer_deficit.cli import build_context, build_request
from streamer_deficit.config import STREAM_TARGETS, load_settings
from streamer_deficit.domain.errors import StreamerDeficitError
from streamer_deficit.domain.results import DeficitReport
from streamer_deficit.presentation.deficit_report import render_csv, rows_to_dataframe


st.set_page_config(page_title="Streamer Deficit Report", layout="wide")
st.title("Streamer Deficit Report")


def targets_dataframe() -> pd.DataFrame:
    return pd.DataFrame(
        [{"vendor": t.vendor, "version": t.version.value, "address": t.address} for t in STREAM_TARGETS],
        columns=["vendor", "version", "address"],
    )


def generate_report(block: int | None, simulate: bool, time_advance: int) -> DeficitReport:
    settings = load_settings()
    request = build_request(settings, block, simulate, time_advance)
    context = build_context(settings, simulate=request.simulate)
    return asyncio.run(run_report(context, request))


if "result" not in st.session_state:
    st.session_state["result"] = None


with st.expander("Streams", expanded=False):
    st.dataframe(targets_dataframe(), hide_index=True)

col1, col2, col3 = st.columns(3)
with col1:
    block_text = st.text_input("Block number (blank for latest)", key="block_number")
with col2:
    simulate = st.checkbox("Simulate claim on fork", key="simulate")
with col3:
    time_advance = st.number_input("Advance fork by (seconds)", min_value=0, value=86_400, step=3_600)

run_btn = st.button("Generate report")
if run_btn:
    block = None
    if block_text.strip():
        try:
            block = int(block_text.strip())
        except ValueError:
            st.warning("Block number must be an integer")
            st.stop()
    try:
        with st.spinner("Reading chain state..."):
            report = generate_report(block, simulate, int(time_advance))
    except StreamerDeficitError as exc:
        st.error(f"Failed to generate streamer deficit report: {exc}")
        st.session_state["result"] = None
    else:
        st.session_state["result"] = report

report: DeficitReport | None = st.session_state.get("result")
if report is None:
    st.info("No report yet. Choose a block and generate the report.")
else:
    summary = report.summary
    st.subheader("Summary")
    metric_cols = st.columns(4)
    metric_cols[0].metric("Streams", summary.total_targets)
    metric_cols[1].metric("In deficit", summary.targets_in_deficit)
    metric_cols[2].metric("Needing top up", summary.targets_needing_top_up)
    metric_cols[3].metric("Skipped claim logs", summary.skipped_logs)

    st.dataframe(rows_to_dataframe(report.rows), hide_index=True)
    st.download_button(
        "Download report CSV",
        data=render_csv(report.rows),
        file_name="streamer-deficit-report.csv",
        mime="text/csv",
    )
