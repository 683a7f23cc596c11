"""
route-bench Result Viewer

Minimal Streamlit dashboard for exported benchmark reports.
Displays the run summary, per-model latency/throughput, the routing
confusion table, and the cumulative energy estimate.

Usage:
    pip install -e ".[viewer]"
    streamlit run src/route_bench/viewer.py
    streamlit run src/route_bench/viewer.py -- --results-dir results

Requires the package to be installed (e.g. via ``pip install -e .``).
"""

from __future__ import annotations

import argparse
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from route_bench.report import REPORT_PREFIX, load_json_report

# -- Colors --
MODEL_COLORS = [
    "#1a73e8", "#e8710a", "#34a853", "#ea4335", "#9334e6",
    "#f538a0", "#00897b", "#6d4c41", "#546e7a", "#d500f9",
]


def _short_model_name(name: str) -> str:
    """Strip the runtime suffix for display."""
    return name[:-4] if name.endswith("-MLC") else name


def _find_reports(results_dir: Path) -> list[Path]:
    """JSON reports in results_dir, newest first."""
    return sorted(results_dir.glob(f"{REPORT_PREFIX}_*.json"), reverse=True)


def _results_frame(report: dict) -> pd.DataFrame:
    return pd.DataFrame(report.get("results", []))


def _render_summary(summary: dict) -> None:
    """Render headline metrics."""
    st.header("Run Summary")
    if summary.get("cancelled"):
        st.warning("Run was stopped before all prompts were processed.")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Prompts", summary["totalPrompts"])
    col2.metric("Overall TPS", f"{summary['overallTPS']:.2f}")
    col3.metric("p50 TTFT", f"{summary['p50TtftMs']} ms")
    col4.metric("p95 TTFT", f"{summary['p95TtftMs']} ms")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total latency", f"{summary['totalLatencyMs'] / 1000:.1f} s")
    col2.metric("Peak RSS", f"{summary['maxResidentMemoryBytes'] / (1024 * 1024):.0f} MB")
    col3.metric("Energy (est.)", f"{summary['energyMilliJoules'] / 1000:.2f} J")
    col4.metric("Classification", f"{summary['classificationAccuracy']:.1%}")

    st.caption(summary.get("energyNote", ""))


def _render_latency(results_df: pd.DataFrame) -> None:
    """Render per-prompt TTFT and generation time grouped by model."""
    st.header("Latency by Model")

    fig = go.Figure()
    for i, (model, group) in enumerate(results_df.groupby("modelID", sort=False)):
        color = MODEL_COLORS[i % len(MODEL_COLORS)]
        fig.add_trace(go.Box(
            y=group["genMs"],
            name=f"{_short_model_name(model)} gen",
            marker_color=color,
            boxpoints="all",
        ))
        fig.add_trace(go.Box(
            y=group["ttftMs"],
            name=f"{_short_model_name(model)} TTFT",
            marker_color=color,
            opacity=0.5,
            boxpoints="all",
        ))

    fig.update_layout(
        yaxis_title="Milliseconds",
        template="plotly_white",
        height=450,
        showlegend=False,
    )
    st.plotly_chart(fig, use_container_width=True)


def _render_routing(results_df: pd.DataFrame) -> None:
    """Render expected vs produced category counts."""
    st.header("Routing")

    confusion = pd.crosstab(
        results_df["expectedCategory"],
        results_df["category"],
        rownames=["Expected"],
        colnames=["Classified"],
    )
    st.dataframe(confusion, use_container_width=True)

    misrouted = results_df[~results_df["classificationAccuracy"]]
    if misrouted.empty:
        st.success("Every prompt was classified into its expected category.")
    else:
        st.caption(f"{len(misrouted)} misclassified prompt(s)")
        st.dataframe(
            misrouted[["id", "expectedCategory", "category", "modelID"]].rename(columns={
                "id": "Prompt", "expectedCategory": "Expected", "category": "Classified", "modelID": "Model",
            }),
            use_container_width=True,
            hide_index=True,
        )


def _render_energy(samples: list[dict]) -> None:
    """Render cumulative energy over the run."""
    if not samples:
        return
    st.header("Energy (estimated)")

    df = pd.DataFrame(samples)
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=df["timestamp"],
        y=df["energyMilliJoules"],
        mode="lines+markers",
        text=df["thermalState"],
        line=dict(color=MODEL_COLORS[0], width=2),
        marker=dict(size=6),
    ))
    fig.update_layout(
        xaxis_title="Seconds since start",
        yaxis_title="Cumulative energy (mJ)",
        template="plotly_white",
        height=350,
    )
    st.plotly_chart(fig, use_container_width=True)


def _render_results_table(results_df: pd.DataFrame) -> None:
    """Render the raw per-prompt results."""
    st.header("Results")
    styled = results_df.copy()
    styled["modelID"] = styled["modelID"].apply(_short_model_name)
    st.dataframe(styled, use_container_width=True, hide_index=True)


def main() -> None:
    # Parse --results-dir from Streamlit args (after --)
    parser = argparse.ArgumentParser()
    parser.add_argument("--results-dir", default="results")
    args, _ = parser.parse_known_args()

    results_dir = Path(args.results_dir)

    st.set_page_config(page_title="route-bench", layout="wide")
    st.title("route-bench Results")

    if not results_dir.exists():
        st.error(f"Results directory not found: `{results_dir}`")
        st.info("Run a benchmark first:\n```\npython -m route_bench.runner routed\n```")
        return

    reports = _find_reports(results_dir)
    if not reports:
        st.warning(f"No reports found in `{results_dir}/`")
        st.info("Run a benchmark first:\n```\npython -m route_bench.runner routed\n```")
        return

    # Report selector
    names = [p.stem.replace(f"{REPORT_PREFIX}_", "") for p in reports]
    selected = st.sidebar.selectbox("Run", names, index=0)
    report = load_json_report(reports[names.index(selected)])

    summary = report.get("summary")
    results_df = _results_frame(report)

    # Sidebar info
    st.sidebar.markdown("---")
    st.sidebar.markdown(f"**Created**: {report.get('createdAt', '')}")
    if summary:
        st.sidebar.markdown(f"**Mode**: {summary.get('mode', '')}")
    if not results_df.empty:
        st.sidebar.markdown(f"**Models**: {results_df['modelID'].nunique()}")
    st.sidebar.markdown(f"**Results**: {len(results_df)} rows")

    if summary is None:
        st.warning("Report has no summary. Showing raw results only.")
        st.dataframe(results_df, use_container_width=True)
        return

    _render_summary(summary)
    if results_df.empty:
        return

    _render_latency(results_df)
    if summary.get("mode") == "routed":
        _render_routing(results_df)
    _render_energy(report.get("energySamples", []))
    _render_results_table(results_df)


if __name__ == "__main__":
    main()
