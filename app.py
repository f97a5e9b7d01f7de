"""
app.py — Streamlit dashboard for the Ledger Health Scoring Engine.

Run with:  streamlit run app.py
"""

from __future__ import annotations

import io
import time

import streamlit as st
import pandas as pd

# ── Local imports ─────────────────────────────────────────────────────────────
from utils.validation import validate_events, frame_to_events, quick_stats
from utils.json_export import (
    generate_report,
    report_to_json_string,
    build_score_table,
)
from utils.sample_data import generate_sample_events, sample_csv_bytes
from risk_engine.config import DEFAULT_WEIGHTS, ScoringConfig
from risk_engine.pipeline import run_pipeline
from risk_engine.scoring import stress_flags

# ── Page config ───────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Ledger Health Scoring Engine",
    page_icon="🩺",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ══════════════════════════════════════════════════════════════════════════════
#  SIDEBAR — Data & Weights
# ══════════════════════════════════════════════════════════════════════════════

st.sidebar.title("🩺 Health Scoring Engine")
st.sidebar.markdown("---")
st.sidebar.subheader("1 · Ledger Events")

uploaded_file = st.sidebar.file_uploader(
    "Upload CSV file",
    type=["csv"],
    help=(
        "Required columns: account, timestamp (YYYY-MM-DD HH:MM:SS or Unix "
        "seconds), action, asset, amount"
    ),
)
use_sample = st.sidebar.checkbox("Use built-in sample data", value=uploaded_file is None)

min_score = st.sidebar.slider(
    "Minimum score to list",
    min_value=0,
    max_value=100,
    value=0,
    step=1,
)

st.sidebar.markdown("---")
st.sidebar.subheader("2 · Behavior Weights")
weights = {}
for behavior, default in DEFAULT_WEIGHTS.items():
    weights[behavior] = st.sidebar.number_input(
        behavior.replace("_", " ").title(),
        min_value=-100.0,
        max_value=100.0,
        value=float(default),
        step=1.0,
    )
config = ScoringConfig(weights=weights)

# ══════════════════════════════════════════════════════════════════════════════
#  MAIN AREA
# ══════════════════════════════════════════════════════════════════════════════

st.title("🩺 Ledger Health Scoring Engine")
st.caption("Transparent, tunable account health scores  ·  Upload → Score → Explain → Export")

if uploaded_file is not None and not use_sample:
    uploaded_file.seek(0)
    text = uploaded_file.read().decode("utf-8-sig", errors="replace")
    raw_df = pd.read_csv(io.StringIO(text))
elif use_sample:
    raw_df = generate_sample_events()
else:
    st.info(
        "👈 Upload a ledger CSV or tick *Use built-in sample data*.\n\n"
        "**Required columns:** `account`, `timestamp`, `action`, `asset`, `amount`"
    )
    st.download_button(
        label="⬇️ Download Sample CSV",
        data=sample_csv_bytes(),
        file_name="sample_ledger_events.csv",
        mime="text/csv",
    )
    st.stop()

is_valid, errors, df = validate_events(raw_df)

if errors:
    with st.expander("⚠️ Validation Messages", expanded=not is_valid):
        for e in errors:
            if e.startswith("Warning:"):
                st.warning(e)
            else:
                st.error(e)

if not is_valid:
    st.error("Event data failed validation. Fix the errors above and re-upload.")
    st.stop()

# ── Quick stats in sidebar ───────────────────────────────────────────────────
stats = quick_stats(df)
st.sidebar.markdown("---")
st.sidebar.subheader("📊 Data Summary")
st.sidebar.metric("Events", stats["total_events"])
st.sidebar.metric("Accounts", stats["unique_accounts"])
st.sidebar.metric("Assets", stats["unique_assets"])

# ══════════════════════════════════════════════════════════════════════════════
#  SCORING PIPELINE
# ══════════════════════════════════════════════════════════════════════════════

with st.spinner("Aggregating events and scoring accounts…"):
    t_start = time.time()
    results = run_pipeline(frame_to_events(df), config=config)
    report = generate_report(
        results["results"],
        results["summaries"],
        time.time() - t_start,
        features=results["features"],
        stats=results["stats"],
        min_score=min_score,
    )

# ══════════════════════════════════════════════════════════════════════════════
#  SUMMARY METRICS
# ══════════════════════════════════════════════════════════════════════════════

st.markdown("---")
st.subheader("📈 Scoring Summary")

summary = report["summary"]
col1, col2, col3, col4 = st.columns(4)
with col1:
    st.metric("Accounts Scored", summary["accounts_scored"])
with col2:
    st.metric("Skipped (< 5 events)", summary["accounts_skipped"])
with col3:
    st.metric("Mean Score", summary["mean_score"] if summary["mean_score"] is not None else "–")
with col4:
    st.metric("At Risk", summary["risk_bands"]["at_risk"])

# ══════════════════════════════════════════════════════════════════════════════
#  RANKED ACCOUNTS
# ══════════════════════════════════════════════════════════════════════════════

st.markdown("---")
st.subheader("🏅 Account Ranking")

rows = build_score_table(report)
if rows:
    st.dataframe(
        pd.DataFrame(rows),
        use_container_width=True,
        hide_index=True,
        column_config={
            "Score": st.column_config.ProgressColumn(
                min_value=0, max_value=100, format="%d"
            ),
        },
    )
else:
    st.info("No accounts meet the minimum score.")

# ══════════════════════════════════════════════════════════════════════════════
#  PER-ACCOUNT EXPLANATION
# ══════════════════════════════════════════════════════════════════════════════

st.markdown("---")
st.subheader("🔬 Score Breakdown")

scored_accounts = [entry["account"] for entry in report["accounts"]]
if scored_accounts:
    selected = st.selectbox("Account", scored_accounts)
    result = results["results"][selected]
    vector = results["features"][selected]

    col_a, col_b = st.columns(2)
    with col_a:
        st.markdown(f"**Score:** {result.score}")
        breakdown = pd.DataFrame(
            {
                "Behavior": list(result.behavior_scores),
                "Sub-score": list(result.behavior_scores.values()),
                "Weight": [config.weights[b] for b in result.behavior_scores],
            }
        )
        breakdown["Contribution"] = breakdown["Sub-score"] * breakdown["Weight"]
        st.dataframe(breakdown, use_container_width=True, hide_index=True)
    with col_b:
        st.markdown("**Features**")
        st.json(vector.as_dict())
        flags = stress_flags(vector, config)
        if flags:
            st.warning(f"Stress signatures: {', '.join(flags)}")

with st.expander("Population ranges (min / max)"):
    st.json(results["stats"].as_dict())

# ══════════════════════════════════════════════════════════════════════════════
#  JSON DOWNLOAD
# ══════════════════════════════════════════════════════════════════════════════

st.markdown("---")
st.subheader("📥 Download Report")

st.download_button(
    label="⬇️ Download JSON Report",
    data=report_to_json_string(report),
    file_name="health_report.json",
    mime="application/json",
)

st.markdown("---")
st.caption("Ledger Health Scoring Engine · Built with Streamlit & pandas")
