"""Reusable table helpers for Streamlit rendering."""

from __future__ import annotations

import math

import pandas as pd
import streamlit as st

from jira_predictor.core.config import PREDICTION_TABLE_COLUMNS
from jira_predictor.core.models import EvaluationStatistics


def add_ticket_link(df: pd.DataFrame, server: str, key_col: str = "key", label: str = "Ticket"):
    if df.empty or key_col not in df.columns or not server:
        return df, {}
    out = df.copy()
    base = server.rstrip("/")
    out[label] = out[key_col].astype(str).apply(lambda k: f"{base}/browse/{k}" if k and k != "nan" else "")
    cfg = {
        label: st.column_config.LinkColumn(
            label,
            display_text=r"browse/(.*)$",
            help="Open in Jira",
            width="medium",
        )
    }
    return out, cfg


def prediction_table(frame: pd.DataFrame) -> pd.DataFrame:
    if frame.empty:
        return frame
    cols = [c for c in PREDICTION_TABLE_COLUMNS if c in frame.columns]
    out = frame[cols].sort_values("predicted_days").copy()
    for col in ("predicted_days", "actual_days", "squared_error", "similarity_mass"):
        if col in out.columns:
            out[col] = pd.to_numeric(out[col], errors="coerce").round(3)
    return out


def statistics_caption(stats: EvaluationStatistics) -> str:
    def fmt(value: float) -> str:
        return "not computable" if math.isnan(value) else f"{value:.3f}"

    return f"n = {stats.count} · MSE {fmt(stats.mse)} · RMSE {fmt(stats.rmse)} · R² {fmt(stats.r_squared)}"
