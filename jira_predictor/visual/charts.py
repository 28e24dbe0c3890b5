"""Chart builders (Altair) for prediction results."""

from __future__ import annotations

import altair as alt
import pandas as pd

from jira_predictor.analytics.engine import BatchResult


def batch_frame(batch: BatchResult) -> pd.DataFrame:
    """One row per evaluated issue: the real assignee's prediction next to the real resolve time."""
    rows = []
    for r in batch.results:
        own = r.real_assignee_prediction
        if own is None or r.actual_days is None:
            continue
        rows.append(
            {
                "key": r.target.key,
                "summary": r.target.summary or "",
                "assignee": own.assignee.label,
                "predicted_days": own.predicted_days,
                "actual_days": r.actual_days,
                "squared_error": r.squared_error(own),
            }
        )
    return pd.DataFrame(rows)


def predicted_vs_actual(batch: BatchResult):
    df = batch_frame(batch)
    if df.empty:
        return None
    upper = float(max(df["predicted_days"].max(), df["actual_days"].max()))
    diagonal = pd.DataFrame({"x": [0.0, upper], "y": [0.0, upper]})

    identity = (
        alt.Chart(diagonal)
        .mark_line(color="#bbbbbb", strokeDash=[4, 4])
        .encode(x="x:Q", y="y:Q")
    )
    points = (
        alt.Chart(df)
        .mark_circle(color="#1f77b4", opacity=0.75, size=70)
        .encode(
            x=alt.X("actual_days:Q", title="Actual resolve time (days)"),
            y=alt.Y("predicted_days:Q", title="Predicted resolve time (days)"),
            tooltip=[
                alt.Tooltip("key:N", title="Issue"),
                alt.Tooltip("assignee:N", title="Assignee"),
                alt.Tooltip("predicted_days:Q", title="Predicted", format=".2f"),
                alt.Tooltip("actual_days:Q", title="Actual", format=".2f"),
            ],
        )
    )
    return (identity + points).properties(height=320)


def assignee_predictions_bar(frame: pd.DataFrame):
    if frame.empty:
        return None
    return (
        alt.Chart(frame)
        .mark_bar(color="#2ca02c")
        .encode(
            x=alt.X("predicted_days:Q", title="Predicted resolve time (days)"),
            y=alt.Y("assignee:N", sort="x", title="Assignee"),
            tooltip=[
                alt.Tooltip("assignee:N", title="Assignee"),
                alt.Tooltip("predicted_days:Q", title="Predicted", format=".2f"),
                alt.Tooltip("similarity_mass:Q", title="Similarity mass", format=".3f"),
                alt.Tooltip("issues_count:Q", title="Issues"),
            ],
        )
        .properties(height=max(120, 22 * len(frame)))
    )
