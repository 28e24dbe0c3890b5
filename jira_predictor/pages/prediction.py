"""Resolve-time prediction page: single issue or a sampled percentage of the loaded project."""

from __future__ import annotations

import streamlit as st

from jira_predictor.analytics.engine import BatchResult, IssuePrediction, PredictionEngine
from jira_predictor.analytics.evaluation import predictions_frame
from jira_predictor.app import register_page
from jira_predictor.core.config import (
    DEFAULT_COMMENTS_WEIGHT,
    DEFAULT_DESCRIPTION_WEIGHT,
    DEFAULT_MIN_DESCRIPTION_LENGTH,
    DEFAULT_MIN_ISSUES,
    DEFAULT_SUMMARY_WEIGHT,
    SETTINGS,
)
from jira_predictor.core.errors import ConfigurationError, DataError
from jira_predictor.core.repository import IssueRepository
from jira_predictor.core.service import IssueService
from jira_predictor.core.settings import TEXT_METRICS, PredictionSettings
from jira_predictor.visual.charts import assignee_predictions_bar, batch_frame, predicted_vs_actual
from jira_predictor.visual.progress import ProgressReporter
from jira_predictor.visual.tables import add_ticket_link, prediction_table, statistics_caption


def _settings_form(project: str | None) -> PredictionSettings | None:
    with st.sidebar.expander("Similarity & filters", expanded=False):
        summary_w = st.number_input("Summary weight", min_value=0.0, value=DEFAULT_SUMMARY_WEIGHT, step=0.05)
        description_w = st.number_input("Description weight", min_value=0.0, value=DEFAULT_DESCRIPTION_WEIGHT, step=0.05)
        comments_w = st.number_input("Comments weight", min_value=0.0, value=DEFAULT_COMMENTS_WEIGHT, step=0.05)
        metric = st.selectbox("Text metric", TEXT_METRICS, index=TEXT_METRICS.index("cosine"))
        min_desc = st.number_input("Minimum description length", min_value=0, value=DEFAULT_MIN_DESCRIPTION_LENGTH)
        min_issues = st.number_input("Minimum issues per assignee", min_value=1, value=DEFAULT_MIN_ISSUES)
        types = st.text_input("Issue types (comma-separated, empty = all)", value="")
        priorities = st.text_input("Priorities (comma-separated, empty = all)", value="")

    mode = st.radio("Mode", ["Single issue", "Percentage scope"], horizontal=True)
    issue_key = None
    percentage = None
    seed = None
    if mode == "Single issue":
        issue_key = st.text_input("Issue key").strip() or None
    else:
        percentage = st.slider("Percentage of resolved issues", min_value=1, max_value=100, value=10)
        seed = st.number_input("Sample seed", min_value=0, value=0, step=1)

    settings = PredictionSettings(
        project=project,
        summary_weight=float(summary_w),
        description_weight=float(description_w),
        comments_weight=float(comments_w),
        min_description_length=int(min_desc),
        min_issues=int(min_issues),
        issue_types=[t.strip() for t in types.split(",") if t.strip()],
        issue_priorities=[p.strip() for p in priorities.split(",") if p.strip()],
        text_metric=metric,
        issue_key=issue_key,
        percentage_scope=float(percentage) if percentage is not None else None,
        sample_seed=int(seed) if seed is not None else None,
    )
    try:
        return settings.validate()
    except ConfigurationError as exc:
        st.warning(str(exc))
        return None


def _render_issue(result: IssuePrediction):
    st.subheader(f"{result.target.key}: {result.target.summary or ''}")
    actual = result.actual_days
    cols = st.columns(3)
    cols[0].metric("Real assignee", result.real_assignee or "Unassigned")
    cols[1].metric("Real time (days)", f"{actual:.2f}" if actual is not None else "n/a")
    cols[2].metric("Assignees compared", len(result.predictions))
    frame = prediction_table(predictions_frame(result.predictions, actual))
    if frame.empty:
        st.info("No assignee had enough comparable history.")
        return
    st.dataframe(frame, hide_index=True)
    chart = assignee_predictions_bar(frame)
    if chart is not None:
        st.altair_chart(chart, use_container_width=True)
    st.caption(statistics_caption(result.statistics))
    if result.skipped_assignees:
        st.caption(f"Skipped assignees: {', '.join(result.skipped_assignees)}")


def _render_batch(batch: BatchResult):
    st.markdown("---")
    st.subheader("Run statistics (real assignee vs. real time)")
    st.caption(statistics_caption(batch.statistics))
    st.caption("All assignees pooled: " + statistics_caption(batch.pooled_statistics))
    chart = predicted_vs_actual(batch)
    if chart is not None:
        st.altair_chart(chart, use_container_width=True)
    table = batch_frame(batch)
    if not table.empty:
        linked, cfg = add_ticket_link(table, st.session_state.get("jira_server", ""))
        st.dataframe(linked.head(SETTINGS.max_table_rows), hide_index=True, column_config=cfg)
        csv = table.to_csv(index=False).encode(SETTINGS.download_encoding)
        st.download_button("Download Predictions CSV", data=csv, file_name="resolve_time_predictions.csv", mime="text/csv")
    if batch.skipped_issues:
        with st.expander(f"Skipped issues ({len(batch.skipped_issues)})"):
            for key, reason in batch.skipped_issues.items():
                st.write(f"{key}: {reason}")


@register_page("Resolve Time Prediction")
def prediction_page():
    st.title("Resolve Time Prediction")
    st.caption("Estimate how long each developer would take, from the similarity of their past resolved issues.")
    repo: IssueRepository | None = st.session_state.get("issue_repository")
    if repo is None:
        st.warning("Load issues on the Setup page first.")
        return
    project = st.session_state.get("project_key")
    settings = _settings_form(project)
    if settings is None or not st.button("Predict", type="primary"):
        batch = st.session_state.get("prediction_batch")
    else:
        service: IssueService | None = st.session_state.get("issue_service")
        reporter = ProgressReporter("Running predictions")
        try:
            if service is not None and settings.single_issue_mode:
                # The loaded corpus only holds resolved issues
                repo = service.include_issue(repo, settings.issue_key)
            batch = PredictionEngine(repo, settings).run(progress=reporter.callback)
        except DataError as exc:
            reporter.error(str(exc))
            return
        except RuntimeError as exc:  # pragma: no cover - network error path
            reporter.error(f"Jira request failed: {exc}")
            return
        st.session_state["prediction_batch"] = batch
        reporter.complete(f"Evaluated {len(batch.results)} issue(s).")

    if batch is None:
        st.info("No predictions computed yet.")
        return
    for result in batch.results[:20]:
        _render_issue(result)
    if len(batch.results) > 20:
        st.caption(f"Showing 20 of {len(batch.results)} issues; the summary below covers all of them.")
    _render_batch(batch)
