"""Plain-text prediction report, one block per target issue."""

from __future__ import annotations

import math

from jira_predictor.analytics.engine import BatchResult, IssuePrediction

NEW_PREDICTION = "######## New prediction ########"
END_PREDICTION = "######## End prediction ########"
NOT_COMPUTABLE = "not computable"


def format_number(value: float | None, digits: int = 3) -> str:
    if value is None or math.isnan(value):
        return NOT_COMPUTABLE
    return f"{value:.{digits}f}"


def compose_issue_report(result: IssuePrediction) -> list[str]:
    lines = [NEW_PREDICTION, f"Issue: {result.target.key} ({result.target.summary or ''})".rstrip()]
    for p in sorted(result.predictions, key=lambda p: p.predicted_days):
        lines.append(
            f"Assignee: {p.assignee.label}, predicted time: {format_number(p.predicted_days)} days, "
            f"squared error: {format_number(result.squared_error(p))}"
        )
    for name in result.skipped_assignees:
        lines.append(f"Assignee: {name}, skipped (no usable history)")
    lines.append(f"Real time: {format_number(result.actual_days)} days")
    lines.append(f"Real assignee: {result.real_assignee or 'Unassigned'}")
    lines.append(f"Root mean squared error: {format_number(result.statistics.rmse)}")
    lines.append(f"Coefficient of determination: {format_number(result.statistics.r_squared)}")
    lines.append(END_PREDICTION)
    return lines


def compose_batch_report(batch: BatchResult) -> list[str]:
    lines: list[str] = []
    for result in batch.results:
        lines.extend(compose_issue_report(result))
    for key, reason in batch.skipped_issues.items():
        lines.append(f"Skipped {key}: {reason}")
    if len(batch.results) > 1:
        stats = batch.statistics
        lines.append(f"Evaluated issues: {stats.count}")
        lines.append(f"Run root mean squared error: {format_number(stats.rmse)}")
        lines.append(f"Run coefficient of determination: {format_number(stats.r_squared)}")
    return lines
