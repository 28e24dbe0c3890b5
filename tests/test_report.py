import math
from datetime import UTC, datetime

import pandas as pd

from jira_predictor.analytics.engine import BatchResult, IssuePrediction
from jira_predictor.analytics.evaluation import evaluate, predictions_frame
from jira_predictor.core.models import AssigneeModel, IssueModel, Prediction
from jira_predictor.visual.charts import assignee_predictions_bar, batch_frame, predicted_vs_actual
from jira_predictor.visual.report import (
    END_PREDICTION,
    NEW_PREDICTION,
    NOT_COMPUTABLE,
    compose_batch_report,
    compose_issue_report,
    format_number,
)
from jira_predictor.visual.tables import add_ticket_link, statistics_caption


def _sample_result(key="HAD-1", actual_days=3, assignee="alice"):
    target = IssueModel(
        key=key,
        summary="Datanode disk full",
        description="d",
        created=datetime(2024, 1, 1, tzinfo=UTC),
        resolution_date=datetime(2024, 1, 1 + actual_days, tzinfo=UTC),
        assignee=assignee,
        priority="Major",
        issuetype="Bug",
    )
    predictions = [
        Prediction(AssigneeModel("alice", "Alice A."), 4.0, 1.1, 3),
        Prediction(AssigneeModel("bob"), 2.0, 0.5, 2),
    ]
    stats = evaluate([(p.predicted_days, actual_days) for p in predictions])
    return IssuePrediction(target, predictions, stats, skipped_assignees=["carol"])


def test_format_number():
    assert format_number(2) == "2.000"
    assert format_number(None) == NOT_COMPUTABLE
    assert format_number(math.nan) == NOT_COMPUTABLE


def test_issue_report_block():
    lines = compose_issue_report(_sample_result())
    assert lines[0] == NEW_PREDICTION
    assert lines[-1] == END_PREDICTION
    assert "Issue: HAD-1 (Datanode disk full)" in lines
    assert "Assignee: bob, predicted time: 2.000 days, squared error: 1.000" in lines
    assert "Assignee: Alice A., predicted time: 4.000 days, squared error: 1.000" in lines
    assert "Assignee: carol, skipped (no usable history)" in lines
    assert "Real time: 3.000 days" in lines
    assert "Real assignee: alice" in lines
    assert "Root mean squared error: 1.000" in lines
    assert f"Coefficient of determination: {NOT_COMPUTABLE}" in lines


def _sample_batch():
    results = [_sample_result("HAD-1", 3), _sample_result("HAD-2", 5)]
    real = evaluate([(4.0, 3), (4.0, 5)])
    pooled = evaluate([(4.0, 3), (2.0, 3), (4.0, 5), (2.0, 5)])
    return BatchResult(results, real, pooled, skipped_issues={"HAD-3": "evaluation timed out"})


def test_batch_report_adds_run_statistics():
    lines = compose_batch_report(_sample_batch())
    assert lines.count(NEW_PREDICTION) == 2
    assert "Skipped HAD-3: evaluation timed out" in lines
    assert "Evaluated issues: 2" in lines
    assert "Run root mean squared error: 1.000" in lines
    assert "Run coefficient of determination: 0.000" in lines


def test_single_result_batch_has_no_run_statistics():
    result = _sample_result()
    batch = BatchResult([result], evaluate([(4.0, 3)]), result.statistics)
    assert not any(line.startswith("Run ") for line in compose_batch_report(batch))


def test_chart_frames():
    frame = batch_frame(_sample_batch())
    assert list(frame["key"]) == ["HAD-1", "HAD-2"]
    assert list(frame["squared_error"]) == [1.0, 1.0]
    assert predicted_vs_actual(_sample_batch()) is not None
    result = _sample_result()
    assert assignee_predictions_bar(predictions_frame(result.predictions, result.actual_days)) is not None
    assert assignee_predictions_bar(pd.DataFrame()) is None


def test_ticket_links_and_caption():
    df = pd.DataFrame({"key": ["HAD-1"], "assignee": ["alice"]})
    linked, column_config = add_ticket_link(df, "https://jira.example.org/")
    assert linked.loc[0, "Ticket"] == "https://jira.example.org/browse/HAD-1"
    assert column_config
    same, empty = add_ticket_link(df, None)
    assert same is df
    assert empty == {}
    caption = statistics_caption(evaluate([(1, 1), (3, 2)]))
    assert "0.707" in caption
