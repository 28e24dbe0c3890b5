from datetime import UTC, datetime, timedelta

import pytest

from jira_predictor.analytics.prediction import ResolveTimePredictor
from jira_predictor.core.errors import EmptyHistoryError
from jira_predictor.core.models import (
    AssigneeIssueSimilarity,
    AssigneeModel,
    IssueModel,
    IssueSimilarity,
    SimilarityField,
    SimilarityScore,
)

BASE = datetime(2024, 5, 1, tzinfo=UTC)


def _issue(key, days):
    return IssueModel(
        key=key,
        summary="s",
        description="d",
        created=BASE,
        resolution_date=BASE + timedelta(days=days) if days is not None else None,
        assignee="alice",
        priority="Major",
        issuetype="Bug",
    )


def _sample_similarity(*pairs):
    sims = [
        IssueSimilarity(_issue(f"HAD-{i}", days), SimilarityScore(score, (SimilarityField.AGGREGATE,)))
        for i, (score, days) in enumerate(pairs)
    ]
    return AssigneeIssueSimilarity(AssigneeModel("alice"), sims)


def test_weighted_mean_of_durations():
    prediction = ResolveTimePredictor().predict(_sample_similarity((0.8, 2), (0.2, 4)))
    assert prediction.predicted_days == pytest.approx(2.4)
    assert prediction.similarity_mass == pytest.approx(1.0)
    assert prediction.issues_count == 2
    assert prediction.assignee.name == "alice"


def test_zero_similarity_falls_back_to_plain_mean():
    prediction = ResolveTimePredictor().predict(_sample_similarity((0.0, 2), (0.0, 6)))
    assert prediction.predicted_days == pytest.approx(4.0)
    assert prediction.similarity_mass == 0.0


def test_prediction_within_history_range_and_idempotent():
    predictor = ResolveTimePredictor()
    data = _sample_similarity((0.3, 1), (0.9, 10), (0.1, 5))
    first = predictor.predict(data)
    assert 1 <= first.predicted_days <= 10
    assert predictor.predict(data) == first


def test_issues_without_duration_are_ignored():
    prediction = ResolveTimePredictor().predict(_sample_similarity((0.5, 3), (0.9, None)))
    assert prediction.predicted_days == pytest.approx(3.0)
    assert prediction.issues_count == 1


def test_empty_history_raises():
    with pytest.raises(EmptyHistoryError) as exc:
        ResolveTimePredictor().predict(_sample_similarity())
    assert exc.value.assignee == "alice"
    with pytest.raises(EmptyHistoryError):
        ResolveTimePredictor().predict(_sample_similarity((0.4, None)))


def test_top_k_keeps_most_similar():
    data = _sample_similarity((0.9, 2), (0.1, 100), (0.8, 4))
    prediction = ResolveTimePredictor(top_k=2).predict(data)
    assert prediction.predicted_days == pytest.approx((0.9 * 2 + 0.8 * 4) / 1.7)
    assert prediction.issues_count == 2


def test_top_k_must_be_positive():
    with pytest.raises(ValueError):
        ResolveTimePredictor(top_k=0)
