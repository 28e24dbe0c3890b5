"""Similarity-weighted resolve-time prediction for one assignee."""

from __future__ import annotations

from jira_predictor.core.errors import EmptyHistoryError
from jira_predictor.core.models import AssigneeIssueSimilarity, Prediction


class ResolveTimePredictor:
    """Weighted k-nearest-neighbour regression over an assignee's historical issues.

    ``predicted = sum(s_i * d_i) / sum(s_i)`` where ``s_i`` is the aggregate
    similarity and ``d_i`` the resolve time in days of historical issue ``i``.
    With no similarity signal at all the unweighted mean duration is returned.
    ``top_k`` optionally keeps only the k most similar issues; by default every
    filtered issue takes part.
    """

    def __init__(self, top_k: int | None = None):
        if top_k is not None and top_k < 1:
            raise ValueError("top_k must be at least 1")
        self.top_k = top_k

    def predict(self, assignee_similarity: AssigneeIssueSimilarity) -> Prediction:
        pairs = [
            (s.value, s.issue.resolve_time_days)
            for s in assignee_similarity.similarities
            if s.issue.resolve_time_days is not None
        ]
        if not pairs:
            raise EmptyHistoryError(assignee_similarity.assignee.name)
        if self.top_k is not None:
            pairs = sorted(pairs, key=lambda p: p[0], reverse=True)[: self.top_k]

        mass = sum(score for score, _ in pairs)
        if mass > 0:
            predicted = sum(score * days for score, days in pairs) / mass
        else:
            predicted = sum(days for _, days in pairs) / len(pairs)
        return Prediction(
            assignee=assignee_similarity.assignee,
            predicted_days=predicted,
            similarity_mass=mass,
            issues_count=len(pairs),
        )
