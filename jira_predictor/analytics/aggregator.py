"""Issue similarity aggregation: weighted per-field text similarity between two issues."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from jira_predictor.core.models import (
    AssigneeIssues,
    AssigneeIssueSimilarity,
    AssigneeModel,
    IssueModel,
    IssueSimilarity,
    SimilarityField,
    SimilarityScore,
)
from jira_predictor.core.settings import PredictionSettings

from .filters import is_same_issue
from .text.similarity import TextsSimilarity, make_texts_similarity

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SimilarityWeights:
    summary: float
    description: float
    comments: float

    @classmethod
    def from_settings(cls, settings: PredictionSettings) -> SimilarityWeights:
        return cls(settings.summary_weight, settings.description_weight, settings.comments_weight)

    def weight(self, fld: SimilarityField) -> float:
        return {
            SimilarityField.SUMMARY: self.summary,
            SimilarityField.DESCRIPTION: self.description,
            SimilarityField.COMMENTS: self.comments,
        }[fld]


class IssuesSimilarityCalculator:
    """Combine summary, description and comment similarities into one aggregate score.

    The comments term compares the *target's summary* with the candidate's
    concatenated comment text. Weights are applied as given and the aggregate
    is not clamped, so weights summing above 1 can push it above 1.
    """

    def __init__(self, weights: SimilarityWeights, texts_similarity: TextsSimilarity):
        self.weights = weights
        self.texts_similarity = texts_similarity

    @classmethod
    def from_settings(cls, settings: PredictionSettings) -> IssuesSimilarityCalculator:
        return cls(SimilarityWeights.from_settings(settings), make_texts_similarity(settings.text_metric))

    def field_similarities(self, target: IssueModel, candidate: IssueModel) -> dict[SimilarityField, SimilarityScore]:
        sim = self.texts_similarity.similarity
        pairs = {
            SimilarityField.SUMMARY: (target.summary, candidate.summary),
            SimilarityField.DESCRIPTION: (target.description, candidate.description),
            SimilarityField.COMMENTS: (target.summary, candidate.comments_text or None),
        }
        return {fld: SimilarityScore(sim(a, b), (fld,)) for fld, (a, b) in pairs.items()}

    def combine(self, scores: dict[SimilarityField, SimilarityScore]) -> SimilarityScore:
        total = sum(self.weights.weight(fld) * score.value for fld, score in scores.items())
        return SimilarityScore(total, (SimilarityField.AGGREGATE, *scores))

    def issues_similarity(self, target: IssueModel, candidate: IssueModel) -> SimilarityScore:
        return self.combine(self.field_similarities(target, candidate))

    def assignee_similarity(
        self,
        assignee: AssigneeModel,
        issues: Iterable[IssueModel],
        target: IssueModel,
    ) -> AssigneeIssueSimilarity:
        similarities = [
            IssueSimilarity(issue, self.issues_similarity(target, issue))
            for issue in issues
            if not is_same_issue(issue, target)
        ]
        return AssigneeIssueSimilarity(assignee, similarities)

    def similarity_list(self, target: IssueModel, assignee_issues: AssigneeIssues) -> list[AssigneeIssueSimilarity]:
        out = [self.assignee_similarity(a, issues, target) for a, issues in assignee_issues.items()]
        logger.debug(
            "Scored %s against %s assignee(s), %s issue(s)",
            target.key,
            len(out),
            sum(len(s) for s in out),
        )
        return out
