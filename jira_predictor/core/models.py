"""Domain data models: issues, assignees, similarity scores, predictions and statistics."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .errors import DataError
from .timeutils import elapsed_days, ensure_aware


@dataclass(slots=True)
class CommentModel:
    author: str | None
    created: datetime | None
    body: str | None


@dataclass(slots=True)
class IssueModel:
    key: str
    summary: str | None
    description: str | None
    created: datetime | None
    resolution_date: datetime | None
    assignee: str | None
    priority: str | None
    issuetype: str | None
    project: str | None = None
    issue_id: int | None = None
    status: str | None = None
    resolution: str | None = None
    reporter: str | None = None
    labels: list[str] = field(default_factory=list)
    comments: list[CommentModel] = field(default_factory=list)

    def __post_init__(self):
        self.created = ensure_aware(self.created)
        self.resolution_date = ensure_aware(self.resolution_date)
        if self.created and self.resolution_date and self.resolution_date < self.created:
            raise DataError(f"Issue {self.key} resolved before it was created")

    @property
    def is_resolved(self) -> bool:
        return self.resolution_date is not None

    @property
    def resolve_time_days(self) -> float | None:
        """Days between creation and resolution, None when either timestamp is missing."""
        return elapsed_days(self.created, self.resolution_date)

    @property
    def comments_text(self) -> str:
        return " ".join(c.body for c in self.comments if c.body)


@dataclass(slots=True, eq=False)
class AssigneeModel:
    name: str
    display_name: str | None = None
    issues: list[IssueModel] = field(default_factory=list, compare=False, repr=False)

    def __hash__(self):
        return hash(self.name)

    def __eq__(self, other):
        if not isinstance(other, AssigneeModel):
            return NotImplemented
        return self.name == other.name

    @property
    def label(self) -> str:
        return self.display_name or self.name


AssigneeIssues = dict[AssigneeModel, list[IssueModel]]


class SimilarityField(Enum):
    SUMMARY = "summary"
    DESCRIPTION = "description"
    COMMENTS = "comments"
    AGGREGATE = "aggregate"


@dataclass(frozen=True, slots=True)
class SimilarityScore:
    value: float
    fields: tuple[SimilarityField, ...] = ()


@dataclass(frozen=True, slots=True)
class IssueSimilarity:
    issue: IssueModel
    score: SimilarityScore

    @property
    def value(self) -> float:
        return self.score.value


@dataclass(slots=True)
class AssigneeIssueSimilarity:
    assignee: AssigneeModel
    similarities: list[IssueSimilarity] = field(default_factory=list)

    def __len__(self):
        return len(self.similarities)


@dataclass(frozen=True, slots=True)
class Prediction:
    assignee: AssigneeModel
    predicted_days: float
    similarity_mass: float
    issues_count: int


@dataclass(frozen=True, slots=True)
class EvaluationStatistics:
    mse: float
    rmse: float
    r_squared: float
    count: int

    @property
    def r_squared_defined(self) -> bool:
        return not math.isnan(self.r_squared)
