"""Historical corpus filters narrowing assignee issue lists to comparable, well-formed issues.

Issue-level filters expose ``accept(issue)``; assignee-level filters expose
``accept_history(issues)``. ``AssigneeFilter`` combines them by conjunction:
an issue survives only if every issue filter accepts it, and an assignee
survives only if the surviving issues pass every history filter and are not
empty. Issue filters always run before history filters, so the order in which
filters are appended does not change the result.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from jira_predictor.core.config import normalize_priority_name
from jira_predictor.core.models import AssigneeIssues, IssueModel
from jira_predictor.core.settings import PredictionSettings


class IssueFilter(Protocol):
    def accept(self, issue: IssueModel) -> bool: ...


class HistoryFilter(Protocol):
    def accept_history(self, issues: list[IssueModel]) -> bool: ...


@dataclass(frozen=True, slots=True)
class TimestampsNotNullFilter:
    def accept(self, issue: IssueModel) -> bool:
        return issue.created is not None and issue.resolution_date is not None


@dataclass(frozen=True, slots=True)
class MinimumDescriptionLengthFilter:
    min_length: int

    def accept(self, issue: IssueModel) -> bool:
        return len((issue.description or "").strip()) >= self.min_length


@dataclass(frozen=True, slots=True)
class MinimumIssueCountFilter:
    min_issues: int

    def accept_history(self, issues: list[IssueModel]) -> bool:
        return len(issues) >= self.min_issues


def _casefold_set(values: Iterable[str], normalize=None) -> frozenset[str]:
    normalize = normalize or (lambda v: v)
    return frozenset(normalize(v).strip().casefold() for v in values if v and v.strip())


@dataclass(frozen=True, slots=True)
class SelectedIssueTypesFilter:
    """Accept issues whose type is in ``allowed`` (case-insensitive). Empty ``allowed`` accepts all."""

    allowed: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, types: Iterable[str]) -> SelectedIssueTypesFilter:
        return cls(_casefold_set(types))

    def accept(self, issue: IssueModel) -> bool:
        if not self.allowed:
            return True
        return (issue.issuetype or "").strip().casefold() in self.allowed


@dataclass(frozen=True, slots=True)
class SelectedIssuePriorityFilter:
    """Accept issues whose normalized priority is in ``allowed``. Empty ``allowed`` accepts all."""

    allowed: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, priorities: Iterable[str]) -> SelectedIssuePriorityFilter:
        return cls(_casefold_set(priorities, normalize_priority_name))

    def accept(self, issue: IssueModel) -> bool:
        if not self.allowed:
            return True
        return normalize_priority_name(issue.priority).casefold() in self.allowed


@dataclass(frozen=True, slots=True)
class AnalyzedIssueFilter:
    """Reject the target issue so it is never compared against itself."""

    target: IssueModel

    def accept(self, issue: IssueModel) -> bool:
        return not is_same_issue(issue, self.target)


def is_same_issue(a: IssueModel, b: IssueModel) -> bool:
    if a is b:
        return True
    if a.key and b.key:
        return a.key == b.key
    return a.issue_id is not None and a.issue_id == b.issue_id


class AssigneeFilter:
    def __init__(self):
        self._issue_filters: list[IssueFilter] = []
        self._history_filters: list[HistoryFilter] = []

    def add_filter(self, flt: IssueFilter | HistoryFilter) -> AssigneeFilter:
        added = False
        if hasattr(flt, "accept"):
            self._issue_filters.append(flt)
            added = True
        if hasattr(flt, "accept_history"):
            self._history_filters.append(flt)
            added = True
        if not added:
            raise TypeError(f"{type(flt).__name__} is neither an issue nor a history filter")
        return self

    @property
    def filters(self) -> list:
        return [*self._issue_filters, *self._history_filters]

    def accept(self, issue: IssueModel) -> bool:
        return all(f.accept(issue) for f in self._issue_filters)

    def accept_history(self, issues: list[IssueModel]) -> bool:
        return bool(issues) and all(f.accept_history(issues) for f in self._history_filters)

    def apply(self, assignee_issues: AssigneeIssues) -> AssigneeIssues:
        out: AssigneeIssues = {}
        for assignee, issues in assignee_issues.items():
            surviving = [i for i in issues if self.accept(i)]
            if self.accept_history(surviving):
                out[assignee] = surviving
        return out


def build_filter_chain(settings: PredictionSettings, target: IssueModel | None = None) -> AssigneeFilter:
    chain = (
        AssigneeFilter()
        .add_filter(TimestampsNotNullFilter())
        .add_filter(MinimumDescriptionLengthFilter(settings.min_description_length))
        .add_filter(MinimumIssueCountFilter(settings.min_issues))
        .add_filter(SelectedIssueTypesFilter.of(settings.issue_types))
        .add_filter(SelectedIssuePriorityFilter.of(settings.issue_priorities))
    )
    if target is not None:
        chain.add_filter(AnalyzedIssueFilter(target))
    return chain
