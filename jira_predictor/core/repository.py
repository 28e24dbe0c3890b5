"""In-memory issue repository: the persistence boundary the prediction engine reads from.

The engine never opens or closes a session itself. It receives fully
materialized ``IssueModel`` objects through the ``IssueSource`` protocol.
"""

from __future__ import annotations

import json
import logging
import math
import random
from collections.abc import Iterable
from dataclasses import asdict
from pathlib import Path
from typing import Any, Protocol

from .errors import ConfigurationError, DataError, IssueNotFoundError
from .models import AssigneeIssues, AssigneeModel, CommentModel, IssueModel
from .timeutils import parse_timestamp

logger = logging.getLogger(__name__)


class IssueSource(Protocol):
    def fetch_assignee_issues(self, project: str | None) -> AssigneeIssues: ...

    def fetch_issue(self, key: str) -> IssueModel: ...

    def fetch_project_sample(self, project: str | None, percentage: float, seed: int | None = None) -> list[IssueModel]: ...


class IssueRepository:
    def __init__(self, issues: Iterable[IssueModel], display_names: dict[str, str] | None = None):
        self._issues: dict[str, IssueModel] = {}
        for issue in issues:
            if issue.key in self._issues:
                logger.debug("Duplicate issue %s replaced", issue.key)
            self._issues[issue.key] = issue
        self._display_names = dict(display_names or {})

    def __len__(self):
        return len(self._issues)

    @property
    def issues(self) -> list[IssueModel]:
        return list(self._issues.values())

    def project_issues(self, project: str | None) -> list[IssueModel]:
        if project is None:
            return self.issues
        return [i for i in self._issues.values() if i.project == project]

    def fetch_issue(self, key: str) -> IssueModel:
        try:
            return self._issues[key]
        except KeyError:
            raise IssueNotFoundError(key) from None

    def fetch_assignee_issues(self, project: str | None) -> AssigneeIssues:
        """Group the project's issues by the assignee that resolved them (insertion order kept)."""
        grouped: AssigneeIssues = {}
        assignees: dict[str, AssigneeModel] = {}
        for issue in self.project_issues(project):
            if not issue.assignee:
                continue
            assignee = assignees.get(issue.assignee)
            if assignee is None:
                assignee = AssigneeModel(issue.assignee, self._display_names.get(issue.assignee))
                assignees[issue.assignee] = assignee
                grouped[assignee] = []
            assignee.issues.append(issue)
            grouped[assignee].append(issue)
        return grouped

    def fetch_project_sample(self, project: str | None, percentage: float, seed: int | None = None) -> list[IssueModel]:
        """Seeded random sample of ``percentage`` percent of the project's resolved, assigned issues.

        At least one issue is returned when the project has any candidate.
        The sample is ordered by issue key for stable reports.
        """
        if not 0 < percentage <= 100:
            raise ConfigurationError("percentage must be in (0, 100]")
        candidates = [i for i in self.project_issues(project) if i.is_resolved and i.assignee]
        if not candidates:
            return []
        size = max(1, math.floor(len(candidates) * percentage / 100.0))
        rng = random.Random(seed)
        picked = rng.sample(candidates, size)
        return sorted(picked, key=lambda i: (i.project or "", _key_order(i.key)))

    # ------------------ Snapshots ------------------
    def to_json(self, path: str | Path) -> None:
        payload = {
            "display_names": self._display_names,
            "issues": [asdict(i) for i in self._issues.values()],
        }
        Path(path).write_text(json.dumps(payload, indent=2, default=str))

    @property
    def display_names(self) -> dict[str, str]:
        return dict(self._display_names)

    @classmethod
    def from_json(cls, path: str | Path) -> IssueRepository:
        """Load a snapshot written by ``to_json``.

        An unreadable or malformed file raises ``ConfigurationError``; rows that
        cannot become an issue are skipped with a warning.
        """
        try:
            data = json.loads(Path(path).read_text())
        except OSError as exc:
            raise ConfigurationError(f"Cannot read snapshot {path}: {exc.strerror or exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Snapshot {path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("issues", []), list):
            raise ConfigurationError(f"Snapshot {path} must be an object with an \"issues\" list")
        issues = []
        for row in data.get("issues", []):
            try:
                issues.append(_issue_from_dict(row))
            except DataError as exc:
                logger.warning("Skipping snapshot issue: %s", exc)
        return cls(issues, display_names=data.get("display_names"))


def _key_order(key: str) -> tuple[str, int]:
    prefix, _, number = (key or "").rpartition("-")
    if number.isdigit():
        return prefix, int(number)
    return key or "", 0


def _issue_from_dict(row: Any) -> IssueModel:
    if not isinstance(row, dict) or not row.get("key"):
        raise DataError(f"snapshot row without an issue key: {str(row)[:80]}")
    comments = [
        CommentModel(author=c.get("author"), created=parse_timestamp(c.get("created")), body=c.get("body"))
        for c in row.get("comments") or []
    ]
    return IssueModel(
        key=row["key"],
        issue_id=row.get("issue_id"),
        project=row.get("project"),
        summary=row.get("summary"),
        description=row.get("description"),
        created=parse_timestamp(row.get("created")),
        resolution_date=parse_timestamp(row.get("resolution_date")),
        assignee=row.get("assignee"),
        priority=row.get("priority"),
        issuetype=row.get("issuetype"),
        status=row.get("status"),
        resolution=row.get("resolution"),
        reporter=row.get("reporter"),
        labels=list(row.get("labels") or []),
        comments=comments,
    )
