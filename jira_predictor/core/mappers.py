"""Mapping raw Jira issue JSON into IssueModel instances and DataFrames."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pandas as pd

from .models import CommentModel, IssueModel
from .timeutils import parse_timestamp


def adf_to_text(value: Any) -> str | None:
    """Flatten an Atlassian Document Format node (REST v3 rich text) into plain text.

    Plain strings (REST v2 payloads) pass through unchanged.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    parts: list[str] = []

    def walk(node: Any):
        if isinstance(node, dict):
            text = node.get("text")
            if isinstance(text, str):
                parts.append(text)
            for child in node.get("content") or []:
                walk(child)
            if node.get("type") in {"paragraph", "heading", "listItem", "codeBlock"}:
                parts.append("\n")
        elif isinstance(node, list):
            for item in node:
                walk(item)

    walk(value)
    text = " ".join("".join(parts).split())
    return text or None


def _name(value: Any, *keys: str) -> str | None:
    if not isinstance(value, dict):
        return None
    for key in keys:
        found = value.get(key)
        if found:
            return found
    return None


def map_comment(raw: dict[str, Any]) -> CommentModel:
    return CommentModel(
        author=_name(raw.get("author"), "displayName", "name"),
        created=parse_timestamp(raw.get("created")),
        body=adf_to_text(raw.get("body")),
    )


def map_issue(raw: dict[str, Any]) -> IssueModel:
    fields = raw.get("fields", {})
    comments_raw = (fields.get("comment") or {}).get("comments", []) or []
    issue_id = raw.get("id")
    return IssueModel(
        key=raw.get("key"),
        issue_id=int(issue_id) if issue_id is not None else None,
        project=_name(fields.get("project"), "key", "name"),
        summary=fields.get("summary"),
        description=adf_to_text(fields.get("description")),
        created=parse_timestamp(fields.get("created")),
        resolution_date=parse_timestamp(fields.get("resolutiondate")),
        assignee=_name(fields.get("assignee"), "name", "accountId", "displayName"),
        priority=_name(fields.get("priority"), "name"),
        issuetype=_name(fields.get("issuetype"), "name"),
        status=_name(fields.get("status"), "name"),
        resolution=_name(fields.get("resolution"), "name"),
        reporter=_name(fields.get("reporter"), "displayName", "name"),
        labels=list(fields.get("labels", []) or []),
        comments=[map_comment(c) for c in comments_raw],
    )


def assignee_display_name(raw: dict[str, Any]) -> str | None:
    return _name((raw.get("fields") or {}).get("assignee"), "displayName")


def issues_to_dataframe(issues: Iterable[IssueModel]) -> pd.DataFrame:
    rows = [
        {
            "key": i.key,
            "project": i.project,
            "summary": i.summary,
            "issuetype": i.issuetype,
            "priority": i.priority or "None",
            "assignee": i.assignee or "Unassigned",
            "status": i.status,
            "resolution": i.resolution or "Unresolved",
            "created": i.created,
            "resolution_date": i.resolution_date,
            "resolve_time_days": i.resolve_time_days,
            "description_length": len((i.description or "").strip()),
            "comments_count": len(i.comments),
        }
        for i in issues
    ]
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    return df.sort_values(by="created", ascending=False, na_position="last")
