"""Jira API client wrapper: token-paginated JQL search and single-issue fetches."""

from __future__ import annotations

import hashlib
import json
import time
from collections.abc import Iterator
from typing import Any

from jira import JIRA, JIRAError

from .errors import IssueNotFoundError

SEARCH_PATH = "/rest/api/3/search/jql"


class JiraAPI:
    def __init__(self, server: str, email: str, token: str, cache_ttl: float = 300.0):
        self.server = server.rstrip("/")
        self.client = JIRA(
            basic_auth=(email, token), options={"server": self.server, "rest_api_version": "3"}
        )
        # {query hash: (fetched_at, issues)}
        self._cache: dict[str, tuple[float, list[dict[str, Any]]]] = {}
        self._cache_ttl = cache_ttl

    def clear_cache(self) -> None:
        self._cache.clear()

    @staticmethod
    def _query_hash(jql: str, fields: list[str] | None, page_size: int) -> str:
        payload = {"jql": jql, "fields": fields, "page_size": page_size}
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()

    def iter_pages(
        self,
        jql: str,
        fields: list[str] | None = None,
        page_size: int = 500,
    ) -> Iterator[list[dict[str, Any]]]:
        session = getattr(self.client, "_session", None)
        if session is None:
            raise RuntimeError("JIRA session unavailable")
        params: dict[str, Any] = {"jql": jql, "maxResults": page_size}
        if fields:
            params["fields"] = ",".join(fields)
        next_token = None
        while True:
            query = dict(params)
            if next_token:
                query["nextPageToken"] = next_token
            resp = session.get(f"{self.server}{SEARCH_PATH}", params=query)
            if resp.status_code >= 400:
                raise RuntimeError(f"Search failed {resp.status_code}: {resp.text[:200]}")
            data = resp.json()
            yield data.get("issues", [])
            next_token = data.get("nextPageToken")
            if not next_token or data.get("isLast") is True:
                return

    def search(
        self,
        jql: str,
        fields: list[str] | None = None,
        page_size: int = 500,
    ) -> list[dict[str, Any]]:
        """Collect every page of a JQL search, reusing results younger than the cache TTL."""
        key = self._query_hash(jql, fields, page_size)
        now = time.time()
        cached = self._cache.get(key)
        if cached and (now - cached[0]) < self._cache_ttl:
            return cached[1]
        issues: list[dict[str, Any]] = []
        for page in self.iter_pages(jql, fields=fields, page_size=page_size):
            issues.extend(page)
        self._cache[key] = (now, issues)
        return issues

    def fetch_issue_raw(self, issue_key: str) -> dict[str, Any]:
        try:
            issue = self.client.issue(issue_key)
        except JIRAError as exc:  # pragma: no cover - network error path
            if exc.status_code == 404:
                raise IssueNotFoundError(issue_key) from exc
            raise RuntimeError(f"Failed to fetch issue {issue_key}: {exc}") from exc
        if isinstance(issue, dict):
            return issue
        return issue.raw
