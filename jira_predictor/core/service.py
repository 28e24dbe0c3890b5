"""IssueService: fetches a project's resolved issues from Jira and maps them into the domain model."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from .config import (
    COMMENT_HYDRATION_MAX_WORKERS,
    COMMENT_HYDRATION_MIN_PARALLEL,
    COMMENT_PAGE_SIZE_GUESS,
    FULL_COMMENT_HYDRATION,
    JIRA_FETCH_BASE_FIELDS,
)
from .errors import DataError, IssueNotFoundError
from .jira_client import JiraAPI
from .mappers import assignee_display_name, map_issue
from .models import IssueModel
from .repository import IssueRepository

logger = logging.getLogger(__name__)

DEFAULT_FIELDS: Sequence[str] = tuple(JIRA_FETCH_BASE_FIELDS)
ProgressCallback = Callable[[str, int | None, int | None], None]


class IssueService:
    def __init__(self, api: JiraAPI):
        self.api = api

    def fetch_project_raw(
        self,
        project_key: str,
        *,
        progress: ProgressCallback | None = None,
        refresh: bool = False,
    ) -> list[dict[str, Any]]:
        """Resolved issues of ``project_key`` with a full comment history.

        ``refresh`` drops cached search results so the query reaches Jira again.
        """
        if refresh:
            self.api.clear_cache()
        jql = f"project = {project_key} AND resolution IS NOT EMPTY ORDER BY created ASC"
        if progress:
            progress(f"Querying resolved issues for {project_key}", None, None)
        raw = self.api.search(jql, fields=list(DEFAULT_FIELDS))
        self._inflate_truncated_comments(raw, force_all=FULL_COMMENT_HYDRATION, progress=progress)
        return raw

    def load_repository(
        self,
        project_key: str,
        *,
        progress: ProgressCallback | None = None,
        refresh: bool = False,
    ) -> IssueRepository:
        raw = self.fetch_project_raw(project_key, progress=progress, refresh=refresh)
        if progress:
            progress("Mapping issues", None, None)
        issues = self._map_all(raw)
        display_names: dict[str, str] = {}
        for r, issue in zip(raw, issues, strict=False):
            name = assignee_display_name(r)
            if issue is not None and issue.assignee and name:
                display_names[issue.assignee] = name
        return IssueRepository([i for i in issues if i is not None], display_names=display_names)

    def fetch_issue(self, issue_key: str) -> IssueModel:
        return map_issue(self.api.fetch_issue_raw(issue_key))

    def include_issue(self, repo: IssueRepository, issue_key: str) -> IssueRepository:
        """Return ``repo`` extended with ``issue_key`` when it is not already loaded.

        Loaded repositories only hold resolved issues, so an open target issue
        is fetched on its own. ``IssueNotFoundError`` and ``DataError`` propagate.
        """
        try:
            repo.fetch_issue(issue_key)
            return repo
        except IssueNotFoundError:
            pass
        target = self.fetch_issue(issue_key)
        logger.info("Fetched target %s outside the resolved corpus", issue_key)
        return IssueRepository([*repo.issues, target], display_names=repo.display_names)

    # ------------------ Internal Helpers ------------------
    def _map_all(self, raw_issues: list[dict[str, Any]]) -> list[IssueModel | None]:
        out: list[IssueModel | None] = []
        for raw in raw_issues:
            try:
                out.append(map_issue(raw))
            except DataError as exc:
                logger.warning("Skipping malformed issue %s: %s", raw.get("key"), exc)
                out.append(None)
        return out

    def _inflate_truncated_comments(
        self,
        raw_issues: list[dict[str, Any]],
        *,
        force_all: bool = False,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Replace truncated comment arrays with full lists (in-place).

        Search results embed only the first page of comments but report the
        total through ``fields.comment.total``; only those issues are refetched
        unless ``force_all`` is set.
        """
        work: list[dict[str, Any]] = []
        for issue in raw_issues:
            block = (issue.get("fields") or {}).get("comment") or {}
            embedded = block.get("comments") or []
            total = block.get("total")
            truncated = (isinstance(total, int) and total > len(embedded)) or (
                total is None and len(embedded) >= COMMENT_PAGE_SIZE_GUESS
            )
            if force_all or truncated:
                work.append(issue)
        if not work:
            return

        if progress:
            progress("Loading complete comment history", 0, len(work))
        if len(work) < COMMENT_HYDRATION_MIN_PARALLEL:
            for idx, issue in enumerate(work, start=1):
                self._hydrate_single_issue(issue)
                if progress:
                    progress("Loading complete comment history", idx, len(work))
            return

        completed = 0
        with ThreadPoolExecutor(max_workers=COMMENT_HYDRATION_MAX_WORKERS) as pool:
            futures = [pool.submit(self._hydrate_single_issue, iss) for iss in work]
            for fut in as_completed(futures):
                try:
                    fut.result()
                except Exception as exc:  # pragma: no cover
                    logger.warning("Hydration task failed: %s", exc)
                finally:
                    completed += 1
                    if progress:
                        progress("Loading complete comment history", completed, len(work))

    def _hydrate_single_issue(self, issue: dict[str, Any]) -> None:
        key = issue.get("key")
        if not key:
            return
        fields = issue.setdefault("fields", {})
        block = fields.get("comment") or {}
        embedded = block.get("comments") or []
        try:
            detail = self.api.fetch_issue_raw(key)
        except Exception as exc:  # pragma: no cover
            logger.warning("Failed to hydrate issue %s: %s", key, exc)
            return
        full = ((detail.get("fields") or {}).get("comment") or {}).get("comments") or []
        if len(full) >= len(embedded):
            fields["comment"] = {"comments": full, "total": len(full)}
            logger.debug("Hydrated %s comments: %s -> %s", key, len(embedded), len(full))
