import pytest

from jira_predictor.core.errors import DataError, IssueNotFoundError
from jira_predictor.core.jira_client import JiraAPI
from jira_predictor.core.mappers import adf_to_text, issues_to_dataframe, map_issue
from jira_predictor.core.repository import IssueRepository
from jira_predictor.core.service import IssueService


def _sample_raw(key, created, resolved, *, assignee=None, comments=None, total=None):
    comment_block = {"comments": comments or []}
    if total is not None:
        comment_block["total"] = total
    return {
        "id": "1000" + key.split("-")[1],
        "key": key,
        "fields": {
            "project": {"key": "HAD"},
            "summary": f"Summary {key}",
            "description": {
                "type": "doc",
                "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Broken block report"}]}],
            },
            "created": created,
            "resolutiondate": resolved,
            "assignee": assignee,
            "reporter": {"displayName": "Bob"},
            "priority": {"name": "Major"},
            "status": {"name": "Resolved"},
            "resolution": {"name": "Fixed"},
            "issuetype": {"name": "Bug"},
            "labels": ["hdfs"],
            "comment": comment_block,
        },
    }


def _comment(text):
    return {"author": {"displayName": "Carol"}, "created": "2024-09-01T12:00:00.000+0000", "body": text}


class DummyAPI(JiraAPI):
    def __init__(self, issues, details=None):
        self.server = "https://example.atlassian.net"
        self.issues = issues
        self.details = details or {}
        self.searches = []
        self.cleared = 0

    def clear_cache(self):
        self.cleared += 1

    def search(self, jql, fields=None, page_size=500):
        self.searches.append(jql)
        return self.issues

    def fetch_issue_raw(self, issue_key):
        if issue_key not in self.details:
            raise IssueNotFoundError(issue_key)
        return self.details[issue_key]


def test_adf_to_text_flattens_document():
    doc = {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": "Hello"}, {"type": "text", "text": " world"}]},
            {"type": "paragraph", "content": [{"type": "text", "text": "again"}]},
        ],
    }
    assert adf_to_text(doc) == "Hello world again"
    assert adf_to_text("plain") == "plain"
    assert adf_to_text(None) is None
    assert adf_to_text({"type": "doc", "content": []}) is None


def test_map_issue_fields():
    raw = _sample_raw(
        "HAD-1",
        "2024-09-01T10:00:00.000+0000",
        "2024-09-03T10:00:00.000+0000",
        assignee={"name": "alice", "displayName": "Alice A."},
        comments=[_comment("looks good")],
    )
    issue = map_issue(raw)
    assert issue.key == "HAD-1"
    assert issue.issue_id == 10001
    assert issue.project == "HAD"
    assert issue.description == "Broken block report"
    assert issue.assignee == "alice"
    assert issue.resolve_time_days == 2.0
    assert issue.comments_text == "looks good"
    assert issue.comments[0].author == "Carol"


def test_map_issue_cloud_assignee_falls_back_to_account_id():
    raw = _sample_raw("HAD-2", "2024-09-01T10:00:00.000+0000", None, assignee={"accountId": "abc123"})
    issue = map_issue(raw)
    assert issue.assignee == "abc123"
    assert not issue.is_resolved


def test_load_repository_groups_and_names():
    raw = [
        _sample_raw("HAD-1", "2024-09-01T10:00:00.000+0000", "2024-09-02T10:00:00.000+0000",
                    assignee={"name": "alice", "displayName": "Alice A."}),
        _sample_raw("HAD-2", "2024-09-01T10:00:00.000+0000", "2024-09-05T10:00:00.000+0000",
                    assignee={"name": "alice", "displayName": "Alice A."}),
        # resolved before created: skipped
        _sample_raw("HAD-3", "2024-09-05T10:00:00.000+0000", "2024-09-01T10:00:00.000+0000",
                    assignee={"name": "bob"}),
    ]
    api = DummyAPI(raw)
    repo = IssueService(api).load_repository("HAD")
    assert len(repo) == 2
    assert "resolution IS NOT EMPTY" in api.searches[0]
    grouped = repo.fetch_assignee_issues("HAD")
    (assignee,) = grouped
    assert assignee.label == "Alice A."
    assert [i.key for i in grouped[assignee]] == ["HAD-1", "HAD-2"]


def test_truncated_comments_are_hydrated():
    raw = [
        _sample_raw("HAD-1", "2024-09-01T10:00:00.000+0000", "2024-09-02T10:00:00.000+0000",
                    assignee={"name": "alice"}, comments=[_comment("one")], total=3),
    ]
    detail = {"fields": {"comment": {"comments": [_comment("one"), _comment("two"), _comment("three")]}}}
    api = DummyAPI(raw, {"HAD-1": detail})
    repo = IssueService(api).load_repository("HAD")
    assert repo.fetch_issue("HAD-1").comments_text == "one two three"


def test_fetch_issue_missing_key():
    svc = IssueService(DummyAPI([]))
    with pytest.raises(IssueNotFoundError) as exc:
        svc.fetch_issue("HAD-404")
    assert exc.value.key == "HAD-404"


def test_issues_to_dataframe():
    raw = _sample_raw("HAD-1", "2024-09-01T10:00:00.000+0000", "2024-09-02T10:00:00.000+0000",
                      assignee={"name": "alice"}, comments=[_comment("x")])
    df = issues_to_dataframe([map_issue(raw)])
    assert df.loc[0, "resolve_time_days"] == 1.0
    assert df.loc[0, "description_length"] == len("Broken block report")
    assert df.loc[0, "comments_count"] == 1
    assert issues_to_dataframe([]).empty


def test_refresh_clears_search_cache():
    api = DummyAPI([])
    svc = IssueService(api)
    svc.load_repository("HAD")
    assert api.cleared == 0
    svc.load_repository("HAD", refresh=True)
    assert api.cleared == 1
    assert len(api.searches) == 2


def test_search_results_cached_until_cleared():
    api = JiraAPI.__new__(JiraAPI)
    api.server = "https://example.atlassian.net"
    api._cache = {}
    api._cache_ttl = 300.0
    pages = []

    def iter_pages(jql, fields=None, page_size=500):
        pages.append(jql)
        yield [{"key": "HAD-1"}]

    api.iter_pages = iter_pages
    assert api.search("project = HAD") == [{"key": "HAD-1"}]
    api.search("project = HAD")
    assert len(pages) == 1
    api.clear_cache()
    api.search("project = HAD")
    assert len(pages) == 2


def _resolved_repo():
    raw = _sample_raw("HAD-1", "2024-09-01T10:00:00.000+0000", "2024-09-02T10:00:00.000+0000",
                      assignee={"name": "alice"})
    return IssueRepository([map_issue(raw)], display_names={"alice": "Alice A."})


def test_include_issue_keeps_loaded_target():
    repo = _resolved_repo()
    api = DummyAPI([])
    assert IssueService(api).include_issue(repo, "HAD-1") is repo


def test_include_issue_fetches_open_target():
    open_raw = _sample_raw("HAD-9", "2024-09-03T10:00:00.000+0000", None, assignee={"name": "bob"})
    svc = IssueService(DummyAPI([], {"HAD-9": open_raw}))
    repo = svc.include_issue(_resolved_repo(), "HAD-9")
    assert len(repo) == 2
    target = repo.fetch_issue("HAD-9")
    assert not target.is_resolved
    assert target.assignee == "bob"
    assert repo.display_names == {"alice": "Alice A."}


def test_include_issue_errors_propagate():
    broken = _sample_raw("HAD-5", "2024-09-05T10:00:00.000+0000", "2024-09-01T10:00:00.000+0000")
    svc = IssueService(DummyAPI([], {"HAD-5": broken}))
    with pytest.raises(IssueNotFoundError):
        svc.include_issue(_resolved_repo(), "HAD-404")
    with pytest.raises(DataError):
        svc.include_issue(_resolved_repo(), "HAD-5")
