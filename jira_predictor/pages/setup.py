"""Setup page: connect to Jira (or open a snapshot) and load a project's resolved issues."""

from __future__ import annotations

import tempfile
from pathlib import Path

import streamlit as st

from jira_predictor.app import register_page
from jira_predictor.core.config import JIRA_DEFAULT_SERVER, SETTINGS
from jira_predictor.core.errors import ConfigurationError
from jira_predictor.core.jira_client import JiraAPI
from jira_predictor.core.mappers import issues_to_dataframe
from jira_predictor.core.repository import IssueRepository
from jira_predictor.core.service import IssueService
from jira_predictor.visual.progress import ProgressReporter
from jira_predictor.visual.tables import add_ticket_link


def _secret(*names: str) -> str | None:
    jira_secrets = st.secrets.get("jira", {})
    for name in names:
        value = jira_secrets.get(name) or st.secrets.get(name)
        if value:
            return value
    return None


@register_page("Setup / Connection")
def setup_page():
    st.title("Data Setup")
    st.caption("Load resolved issues from Jira or from a saved JSON snapshot.")

    source = st.radio("Source", ["Jira", "Snapshot file"], horizontal=True)
    if source == "Snapshot file":
        _snapshot_setup()
    else:
        _jira_setup()

    repo: IssueRepository | None = st.session_state.get("issue_repository")
    if repo is not None:
        st.info(f"{len(repo)} issue(s) loaded for {st.session_state.get('project_key') or 'all projects'}.")
        _preview(repo)


def _preview(repo: IssueRepository):
    df = issues_to_dataframe(repo.issues)
    if df.empty:
        return
    with st.expander("Loaded issues", expanded=False):
        linked, cfg = add_ticket_link(df, st.session_state.get("jira_server", ""))
        st.dataframe(linked.head(SETTINGS.max_table_rows), hide_index=True, column_config=cfg)


def _snapshot_setup():
    upload = st.file_uploader("Snapshot (JSON)", type=["json"])
    if upload is None:
        return
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "snapshot.json"
        path.write_bytes(upload.getvalue())
        try:
            repo = IssueRepository.from_json(path)
        except ConfigurationError as exc:
            st.error(f"Could not read snapshot: {exc}")
            return
    st.session_state["issue_repository"] = repo
    st.session_state["project_key"] = None
    st.session_state.pop("issue_service", None)
    st.success(f"Loaded {len(repo)} issue(s) from snapshot.")


def _jira_setup():
    server = st.text_input("Jira Server URL", value=st.session_state.get("jira_server") or _secret("JIRA_SERVER") or JIRA_DEFAULT_SERVER)
    email = st.text_input("Email / Username", value=st.session_state.get("jira_email") or _secret("JIRA_EMAIL") or "")
    token = st.text_input("API Token", type="password", value=_secret("JIRA_API_TOKEN", "JIRA_TOKEN") or "")
    project = st.text_input("Project key", value=st.session_state.get("project_key") or "")
    refresh = st.checkbox("Bypass cached Jira results", value=False)
    if not st.button("Load Project", type="primary"):
        return
    if not (server and email and token and project):
        st.error("All fields required.")
        return

    reporter = ProgressReporter(f"Loading resolved issues for {project}")
    try:
        service = _issue_service(server, email, token)
        repo = service.load_repository(project, progress=reporter.callback, refresh=refresh)
    except Exception as exc:  # pragma: no cover
        reporter.error(f"Failed to load project {project}: {exc}")
        return
    st.session_state["jira_server"] = server
    st.session_state["jira_email"] = email
    st.session_state["project_key"] = project
    st.session_state["issue_service"] = service
    st.session_state["issue_repository"] = repo
    reporter.complete(f"Loaded {len(repo)} resolved issue(s).")


def _issue_service(server: str, email: str, token: str) -> IssueService:
    # Reuse the connection so its search cache survives reloads
    service: IssueService | None = st.session_state.get("issue_service")
    if (
        service is not None
        and st.session_state.get("jira_server") == server
        and st.session_state.get("jira_email") == email
        and st.session_state.get("jira_token") == token
    ):
        return service
    st.session_state["jira_token"] = token
    return IssueService(JiraAPI(server, email, token))
