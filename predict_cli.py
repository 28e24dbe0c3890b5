"""Command-line driver: predict resolve times from a YAML settings file.

Usage:
  python predict_cli.py prediction.yaml [--snapshot issues.json] [--save-snapshot out.json]

Exit status: 0 on success, 1 on configuration errors (settings or snapshot
files), 2 on data errors (such as an unknown or malformed target issue).
"""

from __future__ import annotations

import argparse
import logging
import sys

from jira_predictor.analytics.engine import PredictionEngine
from jira_predictor.core.errors import ConfigurationError, DataError, IssueNotFoundError
from jira_predictor.core.jira_client import JiraAPI
from jira_predictor.core.repository import IssueRepository
from jira_predictor.core.service import IssueService
from jira_predictor.core.settings import PredictionSettings, load_settings
from jira_predictor.visual.report import compose_batch_report

logger = logging.getLogger("predict_cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Predict Jira issue resolve times per developer.")
    parser.add_argument("settings", help="path to the YAML settings file")
    parser.add_argument("--snapshot", help="read issues from a JSON snapshot instead of Jira")
    parser.add_argument("--save-snapshot", help="write the loaded issues to a JSON snapshot")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def load_repository(settings: PredictionSettings, snapshot: str | None) -> IssueRepository:
    if snapshot:
        return IssueRepository.from_json(snapshot)
    jira = settings.jira
    if not jira.complete:
        raise ConfigurationError("Jira server, email and token are required without --snapshot")
    if not settings.project:
        raise ConfigurationError("project is required when loading issues from Jira")
    service = IssueService(JiraAPI(jira.server, jira.email, jira.token))
    repo = service.load_repository(settings.project)
    if settings.single_issue_mode:
        repo = service.include_issue(repo, settings.issue_key)
    return repo


def _data_failure(exc: DataError, settings_path: str) -> int:
    if isinstance(exc, IssueNotFoundError):
        print(f"{exc}. Check issue_key in {settings_path}.", file=sys.stderr)
    else:
        print(f"Data error: {exc}", file=sys.stderr)
    return 2


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        settings = load_settings(args.settings)
        repo = load_repository(settings, args.snapshot)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1
    except DataError as exc:
        return _data_failure(exc, args.settings)
    if args.save_snapshot:
        try:
            repo.to_json(args.save_snapshot)
        except OSError as exc:
            print(f"Configuration error: cannot write snapshot {args.save_snapshot}: {exc.strerror or exc}", file=sys.stderr)
            return 1
        logger.info("Saved %s issue(s) to %s", len(repo), args.save_snapshot)

    engine = PredictionEngine(repo, settings)
    try:
        batch = engine.run()
    except DataError as exc:
        return _data_failure(exc, args.settings)
    for line in compose_batch_report(batch):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
