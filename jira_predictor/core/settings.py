"""Load and validate prediction run settings from YAML.

Settings are validated eagerly: any missing or malformed value raises
``ConfigurationError`` before a single issue is evaluated.
"""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .config import (
    DEFAULT_COMMENTS_WEIGHT,
    DEFAULT_DESCRIPTION_WEIGHT,
    DEFAULT_MAX_WORKERS,
    DEFAULT_MIN_DESCRIPTION_LENGTH,
    DEFAULT_MIN_ISSUES,
    DEFAULT_SUMMARY_WEIGHT,
    DEFAULT_TEXT_METRIC,
    JIRA_ENV_EMAIL,
    JIRA_ENV_SERVER,
    JIRA_ENV_TOKEN,
)
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

TEXT_METRICS = ("jaccard", "cosine", "both")


@dataclass(slots=True)
class JiraSettings:
    server: str | None = None
    email: str | None = None
    token: str | None = None

    @property
    def complete(self) -> bool:
        return bool(self.server and self.email and self.token)


@dataclass(slots=True)
class PredictionSettings:
    project: str | None = None
    summary_weight: float = DEFAULT_SUMMARY_WEIGHT
    description_weight: float = DEFAULT_DESCRIPTION_WEIGHT
    comments_weight: float = DEFAULT_COMMENTS_WEIGHT
    min_description_length: int = DEFAULT_MIN_DESCRIPTION_LENGTH
    min_issues: int = DEFAULT_MIN_ISSUES
    issue_types: list[str] = field(default_factory=list)
    issue_priorities: list[str] = field(default_factory=list)
    text_metric: str = DEFAULT_TEXT_METRIC
    issue_key: str | None = None
    percentage_scope: float | None = None
    sample_seed: int | None = None
    top_k: int | None = None
    max_workers: int = DEFAULT_MAX_WORKERS
    timeout_seconds: float | None = None
    jira: JiraSettings = field(default_factory=JiraSettings)

    @property
    def single_issue_mode(self) -> bool:
        return self.issue_key is not None

    def validate(self) -> PredictionSettings:
        for name in ("summary_weight", "description_weight", "comments_weight"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ConfigurationError(f"{name} must be a finite non-negative number, got {value}")
        total = self.summary_weight + self.description_weight + self.comments_weight
        if total == 0:
            raise ConfigurationError("At least one similarity weight must be positive")
        if total > 1:
            logger.warning("Similarity weights sum to %.3f; aggregate scores may exceed 1", total)
        if self.min_description_length < 0:
            raise ConfigurationError("min_description_length must be non-negative")
        if self.min_issues < 1:
            raise ConfigurationError("min_issues must be at least 1")
        if self.text_metric not in TEXT_METRICS:
            raise ConfigurationError(f"text_metric must be one of {', '.join(TEXT_METRICS)}, got {self.text_metric!r}")
        if (self.issue_key is None) == (self.percentage_scope is None):
            raise ConfigurationError("Exactly one of issue_key or percentage_scope must be set")
        if self.percentage_scope is not None and not 0 < self.percentage_scope <= 100:
            raise ConfigurationError("percentage_scope must be in (0, 100]")
        if self.top_k is not None and self.top_k < 1:
            raise ConfigurationError("top_k must be at least 1")
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
        if self.timeout_seconds is not None and not (math.isfinite(self.timeout_seconds) and self.timeout_seconds > 0):
            raise ConfigurationError("timeout_seconds must be a finite positive number")
        return self


def _coerce(data: Mapping[str, Any], key: str, kind, default):
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid value for {key}: {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid value for {key}: {value!r}") from exc


def _string_list(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, list | tuple):
        return [str(item).strip() for item in value if str(item).strip()]
    raise ConfigurationError(f"{key} must be a list of strings")


def _jira_settings(data: Mapping[str, Any] | None, environ: Mapping[str, str]) -> JiraSettings:
    data = data or {}
    if not isinstance(data, Mapping):
        raise ConfigurationError("jira must be a mapping")
    return JiraSettings(
        server=data.get("server") or environ.get(JIRA_ENV_SERVER),
        email=data.get("email") or environ.get(JIRA_ENV_EMAIL),
        token=data.get("token") or environ.get(JIRA_ENV_TOKEN),
    )


def settings_from_mapping(
    data: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> PredictionSettings:
    if not isinstance(data, Mapping):
        raise ConfigurationError("Settings must be a mapping")
    environ = os.environ if environ is None else environ
    weights = data.get("weights") or {}
    if not isinstance(weights, Mapping):
        raise ConfigurationError("weights must be a mapping")
    issue_key = data.get("issue_key")
    settings = PredictionSettings(
        project=data.get("project"),
        summary_weight=_coerce(weights, "summary", float, DEFAULT_SUMMARY_WEIGHT),
        description_weight=_coerce(weights, "description", float, DEFAULT_DESCRIPTION_WEIGHT),
        comments_weight=_coerce(weights, "comments", float, DEFAULT_COMMENTS_WEIGHT),
        min_description_length=_coerce(data, "min_description_length", int, DEFAULT_MIN_DESCRIPTION_LENGTH),
        min_issues=_coerce(data, "min_issues", int, DEFAULT_MIN_ISSUES),
        issue_types=_string_list(data, "issue_types"),
        issue_priorities=_string_list(data, "issue_priorities"),
        text_metric=str(data.get("text_metric") or DEFAULT_TEXT_METRIC).lower(),
        issue_key=str(issue_key) if issue_key is not None else None,
        percentage_scope=_coerce(data, "percentage_scope", float, None),
        sample_seed=_coerce(data, "sample_seed", int, None),
        top_k=_coerce(data, "top_k", int, None),
        max_workers=_coerce(data, "max_workers", int, DEFAULT_MAX_WORKERS),
        timeout_seconds=_coerce(data, "timeout_seconds", float, None),
        jira=_jira_settings(data.get("jira"), environ),
    )
    return settings.validate()


def load_settings(path: str | Path, environ: Mapping[str, str] | None = None) -> PredictionSettings:
    yaml_path = Path(path)
    if not yaml_path.exists():
        raise ConfigurationError(f"Settings file {yaml_path} does not exist")
    try:
        data = yaml.safe_load(yaml_path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Settings file {yaml_path} is not valid YAML: {exc}") from exc
    return settings_from_mapping(data, environ)
