import logging

import pytest

from jira_predictor.core.config import normalize_priority_name
from jira_predictor.core.errors import ConfigurationError
from jira_predictor.core.settings import PredictionSettings, load_settings, settings_from_mapping


def _sample_mapping(**overrides):
    data = {
        "project": "HADOOP",
        "percentage_scope": 10,
        "weights": {"summary": 0.5, "description": 0.3, "comments": 0.2},
        "text_metric": "Cosine",
        "min_description_length": 20,
        "min_issues": 5,
        "issue_types": "Bug, Improvement",
        "issue_priorities": ["Major"],
    }
    data.update(overrides)
    return data


def test_mapping_is_parsed_and_validated():
    settings = settings_from_mapping(_sample_mapping(), environ={})
    assert settings.project == "HADOOP"
    assert settings.percentage_scope == 10.0
    assert settings.text_metric == "cosine"
    assert settings.issue_types == ["Bug", "Improvement"]
    assert settings.issue_priorities == ["Major"]
    assert not settings.single_issue_mode
    assert not settings.jira.complete


def test_single_issue_mode():
    data = _sample_mapping(issue_key="HADOOP-12")
    del data["percentage_scope"]
    settings = settings_from_mapping(data, environ={})
    assert settings.single_issue_mode
    assert settings.issue_key == "HADOOP-12"


@pytest.mark.parametrize(
    "overrides",
    [
        {"weights": {"summary": -0.1}},
        {"weights": {"summary": float("nan")}},
        {"weights": {"comments": float("inf")}},
        {"weights": {"summary": 0, "description": 0, "comments": 0}},
        {"weights": "heavy"},
        {"min_description_length": -1},
        {"min_issues": 0},
        {"min_issues": "many"},
        {"min_issues": True},
        {"text_metric": "euclid"},
        {"issue_key": "HADOOP-1"},
        {"percentage_scope": 0},
        {"percentage_scope": 150},
        {"top_k": 0},
        {"max_workers": 0},
        {"timeout_seconds": -5},
        {"timeout_seconds": float("nan")},
        {"issue_types": 3},
        {"jira": "server"},
    ],
)
def test_invalid_settings_are_rejected(overrides):
    with pytest.raises(ConfigurationError):
        settings_from_mapping(_sample_mapping(**overrides), environ={})


def test_neither_mode_is_rejected():
    data = _sample_mapping()
    del data["percentage_scope"]
    with pytest.raises(ConfigurationError):
        settings_from_mapping(data, environ={})


def test_heavy_weights_warn(caplog):
    with caplog.at_level(logging.WARNING):
        settings_from_mapping(_sample_mapping(weights={"summary": 1, "description": 1, "comments": 1}), environ={})
    assert "sum to 3.000" in caplog.text


def test_jira_credentials_fall_back_to_environment():
    env = {"JIRA_SERVER": "https://jira.example.org", "JIRA_EMAIL": "me@example.org", "JIRA_API_TOKEN": "t0k"}
    settings = settings_from_mapping(_sample_mapping(jira={"server": "https://override.example.org"}), environ=env)
    assert settings.jira.server == "https://override.example.org"
    assert settings.jira.email == "me@example.org"
    assert settings.jira.complete


def test_load_settings_from_yaml(tmp_path):
    path = tmp_path / "prediction.yaml"
    path.write_text(
        "project: HADOOP\n"
        "issue_key: HADOOP-3\n"
        "weights:\n  summary: 0.6\n  description: 0.4\n  comments: 0\n"
        "top_k: 5\n"
    )
    settings = load_settings(path, environ={})
    assert settings.summary_weight == 0.6
    assert settings.comments_weight == 0.0
    assert settings.top_k == 5
    assert settings.text_metric == "cosine"


def test_load_settings_errors(tmp_path):
    with pytest.raises(ConfigurationError):
        load_settings(tmp_path / "missing.yaml")
    bad = tmp_path / "bad.yaml"
    bad.write_text("weights: [unclosed\n")
    with pytest.raises(ConfigurationError):
        load_settings(bad)


def test_defaults_validate_with_a_mode():
    assert PredictionSettings(percentage_scope=5).validate().min_issues == 5


def test_priority_normalization():
    assert normalize_priority_name("  major (migrated) ") == "Major"
    assert normalize_priority_name(None) == "Undefined"
    assert normalize_priority_name("none") == "Undefined"
    assert normalize_priority_name("Showstopper") == "Showstopper"
