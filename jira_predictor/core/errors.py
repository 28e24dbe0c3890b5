"""Error taxonomy for the resolve-time prediction engine."""

from __future__ import annotations


class PredictorError(Exception):
    """Base class for every error raised by jira_predictor."""


class ConfigurationError(PredictorError):
    """Missing or invalid settings. Fatal to the whole run."""


class DataError(PredictorError):
    """Malformed or missing data scoped to a single issue or assignee."""


class IssueNotFoundError(DataError):
    def __init__(self, key: str):
        super().__init__(f"Issue {key} not found")
        self.key = key


class EmptyHistoryError(DataError):
    def __init__(self, assignee: str):
        super().__init__(f"Assignee {assignee} has no historical issues with a measurable resolve time")
        self.assignee = assignee


class SimilarityRangeError(PredictorError):
    def __init__(self, value: float):
        super().__init__(f"Similarity {value!r} outside of [0, 1]")
        self.value = value
