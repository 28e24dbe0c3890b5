"""Central configuration: prediction defaults, priority aliases and Jira fetch settings."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

# =============================================================================
# Jira Connection Settings
# =============================================================================
JIRA_DEFAULT_SERVER = "https://issues.apache.org/jira"
TIMEZONE = "UTC"  # naive timestamps are localized to this zone

# Environment variables consulted when the settings file has no jira section
JIRA_ENV_SERVER = "JIRA_SERVER"
JIRA_ENV_EMAIL = "JIRA_EMAIL"
JIRA_ENV_TOKEN = "JIRA_API_TOKEN"

# =============================================================================
# Similarity Weights
# Not required to sum to 1; the aggregate score is left unclamped.
# =============================================================================
DEFAULT_SUMMARY_WEIGHT: float = 0.5
DEFAULT_DESCRIPTION_WEIGHT: float = 0.3
DEFAULT_COMMENTS_WEIGHT: float = 0.2

# =============================================================================
# Corpus Filter Thresholds
# =============================================================================
DEFAULT_MIN_DESCRIPTION_LENGTH: int = 20
DEFAULT_MIN_ISSUES: int = 5

# Text metric used by the similarity aggregator: "jaccard", "cosine" or "both"
DEFAULT_TEXT_METRIC = "cosine"

# Cosine drift below this tolerance is clamped back into [0, 1]
SIMILARITY_TOLERANCE: float = 1e-9

# Letter runs only, lowercased (digits and punctuation split tokens)
TOKEN_PATTERN = r"(?u)[^\W\d_]+"

# =============================================================================
# Batch Evaluation
# =============================================================================
DEFAULT_MAX_WORKERS: int = 1
PARALLEL_MIN_TARGETS: int = 4  # below this, stay sequential to reduce overhead

# =============================================================================
# Priority Configuration
# =============================================================================
PRIORITY_ALIASES: dict[str, str] = {
    "blocker": "Blocker",
    "critical": "Critical",
    "major": "Major",
    "minor": "Minor",
    "trivial": "Trivial",
    "high": "High",
    "medium": "Medium",
    "low": "Low",
    "undefined": "Undefined",
    "none": "Undefined",
}


def normalize_priority_name(priority: str | None) -> str:
    """Normalize a priority name to its canonical form.

    Handles "(migrated)" suffixes, case variations and surrounding whitespace:
    "  major (migrated) " -> "Major".
    """
    if priority is None:
        return "Undefined"
    cleaned = str(priority).strip()
    if not cleaned:
        return "Undefined"
    cleaned = re.sub(r"\s*\(migrated\)\s*$", "", cleaned, flags=re.IGNORECASE).strip()
    return PRIORITY_ALIASES.get(cleaned.lower(), cleaned)


# =============================================================================
# Jira Fetch Settings
# =============================================================================
JIRA_FETCH_BASE_FIELDS: Sequence[str] = (
    "summary",
    "description",
    "created",
    "updated",
    "assignee",
    "reporter",
    "priority",
    "status",
    "resolution",
    "resolutiondate",
    "issuetype",
    "labels",
    "project",
    "comment",
)

# If True, every fetched issue has its comments fully hydrated through an
# individual issue fetch. If False, only issues whose embedded comment list
# looks truncated are refetched.
FULL_COMMENT_HYDRATION = False
COMMENT_HYDRATION_MAX_WORKERS = 8
COMMENT_HYDRATION_MIN_PARALLEL = 4
COMMENT_PAGE_SIZE_GUESS = 20

PREDICTION_TABLE_COLUMNS: Sequence[str] = (
    "assignee",
    "predicted_days",
    "actual_days",
    "squared_error",
    "similarity_mass",
    "issues_count",
)


@dataclass(slots=True)
class AppSettings:
    max_table_rows: int = 1000
    download_encoding: str = "utf-8"


SETTINGS = AppSettings()
