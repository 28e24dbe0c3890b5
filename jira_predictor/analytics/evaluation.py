"""Prediction quality statistics (pure functions).

Every function takes a batch of ``(predicted, actual)`` duration pairs.
An undefined coefficient of determination is reported as ``NaN``, never 0.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

import numpy as np
import pandas as pd

from jira_predictor.core.models import EvaluationStatistics, Prediction

Pair = tuple[float, float]


def _arrays(pairs: Iterable[Pair]) -> tuple[np.ndarray, np.ndarray]:
    data = np.asarray(list(pairs), dtype=float).reshape(-1, 2)
    return data[:, 0], data[:, 1]


def squared_error(predicted: float, actual: float) -> float:
    return (predicted - actual) ** 2


def mean_squared_error(pairs: Iterable[Pair]) -> float:
    predicted, actual = _arrays(pairs)
    if predicted.size == 0:
        return math.nan
    return float(np.mean((predicted - actual) ** 2))


def root_mean_squared_error(pairs: Iterable[Pair]) -> float:
    return math.sqrt(mean_squared_error(pairs))


def coefficient_of_determination(pairs: Iterable[Pair]) -> float:
    """R² = 1 - SS_res / SS_tot; NaN when the batch is empty or every actual value is identical."""
    predicted, actual = _arrays(pairs)
    if actual.size == 0:
        return math.nan
    ss_res = float(np.sum((actual - predicted) ** 2))
    ss_tot = float(np.sum((actual - actual.mean()) ** 2))
    if ss_tot == 0:
        return math.nan
    return 1.0 - ss_res / ss_tot


def evaluate(pairs: Iterable[Pair]) -> EvaluationStatistics:
    pairs = list(pairs)
    mse = mean_squared_error(pairs)
    return EvaluationStatistics(
        mse=mse,
        rmse=math.sqrt(mse),
        r_squared=coefficient_of_determination(pairs),
        count=len(pairs),
    )


def predictions_frame(predictions: Sequence[Prediction], actual_days: float | None) -> pd.DataFrame:
    """Tabulate predictions for one target issue, with per-assignee squared error when the truth is known."""
    rows = []
    for p in predictions:
        error = squared_error(p.predicted_days, actual_days) if actual_days is not None else math.nan
        rows.append(
            {
                "assignee": p.assignee.label,
                "predicted_days": p.predicted_days,
                "actual_days": actual_days if actual_days is not None else math.nan,
                "squared_error": error,
                "similarity_mass": p.similarity_mass,
                "issues_count": p.issues_count,
            }
        )
    return pd.DataFrame(rows)
