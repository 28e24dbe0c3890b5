"""PredictionEngine: drives filter → similarity → prediction → evaluation per target issue."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from jira_predictor.core.config import PARALLEL_MIN_TARGETS
from jira_predictor.core.errors import DataError, EmptyHistoryError
from jira_predictor.core.models import AssigneeIssues, EvaluationStatistics, IssueModel, Prediction
from jira_predictor.core.repository import IssueSource
from jira_predictor.core.settings import PredictionSettings

from .aggregator import IssuesSimilarityCalculator
from .evaluation import evaluate, squared_error
from .filters import build_filter_chain
from .prediction import ResolveTimePredictor

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int | None, int | None], None]


@dataclass(slots=True)
class IssuePrediction:
    """Every per-assignee prediction for one target issue, checked against its real resolve time."""

    target: IssueModel
    predictions: list[Prediction]
    statistics: EvaluationStatistics
    skipped_assignees: list[str] = field(default_factory=list)

    @property
    def real_assignee(self) -> str | None:
        return self.target.assignee

    @property
    def actual_days(self) -> float | None:
        return self.target.resolve_time_days

    def squared_error(self, prediction: Prediction) -> float | None:
        if self.actual_days is None:
            return None
        return squared_error(prediction.predicted_days, self.actual_days)

    @property
    def real_assignee_prediction(self) -> Prediction | None:
        for p in self.predictions:
            if p.assignee.name == self.real_assignee:
                return p
        return None


@dataclass(slots=True)
class BatchResult:
    results: list[IssuePrediction]
    statistics: EvaluationStatistics
    pooled_statistics: EvaluationStatistics
    skipped_issues: dict[str, str] = field(default_factory=dict)


class PredictionEngine:
    def __init__(
        self,
        source: IssueSource,
        settings: PredictionSettings,
        *,
        calculator: IssuesSimilarityCalculator | None = None,
        predictor: ResolveTimePredictor | None = None,
    ):
        self.source = source
        self.settings = settings
        self.calculator = calculator or IssuesSimilarityCalculator.from_settings(settings)
        self.predictor = predictor or ResolveTimePredictor(settings.top_k)

    # ------------------ Single Target ------------------
    def evaluate_issue(self, target: IssueModel, assignee_issues: AssigneeIssues | None = None) -> IssuePrediction:
        if assignee_issues is None:
            assignee_issues = self.source.fetch_assignee_issues(target.project or self.settings.project)
        candidates = build_filter_chain(self.settings, target).apply(assignee_issues)
        predictions: list[Prediction] = []
        skipped: list[str] = []
        for assignee_similarity in self.calculator.similarity_list(target, candidates):
            try:
                predictions.append(self.predictor.predict(assignee_similarity))
            except EmptyHistoryError as exc:
                logger.warning("Skipping assignee for %s: %s", target.key, exc)
                skipped.append(assignee_similarity.assignee.name)
        actual = target.resolve_time_days
        pairs = [(p.predicted_days, actual) for p in predictions] if actual is not None else []
        return IssuePrediction(target, predictions, evaluate(pairs), skipped)

    def run_single(self, issue_key: str) -> IssuePrediction:
        """Predict one issue. ``IssueNotFoundError`` propagates to the caller."""
        target = self.source.fetch_issue(issue_key)
        logger.info("Predicting resolve time for %s", issue_key)
        return self.evaluate_issue(target)

    # ------------------ Percentage Scope ------------------
    def run_scope(
        self,
        project: str | None,
        percentage: float,
        *,
        seed: int | None = None,
        progress: ProgressCallback | None = None,
    ) -> BatchResult:
        targets = self.source.fetch_project_sample(project, percentage, seed=seed)
        logger.info("Evaluating %s sampled issue(s) of %s", len(targets), project)
        assignee_issues = self.source.fetch_assignee_issues(project)
        return self.evaluate_batch(targets, assignee_issues, progress=progress)

    def evaluate_batch(
        self,
        targets: list[IssueModel],
        assignee_issues: AssigneeIssues,
        *,
        progress: ProgressCallback | None = None,
    ) -> BatchResult:
        results: list[IssuePrediction] = []
        skipped: dict[str, str] = {}
        total = len(targets)
        if progress:
            progress("Predicting resolve times", 0, total)

        workers = self.settings.max_workers
        if workers <= 1 or total < PARALLEL_MIN_TARGETS:
            for idx, target in enumerate(targets, start=1):
                try:
                    results.append(self.evaluate_issue(target, assignee_issues))
                except DataError as exc:
                    logger.warning("Skipping %s: %s", target.key, exc)
                    skipped[target.key] = str(exc)
                if progress:
                    progress("Predicting resolve times", idx, total)
            return self._summarize(results, skipped)

        timeout = self.settings.timeout_seconds
        pool = ThreadPoolExecutor(max_workers=workers)
        try:
            submitted_at = time.monotonic()
            futures = [(t, pool.submit(self.evaluate_issue, t, assignee_issues)) for t in targets]
            for idx, (target, fut) in enumerate(futures, start=1):
                try:
                    results.append(fut.result(timeout=self._remaining(submitted_at, idx - 1, workers, timeout)))
                except TimeoutError:
                    fut.cancel()
                    logger.warning("Skipping %s: evaluation timed out", target.key)
                    skipped[target.key] = "evaluation timed out"
                except DataError as exc:
                    logger.warning("Skipping %s: %s", target.key, exc)
                    skipped[target.key] = str(exc)
                if progress:
                    progress("Predicting resolve times", idx, total)
        finally:
            # Timed-out evaluations keep their worker; do not wait for them
            pool.shutdown(wait=False, cancel_futures=True)
        return self._summarize(results, skipped)

    @staticmethod
    def _remaining(submitted_at: float, position: int, workers: int, timeout: float | None) -> float | None:
        """Seconds left before the target at ``position`` is given up.

        Targets run in waves of ``workers``; each wave adds one ``timeout`` to the
        deadline, counted from submission rather than from the previous result.
        """
        if timeout is None:
            return None
        deadline = submitted_at + timeout * (position // workers + 1)
        return max(deadline - time.monotonic(), 0.0)

    def run(self, *, progress: ProgressCallback | None = None) -> BatchResult:
        """Run in the mode the settings select: one issue key or a percentage scope of the project."""
        if self.settings.single_issue_mode:
            result = self.run_single(self.settings.issue_key)
            return self._summarize([result], {})
        return self.run_scope(
            self.settings.project,
            self.settings.percentage_scope,
            seed=self.settings.sample_seed,
            progress=progress,
        )

    @staticmethod
    def _summarize(results: list[IssuePrediction], skipped: dict[str, str]) -> BatchResult:
        real_pairs = []
        pooled_pairs = []
        for r in results:
            if r.actual_days is None:
                continue
            pooled_pairs.extend((p.predicted_days, r.actual_days) for p in r.predictions)
            own = r.real_assignee_prediction
            if own is not None:
                real_pairs.append((own.predicted_days, r.actual_days))
        return BatchResult(results, evaluate(real_pairs), evaluate(pooled_pairs), skipped)
