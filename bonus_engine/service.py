"""Scoring service: score one employee, score a cohort, re-rank a period.

Single-employee scoring is fail-fast: configuration and data errors propagate.
Batch scoring isolates data errors per employee, persists the successes and
then re-ranks the whole stored cohort for the (period, weight config).
"""

from __future__ import annotations

import logging
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .batch import BatchOutcome, BatchScoringOrchestrator, ProgressFn
from .config.engine import EngineSettings
from .config.scoring import Dimension, WeightConfig
from .exceptions import (
    CalculationContext,
    ConfigurationError,
    InvalidConfigurationError,
    MissingDimensionScoreError,
)
from .interfaces import ConfigStore, DimensionScoreProvider, DirectoryService, ResultStore
from .models import CalculationResult, DimensionScore, DimensionTriple
from .numeric import is_number
from .scoring.adjustment import apply_adjustments
from .scoring.combiner import Combiner, get_combiner
from .scoring.normalizer import Normalizer, get_normalizer
from .scoring.ranking import rank_results
from .scoring.statistics import ScoreStatistics, calculate_statistics
from .task_cache import TaskResultCache
from .validation import validate_weight_config

logger = logging.getLogger(__name__)


class TaskState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class TaskStatus:
    """Pollable status of an async batch scoring job."""
    task_id: str
    state: TaskState = TaskState.PENDING
    submitted_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    progress_percent: float = 0.0
    outcome: Optional[BatchOutcome] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class _ScoringPlan:
    """Everything resolved once per call and shared by every employee."""
    period: str
    weight_config: WeightConfig
    normalizer: Normalizer
    combiner: Combiner
    populations: Dict[Dimension, List[float]]
    options: Mapping[str, Any]


class ScoringService:
    """Entry point for three-dimensional scoring."""

    def __init__(
        self,
        directory: DirectoryService,
        providers: Mapping[Dimension, DimensionScoreProvider],
        config_store: ConfigStore,
        result_store: ResultStore,
        settings: Optional[EngineSettings] = None,
    ):
        missing = [d.value for d in Dimension if d not in providers]
        if missing:
            raise ConfigurationError(f"Missing score providers for: {', '.join(missing)}")
        self.directory = directory
        self.providers = dict(providers)
        self.config_store = config_store
        self.result_store = result_store
        self.settings = settings or EngineSettings()
        self.tasks: TaskResultCache[TaskStatus] = TaskResultCache(
            ttl_seconds=self.settings.cache.ttl_seconds,
            max_entries=self.settings.cache.max_entries,
        )
        self._job_executor: Optional[ThreadPoolExecutor] = None
        self._job_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def _plan(self, period: str, weight_config_id: str, options: Optional[Mapping[str, Any]]) -> _ScoringPlan:
        weight_config = self.config_store.get_weight_config(weight_config_id)
        violations = validate_weight_config(weight_config, self.settings.tolerance.weight_sum)
        if violations:
            raise InvalidConfigurationError(
                f"Weight config {weight_config_id} is invalid",
                violations=violations,
                context=CalculationContext(period=period, weight_config_id=weight_config_id, operation="score"),
            )
        options = dict(options or {})
        as_of = options.get("as_of") or date.today()
        if not weight_config.is_effective(as_of):
            logger.warning(
                f"Weight config {weight_config_id} is outside its validity window on {as_of}; scoring anyway"
            )
        return _ScoringPlan(
            period=period,
            weight_config=weight_config,
            normalizer=get_normalizer(weight_config.normalization_method),
            combiner=get_combiner(weight_config.calculation_method),
            populations={
                dimension: [v for v in provider.get_population(period, options) if is_number(v)]
                for dimension, provider in self.providers.items()
            },
            options=options,
        )

    def _fetch_scores(self, employee_id: str, plan: _ScoringPlan) -> Dict[Dimension, DimensionScore]:
        scores: Dict[Dimension, DimensionScore] = {}
        for dimension, provider in self.providers.items():
            score = provider.get_score(employee_id, plan.period, plan.options)
            if score is None or not is_number(score.value):
                raise MissingDimensionScoreError(
                    employee_id,
                    dimension.value,
                    plan.period,
                    context=CalculationContext(
                        period=plan.period,
                        employee_id=employee_id,
                        weight_config_id=plan.weight_config.id,
                        operation="fetch_scores",
                    ),
                )
            scores[dimension] = score
        return scores

    def _calculate(self, employee_id: str, plan: _ScoringPlan) -> CalculationResult:
        profile = self.directory.get_profile(employee_id)
        scores = self._fetch_scores(employee_id, plan)
        config = plan.weight_config

        raw = DimensionTriple.from_mapping({d: s.value for d, s in scores.items()})
        normalized = DimensionTriple.from_mapping(
            {d: plan.normalizer.normalize(raw.get(d), plan.populations[d]) for d in Dimension}
        )
        combination = plan.combiner.combine(normalized, config.weights)
        adjustment = apply_adjustments(
            combination.total_score, raw, profile.position_level, config.adjustments
        )

        return CalculationResult(
            employee_id=employee_id,
            period=plan.period,
            weight_config_id=config.id,
            raw_scores=raw,
            normalized_scores=normalized,
            weighted_scores=combination.weighted,
            total_score=combination.total_score,
            adjusted_score=adjustment.final_score,
            final_score=adjustment.final_score,
            department_id=profile.department_id,
            position_level=profile.position_level,
            source_versions={d.value: s.source_version for d, s in scores.items()},
            details={
                "weights": config.extract_weights(),
                "weight_config_version": config.version,
                "calculation_method": config.calculation_method.value,
                "normalization_method": config.normalization_method.value,
                "adjustments": adjustment.to_dict(),
            },
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def score_employee(
        self,
        employee_id: str,
        period: str,
        weight_config_id: str,
        options: Optional[Mapping[str, Any]] = None,
        *,
        persist: bool = True,
    ) -> CalculationResult:
        """Score one employee against the current period population.

        The stored period's ranks are cleared because they no longer describe
        a closed cohort; call ``recalculate_rankings`` afterwards.

        Raises:
            ConfigurationError: invalid or unknown weight config
            DataError: unknown employee or missing dimension score
        """
        plan = self._plan(period, weight_config_id, options)
        result = self._calculate(employee_id, plan)
        if persist:
            self.result_store.save_calculation_results([result])
            cleared = self.result_store.invalidate_rankings(period, weight_config_id)
            logger.info(
                f"Scored {employee_id} for {period}: final={result.final_score:.4f}; "
                f"{cleared} stored ranks marked stale"
            )
        return result

    def batch_score_employees(
        self,
        employee_ids: Sequence[str],
        period: str,
        weight_config_id: str,
        options: Optional[Mapping[str, Any]] = None,
        on_progress: Optional[ProgressFn] = None,
    ) -> BatchOutcome:
        """Score many employees, isolating per-employee data errors.

        Configuration errors are raised before any employee is scored.
        """
        plan = self._plan(period, weight_config_id, options)
        orchestrator = BatchScoringOrchestrator(
            batch_size=self.settings.batch.batch_size,
            max_workers=self.settings.batch.max_workers,
        )
        outcome = orchestrator.run(employee_ids, lambda eid: self._calculate(eid, plan), on_progress)

        if outcome.results:
            self.result_store.save_calculation_results(outcome.results)
            outcome.ranked_count = self.recalculate_rankings(period, weight_config_id)
            stored = {r.employee_id: r for r in self.result_store.list_calculation_results(period, weight_config_id)}
            outcome.results = [stored.get(r.employee_id, r) for r in outcome.results]

        logger.info(
            f"Batch scoring for {period}: {outcome.success_count} succeeded, "
            f"{outcome.error_count} failed in {outcome.elapsed_seconds:.2f}s"
        )
        return outcome

    def recalculate_rankings(self, period: str, weight_config_id: str) -> int:
        """Re-rank every stored result for (period, weight config); returns the count."""
        cohort = self.result_store.list_calculation_results(period, weight_config_id)
        if not cohort:
            return 0
        ranked = rank_results(cohort)
        return self.result_store.update_rankings(ranked)

    def get_statistics(self, period: str, weight_config_id: Optional[str] = None) -> ScoreStatistics:
        return calculate_statistics(self.result_store.list_calculation_results(period, weight_config_id))

    # ------------------------------------------------------------------
    # Async jobs
    # ------------------------------------------------------------------

    def _executor(self) -> ThreadPoolExecutor:
        with self._job_lock:
            if self._job_executor is None:
                self._job_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="bonus-job")
                self.tasks.start_reaper(self.settings.cache.reap_interval_seconds)
            return self._job_executor

    def submit_batch_scoring(
        self,
        employee_ids: Sequence[str],
        period: str,
        weight_config_id: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Queue a batch scoring job on the background worker; returns its task id."""
        task_id = str(uuid.uuid4())
        status = TaskStatus(task_id=task_id)
        self.tasks.put(task_id, status)

        def _progress(progress) -> None:
            status.progress_percent = progress.percent

        def _job() -> None:
            status.state = TaskState.RUNNING
            try:
                status.outcome = self.batch_score_employees(
                    list(employee_ids), period, weight_config_id, options, on_progress=_progress
                )
                final_state = TaskState.COMPLETED
            except Exception as e:
                logger.error(f"Batch scoring task {task_id} failed: {e}", exc_info=True)
                status.error = str(e)
                final_state = TaskState.FAILED
            # state last: pollers must not see a finished task without completed_at
            status.completed_at = datetime.now()
            status.state = final_state
            self.tasks.put(task_id, status)

        self._executor().submit(_job)
        logger.info(f"Submitted batch scoring task {task_id} for {len(employee_ids)} employees")
        return task_id

    def get_task_status(self, task_id: str) -> Optional[TaskStatus]:
        """Status of a submitted job, or None once it has expired from the cache."""
        return self.tasks.get(task_id)

    def shutdown(self, wait: bool = True) -> None:
        with self._job_lock:
            if self._job_executor is not None:
                self._job_executor.shutdown(wait=wait)
                self._job_executor = None
        self.tasks.stop_reaper()
