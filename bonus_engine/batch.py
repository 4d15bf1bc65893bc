"""Batch scoring orchestration with per-employee error isolation.

Employees are processed in fixed-size batches; inside a batch, scoring runs on
a bounded thread pool. A failing employee becomes a ``BatchError`` entry and
never stops its batch or later batches. Results come back in input order
regardless of completion order.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from .exceptions import BonusEngineError
from .models import CalculationResult

logger = logging.getLogger(__name__)

ScoreFn = Callable[[str], CalculationResult]
ProgressFn = Callable[["BatchProgress"], None]


@dataclass
class BatchError:
    """A labelled per-employee failure."""
    employee_id: str
    error_type: str
    message: str
    category: str
    batch_index: int

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "error_type": self.error_type,
            "message": self.message,
            "category": self.category,
            "batch_index": self.batch_index,
        }


@dataclass
class BatchProgress:
    total: int
    batches_total: int
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    batches_completed: int = 0

    @property
    def percent(self) -> float:
        return 100.0 if self.total == 0 else self.processed / self.total * 100


@dataclass
class BatchOutcome:
    """Accumulated successes, errors and progress for one batch run."""
    results: List[CalculationResult] = field(default_factory=list)
    errors: List[BatchError] = field(default_factory=list)
    progress: Optional[BatchProgress] = None
    ranked_count: int = 0
    elapsed_seconds: float = 0.0

    @property
    def success_count(self) -> int:
        return len(self.results)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict:
        return {
            "success_count": self.success_count,
            "error_count": self.error_count,
            "ranked_count": self.ranked_count,
            "elapsed_seconds": self.elapsed_seconds,
            "results": [r.to_dict() for r in self.results],
            "errors": [e.to_dict() for e in self.errors],
        }


def _label_error(employee_id: str, error: Exception, batch_index: int) -> BatchError:
    category = error.category.value if isinstance(error, BonusEngineError) else "unexpected"
    message = error.message if isinstance(error, BonusEngineError) else str(error)
    return BatchError(
        employee_id=employee_id,
        error_type=type(error).__name__,
        message=message,
        category=category,
        batch_index=batch_index,
    )


class BatchScoringOrchestrator:
    """Drives a scoring function over many employees in bounded batches."""

    def __init__(self, batch_size: int = 10, max_workers: int = 4):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.batch_size = batch_size
        self.max_workers = max_workers

    def _batches(self, employee_ids: Sequence[str]) -> List[List[str]]:
        return [
            list(employee_ids[i:i + self.batch_size])
            for i in range(0, len(employee_ids), self.batch_size)
        ]

    def run(
        self,
        employee_ids: Sequence[str],
        score_fn: ScoreFn,
        on_progress: Optional[ProgressFn] = None,
    ) -> BatchOutcome:
        """Score every employee id; duplicates are scored once."""
        unique_ids = list(dict.fromkeys(employee_ids))
        batches = self._batches(unique_ids)
        outcome = BatchOutcome(progress=BatchProgress(total=len(unique_ids), batches_total=len(batches)))
        start = time.perf_counter()

        for batch_index, batch in enumerate(batches):
            self._run_batch(batch_index, batch, score_fn, outcome)
            outcome.progress.batches_completed += 1
            logger.info(
                f"Batch {batch_index + 1}/{len(batches)} done: "
                f"{outcome.progress.processed}/{outcome.progress.total} processed "
                f"({outcome.progress.failed} failed)"
            )
            if on_progress is not None:
                on_progress(outcome.progress)

        outcome.elapsed_seconds = time.perf_counter() - start
        return outcome

    def _run_batch(
        self, batch_index: int, batch: List[str], score_fn: ScoreFn, outcome: BatchOutcome
    ) -> None:
        completed: Dict[int, CalculationResult] = {}
        failures: Dict[int, BatchError] = {}

        with ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(batch)), thread_name_prefix="bonus-score"
        ) as executor:
            future_to_employee = {
                executor.submit(score_fn, employee_id): (employee_id, order)
                for order, employee_id in enumerate(batch)
            }
            for future in as_completed(future_to_employee):
                employee_id, order = future_to_employee[future]
                try:
                    completed[order] = future.result()
                except BonusEngineError as e:
                    logger.warning(f"Scoring failed for {employee_id}: {e.message}")
                    failures[order] = _label_error(employee_id, e, batch_index)
                except Exception as e:
                    logger.error(f"Unexpected error scoring {employee_id}: {e}", exc_info=True)
                    failures[order] = _label_error(employee_id, e, batch_index)

        for order in range(len(batch)):
            if order in completed:
                outcome.results.append(completed[order])
            else:
                outcome.errors.append(failures[order])

        outcome.progress.processed += len(batch)
        outcome.progress.succeeded += len(completed)
        outcome.progress.failed += len(failures)
