# -*- coding: utf-8 -*-
"""
Batch Calculator

Batch processing of activity records on top of EmissionCalculator.

Features:
- Parallel processing (thread pool; the engine is stateless)
- Error isolation (one failed record doesn't stop the batch)
- Input order preserved in the results
- Emissions summary by scope and category
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from ghg_engine.calculation.core_calculator import CalculationResult, EmissionCalculator
from ghg_engine.exceptions import GHGEngineException
from ghg_engine.metrics import MetricsCollector
from ghg_engine.models import ActivityRecord, EmissionScope, category_scope

logger = logging.getLogger(__name__)


@dataclass
class BatchItem:
    """
    Outcome for one record of a batch.

    Exactly one of ``result`` and ``error`` is set.
    """
    index: int
    record: ActivityRecord
    result: Optional[CalculationResult] = None
    error: Optional[GHGEngineException] = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'input': self.record.model_dump(mode="json"),
            'result': self.result.to_dict() if self.result else None,
            'error': self.error.to_dict() if self.error else None,
        }


@dataclass
class CategoryTotal:
    """Emissions attributed to one category"""
    category: str
    scope: EmissionScope
    total_co2e: float
    percentage: float
    entry_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category,
            'scope': self.scope.value,
            'total_co2e': self.total_co2e,
            'percentage': self.percentage,
            'entry_count': self.entry_count,
        }


@dataclass
class EmissionsSummary:
    """
    Scope and category totals over a set of calculation results.

    Percentages are shares of the overall total (0 when the total is 0).
    """
    total_scope1: float = 0.0
    total_scope2: float = 0.0
    total_scope3: float = 0.0
    by_category: List[CategoryTotal] = field(default_factory=list)
    entry_count: int = 0

    @property
    def total_emissions(self) -> float:
        return self.total_scope1 + self.total_scope2 + self.total_scope3

    @property
    def total_emissions_tonnes(self) -> float:
        return self.total_emissions / 1000

    def scope_percentage(self, scope: EmissionScope) -> float:
        total = self.total_emissions
        if total <= 0:
            return 0.0
        by_scope = {
            EmissionScope.SCOPE_1: self.total_scope1,
            EmissionScope.SCOPE_2: self.total_scope2,
            EmissionScope.SCOPE_3: self.total_scope3,
        }
        return by_scope[scope] / total * 100

    @classmethod
    def from_results(cls, results: Sequence[CalculationResult]) -> "EmissionsSummary":
        """Aggregate results; categories appear in first-seen order."""
        scope_totals = {scope: 0.0 for scope in EmissionScope}
        categories: Dict[str, Dict[str, Any]] = {}

        for result in results:
            scope = category_scope(result.category)
            scope_totals[scope] += result.co2e
            entry = categories.setdefault(
                result.category, {'scope': scope, 'total': 0.0, 'count': 0}
            )
            entry['total'] += result.co2e
            entry['count'] += 1

        total = sum(scope_totals.values())
        by_category = [
            CategoryTotal(
                category=category,
                scope=data['scope'],
                total_co2e=data['total'],
                percentage=(data['total'] / total * 100) if total > 0 else 0.0,
                entry_count=data['count'],
            )
            for category, data in categories.items()
        ]

        return cls(
            total_scope1=scope_totals[EmissionScope.SCOPE_1],
            total_scope2=scope_totals[EmissionScope.SCOPE_2],
            total_scope3=scope_totals[EmissionScope.SCOPE_3],
            by_category=by_category,
            entry_count=len(results),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'total_scope1': self.total_scope1,
            'total_scope2': self.total_scope2,
            'total_scope3': self.total_scope3,
            'total_emissions': self.total_emissions,
            'by_category': [c.to_dict() for c in self.by_category],
            'entry_count': self.entry_count,
        }


@dataclass
class BatchResult:
    """
    Result of batch calculation.

    Attributes:
        items: Per-record outcomes, in input order
        batch_duration_seconds: Total batch processing time
    """
    items: List[BatchItem]
    batch_duration_seconds: float = 0.0

    @property
    def results(self) -> List[CalculationResult]:
        return [item.result for item in self.items if item.result is not None]

    @property
    def failures(self) -> List[BatchItem]:
        return [item for item in self.items if item.error is not None]

    @property
    def successful_count(self) -> int:
        return len(self.results)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def total_emissions_kg_co2e(self) -> float:
        return sum(r.co2e for r in self.results)

    def summary(self) -> EmissionsSummary:
        return EmissionsSummary.from_results(self.results)

    def get_errors(self) -> List[str]:
        """Error messages of failed records"""
        return [str(item.error) for item in self.failures]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'total_calculations': len(self.items),
            'total_emissions_kg_co2e': self.total_emissions_kg_co2e,
            'total_emissions_tonnes_co2e': self.total_emissions_kg_co2e / 1000,
            'successful_count': self.successful_count,
            'failed_count': self.failed_count,
            'batch_duration_seconds': self.batch_duration_seconds,
            'items': [item.to_dict() for item in self.items],
            'summary': self.summary().to_dict(),
        }


class BatchCalculator:
    """
    Batch calculator with error isolation.

    Only engine errors (GHGEngineException) are isolated per record; any
    other exception is a programming error and propagates.
    """

    def __init__(
        self,
        emission_calculator: EmissionCalculator,
        max_workers: Optional[int] = None,
        max_batch_size: Optional[int] = None,
    ):
        """
        Initialize batch calculator.

        Args:
            emission_calculator: Core calculator
            max_workers: Max parallel workers (config batch_workers if None)
            max_batch_size: Max records per call (config max_batch_size if None)
        """
        self.calculator = emission_calculator
        config = emission_calculator.config
        self.max_workers = max_workers or config.batch_workers
        self.max_batch_size = max_batch_size or config.max_batch_size

    def calculate_batch(
        self,
        records: Sequence[ActivityRecord],
        organization_id: Optional[str] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        continue_on_error: bool = True,
    ) -> BatchResult:
        """
        Calculate emissions for a batch of records.

        Args:
            records: Activity records
            organization_id: Organization scope for custom factors
            progress_callback: Optional callback function(completed, total)
            continue_on_error: Record failures instead of raising the first one

        Returns:
            BatchResult with one item per record, in input order

        Raises:
            ValueError: If the batch exceeds max_batch_size
            GHGEngineException: First failure, when continue_on_error is False
        """
        if len(records) > self.max_batch_size:
            raise ValueError(
                f"Batch of {len(records)} records exceeds max_batch_size {self.max_batch_size}"
            )

        start = time.perf_counter()
        total = len(records)
        items: List[Optional[BatchItem]] = [None] * total
        completed = 0

        logger.info("Starting batch calculation: %d records", total)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(self._safe_calculate, index, record, organization_id)
                for index, record in enumerate(records)
            ]
            # Collected in submission order so items line up with the input
            for future in futures:
                item = future.result()
                if item.error is not None and not continue_on_error:
                    # Drop records not yet started; in-flight ones finish on exit
                    executor.shutdown(wait=False, cancel_futures=True)
                    raise item.error
                items[item.index] = item
                completed += 1
                if progress_callback:
                    progress_callback(completed, total)

        duration = time.perf_counter() - start
        MetricsCollector.observe_duration(
            "batch_calculation", duration, self.calculator.config.enable_metrics
        )

        batch = BatchResult(items=items, batch_duration_seconds=duration)
        logger.info(
            "Batch calculation completed: %d succeeded, %d failed in %.2fs",
            batch.successful_count, batch.failed_count, duration,
        )
        return batch

    def _safe_calculate(
        self,
        index: int,
        record: ActivityRecord,
        organization_id: Optional[str],
    ) -> BatchItem:
        try:
            result = self.calculator.calculate(record, organization_id)
            return BatchItem(index=index, record=record, result=result)
        except GHGEngineException as e:
            logger.error("Calculation failed for record %d (%s): %s", index, record.category, e)
            return BatchItem(index=index, record=record, error=e)
