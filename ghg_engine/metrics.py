# -*- coding: utf-8 -*-
"""
Prometheus Metrics for the emissions calculation engine.

All metric names use the ``ghg_`` prefix for consistent identification
in Prometheus queries and dashboards.

Metrics:
    1. ghg_calculations_total               (Counter,   labels: category, status)
    2. ghg_factor_resolutions_total         (Counter,   labels: step)
    3. ghg_emissions_kg_co2e_total          (Counter,   labels: category)
    4. ghg_calculation_duration_seconds     (Histogram, labels: operation)

Label Values Reference:
    status:
        completed, failed.
    step:
        exact, global_region, relaxed_subcategory, custom, not_found.
    operation:
        single_calculation, batch_calculation.

Recording is skipped when ``EngineConfig.enable_metrics`` is False. Callers
holding an injected config pass its flag as ``enabled``; otherwise the
process-wide config decides. Metrics never influence calculation results.

Example:
    >>> from ghg_engine.metrics import MetricsCollector
    >>> MetricsCollector.record_calculation("electricity", "completed")
    >>> MetricsCollector.observe_duration("single_calculation", 0.002)
"""

from __future__ import annotations

import logging
from typing import Optional

from prometheus_client import Counter, Histogram

from ghg_engine.config import get_config

logger = logging.getLogger(__name__)

# 1. Calculation events by activity category and completion status
ghg_calculations_total = Counter(
    "ghg_calculations_total",
    "Total emission calculations performed",
    labelnames=["category", "status"],
)

# 2. Factor resolutions by the fallback step that produced the factor
ghg_factor_resolutions_total = Counter(
    "ghg_factor_resolutions_total",
    "Total emission factor resolutions by fallback step",
    labelnames=["step"],
)

# 3. Cumulative calculated emissions by activity category
ghg_emissions_kg_co2e_total = Counter(
    "ghg_emissions_kg_co2e_total",
    "Cumulative calculated emissions in kg CO2e by category",
    labelnames=["category"],
)

# 4. Calculation duration histogram by operation type
ghg_calculation_duration_seconds = Histogram(
    "ghg_calculation_duration_seconds",
    "Duration of emission calculation operations in seconds",
    labelnames=["operation"],
    buckets=(
        0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25,
        0.5, 1.0, 2.5, 5.0,
    ),
)


def _enabled(enabled: Optional[bool]) -> bool:
    if enabled is None:
        return get_config().enable_metrics
    return enabled


class MetricsCollector:
    """Facade for recording engine Prometheus metrics."""

    @staticmethod
    def record_calculation(
        category: str, status: str, enabled: Optional[bool] = None
    ) -> None:
        """Record an emission calculation event.

        Args:
            category: Activity category of the calculation.
            status: Completion status (completed, failed).
            enabled: Override for EngineConfig.enable_metrics (global config if None).
        """
        if not _enabled(enabled):
            return
        ghg_calculations_total.labels(category=category, status=status).inc()

    @staticmethod
    def record_factor_resolution(step: str, enabled: Optional[bool] = None) -> None:
        """Record which fallback step resolved a factor."""
        if not _enabled(enabled):
            return
        ghg_factor_resolutions_total.labels(step=step).inc()

    @staticmethod
    def record_emissions(
        category: str, kg_co2e: float, enabled: Optional[bool] = None
    ) -> None:
        """Record calculated emissions for a category.

        Negative totals are not recorded since Prometheus counters only
        increase.
        """
        if not _enabled(enabled) or kg_co2e < 0:
            return
        ghg_emissions_kg_co2e_total.labels(category=category).inc(kg_co2e)

    @staticmethod
    def observe_duration(
        operation: str, seconds: float, enabled: Optional[bool] = None
    ) -> None:
        """Record the duration of a calculation operation."""
        if not _enabled(enabled):
            return
        ghg_calculation_duration_seconds.labels(operation=operation).observe(seconds)


__all__ = [
    "MetricsCollector",
    "ghg_calculations_total",
    "ghg_factor_resolutions_total",
    "ghg_emissions_kg_co2e_total",
    "ghg_calculation_duration_seconds",
]
