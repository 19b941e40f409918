"""
Dual-cost calculator.

Prices a single resource twice: once for what it reserved (its requests) and
once for what it actually consumed (its P95 usage).

    Billable   = CPU_request × core_price + Mem_request × mem_price
    Usage      = CPU_p95 × core_price + Mem_p95 × mem_price
    Waste      = Billable - Usage
    Efficiency = (CPU_p95 + Mem_p95) / (CPU_request + Mem_request) × 100, capped at 100

A resource with no request at all is fully efficient by convention: its costs
are zero and its efficiency is 100.

Arithmetic is plain float; results stay within 1% of a decimal reference,
costs are kept to 6 decimals and scores to 2.
"""

import math
from typing import Dict, Iterable, List, Optional

from .errors import InvalidInputError
from .models import CostResult, CostSummary, EfficiencyGrade, ResourceMetric
from .utils import (
    COST_DECIMALS,
    PerformanceTimer,
    calculate_efficiency_score,
    get_logger,
    is_finite_number,
    round_financial,
    round_percentage,
    round_to_precision,
)

logger = get_logger("calculator")


def _validate_inputs(metric: ResourceMetric, core_price: float, mem_price: float):
    values = (metric.cpu_request, metric.cpu_usage_p95, metric.mem_request, metric.mem_usage_p95)
    for value in values:
        if not is_finite_number(value) or value < 0:
            raise InvalidInputError("resource metrics cannot be negative")

    for price in (core_price, mem_price):
        if not is_finite_number(price) or price <= 0:
            raise InvalidInputError("price must be positive")


def grade_by_score(score: float) -> EfficiencyGrade:
    """Map an efficiency score (0-100) to its grade."""
    return EfficiencyGrade.from_score(score)


def calculate_cost(
    metric: ResourceMetric,
    core_price: float,
    mem_price: float,
    resource_type: str = "cpu",
) -> CostResult:
    """Calculate billable, usage and waste cost for one resource.

    Args:
        metric: Requests and P95 usage of the resource
        core_price: Price per CPU core
        mem_price: Price per memory unit
        resource_type: Label stamped on the result, usually "cpu" or "memory"

    Returns:
        CostResult

    Raises:
        InvalidInputError: On negative/non-finite metrics or non-positive prices
    """
    _validate_inputs(metric, core_price, mem_price)

    total_request = metric.cpu_request + metric.mem_request
    if total_request == 0:
        return CostResult(
            billable_cost=0.0,
            usage_cost=0.0,
            waste_cost=0.0,
            efficiency_score=100.0,
            grade=EfficiencyGrade.HEALTHY,
            resource_type=resource_type,
        )

    billable = metric.cpu_request * core_price + metric.mem_request * mem_price
    usage = metric.cpu_usage_p95 * core_price + metric.mem_usage_p95 * mem_price

    billable = round_to_precision(billable, COST_DECIMALS)
    usage = round_to_precision(usage, COST_DECIMALS)
    waste = round_to_precision(billable - usage, COST_DECIMALS)

    efficiency = (metric.cpu_usage_p95 + metric.mem_usage_p95) / total_request * 100.0
    efficiency = min(efficiency, 100.0)

    return CostResult(
        billable_cost=billable,
        usage_cost=usage,
        waste_cost=waste,
        efficiency_score=round_percentage(efficiency),
        grade=grade_by_score(efficiency),
        resource_type=resource_type,
    )


class CostCalculator:
    """Prices batches of resources with the unit prices from configuration."""

    DEFAULT_CORE_PRICE = 0.025
    DEFAULT_MEM_PRICE = 0.01

    def __init__(self, config: Optional[Dict] = None, resource_type: str = "cpu"):
        """
        Initialize cost calculator.

        Args:
            config: Configuration dictionary (reads the `pricing` section)
            resource_type: Label stamped on every CostResult
        """
        self.config = config or {}
        self.resource_type = resource_type
        self.logger = get_logger("cost_calculator")

        pricing = self.config.get("pricing", {}) or {}
        self.core_price = float(pricing.get("core_price", self.DEFAULT_CORE_PRICE))
        self.mem_price = float(pricing.get("mem_price", self.DEFAULT_MEM_PRICE))

        if self.core_price <= 0 or self.mem_price <= 0:
            raise InvalidInputError("price must be positive")

        self.logger.debug(
            "Initialized cost calculator",
            core_price=self.core_price,
            mem_price=self.mem_price,
            resource_type=self.resource_type,
        )

    def calculate(self, metric: ResourceMetric) -> CostResult:
        return calculate_cost(metric, self.core_price, self.mem_price, self.resource_type)

    def calculate_many(self, metrics: Iterable[ResourceMetric], skip_invalid: bool = False) -> List[CostResult]:
        """Calculate costs for many resources.

        Args:
            metrics: Resource metrics
            skip_invalid: Log and drop invalid records instead of raising

        Returns:
            CostResults in input order (minus skipped records)
        """
        results = []
        skipped = 0

        with PerformanceTimer("Calculate dual costs", self.logger):
            for index, metric in enumerate(metrics):
                try:
                    results.append(self.calculate(metric))
                except InvalidInputError as e:
                    if not skip_invalid:
                        raise
                    skipped += 1
                    self.logger.warning("Skipping invalid resource metric", index=index, error=str(e))

        self.logger.debug("Calculated dual costs", results=len(results), skipped=skipped)
        return results

    @staticmethod
    def summarize(results: List[CostResult]) -> CostSummary:
        """Summarize a batch of CostResults.

        Potential savings are the total waste: what would be saved if every
        resource requested exactly what it uses.
        """
        grade_counts = {grade.value: 0 for grade in EfficiencyGrade}
        if not results:
            return CostSummary(grade_counts=grade_counts)

        for result in results:
            grade_counts[result.grade.value] += 1

        total_billable = math.fsum(r.billable_cost for r in results)
        total_usage = math.fsum(r.usage_cost for r in results)
        total_waste = math.fsum(r.waste_cost for r in results)

        return CostSummary(
            total_billable_cost=round_financial(total_billable),
            total_usage_cost=round_financial(total_usage),
            total_waste_cost=round_financial(total_waste),
            overall_efficiency_score=round_percentage(calculate_efficiency_score(total_billable, total_usage)),
            grade_counts=grade_counts,
            potential_savings=round_financial(max(total_waste, 0.0)),
            resource_count=len(results),
        )
