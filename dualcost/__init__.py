"""Dual-cost (billable vs usage) engine for Kubernetes resources."""

from .aggregator import (
    aggregate_by_namespace,
    aggregate_by_node,
    aggregate_by_pod,
    aggregate_by_workload,
    aggregate_daily_by_namespace,
    aggregate_global,
    aggregate_stats_by_node,
    calculate_domain_breakdown,
    reconcile_global_with_namespaces,
)
from .calculator import CostCalculator, calculate_cost, grade_by_score
from .errors import DualCostError, InvalidInputError, ShapeMismatchError
from .models import (
    AggregatedResult,
    AggregationLevel,
    CostResult,
    CostSummary,
    DailyNamespaceCost,
    DomainBreakdownItem,
    EfficiencyGrade,
    GlobalAggregatedResult,
    HourlyWorkloadStat,
    ResourceMetric,
    ResourceRelease,
    ZombieMetrics,
)
from .zombie import (
    build_zombie_metrics,
    calculate_resource_release,
    generate_optimization_suggestion,
    is_zombie,
    verify_zombie_detection,
)

__version__ = "0.1.0"
