"""
Multi-level cost aggregation.

Rolls dual costs up the drill-down hierarchy:

    L0 cluster    <- DailyNamespaceCost   (aggregate_global, calculate_domain_breakdown)
    L1 namespace  <- HourlyWorkloadStat   (aggregate_by_namespace)
    L2 node       <- CostResult + node    (aggregate_by_node, aggregate_stats_by_node)
    L3 workload   <- HourlyWorkloadStat   (aggregate_by_workload)
    L4 pod        <- CostResult + pod ID  (aggregate_by_pod)

Every level shares one group-and-sum pass (pandas groupby, O(n)): billable,
usage and waste are summed per key, efficiency is derived from the unrounded
sums and the money columns are rounded to 2 decimals on output. Zero input
rows are a valid case and yield an empty result, never an error.

L0 and L1 read the same per-namespace rows, so the global billable total
reconciles with the sum of namespace billable totals.
"""

from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .errors import ShapeMismatchError
from .models import (
    AggregatedResult,
    AggregationLevel,
    CostResult,
    DailyNamespaceCost,
    DomainBreakdownItem,
    GlobalAggregatedResult,
    HourlyWorkloadStat,
)
from .utils import (
    FINANCIAL_DECIMALS,
    PERCENTAGE_DECIMALS,
    PerformanceTimer,
    efficiency_series,
    get_logger,
    round_financial,
    round_percentage,
    round_series,
    utc_now,
)

COST_COLUMNS = ["billable_cost", "usage_cost", "waste_cost"]

logger = get_logger("aggregator")


def _to_frame(records: Iterable, key: Callable, billable: str, usage: str, waste: str) -> pd.DataFrame:
    rows = [(key(r), getattr(r, billable), getattr(r, usage), getattr(r, waste)) for r in records]
    return pd.DataFrame(rows, columns=["identifier"] + COST_COLUMNS)


def _sum_by(frame: pd.DataFrame, key: str, columns: List[str]) -> pd.DataFrame:
    """Sum columns per key, in order of first appearance.

    Missing keys group under "" instead of being dropped. A group with any
    missing cost gets NaN for that cost total, which rounds to 0 downstream.
    """
    frame = frame.assign(**{key: frame[key].where(frame[key].notna(), "")})
    grouped = frame.groupby(key, sort=False, dropna=False)
    sums = grouped[columns].sum()
    incomplete = frame[COST_COLUMNS].isna().groupby(frame[key], sort=False, dropna=False).any()
    sums[COST_COLUMNS] = sums[COST_COLUMNS].mask(incomplete)
    sums["resource_count"] = grouped.size()
    return sums


def group_and_sum(frame: pd.DataFrame) -> pd.DataFrame:
    """Group cost rows by identifier and derive efficiency per group.

    Groups keep the order in which their identifier first appears.

    Args:
        frame: DataFrame with identifier, billable_cost, usage_cost, waste_cost

    Returns:
        DataFrame indexed by identifier with summed, rounded costs,
        efficiency_score and resource_count
    """
    if frame.empty:
        return pd.DataFrame(columns=COST_COLUMNS + ["efficiency_score", "resource_count"])

    sums = _sum_by(frame, "identifier", COST_COLUMNS)

    sums["efficiency_score"] = round_series(
        efficiency_series(sums["billable_cost"], sums["usage_cost"]), PERCENTAGE_DECIMALS
    )
    for column in COST_COLUMNS:
        sums[column] = round_series(sums[column], FINANCIAL_DECIMALS)

    return sums


def _to_results(
    frame: pd.DataFrame, level: AggregationLevel, as_of: Optional[datetime]
) -> Dict[str, AggregatedResult]:
    timestamp = as_of or utc_now()

    with PerformanceTimer(f"Aggregate by {level.value}", logger):
        grouped = group_and_sum(frame)
        results = {
            str(identifier): AggregatedResult(
                identifier=str(identifier),
                total_billable_cost=float(row.billable_cost),
                total_usage_cost=float(row.usage_cost),
                total_waste_cost=float(row.waste_cost),
                efficiency_score=float(row.efficiency_score),
                resource_count=int(row.resource_count),
                timestamp=timestamp,
                level=level,
            )
            for identifier, row in grouped.iterrows()
        }

    logger.debug("Aggregated costs", level=level.value, input_rows=len(frame), groups=len(results))
    return results


def _check_parallel(costs: Sequence[CostResult], identifiers: Sequence[str], name: str):
    if len(costs) != len(identifiers):
        raise ShapeMismatchError(
            f"costs and {name} must have same length (got {len(costs)} and {len(identifiers)})"
        )


def aggregate_global(
    costs: Sequence[DailyNamespaceCost], as_of: Optional[datetime] = None
) -> GlobalAggregatedResult:
    """Aggregate daily namespace costs into the cluster-wide view (L0).

    Args:
        costs: Daily namespace cost rows for the window
        as_of: Aggregation timestamp (defaults to now)

    Returns:
        GlobalAggregatedResult; all zeros for empty input
    """
    timestamp = as_of or utc_now()
    if not costs:
        return GlobalAggregatedResult(timestamp=timestamp)

    frame = _to_frame(costs, lambda c: c.namespace, "billable_cost", "usage_cost", "waste_cost")
    total_billable = frame["billable_cost"].sum(skipna=False)
    total_usage = frame["usage_cost"].sum(skipna=False)
    total_waste = frame["waste_cost"].sum(skipna=False)

    # Usage is not capped here: the global figure is the raw usage/billable ratio.
    global_efficiency = total_usage / total_billable * 100.0 if total_billable > 0 else 0.0

    return GlobalAggregatedResult(
        total_billable_cost=round_financial(total_billable),
        total_usage_cost=round_financial(total_usage),
        total_waste=round_financial(total_waste),
        global_efficiency=round_percentage(global_efficiency),
        namespace_count=int(frame["identifier"].nunique()),
        timestamp=timestamp,
    )


def calculate_domain_breakdown(costs: Sequence[DailyNamespaceCost]) -> List[DomainBreakdownItem]:
    """Split the total billable cost into per-namespace shares (L0 pie chart).

    Rows of the same namespace across several days are summed first.
    Items are sorted by percentage, descending; ties keep the order in which
    the namespace first appears in the input.

    Args:
        costs: Daily namespace cost rows for the window

    Returns:
        List of DomainBreakdownItem
    """
    if not costs:
        return []

    frame = pd.DataFrame(
        [(c.namespace, c.billable_cost, c.usage_cost, c.waste_cost, c.pod_count) for c in costs],
        columns=["namespace"] + COST_COLUMNS + ["pod_count"],
    )
    by_namespace = _sum_by(frame, "namespace", COST_COLUMNS + ["pod_count"])

    total_billable = by_namespace["billable_cost"].sum(skipna=False)
    if total_billable > 0:
        by_namespace["cost_percentage"] = by_namespace["billable_cost"] / total_billable * 100.0
    else:
        by_namespace["cost_percentage"] = 0.0

    by_namespace["cost_percentage"] = round_series(by_namespace["cost_percentage"], PERCENTAGE_DECIMALS)
    by_namespace = by_namespace.sort_values("cost_percentage", ascending=False, kind="stable")

    return [
        DomainBreakdownItem(
            domain_name=str(namespace),
            cost_percentage=float(row.cost_percentage),
            billable_cost=round_financial(row.billable_cost),
            usage_cost=round_financial(row.usage_cost),
            waste_cost=round_financial(row.waste_cost),
            pod_count=int(row.pod_count),
        )
        for namespace, row in by_namespace.iterrows()
    ]


def aggregate_daily_by_namespace(
    costs: Sequence[DailyNamespaceCost], as_of: Optional[datetime] = None
) -> Dict[str, AggregatedResult]:
    """Namespace view (L1) over the same daily rows that feed L0."""
    frame = _to_frame(costs, lambda c: c.namespace, "billable_cost", "usage_cost", "waste_cost")
    return _to_results(frame, AggregationLevel.NAMESPACE, as_of)


def aggregate_by_namespace(
    stats: Sequence[HourlyWorkloadStat], as_of: Optional[datetime] = None
) -> Dict[str, AggregatedResult]:
    """Aggregate hourly workload stats by namespace (L1)."""
    frame = _to_frame(
        stats, lambda s: s.namespace, "total_billable_cost", "total_usage_cost", "total_waste_cost"
    )
    return _to_results(frame, AggregationLevel.NAMESPACE, as_of)


def aggregate_by_node(
    costs: Sequence[CostResult], node_names: Sequence[str], as_of: Optional[datetime] = None
) -> Dict[str, AggregatedResult]:
    """Aggregate per-resource costs by node (L2).

    Args:
        costs: Per-resource cost results
        node_names: Node of each cost, same order and length as costs
        as_of: Aggregation timestamp (defaults to now)

    Returns:
        Dict keyed by node name

    Raises:
        ShapeMismatchError: If the two lists differ in length
    """
    if not costs:
        return {}
    _check_parallel(costs, node_names, "node_names")

    return _to_results(_paired_frame(costs, node_names), AggregationLevel.NODE, as_of)


def aggregate_stats_by_node(
    stats: Sequence[HourlyWorkloadStat], as_of: Optional[datetime] = None
) -> Dict[str, AggregatedResult]:
    """Aggregate node-tagged hourly workload stats by node (L2).

    Stats without a node name are left out.
    """
    tagged = [s for s in stats if s.node_name]
    if len(tagged) < len(stats):
        logger.debug("Skipping stats without node name", skipped=len(stats) - len(tagged))

    frame = _to_frame(
        tagged, lambda s: s.node_name, "total_billable_cost", "total_usage_cost", "total_waste_cost"
    )
    return _to_results(frame, AggregationLevel.NODE, as_of)


def aggregate_by_workload(
    stats: Sequence[HourlyWorkloadStat], as_of: Optional[datetime] = None
) -> Dict[str, AggregatedResult]:
    """Aggregate hourly workload stats by workload (L3), keyed "namespace/workload"."""
    frame = _to_frame(
        stats,
        lambda s: f"{s.namespace}/{s.workload_name}",
        "total_billable_cost",
        "total_usage_cost",
        "total_waste_cost",
    )
    return _to_results(frame, AggregationLevel.WORKLOAD, as_of)


def aggregate_by_pod(
    costs: Sequence[CostResult], pod_ids: Sequence[str], as_of: Optional[datetime] = None
) -> Dict[str, AggregatedResult]:
    """Aggregate per-resource costs by pod (L4).

    Args:
        costs: Per-resource (per-container) cost results
        pod_ids: Pod identifier of each cost, same order and length as costs
        as_of: Aggregation timestamp (defaults to now)

    Returns:
        Dict keyed by pod ID

    Raises:
        ShapeMismatchError: If the two lists differ in length
    """
    if not costs:
        return {}
    _check_parallel(costs, pod_ids, "pod_ids")

    return _to_results(_paired_frame(costs, pod_ids), AggregationLevel.POD, as_of)


def _paired_frame(costs: Sequence[CostResult], identifiers: Sequence[str]) -> pd.DataFrame:
    rows = [
        (identifier, cost.billable_cost, cost.usage_cost, cost.waste_cost)
        for identifier, cost in zip(identifiers, costs)
    ]
    return pd.DataFrame(rows, columns=["identifier"] + COST_COLUMNS)


def reconcile_global_with_namespaces(
    global_result: GlobalAggregatedResult,
    namespace_results: Dict[str, AggregatedResult],
    tolerance: float = 0.01,
) -> bool:
    """Check that L0 total billable cost matches the sum of L1 billable totals.

    Per-namespace totals are rounded individually, so the allowed drift grows
    by half a cent for every namespace on top of the base tolerance.
    """
    namespace_total = sum(r.total_billable_cost for r in namespace_results.values())
    allowed = tolerance + 0.005 * len(namespace_results)
    diff = abs(global_result.total_billable_cost - namespace_total)

    if diff > allowed:
        logger.warning(
            "L0/L1 billable totals do not reconcile",
            global_total=global_result.total_billable_cost,
            namespace_total=round_financial(namespace_total),
            diff=diff,
        )
        return False
    return True
