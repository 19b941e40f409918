"""
Value records for the dual-cost model.

Every record is created fresh per calculation and discarded once the caller
has consumed it, so all of them are frozen dataclasses compared by value.
`to_dict()` produces a JSON-ready mapping (enums as their string value,
dates and datetimes as ISO-8601 strings).
"""

import datetime as dt
import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional

# Grade boundaries (efficiency score, 0-100)
ZOMBIE_UPPER_BOUND = 10.0
OVER_PROVISIONED_UPPER_BOUND = 40.0
HEALTHY_UPPER_BOUND = 90.0
FULL_EFFICIENCY = 100.0


class EfficiencyGrade(str, Enum):
    """Efficiency classification derived from an efficiency score."""

    ZOMBIE = "Zombie"
    OVER_PROVISIONED = "OverProvisioned"
    HEALTHY = "Healthy"
    RISK = "Risk"

    @classmethod
    def from_score(cls, score: float) -> "EfficiencyGrade":
        """Classify an efficiency score.

        Zombie below 10, OverProvisioned from 10 up to (not including) 40,
        Healthy from 40 up to and including 90, Risk above 90. A score sitting
        exactly on a boundary lands on the lower-waste side. A full 100 (usage
        meeting or exceeding the request) is Healthy.

        Args:
            score: Efficiency score on a 0-100 scale

        Returns:
            The matching grade

        Raises:
            ValueError: If score is NaN or infinite
        """
        if not math.isfinite(score):
            raise ValueError(f"cannot grade a non-finite efficiency score: {score}")

        if score == FULL_EFFICIENCY:
            return cls.HEALTHY
        if score < ZOMBIE_UPPER_BOUND:
            return cls.ZOMBIE
        if score < OVER_PROVISIONED_UPPER_BOUND:
            return cls.OVER_PROVISIONED
        if score <= HEALTHY_UPPER_BOUND:
            return cls.HEALTHY
        return cls.RISK


class AggregationLevel(str, Enum):
    """Drill-down hierarchy levels."""

    CLUSTER = "cluster"  # L0
    NAMESPACE = "namespace"  # L1
    NODE = "node"  # L2
    WORKLOAD = "workload"  # L3
    POD = "pod"  # L4


def _json_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (dt.datetime, dt.date)):
        return value.isoformat()
    return value


class _Record:
    def to_dict(self) -> Dict[str, Any]:
        return {f.name: _json_value(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True)
class ResourceMetric(_Record):
    """Request and P95 usage of one container/pod. CPU in cores, memory in bytes."""

    cpu_request: float
    cpu_usage_p95: float
    mem_request: float
    mem_usage_p95: float
    timestamp: Optional[dt.datetime] = None


@dataclass(frozen=True)
class CostResult(_Record):
    """Dual cost of a single resource."""

    billable_cost: float
    usage_cost: float
    waste_cost: float
    efficiency_score: float
    grade: EfficiencyGrade
    resource_type: str = "cpu"


@dataclass(frozen=True)
class DailyNamespaceCost(_Record):
    """One namespace's cost for one calendar day (source of L0 and the domain pie)."""

    namespace: str
    date: Optional[dt.date] = None
    billable_cost: float = 0.0
    usage_cost: float = 0.0
    waste_cost: float = 0.0
    pod_count: int = 0
    node_count: int = 0
    workload_count: int = 0


@dataclass(frozen=True)
class HourlyWorkloadStat(_Record):
    """Hourly cost of one workload pod (source of L1/L3, and L2 when node-tagged)."""

    namespace: str
    workload_name: str
    timestamp: Optional[dt.datetime] = None
    total_billable_cost: float = 0.0
    total_usage_cost: float = 0.0
    total_waste_cost: float = 0.0
    workload_type: str = ""
    node_name: str = ""
    pod_name: str = ""


@dataclass(frozen=True)
class AggregatedResult(_Record):
    identifier: str
    total_billable_cost: float
    total_usage_cost: float
    total_waste_cost: float
    efficiency_score: float
    resource_count: int
    timestamp: dt.datetime
    level: AggregationLevel


@dataclass(frozen=True)
class GlobalAggregatedResult(_Record):
    """Cluster-wide (L0) totals."""

    total_billable_cost: float = 0.0
    total_usage_cost: float = 0.0
    total_waste: float = 0.0
    global_efficiency: float = 0.0
    namespace_count: int = 0
    timestamp: Optional[dt.datetime] = None
    level: AggregationLevel = AggregationLevel.CLUSTER


@dataclass(frozen=True)
class DomainBreakdownItem(_Record):
    """A namespace's share of the total billable cost (pie chart slice)."""

    domain_name: str
    cost_percentage: float
    billable_cost: float
    usage_cost: float
    waste_cost: float
    pod_count: int


@dataclass(frozen=True)
class ZombieMetrics(_Record):
    """7-day usage statistics.

    CPU in cores, memory in GiB, network in KB/s.
    """

    cpu_avg: float
    cpu_stddev: float
    mem_avg: float
    mem_stddev: float
    network_avg: float
    network_stddev: float
    start_time: Optional[dt.datetime] = None
    end_time: Optional[dt.datetime] = None


@dataclass(frozen=True)
class ResourceRelease(_Record):
    cpu_cores: float
    memory_gib: float


@dataclass(frozen=True)
class CostSummary(_Record):
    """High-level summary over a batch of CostResults."""

    total_billable_cost: float = 0.0
    total_usage_cost: float = 0.0
    total_waste_cost: float = 0.0
    overall_efficiency_score: float = 0.0
    grade_counts: Dict[str, int] = field(default_factory=dict)
    potential_savings: float = 0.0
    resource_count: int = 0
