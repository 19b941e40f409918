"""
Shared pytest fixtures for all tests.

Provides common test data and configurations.
"""

from datetime import date, datetime, timezone

import pytest

from dualcost.models import CostResult, DailyNamespaceCost, EfficiencyGrade, HourlyWorkloadStat, ResourceMetric


@pytest.fixture
def standard_config():
    """Standard configuration for all tests."""
    return {
        "pricing": {
            "core_price": 0.025,
            "mem_price": 0.01,
        },
        "logging": {
            "level": "INFO",
            "format": "console",
        },
        "report": {
            "skip_invalid_metrics": False,
        },
    }


@pytest.fixture
def as_of():
    """Fixed aggregation timestamp so results compare by value."""
    return datetime(2024, 1, 2, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_metric():
    """Request 2 cores / 2 units memory, half of each used."""
    return ResourceMetric(
        cpu_request=2.0,
        cpu_usage_p95=1.0,
        mem_request=2,
        mem_usage_p95=1,
        timestamp=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def sample_daily_costs():
    """Three namespaces over two days."""
    return [
        DailyNamespaceCost(
            namespace="payments",
            date=date(2024, 1, 1),
            billable_cost=500.0,
            usage_cost=400.0,
            waste_cost=100.0,
            pod_count=10,
            node_count=3,
            workload_count=4,
        ),
        DailyNamespaceCost(
            namespace="search",
            date=date(2024, 1, 1),
            billable_cost=300.0,
            usage_cost=90.0,
            waste_cost=210.0,
            pod_count=6,
            node_count=2,
            workload_count=2,
        ),
        DailyNamespaceCost(
            namespace="payments",
            date=date(2024, 1, 2),
            billable_cost=500.0,
            usage_cost=300.0,
            waste_cost=200.0,
            pod_count=10,
            node_count=3,
            workload_count=4,
        ),
        DailyNamespaceCost(
            namespace="batch",
            date=date(2024, 1, 2),
            billable_cost=200.0,
            usage_cost=10.0,
            waste_cost=190.0,
            pod_count=2,
            node_count=1,
            workload_count=1,
        ),
    ]


@pytest.fixture
def sample_hourly_stats():
    """Hourly stats for two namespaces, three workloads and two nodes."""
    hour = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
    return [
        HourlyWorkloadStat(
            namespace="payments",
            workload_name="api",
            timestamp=hour,
            total_billable_cost=10.0,
            total_usage_cost=6.0,
            total_waste_cost=4.0,
            workload_type="Deployment",
            node_name="node-a",
            pod_name="api-1",
        ),
        HourlyWorkloadStat(
            namespace="payments",
            workload_name="api",
            timestamp=hour,
            total_billable_cost=10.0,
            total_usage_cost=8.0,
            total_waste_cost=2.0,
            workload_type="Deployment",
            node_name="node-b",
            pod_name="api-2",
        ),
        HourlyWorkloadStat(
            namespace="payments",
            workload_name="worker",
            timestamp=hour,
            total_billable_cost=5.0,
            total_usage_cost=1.0,
            total_waste_cost=4.0,
            workload_type="Deployment",
            node_name="node-a",
            pod_name="worker-1",
        ),
        HourlyWorkloadStat(
            namespace="search",
            workload_name="api",
            timestamp=hour,
            total_billable_cost=20.0,
            total_usage_cost=19.0,
            total_waste_cost=1.0,
            workload_type="StatefulSet",
            node_name="node-b",
            pod_name="search-0",
        ),
    ]


@pytest.fixture
def sample_cost_results():
    """Per-container cost results."""
    return [
        CostResult(10.0, 5.0, 5.0, 50.0, EfficiencyGrade.HEALTHY, "cpu"),
        CostResult(4.0, 0.2, 3.8, 5.0, EfficiencyGrade.ZOMBIE, "cpu"),
        CostResult(6.0, 5.7, 0.3, 95.0, EfficiencyGrade.RISK, "memory"),
    ]
