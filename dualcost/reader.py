"""Snapshot reader for cost engine inputs.

Loads caller-supplied metric snapshots from local CSV, Parquet or JSON files
into the engine's record types.
"""

from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from .models import DailyNamespaceCost, HourlyWorkloadStat, ResourceMetric, ZombieMetrics
from .utils import PerformanceTimer, get_logger

REQUIRED_COLUMNS = {
    "resource_metrics": ["cpu_request", "cpu_usage_p95", "mem_request", "mem_usage_p95"],
    "daily_namespace_costs": ["namespace", "billable_cost", "usage_cost", "waste_cost"],
    "hourly_workload_stats": [
        "namespace",
        "workload_name",
        "total_billable_cost",
        "total_usage_cost",
        "total_waste_cost",
    ],
    "zombie_metrics": ["cpu_avg", "cpu_stddev", "mem_avg", "mem_stddev", "network_avg", "network_stddev"],
}

# Optional columns and the value used when they are absent or empty
OPTIONAL_DEFAULTS = {
    "daily_namespace_costs": {"pod_count": 0, "node_count": 0, "workload_count": 0},
    "hourly_workload_stats": {"workload_type": "", "node_name": "", "pod_name": ""},
}

DATETIME_COLUMNS = ("timestamp", "date", "start_time", "end_time")


def _timestamp(value):
    if value is None or pd.isna(value):
        return None
    return pd.Timestamp(value).to_pydatetime()


class SnapshotReader:
    """Read metric snapshots from local files."""

    def __init__(self, config: Optional[Dict] = None):
        self.config = config or {}
        self.logger = get_logger("snapshot_reader")

    def read_frame(self, path: str, kind: str) -> pd.DataFrame:
        """Load a snapshot file and validate its columns.

        Args:
            path: File path (.csv, .parquet or .json)
            kind: One of the REQUIRED_COLUMNS keys

        Returns:
            DataFrame with optional columns filled and datetime columns parsed

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: On unknown kind, unsupported format or missing columns
        """
        if kind not in REQUIRED_COLUMNS:
            raise ValueError(f"Unknown snapshot kind: {kind}")

        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {file_path}")

        with PerformanceTimer(f"Read {kind}", self.logger):
            suffix = file_path.suffix.lower()
            if suffix == ".csv":
                df = pd.read_csv(file_path)
            elif suffix == ".parquet":
                df = pd.read_parquet(file_path, engine="pyarrow")
            elif suffix == ".json":
                df = pd.read_json(file_path, orient="records")
            else:
                raise ValueError(f"Unsupported snapshot format: {suffix} (expected .csv, .parquet or .json)")

        missing = [c for c in REQUIRED_COLUMNS[kind] if c not in df.columns]
        if missing:
            raise ValueError(f"{file_path.name} is missing required columns for {kind}: {missing}")

        for column, default in OPTIONAL_DEFAULTS.get(kind, {}).items():
            if column not in df.columns:
                df[column] = default
            else:
                df[column] = df[column].fillna(default)

        for column in DATETIME_COLUMNS:
            if column in df.columns:
                df[column] = pd.to_datetime(df[column])

        self.logger.info(f"✓ Loaded {kind}", path=str(file_path), rows=len(df))
        return df

    def read_resource_metrics(self, path: str) -> List[ResourceMetric]:
        return to_resource_metrics(self.read_frame(path, "resource_metrics"))

    def read_daily_namespace_costs(self, path: str) -> List[DailyNamespaceCost]:
        return to_daily_namespace_costs(self.read_frame(path, "daily_namespace_costs"))

    def read_hourly_workload_stats(self, path: str) -> List[HourlyWorkloadStat]:
        return to_hourly_workload_stats(self.read_frame(path, "hourly_workload_stats"))

    def read_zombie_metrics(self, path: str) -> List[ZombieMetrics]:
        return to_zombie_metrics(self.read_frame(path, "zombie_metrics"))


def to_resource_metrics(df: pd.DataFrame) -> List[ResourceMetric]:
    return [
        ResourceMetric(
            cpu_request=float(row["cpu_request"]),
            cpu_usage_p95=float(row["cpu_usage_p95"]),
            mem_request=float(row["mem_request"]),
            mem_usage_p95=float(row["mem_usage_p95"]),
            timestamp=_timestamp(row.get("timestamp")),
        )
        for row in df.to_dict("records")
    ]


def to_daily_namespace_costs(df: pd.DataFrame) -> List[DailyNamespaceCost]:
    records = []
    for row in df.to_dict("records"):
        day = _timestamp(row.get("date"))
        records.append(
            DailyNamespaceCost(
                namespace=str(row["namespace"]),
                date=day.date() if day else None,
                billable_cost=float(row["billable_cost"]),
                usage_cost=float(row["usage_cost"]),
                waste_cost=float(row["waste_cost"]),
                pod_count=int(row["pod_count"]),
                node_count=int(row["node_count"]),
                workload_count=int(row["workload_count"]),
            )
        )
    return records


def to_hourly_workload_stats(df: pd.DataFrame) -> List[HourlyWorkloadStat]:
    return [
        HourlyWorkloadStat(
            namespace=str(row["namespace"]),
            workload_name=str(row["workload_name"]),
            timestamp=_timestamp(row.get("timestamp")),
            total_billable_cost=float(row["total_billable_cost"]),
            total_usage_cost=float(row["total_usage_cost"]),
            total_waste_cost=float(row["total_waste_cost"]),
            workload_type=str(row["workload_type"]),
            node_name=str(row["node_name"]),
            pod_name=str(row["pod_name"]),
        )
        for row in df.to_dict("records")
    ]


def to_zombie_metrics(df: pd.DataFrame) -> List[ZombieMetrics]:
    return [
        ZombieMetrics(
            cpu_avg=float(row["cpu_avg"]),
            cpu_stddev=float(row["cpu_stddev"]),
            mem_avg=float(row["mem_avg"]),
            mem_stddev=float(row["mem_stddev"]),
            network_avg=float(row["network_avg"]),
            network_stddev=float(row["network_stddev"]),
            start_time=_timestamp(row.get("start_time")),
            end_time=_timestamp(row.get("end_time")),
        )
        for row in df.to_dict("records")
    ]
