"""Command-line entry point: run the dual-cost engine over snapshot files."""

import argparse
import json
import sys
from datetime import datetime
from typing import Any, Dict

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
from .calculator import CostCalculator
from .config_loader import get_config, get_pricing, get_value
from .reader import SnapshotReader, to_resource_metrics, to_zombie_metrics
from .utils import PerformanceTimer, format_duration, get_logger, setup_logging, utc_now
from .zombie import generate_optimization_suggestion, is_zombie


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def _results_to_dict(results) -> Dict[str, Any]:
    return {key: result.to_dict() for key, result in results.items()}


def build_report(args, config: Dict[str, Any], logger) -> Dict[str, Any]:
    """Run every computation the supplied inputs allow.

    Args:
        args: Parsed command-line arguments
        config: Configuration dictionary
        logger: Logger instance

    Returns:
        JSON-ready report dictionary
    """
    reader = SnapshotReader(config)
    as_of = utc_now()
    report: Dict[str, Any] = {"generated_at": as_of.isoformat()}

    if args.daily_costs:
        logger.info("Aggregating L0 (global) view from daily namespace costs...")
        daily_costs = reader.read_daily_namespace_costs(args.daily_costs)

        global_result = aggregate_global(daily_costs, as_of=as_of)
        namespaces = aggregate_daily_by_namespace(daily_costs, as_of=as_of)

        report["global"] = global_result.to_dict()
        report["domain_breakdown"] = [item.to_dict() for item in calculate_domain_breakdown(daily_costs)]
        report["daily_namespaces"] = _results_to_dict(namespaces)
        report["reconciled"] = reconcile_global_with_namespaces(global_result, namespaces)
        logger.info(
            "✓ Global view complete",
            total_billable_cost=global_result.total_billable_cost,
            global_efficiency=global_result.global_efficiency,
        )

    if args.hourly_stats:
        logger.info("Aggregating L1/L2/L3 views from hourly workload stats...")
        stats = reader.read_hourly_workload_stats(args.hourly_stats)

        report["namespaces"] = _results_to_dict(aggregate_by_namespace(stats, as_of=as_of))
        report["workloads"] = _results_to_dict(aggregate_by_workload(stats, as_of=as_of))
        report["nodes"] = _results_to_dict(aggregate_stats_by_node(stats, as_of=as_of))
        logger.info("✓ Hourly views complete", stats=len(stats))

    if args.metrics:
        logger.info("Calculating per-resource dual costs...")
        prices = get_pricing(config)
        if args.core_price is not None:
            prices["core_price"] = args.core_price
        if args.mem_price is not None:
            prices["mem_price"] = args.mem_price

        calculator = CostCalculator({"pricing": prices}, resource_type=args.resource_type)
        metrics_df = reader.read_frame(args.metrics, "resource_metrics")
        metrics = to_resource_metrics(metrics_df)

        skip_invalid = _as_bool(config.get("report", {}).get("skip_invalid_metrics", False))
        results = calculator.calculate_many(metrics, skip_invalid=skip_invalid)

        report["cost_summary"] = calculator.summarize(results).to_dict()

        # Node/pod views need one identifier per result, which skipping would break.
        if len(results) == len(metrics):
            if "node" in metrics_df.columns:
                nodes = aggregate_by_node(results, metrics_df["node"].astype(str).tolist(), as_of=as_of)
                report["resource_nodes"] = _results_to_dict(nodes)
            if "pod" in metrics_df.columns:
                pods = aggregate_by_pod(results, metrics_df["pod"].astype(str).tolist(), as_of=as_of)
                report["pods"] = _results_to_dict(pods)
        logger.info("✓ Dual costs complete", resources=len(results))

    if args.zombie_metrics:
        logger.info("Evaluating zombie candidates...")
        zombie_df = reader.read_frame(args.zombie_metrics, "zombie_metrics")
        candidates = []
        for index, metrics in enumerate(to_zombie_metrics(zombie_df)):
            verdict, reason = is_zombie(metrics)
            row = zombie_df.iloc[index]
            entry = {
                "identifier": str(row["identifier"]) if "identifier" in zombie_df.columns else str(index),
                "is_zombie": verdict,
                "reason": reason,
            }
            if "cpu_request" in zombie_df.columns and "mem_request" in zombie_df.columns:
                resource = to_resource_metrics(
                    zombie_df.iloc[[index]].assign(cpu_usage_p95=0.0, mem_usage_p95=0)
                )[0]
                entry["suggestion"] = generate_optimization_suggestion(metrics, resource)
            candidates.append(entry)

        report["zombies"] = candidates
        logger.info("✓ Zombie evaluation complete", zombies=sum(1 for c in candidates if c["is_zombie"]))

    return report


def run(args) -> int:
    """Run the engine and write the JSON report.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    start = datetime.now()

    try:
        config = get_config(args.config, reload=True)
    except (FileNotFoundError, ValueError) as e:
        setup_logging()
        get_logger("main").error("Failed to load configuration", error=str(e))
        return 1

    setup_logging(args.log_level or get_value("logging.level", "INFO"), get_value("logging.format", "console"))
    logger = get_logger("main")

    if not any([args.daily_costs, args.hourly_stats, args.metrics, args.zombie_metrics]):
        logger.error("No input given: pass at least one of --daily-costs, --hourly-stats, --metrics, --zombie-metrics")
        return 1

    try:
        with PerformanceTimer("Dual-cost report", logger):
            report = build_report(args, config, logger)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Report failed", error=str(e))
        return 1

    output = json.dumps(report, indent=2, sort_keys=True)
    if args.output:
        with open(args.output, "w") as f:
            f.write(output + "\n")
        logger.info("✓ Report written", path=args.output)
    else:
        print(output)

    logger.info(f"Completed in {format_duration((datetime.now() - start).total_seconds())}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Dual-cost (billable vs usage) report for Kubernetes resources")

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config.yaml (default: config/config.yaml)",
    )
    parser.add_argument("--daily-costs", type=str, help="Daily namespace costs snapshot (L0 view)")
    parser.add_argument("--hourly-stats", type=str, help="Hourly workload stats snapshot (L1/L2/L3 views)")
    parser.add_argument("--metrics", type=str, help="Resource metrics snapshot (per-resource costs, L2/L4 views)")
    parser.add_argument("--zombie-metrics", type=str, help="7-day zombie statistics snapshot")
    parser.add_argument("--core-price", type=float, default=None, help="Override pricing.core_price")
    parser.add_argument("--mem-price", type=float, default=None, help="Override pricing.mem_price")
    parser.add_argument("--resource-type", choices=["cpu", "memory"], default="cpu")
    parser.add_argument("--output", type=str, default=None, help="Write the report here instead of stdout")
    parser.add_argument("--log-level", type=str, default=None, help="Override logging.level")

    return parser


def main():
    """Main entry point."""
    args = build_parser().parse_args()
    sys.exit(run(args))


if __name__ == "__main__":
    main()
