"""
Zombie asset detection.

A zombie is a resource that has been flat-lined near zero for a whole 7-day
window on every dimension at once:

    CPU:      avg < 0.1 core   AND stddev < 0.001
    Memory:   avg < 0.1 GiB    AND stddev < 0.001
    Network:  avg < 1 KB/s     AND stddev < 0.001

Missing even one of the six sub-conditions means "not a zombie". Detection
never raises: malformed statistics (negative, NaN or infinite) are reported as
not-a-zombie with an "invalid metrics" reason.
"""

from datetime import datetime
from typing import Optional, Sequence, Tuple

import numpy as np

from .models import ResourceMetric, ResourceRelease, ZombieMetrics
from .utils import convert_bytes_to_gibibytes, convert_bytes_to_kilobytes, get_logger, is_finite_number

CPU_THRESHOLD = 0.1  # cores
MEM_THRESHOLD = 0.1  # GiB
NETWORK_THRESHOLD = 1.0  # KB/s
STDDEV_THRESHOLD = 0.001

ZOMBIE_REASON = "CPU, memory, and network usage are consistently below thresholds with minimal variation"
INVALID_REASON = "invalid metrics: contains negative, NaN or infinite values"

logger = get_logger("zombie")


def _is_valid(metrics: ZombieMetrics) -> bool:
    values = (
        metrics.cpu_avg,
        metrics.cpu_stddev,
        metrics.mem_avg,
        metrics.mem_stddev,
        metrics.network_avg,
        metrics.network_stddev,
    )
    return all(is_finite_number(v) and v >= 0 for v in values)


def is_zombie(metrics: ZombieMetrics) -> Tuple[bool, str]:
    """Decide whether 7-day statistics describe a zombie.

    Args:
        metrics: 7-day averages and standard deviations

    Returns:
        Tuple of (is_zombie, reason). For a non-zombie the reason lists every
        failed sub-condition, separated by "; ".
    """
    if not _is_valid(metrics):
        return False, INVALID_REASON

    checks = [
        (
            metrics.cpu_avg < CPU_THRESHOLD,
            f"CPU avg ({metrics.cpu_avg:.3f}) >= threshold ({CPU_THRESHOLD:.3f})",
        ),
        (
            metrics.cpu_stddev < STDDEV_THRESHOLD,
            f"CPU stddev ({metrics.cpu_stddev:.4f}) >= dead line ({STDDEV_THRESHOLD:.3f})",
        ),
        (
            metrics.mem_avg < MEM_THRESHOLD,
            f"memory avg ({metrics.mem_avg:.3f} GiB) >= threshold ({MEM_THRESHOLD:.3f} GiB)",
        ),
        (
            metrics.mem_stddev < STDDEV_THRESHOLD,
            f"memory stddev ({metrics.mem_stddev:.4f}) >= dead line ({STDDEV_THRESHOLD:.3f})",
        ),
        (
            metrics.network_avg < NETWORK_THRESHOLD,
            f"network avg ({metrics.network_avg:.3f} KB/s) >= threshold ({NETWORK_THRESHOLD:.3f} KB/s)",
        ),
        (
            metrics.network_stddev < STDDEV_THRESHOLD,
            f"network stddev ({metrics.network_stddev:.4f}) >= dead line ({STDDEV_THRESHOLD:.3f})",
        ),
    ]

    failed = [message for passed, message in checks if not passed]
    if not failed:
        return True, ZOMBIE_REASON

    return False, "does not meet zombie criteria: " + "; ".join(failed)


def calculate_resource_release(metric: ResourceMetric) -> ResourceRelease:
    """Resources reclaimable from a zombie.

    The whole request is considered releasable, with no safety margin.
    Memory is reported in GiB.
    """
    return ResourceRelease(
        cpu_cores=float(metric.cpu_request),
        memory_gib=convert_bytes_to_gibibytes(float(metric.mem_request)),
    )


def generate_optimization_suggestion(metrics: ZombieMetrics, metric: ResourceMetric) -> str:
    """Human-readable recommendation for one resource."""
    zombie, reason = is_zombie(metrics)
    if not zombie:
        return f"Not a zombie: {reason}"

    release = calculate_resource_release(metric)
    return (
        "Zombie detected. Suggested action: scale down or terminate. "
        f"Potential resource release: {release.cpu_cores:.2f} cores, {release.memory_gib:.2f} GiB memory. "
        "Cost savings estimated based on waste billable cost."
    )


def build_zombie_metrics(
    cpu_samples: Sequence[float],
    mem_bytes_samples: Sequence[float],
    network_bytes_samples: Sequence[float],
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
) -> ZombieMetrics:
    """Summarize raw usage samples over a window into ZombieMetrics.

    Population standard deviation is used. Memory samples are converted from
    bytes to GiB and network samples from bytes/s to KB/s before the
    statistics are taken. An empty series yields NaN statistics, which
    is_zombie reports as invalid.

    Args:
        cpu_samples: CPU usage samples in cores
        mem_bytes_samples: Memory usage samples in bytes
        network_bytes_samples: Network throughput samples in bytes per second
        start_time: Start of the window
        end_time: End of the window

    Returns:
        ZombieMetrics
    """

    def stats(samples) -> Tuple[float, float]:
        values = np.asarray(samples, dtype="float64")
        if values.size == 0:
            return float("nan"), float("nan")
        return float(values.mean()), float(values.std())

    cpu_avg, cpu_std = stats(cpu_samples)
    mem_avg, mem_std = stats(convert_bytes_to_gibibytes(np.asarray(mem_bytes_samples, dtype="float64")))
    net_avg, net_std = stats(convert_bytes_to_kilobytes(np.asarray(network_bytes_samples, dtype="float64")))

    return ZombieMetrics(
        cpu_avg=cpu_avg,
        cpu_stddev=cpu_std,
        mem_avg=mem_avg,
        mem_stddev=mem_std,
        network_avg=net_avg,
        network_stddev=net_std,
        start_time=start_time,
        end_time=end_time,
    )


def verify_zombie_detection(
    metrics: ZombieMetrics, expected_is_zombie: bool, expected_reason: str = ""
) -> Tuple[bool, str]:
    """Compare detection against an expected verdict.

    A reason mismatch alone does not fail verification; it is only noted in
    the returned message.

    Returns:
        Tuple of (verdict_matches, message)
    """
    actual, reason = is_zombie(metrics)
    if actual != expected_is_zombie:
        logger.warning(
            "Zombie detection mismatch", expected=expected_is_zombie, actual=actual, reason=reason
        )
        return False, (
            f"detection mismatch: expected zombie={expected_is_zombie}, got zombie={actual}. Reason: {reason}"
        )

    if expected_reason and reason != expected_reason:
        return True, f"detection correct but reason mismatch: expected '{expected_reason}', got '{reason}'"

    return True, "verification passed"
