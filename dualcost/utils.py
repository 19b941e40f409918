"""Utility functions for dual-cost computation."""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

import numpy as np
import pandas as pd
import structlog

FINANCIAL_DECIMALS = 2
PERCENTAGE_DECIMALS = 2
COST_DECIMALS = 6

BYTES_PER_GIB = 1024 * 1024 * 1024
BYTES_PER_KB = 1024.0


def setup_logging(level: str = "INFO", log_format: str = "console"):
    """Set up structured logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Format type ("console" or "json")
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        processors = [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            structlog.stdlib.add_log_level,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name

    Returns:
        Structured logger
    """
    return structlog.get_logger(name)


def _round_half_away(value: float, decimals: int) -> float:
    factor = 10.0 ** decimals
    return math.copysign(math.floor(abs(value) * factor + 0.5), value) / factor


def round_to_precision(value: Optional[float], decimals: int) -> float:
    """Round a value to a fixed number of decimals (half away from zero).

    NaN, Infinity and None all collapse to 0.0 so that a corrupt input never
    reaches a report.

    Args:
        value: Value to round
        decimals: Number of decimal places

    Returns:
        Rounded value
    """
    if value is None or not math.isfinite(value):
        return 0.0
    if decimals < 0:
        return float(value)
    return _round_half_away(float(value), decimals)


def round_financial(value: Optional[float]) -> float:
    """Round a monetary amount to 2 decimals (non-finite values become 0)."""
    return round_to_precision(value, FINANCIAL_DECIMALS)


def round_percentage(value: Optional[float]) -> float:
    """Round a percentage to 2 decimals.

    No clamping happens here; callers cap values to [0, 100] before rounding
    where that applies.
    """
    return round_to_precision(value, PERCENTAGE_DECIMALS)


def round_series(series: pd.Series, decimals: int = FINANCIAL_DECIMALS) -> pd.Series:
    """Vectorised counterpart of round_to_precision for a pandas column.

    Args:
        series: Numeric series
        decimals: Number of decimal places

    Returns:
        Rounded series with non-finite entries replaced by 0.0
    """
    values = series.to_numpy(dtype="float64", copy=True)
    finite = np.isfinite(values)
    factor = 10.0 ** decimals
    rounded = np.sign(values) * np.floor(np.abs(values) * factor + 0.5) / factor
    return pd.Series(np.where(finite, rounded, 0.0), index=series.index)


def calculate_efficiency_score(billable: float, usage: float) -> float:
    """Calculate efficiency as usage over billable cost on a 0-100 scale.

    Usage is capped at billable so noisy P95 overshoot can never produce a
    score above 100.

    Args:
        billable: Billable (reserved) cost
        usage: Usage (consumed) cost

    Returns:
        Unrounded efficiency score, 0.0 when billable <= 0 or usage < 0
    """
    if not billable > 0 or usage < 0:
        return 0.0

    usage = min(usage, billable)
    return (usage / billable) * 100.0


def efficiency_series(billable: pd.Series, usage: pd.Series) -> pd.Series:
    """Vectorised calculate_efficiency_score over aligned columns."""
    billable_values = billable.to_numpy(dtype="float64")
    usage_values = usage.to_numpy(dtype="float64")
    valid = (billable_values > 0) & (usage_values >= 0)
    capped = np.minimum(usage_values, billable_values)
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(valid, capped / billable_values * 100.0, 0.0)
    return pd.Series(scores, index=billable.index)


def is_finite_number(value) -> bool:
    """Return True for real numbers that are neither NaN nor infinite."""
    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        return False
    return math.isfinite(value)


def float_equals(a: float, b: float, epsilon: float) -> bool:
    """Compare two floats with an absolute tolerance."""
    return abs(a - b) <= epsilon


def convert_bytes_to_gibibytes(bytes_value: float) -> float:
    """Convert bytes to GiB (1 GiB = 2^30 bytes).

    Args:
        bytes_value: Value in bytes

    Returns:
        Value in GiB
    """
    return bytes_value / BYTES_PER_GIB


def convert_bytes_to_kilobytes(bytes_value: float) -> float:
    """Convert bytes to KB (1 KB = 1024 bytes)."""
    return bytes_value / BYTES_PER_KB


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PerformanceTimer:
    """Context manager for timing code execution."""

    def __init__(self, name: str, logger: Optional[structlog.BoundLogger] = None):
        """Initialize timer.

        Args:
            name: Name of the timed operation
            logger: Logger instance (optional)
        """
        self.name = name
        self.logger = logger or get_logger("performance")
        self.start_time = None
        self.end_time = None

    def __enter__(self):
        """Start timer."""
        self.start_time = datetime.now()
        self.logger.debug(f"Starting: {self.name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Stop timer and log duration."""
        self.end_time = datetime.now()
        duration = (self.end_time - self.start_time).total_seconds()

        if exc_type is None:
            self.logger.debug(f"Completed: {self.name}", duration_seconds=round(duration, 6))
        else:
            self.logger.error(
                f"Failed: {self.name}",
                duration_seconds=round(duration, 6),
                error=str(exc_val),
            )

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds.

        Returns:
            Duration in seconds or None if timer hasn't finished
        """
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None


def format_duration(seconds: float) -> str:
    """Format duration as human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "2.3s", "1m 30s", "1h 15m")
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"
