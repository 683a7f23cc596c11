"""
System Probe

Instantaneous OS readings for the current process via psutil:
resident memory, cumulative CPU time, and a coarse thermal state.
"""

from __future__ import annotations

import logging

import psutil

from route_bench.domain.constants import UNKNOWN_THERMAL_STATE
from route_bench.domain.errors import ProbeError

logger = logging.getLogger(__name__)

# Fallback thresholds (degrees Celsius) when a sensor reports none
_FAIR_CELSIUS = 70.0
_SERIOUS_CELSIUS = 85.0
_CRITICAL_CELSIUS = 95.0


def classify_temperature(
    current: float,
    high: float | None = None,
    critical: float | None = None,
) -> str:
    """
    Map a sensor temperature to a thermal state

    Args:
        current: Current temperature
        high: Sensor "high" threshold (None if not reported)
        critical: Sensor "critical" threshold (None if not reported)

    Returns:
        "nominal", "fair", "serious" or "critical"
    """
    serious_at = high or _SERIOUS_CELSIUS
    critical_at = critical or _CRITICAL_CELSIUS
    fair_at = min(_FAIR_CELSIUS, serious_at - 10.0)

    if current >= critical_at:
        return "critical"
    if current >= serious_at:
        return "serious"
    if current >= fair_at:
        return "fair"
    return "nominal"


class SystemProbe:
    """Process-level resource readings"""

    def __init__(self, pid: int | None = None):
        self._process = psutil.Process(pid)

    def resident_memory_bytes(self) -> int:
        """
        Current resident set size

        Raises:
            ProbeError: If the reading is unavailable
        """
        try:
            return int(self._process.memory_info().rss)
        except psutil.Error as e:
            raise ProbeError(f"RSS unavailable: {e}") from e

    def cpu_time_seconds(self) -> float:
        """
        Cumulative user + system CPU time of the process

        Raises:
            ProbeError: If the reading is unavailable
        """
        try:
            times = self._process.cpu_times()
        except psutil.Error as e:
            raise ProbeError(f"CPU times unavailable: {e}") from e
        return float(times.user + times.system)

    def thermal_state(self) -> str:
        """Thermal state of the hottest sensor ("unknown" when none are exposed)"""
        sensors_fn = getattr(psutil, "sensors_temperatures", None)
        if sensors_fn is None:
            return UNKNOWN_THERMAL_STATE
        try:
            sensors = sensors_fn()
        except (OSError, RuntimeError) as e:
            logger.debug("Temperature sensors unavailable: %s", e)
            return UNKNOWN_THERMAL_STATE

        readings = [entry for entries in sensors.values() for entry in entries if entry.current]
        if not readings:
            return UNKNOWN_THERMAL_STATE

        hottest = max(readings, key=lambda entry: entry.current)
        return classify_temperature(hottest.current, hottest.high, hottest.critical)
