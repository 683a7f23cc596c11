"""
Energy / Resource Estimator

Samples a derived estimate of cumulative energy, plus peak resident memory and
cumulative CPU time, over the lifetime of a run.

The estimate is approximate: each sample contributes
``cpu_time_delta * base_rate * thermal_multiplier`` (mJ). It is not a hardware
power reading.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol

from route_bench.domain.constants import (
    BASE_ENERGY_MJ_PER_CPU_SECOND,
    THERMAL_MULTIPLIERS,
    UNKNOWN_THERMAL_STATE,
)
from route_bench.domain.entities import EnergySample
from route_bench.domain.errors import ProbeError

logger = logging.getLogger(__name__)


class ResourceProbe(Protocol):
    def resident_memory_bytes(self) -> int | None: ...

    def cpu_time_seconds(self) -> float | None: ...

    def thermal_state(self) -> str | None: ...


def thermal_multiplier(state: str) -> float:
    """Power multiplier for a thermal state (1.0 when unknown)"""
    return THERMAL_MULTIPLIERS.get(state, 1.0)


class EnergyEstimator:
    """
    Time-series energy / memory / CPU estimator

    ``start()`` resets and takes an initial sample, ``record_sample()`` appends
    exactly one sample per call, ``stop()`` takes a final one. Readers are
    valid at any time.
    """

    def __init__(
        self,
        probe: ResourceProbe,
        clock: Callable[[], float] = time.monotonic,
        base_rate_mj_per_cpu_second: float = BASE_ENERGY_MJ_PER_CPU_SECOND,
    ):
        self._probe = probe
        self._clock = clock
        self._base_rate = base_rate_mj_per_cpu_second
        self._reset()

    def _reset(self) -> None:
        self._samples: list[EnergySample] = []
        self._start_time: float | None = None
        self._total_mj = 0.0
        self._cpu_start: float | None = None
        self._last_cpu: float | None = None
        self._peak_memory = 0

    # -- Readings (missing readings degrade to None) --

    def _read_cpu(self) -> float | None:
        try:
            return self._probe.cpu_time_seconds()
        except ProbeError as e:
            logger.debug("CPU reading skipped: %s", e)
            return None

    def _read_thermal(self) -> str:
        try:
            state = self._probe.thermal_state()
        except ProbeError as e:
            logger.debug("Thermal reading skipped: %s", e)
            return UNKNOWN_THERMAL_STATE
        return state or UNKNOWN_THERMAL_STATE

    # -- Lifecycle --

    def start(self) -> None:
        """Reset all counters and record the initial sample"""
        self._reset()
        self._start_time = self._clock()
        self._cpu_start = self._read_cpu()
        self._last_cpu = self._cpu_start
        self.observe_memory()
        self.record_sample()

    def stop(self) -> None:
        """Record the final sample"""
        self.record_sample()

    def record_sample(self) -> EnergySample:
        """
        Accumulate the energy since the previous sample and append a new sample

        Returns:
            EnergySample: The appended sample
        """
        if self._start_time is None:
            self._start_time = self._clock()

        thermal_state = self._read_thermal()
        cpu_now = self._read_cpu()

        if cpu_now is not None:
            if self._last_cpu is not None:
                delta = cpu_now - self._last_cpu
                if delta > 0:
                    self._total_mj += delta * self._base_rate * thermal_multiplier(thermal_state)
            if self._cpu_start is None:
                self._cpu_start = cpu_now
            self._last_cpu = cpu_now

        sample = EnergySample(
            timestamp=max(0.0, self._clock() - self._start_time),
            energy_mj=self._total_mj,
            thermal_state=thermal_state,
        )
        self._samples.append(sample)
        return sample

    def observe_memory(self) -> int:
        """Take a resident memory reading and update the peak"""
        try:
            rss = self._probe.resident_memory_bytes()
        except ProbeError as e:
            logger.debug("Memory reading skipped: %s", e)
            return self._peak_memory
        if rss is None:
            return self._peak_memory
        if rss > self._peak_memory:
            self._peak_memory = rss
        return self._peak_memory

    # -- Readers --

    def total_energy_mj(self) -> float:
        return self._total_mj

    def peak_memory_bytes(self) -> int:
        return self._peak_memory

    def cpu_time_seconds(self) -> float:
        """CPU time consumed since start() as of the latest sample"""
        if self._cpu_start is None or self._last_cpu is None:
            return 0.0
        return max(0.0, self._last_cpu - self._cpu_start)

    def samples(self) -> list[EnergySample]:
        return list(self._samples)
