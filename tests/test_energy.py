"""
Tests for the energy / resource estimator
"""

import pytest

from route_bench.domain.errors import ProbeError
from route_bench.energy import EnergyEstimator, thermal_multiplier


class FakeProbe:
    """Scripted readings; the last value repeats once a script runs out"""

    def __init__(self, cpu=(0.0,), memory=(100,), thermal=("fair",)):
        self._cpu = list(cpu)
        self._memory = list(memory)
        self._thermal = list(thermal)

    @staticmethod
    def _next(values):
        value = values.pop(0) if len(values) > 1 else values[0]
        if isinstance(value, Exception):
            raise value
        return value

    def resident_memory_bytes(self):
        return self._next(self._memory)

    def cpu_time_seconds(self):
        return self._next(self._cpu)

    def thermal_state(self):
        return self._next(self._thermal)


class StepClock:
    def __init__(self, step=0.5):
        self.now = 0.0
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


class TestThermalMultiplier:
    @pytest.mark.parametrize("state,expected", [
        ("nominal", 0.5), ("fair", 1.0), ("serious", 1.5), ("critical", 2.0), ("unknown", 1.0),
    ])
    def test_multipliers(self, state, expected):
        assert thermal_multiplier(state) == expected


class TestEnergyEstimator:
    def test_start_records_initial_zero_sample(self):
        estimator = EnergyEstimator(FakeProbe(cpu=(2.0,)), clock=StepClock())
        estimator.start()

        samples = estimator.samples()
        assert len(samples) == 1
        assert samples[0].energy_mj == 0.0
        assert samples[0].thermal_state == "fair"

    def test_energy_accumulates_cpu_delta(self):
        # start: baseline 0.0, initial sample 0.0; then 1.0; stop at 3.0
        probe = FakeProbe(cpu=(0.0, 0.0, 1.0, 3.0))
        estimator = EnergyEstimator(probe, clock=StepClock(), base_rate_mj_per_cpu_second=5000.0)

        estimator.start()
        assert estimator.record_sample().energy_mj == pytest.approx(5000.0)
        estimator.stop()

        assert estimator.total_energy_mj() == pytest.approx(15000.0)
        assert estimator.cpu_time_seconds() == pytest.approx(3.0)
        assert len(estimator.samples()) == 3

    def test_thermal_multiplier_applied(self):
        probe = FakeProbe(cpu=(0.0, 0.0, 1.0), thermal=("nominal", "critical"))
        estimator = EnergyEstimator(probe, clock=StepClock(), base_rate_mj_per_cpu_second=1000.0)

        estimator.start()
        sample = estimator.record_sample()
        assert sample.thermal_state == "critical"
        assert sample.energy_mj == pytest.approx(2000.0)

    def test_energy_never_decreases(self):
        probe = FakeProbe(cpu=(1.0, 1.0, 2.0, 1.5, 1.5, 4.0))
        estimator = EnergyEstimator(probe, clock=StepClock())

        estimator.start()
        for _ in range(3):
            estimator.record_sample()
        estimator.stop()

        energies = [s.energy_mj for s in estimator.samples()]
        assert energies == sorted(energies)
        timestamps = [s.timestamp for s in estimator.samples()]
        assert timestamps == sorted(timestamps)

    def test_missing_cpu_reading_contributes_nothing(self):
        probe = FakeProbe(cpu=(0.0, 0.0, ProbeError("denied"), 1.0))
        estimator = EnergyEstimator(probe, clock=StepClock(), base_rate_mj_per_cpu_second=1000.0)

        estimator.start()
        assert estimator.record_sample().energy_mj == 0.0
        assert estimator.record_sample().energy_mj == pytest.approx(1000.0)

    def test_missing_thermal_reading_is_unknown(self):
        probe = FakeProbe(cpu=(0.0, 0.0, 1.0), thermal=(ProbeError("no sensors"),))
        estimator = EnergyEstimator(probe, clock=StepClock(), base_rate_mj_per_cpu_second=1000.0)

        estimator.start()
        sample = estimator.record_sample()
        assert sample.thermal_state == "unknown"
        assert sample.energy_mj == pytest.approx(1000.0)

    def test_none_readings_are_missing(self):
        probe = FakeProbe(cpu=(None,), memory=(None,), thermal=(None,))
        estimator = EnergyEstimator(probe, clock=StepClock())

        estimator.start()
        sample = estimator.record_sample()
        assert sample.thermal_state == "unknown"
        assert sample.energy_mj == 0.0
        assert estimator.observe_memory() == 0
        assert estimator.cpu_time_seconds() == 0.0

    def test_back_to_back_samples_without_cpu_change(self):
        probe = FakeProbe(cpu=(0.0, 0.0, 1.0))
        estimator = EnergyEstimator(probe, clock=StepClock(), base_rate_mj_per_cpu_second=1000.0)

        estimator.start()
        first = estimator.record_sample()
        second = estimator.record_sample()
        assert len(estimator.samples()) == 3
        assert first.energy_mj == second.energy_mj == pytest.approx(1000.0)

    def test_peak_memory(self):
        probe = FakeProbe(memory=(100, 300, 200))
        estimator = EnergyEstimator(probe, clock=StepClock())

        estimator.start()
        estimator.observe_memory()
        estimator.observe_memory()
        assert estimator.peak_memory_bytes() == 300

    def test_memory_probe_error_keeps_peak(self):
        probe = FakeProbe(memory=(500, ProbeError("gone")))
        estimator = EnergyEstimator(probe, clock=StepClock())

        estimator.start()
        assert estimator.observe_memory() == 500

    def test_start_resets(self):
        probe = FakeProbe(cpu=(0.0, 0.0, 2.0, 10.0))
        estimator = EnergyEstimator(probe, clock=StepClock())

        estimator.start()
        estimator.record_sample()
        assert estimator.total_energy_mj() > 0

        estimator.start()
        assert estimator.total_energy_mj() == 0.0
        assert len(estimator.samples()) == 1

    def test_samples_returns_copy(self):
        estimator = EnergyEstimator(FakeProbe(), clock=StepClock())
        estimator.start()
        estimator.samples().clear()
        assert len(estimator.samples()) == 1
