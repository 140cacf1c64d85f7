"""Quantum decoherence simulator: transmission noise, integrity checks and
time evolution for ``QuantumStateVector``s.

Noise model for one ``apply_decoherence`` step, with f the decoherence
factor (remaining coherence / base coherence):
  1. amplitude damping:  a_i *= sqrt(max(0, 1 - (1-f)(1-|a_i|^2)))
  2. phase damping:      a_i *= exp(i*theta_i), theta_i ~ U(-1/2, 1/2)*(1-f)*pi/2
  3. environmental noise: Gaussian (Box-Muller) on real and imaginary parts,
     sigma = environmental_noise * (1 + 0.1*temperature)
  4. global phase nudge: U(-1/2, 1/2)*(1-f)*0.1*pi
then renormalization.

Coherence lifecycle of a simulated state (monotonic, no recovery):
  COHERENT (f >= 1/e) -> DEGRADED -> INCOHERENT (remaining <= 10% of base)

Numeric degeneracy never raises: non-finite or zero-norm intermediates are
replaced by the last finite value.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Self

import numpy as np

from quantumflow.core.errors import ConfigurationError
from quantumflow.core.qmath import shannon_entropy
from quantumflow.quantum.state import QuantumStateVector, SuperpositionState

logger = logging.getLogger(__name__)

INCOHERENCE_FRACTION = 0.1
CORRELATION_FLOOR = 0.5
NON_FINITE_SEVERITY = 1.0


# ---------------------------------------------------------------------------
# Inputs and configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EnvironmentalFactors:
    """Environmental stress multipliers. Defaults are neutral (room temperature)."""

    temperature: float = 1.0
    magnetic_field: float = 0.0
    vibration: float = 0.0
    radiation: float = 0.0

    @classmethod
    def coerce(cls, factors: EnvironmentalFactors | Mapping[str, float] | None) -> Self:
        """Accept an instance, a mapping of field names, or None."""
        if factors is None:
            return cls()
        if isinstance(factors, cls):
            return factors
        return cls(**{k: float(v) for k, v in factors.items() if v is not None})


@dataclass(frozen=True)
class DecoherenceConfig:
    base_coherence_time: float = 100.0
    decoherence_rate: float = 0.01
    environmental_noise: float = 0.001
    temperature_effect: float = 0.1

    def __post_init__(self) -> None:
        for name in (
            "base_coherence_time", "decoherence_rate",
            "environmental_noise", "temperature_effect",
        ):
            if not math.isfinite(getattr(self, name)):
                raise ConfigurationError(f"{name} must be finite")
        if self.base_coherence_time <= 0:
            raise ConfigurationError(
                f"base_coherence_time must be positive, got {self.base_coherence_time}"
            )
        for name in ("decoherence_rate", "environmental_noise", "temperature_effect"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} cannot be negative")

    def replace(self, **changes: float) -> DecoherenceConfig:
        return dataclasses.replace(self, **changes)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class CoherenceStatus(Enum):
    COHERENT = "coherent"
    DEGRADED = "degraded"
    INCOHERENT = "incoherent"


class QuantumErrorType(str, Enum):
    AMPLITUDE = "amplitude"
    PHASE = "phase"
    NORMALIZATION = "normalization"
    ENTANGLEMENT = "entanglement"


@dataclass(frozen=True)
class DecoherenceResult:
    decoherent_state: QuantumStateVector
    remaining_coherence: float
    decoherence_factor: float
    fidelity: float
    entropy_increase: float
    is_coherent: bool

    @property
    def status(self) -> CoherenceStatus:
        if not self.is_coherent:
            return CoherenceStatus.INCOHERENT
        if self.decoherence_factor >= 1.0 / math.e:
            return CoherenceStatus.COHERENT
        return CoherenceStatus.DEGRADED


@dataclass(frozen=True)
class SuperpositionDecoherenceResult:
    decoherent_superposition: SuperpositionState
    constituent_results: list[DecoherenceResult]
    average_coherence: float
    average_fidelity: float
    is_coherent: bool


@dataclass(frozen=True)
class QuantumError:
    """One detected deviation. ``index`` is -1 for whole-state errors."""

    type: QuantumErrorType
    index: int
    severity: float
    description: str


@dataclass(frozen=True)
class QuantumErrorReport:
    errors: list[QuantumError] = field(default_factory=list)
    error_severity: float = 0.0
    fidelity: float = 1.0

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def is_corrupted(self) -> bool:
        return bool(self.errors)

    def by_type(self, kind: QuantumErrorType | str) -> list[QuantumError]:
        kind = QuantumErrorType(kind)
        return [e for e in self.errors if e.type is kind]


@dataclass(frozen=True)
class TimeEvolutionResult:
    evolution: list[QuantumStateVector]
    coherence_times: list[float]
    fidelities: list[float]
    final_state: QuantumStateVector
    total_decoherence: float
    coherence_lifetime: int


# ---------------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------------

class QuantumDecoherenceSimulator:
    """Applies time- and environment-dependent decoherence to quantum states.

    Randomness comes from the injected ``rng``; pass a seeded
    ``np.random.default_rng(seed)`` for reproducible runs. One generator per
    simulator, so give each thread its own simulator.
    """

    def __init__(
        self,
        base_coherence_time: float = 100.0,
        decoherence_rate: float = 0.01,
        environmental_noise: float = 0.001,
        temperature_effect: float = 0.1,
        *,
        config: DecoherenceConfig | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._config = config or DecoherenceConfig(
            base_coherence_time=base_coherence_time,
            decoherence_rate=decoherence_rate,
            environmental_noise=environmental_noise,
            temperature_effect=temperature_effect,
        )
        self._rng = rng if rng is not None else np.random.default_rng()

    @property
    def config(self) -> DecoherenceConfig:
        return self._config

    @property
    def base_coherence_time(self) -> float:
        return self._config.base_coherence_time

    @property
    def decoherence_rate(self) -> float:
        return self._config.decoherence_rate

    @property
    def environmental_noise(self) -> float:
        return self._config.environmental_noise

    @property
    def temperature_effect(self) -> float:
        return self._config.temperature_effect

    # --- Coherence time ---

    def calculate_coherence_time(
        self,
        state: QuantumStateVector,
        elapsed_time: float = 0.0,
        factors: EnvironmentalFactors | Mapping[str, float] | None = None,
    ) -> float:
        """Remaining coherence after ``elapsed_time`` under ``factors``, floored at 0.

        An environmental divisor that overflows or is not positive leaves no
        coherence.
        """
        env = EnvironmentalFactors.coerce(factors)
        coherence = self.base_coherence_time - elapsed_time * self.decoherence_rate

        divisor = (
            (1.0 + (env.temperature - 1.0) * self.temperature_effect)
            * (1.0 + env.magnetic_field * 0.05)
            * (1.0 + env.vibration * 0.1)
            * (1.0 + env.radiation * 0.2)
        )
        if not math.isfinite(divisor) or divisor <= 0:
            logger.warning("environmental divisor %r, coherence lost", divisor)
            return 0.0
        coherence /= divisor

        coherence /= 1.0 + _state_complexity(state) * 0.1
        if not math.isfinite(coherence):
            return 0.0
        return max(0.0, coherence)

    # --- Single step ---

    def apply_decoherence(
        self,
        state: QuantumStateVector,
        time_step: float,
        factors: EnvironmentalFactors | Mapping[str, float] | None = None,
    ) -> DecoherenceResult:
        env = EnvironmentalFactors.coerce(factors)
        remaining = self.calculate_coherence_time(state, time_step, env)
        factor = max(0.0, remaining / self.base_coherence_time)
        loss = min(1.0, max(0.0, 1.0 - factor))

        original = _finite_or_zero(state.data)
        damped = self._amplitude_damping(original, loss)
        dephased = self._phase_damping(damped, loss)
        noisy = self._environmental_noise(dephased, env)

        nudge = (self._rng.random() - 0.5) * loss * math.pi * 0.1
        phase = state.phase + nudge
        if not math.isfinite(phase):
            phase = state.phase if math.isfinite(state.phase) else 0.0

        decoherent = QuantumStateVector(
            _safe_normalize(noisy, fallback=original),
            phase,
            state.entanglement_id,
        )
        entropy_increase = max(0.0, decoherent.entropy() - state.entropy())

        return DecoherenceResult(
            decoherent_state=decoherent,
            remaining_coherence=remaining,
            decoherence_factor=factor,
            fidelity=calculate_fidelity(state, decoherent),
            entropy_increase=entropy_increase if math.isfinite(entropy_increase) else 0.0,
            is_coherent=remaining > self.base_coherence_time * INCOHERENCE_FRACTION,
        )

    def _amplitude_damping(self, data: np.ndarray, damping_rate: float) -> np.ndarray:
        keep = np.sqrt(np.maximum(0.0, 1.0 - damping_rate * (1.0 - np.abs(data) ** 2)))
        keep = np.where(np.isfinite(keep), keep, 1.0)
        return data * keep

    def _phase_damping(self, data: np.ndarray, loss: float) -> np.ndarray:
        dephasing_rate = loss * 0.5
        noise = (self._rng.random(data.shape[0]) - 0.5) * dephasing_rate * math.pi
        return data * np.exp(1j * noise)

    def _environmental_noise(self, data: np.ndarray, env: EnvironmentalFactors) -> np.ndarray:
        level = self.environmental_noise * (1.0 + env.temperature * 0.1)
        n = data.shape[0]
        noise = (self._gaussian(n) + 1j * self._gaussian(n)) * level
        noisy = data + noise
        return np.where(np.isfinite(noisy), noisy, data)

    def _gaussian(self, n: int) -> np.ndarray:
        """Standard normal samples via Box-Muller."""
        u1 = np.maximum(1e-10, self._rng.random(n))
        u2 = self._rng.random(n)
        z = np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * math.pi * u2)
        return np.where(np.isfinite(z), z, 0.0)

    # --- Superpositions ---

    def apply_superposition_decoherence(
        self,
        superposition: SuperpositionState,
        time_step: float,
        factors: EnvironmentalFactors | Mapping[str, float] | None = None,
    ) -> SuperpositionDecoherenceResult:
        """Decohere each constituent independently; weights are carried over unchanged."""
        results = [
            self.apply_decoherence(s, time_step, factors)
            for s in superposition.constituent_states
        ]
        avg_coherence = float(np.mean([r.remaining_coherence for r in results]))
        avg_fidelity = float(np.mean([r.fidelity for r in results]))
        decoherent = SuperpositionState.from_quantum_states(
            [r.decoherent_state for r in results],
            list(superposition.weights),
            avg_coherence,
        )
        return SuperpositionDecoherenceResult(
            decoherent_superposition=decoherent,
            constituent_results=results,
            average_coherence=avg_coherence,
            average_fidelity=avg_fidelity,
            is_coherent=avg_coherence > self.base_coherence_time * INCOHERENCE_FRACTION,
        )

    # --- Error detection ---

    def detect_quantum_errors(
        self,
        original: QuantumStateVector,
        current: QuantumStateVector,
        threshold: float = 0.01,
    ) -> QuantumErrorReport:
        """Compare ``current`` against ``original`` and classify the deviations.

        A non-finite amplitude or total probability is itself an error of
        severity ``NON_FINITE_SEVERITY``.
        """
        errors: list[QuantumError] = []
        n = min(original.dim, current.dim)
        a = original.data[:n]
        b = current.data[:n]
        finite = np.isfinite(a) & np.isfinite(b)

        mag_diff = np.zeros(n)
        mag_diff[finite] = np.abs(np.abs(a[finite]) - np.abs(b[finite]))
        for i in np.flatnonzero(~finite | (mag_diff > threshold)):
            if not finite[i]:
                errors.append(QuantumError(
                    QuantumErrorType.AMPLITUDE, int(i), NON_FINITE_SEVERITY,
                    f"Non-finite amplitude at index {i}",
                ))
                continue
            err = float(mag_diff[i])
            errors.append(QuantumError(
                QuantumErrorType.AMPLITUDE, int(i), err,
                f"Amplitude error at index {i}: {err:.6f}",
            ))

        phase_diff = np.zeros(n)
        phase_diff[finite] = np.abs(np.angle(a[finite]) - np.angle(b[finite])) % (2.0 * math.pi)
        phase_diff = np.minimum(phase_diff, 2.0 * math.pi - phase_diff)
        for i in np.flatnonzero(phase_diff > threshold):
            err = float(phase_diff[i])
            errors.append(QuantumError(
                QuantumErrorType.PHASE, int(i), err,
                f"Phase error at index {i}: {err:.6f} radians",
            ))

        total = current.total_probability()
        if not math.isfinite(total):
            errors.append(QuantumError(
                QuantumErrorType.NORMALIZATION, -1, NON_FINITE_SEVERITY,
                "Normalization error: total probability is not finite",
            ))
        elif abs(total - 1.0) > threshold:
            errors.append(QuantumError(
                QuantumErrorType.NORMALIZATION, -1, abs(total - 1.0),
                f"Normalization error: total probability = {total:.6f}",
            ))

        entanglement = _entanglement_error(original, current)
        if entanglement is not None:
            errors.append(entanglement)

        severity = float(np.mean([e.severity for e in errors])) if errors else 0.0
        return QuantumErrorReport(
            errors=errors,
            error_severity=severity,
            fidelity=calculate_fidelity(original, current),
        )

    # --- Time evolution ---

    def simulate_time_evolution(
        self,
        initial_state: QuantumStateVector,
        total_time: float,
        steps: int = 100,
        factors: EnvironmentalFactors | Mapping[str, float] | None = None,
    ) -> TimeEvolutionResult:
        """Decohere ``initial_state`` over ``steps`` equal time steps.

        Step k decoheres the previous state with elapsed time k*total_time/steps.
        Fidelities are measured against the initial state.
        """
        if steps < 1:
            raise ConfigurationError(f"steps must be at least 1, got {steps}")
        env = EnvironmentalFactors.coerce(factors)
        time_step = total_time / steps

        evolution = [initial_state.clone()]
        coherence_times = [self.base_coherence_time]
        fidelities = [1.0]

        current = initial_state.clone()
        for step in range(1, steps + 1):
            result = self.apply_decoherence(current, step * time_step, env)
            current = result.decoherent_state
            evolution.append(current.clone())
            coherence_times.append(result.remaining_coherence)
            fidelities.append(calculate_fidelity(initial_state, current))

        return TimeEvolutionResult(
            evolution=evolution,
            coherence_times=coherence_times,
            fidelities=fidelities,
            final_state=current,
            total_decoherence=1.0 - fidelities[-1],
            coherence_lifetime=coherence_lifetime(coherence_times),
        )

    def calculate_fidelity(self, a: QuantumStateVector, b: QuantumStateVector) -> float:
        return calculate_fidelity(a, b)


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

def calculate_fidelity(a: QuantumStateVector, b: QuantumStateVector) -> float:
    """|<a|b>|^2 over the shorter vector, clipped to [0, 1].

    Index pairs holding a non-finite amplitude are skipped. No norm
    correction is applied, so lost probability lowers the fidelity.
    """
    n = min(a.dim, b.dim)
    x = a.data[:n]
    y = b.data[:n]
    mask = np.isfinite(x) & np.isfinite(y)
    if not np.any(mask):
        return 0.0
    fidelity = float(np.abs(np.vdot(x[mask], y[mask])) ** 2)
    if not math.isfinite(fidelity):
        return 0.0
    return min(1.0, max(0.0, fidelity))


def coherence_lifetime(coherence_times: list[float]) -> int:
    """First step index whose coherence is <= initial/e, else the last index."""
    threshold = coherence_times[0] / math.e
    for i in range(1, len(coherence_times)):
        if coherence_times[i] <= threshold:
            return i
    return len(coherence_times) - 1


def _state_complexity(state: QuantumStateVector) -> float:
    """Born-distribution entropy normalized by log2(dim); 0 for one amplitude."""
    if state.dim < 2:
        return 0.0
    probabilities = state.get_probability_distribution()
    if not np.all(np.isfinite(probabilities)):
        return 0.0
    return shannon_entropy(probabilities) / math.log2(state.dim)


def _entanglement_error(
    original: QuantumStateVector,
    current: QuantumStateVector,
) -> QuantumError | None:
    if original.entanglement_id != current.entanglement_id:
        return QuantumError(
            QuantumErrorType.ENTANGLEMENT, -1, 1.0,
            "Entanglement ID corruption detected",
        )
    if original.entanglement_id is not None:
        correlation = original.calculate_correlation(current)
        if math.isfinite(correlation) and correlation < CORRELATION_FLOOR:
            return QuantumError(
                QuantumErrorType.ENTANGLEMENT, -1, 1.0 - correlation,
                f"Entanglement correlation degraded: {correlation:.6f}",
            )
    return None


def _finite_or_zero(data: np.ndarray) -> np.ndarray:
    if np.all(np.isfinite(data)):
        return data.copy()
    logger.warning("non-finite amplitudes replaced with zero")
    return np.where(np.isfinite(data), data, 0.0)


def _safe_normalize(data: np.ndarray, fallback: np.ndarray) -> np.ndarray:
    """Unit-norm ``data``; falls back to ``fallback``, then to a uniform vector."""
    for candidate in (data, fallback):
        norm = float(np.linalg.norm(candidate))
        if norm > 0 and math.isfinite(norm):
            return candidate / norm
        logger.warning("zero-norm or non-finite amplitudes, using fallback")
    n = data.shape[0]
    return np.ones(n, dtype=np.complex128) / math.sqrt(n)
