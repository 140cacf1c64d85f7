"""Quantum state model: amplitude vectors and weighted superpositions.

Physical interpretation:
  - QuantumStateVector: ordered complex amplitudes |psi> = sum a_i |i>,
    a global phase and an optional entanglement tag
  - Born rule: P(i) = |a_i|^2
  - SuperpositionState: weighted collection of constituent vectors plus the
    coherence time over which the collection stays valid

Both types are immutable. Operations that "change" a state (normalize,
phase shift, re-tagging) return new instances.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Self

import numpy as np

from quantumflow.core.complex import Complex
from quantumflow.core.errors import DegenerateStateError, EmptyInputError, StateError
from quantumflow.core.qmath import (
    TWO_PI,
    amplitude_overlap,
    as_byte_array,
    byte_entropy,
    shannon_entropy,
)

NORMALIZATION_TOLERANCE = 1e-5


def _frozen_complex(data) -> np.ndarray:
    arr = np.array(data, dtype=np.complex128)
    arr.flags.writeable = False
    return arr


# ---------------------------------------------------------------------------
# QuantumStateVector
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class QuantumStateVector:
    """Complex amplitude vector with global phase and entanglement tag.

    - data: complex128 array, basis order = index order, stored as given
      (call ``normalize()`` for a unit-norm copy)
    - phase: global phase in radians
    - entanglement_id: correlation tag; equal tags claim correlation
    """

    data: np.ndarray
    phase: float = 0.0
    entanglement_id: str | None = None

    def __post_init__(self) -> None:
        arr = np.asarray(self.data)
        if arr.ndim != 1:
            raise StateError("QuantumStateVector amplitudes must be 1-dimensional")
        if arr.size == 0:
            raise StateError("QuantumStateVector must have at least one amplitude")
        object.__setattr__(self, "data", _frozen_complex(arr))
        object.__setattr__(self, "phase", float(self.phase))

    # --- Constructors ---

    @classmethod
    def from_complex(
        cls,
        amplitudes: Sequence[Complex],
        phase: float = 0.0,
        entanglement_id: str | None = None,
    ) -> Self:
        return cls(
            data=np.array([complex(a) for a in amplitudes], dtype=np.complex128),
            phase=phase,
            entanglement_id=entanglement_id,
        )

    @classmethod
    def from_bytes(cls, data, chunk_size: int = 4, phase: float | None = None) -> Self:
        """Encode the first ``chunk_size`` bytes as a normalized state.

        Byte b becomes the amplitude with magnitude (b+1)/256 and angle
        b/255 * 2*pi. The global phase defaults to entropy * pi.
        """
        arr = as_byte_array(data)
        if arr.size == 0:
            raise EmptyInputError("Cannot create quantum state from empty data")
        head = arr[:chunk_size].astype(np.float64)
        magnitudes = (head + 1.0) / 256.0
        angles = head / 255.0 * TWO_PI
        global_phase = byte_entropy(arr) * math.pi if phase is None else phase
        return cls(data=magnitudes * np.exp(1j * angles), phase=global_phase).normalize()

    @classmethod
    def basis(cls, index: int, n: int) -> Self:
        data = np.zeros(n, dtype=np.complex128)
        data[index] = 1.0
        return cls(data=data)

    @classmethod
    def uniform(cls, n: int) -> Self:
        return cls(data=np.ones(n, dtype=np.complex128) / math.sqrt(n))

    # --- Accessors ---

    @property
    def dim(self) -> int:
        return self.data.shape[0]

    @property
    def amplitudes(self) -> tuple[Complex, ...]:
        return tuple(Complex.from_builtin(z) for z in self.data.tolist())

    def get_probability_distribution(self) -> np.ndarray:
        """|a_i|^2 for every basis state."""
        return np.abs(self.data) ** 2

    def total_probability(self) -> float:
        return float(np.sum(self.get_probability_distribution()))

    def is_normalized(self, tolerance: float = NORMALIZATION_TOLERANCE) -> bool:
        return abs(self.total_probability() - 1.0) < tolerance

    def entropy(self) -> float:
        """Shannon entropy (bits) of the Born distribution."""
        return shannon_entropy(self.get_probability_distribution())

    # --- Derived states ---

    def normalize(self) -> QuantumStateVector:
        """Unit-norm copy. Raises DegenerateStateError for a zero vector."""
        norm = float(np.linalg.norm(self.data))
        if norm == 0 or not math.isfinite(norm):
            raise DegenerateStateError("Cannot normalize zero amplitudes")
        return QuantumStateVector(self.data / norm, self.phase, self.entanglement_id)

    def apply_phase_shift(self, shift: float) -> QuantumStateVector:
        """Rotate every amplitude and the global phase by ``shift``."""
        return QuantumStateVector(
            self.data * np.exp(1j * shift),
            (self.phase + shift) % TWO_PI,
            self.entanglement_id,
        )

    def with_entanglement_id(self, entanglement_id: str | None) -> QuantumStateVector:
        return QuantumStateVector(self.data, self.phase, entanglement_id)

    def clone(self) -> QuantumStateVector:
        return QuantumStateVector(self.data.copy(), self.phase, self.entanglement_id)

    # --- Comparison ---

    def calculate_correlation(self, other: QuantumStateVector) -> float:
        """Amplitude-magnitude overlap over the shorter vector.

        1.0 for two identical normalized states, 0.0 for disjoint support.
        """
        return amplitude_overlap(self.data, other.data)

    def equals(self, other: QuantumStateVector, tolerance: float = 1e-10) -> bool:
        if self.dim != other.dim:
            return False
        if abs(self.phase - other.phase) > tolerance:
            return False
        diff = self.data - other.data
        return bool(np.all(np.abs(diff.real) < tolerance) and np.all(np.abs(diff.imag) < tolerance))

    # --- Classical conversion ---

    def to_bytes(self) -> bytes:
        """Invert the from_bytes magnitude mapping (lossy for normalized states)."""
        values = np.round((np.abs(self.data) * 256.0 - 1.0) % 256.0)
        return np.clip(values, 0, 255).astype(np.uint8).tobytes()

    def __repr__(self) -> str:
        amps = ", ".join(f"|{i}>: {a}" for i, a in enumerate(self.amplitudes))
        return f"QuantumState(phase: {self.phase:.4f}, amplitudes: [{amps}])"


def create_superposition(
    states: Sequence[QuantumStateVector],
    weights: Sequence[float] | None = None,
) -> QuantumStateVector:
    """Collapse several states into one normalized vector.

    sum_j sqrt(w_j) * a_j (shorter states zero-padded), weights rescaled to
    sum to 1; the global phase is the weight-averaged phase.
    """
    if not states:
        raise EmptyInputError("Cannot create superposition from empty states array")
    return _combine(states, _normalized_weights(states, weights)).normalize()


def _combine(states: Sequence[QuantumStateVector], w: np.ndarray) -> QuantumStateVector:
    dim = max(s.dim for s in states)
    combined = np.zeros(dim, dtype=np.complex128)
    for state, weight in zip(states, w):
        combined[: state.dim] += state.data * math.sqrt(weight)
    phase = float(sum(s.phase * weight for s, weight in zip(states, w)))
    return QuantumStateVector(combined, phase)


def _normalized_weights(
    states: Sequence[QuantumStateVector],
    weights: Sequence[float] | None,
) -> np.ndarray:
    if weights is None:
        return np.full(len(states), 1.0 / len(states))
    w = np.asarray(weights, dtype=np.float64)
    if w.shape != (len(states),):
        raise StateError("Weights array must match states array length")
    if np.any(w < 0) or not np.all(np.isfinite(w)):
        raise StateError("All weights must be finite and non-negative")
    total = float(np.sum(w))
    if total <= 0:
        raise StateError("Weights must not all be zero")
    return w / total


# ---------------------------------------------------------------------------
# SuperpositionState
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PatternProbability:
    """One basis state of a superposition, ranked by probability."""

    index: int
    amplitude: Complex
    probability: float
    phase: float
    magnitude: float


@dataclass(frozen=True)
class MeasurementOutcome:
    state_index: int
    probability: float
    collapsed_state: QuantumStateVector


@dataclass(frozen=True, eq=False)
class SuperpositionState:
    """Weighted collection of constituent states.

    ``weights`` are kept exactly as given (relative contributions, not
    necessarily summing to 1); ``normalized_weights`` rescales them.
    ``coherence`` is the remaining coherence time of the collection.
    """

    constituent_states: tuple[QuantumStateVector, ...]
    weights: tuple[float, ...]
    coherence: float = 1.0
    combined: QuantumStateVector | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        states = tuple(self.constituent_states)
        if not states:
            raise StateError("SuperpositionState must have at least one constituent state")
        weights = tuple(float(w) for w in self.weights)
        if len(weights) != len(states):
            raise StateError("Weights array must match constituent states array length")
        if self.coherence < 0 or not math.isfinite(self.coherence):
            raise StateError("Coherence time cannot be negative")
        normalized = _normalized_weights(states, weights)
        object.__setattr__(self, "constituent_states", states)
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "coherence", float(self.coherence))
        object.__setattr__(self, "_normalized", normalized)
        if self.combined is None:
            combined = _combine(states, normalized)
            if combined.total_probability() > 0:
                combined = combined.normalize()
            # full destructive interference leaves the zero vector in place
            object.__setattr__(self, "combined", combined)

    @classmethod
    def from_quantum_states(
        cls,
        states: Sequence[QuantumStateVector],
        weights: Sequence[float] | None = None,
        coherence: float = 1.0,
    ) -> Self:
        """Weights default to equal shares and need not sum to 1."""
        if not states:
            raise EmptyInputError("Cannot create superposition from empty states array")
        if weights is None:
            weights = [1.0 / len(states)] * len(states)
        return cls(
            constituent_states=tuple(s.clone() for s in states),
            weights=tuple(weights),
            coherence=coherence,
        )

    @classmethod
    def from_data_patterns(
        cls,
        patterns: Sequence[bytes],
        weights: Sequence[float] | None = None,
        coherence: float = 1.0,
    ) -> Self:
        if not patterns:
            raise EmptyInputError("Cannot create superposition from empty data patterns")
        states = [QuantumStateVector.from_bytes(p) for p in patterns]
        return cls.from_quantum_states(states, weights, coherence)

    # --- Properties ---

    @property
    def normalized_weights(self) -> np.ndarray:
        return self._normalized.copy()  # type: ignore[attr-defined]

    @property
    def combined_amplitudes(self) -> tuple[Complex, ...]:
        return self.combined.amplitudes

    @property
    def probability_distribution(self) -> np.ndarray:
        return self.combined.get_probability_distribution()

    def total_probability(self) -> float:
        return self.combined.total_probability()

    def entropy(self) -> float:
        return shannon_entropy(self.probability_distribution)

    def is_coherent(self, threshold: float = 0.1) -> bool:
        return self.coherence > threshold

    # --- Pattern analysis ---

    def analyze_probability_amplitudes(self) -> list[PatternProbability]:
        """Every basis state of the combined vector, most probable first."""
        patterns = [
            PatternProbability(
                index=i,
                amplitude=amp,
                probability=amp.magnitude_squared(),
                phase=amp.phase(),
                magnitude=amp.magnitude(),
            )
            for i, amp in enumerate(self.combined_amplitudes)
        ]
        return sorted(patterns, key=lambda p: p.probability, reverse=True)

    def dominant_patterns(self, threshold: float = 0.1) -> list[PatternProbability]:
        return [p for p in self.analyze_probability_amplitudes() if p.probability >= threshold]

    # --- Collapse ---

    def measure(self, rng: np.random.Generator | None = None) -> MeasurementOutcome:
        """Collapse onto one constituent, chosen with probability = normalized weight."""
        rng = rng or np.random.default_rng()
        w = self._normalized  # type: ignore[attr-defined]
        index = int(rng.choice(len(w), p=w))
        return MeasurementOutcome(
            state_index=index,
            probability=float(w[index]),
            collapsed_state=self.constituent_states[index].clone(),
        )

    def clone(self) -> SuperpositionState:
        return SuperpositionState(
            constituent_states=tuple(s.clone() for s in self.constituent_states),
            weights=self.weights,
            coherence=self.coherence,
        )

    def __repr__(self) -> str:
        return (
            f"SuperpositionState(states: {len(self.constituent_states)}, "
            f"entropy: {self.entropy():.4f}, coherence: {self.coherence:.4f})"
        )
