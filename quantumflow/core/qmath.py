"""Information-theoretic and amplitude helpers shared by the chunker,
phase assigner, state model and decoherence simulator.

Byte-oriented helpers accept anything ``np.frombuffer`` understands
(``bytes``, ``bytearray``, ``memoryview``) or a uint8 array.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np
from scipy.stats import entropy as scipy_entropy

from quantumflow.core.complex import Complex
from quantumflow.core.errors import DegenerateStateError

TWO_PI = 2.0 * math.pi
MAX_BYTE_ENTROPY = 8.0  # bits per byte


# ---------------------------------------------------------------------------
# Byte views
# ---------------------------------------------------------------------------

def as_byte_array(data) -> np.ndarray:
    """View ``data`` as a 1-D uint8 array (no copy for bytes-like input)."""
    if isinstance(data, np.ndarray):
        return data.astype(np.uint8, copy=False).ravel()
    return np.frombuffer(bytes(data) if isinstance(data, list) else data, dtype=np.uint8)


def byte_histogram(data) -> np.ndarray:
    """256-bin frequency histogram."""
    return np.bincount(as_byte_array(data), minlength=256)


# ---------------------------------------------------------------------------
# Entropy and statistics
# ---------------------------------------------------------------------------

def shannon_entropy(probabilities) -> float:
    """Shannon entropy in bits. Zero-probability terms contribute nothing.

    The distribution is rescaled to unit total first; an all-zero or
    non-finite distribution has entropy 0.
    """
    p = np.asarray(probabilities, dtype=np.float64)
    if p.size == 0:
        return 0.0
    total = float(np.sum(p))
    if not math.isfinite(total) or total <= 0:
        return 0.0
    return float(scipy_entropy(p, base=2))


def byte_entropy(data) -> float:
    """Shannon entropy of the byte histogram, in [0, 8] bits/byte."""
    arr = as_byte_array(data)
    if arr.size == 0:
        return 0.0
    return shannon_entropy(np.bincount(arr, minlength=256))


def byte_complexity(data) -> float:
    """Mean absolute byte-to-byte difference, normalized to [0, 1]."""
    arr = as_byte_array(data)
    if arr.size < 2:
        return 0.0
    diffs = np.abs(np.diff(arr.astype(np.int16)))
    return float(np.mean(diffs) / 255.0)


def byte_uniformity(data) -> float:
    """1 / (1 + coefficient of variation) over the non-zero frequencies.

    1.0 means every distinct byte occurs equally often.
    """
    freqs = byte_histogram(data)
    freqs = freqs[freqs > 0].astype(np.float64)
    if freqs.size <= 1:
        return 1.0
    mean = float(np.mean(freqs))
    return 1.0 / (1.0 + float(np.std(freqs)) / mean)


def windowed_entropy(data, window: int = 4) -> float:
    """Mean entropy of every sliding window of ``window`` bytes."""
    arr = as_byte_array(data)
    if arr.size < 2:
        return 0.0
    w = min(window, arr.size)
    count = arr.size - w + 1
    total = sum(byte_entropy(arr[i:i + w]) for i in range(count))
    return total / count


def byte_similarity(a, b) -> float:
    """Mean per-byte closeness ``1 - |a_i - b_i| / 255`` over the shorter length."""
    x = as_byte_array(a)
    y = as_byte_array(b)
    n = min(x.size, y.size)
    if n == 0:
        return 0.0
    diffs = np.abs(x[:n].astype(np.int16) - y[:n].astype(np.int16))
    return float(np.mean(1.0 - diffs / 255.0))


def byte_to_phase(byte: int) -> float:
    """Map a byte value 0..255 onto [0, 2*pi]."""
    return (byte / 255.0) * TWO_PI


# ---------------------------------------------------------------------------
# Amplitude helpers
# ---------------------------------------------------------------------------

def probability_from_amplitude(amplitude: Complex) -> float:
    return amplitude.magnitude_squared()


def normalize_amplitudes(amplitudes: Sequence[Complex]) -> list[Complex]:
    """Scale amplitudes so that sum |a_i|^2 == 1."""
    total = sum(a.magnitude_squared() for a in amplitudes)
    if total == 0:
        raise DegenerateStateError("Cannot normalize zero amplitudes")
    factor = 1.0 / math.sqrt(total)
    return [a.scale(factor) for a in amplitudes]


def hadamard_transform(amplitude: Complex) -> tuple[Complex, Complex]:
    """Split one amplitude into an equal two-way superposition (H = 1/sqrt(2))."""
    factor = 1.0 / math.sqrt(2.0)
    return amplitude.scale(factor), amplitude.scale(factor)


def superpose_pair(a: Complex, b: Complex, weight: float = 0.5) -> Complex:
    """sqrt(w)*a + sqrt(1-w)*b."""
    return a.scale(math.sqrt(weight)).add(b.scale(math.sqrt(1.0 - weight)))


def amplitude_overlap(a, b) -> float:
    """sum |a_i| |b_i| over the shorter vector.

    For two normalized vectors this is the Bhattacharyya coefficient of
    their probability distributions: 1 for identical magnitudes, 0 for
    disjoint support.
    """
    x = np.abs(np.asarray(a, dtype=np.complex128))
    y = np.abs(np.asarray(b, dtype=np.complex128))
    n = min(x.size, y.size)
    if n == 0:
        return 0.0
    return float(np.sum(x[:n] * y[:n]))


def apply_interference(
    a: Sequence[Complex],
    b: Sequence[Complex],
    constructive: bool = True,
) -> list[Complex]:
    """Element-wise a + b (constructive) or a - b (destructive), renormalized.

    Perfect destructive interference yields the all-zero vector unchanged.
    """
    if len(a) != len(b):
        raise ValueError("Amplitude arrays must have same length")
    sign = 1.0 if constructive else -1.0
    result = [x.add(y.scale(sign)) for x, y in zip(a, b)]
    if sum(r.magnitude_squared() for r in result) == 0:
        return result
    return normalize_amplitudes(result)


def quantum_hash(data) -> str:
    """XOR of per-byte phase fingerprints, as hex."""
    h = 0
    for byte in as_byte_array(data).tolist():
        h ^= int(math.floor(byte_to_phase(byte) * 1_000_000)) % 0xFFFFFFFF
    return format(h, "x")
