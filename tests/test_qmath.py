"""Unit tests for entropy, byte statistics and amplitude helpers."""

import math

import numpy as np
import pytest

from quantumflow.core.complex import Complex
from quantumflow.core.errors import DegenerateStateError
from quantumflow.core import qmath


# ---------------------------------------------------------------------------
# Entropy
# ---------------------------------------------------------------------------

class TestEntropy:
    """Shannon and byte entropy."""

    def test_shannon_entropy_fair_coin(self):
        """[0.5, 0.5] -> 1 bit."""
        assert qmath.shannon_entropy([0.5, 0.5]) == pytest.approx(1.0)

    def test_shannon_entropy_degenerate_inputs(self):
        """Empty, all-zero or certain distributions -> 0."""
        assert qmath.shannon_entropy([]) == 0.0
        assert qmath.shannon_entropy([0.0, 0.0]) == 0.0
        assert qmath.shannon_entropy([1.0, 0.0, 0.0]) == pytest.approx(0.0)

    def test_byte_entropy_uniform_buffer_is_zero(self):
        assert qmath.byte_entropy(b"\x2a" * 10) == pytest.approx(0.0)

    def test_byte_entropy_distinct_bytes(self):
        """n equally frequent bytes -> log2(n) bits."""
        assert qmath.byte_entropy(bytes([0, 1, 2, 3])) == pytest.approx(2.0)
        assert qmath.byte_entropy(bytes(range(256))) == pytest.approx(8.0)

    def test_byte_entropy_empty(self):
        assert qmath.byte_entropy(b"") == 0.0

    def test_accepts_bytearray_and_arrays(self):
        """bytes, bytearray and uint8 arrays agree."""
        expected = qmath.byte_entropy(b"\x01\x02")
        assert qmath.byte_entropy(bytearray(b"\x01\x02")) == pytest.approx(expected)
        assert qmath.byte_entropy(np.array([1, 2], dtype=np.uint8)) == pytest.approx(expected)

    def test_windowed_entropy(self):
        """Mean entropy of sliding 4-byte windows."""
        assert qmath.windowed_entropy(b"\x01") == 0.0
        assert qmath.windowed_entropy(b"\x07" * 12) == pytest.approx(0.0)
        assert qmath.windowed_entropy(bytes([1, 2, 3, 4])) == pytest.approx(2.0)


# ---------------------------------------------------------------------------
# Byte statistics
# ---------------------------------------------------------------------------

class TestByteStatistics:
    """Complexity, uniformity, similarity, byte phase."""

    def test_complexity(self):
        """Mean absolute step / 255."""
        assert qmath.byte_complexity(bytes([0, 255])) == pytest.approx(1.0)
        assert qmath.byte_complexity(bytes([9, 9, 9])) == 0.0
        assert qmath.byte_complexity(b"\x05") == 0.0
        assert qmath.byte_complexity(b"") == 0.0

    def test_uniformity(self):
        """1 / (1 + cv) of the non-zero frequencies."""
        assert qmath.byte_uniformity(bytes([1, 1, 2, 2])) == pytest.approx(1.0)
        assert qmath.byte_uniformity(bytes([1, 1, 1, 2])) == pytest.approx(1.0 / 1.5)
        assert qmath.byte_uniformity(b"\x03\x03") == 1.0

    def test_similarity(self):
        """Mean per-byte closeness over the shorter length."""
        assert qmath.byte_similarity(bytes([10, 20]), bytes([10, 20, 30])) == pytest.approx(1.0)
        assert qmath.byte_similarity(b"\x00", b"\xff") == pytest.approx(0.0)
        assert qmath.byte_similarity(b"", b"\x01") == 0.0

    def test_byte_to_phase_range(self):
        """0 -> 0, 255 -> 2*pi."""
        assert qmath.byte_to_phase(0) == 0.0
        assert qmath.byte_to_phase(255) == pytest.approx(2 * math.pi)

    def test_histogram(self):
        hist = qmath.byte_histogram(bytes([0, 0, 255]))
        assert hist.shape == (256,)
        assert hist[0] == 2 and hist[255] == 1


# ---------------------------------------------------------------------------
# Amplitude helpers
# ---------------------------------------------------------------------------

class TestAmplitudeHelpers:
    """Normalization, Hadamard, interference, overlap, hash."""

    def test_normalize_amplitudes(self):
        """Normalized amplitudes have total probability 1."""
        amps = qmath.normalize_amplitudes([Complex(3.0, 0.0), Complex(0.0, 4.0)])
        total = sum(qmath.probability_from_amplitude(a) for a in amps)
        assert total == pytest.approx(1.0)

    def test_normalize_zero_raises(self):
        with pytest.raises(DegenerateStateError):
            qmath.normalize_amplitudes([Complex(0.0, 0.0)])

    def test_hadamard_transform(self):
        """Both outputs carry magnitude 1/sqrt(2)."""
        a, b = qmath.hadamard_transform(Complex(1.0, 0.0))
        assert a.magnitude() == pytest.approx(1 / math.sqrt(2))
        assert a.equals(b)

    def test_superpose_pair(self):
        z = qmath.superpose_pair(Complex(1.0, 0.0), Complex(0.0, 1.0), weight=0.5)
        assert z.magnitude() == pytest.approx(1.0)

    def test_interference(self):
        """Destructive self-interference cancels; constructive renormalizes."""
        a = [Complex(1.0, 0.0), Complex(0.0, 1.0)]
        destructive = qmath.apply_interference(a, a, constructive=False)
        assert all(z == Complex(0.0, 0.0) for z in destructive)
        constructive = qmath.apply_interference(a, a)
        assert sum(z.magnitude_squared() for z in constructive) == pytest.approx(1.0)

    def test_interference_length_mismatch(self):
        with pytest.raises(ValueError):
            qmath.apply_interference([Complex(1.0)], [Complex(1.0), Complex(0.0)])

    def test_amplitude_overlap(self):
        """Identical -> 1, disjoint support -> 0."""
        x = np.array([0.6, 0.8j])
        assert qmath.amplitude_overlap(x, x) == pytest.approx(1.0)
        assert qmath.amplitude_overlap([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_quantum_hash(self):
        """Deterministic, input-sensitive, "0" for empty."""
        assert qmath.quantum_hash(b"") == "0"
        assert qmath.quantum_hash(b"abc") == qmath.quantum_hash(b"abc")
        assert qmath.quantum_hash(b"abc") != qmath.quantum_hash(b"abd")
