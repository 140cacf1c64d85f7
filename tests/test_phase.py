"""Tests for QuantumPhaseAssigner and the phase context window."""

import math

import numpy as np
import pytest

from quantumflow.core.errors import ConfigurationError
from quantumflow.core.phase import (
    ChunkPhaseInfo,
    PhaseAssignerConfig,
    PhaseContext,
    PhaseStrategy,
    QuantumPhaseAssigner,
    create_phase_context,
    update_phase_context,
)
from quantumflow.core.qmath import byte_entropy

TWO_PI = 2 * math.pi

CHUNKS = [
    b"\x00",
    b"\x2a" * 8,
    bytes([0, 255]) * 4,
    bytes(range(16)),
    bytes(range(256)),
    b"quantum",
    np.random.default_rng(3).integers(0, 256, size=64, dtype=np.uint8).tobytes(),
]


def _entropy_phase(data):
    return byte_entropy(data) / 8.0 * TWO_PI


# ---------------------------------------------------------------------------
# Range and degenerate input
# ---------------------------------------------------------------------------

class TestPhaseRange:
    """Phases stay in [0, 2*pi]."""

    @pytest.mark.parametrize("strategy", list(PhaseStrategy))
    @pytest.mark.parametrize("chunk", CHUNKS)
    def test_phase_in_range(self, strategy, chunk):
        """Every strategy on every sample chunk."""
        assigner = QuantumPhaseAssigner(strategy)
        context = create_phase_context([ChunkPhaseInfo(b"\x01\x02\x03", 1.0)])
        phase = assigner.calculate_phase(chunk, context)
        assert math.isfinite(phase)
        assert 0.0 <= phase <= TWO_PI

    @pytest.mark.parametrize("strategy", list(PhaseStrategy))
    def test_empty_chunk_phase_zero(self, strategy):
        """Empty chunks get phase 0 under every strategy."""
        assert QuantumPhaseAssigner(strategy).calculate_phase(b"") == 0.0

    def test_uniform_chunk_entropy_phase_zero(self):
        assert QuantumPhaseAssigner().calculate_phase(b"\x2a" * 8) == pytest.approx(0.0)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class TestStrategies:
    """Per-strategy phase formulas."""

    def test_entropy_based(self):
        """8 distinct bytes -> 3 bits -> 3/8 * 2*pi."""
        phase = QuantumPhaseAssigner().calculate_phase(bytes(range(8)))
        assert phase == pytest.approx(3.0 / 8.0 * TWO_PI)

    def test_frequency_based(self):
        """Dominant byte 100 at 60% blends toward pi."""
        assigner = QuantumPhaseAssigner(PhaseStrategy.FREQUENCY_BASED)
        phase = assigner.calculate_phase(bytes([100, 100, 100, 150, 200]))
        expected = (100 / 255) * TWO_PI * 0.4 + 0.6 * math.pi
        assert phase == pytest.approx(expected)

    def test_frequency_tie_goes_to_first_seen(self):
        """Equal counts -> the byte seen first dominates."""
        assigner = QuantumPhaseAssigner("frequency-based")
        phase = assigner.calculate_phase(bytes([200, 10]))
        assert phase == pytest.approx((200 / 255) * TWO_PI * 0.5 + 0.5 * math.pi)

    def test_pattern_based(self):
        """Alternating 0/255 -> 2*pi; constant or single byte -> 0."""
        assigner = QuantumPhaseAssigner(PhaseStrategy.PATTERN_BASED)
        assert assigner.calculate_phase(bytes([0, 255])) == pytest.approx(TWO_PI)
        assert assigner.calculate_phase(b"\x09" * 6) == 0.0
        assert assigner.calculate_phase(b"\x09") == 0.0

    def test_adaptive_high_entropy_uses_entropy_phase(self):
        assigner = QuantumPhaseAssigner(PhaseStrategy.ADAPTIVE, adaptive_threshold=0.3)
        data = bytes(range(64))
        assert assigner.calculate_phase(data) == pytest.approx(_entropy_phase(data))

    def test_adaptive_uniform_uses_frequency_phase(self):
        """Low entropy, even histogram -> frequency formula."""
        adaptive = QuantumPhaseAssigner(PhaseStrategy.ADAPTIVE)
        frequency = QuantumPhaseAssigner(PhaseStrategy.FREQUENCY_BASED)
        data = bytes([42, 42, 43, 43, 44, 44])
        assert adaptive.calculate_phase(data) == pytest.approx(frequency.calculate_phase(data))

    def test_adaptive_skewed_uses_pattern_phase(self):
        """Low entropy, skewed histogram -> pattern formula."""
        data = bytes([0] * 7 + [255])
        phase = QuantumPhaseAssigner(PhaseStrategy.ADAPTIVE).calculate_phase(data)
        assert phase == pytest.approx(TWO_PI / 49)


class TestCorrelation:
    """correlation-based phase with a context window."""

    def test_no_context_falls_back_to_entropy(self):
        """Missing or empty context -> entropy phase."""
        assigner = QuantumPhaseAssigner(PhaseStrategy.CORRELATION_BASED)
        data = bytes([12, 22, 32])
        assert assigner.calculate_phase(data) == pytest.approx(_entropy_phase(data))
        empty = create_phase_context()
        assert assigner.calculate_phase(data, empty) == pytest.approx(_entropy_phase(data))

    def test_similar_chunk_pulls_phase(self):
        """Similarity above 0.7 blends in the prior phase."""
        assigner = QuantumPhaseAssigner(PhaseStrategy.CORRELATION_BASED)
        context = create_phase_context([ChunkPhaseInfo(bytes([10, 20, 30]), math.pi / 2)])
        data = bytes([12, 22, 32])
        similarity = 1.0 - 2.0 / 255.0
        expected = similarity * math.pi / 2 + (1.0 - similarity) * _entropy_phase(data)
        assert assigner.calculate_phase(data, context) == pytest.approx(expected)

    def test_dissimilar_context_ignored(self):
        assigner = QuantumPhaseAssigner(PhaseStrategy.CORRELATION_BASED)
        context = create_phase_context([ChunkPhaseInfo(bytes(3), 1.0)])
        assert assigner.calculate_phase(b"\xff\xff\xff", context) == pytest.approx(0.0)


# ---------------------------------------------------------------------------
# Context window
# ---------------------------------------------------------------------------

class TestPhaseContext:
    """Bounded context window of phased chunks."""

    def test_window_keeps_last_ten(self):
        """15 updates -> the 10 most recent, oldest evicted first."""
        context = create_phase_context()
        for i in range(15):
            context = update_phase_context(context, bytes([i]), float(i) / 10)
        assert len(context) == 10
        assert context.previous_chunks[0].data == bytes([5])
        assert context.previous_chunks[-1].data == bytes([14])

    def test_update_returns_new_context(self):
        """update_phase_context leaves its input untouched."""
        context = create_phase_context()
        updated = update_phase_context(context, b"\x01", 0.5)
        assert context.is_empty
        assert len(updated) == 1
        assert updated.previous_chunks[0].phase == 0.5

    def test_seeded_context_truncated(self):
        """Seeding with 12 entries keeps the last 10."""
        infos = [ChunkPhaseInfo(bytes([i]), 0.1) for i in range(12)]
        context = QuantumPhaseAssigner().create_phase_context(infos)
        assert len(context) == 10
        assert context.previous_chunks[0].data == bytes([2])

    def test_context_cannot_be_mutated(self):
        """previous_chunks is a tuple; it cannot be appended to."""
        context = update_phase_context(create_phase_context(), b"\x01", 0.5)
        with pytest.raises(AttributeError):
            context.previous_chunks.append(ChunkPhaseInfo(b"\x02", 1.0))
        assert isinstance(context.previous_chunks, tuple)
        assert len(context) == 1

    def test_direct_construction_truncated(self):
        infos = [ChunkPhaseInfo(bytes([i]), 0.1) for i in range(12)]
        context = PhaseContext(previous_chunks=infos)
        assert len(context) == 10
        assert context.previous_chunks[-1].data == bytes([11])


# ---------------------------------------------------------------------------
# Configuration and recommendation
# ---------------------------------------------------------------------------

class TestConfiguration:
    """Adaptive threshold and strategy validation."""

    @pytest.mark.parametrize("threshold", [-0.1, 1.5])
    def test_threshold_out_of_range(self, threshold):
        """Thresholds outside [0, 1] are rejected and the old one is kept."""
        with pytest.raises(ConfigurationError):
            QuantumPhaseAssigner(adaptive_threshold=threshold)
        assigner = QuantumPhaseAssigner()
        with pytest.raises(ConfigurationError):
            assigner.set_adaptive_threshold(threshold)
        assert assigner.adaptive_threshold == 0.5

    def test_unknown_strategy(self):
        with pytest.raises(ConfigurationError):
            QuantumPhaseAssigner("spiral")

    def test_setters(self):
        """Setters swap in a validated config."""
        assigner = QuantumPhaseAssigner()
        assigner.set_strategy("adaptive")
        assigner.set_adaptive_threshold(0.9)
        assert assigner.strategy is PhaseStrategy.ADAPTIVE
        assert assigner.config == PhaseAssignerConfig(PhaseStrategy.ADAPTIVE, 0.9)


class TestOptimizeStrategy:
    """optimize_strategy recommendation."""

    @pytest.mark.parametrize("data, expected", [
        (b"", PhaseStrategy.ENTROPY_BASED),
        (bytes(range(256)), PhaseStrategy.ENTROPY_BASED),
        (bytes([42, 42, 42, 43, 43, 43, 44, 44, 44]), PhaseStrategy.FREQUENCY_BASED),
        (bytes([1, 2, 3, 4, 1, 1, 1, 1]), PhaseStrategy.PATTERN_BASED),
        (bytes([0] * 7 + [255]), PhaseStrategy.ADAPTIVE),
    ])
    def test_recommendation(self, data, expected):
        """Entropy, uniformity and windowed entropy pick the strategy."""
        assert QuantumPhaseAssigner().optimize_strategy(data) is expected
