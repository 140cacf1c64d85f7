"""Quantum phase assignment for data chunks.

Every strategy maps a chunk's bytes to a phase in [0, 2*pi]; empty chunks
always get phase 0. The correlation-based strategy additionally consults a
``PhaseContext``: a bounded window of the most recent chunks and the phases
they were given.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from quantumflow.core.errors import ConfigurationError
from quantumflow.core.qmath import (
    MAX_BYTE_ENTROPY,
    TWO_PI,
    as_byte_array,
    byte_entropy,
    byte_similarity,
    byte_to_phase,
    byte_uniformity,
    windowed_entropy,
)

logger = logging.getLogger(__name__)

CONTEXT_CAPACITY = 10
CORRELATION_CUTOFF = 0.7
UNIFORMITY_CUTOFF = 0.8


class PhaseStrategy(str, Enum):
    """Phase assignment strategy."""

    ENTROPY_BASED = "entropy-based"
    FREQUENCY_BASED = "frequency-based"
    PATTERN_BASED = "pattern-based"
    ADAPTIVE = "adaptive"
    CORRELATION_BASED = "correlation-based"


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChunkPhaseInfo:
    """A previously phased chunk."""

    data: bytes
    phase: float
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class PhaseContext:
    """The last ``CONTEXT_CAPACITY`` phased chunks, oldest first.

    ``previous_chunks`` is a tuple; only the most recent entries are kept.
    """

    previous_chunks: tuple[ChunkPhaseInfo, ...] = ()
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        window = deque(self.previous_chunks, maxlen=CONTEXT_CAPACITY)
        object.__setattr__(self, "previous_chunks", tuple(window))

    def __len__(self) -> int:
        return len(self.previous_chunks)

    @property
    def is_empty(self) -> bool:
        return not self.previous_chunks


def create_phase_context(previous_chunks=()) -> PhaseContext:
    """New context seeded with ``previous_chunks`` (only the last 10 are kept)."""
    return PhaseContext(previous_chunks=tuple(
        ChunkPhaseInfo(bytes(info.data), float(info.phase), info.timestamp)
        for info in previous_chunks
    ))


def update_phase_context(context: PhaseContext, chunk, phase: float) -> PhaseContext:
    """Return a copy of ``context`` with ``chunk`` appended; the oldest entry
    is evicted once more than 10 are held. ``context`` itself is unchanged."""
    if len(context) == CONTEXT_CAPACITY:
        logger.debug("phase context full, evicting oldest chunk")
    info = ChunkPhaseInfo(as_byte_array(chunk).tobytes(), float(phase))
    return PhaseContext(
        previous_chunks=context.previous_chunks + (info,),
        timestamp=context.timestamp,
    )


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PhaseAssignerConfig:
    strategy: PhaseStrategy = PhaseStrategy.ENTROPY_BASED
    adaptive_threshold: float = 0.5

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "strategy", PhaseStrategy(self.strategy))
        except ValueError as exc:
            raise ConfigurationError(f"Unknown phase strategy: {self.strategy!r}") from exc
        if not 0.0 <= self.adaptive_threshold <= 1.0:
            raise ConfigurationError(
                f"Adaptive threshold must be between 0 and 1, got {self.adaptive_threshold}"
            )

    def with_strategy(self, strategy: PhaseStrategy | str) -> PhaseAssignerConfig:
        return dataclasses.replace(self, strategy=strategy)

    def with_adaptive_threshold(self, threshold: float) -> PhaseAssignerConfig:
        return dataclasses.replace(self, adaptive_threshold=threshold)


# ---------------------------------------------------------------------------
# Phase formulas
# ---------------------------------------------------------------------------

def entropy_phase(arr: np.ndarray) -> float:
    """(entropy / 8) * 2*pi."""
    if arr.size == 0:
        return 0.0
    return (byte_entropy(arr) / MAX_BYTE_ENTROPY) * TWO_PI


def frequency_phase(arr: np.ndarray) -> float:
    """Blend the dominant byte's phase toward pi by its dominance ratio.

    Ties between equally frequent bytes go to the one seen first.
    """
    if arr.size == 0:
        return 0.0
    values, first_seen, counts = np.unique(arr, return_index=True, return_counts=True)
    top = counts.max()
    candidates = np.flatnonzero(counts == top)
    dominant = int(values[candidates[np.argmin(first_seen[candidates])]])
    dominance = top / arr.size
    return byte_to_phase(dominant) * (1.0 - dominance) + dominance * math.pi


def pattern_phase(arr: np.ndarray) -> float:
    """Mean transition magnitude times transition rate, scaled to 2*pi."""
    if arr.size < 2:
        return 0.0
    diffs = np.abs(np.diff(arr.astype(np.int16)))
    steps = arr.size - 1
    transition_rate = np.count_nonzero(diffs) / steps
    mean_transition = float(np.sum(diffs)) / steps / 255.0
    return mean_transition * transition_rate * TWO_PI


# ---------------------------------------------------------------------------
# Assigner
# ---------------------------------------------------------------------------

class QuantumPhaseAssigner:
    """Computes per-chunk phases with a configurable strategy."""

    def __init__(
        self,
        strategy: PhaseStrategy | str = PhaseStrategy.ENTROPY_BASED,
        adaptive_threshold: float = 0.5,
        *,
        config: PhaseAssignerConfig | None = None,
    ) -> None:
        self._config = config or PhaseAssignerConfig(strategy, adaptive_threshold)

    @property
    def config(self) -> PhaseAssignerConfig:
        return self._config

    @property
    def strategy(self) -> PhaseStrategy:
        return self._config.strategy

    @property
    def adaptive_threshold(self) -> float:
        return self._config.adaptive_threshold

    def set_strategy(self, strategy: PhaseStrategy | str) -> None:
        self._config = self._config.with_strategy(strategy)

    def set_adaptive_threshold(self, threshold: float) -> None:
        self._config = self._config.with_adaptive_threshold(threshold)

    def calculate_phase(self, chunk, context: PhaseContext | None = None) -> float:
        """Phase in [0, 2*pi] for ``chunk``; 0 for an empty chunk."""
        arr = as_byte_array(chunk)
        if arr.size == 0:
            return 0.0
        strategy = self.strategy
        if strategy is PhaseStrategy.ENTROPY_BASED:
            phase = entropy_phase(arr)
        elif strategy is PhaseStrategy.FREQUENCY_BASED:
            phase = frequency_phase(arr)
        elif strategy is PhaseStrategy.PATTERN_BASED:
            phase = pattern_phase(arr)
        elif strategy is PhaseStrategy.ADAPTIVE:
            phase = self._adaptive_phase(arr)
        else:
            phase = self._correlation_phase(arr, context)
        if not math.isfinite(phase):
            phase = entropy_phase(arr)
        return min(max(phase, 0.0), TWO_PI)

    def _adaptive_phase(self, arr: np.ndarray) -> float:
        normalized_entropy = byte_entropy(arr) / MAX_BYTE_ENTROPY
        if normalized_entropy > self.adaptive_threshold:
            return entropy_phase(arr)
        if byte_uniformity(arr) > UNIFORMITY_CUTOFF:
            return frequency_phase(arr)
        return pattern_phase(arr)

    def _correlation_phase(self, arr: np.ndarray, context: PhaseContext | None) -> float:
        base = entropy_phase(arr)
        if context is None or context.is_empty:
            return base
        best_similarity = 0.0
        correlated_phase = 0.0
        for info in context.previous_chunks:
            similarity = byte_similarity(arr, info.data)
            if similarity > best_similarity:
                best_similarity = similarity
                correlated_phase = info.phase
        if best_similarity > CORRELATION_CUTOFF:
            return correlated_phase * best_similarity + base * (1.0 - best_similarity)
        return base

    # --- Context helpers ---

    def create_phase_context(self, previous_chunks=()) -> PhaseContext:
        return create_phase_context(previous_chunks)

    def update_phase_context(self, context: PhaseContext, chunk, phase: float) -> PhaseContext:
        return update_phase_context(context, chunk, phase)

    # --- Strategy recommendation ---

    def optimize_strategy(self, data) -> PhaseStrategy:
        """Recommend a strategy from the data's entropy, uniformity and complexity."""
        arr = as_byte_array(data)
        if arr.size == 0:
            return PhaseStrategy.ENTROPY_BASED
        if byte_entropy(arr) > 7.0:
            return PhaseStrategy.ENTROPY_BASED
        if byte_uniformity(arr) > UNIFORMITY_CUTOFF:
            return PhaseStrategy.FREQUENCY_BASED
        if windowed_entropy(arr) > 0.6:
            return PhaseStrategy.PATTERN_BASED
        return PhaseStrategy.ADAPTIVE
