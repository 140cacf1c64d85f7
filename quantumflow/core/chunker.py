"""Adaptive data chunking for quantum state preparation.

Splits a byte buffer into contiguous ``DataChunk`` records using one of five
strategies:

  - fixed-size:     runs of exactly ``base_chunk_size`` bytes
  - entropy-based:  per chunk, the trial size in [min, max] whose entropy
                    score (entropy near 5 bits, size near base) is highest
  - pattern-based:  cut after the first local entropy discontinuity
  - boundary-based: cut at the first natural boundary (zero byte, large
                    jump, end of a repeated run)
  - adaptive:       route on whole-buffer entropy / complexity
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np

from quantumflow.core.errors import ConfigurationError, EmptyInputError
from quantumflow.core.qmath import as_byte_array, byte_complexity, byte_entropy

logger = logging.getLogger(__name__)

MIN_CHUNK_LIMIT = 1
MAX_CHUNK_LIMIT = 1024

PATTERN_WINDOW = 3
PATTERN_ENTROPY_JUMP = 1.5  # bits
BOUNDARY_JUMP = 128
ADAPTIVE_ENTROPY_CUTOFF = 6.0
ADAPTIVE_COMPLEXITY_CUTOFF = 0.5


class ChunkingStrategy(str, Enum):
    """Chunking strategy."""

    FIXED_SIZE = "fixed-size"
    ENTROPY_BASED = "entropy-based"
    PATTERN_BASED = "pattern-based"
    BOUNDARY_BASED = "boundary-based"
    ADAPTIVE = "adaptive"


def _coerce_strategy(strategy: ChunkingStrategy | str) -> ChunkingStrategy:
    try:
        return ChunkingStrategy(strategy)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown chunking strategy: {strategy!r}") from exc


# Strategies tried by optimize_strategy (adaptive would recurse).
TRIAL_STRATEGIES = (
    ChunkingStrategy.FIXED_SIZE,
    ChunkingStrategy.ENTROPY_BASED,
    ChunkingStrategy.PATTERN_BASED,
    ChunkingStrategy.BOUNDARY_BASED,
)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DataChunk:
    """One contiguous slice of the input. ``end_index`` is inclusive."""

    data: bytes
    start_index: int
    end_index: int
    size: int
    entropy: float
    complexity: float


@dataclass(frozen=True)
class ChunkingAnalysis:
    """Aggregate statistics over a chunk list."""

    total_chunks: int = 0
    average_chunk_size: float = 0.0
    min_chunk_size: int = 0
    max_chunk_size: int = 0
    average_entropy: float = 0.0
    average_complexity: float = 0.0
    size_variance: float = 0.0
    entropy_variance: float = 0.0


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChunkerConfig:
    """Validated chunker parameters: 1 <= min <= base <= max <= 1024."""

    strategy: ChunkingStrategy = ChunkingStrategy.FIXED_SIZE
    base_chunk_size: int = 4
    min_chunk_size: int = 1
    max_chunk_size: int = 64

    def __post_init__(self) -> None:
        object.__setattr__(self, "strategy", _coerce_strategy(self.strategy))
        for name in ("base_chunk_size", "min_chunk_size", "max_chunk_size"):
            value = getattr(self, name)
            if not MIN_CHUNK_LIMIT <= value <= MAX_CHUNK_LIMIT:
                raise ConfigurationError(
                    f"{name} must be between {MIN_CHUNK_LIMIT} and {MAX_CHUNK_LIMIT}, got {value}"
                )
        if self.min_chunk_size > self.max_chunk_size:
            raise ConfigurationError(
                "Minimum chunk size cannot be greater than maximum chunk size"
            )
        if not self.min_chunk_size <= self.base_chunk_size <= self.max_chunk_size:
            raise ConfigurationError(
                "Base chunk size must be between minimum and maximum chunk sizes"
            )

    def with_strategy(self, strategy: ChunkingStrategy | str) -> ChunkerConfig:
        return dataclasses.replace(self, strategy=strategy)

    def with_sizes(
        self,
        base_chunk_size: int | None = None,
        min_chunk_size: int | None = None,
        max_chunk_size: int | None = None,
    ) -> ChunkerConfig:
        """Copy with some sizes replaced; the result is re-validated."""
        return dataclasses.replace(
            self,
            base_chunk_size=self.base_chunk_size if base_chunk_size is None else base_chunk_size,
            min_chunk_size=self.min_chunk_size if min_chunk_size is None else min_chunk_size,
            max_chunk_size=self.max_chunk_size if max_chunk_size is None else max_chunk_size,
        )


# ---------------------------------------------------------------------------
# Chunker
# ---------------------------------------------------------------------------

class DataChunker:
    """Splits byte buffers into annotated chunks.

    Holds one ``ChunkerConfig``; ``configure``/``set_strategy`` swap it for a
    re-validated copy. An instance is not meant to be shared between threads.
    """

    def __init__(
        self,
        strategy: ChunkingStrategy | str = ChunkingStrategy.FIXED_SIZE,
        base_chunk_size: int = 4,
        min_chunk_size: int = 1,
        max_chunk_size: int = 64,
        *,
        config: ChunkerConfig | None = None,
    ) -> None:
        self._config = config or ChunkerConfig(
            strategy=strategy,
            base_chunk_size=base_chunk_size,
            min_chunk_size=min_chunk_size,
            max_chunk_size=max_chunk_size,
        )

    @property
    def config(self) -> ChunkerConfig:
        return self._config

    @property
    def strategy(self) -> ChunkingStrategy:
        return self._config.strategy

    @property
    def base_chunk_size(self) -> int:
        return self._config.base_chunk_size

    @property
    def min_chunk_size(self) -> int:
        return self._config.min_chunk_size

    @property
    def max_chunk_size(self) -> int:
        return self._config.max_chunk_size

    def set_strategy(self, strategy: ChunkingStrategy | str) -> None:
        self._config = self._config.with_strategy(strategy)

    def configure(
        self,
        base_chunk_size: int | None = None,
        min_chunk_size: int | None = None,
        max_chunk_size: int | None = None,
    ) -> None:
        """Change sizes; raises ConfigurationError and keeps the old config on failure."""
        self._config = self._config.with_sizes(base_chunk_size, min_chunk_size, max_chunk_size)

    # --- Chunking ---

    def chunk_data(self, data, strategy: ChunkingStrategy | str | None = None) -> list[DataChunk]:
        """Chunk ``data`` with ``strategy`` (defaults to the configured one)."""
        arr = as_byte_array(data)
        if arr.size == 0:
            raise EmptyInputError("Cannot chunk empty data")
        chosen = self.strategy if strategy is None else _coerce_strategy(strategy)
        if chosen is ChunkingStrategy.FIXED_SIZE:
            return self._fixed_size(arr)
        if chosen is ChunkingStrategy.ENTROPY_BASED:
            return self._entropy_based(arr)
        if chosen is ChunkingStrategy.PATTERN_BASED:
            return self._pattern_based(arr)
        if chosen is ChunkingStrategy.BOUNDARY_BASED:
            return self._boundary_based(arr)
        return self._adaptive(arr)

    def _fixed_size(self, arr: np.ndarray) -> list[DataChunk]:
        base = self.base_chunk_size
        return [
            _make_chunk(arr, start, min(start + base, arr.size))
            for start in range(0, arr.size, base)
        ]

    def _entropy_based(self, arr: np.ndarray) -> list[DataChunk]:
        chunks: list[DataChunk] = []
        start = 0
        while start < arr.size:
            best_size = self.base_chunk_size
            best_score = 0.0
            for size in range(self.min_chunk_size, self.max_chunk_size + 1):
                end = min(start + size, arr.size)
                score = self._entropy_score(byte_entropy(arr[start:end]), size)
                if score > best_score:
                    best_score = score
                    best_size = size
            end = min(start + best_size, arr.size)
            chunks.append(_make_chunk(arr, start, end))
            start = end
        return chunks

    def _entropy_score(self, entropy: float, size: int) -> float:
        base = self.base_chunk_size
        entropy_score = 1.0 - abs(entropy - 5.0) / 5.0
        size_score = 1.0 - abs(size - base) / base
        return entropy_score * 0.7 + size_score * 0.3

    def _pattern_based(self, arr: np.ndarray) -> list[DataChunk]:
        chunks: list[DataChunk] = []
        start = 0
        while start < arr.size:
            end = min(start + self.base_chunk_size, arr.size)
            search_end = min(start + self.max_chunk_size, arr.size)
            for i in range(start + self.min_chunk_size, search_end - 1):
                if _is_pattern_boundary(arr, i):
                    end = i + 1
                    break
            chunks.append(_make_chunk(arr, start, end))
            start = end
        return chunks

    def _boundary_based(self, arr: np.ndarray) -> list[DataChunk]:
        chunks: list[DataChunk] = []
        start = 0
        while start < arr.size:
            end = min(start + self.base_chunk_size, arr.size)
            search_end = min(start + self.max_chunk_size, arr.size)
            for i in range(start + self.min_chunk_size, search_end):
                if _is_natural_boundary(arr, i):
                    end = i
                    break
            chunks.append(_make_chunk(arr, start, end))
            start = end
        return chunks

    def _adaptive(self, arr: np.ndarray) -> list[DataChunk]:
        entropy = byte_entropy(arr)
        complexity = byte_complexity(arr)
        if entropy > ADAPTIVE_ENTROPY_CUTOFF:
            routed = ChunkingStrategy.ENTROPY_BASED
        elif complexity > ADAPTIVE_COMPLEXITY_CUTOFF:
            routed = ChunkingStrategy.PATTERN_BASED
        else:
            routed = ChunkingStrategy.BOUNDARY_BASED
        logger.debug(
            "adaptive chunking: entropy=%.3f complexity=%.3f -> %s",
            entropy, complexity, routed.value,
        )
        return self.chunk_data(arr, routed)

    # --- Analysis ---

    def analyze_chunking(self, chunks: list[DataChunk]) -> ChunkingAnalysis:
        return analyze_chunks(chunks)

    def optimize_strategy(self, data) -> ChunkingStrategy:
        """Try every non-adaptive strategy on ``data`` and return the best scoring.

        score = 0.4*entropy + 0.3*consistency + 0.3*efficiency, where each
        term lies in [0, 1]. Ties keep the earlier strategy in trial order.
        """
        arr = as_byte_array(data)
        if arr.size == 0:
            return ChunkingStrategy.FIXED_SIZE

        base = self.base_chunk_size
        best = ChunkingStrategy.FIXED_SIZE
        best_score = -1.0
        for strategy in TRIAL_STRATEGIES:
            analysis = analyze_chunks(self.chunk_data(arr, strategy))
            mean_size = analysis.average_chunk_size
            entropy_score = max(0.0, 1.0 - abs(analysis.average_entropy - 6.0) / 6.0)
            consistency_score = 1.0 / (1.0 + analysis.size_variance / mean_size)
            efficiency_score = max(0.0, 1.0 - abs(mean_size - base) / base)
            score = entropy_score * 0.4 + consistency_score * 0.3 + efficiency_score * 0.3
            logger.debug("strategy %s scored %.4f", strategy.value, score)
            if score > best_score:
                best_score = score
                best = strategy
        return best


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_chunk(arr: np.ndarray, start: int, end: int) -> DataChunk:
    piece = arr[start:end]
    return DataChunk(
        data=piece.tobytes(),
        start_index=start,
        end_index=end - 1,
        size=int(piece.size),
        entropy=byte_entropy(piece),
        complexity=byte_complexity(piece),
    )


def _is_pattern_boundary(arr: np.ndarray, position: int) -> bool:
    """Entropy of the windows just before/after ``position`` differs by > 1.5 bits."""
    n = arr.size
    if position <= 0 or position >= n - 1:
        return False
    window = min(PATTERN_WINDOW, position, n - position)
    before = byte_entropy(arr[position - window:position])
    after = byte_entropy(arr[position:position + window])
    return abs(before - after) > PATTERN_ENTROPY_JUMP


def _is_natural_boundary(arr: np.ndarray, position: int) -> bool:
    """Zero byte at the cut, a jump > 128, or the end of a repeated run."""
    if position <= 0 or position >= arr.size:
        return False
    current = int(arr[position])
    prev = int(arr[position - 1])
    if current == 0 or prev == 0:
        return True
    if abs(current - prev) > BOUNDARY_JUMP:
        return True
    if position >= 2 and prev == int(arr[position - 2]) and current != prev:
        return True
    return False


def analyze_chunks(chunks: list[DataChunk]) -> ChunkingAnalysis:
    """Count, mean/min/max size, mean entropy/complexity and population variances."""
    if not chunks:
        return ChunkingAnalysis()
    sizes = np.array([c.size for c in chunks], dtype=np.float64)
    entropies = np.array([c.entropy for c in chunks], dtype=np.float64)
    complexities = np.array([c.complexity for c in chunks], dtype=np.float64)
    return ChunkingAnalysis(
        total_chunks=len(chunks),
        average_chunk_size=float(np.mean(sizes)),
        min_chunk_size=int(np.min(sizes)),
        max_chunk_size=int(np.max(sizes)),
        average_entropy=float(np.mean(entropies)),
        average_complexity=float(np.mean(complexities)),
        size_variance=float(np.var(sizes)),
        entropy_variance=float(np.var(entropies)),
    )
