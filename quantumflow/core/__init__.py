"""QuantumFlow core: complex arithmetic, byte statistics, chunking and phase assignment."""

from quantumflow.core.errors import (
    QuantumFlowError,
    ConfigurationError,
    EmptyInputError,
    StateError,
    DegenerateStateError,
)
from quantumflow.core.complex import Complex
from quantumflow.core.chunker import (
    ChunkingStrategy,
    ChunkerConfig,
    DataChunk,
    ChunkingAnalysis,
    DataChunker,
    analyze_chunks,
)
from quantumflow.core.phase import (
    PhaseStrategy,
    PhaseAssignerConfig,
    ChunkPhaseInfo,
    PhaseContext,
    QuantumPhaseAssigner,
    create_phase_context,
    update_phase_context,
)

__all__ = [
    "QuantumFlowError", "ConfigurationError", "EmptyInputError",
    "StateError", "DegenerateStateError",
    "Complex",
    "ChunkingStrategy", "ChunkerConfig", "DataChunk", "ChunkingAnalysis",
    "DataChunker", "analyze_chunks",
    "PhaseStrategy", "PhaseAssignerConfig", "ChunkPhaseInfo", "PhaseContext",
    "QuantumPhaseAssigner", "create_phase_context", "update_phase_context",
]
