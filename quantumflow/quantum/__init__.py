"""QuantumFlow quantum module: state vectors, superpositions and decoherence.

Public API:
  - State: QuantumStateVector, SuperpositionState, PatternProbability,
    MeasurementOutcome, create_superposition
  - Simulator: QuantumDecoherenceSimulator, DecoherenceConfig, EnvironmentalFactors
  - Results: DecoherenceResult, SuperpositionDecoherenceResult,
    QuantumErrorReport, QuantumError, TimeEvolutionResult
  - Metrics: calculate_fidelity, coherence_lifetime
"""

from quantumflow.quantum.state import (
    QuantumStateVector,
    SuperpositionState,
    PatternProbability,
    MeasurementOutcome,
    create_superposition,
)
from quantumflow.quantum.decoherence import (
    CoherenceStatus,
    DecoherenceConfig,
    DecoherenceResult,
    EnvironmentalFactors,
    QuantumDecoherenceSimulator,
    QuantumError,
    QuantumErrorReport,
    QuantumErrorType,
    SuperpositionDecoherenceResult,
    TimeEvolutionResult,
    calculate_fidelity,
    coherence_lifetime,
)

__all__ = [
    # State
    "QuantumStateVector", "SuperpositionState", "PatternProbability",
    "MeasurementOutcome", "create_superposition",
    # Simulator
    "QuantumDecoherenceSimulator", "DecoherenceConfig", "EnvironmentalFactors",
    "CoherenceStatus",
    # Results
    "DecoherenceResult", "SuperpositionDecoherenceResult", "QuantumErrorReport",
    "QuantumError", "QuantumErrorType", "TimeEvolutionResult",
    # Metrics
    "calculate_fidelity", "coherence_lifetime",
]
