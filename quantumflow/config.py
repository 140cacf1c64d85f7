"""Settings for the chunker, phase assigner and decoherence simulator.

``QuantumFlowSettings`` is the single validated entry point for
applications that load configuration from files or the environment:

    settings = QuantumFlowSettings.for_profile("text")
    chunker = settings.build_chunker()

Every validation failure surfaces as ``ConfigurationError``.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Self

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from quantumflow.core.chunker import ChunkerConfig, ChunkingStrategy, DataChunker
from quantumflow.core.errors import ConfigurationError
from quantumflow.core.phase import PhaseAssignerConfig, PhaseStrategy, QuantumPhaseAssigner
from quantumflow.quantum.decoherence import DecoherenceConfig, QuantumDecoherenceSimulator


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

class ChunkingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    strategy: ChunkingStrategy = ChunkingStrategy.FIXED_SIZE
    base_chunk_size: int = Field(default=4, ge=1, le=1024)
    min_chunk_size: int = Field(default=1, ge=1, le=1024)
    max_chunk_size: int = Field(default=64, ge=1, le=1024)

    @model_validator(mode="after")
    def _check_order(self) -> Self:
        if not self.min_chunk_size <= self.base_chunk_size <= self.max_chunk_size:
            raise ValueError("chunk sizes must satisfy min <= base <= max")
        return self


class PhaseSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    strategy: PhaseStrategy = PhaseStrategy.ENTROPY_BASED
    adaptive_threshold: float = Field(default=0.5, ge=0.0, le=1.0)


class DecoherenceSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    base_coherence_time: float = Field(default=100.0, gt=0.0)
    decoherence_rate: float = Field(default=0.01, ge=0.0)
    environmental_noise: float = Field(default=0.001, ge=0.0)
    temperature_effect: float = Field(default=0.1, ge=0.0)
    seed: int | None = None


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

PROFILES: dict[str, dict[str, Any]] = {
    "text": {
        "chunking": {"strategy": "pattern-based", "base_chunk_size": 8, "max_chunk_size": 64},
        "phase": {"strategy": "frequency-based", "adaptive_threshold": 0.4},
    },
    "binary": {
        "chunking": {"strategy": "boundary-based", "base_chunk_size": 16, "max_chunk_size": 128},
        "phase": {"strategy": "adaptive", "adaptive_threshold": 0.6},
    },
    "image": {
        "chunking": {"strategy": "entropy-based", "base_chunk_size": 32, "max_chunk_size": 256},
        "phase": {"strategy": "entropy-based", "adaptive_threshold": 0.7},
    },
    "high-performance": {
        "chunking": {"strategy": "adaptive", "base_chunk_size": 16, "max_chunk_size": 128},
        "phase": {"strategy": "correlation-based", "adaptive_threshold": 0.8},
        "decoherence": {"base_coherence_time": 200.0, "decoherence_rate": 0.005},
    },
    "low-resource": {
        "chunking": {"strategy": "fixed-size", "base_chunk_size": 4, "max_chunk_size": 16},
        "phase": {"strategy": "entropy-based", "adaptive_threshold": 0.3},
        "decoherence": {"base_coherence_time": 50.0, "decoherence_rate": 0.02},
    },
}


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class QuantumFlowSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    profile: str | None = None
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    phase: PhaseSettings = Field(default_factory=PhaseSettings)
    decoherence: DecoherenceSettings = Field(default_factory=DecoherenceSettings)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> Self:
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc

    @classmethod
    def from_json(cls, text: str) -> Self:
        try:
            return cls.model_validate_json(text)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc

    @classmethod
    def for_profile(cls, name: str) -> Self:
        if name not in PROFILES:
            raise ConfigurationError(
                f"Unknown profile: {name!r}. Must be one of {sorted(PROFILES)}"
            )
        return cls.from_mapping({"profile": name, **PROFILES[name]})

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    # --- Builders ---

    def build_chunker(self) -> DataChunker:
        c = self.chunking
        return DataChunker(config=ChunkerConfig(
            strategy=c.strategy,
            base_chunk_size=c.base_chunk_size,
            min_chunk_size=c.min_chunk_size,
            max_chunk_size=c.max_chunk_size,
        ))

    def build_phase_assigner(self) -> QuantumPhaseAssigner:
        return QuantumPhaseAssigner(config=PhaseAssignerConfig(
            strategy=self.phase.strategy,
            adaptive_threshold=self.phase.adaptive_threshold,
        ))

    def build_simulator(self, rng: np.random.Generator | None = None) -> QuantumDecoherenceSimulator:
        """Simulator from the decoherence section; ``rng`` wins over ``seed``."""
        d = self.decoherence
        if rng is None and d.seed is not None:
            rng = np.random.default_rng(d.seed)
        return QuantumDecoherenceSimulator(
            config=DecoherenceConfig(
                base_coherence_time=d.base_coherence_time,
                decoherence_rate=d.decoherence_rate,
                environmental_noise=d.environmental_noise,
                temperature_effect=d.temperature_effect,
            ),
            rng=rng,
        )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def setup_logging(level: str = "INFO", fmt: str = "structured") -> logging.Logger:
    """Attach a stdout handler to the ``quantumflow`` logger."""
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        if fmt == "structured"
        else "%(levelname)s - %(message)s"
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logger = logging.getLogger("quantumflow")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()
    logger.addHandler(handler)
    return logger
