"""QuantumFlow exception hierarchy."""

from __future__ import annotations


class QuantumFlowError(Exception):
    """Base exception for all quantumflow errors."""


class ConfigurationError(QuantumFlowError, ValueError):
    """Invalid component parameters (chunk sizes, thresholds, rates)."""


class EmptyInputError(QuantumFlowError, ValueError):
    """Operation requires non-empty input."""


class StateError(QuantumFlowError, ValueError):
    """Structurally invalid quantum state or superposition."""


class DegenerateStateError(StateError):
    """Zero-norm amplitude vector cannot be normalized."""
