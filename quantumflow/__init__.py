"""QuantumFlow: quantum-inspired state modelling and data preparation for compression."""

__version__ = "0.1.0"
