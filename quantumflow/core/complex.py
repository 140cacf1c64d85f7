"""Complex: immutable complex number used for quantum amplitudes.

Converts to and from the builtin with ``complex(z)`` / ``Complex.from_builtin(z)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Self


@dataclass(frozen=True)
class Complex:
    """Complex number ``real + imaginary*i``."""

    real: float
    imaginary: float = 0.0

    # --- Constructors ---

    @classmethod
    def from_real(cls, real: float) -> Self:
        return cls(real, 0.0)

    @classmethod
    def from_imaginary(cls, imaginary: float) -> Self:
        return cls(0.0, imaginary)

    @classmethod
    def from_polar(cls, magnitude: float, angle: float) -> Self:
        """Build from magnitude and angle (radians)."""
        return cls(magnitude * math.cos(angle), magnitude * math.sin(angle))

    @classmethod
    def from_builtin(cls, z: complex) -> Self:
        return cls(float(z.real), float(z.imag))

    # --- Arithmetic ---

    def add(self, other: Complex) -> Complex:
        return Complex(self.real + other.real, self.imaginary + other.imaginary)

    def subtract(self, other: Complex) -> Complex:
        return Complex(self.real - other.real, self.imaginary - other.imaginary)

    def multiply(self, other: Complex) -> Complex:
        return Complex(
            self.real * other.real - self.imaginary * other.imaginary,
            self.real * other.imaginary + self.imaginary * other.real,
        )

    def scale(self, scalar: float) -> Complex:
        return Complex(self.real * scalar, self.imaginary * scalar)

    def conjugate(self) -> Complex:
        return Complex(self.real, -self.imaginary)

    def __add__(self, other: Complex) -> Complex:
        return self.add(other)

    def __sub__(self, other: Complex) -> Complex:
        return self.subtract(other)

    def __mul__(self, other: Complex | float) -> Complex:
        if isinstance(other, Complex):
            return self.multiply(other)
        return self.scale(other)

    __rmul__ = __mul__

    def __neg__(self) -> Complex:
        return Complex(-self.real, -self.imaginary)

    def __complex__(self) -> complex:
        return complex(self.real, self.imaginary)

    # --- Polar properties ---

    def magnitude(self) -> float:
        return math.hypot(self.real, self.imaginary)

    def magnitude_squared(self) -> float:
        """|z|^2, the Born-rule probability of an amplitude."""
        return self.real * self.real + self.imaginary * self.imaginary

    def phase(self) -> float:
        """arg(z) in (-pi, pi]."""
        return math.atan2(self.imaginary, self.real)

    def normalize(self) -> Complex:
        """Unit-magnitude copy; zero stays zero."""
        mag = self.magnitude()
        if mag == 0:
            return Complex(0.0, 0.0)
        return Complex(self.real / mag, self.imaginary / mag)

    def equals(self, other: Complex, tolerance: float = 1e-10) -> bool:
        return (
            abs(self.real - other.real) < tolerance
            and abs(self.imaginary - other.imaginary) < tolerance
        )

    def __str__(self) -> str:
        if self.imaginary == 0:
            return f"{self.real:g}"
        if self.real == 0:
            return f"{self.imaginary:g}i"
        sign = "+" if self.imaginary >= 0 else "-"
        return f"{self.real:g}{sign}{abs(self.imaginary):g}i"
