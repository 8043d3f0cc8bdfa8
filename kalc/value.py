"""
kalc - Numeric Value Model
A complex number with an optional unit tag, over a pluggable numeric backend.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Optional

from .backends import NumericBackend, FloatBackend
from .rounding import ComplexNumberType, estimate, round_value

DEFAULT_BACKEND = FloatBackend()


@dataclass(frozen=True)
class Number:
    real: Any
    imaginary: Any
    unit: str = ""
    backend: NumericBackend = field(default=DEFAULT_BACKEND, compare=False, repr=False)

    @classmethod
    def of(cls, real, imaginary=None, unit: str = "", backend: NumericBackend = DEFAULT_BACKEND):
        if imaginary is None:
            imaginary = backend.zero()
        return cls(real, imaginary, unit, backend)

    def values(self):
        return self.real, self.imaginary

    def component(self, kind: ComplexNumberType):
        if kind is ComplexNumberType.REAL:
            return self.real
        return self.imaginary

    def with_component(self, kind: ComplexNumberType, value) -> "Number":
        if kind is ComplexNumberType.REAL:
            return replace(self, real=value)
        return replace(self, imaginary=value)

    def with_unit(self, unit: str) -> "Number":
        return replace(self, unit=unit)

    @property
    def is_real(self) -> bool:
        return self.imaginary == 0

    @property
    def has_unit(self) -> bool:
        return self.unit != ""

    def to_string_real(self, digits: int = 10) -> str:
        return self.backend.render(self.real, digits)

    def to_string_imaginary(self, digits: int = 10) -> str:
        return self.backend.render(self.imaginary, digits)

    def estimate(self, kind: ComplexNumberType = ComplexNumberType.REAL) -> Optional[str]:
        return estimate(self, kind)

    def round_if_needed(self) -> "Number":
        """Round both components where they sit within noise of an integer."""
        result = self
        for kind in ComplexNumberType:
            rounded = round_value(result, kind)
            if rounded is not None:
                result = rounded
        return result

    def __str__(self):
        return format_number(self)


def format_number(number: Number) -> str:
    """
    Display string for a result: the rendered value, followed by
    "≈ <estimate>" when a shorter exact-looking form was found.
    """
    real_str = number.to_string_real()
    imag_str = number.to_string_imaginary()
    rendered = _join_components(number, real_str, imag_str)

    real_estimate = number.estimate(ComplexNumberType.REAL)
    imag_estimate = number.estimate(ComplexNumberType.IMAGINARY)
    if real_estimate is None and imag_estimate is None:
        return rendered

    estimated = _join_components(
        number,
        real_estimate if real_estimate is not None else real_str,
        imag_estimate if imag_estimate is not None else imag_str,
    )
    if estimated == rendered:
        return rendered
    return f"{rendered} ≈ {estimated}"


def _join_components(number: Number, real_str: str, imag_str: str) -> str:
    unit = f" {number.unit}" if number.has_unit else ""
    if imag_str in ("0", "-0"):
        return f"{real_str}{unit}"

    # Compound estimates such as "-1 - 1/3" keep their own sign
    if " " in imag_str:
        sign, imag_part = "+", f"({imag_str})i"
    else:
        if imag_str.startswith("-"):
            sign, imag_abs = "-", imag_str[1:]
        else:
            sign, imag_abs = "+", imag_str
        imag_part = "i" if imag_abs == "1" else f"{imag_abs}i"

    if real_str in ("0", "-0"):
        imaginary = imag_part if sign == "+" else f"-{imag_part}"
        return f"{imaginary}{unit}"
    return f"{real_str} {sign} {imag_part}{unit}"


# ── Complex arithmetic ────────────────────────────────────────────────────────
# The unit of a result is taken from the left operand, or the right one if
# the left has none.

def _result_unit(a: Number, b: Number) -> str:
    return a.unit or b.unit


def add(a: Number, b: Number) -> Number:
    return Number(a.real + b.real, a.imaginary + b.imaginary, _result_unit(a, b), a.backend)


def subtract(a: Number, b: Number) -> Number:
    return Number(a.real - b.real, a.imaginary - b.imaginary, _result_unit(a, b), a.backend)


def negate(a: Number) -> Number:
    return Number(-a.real, -a.imaginary, a.unit, a.backend)


def multiply(a: Number, b: Number) -> Number:
    real = a.real * b.real - a.imaginary * b.imaginary
    imaginary = a.real * b.imaginary + a.imaginary * b.real
    return Number(real, imaginary, _result_unit(a, b), a.backend)


def divide(a: Number, b: Number) -> Number:
    if b.real == 0 and b.imaginary == 0:
        raise ZeroDivisionError("Division by zero")
    if b.is_real:
        return Number(a.real / b.real, a.imaginary / b.real, _result_unit(a, b), a.backend)

    denominator = b.real * b.real + b.imaginary * b.imaginary
    real = (a.real * b.real + a.imaginary * b.imaginary) / denominator
    imaginary = (a.imaginary * b.real - a.real * b.imaginary) / denominator
    return Number(real, imaginary, _result_unit(a, b), a.backend)


def modulus(a: Number):
    if a.is_real:
        return abs(a.real)
    return a.backend.sqrt(a.real * a.real + a.imaginary * a.imaginary)


def argument(a: Number):
    return a.backend.atan2(a.imaginary, a.real)


def exp(a: Number) -> Number:
    backend = a.backend
    magnitude = backend.exp(a.real)
    if a.is_real:
        return Number.of(magnitude, unit=a.unit, backend=backend)
    return Number(magnitude * backend.cos(a.imaginary), magnitude * backend.sin(a.imaginary),
                  a.unit, backend)


def ln(a: Number) -> Number:
    backend = a.backend
    if a.real == 0 and a.imaginary == 0:
        raise ValueError("Logarithm of zero")
    if a.is_real and a.real > 0:
        return Number.of(backend.ln(a.real), unit=a.unit, backend=backend)
    return Number(backend.ln(modulus(a)), argument(a), a.unit, backend)


def sqrt(a: Number) -> Number:
    backend = a.backend
    if a.is_real:
        if a.real >= 0:
            return Number.of(backend.sqrt(a.real), unit=a.unit, backend=backend)
        return Number(backend.zero(), backend.sqrt(-a.real), a.unit, backend)
    return power(a, Number.of(backend.number("0.5"), backend=backend))


# Integer exponents up to this size on complex bases are multiplied out exactly.
_MAX_REPEATED_POWER = 64


def power(base: Number, exponent: Number) -> Number:
    backend = base.backend
    if exponent.is_real and backend.is_integer(exponent.real):
        n = int(exponent.real)
        if n == 0:
            return Number.of(backend.one(), unit=base.unit, backend=backend)
        if base.is_real and (base.real != 0 or n > 0):
            return Number.of(backend.pow(base.real, exponent.real), unit=base.unit, backend=backend)
        if base.is_real:
            raise ZeroDivisionError("Zero raised to a non-positive power")
        if abs(n) <= _MAX_REPEATED_POWER:
            return _repeated_power(base, n)

    if base.is_real and exponent.is_real and base.real > 0:
        return Number.of(backend.pow(base.real, exponent.real), unit=base.unit, backend=backend)

    if base.real == 0 and base.imaginary == 0:
        if exponent.real > 0:
            return Number.of(backend.zero(), unit=base.unit, backend=backend)
        raise ZeroDivisionError("Zero raised to a non-positive power")

    # z^w = exp(w * ln z)
    return exp(multiply(exponent, ln(base))).with_unit(base.unit)


def _repeated_power(base: Number, n: int) -> Number:
    one = Number.of(base.backend.one(), backend=base.backend)
    result, factor, remaining = one, base, abs(n)
    while remaining:
        if remaining & 1:
            result = multiply(result, factor)
        factor = multiply(factor, factor)
        remaining >>= 1
    if n < 0:
        result = divide(one, result)
    return result.with_unit(base.unit)
