"""
kalc - Rounding / Estimation
Turns noisy evaluated results back into forms a person would have written:
1/2, 1 + 1/3, 2π/3, √5, or a whole number instead of 0.99999999.

This is a best-effort heuristic over the rendered decimal digits. It is
allowed to miss; it never raises.
"""

from decimal import Decimal
from enum import Enum, auto
from typing import Optional


class ComplexNumberType(Enum):
    REAL      = auto()
    IMAGINARY = auto()


# 8-character decimal prefixes of common irrational values
CONSTANTS = {
    "3.141592": "π",
    "2.718281": "e",
    "6.283185": "τ",
    "1.618033": "ϕ",
    "1.414213": "√2",
    "1.732050": "√3",
    "1.772453": "√π",
    "0.707106": "√2/2",
    "0.866025": "√3/2",
    "0.318309": "1/π",
    "0.392699": "π/8",
    "0.523598": "π/6",
    "0.785398": "π/4",
    "1.047197": "π/3",
    "1.570796": "π/2",
    "2.094395": "2π/3",
    "2.356194": "3π/4",
    "2.617993": "5π/6",
    "3.926990": "5π/4",
    "4.188790": "4π/3",
    "4.712388": "3π/2",
    "5.235987": "5π/3",
    "5.497787": "7π/4",
    "9.424777": "3π",
}

REPEATING_FRACTIONS = {
    "33333": "1/3",
    "66666": "2/3",
}


def trim_zeroes(text: str) -> str:
    """Drop trailing zeroes (and a bare trailing point) after a decimal point."""
    if "." in text:
        return text.rstrip("0").rstrip(".")
    return text


def estimate(number, component: ComplexNumberType) -> Optional[str]:
    """
    Return a short exact-looking form of one component of ``number``,
    or None when the component is already an integer or nothing fits.
    """
    backend = number.backend
    value = number.component(component)
    if not backend.is_finite(value):
        return None

    with backend.scope():
        value_string = backend.render(value)
        fract = abs(backend.fract(value))
        integer = backend.trunc(value)

        if fract == 0:
            return None

        # 0.5 -> 1/2
        as_abs_string = value_string[1:] if value_string.startswith("-") else value_string
        sign = "-" if value < 0 else ""
        if as_abs_string.startswith("0.5"):
            if len(as_abs_string) == 3 or (len(as_abs_string) > 6 and as_abs_string[3:5] == "00"):
                return f"{sign}1/2"

        # 1.33333333 -> 1 + 1/3
        fract_string = _positional(fract)
        if len(fract_string) >= 7:
            fraction = REPEATING_FRACTIONS.get(fract_string[2:7])
            if fraction is not None:
                if integer == 0:
                    return f"{sign}{fraction}"
                explicit_sign = "+" if sign == "" else "-"
                return f"{backend.render(integer)} {explicit_sign} {fraction}"

        # π, 2π/3, √2, ...
        if len(as_abs_string) >= 8:
            constant = CONSTANTS.get(as_abs_string[:8])
            if constant is not None:
                return f"{sign}{constant}"

        # x² is an integer but x is not: √(x²)
        squared = value * value
        rounded_square = _round_magnitude(squared, backend)
        if rounded_square is not None:
            squared = rounded_square
        if backend.is_integer(squared) and not backend.is_integer(backend.sqrt(squared)):
            return f"{sign}√{backend.render(squared)}"

        # 0.99999999 -> 1
        rounded = round_value(number, component)
        if rounded is None:
            return None
        rounded_string = backend.render(rounded.component(component))
        if rounded_string == "-0":
            rounded_string = "0"
        return trim_zeroes(rounded_string)


def round_value(number, component: ComplexNumberType):
    """
    Snap one component to the nearest integer when it is within
    floating-point noise of it. Returns a new Number, or None.
    """
    backend = number.backend
    value = number.component(component)
    if not backend.is_finite(value):
        return None

    with backend.scope():
        new_value = _round_magnitude(value, backend)
    if new_value is None:
        return None
    return number.with_component(component, new_value)


def _positional(fract) -> str:
    """Shortest round-trip digits of ``fract`` as a float, never in exponent form."""
    return format(Decimal(repr(float(fract))), "f")


def _round_magnitude(value, backend):
    sign = -1 if value < 0 else 1
    fract = backend.fract(abs(value))
    integer = backend.trunc(abs(value))

    # Values below one are rounded less aggressively.
    if integer == 0:
        limit_floor, limit_ceil = -8, -5
    else:
        limit_floor, limit_ceil = -4, -6

    if backend.log10(fract) < limit_floor:
        return integer * sign
    if backend.log10(1 - fract) < limit_ceil:
        return backend.ceil(abs(value)) * sign
    return None
