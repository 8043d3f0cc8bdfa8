"""
kalc - Numeric Backends
One numeric interface, two implementations:

  float   - native binary floats (fast, ~15-17 significant digits)
  decimal - decimal.Decimal at a configurable precision

Magnitudes are plain Python numbers of the backend's type, so arithmetic
and comparison use the normal operators. Everything else (decomposition,
transcendental functions, rendering) goes through the backend.
"""

import math
import decimal
from contextlib import nullcontext
from decimal import Decimal

from .rounding import trim_zeroes

DEFAULT_DECIMAL_PRECISION = 63
RENDER_DIGITS = 10


class NumericBackend:
    """Capability set the interpreter and the estimation engine rely on."""

    name = ""

    def scope(self):
        """Context manager that must wrap any arithmetic on this backend's values."""
        return nullcontext()

    # ------------------------------------------------------------------ construction

    def number(self, text: str):
        raise NotImplementedError

    def from_int(self, n: int):
        raise NotImplementedError

    def zero(self):
        return self.from_int(0)

    def one(self):
        return self.from_int(1)

    # ------------------------------------------------------------------ decomposition

    def trunc(self, x):
        raise NotImplementedError

    def floor(self, x):
        raise NotImplementedError

    def ceil(self, x):
        raise NotImplementedError

    def fract(self, x):
        return x - self.trunc(x)

    def is_finite(self, x) -> bool:
        raise NotImplementedError

    def is_integer(self, x) -> bool:
        return self.is_finite(x) and self.fract(x) == 0

    # ------------------------------------------------------------------ transcendental

    def log10(self, x):
        raise NotImplementedError

    def sqrt(self, x):
        raise NotImplementedError

    def ln(self, x):
        raise NotImplementedError

    def exp(self, x):
        raise NotImplementedError

    def pow(self, x, y):
        raise NotImplementedError

    def sin(self, x):
        raise NotImplementedError

    def cos(self, x):
        raise NotImplementedError

    def tan(self, x):
        return self.sin(x) / self.cos(x)

    def asin(self, x):
        raise NotImplementedError

    def acos(self, x):
        raise NotImplementedError

    def atan(self, x):
        raise NotImplementedError

    def atan2(self, y, x):
        raise NotImplementedError

    def pi(self):
        raise NotImplementedError

    def e(self):
        return self.exp(self.one())

    # ------------------------------------------------------------------ rendering

    def to_decimal(self, x) -> Decimal:
        raise NotImplementedError

    def render(self, x, digits: int = RENDER_DIGITS) -> str:
        """
        Render without exponent notation. Integers are rendered exactly,
        anything else is rounded to ``digits`` significant digits.
        Trailing zeroes are trimmed.
        """
        value = self.to_decimal(x)
        if not value.is_finite():
            return str(value)
        if value == value.to_integral_value():
            return trim_zeroes(format(value, 'f'))
        with decimal.localcontext() as ctx:
            ctx.prec = digits
            rounded = +value
        return trim_zeroes(format(rounded, 'f'))

    def __repr__(self):
        return f"<{type(self).__name__}>"



class FloatBackend(NumericBackend):
    name = "float"

    def number(self, text: str) -> float:
        return float(text)

    def from_int(self, n: int) -> float:
        return float(n)

    def trunc(self, x: float) -> float:
        return float(math.trunc(x))

    def floor(self, x: float) -> float:
        return float(math.floor(x))

    def ceil(self, x: float) -> float:
        return float(math.ceil(x))

    def is_finite(self, x: float) -> bool:
        return math.isfinite(x)

    def log10(self, x: float) -> float:
        if x == 0:
            return -math.inf
        return math.log10(x)

    def sqrt(self, x: float) -> float:
        return math.sqrt(x)

    def ln(self, x: float) -> float:
        return math.log(x)

    def exp(self, x: float) -> float:
        return math.exp(x)

    def pow(self, x: float, y: float) -> float:
        return math.pow(x, y)

    def sin(self, x: float) -> float:
        return math.sin(x)

    def cos(self, x: float) -> float:
        return math.cos(x)

    def tan(self, x: float) -> float:
        return math.tan(x)

    def asin(self, x: float) -> float:
        return math.asin(x)

    def acos(self, x: float) -> float:
        return math.acos(x)

    def atan(self, x: float) -> float:
        return math.atan(x)

    def atan2(self, y: float, x: float) -> float:
        return math.atan2(y, x)

    def pi(self) -> float:
        return math.pi

    def e(self) -> float:
        return math.e

    def to_decimal(self, x: float) -> Decimal:
        return Decimal(x)


class DecimalBackend(NumericBackend):
    """
    Arbitrary precision backend. sin/cos/exp/ln/sqrt/pi are computed at the
    configured precision; the inverse trigonometric functions go through
    binary floats and are only accurate to about 15 digits.
    """

    name = "decimal"

    def __init__(self, precision: int = DEFAULT_DECIMAL_PRECISION):
        if precision < 1:
            raise ValueError(f"Precision must be positive, got {precision}")
        self.precision = precision
        self.context = decimal.Context(prec=precision)
        self._pi = None

    def scope(self):
        return decimal.localcontext(self.context)

    def number(self, text: str) -> Decimal:
        return Decimal(text)

    def from_int(self, n: int) -> Decimal:
        return Decimal(n)

    def trunc(self, x: Decimal) -> Decimal:
        return x.to_integral_value(rounding=decimal.ROUND_DOWN)

    def floor(self, x: Decimal) -> Decimal:
        return x.to_integral_value(rounding=decimal.ROUND_FLOOR)

    def ceil(self, x: Decimal) -> Decimal:
        return x.to_integral_value(rounding=decimal.ROUND_CEILING)

    def is_finite(self, x: Decimal) -> bool:
        return x.is_finite()

    def log10(self, x: Decimal) -> Decimal:
        if x == 0:
            return Decimal('-Infinity')
        return x.log10()

    def sqrt(self, x: Decimal) -> Decimal:
        return x.sqrt()

    def ln(self, x: Decimal) -> Decimal:
        return x.ln()

    def exp(self, x: Decimal) -> Decimal:
        return x.exp()

    def pow(self, x: Decimal, y: Decimal) -> Decimal:
        return x ** y

    def pi(self) -> Decimal:
        if self._pi is None:
            with decimal.localcontext(self.context) as ctx:
                ctx.prec += 2
                three = Decimal(3)
                lasts, t, s, n, na, d, da = 0, three, 3, 1, 0, 0, 24
                while s != lasts:
                    lasts = s
                    n, na = n + na, na + 8
                    d, da = d + da, da + 32
                    t = (t * n) / d
                    s += t
                ctx.prec -= 2
                self._pi = +s
        return self._pi

    def sin(self, x: Decimal) -> Decimal:
        x = self._reduce_angle(x)
        with decimal.localcontext(self.context) as ctx:
            ctx.prec += 2
            i, lasts, s, fact, num, sign = 1, 0, x, 1, x, 1
            while s != lasts:
                lasts = s
                i += 2
                fact *= i * (i - 1)
                num *= x * x
                sign *= -1
                s += num / fact * sign
            ctx.prec -= 2
            return +s

    def cos(self, x: Decimal) -> Decimal:
        x = self._reduce_angle(x)
        with decimal.localcontext(self.context) as ctx:
            ctx.prec += 2
            i, lasts, s, fact, num, sign = 0, 0, 1, 1, 1, 1
            while s != lasts:
                lasts = s
                i += 2
                fact *= i * (i - 1)
                num *= x * x
                sign *= -1
                s += num / fact * sign
            ctx.prec -= 2
            return +s

    def asin(self, x: Decimal) -> Decimal:
        return self._via_float(math.asin, x)

    def acos(self, x: Decimal) -> Decimal:
        return self._via_float(math.acos, x)

    def atan(self, x: Decimal) -> Decimal:
        return self._via_float(math.atan, x)

    def atan2(self, y: Decimal, x: Decimal) -> Decimal:
        return Decimal(repr(math.atan2(float(y), float(x))))

    def to_decimal(self, x: Decimal) -> Decimal:
        return x

    def _reduce_angle(self, x: Decimal) -> Decimal:
        # Keeps the Taylor series short for large arguments.
        tau = self.pi() * 2
        with decimal.localcontext(self.context) as ctx:
            ctx.prec += 4
            return x - tau * (x / tau).to_integral_value(rounding=decimal.ROUND_HALF_EVEN)

    @staticmethod
    def _via_float(fn, x: Decimal) -> Decimal:
        return Decimal(repr(fn(float(x))))

    def __repr__(self):
        return f"<DecimalBackend precision={self.precision}>"


BACKENDS = {
    FloatBackend.name: FloatBackend,
    DecimalBackend.name: DecimalBackend,
}


def get_backend(name: str = FloatBackend.name, precision: int = None) -> NumericBackend:
    """Instantiate a backend by name. ``precision`` only applies to 'decimal'."""
    try:
        backend_cls = BACKENDS[name]
    except KeyError:
        raise ValueError(
            f"Unknown numeric backend {name!r}. Valid: {', '.join(sorted(BACKENDS))}"
        ) from None
    if backend_cls is DecimalBackend and precision is not None:
        return DecimalBackend(precision)
    return backend_cls()
