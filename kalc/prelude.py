"""
kalc - Prelude
Built-in constants and functions available in every session.

Each function takes the running interpreter (for the backend and the angle
unit) followed by its evaluated arguments. Domain problems raise ValueError;
the interpreter reports them as evaluation errors.
"""

from . import value as V
from .value import Number


def _real(name: str, number: Number):
    if not number.is_real:
        raise ValueError(f"{name}() is only defined for real numbers")
    return number.real


def _wrap(env, magnitude, unit: str = "") -> Number:
    return Number.of(magnitude, unit=unit, backend=env.backend)


def _componentwise(op):
    def apply(env, x):
        return Number(op(env.backend, x.real), op(env.backend, x.imaginary), x.unit, env.backend)
    return apply


# ── Trigonometry ──────────────────────────────────────────────────────────────

def _trig(name):
    def apply(env, x):
        radians = env.to_radians(_real(name, x), x.unit)
        return _wrap(env, getattr(env.backend, name)(radians))
    return apply


def _inverse_trig(name):
    def apply(env, x):
        x = _real(name, x)
        if name != "atan" and abs(x) > 1:
            raise ValueError(f"{name}() argument must be between -1 and 1")
        return _wrap(env, env.from_radians(getattr(env.backend, name)(x)))
    return apply


def _hyperbolic(name):
    def apply(env, x):
        b = env.backend
        x = _real(name, x)
        pos, neg = b.exp(x), b.exp(-x)
        if name == "sinh":
            return _wrap(env, (pos - neg) / 2)
        if name == "cosh":
            return _wrap(env, (pos + neg) / 2)
        return _wrap(env, (pos - neg) / (pos + neg))
    return apply


# ── Logarithms / roots ────────────────────────────────────────────────────────

def _cbrt(env, x):
    b = env.backend
    x = _real("cbrt", x)
    if x == 0:
        return _wrap(env, b.zero())
    sign = -1 if x < 0 else 1
    return _wrap(env, b.pow(abs(x), b.one() / 3) * sign)


def _log(env, x, base=None):
    b = env.backend
    if base is None:
        if x.is_real and x.real > 0:
            return _wrap(env, b.log10(x.real))
        base = _wrap(env, b.from_int(10))
    denominator = V.ln(base)
    if denominator.real == 0 and denominator.imaginary == 0:
        raise ValueError("Logarithm base must not be 1")
    return V.divide(V.ln(x), denominator).with_unit("")


# ── Rounding ──────────────────────────────────────────────────────────────────

def _round_half_away(b, x):
    sign = -1 if x < 0 else 1
    return b.floor(abs(x) + b.number("0.5")) * sign


def _frac(b, x):
    return b.fract(x)


def _extreme(name, pick):
    def apply(env, *args):
        best = args[0]
        for arg in args:
            if pick(_real(name, arg), _real(name, best)):
                best = arg
        return best
    return apply


FUNCTIONS = {
    # name: (min args, max args or None for variadic, implementation)
    "abs":   (1, 1, lambda env, x: _wrap(env, V.modulus(x), x.unit)),
    "sqrt":  (1, 1, lambda env, x: V.sqrt(x)),
    "cbrt":  (1, 1, _cbrt),
    "exp":   (1, 1, lambda env, x: V.exp(x).with_unit("")),
    "ln":    (1, 1, lambda env, x: V.ln(x).with_unit("")),
    "log":   (1, 2, _log),
    "sin":   (1, 1, _trig("sin")),
    "cos":   (1, 1, _trig("cos")),
    "tan":   (1, 1, _trig("tan")),
    "asin":  (1, 1, _inverse_trig("asin")),
    "acos":  (1, 1, _inverse_trig("acos")),
    "atan":  (1, 1, _inverse_trig("atan")),
    "sinh":  (1, 1, _hyperbolic("sinh")),
    "cosh":  (1, 1, _hyperbolic("cosh")),
    "tanh":  (1, 1, _hyperbolic("tanh")),
    "floor": (1, 1, _componentwise(lambda b, x: b.floor(x))),
    "ceil":  (1, 1, _componentwise(lambda b, x: b.ceil(x))),
    "trunc": (1, 1, _componentwise(lambda b, x: b.trunc(x))),
    "round": (1, 1, _componentwise(_round_half_away)),
    "frac":  (1, 1, _componentwise(_frac)),
    "re":    (1, 1, lambda env, x: _wrap(env, x.real, x.unit)),
    "im":    (1, 1, lambda env, x: _wrap(env, x.imaginary, x.unit)),
    "max":   (1, None, _extreme("max", lambda a, b: a > b)),
    "min":   (1, None, _extreme("min", lambda a, b: a < b)),
}


def _constant(real, imaginary=None):
    def make(backend):
        im = backend.zero() if imaginary is None else imaginary(backend)
        return Number(real(backend), im, "", backend)
    return make


CONSTANTS = {
    "pi":  _constant(lambda b: b.pi()),
    "π":   _constant(lambda b: b.pi()),
    "tau": _constant(lambda b: b.pi() * 2),
    "τ":   _constant(lambda b: b.pi() * 2),
    "e":   _constant(lambda b: b.e()),
    "phi": _constant(lambda b: (b.one() + b.sqrt(b.from_int(5))) / 2),
    "ϕ":   _constant(lambda b: (b.one() + b.sqrt(b.from_int(5))) / 2),
    "i":   _constant(lambda b: b.zero(), lambda b: b.one()),
}


def is_prelude_func(name: str) -> bool:
    return name in FUNCTIONS


def is_constant(name: str) -> bool:
    return name in CONSTANTS


def get_constant(name: str, backend) -> Number:
    return CONSTANTS[name](backend)


def call(env, name: str, args):
    """Invoke a built-in function after checking its arity."""
    min_args, max_args, fn = FUNCTIONS[name]
    if len(args) < min_args or (max_args is not None and len(args) > max_args):
        expected = str(min_args) if min_args == max_args else (
            f"at least {min_args}" if max_args is None else f"{min_args} to {max_args}"
        )
        raise ValueError(f"{name}() takes {expected} argument(s), got {len(args)}")
    return fn(env, *args)
