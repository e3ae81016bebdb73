r"""@package symad.operators.construct

Construction helpers applying the zero/one shortcuts.

All derivative DAGs are built through these functions. They inspect only the
common.NeutralElement tags of their arguments and never construct a composite
node whose value is known to be identically zero or one. No other
simplification is performed.

The helpers take ownership of their arguments. If an argument is needed
elsewhere as well, pass `arg.share()` instead.
"""

from .common import NeutralElement
from .leaves import DoubleConstant


__all__ = [
    "zero",
    "one",
    "constant",
    "is_zero",
    "is_one",
    "add",
    "subtract",
    "negate",
    "multiply",
    "divide",
    "power",
    "power_int",
]


def zero():
    r"""Return a new constant tagged as zero."""
    return DoubleConstant(0.0, NeutralElement.ZERO)


def one():
    r"""Return a new constant tagged as one."""
    return DoubleConstant(1.0, NeutralElement.ONE)


def constant(value):
    r"""Return a new constant, tagged according to its exact value."""
    return DoubleConstant(value)


def is_zero(expr):
    return expr.is_one_or_zero() is NeutralElement.ZERO


def is_one(expr):
    return expr.is_one_or_zero() is NeutralElement.ONE


def add(a, b):
    r"""Return `a + b`."""
    from .binary import Addition
    if is_zero(a):
        return b
    if is_zero(b):
        return a
    return Addition(a, b)


def subtract(a, b):
    r"""Return `a - b`."""
    from .binary import Subtraction
    if is_zero(b):
        return a
    if is_zero(a):
        return negate(b)
    return Subtraction(a, b)


def negate(a):
    r"""Return `-a` represented as `-1 * a`."""
    if is_zero(a):
        return a
    return multiply(constant(-1.0), a)


def multiply(a, b):
    r"""Return `a * b`."""
    from .binary import Product
    if is_zero(a) or is_zero(b):
        return zero()
    if is_one(a):
        return b
    if is_one(b):
        return a
    return Product(a, b)


def divide(a, b):
    r"""Return `a / b`."""
    from .binary import Quotient
    if is_zero(a):
        return zero()
    if is_one(b):
        return a
    return Quotient(a, b)


def power(a, b):
    r"""Return `a ** b` for an arbitrary exponent."""
    from .binary import Power
    if is_zero(b) or is_one(a):
        return one()
    if is_one(b):
        return a
    return Power(a, b)


def power_int(a, n):
    r"""Return `a ** n` for an integer exponent `n`."""
    from .unary import PowerInt
    if n == 0 or is_one(a):
        return one()
    if n == 1:
        return a
    if n > 0 and is_zero(a):
        return zero()
    return PowerInt(a, n)
