r"""@package symad.operators.unary

Elementary functions of a single argument.

The chain rule is implemented once in UnaryOperator. A concrete kind only
supplies:
    * its display `symbol` and `kind` tag
    * the numeric function and its first two derivatives (terms())
    * the symbolic templates of its first and second derivative
      (_derivative() and _second_derivative()) in terms of its argument
    * its curvature rule

Given the derivative `d` of the argument, the derivative of `f(a)` is built
using the three-way branch on the common.NeutralElement tag of `d`:
    * `d` is zero: the result is zero
    * `d` is one: the result is the template `f'(a)`
    * otherwise: the result is `f'(a) * d`

Backward propagation uses the same branch on the incoming adjoint seed.


@b Examples

```
    x = Variable(0)
    expr = Logarithm(Asin(x))
    f = expr.evaluator()
    print(f([0.5]), f.diff([0.5], 0))
```
"""

from abc import abstractmethod

import numpy as np
from mpmath import mp

from .common import OperatorName
from .curvature import CurvatureType, compose_curvature
from .operator import Operator
from . import construct
from .symmetric import symmetric_common


__all__ = [
    "UnaryOperator",
    "Sin",
    "Cos",
    "Tan",
    "Asin",
    "Acos",
    "Atan",
    "Exp",
    "Logarithm",
    "PowerInt",
]


class UnaryOperator(Operator):
    r"""Base class for functions of one argument.

    Sub classes must implement terms(), _derivative() and
    _second_derivative() and dispatch to the correct visitor method in
    evaluate().
    """

    def __init__(self, argument, name=None):
        r"""Init function.

        Args:
            argument: The operator (or number) this function is applied to.
            name: Name of the operator (e.g. for print_tree()). Default is
                the class name.
        """
        super(UnaryOperator, self).__init__(name=name, argument=argument)

    def _expr_str(self):
        return "%s(%s)" % (self.symbol, self.argument)

    @classmethod
    @abstractmethod
    def terms(cls, use_mp=False):
        r"""Return the numeric function and its first two derivatives.

        The result is a tuple `(f, df, ddf)` of callables operating on floats
        or numpy arrays (`use_mp=False`) or on `mpmath` numbers
        (`use_mp=True`).
        """
        pass

    def function(self, n=0, use_mp=False):
        r"""Return a callable for the `n`'th derivative, `n` in `0, 1, 2`."""
        return self.terms(use_mp)[n]

    @abstractmethod
    def _derivative(self):
        r"""New DAG of the first derivative w.r.t. the argument."""
        pass

    @abstractmethod
    def _second_derivative(self):
        r"""New DAG of the second derivative w.r.t. the argument."""
        pass

    def _apply_factor(self, d):
        r"""Combine the derivative template with a nontrivial factor `d`."""
        return construct.multiply(self._derivative(), d)

    def _chain(self, d):
        if construct.is_zero(d):
            return d
        if construct.is_one(d):
            return self._derivative()
        return self._apply_factor(d)

    def _partial(self, i):
        return self._derivative()

    def _second_partial(self, i, j):
        return self._second_derivative()

    def _rebuild(self, argument):
        r"""New operator of the same kind applied to `argument`."""
        return type(self)(argument, name=self.name)

    def _copy(self, copy_child):
        return self._rebuild(copy_child(self.argument))

    def _substitute(self, index, replacement, memo):
        return self._rebuild(
            self.argument._substitute(index, replacement, memo)
        )

    def _differentiate(self, index, memo):
        return self._chain(self.argument._differentiate(index, memo))

    def _ad_forward(self, seeds, ad_pass):
        return self._chain(self.argument._forward(seeds, ad_pass))

    def _ad_backward(self, seed, accumulator, ad_pass):
        if construct.is_zero(seed):
            return
        self.argument._backward(self._chain(seed), accumulator, ad_pass)

    def _ad_symmetric(self, l, seeds, accumulator, ad_pass):
        return symmetric_common(self, [self.argument], l, seeds, accumulator,
                                ad_pass)

    def _compute_curvature(self):
        if self.argument.curvature() == CurvatureType.CONSTANT:
            return CurvatureType.CONSTANT
        return CurvatureType.NEITHER

    def _a(self):
        return self.argument.share()


def _one_minus_square(a):
    return construct.subtract(construct.one(), construct.power_int(a, 2))


def _one_plus_square(a):
    return construct.add(construct.one(), construct.power_int(a, 2))


class Sin(UnaryOperator):
    symbol = "sin"
    kind = OperatorName.SIN

    @classmethod
    def terms(cls, use_mp=False):
        if use_mp:
            return mp.sin, mp.cos, lambda x: -mp.sin(x)
        return np.sin, np.cos, lambda x: -np.sin(x)

    def evaluate(self, visitor):
        return visitor.sin(self.argument.evaluate(visitor))

    def _derivative(self):
        return Cos(self._a())

    def _second_derivative(self):
        return construct.negate(Sin(self._a()))


class Cos(UnaryOperator):
    symbol = "cos"
    kind = OperatorName.COS

    @classmethod
    def terms(cls, use_mp=False):
        if use_mp:
            return mp.cos, lambda x: -mp.sin(x), lambda x: -mp.cos(x)
        return np.cos, lambda x: -np.sin(x), lambda x: -np.cos(x)

    def evaluate(self, visitor):
        return visitor.cos(self.argument.evaluate(visitor))

    def _derivative(self):
        return construct.negate(Sin(self._a()))

    def _second_derivative(self):
        return construct.negate(Cos(self._a()))


class Tan(UnaryOperator):
    symbol = "tan"
    kind = OperatorName.TAN

    @classmethod
    def terms(cls, use_mp=False):
        if use_mp:
            return (mp.tan, lambda x: mp.sec(x)**2,
                    lambda x: 2 * mp.sin(x) / mp.cos(x)**3)
        return (np.tan, lambda x: np.divide(1.0, np.cos(x)**2),
                lambda x: np.divide(2.0 * np.sin(x), np.cos(x)**3))

    def evaluate(self, visitor):
        return visitor.tan(self.argument.evaluate(visitor))

    def _derivative(self):
        return construct.power_int(Cos(self._a()), -2)

    def _second_derivative(self):
        return construct.multiply(
            construct.constant(2.0),
            construct.multiply(Sin(self._a()),
                               construct.power_int(Cos(self._a()), -3)),
        )


class Asin(UnaryOperator):
    r"""Inverse sine. The derivatives are singular at `-1` and `1`."""
    symbol = "asin"
    kind = OperatorName.ASIN

    @classmethod
    def terms(cls, use_mp=False):
        if use_mp:
            return (mp.asin, lambda x: 1 / mp.sqrt(1 - x**2),
                    lambda x: x / mp.power(1 - x**2, 1.5))
        return (np.arcsin, lambda x: np.divide(1.0, np.sqrt(1.0 - x**2)),
                lambda x: np.divide(x, np.power(1.0 - x**2, 1.5)))

    def evaluate(self, visitor):
        return visitor.asin(self.argument.evaluate(visitor))

    def _derivative(self):
        return construct.power(_one_minus_square(self._a()),
                               construct.constant(-0.5))

    def _second_derivative(self):
        return construct.multiply(
            construct.power(_one_minus_square(self._a()),
                            construct.constant(-1.5)),
            self._a(),
        )


class Acos(UnaryOperator):
    r"""Inverse cosine. The derivatives are singular at `-1` and `1`."""
    symbol = "acos"
    kind = OperatorName.ACOS

    @classmethod
    def terms(cls, use_mp=False):
        if use_mp:
            return (mp.acos, lambda x: -1 / mp.sqrt(1 - x**2),
                    lambda x: -x / mp.power(1 - x**2, 1.5))
        return (np.arccos, lambda x: np.divide(-1.0, np.sqrt(1.0 - x**2)),
                lambda x: np.divide(-x, np.power(1.0 - x**2, 1.5)))

    def evaluate(self, visitor):
        return visitor.acos(self.argument.evaluate(visitor))

    def _derivative(self):
        return construct.negate(
            construct.power(_one_minus_square(self._a()),
                            construct.constant(-0.5))
        )

    def _second_derivative(self):
        return construct.negate(
            construct.multiply(
                construct.power(_one_minus_square(self._a()),
                                construct.constant(-1.5)),
                self._a(),
            )
        )


class Atan(UnaryOperator):
    symbol = "atan"
    kind = OperatorName.ATAN

    @classmethod
    def terms(cls, use_mp=False):
        if use_mp:
            return (mp.atan, lambda x: 1 / (1 + x**2),
                    lambda x: -2 * x / (1 + x**2)**2)
        return (np.arctan, lambda x: np.divide(1.0, 1.0 + x**2),
                lambda x: np.divide(-2.0 * x, (1.0 + x**2)**2))

    def evaluate(self, visitor):
        return visitor.atan(self.argument.evaluate(visitor))

    def _derivative(self):
        return construct.power_int(_one_plus_square(self._a()), -1)

    def _second_derivative(self):
        return construct.multiply(
            construct.constant(-2.0),
            construct.multiply(
                self._a(),
                construct.power_int(_one_plus_square(self._a()), -2),
            ),
        )


class Exp(UnaryOperator):
    symbol = "exp"
    kind = OperatorName.EXP

    @classmethod
    def terms(cls, use_mp=False):
        if use_mp:
            return mp.exp, mp.exp, mp.exp
        return np.exp, np.exp, np.exp

    def evaluate(self, visitor):
        return visitor.exp(self.argument.evaluate(visitor))

    def _derivative(self):
        return Exp(self._a())

    def _second_derivative(self):
        return Exp(self._a())

    def _compute_curvature(self):
        return compose_curvature(self.argument.curvature(),
                                 CurvatureType.CONVEX, nondecreasing=True)


class Logarithm(UnaryOperator):
    r"""Natural logarithm.

    A nontrivial derivative `d` of the argument `a` is combined as `d / a`
    instead of `a^(-1) * d`.
    """
    symbol = "log"
    kind = OperatorName.LOGARITHM

    @classmethod
    def terms(cls, use_mp=False):
        if use_mp:
            return mp.log, lambda x: 1 / x, lambda x: -1 / x**2
        return (np.log, lambda x: np.divide(1.0, x),
                lambda x: np.divide(-1.0, x**2))

    def evaluate(self, visitor):
        return visitor.log(self.argument.evaluate(visitor))

    def _derivative(self):
        return construct.power_int(self._a(), -1)

    def _second_derivative(self):
        return construct.negate(construct.power_int(self._a(), -2))

    def _apply_factor(self, d):
        return construct.divide(d, self._a())

    def _compute_curvature(self):
        return compose_curvature(self.argument.curvature(),
                                 CurvatureType.CONCAVE, nondecreasing=True)


class PowerInt(UnaryOperator):
    r"""Integer power `a^n` of the argument."""
    symbol = "pow"
    kind = OperatorName.POWER_INT

    def __init__(self, argument, exponent, name=None):
        r"""Init function.

        Args:
            argument: The base.
            exponent: Integer exponent `n`.
            name: Name of the operator (e.g. for print_tree()).
        """
        super(PowerInt, self).__init__(argument, name=name)
        ## The integer exponent.
        self.exponent = int(exponent)

    def _expr_str(self):
        return "(%s)^%d" % (self.argument, self.exponent)

    @classmethod
    def terms(cls, use_mp=False):
        raise TypeError("The terms of PowerInt depend on the exponent. "
                        "Use function() on an instance instead.")

    def function(self, n=0, use_mp=False):
        p = self.exponent
        if n == 0:
            return lambda x: x**p
        if n == 1:
            return lambda x: p * x**(p-1)
        if n == 2:
            return lambda x: p * (p-1) * x**(p-2)
        raise ValueError("Only derivatives up to second order available.")

    def evaluate(self, visitor):
        return visitor.power_int(self.argument.evaluate(visitor), self.exponent)

    def _rebuild(self, argument):
        return PowerInt(argument, self.exponent, name=self.name)

    def _derivative(self):
        p = self.exponent
        return construct.multiply(construct.constant(float(p)),
                                  construct.power_int(self._a(), p - 1))

    def _second_derivative(self):
        p = self.exponent
        return construct.multiply(construct.constant(float(p * (p-1))),
                                  construct.power_int(self._a(), p - 2))

    def _compute_curvature(self):
        p = self.exponent
        c = self.argument.curvature()
        if p == 0 or c == CurvatureType.CONSTANT:
            return CurvatureType.CONSTANT
        if p == 1:
            return c
        if p >= 2 and p % 2 == 0 and c == CurvatureType.AFFINE:
            return CurvatureType.CONVEX
        return CurvatureType.NEITHER
