r"""@package symad.operators.binary

Arithmetic operations of two arguments.

BinaryOperator implements the product/chain rule for a function
\f$ f(a, b) \f$ once, based on the local partial derivatives
\f$ \partial_a f \f$ and \f$ \partial_b f \f$ supplied by each kind via
`_partial(i)`, and the symmetric 2x2 matrix of second partials via
`_second_partial(i, j)` (only called for `i <= j`). As in the unary case,
the Zero/One tags of the incoming derivatives and seeds decide whether a
partial has to be multiplied in at all.
"""

from abc import abstractmethod

from .common import OperatorName
from .curvature import (CurvatureType, negate_curvature, sum_curvature,
                        scale_curvature)
from .leaves import DoubleConstant
from .operator import Operator
from . import construct
from .symmetric import symmetric_common


__all__ = [
    "BinaryOperator",
    "Addition",
    "Subtraction",
    "Product",
    "Quotient",
    "Power",
]


class BinaryOperator(Operator):
    r"""Base class for operations of two arguments."""

    def __init__(self, argument1, argument2, name=None):
        r"""Init function.

        Args:
            argument1: First operand (operator or number).
            argument2: Second operand (operator or number).
            name: Name of the operator (e.g. for print_tree()). Default is
                the class name.
        """
        super(BinaryOperator, self).__init__(name=name, argument1=argument1,
                                             argument2=argument2)

    def _expr_str(self):
        return "(%s %s %s)" % (self.argument1, self.symbol, self.argument2)

    @property
    def arguments(self):
        r"""The two operands as a list."""
        return [self.argument1, self.argument2]

    @abstractmethod
    def _partial(self, i):
        r"""New DAG of the partial derivative w.r.t. operand `i`."""
        pass

    def _second_partial(self, i, j):
        r"""New DAG of the second partial w.r.t. operands `i` and `j`."""
        return construct.zero()

    def _scaled(self, i, d):
        r"""Return `partial_i * d` using the shortcuts for `d`."""
        if construct.is_zero(d):
            return d
        if construct.is_one(d):
            return self._partial(i)
        return construct.multiply(self._partial(i), d)

    def _combine(self, d1, d2):
        return construct.add(self._scaled(0, d1), self._scaled(1, d2))

    def _rebuild(self, argument1, argument2):
        return type(self)(argument1, argument2, name=self.name)

    def _copy(self, copy_child):
        return self._rebuild(copy_child(self.argument1),
                             copy_child(self.argument2))

    def _substitute(self, index, replacement, memo):
        return self._rebuild(
            self.argument1._substitute(index, replacement, memo),
            self.argument2._substitute(index, replacement, memo),
        )

    def _differentiate(self, index, memo):
        return self._combine(self.argument1._differentiate(index, memo),
                             self.argument2._differentiate(index, memo))

    def _ad_forward(self, seeds, ad_pass):
        return self._combine(self.argument1._forward(seeds, ad_pass),
                             self.argument2._forward(seeds, ad_pass))

    def _ad_backward(self, seed, accumulator, ad_pass):
        if construct.is_zero(seed):
            return
        # constant operands receive nothing
        targets = [i for i, arg in enumerate(self.arguments)
                   if arg.curvature() != CurvatureType.CONSTANT]
        if len(targets) > 1:
            seed = ad_pass.index_set.hoist(seed)
        for i in targets:
            s = seed.share() if len(targets) > 1 else seed
            self.arguments[i]._backward(self._scaled(i, s), accumulator,
                                        ad_pass)

    def _ad_symmetric(self, l, seeds, accumulator, ad_pass):
        return symmetric_common(self, self.arguments, l, seeds, accumulator,
                                ad_pass)

    def _a(self):
        return self.argument1.share()

    def _b(self):
        return self.argument2.share()


class Addition(BinaryOperator):
    symbol = "+"
    kind = OperatorName.ADDITION

    def evaluate(self, visitor):
        return visitor.addition(self.argument1.evaluate(visitor),
                                self.argument2.evaluate(visitor))

    def _partial(self, i):
        return construct.one()

    def _combine(self, d1, d2):
        return construct.add(d1, d2)

    def _compute_curvature(self):
        return sum_curvature(self.argument1.curvature(),
                             self.argument2.curvature())


class Subtraction(BinaryOperator):
    symbol = "-"
    kind = OperatorName.SUBTRACTION

    def evaluate(self, visitor):
        return visitor.subtraction(self.argument1.evaluate(visitor),
                                   self.argument2.evaluate(visitor))

    def _partial(self, i):
        if i == 0:
            return construct.one()
        return construct.constant(-1.0)

    def _combine(self, d1, d2):
        return construct.subtract(d1, d2)

    def _compute_curvature(self):
        return sum_curvature(self.argument1.curvature(),
                             negate_curvature(self.argument2.curvature()))


def _scaled_curvature(c, other, factor):
    r"""Curvature of a product/quotient of `c` with a constant `other`.

    `factor` is the literal value of `other` if it is a DoubleConstant and
    `None` otherwise.
    """
    if factor is not None:
        return scale_curvature(c, factor)
    if other == CurvatureType.CONSTANT and c == CurvatureType.AFFINE:
        return CurvatureType.AFFINE
    return CurvatureType.NEITHER


def _literal(op):
    return op.value if isinstance(op, DoubleConstant) else None


class Product(BinaryOperator):
    symbol = "*"
    kind = OperatorName.PRODUCT

    def evaluate(self, visitor):
        return visitor.product(self.argument1.evaluate(visitor),
                               self.argument2.evaluate(visitor))

    def _partial(self, i):
        return self._b() if i == 0 else self._a()

    def _second_partial(self, i, j):
        if i != j:
            return construct.one()
        return construct.zero()

    def _compute_curvature(self):
        c1 = self.argument1.curvature()
        c2 = self.argument2.curvature()
        if c1 == CurvatureType.CONSTANT and c2 == CurvatureType.CONSTANT:
            return CurvatureType.CONSTANT
        if c1 == CurvatureType.CONSTANT:
            return _scaled_curvature(c2, c1, _literal(self.argument1))
        if c2 == CurvatureType.CONSTANT:
            return _scaled_curvature(c1, c2, _literal(self.argument2))
        return CurvatureType.NEITHER


class Quotient(BinaryOperator):
    symbol = "/"
    kind = OperatorName.QUOTIENT

    def evaluate(self, visitor):
        return visitor.quotient(self.argument1.evaluate(visitor),
                                self.argument2.evaluate(visitor))

    def _partial(self, i):
        if i == 0:
            return construct.power_int(self._b(), -1)
        return construct.negate(
            construct.multiply(self._a(), construct.power_int(self._b(), -2))
        )

    def _second_partial(self, i, j):
        if i == 0 and j == 0:
            return construct.zero()
        if i != j:
            return construct.negate(construct.power_int(self._b(), -2))
        return construct.multiply(
            construct.constant(2.0),
            construct.multiply(self._a(), construct.power_int(self._b(), -3)),
        )

    def _compute_curvature(self):
        c1 = self.argument1.curvature()
        c2 = self.argument2.curvature()
        if c1 == CurvatureType.CONSTANT and c2 == CurvatureType.CONSTANT:
            return CurvatureType.CONSTANT
        if c2 != CurvatureType.CONSTANT:
            return CurvatureType.NEITHER
        factor = _literal(self.argument2)
        if factor == 0:
            return CurvatureType.NEITHER
        return _scaled_curvature(c1, c2, factor)


class Power(BinaryOperator):
    r"""General power `a^b`, defined for positive bases."""
    symbol = "^"
    kind = OperatorName.POWER

    def evaluate(self, visitor):
        return visitor.power(self.argument1.evaluate(visitor),
                             self.argument2.evaluate(visitor))

    def _a_to(self, exponent):
        return construct.power(self._a(), exponent)

    def _log_a(self):
        from .unary import Logarithm
        return Logarithm(self._a())

    def _partial(self, i):
        if i == 0:
            return construct.multiply(
                self._b(),
                self._a_to(construct.subtract(self._b(), construct.one())),
            )
        return construct.multiply(self._a_to(self._b()), self._log_a())

    def _second_partial(self, i, j):
        if i == 0 and j == 0:
            return construct.multiply(
                construct.multiply(
                    self._b(), construct.subtract(self._b(), construct.one())
                ),
                self._a_to(construct.subtract(self._b(),
                                              construct.constant(2.0))),
            )
        if i != j:
            return construct.multiply(
                self._a_to(construct.subtract(self._b(), construct.one())),
                construct.add(construct.one(),
                              construct.multiply(self._b(), self._log_a())),
            )
        return construct.multiply(self._a_to(self._b()),
                                  construct.power_int(self._log_a(), 2))

    def _compute_curvature(self):
        c1 = self.argument1.curvature()
        c2 = self.argument2.curvature()
        if c1 == CurvatureType.CONSTANT and c2 == CurvatureType.CONSTANT:
            return CurvatureType.CONSTANT
        return CurvatureType.NEITHER
