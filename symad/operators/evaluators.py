r"""@package symad.operators.evaluators

Visitors evaluating operator DAGs.

Each operator calls the visitor method of its kind with the already evaluated
children, e.g. Asin calls `visitor.asin(x)`. Projections call
EvaluationBase.projection(), which evaluates the shared subexpression only
once per evaluation.

The following evaluators are available:
    * ScalarEvaluator computes values using numpy (floats or arrays) or
      `mpmath` (arbitrary precision).
    * IntervalEvaluator computes enclosures of the values for input
      intervals using `mpmath.iv`.
    * SympyEvaluator converts the DAG into a `sympy` expression.

Users will mostly use OperatorEvaluator objects created via
Operator.evaluator():

```
    x = Variable(0)
    f = Logarithm(Asin(x)).evaluator()
    f([0.5])          # function value
    f.diff([0.5], 0)  # derivative w.r.t. x
```
"""

from abc import ABCMeta, abstractmethod
from collections.abc import Mapping

import numpy as np
from mpmath import mp, iv
import sympy as sp

from ..numutils import raise_all_warnings
from .unary import Sin, Cos, Tan, Asin, Acos, Atan, Exp, Logarithm


__all__ = [
    "EvaluationBase",
    "ScalarEvaluator",
    "IntervalEvaluator",
    "SympyEvaluator",
    "OperatorEvaluator",
]


def _as_mapping(values):
    r"""Turn a sequence of values into a mapping from indices to values."""
    if isinstance(values, Mapping):
        return values
    return dict(enumerate(values))


class EvaluationBase(object, metaclass=ABCMeta):
    r"""Base class for all evaluation visitors.

    There is one method per operator kind. Sub classes implementing a kind
    only partially (e.g. interval arithmetic) should raise a
    `NotImplementedError` for the unsupported ones.
    """

    def __init__(self):
        self._projections = dict()

    def evaluate(self, op):
        r"""Evaluate the DAG `op`, starting with an empty projection cache."""
        self.clear_cache()
        return op.evaluate(self)

    def clear_cache(self):
        r"""Forget the values of all evaluated projections."""
        self._projections = dict()

    def projection(self, op):
        r"""Value of a projection, evaluated once per evaluation."""
        try:
            return self._projections[id(op)][1]
        except KeyError:
            pass
        value = op.argument.evaluate(self)
        # keep `op` alive while its id is used as key
        self._projections[id(op)] = (op, value)
        return value

    @abstractmethod
    def constant(self, value):
        pass

    @abstractmethod
    def variable(self, op):
        r"""Value of the leaves.Variable `op`."""
        pass

    @abstractmethod
    def addition(self, x, y):
        pass

    @abstractmethod
    def subtraction(self, x, y):
        pass

    @abstractmethod
    def product(self, x, y):
        pass

    @abstractmethod
    def quotient(self, x, y):
        pass

    @abstractmethod
    def power(self, x, y):
        pass

    @abstractmethod
    def power_int(self, x, n):
        pass

    @abstractmethod
    def sin(self, x):
        pass

    @abstractmethod
    def cos(self, x):
        pass

    @abstractmethod
    def tan(self, x):
        pass

    @abstractmethod
    def asin(self, x):
        pass

    @abstractmethod
    def acos(self, x):
        pass

    @abstractmethod
    def atan(self, x):
        pass

    @abstractmethod
    def exp(self, x):
        pass

    @abstractmethod
    def log(self, x):
        pass


class ScalarEvaluator(EvaluationBase):
    r"""Numeric evaluation using numpy or mpmath.

    Values of variables are looked up by the variable's global index. With
    `use_mp=False`, all values are converted to floats (or float arrays, in
    which case the DAG is evaluated element-wise). Domain errors produce
    `nan` or `inf` (numpy) or complex numbers (mpmath) unless `strict=True`,
    in which case a `FloatingPointError` is raised.
    """

    def __init__(self, values, use_mp=False, strict=False):
        r"""Create a scalar evaluator.

        Args:
            values: Mapping of variable indices to values, or a sequence
                containing the value of variable `i` at position `i`.
            use_mp: Whether to use `mpmath` instead of numpy.
            strict: Whether to raise on floating point problems.
        """
        super(ScalarEvaluator, self).__init__()
        self.use_mp = use_mp
        self.strict = strict
        convert = mp.mpf if use_mp else (lambda v: np.asarray(v, dtype=float))
        self._values = dict((k, convert(v))
                            for k, v in _as_mapping(values).items())

    def evaluate(self, op):
        if self.use_mp:
            return super(ScalarEvaluator, self).evaluate(op)
        ctx = raise_all_warnings() if self.strict else np.errstate(all='ignore')
        with ctx:
            result = super(ScalarEvaluator, self).evaluate(op)
        if isinstance(result, np.ndarray) and result.ndim == 0:
            result = result[()]
        return result

    def _check(self, value):
        if self.use_mp and self.strict and isinstance(value, mp.mpc):
            raise FloatingPointError("Complex result %s in real evaluation."
                                     % value)
        return value

    def _unary(self, cls, x):
        return self._check(cls.terms(self.use_mp)[0](x))

    def constant(self, value):
        return mp.mpf(value) if self.use_mp else float(value)

    def variable(self, op):
        try:
            return self._values[op.index]
        except KeyError:
            raise KeyError("No value given for variable %s (index %s)."
                           % (op.name, op.index))

    def addition(self, x, y):
        return x + y

    def subtraction(self, x, y):
        return x - y

    def product(self, x, y):
        return x * y

    def quotient(self, x, y):
        if self.use_mp:
            return x / y
        return np.divide(x, y)

    def power(self, x, y):
        if self.use_mp:
            return self._check(mp.power(x, y))
        return np.power(x, y)

    def power_int(self, x, n):
        if self.use_mp:
            return x**n
        return np.power(x, float(n))

    def sin(self, x):
        return self._unary(Sin, x)

    def cos(self, x):
        return self._unary(Cos, x)

    def tan(self, x):
        return self._unary(Tan, x)

    def asin(self, x):
        return self._unary(Asin, x)

    def acos(self, x):
        return self._unary(Acos, x)

    def atan(self, x):
        return self._unary(Atan, x)

    def exp(self, x):
        return self._unary(Exp, x)

    def log(self, x):
        return self._unary(Logarithm, x)


class IntervalEvaluator(EvaluationBase):
    r"""Evaluate enclosures of the function values using `mpmath.iv`.

    The result is an interval containing all values the DAG takes when each
    variable ranges over its interval. Since the DAG is evaluated term by
    term, the enclosure is usually not sharp.
    """

    def __init__(self, bounds):
        r"""Create an interval evaluator.

        Args:
            bounds: Mapping of variable indices to `(lower, upper)` pairs (or
                single numbers), or a sequence of such with the bounds of
                variable `i` at position `i`.
        """
        super(IntervalEvaluator, self).__init__()
        self._bounds = dict(
            (k, iv.mpf(list(b)) if isinstance(b, (list, tuple)) else iv.mpf(b))
            for k, b in _as_mapping(bounds).items()
        )

    def constant(self, value):
        return iv.mpf(value)

    def variable(self, op):
        try:
            return self._bounds[op.index]
        except KeyError:
            raise KeyError("No bounds given for variable %s (index %s)."
                           % (op.name, op.index))

    def addition(self, x, y):
        return x + y

    def subtraction(self, x, y):
        return x - y

    def product(self, x, y):
        return x * y

    def quotient(self, x, y):
        return x / y

    def power(self, x, y):
        if y.a != y.b:
            raise NotImplementedError("Interval exponents not supported.")
        return iv.exp(y * iv.log(x))

    def power_int(self, x, n):
        return x**n

    def sin(self, x):
        return iv.sin(x)

    def cos(self, x):
        return iv.cos(x)

    def tan(self, x):
        raise NotImplementedError("tan() not supported for intervals.")

    def asin(self, x):
        raise NotImplementedError("asin() not supported for intervals.")

    def acos(self, x):
        raise NotImplementedError("acos() not supported for intervals.")

    def atan(self, x):
        raise NotImplementedError("atan() not supported for intervals.")

    def exp(self, x):
        return iv.exp(x)

    def log(self, x):
        return iv.log(x)


class SympyEvaluator(EvaluationBase):
    r"""Convert a DAG into a `sympy` expression.

    Projections are inlined, i.e. the result is a plain expression tree.
    """

    def __init__(self, symbols=None):
        r"""Create a sympy converter.

        Args:
            symbols: Optional mapping of variable indices to sympy symbols.
                Variables not in this mapping are represented by a symbol
                with the name of the variable.
        """
        super(SympyEvaluator, self).__init__()
        self._symbols = dict() if symbols is None else dict(symbols)

    def constant(self, value):
        return sp.sympify(value)

    def variable(self, op):
        try:
            return self._symbols[op.index]
        except KeyError:
            symbol = self._symbols[op.index] = sp.Symbol(op.name)
            return symbol

    def addition(self, x, y):
        return x + y

    def subtraction(self, x, y):
        return x - y

    def product(self, x, y):
        return x * y

    def quotient(self, x, y):
        return x / y

    def power(self, x, y):
        return x**y

    def power_int(self, x, n):
        return x**sp.Integer(n)

    def sin(self, x):
        return sp.sin(x)

    def cos(self, x):
        return sp.cos(x)

    def tan(self, x):
        return sp.tan(x)

    def asin(self, x):
        return sp.asin(x)

    def acos(self, x):
        return sp.acos(x)

    def atan(self, x):
        return sp.atan(x)

    def exp(self, x):
        return sp.exp(x)

    def log(self, x):
        return sp.log(x)


class OperatorEvaluator(object):
    r"""Callable evaluator of an operator DAG.

    Objects of this class are returned by Operator.evaluator(). Calling them
    with the values of the variables evaluates the DAG. Symbolic derivatives
    needed by diff() are created on first use and kept for later calls.
    """

    def __init__(self, op, use_mp=False, strict=False):
        ## The operator DAG to evaluate.
        self.op = op
        ## Whether to evaluate using `mpmath`.
        self.use_mp = use_mp
        ## Whether floating point problems raise a `FloatingPointError`.
        self.strict = strict
        self._derivatives = dict()

    def _evaluate(self, op, values):
        ev = ScalarEvaluator(values, use_mp=self.use_mp, strict=self.strict)
        return ev.evaluate(op)

    def __call__(self, values):
        r"""Evaluate the DAG for the given variable values."""
        return self._evaluate(self.op, values)

    def derivative(self, index):
        r"""Symbolic derivative DAG w.r.t. variable `index` (cached)."""
        try:
            return self._derivatives[index]
        except KeyError:
            pass
        d = self._derivatives[index] = self.op.differentiate(index)
        return d

    def diff(self, values, index):
        r"""Evaluate the derivative w.r.t. variable `index`."""
        return self._evaluate(self.derivative(index), values)

    def function(self, index=None):
        r"""Return a callable evaluating the function or a derivative.

        Args:
            index: Index of the variable to differentiate w.r.t. By default,
                the function itself is evaluated.
        """
        if index is None:
            return self
        def f(values):
            return self.diff(values, index)
        return f

    def interval(self, bounds):
        r"""Enclosure of the function values for variable bounds."""
        return IntervalEvaluator(bounds).evaluate(self.op)

    def sympy(self, symbols=None):
        r"""The DAG as `sympy` expression."""
        return SympyEvaluator(symbols).evaluate(self.op)
