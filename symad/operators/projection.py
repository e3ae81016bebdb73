r"""@package symad.operators.projection

Shared subexpressions.

A Projection represents "this value, already computed once". It has an
identity of its own: two projections of equal expressions are different
nodes and are never merged automatically. A projection may be referenced from
any number of parents, which is what turns operator trees into DAGs.

Projections are created explicitly by users who want to share structure and
by the AD passes, which hoist newly created derivative subexpressions into
projections recorded in an indexsets.IndexSet.
"""

import itertools

from .common import OperatorName, NeutralElement
from .operator import Operator
from .leaves import DoubleConstant, Variable


__all__ = [
    "Projection",
]


class Projection(Operator):
    r"""Named shared subexpression.

    If no name is given, a unique name `t<N>` is generated from a global
    creation counter.
    """
    symbol = "projection"
    kind = OperatorName.PROJECTION

    _counter = itertools.count()

    def __init__(self, argument, name=None):
        r"""Init function.

        Args:
            argument: The shared subexpression.
            name: Name used to refer to the projection when printing. By
                default, a unique name is generated.
        """
        if name is None:
            name = "t%d" % next(Projection._counter)
        super(Projection, self).__init__(name=name, argument=argument)
        self._symmetric_cache = None

    def _expr_str(self):
        return self.name

    @property
    def nice_name(self):
        return "%s = %s" % (self.name, self.argument)

    def share(self):
        return self

    def _copy(self, copy_child):
        return Projection(copy_child(self.argument))

    def is_one_or_zero(self):
        return self.argument.is_one_or_zero()

    def evaluate(self, visitor):
        return visitor.projection(self)

    def _differentiate(self, index, memo):
        try:
            return memo[id(self)][1].share()
        except KeyError:
            pass
        result = self.argument._differentiate(index, memo)
        if not isinstance(result, (DoubleConstant, Variable, Projection)):
            result = Projection(result)
        memo[id(self)] = (self, result)
        return result

    def _ad_forward(self, seeds, ad_pass):
        return ad_pass.index_set.hoist(self.argument._forward(seeds, ad_pass))

    def _ad_backward(self, seed, accumulator, ad_pass):
        if seed.is_one_or_zero() is NeutralElement.ZERO:
            return
        self.argument._backward(ad_pass.index_set.hoist(seed), accumulator,
                                ad_pass)

    def _ad_symmetric(self, l, seeds, accumulator, ad_pass):
        from .symmetric import zero_hessian
        cached = None
        if (self._symmetric_cache is not None
                and self._symmetric_cache[0] is ad_pass.key):
            cached = self._symmetric_cache[1]
        if cached is not None and l.is_one_or_zero() is NeutralElement.ZERO:
            return [f.share() for f in cached], zero_hessian(seeds.directions)
        l = ad_pass.shared_set.hoist(l)
        first, hessian = self.argument._symmetric(l, seeds, accumulator,
                                                  ad_pass)
        if cached is None:
            cached = [ad_pass.first_order_set.hoist(f) for f in first]
            self._symmetric_cache = (ad_pass.key, cached)
            first = cached
        else:
            first = [f.share() for f in cached]
        hessian = [[None if h is None else ad_pass.hessian_set.hoist(h)
                    for h in row] for row in hessian]
        return first, hessian

    def _substitute(self, index, replacement, memo):
        try:
            return memo[id(self)][1]
        except KeyError:
            pass
        result = Projection(self.argument._substitute(index, replacement, memo))
        memo[id(self)] = (self, result)
        return result

    def depends_on(self, index):
        return self.argument.depends_on(index)

    def _compute_curvature(self):
        return self.argument.curvature()

    def __getstate__(self):
        state = super(Projection, self).__getstate__()
        state['_symmetric_cache'] = None
        return state

    def _clear_caches(self):
        super(Projection, self)._clear_caches()
        self._symmetric_cache = None
