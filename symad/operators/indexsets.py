r"""@package symad.operators.indexsets

Bookkeeping of projections created during AD passes.

Each AD pass wraps some of the subexpressions it creates into new
projection.Projection nodes. These are appended to an IndexSet in creation
order, which is a valid declaration order for a code generator: the argument
of a projection only refers to projections created before it.

The index sets do not participate in the correctness of the derivatives. No
deduplication based on structural equality is ever attempted.
"""

from .leaves import DoubleConstant, Variable
from .projection import Projection


__all__ = [
    "IndexSet",
    "ADPass",
]


class IndexSet(object):
    r"""Ordered collection of newly created projections."""

    def __init__(self):
        self._projections = []

    def __len__(self):
        return len(self._projections)

    def __iter__(self):
        return iter(self._projections)

    def __getitem__(self, i):
        return self._projections[i]

    def __contains__(self, projection):
        return any(p is projection for p in self._projections)

    def __repr__(self):
        return "<IndexSet(%s)>" % ", ".join(p.name for p in self._projections)

    def append(self, projection):
        r"""Record a projection as created during the current pass."""
        self._projections.append(projection)

    def hoist(self, expr):
        r"""Turn `expr` into a projection recorded in this set.

        Leaves and existing projections are returned unchanged, since there
        is nothing to be saved by sharing them.
        """
        if isinstance(expr, (DoubleConstant, Variable, Projection)):
            return expr
        projection = Projection(expr)
        self.append(projection)
        return projection

    def declarations(self):
        r"""Return ``(name, expression)`` pairs in declaration order."""
        return [(p.name, p.argument) for p in self._projections]


class ADPass(object):
    r"""State of one AD invocation.

    The `key` identifies the pass, so that nodes can tell whether a cached
    result belongs to the current pass. Forward and backward passes only use
    `index_set`, the symmetric pass uses the three remaining sets.
    """
    # pylint: disable=too-few-public-methods

    def __init__(self, index_set=None, first_order_set=None, shared_set=None,
                 hessian_set=None):
        self.key = object()
        self.index_set = IndexSet() if index_set is None else index_set
        self.first_order_set = (IndexSet() if first_order_set is None
                                else first_order_set)
        self.shared_set = IndexSet() if shared_set is None else shared_set
        self.hessian_set = IndexSet() if hessian_set is None else hessian_set
