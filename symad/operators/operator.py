r"""@package symad.operators.operator

Base of the operator DAG system.

Every expression is a directed acyclic graph of Operator nodes. Leaves are
constants and variables (leaves.DoubleConstant, leaves.Variable), composite
nodes are elementary functions of one or two arguments (unary, binary) and
projection.Projection nodes mark subexpressions that are shared between
several parents.

Apart from the tree structure, the base class implements the public entry
points of the differentiation API. Each of the AD modes is a recursive pass
over the DAG in which the nodes call the protected `_forward()`,
`_backward()` or `_symmetric()` methods of their children. A pass is
represented by an indexsets.ADPass object, which carries the index sets that
collect newly created projections.

As a simple example, let's differentiate \f$ \log(\arcsin(x)) \f$:

~~~.py
x = Variable(0)
expr = Logarithm(Asin(x))
dexpr, new_projections = expr.ad_forward({0: 1.0})
ev = dexpr.evaluator()
print("f'(.5) =", ev([.5]))
~~~

Children are owned exclusively by their parent. The only exception are
projections, which may be referenced from any number of parents. Whenever an
algorithm needs an existing node as child of a new node, it calls share(),
which returns the projection itself or a deep copy of any other node.
"""

from abc import ABCMeta, abstractmethod
from contextlib import contextmanager
import logging
import numbers
import os
import os.path as op

import numpy as np
from mpmath import mp, fp

from ..pickle_helpers import prepare_dict, restore_dict
from .common import NeutralElement


__all__ = [
    "Operator",
]


logger = logging.getLogger(__name__)


def save_to_file(filename, data, overwrite=False, verbose=True,
                 showname='data', mkpath=True):
    r"""Save an object to disk.

    This uses `numpy.save()` to store an object in a file. Use
    load_from_file() to restore the data afterwards.

    @param filename
        The file name to store the data in. An extension ``'.npy'`` will be
        added if not already there.
    @param overwrite
        Whether to overwrite an existing file with the same name. If `False`
        (default) and such a file exists, a `RuntimeError` is raised.
    @param verbose
        Whether to print when the file was written. Default is `True`.
    @param showname
        Name to print in the confirmation message in case `verbose==True`.

    @b Notes

    The data will be put into a 1-element object array to avoid numpy trying
    to interpret the operator as a sequence.
    """
    filename = op.expanduser(filename)
    if not filename.endswith('.npy'):
        filename += '.npy'
    if mkpath:
        os.makedirs(op.normpath(op.dirname(op.abspath(filename))), exist_ok=True)
    if op.exists(filename) and not overwrite:
        raise RuntimeError("File already exists.")
    container = np.empty(1, dtype=object)
    container[0] = data
    np.save(filename, container, allow_pickle=True)
    if verbose:
        print("%s saved to: %s" % (showname, filename))


def load_from_file(filename):
    r"""Load an object from disk.

    If the object had been stored using save_to_file(), the result should be a
    perfect copy of the object.
    """
    filename = op.expanduser(filename)
    result = np.load(filename, allow_pickle=True)
    if result.shape == (1,):
        return result[0]
    # Not a single value. Return as is.
    return result


@contextmanager
def _noop_context(*_args, **_kwargs):
    r"""Empty context manager used as placeholder."""
    yield


class Operator(object, metaclass=ABCMeta):
    r"""Parent class of all operator nodes.

    Subclasses set the class attributes `symbol` (display name of the
    operation) and `kind` (an common.OperatorName) and implement:
        * _expr_str() returning the expression as a string
        * evaluate() dispatching to the visitor method of the kind
        * _differentiate()
        * _ad_forward(), _ad_backward() and _ad_symmetric()
        * _substitute() and clone()
        * _compute_curvature()

    Two caches are kept on every node. The curvature is computed once on the
    first call to curvature(). The result of the most recent forward AD pass
    is available as #cached_derivative and replaced by the next pass. Nodes
    are not meant to be modified after construction; if a subtree is mutated
    anyway, invalidate_caches() has to be called by the caller.
    """

    ## Display name of the operation, e.g. ``"asin"``.
    symbol = None
    ## Kind tag (common.OperatorName) of the operation.
    kind = None

    def __init__(self, name=None, **sub_ops):
        r"""Base class init for operators.

        The ``**sub_ops`` children given as keyword arguments here are stored
        on this object under the keys used here. Numbers are converted to
        leaves.DoubleConstant objects. The order of the keyword arguments is
        the order of the children.

        Args:
            name: (string, optional)
                Name for the operator. Can be useful to label nodes in a more
                complex DAG to indicate their role. By default, the current
                class name is used as name.
        """
        self.__sub_operators = dict()
        self.__name = name if name else self.__class__.__name__
        self._curvature = None
        self._dargument = None
        self._set_sub_ops(**sub_ops)

    @property
    def name(self):
        r"""Name given to this instance of the operator."""
        return self.__name
    @name.setter
    def name(self, name):
        self.__name = name

    @property
    def nice_name(self):
        r"""More descriptive name, which may be overridden by sub classes."""
        return self.__name

    @property
    def children(self):
        r"""List of the direct children in argument order."""
        return list(self.__sub_operators.values())

    def _set_sub_ops(self, **sub_ops):
        r"""Set/replace children under public attributes of this object."""
        sub_ops = dict((k, self._ensure_op(e)) for k, e in sub_ops.items())
        for k, e in sub_ops.items():
            setattr(self, k, e)
        self.__sub_operators.update(sub_ops)
        self._curvature = None
        self._dargument = None

    @staticmethod
    def _ensure_op(obj):
        """Ensure an object is an operator, converting it if necessary.

        Numbers are converted to `DoubleConstant` objects, anything else not
        being an operator raises a `TypeError`.
        """
        if isinstance(obj, Operator):
            return obj
        if isinstance(obj, numbers.Number) or hasattr(obj, '_mpf_'):
            from .leaves import DoubleConstant
            return DoubleConstant(obj)
        raise TypeError("Cannot use object of type %s as operator."
                        % type(obj).__name__)

    def traverse_tree(self, include_root=False, parents=None):
        r"""Generator that walks through the complete DAG.

        In each iteration, the returned values represent the current node's
        parents (as a list from root to immediate parent), its key under which
        it is stored in its parent, and the node itself. Shared projections
        are visited once per use.

        Args:
            include_root: Whether to include the root as first item. Default
                is `False`.
            parents: Optional list of parents of the root. Normally only used
                internally for the recursion.
        """
        if parents is None:
            parents = []
        if include_root:
            yield parents, "", self
        parents = parents + [self]
        for name, child in self.__sub_operators.items():
            yield parents, name, child
            for node in child.traverse_tree(include_root=False,
                                            parents=parents):
                yield node

    def print_tree(self, root_name='root', nice_names=True):
        r"""Print the whole DAG as a tree.

        Each node's key under which it is stored in its parent will be shown
        as well as its actual name and the class name.
        """
        def _p(node, name, parents=()):
            n = node.nice_name if nice_names else node.name
            print("%s%s [%s] <%s>" % (
                ". " * len(parents), name, n, type(node).__name__
            ))
        _p(self, root_name)
        for parents, name, node in self.traverse_tree():
            _p(node, name, parents)

    def save(self, filename, overwrite=False, verbose=True):
        r"""Save the operator DAG to disk.

        Args:
            filename: The file name to store the data in. An extension
                ``'.npy'`` will be added if not already there.
            overwrite: Whether to overwrite an existing file with the same
                name. If `False` (default) and such a file exists, a
                `RuntimeError` is raised.
            verbose: Whether to print when the file was written. Default is
                `True`.
        """
        save_to_file(
            filename, self, overwrite=overwrite, verbose=verbose,
            showname="%s [%s]" % (self.nice_name, type(self).__name__)
        )

    @classmethod
    def load(cls, filename):
        r"""Static function to load an operator DAG from disk."""
        return load_from_file(filename)

    def __getstate__(self):
        r"""Return a picklable state object representing the whole DAG.

        The derivative cache is not stored, since it refers to an AD pass of
        the current session.
        """
        state = prepare_dict(self.__dict__)
        state['_dargument'] = None
        return state

    def __setstate__(self, state):
        r"""Restore a complete DAG from the given unpickled state."""
        self.__dict__.update(restore_dict(state))

    def __str__(self):
        return self._expr_str()

    def __repr__(self):
        r"""Return a string representing the whole DAG."""
        cls = self.__class__.__name__
        return "<%s(%s)>" % (cls, self._expr_str())

    @abstractmethod
    def _expr_str(self):
        """String representing the expression.

        Children should be included using their `str()` representation, e.g.

            def _expr_str(self):
                return "asin(%s)" % self.argument
        """
        pass

    @classmethod
    def mpmath_context(cls, use_mp):
        r"""Return the `mpmath.mp` or `mpmath.fp` contexts.

        The `fp` context is endowed with a no-op `workdps()` context handler
        to make the two interchangeable in context().
        """
        if use_mp:
            return mp
        if not hasattr(fp, 'workdps'):
            setattr(fp, 'workdps', _noop_context)
        return fp

    @classmethod
    @contextmanager
    def context(cls, use_mp, dps):
        r"""Convenience function to be used as context manager.

        This will automatically choose the correct context (`mp` or `fp`)
        based on the choice of `use_mp` and configure the desired decimal
        places.

        Args:
            use_mp: Whether to use `mp` (if `True`) or `fp`.
            dps:    Decimal places to use in `mp` computations.
        """
        ctx = cls.mpmath_context(use_mp)
        if not use_mp or dps is None:
            dps = mp.dps
        with ctx.workdps(dps):
            yield ctx

    # Evaluation

    @abstractmethod
    def evaluate(self, visitor):
        r"""Evaluate this node using an evaluators.EvaluationBase visitor.

        The children are evaluated first and the visitor method belonging to
        the kind of this node is called with the results.
        """
        pass

    def evaluator(self, use_mp=False, strict=False):
        r"""Create a callable evaluator for this DAG.

        Args:
            use_mp: Whether to evaluate using `mpmath` arbitrary precision
                operations instead of numpy floating point operations.
            strict: Whether floating point problems (e.g. evaluating a
                logarithm of a negative number) should raise a
                `FloatingPointError` instead of producing `nan` or `inf`.
        """
        from .evaluators import OperatorEvaluator
        return OperatorEvaluator(self, use_mp=use_mp, strict=strict)

    # Symbolic differentiation

    def differentiate(self, index):
        r"""Return a new DAG of the derivative w.r.t. the variable `index`.

        The derivative of each projection is computed once. If it is not a
        leaf, it is wrapped in a new projection shared by all uses.
        """
        return self._differentiate(index, dict())

    @abstractmethod
    def _differentiate(self, index, memo):
        pass

    def ad_forward(self, seeds, index_set=None):
        r"""Forward mode AD: propagate a tangent seed through the DAG.

        Args:
            seeds: seeds.SeedBundle or mapping of variable indices to seeds
                (operators or numbers). Variables without seed have a zero
                seed. Only one direction can be propagated per pass.
            index_set: Optional indexsets.IndexSet to append newly created
                projections to. A new one is created if not given.

        @return A pair ``(derivative, index_set)``.
        """
        from .seeds import SeedBundle
        from .indexsets import ADPass
        seeds = SeedBundle.create(seeds)
        if seeds.directions != 1:
            raise ValueError("Forward AD propagates a single direction, got %d."
                             % seeds.directions)
        ad_pass = ADPass(index_set=index_set)
        result = self._forward(seeds, ad_pass)
        logger.debug("Forward AD of %s created %d projection(s).",
                     self.name, len(ad_pass.index_set))
        return result, ad_pass.index_set

    def ad_backward(self, seed, accumulator, index_set=None):
        r"""Reverse mode AD: propagate an adjoint seed to the variables.

        The contribution reaching each variable is added to the corresponding
        slot of `accumulator` (a seeds.Accumulator). The `seed` is consumed by
        this call, i.e. it becomes part of the accumulated DAGs and must not be
        used by the caller afterwards.

        @return The index set with all projections created during the pass.
        """
        from .indexsets import ADPass
        ad_pass = ADPass(index_set=index_set)
        self._backward(self._ensure_op(seed), accumulator, ad_pass)
        logger.debug("Backward AD of %s created %d projection(s).",
                     self.name, len(ad_pass.index_set))
        return ad_pass.index_set

    def ad_symmetric(self, seeds, backward_seed=1.0, accumulator=None,
                     first_order_set=None, shared_set=None, hessian_set=None):
        r"""Symmetric (second order) AD.

        Computes for the forward seed matrix \f$ S \f$ (one column per
        direction) and backward seed \f$ l \f$ the first order directional
        derivatives \f$ \nabla f^T S \f$ and the upper triangle of
        \f$ l\, S^T \nabla^2 f\, S \f$. The gradient contributions
        \f$ l \nabla f \f$ are added to `accumulator`.

        Args:
            seeds: seeds.SeedBundle or mapping of variable indices to
                sequences of seeds, one for each direction.
            backward_seed: Backward seed \f$ l \f$. Default is `1.0`.
            accumulator: Optional seeds.Accumulator for the gradient.
            first_order_set: Optional indexsets.IndexSet collecting the
                projections of first order results.
            shared_set: Optional indexsets.IndexSet collecting the
                projections of local derivatives and backward seeds.
            hessian_set: Optional indexsets.IndexSet collecting the
                projections of Hessian entries.

        @return A pair ``(first_order, hessian)``, where `first_order` is a
            list with one operator per direction and `hessian` a list of rows
            with `hessian[j][k]` set for `j <= k` and `None` below the
            diagonal.
        """
        from .seeds import SeedBundle, Accumulator
        from .indexsets import ADPass
        seeds = SeedBundle.create(seeds)
        if accumulator is None:
            accumulator = Accumulator()
        ad_pass = ADPass(first_order_set=first_order_set,
                         shared_set=shared_set, hessian_set=hessian_set)
        first, hessian = self._symmetric(self._ensure_op(backward_seed),
                                         seeds, accumulator, ad_pass)
        logger.debug("Symmetric AD of %s created %d/%d/%d projection(s).",
                     self.name, len(ad_pass.first_order_set),
                     len(ad_pass.shared_set), len(ad_pass.hessian_set))
        return first, hessian

    @property
    def cached_derivative(self):
        r"""Result of the most recent forward AD pass against this node."""
        if self._dargument is None:
            return None
        return self._dargument[1]

    def _forward(self, seeds, ad_pass):
        r"""Forward pass entry called by parents, caching the result."""
        if self._dargument is not None and self._dargument[0] is ad_pass.key:
            return self._dargument[1].share()
        result = self._ad_forward(seeds, ad_pass)
        self._dargument = (ad_pass.key, result)
        return result

    def _backward(self, seed, accumulator, ad_pass):
        r"""Backward pass entry called by parents."""
        self._ad_backward(seed, accumulator, ad_pass)

    def _symmetric(self, l, seeds, accumulator, ad_pass):
        r"""Symmetric pass entry called by parents."""
        return self._ad_symmetric(l, seeds, accumulator, ad_pass)

    @abstractmethod
    def _ad_forward(self, seeds, ad_pass):
        r"""Return the directional derivative of this node."""
        pass

    @abstractmethod
    def _ad_backward(self, seed, accumulator, ad_pass):
        r"""Propagate `seed` to the children and accumulate at the leaves."""
        pass

    @abstractmethod
    def _ad_symmetric(self, l, seeds, accumulator, ad_pass):
        r"""Return first order results and Hessian upper triangle."""
        pass

    # Structure

    def substitute(self, index, replacement):
        r"""Return a new DAG with the variable `index` replaced.

        This does not modify the current DAG. Projections used at several
        places are substituted once and remain shared in the result.
        """
        return self._substitute(index, self._ensure_op(replacement), dict())

    @abstractmethod
    def _substitute(self, index, replacement, memo):
        pass

    @abstractmethod
    def _copy(self, copy_child):
        r"""New node of the same kind with children `copy_child(child)`."""
        pass

    def clone(self):
        r"""Return a deep copy not sharing any node with this DAG."""
        return self._copy(lambda op: op.clone())

    def share(self):
        r"""Return this node for use as child of another parent.

        Only projections can have several parents. All other nodes are
        copied, while projections inside the copy are still shared.
        """
        return self._copy(lambda op: op.share())

    def is_one_or_zero(self):
        r"""Simplification tag (common.NeutralElement) of this node."""
        return NeutralElement.NEITHER

    def depends_on(self, index):
        r"""Whether the DAG contains the variable `index`."""
        return any(child.depends_on(index) for child in self.children)

    def variables(self):
        r"""Sorted list of the indices of all variables in the DAG."""
        indices = set()
        for _, _, node in self.traverse_tree(include_root=True):
            index = getattr(node, 'index', None)
            if index is not None:
                indices.add(index)
        return sorted(indices)

    # Curvature

    def curvature(self):
        r"""Return the (cached) curvature.CurvatureType of this DAG."""
        if self._curvature is None:
            self._curvature = self._compute_curvature()
        return self._curvature

    @abstractmethod
    def _compute_curvature(self):
        pass

    def invalidate_caches(self):
        r"""Forget cached curvatures and derivatives in the whole DAG."""
        for _, _, node in self.traverse_tree(include_root=True):
            node._clear_caches()

    def _clear_caches(self):
        self._curvature = None
        self._dargument = None
