r"""@package symad.operators.seeds

Inputs and outputs of the AD passes.

A SeedBundle holds the forward seeds, i.e. one column of derivative
directions per variable, keyed by the global variable index. An Accumulator
collects the backward contributions reaching each variable.
"""

from collections import OrderedDict

from ..utils import isiterable
from . import construct
from .operator import Operator


__all__ = [
    "SeedBundle",
    "Accumulator",
]


class SeedBundle(object):
    r"""Forward seeds for a number of directions.

    Each variable index is mapped to a list with one seed per direction.
    Variables without an entry have a zero seed in all directions.

    @b Examples

    ```
        # single direction: d/dx0 + 2 d/dx1
        seeds = SeedBundle({0: 1.0, 1: 2.0})
        # two directions: unit vectors in x0 and x1
        seeds = SeedBundle({0: [1.0, 0.0], 1: [0.0, 1.0]})
    ```
    """

    def __init__(self, seeds=None, directions=None):
        r"""Create a seed bundle.

        Args:
            seeds: Mapping of variable indices to a seed (operator or number)
                or a sequence of seeds, one for each direction. A single seed
                counts as one direction.
            directions: Number of directions. Determined from `seeds` if not
                given. Required if `seeds` is empty and more than one
                direction should be used.

        Raises:
            ValueError: If the number of seeds differs between variables or
                from `directions`.
        """
        self._seeds = OrderedDict()
        for index, value in (seeds or dict()).items():
            if isinstance(value, Operator) or not isiterable(value):
                value = [value]
            column = [Operator._ensure_op(s) for s in value]
            if directions is None:
                directions = len(column)
            if len(column) != directions:
                raise ValueError(
                    "Inconsistent number of directions: variable %s has %d "
                    "seed(s), expected %d." % (index, len(column), directions)
                )
            self._seeds[index] = column
        self._directions = 1 if directions is None else directions

    @classmethod
    def create(cls, seeds):
        r"""Return `seeds` if it already is a bundle, otherwise build one."""
        if isinstance(seeds, SeedBundle):
            return seeds
        return cls(seeds)

    @property
    def directions(self):
        r"""Number of seed directions."""
        return self._directions

    @property
    def variables(self):
        r"""Indices of the variables having an explicit seed."""
        return list(self._seeds.keys())

    def seed(self, index, direction=0):
        r"""New operator for the seed of a variable in one direction."""
        try:
            return self._seeds[index][direction].share()
        except KeyError:
            return construct.zero()

    def seeds(self, index):
        r"""List of new operators for the seeds of a variable."""
        return [self.seed(index, j) for j in range(self._directions)]

    def direction(self, j):
        r"""Mapping of variable indices to the seeds of direction `j`."""
        return dict((index, column[j].share())
                    for index, column in self._seeds.items())

    def __repr__(self):
        return "<SeedBundle(directions=%d, variables=%s)>" % (
            self._directions, self.variables
        )


class Accumulator(object):
    r"""Output slots of backward AD, one per variable.

    Each contribution propagated to a variable is added to its slot. If a set
    of variable indices is given, contributions to other variables are
    dropped.
    """

    def __init__(self, variables=None):
        r"""Create an empty accumulator.

        Args:
            variables: Optional iterable of variable indices to collect. By
                default, every variable reached is collected.
        """
        self._restrict = None if variables is None else set(variables)
        self._slots = OrderedDict()

    def add(self, index, contribution):
        r"""Add `contribution` (consumed) to the slot of variable `index`."""
        if self._restrict is not None and index not in self._restrict:
            return
        if construct.is_zero(contribution):
            return
        if index in self._slots:
            contribution = construct.add(self._slots[index], contribution)
        self._slots[index] = contribution

    def __getitem__(self, index):
        r"""Accumulated DAG of variable `index` (zero if none)."""
        try:
            return self._slots[index]
        except KeyError:
            return construct.zero()

    def __contains__(self, index):
        return index in self._slots

    def __len__(self):
        return len(self._slots)

    def indices(self):
        r"""Indices of the variables having received contributions."""
        return list(self._slots.keys())

    def items(self):
        return list(self._slots.items())

    def gradient(self, variables):
        r"""List of the accumulated DAGs for the given variable indices."""
        return [self[index] for index in variables]

    def __repr__(self):
        return "<Accumulator(%s)>" % ", ".join(
            "%s: %s" % (index, expr) for index, expr in self._slots.items()
        )
