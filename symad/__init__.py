r"""@package symad

Symbolic operator DAGs with automatic differentiation.

Expressions are built as directed acyclic graphs of operator nodes (constants,
variables, elementary unary and binary functions and shared projections) in
the symad.operators package. Such a graph can be evaluated numerically through
an evaluation visitor, differentiated symbolically, processed with forward,
reverse and symmetric (second order) automatic differentiation and queried for
its curvature.

The derivative graphs produced by the AD passes are meant to be consumed by a
code generator. Newly created shared subexpressions are returned in index sets
so that they can be declared as temporaries before their first use.
"""
