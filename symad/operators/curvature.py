r"""@package symad.operators.curvature

Convexity classification of operator DAGs.

The classes form a small lattice with `NEITHER` as the fallback element: an
operator only reports a more specific class if the composition rules below can
prove it. Each operator kind decides which of the helper rules in this module
applies to it (see the `_compute_curvature()` implementations of the
operators).
"""

from enum import IntEnum


__all__ = [
    "CurvatureType",
    "negate_curvature",
    "sum_curvature",
    "scale_curvature",
    "compose_curvature",
]


class CurvatureType(IntEnum):
    r"""Curvature of an expression, ordered for propagation purposes."""
    CONSTANT = 0
    AFFINE = 1
    CONVEX = 2
    CONCAVE = 3
    NEITHER = 4

    def is_convex(self):
        r"""Whether the class implies convexity (constants and affine included)."""
        return self in (CurvatureType.CONSTANT, CurvatureType.AFFINE,
                        CurvatureType.CONVEX)

    def is_concave(self):
        r"""Whether the class implies concavity (constants and affine included)."""
        return self in (CurvatureType.CONSTANT, CurvatureType.AFFINE,
                        CurvatureType.CONCAVE)


def negate_curvature(c):
    r"""Curvature of `-f` given the curvature `c` of `f`."""
    if c == CurvatureType.CONVEX:
        return CurvatureType.CONCAVE
    if c == CurvatureType.CONCAVE:
        return CurvatureType.CONVEX
    return c


def sum_curvature(c1, c2):
    r"""Curvature of `f + g` given the curvatures of `f` and `g`."""
    if c1 == CurvatureType.CONSTANT:
        return c2
    if c2 == CurvatureType.CONSTANT:
        return c1
    if c1 == CurvatureType.AFFINE and c2 == CurvatureType.AFFINE:
        return CurvatureType.AFFINE
    if c1.is_convex() and c2.is_convex():
        return CurvatureType.CONVEX
    if c1.is_concave() and c2.is_concave():
        return CurvatureType.CONCAVE
    return CurvatureType.NEITHER


def scale_curvature(c, factor):
    r"""Curvature of `a f` for a known numeric factor `a`."""
    if factor == 0:
        return CurvatureType.CONSTANT
    if factor < 0:
        return negate_curvature(c)
    return c


def compose_curvature(c, intrinsic, nondecreasing=True):
    r"""Curvature of `h(f)` for a monotone function `h`.

    @param c
        Curvature of the argument `f`.
    @param intrinsic
        Curvature of `h` itself, i.e. `CONVEX` or `CONCAVE`.
    @param nondecreasing
        Whether `h` is non-decreasing (`True`) or non-increasing (`False`).

    A constant argument gives a constant, an affine argument gives the
    intrinsic curvature. Otherwise, the argument's curvature is preserved if
    it agrees with the intrinsic one and `h` is non-decreasing, or if it is
    the opposite one and `h` is non-increasing.
    """
    if c == CurvatureType.CONSTANT:
        return CurvatureType.CONSTANT
    if c == CurvatureType.AFFINE:
        return intrinsic
    if nondecreasing and c == intrinsic:
        return intrinsic
    if not nondecreasing and c == negate_curvature(intrinsic):
        return intrinsic
    return CurvatureType.NEITHER
