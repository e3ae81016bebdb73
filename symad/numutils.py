r"""@package symad.numutils

Miscellaneous numerical utilities and helpers.

The finite difference helpers are used to check derivative DAGs against the
numeric values of the original functions.


@b Examples

```
    >>> round(fd_derivative(lambda x: x**2, 3.0), 6)
    6.0
```
"""

from contextlib import contextmanager
import warnings

import numpy as np


__all__ = [
    "fd_derivative",
    "fd_second_derivative",
    "fd_gradient",
    "fd_hessian",
    "raise_all_warnings",
]


def fd_derivative(f, x, h=1e-6):
    r"""Second order accurate centered difference approximation of `f'(x)`."""
    return (f(x + h) - f(x - h)) / (2 * h)


def fd_second_derivative(f, x, h=1e-4):
    r"""Centered difference approximation of `f''(x)`."""
    return (f(x + h) - 2 * f(x) + f(x - h)) / h**2


def _shifted(x, i, h):
    y = np.array(x, dtype=float)
    y[i] += h
    return y


def fd_gradient(f, x, h=1e-6):
    r"""Centered difference approximation of the gradient of `f` at `x`.

    @param f
        Callable taking a sequence of values.
    @param x
        Point (sequence of floats) at which to approximate the gradient.
    @param h
        Step size.
    """
    return np.array([
        (f(_shifted(x, i, h)) - f(_shifted(x, i, -h))) / (2 * h)
        for i in range(len(x))
    ])


def fd_hessian(f, x, h=1e-4):
    r"""Centered difference approximation of the Hessian of `f` at `x`."""
    n = len(x)
    H = np.zeros((n, n))
    for i in range(n):
        for j in range(i, n):
            H[i, j] = H[j, i] = (
                f(_shifted(_shifted(x, i, h), j, h))
                - f(_shifted(_shifted(x, i, h), j, -h))
                - f(_shifted(_shifted(x, i, -h), j, h))
                + f(_shifted(_shifted(x, i, -h), j, -h))
            ) / (4 * h**2)
    return H


@contextmanager
def raise_all_warnings():
    r"""Context manager for turning numpy and native warnings into exceptions.

    For example:
    ```
        with raise_all_warnings():
            np.log(np.linspace(-1, 1, 10))
    ```
    Without the `raise_all_warnings()` context, the above code would just
    issue a warning and produce `nan` values. This allows catching the
    exception to act upon it, e.g.
    ```
        with raise_all_warnings():
            try:
                np.log(np.linspace(-1, 1, 10))
            except FloatingPointError:
                print("Could not compute.")
    ```
    """
    old_settings = np.seterr(divide='raise', over='raise', invalid='raise')
    try:
        with warnings.catch_warnings():
            warnings.filterwarnings('error', category=RuntimeWarning)
            yield
    finally:
        np.seterr(**old_settings)
