r"""@package symad.utils

General utilities for simplifying certain tasks in Python.
"""


__all__ = [
    "isiterable",
]


def isiterable(obj):
    """Check whether an object is iterable.

    Note that this returns `True` for strings, which you may or may not intend
    to check for.
    """
    try:
        iter(obj)
    except TypeError:
        return False
    return True
