r"""@package symad.operators.common

Closed enumerations shared by all operator kinds.
"""

from enum import Enum


__all__ = [
    "OperatorName",
    "NeutralElement",
    "VariableType",
]


class OperatorName(Enum):
    r"""Kind tag of an operator node.

    Used for dispatch and simplification decisions without inspecting the
    Python type of a node.
    """
    DOUBLE_CONSTANT = "double_constant"
    VARIABLE = "variable"
    PROJECTION = "projection"
    ADDITION = "addition"
    SUBTRACTION = "subtraction"
    PRODUCT = "product"
    QUOTIENT = "quotient"
    POWER = "power"
    POWER_INT = "power_int"
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    ASIN = "asin"
    ACOS = "acos"
    ATAN = "atan"
    EXP = "exp"
    LOGARITHM = "logarithm"


class NeutralElement(Enum):
    r"""Simplification tag of an operator.

    Only constants created as exactly zero or one carry `ZERO` or `ONE`. All
    simplification shortcuts key on this tag, never on a numeric comparison.
    """
    ZERO = 0
    ONE = 1
    NEITHER = 2


class VariableType(Enum):
    r"""Role of a variable in the model it belongs to."""
    DIFFERENTIAL_STATE = "x"
    ALGEBRAIC_STATE = "z"
    CONTROL = "u"
    PARAMETER = "p"
    DISTURBANCE = "w"
    TIME = "t"
    ONLINE_DATA = "od"
