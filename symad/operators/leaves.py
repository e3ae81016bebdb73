r"""@package symad.operators.leaves

Leaves of operator DAGs: constants and variables.
"""

from .common import OperatorName, NeutralElement, VariableType
from .curvature import CurvatureType
from .operator import Operator


__all__ = [
    "DoubleConstant",
    "Variable",
]


class DoubleConstant(Operator):
    r"""Represent a constant value.

    Besides its value, a constant carries a common.NeutralElement tag telling
    whether it is exactly zero or one. If no tag is given, it is determined
    from the value at construction time. Simplification shortcuts only ever
    look at this tag.
    """
    symbol = "const"
    kind = OperatorName.DOUBLE_CONSTANT

    def __init__(self, value=0.0, neutral=None, name='const'):
        r"""Init function.

        Args:
            value:  The constant value (a float or `mpmath` number).
            neutral: common.NeutralElement tag. Inferred from `value` if not
                    given.
            name:   Name of the operator (e.g. for print_tree()).
        """
        super(DoubleConstant, self).__init__(name=name)
        ## The constant value this operator represents.
        self.value = value
        if neutral is None:
            if value == 0:
                neutral = NeutralElement.ZERO
            elif value == 1:
                neutral = NeutralElement.ONE
            else:
                neutral = NeutralElement.NEITHER
        self._neutral = neutral

    def _expr_str(self):
        return "%s" % self.value

    @property
    def nice_name(self):
        return "%s (%s)" % (self.name, self.value)

    def is_one_or_zero(self):
        return self._neutral

    def evaluate(self, visitor):
        return visitor.constant(self.value)

    def _differentiate(self, index, memo):
        return DoubleConstant(0.0, NeutralElement.ZERO)

    def _ad_forward(self, seeds, ad_pass):
        return DoubleConstant(0.0, NeutralElement.ZERO)

    def _ad_backward(self, seed, accumulator, ad_pass):
        pass

    def _ad_symmetric(self, l, seeds, accumulator, ad_pass):
        from .symmetric import zero_first_order, zero_hessian
        return zero_first_order(seeds.directions), zero_hessian(seeds.directions)

    def _substitute(self, index, replacement, memo):
        return self.clone()

    def _copy(self, copy_child):
        return DoubleConstant(self.value, self._neutral, name=self.name)

    def depends_on(self, index):
        return False

    def _compute_curvature(self):
        return CurvatureType.CONSTANT


class Variable(Operator):
    r"""Independent variable identified by a global index.

    The index is what differentiate(), substitute() and the AD seeds refer
    to. The common.VariableType only determines the default name, e.g. `x0`
    for the differential state with index 0 or `u2` for a control.
    """
    symbol = "var"
    kind = OperatorName.VARIABLE

    def __init__(self, index, var_type=VariableType.DIFFERENTIAL_STATE,
                 name=None):
        r"""Init function.

        Args:
            index:  Global index of the variable.
            var_type: common.VariableType of the variable.
            name:   Name of the variable. Default is the type's short name
                    followed by the index.
        """
        if name is None:
            name = "%s%d" % (var_type.value, index)
        super(Variable, self).__init__(name=name)
        self.index = index
        self.var_type = var_type

    def _expr_str(self):
        return self.name

    def evaluate(self, visitor):
        return visitor.variable(self)

    def _differentiate(self, index, memo):
        if index == self.index:
            return DoubleConstant(1.0, NeutralElement.ONE)
        return DoubleConstant(0.0, NeutralElement.ZERO)

    def _ad_forward(self, seeds, ad_pass):
        return seeds.seed(self.index)

    def _ad_backward(self, seed, accumulator, ad_pass):
        accumulator.add(self.index, seed)

    def _ad_symmetric(self, l, seeds, accumulator, ad_pass):
        from .symmetric import zero_hessian
        accumulator.add(self.index, l)
        return seeds.seeds(self.index), zero_hessian(seeds.directions)

    def _substitute(self, index, replacement, memo):
        if index == self.index:
            return replacement.share()
        return self.clone()

    def _copy(self, copy_child):
        return Variable(self.index, self.var_type, name=self.name)

    def depends_on(self, index):
        return index == self.index

    def _compute_curvature(self):
        return CurvatureType.AFFINE
