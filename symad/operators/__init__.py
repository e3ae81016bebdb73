r"""@package symad.operators

Operator DAG system for composing elementary functions and differentiating
them.

Each node represents either a leaf (a constant or a variable identified by its
global index), an elementary function of one argument (like
\f$ \arcsin(x) \f$ or \f$ \log(x) \f$), an arithmetic operation of two
arguments or a projection, i.e. a named subexpression that may be used by
several parents.

Derivatives are computed in terms of new operator DAGs:
    * Operator.differentiate() builds the partial derivative w.r.t. one
      variable directly.
    * Operator.ad_forward() propagates a tangent seed bottom-up.
    * Operator.ad_backward() propagates an adjoint seed top-down and collects
      the gradient in a seeds.Accumulator.
    * Operator.ad_symmetric() computes first order directional derivatives
      and the corresponding block of the Hessian.

During construction, only the exact zero/one shortcuts of the
construct module are applied. Subexpressions used more than once are hoisted
into projections collected in indexsets.IndexSet objects, which can be
declared in order by a code generator.

NOTE: Nodes own their children. Only projections may be referenced from more
      than one parent. Never attach the same non-projection node to two
      parents; use `node.share()` instead.

The numeric values are computed by evaluation visitors (see the evaluators
module). All DAGs are picklable and can be stored using Operator.save().
"""

from .common import OperatorName, NeutralElement, VariableType
from .curvature import CurvatureType
from .operator import Operator
from .leaves import DoubleConstant, Variable
from .projection import Projection
from .unary import (UnaryOperator, Sin, Cos, Tan, Asin, Acos, Atan, Exp,
                    Logarithm, PowerInt)
from .binary import (BinaryOperator, Addition, Subtraction, Product, Quotient,
                     Power)
from .indexsets import IndexSet, ADPass
from .seeds import SeedBundle, Accumulator
from .evaluators import (ScalarEvaluator, IntervalEvaluator, SympyEvaluator,
                         OperatorEvaluator)
