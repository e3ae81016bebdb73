#!/usr/bin/env python3

import unittest
import sys

import numpy as np

from testutils import SymadTestCase
from .leaves import DoubleConstant, Variable
from .unary import Sin, Cos, Exp
from .binary import Addition, Product
from .projection import Projection
from .indexsets import IndexSet, ADPass
from .evaluators import ScalarEvaluator
from .curvature import CurvatureType


class _CountingEvaluator(ScalarEvaluator):
    def __init__(self, values):
        super(_CountingEvaluator, self).__init__(values)
        self.sin_calls = 0

    def sin(self, x):
        self.sin_calls += 1
        return super(_CountingEvaluator, self).sin(x)


def _node_count(expr):
    r"""Number of distinct nodes of a DAG, shared projections counted once."""
    seen = set()
    stack = [expr]
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        stack.extend(node.children)
    return len(seen)


class TestProjection(SymadTestCase):
    def test_names(self):
        p1 = Projection(Variable(0))
        p2 = Projection(Variable(0))
        self.assertTrue(p1.name.startswith("t"))
        self.assertNotEqual(p1.name, p2.name)
        self.assertEqual(Projection(Variable(0), name="s").name, "s")
        self.assertEqual(str(Projection(Sin(Variable(0)), name="s")), "s")
        self.assertEqual(Projection(Sin(Variable(0)), name="s").nice_name,
                         "s = sin(x0)")

    def test_share_and_clone(self):
        p = Projection(Sin(Variable(0)))
        self.assertIs(p.share(), p)
        c = p.clone()
        self.assertIsType(c, Projection)
        self.assertIsNot(c, p)
        self.assertIsNot(c.argument, p.argument)
        self.assertNotEqual(c.name, p.name)

    def test_share_keeps_nested_projections(self):
        p = Projection(Sin(Variable(0)))
        expr = Product(p, Variable(1))
        shared = expr.share()
        self.assertIsNot(shared, expr)
        self.assertIs(shared.argument1, p)
        cloned = expr.clone()
        self.assertIsNot(cloned.argument1, p)

    def test_evaluated_once(self):
        p = Projection(Sin(Variable(0)))
        expr = Addition(Product(p, p), Cos(p))
        ev = _CountingEvaluator([0.3])
        value = ev.evaluate(expr)
        self.assertEqual(ev.sin_calls, 1)
        self.assertAlmostEqual(value, np.sin(.3)**2 + np.cos(np.sin(.3)))

    def test_tags_and_curvature(self):
        self.assertIsOne(Projection(DoubleConstant(1.0)))
        self.assertIsZero(Projection(DoubleConstant(0.0)))
        p = Projection(Exp(Variable(0)))
        self.assertEqual(p.curvature(), CurvatureType.CONVEX)
        self.assertTrue(p.depends_on(0))
        self.assertFalse(p.depends_on(1))

    def test_differentiate(self):
        p = Projection(Sin(Variable(0)))
        d = p.differentiate(0)
        self.assertIsType(d, Projection)
        self.assertIsType(d.argument, Cos)
        self.assertIsZero(p.differentiate(1))
        self.assertIsOne(Projection(Variable(0)).differentiate(0))

    def test_differentiate_shares_derivatives(self):
        x = Variable(0)
        p = Projection(Sin(x))
        d = Product(p, p).differentiate(0)
        self.assertIsType(d, Addition)
        self.assertIs(d.argument1.argument2, d.argument2.argument2)
        f = d.evaluator()
        for v in (-0.4, 0.3):
            self.assertAlmostEqual(f([v]), 2*np.sin(v)*np.cos(v))

    def test_nested_derivative_size(self):
        p = Projection(Variable(0))
        for _ in range(14):
            p = Projection(Product(p, p))
        self.assertLess(_node_count(p.differentiate(0)), 200)
        p = Projection(Variable(0))
        for _ in range(4):
            p = Projection(Product(p, p))
        self.assertAlmostEqual(p.differentiate(0).evaluator()([1.01]),
                               16 * 1.01**15)

    def test_substitute_keeps_sharing(self):
        p = Projection(Sin(Variable(0)))
        expr = Addition(p, Product(p, 2.0))
        new = expr.substitute(0, Exp(Variable(1)))
        self.assertIsType(new.argument1, Projection)
        self.assertIs(new.argument1, new.argument2.argument1)
        self.assertIsNot(new.argument1, p)
        self.assertFalse(new.depends_on(0))
        f = new.evaluator()
        for y in (-0.5, 0.2, 1.1):
            self.assertAlmostEqual(f({1: y}), 3*np.sin(np.exp(y)))


class TestIndexSet(SymadTestCase):
    def test_hoist(self):
        index_set = IndexSet()
        c = DoubleConstant(2.0)
        x = Variable(0)
        p = Projection(Sin(x.clone()))
        self.assertIs(index_set.hoist(c), c)
        self.assertIs(index_set.hoist(x), x)
        self.assertIs(index_set.hoist(p), p)
        self.assertEqual(len(index_set), 0)
        expr = Sin(x.clone())
        t = index_set.hoist(expr)
        self.assertIsType(t, Projection)
        self.assertIs(t.argument, expr)
        self.assertEqual(len(index_set), 1)
        self.assertIn(t, index_set)
        self.assertNotIn(p, index_set)

    def test_order(self):
        index_set = IndexSet()
        t1 = index_set.hoist(Sin(Variable(0)))
        t2 = index_set.hoist(Cos(t1))
        self.assertEqual(list(index_set), [t1, t2])
        self.assertIs(index_set[1], t2)
        decls = index_set.declarations()
        self.assertEqual([name for name, _ in decls], [t1.name, t2.name])
        self.assertEqual(str(decls[1][1]), "cos(%s)" % t1.name)
        self.assertEqual(repr(index_set),
                         "<IndexSet(%s, %s)>" % (t1.name, t2.name))

    def test_ad_pass(self):
        pass1 = ADPass()
        pass2 = ADPass()
        self.assertIsNot(pass1.key, pass2.key)
        index_set = IndexSet()
        pass3 = ADPass(index_set=index_set)
        self.assertIs(pass3.index_set, index_set)
        self.assertIsNot(pass3.shared_set, pass3.hessian_set)


def run_tests():
    suite = unittest.TestLoader().loadTestsFromModule(sys.modules[__name__])
    return len(unittest.TextTestRunner(verbosity=2).run(suite).failures)


if __name__ == '__main__':
    unittest.main()
