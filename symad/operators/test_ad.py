#!/usr/bin/env python3

import unittest
import sys

import numpy as np

from testutils import SymadTestCase
from ..numutils import fd_derivative, fd_gradient, fd_hessian
from .leaves import Variable
from .unary import Sin, Asin, Exp, Logarithm
from .binary import Addition, Product, Quotient
from .projection import Projection
from .seeds import SeedBundle, Accumulator
from .indexsets import IndexSet


def _model():
    r"""log(s x1 + exp(x0 / x1) + sin(s)) with the shared s = asin(x0)."""
    x0, x1 = Variable(0), Variable(1)
    s = Projection(Asin(x0))
    return Logarithm(Addition(
        Product(s, x1),
        Addition(Exp(Quotient(x0.clone(), x1.clone())), Sin(s)),
    ))


def _projections(exprs):
    r"""All distinct projections reachable from the given DAGs."""
    found = dict()
    for expr in exprs:
        for _, _, node in expr.traverse_tree(include_root=True):
            if isinstance(node, Projection):
                found.setdefault(id(node), node)
    return list(found.values())


_POINTS = [[0.3, 1.2], [-0.2, 0.8], [0.6, 2.0]]


class TestForwardAD(SymadTestCase):
    def test_matches_gradient(self):
        expr = _model()
        f = expr.evaluator()
        for i in range(2):
            d, _ = expr.ad_forward({i: 1.0})
            ev = d.evaluator()
            for pt in _POINTS:
                with self.subTest(i=i, pt=pt):
                    self.assertAlmostEqual(ev(pt), fd_gradient(f, pt)[i],
                                           places=6)

    def test_direction(self):
        expr = _model()
        f = expr.evaluator()
        d, _ = expr.ad_forward({0: 1.0, 1: -2.0})
        ev = d.evaluator()
        for pt in _POINTS:
            grad = fd_gradient(f, pt)
            self.assertAlmostEqual(ev(pt), grad[0] - 2*grad[1], places=6)

    def test_symbolic_seed(self):
        # chain rule through x0 = sin(x2)
        x0 = Variable(0)
        expr = Logarithm(Asin(x0))
        d, _ = expr.ad_forward({0: Sin(Variable(2))})
        ev = d.evaluator()
        g = lambda t: np.log(np.arcsin(t))
        for x, z in [(0.3, 0.1), (0.5, 1.0)]:
            self.assertAlmostEqual(ev({0: x, 2: z}),
                                   fd_derivative(g, x) * np.sin(z), places=6)

    def test_single_direction_only(self):
        expr = _model()
        with self.assertRaises(ValueError):
            expr.ad_forward({0: [1.0, 0.0], 1: [0.0, 1.0]})

    def test_cached_derivative_replaced(self):
        expr = _model()
        self.assertIsNone(expr.cached_derivative)
        d1, _ = expr.ad_forward({0: 1.0})
        self.assertIs(expr.cached_derivative, d1)
        d2, _ = expr.ad_forward({1: 1.0})
        self.assertIs(expr.cached_derivative, d2)
        self.assertIsNot(d1, d2)

    def test_shared_projection_visited_once(self):
        x = Variable(0)
        p = Projection(Sin(x))
        expr = Product(p, p)
        d, index_set = expr.ad_forward({0: 1.0})
        self.assertEqual(len(index_set), 1)
        t = index_set[0]
        self.assertIsType(d, Addition)
        self.assertIs(d.argument1.argument2, t)
        self.assertIs(d.argument2.argument2, t)
        f = d.evaluator()
        for v in np.linspace(-1, 1, 5):
            self.assertAlmostEqual(f([v]), 2*np.sin(v)*np.cos(v))

    def test_index_set_completeness(self):
        expr = _model()
        existing = set(id(p) for p in _projections([expr]))
        d, index_set = expr.ad_forward({0: 1.0, 1: 0.5})
        new = [p for p in _projections([d]) if id(p) not in existing]
        self.assertTrue(new)
        for p in new:
            self.assertEqual(sum(1 for q in index_set if q is p), 1)
        # declaration order: arguments only refer to earlier projections
        declared = set(existing)
        for p in index_set:
            for q in _projections([p.argument]):
                if q is not p:
                    self.assertIn(id(q), declared)
            declared.add(id(p))

    def test_given_index_set(self):
        expr = _model()
        _, index_set = expr.ad_forward({0: 1.0})
        n = len(index_set)
        _, index_set2 = expr.ad_forward({0: 2.0}, index_set=index_set)
        self.assertIs(index_set2, index_set)
        self.assertGreater(len(index_set), n)


class TestBackwardAD(SymadTestCase):
    def test_gradient(self):
        expr = _model()
        f = expr.evaluator()
        acc = Accumulator()
        expr.ad_backward(1.0, acc)
        self.assertEqual(sorted(acc.indices()), [0, 1])
        g0, g1 = [d.evaluator() for d in acc.gradient([0, 1])]
        for pt in _POINTS:
            grad = fd_gradient(f, pt)
            self.assertListAlmostEqual([g0(pt), g1(pt)], grad, places=6)

    def test_scaled_seed(self):
        expr = _model()
        f = expr.evaluator()
        acc = Accumulator()
        expr.ad_backward(Sin(Variable(1)), acc)
        g0 = acc[0].evaluator()
        for pt in _POINTS:
            self.assertAlmostEqual(g0(pt), np.sin(pt[1]) * fd_gradient(f, pt)[0],
                                   places=6)

    def test_zero_seed(self):
        expr = _model()
        acc = Accumulator()
        index_set = expr.ad_backward(0.0, acc)
        self.assertEqual(len(acc), 0)
        self.assertEqual(len(index_set), 0)

    def test_constant_operand(self):
        x = Variable(0)
        acc = Accumulator()
        index_set = Product(3.0, Sin(x)).ad_backward(Exp(Variable(1)), acc)
        self.assertEqual(len(index_set), 0)
        self.assertEqual(acc.indices(), [0])
        g = acc[0].evaluator()
        for pt in _POINTS:
            self.assertAlmostEqual(g(pt), 3*np.cos(pt[0])*np.exp(pt[1]))
        acc = Accumulator()
        index_set = Product(Sin(x), x).ad_backward(Exp(Variable(1)), acc)
        self.assertEqual(len(index_set), 1)

    def test_restricted_accumulator(self):
        expr = _model()
        acc = Accumulator(variables=[1])
        expr.ad_backward(1.0, acc)
        self.assertEqual(acc.indices(), [1])
        self.assertNotIn(0, acc)
        self.assertIsZero(acc[0])

    def test_index_set_completeness(self):
        expr = _model()
        existing = set(id(p) for p in _projections([expr]))
        acc = Accumulator()
        index_set = expr.ad_backward(2.0, acc)
        new = [p for p in _projections(acc.gradient([0, 1]))
               if id(p) not in existing]
        self.assertTrue(new)
        for p in new:
            self.assertEqual(sum(1 for q in index_set if q is p), 1)


class TestSymmetricAD(SymadTestCase):
    def test_first_order_and_hessian(self):
        expr = _model()
        f = expr.evaluator()
        first, hessian = expr.ad_symmetric({0: [1.0, 0.0], 1: [0.0, 1.0]})
        self.assertEqual(len(first), 2)
        self.assertEqual(len(hessian), 2)
        self.assertIsNone(hessian[1][0])
        for pt in _POINTS:
            grad = fd_gradient(f, pt)
            H = fd_hessian(f, pt)
            with self.subTest(pt=pt):
                self.assertListAlmostEqual(
                    [d.evaluator()(pt) for d in first], grad, places=6
                )
                for j in range(2):
                    for k in range(j, 2):
                        self.assertAlmostEqual(hessian[j][k].evaluator()(pt),
                                               H[j, k], places=4)

    def test_backward_seed_and_gradient(self):
        expr = _model()
        f = expr.evaluator()
        acc = Accumulator()
        first, hessian = expr.ad_symmetric(
            {0: [1.0, 0.0], 1: [0.0, 1.0]}, backward_seed=2.0,
            accumulator=acc,
        )
        for pt in _POINTS:
            grad = fd_gradient(f, pt)
            H = fd_hessian(f, pt)
            self.assertListAlmostEqual(
                [acc[0].evaluator()(pt), acc[1].evaluator()(pt)], 2*grad,
                places=6
            )
            # first order results do not depend on the backward seed
            self.assertAlmostEqual(first[0].evaluator()(pt), grad[0],
                                   places=6)
            self.assertAlmostEqual(hessian[0][1].evaluator()(pt), 2*H[0, 1],
                                   places=4)

    def test_directional(self):
        expr = _model()
        f = expr.evaluator()
        s = np.array([0.5, -1.5])
        first, hessian = expr.ad_symmetric({0: [0.5], 1: [-1.5]})
        self.assertEqual(len(first), 1)
        for pt in _POINTS:
            self.assertAlmostEqual(first[0].evaluator()(pt),
                                   fd_gradient(f, pt).dot(s), places=6)
            self.assertAlmostEqual(hessian[0][0].evaluator()(pt),
                                   s.dot(fd_hessian(f, pt)).dot(s), places=4)

    def test_asin_second_derivative(self):
        x = Variable(0)
        expr = Asin(x)
        first, hessian = expr.ad_symmetric({0: [1.0]})
        d = expr.differentiate(0).evaluator()
        for t in (-0.5, 0.0, 0.3, 0.7):
            self.assertAlmostEqual(hessian[0][0].evaluator()([t]),
                                   fd_derivative(lambda u: d([u]), t),
                                   places=5)
            self.assertAlmostEqual(first[0].evaluator()([t]), d([t]))

    def test_linear_has_zero_hessian(self):
        x, y = Variable(0), Variable(1)
        expr = Addition(x, Product(3.0, y))
        first, hessian = expr.ad_symmetric({0: [1.0, 0.0], 1: [0.0, 1.0]})
        self.assertIsOne(first[0])
        self.assertEvaluatesTo(first[1], [0.0, 0.0], 3.0)
        for j in range(2):
            for k in range(j, 2):
                self.assertIsZero(hessian[j][k])

    def test_index_set_completeness(self):
        expr = _model()
        existing = set(id(p) for p in _projections([expr]))
        first_set, shared_set, hessian_set = IndexSet(), IndexSet(), IndexSet()
        first, hessian = expr.ad_symmetric(
            SeedBundle({0: [1.0, 0.0], 1: [0.0, 1.0]}),
            first_order_set=first_set, shared_set=shared_set,
            hessian_set=hessian_set,
        )
        results = list(first) + [h for row in hessian for h in row
                                 if h is not None]
        new = [p for p in _projections(results) if id(p) not in existing]
        self.assertTrue(new)
        all_sets = list(first_set) + list(shared_set) + list(hessian_set)
        for p in new:
            self.assertEqual(sum(1 for q in all_sets if q is p), 1)


class TestSeeds(SymadTestCase):
    def test_bundle(self):
        seeds = SeedBundle({0: [1.0, 0.0], 3: [0.0, 2.0]})
        self.assertEqual(seeds.directions, 2)
        self.assertEqual(seeds.variables, [0, 3])
        self.assertIsOne(seeds.seed(0, 0))
        self.assertIsZero(seeds.seed(0, 1))
        self.assertIsZero(seeds.seed(1, 0))
        self.assertEqual(len(seeds.seeds(2)), 2)
        self.assertEqual(seeds.direction(1)[3].value, 2.0)
        self.assertIs(SeedBundle.create(seeds), seeds)

    def test_inconsistent(self):
        with self.assertRaises(ValueError):
            SeedBundle({0: [1.0, 0.0], 1: [1.0]})
        with self.assertRaises(ValueError):
            SeedBundle({0: 1.0}, directions=2)

    def test_empty(self):
        self.assertEqual(SeedBundle().directions, 1)
        self.assertEqual(SeedBundle(directions=3).directions, 3)

    def test_shared_seed(self):
        p = Projection(Sin(Variable(2)))
        seeds = SeedBundle({0: p})
        self.assertIs(seeds.seed(0), p)


def run_tests():
    suite = unittest.TestLoader().loadTestsFromModule(sys.modules[__name__])
    return len(unittest.TextTestRunner(verbosity=2).run(suite).failures)


if __name__ == '__main__':
    unittest.main()
