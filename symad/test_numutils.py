#!/usr/bin/env python3

import unittest
import sys

import numpy as np

from testutils import SymadTestCase
from .numutils import (fd_derivative, fd_second_derivative, fd_gradient,
                       fd_hessian, raise_all_warnings)


def _poly(x):
    return x[0]**3 + 2*x[0]*x[1] - x[1]**2


class TestNumutils(SymadTestCase):
    def test_fd_derivative(self):
        f = lambda x: x**3 - 2*x
        self.assertAlmostEqual(fd_derivative(f, 1.5), 3*1.5**2 - 2, places=7)
        self.assertAlmostEqual(fd_second_derivative(f, 1.5), 6*1.5, places=5)

    def test_fd_gradient(self):
        x = [0.5, -1.0]
        grad = fd_gradient(_poly, x)
        self.assertEqual(grad.shape, (2,))
        self.assertListAlmostEqual(grad, [3*0.25 - 2, 1.0 + 2], places=7)

    def test_fd_hessian(self):
        H = fd_hessian(_poly, [0.5, -1.0])
        self.assertEqual(H.shape, (2, 2))
        self.assertAlmostEqual(H[0, 0], 3.0, places=5)
        self.assertAlmostEqual(H[0, 1], 2.0, places=5)
        self.assertAlmostEqual(H[1, 0], 2.0, places=5)
        self.assertAlmostEqual(H[1, 1], -2.0, places=5)

    def test_raise_all_warnings(self):
        old = np.geterr()
        with self.assertRaises(FloatingPointError):
            with raise_all_warnings():
                np.log(np.linspace(-1, 1, 10))
        self.assertEqual(np.geterr(), old)
        with raise_all_warnings():
            self.assertAlmostEqual(np.log(np.e), 1.0)


def run_tests():
    suite = unittest.TestLoader().loadTestsFromModule(sys.modules[__name__])
    return len(unittest.TextTestRunner(verbosity=2).run(suite).failures)


if __name__ == '__main__':
    unittest.main()
