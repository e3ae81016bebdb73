r"""@package testutils

Utilities to add more features to `unittest` classes.

This module provides a custom subclass of `unittest.TestCase`, namely
SymadTestCase, which obeys the global configuration settings in TestSettings.
The latter can be configured by the script invoking the test run.

This module also introduces a new decorator slowtest, which, when applied,
leads to the test being skipped on normal runs. The script starting the test
must set `TestSettings.skipslow` to `False` for the slow tests to be run.
"""

import sys
import functools
import unittest
import time

from symad.operators.common import NeutralElement


__all__ = [
    "SymadTestCase",
    "TestSettings",
    "slowtest",
]


def slowtest(func):
    """Decorator for skipping a test if TestSettings.skipslow is true."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if TestSettings.skipslow:
            raise unittest.SkipTest("skipping slow tests")
        return func(*args, **kwargs)
    return wrapper


def _outcome_counts(result):
    r"""Number of errors, failures and skips recorded in a `TestResult`."""
    if result is None:
        return (0, 0, 0)
    return (len(result.errors), len(result.failures), len(result.skipped))


class SymadTestCase(unittest.TestCase):
    """Tweaked baseclass for unit tests.

    By deriving from this class, you:
        * Get timed individual tests (needs `verbosity=2`) if
          TestSettings.timing is true.
        * Can implement a hook (failureHook()) that is called after a test has
          failed (or errored). It is called before tearDown(), allowing you
          to, for example, collect generated files for inspection before they
          are deleted.
    """
    @classmethod
    def setUpClass(cls):
        if cls is not SymadTestCase:
            if cls.setUp is not SymadTestCase.setUp:
                setUp = cls.setUp
                @functools.wraps(setUp)
                def setUpWrapper(self, *args, **kwargs):
                    SymadTestCase.setUp(self)
                    return setUp(self, *args, **kwargs)
                cls.setUp = setUpWrapper
            if cls.tearDown is not SymadTestCase.tearDown:
                tearDown = cls.tearDown
                @functools.wraps(tearDown)
                def tearDownWrapper(self, *args, **kwargs):
                    SymadTestCase.tearDown(self)
                    return tearDown(self, *args, **kwargs)
                cls.tearDown = tearDownWrapper

    def __outcomes(self):
        r"""Current `(errors, failures, skipped)` counts of the result."""
        return _outcome_counts(self.__result)

    def __lastTestSkipped(self):
        r"""Return whether the current test was skipped."""
        if self.__result is None:
            return False
        return self.__outcomes()[2] > self.__prevOutcomes[2]

    def __lastTestOK(self):
        r"""Return whether the current test succeeded so far."""
        if self.__result is None:
            return True
        errors, failures, _ = self.__outcomes()
        return (errors <= self.__prevOutcomes[0]
                and failures <= self.__prevOutcomes[1])

    def __shouldPrintTiming(self):
        r"""Return whether timing information should be printed."""
        if not TestSettings.timing or self.__lastTestSkipped() or not self.__lastTestOK():
            return False
        if self.__result is None:
            return True
        return (not getattr(self.__result, 'dots', False)
                and getattr(self.__result, 'showAll', False))

    def run(self, result=None):
        # Runners other than unittest's (e.g. pytest) pass their own result
        # objects without outcome lists. No bookkeeping is done for those.
        if isinstance(result, unittest.TestResult):
            self.__result = result
        else:
            self.__result = None
        self.__prevOutcomes = _outcome_counts(self.__result)
        return unittest.TestCase.run(self, result)

    def setUp(self):
        self.startTime = time.time()
        self.__tornDown = False

    def tearDown(self):
        if self.__tornDown: return
        self.__tornDown = True
        if not self.__lastTestOK():
            self.failureHook(self.__result)
        if self.__shouldPrintTiming():
            duration = time.time() - self.startTime
            print("(%.4f seconds) ... " % (duration), file=sys.stderr, end='')

    def failureHook(self, result):
        r"""Custom function called just after a fail/error occurred.

        Subclasses may implement this function to e.g. collect result data
        before tearDown() gets called.
        """
        pass

    def assertIsType(self, obj, cls):
        r"""Assert that an object is exactly of a certain type."""
        self.assertIs(type(obj), cls)

    def assertListAlmostEqual(self, a, b, places=None, delta=None):
        r"""Assert that two iterables contain (almost) the same values."""
        if places is not None and delta is not None:
            raise TypeError("Cannot use delta and places at the same time")
        if places is None and delta is None:
            places = 7
        if len(a) != len(b):
            raise self.failureException("Lists have different lengths (%d != %d)" % (len(a), len(b)))
        fails = []
        for i in range(len(a)):
            if a[i] == b[i]:
                continue
            if delta is not None:
                if abs(a[i]-b[i]) > delta:
                    fails.append(i)
            else:
                if round(abs(a[i]-b[i]), places) != 0:
                    fails.append(i)
        if fails:
            msg = "%d elements differ.\n" % len(fails)
            maxN = 9
            if len(fails) <= maxN:
                msg += "Differing elements:\n"
            else:
                msg += "First few differing elements:\n"
            msg += "\n".join(["  [{i}] {a} != {b}    (difference: {d})".format(i=i, a=a[i], b=b[i], d=(b[i]-a[i]))
                              for i in fails[:maxN]])
            raise self.failureException(msg)

    def assertIsZero(self, op):
        r"""Assert that an operator carries the zero tag."""
        self.assertIs(op.is_one_or_zero(), NeutralElement.ZERO,
                      msg="%r is not tagged as zero" % op)

    def assertIsOne(self, op):
        r"""Assert that an operator carries the one tag."""
        self.assertIs(op.is_one_or_zero(), NeutralElement.ONE,
                      msg="%r is not tagged as one" % op)

    def assertEvaluatesTo(self, op, values, expected, places=7):
        r"""Assert that an operator DAG evaluates to the expected value."""
        self.assertAlmostEqual(float(op.evaluator()(values)), expected,
                               places=places)


class TestSettings(object):
    """Global settings for tests."""
    ## Stop test run on first fail/error.
    failfast = False
    ## Whether output is buffered.\ Just information, cannot be used to toggle output buffering.
    buffering = False
    ## Whether the timing for each test case should be printed.
    timing = False
    ## Control whether tests marked as slowtest should be skipped.
    skipslow = True
