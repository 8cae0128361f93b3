"""
Exception types raised by Orbis.

All errors are reported synchronously to the immediate caller. They subclass
the built-in exceptions that the rest of the package raises for the same
class of problem, so callers catching ``ValueError`` / ``RuntimeError`` keep
working.
"""


class UndefinedValueError(ValueError):
    """An accessor or operation was invoked on an undefined value."""


class DomainError(ValueError):
    """An input lies outside the domain of the requested method.

    Raised for instance when an elliptical-only anomaly method receives an
    eccentricity outside ``[0, 1)``.
    """


class ConvergenceError(RuntimeError):
    """An iterative solver hit its iteration cap without meeting tolerance.

    Attributes
    ----------
    iterations : int
        Number of iterations performed
    residual : float
        Last residual reached by the solver
    """

    def __init__(self, message, iterations=None, residual=None):
        super().__init__(message)
        self.iterations = iterations
        self.residual = residual
