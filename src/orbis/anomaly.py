"""
Anomaly conversions for elliptical orbits
==========================================

Pure functions converting among true (ν), eccentric (E) and mean (M) anomaly,
including the Newton-Raphson solution of Kepler's equation.

All angles are in radians. Every function returns an angle wrapped into
[0, 2π) so that repeated round trips compare stably under a tolerance.
Only elliptical orbits (0 <= e < 1) are supported; other eccentricities raise
:class:`~orbis.errors.DomainError`.

Examples
--------
>>> from orbis import anomaly
>>> E = anomaly.eccentric_anomaly_from_mean_anomaly(0.5, 0.1)
>>> nu = anomaly.true_anomaly_from_eccentric_anomaly(E, 0.1)
"""

import logging
import math
from typing import Optional

from .config import config
from .errors import ConvergenceError, DomainError
from .utils import require_defined, wrap_to_two_pi

logger = logging.getLogger(__name__)


def _check_angle(angle, name: str) -> float:
    angle = float(require_defined(angle, name))
    if math.isinf(angle):
        raise ValueError(f"{name} must be finite, got {angle}")
    return angle


def _check_eccentricity(eccentricity) -> float:
    eccentricity = float(require_defined(eccentricity, "Eccentricity"))
    if not 0.0 <= eccentricity < 1.0:
        raise DomainError(
            f"Eccentricity must be in [0, 1) for elliptical anomaly "
            f"conversions, got {eccentricity}")
    return eccentricity


def eccentric_anomaly_from_true_anomaly(true_anomaly: float,
                                        eccentricity: float) -> float:
    """
    Convert true anomaly to eccentric anomaly.

    Uses the half-angle relation tan(E/2) = sqrt((1-e)/(1+e)) tan(ν/2),
    evaluated with atan2 so that ν = π is handled without overflow.

    Parameters
    ----------
    true_anomaly : float
        True anomaly ν [rad]
    eccentricity : float
        Eccentricity, 0 <= e < 1

    Returns
    -------
    float
        Eccentric anomaly E [rad] in [0, 2π)
    """
    nu = _check_angle(true_anomaly, "True anomaly")
    e = _check_eccentricity(eccentricity)
    if e == 0.0:
        return wrap_to_two_pi(nu)
    half = 0.5 * nu
    E = 2.0 * math.atan2(math.sqrt(1.0 - e) * math.sin(half),
                         math.sqrt(1.0 + e) * math.cos(half))
    return wrap_to_two_pi(E)


def true_anomaly_from_eccentric_anomaly(eccentric_anomaly: float,
                                        eccentricity: float) -> float:
    """
    Convert eccentric anomaly to true anomaly.

    Inverse of :func:`eccentric_anomaly_from_true_anomaly`:
    tan(ν/2) = sqrt((1+e)/(1-e)) tan(E/2).

    Parameters
    ----------
    eccentric_anomaly : float
        Eccentric anomaly E [rad]
    eccentricity : float
        Eccentricity, 0 <= e < 1

    Returns
    -------
    float
        True anomaly ν [rad] in [0, 2π)
    """
    E = _check_angle(eccentric_anomaly, "Eccentric anomaly")
    e = _check_eccentricity(eccentricity)
    if e == 0.0:
        return wrap_to_two_pi(E)
    half = 0.5 * E
    nu = 2.0 * math.atan2(math.sqrt(1.0 + e) * math.sin(half),
                          math.sqrt(1.0 - e) * math.cos(half))
    return wrap_to_two_pi(nu)


def mean_anomaly_from_eccentric_anomaly(eccentric_anomaly: float,
                                        eccentricity: float) -> float:
    """
    Convert eccentric anomaly to mean anomaly with Kepler's equation,
    M = E - e sin(E).

    Returns
    -------
    float
        Mean anomaly M [rad] in [0, 2π)
    """
    E = _check_angle(eccentric_anomaly, "Eccentric anomaly")
    e = _check_eccentricity(eccentricity)
    return wrap_to_two_pi(E - e * math.sin(E))


def eccentric_anomaly_from_mean_anomaly(mean_anomaly: float,
                                        eccentricity: float,
                                        tolerance: Optional[float] = None,
                                        max_iterations: Optional[int] = None
                                        ) -> float:
    """
    Solve Kepler's equation M = E - e sin(E) for the eccentric anomaly.

    Newton-Raphson iteration on f(E) = E - e sin(E) - M, seeded with E0 = M.
    Iteration stops as soon as |f(E)| < tolerance.

    Notes
    -----
    The M seed converges slowly for highly eccentric orbits with small mean
    anomaly: at e = 0.99 some M (e.g. M ≈ 0.17) need more than the default 50
    iterations. Pass a larger ``max_iterations`` (or raise
    config.KEPLER_MAX_ITERATIONS) for e close to 1.

    Parameters
    ----------
    mean_anomaly : float
        Mean anomaly M [rad]
    eccentricity : float
        Eccentricity, 0 <= e < 1
    tolerance : float, optional
        Residual tolerance on |f(E)|. Defaults to config.KEPLER_TOLERANCE
    max_iterations : int, optional
        Iteration cap. Defaults to config.KEPLER_MAX_ITERATIONS

    Returns
    -------
    float
        Eccentric anomaly E [rad] in [0, 2π)

    Raises
    ------
    DomainError
        If eccentricity is outside [0, 1)
    ConvergenceError
        If the residual is still above tolerance after max_iterations
    ValueError
        If tolerance or max_iterations is not positive
    """
    M = wrap_to_two_pi(_check_angle(mean_anomaly, "Mean anomaly"))
    e = _check_eccentricity(eccentricity)

    if tolerance is None:
        tolerance = config.KEPLER_TOLERANCE
    if max_iterations is None:
        max_iterations = config.KEPLER_MAX_ITERATIONS
    if not tolerance > 0.0:
        raise ValueError(f"Tolerance must be positive, got {tolerance}")
    if max_iterations < 1:
        raise ValueError(
            f"Iteration cap must be at least 1, got {max_iterations}")

    E = M
    residual = math.inf
    for iteration in range(1, max_iterations + 1):
        residual = E - e * math.sin(E) - M
        if abs(residual) < tolerance:
            logger.debug(
                "Kepler solve converged: M=%.15g e=%.15g E=%.15g "
                "after %d iteration(s), residual %.3e",
                M, e, E, iteration, residual)
            return wrap_to_two_pi(E)
        E -= residual / (1.0 - e * math.cos(E))

    raise ConvergenceError(
        f"Kepler's equation did not converge for M={M}, e={e} within "
        f"{max_iterations} iterations (residual {abs(residual):.3e}, "
        f"tolerance {tolerance:.3e})",
        iterations=max_iterations, residual=abs(residual))
