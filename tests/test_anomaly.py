"""
Test suite for anomaly conversions.

Tests cover:
- Closed-form true/eccentric/mean anomaly relations
- Kepler equation solver convergence and failure modes
- Angle normalization
- Domain and definedness errors
"""

import math

import numpy as np
import pytest

from orbis import anomaly, temp_config
from orbis import ConvergenceError, DomainError, UndefinedValueError

TWO_PI = 2 * math.pi

ELLIPTIC_ECCENTRICITIES = [0.0, 0.01, 0.1, 0.5, 0.8, 0.9]
ANGLES = np.linspace(0.0, TWO_PI, 13)[:-1] + 0.05


def angle_diff(first, second):
    """Smallest absolute difference between two angles."""
    return abs((first - second + math.pi) % TWO_PI - math.pi)


class TestTrueEccentricAnomaly:
    """Test the half-angle relation between true and eccentric anomaly."""

    def test_circular_orbit_anomalies_coincide(self):
        """For e = 0 the eccentric anomaly equals the true anomaly exactly."""
        assert anomaly.eccentric_anomaly_from_true_anomaly(1.234, 0.0) == 1.234
        assert anomaly.true_anomaly_from_eccentric_anomaly(1.234, 0.0) == 1.234

    def test_known_value(self):
        """ν = 90°, e = 0.5 gives cos(E) = 0.5, i.e. E = 60°."""
        E = anomaly.eccentric_anomaly_from_true_anomaly(math.pi / 2, 0.5)
        assert E == pytest.approx(math.pi / 3, abs=1e-14)

        nu = anomaly.true_anomaly_from_eccentric_anomaly(math.pi / 3, 0.5)
        assert nu == pytest.approx(math.pi / 2, abs=1e-14)

    def test_apoapsis(self):
        """Periapsis and apoapsis are fixed points of the relation."""
        assert anomaly.eccentric_anomaly_from_true_anomaly(0.0, 0.7) == 0.0
        E = anomaly.eccentric_anomaly_from_true_anomaly(math.pi, 0.7)
        assert E == pytest.approx(math.pi, abs=1e-12)

    def test_same_half_plane(self):
        """E and ν lie on the same side of the apse line."""
        for nu in ANGLES:
            E = anomaly.eccentric_anomaly_from_true_anomaly(nu, 0.6)
            assert (E < math.pi) == (nu < math.pi)

    @pytest.mark.parametrize("e", ELLIPTIC_ECCENTRICITIES)
    def test_inverse_pair(self, e):
        """true_from_eccentric(eccentric_from_true(ν)) returns ν."""
        for nu in ANGLES:
            E = anomaly.eccentric_anomaly_from_true_anomaly(nu, e)
            nu_back = anomaly.true_anomaly_from_eccentric_anomaly(E, e)
            assert angle_diff(nu_back, nu) < 1e-12, f"e={e}, ν={nu}"

    def test_negative_angle_is_wrapped(self):
        """Outputs are normalized into [0, 2π)."""
        E = anomaly.eccentric_anomaly_from_true_anomaly(-0.5, 0.0)
        assert E == pytest.approx(TWO_PI - 0.5)

        nu = anomaly.true_anomaly_from_eccentric_anomaly(-0.5, 0.3)
        assert 0.0 <= nu < TWO_PI


class TestMeanAnomaly:
    """Test the forward direction of Kepler's equation."""

    def test_known_value(self):
        """M = E - e sin(E)."""
        M = anomaly.mean_anomaly_from_eccentric_anomaly(math.pi / 2, 0.1)
        assert M == pytest.approx(math.pi / 2 - 0.1)

    def test_circular(self):
        """For e = 0 the mean anomaly equals the eccentric anomaly."""
        assert anomaly.mean_anomaly_from_eccentric_anomaly(2.0, 0.0) == 2.0

    def test_output_range(self):
        """Mean anomaly is wrapped into [0, 2π)."""
        for E in np.linspace(-10.0, 10.0, 41):
            M = anomaly.mean_anomaly_from_eccentric_anomaly(E, 0.5)
            assert 0.0 <= M < TWO_PI


class TestKeplerSolver:
    """Test the Newton-Raphson solution of Kepler's equation."""

    def test_zero_mean_anomaly_is_fixed_point(self):
        """M = 0 converges to E = 0 within a single iteration."""
        E = anomaly.eccentric_anomaly_from_mean_anomaly(
            0.0, 0.5, tolerance=1e-10, max_iterations=1)
        assert E == 0.0

    def test_vallado_example(self):
        """M = 235.4°, e = 0.4 gives E ≈ 220.512°."""
        M = math.radians(235.4)
        E = anomaly.eccentric_anomaly_from_mean_anomaly(M, 0.4, 1e-12)

        assert math.degrees(E) == pytest.approx(220.512, abs=1e-3)
        assert E - 0.4 * math.sin(E) == pytest.approx(M, abs=1e-11)

    @pytest.mark.parametrize("e", ELLIPTIC_ECCENTRICITIES)
    def test_inverse_pair(self, e):
        """mean_from_eccentric(eccentric_from_mean(M)) returns M."""
        tolerance = 1e-12
        for M in ANGLES:
            E = anomaly.eccentric_anomaly_from_mean_anomaly(M, e, tolerance)
            M_back = anomaly.mean_anomaly_from_eccentric_anomaly(E, e)
            assert angle_diff(M_back, M) < 10 * tolerance, f"e={e}, M={M}"

    def test_default_tolerance_from_config(self):
        """Without explicit tolerance the configured one is used."""
        E = anomaly.eccentric_anomaly_from_mean_anomaly(1.0, 0.3)
        assert abs(E - 0.3 * math.sin(E) - 1.0) < 1e-11

    def test_mean_anomaly_outside_range(self):
        """Mean anomalies beyond 2π are wrapped before solving."""
        E1 = anomaly.eccentric_anomaly_from_mean_anomaly(1.0, 0.3)
        E2 = anomaly.eccentric_anomaly_from_mean_anomaly(1.0 + 2 * TWO_PI, 0.3)
        assert E1 == pytest.approx(E2, abs=1e-12)

    def test_iteration_cap_raises(self):
        """Hitting the iteration cap is an error, not a best-effort result."""
        with pytest.raises(ConvergenceError) as excinfo:
            anomaly.eccentric_anomaly_from_mean_anomaly(
                1.0, 0.9, tolerance=1e-15, max_iterations=1)

        assert excinfo.value.iterations == 1
        assert excinfo.value.residual > 1e-15

    def test_iteration_cap_from_config(self):
        """The default cap comes from config.KEPLER_MAX_ITERATIONS."""
        with temp_config(KEPLER_MAX_ITERATIONS=1):
            with pytest.raises(ConvergenceError):
                anomaly.eccentric_anomaly_from_mean_anomaly(2.0, 0.8, 1e-14)

    def test_convergence_error_is_runtime_error(self):
        """ConvergenceError can be caught as RuntimeError."""
        with pytest.raises(RuntimeError):
            anomaly.eccentric_anomaly_from_mean_anomaly(
                1.0, 0.9, tolerance=1e-15, max_iterations=1)

    def test_invalid_tolerance(self):
        """Tolerance must be positive."""
        with pytest.raises(ValueError):
            anomaly.eccentric_anomaly_from_mean_anomaly(1.0, 0.1, tolerance=0.0)

    def test_invalid_iteration_cap(self):
        """Iteration cap must be at least one."""
        with pytest.raises(ValueError):
            anomaly.eccentric_anomaly_from_mean_anomaly(1.0, 0.1, max_iterations=0)


class TestErrors:
    """Test domain and definedness errors."""

    @pytest.mark.parametrize("e", [-0.1, 1.0, 1.5])
    def test_eccentricity_out_of_domain(self, e):
        """Eccentricity outside [0, 1) raises DomainError everywhere."""
        with pytest.raises(DomainError):
            anomaly.eccentric_anomaly_from_true_anomaly(1.0, e)
        with pytest.raises(DomainError):
            anomaly.true_anomaly_from_eccentric_anomaly(1.0, e)
        with pytest.raises(DomainError):
            anomaly.mean_anomaly_from_eccentric_anomaly(1.0, e)
        with pytest.raises(DomainError):
            anomaly.eccentric_anomaly_from_mean_anomaly(1.0, e)

    def test_domain_error_is_value_error(self):
        """DomainError can be caught as ValueError."""
        with pytest.raises(ValueError):
            anomaly.eccentric_anomaly_from_true_anomaly(1.0, 2.0)

    @pytest.mark.parametrize("value", [None, float('nan')])
    def test_undefined_angle(self, value):
        """Undefined angles raise UndefinedValueError."""
        with pytest.raises(UndefinedValueError):
            anomaly.eccentric_anomaly_from_true_anomaly(value, 0.1)
        with pytest.raises(UndefinedValueError):
            anomaly.eccentric_anomaly_from_mean_anomaly(value, 0.1)

    def test_undefined_eccentricity(self):
        """Undefined eccentricity raises UndefinedValueError."""
        with pytest.raises(UndefinedValueError):
            anomaly.true_anomaly_from_eccentric_anomaly(1.0, None)

    def test_infinite_angle(self):
        """Infinite angles are rejected."""
        with pytest.raises(ValueError):
            anomaly.mean_anomaly_from_eccentric_anomaly(float('inf'), 0.1)
