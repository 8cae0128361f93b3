"""
Classical Orbital Elements
==========================

ClassicalOrbitalElements (COE) class definition: the six Keplerian elements,
their anomaly bookkeeping, and conversion to and from a Cartesian state.

Angles are in radians, lengths in km, gravitational parameters in km³/s².
The gravitational parameter is never stored; it is passed to every query
that depends on the central body.

Degenerate orbits
-----------------
When converting a Cartesian state to elements, angles that are undefined on
the singular loci are replaced as follows:

- circular (e < config.SNAP_TO_CIRCULAR): e = 0, AOP = 0 and the true
  anomaly holds the argument of latitude (measured from the ascending node);
- equatorial (sin i < config.SNAP_TO_EQUATORIAL): RAAN = 0 and the AOP holds
  the longitude of periapsis (measured from the x axis, in the direction of
  motion);
- circular and equatorial: RAAN = 0, AOP = 0 and the true anomaly holds the
  true longitude.

The conversion to Cartesian applies the elements as given, so elements
produced under this convention map back to the same position and velocity.
"""

import logging
import math
from typing import List, Optional, Union

import numpy as np
from scipy.spatial.transform import Rotation

from . import anomaly
from .config import config
from .errors import DomainError, UndefinedValueError
from .frames import Frame
from .state import CartesianState
from .utils import TWO_PI, as_scalar, require_defined, validation_error, wrap_to_two_pi

logger = logging.getLogger(__name__)

_Z_AXIS = np.array([0.0, 0.0, 1.0])
_X_AXIS = np.array([1.0, 0.0, 0.0])


def _check_gravitational_parameter(mu) -> float:
    mu = float(require_defined(mu, "Gravitational parameter"))
    if not math.isfinite(mu) or mu <= 0.0:
        raise ValueError(f"Gravitational parameter must be positive, got {mu}")
    return mu


def _angle_difference(first: float, second: float) -> float:
    """Smallest signed difference between two angles, in [-π, π)."""
    return wrap_to_two_pi(first - second + math.pi) - math.pi


class ClassicalOrbitalElements:
    """
    Classical (Keplerian) orbital elements.

    COE is immutable. Any element may be undefined (None); the set as a whole
    is defined only when all six are.

    Parameters
    ----------
    semi_major_axis : float or None
        Semi-major axis a [km]; positive for elliptical orbits
    eccentricity : float or None
        Eccentricity e [-]
    inclination : float or None
        Inclination i [rad], in [0, π]
    raan : float or None
        Right ascension of the ascending node Ω [rad]
    aop : float or None
        Argument of periapsis ω [rad]
    true_anomaly : float or None
        True anomaly ν [rad]
    validate : bool, optional
        Whether to run physical consistency checks (default True).
        Failures raise or warn according to config.STRICT_VALIDATION.

    Examples
    --------
    >>> from orbis import COE, Frame
    >>> coe = COE(7000.0, 0.01, 0.9, 0.0, 0.0, 0.0)
    >>> coe.orbital_period(398600.4418)
    >>> state = coe.get_cartesian_state(398600.4418, Frame.GCRF())
    >>> COE.cartesian(state, 398600.4418)
    """

    # ========== CONSTRUCTION ==========
    def __init__(self, semi_major_axis, eccentricity, inclination, raan, aop,
                 true_anomaly, validate=True):
        self._semi_major_axis = as_scalar(semi_major_axis, "Semi-major axis")
        self._eccentricity = as_scalar(eccentricity, "Eccentricity")
        self._inclination = as_scalar(inclination, "Inclination")
        self._raan = as_scalar(raan, "RAAN")
        self._aop = as_scalar(aop, "Argument of periapsis")
        self._true_anomaly = as_scalar(true_anomaly, "True anomaly")
        if validate:
            self._validate()

    @classmethod
    def undefined(cls) -> "ClassicalOrbitalElements":
        """Element set with every element undefined."""
        return cls(None, None, None, None, None, None, validate=False)

    @classmethod
    def cartesian(cls, cartesian_state: CartesianState,
                  gravitational_parameter: float) -> "ClassicalOrbitalElements":
        """
        Create orbital elements from a Cartesian state.

        The state's frame is taken as the inertial basis: its z axis is the
        reference pole and its x axis the reference direction.

        Parameters
        ----------
        cartesian_state : CartesianState
            Position [km] and velocity [km/s]
        gravitational_parameter : float
            μ of the central body [km³/s²]

        Returns
        -------
        ClassicalOrbitalElements

        Raises
        ------
        UndefinedValueError
            If the state is undefined
        DomainError
            For rectilinear (zero angular momentum) or parabolic states
        """
        if not cartesian_state.is_defined():
            raise UndefinedValueError("Cartesian state is undefined")
        mu = _check_gravitational_parameter(gravitational_parameter)

        rvec = cartesian_state.position
        vvec = cartesian_state.velocity
        r_mag = np.linalg.norm(rvec)
        v_mag = np.linalg.norm(vvec)
        if r_mag == 0.0:
            raise DomainError("Position vector is zero")

        # angular momentum and eccentricity vectors
        hvec = np.cross(rvec, vvec)
        h_mag = np.linalg.norm(hvec)
        if v_mag == 0.0 or h_mag / (r_mag * v_mag) < config.SNAP_TO_ZERO_THRESHOLD:
            raise DomainError(
                "Rectilinear state (zero angular momentum) has no orbital plane")
        h_hat = hvec / h_mag
        evec = np.cross(vvec, hvec) / mu - rvec / r_mag
        e = np.linalg.norm(evec)
        if abs(e - 1.0) < config.SNAP_TO_ZERO_THRESHOLD:
            raise DomainError(
                "Parabolic state (e = 1) has no finite semi-major axis")

        # semi-major axis from the vis-viva energy
        energy = 0.5 * v_mag**2 - mu / r_mag
        a = -mu / (2.0 * energy)

        i = math.atan2(math.hypot(hvec[0], hvec[1]), hvec[2])

        # line of nodes, or the x axis when the plane is equatorial
        nvec = np.cross(_Z_AXIS, hvec)
        n_mag = np.linalg.norm(nvec)
        equatorial = n_mag / h_mag < config.SNAP_TO_EQUATORIAL
        circular = e < config.SNAP_TO_CIRCULAR
        if equatorial:
            raan = 0.0
            node_hat = _X_AXIS
        else:
            node_hat = nvec / n_mag
            raan = math.atan2(nvec[1], nvec[0])
        # in-plane direction 90° ahead of the node in the direction of motion
        ahead_hat = np.cross(h_hat, node_hat)

        if circular:
            e = 0.0
            aop = 0.0
            nu = math.atan2(np.dot(rvec, ahead_hat), np.dot(rvec, node_hat))
        else:
            aop = math.atan2(np.dot(evec, ahead_hat), np.dot(evec, node_hat))
            e_hat = evec / np.linalg.norm(evec)
            q_hat = np.cross(h_hat, e_hat)
            nu = math.atan2(np.dot(rvec, q_hat), np.dot(rvec, e_hat))

        if circular or equatorial:
            logger.debug(
                "Degenerate orbit (circular=%s, equatorial=%s): "
                "e=%.3e, sin(i)=%.3e", circular, equatorial,
                np.linalg.norm(evec), n_mag / h_mag)

        return cls(a, float(e), i, wrap_to_two_pi(raan), wrap_to_two_pi(aop),
                   wrap_to_two_pi(nu), validate=False)

    @classmethod
    def from_numpy(cls, array, validate=True
                   ) -> Union["ClassicalOrbitalElements",
                              List["ClassicalOrbitalElements"]]:
        """
        Create orbital elements from a NumPy array.

        Parameters
        ----------
        array : np.ndarray
            Array of shape (6,) ordered [a, e, i, Ω, ω, ν], or shape (n, 6)
        validate : bool, optional, defaults to True

        Returns
        -------
        ClassicalOrbitalElements, or list of them for a 2-D array
        """
        array = np.asarray(array, dtype=float)
        if array.shape == (6,):
            return cls(*array, validate=validate)
        if array.ndim != 2 or array.shape[1] != 6:
            raise ValueError(
                f"Array must have shape (6,) or (n, 6), got {array.shape}")
        return [cls(*row, validate=validate) for row in array]

    # ========== VALIDATION ==========
    def _validate(self):
        """Check physical consistency of the defined elements.
        If validation fails inappropriately, set validate=False for constructor
        """
        a = self._semi_major_axis
        e = self._eccentricity
        i = self._inclination
        if e is not None:
            if e < 0:
                validation_error(f"Eccentricity must be non-negative, got e={e}")
            elif e == 1:
                validation_error(
                    "Parabolic orbit (e=1) cannot be described by a semi-major axis")
            elif a is not None:
                # Validate a-e combination for physical consistency
                if e < 1 and a <= 0:
                    validation_error(f"Elliptic orbit (e={e}) "
                                     f"requires positive semi-major axis, got a={a}")
                if e > 1 and a >= 0:
                    validation_error(f"Hyperbolic orbit (e={e}) "
                                     f"requires negative semi-major axis, got a={a}")
        if i is not None and (i < 0 or i > math.pi):
            validation_error(f"Inclination must be in [0, π], got i={i}")

    # ========== PROPERTY ACCESS ==========
    def is_defined(self) -> bool:
        return all(value is not None for value in self._values())

    @property
    def semi_major_axis(self) -> float:
        """Semi-major axis [km]"""
        return require_defined(self._semi_major_axis, "Semi-major axis")

    @property
    def eccentricity(self) -> float:
        """Eccentricity"""
        return require_defined(self._eccentricity, "Eccentricity")

    @property
    def inclination(self) -> float:
        """Inclination [rad]"""
        return require_defined(self._inclination, "Inclination")

    @property
    def raan(self) -> float:
        """Right ascension of the ascending node [rad]"""
        return require_defined(self._raan, "RAAN")

    @property
    def aop(self) -> float:
        """Argument of periapsis [rad]"""
        return require_defined(self._aop, "Argument of periapsis")

    @property
    def true_anomaly(self) -> float:
        """True anomaly [rad]"""
        return require_defined(self._true_anomaly, "True anomaly")

    @property
    def eccentric_anomaly(self) -> float:
        """Eccentric anomaly [rad], recomputed from ν and e on every access"""
        return anomaly.eccentric_anomaly_from_true_anomaly(
            self.true_anomaly, self.eccentricity)

    @property
    def mean_anomaly(self) -> float:
        """Mean anomaly [rad], recomputed from ν and e on every access"""
        e = self.eccentricity
        return anomaly.mean_anomaly_from_eccentric_anomaly(
            anomaly.eccentric_anomaly_from_true_anomaly(self.true_anomaly, e), e)

    # ========== ORBITAL PROPERTIES ==========
    def _elliptic_semi_major_axis(self, quantity: str) -> float:
        a = self.semi_major_axis
        e = self.eccentricity
        if e >= 1:
            raise DomainError(
                f"{quantity} undefined for parabolic/hyperbolic orbits (e={e})")
        if a <= 0:
            raise DomainError(
                f"{quantity} undefined for elliptic orbit with non-positive "
                f"semi-major axis (a={a})")
        return a

    def mean_motion(self, gravitational_parameter: float) -> float:
        """
        Calculate mean motion (n = √(μ/a³))

        Parameters
        ----------
        gravitational_parameter : float
            μ of the central body [km³/s²]

        Returns
        -------
        float
            Mean motion [rad/s]

        Raises
        ------
        DomainError
            If the orbit is parabolic/hyperbolic
        """
        mu = _check_gravitational_parameter(gravitational_parameter)
        a = self._elliptic_semi_major_axis("Mean motion")
        return math.sqrt(mu / a**3)

    def orbital_period(self, gravitational_parameter: float) -> float:
        """
        Calculate orbital period (T = 2π/n)

        Returns period in seconds (only for elliptic orbits)
        """
        return TWO_PI / self.mean_motion(gravitational_parameter)

    def semi_latus_rectum(self) -> float:
        """Semi-latus rectum p = a(1 - e²) [km]"""
        e = self.eccentricity
        return self.semi_major_axis * (1 - e**2)

    def periapsis_radius(self) -> float:
        """Periapsis radius a(1 - e) [km]"""
        return self.semi_major_axis * (1 - self.eccentricity)

    def apoapsis_radius(self) -> float:
        """Apoapsis radius a(1 + e) [km] (only for elliptic orbits)"""
        a = self._elliptic_semi_major_axis("Apoapsis radius")
        return a * (1 + self.eccentricity)

    def specific_energy(self, gravitational_parameter: float) -> float:
        """Calculate specific orbital energy -μ/(2a) [km²/s²]"""
        mu = _check_gravitational_parameter(gravitational_parameter)
        return -mu / (2 * self.semi_major_axis)

    def specific_angular_momentum(self, gravitational_parameter: float) -> float:
        """
        Calculate specific angular momentum magnitude

        Returns h = √(μp) [km²/s]
        """
        mu = _check_gravitational_parameter(gravitational_parameter)
        return math.sqrt(mu * self.semi_latus_rectum())

    # ========== CARTESIAN CONVERSION ==========
    def get_cartesian_state(self, gravitational_parameter: float,
                            frame: Frame) -> CartesianState:
        """
        Convert to a Cartesian state expressed in *frame*.

        Position and velocity are computed in the perifocal frame from the
        conic equations, then rotated into the frame basis by the 3-1-3
        sequence (RAAN, inclination, AOP). The frame only tags the result.

        Parameters
        ----------
        gravitational_parameter : float
            μ of the central body [km³/s²]
        frame : Frame
            Frame the resulting vectors are expressed in

        Returns
        -------
        CartesianState

        Raises
        ------
        UndefinedValueError
            If any element or the frame is undefined
        DomainError
            If the semi-latus rectum is not positive, or the true anomaly lies
            beyond the asymptote of a hyperbolic orbit
        """
        if not self.is_defined():
            raise UndefinedValueError("Classical orbital elements are undefined")
        if frame is None:
            raise UndefinedValueError("Frame is undefined")
        mu = _check_gravitational_parameter(gravitational_parameter)

        e = self._eccentricity
        nu = self._true_anomaly
        # find semi-latus rectum
        p = self._semi_major_axis * (1 - e**2)
        # e = 1, or a sign inconsistent with e, admitted with validation relaxed
        if p <= 0:
            raise DomainError(
                f"Elements do not describe a conic with positive semi-latus "
                f"rectum (a={self._semi_major_axis}, e={e})")
        denominator = 1 + e * math.cos(nu)
        if denominator <= 0:
            raise DomainError(
                f"True anomaly {nu} lies beyond the asymptote of the "
                f"hyperbolic orbit (e={e})")
        # find position and velocity in perifocal frame
        r_mag = p / denominator
        rvec = np.array([r_mag * math.cos(nu), r_mag * math.sin(nu), 0.0])
        vvec = math.sqrt(mu / p) * np.array([-math.sin(nu), e + math.cos(nu), 0.0])

        perifocal_to_frame = self.perifocal_rotation()
        return CartesianState(perifocal_to_frame.apply(rvec),
                              perifocal_to_frame.apply(vvec), frame)

    def perifocal_rotation(self) -> Rotation:
        """
        Rotation from the perifocal frame to the reference frame,
        Rz(RAAN) Rx(i) Rz(AOP).
        """
        return Rotation.from_euler('ZXZ', [self.raan, self.inclination, self.aop])

    # ========== ANOMALY UTILITIES ==========
    @staticmethod
    def eccentric_anomaly_from_true_anomaly(true_anomaly: float,
                                            eccentricity: float) -> float:
        """See :func:`orbis.anomaly.eccentric_anomaly_from_true_anomaly`."""
        return anomaly.eccentric_anomaly_from_true_anomaly(true_anomaly, eccentricity)

    @staticmethod
    def true_anomaly_from_eccentric_anomaly(eccentric_anomaly: float,
                                            eccentricity: float) -> float:
        """See :func:`orbis.anomaly.true_anomaly_from_eccentric_anomaly`."""
        return anomaly.true_anomaly_from_eccentric_anomaly(eccentric_anomaly, eccentricity)

    @staticmethod
    def mean_anomaly_from_eccentric_anomaly(eccentric_anomaly: float,
                                            eccentricity: float) -> float:
        """See :func:`orbis.anomaly.mean_anomaly_from_eccentric_anomaly`."""
        return anomaly.mean_anomaly_from_eccentric_anomaly(eccentric_anomaly, eccentricity)

    @staticmethod
    def eccentric_anomaly_from_mean_anomaly(mean_anomaly: float,
                                            eccentricity: float,
                                            tolerance: Optional[float] = None,
                                            max_iterations: Optional[int] = None
                                            ) -> float:
        """See :func:`orbis.anomaly.eccentric_anomaly_from_mean_anomaly`."""
        return anomaly.eccentric_anomaly_from_mean_anomaly(
            mean_anomaly, eccentricity, tolerance, max_iterations)

    # ========== UTILITY METHODS ==========
    def _values(self):
        return (self._semi_major_axis, self._eccentricity, self._inclination,
                self._raan, self._aop, self._true_anomaly)

    def to_numpy(self) -> np.ndarray:
        """Elements as a NumPy array [a, e, i, Ω, ω, ν]"""
        if not self.is_defined():
            raise UndefinedValueError("Classical orbital elements are undefined")
        return np.array(self._values())

    def is_close(self, other: "ClassicalOrbitalElements",
                 rtol: Optional[float] = None, atol: Optional[float] = None) -> bool:
        """
        Compare with tolerance.

        Semi-major axis and eccentricity use ``np.isclose``; angles are compared
        modulo 2π with tolerance ``atol + rtol * 2π``. Defaults come from
        config.EQUALITY_RTOL and config.EQUALITY_ATOL.
        """
        if not (self.is_defined() and other.is_defined()):
            return False
        rtol = config.EQUALITY_RTOL if rtol is None else rtol
        atol = config.EQUALITY_ATOL if atol is None else atol
        a1, e1, *angles1 = self._values()
        a2, e2, *angles2 = other._values()
        if not (np.isclose(a1, a2, rtol=rtol, atol=atol)
                and np.isclose(e1, e2, rtol=rtol, atol=atol)):
            return False
        angle_tolerance = atol + rtol * TWO_PI
        return all(abs(_angle_difference(x, y)) <= angle_tolerance
                   for x, y in zip(angles1, angles2))

    def to_string(self, decorator: bool = True) -> str:
        """
        Human-readable rendering of the six elements.

        Parameters
        ----------
        decorator : bool, optional
            Whether to include a header and footer line (default True)
        """
        def _fmt(value, fmt, unit=""):
            if value is None:
                return "Undefined"
            return f"{value:{fmt}}{unit}"

        def _deg(value):
            return None if value is None else math.degrees(value)

        a, e, i, raan, aop, nu = self._values()
        rows = [
            f"  a     = {_fmt(a, '12.4f', ' km')}",
            f"  e     = {_fmt(e, '12.6f')}",
            f"  i     = {_fmt(_deg(i), '12.4f', '°')}",
            f"  RAAN  = {_fmt(_deg(raan), '12.4f', '°')}",
            f"  ω     = {_fmt(_deg(aop), '12.4f', '°')}",
            f"  ν     = {_fmt(_deg(nu), '12.4f', '°')}",
        ]
        if not decorator:
            return "\n".join(rows)
        header = "-------- Classical Orbital Elements --------"
        return "\n".join([header] + rows + ["-" * len(header)])

    def print(self, decorator: bool = True, file=None) -> None:
        """Write :meth:`to_string` to *file* (default stdout)."""
        print(self.to_string(decorator), file=file)

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        a, e, i, raan, aop, nu = self._values()
        return (f"ClassicalOrbitalElements(semi_major_axis={a}, eccentricity={e}, "
                f"inclination={i}, raan={raan}, aop={aop}, true_anomaly={nu})")

    def __str__(self):
        return self.to_string(decorator=True)

    def __eq__(self, other):
        # Exact component-wise comparison; see is_close for tolerance
        if not isinstance(other, ClassicalOrbitalElements):
            return NotImplemented
        if not (self.is_defined() and other.is_defined()):
            return False
        return self._values() == other._values()

    def __hash__(self):
        return hash(self._values())


COE = ClassicalOrbitalElements
