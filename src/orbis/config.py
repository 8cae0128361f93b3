"""
Global Configuration for Orbis Package
======================================

This module provides package-wide configuration settings that users can modify
to control numerical tolerances, degenerate-orbit thresholds, the Kepler
solver, validation behavior, and default plotting options.

Examples
--------
View current configuration:

>>> import orbis
>>> print(orbis.config)

Modify settings:

>>> orbis.config.KEPLER_TOLERANCE = 1e-14  # Tighter Kepler solve
>>> orbis.config.DEFAULT_PLOT_POINTS = 2000  # Smoother orbit plots

Reset to defaults:

>>> orbis.config.reset()

Temporarily modify settings:

>>> with orbis.temp_config(EQUALITY_RTOL=1e-6):
...     # Relaxed tolerance for this block only
...     coe1.is_close(coe2)

Notes
-----
These settings affect package-wide behavior. Modifying them will impact
all subsequent operations until changed again or reset.
"""

from dataclasses import dataclass
from contextlib import contextmanager


@dataclass
class OrbisConfig:
    """
    Global configuration for Orbis package.

    Attributes
    ----------
    EQUALITY_RTOL : float
        Relative tolerance used by tolerance-based comparisons (``is_close``).
        Default: 1e-12 (approximately millimeter-level at LEO distances)
    EQUALITY_ATOL : float
        Absolute tolerance used by tolerance-based comparisons.
        Default: 1e-14
    SNAP_TO_ZERO_THRESHOLD : float
        Angular momentum magnitudes and parabolic offsets |e - 1| below
        this threshold are treated as exactly zero.
        Default: 1e-10
    SNAP_TO_CIRCULAR : float
        Eccentricity below this threshold treated as circular orbit (e=0).
        Default: 1e-8
    SNAP_TO_EQUATORIAL : float
        Sine of inclination below this threshold treated as equatorial.
        Default: 1e-8
    KEPLER_TOLERANCE : float
        Default residual tolerance |E - e sin(E) - M| for the Kepler solver.
        Default: 1e-12
    KEPLER_MAX_ITERATIONS : int
        Default Newton-Raphson iteration cap for the Kepler solver.
        Default: 50
    STRICT_VALIDATION : bool
        If True, validation failures raise exceptions.
        If False, validation failures issue warnings.
        Default: True
    DEFAULT_PLOT_POINTS : int
        Default number of points for orbit plotting.
        Default: 360
    DEFAULT_BODY_COLOR : str
        Default color for the central body in plots.
        Default: 'lightblue'
    DEFAULT_ORBIT_COLOR : str
        Default color for orbit lines in plots.
        Default: 'red'
    DEFAULT_BODY_OPACITY : float
        Default opacity for the central body sphere (0.0 to 1.0).
        Default: 0.6
    """

    # Numerical tolerance for approximate comparisons
    EQUALITY_RTOL: float = 1e-12
    EQUALITY_ATOL: float = 1e-14

    # Snapping behavior thresholds
    SNAP_TO_ZERO_THRESHOLD: float = 1e-10
    SNAP_TO_CIRCULAR: float = 1e-8
    SNAP_TO_EQUATORIAL: float = 1e-8

    # Kepler equation solver
    KEPLER_TOLERANCE: float = 1e-12
    KEPLER_MAX_ITERATIONS: int = 50

    # Validation behavior
    STRICT_VALIDATION: bool = True

    # Plotting defaults
    DEFAULT_PLOT_POINTS: int = 360
    DEFAULT_BODY_COLOR: str = 'lightblue'
    DEFAULT_ORBIT_COLOR: str = 'red'
    DEFAULT_BODY_OPACITY: float = 0.6

    def reset(self):
        """
        Reset all configuration values to package defaults.

        Examples
        --------
        >>> import orbis
        >>> orbis.config.KEPLER_MAX_ITERATIONS = 5  # Modify
        >>> orbis.config.reset()  # Back to defaults
        >>> orbis.config.KEPLER_MAX_ITERATIONS
        50
        """
        defaults = OrbisConfig()
        for key in self.__dataclass_fields__:
            setattr(self, key, getattr(defaults, key))

    def __repr__(self):
        """Return formatted string showing all configuration values."""
        lines = ["OrbisConfig:"]
        lines.append("  Numerical Tolerances:")
        lines.append(f"    EQUALITY_RTOL = {self.EQUALITY_RTOL}")
        lines.append(f"    EQUALITY_ATOL = {self.EQUALITY_ATOL}")
        lines.append("  Snapping Thresholds:")
        lines.append(f"    SNAP_TO_ZERO_THRESHOLD = {self.SNAP_TO_ZERO_THRESHOLD}")
        lines.append(f"    SNAP_TO_CIRCULAR = {self.SNAP_TO_CIRCULAR}")
        lines.append(f"    SNAP_TO_EQUATORIAL = {self.SNAP_TO_EQUATORIAL}")
        lines.append("  Kepler Solver:")
        lines.append(f"    KEPLER_TOLERANCE = {self.KEPLER_TOLERANCE}")
        lines.append(f"    KEPLER_MAX_ITERATIONS = {self.KEPLER_MAX_ITERATIONS}")
        lines.append("  Behavior:")
        lines.append(f"    STRICT_VALIDATION = {self.STRICT_VALIDATION}")
        lines.append("  Plotting:")
        lines.append(f"    DEFAULT_PLOT_POINTS = {self.DEFAULT_PLOT_POINTS}")
        lines.append(f"    DEFAULT_BODY_COLOR = '{self.DEFAULT_BODY_COLOR}'")
        lines.append(f"    DEFAULT_ORBIT_COLOR = '{self.DEFAULT_ORBIT_COLOR}'")
        lines.append(f"    DEFAULT_BODY_OPACITY = {self.DEFAULT_BODY_OPACITY}")
        return "\n".join(lines)


# Global configuration instance
config = OrbisConfig()


@contextmanager
def temp_config(**kwargs):
    """
    Context manager for temporarily modifying configuration values.

    Configuration is automatically restored when the context exits,
    even if an exception occurs.

    Parameters
    ----------
    **kwargs
        Configuration attributes to temporarily modify.

    Examples
    --------
    >>> import orbis
    >>> with orbis.temp_config(KEPLER_MAX_ITERATIONS=3):
    ...     orbis.anomaly.eccentric_anomaly_from_mean_anomaly(0.5, 0.3)
    >>> # Original config restored here
    >>> orbis.config.KEPLER_MAX_ITERATIONS
    50

    Raises
    ------
    AttributeError
        If an invalid configuration attribute is specified.
    """
    for key in kwargs:
        if key not in config.__dataclass_fields__:
            raise AttributeError(
                f"OrbisConfig has no attribute '{key}'. "
                f"Valid attributes: {list(config.__dataclass_fields__.keys())}"
            )
    old_values = {}
    for key, value in kwargs.items():
        old_values[key] = getattr(config, key)
        setattr(config, key, value)

    try:
        yield config
    finally:
        for key, value in old_values.items():
            setattr(config, key, value)
