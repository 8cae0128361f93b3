"""
Utility functions for the Orbis package.
"""

import math
import warnings
from typing import Optional, Type

import numpy as np
import pandas as pd
from scipy.spatial.transform import Rotation

from .config import config
from .errors import UndefinedValueError

TWO_PI = 2.0 * math.pi


def validation_error(message: str, error_class: Type[Exception] = ValueError):
    """
    Raise error or warn based on config.STRICT_VALIDATION.

    This function provides consistent validation behavior across the package.
    When STRICT_VALIDATION is True (default), raises the specified exception.
    When False, issues a UserWarning instead.

    Parameters
    ----------
    message : str
        Validation error message
    error_class : Type[Exception], optional
        Exception class to raise if STRICT_VALIDATION is True.
        Default: ValueError

    Raises
    ------
    Exception (of type error_class)
        If config.STRICT_VALIDATION is True

    Warns
    -----
    UserWarning
        If config.STRICT_VALIDATION is False

    Examples
    --------
    >>> from orbis.utils import validation_error
    >>> from orbis import config
    >>> config.STRICT_VALIDATION = True
    >>> validation_error("Invalid value")  # Raises ValueError

    >>> config.STRICT_VALIDATION = False
    >>> validation_error("Invalid value")  # Issues warning
    """
    if config.STRICT_VALIDATION:
        raise error_class(message)
    else:
        warnings.warn(message, UserWarning, stacklevel=2)


def wrap_to_two_pi(angle: float) -> float:
    """Wrap an angle [rad] into [0, 2π)."""
    wrapped = math.fmod(angle, TWO_PI)
    if wrapped < 0.0:
        wrapped += TWO_PI
    # fmod of a tiny negative angle can round back up to exactly 2π
    if wrapped >= TWO_PI:
        wrapped = 0.0
    return wrapped


def is_undefined(value) -> bool:
    """True for ``None``, ``pandas.NaT`` and scalar NaN."""
    if value is None or value is pd.NaT:
        return True
    if isinstance(value, (float, np.floating)):
        return math.isnan(value)
    return False


def require_defined(value, name: str):
    """Return *value*, raising UndefinedValueError if it is undefined."""
    if is_undefined(value):
        raise UndefinedValueError(f"{name} is undefined")
    return value


def as_scalar(value, name: str) -> Optional[float]:
    """
    Coerce an optional scalar to float.

    ``None`` passes through as the undefined value. Non-finite numbers are
    rejected.
    """
    if value is None:
        return None
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")
    return value


def as_vector3(value, name: str) -> Optional[np.ndarray]:
    """
    Coerce an optional 3-vector to a read-only float numpy array.

    ``None`` passes through as the undefined value. Wrong shapes and
    non-finite components are rejected.
    """
    if value is None:
        return None
    vector = np.array(value, dtype=float)
    if vector.shape != (3,):
        raise ValueError(f"{name} must be a 3-vector, got shape {vector.shape}")
    if not np.all(np.isfinite(vector)):
        raise ValueError(f"{name} contains NaN or Inf")
    vector.flags.writeable = False
    return vector


def as_instant(value) -> pd.Timestamp:
    """
    Coerce an instant to ``pandas.Timestamp``.

    ``None`` maps to ``pandas.NaT``, the undefined instant. Strings,
    ``datetime`` and ``numpy.datetime64`` values are accepted.
    """
    if value is None:
        return pd.NaT
    return pd.Timestamp(value)


def as_rotation(value, name: str) -> Optional[Rotation]:
    """
    Coerce an optional attitude to a scipy ``Rotation``.

    Accepts a ``Rotation`` or a scalar-last quaternion ``[x, y, z, w]``,
    which is normalized. ``None`` passes through as the undefined value.
    """
    if value is None:
        return None
    if isinstance(value, Rotation):
        if not value.single:
            raise ValueError(f"{name} must be a single rotation")
        return value
    quaternion = np.asarray(value, dtype=float)
    if quaternion.shape != (4,):
        raise ValueError(
            f"{name} must be a quaternion [x, y, z, w], got shape {quaternion.shape}")
    if not np.all(np.isfinite(quaternion)):
        raise ValueError(f"{name} contains NaN or Inf")
    if np.linalg.norm(quaternion) == 0.0:
        raise ValueError(f"{name} must be a non-zero quaternion")
    return Rotation.from_quat(quaternion)
