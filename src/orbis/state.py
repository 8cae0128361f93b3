"""
Cartesian and flight-profile state snapshots.

Both classes are immutable: vectors are stored as read-only numpy arrays and
every re-expression in another frame returns a new instance. The reference
frame is held by reference and never copied.
"""

from typing import Optional

import numpy as np
import pandas as pd
from scipy.spatial.transform import Rotation

from .errors import UndefinedValueError
from .frames import Frame
from .utils import (as_instant, as_rotation, as_vector3, is_undefined,
                    require_defined)


def _check_frame(frame) -> Optional[Frame]:
    if frame is not None and not isinstance(frame, Frame):
        raise TypeError(f"frame must be a Frame, got {type(frame)}")
    return frame


class CartesianState:
    """
    Position and velocity expressed in a reference frame.

    Parameters
    ----------
    position : array-like or None
        Position vector [km]
    velocity : array-like or None
        Velocity vector [km/s]
    frame : Frame or None
        Frame both vectors are expressed in
    """

    def __init__(self, position, velocity, frame: Optional[Frame]):
        self._position = as_vector3(position, "Position")
        self._velocity = as_vector3(velocity, "Velocity")
        self._frame = _check_frame(frame)

    @classmethod
    def undefined(cls) -> "CartesianState":
        return cls(None, None, None)

    def is_defined(self) -> bool:
        return (self._position is not None and self._velocity is not None
                and self._frame is not None)

    @property
    def position(self) -> np.ndarray:
        return require_defined(self._position, "Position")

    @property
    def velocity(self) -> np.ndarray:
        return require_defined(self._velocity, "Velocity")

    @property
    def frame(self) -> Frame:
        return require_defined(self._frame, "Frame")

    def in_frame(self, frame: Frame, instant) -> "CartesianState":
        """
        Re-express this state in *frame* at *instant*.

        Raises
        ------
        UndefinedValueError
            If the state, the target frame or the instant is undefined
        """
        if not self.is_defined():
            raise UndefinedValueError("Cartesian state is undefined")
        if frame is None:
            raise UndefinedValueError("Frame is undefined")
        transform = frame.transform_from(self._frame, instant)
        return CartesianState(
            transform.apply_to_position(self._position),
            transform.apply_to_velocity(self._position, self._velocity),
            frame)

    def __eq__(self, other):
        if not isinstance(other, CartesianState):
            return NotImplemented
        if not (self.is_defined() and other.is_defined()):
            return False
        return (self._frame is other._frame
                and np.array_equal(self._position, other._position)
                and np.array_equal(self._velocity, other._velocity))

    def __hash__(self):
        if not self.is_defined():
            return hash(None)
        return hash((tuple(self._position), tuple(self._velocity), id(self._frame)))

    def __repr__(self):
        if not self.is_defined():
            return "CartesianState(Undefined)"
        return (f"CartesianState(position={self._position.tolist()}, "
                f"velocity={self._velocity.tolist()}, frame={self._frame.name})")

    def __str__(self):
        if not self.is_defined():
            return "Cartesian State: Undefined"
        r = self._position
        v = self._velocity
        return (f"Cartesian State [{self._frame.name}]:\n"
                f"  r = [{r[0]:12.4f}, {r[1]:12.4f}, {r[2]:12.4f}] km\n"
                f"  v = [{v[0]:12.4f}, {v[1]:12.4f}, {v[2]:12.4f}] km/s")


class ProfileState:
    """
    Spacecraft flight profile state: kinematics and attitude at an instant.

    Position, velocity, attitude and angular velocity are all expressed with
    respect to the same reference frame. Any field may be undefined (None),
    in which case the state as a whole is undefined and the accessor of that
    field raises :class:`~orbis.errors.UndefinedValueError`.

    Parameters
    ----------
    instant : pandas.Timestamp or compatible, or None
        Instant of the snapshot
    position : array-like or None
        Position vector [km]
    velocity : array-like or None
        Velocity vector [km/s]
    attitude : scipy Rotation, quaternion [x, y, z, w], or None
        Rotation taking body-frame components to reference-frame components
    angular_velocity : array-like or None
        Body angular velocity relative to the reference frame, expressed in
        the reference frame [rad/s]
    frame : Frame or None
        Reference frame (shared, never copied)
    """

    def __init__(self, instant, position, velocity, attitude,
                 angular_velocity, frame: Optional[Frame]):
        self._instant = as_instant(instant)
        self._position = as_vector3(position, "Position")
        self._velocity = as_vector3(velocity, "Velocity")
        self._attitude = as_rotation(attitude, "Attitude")
        self._angular_velocity = as_vector3(angular_velocity, "Angular velocity")
        self._frame = _check_frame(frame)

    @classmethod
    def undefined(cls) -> "ProfileState":
        return cls(None, None, None, None, None, None)

    def is_defined(self) -> bool:
        return (not is_undefined(self._instant)
                and self._position is not None
                and self._velocity is not None
                and self._attitude is not None
                and self._angular_velocity is not None
                and self._frame is not None)

    # ========== PROPERTY ACCESS ==========
    @property
    def instant(self) -> pd.Timestamp:
        return require_defined(self._instant, "Instant")

    @property
    def position(self) -> np.ndarray:
        return require_defined(self._position, "Position")

    @property
    def velocity(self) -> np.ndarray:
        return require_defined(self._velocity, "Velocity")

    @property
    def attitude(self) -> Rotation:
        return require_defined(self._attitude, "Attitude")

    @property
    def angular_velocity(self) -> np.ndarray:
        return require_defined(self._angular_velocity, "Angular velocity")

    @property
    def frame(self) -> Frame:
        return require_defined(self._frame, "Frame")

    # ========== FRAME CONVERSION ==========
    def in_frame(self, frame: Frame) -> "ProfileState":
        """
        Re-express this state in another frame.

        The frame transform at the state's instant is applied to position,
        velocity, attitude and angular velocity. The instant is unchanged and
        this state is not modified.

        Parameters
        ----------
        frame : Frame
            Target frame

        Returns
        -------
        ProfileState
            New state referencing *frame*

        Raises
        ------
        UndefinedValueError
            If this state or the target frame is undefined
        """
        if not self.is_defined():
            raise UndefinedValueError("Profile state is undefined")
        if frame is None:
            raise UndefinedValueError("Frame is undefined")

        transform = frame.transform_from(self._frame, self._instant)
        return ProfileState(
            self._instant,
            transform.apply_to_position(self._position),
            transform.apply_to_velocity(self._position, self._velocity),
            transform.apply_to_attitude(self._attitude),
            transform.apply_to_angular_velocity(self._angular_velocity),
            frame,
        )

    # ========== SPECIAL METHODS ==========
    def __eq__(self, other):
        if not isinstance(other, ProfileState):
            return NotImplemented
        if not (self.is_defined() and other.is_defined()):
            return False
        return (self._instant == other._instant
                and self._frame is other._frame
                and np.array_equal(self._position, other._position)
                and np.array_equal(self._velocity, other._velocity)
                and np.array_equal(self._attitude.as_quat(canonical=True),
                                   other._attitude.as_quat(canonical=True))
                and np.array_equal(self._angular_velocity, other._angular_velocity))

    def __hash__(self):
        if not self.is_defined():
            return hash(None)
        return hash((self._instant, tuple(self._position), tuple(self._velocity),
                     tuple(self._attitude.as_quat(canonical=True)),
                     tuple(self._angular_velocity), id(self._frame)))

    def __repr__(self):
        if not self.is_defined():
            return "ProfileState(Undefined)"
        return (f"ProfileState(instant={self._instant.isoformat()}, "
                f"position={self._position.tolist()}, "
                f"velocity={self._velocity.tolist()}, "
                f"attitude={self._attitude.as_quat().tolist()}, "
                f"angular_velocity={self._angular_velocity.tolist()}, "
                f"frame={self._frame.name})")

    def __str__(self):
        def _fmt(vector, unit):
            if vector is None:
                return "Undefined"
            return (f"[{vector[0]:12.4f}, {vector[1]:12.4f}, "
                    f"{vector[2]:12.4f}] {unit}")

        instant = "Undefined" if is_undefined(self._instant) \
            else self._instant.isoformat()
        attitude = "Undefined" if self._attitude is None else \
            "[" + ", ".join(f"{c:.6f}" for c in self._attitude.as_quat()) + "]"
        frame = "Undefined" if self._frame is None else self._frame.name
        return (f"Profile State:\n"
                f"  instant = {instant}\n"
                f"  frame   = {frame}\n"
                f"  r       = {_fmt(self._position, 'km')}\n"
                f"  v       = {_fmt(self._velocity, 'km/s')}\n"
                f"  q       = {attitude}\n"
                f"  ω       = {_fmt(self._angular_velocity, 'rad/s')}")
