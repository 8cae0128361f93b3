"""
Reference frames and kinematic transforms
=========================================

A :class:`Frame` is a shared, identity-compared handle arranged in a tree:
each non-root frame knows its parent and a provider returning the
:class:`Transform` from itself to that parent at a given instant. States
never copy frames; they hold a reference to the same instance.

A :class:`Transform` maps coordinates expressed in a source frame into a
destination frame, for positions, velocities, attitudes and angular
velocities::

    p' = R p + t
    v' = R v + ω × (R p) + ṫ
    q' = R ∘ q
    w' = R w + ω

where R is the orientation of the source axes in the destination frame,
t and ṫ the position and velocity of the source origin in the destination
frame, and ω the angular velocity of the source frame relative to the
destination, expressed in the destination frame.

Frames may be registered by name. The registry is process-wide and guarded
by a lock; frames themselves are immutable.

Examples
--------
>>> import pandas as pd
>>> from scipy.spatial.transform import Rotation
>>> from orbis.frames import Frame, Transform
>>> gcrf = Frame.GCRF()
>>> epoch = pd.Timestamp('2024-01-01T00:00:00')
>>> rate = 7.2921150e-5
>>> def spin(instant):
...     theta = rate * (instant - epoch).total_seconds()
...     return Transform(orientation=Rotation.from_euler('z', theta),
...                      angular_velocity=[0.0, 0.0, rate])
>>> earth_fixed = Frame('EarthFixed', parent=gcrf, provider=spin)
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

import numpy as np
from scipy.spatial.transform import Rotation

from .errors import UndefinedValueError
from .utils import as_instant, as_rotation, as_vector3, is_undefined

logger = logging.getLogger(__name__)

_ZERO = (0.0, 0.0, 0.0)


def _rotate(rotation: Rotation, vector) -> np.ndarray:
    # scipy's compiled backend rejects read-only buffers, so always hand it a copy
    return rotation.apply(np.array(vector, dtype=float))


class Transform:
    """
    Kinematic + attitude transform between two frames at one instant.

    Parameters
    ----------
    translation : array-like, optional
        Position of the source origin in the destination frame [km]
    velocity : array-like, optional
        Velocity of the source origin in the destination frame [km/s]
    orientation : Rotation or array-like, optional
        Rotation taking source-frame components to destination-frame
        components (scipy Rotation or scalar-last quaternion)
    angular_velocity : array-like, optional
        Angular velocity of the source frame relative to the destination,
        expressed in the destination frame [rad/s]
    """

    def __init__(self, translation=_ZERO, velocity=_ZERO,
                 orientation: Optional[Rotation] = None,
                 angular_velocity=_ZERO):
        self._translation = as_vector3(translation, "Translation")
        self._velocity = as_vector3(velocity, "Velocity")
        if orientation is None:
            orientation = Rotation.identity()
        self._orientation = as_rotation(orientation, "Orientation")
        self._angular_velocity = as_vector3(angular_velocity, "Angular velocity")
        if (self._translation is None or self._velocity is None
                or self._angular_velocity is None):
            raise ValueError("Transform components cannot be None")

    @classmethod
    def identity(cls) -> "Transform":
        """Transform leaving every quantity unchanged."""
        return cls()

    # ========== PROPERTY ACCESS ==========
    @property
    def translation(self) -> np.ndarray:
        return self._translation

    @property
    def velocity(self) -> np.ndarray:
        return self._velocity

    @property
    def orientation(self) -> Rotation:
        return self._orientation

    @property
    def angular_velocity(self) -> np.ndarray:
        return self._angular_velocity

    # ========== APPLICATION ==========
    def apply_to_position(self, position) -> np.ndarray:
        return _rotate(self._orientation, position) + self._translation

    def apply_to_velocity(self, position, velocity) -> np.ndarray:
        """Transform a velocity; the transport term needs the position too."""
        rotated_position = _rotate(self._orientation, position)
        return (_rotate(self._orientation, velocity)
                + np.cross(self._angular_velocity, rotated_position)
                + self._velocity)

    def apply_to_attitude(self, attitude: Rotation) -> Rotation:
        """Re-express a body-to-source attitude as body-to-destination."""
        return self._orientation * attitude

    def apply_to_angular_velocity(self, angular_velocity) -> np.ndarray:
        return (_rotate(self._orientation, angular_velocity)
                + self._angular_velocity)

    # ========== COMPOSITION ==========
    def __mul__(self, other: "Transform") -> "Transform":
        """
        Compose transforms: ``(b * a)`` applies ``a`` first, then ``b``.
        """
        if not isinstance(other, Transform):
            return NotImplemented
        rotated_translation = _rotate(self._orientation, other._translation)
        return Transform(
            translation=rotated_translation + self._translation,
            velocity=(_rotate(self._orientation, other._velocity)
                      + np.cross(self._angular_velocity, rotated_translation)
                      + self._velocity),
            orientation=self._orientation * other._orientation,
            angular_velocity=(_rotate(self._orientation, other._angular_velocity)
                              + self._angular_velocity),
        )

    def inverse(self) -> "Transform":
        """Transform mapping the destination frame back to the source."""
        inverse_orientation = self._orientation.inv()
        return Transform(
            translation=-_rotate(inverse_orientation, self._translation),
            velocity=_rotate(
                inverse_orientation,
                np.cross(self._angular_velocity, self._translation) - self._velocity),
            orientation=inverse_orientation,
            angular_velocity=-_rotate(inverse_orientation, self._angular_velocity),
        )

    def __repr__(self):
        return (f"Transform(translation={self._translation.tolist()}, "
                f"velocity={self._velocity.tolist()}, "
                f"orientation={self._orientation.as_quat().tolist()}, "
                f"angular_velocity={self._angular_velocity.tolist()})")


class Frame:
    """
    Reference frame handle.

    Frames compare by identity: two frames are the same only if they are the
    same object, even when they describe geometrically equivalent axes.

    Parameters
    ----------
    name : str
        Frame name
    parent : Frame, optional
        Parent frame; None for a root frame
    provider : callable, optional
        ``provider(instant) -> Transform`` from this frame to ``parent``.
        Required if and only if ``parent`` is given.
    """

    _registry: Dict[str, "Frame"] = {}
    _registry_lock = threading.Lock()

    def __init__(self, name: str, parent: Optional["Frame"] = None,
                 provider: Optional[Callable[..., Transform]] = None):
        if not name:
            raise ValueError("Frame name cannot be empty")
        if (parent is None) != (provider is None):
            raise ValueError(
                "A frame needs both a parent and a transform provider, or neither")
        if parent is not None and not isinstance(parent, Frame):
            raise TypeError(f"parent must be a Frame, got {type(parent)}")
        self._name = name
        self._parent = parent
        self._provider = provider

    # ========== PROPERTY ACCESS ==========
    @property
    def name(self) -> str:
        return self._name

    @property
    def parent(self) -> Optional["Frame"]:
        return self._parent

    def is_root(self) -> bool:
        return self._parent is None

    # ========== TRANSFORMS ==========
    def get_transform_to_parent(self, instant) -> Transform:
        """Transform from this frame to its parent at *instant*."""
        if self._parent is None:
            raise ValueError(f"Frame '{self._name}' is a root frame")
        transform = self._provider(instant)
        if not isinstance(transform, Transform):
            raise TypeError(
                f"Provider of frame '{self._name}' returned {type(transform)}, "
                f"expected Transform")
        return transform

    def _lineage(self) -> List["Frame"]:
        lineage = [self]
        while lineage[-1]._parent is not None:
            lineage.append(lineage[-1]._parent)
        return lineage

    def _transform_to_ancestor(self, ancestor: "Frame", instant) -> Transform:
        transform = Transform.identity()
        frame = self
        while frame is not ancestor:
            transform = frame.get_transform_to_parent(instant) * transform
            frame = frame._parent
        return transform

    def transform_from(self, other: "Frame", instant) -> Transform:
        """
        Transform mapping coordinates expressed in *other* into this frame.

        Parameters
        ----------
        other : Frame
            Source frame
        instant : pandas.Timestamp or compatible
            Instant at which the frames are related

        Raises
        ------
        UndefinedValueError
            If the instant is undefined
        ValueError
            If the frames do not share a common ancestor
        """
        instant = as_instant(instant)
        if is_undefined(instant):
            raise UndefinedValueError("Instant is undefined")
        if other is self:
            return Transform.identity()

        own_lineage = self._lineage()
        common = None
        for frame in other._lineage():
            if any(frame is own for own in own_lineage):
                common = frame
                break
        if common is None:
            raise ValueError(
                f"Frames '{other.name}' and '{self.name}' are not connected")

        up = other._transform_to_ancestor(common, instant)
        down = self._transform_to_ancestor(common, instant)
        return down.inverse() * up

    def transform_to(self, other: "Frame", instant) -> Transform:
        """Transform mapping coordinates in this frame into *other*."""
        return other.transform_from(self, instant)

    # ========== REGISTRY ==========
    @classmethod
    def construct(cls, name: str, parent: "Frame",
                  provider: Callable[..., Transform]) -> "Frame":
        """Create a frame and register it under *name*."""
        if parent is None:
            raise ValueError(
                f"Frame '{name}' needs a parent; 'GCRF' is the only registered root")
        frame = cls(name, parent=parent, provider=provider)
        with cls._registry_lock:
            if name in cls._registry:
                raise ValueError(f"Frame '{name}' is already registered")
            cls._registry[name] = frame
        logger.debug("Registered frame '%s' with parent '%s'", name, parent.name)
        return frame

    @classmethod
    def with_name(cls, name: str) -> "Frame":
        with cls._registry_lock:
            try:
                return cls._registry[name]
            except KeyError:
                raise KeyError(f"No frame registered with name '{name}'") from None

    @classmethod
    def exists(cls, name: str) -> bool:
        with cls._registry_lock:
            return name in cls._registry

    @classmethod
    def destruct(cls, name: str) -> None:
        """Remove a frame from the registry; existing references stay valid."""
        with cls._registry_lock:
            if name not in cls._registry:
                raise KeyError(f"No frame registered with name '{name}'")
            del cls._registry[name]
        logger.debug("Removed frame '%s' from registry", name)

    @classmethod
    def GCRF(cls) -> "Frame":
        """Geocentric Celestial Reference Frame, the registry root."""
        with cls._registry_lock:
            frame = cls._registry.get('GCRF')
            if frame is None:
                frame = cls('GCRF')
                cls._registry['GCRF'] = frame
        return frame

    # ========== SPECIAL METHODS ==========
    def __repr__(self):
        parent = self._parent.name if self._parent is not None else None
        return f"Frame('{self._name}', parent={parent!r})"

    def __str__(self):
        return self._name
