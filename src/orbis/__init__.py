"""
Orbis: Orbital Elements and Flight Profile States

A Python package converting between classical orbital elements and
Cartesian states, solving Kepler's equation, and re-expressing spacecraft
kinematic and attitude snapshots in other reference frames.
"""

import logging

# Core classes
from .coe import ClassicalOrbitalElements, ClassicalOrbitalElements as COE
from .state import CartesianState, ProfileState
from .frames import Frame, Transform
from . import anomaly

# Errors
from .errors import UndefinedValueError, DomainError, ConvergenceError

# Commonly-used celestial bodies
from .bodies import BodyParams, EARTH, MOON, MARS, SUN

# Configuration
from .config import config, temp_config

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Package metadata
__version__ = "0.1.0"

# Define what gets imported with "from orbis import *"
__all__ = [
    # Classes
    "ClassicalOrbitalElements",
    "CartesianState",
    "ProfileState",
    "Frame",
    "Transform",
    "BodyParams",
    # Abbreviations
    "COE",
    # Modules
    "anomaly",
    # Errors
    "UndefinedValueError",
    "DomainError",
    "ConvergenceError",
    # Constants
    "EARTH",
    "MOON",
    "MARS",
    "SUN",
    # Configuration
    "config",
    "temp_config",
]
