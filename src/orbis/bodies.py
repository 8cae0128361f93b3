"""
Central body parameters
=======================

Gravitational parameter and radius of common central bodies, used to
parameterize element queries (``coe.orbital_period(EARTH.mu)``) and to draw
the central body in plots.

Values taken from Vallado, Fundamentals of Astrodynamics, Fifth Edition,
2022, Appendix D. Units referenced to km (i.e. mu = km^3/s^2)
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BodyParams:
    """
    Immutable parameters for a celestial body.

    Attributes
    ----------
    mu : float
        Gravitational parameter [km³/s²]
    radius : float
        Equatorial radius [km]
    name : str, optional
        Body name
    """
    mu: float
    radius: float
    name: Optional[str] = None

    def __post_init__(self):
        #Validate parameters
        if self.mu <= 0:
            raise ValueError(f"Gravitational parameter must be positive, got {self.mu}")
        if self.radius <= 0:
            raise ValueError(f"Radius must be positive, got {self.radius}")


EARTH = BodyParams(
    mu=3.986004415e5,
    radius=6378.1363,
    name='Earth'
)

MOON = BodyParams(
    mu=4.902799e3,
    radius=1738.0,
    name='Moon'
)

MARS = BodyParams(
    mu=4.305e4,
    radius=3397.2,
    name='Mars'
)

SUN = BodyParams(
    mu=1.32712428e11,
    radius=6.96e5,
    name='Sun'
)
