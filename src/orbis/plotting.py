"""
Orbit plotting with Plotly.

Draws the conic described by a set of classical orbital elements, optionally
with the central body and the current position.

Examples
--------
>>> from orbis import COE, EARTH
>>> from orbis.plotting import plot_orbit, add_orbit_to_plot
>>> fig = plot_orbit(COE(7000.0, 0.01, 0.9, 0.0, 0.0, 0.0), body=EARTH)
>>> fig = add_orbit_to_plot(fig, COE(26560.0, 0.0, 0.96, 1.0, 0.0, 0.0))
>>> fig.show()
"""

import math
from typing import Optional

import numpy as np
import plotly.graph_objects as go

from .bodies import BodyParams
from .coe import ClassicalOrbitalElements
from .config import config
from .errors import DomainError, UndefinedValueError

# fraction of the asymptote angle drawn for hyperbolic orbits
_HYPERBOLIC_SPAN = 0.95


def _sample_orbit(coe: ClassicalOrbitalElements, n_points: int) -> np.ndarray:
    """Positions [km] along the conic, shape (n_points, 3)."""
    if not coe.is_defined():
        raise UndefinedValueError("Classical orbital elements are undefined")
    if n_points < 2:
        raise ValueError("n_points must be at least 2")
    e = coe.eccentricity
    if coe.semi_latus_rectum() <= 0:
        raise DomainError(
            f"Cannot draw elements with non-positive semi-latus rectum "
            f"(a={coe.semi_major_axis}, e={e})")
    if e < 1:
        nu = np.linspace(0.0, 2 * np.pi, n_points)
    else:
        nu_limit = _HYPERBOLIC_SPAN * math.acos(-1.0 / e)
        nu = np.linspace(-nu_limit, nu_limit, n_points)
    r = coe.semi_latus_rectum() / (1 + e * np.cos(nu))
    perifocal = np.column_stack([r * np.cos(nu), r * np.sin(nu), np.zeros_like(nu)])
    return coe.perifocal_rotation().apply(perifocal)


def _current_position(coe: ClassicalOrbitalElements) -> np.ndarray:
    nu = coe.true_anomaly
    r = coe.semi_latus_rectum() / (1 + coe.eccentricity * math.cos(nu))
    return coe.perifocal_rotation().apply([r * math.cos(nu), r * math.sin(nu), 0.0])


def _add_sphere_to_plot(fig, center, radius, color, opacity, name):
    """Helper to add a sphere to the plot at specified center."""
    u = np.linspace(0, 2 * np.pi, 30)
    v = np.linspace(0, np.pi, 20)

    x = center[0] + radius * np.outer(np.cos(u), np.sin(v))
    y = center[1] + radius * np.outer(np.sin(u), np.sin(v))
    z = center[2] + radius * np.outer(np.ones(np.size(u)), np.cos(v))

    fig.add_trace(go.Surface(
        x=x, y=y, z=z,
        colorscale=[[0, color], [1, color]],
        showscale=False,
        opacity=opacity,
        name=name,
        hoverinfo='name'
    ))


def plot_orbit(coe: ClassicalOrbitalElements,
               body: Optional[BodyParams] = None,
               n_points: Optional[int] = None,
               show_position: bool = True,
               orbit_color: Optional[str] = None,
               body_color: Optional[str] = None,
               body_opacity: Optional[float] = None) -> go.Figure:
    """
    Create 3D plot of an orbit with optional central body.

    Parameters:
        coe: Orbital elements to draw
        body: Central body drawn as a sphere at the origin (default: none)
        n_points: Number of points along the orbit (default: config.DEFAULT_PLOT_POINTS)
        show_position: Whether to mark the position at the current true anomaly
        orbit_color: Color of orbit line (default: config.DEFAULT_ORBIT_COLOR)
        body_color: Color of central body (default: config.DEFAULT_BODY_COLOR)
        body_opacity: Opacity of central body (default: config.DEFAULT_BODY_OPACITY)

    Returns:
        Plotly Figure object
    """
    n_points = config.DEFAULT_PLOT_POINTS if n_points is None else n_points
    orbit_color = config.DEFAULT_ORBIT_COLOR if orbit_color is None else orbit_color
    body_color = config.DEFAULT_BODY_COLOR if body_color is None else body_color
    body_opacity = config.DEFAULT_BODY_OPACITY if body_opacity is None else body_opacity

    fig = go.Figure()
    if body is not None:
        _add_sphere_to_plot(fig, center=(0, 0, 0), radius=body.radius,
                            color=body_color, opacity=body_opacity,
                            name=body.name or "Central Body")

    add_orbit_to_plot(fig, coe, n_points=n_points, color=orbit_color,
                      name='Orbit', show_position=show_position)

    fig.update_layout(
        scene=dict(
            xaxis_title='X [km]',
            yaxis_title='Y [km]',
            zaxis_title='Z [km]',
            aspectmode='data'
        ),
        title='Orbit',
        showlegend=True
    )
    return fig


def add_orbit_to_plot(fig: go.Figure, coe: ClassicalOrbitalElements,
                      n_points: Optional[int] = None, color: str = 'blue',
                      name: Optional[str] = None, show_position: bool = False,
                      **kwargs) -> go.Figure:
    """
    Add an orbit to an existing Plotly figure.

    Parameters:
        fig: Existing Plotly Figure object
        coe: Orbital elements to draw
        n_points: Number of points along the orbit (default: config.DEFAULT_PLOT_POINTS)
        color: Color of orbit line (default: 'blue')
        name: Legend name for this orbit (default: 'Orbit N')
        show_position: Whether to mark the position at the current true anomaly
        **kwargs: Additional arguments passed to Scatter3d

    Returns:
        Updated Plotly Figure object (same object, modified in place)
    """
    n_points = config.DEFAULT_PLOT_POINTS if n_points is None else n_points
    positions = _sample_orbit(coe, n_points)

    # Default name if not provided
    if name is None:
        n_existing = sum(1 for trace in fig.data if isinstance(trace, go.Scatter3d))
        name = f'Orbit {n_existing + 1}'

    fig.add_trace(go.Scatter3d(
        x=positions[:, 0],
        y=positions[:, 1],
        z=positions[:, 2],
        mode='lines',
        line=dict(color=color, width=3),
        name=name,
        hovertemplate='x: %{x:.1f}<br>y: %{y:.1f}<br>z: %{z:.1f}<extra></extra>',
        **kwargs
    ))

    if show_position:
        position = _current_position(coe)
        fig.add_trace(go.Scatter3d(
            x=[position[0]], y=[position[1]], z=[position[2]],
            mode='markers',
            marker=dict(color=color, size=5),
            name=f'{name} position'
        ))

    return fig
