"""
Apparent (added) mass of a thin canopy.

An accelerating canopy drags the surrounding air with it. For a thin flat
plate of span b and chord c the added mass and added rotational inertia
follow from strip theory:

    m_z = π/4 ρ c² b              (normal to the plate, dominant)
    m_y = π/4 ρ b² c              (spanwise)
    m_x = π/4 ρ (0.1 c)² b        (chordwise, ~10% thickness)

    I_xx = π/4 ρ c² b³ / 12       (roll)
    I_yy = π/4 ρ b c³ / 12        (pitch)
    I_zz = π/4 ρ (0.1 c)² b³ / 12 (yaw)
"""

import numpy as np
from dataclasses import dataclass

from .inertia import InertiaComponents

RHO_SEA_LEVEL = 1.225  # kg/m³


@dataclass(frozen=True)
class CanopyGeometry:
    span: float   # m
    chord: float  # m
    area: float   # m²


@dataclass(frozen=True)
class ApparentMass:
    """Added mass per body axis (kg)."""
    x: float
    y: float
    z: float

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z])


@dataclass(frozen=True)
class ApparentInertia:
    """Added rotational inertia per body axis (kg·m²)."""
    Ixx: float
    Iyy: float
    Izz: float


@dataclass(frozen=True)
class ApparentMassResult:
    mass: ApparentMass
    inertia: ApparentInertia


def canopy_geometry_from_polar(area: float, chord: float) -> CanopyGeometry:
    """Rectangular planform with the polar's reference area and chord."""
    return CanopyGeometry(span=area / chord, chord=chord, area=area)


def apparent_mass(geom: CanopyGeometry, rho: float = RHO_SEA_LEVEL) -> ApparentMass:
    span, chord = geom.span, geom.chord
    k = np.pi / 4.0 * rho
    t = 0.10 * chord
    return ApparentMass(
        x=k * t * t * span,
        y=k * span * span * chord,
        z=k * chord * chord * span,
    )


def apparent_inertia(geom: CanopyGeometry, rho: float = RHO_SEA_LEVEL) -> ApparentInertia:
    span, chord = geom.span, geom.chord
    k = np.pi / 4.0 * rho
    t = 0.10 * chord
    return ApparentInertia(
        Ixx=k * chord * chord * span ** 3 / 12.0,
        Iyy=k * span * chord ** 3 / 12.0,
        Izz=k * t * t * span ** 3 / 12.0,
    )


def apparent_mass_result(geom: CanopyGeometry, rho: float = RHO_SEA_LEVEL) -> ApparentMassResult:
    return ApparentMassResult(mass=apparent_mass(geom, rho), inertia=apparent_inertia(geom, rho))


def apparent_mass_at_deploy(full_geom: CanopyGeometry, deploy: float,
                            rho: float = RHO_SEA_LEVEL) -> ApparentMassResult:
    """
    Apparent mass of a partially inflated canopy.

    Span scales 10% -> 100% and chord 20% -> 100% with the deployment
    fraction (clamped to [0, 1]).
    """
    d = min(1.0, max(0.0, deploy))
    span = full_geom.span * (0.1 + 0.9 * d)
    chord = full_geom.chord * (0.2 + 0.8 * d)
    return apparent_mass_result(CanopyGeometry(span=span, chord=chord, area=span * chord), rho)


def effective_mass(physical_mass: float, apparent: ApparentMass) -> np.ndarray:
    """Per-axis effective mass [mx, my, mz] = physical + apparent (kg)."""
    return physical_mass + apparent.to_array()


def effective_inertia(physical: InertiaComponents,
                      apparent: ApparentInertia) -> InertiaComponents:
    """Physical inertia with the apparent inertia added on the diagonal."""
    return InertiaComponents(
        Ixx=physical.Ixx + apparent.Ixx,
        Iyy=physical.Iyy + apparent.Iyy,
        Izz=physical.Izz + apparent.Izz,
        Ixy=physical.Ixy,
        Ixz=physical.Ixz,
        Iyz=physical.Iyz,
    )
