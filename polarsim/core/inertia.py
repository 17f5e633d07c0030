"""
Mass properties from point-mass segments.

Mass segments carry a fraction of the total system mass at a position
normalised by the reference length. This module reduces them to a centre of
mass and a full inertia tensor about that centre of mass.
"""

import numpy as np
from dataclasses import dataclass
from typing import Sequence

from ..aero.polar import MassSegment


@dataclass(frozen=True)
class InertiaComponents:
    """
    Inertia tensor components (kg·m²).

    Ixy, Ixz, Iyz are the off-diagonal tensor elements, i.e. -Σ m·x·y etc.
    """
    Ixx: float
    Iyy: float
    Izz: float
    Ixy: float = 0.0
    Ixz: float = 0.0
    Iyz: float = 0.0

    def to_matrix(self) -> np.ndarray:
        """Symmetric 3x3 inertia tensor."""
        return np.array([
            [self.Ixx, self.Ixy, self.Ixz],
            [self.Ixy, self.Iyy, self.Iyz],
            [self.Ixz, self.Iyz, self.Izz],
        ])


ZERO_INERTIA = InertiaComponents(Ixx=0.0, Iyy=0.0, Izz=0.0)


def physical_mass_positions(mass_segments: Sequence[MassSegment], height: float,
                            total_mass: float):
    """
    Masses (kg) and positions (m) of the segments.

    Returns
    -------
    masses : ndarray, shape (N,)
    positions : ndarray, shape (N, 3)
    """
    masses = np.array([seg.mass_ratio * total_mass for seg in mass_segments], dtype=float)
    positions = np.array([seg.position for seg in mass_segments], dtype=float).reshape(-1, 3)
    return masses, positions * height


def center_of_mass(mass_segments: Sequence[MassSegment], height: float,
                   total_mass: float) -> np.ndarray:
    """
    Mass-weighted centroid of the segments (m, NED body frame).

    Returns the origin when the segments carry no mass.
    """
    masses, positions = physical_mass_positions(mass_segments, height, total_mass)
    mass_sum = masses.sum()
    if mass_sum <= 0:
        return np.zeros(3)
    return masses @ positions / mass_sum


def calculate_inertia_components(masses: np.ndarray, positions: np.ndarray,
                                 origin: np.ndarray) -> InertiaComponents:
    """Point-mass inertia sums about `origin`."""
    r = np.asarray(positions, dtype=float) - np.asarray(origin, dtype=float)
    x, y, z = r[:, 0], r[:, 1], r[:, 2]
    m = np.asarray(masses, dtype=float)
    return InertiaComponents(
        Ixx=float(np.sum(m * (y * y + z * z))),
        Iyy=float(np.sum(m * (x * x + z * z))),
        Izz=float(np.sum(m * (x * x + y * y))),
        Ixy=float(-np.sum(m * x * y)),
        Ixz=float(-np.sum(m * x * z)),
        Iyz=float(-np.sum(m * y * z)),
    )


def inertia_tensor(mass_segments: Sequence[MassSegment], height: float,
                   total_mass: float) -> InertiaComponents:
    """
    Inertia of the segments about their own centre of mass.

    Parameters
    ----------
    mass_segments : sequence of MassSegment
        Point masses (ratios of total_mass, normalised positions)
    height : float
        Reference length (m); inertia scales with height²
    total_mass : float
        System mass (kg)
    """
    if len(mass_segments) == 0:
        return ZERO_INERTIA
    masses, positions = physical_mass_positions(mass_segments, height, total_mass)
    cg = center_of_mass(mass_segments, height, total_mass)
    return calculate_inertia_components(masses, positions, cg)

