"""
Continuous polar parameter sets.

A ContinuousPolar holds the scalar constants of the Kirchhoff coefficient
model for one body or segment, plus optional linear control derivatives
(SymmetricControl) that morph those constants with a control input.

Units: angles in degrees, slopes per radian, area m², mass kg, chord m.
"""

import numpy as np
from dataclasses import dataclass, field, fields, replace
from typing import Dict, List, Optional

POLAR_TYPES = ('Wingsuit', 'Canopy', 'Slick', 'Tracking', 'Airplane', 'Other')

# Control tables recognised by the coefficient model
CONTROL_NAMES = ('brake', 'front_riser', 'rear_riser', 'dirty')


@dataclass(frozen=True)
class SymmetricControl:
    """Per-unit-input derivatives added to the base polar fields."""
    d_alpha_0: float = 0.0           # deg per unit input (negative = more camber)
    d_cd_0: float = 0.0
    d_cl_alpha: float = 0.0          # 1/rad per unit input
    d_k: float = 0.0
    d_alpha_stall_fwd: float = 0.0   # deg per unit input
    d_alpha_stall_back: float = 0.0  # deg per unit input
    d_cd_n: float = 0.0
    d_cp_0: float = 0.0              # chord fraction per unit input
    d_cp_alpha: float = 0.0
    cm_delta: float = 0.0            # pitch moment per unit input


# Polar field targeted by each derivative
CONTROL_TARGETS = {
    'd_alpha_0': 'alpha_0',
    'd_cd_0': 'cd_0',
    'd_cl_alpha': 'cl_alpha',
    'd_k': 'k',
    'd_alpha_stall_fwd': 'alpha_stall_fwd',
    'd_alpha_stall_back': 'alpha_stall_back',
    'd_cd_n': 'cd_n',
    'd_cp_0': 'cp_0',
    'd_cp_alpha': 'cp_alpha',
    'cm_delta': 'cm_0',
}


@dataclass(frozen=True)
class MassSegment:
    """Point mass: fraction of total system mass at a height-normalised NED position."""
    name: str
    mass_ratio: float
    position: tuple  # (x, y, z) normalised by reference length

    @property
    def position_array(self) -> np.ndarray:
        return np.array(self.position, dtype=float)


@dataclass(frozen=True)
class ContinuousPolar:
    """
    Parameter set of the full-range coefficient model.

    Attributes
    ----------
    cl_alpha : float
        Lift-curve slope (1/rad)
    alpha_0 : float
        Zero-lift angle of attack (deg)
    cd_0, k : float
        Drag polar: CD = cd_0 + k * CL^2
    cd_n, cd_n_lateral : float
        Broadside (normal-force) drag for longitudinal and lateral flow
    alpha_stall_fwd, s1_fwd : float
        Forward stall angle and transition width (deg)
    alpha_stall_back, s1_back : float
        Back stall angle and transition width (deg)
    cy_beta, cn_beta, cl_beta : float
        Sideslip side-force, yaw and roll derivatives (1/rad)
    cm_0, cm_alpha : float
        Attached-flow pitching moment
    cp_0, cp_alpha : float
        Attached-flow centre of pressure (chord fraction)
    cg, cp_lateral : float
        CG and lateral CP (chord fraction)
    s, m, chord : float
        Reference area (m²), mass (kg), reference chord (m); all > 0
    controls : dict
        Control name -> SymmetricControl
    """
    name: str
    type: str
    cl_alpha: float
    alpha_0: float
    cd_0: float
    k: float
    cd_n: float
    cd_n_lateral: float
    alpha_stall_fwd: float
    s1_fwd: float
    alpha_stall_back: float
    s1_back: float
    cy_beta: float
    cn_beta: float
    cl_beta: float
    cm_0: float
    cm_alpha: float
    cp_0: float
    cp_alpha: float
    cg: float
    cp_lateral: float
    s: float
    m: float
    chord: float
    controls: Dict[str, SymmetricControl] = field(default_factory=dict)
    mass_segments: Optional[List[MassSegment]] = None
    inertia_mass_segments: Optional[List[MassSegment]] = None
    cg_offset_fraction: float = 0.0

    def __post_init__(self):
        for name in ('s', 'm', 'chord'):
            value = getattr(self, name)
            if not value > 0:
                raise ValueError(f"Polar '{self.name}': {name} must be positive, got {value}")
        if self.type not in POLAR_TYPES:
            raise ValueError(f"Polar '{self.name}': unknown type '{self.type}'")
        for control_name in self.controls:
            if control_name not in CONTROL_NAMES:
                raise ValueError(f"Polar '{self.name}': unknown control '{control_name}'")

    def control(self, name: str) -> Optional[SymmetricControl]:
        return self.controls.get(name)

    def with_values(self, **changes) -> 'ContinuousPolar':
        """Copy of this polar with some fields replaced (validated)."""
        return replace(self, **changes)


# Scalar fields interpolated by lerp_polar and overridable from config
SCALAR_FIELDS = tuple(
    f.name for f in fields(ContinuousPolar)
    if f.name not in ('name', 'type', 'controls', 'mass_segments',
                      'inertia_mass_segments', 'cg_offset_fraction')
)


def apply_control(polar: ContinuousPolar, control: SymmetricControl,
                  amount: float) -> ContinuousPolar:
    """
    Morph polar fields linearly: P = P + amount * dP.

    Returns the same object when amount is zero.
    """
    if amount == 0:
        return polar
    changes = {}
    for derivative, target in CONTROL_TARGETS.items():
        changes[target] = getattr(polar, target) + getattr(control, derivative) * amount
    return replace(polar, **changes)


def apply_all_controls(polar: ContinuousPolar, delta: float,
                       dirty: float = 0.0) -> ContinuousPolar:
    """
    Apply the primary control scaled by delta, then the dirty control.

    The primary control is the first table present out of brake,
    rear_riser and front_riser.
    """
    p = polar
    primary = (polar.controls.get('brake')
               or polar.controls.get('rear_riser')
               or polar.controls.get('front_riser'))
    if primary is not None and delta != 0:
        p = apply_control(p, primary, delta)

    dirty_ctrl = polar.controls.get('dirty')
    if dirty_ctrl is not None and dirty != 0:
        p = apply_control(p, dirty_ctrl, dirty)

    return p


def lerp_polar(t: float, polar_a: ContinuousPolar,
               polar_b: ContinuousPolar) -> ContinuousPolar:
    """
    Linear interpolation of every scalar field between two polars.

    Name, type, control tables and mass distributions come from polar_a.
    """
    changes = {
        name: getattr(polar_a, name) + t * (getattr(polar_b, name) - getattr(polar_a, name))
        for name in SCALAR_FIELDS
    }
    return replace(polar_a, **changes)
