"""
Full-range aerodynamic coefficients from a ContinuousPolar.

Evaluates the Kirchhoff blend of attached and flat-plate flow at any
(α, β), after morphing the polar by its control derivatives, and converts
coefficients to forces and sustained glide speeds.
"""

import numpy as np
from dataclasses import dataclass, asdict
from typing import Dict

from .kirchhoff import (
    DEG2RAD,
    separation,
    cl_attached, cd_attached,
    cl_plate, cd_plate,
    cm_plate, cp_plate,
)
from ..environment.atmosphere import G
from .polar import ContinuousPolar, apply_all_controls


@dataclass(frozen=True)
class Coefficients:
    """Coefficient bundle at one orientation."""
    cl: float
    cd: float
    cy: float
    cm: float
    cn: float       # yaw moment (+ nose right)
    cl_roll: float  # roll moment (+ right wing down)
    cp: float       # chord fraction from leading edge
    f: float        # attachment fraction

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class PseudoCoefficients:
    """Pseudo lift/drag coefficients recovered from a net inertial force."""
    kl: float
    kd: float
    roll: float         # rad
    vxs: float          # sustained horizontal speed (m/s)
    vys: float          # sustained vertical speed (m/s)
    glide_ratio: float


def get_cl(alpha_deg: float, beta_deg: float, polar: ContinuousPolar) -> float:
    """Lift coefficient of the unmorphed polar."""
    f = separation(alpha_deg, polar)
    cl = f * cl_attached(alpha_deg, polar) + (1 - f) * cl_plate(alpha_deg, polar.cd_n)
    cos_b = np.cos(beta_deg * DEG2RAD)
    return cl * cos_b * cos_b


def get_cd(alpha_deg: float, beta_deg: float, polar: ContinuousPolar) -> float:
    """Drag coefficient of the unmorphed polar."""
    f = separation(alpha_deg, polar)
    cd = f * cd_attached(alpha_deg, polar) + (1 - f) * cd_plate(alpha_deg, polar.cd_n, polar.cd_0)
    beta_rad = beta_deg * DEG2RAD
    cos_b = np.cos(beta_rad)
    sin_b = np.sin(beta_rad)
    return cd * cos_b * cos_b + polar.cd_n_lateral * sin_b * sin_b


def get_cy(beta_deg: float, polar: ContinuousPolar) -> float:
    """Side force coefficient: cy_beta * sin(β) * cos(β)."""
    beta_rad = beta_deg * DEG2RAD
    return polar.cy_beta * np.sin(beta_rad) * np.cos(beta_rad)


def get_cm(alpha_deg: float, polar: ContinuousPolar) -> float:
    """Pitching moment blended between attached and flat-plate values."""
    f = separation(alpha_deg, polar)
    alpha_rad = (alpha_deg - polar.alpha_0) * DEG2RAD
    cm_att = polar.cm_0 + polar.cm_alpha * alpha_rad
    return f * cm_att + (1 - f) * cm_plate(alpha_deg)


def get_cp(alpha_deg: float, polar: ContinuousPolar) -> float:
    """Centre of pressure blended between attached and flat-plate values."""
    f = separation(alpha_deg, polar)
    alpha_rad = (alpha_deg - polar.alpha_0) * DEG2RAD
    cp_att = np.clip(polar.cp_0 + polar.cp_alpha * alpha_rad, 0.0, 1.0)
    return f * cp_att + (1 - f) * cp_plate(alpha_deg)


def get_all_coefficients(alpha_deg: float, beta_deg: float, delta: float,
                         polar: ContinuousPolar, dirty: float = 0.0) -> Coefficients:
    """
    Evaluate every coefficient at one orientation.

    Parameters
    ----------
    alpha_deg : float
        Angle of attack (deg)
    beta_deg : float
        Sideslip (deg)
    delta : float
        Primary control input (brake / riser), scales the primary control table
    polar : ContinuousPolar
        Base parameter set
    dirty : float, optional
        Degradation input, scales the 'dirty' control table

    Returns
    -------
    Coefficients
        cl, cd, cy, cm, cn, cl_roll, cp and attachment fraction f
    """
    p = apply_all_controls(polar, delta, dirty)

    f = separation(alpha_deg, p)

    cl = f * cl_attached(alpha_deg, p) + (1 - f) * cl_plate(alpha_deg, p.cd_n)
    cd = f * cd_attached(alpha_deg, p) + (1 - f) * cd_plate(alpha_deg, p.cd_n, p.cd_0)

    # Sideslip: lift and drag fade with cos²β, lateral broadside drag with sin²β
    beta_rad = beta_deg * DEG2RAD
    cos_b = np.cos(beta_rad)
    sin_b = np.sin(beta_rad)
    cl = cl * cos_b * cos_b
    cd = cd * cos_b * cos_b + p.cd_n_lateral * sin_b * sin_b
    cy = p.cy_beta * sin_b * cos_b

    alpha_rad = (alpha_deg - p.alpha_0) * DEG2RAD
    cm_att = p.cm_0 + p.cm_alpha * alpha_rad
    cm = f * cm_att + (1 - f) * cm_plate(alpha_deg)

    cp_att = np.clip(p.cp_0 + p.cp_alpha * alpha_rad, 0.0, 1.0)
    cp = f * cp_att + (1 - f) * cp_plate(alpha_deg)

    cn = p.cn_beta * sin_b * cos_b
    cl_roll = p.cl_beta * sin_b * cos_b

    return Coefficients(
        cl=float(cl), cd=float(cd), cy=float(cy), cm=float(cm),
        cn=float(cn), cl_roll=float(cl_roll), cp=float(cp), f=float(f)
    )


def coeff_to_forces(cl: float, cd: float, cy: float, s: float, m: float,
                    rho: float, v: float) -> Dict[str, float]:
    """Dimensional lift, drag, side force and weight (N)."""
    q = 0.5 * rho * v * v
    return {
        'lift': q * s * cl,
        'drag': q * s * cd,
        'side': q * s * cy,
        'weight': m * G,
    }


def coeff_to_sustained_speeds(cl: float, cd: float, s: float, m: float,
                              rho: float):
    """
    Equilibrium glide speeds from CL and CD.

    V = sqrt(2 m g / (rho S sqrt(CL² + CD²))), split into horizontal (vxs)
    and vertical (vys) parts by the CL/CD ratio.

    Returns
    -------
    vxs, vys : float
        Sustained horizontal and sink speed (m/s); zero when both
        coefficients vanish
    """
    ctot = np.sqrt(cl * cl + cd * cd)
    if ctot < 1e-10:
        return 0.0, 0.0
    v = np.sqrt((2.0 * m * G) / (rho * s * ctot))
    return float(v * cl / ctot), float(v * cd / ctot)


def net_force_to_pseudo(net_force: np.ndarray, velocity: np.ndarray,
                        mass: float) -> PseudoCoefficients:
    """
    Recover pseudo coefficients from a net inertial force.

    The net force (aero + gravity, NED inertial) is split into a drag part
    along the velocity and a lift part perpendicular to it, normalised by
    g·V² so that the pseudo coefficients are independent of density and area.

    Parameters
    ----------
    net_force : ndarray, shape (3,)
        Net force in NED inertial frame (N), gravity included
    velocity : ndarray, shape (3,)
        Inertial velocity (m/s)
    mass : float
        System mass (kg)
    """
    a_n, a_e, a_d = np.asarray(net_force, dtype=float) / mass
    a_d_aero = a_d - G

    v_n, v_e, v_d = np.asarray(velocity, dtype=float)
    v = np.sqrt(v_n * v_n + v_e * v_e + v_d * v_d)
    v_ground = np.sqrt(v_n * v_n + v_e * v_e)

    if v < 0.01:
        return PseudoCoefficients(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

    # Drag: projection of the aero acceleration on the velocity
    a_proj = (a_n * v_n + a_e * v_e + a_d_aero * v_d) / v
    drag = np.array([a_proj * v_n / v, a_proj * v_e / v, a_proj * v_d / v])
    drag_dot_v = drag[0] * v_n + drag[1] * v_e + drag[2] * v_d
    drag_mag = np.linalg.norm(drag)
    a_d_scalar = -drag_mag if drag_dot_v > 0 else drag_mag

    lift = np.array([a_n, a_e, a_d_aero]) - drag
    a_l = np.linalg.norm(lift)

    kl = a_l / (G * v * v)
    kd = a_d_scalar / (G * v * v)

    roll = 0.0
    if kl * v_ground * v > 1e-10:
        cos_roll = (1 - a_d / G - kd * v * v_d) / (kl * v_ground * v)
        roll = np.arccos(np.clip(cos_roll, -1.0, 1.0))
        if lift[0] * (-v_e) + lift[1] * v_n < 0:
            roll = -roll

    klkd = kl * kl + kd * kd
    denom = klkd ** 0.75 if klkd > 1e-20 else 1e-10
    glide_ratio = kl / kd if abs(kd) > 1e-10 else 0.0

    return PseudoCoefficients(
        kl=float(kl), kd=float(kd), roll=float(roll),
        vxs=float(kl / denom), vys=float(kd / denom),
        glide_ratio=float(glide_ratio)
    )
