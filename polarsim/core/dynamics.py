"""
6-DOF equations of motion in body axes.

Implements the rigid body dynamics equations:
- Translational dynamics (Newton's 2nd law with ω x V transport terms)
- Rotational dynamics (Euler's equations, xz-plane symmetric body)
- Euler angle kinematics (3-2-1 sequence) and NED position rates

The translational equations also come in a per-axis mass form so an
apparent-mass canopy can be accelerated with different effective mass
along x, y and z.

Units: SI (m, s, kg, N, rad).
"""

import logging
import warnings
import numpy as np
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from ..environment.atmosphere import G
from ..aero.polar import MassSegment
from .inertia import InertiaComponents
from .state import SimState

logger = logging.getLogger(__name__)

GIMBAL_LOCK_TOLERANCE = 1e-6


def gravity_body(phi: float, theta: float, g: float = G) -> np.ndarray:
    """
    Gravitational acceleration resolved in body axes (m/s²).

    g_body = g * [-sin θ, sin φ cos θ, cos φ cos θ]
    """
    st, ct = np.sin(theta), np.cos(theta)
    sp, cp = np.sin(phi), np.cos(phi)
    return np.array([-g * st, g * sp * ct, g * cp * ct])


def translational_eom(force: np.ndarray, mass: float,
                      velocity: np.ndarray, omega: np.ndarray) -> np.ndarray:
    """
    Body-frame acceleration [u̇, v̇, ẇ] from total force (gravity included).

    V̇ = F/m - ω x V
    """
    if not mass > 0:
        raise ValueError(f"Mass must be positive, got {mass}")
    return translational_eom_anisotropic(force, np.array([mass, mass, mass]),
                                         velocity, omega)


def translational_eom_anisotropic(force: np.ndarray, mass_per_axis: np.ndarray,
                                  velocity: np.ndarray, omega: np.ndarray) -> np.ndarray:
    """
    Body-frame acceleration with a different effective mass per axis.

    u̇ = (Fx + my·r·v - mz·q·w) / mx
    v̇ = (Fy + mz·p·w - mx·r·u) / my
    ẇ = (Fz + mx·q·u - my·p·v) / mz

    Each transport term is weighted by the mass of the axis the momentum
    is carried on. With mx = my = mz this reduces to translational_eom().

    Parameters
    ----------
    force : ndarray, shape (3,)
        Total body-frame force including gravity (N)
    mass_per_axis : ndarray, shape (3,)
        Effective mass [mx, my, mz] (kg)
    velocity : ndarray, shape (3,)
        Body velocity [u, v, w] (m/s)
    omega : ndarray, shape (3,)
        Body rates [p, q, r] (rad/s)
    """
    mx, my, mz = mass_per_axis
    if min(mx, my, mz) <= 0:
        raise ValueError(f"Per-axis mass must be positive, got {mass_per_axis}")
    fx, fy, fz = force
    u, v, w = velocity
    p, q, r = omega
    return np.array([
        (fx + my * r * v - mz * q * w) / mx,
        (fy + mz * p * w - mx * r * u) / my,
        (fz + mx * q * u - my * p * v) / mz,
    ])


def rotational_eom(moment: np.ndarray, inertia: InertiaComponents,
                   omega: np.ndarray) -> np.ndarray:
    """
    Angular acceleration [ṗ, q̇, ṙ] from the moment about the CG.

    Solves I·ω̇ = M - ω x (I·ω) in closed form for a body symmetric about
    its xz plane (Ixy = Iyz = 0):

        Γ  = Ixx·Izz - Ixz²
        ṗ  = (Izz·hx - Ixz·hz) / Γ
        q̇  = hy / Iyy
        ṙ  = (Ixx·hz - Ixz·hx) / Γ

    with h = M - ω x (I·ω). Ixz is the tensor element (-Σ m·x·z). When it is
    zero the diagonal form ṗ = (L + (Iyy - Izz)·q·r) / Ixx etc. is used.

    Parameters
    ----------
    moment : ndarray, shape (3,)
        Moment about the CG [L, M, N] (N·m)
    inertia : InertiaComponents
        Inertia about the CG (kg·m²)
    omega : ndarray, shape (3,)
        Body rates [p, q, r] (rad/s)
    """
    L, M, N = moment
    p, q, r = omega
    Ixx, Iyy, Izz, Ixz = inertia.Ixx, inertia.Iyy, inertia.Izz, inertia.Ixz

    if min(Ixx, Iyy, Izz) <= 0:
        raise ValueError(f"Principal inertias must be positive, got {inertia}")

    if Ixz == 0:
        return np.array([
            (L + (Iyy - Izz) * q * r) / Ixx,
            (M + (Izz - Ixx) * p * r) / Iyy,
            (N + (Ixx - Iyy) * p * q) / Izz,
        ])

    # h = M - ω x (I·ω) for the xz-symmetric tensor
    hx = L - (q * (Ixz * p + Izz * r) - r * Iyy * q)
    hy = M - (r * (Ixx * p + Ixz * r) - p * (Ixz * p + Izz * r))
    hz = N - (p * Iyy * q - q * (Ixx * p + Ixz * r))

    gamma = Ixx * Izz - Ixz * Ixz
    return np.array([
        (Izz * hx - Ixz * hz) / gamma,
        hy / Iyy,
        (Ixx * hz - Ixz * hx) / gamma,
    ])


def euler_rates(phi: float, theta: float, omega: np.ndarray) -> np.ndarray:
    """
    Euler angle rates [φ̇, θ̇, ψ̇] from body rates (3-2-1 sequence).

    φ̇ = p + (q sin φ + r cos φ) tan θ
    θ̇ = q cos φ - r sin φ
    ψ̇ = (q sin φ + r cos φ) / cos θ

    Singular at θ = ±90°; a RuntimeWarning is issued and cos θ is held at
    the tolerance so the result stays finite.
    """
    p, q, r = omega
    sp, cp = np.sin(phi), np.cos(phi)
    ct = np.cos(theta)
    if abs(ct) < GIMBAL_LOCK_TOLERANCE:
        warnings.warn(f"Euler angles near gimbal lock (theta = {np.degrees(theta):.2f} deg)",
                      RuntimeWarning)
        ct = GIMBAL_LOCK_TOLERANCE if ct >= 0 else -GIMBAL_LOCK_TOLERANCE
    tt = np.sin(theta) / ct

    return np.array([
        p + sp * tt * q + cp * tt * r,
        cp * q - sp * r,
        (sp * q + cp * r) / ct,
    ])


def body_rates_from_euler_rates(phi: float, theta: float,
                                euler_dot: np.ndarray) -> np.ndarray:
    """
    Inverse of euler_rates(): body rates [p, q, r] from [φ̇, θ̇, ψ̇].

    p = φ̇ - ψ̇ sin θ
    q = θ̇ cos φ + ψ̇ sin φ cos θ
    r = -θ̇ sin φ + ψ̇ cos φ cos θ
    """
    phi_dot, theta_dot, psi_dot = euler_dot
    sp, cp = np.sin(phi), np.cos(phi)
    st, ct = np.sin(theta), np.cos(theta)
    return np.array([
        phi_dot - psi_dot * st,
        theta_dot * cp + psi_dot * sp * ct,
        -theta_dot * sp + psi_dot * cp * ct,
    ])


def body_to_inertial_velocity(velocity: np.ndarray, phi: float, theta: float,
                              psi: float) -> np.ndarray:
    """NED position rates [ẋ, ẏ, ż] from body velocity via the 3-2-1 DCM."""
    u, v, w = velocity
    sp, cp = np.sin(phi), np.cos(phi)
    st, ct = np.sin(theta), np.cos(theta)
    ss, cs = np.sin(psi), np.cos(psi)
    return np.array([
        ct * cs * u + (sp * st * cs - cp * ss) * v + (cp * st * cs + sp * ss) * w,
        ct * ss * u + (sp * st * ss + cp * cs) * v + (cp * st * ss - sp * cs) * w,
        -st * u + sp * ct * v + cp * ct * w,
    ])


# === Pilot pendulum ===

@dataclass(frozen=True)
class PilotPendulumParams:
    """Pilot hanging below the riser attachment, swinging in pitch."""
    pilot_mass: float   # kg
    iy_riser: float     # kg·m², pitch inertia about the riser pivot
    riser_to_cg: float  # m, pivot to pilot CG
    cg_offset: np.ndarray  # m, [dx, dz] pivot to pilot CG


def compute_pilot_pendulum_params(pilot_segments: Sequence[MassSegment],
                                  pivot_x: float, pivot_z: float,
                                  height: float = 1.875,
                                  total_weight: float = 77.5) -> PilotPendulumParams:
    """
    Pendulum parameters of the pilot mass segments about the riser pivot.

    Parameters
    ----------
    pilot_segments : sequence of MassSegment
        Pilot point masses (ratios of total_weight, normalised positions)
    pivot_x, pivot_z : float
        Riser attachment point (normalised)
    height : float
        Reference length (m)
    total_weight : float
        System mass the ratios refer to (kg)
    """
    pilot_mass = 0.0
    iy = 0.0
    cg_dx = 0.0
    cg_dz = 0.0
    for seg in pilot_segments:
        m = seg.mass_ratio * total_weight
        dx = (seg.position[0] - pivot_x) * height
        dz = (seg.position[2] - pivot_z) * height
        pilot_mass += m
        iy += m * (dx * dx + dz * dz)
        cg_dx += m * dx
        cg_dz += m * dz

    if pilot_mass > 0:
        cg_dx /= pilot_mass
        cg_dz /= pilot_mass

    return PilotPendulumParams(
        pilot_mass=pilot_mass,
        iy_riser=iy,
        riser_to_cg=float(np.hypot(cg_dx, cg_dz)),
        cg_offset=np.array([cg_dx, cg_dz]),
    )


def pilot_pendulum_eom(params: PilotPendulumParams, theta_pilot: float,
                       theta_canopy: float, aero_torque: float,
                       q_dot_canopy: float = 0.0, g: float = G) -> float:
    """
    Angular acceleration of the pilot swing about the riser pivot (rad/s²).

    θ̈ = (-m·g·l·sin(θp - θc) + τ_aero - Iy·q̇_canopy) / Iy

    Returns 0 for a massless pilot.
    """
    if params.iy_riser < 1e-10:
        return 0.0
    gravity = -params.pilot_mass * g * params.riser_to_cg * np.sin(theta_pilot - theta_canopy)
    coupling = -params.iy_riser * q_dot_canopy
    return (gravity + aero_torque + coupling) / params.iy_riser


def pilot_swing_damping_torque(pilot_segments: Sequence[MassSegment], pivot_x: float,
                               pivot_z: float, theta_dot: float, rho: float = 1.225,
                               height: float = 1.875, total_weight: float = 77.5,
                               pilot_area: float = 0.55, cd: float = 1.0) -> float:
    """
    Aerodynamic torque resisting the pilot swing (N·m).

    The pilot frontal area is shared between the segments by mass ratio;
    each piece moving at θ̇·r produces drag -½ρ·cd·A·vt|vt| at lever arm r.
    """
    if abs(theta_dot) < 1e-10:
        return 0.0
    ratio_sum = sum(seg.mass_ratio for seg in pilot_segments)
    if ratio_sum <= 0:
        return 0.0

    torque = 0.0
    for seg in pilot_segments:
        dx = (seg.position[0] - pivot_x) * height
        dz = (seg.position[2] - pivot_z) * height
        r = np.hypot(dx, dz)
        area = pilot_area * seg.mass_ratio / ratio_sum
        vt = theta_dot * r
        torque += -0.5 * rho * cd * area * vt * abs(vt) * r
    return float(torque)


class RigidBodyDynamics:
    """
    6-DOF rigid body dynamics with Euler angle attitude.

    Equations of motion in body frame:
    - Forces: F + m·g_body = m * (V̇ + ω x V)   (per-axis mass optional)
    - Moments: M = I * ω̇ + ω x (I * ω)
    - Kinematics: Euler angle rates and NED position rates
    """

    def __init__(self, mass: float, inertia: InertiaComponents,
                 mass_per_axis: Optional[np.ndarray] = None, g: float = G):
        """
        Initialize rigid body dynamics.

        Parameters:
        -----------
        mass : float
            Physical mass (kg), used for gravity
        inertia : InertiaComponents
            Inertia about the CG (kg·m²)
        mass_per_axis : np.ndarray, optional
            Effective mass [mx, my, mz] (kg) for the translational equations.
            None uses `mass` on all axes.
        g : float
            Gravitational acceleration (m/s²)
        """
        if not mass > 0:
            raise ValueError(f"Mass must be positive, got {mass}")
        self.mass = mass
        self.inertia = inertia
        self.mass_per_axis = None if mass_per_axis is None else np.asarray(mass_per_axis, dtype=float)
        self.g = g

    def state_derivative(self, state: SimState,
                         forces_moments: Callable[[SimState], Tuple[np.ndarray, np.ndarray]]
                         ) -> np.ndarray:
        """
        Compute state time derivative (state_dot).

        Parameters:
        -----------
        state : SimState
            Current state
        forces_moments : Callable
            Function that returns aerodynamic (forces, moments) given state
            forces: np.ndarray (3,) - [Fx, Fy, Fz] in body frame (N)
            moments: np.ndarray (3,) - [L, M, N] about the CG (N·m)

        Returns:
        --------
        state_dot : np.ndarray, shape (12,)
            [ẋ, ẏ, ż, u̇, v̇, ẇ, φ̇, θ̇, ψ̇, ṗ, q̇, ṙ]
        """
        vel_body = state.velocity_body
        omega = state.angular_rates

        forces, moments = forces_moments(state)

        # === Translational Dynamics ===
        force_total = np.asarray(forces, dtype=float) + self.mass * gravity_body(state.phi, state.theta, self.g)
        if self.mass_per_axis is None:
            vel_body_dot = translational_eom(force_total, self.mass, vel_body, omega)
        else:
            vel_body_dot = translational_eom_anisotropic(force_total, self.mass_per_axis,
                                                         vel_body, omega)

        # === Rotational Dynamics ===
        omega_dot = rotational_eom(np.asarray(moments, dtype=float), self.inertia, omega)

        # === Kinematics ===
        pos_dot = body_to_inertial_velocity(vel_body, state.phi, state.theta, state.psi)
        euler_dot = euler_rates(state.phi, state.theta, omega)

        state_dot = np.zeros(12)
        state_dot[0:3] = pos_dot
        state_dot[3:6] = vel_body_dot
        state_dot[6:9] = euler_dot
        state_dot[9:12] = omega_dot
        return state_dot


if __name__ == "__main__":
    print("=== Rigid Body Dynamics Test ===\n")

    inertia = InertiaComponents(Ixx=100.0, Iyy=40.0, Izz=90.0, Ixz=-5.0)
    dynamics = RigidBodyDynamics(mass=77.5, inertia=inertia)

    state = SimState()
    state.velocity_body = np.array([10.0, 0.0, 4.0])
    state.theta = np.radians(-10.0)

    def no_aero(s):
        return np.zeros(3), np.zeros(3)

    state_dot = dynamics.state_derivative(state, no_aero)
    print(f"Free-fall state derivative:\n{state_dot}")

    omega = np.array([0.3, 0.1, -0.2])
    moment = np.array([5.0, -2.0, 1.0])
    closed = rotational_eom(moment, inertia, omega)
    I = inertia.to_matrix()
    direct = np.linalg.solve(I, moment - np.cross(omega, I @ omega))
    print(f"\nClosed-form omega_dot: {closed}")
    print(f"Direct solve:          {direct}")
