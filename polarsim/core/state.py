"""
12-state rigid-body vector for 6-DOF flight dynamics.

State includes:
- Position (x, y, z) in NED inertial frame
- Velocity (u, v, w) in body frame
- Euler angles (phi, theta, psi), 3-2-1 sequence
- Angular rates (p, q, r) in body frame
"""

import numpy as np
from typing import Tuple

from archimedes import struct

N_STATES = 12

STATE_NAMES = ('x', 'y', 'z', 'u', 'v', 'w', 'phi', 'theta', 'psi', 'p', 'q', 'r')


@struct(frozen=False)
class SimState:
    """
    Rigid-body state (SI units).

    State variables (12 total):
    - Position: x, y, z (NED inertial frame, m)
    - Velocity: u, v, w (body frame, m/s)
    - Attitude: phi, theta, psi (rad)
    - Angular rates: p, q, r (body frame, rad/s)
    """

    # Position in NED frame (m)
    x: float = 0.0  # North
    y: float = 0.0  # East
    z: float = 0.0  # Down (negative altitude)

    # Velocity in body frame (m/s)
    u: float = 0.0  # Forward
    v: float = 0.0  # Right
    w: float = 0.0  # Down

    # Euler angles (rad)
    phi: float = 0.0    # Roll
    theta: float = 0.0  # Pitch
    psi: float = 0.0    # Heading

    # Angular rates in body frame (rad/s)
    p: float = 0.0  # Roll rate
    q: float = 0.0  # Pitch rate
    r: float = 0.0  # Yaw rate

    @property
    def position(self) -> np.ndarray:
        """Position in NED frame (m)."""
        return np.hstack([self.x, self.y, self.z])

    @position.setter
    def position(self, pos: np.ndarray):
        self.x, self.y, self.z = pos

    @property
    def velocity_body(self) -> np.ndarray:
        """Velocity in body frame (m/s)."""
        return np.hstack([self.u, self.v, self.w])

    @velocity_body.setter
    def velocity_body(self, vel: np.ndarray):
        self.u, self.v, self.w = vel

    @property
    def euler_angles(self) -> Tuple[float, float, float]:
        """(phi, theta, psi) in rad."""
        return self.phi, self.theta, self.psi

    def set_euler_angles(self, phi: float, theta: float, psi: float):
        self.phi, self.theta, self.psi = phi, theta, psi

    @property
    def angular_rates(self) -> np.ndarray:
        """Body angular rates [p, q, r] (rad/s)."""
        return np.hstack([self.p, self.q, self.r])

    @angular_rates.setter
    def angular_rates(self, omega: np.ndarray):
        self.p, self.q, self.r = omega

    @property
    def airspeed(self) -> float:
        """Airspeed in still air (m/s)."""
        return float(np.linalg.norm(self.velocity_body))

    @property
    def altitude(self) -> float:
        """Altitude above the origin (m, positive up)."""
        return -self.z

    @altitude.setter
    def altitude(self, alt: float):
        self.z = -alt

    @property
    def alpha(self) -> float:
        """
        Angle of attack (rad).

        alpha = atan2(w, u)
        """
        if self.airspeed < 1e-6:
            return 0.0
        return float(np.arctan2(self.w, self.u))

    @property
    def beta(self) -> float:
        """
        Sideslip angle (rad).

        beta = asin(v / V)
        """
        V = self.airspeed
        if V < 1e-6:
            return 0.0
        return float(np.arcsin(np.clip(self.v / V, -1.0, 1.0)))

    def to_array(self) -> np.ndarray:
        """
        Convert state to numpy array.

        Returns:
        --------
        x : np.ndarray, shape (12,)
            [x, y, z, u, v, w, phi, theta, psi, p, q, r]
        """
        return np.array([getattr(self, name) for name in STATE_NAMES], dtype=float)

    def from_array(self, x: np.ndarray):
        """
        Load state from numpy array.

        Parameters:
        -----------
        x : np.ndarray, shape (12,)
            [x, y, z, u, v, w, phi, theta, psi, p, q, r]
        """
        if len(x) != N_STATES:
            raise ValueError(f"Expected {N_STATES} state values, got {len(x)}")
        for name, value in zip(STATE_NAMES, x):
            setattr(self, name, float(value))

    def copy(self) -> 'SimState':
        new_state = SimState()
        new_state.from_array(self.to_array())
        return new_state

    def __repr__(self) -> str:
        return (f"SimState(pos=[{self.x:.2f}, {self.y:.2f}, {self.z:.2f}], "
                f"vel=[{self.u:.2f}, {self.v:.2f}, {self.w:.2f}], "
                f"euler=[{np.degrees(self.phi):.1f}, {np.degrees(self.theta):.1f}, "
                f"{np.degrees(self.psi):.1f}] deg, "
                f"rates=[{self.p:.3f}, {self.q:.3f}, {self.r:.3f}])")


def state_from_array(x: np.ndarray) -> SimState:
    """New SimState holding the 12 values of x."""
    state = SimState()
    state.from_array(x)
    return state


def state_from_flight_condition(airspeed: float, alpha: float, beta: float = 0.0,
                                theta: float = 0.0, phi: float = 0.0, psi: float = 0.0,
                                altitude: float = 0.0) -> SimState:
    """
    State from airspeed and flow angles (rad).

    u = V cos(α) cos(β), v = V sin(β), w = V sin(α) cos(β)
    """
    state = SimState()
    state.velocity_body = airspeed * np.array([
        np.cos(alpha) * np.cos(beta),
        np.sin(beta),
        np.sin(alpha) * np.cos(beta),
    ])
    state.set_euler_angles(phi, theta, psi)
    state.altitude = altitude
    return state
