"""
Stability Analysis Tools

Provides linearization and stability analysis for the 12-state rigid body:
- Linearize dynamics about a trim point
- Extract A, B state-space matrices
- Compute eigenvalues and eigenvectors
- Identify and analyze dynamic modes
"""

import logging
import numpy as np
from dataclasses import dataclass, replace
from typing import Callable, List, Sequence, Tuple

from ..aero.segments import SegmentControls
from ..core.simulation import SimConfig, compute_derivatives
from ..core.state import N_STATES, SimState, state_from_array

logger = logging.getLogger(__name__)

DEFAULT_INPUTS = ('brake_left', 'brake_right')


@dataclass
class DynamicMode:
    """
    A dynamic mode of the linearized system.

    Attributes
    ----------
    name : str
        Mode name (e.g., 'Phugoid', 'Short Period', 'Dutch Roll')
    eigenvalue : complex
        Complex eigenvalue
    damping_ratio : float
        Damping ratio ζ
    natural_frequency : float
        Natural frequency ωn (rad/s)
    period : float
        Period of oscillation (seconds)
    time_to_half : float
        Time to half amplitude (seconds)
    eigenvector : ndarray
        Eigenvector
    """
    name: str
    eigenvalue: complex
    damping_ratio: float
    natural_frequency: float
    period: float
    time_to_half: float
    eigenvector: np.ndarray


class LinearizedModel:
    """
    Linearized state-space model dx/dt = A*x + B*u.

    x is the 12-state perturbation [x, y, z, u, v, w, phi, theta, psi, p, q, r],
    u the perturbation of the named SegmentControls inputs.
    """

    def __init__(self, A: np.ndarray, B: np.ndarray, trim_state: SimState,
                 trim_controls: SegmentControls, input_names: Sequence[str]):
        self.A = A
        self.B = B
        self.trim_state = trim_state
        self.trim_controls = trim_controls
        self.input_names = tuple(input_names)

    @property
    def n_states(self) -> int:
        return self.A.shape[0]

    @property
    def n_inputs(self) -> int:
        return self.B.shape[1]

    def eigenvalues(self) -> np.ndarray:
        return np.linalg.eigvals(self.A)

    def eigenvectors(self) -> Tuple[np.ndarray, np.ndarray]:
        return np.linalg.eig(self.A)

    def is_stable(self, tol: float = 1e-6) -> bool:
        """
        True if no eigenvalue has a real part above tol.

        Position and heading are neutral states (zero eigenvalues), so the
        check allows a small tolerance rather than demanding strict decay.
        """
        return bool(np.all(np.real(self.eigenvalues()) < tol))


class StabilityAnalyzer:
    """
    Stability analysis for 6-DOF flight dynamics.

    Performs linearization about trim, eigenvalue analysis,
    and mode identification.
    """

    def __init__(self, dynamics_function: Callable[[SimState, SegmentControls], np.ndarray]):
        """
        Parameters
        ----------
        dynamics_function : callable
            f(state, controls) -> state_dot, shape (12,)
        """
        self.dynamics_function = dynamics_function

    @classmethod
    def from_sim_config(cls, config: SimConfig) -> 'StabilityAnalyzer':
        """Analyzer for a vehicle snapshot; controls replace config.controls."""
        def dynamics(state, controls):
            return compute_derivatives(state, replace(config, controls=controls))
        return cls(dynamics)

    def linearize(self, trim_state: SimState, trim_controls: SegmentControls,
                  input_names: Sequence[str] = DEFAULT_INPUTS,
                  eps: float = 1e-6) -> LinearizedModel:
        """
        Linearize dynamics about trim using central differences.

        Parameters
        ----------
        trim_state : SimState
            Trim state
        trim_controls : SegmentControls
            Trim control inputs
        input_names : sequence of str
            SegmentControls fields forming the input vector
        eps : float, optional
            Perturbation size for finite differences
        """
        for name in input_names:
            if not hasattr(trim_controls, name):
                raise ValueError(f"Unknown control input '{name}'")

        n = N_STATES
        m = len(input_names)
        A = np.zeros((n, n))
        B = np.zeros((n, m))

        x0 = trim_state.to_array()
        for i in range(n):
            dx = np.zeros(n)
            dx[i] = eps
            f_plus = self.dynamics_function(state_from_array(x0 + dx), trim_controls)
            f_minus = self.dynamics_function(state_from_array(x0 - dx), trim_controls)
            A[:, i] = (f_plus - f_minus) / (2 * eps)

        for i, name in enumerate(input_names):
            value = getattr(trim_controls, name)
            f_plus = self.dynamics_function(trim_state, replace(trim_controls, **{name: value + eps}))
            f_minus = self.dynamics_function(trim_state, replace(trim_controls, **{name: value - eps}))
            B[:, i] = (f_plus - f_minus) / (2 * eps)

        logger.debug("Linearized about %r", trim_state)
        return LinearizedModel(A, B, trim_state, trim_controls, input_names)

    def identify_modes(self, linear_model: LinearizedModel,
                       zero_tol: float = 1e-8) -> List[DynamicMode]:
        """
        Identify and characterize dynamic modes.

        Eigenvalues with magnitude below zero_tol (position, heading) are
        skipped. Modes are sorted by natural frequency, fastest first.
        """
        eigenvalues, eigenvectors = linear_model.eigenvectors()

        modes = []
        processed = set()
        for i, lam in enumerate(eigenvalues):
            if i in processed:
                continue
            processed.add(i)
            if abs(lam) < zero_tol:
                continue

            sigma = np.real(lam)
            if np.imag(lam) != 0:
                for j in range(i + 1, len(eigenvalues)):
                    if j not in processed and np.isclose(eigenvalues[j], np.conj(lam)):
                        processed.add(j)
                        break

                # λ = σ ± jω
                omega = np.abs(np.imag(lam))
                omega_n = np.sqrt(sigma ** 2 + omega ** 2)
                zeta = -sigma / omega_n if omega_n > 0 else 0.0
                period = 2 * np.pi / omega if omega > 0 else np.inf
            else:
                omega_n = np.abs(sigma)
                zeta = 1.0 if sigma < 0 else -1.0
                period = np.inf

            time_to_half = np.log(2) / (-sigma) if sigma < 0 else np.inf

            modes.append(DynamicMode(
                name=self._identify_mode_type(eigenvectors[:, i], np.imag(lam) != 0),
                eigenvalue=lam,
                damping_ratio=float(zeta),
                natural_frequency=float(omega_n),
                period=float(period),
                time_to_half=float(time_to_half),
                eigenvector=eigenvectors[:, i],
            ))

        modes.sort(key=lambda mode: mode.natural_frequency, reverse=True)
        return modes

    def _identify_mode_type(self, eigenvector: np.ndarray, oscillatory: bool) -> str:
        """
        Name a mode from its eigenvector participation.

        State indices: 0-2 position, 3-5 velocity, 6-8 Euler angles, 9-11 rates.
        """
        participation = np.abs(eigenvector)
        total = np.sum(participation[3:])
        if total > 0:
            participation = participation / total

        u_part, v_part, w_part = participation[3:6]
        phi_part, theta_part, psi_part = participation[6:9]
        p_part, q_part, r_part = participation[9:12]

        longitudinal = u_part + w_part + theta_part + q_part
        lateral = v_part + phi_part + psi_part + p_part + r_part

        if longitudinal >= lateral:
            if q_part + theta_part > 0.3 and w_part > 0.05 and oscillatory:
                return "Short Period"
            if u_part > 0.2 and oscillatory:
                return "Phugoid"
            if q_part + theta_part > 0.3:
                return "Pitch Pendulum"
            return "Longitudinal"

        if oscillatory and (r_part + v_part) > 0.2:
            return "Dutch Roll"
        if p_part > 0.3 and not oscillatory:
            return "Roll"
        if psi_part > 0.3 and not oscillatory:
            return "Spiral"
        return "Lateral"


def format_stability_report(linear_model: LinearizedModel,
                            modes: Sequence[DynamicMode]) -> str:
    """Plain-text table of trim conditions and modes."""
    s = linear_model.trim_state
    lines = [
        "=" * 70,
        "STABILITY ANALYSIS REPORT",
        "=" * 70,
        f"Airspeed: {s.airspeed:.2f} m/s   Alpha: {np.degrees(s.alpha):.2f} deg   "
        f"Theta: {np.degrees(s.theta):.2f} deg",
        f"System Stability: {'STABLE' if linear_model.is_stable() else 'UNSTABLE'}",
        "-" * 70,
        f"{'Mode':<15} {'Freq (rad/s)':<13} {'Damp Ratio':<12} {'Period (s)':<12} {'T_half (s)':<12}",
        "-" * 70,
    ]
    for mode in modes:
        lines.append(f"{mode.name:<15} {mode.natural_frequency:<13.4f} {mode.damping_ratio:<12.4f} "
                     f"{mode.period:<12.3f} {mode.time_to_half:<12.3f}")
    return "\n".join(lines)
