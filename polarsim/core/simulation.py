"""
6-DOF simulation core: derivative evaluation and stepping.

The derivative of the 12-state vector is a single function of the state and
a SimConfig snapshot:

    1. Aero forces/moments, per-segment V + ω x r
    2. Gravity in body axes
    3. Translational dynamics (per-axis mass when apparent mass is on)
    4. Rotational dynamics
    5. Euler angle kinematics
    6. NED position kinematics

Forward Euler is the baseline stepper; RK4 costs four derivative
evaluations per step.
"""

import logging
import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..aero.segments import AeroSegment, SegmentControls, default_controls
from .aerodynamics import SegmentAeroModel
from .dynamics import RigidBodyDynamics
from .inertia import InertiaComponents
from .integrator import step_euler, step_rk4
from .state import STATE_NAMES, SimState

logger = logging.getLogger(__name__)


class SimulationDivergedError(RuntimeError):
    """A state derivative came out NaN or infinite."""


@dataclass
class SimConfig:
    """Everything the derivative needs besides the state itself."""
    segments: Sequence[AeroSegment]
    cg: np.ndarray                      # m, body frame
    inertia: InertiaComponents          # kg·m² about the CG
    mass: float                         # kg, physical (gravity)
    controls: SegmentControls = field(default_factory=default_controls)
    mass_per_axis: Optional[np.ndarray] = None  # kg, [mx, my, mz] with apparent mass
    height: float = 1.875               # m, reference length
    rho: float = 1.225                  # kg/m³

    def __post_init__(self):
        if not self.mass > 0:
            raise ValueError(f"Mass must be positive, got {self.mass}")
        if not self.height > 0:
            raise ValueError(f"Reference length must be positive, got {self.height}")
        if not self.rho > 0:
            raise ValueError(f"Air density must be positive, got {self.rho}")

    def aero_model(self) -> SegmentAeroModel:
        return SegmentAeroModel(self.segments, self.cg, self.height, self.rho, self.controls)

    def dynamics(self) -> RigidBodyDynamics:
        return RigidBodyDynamics(self.mass, self.inertia, self.mass_per_axis)


def compute_derivatives(state: SimState, config: SimConfig) -> np.ndarray:
    """
    Time derivative of all 12 states.

    Returns
    -------
    ndarray, shape (12,)
        [ẋ, ẏ, ż, u̇, v̇, ẇ, φ̇, θ̇, ψ̇, ṗ, q̇, ṙ]

    Raises
    ------
    SimulationDivergedError
        If any component is NaN or infinite.
    """
    state_dot = config.dynamics().state_derivative(state, config.aero_model())
    if not np.all(np.isfinite(state_dot)):
        raise SimulationDivergedError(f"Non-finite state derivative at {state!r}: {state_dot}")
    return state_dot


def forward_euler(state: SimState, config: SimConfig, dt: float) -> SimState:
    """One forward Euler step of the configured vehicle."""
    return step_euler(state, compute_derivatives(state, config), dt)


def rk4_step(state: SimState, config: SimConfig, dt: float) -> SimState:
    """One RK4 step of the configured vehicle."""
    return step_rk4(state, lambda s: compute_derivatives(s, config), dt)


def simulate(state: SimState, config: SimConfig, dt: float, steps: int,
             method: str = 'euler') -> List[SimState]:
    """
    Integrate `steps` fixed steps.

    Parameters
    ----------
    state : SimState
        Initial state (not modified)
    config : SimConfig
        Vehicle snapshot, held constant over the run
    dt : float
        Time step (s)
    steps : int
        Number of steps
    method : str
        'euler' or 'rk4'

    Returns
    -------
    list of SimState
        Trajectory of length steps + 1, starting with a copy of `state`
    """
    steppers = {'euler': forward_euler, 'rk4': rk4_step}
    if method not in steppers:
        raise ValueError(f"Unknown integration method '{method}', expected one of {sorted(steppers)}")
    if not dt > 0:
        raise ValueError(f"Time step must be positive, got {dt}")

    stepper = steppers[method]
    trajectory = [state.copy()]
    current = trajectory[0]
    for i in range(steps):
        current = stepper(current, config, dt)
        trajectory.append(current)
        logger.debug("step %d: %r", i + 1, current)

    logger.info("Simulated %d steps of %.4f s (%s), final airspeed %.2f m/s",
                steps, dt, method, current.airspeed)
    return trajectory


def trajectory_to_dataframe(trajectory: Sequence[SimState], dt: float,
                            t0: float = 0.0) -> pd.DataFrame:
    """
    Trajectory as a DataFrame: a time column, the 12 states, airspeed,
    altitude and α/β in degrees.
    """
    data = np.array([s.to_array() for s in trajectory]).reshape(-1, len(STATE_NAMES))
    df = pd.DataFrame(data, columns=list(STATE_NAMES))
    df.insert(0, 'time', t0 + dt * np.arange(len(df)))
    df['airspeed'] = np.sqrt(df['u'] ** 2 + df['v'] ** 2 + df['w'] ** 2)
    df['altitude'] = -df['z']
    df['alpha_deg'] = np.degrees([s.alpha for s in trajectory])
    df['beta_deg'] = np.degrees([s.beta for s in trajectory])
    return df
