"""
Fixed-step integrators for the 12-state rigid body.

Implements:
- Forward Euler (first order)
- RK4 (Runge-Kutta 4th order)

Derivative functions map a SimState to its 12-element time derivative.
"""

import numpy as np
from typing import Callable, Tuple

from .state import N_STATES, SimState, state_from_array

DerivativeFunc = Callable[[SimState], np.ndarray]


def step_euler(state: SimState, derivative: np.ndarray, dt: float) -> SimState:
    """x(t + dt) = x(t) + dt * ẋ, with ẋ already evaluated."""
    return state_from_array(state.to_array() + dt * np.asarray(derivative, dtype=float))


def step_rk4(state: SimState, derivative_func: DerivativeFunc, dt: float) -> SimState:
    """
    Advance state by one time step using classic RK4.

    Parameters:
    -----------
    state : SimState
        Current state
    derivative_func : Callable
        Function that computes state_dot = f(state), shape (12,)
    dt : float
        Time step (s)
    """
    x = state.to_array()

    k1 = derivative_func(state)
    k2 = derivative_func(state_from_array(x + 0.5 * dt * k1))
    k3 = derivative_func(state_from_array(x + 0.5 * dt * k2))
    k4 = derivative_func(state_from_array(x + dt * k3))

    return state_from_array(x + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4))


class EulerIntegrator:
    """
    Forward Euler integrator (fixed time step).

    First order; cheap enough for interactive stepping, needs small dt.
    """

    def __init__(self, dt: float = 0.01):
        if not dt > 0:
            raise ValueError(f"Time step must be positive, got {dt}")
        self.dt = dt

    def step(self, state: SimState, derivative_func: DerivativeFunc) -> SimState:
        return step_euler(state, derivative_func(state), self.dt)

    def integrate(self, state0: SimState, t_span: Tuple[float, float],
                  derivative_func: DerivativeFunc) -> Tuple[np.ndarray, np.ndarray]:
        """See RK4Integrator.integrate()."""
        return _integrate(self, state0, t_span, derivative_func)


class RK4Integrator:
    """
    4th-order Runge-Kutta integrator (fixed time step).

    Classic RK4 method with good accuracy for smooth dynamics.
    """

    def __init__(self, dt: float = 0.01):
        """
        Initialize RK4 integrator.

        Parameters:
        -----------
        dt : float
            Fixed time step (seconds)
        """
        if not dt > 0:
            raise ValueError(f"Time step must be positive, got {dt}")
        self.dt = dt

    def step(self, state: SimState, derivative_func: DerivativeFunc) -> SimState:
        return step_rk4(state, derivative_func, self.dt)

    def integrate(self, state0: SimState, t_span: Tuple[float, float],
                  derivative_func: DerivativeFunc) -> Tuple[np.ndarray, np.ndarray]:
        """
        Integrate from t0 to tf.

        Parameters:
        -----------
        state0 : SimState
            Initial state
        t_span : tuple
            (t0, tf) time span
        derivative_func : Callable
            State derivative function

        Returns:
        --------
        t_history : np.ndarray
            Time points
        state_history : np.ndarray, shape (n_steps, 12)
            State at each time point
        """
        return _integrate(self, state0, t_span, derivative_func)


def _integrate(integrator, state0, t_span, derivative_func):
    t0, tf = t_span
    n_steps = int(round((tf - t0) / integrator.dt)) + 1

    t_history = t0 + integrator.dt * np.arange(n_steps)
    state_history = np.zeros((n_steps, N_STATES))

    state_current = state0.copy()
    state_history[0, :] = state_current.to_array()

    for i in range(1, n_steps):
        state_current = integrator.step(state_current, derivative_func)
        state_history[i, :] = state_current.to_array()

    return t_history, state_history
