"""
Glide Trim Calculation

Finds steady gliding flight by solving for the attitude and airspeed that
give zero body accelerations. A glider has no thrust, so the free
unknowns are airspeed, pitch attitude and (for a full trim) angle of
attack; the flight path settles at the glide angle.
"""

import logging
import numpy as np
from scipy.optimize import least_squares
from typing import Dict, Optional, Tuple

from ..core.simulation import SimConfig, compute_derivatives
from ..core.state import SimState, state_from_flight_condition

logger = logging.getLogger(__name__)

# state_dot indices
U_DOT, W_DOT, Q_DOT = 3, 5, 10


class GlideTrimSolver:
    """
    Trim solver for steady wings-level glide.

    Parameters
    ----------
    config : SimConfig
        Vehicle snapshot (segments, CG, mass, controls)
    airspeed_bounds : tuple, optional
        (min, max) airspeed searched (m/s)
    """

    def __init__(self, config: SimConfig, airspeed_bounds: Tuple[float, float] = (1.0, 120.0)):
        self.config = config
        self.airspeed_bounds = airspeed_bounds

    def _state(self, alpha: float, theta: float, airspeed: float, altitude: float) -> SimState:
        return state_from_flight_condition(airspeed, alpha, theta=theta, altitude=altitude)

    def _solve(self, residuals, x0, bounds, label: str):
        result = least_squares(residuals, x0, bounds=np.array(bounds).T)
        residual_norm = float(np.linalg.norm(result.fun))
        if result.success and residual_norm < 1e-4:
            logger.info("%s trim converged: residual %.2e after %d evaluations",
                        label, residual_norm, result.nfev)
        else:
            logger.warning("%s trim did not converge: residual %.2e (%s)",
                           label, residual_norm, result.message)
        return result, residual_norm

    def trim_at_alpha(self, alpha: float, altitude: float = 0.0,
                      initial_guess: Optional[Dict] = None) -> Tuple[SimState, Dict]:
        """
        Glide at a fixed angle of attack.

        Solves pitch attitude and airspeed so that u̇ = ẇ = 0. The pitching
        moment is not balanced, which matches a polar's sustained-speed
        point at that α.

        Parameters
        ----------
        alpha : float
            Angle of attack (rad)
        altitude : float, optional
            Altitude (m)
        initial_guess : dict, optional
            {'theta', 'airspeed'}

        Returns
        -------
        state_trim : SimState
            Trimmed state
        info : dict
            Optimization info (success, residual, message, angles in deg)
        """
        if initial_guess is None:
            initial_guess = {'theta': alpha - np.radians(20.0), 'airspeed': 20.0}

        def residuals(x):
            theta, airspeed = x
            state_dot = compute_derivatives(self._state(alpha, theta, airspeed, altitude),
                                            self.config)
            return np.array([state_dot[U_DOT], state_dot[W_DOT]])

        bounds = [
            (-np.pi / 2, np.pi / 2),   # theta
            self.airspeed_bounds,      # airspeed
        ]
        x0 = np.clip([initial_guess['theta'], initial_guess['airspeed']],
                     [b[0] for b in bounds], [b[1] for b in bounds])
        result, residual_norm = self._solve(residuals, x0, bounds,
                                            f"Alpha {np.degrees(alpha):.1f} deg")

        theta_trim, airspeed_trim = result.x
        state_trim = self._state(alpha, theta_trim, airspeed_trim, altitude)
        return state_trim, self._info(result, residual_norm, alpha, theta_trim, airspeed_trim)

    def trim_glide(self, altitude: float = 0.0,
                   initial_guess: Optional[Dict] = None) -> Tuple[SimState, Dict]:
        """
        Full longitudinal glide trim.

        Solves angle of attack, pitch attitude and airspeed so that
        u̇ = ẇ = q̇ = 0.

        Parameters
        ----------
        altitude : float, optional
            Altitude (m)
        initial_guess : dict, optional
            {'alpha', 'theta', 'airspeed'}

        Returns
        -------
        state_trim : SimState
            Trimmed state
        info : dict
            Optimization info (success, residual, message, angles in deg)
        """
        if initial_guess is None:
            initial_guess = {'alpha': np.radians(8.0), 'theta': np.radians(-10.0),
                             'airspeed': 15.0}

        def residuals(x):
            alpha, theta, airspeed = x
            state_dot = compute_derivatives(self._state(alpha, theta, airspeed, altitude),
                                            self.config)
            return np.array([state_dot[U_DOT], state_dot[W_DOT], state_dot[Q_DOT]])

        bounds = [
            (-np.radians(30), np.radians(60)),   # alpha
            (-np.pi / 2, np.pi / 2),             # theta
            self.airspeed_bounds,                # airspeed
        ]
        x0 = np.clip([initial_guess['alpha'], initial_guess['theta'], initial_guess['airspeed']],
                     [b[0] for b in bounds], [b[1] for b in bounds])
        result, residual_norm = self._solve(residuals, x0, bounds, "Glide")

        alpha_trim, theta_trim, airspeed_trim = result.x
        state_trim = self._state(alpha_trim, theta_trim, airspeed_trim, altitude)
        return state_trim, self._info(result, residual_norm, alpha_trim, theta_trim, airspeed_trim)

    @staticmethod
    def _info(result, residual_norm, alpha, theta, airspeed) -> Dict:
        gamma = theta - alpha
        return {
            'success': bool(result.success),
            'residual': residual_norm,
            'iterations': result.nfev,
            'message': result.message,
            'alpha_deg': float(np.degrees(alpha)),
            'theta_deg': float(np.degrees(theta)),
            'gamma_deg': float(np.degrees(gamma)),
            'airspeed': float(airspeed),
            'glide_ratio': float(1.0 / np.tan(-gamma)) if gamma < 0 else np.inf,
        }
