"""
Aerodynamic models for 6-DOF flight dynamics.

Provides:
- Base aerodynamic model interface (state -> forces, moments)
- Segment-summed model with per-segment rotating-frame airflow
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

from ..aero.forces import evaluate_aero_forces
from ..aero.segments import AeroSegment, SegmentControls, default_controls
from .state import SimState


class AeroModel(ABC):
    """
    Base class for aerodynamic models.

    Provides interface for computing forces and moments
    given the vehicle state.
    """

    @abstractmethod
    def compute_forces_moments(self, state: SimState,
                               controls: Optional[SegmentControls] = None
                               ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Compute aerodynamic forces and moments.

        Parameters:
        -----------
        state : SimState
            Current state
        controls : SegmentControls
            Pilot inputs

        Returns:
        --------
        forces : np.ndarray, shape (3,)
            Forces in body frame [Fx, Fy, Fz] (N)
        moments : np.ndarray, shape (3,)
            Moments about the CG [L, M, N] (N·m)
        """
        pass

    def __call__(self, state: SimState) -> Tuple[np.ndarray, np.ndarray]:
        return self.compute_forces_moments(state)


class SegmentAeroModel(AeroModel):
    """
    Sum of independently evaluated aerodynamic segments.

    Each segment sees the CG velocity plus ω x r, so roll, pitch and yaw
    damping come out of the segment layout.
    """

    def __init__(self, segments: Sequence[AeroSegment], cg: np.ndarray,
                 height: float = 1.875, rho: float = 1.225,
                 controls: Optional[SegmentControls] = None):
        """
        Parameters:
        -----------
        segments : sequence of AeroSegment
            Aerodynamic segments
        cg : np.ndarray, shape (3,)
            Centre of gravity (m)
        height : float
            Reference length (m)
        rho : float
            Air density (kg/m³)
        controls : SegmentControls, optional
            Inputs used when compute_forces_moments() is called without any
        """
        if not height > 0:
            raise ValueError(f"Reference length must be positive, got {height}")
        if not rho > 0:
            raise ValueError(f"Air density must be positive, got {rho}")
        self.segments = list(segments)
        self.cg = np.asarray(cg, dtype=float)
        self.height = height
        self.rho = rho
        self.controls = controls if controls is not None else default_controls()

    def compute_forces_moments(self, state, controls=None):
        if controls is None:
            controls = self.controls
        system = evaluate_aero_forces(self.segments, self.cg, self.height,
                                      state.velocity_body, state.angular_rates,
                                      controls, self.rho)
        return system.force, system.moment
