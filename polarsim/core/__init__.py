"""
Core 6-DOF flight dynamics components.

This module provides the state vector, mass properties, rigid-body
equations of motion, integrators and the composite frame cache.
"""

from .state import SimState
from .inertia import InertiaComponents
from .aerodynamics import AeroModel, SegmentAeroModel
from .dynamics import RigidBodyDynamics
from .integrator import EulerIntegrator, RK4Integrator
from .simulation import SimConfig, SimulationDivergedError, simulate
from .composite_frame import CompositeFrame, CompositeFrameCache, CompositeFrameConfig

__all__ = [
    'SimState',
    'InertiaComponents',
    'AeroModel',
    'SegmentAeroModel',
    'RigidBodyDynamics',
    'EulerIntegrator',
    'RK4Integrator',
    'SimConfig',
    'SimulationDivergedError',
    'simulate',
    'CompositeFrame',
    'CompositeFrameCache',
    'CompositeFrameConfig',
]
