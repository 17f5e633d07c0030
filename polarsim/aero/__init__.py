"""
Aerodynamic models.

This module provides the Kirchhoff separation model, continuous polars,
aerodynamic segments and the segment force engine. Vehicle layouts live in
polarsim.aero.vehicles.
"""

from .polar import ContinuousPolar, MassSegment, SymmetricControl, lerp_polar
from .coefficients import Coefficients, get_all_coefficients, coeff_to_sustained_speeds
from .segments import AeroSegment, SegmentControls, default_controls
from .forces import SystemForces, evaluate_aero_forces, evaluate_static, evaluate_with_rotation

__all__ = [
    'ContinuousPolar',
    'MassSegment',
    'SymmetricControl',
    'lerp_polar',
    'Coefficients',
    'get_all_coefficients',
    'coeff_to_sustained_speeds',
    'AeroSegment',
    'SegmentControls',
    'default_controls',
    'SystemForces',
    'evaluate_aero_forces',
    'evaluate_static',
    'evaluate_with_rotation',
]
