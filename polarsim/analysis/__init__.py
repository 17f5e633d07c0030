"""
Analysis tools for flight dynamics.

This module provides coefficient sweeps, linearization and mode identification.
"""

from .stability import LinearizedModel, StabilityAnalyzer
from .sweep import sweep_polar, sweep_segments

__all__ = ['LinearizedModel', 'StabilityAnalyzer', 'sweep_polar', 'sweep_segments']
