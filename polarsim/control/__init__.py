"""
Trim solvers for gliding flight.
"""

from .trim import GlideTrimSolver

__all__ = ['GlideTrimSolver']
