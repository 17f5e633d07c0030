"""
polarsim: segment-based aerodynamics and 6-DOF flight dynamics for
canopies, wingsuits and skydivers.

Subpackages:
- aero: separation model, polars, segments, force engine, vehicle layouts
- core: state, inertia, apparent mass, rigid-body dynamics, integration
- environment: standard atmosphere
- io: YAML polar library and run configuration
- analysis: coefficient sweeps, linearisation and dynamic modes
- control: steady-glide trim
"""

__version__ = '0.1.0'
