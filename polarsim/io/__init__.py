"""
Configuration input and output.

This module provides the YAML polar library. Run configuration lives in
polarsim.io.config, which depends on the vehicle layouts.
"""

from .library import load_polar_library, save_polar_library, get_polar, apply_polar_overrides

__all__ = [
    'load_polar_library',
    'save_polar_library',
    'get_polar',
    'apply_polar_overrides',
]
