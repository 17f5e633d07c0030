"""
Vehicle and Simulation Configuration

YAML-based configuration for a simulation run: which vehicle, polar and
segment overrides, pilot inputs, atmosphere, initial state and stepping.
"""

import logging
import yaml
import numpy as np
import pandas as pd
from dataclasses import fields, replace
from typing import Any, Dict, Optional

from ..aero.segments import SegmentControls
from ..aero.vehicles import PILOT_TYPES, VEHICLES, a5_frame_config, ibex_frame_config
from ..core.composite_frame import CompositeFrameCache, CompositeFrameConfig
from ..core.simulation import SimConfig, simulate, trajectory_to_dataframe
from ..core.state import SimState, state_from_flight_condition
from ..environment.atmosphere import density_at
from .library import apply_segment_overrides, load_polar_library

logger = logging.getLogger(__name__)

CONTROL_INPUTS = tuple(f.name for f in fields(SegmentControls))
INTEGRATION_METHODS = ('euler', 'rk4')


class VehicleConfig:
    """
    Simulation run configuration loaded from YAML.

    Attributes
    ----------
    vehicle : str
        Vehicle layout ('ibex' or 'a5segments')
    pilot_type : str
        Canopy pilot ('wingsuit' or 'slick'), ignored for wingsuits
    polar_overrides : dict
        Field overrides for the system polar
    segment_overrides : dict
        Per-segment overrides keyed by segment name
    controls : dict
        SegmentControls inputs
    rho : float
        Air density (kg/m³), from `rho` or ISA `altitude`
    dt, steps, method
        Integration settings
    initial_state : dict
        Initial flight condition (airspeed m/s, angles deg, altitude m)
    """

    def __init__(self, config_dict: Dict[str, Any]):
        """
        Parameters
        ----------
        config_dict : dict
            Configuration dictionary (typically from YAML)
        """
        self.raw_config = config_dict
        self._parse_config()

    def _parse_config(self):
        """Parse and validate the configuration dictionary."""
        vehicle = self.raw_config.get('vehicle', {})

        self.vehicle = vehicle.get('name', 'ibex')
        if self.vehicle not in VEHICLES:
            raise ValueError(f"Unknown vehicle '{self.vehicle}', expected one of {VEHICLES}")
        self.pilot_type = vehicle.get('pilot_type', 'wingsuit')
        if self.pilot_type not in PILOT_TYPES:
            raise ValueError(f"Unknown pilot type '{self.pilot_type}', expected one of {PILOT_TYPES}")
        self.polar_library = vehicle.get('polar_library')
        self.polar_overrides = vehicle.get('polar_overrides') or {}
        self.segment_overrides = vehicle.get('segment_overrides') or {}
        self.use_apparent_mass = bool(vehicle.get('use_apparent_mass', True))

        # Pilot inputs
        self.controls = dict(self.raw_config.get('controls') or {})
        unknown = set(self.controls) - set(CONTROL_INPUTS)
        if unknown:
            raise ValueError(f"Unknown control input(s) {sorted(unknown)}")

        # Atmosphere
        environment = self.raw_config.get('environment', {})
        if 'rho' in environment:
            self.rho = float(environment['rho'])
        else:
            self.rho = float(density_at(environment.get('altitude', 0.0)))
        if not self.rho > 0:
            raise ValueError(f"Air density must be positive, got {self.rho}")

        # Integration
        simulation = self.raw_config.get('simulation', {})
        self.dt = float(simulation.get('dt', 0.01))
        self.steps = int(simulation.get('steps', 1000))
        self.method = simulation.get('method', 'rk4')
        if self.method not in INTEGRATION_METHODS:
            raise ValueError(f"Unknown integration method '{self.method}'")

        self.initial_state = self.raw_config.get('initial_state', {})

    def create_frame_config(self) -> CompositeFrameConfig:
        """Composite frame recipe for the configured vehicle and overrides."""
        library = load_polar_library(self.polar_library)
        if self.vehicle == 'ibex':
            frame_config = ibex_frame_config(self.pilot_type, library, rho=self.rho,
                                             polar_overrides=self.polar_overrides)
        else:
            frame_config = a5_frame_config(library, rho=self.rho,
                                           polar_overrides=self.polar_overrides)

        if self.segment_overrides:
            segments = apply_segment_overrides(frame_config.make_aero_segments(),
                                               self.segment_overrides)
            frame_config = replace(frame_config, make_aero_segments=lambda: list(segments))
        return frame_config

    def create_controls(self) -> SegmentControls:
        return SegmentControls(**{k: float(v) for k, v in self.controls.items()})

    def create_initial_state(self) -> SimState:
        """
        Initial state from the flight condition block.

        Keys: airspeed (m/s), alpha, beta, pitch, roll, heading (deg),
        altitude (m).
        """
        ic = self.initial_state
        return state_from_flight_condition(
            airspeed=float(ic.get('airspeed', 12.0)),
            alpha=np.radians(ic.get('alpha', 0.0)),
            beta=np.radians(ic.get('beta', 0.0)),
            theta=np.radians(ic.get('pitch', 0.0)),
            phi=np.radians(ic.get('roll', 0.0)),
            psi=np.radians(ic.get('heading', 0.0)),
            altitude=float(ic.get('altitude', 0.0)),
        )

    def create_sim_config(self, cache: Optional[CompositeFrameCache] = None) -> SimConfig:
        """SimConfig for the configured controls, deploy state and pilot pitch."""
        cache = cache if cache is not None else CompositeFrameCache(self.create_frame_config())
        return cache.sim_config(self.create_controls(), self.use_apparent_mass)

    def run(self) -> pd.DataFrame:
        """Run the configured simulation and return the trajectory table."""
        trajectory = simulate(self.create_initial_state(), self.create_sim_config(),
                              self.dt, self.steps, self.method)
        return trajectory_to_dataframe(trajectory, self.dt)

    def __repr__(self):
        return (f"VehicleConfig(vehicle='{self.vehicle}', "
                f"pilot_type='{self.pilot_type}', "
                f"rho={self.rho:.4f}, "
                f"method='{self.method}')")


def load_vehicle_config(yaml_file: str) -> VehicleConfig:
    """
    Load a run configuration from a YAML file.

    Examples
    --------
    >>> config = load_vehicle_config('configs/ibex_glide.yaml')
    >>> df = config.run()
    """
    with open(yaml_file, 'r') as f:
        config_dict = yaml.safe_load(f) or {}

    logger.info("Loaded vehicle configuration from %s", yaml_file)
    return VehicleConfig(config_dict)


def save_vehicle_config(config: VehicleConfig, yaml_file: str):
    """Write the raw configuration dictionary back to YAML."""
    with open(yaml_file, 'w') as f:
        yaml.dump(config.raw_config, f, default_flow_style=False, sort_keys=False)

    logger.info("Configuration saved to %s", yaml_file)


def create_example_config() -> Dict[str, Any]:
    """
    Example run: Ibex UL with a wingsuit pilot, light left brake, 2 km ISA.

    Returns
    -------
    dict
        Example configuration
    """
    return {
        'vehicle': {
            'name': 'ibex',
            'pilot_type': 'wingsuit',
            'use_apparent_mass': True,
            'polar_overrides': {
                'm': 85.0,  # kg, heavier pilot
            },
            'segment_overrides': {
                'pc': {'cd': 1.2},
            },
        },
        'controls': {
            'brake_left': 0.2,
            'brake_right': 0.0,
        },
        'environment': {
            'altitude': 2000.0,  # m, ISA density
        },
        'simulation': {
            'dt': 0.01,      # s
            'steps': 500,
            'method': 'rk4',
        },
        'initial_state': {
            'altitude': 2000.0,  # m
            'airspeed': 12.0,    # m/s
            'alpha': 8.0,        # deg
            'pitch': -5.0,       # deg
            'roll': 0.0,
            'heading': 0.0,
        },
    }
