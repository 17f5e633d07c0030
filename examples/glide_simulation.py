"""
Canopy Glide Simulation

Demonstrates:
- Loading a run configuration from YAML
- Building the Ibex UL composite frame (CG, inertia, apparent mass)
- Integrating a glide with light left brake
- Summarising the trajectory table
"""

import logging
import os

import numpy as np

from polarsim.core.composite_frame import CompositeFrameCache
from polarsim.core.simulation import simulate, trajectory_to_dataframe
from polarsim.io.config import VehicleConfig, create_example_config, load_vehicle_config


def main():
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

    print("=" * 70)
    print("Ibex UL Glide Simulation")
    print("=" * 70)
    print()

    config_path = os.path.join(os.path.dirname(__file__), '..', 'configs', 'ibex_glide.yaml')
    if os.path.exists(config_path):
        config = load_vehicle_config(config_path)
    else:
        print("   Config file not found, using the built-in example")
        config = VehicleConfig(create_example_config())
    print(f"Configuration: {config}")
    print()

    # Composite frame, built once for the configured deploy / pilot pitch
    cache = CompositeFrameCache(config.create_frame_config())
    frame = cache.get()
    print("Composite frame:")
    print(f"  Mass:           {frame.total_mass:.1f} kg")
    print(f"  CG:             [{frame.cg[0]:.3f}, {frame.cg[1]:.3f}, {frame.cg[2]:.3f}] m")
    print(f"  Ixx/Iyy/Izz:    {frame.inertia.Ixx:.1f} / {frame.inertia.Iyy:.1f} / "
          f"{frame.inertia.Izz:.1f} kg·m²")
    print(f"  Effective mass: {frame.effective_mass.round(1)} kg")
    print()

    sim_config = config.create_sim_config(cache)
    trajectory = simulate(config.create_initial_state(), sim_config,
                          config.dt, config.steps, config.method)
    df = trajectory_to_dataframe(trajectory, config.dt)

    final = df.iloc[-1]
    print(f"After {final['time']:.1f} s:")
    print(f"  Airspeed:  {final['airspeed']:.2f} m/s")
    print(f"  Altitude:  {final['altitude']:.1f} m")
    print(f"  Alpha:     {final['alpha_deg']:.2f} deg")
    print(f"  Heading:   {np.degrees(final['psi']):.1f} deg")
    print()

    print(df[['time', 'airspeed', 'altitude', 'alpha_deg', 'phi', 'psi']].iloc[::100].to_string(index=False))


if __name__ == "__main__":
    main()
