"""
Wingsuit Trim and Stability Demonstration

Demonstrates:
- Segment-summed coefficient sweep of the A5 wingsuit
- Full longitudinal glide trim
- Linearization about trim and mode identification
"""

import logging

import numpy as np

from polarsim.aero.segments import default_controls
from polarsim.aero.vehicles import a5_frame_config
from polarsim.analysis.stability import StabilityAnalyzer, format_stability_report
from polarsim.analysis.sweep import sweep_segments
from polarsim.control.trim import GlideTrimSolver
from polarsim.core.composite_frame import build_composite_frame, frame_to_sim_config


def main():
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

    print("=" * 70)
    print("A5 Wingsuit: Sweep, Trim and Stability")
    print("=" * 70)
    print()

    frame_config = a5_frame_config()
    frame = build_composite_frame(frame_config)
    config = frame_to_sim_config(frame, default_controls(), use_apparent_mass=False)

    # ========================================
    # Coefficient sweep
    # ========================================
    sweep = sweep_segments(frame.aero_segments, frame_config.polar, frame.cg, frame.height,
                           alphas=np.arange(0.0, 41.0, 5.0), rho=frame.rho)
    print("Segment-summed coefficients:")
    print(sweep[['alpha', 'cl', 'cd', 'cm', 'cp', 'ld']].to_string(index=False,
                                                                  float_format='%.3f'))
    print()

    # ========================================
    # Trim
    # ========================================
    solver = GlideTrimSolver(config)
    trim_state, info = solver.trim_glide(altitude=3000.0)
    print("Glide trim:")
    print(f"  Converged:   {info['success']} (residual {info['residual']:.2e})")
    print(f"  Airspeed:    {info['airspeed']:.2f} m/s")
    print(f"  Alpha:       {info['alpha_deg']:.2f} deg")
    print(f"  Glide angle: {info['gamma_deg']:.2f} deg (L/D {info['glide_ratio']:.2f})")
    print()

    # ========================================
    # Linearization
    # ========================================
    analyzer = StabilityAnalyzer.from_sim_config(config)
    model = analyzer.linearize(trim_state, default_controls(),
                               input_names=('pitch_throttle', 'roll_throttle'))
    modes = analyzer.identify_modes(model)
    print(format_stability_report(model, modes))


if __name__ == "__main__":
    main()
