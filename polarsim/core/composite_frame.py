"""
Composite body frame: cached assembly of the vehicle's mass properties.

A canopy system is canopy + pilot + lines + pilot chute, each with aero and
mass segments. The CG, inertia tensor and apparent mass only change with the
discrete configuration (deploy fraction, pilot pitch, component swap), so a
CompositeFrame is built once per configuration and reused across
integration steps. A changed configuration builds a new frame; frames are
never patched.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..aero.polar import ContinuousPolar, MassSegment
from ..aero.segments import AeroSegment, SegmentControls
from .apparent_mass import (
    ApparentMassResult, CanopyGeometry, apparent_mass_at_deploy, apparent_mass_result,
    canopy_geometry_from_polar, effective_inertia, effective_mass,
)
from .inertia import InertiaComponents, center_of_mass, inertia_tensor
from .simulation import SimConfig

logger = logging.getLogger(__name__)

MassModel = Callable[..., Tuple[List[MassSegment], List[MassSegment]]]

DEPLOY_TOLERANCE = 0.001
PITCH_TOLERANCE = 0.01   # deg


@dataclass(frozen=True)
class CompositeFrameConfig:
    """
    Recipe for a CompositeFrame.

    Attributes
    ----------
    polar : ContinuousPolar
        System polar (total mass, canopy area and chord)
    make_aero_segments : callable
        () -> list of AeroSegment
    rotate_pilot_mass : callable
        (pilot_pitch_deg, pivot, deploy) -> (weight segments, inertia segments)
    height : float
        Reference length (m)
    rho : float
        Air density for apparent mass (kg/m³)
    pivot : tuple, optional
        (x, z) pilot swing pivot (normalised)
    """
    polar: ContinuousPolar
    make_aero_segments: Callable[[], List[AeroSegment]]
    rotate_pilot_mass: MassModel
    height: float = 1.875
    rho: float = 1.225
    pivot: Optional[Tuple[float, float]] = None


@dataclass(frozen=True)
class CompositeFrame:
    """
    Vehicle snapshot valid for one (deploy, pilot pitch) configuration.

    Segment collections are tuples and arrays are read-only, so a cached
    frame cannot be changed through its fields.
    """
    # Geometry
    aero_segments: Tuple[AeroSegment, ...]
    weight_segments: Tuple[MassSegment, ...]    # gravitational CG
    inertia_segments: Tuple[MassSegment, ...]   # includes buoyant trapped air

    # Derived quantities
    cg: np.ndarray                        # m, body frame, read-only
    inertia: InertiaComponents            # kg·m², physical, about the CG
    total_mass: float                     # kg

    # Apparent mass
    canopy_geometry: CanopyGeometry
    apparent_mass: ApparentMassResult
    effective_mass: np.ndarray            # kg, [mx, my, mz], read-only
    effective_inertia: InertiaComponents  # kg·m²

    # Configuration snapshot
    height: float
    rho: float
    deploy: float
    pilot_pitch: float                    # deg


def build_composite_frame(config: CompositeFrameConfig, deploy: float = 1.0,
                          pilot_pitch: float = 0.0) -> CompositeFrame:
    """
    Assemble segments and compute CG, inertia and apparent mass.

    Parameters
    ----------
    config : CompositeFrameConfig
        Assembly recipe
    deploy : float
        Canopy deployment fraction, 0-1
    pilot_pitch : float
        Pilot swing (deg), 0 = hanging at trim
    """
    polar = config.polar
    if not config.height > 0:
        raise ValueError(f"Reference length must be positive, got {config.height}")
    if not config.rho > 0:
        raise ValueError(f"Air density must be positive, got {config.rho}")

    aero_segments = list(config.make_aero_segments())
    weight, inertia_segs = config.rotate_pilot_mass(pilot_pitch, config.pivot, deploy)

    cg = center_of_mass(weight, config.height, polar.m)
    cg.setflags(write=False)
    inertia = inertia_tensor(inertia_segs, config.height, polar.m)

    full_geom = canopy_geometry_from_polar(polar.s, polar.chord)
    if deploy < 0.999:
        apparent = apparent_mass_at_deploy(full_geom, deploy, config.rho)
    else:
        apparent = apparent_mass_result(full_geom, config.rho)

    eff_mass = effective_mass(polar.m, apparent.mass)
    eff_mass.setflags(write=False)

    frame = CompositeFrame(
        aero_segments=tuple(aero_segments),
        weight_segments=tuple(weight),
        inertia_segments=tuple(inertia_segs),
        cg=cg,
        inertia=inertia,
        total_mass=polar.m,
        canopy_geometry=full_geom,
        apparent_mass=apparent,
        effective_mass=eff_mass,
        effective_inertia=effective_inertia(inertia, apparent.inertia),
        height=config.height,
        rho=config.rho,
        deploy=deploy,
        pilot_pitch=pilot_pitch,
    )
    logger.info("Built composite frame for '%s' (deploy=%.3f, pilot pitch=%.2f deg): "
                "cg=%s m, Ixx=%.2f Iyy=%.2f Izz=%.2f kg·m²",
                polar.name, deploy, pilot_pitch, np.round(cg, 4),
                inertia.Ixx, inertia.Iyy, inertia.Izz)
    return frame


def frame_needs_rebuild(frame: CompositeFrame, deploy: float, pilot_pitch: float,
                        deploy_tol: float = DEPLOY_TOLERANCE,
                        pitch_tol: float = PITCH_TOLERANCE) -> bool:
    """True when deploy or pilot pitch moved past its tolerance."""
    return (abs(frame.deploy - deploy) > deploy_tol
            or abs(frame.pilot_pitch - pilot_pitch) > pitch_tol)


def frame_to_sim_config(frame: CompositeFrame, controls: SegmentControls,
                        use_apparent_mass: bool = True) -> SimConfig:
    """
    Per-step SimConfig from a cached frame.

    With apparent mass the effective inertia and per-axis effective mass are
    used; otherwise physical inertia and isotropic mass.
    """
    return SimConfig(
        segments=frame.aero_segments,
        cg=frame.cg,
        inertia=frame.effective_inertia if use_apparent_mass else frame.inertia,
        mass=frame.total_mass,
        controls=controls,
        mass_per_axis=frame.effective_mass if use_apparent_mass else None,
        height=frame.height,
        rho=frame.rho,
    )


class CompositeFrameCache:
    """
    Holds the current CompositeFrame and rebuilds it only on change.

    Examples
    --------
    >>> cache = CompositeFrameCache(ibex_frame_config())
    >>> frame = cache.get(deploy=1.0, pilot_pitch=0.0)   # built
    >>> frame = cache.get(deploy=1.0, pilot_pitch=0.001) # reused
    """

    def __init__(self, config: CompositeFrameConfig,
                 deploy_tol: float = DEPLOY_TOLERANCE,
                 pitch_tol: float = PITCH_TOLERANCE):
        self.config = config
        self.deploy_tol = deploy_tol
        self.pitch_tol = pitch_tol
        self.frame: Optional[CompositeFrame] = None
        self.build_count = 0

    def get(self, deploy: float = 1.0, pilot_pitch: float = 0.0) -> CompositeFrame:
        if self.frame is None or frame_needs_rebuild(self.frame, deploy, pilot_pitch,
                                                     self.deploy_tol, self.pitch_tol):
            self.frame = build_composite_frame(self.config, deploy, pilot_pitch)
            self.build_count += 1
        else:
            logger.debug("Reusing composite frame (deploy=%.3f, pilot pitch=%.2f deg)",
                         self.frame.deploy, self.frame.pilot_pitch)
        return self.frame

    def sim_config(self, controls: SegmentControls,
                   use_apparent_mass: bool = True) -> SimConfig:
        """SimConfig for the frame matching controls.deploy / controls.pilot_pitch."""
        frame = self.get(controls.deploy, controls.pilot_pitch)
        return frame_to_sim_config(frame, controls, use_apparent_mass)

    def invalidate(self):
        """Force a rebuild on the next get() (component swap)."""
        self.frame = None
