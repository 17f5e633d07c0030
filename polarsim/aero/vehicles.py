"""
Vehicle layouts: segment geometry and mass distributions.

Two multi-segment vehicles are assembled here from the polar library:

- Ibex UL canopy: 7 cells on a span arc, 6 brake flaps, lines and pilot
  chute drag bodies, and the pilot hanging below (wingsuit pilot that can
  unzip to a slick body, or a slick pilot).
- A5 wingsuit: head, center body, inner and outer wing panels.

Positions are NED body frame (x forward, y right, z down) normalised by the
reference length REFERENCE_HEIGHT. Mass ratios are fractions of polar.m.
"""

import logging
import numpy as np
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .polar import ContinuousPolar, MassSegment
from .segments import (
    DEPLOY_CHORD_OFFSET, AeroSegment, ControlConstants, WingsuitControlConstants,
    make_brake_flap_segment, make_canopy_cell_segment, make_lifting_body_segment,
    make_parasitic_segment, make_unzippable_pilot_segment, make_wingsuit_head_segment,
    make_wingsuit_lifting_segment,
)
from ..core.composite_frame import CompositeFrameConfig
from ..io.library import apply_polar_overrides, get_polar, load_polar_library

logger = logging.getLogger(__name__)

REFERENCE_HEIGHT = 1.875  # m, pilot height

PILOT_TYPES = ('wingsuit', 'slick')

# === Wingsuit mass distribution ===
# 14-point body model in flying position, origin near the CG.
# Body spans x = -0.530 (feet) to +0.302 (head).
WINGSUIT_MASS_SEGMENTS = [
    MassSegment('head',            0.14,   (0.302049,  0.0,       -0.01759)),
    MassSegment('torso',           0.435,  (0.078431,  0.0,        0.0)),
    MassSegment('right_upper_arm', 0.0275, (0.174411,  0.158291,   0.0)),
    MassSegment('right_forearm',   0.016,  (0.141245,  0.247236,   0.0)),
    MassSegment('right_hand',      0.008,  (0.090994,  0.351759,   0.0)),
    MassSegment('right_thigh',     0.1,    (-0.197951, 0.080402,   0.0)),
    MassSegment('right_shin',      0.0465, (-0.397951, 0.145729,   0.0)),
    MassSegment('right_foot',      0.0145, (-0.530112, 0.201005,  -0.00503)),
    MassSegment('left_upper_arm',  0.0275, (0.174411, -0.158291,   0.0)),
    MassSegment('left_forearm',    0.016,  (0.141245, -0.247236,   0.0)),
    MassSegment('left_hand',       0.008,  (0.090994, -0.351759,   0.0)),
    MassSegment('left_thigh',      0.1,    (-0.197951, -0.080402,  0.0)),
    MassSegment('left_shin',       0.0465, (-0.397951, -0.145729,  0.0)),
    MassSegment('left_foot',       0.0145, (-0.530112, -0.201005, -0.00503)),
]

# === Canopy system mass distribution ===
# Pilot hangs upright below the risers, rotated forward by the trim angle
# about the y axis:
#   x_trim = x cos(6°) + z sin(6°)
#   z_trim = -x sin(6°) + z cos(6°)
TRIM_ANGLE_DEG = 6.0
_COS_TRIM = np.cos(np.radians(TRIM_ANGLE_DEG))
_SIN_TRIM = np.sin(np.radians(TRIM_ANGLE_DEG))

PILOT_FWD_SHIFT = 0.28
PILOT_DOWN_SHIFT = 0.163

# (name, ratio, x, y, z) before the trim rotation
_CANOPY_PILOT_RAW = [
    ('head',            0.14,   0.10,  0.0,   0.280),
    ('torso',           0.435,  0.10,  0.0,   0.480),
    ('right_upper_arm', 0.0275, 0.08,  0.090, 0.300),
    ('right_forearm',   0.016,  0.14,  0.080, 0.220),
    ('right_hand',      0.008,  0.18,  0.070, 0.160),
    ('right_thigh',     0.1,    0.10,  0.060, 0.720),
    ('right_shin',      0.0465, 0.08,  0.050, 0.900),
    ('right_foot',      0.0145, 0.06,  0.050, 1.010),
    ('left_upper_arm',  0.0275, 0.08, -0.090, 0.300),
    ('left_forearm',    0.016,  0.14, -0.080, 0.220),
    ('left_hand',       0.008,  0.18, -0.070, 0.160),
    ('left_thigh',      0.1,    0.10, -0.060, 0.720),
    ('left_shin',       0.0465, 0.08, -0.050, 0.900),
    ('left_foot',       0.0145, 0.06, -0.050, 1.010),
]


def _trim(x: float, z: float) -> Tuple[float, float]:
    return (round(x * _COS_TRIM + z * _SIN_TRIM, 4),
            round(-x * _SIN_TRIM + z * _COS_TRIM, 4))


# Riser attachment point after the trim rotation; the pilot swings about it
PILOT_PIVOT_X, PILOT_PIVOT_Z = _trim(PILOT_FWD_SHIFT, PILOT_DOWN_SHIFT)


def _trimmed_pilot(name, ratio, x, y, z) -> MassSegment:
    tx, tz = _trim(x + PILOT_FWD_SHIFT, z + PILOT_DOWN_SHIFT)
    return MassSegment(name, ratio, (tx, y, tz))


CANOPY_PILOT_SEGMENTS = [_trimmed_pilot(*raw) for raw in _CANOPY_PILOT_RAW]

# Seven cells on a 12° arc: fabric structure and trapped (buoyant) air
_CANOPY_ARC = [
    ('c',  (0.165,  0.0,   -1.196)),
    ('r1', (0.161,  0.322, -1.162)),
    ('l1', (0.161, -0.322, -1.162)),
    ('r2', (0.151,  0.630, -1.062)),
    ('l2', (0.151, -0.630, -1.062)),
    ('r3', (0.134,  0.911, -0.901)),
    ('l3', (0.134, -0.911, -0.901)),
]
CANOPY_STRUCTURE_SEGMENTS = [MassSegment(f'canopy_structure_{n}', 0.00643, pos)
                             for n, pos in _CANOPY_ARC]
CANOPY_AIR_SEGMENTS = [MassSegment(f'canopy_air_{n}', 0.011, pos) for n, pos in _CANOPY_ARC]

# Weight excludes the trapped air; inertia includes it
CANOPY_WEIGHT_SEGMENTS = CANOPY_PILOT_SEGMENTS + CANOPY_STRUCTURE_SEGMENTS
CANOPY_INERTIA_SEGMENTS = CANOPY_WEIGHT_SEGMENTS + CANOPY_AIR_SEGMENTS


def rotate_pilot_mass(pilot_pitch_deg: float, pivot: Optional[Tuple[float, float]] = None,
                      deploy: float = 1.0) -> Tuple[List[MassSegment], List[MassSegment]]:
    """
    Canopy system mass segments for a pilot swing and deployment state.

    The pilot segments rotate by pilot_pitch_deg (positive swings the pilot aft)
    about the riser pivot; canopy segments shrink in span and shift forward
    as deploy goes to 0.

    Returns
    -------
    weight : list of MassSegment
        Pilot + canopy structure (CG)
    inertia : list of MassSegment
        Pilot + canopy structure + trapped air (inertia tensor)
    """
    no_pitch = abs(pilot_pitch_deg) < 0.01
    full_deploy = abs(deploy - 1.0) < 0.001
    if no_pitch and full_deploy:
        return list(CANOPY_WEIGHT_SEGMENTS), list(CANOPY_INERTIA_SEGMENTS)

    pivot_x, pivot_z = pivot if pivot is not None else (PILOT_PIVOT_X, PILOT_PIVOT_Z)

    if no_pitch:
        pilot = list(CANOPY_PILOT_SEGMENTS)
    else:
        d = np.radians(pilot_pitch_deg)
        cos_d, sin_d = np.cos(d), np.sin(d)
        pilot = []
        for seg in CANOPY_PILOT_SEGMENTS:
            x, y, z = seg.position
            dx, dz = x - pivot_x, z - pivot_z
            pilot.append(MassSegment(seg.name, seg.mass_ratio,
                                     (dx * cos_d - dz * sin_d + pivot_x, y,
                                      dx * sin_d + dz * cos_d + pivot_z)))

    def deployed(segments):
        if full_deploy:
            return list(segments)
        span_scale = 0.1 + 0.9 * deploy
        chord_offset = DEPLOY_CHORD_OFFSET * (1.0 - deploy)
        return [MassSegment(s.name, s.mass_ratio,
                            (s.position[0] + chord_offset, s.position[1] * span_scale, s.position[2]))
                for s in segments]

    structure = deployed(CANOPY_STRUCTURE_SEGMENTS)
    air = deployed(CANOPY_AIR_SEGMENTS)
    return pilot + structure, pilot + structure + air


def static_mass_model(weight: Sequence[MassSegment],
                      inertia: Optional[Sequence[MassSegment]] = None):
    """Mass model that ignores pilot pitch and deployment (rigid vehicles)."""
    weight = list(weight)
    inertia = list(inertia) if inertia is not None else weight

    def mass_model(pilot_pitch_deg=0.0, pivot=None, deploy=1.0):
        return list(weight), list(inertia)

    return mass_model


# === Ibex UL canopy ===

IBEX_CELL_CHORD = 2.5
IBEX_CELL_AREA = 20.439 / 7

# (name, position, arc roll deg, side, brake sensitivity)
_IBEX_CELLS = [
    ('cell_c',  (0.174,  0.0,   -1.220),   0.0, 'center', 0.0),
    ('cell_r1', (0.170,  0.358, -1.182),  12.0, 'right',  0.4),
    ('cell_l1', (0.170, -0.358, -1.182), -12.0, 'left',   0.4),
    ('cell_r2', (0.162,  0.735, -1.114),  24.0, 'right',  0.7),
    ('cell_l2', (0.162, -0.735, -1.114), -24.0, 'left',   0.7),
    ('cell_r3', (0.145,  1.052, -0.954),  36.0, 'right',  1.0),
    ('cell_l3', (0.145, -1.052, -0.954), -36.0, 'left',   1.0),
]

# (name, trailing edge, arc roll deg, side, brake sensitivity, chord fraction, parent cell x)
_IBEX_FLAPS = [
    ('flap_r1', (-0.664,  0.358, -1.162),  12.0, 'right', 0.4, 0.10, 0.170),
    ('flap_l1', (-0.664, -0.358, -1.162), -12.0, 'left',  0.4, 0.10, 0.170),
    ('flap_r2', (-0.672,  0.735, -1.062),  24.0, 'right', 0.7, 0.20, 0.162),
    ('flap_l2', (-0.672, -0.735, -1.062), -24.0, 'left',  0.7, 0.20, 0.162),
    ('flap_r3', (-0.689,  1.052, -0.901),  36.0, 'right', 1.0, 0.30, 0.145),
    ('flap_l3', (-0.689, -1.052, -0.901), -36.0, 'left',  1.0, 0.30, 0.145),
]

IBEX_PILOT_POSITION = (0.38, 0.0, 0.48)
IBEX_PILOT_PITCH_OFFSET = 90.0  # upright pilot under the canopy


def make_ibex_aero_segments(pilot_type: str = 'wingsuit',
                            library: Optional[Mapping[str, ContinuousPolar]] = None,
                            constants: Optional[ControlConstants] = None,
                            height: float = REFERENCE_HEIGHT) -> List[AeroSegment]:
    """
    Aerodynamic segments of the Ibex UL canopy system.

    Parameters
    ----------
    pilot_type : str
        'wingsuit' (Aura 5, unzippable to Slick Sin) or 'slick'
    library : mapping, optional
        Polar library; the shipped one is loaded when omitted
    constants : ControlConstants, optional
        Brake / riser routing constants
    height : float
        Reference length (m)
    """
    if pilot_type not in PILOT_TYPES:
        raise ValueError(f"Unknown pilot type '{pilot_type}', expected one of {PILOT_TYPES}")
    library = library if library is not None else load_polar_library()
    constants = constants if constants is not None else ControlConstants()

    cell_polar = get_polar(library, 'canopy_cell')
    flap_polar = get_polar(library, 'brake_flap')

    segments: List[AeroSegment] = [
        make_canopy_cell_segment(name, pos, roll, side, brake, 1.0, cell_polar, constants)
        for name, pos, roll, side, brake in _IBEX_CELLS
    ]
    segments += [
        make_brake_flap_segment(name, te, roll, side, brake, fraction, IBEX_CELL_AREA,
                                IBEX_CELL_CHORD, cell_x, flap_polar, height, constants)
        for name, te, roll, side, brake, fraction, cell_x in _IBEX_FLAPS
    ]
    segments += [
        make_parasitic_segment('lines', (0.23, 0.0, -0.40), 0.35, 0.01, 1.0),
        make_parasitic_segment('pc', (0.10, 0.0, -1.30), 0.732, 0.01, 1.0),
    ]

    pivot = (PILOT_PIVOT_X, PILOT_PIVOT_Z)
    if pilot_type == 'wingsuit':
        pilot = make_unzippable_pilot_segment('pilot', IBEX_PILOT_POSITION,
                                              get_polar(library, 'aurafive'),
                                              get_polar(library, 'slicksin'),
                                              IBEX_PILOT_PITCH_OFFSET, pivot)
    else:
        pilot = make_lifting_body_segment('pilot', IBEX_PILOT_POSITION,
                                          get_polar(library, 'slicksin'),
                                          IBEX_PILOT_PITCH_OFFSET, pivot)
    segments.append(pilot)
    return segments


# === A5 six-segment wingsuit ===

A5_SYS_CHORD = 1.8    # m
A5_CG_XC = 0.40       # CG as chord fraction
GLB_TO_NED = 0.2962   # span scale of the reference model


def a5_xc(xc: float, height: float = REFERENCE_HEIGHT) -> float:
    """Normalised x position of a system-chord fraction (positive = forward of CG)."""
    return (A5_CG_XC - xc) * A5_SYS_CHORD / height


A5_HEAD_S = 0.07
A5_HEAD_CHORD = 0.13
A5_HEAD_CD = 0.42


def make_a5_segments_aero_segments(library: Optional[Mapping[str, ContinuousPolar]] = None,
                                   constants: Optional[WingsuitControlConstants] = None
                                   ) -> List[AeroSegment]:
    """
    The six A5 wingsuit segments: head, center, r1/l1 inner, r2/l2 outer.
    """
    library = library if library is not None else load_polar_library()
    constants = constants if constants is not None else WingsuitControlConstants()

    center = get_polar(library, 'a5_center')
    inner = get_polar(library, 'a5_inner')
    outer = get_polar(library, 'a5_outer')

    inner_x, inner_y = a5_xc(0.48), 0.72 * GLB_TO_NED
    outer_x, outer_y = a5_xc(0.37), 1.10 * GLB_TO_NED

    return [
        make_wingsuit_head_segment('head', (a5_xc(0.13), 0.0, 0.0), A5_HEAD_S, A5_HEAD_CHORD,
                                   A5_HEAD_CD, constants),
        make_wingsuit_lifting_segment('center', (a5_xc(0.46), 0.0, 0.0), 0.0, 'center',
                                      center, 0.3, 'body', constants),
        make_wingsuit_lifting_segment('r1', (inner_x, inner_y, 0.0), 0.0, 'right',
                                      inner, 0.6, 'inner', constants),
        make_wingsuit_lifting_segment('l1', (inner_x, -inner_y, 0.0), 0.0, 'left',
                                      inner, 0.6, 'inner', constants),
        make_wingsuit_lifting_segment('r2', (outer_x, outer_y, 0.0), 0.0, 'right',
                                      outer, 1.0, 'outer', constants),
        make_wingsuit_lifting_segment('l2', (outer_x, -outer_y, 0.0), 0.0, 'left',
                                      outer, 1.0, 'outer', constants),
    ]


# === System polars with mass distributions ===

def ibex_polar(library: Optional[Mapping[str, ContinuousPolar]] = None) -> ContinuousPolar:
    library = library if library is not None else load_polar_library()
    return get_polar(library, 'ibexul').with_values(
        mass_segments=list(CANOPY_WEIGHT_SEGMENTS),
        inertia_mass_segments=list(CANOPY_INERTIA_SEGMENTS),
    )


def wingsuit_polar(key: str = 'a5segments',
                   library: Optional[Mapping[str, ContinuousPolar]] = None) -> ContinuousPolar:
    library = library if library is not None else load_polar_library()
    return get_polar(library, key).with_values(mass_segments=list(WINGSUIT_MASS_SEGMENTS))


VEHICLES = ('ibex', 'a5segments')


def ibex_frame_config(pilot_type: str = 'wingsuit',
                      library: Optional[Mapping[str, ContinuousPolar]] = None,
                      constants: Optional[ControlConstants] = None,
                      height: float = REFERENCE_HEIGHT, rho: float = 1.225,
                      polar_overrides: Optional[Dict] = None):
    """CompositeFrameConfig for the Ibex UL canopy system."""
    library = library if library is not None else load_polar_library()
    segments = make_ibex_aero_segments(pilot_type, library, constants, height)
    return CompositeFrameConfig(
        polar=apply_polar_overrides(ibex_polar(library), polar_overrides),
        make_aero_segments=lambda: list(segments),
        rotate_pilot_mass=rotate_pilot_mass,
        height=height,
        rho=rho,
        pivot=(PILOT_PIVOT_X, PILOT_PIVOT_Z),
    )


def a5_frame_config(library: Optional[Mapping[str, ContinuousPolar]] = None,
                    constants: Optional[WingsuitControlConstants] = None,
                    height: float = REFERENCE_HEIGHT, rho: float = 1.225,
                    polar_overrides: Optional[Dict] = None):
    """CompositeFrameConfig for the A5 six-segment wingsuit (rigid mass model)."""
    library = library if library is not None else load_polar_library()
    segments = make_a5_segments_aero_segments(library, constants)
    return CompositeFrameConfig(
        polar=apply_polar_overrides(wingsuit_polar('a5segments', library), polar_overrides),
        make_aero_segments=lambda: list(segments),
        rotate_pilot_mass=static_mass_model(WINGSUIT_MASS_SEGMENTS),
        height=height,
        rho=rho,
        pivot=None,
    )
