"""
Aerodynamic segment descriptors.

A flight body is decomposed into named segments (canopy cells, brake flaps,
wingsuit panels, pilot body, lines, ...). Each segment is an immutable
descriptor; control inputs never mutate it. Evaluating a segment returns:

- SegmentGeometry: live position / area / chord / orientation for these controls
- SegmentCoefficients: cl, cd, cy, cm, cp at the segment's local flow angles

Control-routing tuning (riser travel, flap deflection, wingsuit throttle
response) is carried explicitly by ControlConstants and
WingsuitControlConstants instances held on each descriptor.

Positions are NED body-frame (x forward, y right, z down), normalised by the
reference length.
"""

import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from .kirchhoff import DEG2RAD
from .coefficients import get_all_coefficients
from .polar import ContinuousPolar, lerp_polar

SIDES = ('left', 'right', 'center')
WING_TYPES = ('body', 'inner', 'outer')

# Deployment morphing of canopy fabric (value at deploy = 0, lerped to 1.0 at deploy = 1)
DEPLOY_CD0_MULTIPLIER = 2.0
DEPLOY_CL_ALPHA_FRACTION = 0.3
DEPLOY_CD_N_MULTIPLIER = 1.5
DEPLOY_STALL_FWD_OFFSET = -17.0   # deg
DEPLOY_S1_FWD_MULTIPLIER = 4.0
DEPLOY_CHORD_OFFSET = 0.15        # forward shift at deploy = 0 (normalised)

# Below this effective brake a flap has no area
FLAP_BRAKE_THRESHOLD = 0.001


@dataclass(frozen=True)
class ControlConstants:
    """Canopy brake / riser routing constants."""
    alpha_max_riser: float = 10.0              # deg of α at full riser
    brake_alpha_coupling_deg: float = 2.5      # deg of α per unit effective brake
    max_flap_deflection_deg: float = 50.0      # trailing-edge deflection at full brake
    max_flap_roll_increment_deg: float = 20.0  # extra flap arc at full brake


@dataclass(frozen=True)
class WingsuitControlConstants:
    """Wingsuit throttle and dihedral response constants."""
    # Pitch throttle
    pitch_alpha_max_deg: float = 3.5
    pitch_cp_shift: float = 0.13
    pitch_cl_alpha_delta: float = 0.2
    pitch_cd0_delta: float = 0.01
    # Yaw throttle
    yaw_body_y_shift: float = 0.03
    yaw_head_y_shift: float = 0.02
    yaw_roll_coupling_deg: float = 0.3
    yaw_dirty_coupling: float = 0.15
    # Roll throttle
    roll_alpha_max_deg: float = 0.8
    roll_cl_alpha_delta: float = 0.15
    roll_cd0_delta: float = 0.005
    roll_dirty_coupling: float = 0.10
    # Dihedral
    dihedral_inner_max_deg: float = 16.0
    dihedral_outer_max_deg: float = 30.0


@dataclass(frozen=True)
class SegmentControls:
    """Pilot inputs seen by every segment."""
    brake_left: float = 0.0
    brake_right: float = 0.0
    front_riser_left: float = 0.0
    front_riser_right: float = 0.0
    rear_riser_left: float = 0.0
    rear_riser_right: float = 0.0
    weight_shift_lr: float = 0.0
    elevator: float = 0.0
    rudder: float = 0.0
    aileron_left: float = 0.0
    aileron_right: float = 0.0
    flap: float = 0.0
    pitch_throttle: float = 0.0   # wingsuit, [-1, 1]
    yaw_throttle: float = 0.0     # wingsuit, [-1, 1]
    roll_throttle: float = 0.0    # wingsuit, [-1, 1]
    dihedral: float = 0.5         # wingsuit, [0, 1]
    wingsuit_deploy: float = 0.0
    delta: float = 0.0            # generic symmetric control
    dirty: float = 0.0            # degradation, [0, 1]
    unzip: float = 0.0            # wingsuit -> slick blend, [0, 1]
    pilot_pitch: float = 0.0      # pilot swing under canopy (deg)
    deploy: float = 1.0           # canopy inflation, [0, 1]


def default_controls() -> SegmentControls:
    """Neutral inputs: dihedral 0.5, fully deployed, everything else zero."""
    return SegmentControls()


@dataclass(frozen=True)
class SegmentGeometry:
    """Live geometry of a segment for one set of controls."""
    position: np.ndarray            # normalised NED (3,)
    S: float                        # reference area (m²)
    chord: float                    # reference chord (m)
    pitch_offset_deg: float = 0.0   # chord-axis rotation relative to body x
    chord_rotation_rad: float = 0.0  # additional chord swing (pilot pitch)
    roll_deg: float = 0.0           # arc / dihedral angle


@dataclass(frozen=True)
class SegmentCoefficients:
    """Coefficients of one segment in its local flow."""
    cl: float
    cd: float
    cy: float
    cm: float
    cp: float


ZERO_COEFFICIENTS = SegmentCoefficients(cl=0.0, cd=0.0, cy=0.0, cm=0.0, cp=0.25)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def deploy_scales(deploy: float) -> Tuple[float, float, float]:
    """(span_scale, chord_scale, chord_offset) of the canopy at a deployment fraction."""
    d = _clamp(deploy, 0.0, 1.0)
    return 0.1 + 0.9 * d, 0.3 + 0.7 * d, DEPLOY_CHORD_OFFSET * (1.0 - d)


def deploy_morph(polar: ContinuousPolar, deploy: float) -> ContinuousPolar:
    """
    Morph a canopy polar toward an uninflated fabric bundle.

    At deploy = 0 the canopy has more parasitic and normal drag, a weak
    lift slope and an early, broad stall. Identity at deploy >= 1.
    """
    d = _clamp(deploy, 0.0, 1.0)
    if d >= 1.0:
        return polar
    return polar.with_values(
        cd_0=polar.cd_0 * (DEPLOY_CD0_MULTIPLIER + (1 - DEPLOY_CD0_MULTIPLIER) * d),
        cl_alpha=polar.cl_alpha * (DEPLOY_CL_ALPHA_FRACTION + (1 - DEPLOY_CL_ALPHA_FRACTION) * d),
        cd_n=polar.cd_n * (DEPLOY_CD_N_MULTIPLIER + (1 - DEPLOY_CD_N_MULTIPLIER) * d),
        alpha_stall_fwd=polar.alpha_stall_fwd + DEPLOY_STALL_FWD_OFFSET * (1 - d),
        s1_fwd=polar.s1_fwd * (DEPLOY_S1_FWD_MULTIPLIER + (1 - DEPLOY_S1_FWD_MULTIPLIER) * d),
    )


def local_flow_angles(alpha_deg: float, beta_deg: float, roll_rad: float) -> Tuple[float, float]:
    """Freestream (α, β) projected onto a panel rolled by roll_rad about body x."""
    cos_t = np.cos(roll_rad)
    sin_t = np.sin(roll_rad)
    return (alpha_deg * cos_t + beta_deg * sin_t,
            -alpha_deg * sin_t + beta_deg * cos_t)


def rotate_about_pivot(x: float, z: float, pivot: Tuple[float, float],
                       pitch_deg: float) -> Tuple[float, float]:
    """Rotate an (x, z) point about a pivot in the pitch plane."""
    delta = pitch_deg * DEG2RAD
    cos_d = np.cos(delta)
    sin_d = np.sin(delta)
    dx = x - pivot[0]
    dz = z - pivot[1]
    return dx * cos_d - dz * sin_d + pivot[0], dx * sin_d + dz * cos_d + pivot[1]


def _side_input(side: str, left: float, right: float) -> float:
    if side == 'right':
        return right
    if side == 'left':
        return left
    return 0.5 * (left + right)


def _check_side(name: str, side: str, allowed=SIDES):
    if side not in allowed:
        raise ValueError(f"Segment '{name}': unknown side '{side}'")


class AeroSegment(ABC):
    """
    Common interface of segment descriptors.

    Segments evaluated with a ContinuousPolar expose it as `polar`;
    constant-coefficient segments have none.
    """

    name: str

    @abstractmethod
    def geometry(self, controls: SegmentControls) -> SegmentGeometry:
        """Live geometry for these controls."""

    @abstractmethod
    def coefficients(self, alpha_deg: float, beta_deg: float,
                     controls: SegmentControls) -> SegmentCoefficients:
        """Local coefficients at freestream (α, β)."""

    def evaluate(self, alpha_deg: float, beta_deg: float,
                 controls: SegmentControls) -> Tuple[SegmentGeometry, SegmentCoefficients]:
        """Geometry and coefficients for one evaluation, without side effects."""
        return self.geometry(controls), self.coefficients(alpha_deg, beta_deg, controls)


@dataclass(frozen=True)
class ParasiticSegment(AeroSegment):
    """Constant-coefficient drag body (lines, bridle, pilot chute)."""
    name: str
    position: tuple
    S: float
    chord: float
    cd: float
    cl: float = 0.0
    cy: float = 0.0

    def geometry(self, controls):
        return SegmentGeometry(position=np.array(self.position, dtype=float),
                               S=self.S, chord=self.chord)

    def coefficients(self, alpha_deg, beta_deg, controls):
        return SegmentCoefficients(cl=self.cl, cd=self.cd, cy=self.cy, cm=0.0, cp=0.25)


@dataclass(frozen=True)
class LiftingBodySegment(AeroSegment):
    """
    Body evaluated with its own full polar (pilot under a canopy, slick body).

    pitch_offset_deg rotates the body's α axis relative to the vehicle
    (+90 for a pilot hanging upright). When unzipped_polar is given the
    segment blends from polar (unzip = 0) to unzipped_polar (unzip = 1).
    With a pivot, pilot_pitch swings the segment about it.
    """
    name: str
    position: tuple
    polar: ContinuousPolar
    pitch_offset_deg: float = 0.0
    pivot: Optional[Tuple[float, float]] = None
    unzipped_polar: Optional[ContinuousPolar] = None

    def active_polar(self, controls: SegmentControls) -> ContinuousPolar:
        if self.unzipped_polar is None:
            return self.polar
        t = _clamp(controls.unzip, 0.0, 1.0)
        if t == 0:
            return self.polar
        if t == 1:
            return self.unzipped_polar
        return lerp_polar(t, self.polar, self.unzipped_polar)

    def geometry(self, controls):
        x, y, z = self.position
        if self.pivot is not None and abs(controls.pilot_pitch) > 0.01:
            x, z = rotate_about_pivot(x, z, self.pivot, controls.pilot_pitch)
        polar = self.active_polar(controls)
        return SegmentGeometry(
            position=np.array([x, y, z], dtype=float),
            S=polar.s,
            chord=polar.chord,
            pitch_offset_deg=self.pitch_offset_deg,
            chord_rotation_rad=controls.pilot_pitch * DEG2RAD,
        )

    def coefficients(self, alpha_deg, beta_deg, controls):
        polar = self.active_polar(controls)
        local_alpha = alpha_deg - (self.pitch_offset_deg + controls.pilot_pitch)
        c = get_all_coefficients(local_alpha, beta_deg, controls.delta, polar, controls.dirty)
        return SegmentCoefficients(cl=c.cl, cd=c.cd, cy=c.cy, cm=c.cm, cp=c.cp)


@dataclass(frozen=True)
class CanopyCellSegment(AeroSegment):
    """
    One ram-air canopy cell.

    The cell sits at an arc angle roll_deg along the curved span and sees a
    rotated projection of the freestream. Risers offset α, brakes act as a
    camber control (δ) plus a small α coupling. The center cell gets no brake.
    Deployment shrinks span and chord and morphs the polar.
    """
    name: str
    position: tuple
    roll_deg: float
    side: str
    brake_sensitivity: float
    riser_sensitivity: float
    polar: ContinuousPolar
    constants: ControlConstants

    def __post_init__(self):
        _check_side(self.name, self.side)

    def geometry(self, controls):
        span_scale, chord_scale, chord_offset = deploy_scales(controls.deploy)
        x, y, z = self.position
        return SegmentGeometry(
            position=np.array([x + chord_offset, y * span_scale, z], dtype=float),
            S=self.polar.s * chord_scale * span_scale,
            chord=self.polar.chord * chord_scale,
            roll_deg=self.roll_deg,
        )

    def coefficients(self, alpha_deg, beta_deg, controls):
        alpha_local, beta_local = local_flow_angles(alpha_deg, beta_deg, self.roll_deg * DEG2RAD)

        front = _side_input(self.side, controls.front_riser_left, controls.front_riser_right)
        rear = _side_input(self.side, controls.rear_riser_left, controls.rear_riser_right)
        delta_alpha_riser = (-front + rear) * self.constants.alpha_max_riser * self.riser_sensitivity

        if self.side == 'center':
            brake = 0.0
        else:
            brake = _side_input(self.side, controls.brake_left, controls.brake_right)
        delta_effective = brake * self.brake_sensitivity
        delta_alpha_brake = delta_effective * self.constants.brake_alpha_coupling_deg

        polar = deploy_morph(self.polar, controls.deploy)
        c = get_all_coefficients(alpha_local + delta_alpha_riser + delta_alpha_brake,
                                 beta_local, delta_effective, polar)
        return SegmentCoefficients(cl=c.cl, cd=c.cd, cy=c.cy, cm=c.cm, cp=c.cp)


@dataclass(frozen=True)
class BrakeFlapSegment(AeroSegment):
    """
    Deflected trailing-edge panel behind a canopy cell.

    Area and chord grow from zero with effective brake; the panel deflects
    down by up to max_flap_deflection_deg, curls outward by up to
    max_flap_roll_increment_deg, and its reference point moves from the
    trailing edge toward the cell quarter chord. Lift is tilted by the panel
    roll into a side-force component.
    """
    name: str
    trailing_edge: tuple
    roll_deg: float
    side: str
    brake_sensitivity: float
    flap_chord_fraction: float
    parent_cell_s: float
    parent_cell_chord: float
    parent_cell_x: float
    polar: ContinuousPolar
    reference_length: float
    constants: ControlConstants

    def __post_init__(self):
        _check_side(self.name, self.side, allowed=('left', 'right'))

    def effective_brake(self, controls: SegmentControls) -> float:
        brake = controls.brake_right if self.side == 'right' else controls.brake_left
        return brake * self.brake_sensitivity

    def _roll_increment_deg(self, effective_brake: float) -> float:
        roll_sign = 1.0 if self.roll_deg >= 0 else -1.0
        return effective_brake * self.constants.max_flap_roll_increment_deg * roll_sign

    def geometry(self, controls):
        span_scale, chord_scale, chord_offset = deploy_scales(controls.deploy)
        te_x, te_y, te_z = self.trailing_edge
        eb = self.effective_brake(controls)

        max_flap_s = self.flap_chord_fraction * self.parent_cell_s * chord_scale * span_scale
        max_flap_chord = self.flap_chord_fraction * self.parent_cell_chord * chord_scale
        max_cp_shift = 0.25 * self.parent_cell_chord / self.reference_length * chord_scale

        x = (self.parent_cell_x + chord_offset
             + (te_x - self.parent_cell_x) * chord_scale
             + eb * max_cp_shift)
        roll = self.roll_deg
        if eb >= FLAP_BRAKE_THRESHOLD:
            roll += self._roll_increment_deg(eb)

        return SegmentGeometry(
            position=np.array([x, te_y * span_scale, te_z], dtype=float),
            S=eb * max_flap_s,
            chord=eb * max_flap_chord,
            roll_deg=roll,
        )

    def coefficients(self, alpha_deg, beta_deg, controls):
        eb = self.effective_brake(controls)
        if eb < FLAP_BRAKE_THRESHOLD:
            return ZERO_COEFFICIENTS

        theta = (self.roll_deg + self._roll_increment_deg(eb)) * DEG2RAD
        alpha_local, beta_local = local_flow_angles(alpha_deg, beta_deg, theta)
        alpha_flap = alpha_local + eb * self.constants.max_flap_deflection_deg

        polar = deploy_morph(self.polar, controls.deploy)
        c = get_all_coefficients(alpha_flap, beta_local, 0.0, polar)

        # Lift of the rolled panel splits into vertical and outward components
        return SegmentCoefficients(
            cl=c.cl * np.cos(theta),
            cd=c.cd,
            cy=c.cy + c.cl * np.sin(theta),
            cm=c.cm,
            cp=c.cp,
        )


@dataclass(frozen=True)
class WingsuitHeadSegment(AeroSegment):
    """Wingsuit head: bluff drag body acting as a forward rudder in sideslip."""
    name: str
    position: tuple
    S: float
    chord: float
    cd: float
    constants: WingsuitControlConstants

    def geometry(self, controls):
        x, y, z = self.position
        y = y + controls.yaw_throttle * self.constants.yaw_head_y_shift
        return SegmentGeometry(position=np.array([x, y, z], dtype=float),
                               S=self.S, chord=self.chord)

    def coefficients(self, alpha_deg, beta_deg, controls):
        cy = -0.5 * np.sin(beta_deg * DEG2RAD)
        return SegmentCoefficients(cl=0.0, cd=self.cd, cy=float(cy), cm=0.0, cp=0.5)


@dataclass(frozen=True)
class WingsuitLiftingSegment(AeroSegment):
    """
    Wingsuit body or wing panel.

    Responds to pitch throttle (α offset, CP shift), yaw throttle (body
    lateral shift, differential α and dirty), roll throttle (differential α
    and dirty), dihedral (panel roll of inner and outer wings) and dirty.
    """
    name: str
    position: tuple
    base_roll_deg: float
    side: str
    polar: ContinuousPolar
    roll_sensitivity: float
    wing_type: str
    constants: WingsuitControlConstants

    def __post_init__(self):
        _check_side(self.name, self.side)
        if self.wing_type not in WING_TYPES:
            raise ValueError(f"Segment '{self.name}': unknown wing type '{self.wing_type}'")

    @property
    def side_sign(self) -> float:
        return {'right': 1.0, 'left': -1.0}.get(self.side, 0.0)

    def dihedral_roll_deg(self, controls: SegmentControls) -> float:
        dihedral = _clamp(controls.dihedral, 0.0, 1.0)
        if self.wing_type == 'inner':
            return self.side_sign * self.constants.dihedral_inner_max_deg * dihedral
        if self.wing_type == 'outer':
            return self.side_sign * self.constants.dihedral_outer_max_deg * dihedral
        return 0.0

    def geometry(self, controls):
        x, y, z = self.position
        if self.wing_type == 'body':
            y = y + _clamp(controls.yaw_throttle, -1.0, 1.0) * self.constants.yaw_body_y_shift
        return SegmentGeometry(
            position=np.array([x, y, z], dtype=float),
            S=self.polar.s,
            chord=self.polar.chord,
            roll_deg=self.dihedral_roll_deg(controls),
        )

    def coefficients(self, alpha_deg, beta_deg, controls):
        ctrl = self.constants
        sign = self.side_sign
        theta = self.dihedral_roll_deg(controls) * DEG2RAD
        alpha_local, beta_local = local_flow_angles(alpha_deg, beta_deg, theta)

        pitch_t = _clamp(controls.pitch_throttle, -1.0, 1.0)
        roll_t = _clamp(controls.roll_throttle, -1.0, 1.0)
        yaw_t = _clamp(controls.yaw_throttle, -1.0, 1.0)

        alpha_effective = (alpha_local
                           + pitch_t * ctrl.pitch_alpha_max_deg
                           + roll_t * ctrl.roll_alpha_max_deg * self.roll_sensitivity * sign
                           + yaw_t * ctrl.yaw_roll_coupling_deg * sign)

        dirty = _clamp(_clamp(controls.dirty, 0.0, 1.0)
                       + yaw_t * ctrl.yaw_dirty_coupling * sign
                       + abs(roll_t) * ctrl.roll_dirty_coupling, 0.0, 1.0)

        c = get_all_coefficients(alpha_effective, beta_local, controls.delta, self.polar, dirty)

        return SegmentCoefficients(
            cl=c.cl * np.cos(theta),
            cd=c.cd,
            cy=c.cy + c.cl * np.sin(theta),
            cm=c.cm,
            cp=c.cp + pitch_t * ctrl.pitch_cp_shift,
        )


# === Factories ===

def make_parasitic_segment(name, position, S, chord, cd, cl=0.0, cy=0.0) -> ParasiticSegment:
    return ParasiticSegment(name, tuple(position), S, chord, cd, cl, cy)


def make_lifting_body_segment(name, position, polar, pitch_offset_deg=0.0,
                              pivot=None) -> LiftingBodySegment:
    return LiftingBodySegment(name, tuple(position), polar, pitch_offset_deg, pivot)


def make_unzippable_pilot_segment(name, position, zipped_polar, unzipped_polar,
                                  pitch_offset_deg=0.0, pivot=None) -> LiftingBodySegment:
    return LiftingBodySegment(name, tuple(position), zipped_polar, pitch_offset_deg,
                              pivot, unzipped_polar)


def make_canopy_cell_segment(name, position, roll_deg, side, brake_sensitivity,
                             riser_sensitivity, cell_polar,
                             constants: ControlConstants) -> CanopyCellSegment:
    return CanopyCellSegment(name, tuple(position), roll_deg, side, brake_sensitivity,
                             riser_sensitivity, cell_polar, constants)


def make_brake_flap_segment(name, trailing_edge, roll_deg, side, brake_sensitivity,
                            flap_chord_fraction, parent_cell_s, parent_cell_chord,
                            parent_cell_x, flap_polar, reference_length,
                            constants: ControlConstants) -> BrakeFlapSegment:
    return BrakeFlapSegment(name, tuple(trailing_edge), roll_deg, side, brake_sensitivity,
                            flap_chord_fraction, parent_cell_s, parent_cell_chord,
                            parent_cell_x, flap_polar, reference_length, constants)


def make_wingsuit_head_segment(name, position, S, chord, cd,
                               constants: WingsuitControlConstants) -> WingsuitHeadSegment:
    return WingsuitHeadSegment(name, tuple(position), S, chord, cd, constants)


def make_wingsuit_lifting_segment(name, position, base_roll_deg, side, segment_polar,
                                  roll_sensitivity, wing_type,
                                  constants: WingsuitControlConstants) -> WingsuitLiftingSegment:
    return WingsuitLiftingSegment(name, tuple(position), base_roll_deg, side, segment_polar,
                                  roll_sensitivity, wing_type, constants)
