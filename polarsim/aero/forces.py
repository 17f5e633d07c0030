"""
Segment force engine.

Converts per-segment coefficients into body-frame forces and moments about
the CG:

1. Per segment: coefficients x dynamic pressure x area (moment also x chord)
2. Wind frame from (α, β): force = lift*L - drag*W + side*Y
3. Moment = (CP position - CG) x F + intrinsic pitching moment on My

evaluate_with_rotation() repeats this per segment with the local airflow
V + ω x r, so rate damping comes out of the geometry.

Frame: NED body (x forward, y right, z down). Positions are normalised by the
reference length (height) and converted to metres here.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .kirchhoff import DEG2RAD
from .segments import AeroSegment, SegmentControls, SegmentGeometry

logger = logging.getLogger(__name__)

RAD2DEG = 180.0 / np.pi


@dataclass(frozen=True)
class SegmentForce:
    """Dimensional loads of one segment (wind axes) and the geometry used."""
    lift: float      # N, may be negative
    drag: float      # N
    side: float      # N
    moment: float    # N·m, segment's own pitching moment
    cp: float        # chord fraction where the force acts
    geometry: SegmentGeometry


@dataclass(frozen=True)
class WindFrame:
    """Orthonormal body-frame basis built from (α, β)."""
    wind_dir: np.ndarray  # direction the air comes from
    lift_dir: np.ndarray  # perpendicular to wind in the vertical plane
    side_dir: np.ndarray  # wind x lift


@dataclass(frozen=True)
class SystemForces:
    """Total aerodynamic force (N) and moment about the CG (N·m), body frame."""
    force: np.ndarray
    moment: np.ndarray


@dataclass(frozen=True)
class SegmentAeroResult:
    """Per-segment detail from the rotating-frame evaluation."""
    name: str
    forces: SegmentForce
    local_velocity: np.ndarray
    local_airspeed: float
    local_alpha: float
    local_beta: float
    position_meters: np.ndarray


def wind_frame(alpha_deg: float, beta_deg: float) -> WindFrame:
    """
    Wind, lift and side unit vectors in NED body axes.

    Parameters
    ----------
    alpha_deg, beta_deg : float
        Angle of attack and sideslip (deg)
    """
    a = alpha_deg * DEG2RAD
    b = beta_deg * DEG2RAD

    wind = np.array([np.cos(b) * np.cos(a), np.sin(b) * np.cos(a), np.sin(a)])
    temp = np.array([-np.sin(b) * np.cos(a), np.cos(b) * np.cos(a), 0.0])

    lift = np.cross(temp, wind)
    length = np.linalg.norm(lift)
    if length > 1e-10:
        lift = lift / length
    else:
        lift = np.array([-1.0, 0.0, 0.0])

    side = np.cross(wind, lift)
    return WindFrame(wind_dir=wind, lift_dir=lift, side_dir=side)


def evaluate_segment(segment: AeroSegment, alpha_deg: float, beta_deg: float,
                     controls: SegmentControls, rho: float, airspeed: float,
                     geometry: Optional[SegmentGeometry] = None) -> SegmentForce:
    """
    Dimensional loads of a segment at local (α, β) and airspeed.

    Parameters
    ----------
    segment : AeroSegment
        Segment descriptor
    alpha_deg, beta_deg : float
        Local flow angles (deg)
    controls : SegmentControls
        Pilot inputs
    rho : float
        Air density (kg/m³), must be positive
    airspeed : float
        Local airspeed (m/s)
    geometry : SegmentGeometry, optional
        Geometry already resolved for these controls; computed when omitted
    """
    if not rho > 0:
        raise ValueError(f"Air density must be positive, got {rho}")

    if geometry is None:
        geom, c = segment.evaluate(alpha_deg, beta_deg, controls)
    else:
        geom, c = geometry, segment.coefficients(alpha_deg, beta_deg, controls)
    q = 0.5 * rho * airspeed * airspeed
    qs = q * geom.S
    return SegmentForce(
        lift=qs * c.cl,
        drag=qs * c.cd,
        side=qs * c.cy,
        moment=qs * geom.chord * c.cm,
        cp=c.cp,
        geometry=geom,
    )


def body_force(force: SegmentForce, frame: WindFrame) -> np.ndarray:
    """Resolve wind-axis loads into body-frame Cartesian force."""
    return (frame.lift_dir * force.lift
            - frame.wind_dir * force.drag
            + frame.side_dir * force.side)


def cp_position(force: SegmentForce, height: float) -> np.ndarray:
    """
    Centre of pressure of a segment in metres.

    The CP sits (cp - 0.25) chords aft of the segment's quarter-chord
    reference, along its chord axis; the chord axis is pitched by the
    segment's pitch offset and swung by any chord rotation.
    """
    geom = force.geometry
    offset = -(force.cp - 0.25) * geom.chord / height
    base_pitch = -geom.pitch_offset_deg * DEG2RAD
    off_x = offset * np.cos(base_pitch)
    off_z = offset * np.sin(base_pitch)

    rot = geom.chord_rotation_rad
    if abs(rot) > 1e-6:
        cos_d, sin_d = np.cos(rot), np.sin(rot)
        off_x, off_z = off_x * cos_d - off_z * sin_d, off_x * sin_d + off_z * cos_d

    pos = geom.position
    return np.array([pos[0] + off_x, pos[1], pos[2] + off_z]) * height


def _accumulate(force: SegmentForce, frame: WindFrame, cg: np.ndarray,
                height: float) -> Tuple[np.ndarray, np.ndarray]:
    f = body_force(force, frame)
    r = cp_position(force, height) - cg
    m = np.cross(r, f)
    m[1] += force.moment
    return f, m


def sum_segments(segments: Sequence[AeroSegment], forces: Sequence[SegmentForce],
                 cg: np.ndarray, height: float, wind_dir: np.ndarray,
                 lift_dir: np.ndarray, side_dir: np.ndarray) -> SystemForces:
    """
    Sum segment loads into a system force and moment about the CG.

    Each segment contributes its lever-arm moment (CP - CG) x F plus its
    intrinsic pitching moment about the body y axis.

    Parameters
    ----------
    segments : sequence of AeroSegment
        Segments matching `forces` one to one. Only checked against the
        length of `forces`; the geometry of each load is taken from
        its SegmentForce.geometry
    forces : sequence of SegmentForce
        Output of evaluate_segment() for each segment
    cg : ndarray, shape (3,)
        Centre of gravity (m)
    height : float
        Reference length used to normalise positions (m)
    wind_dir, lift_dir, side_dir : ndarray, shape (3,)
        Shared wind frame
    """
    if len(segments) != len(forces):
        raise ValueError(f"Got {len(forces)} segment forces for {len(segments)} segments")
    if not height > 0:
        raise ValueError(f"Reference length must be positive, got {height}")

    frame = WindFrame(wind_dir=np.asarray(wind_dir), lift_dir=np.asarray(lift_dir),
                      side_dir=np.asarray(side_dir))
    cg = np.asarray(cg, dtype=float)

    total_force = np.zeros(3)
    total_moment = np.zeros(3)
    for force in forces:
        f, m = _accumulate(force, frame, cg, height)
        total_force += f
        total_moment += m

    return SystemForces(force=total_force, moment=total_moment)


def evaluate_static(segments: Sequence[AeroSegment], cg: np.ndarray, height: float,
                    alpha_deg: float, beta_deg: float, controls: SegmentControls,
                    rho: float, airspeed: float) -> SystemForces:
    """Whole body at one freestream (α, β, V) with no rotation."""
    forces = [evaluate_segment(seg, alpha_deg, beta_deg, controls, rho, airspeed)
              for seg in segments]
    frame = wind_frame(alpha_deg, beta_deg)
    return sum_segments(segments, forces, cg, height,
                        frame.wind_dir, frame.lift_dir, frame.side_dir)


def local_flow(velocity: np.ndarray) -> Tuple[float, float, float]:
    """Airspeed (m/s), α and β (deg) of a body-frame velocity; angles are 0 below 1e-6 m/s."""
    u, v, w = velocity
    airspeed = float(np.sqrt(u * u + v * v + w * w))
    if airspeed <= 1e-6:
        return airspeed, 0.0, 0.0
    alpha = float(np.arctan2(w, u) * RAD2DEG)
    beta = float(np.arcsin(np.clip(v / airspeed, -1.0, 1.0)) * RAD2DEG)
    return airspeed, alpha, beta


def evaluate_with_rotation(segments: Sequence[AeroSegment], cg: np.ndarray,
                           height: float, body_velocity: np.ndarray,
                           omega: np.ndarray, controls: SegmentControls,
                           rho: float) -> Tuple[SystemForces, List[SegmentAeroResult]]:
    """
    System loads with per-segment rotating-frame airflow.

    Each segment sees V_local = V + ω x r, r = segment position - CG, and is
    evaluated at its own airspeed and flow angles in its own wind frame.
    With ω = 0 this equals the shared-freestream path.

    Parameters
    ----------
    segments : sequence of AeroSegment
        Aerodynamic segments
    cg : ndarray, shape (3,)
        Centre of gravity (m)
    height : float
        Reference length (m)
    body_velocity : ndarray, shape (3,)
        CG velocity in body axes [u, v, w] (m/s)
    omega : ndarray, shape (3,)
        Body rates [p, q, r] (rad/s)
    controls : SegmentControls
        Pilot inputs
    rho : float
        Air density (kg/m³)

    Returns
    -------
    system : SystemForces
        Total force and moment about the CG
    per_segment : list of SegmentAeroResult
        Local flow and loads of every segment
    """
    if not height > 0:
        raise ValueError(f"Reference length must be positive, got {height}")

    cg = np.asarray(cg, dtype=float)
    body_velocity = np.asarray(body_velocity, dtype=float)
    omega = np.asarray(omega, dtype=float)

    total_force = np.zeros(3)
    total_moment = np.zeros(3)
    per_segment = []

    for seg in segments:
        geom = seg.geometry(controls)
        position_m = geom.position * height
        r = position_m - cg

        v_local = body_velocity + np.cross(omega, r)
        airspeed, alpha, beta = local_flow(v_local)

        force = evaluate_segment(seg, alpha, beta, controls, rho, airspeed, geom)
        f, m = _accumulate(force, wind_frame(alpha, beta), cg, height)
        total_force += f
        total_moment += m

        per_segment.append(SegmentAeroResult(
            name=seg.name,
            forces=force,
            local_velocity=v_local,
            local_airspeed=airspeed,
            local_alpha=alpha,
            local_beta=beta,
            position_meters=position_m,
        ))

    logger.debug("Aero sum over %d segments: F=%s M=%s",
                 len(per_segment), total_force, total_moment)
    return SystemForces(force=total_force, moment=total_moment), per_segment


def evaluate_aero_forces(segments, cg, height, body_velocity, omega, controls, rho) -> SystemForces:
    """System loads only; see evaluate_with_rotation()."""
    system, _ = evaluate_with_rotation(segments, cg, height, body_velocity,
                                       omega, controls, rho)
    return system
