"""
Coefficient sweeps over angle of attack.

Both sweeps return one DataFrame row per α with the columns

    alpha, cl, cd, cy, cm, cn, cl_roll, cp, f, ld, vxs, vys

so single-polar and segment-summed results can be overlaid directly.
"""

import numpy as np
import pandas as pd
from typing import Optional, Sequence

from ..aero.coefficients import coeff_to_sustained_speeds, get_all_coefficients
from ..aero.forces import evaluate_static, wind_frame
from ..aero.kirchhoff import DEG2RAD, separation
from ..aero.polar import ContinuousPolar
from ..aero.segments import AeroSegment, SegmentControls, default_controls

SWEEP_COLUMNS = ['alpha', 'cl', 'cd', 'cy', 'cm', 'cn', 'cl_roll', 'cp', 'f',
                 'ld', 'vxs', 'vys']

CP_NORMAL_EPSILON = 0.02      # |normal force coefficient| below which CP falls back to polar.cg
REFERENCE_AIRSPEED = 10.0     # m/s, coefficients are speed independent


def default_alphas(start: float = -10.0, stop: float = 90.0, step: float = 1.0) -> np.ndarray:
    return np.arange(start, stop + 0.5 * step, step)


def _glide_columns(row: dict, polar: ContinuousPolar, rho: float) -> dict:
    row['ld'] = row['cl'] / row['cd'] if abs(row['cd']) > 1e-10 else 0.0
    row['vxs'], row['vys'] = coeff_to_sustained_speeds(row['cl'], row['cd'], polar.s, polar.m, rho)
    return row


def sweep_polar(polar: ContinuousPolar, alphas: Optional[Sequence[float]] = None,
                beta: float = 0.0, delta: float = 0.0, dirty: float = 0.0,
                rho: float = 1.225) -> pd.DataFrame:
    """
    Sweep a single polar.

    Parameters
    ----------
    polar : ContinuousPolar
        Polar to evaluate
    alphas : sequence of float, optional
        Angles of attack (deg), default -10..90 in 1 deg steps
    beta : float
        Sideslip (deg)
    delta, dirty : float
        Control inputs
    rho : float
        Air density for the sustained speeds (kg/m³)
    """
    alphas = default_alphas() if alphas is None else np.asarray(alphas, dtype=float)
    rows = []
    for alpha in alphas:
        row = {'alpha': float(alpha)}
        row.update(get_all_coefficients(alpha, beta, delta, polar, dirty).to_dict())
        rows.append(_glide_columns(row, polar, rho))
    return pd.DataFrame(rows, columns=SWEEP_COLUMNS)


def system_cp(cm: float, cl: float, cd: float, alpha_deg: float,
              polar: ContinuousPolar) -> float:
    """
    Centre of pressure (chord fraction) implied by a moment about the CG.

    cp = cg - cm / cn, with cn = cl cos α + cd sin α the normal force
    coefficient. Falls back to polar.cg when the normal force is too small
    to locate the CP.
    """
    a = alpha_deg * DEG2RAD
    cn_force = cl * np.cos(a) + cd * np.sin(a)
    if abs(cn_force) <= CP_NORMAL_EPSILON:
        return float(polar.cg)
    return float(np.clip(polar.cg - cm / cn_force, 0.0, 1.0))


def sweep_segments(segments: Sequence[AeroSegment], polar: ContinuousPolar,
                   cg: np.ndarray, height: float,
                   alphas: Optional[Sequence[float]] = None, beta: float = 0.0,
                   controls: Optional[SegmentControls] = None, rho: float = 1.225,
                   airspeed: float = REFERENCE_AIRSPEED) -> pd.DataFrame:
    """
    Sweep a segment assembly and reduce it to system coefficients.

    The summed body force is projected onto the wind frame and divided by
    q·S of `polar`; moments about `cg` are divided by q·S·chord.

    Parameters
    ----------
    segments : sequence of AeroSegment
        Vehicle segments
    polar : ContinuousPolar
        System polar supplying reference area, chord, mass and CG
    cg : ndarray, shape (3,)
        Centre of gravity (m)
    height : float
        Reference length (m)
    """
    alphas = default_alphas() if alphas is None else np.asarray(alphas, dtype=float)
    controls = controls if controls is not None else default_controls()
    cg = np.asarray(cg, dtype=float)

    qs = 0.5 * rho * airspeed * airspeed * polar.s
    qsc = qs * polar.chord

    rows = []
    for alpha in alphas:
        row = {'alpha': float(alpha)}
        if qs <= 1e-10:
            row.update(cl=0.0, cd=0.0, cy=0.0, cm=0.0, cn=0.0, cl_roll=0.0)
        else:
            total = evaluate_static(segments, cg, height, alpha, beta, controls, rho, airspeed)
            frame = wind_frame(alpha, beta)
            row.update(
                cl=float(np.dot(total.force, frame.lift_dir)) / qs,
                cd=float(-np.dot(total.force, frame.wind_dir)) / qs,
                cy=float(np.dot(total.force, frame.side_dir)) / qs,
                cm=float(total.moment[1]) / qsc,
                cn=float(total.moment[2]) / qsc,
                cl_roll=float(total.moment[0]) / qsc,
            )
        row['cp'] = system_cp(row['cm'], row['cl'], row['cd'], alpha, polar)
        row['f'] = float(separation(alpha, polar))
        rows.append(_glide_columns(row, polar, rho))
    return pd.DataFrame(rows, columns=SWEEP_COLUMNS)
