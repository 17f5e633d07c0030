"""
Kirchhoff separation model for full-range aerodynamics.

Blends two aerodynamic regimes with a smooth attachment fraction f(α):
- Attached flow (f = 1): lift-curve slope with a drag polar
- Separated flow (f = 0): flat-plate normal-force model, valid at any α

The attachment fraction is the product of two logistic gates, one for
forward stall and one for back stall, so f ≈ 1 strictly between the two
stall angles and decays smoothly toward 0 outside that band.

All angle inputs are in degrees.
"""

import numpy as np

DEG2RAD = np.pi / 180.0

# Logistic argument beyond which the gate is saturated
SIGMOID_CLAMP = 500.0


def sigmoid(x):
    """
    Falling logistic gate: 1 / (1 + exp(x)).

    Saturates at 0 for x > 500 and 1 for x < -500 so exp() never
    overflows.
    """
    if np.ndim(x) == 0:
        if x > SIGMOID_CLAMP:
            return 0.0
        if x < -SIGMOID_CLAMP:
            return 1.0
        return 1.0 / (1.0 + np.exp(x))
    x = np.asarray(x, dtype=float)
    return 1.0 / (1.0 + np.exp(np.clip(x, -SIGMOID_CLAMP, SIGMOID_CLAMP)))


def f_fwd(alpha_deg, polar):
    """Forward stall gate: drops from 1 to 0 as α exceeds alpha_stall_fwd."""
    return sigmoid((alpha_deg - polar.alpha_stall_fwd) / polar.s1_fwd)


def f_back(alpha_deg, polar):
    """Back stall gate: drops from 1 to 0 as α goes below alpha_stall_back."""
    return sigmoid((polar.alpha_stall_back - alpha_deg) / polar.s1_back)


def separation(alpha_deg, polar):
    """
    Attachment fraction f(α) in (0, 1).

    Parameters
    ----------
    alpha_deg : float or ndarray
        Angle of attack (deg)
    polar : ContinuousPolar
        Supplies alpha_stall_fwd, s1_fwd, alpha_stall_back, s1_back

    Returns
    -------
    float or ndarray
        1 for fully attached flow, 0 for fully separated flow
    """
    return f_fwd(alpha_deg, polar) * f_back(alpha_deg, polar)


# === Attached-flow model ===

def cl_attached(alpha_deg, polar):
    """
    Attached-flow lift: CL = cl_alpha * sin(α - α0).

    sin() keeps the term bounded deep into the transition band.
    """
    alpha_rad = (alpha_deg - polar.alpha_0) * DEG2RAD
    return polar.cl_alpha * np.sin(alpha_rad)


def cd_attached(alpha_deg, polar):
    """Attached-flow drag polar: CD = cd_0 + k * CL^2."""
    cl = cl_attached(alpha_deg, polar)
    return polar.cd_0 + polar.k * cl * cl


# === Flat-plate model ===

def cl_plate(alpha_deg, cd_n):
    """Flat-plate lift: CL = cd_n * sin(α) * cos(α)."""
    alpha_rad = alpha_deg * DEG2RAD
    return cd_n * np.sin(alpha_rad) * np.cos(alpha_rad)


def cd_plate(alpha_deg, cd_n, cd_0):
    """Flat-plate drag: CD = cd_n * sin²(α) + cd_0 * cos²(α)."""
    alpha_rad = alpha_deg * DEG2RAD
    sin_a = np.sin(alpha_rad)
    cos_a = np.cos(alpha_rad)
    return cd_n * sin_a * sin_a + cd_0 * cos_a * cos_a


def cm_plate(alpha_deg):
    """Flat-plate pitching moment, nose-down for positive α."""
    return -0.1 * np.sin(2.0 * alpha_deg * DEG2RAD)


def cp_plate(alpha_deg):
    """Flat-plate centre of pressure: 0.25 chord at small α, 0.5 broadside."""
    return 0.25 + 0.25 * np.sin(np.abs(alpha_deg) * DEG2RAD)


if __name__ == "__main__":
    from types import SimpleNamespace

    demo = SimpleNamespace(alpha_stall_fwd=22.0, s1_fwd=4.0,
                           alpha_stall_back=-5.0, s1_back=3.0)
    for a in (-30, -5, 0, 10, 22, 40, 90):
        print(f"alpha={a:5.1f} deg  f={separation(a, demo):.4f}")
