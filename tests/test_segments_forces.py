"""
Segment and Force Engine Tests

Tests for:
- Wind frame construction
- Segment descriptors (purity, brake routing, flaps)
- Static and rotating-frame force summation
- Rate damping from per-segment airflow
"""

import pytest
import numpy as np

from polarsim.aero.forces import (
    evaluate_segment, evaluate_static, evaluate_with_rotation, sum_segments, wind_frame,
)
from polarsim.aero.segments import (
    AeroSegment, SegmentCoefficients, SegmentControls, SegmentGeometry, WingsuitControlConstants,
    default_controls, make_lifting_body_segment, make_wingsuit_lifting_segment,
)
from polarsim.aero.vehicles import (
    CANOPY_WEIGHT_SEGMENTS, REFERENCE_HEIGHT, WINGSUIT_MASS_SEGMENTS,
    make_a5_segments_aero_segments, make_ibex_aero_segments,
)
from polarsim.core.inertia import center_of_mass
from polarsim.io.library import get_polar, load_polar_library


@pytest.fixture(scope='module')
def library():
    return load_polar_library()


@pytest.fixture(scope='module')
def ibex_segments(library):
    return make_ibex_aero_segments('wingsuit', library)


@pytest.fixture(scope='module')
def ibex_cg(library):
    return center_of_mass(CANOPY_WEIGHT_SEGMENTS, REFERENCE_HEIGHT, get_polar(library, 'ibexul').m)


def by_name(segments, name):
    return next(seg for seg in segments if seg.name == name)


def body_velocity(airspeed, alpha_deg):
    a = np.radians(alpha_deg)
    return airspeed * np.array([np.cos(a), 0.0, np.sin(a)])


def wingsuit_cg(library):
    return center_of_mass(WINGSUIT_MASS_SEGMENTS, REFERENCE_HEIGHT, get_polar(library, 'a5segments').m)


def roll_rate_increments(segments, cg, velocity, p):
    """Moment change from rest at roll rate +p and at -p."""
    def moment(rate):
        system, _ = evaluate_with_rotation(segments, cg, REFERENCE_HEIGHT, velocity,
                                           np.array([rate, 0.0, 0.0]), default_controls(), 1.225)
        return system.moment

    still = moment(0.0)
    return moment(p) - still, moment(-p) - still


class CountingSegment(AeroSegment):
    """Constant-coefficient segment that counts geometry requests."""

    def __init__(self, name, position):
        self.name = name
        self.position = position
        self.geometry_calls = 0

    def geometry(self, controls):
        self.geometry_calls += 1
        return SegmentGeometry(position=np.array(self.position, dtype=float), S=1.0, chord=1.0)

    def coefficients(self, alpha_deg, beta_deg, controls):
        return SegmentCoefficients(cl=0.5, cd=0.1, cy=0.0, cm=0.0, cp=0.25)


class TestWindFrame:
    """Test wind / lift / side basis."""

    def test_level_flow(self):
        """α = β = 0: wind along +x, lift up (-z), side along +y."""
        frame = wind_frame(0.0, 0.0)
        assert np.allclose(frame.wind_dir, [1.0, 0.0, 0.0])
        assert np.allclose(frame.lift_dir, [0.0, 0.0, -1.0])
        assert np.allclose(frame.side_dir, [0.0, 1.0, 0.0])

    @pytest.mark.parametrize('alpha,beta', [(8.0, 0.0), (20.0, 10.0), (-15.0, -25.0), (85.0, 5.0)])
    def test_orthonormal(self, alpha, beta):
        frame = wind_frame(alpha, beta)
        basis = np.array([frame.wind_dir, frame.lift_dir, frame.side_dir])
        assert np.allclose(basis @ basis.T, np.eye(3), atol=1e-12)


class TestSegments:
    """Test segment descriptors and control routing."""

    def test_evaluate_is_pure(self, ibex_segments):
        """Evaluating with other controls in between does not change a result."""
        cell = by_name(ibex_segments, 'cell_r2')
        braked = SegmentControls(brake_right=0.8)

        geom1, c1 = cell.evaluate(10.0, 2.0, braked)
        cell.evaluate(10.0, 2.0, default_controls())
        geom2, c2 = cell.evaluate(10.0, 2.0, braked)

        assert c1 == c2
        assert np.array_equal(geom1.position, geom2.position)
        assert geom1.S == geom2.S

    def test_brake_changes_cell(self, ibex_segments):
        cell = by_name(ibex_segments, 'cell_r3')
        plain = cell.coefficients(8.0, 0.0, default_controls())
        braked = cell.coefficients(8.0, 0.0, SegmentControls(brake_right=1.0))
        assert braked.cd > plain.cd

    def test_center_cell_ignores_brake(self, ibex_segments):
        cell = by_name(ibex_segments, 'cell_c')
        plain = cell.coefficients(8.0, 0.0, default_controls())
        braked = cell.coefficients(8.0, 0.0, SegmentControls(brake_left=1.0, brake_right=1.0))
        assert braked == plain

    def test_left_brake_only_affects_left(self, ibex_segments):
        right = by_name(ibex_segments, 'cell_r2')
        controls = SegmentControls(brake_left=1.0)
        assert right.coefficients(8.0, 0.0, controls) == right.coefficients(8.0, 0.0, default_controls())

    def test_flap_zero_without_brake(self, ibex_segments):
        """An unbraked flap has no area and no load."""
        flap = by_name(ibex_segments, 'flap_r1')
        force = evaluate_segment(flap, 8.0, 0.0, default_controls(), 1.225, 12.0)

        assert force.geometry.S == 0.0
        assert force.lift == 0.0
        assert force.drag == 0.0
        assert force.side == 0.0

    def test_flap_grows_with_brake(self, ibex_segments):
        flap = by_name(ibex_segments, 'flap_l3')
        half = flap.geometry(SegmentControls(brake_left=0.5))
        full = flap.geometry(SegmentControls(brake_left=1.0))
        assert 0.0 < half.S < full.S
        assert full.roll_deg < flap.roll_deg  # left flap curls further outward

    def test_pilot_swings_about_pivot(self, ibex_segments):
        pilot = by_name(ibex_segments, 'pilot')
        still = pilot.geometry(default_controls())
        swung = pilot.geometry(SegmentControls(pilot_pitch=15.0))

        pivot = np.array([pilot.pivot[0], pilot.pivot[1]])
        r_still = np.hypot(*(still.position[[0, 2]] - pivot))
        r_swung = np.hypot(*(swung.position[[0, 2]] - pivot))
        assert r_swung == pytest.approx(r_still)
        assert swung.position[0] != pytest.approx(still.position[0])

    def test_unzip_blends_pilot_polar(self, library, ibex_segments):
        pilot = by_name(ibex_segments, 'pilot')
        unzipped = pilot.geometry(SegmentControls(unzip=1.0))
        assert unzipped.S == pytest.approx(get_polar(library, 'slicksin').s)

    def test_deploy_shrinks_cell(self, ibex_segments):
        cell = by_name(ibex_segments, 'cell_r1')
        full = cell.geometry(default_controls())
        packed = cell.geometry(SegmentControls(deploy=0.2))
        assert packed.S < full.S
        assert abs(packed.position[1]) < abs(full.position[1])

    def test_unknown_side_rejected(self, library):
        with pytest.raises(ValueError, match='unknown side'):
            make_wingsuit_lifting_segment('bad', (0.0, 0.0, 0.0), 0.0, 'up',
                                          get_polar(library, 'a5_inner'), 0.5, 'inner',
                                          WingsuitControlConstants())

    def test_unknown_wing_type_rejected(self, library):
        with pytest.raises(ValueError, match='unknown wing type'):
            make_wingsuit_lifting_segment('bad', (0.0, 0.0, 0.0), 0.0, 'left',
                                          get_polar(library, 'a5_inner'), 0.5, 'tail',
                                          WingsuitControlConstants())


class TestForceSummation:
    """Test static system loads."""

    def test_single_body_projects_to_its_coefficients(self, library):
        """One lifting body at the CG reproduces its own CL and CD."""
        polar = get_polar(library, 'aurafive')
        body = make_lifting_body_segment('body', (0.0, 0.0, 0.0), polar)
        rho, airspeed, alpha = 1.225, 30.0, 12.0

        total = evaluate_static([body], np.zeros(3), REFERENCE_HEIGHT, alpha, 0.0,
                                default_controls(), rho, airspeed)
        frame = wind_frame(alpha, 0.0)
        qs = 0.5 * rho * airspeed ** 2 * polar.s

        c = body.coefficients(alpha, 0.0, default_controls())
        assert np.dot(total.force, frame.lift_dir) / qs == pytest.approx(c.cl)
        assert -np.dot(total.force, frame.wind_dir) / qs == pytest.approx(c.cd)
        assert np.dot(total.force, frame.side_dir) == pytest.approx(0.0, abs=1e-9)

    def test_aft_cp_is_more_nose_down(self, library):
        """Moving the CP aft of the CG lowers the pitching moment."""
        polar = get_polar(library, 'aurafive').with_values(cp_alpha=0.0)
        fwd = make_lifting_body_segment('body', (0.0, 0.0, 0.0), polar.with_values(cp_0=0.30))
        aft = make_lifting_body_segment('body', (0.0, 0.0, 0.0), polar.with_values(cp_0=0.50))

        args = (np.zeros(3), REFERENCE_HEIGHT, 6.0, 0.0, default_controls(), 1.225, 30.0)
        assert evaluate_static([aft], *args).moment[1] < evaluate_static([fwd], *args).moment[1]

    def test_order_independent(self, ibex_segments, ibex_cg):
        args = (ibex_cg, REFERENCE_HEIGHT, 9.0, 3.0, SegmentControls(brake_left=0.4), 1.225, 12.0)
        forward = evaluate_static(ibex_segments, *args)
        reverse = evaluate_static(list(reversed(ibex_segments)), *args)

        assert np.allclose(forward.force, reverse.force)
        assert np.allclose(forward.moment, reverse.moment)

    def test_non_positive_density_rejected(self, ibex_segments):
        with pytest.raises(ValueError, match='density'):
            evaluate_segment(ibex_segments[0], 8.0, 0.0, default_controls(), 0.0, 12.0)

    def test_sum_uses_force_geometry(self, ibex_segments, ibex_cg):
        """Loads are placed by their own geometry; segments only guard the count."""
        controls = SegmentControls(brake_left=0.4)
        forces = [evaluate_segment(seg, 9.0, 0.0, controls, 1.225, 12.0) for seg in ibex_segments]
        frame = wind_frame(9.0, 0.0)
        args = (ibex_cg, REFERENCE_HEIGHT, frame.wind_dir, frame.lift_dir, frame.side_dir)

        total = sum_segments(ibex_segments, forces, *args)
        shuffled = sum_segments(list(reversed(ibex_segments)), forces, *args)
        assert np.allclose(total.moment, shuffled.moment)

        with pytest.raises(ValueError, match='segment forces'):
            sum_segments(ibex_segments[:-1], forces, *args)

    def test_symmetric_vehicle_has_no_lateral_load(self, ibex_segments, ibex_cg):
        """Zero sideslip and symmetric inputs give no side force, roll or yaw."""
        total = evaluate_static(ibex_segments, ibex_cg, REFERENCE_HEIGHT, 8.0, 0.0,
                                SegmentControls(brake_left=0.5, brake_right=0.5), 1.225, 12.0)
        assert total.force[1] == pytest.approx(0.0, abs=1e-8)
        assert total.moment[0] == pytest.approx(0.0, abs=1e-8)
        assert total.moment[2] == pytest.approx(0.0, abs=1e-8)


class TestRotatingFrame:
    """Test per-segment V + ω x r airflow."""

    def test_no_rotation_matches_static(self, ibex_segments, ibex_cg):
        controls = SegmentControls(brake_right=0.3)
        velocity = body_velocity(12.0, 8.0)

        static = evaluate_static(ibex_segments, ibex_cg, REFERENCE_HEIGHT, 8.0, 0.0,
                                 controls, 1.225, 12.0)
        rotating, per_segment = evaluate_with_rotation(ibex_segments, ibex_cg, REFERENCE_HEIGHT,
                                                       velocity, np.zeros(3), controls, 1.225)

        assert len(per_segment) == len(ibex_segments)
        assert np.allclose(rotating.force, static.force, rtol=1e-9, atol=1e-9)
        assert np.allclose(rotating.moment, static.moment, rtol=1e-9, atol=1e-9)

    def test_local_flow_per_segment(self, ibex_segments, ibex_cg):
        """A positive roll rate raises α on right cells and lowers it on left cells."""
        _, per_segment = evaluate_with_rotation(ibex_segments, ibex_cg, REFERENCE_HEIGHT,
                                                body_velocity(12.0, 8.0),
                                                np.array([0.5, 0.0, 0.0]),
                                                default_controls(), 1.225)
        results = {r.name: r for r in per_segment}
        assert results['cell_r3'].local_alpha > 8.0
        assert results['cell_l3'].local_alpha < 8.0

    def test_canopy_roll_damping(self, ibex_segments, ibex_cg):
        """Roll rate opposes itself; pitch change is even in p, yaw change odd."""
        right, left = roll_rate_increments(ibex_segments, ibex_cg, body_velocity(12.0, 8.0), 0.5)

        assert right[0] < 0.0
        assert left[0] == pytest.approx(-right[0], rel=1e-9, abs=1e-8)
        assert left[1] == pytest.approx(right[1], rel=1e-9, abs=1e-8)
        assert left[2] == pytest.approx(-right[2], rel=1e-9, abs=1e-8)

    def test_wingsuit_roll_damping(self, library):
        """Roll rate opposes itself and leaves pitch nearly untouched."""
        segments = make_a5_segments_aero_segments(library)
        right, left = roll_rate_increments(segments, wingsuit_cg(library),
                                           body_velocity(30.0, 10.0), 0.05)

        assert right[0] < 0.0
        assert abs(right[1]) < 0.05 * abs(right[0])
        assert left[1] == pytest.approx(right[1], rel=1e-9, abs=1e-8)

    def test_wingsuit_roll_rate_yaw_coupling(self, library):
        """
        Roll rate yaws a mirrored layout.

        The wing moving down sees higher α and more drag, the rising wing
        less, and the tilted local lift vectors add a second yaw term. The
        increment is nonzero and flips sign with the roll rate.
        """
        segments = make_a5_segments_aero_segments(library)
        right, left = roll_rate_increments(segments, wingsuit_cg(library),
                                           body_velocity(30.0, 10.0), 0.05)

        assert abs(right[2]) > 1e-6
        assert left[2] == pytest.approx(-right[2], rel=1e-9, abs=1e-8)

    def test_geometry_resolved_once_per_segment(self):
        segment = CountingSegment('body', (0.2, 0.1, -0.3))
        system, per_segment = evaluate_with_rotation([segment], np.zeros(3), REFERENCE_HEIGHT,
                                                     body_velocity(20.0, 5.0),
                                                     np.array([0.1, 0.2, 0.0]),
                                                     default_controls(), 1.225)
        assert segment.geometry_calls == 1
        assert np.allclose(per_segment[0].forces.geometry.position, segment.position)
        assert np.linalg.norm(system.force) > 0.0

    def test_pitch_damping(self, library):
        """Positive pitch rate on the wingsuit produces a nose-down increment."""
        segments = make_a5_segments_aero_segments(library)
        cg = wingsuit_cg(library)
        velocity = body_velocity(30.0, 10.0)

        still, _ = evaluate_with_rotation(segments, cg, REFERENCE_HEIGHT, velocity,
                                          np.zeros(3), default_controls(), 1.225)
        pitching, _ = evaluate_with_rotation(segments, cg, REFERENCE_HEIGHT, velocity,
                                             np.array([0.0, 0.5, 0.0]), default_controls(), 1.225)
        assert pitching.moment[1] < still.moment[1]

    def test_zero_reference_length_rejected(self, ibex_segments):
        with pytest.raises(ValueError, match='Reference length'):
            evaluate_with_rotation(ibex_segments, np.zeros(3), 0.0, body_velocity(12.0, 8.0),
                                   np.zeros(3), default_controls(), 1.225)
