"""
Vehicle Layout and Composite Frame Tests

Tests for:
- Ibex UL canopy and A5 wingsuit segment sets
- Canopy mass distribution and pilot swing
- Composite frame assembly, caching and SimConfig export
"""

import pytest
import numpy as np

from polarsim.aero.segments import SegmentControls, default_controls
from polarsim.aero.vehicles import (
    CANOPY_AIR_SEGMENTS, CANOPY_INERTIA_SEGMENTS, CANOPY_PILOT_SEGMENTS,
    CANOPY_STRUCTURE_SEGMENTS, CANOPY_WEIGHT_SEGMENTS, PILOT_PIVOT_X, PILOT_PIVOT_Z,
    WINGSUIT_MASS_SEGMENTS, a5_frame_config, ibex_frame_config,
    make_a5_segments_aero_segments, make_ibex_aero_segments, rotate_pilot_mass,
)
from polarsim.core.composite_frame import (
    CompositeFrameCache, build_composite_frame, frame_needs_rebuild, frame_to_sim_config,
)
from polarsim.core.simulation import simulate
from polarsim.core.state import state_from_flight_condition
from polarsim.io.library import load_polar_library

IBEX_NAMES = [
    'cell_c', 'cell_r1', 'cell_l1', 'cell_r2', 'cell_l2', 'cell_r3', 'cell_l3',
    'flap_r1', 'flap_l1', 'flap_r2', 'flap_l2', 'flap_r3', 'flap_l3',
    'lines', 'pc', 'pilot',
]


@pytest.fixture(scope='module')
def library():
    return load_polar_library()


@pytest.fixture(scope='module')
def ibex_config(library):
    return ibex_frame_config('wingsuit', library)


class TestSegmentLayouts:
    """Test the vehicle segment sets."""

    def test_ibex_segments(self, library):
        segments = make_ibex_aero_segments('wingsuit', library)
        assert [seg.name for seg in segments] == IBEX_NAMES

    def test_ibex_slick_pilot(self, library):
        pilot = make_ibex_aero_segments('slick', library)[-1]
        assert pilot.unzipped_polar is None
        assert pilot.polar.name == library['slicksin'].name

    def test_unknown_pilot_rejected(self, library):
        with pytest.raises(ValueError, match='pilot type'):
            make_ibex_aero_segments('tandem', library)

    def test_a5_segments(self, library):
        segments = make_a5_segments_aero_segments(library)
        assert [seg.name for seg in segments] == ['head', 'center', 'r1', 'l1', 'r2', 'l2']

    def test_a5_mirror_symmetry(self, library):
        segments = {seg.name: seg for seg in make_a5_segments_aero_segments(library)}
        for right, left in (('r1', 'l1'), ('r2', 'l2')):
            r = segments[right].geometry(default_controls())
            l = segments[left].geometry(default_controls())
            assert r.position[0] == pytest.approx(l.position[0])
            assert r.position[1] == pytest.approx(-l.position[1])
            assert r.roll_deg == pytest.approx(-l.roll_deg)
            assert r.S == pytest.approx(l.S)

    def test_dihedral_rolls_outer_panels_further(self, library):
        segments = {seg.name: seg for seg in make_a5_segments_aero_segments(library)}
        controls = SegmentControls(dihedral=1.0)
        assert segments['r2'].geometry(controls).roll_deg > segments['r1'].geometry(controls).roll_deg > 0


class TestMassDistribution:
    """Test the canopy system point masses."""

    def test_pilot_ratios_sum_to_one(self):
        assert sum(seg.mass_ratio for seg in CANOPY_PILOT_SEGMENTS) == pytest.approx(1.0)

    def test_weight_and_inertia_sets(self):
        assert len(CANOPY_STRUCTURE_SEGMENTS) == len(CANOPY_AIR_SEGMENTS) == 7
        assert len(CANOPY_WEIGHT_SEGMENTS) == 21
        assert len(CANOPY_INERTIA_SEGMENTS) == 28

    def test_wingsuit_symmetric(self):
        ratios = sum(seg.mass_ratio for seg in WINGSUIT_MASS_SEGMENTS)
        y_moment = sum(seg.mass_ratio * seg.position[1] for seg in WINGSUIT_MASS_SEGMENTS)
        assert ratios == pytest.approx(1.0)
        assert y_moment == pytest.approx(0.0, abs=1e-12)

    def test_neutral_returns_static_sets(self):
        weight, inertia = rotate_pilot_mass(0.0)
        assert weight == CANOPY_WEIGHT_SEGMENTS
        assert inertia == CANOPY_INERTIA_SEGMENTS

    def test_pilot_swing_keeps_pivot_distance(self):
        weight, _ = rotate_pilot_mass(20.0)
        for before, after in zip(CANOPY_PILOT_SEGMENTS, weight):
            r_before = np.hypot(before.position[0] - PILOT_PIVOT_X, before.position[2] - PILOT_PIVOT_Z)
            r_after = np.hypot(after.position[0] - PILOT_PIVOT_X, after.position[2] - PILOT_PIVOT_Z)
            assert r_after == pytest.approx(r_before)
            assert after.mass_ratio == before.mass_ratio

    def test_positive_swing_moves_pilot_aft(self):
        weight, _ = rotate_pilot_mass(20.0)
        rotated = {seg.name: seg for seg in weight}
        neutral = {seg.name: seg for seg in CANOPY_PILOT_SEGMENTS}
        assert rotated['left_foot'].position[0] < neutral['left_foot'].position[0]

    def test_partial_deploy_pulls_canopy_in(self):
        weight, inertia = rotate_pilot_mass(0.0, deploy=0.5)
        structure = [seg for seg in weight if seg.name.startswith('canopy_structure')]
        full = {seg.name: seg for seg in CANOPY_STRUCTURE_SEGMENTS}
        for seg in structure:
            assert abs(seg.position[1]) <= abs(full[seg.name].position[1])
            assert seg.position[0] > full[seg.name].position[0]
        assert len(inertia) == 28


class TestCompositeFrame:
    """Test frame assembly and caching."""

    def test_effective_mass_exceeds_physical(self, ibex_config):
        frame = build_composite_frame(ibex_config)
        assert frame.total_mass == pytest.approx(77.5)
        assert np.all(frame.effective_mass > frame.total_mass)
        assert frame.effective_inertia.Ixx > frame.inertia.Ixx

    def test_cg_below_canopy(self, ibex_config):
        """Pilot mass dominates: CG sits below the canopy, on the centre line."""
        frame = build_composite_frame(ibex_config)
        assert frame.cg[1] == pytest.approx(0.0, abs=1e-12)
        assert frame.cg[2] > 0.0

    def test_frame_is_read_only(self, ibex_config):
        """A cached frame cannot be changed through its segments or arrays."""
        frame = build_composite_frame(ibex_config)

        assert isinstance(frame.aero_segments, tuple)
        assert isinstance(frame.weight_segments, tuple)
        assert isinstance(frame.inertia_segments, tuple)
        with pytest.raises(ValueError):
            frame.cg[0] = 1.0
        with pytest.raises(ValueError):
            frame.effective_mass[2] = 0.0

        # A second build is unaffected by anything done to the first
        assert np.allclose(build_composite_frame(ibex_config).cg, frame.cg)

    def test_partial_deploy_reduces_apparent_mass(self, ibex_config):
        full = build_composite_frame(ibex_config, deploy=1.0)
        half = build_composite_frame(ibex_config, deploy=0.5)
        assert half.apparent_mass.mass.z < full.apparent_mass.mass.z

    def test_pilot_pitch_moves_cg(self, ibex_config):
        neutral = build_composite_frame(ibex_config)
        swung = build_composite_frame(ibex_config, pilot_pitch=15.0)
        assert not np.allclose(neutral.cg, swung.cg)

    def test_needs_rebuild(self, ibex_config):
        frame = build_composite_frame(ibex_config)
        assert not frame_needs_rebuild(frame, 1.0, 0.005)
        assert frame_needs_rebuild(frame, 1.0, 0.5)
        assert frame_needs_rebuild(frame, 0.9, 0.0)

    def test_cache_reuse_and_rebuild(self, ibex_config):
        cache = CompositeFrameCache(ibex_config)
        first = cache.get(1.0, 0.0)
        assert cache.get(1.0, 0.005) is first
        assert cache.build_count == 1

        cache.get(1.0, 5.0)
        assert cache.build_count == 2

        cache.invalidate()
        cache.get(1.0, 5.0)
        assert cache.build_count == 3

    def test_sim_config_export(self, ibex_config):
        frame = build_composite_frame(ibex_config)
        controls = SegmentControls(brake_left=0.3)

        with_am = frame_to_sim_config(frame, controls, use_apparent_mass=True)
        assert np.allclose(with_am.mass_per_axis, frame.effective_mass)
        assert with_am.inertia == frame.effective_inertia
        assert with_am.controls == controls

        without = frame_to_sim_config(frame, controls, use_apparent_mass=False)
        assert without.mass_per_axis is None
        assert without.inertia == frame.inertia
        assert without.mass == frame.total_mass

    def test_cache_sim_config_follows_controls(self, ibex_config):
        cache = CompositeFrameCache(ibex_config)
        cache.sim_config(default_controls())
        cache.sim_config(SegmentControls(pilot_pitch=10.0))
        assert cache.build_count == 2

    def test_wingsuit_frame_ignores_pitch(self, library):
        config = a5_frame_config(library)
        neutral = build_composite_frame(config)
        swung = build_composite_frame(config, pilot_pitch=10.0)
        assert np.allclose(neutral.cg, swung.cg)
        assert len(neutral.aero_segments) == 6

    def test_polar_overrides(self, library):
        config = ibex_frame_config('wingsuit', library, polar_overrides={'m': 90.0})
        assert build_composite_frame(config).total_mass == pytest.approx(90.0)


class TestVehicleRun:
    """Short closed-loop-free runs of the assembled vehicles."""

    def test_ibex_glide_stays_finite(self, ibex_config):
        config = CompositeFrameCache(ibex_config).sim_config(default_controls())
        state = state_from_flight_condition(12.0, np.radians(8.0), theta=np.radians(-5.0),
                                            altitude=1000.0)
        trajectory = simulate(state, config, 0.01, 50, method='rk4')

        final = trajectory[-1].to_array()
        assert np.all(np.isfinite(final))
        assert trajectory[-1].altitude < 1000.0
        assert 3.0 < trajectory[-1].airspeed < 30.0
