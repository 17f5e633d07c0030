"""
Rigid Body Dynamics Tests

Tests for:
- Gravity, translational and rotational equations of motion
- Euler angle kinematics
- Pilot pendulum
- Integrators and the simulation loop
"""

import pytest
import numpy as np

from polarsim.environment.atmosphere import G
from polarsim.aero.polar import MassSegment
from polarsim.core.dynamics import (
    RigidBodyDynamics, body_rates_from_euler_rates, body_to_inertial_velocity,
    compute_pilot_pendulum_params, euler_rates, gravity_body, pilot_pendulum_eom,
    pilot_swing_damping_torque, rotational_eom, translational_eom,
    translational_eom_anisotropic,
)
from polarsim.core.inertia import InertiaComponents
from polarsim.core.integrator import EulerIntegrator, RK4Integrator
from polarsim.core.simulation import (
    SimConfig, SimulationDivergedError, compute_derivatives, forward_euler, rk4_step,
    simulate, trajectory_to_dataframe,
)
from polarsim.core.state import STATE_NAMES, SimState, state_from_array, state_from_flight_condition


def no_aero(state):
    return np.zeros(3), np.zeros(3)


class TestState:
    """Test the 12-state vector."""

    def test_array_round_trip(self):
        values = np.arange(12, dtype=float)
        state = state_from_array(values)
        assert np.allclose(state.to_array(), values)
        assert state.theta == 7.0

    def test_wrong_length_rejected(self):
        with pytest.raises(ValueError):
            SimState().from_array(np.zeros(11))

    def test_copy_is_independent(self):
        state = SimState()
        state.u = 10.0
        copy = state.copy()
        copy.u = 20.0
        assert state.u == 10.0

    def test_flight_condition(self):
        state = state_from_flight_condition(20.0, np.radians(10.0), altitude=500.0)
        assert state.airspeed == pytest.approx(20.0)
        assert state.alpha == pytest.approx(np.radians(10.0))
        assert state.beta == pytest.approx(0.0)
        assert state.z == -500.0


class TestTranslational:
    """Test gravity and force equations."""

    def test_gravity_level(self):
        assert np.allclose(gravity_body(0.0, 0.0), [0.0, 0.0, G])

    def test_gravity_pitched_and_rolled(self):
        g = gravity_body(np.radians(30.0), np.radians(20.0), 10.0)
        assert g[0] == pytest.approx(-10.0 * np.sin(np.radians(20.0)))
        assert g[1] == pytest.approx(10.0 * np.sin(np.radians(30.0)) * np.cos(np.radians(20.0)))
        assert np.linalg.norm(g) == pytest.approx(10.0)

    def test_transport_terms(self):
        """V̇ = F/m - ω x V."""
        force = np.array([80.0, -40.0, 160.0])
        velocity = np.array([12.0, 1.0, 3.0])
        omega = np.array([0.1, -0.2, 0.3])
        expected = force / 80.0 - np.cross(omega, velocity)
        assert np.allclose(translational_eom(force, 80.0, velocity, omega), expected)

    def test_anisotropic_reduces_to_isotropic(self):
        force = np.array([10.0, 20.0, -30.0])
        velocity = np.array([15.0, -2.0, 4.0])
        omega = np.array([0.2, 0.1, -0.3])
        assert np.allclose(translational_eom_anisotropic(force, np.full(3, 75.0), velocity, omega),
                           translational_eom(force, 75.0, velocity, omega))

    def test_anisotropic_pairs_masses(self):
        """u̇ carries my·r·v / mx."""
        accel = translational_eom_anisotropic(np.zeros(3), np.array([1.0, 2.0, 3.0]),
                                              np.array([0.0, 1.0, 0.0]),
                                              np.array([0.0, 0.0, 1.0]))
        assert accel[0] == pytest.approx(2.0)
        assert accel[2] == pytest.approx(0.0)

    def test_non_positive_mass_rejected(self):
        with pytest.raises(ValueError):
            translational_eom(np.zeros(3), 0.0, np.zeros(3), np.zeros(3))
        with pytest.raises(ValueError):
            translational_eom_anisotropic(np.zeros(3), np.array([1.0, 0.0, 1.0]),
                                          np.zeros(3), np.zeros(3))
        with pytest.raises(ValueError):
            RigidBodyDynamics(mass=-1.0, inertia=InertiaComponents(1.0, 1.0, 1.0))


class TestRotational:
    """Test Euler's equations."""

    @pytest.mark.parametrize('ixz', [0.0, -5.0, 8.0])
    def test_matches_direct_solve(self, ixz):
        """Closed form equals solving I·ω̇ = M - ω x (I·ω)."""
        inertia = InertiaComponents(Ixx=100.0, Iyy=40.0, Izz=90.0, Ixz=ixz)
        omega = np.array([0.3, 0.1, -0.2])
        moment = np.array([5.0, -2.0, 1.0])

        I = inertia.to_matrix()
        direct = np.linalg.solve(I, moment - np.cross(omega, I @ omega))
        assert np.allclose(rotational_eom(moment, inertia, omega), direct)

    def test_torque_free_spin_about_principal_axis(self):
        inertia = InertiaComponents(Ixx=10.0, Iyy=20.0, Izz=30.0)
        assert np.allclose(rotational_eom(np.zeros(3), inertia, np.array([0.0, 0.0, 2.0])), 0.0)

    def test_zero_inertia_rejected(self):
        with pytest.raises(ValueError):
            rotational_eom(np.zeros(3), InertiaComponents(0.0, 1.0, 1.0), np.zeros(3))


class TestKinematics:
    """Test Euler angle rates and position rates."""

    def test_level_rates_pass_through(self):
        assert np.allclose(euler_rates(0.0, 0.0, np.array([0.1, 0.2, 0.3])), [0.1, 0.2, 0.3])

    def test_round_trip(self):
        phi, theta = np.radians(25.0), np.radians(-40.0)
        omega = np.array([0.2, -0.1, 0.4])
        euler_dot = euler_rates(phi, theta, omega)
        assert np.allclose(body_rates_from_euler_rates(phi, theta, euler_dot), omega)

    def test_gimbal_lock_warns(self):
        with pytest.warns(RuntimeWarning, match='gimbal lock'):
            rates = euler_rates(0.0, np.pi / 2, np.array([0.1, 0.1, 0.1]))
        assert np.all(np.isfinite(rates))

    def test_heading_east(self):
        ned = body_to_inertial_velocity(np.array([10.0, 0.0, 0.0]), 0.0, 0.0, np.pi / 2)
        assert np.allclose(ned, [0.0, 10.0, 0.0], atol=1e-12)

    def test_climb(self):
        ned = body_to_inertial_velocity(np.array([10.0, 0.0, 0.0]), 0.0, np.radians(30.0), 0.0)
        assert ned[2] == pytest.approx(-5.0)

    def test_preserves_speed(self):
        velocity = np.array([12.0, -3.0, 4.0])
        ned = body_to_inertial_velocity(velocity, 0.3, -0.2, 1.1)
        assert np.linalg.norm(ned) == pytest.approx(np.linalg.norm(velocity))


class TestPilotPendulum:
    """Test the pilot swing about the riser pivot."""

    @pytest.fixture
    def bob(self):
        return [MassSegment('bob', 1.0, (0.0, 0.0, 1.0))]

    def test_params_of_point_mass(self, bob):
        params = compute_pilot_pendulum_params(bob, 0.0, 0.0, height=1.0, total_weight=10.0)
        assert params.pilot_mass == pytest.approx(10.0)
        assert params.iy_riser == pytest.approx(10.0)
        assert params.riser_to_cg == pytest.approx(1.0)

    def test_restoring_gravity(self, bob):
        params = compute_pilot_pendulum_params(bob, 0.0, 0.0, height=1.0, total_weight=10.0)
        accel = pilot_pendulum_eom(params, 0.1, 0.0, 0.0)
        assert accel == pytest.approx(-G * np.sin(0.1))

    def test_canopy_pitch_coupling(self, bob):
        params = compute_pilot_pendulum_params(bob, 0.0, 0.0, height=1.0, total_weight=10.0)
        assert pilot_pendulum_eom(params, 0.0, 0.0, 0.0, q_dot_canopy=0.5) == pytest.approx(-0.5)

    def test_massless_pilot(self):
        params = compute_pilot_pendulum_params([], 0.0, 0.0)
        assert pilot_pendulum_eom(params, 0.3, 0.0, 5.0) == 0.0

    def test_damping_opposes_swing(self, bob):
        assert pilot_swing_damping_torque(bob, 0.0, 0.0, 1.0, height=1.0) < 0.0
        assert pilot_swing_damping_torque(bob, 0.0, 0.0, -1.0, height=1.0) > 0.0
        assert pilot_swing_damping_torque(bob, 0.0, 0.0, 0.0, height=1.0) == 0.0


class TestIntegrators:
    """Test fixed-step integration."""

    @pytest.fixture
    def weightless(self):
        dynamics = RigidBodyDynamics(mass=10.0, inertia=InertiaComponents(1.0, 1.0, 1.0), g=0.0)
        return lambda s: dynamics.state_derivative(s, no_aero)

    @pytest.mark.parametrize('integrator_class', [EulerIntegrator, RK4Integrator])
    def test_equilibrium_is_preserved(self, weightless, integrator_class):
        """At rest with no forces nothing moves."""
        state0 = SimState()
        state0.altitude = 100.0
        t, history = integrator_class(dt=0.01).integrate(state0, (0.0, 1.0), weightless)

        assert len(t) == 101
        assert history.shape == (101, 12)
        assert np.allclose(history, state0.to_array())

    def test_rk4_free_fall(self):
        """Constant acceleration is integrated exactly: w = g·t, z = ½g·t²."""
        dynamics = RigidBodyDynamics(mass=10.0, inertia=InertiaComponents(1.0, 1.0, 1.0))
        t, history = RK4Integrator(dt=0.01).integrate(
            SimState(), (0.0, 1.0), lambda s: dynamics.state_derivative(s, no_aero))

        assert t[-1] == pytest.approx(1.0)
        assert history[-1, 5] == pytest.approx(G, rel=1e-9)
        assert history[-1, 2] == pytest.approx(0.5 * G, rel=1e-9)

    def test_non_positive_step_rejected(self):
        with pytest.raises(ValueError):
            RK4Integrator(dt=0.0)
        with pytest.raises(ValueError):
            EulerIntegrator(dt=-0.1)


class TestSimulation:
    """Test SimConfig, derivative evaluation and the stepping loop."""

    @pytest.fixture
    def config(self):
        return SimConfig(segments=[], cg=np.zeros(3),
                         inertia=InertiaComponents(1.0, 1.0, 1.0), mass=80.0)

    def test_config_validation(self):
        with pytest.raises(ValueError, match='Mass'):
            SimConfig(segments=[], cg=np.zeros(3), inertia=InertiaComponents(1.0, 1.0, 1.0), mass=0.0)
        with pytest.raises(ValueError, match='density'):
            SimConfig(segments=[], cg=np.zeros(3), inertia=InertiaComponents(1.0, 1.0, 1.0),
                      mass=80.0, rho=0.0)

    def test_trajectory_length_and_copy(self, config):
        state = SimState()
        trajectory = simulate(state, config, 0.01, 10, method='rk4')

        assert len(trajectory) == 11
        assert trajectory[0] is not state
        assert np.allclose(trajectory[0].to_array(), state.to_array())
        assert state.w == 0.0
        assert trajectory[-1].w == pytest.approx(0.1 * G)

    def test_euler_and_rk4_steps(self, config):
        state = SimState()
        assert forward_euler(state, config, 0.1).w == pytest.approx(0.1 * G)
        assert rk4_step(state, config, 0.1).z == pytest.approx(0.5 * G * 0.01)

    def test_derivative_shape(self, config):
        state_dot = compute_derivatives(SimState(), config)
        assert state_dot.shape == (12,)
        assert state_dot[5] == pytest.approx(G)

    def test_invalid_arguments(self, config):
        with pytest.raises(ValueError, match='integration method'):
            simulate(SimState(), config, 0.01, 10, method='midpoint')
        with pytest.raises(ValueError, match='Time step'):
            simulate(SimState(), config, 0.0, 10)

    def test_non_finite_derivative_raises(self, config):
        state = SimState()
        state.u = np.nan
        with pytest.raises(SimulationDivergedError):
            compute_derivatives(state, config)

    def test_dataframe(self, config):
        trajectory = simulate(SimState(), config, 0.02, 5)
        df = trajectory_to_dataframe(trajectory, 0.02)

        assert len(df) == 6
        assert list(df.columns[:13]) == ['time'] + list(STATE_NAMES)
        for column in ('airspeed', 'altitude', 'alpha_deg', 'beta_deg'):
            assert column in df.columns
        assert df['time'].iloc[-1] == pytest.approx(0.1)
