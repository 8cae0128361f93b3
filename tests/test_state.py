"""
Test suite for CartesianState and ProfileState.

Tests cover:
- Construction, accessors and immutability
- Undefined states and per-field undefined accessors
- Equality semantics
- Re-expression in translated, rotating and nested frames
"""

import numpy as np
import pandas as pd
import pytest
from scipy.spatial.transform import Rotation

from orbis import CartesianState, Frame, ProfileState, Transform
from orbis import UndefinedValueError

EPOCH = pd.Timestamp('2024-01-01T12:00:00')
RATE = 7.2921150e-5


def spin_provider(instant):
    theta = RATE * (instant - EPOCH).total_seconds()
    return Transform(orientation=Rotation.from_euler('z', theta),
                     angular_velocity=[0.0, 0.0, RATE])


def offset_provider(instant):
    return Transform(translation=[100.0, 0.0, 0.0])


@pytest.fixture
def gcrf():
    return Frame.GCRF()


@pytest.fixture
def spin(gcrf):
    return Frame('Spin', parent=gcrf, provider=spin_provider)


@pytest.fixture
def offset(gcrf):
    return Frame('Offset', parent=gcrf, provider=offset_provider)


@pytest.fixture
def state(gcrf):
    return ProfileState(EPOCH, [7000.0, 0.0, 0.0], [0.0, 7.5, 0.0],
                        Rotation.identity(), [0.0, 0.0, 0.0], gcrf)


def assert_states_close(first, second, atol=1e-9):
    assert first.instant == second.instant
    assert first.frame is second.frame
    np.testing.assert_allclose(first.position, second.position, atol=atol)
    np.testing.assert_allclose(first.velocity, second.velocity, atol=atol)
    np.testing.assert_allclose(first.angular_velocity, second.angular_velocity,
                               atol=atol)
    assert (first.attitude.inv() * second.attitude).magnitude() < atol


class TestCartesianState:
    """Test position/velocity states."""

    def test_accessors(self, gcrf):
        state = CartesianState([7000.0, 0.0, 0.0], [0.0, 7.5, 0.0], gcrf)
        assert state.is_defined()
        np.testing.assert_array_equal(state.position, [7000.0, 0.0, 0.0])
        np.testing.assert_array_equal(state.velocity, [0.0, 7.5, 0.0])
        assert state.frame is gcrf

    def test_read_only(self, gcrf):
        state = CartesianState([7000.0, 0.0, 0.0], [0.0, 7.5, 0.0], gcrf)
        with pytest.raises(ValueError):
            state.position[0] = 0.0

    def test_input_not_aliased(self, gcrf):
        """Mutating the input array does not change the state."""
        position = np.array([7000.0, 0.0, 0.0])
        state = CartesianState(position, [0.0, 7.5, 0.0], gcrf)
        position[0] = 1.0
        assert state.position[0] == 7000.0

    def test_undefined(self):
        state = CartesianState.undefined()
        assert not state.is_defined()
        with pytest.raises(UndefinedValueError):
            state.position
        with pytest.raises(UndefinedValueError):
            state.frame
        assert state != CartesianState.undefined()
        assert str(state) == "Cartesian State: Undefined"

    def test_bad_frame_type(self):
        with pytest.raises(TypeError):
            CartesianState([7000.0, 0.0, 0.0], [0.0, 7.5, 0.0], 'GCRF')

    def test_equality(self, gcrf):
        first = CartesianState([7000.0, 0.0, 0.0], [0.0, 7.5, 0.0], gcrf)
        second = CartesianState([7000.0, 0.0, 0.0], [0.0, 7.5, 0.0], gcrf)
        other_frame = CartesianState([7000.0, 0.0, 0.0], [0.0, 7.5, 0.0],
                                     Frame('GCRF'))
        assert first == second
        assert hash(first) == hash(second)
        assert first != other_frame

    def test_in_frame(self, gcrf, offset):
        state = CartesianState([7000.0, 0.0, 0.0], [0.0, 7.5, 0.0], gcrf)
        shifted = state.in_frame(offset, EPOCH)
        assert shifted.frame is offset
        np.testing.assert_allclose(shifted.position, [6900.0, 0.0, 0.0])
        np.testing.assert_allclose(shifted.velocity, [0.0, 7.5, 0.0])

    def test_in_frame_undefined(self, gcrf):
        with pytest.raises(UndefinedValueError):
            CartesianState.undefined().in_frame(gcrf, EPOCH)
        state = CartesianState([7000.0, 0.0, 0.0], [0.0, 7.5, 0.0], gcrf)
        with pytest.raises(UndefinedValueError):
            state.in_frame(gcrf, None)


class TestProfileStateConstruction:
    """Test construction and accessors."""

    def test_accessors(self, state, gcrf):
        assert state.is_defined()
        assert state.instant == EPOCH
        np.testing.assert_array_equal(state.position, [7000.0, 0.0, 0.0])
        np.testing.assert_array_equal(state.velocity, [0.0, 7.5, 0.0])
        assert state.attitude.approx_equal(Rotation.identity())
        np.testing.assert_array_equal(state.angular_velocity, [0.0, 0.0, 0.0])
        assert state.frame is gcrf

    def test_quaternion_attitude(self, gcrf):
        """Attitude may be given as a scalar-last quaternion."""
        state = ProfileState('2024-01-01T12:00:00', [7000.0, 0.0, 0.0],
                             [0.0, 7.5, 0.0], [0.0, 0.0, 0.0, 1.0],
                             [0.0, 0.0, 0.0], gcrf)
        assert isinstance(state.attitude, Rotation)
        assert state.instant == EPOCH

    def test_read_only_vectors(self, state):
        with pytest.raises(ValueError):
            state.velocity[1] = 0.0
        with pytest.raises(ValueError):
            state.angular_velocity[2] = 1.0

    def test_invalid_inputs(self, gcrf):
        with pytest.raises(ValueError):
            ProfileState(EPOCH, [7000.0, 0.0], [0.0, 7.5, 0.0],
                         Rotation.identity(), [0.0, 0.0, 0.0], gcrf)
        with pytest.raises(ValueError):
            ProfileState(EPOCH, [7000.0, 0.0, np.nan], [0.0, 7.5, 0.0],
                         Rotation.identity(), [0.0, 0.0, 0.0], gcrf)
        with pytest.raises(TypeError):
            ProfileState(EPOCH, [7000.0, 0.0, 0.0], [0.0, 7.5, 0.0],
                         Rotation.identity(), [0.0, 0.0, 0.0], 'GCRF')


class TestProfileStateUndefined:
    """Test undefined profile states."""

    @pytest.mark.parametrize("name", [
        "instant", "position", "velocity", "attitude", "angular_velocity", "frame",
    ])
    def test_accessors_raise(self, name):
        with pytest.raises(UndefinedValueError):
            getattr(ProfileState.undefined(), name)

    def test_partially_undefined(self, gcrf):
        """One missing field makes the state undefined; the rest stay readable."""
        state = ProfileState(EPOCH, [7000.0, 0.0, 0.0], [0.0, 7.5, 0.0],
                             None, [0.0, 0.0, 0.0], gcrf)
        assert not state.is_defined()
        np.testing.assert_array_equal(state.position, [7000.0, 0.0, 0.0])
        with pytest.raises(UndefinedValueError):
            state.attitude

    def test_undefined_instant(self, gcrf):
        state = ProfileState(pd.NaT, [7000.0, 0.0, 0.0], [0.0, 7.5, 0.0],
                             Rotation.identity(), [0.0, 0.0, 0.0], gcrf)
        assert not state.is_defined()
        with pytest.raises(UndefinedValueError):
            state.instant

    def test_undefined_never_equal(self):
        undefined = ProfileState.undefined()
        assert undefined != ProfileState.undefined()
        assert not (undefined == undefined)

    def test_in_frame_raises(self, gcrf, state):
        with pytest.raises(UndefinedValueError):
            ProfileState.undefined().in_frame(gcrf)
        with pytest.raises(UndefinedValueError):
            state.in_frame(None)

    def test_string_forms(self):
        assert repr(ProfileState.undefined()) == "ProfileState(Undefined)"
        text = str(ProfileState.undefined())
        assert text.startswith("Profile State:")
        assert text.count("Undefined") == 6


class TestProfileStateEquality:
    """Test equality semantics."""

    def test_same_fields_equal(self, state, gcrf):
        same = ProfileState(EPOCH, [7000.0, 0.0, 0.0], [0.0, 7.5, 0.0],
                            Rotation.identity(), [0.0, 0.0, 0.0], gcrf)
        assert state == same
        assert same == state
        assert hash(state) == hash(same)

    def test_quaternion_sign_ignored(self, gcrf):
        """q and -q describe the same attitude."""
        q = np.array([0.1, 0.2, 0.3, 0.9])
        first = ProfileState(EPOCH, [7000.0, 0.0, 0.0], [0.0, 7.5, 0.0],
                             q, [0.0, 0.0, 0.0], gcrf)
        second = ProfileState(EPOCH, [7000.0, 0.0, 0.0], [0.0, 7.5, 0.0],
                              -q, [0.0, 0.0, 0.0], gcrf)
        assert first == second

    def test_different_instant(self, state, gcrf):
        later = ProfileState(EPOCH + pd.Timedelta(seconds=1), [7000.0, 0.0, 0.0],
                             [0.0, 7.5, 0.0], Rotation.identity(),
                             [0.0, 0.0, 0.0], gcrf)
        assert state != later

    def test_different_frame_instance(self, state):
        """Frames compare by identity, not by name."""
        other = ProfileState(EPOCH, [7000.0, 0.0, 0.0], [0.0, 7.5, 0.0],
                             Rotation.identity(), [0.0, 0.0, 0.0], Frame('GCRF'))
        assert state != other

    def test_different_attitude(self, state, gcrf):
        turned = ProfileState(EPOCH, [7000.0, 0.0, 0.0], [0.0, 7.5, 0.0],
                              Rotation.from_euler('x', 0.1), [0.0, 0.0, 0.0], gcrf)
        assert state != turned

    def test_other_type(self, state):
        assert state != "state"


class TestProfileStateInFrame:
    """Test re-expression in other frames."""

    def test_same_frame(self, state, gcrf):
        """Re-expressing in the own frame returns an equal, new state."""
        same = state.in_frame(gcrf)
        assert same == state
        assert same is not state

    def test_translated_frame(self, state, offset):
        shifted = state.in_frame(offset)
        assert shifted.frame is offset
        assert shifted.instant == state.instant
        np.testing.assert_allclose(shifted.position, [6900.0, 0.0, 0.0])
        np.testing.assert_allclose(shifted.velocity, [0.0, 7.5, 0.0])
        assert shifted.attitude.approx_equal(state.attitude)

    def test_rotating_frame_at_alignment(self, state, spin):
        """Aligned axes: only the transport terms change."""
        rotating = state.in_frame(spin)
        np.testing.assert_allclose(rotating.position, [7000.0, 0.0, 0.0], atol=1e-9)
        np.testing.assert_allclose(rotating.velocity,
                                   [0.0, 7.5 - 7000.0 * RATE, 0.0], atol=1e-12)
        np.testing.assert_allclose(rotating.angular_velocity, [0.0, 0.0, -RATE])
        assert rotating.attitude.approx_equal(Rotation.identity())

    def test_rotating_frame_later(self, gcrf, spin):
        """After the frame has turned by θ the position appears at -θ."""
        elapsed = 600.0
        theta = RATE * elapsed
        instant = EPOCH + pd.Timedelta(seconds=elapsed)
        state = ProfileState(instant, [7000.0, 0.0, 0.0], [0.0, 7.5, 0.0],
                             Rotation.identity(), [0.0, 0.0, 0.0], gcrf)
        rotating = state.in_frame(spin)

        np.testing.assert_allclose(
            rotating.position,
            [7000.0 * np.cos(theta), -7000.0 * np.sin(theta), 0.0], atol=1e-9)
        expected_attitude = Rotation.from_euler('z', -theta)
        assert rotating.attitude.approx_equal(expected_attitude)

    def test_round_trip(self, gcrf, spin):
        """Converting there and back restores the state."""
        state = ProfileState(EPOCH + pd.Timedelta(minutes=37),
                             [6524.834, 6862.875, 6448.296],
                             [4.901327, 5.533756, -1.976341],
                             Rotation.from_euler('xyz', [0.2, -0.4, 1.3]),
                             [0.001, -0.002, 0.05], gcrf)
        back = state.in_frame(spin).in_frame(gcrf)
        assert_states_close(back, state)

    def test_nested_frames(self, gcrf, offset):
        """States move between frames that only share a distant ancestor."""
        nested_spin = Frame('NestedSpin', parent=offset, provider=spin_provider)
        state = ProfileState(EPOCH + pd.Timedelta(hours=1), [7000.0, 100.0, -50.0],
                             [0.1, 7.5, 0.2], Rotation.from_euler('z', 0.3),
                             [0.0, 0.01, 0.0], gcrf)

        direct = state.in_frame(nested_spin)
        stepped = state.in_frame(offset).in_frame(nested_spin)
        assert_states_close(direct, stepped)
        assert_states_close(direct.in_frame(gcrf), state)

    def test_source_state_unchanged(self, state, spin):
        before = repr(state)
        state.in_frame(spin)
        assert repr(state) == before

    def test_unconnected_frame(self, state):
        with pytest.raises(ValueError, match="not connected"):
            state.in_frame(Frame('Island'))
