"""End-to-end properties of the solved centroidal MPC."""

import numpy as np
import pytest
from scipy.spatial.transform import Rotation as R

from centroidal_mpc import SolverAdapter, SolverResult, SolveStatus
from contacts import ContactList, ContactPhaseList, PlannedContact

LEFT_FOOT = np.array([0.0, 0.1, 0.0])
RIGHT_FOOT = np.array([0.0, -0.1, 0.0])


def _reference(com, number_of_knots=5):
    return np.tile(com, (number_of_knots, 1)), np.zeros((number_of_knots, 3))


class TestStaticStance:
    def test_com_tracks_a_static_reference(self, make_mpc, stance_phase_list, initial_com):
        mpc = make_mpc(stance_phase_list)
        assert mpc.advance()
        assert mpc.is_output_valid()

        output = mpc.get_output()
        assert output.current_time == 0.0
        assert output.com_trajectory.shape == (5, 3)
        np.testing.assert_allclose(output.com_trajectory, _reference(initial_com)[0], atol=1e-4)
        np.testing.assert_allclose(output.angular_momentum_trajectory, 0.0, atol=1e-4)

    def test_contacts_stay_nominal(self, make_mpc, stance_phase_list):
        mpc = make_mpc(stance_phase_list)
        assert mpc.advance()
        output = mpc.get_output()

        assert len(output.contacts["left_foot"]) == 1
        np.testing.assert_allclose(output.contacts["left_foot"][0].position, LEFT_FOOT, atol=1e-5)
        np.testing.assert_allclose(output.contacts["right_foot"][0].position, RIGHT_FOOT, atol=1e-5)

    def test_forces_balance_gravity(self, make_mpc, stance_phase_list):
        mpc = make_mpc(stance_phase_list)
        assert mpc.advance()
        output = mpc.get_output()

        total = output.contact_forces["left_foot"] + output.contact_forces["right_foot"]
        np.testing.assert_allclose(total[:-1], np.tile([0.0, 0.0, 9.81], (4, 1)), atol=1e-3)
        contact = output.contacts["left_foot"][0]
        np.testing.assert_allclose(contact.force, output.contact_forces["left_foot"][0])
        assert all(corner.force[2] >= -1e-6 for corner in contact.corners)

    def test_output_is_read_only(self, make_mpc, stance_phase_list):
        mpc = make_mpc(stance_phase_list)
        assert mpc.advance()
        with pytest.raises(ValueError):
            mpc.get_output().com_trajectory[0, 0] = 1.0

    def test_time_advances_after_success(self, make_mpc, stance_phase_list):
        mpc = make_mpc(stance_phase_list)
        assert mpc.advance()
        assert mpc.current_time == pytest.approx(0.1)
        assert mpc.advance()
        assert mpc.current_time == pytest.approx(0.2)
        assert mpc.get_output().current_time == pytest.approx(0.1)


class TestDeterminism:
    def test_same_inputs_give_same_solution(self, make_mpc, stance_phase_list, initial_com):
        mpc = make_mpc(stance_phase_list, is_warm_start_enabled=False)
        reference = _reference(initial_com + np.array([0.02, 0.0, 0.0]))

        assert mpc.set_reference_trajectory(*reference)
        assert mpc.advance()
        first = mpc.get_output()

        assert mpc.set_state(initial_com, np.zeros(3), np.zeros(3))
        assert mpc.set_reference_trajectory(*reference)
        assert mpc.advance()
        second = mpc.get_output()

        np.testing.assert_allclose(first.com_trajectory, second.com_trajectory, atol=1e-7)
        for name in ("left_foot", "right_foot"):
            np.testing.assert_allclose(
                first.contact_forces[name], second.contact_forces[name], atol=1e-7
            )

    def test_warm_start_reaches_the_same_solution(
        self, make_mpc, stance_phase_list, initial_com
    ):
        reference = _reference(initial_com + np.array([0.02, 0.0, 0.0]))
        outputs = []
        for warm_start in (False, True):
            mpc = make_mpc(stance_phase_list, is_warm_start_enabled=warm_start)
            for _ in range(2):
                assert mpc.set_state(initial_com, np.zeros(3), np.zeros(3))
                assert mpc.set_reference_trajectory(*reference)
                assert mpc.advance()
            outputs.append(mpc.get_output())
        np.testing.assert_allclose(
            outputs[0].com_trajectory, outputs[1].com_trajectory, atol=1e-4
        )


class TestStep:
    @pytest.fixture
    def output(self, make_mpc, walking_phase_list, initial_com):
        mpc = make_mpc(walking_phase_list)
        assert mpc.set_reference_trajectory(
            *_reference(initial_com + np.array([0.1, 0.0, 0.0]))
        )
        assert mpc.advance()
        return mpc.get_output()

    def test_bounding_box(self, output):
        nominal = {
            "left_foot": [LEFT_FOOT],
            "right_foot": [RIGHT_FOOT, RIGHT_FOOT + np.array([0.1, 0.0, 0.0])],
        }
        for name, contacts in output.contacts.items():
            assert len(contacts) == len(nominal[name])
            for contact, nominal_position in zip(contacts, nominal[name]):
                offset = contact.position - nominal_position
                assert np.all(offset >= np.array([-0.05, -0.05, 0.0]) - 1e-6)
                assert np.all(offset <= np.array([0.05, 0.05, 0.0]) + 1e-6)

    def test_zero_force_while_lifted(self, output):
        right = output.contact_forces["right_foot"]
        assert np.all(right[2] == 0.0)
        assert np.all(right[3] == 0.0)
        assert right[0, 2] > 0.0
        assert output.contact_forces["left_foot"][2, 2] > 0.0

    def test_next_planned_contact(self, output):
        next_contact = output.next_planned_contact["right_foot"]
        assert next_contact.activation_time == pytest.approx(0.4)
        np.testing.assert_allclose(
            next_contact.position, output.contacts["right_foot"][1].position
        )
        assert "left_foot" not in output.next_planned_contact


class TestSymmetry:
    def test_high_symmetry_weight_equalizes_forces(
        self, make_mpc, stance_phase_list, initial_com
    ):
        mpc = make_mpc(stance_phase_list, contact_force_symmetry_weight=1e4)
        assert mpc.set_reference_trajectory(
            *_reference(initial_com + np.array([0.0, 0.02, 0.0]))
        )
        assert mpc.advance()
        output = mpc.get_output()
        np.testing.assert_allclose(
            output.contact_forces["left_foot"], output.contact_forces["right_foot"], atol=1e-2
        )

    def test_force_gap_shrinks_with_the_weight(
        self, make_mpc, stance_phase_list, initial_com
    ):
        reference = _reference(initial_com + np.array([0.0, 0.02, 0.0]))
        gaps = {}
        for weight in (0.0, 1e4):
            mpc = make_mpc(stance_phase_list, contact_force_symmetry_weight=weight)
            assert mpc.set_reference_trajectory(*reference)
            assert mpc.advance()
            output = mpc.get_output()
            gaps[weight] = np.max(
                np.abs(output.contact_forces["left_foot"] - output.contact_forces["right_foot"])
            )
        assert gaps[1e4] < gaps[0.0]


class TestRotatedBoundingBox:
    @pytest.fixture
    def yawed_phase_list(self):
        yaw = R.from_euler("z", np.pi / 2).as_matrix()
        return ContactPhaseList(
            {
                "left_foot": ContactList(
                    "left_foot", [PlannedContact("left_foot", LEFT_FOOT, orientation=yaw)]
                ),
                "right_foot": ContactList(
                    "right_foot", [PlannedContact("right_foot", RIGHT_FOOT)]
                ),
            }
        )

    def test_offset_is_bounded_in_the_contact_frame(
        self, make_mpc, params, yawed_phase_list, initial_com
    ):
        lower = np.array([-0.05, -0.01, 0.0])
        upper = np.array([0.02, 0.01, 0.0])
        params["CONTACT_0"]["bounding_box_lower_limit"] = lower.tolist()
        params["CONTACT_0"]["bounding_box_upper_limit"] = upper.tolist()

        mpc = make_mpc(yawed_phase_list, contact_position_weight=1e-6)
        assert mpc.set_reference_trajectory(
            *_reference(initial_com + np.array([0.3, 0.0, 0.0]))
        )
        assert mpc.advance()

        contact = mpc.get_output().contacts["left_foot"][0]
        offset = contact.position - LEFT_FOOT
        local_offset = contact.orientation.T @ offset

        assert np.all(local_offset >= lower - 1e-6)
        assert np.all(local_offset <= upper + 1e-6)
        at_limit = np.isclose(local_offset[:2], lower[:2], atol=1e-4) | np.isclose(
            local_offset[:2], upper[:2], atol=1e-4
        )
        assert at_limit.any()
        # the narrow local y range limits the inertial x displacement
        assert abs(offset[0]) <= 0.01 + 1e-6


class TestExternalWrench:
    def test_contacts_push_against_an_external_force(
        self, make_mpc, stance_phase_list, initial_com
    ):
        mpc = make_mpc(stance_phase_list)
        assert mpc.set_state(
            initial_com, np.zeros(3), np.zeros(3), external_wrench=[2.0, 0.0, 0.0, 0.0, 0.0, 0.0]
        )
        assert mpc.advance()
        output = mpc.get_output()

        total = output.contact_forces["left_foot"][0] + output.contact_forces["right_foot"][0]
        assert -2.0 < total[0] < 0.0
        # the contacts do not fully cancel the push, the CoM drifts forward
        assert output.com_trajectory[-1, 0] > output.com_trajectory[0, 0]


class TestProblemCache:
    def test_problem_is_reused_while_the_pattern_holds(self, make_mpc, stance_phase_list):
        mpc = make_mpc(stance_phase_list)
        assert mpc.advance()
        problem = mpc._problem
        assert mpc.advance()
        assert mpc._problem is problem

    def test_problem_is_rebuilt_when_the_pattern_changes(
        self, make_mpc, walking_phase_list
    ):
        mpc = make_mpc(walking_phase_list)
        assert mpc.advance()
        problem = mpc._problem
        assert mpc.advance()
        assert mpc._problem is not problem
        assert mpc._problem.pattern != problem.pattern


class TestFailures:
    def test_solver_failure_keeps_previous_output(
        self, make_mpc, stance_phase_list, monkeypatch
    ):
        mpc = make_mpc(stance_phase_list)
        assert mpc.advance()
        previous = mpc.get_output()

        def failing_solve(self, problem, horizon, initial_guess):
            return SolverResult(SolveStatus.NOT_CONVERGED, return_status="Restoration_Failed")

        monkeypatch.setattr(SolverAdapter, "solve", failing_solve)
        assert not mpc.advance()
        assert not mpc.is_output_valid()
        assert mpc.get_output() is previous
        assert mpc.current_time == pytest.approx(0.1)

        monkeypatch.undo()
        assert mpc.advance()
        assert mpc.is_output_valid()

    def test_phase_list_running_out(self, make_mpc, initial_com):
        phase_list = ContactPhaseList(
            {
                "left_foot": ContactList(
                    "left_foot", [PlannedContact("left_foot", LEFT_FOOT, deactivation_time=0.5)]
                ),
                "right_foot": ContactList(
                    "right_foot", [PlannedContact("right_foot", RIGHT_FOOT, deactivation_time=0.5)]
                ),
            }
        )
        mpc = make_mpc(phase_list)
        assert mpc.advance()
        assert not mpc.advance()
        assert not mpc.is_output_valid()
        assert mpc.current_time == pytest.approx(0.1)
