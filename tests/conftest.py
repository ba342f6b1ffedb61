import numpy as np
import pytest

from centroidal_mpc import CentroidalMPC
from contacts import ContactList, ContactPhaseList, PlannedContact

FOOT_CORNERS = [
    [0.08, 0.03, 0.0],
    [0.08, -0.03, 0.0],
    [-0.08, -0.03, 0.0],
    [-0.08, 0.03, 0.0],
]
LEFT_FOOT = np.array([0.0, 0.1, 0.0])
RIGHT_FOOT = np.array([0.0, -0.1, 0.0])
COM_HEIGHT = 0.7


def contact_group(name):
    group = {
        "contact_name": name,
        "bounding_box_lower_limit": [-0.05, -0.05, 0.0],
        "bounding_box_upper_limit": [0.05, 0.05, 0.0],
        "number_of_corners": len(FOOT_CORNERS),
    }
    for j, corner in enumerate(FOOT_CORNERS):
        group[f"corner_{j}"] = corner
    return group


@pytest.fixture
def params():
    """Two feet, unit mass, five knots."""
    return {
        "sampling_time": 0.1,
        "time_horizon": 0.5,
        "number_of_maximum_contacts": 2,
        "com_weight": [100.0, 100.0, 100.0],
        "contact_position_weight": 1e3,
        "force_rate_of_change_weight": [1.0, 1.0, 1.0],
        "angular_momentum_weight": 10.0,
        "contact_force_symmetry_weight": 1.0,
        "linear_solver": "mumps",
        "ipopt_tolerance": 1e-6,
        "ipopt_max_iteration": 500,
        "is_warm_start_enabled": False,
        "robot_mass": 1.0,
        "CONTACT_0": contact_group("left_foot"),
        "CONTACT_1": contact_group("right_foot"),
    }


@pytest.fixture
def stance_phase_list():
    """Both feet on the ground forever."""
    return ContactPhaseList(
        {
            "left_foot": ContactList(
                "left_foot", [PlannedContact("left_foot", LEFT_FOOT)]
            ),
            "right_foot": ContactList(
                "right_foot", [PlannedContact("right_foot", RIGHT_FOOT)]
            ),
        }
    )


@pytest.fixture
def walking_phase_list():
    """The right foot is lifted in [0.2, 0.4) and lands 0.1 m ahead."""
    return ContactPhaseList(
        {
            "left_foot": ContactList(
                "left_foot", [PlannedContact("left_foot", LEFT_FOOT)]
            ),
            "right_foot": ContactList(
                "right_foot",
                [
                    PlannedContact(
                        "right_foot", RIGHT_FOOT, activation_time=0.0, deactivation_time=0.2
                    ),
                    PlannedContact(
                        "right_foot",
                        RIGHT_FOOT + np.array([0.1, 0.0, 0.0]),
                        activation_time=0.4,
                    ),
                ],
            ),
        }
    )


@pytest.fixture
def initial_com():
    return np.array([0.0, 0.0, COM_HEIGHT])


@pytest.fixture
def make_mpc(params, initial_com):
    """Factory returning an armed controller."""

    def _make(phase_list, **overrides):
        mpc = CentroidalMPC()
        assert mpc.initialize({**params, **overrides})
        assert mpc.set_contact_phase_list(phase_list)
        assert mpc.set_state(initial_com, np.zeros(3), np.zeros(3))
        return mpc

    return _make
