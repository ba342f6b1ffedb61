"""Contact phase list utilities for the centroidal MPC."""

from __future__ import annotations

from typing import Any

import numpy as np

from configs.robots.robot_data import RobotData
from contacts import ContactList, ContactPhaseList, PlannedContact


def create_stance_phase_list(robot: RobotData, x: float = 0.0) -> ContactPhaseList:
    """Both feet on the ground forever."""
    lists = {}
    for name in robot.contact_names:
        contact_list = ContactList(name)
        contact_list.add_contact(PlannedContact(name, robot.foot_position(name, x)))
        lists[name] = contact_list
    return ContactPhaseList(lists)


def create_walking_phase_list(
    robot: RobotData,
    number_of_steps: int,
    step_length: float,
    swing_duration: float,
    double_support_duration: float,
    initial_double_support_duration: float = 1.0,
) -> ContactPhaseList:
    """
    Create a straight walking contact phase list.

    The robot starts in double support with both feet at x = 0. Every step the
    swing foot (starting from the second foot of ``robot.contact_names``) lands
    ``step_length`` ahead of the stance foot. The last contact of each foot never
    ends.

    Args:
        robot: Robot description
        number_of_steps: Number of footsteps
        step_length: Forward distance between consecutive footsteps [m]
        swing_duration: Duration of each single support phase [s]
        double_support_duration: Duration of the double support phases [s]
        initial_double_support_duration: Duration of the first double support [s]

    Returns:
        Contact phase list with one contact list per foot
    """
    names = robot.contact_names
    # (x, activation time, deactivation time) of every contact of each foot
    intervals: dict[str, list[list[float]]] = {name: [[0.0, 0.0, np.inf]] for name in names}

    t = initial_double_support_duration
    stance_x = 0.0
    for step in range(number_of_steps):
        swing = names[1] if step % 2 == 0 else names[0]
        intervals[swing][-1][2] = t
        landing_time = t + swing_duration
        stance_x += step_length
        intervals[swing].append([stance_x, landing_time, np.inf])
        t = landing_time + double_support_duration

    lists = {}
    for name in names:
        contact_list = ContactList(name)
        for x, activation_time, deactivation_time in intervals[name]:
            contact_list.add_contact(
                PlannedContact(
                    name,
                    robot.foot_position(name, x),
                    activation_time=activation_time,
                    deactivation_time=deactivation_time,
                )
            )
        lists[name] = contact_list
    return ContactPhaseList(lists)


def contact_sequence(
    phase_list: ContactPhaseList,
    names: tuple[str, ...],
    start_time: float,
    dt: float,
    number_of_knots: int,
) -> np.ndarray:
    """Contact sequence array (len(names) x number_of_knots) sampled at the knot instants."""
    sequence = np.zeros((len(names), number_of_knots))
    for i, name in enumerate(names):
        if name not in phase_list:
            continue
        for k in range(number_of_knots):
            if phase_list[name].active_contact(start_time + k * dt) is not None:
                sequence[i, k] = 1.0
    return sequence


def support_center(phase_list: ContactPhaseList, t: float) -> np.ndarray | None:
    """Mean nominal position of the contacts active at ``t``."""
    active = phase_list.active_contacts(t)
    if not active:
        return None
    return np.mean([contact.position for contact in active.values()], axis=0)


def classify_contact_pattern(pattern: tuple[float, ...]) -> str:
    """Classify a biped contact pattern into a phase type."""
    num_contacts = sum(pattern)

    if num_contacts == 2:
        return "double_support"
    elif num_contacts == 1:
        return "single_support"
    elif num_contacts == 0:
        return "flight"
    else:
        return "unknown"


def analyze_contact_phases(
    sequence: np.ndarray | None, dt: float
) -> list[dict[str, Any]]:
    """Analyze the contact sequence to identify distinct phases."""
    if sequence is None:
        return []

    phases = []
    current_pattern = None
    phase_start = 0

    for step in range(sequence.shape[1]):
        pattern = tuple(sequence[:, step])

        if pattern != current_pattern:
            if current_pattern is not None:
                phases.append(_phase(current_pattern, phase_start, step, dt))
            current_pattern = pattern
            phase_start = step

    # Add final phase
    if current_pattern is not None:
        phases.append(_phase(current_pattern, phase_start, sequence.shape[1], dt))

    return phases


def _phase(pattern: tuple[float, ...], start: int, end: int, dt: float) -> dict[str, Any]:
    return {
        "start_time": start * dt,
        "duration": (end - start) * dt,
        "contact_pattern": list(pattern),
        "phase_type": classify_contact_pattern(pattern),
    }
