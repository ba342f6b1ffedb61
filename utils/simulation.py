"""
Closed-loop simulation of the centroidal dynamics driven by the centroidal MPC.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

import numpy as np
from tqdm import tqdm

from centroidal_mpc import CentroidalMPC, CentroidalMPCOutput
from contacts import ContactPhaseList

from .contact_utils import support_center


@dataclass
class ClosedLoopLog:
    time: list[float] = field(default_factory=list)
    com: list[np.ndarray] = field(default_factory=list)
    dcom: list[np.ndarray] = field(default_factory=list)
    angular_momentum: list[np.ndarray] = field(default_factory=list)
    contact_forces: list[np.ndarray] = field(default_factory=list)  # (slots, 3)
    footsteps: dict[str, list[np.ndarray]] = field(default_factory=dict)
    failures: int = 0


def create_reference_trajectory(
    phase_list: ContactPhaseList,
    start_time: float,
    dt: float,
    number_of_knots: int,
    com_height: float,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Create the CoM and angular momentum references for one control cycle.

    The CoM reference stays above the center of the nominal support polygon at
    ``com_height``, the angular momentum reference is zero.

    Returns:
        (number_of_knots, 3) CoM reference and angular momentum reference
    """
    com_ref = np.zeros((number_of_knots, 3))
    center = np.zeros(3)
    for k in range(number_of_knots):
        current = support_center(phase_list, start_time + k * dt)
        if current is not None:
            center = current
        com_ref[k] = [center[0], center[1], com_height]
    return com_ref, np.zeros((number_of_knots, 3))


def integrate_centroidal_dynamics(
    com: np.ndarray,
    dcom: np.ndarray,
    angular_momentum: np.ndarray,
    output: CentroidalMPCOutput,
    mass: float,
    dt: float,
    gravity: np.ndarray = np.array([0.0, 0.0, -9.81]),
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Apply the contact wrenches of the first knot for one sampling period.

    Returns:
        Next (com, dcom, angular_momentum)
    """
    t = output.current_time
    force = np.zeros(3)
    torque = np.zeros(3)
    for contacts in output.contacts.values():
        for contact in contacts:
            if contact.activation_time < t + dt and contact.deactivation_time > t:
                corner_forces = np.array([corner.force for corner in contact.corners])
                lever_arms = contact.corner_positions() - com
                force += corner_forces.sum(axis=0)
                torque += np.cross(lever_arms, corner_forces).sum(axis=0)
                break

    next_com = com + dt * dcom
    next_dcom = dcom + dt * (gravity + force / mass)
    next_angular_momentum = angular_momentum + dt * torque
    return next_com, next_dcom, next_angular_momentum


def simulate_closed_loop(
    mpc: CentroidalMPC,
    phase_list: ContactPhaseList,
    initial_com: np.ndarray,
    duration: float,
    com_height: float,
    mass: float,
) -> ClosedLoopLog:
    """
    Run the MPC in closed loop on the ideal centroidal dynamics.

    Args:
        mpc: Initialized centroidal MPC
        phase_list: Nominal contact phase list
        initial_com: Initial CoM position
        duration: Simulated time [s]
        com_height: Desired CoM height [m]
        mass: Robot mass used to integrate the dynamics [kg]

    Returns:
        Log of the simulated state and of the applied contact forces
    """
    dt = mpc.config.sampling_time
    number_of_knots = mpc.number_of_knots
    mpc.set_contact_phase_list(phase_list)

    com = np.asarray(initial_com, dtype=float)
    dcom = np.zeros(3)
    angular_momentum = np.zeros(3)
    log = ClosedLoopLog(footsteps={name: [] for name in mpc.config.contact_names})

    for _ in tqdm(range(int(round(duration / dt))), desc="Closed loop"):
        mpc.set_state(com, dcom, angular_momentum)
        com_ref, angular_momentum_ref = create_reference_trajectory(
            phase_list, mpc.current_time, dt, number_of_knots, com_height
        )
        mpc.set_reference_trajectory(com_ref, angular_momentum_ref)

        t = mpc.current_time
        if not mpc.advance():
            log.failures += 1
            break

        output = mpc.get_output()
        log.time.append(t)
        log.com.append(com)
        log.dcom.append(dcom)
        log.angular_momentum.append(angular_momentum)
        log.contact_forces.append(
            np.array([output.contact_forces[name][0] for name in mpc.config.contact_names])
        )
        for name, contacts in output.contacts.items():
            position = contacts[0].position
            steps = log.footsteps[name]
            if not steps or not np.allclose(steps[-1], position, atol=1e-3):
                steps.append(position.copy())

        com, dcom, angular_momentum = integrate_centroidal_dynamics(
            com, dcom, angular_momentum, output, mass, dt
        )

    return log


def save_trajectory_results(log: ClosedLoopLog, results_dir: str = "results") -> None:
    """
    Save the closed-loop trajectories to files.

    Args:
        log: Closed-loop log
        results_dir: Output directory
    """
    os.makedirs(results_dir, exist_ok=True)
    np.save(f"{results_dir}/time.npy", np.array(log.time))
    np.save(f"{results_dir}/com_traj.npy", np.array(log.com))
    np.save(f"{results_dir}/dcom_traj.npy", np.array(log.dcom))
    np.save(f"{results_dir}/angular_momentum_traj.npy", np.array(log.angular_momentum))
    np.save(f"{results_dir}/contact_forces_traj.npy", np.array(log.contact_forces))
