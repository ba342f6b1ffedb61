"""Nonlinear program of the centroidal MPC built with CasADi's Opti framework.

The problem structure depends only on the contact activation pattern of the
horizon. Nominal contact poses, references and the measured state enter as
Opti parameters, so a built problem is reused as long as the pattern does not
change.

Decision variables:
    com, dcom, angular_momentum: (3, N) centroidal trajectory.
    force coefficients: for every active (slot, knot) a non negative
        (number_of_edges, number_of_corners) matrix. The force at corner j is
        the combination of the friction pyramid edges weighted by column j.
    contact positions: one (3,) variable for every planned contact active in
        the horizon, shared by all the knots where that contact is active.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import casadi as cs
import numpy as np
from liecasadi import SO3

from .config import CentroidalMPCConfig
from .horizon import INACTIVE, Horizon
from .state import CentroidalState, ReferenceTrajectory

KnotKey = tuple[int, int]  # (slot, knot)
SegmentKey = tuple[int, int]  # (slot, segment)


def friction_cone_edges(mu: float, number_of_edges: int) -> np.ndarray:
    """Unit edges of the linearized friction cone in the contact frame (3, number_of_edges)."""
    angles = 2.0 * np.pi * np.arange(number_of_edges) / number_of_edges
    edges = np.vstack([mu * np.cos(angles), mu * np.sin(angles), np.ones(number_of_edges)])
    return edges / np.linalg.norm(edges, axis=0)


def _as_matrix(value, rows: int, cols: int) -> np.ndarray:
    return np.reshape(np.asarray(value, dtype=float), (rows, cols), order="F")


@dataclass
class Solution:
    """Numerical values of the decision variables after a solve."""

    horizon: Horizon
    com: np.ndarray  # (N, 3)
    dcom: np.ndarray  # (N, 3)
    angular_momentum: np.ndarray  # (N, 3)
    force_coefficients: dict[KnotKey, np.ndarray]  # (edges, corners)
    contact_positions: dict[SegmentKey, np.ndarray]  # (3,)
    corner_forces: dict[KnotKey, np.ndarray]  # (corners, 3), inertial frame
    contact_forces: np.ndarray  # (slots, N, 3), zero where inactive

    def is_finite(self) -> bool:
        arrays = [self.com, self.dcom, self.angular_momentum, self.contact_forces]
        arrays += list(self.force_coefficients.values())
        arrays += list(self.contact_positions.values())
        return all(np.all(np.isfinite(a)) for a in arrays)


@dataclass
class InitialGuess:
    com: np.ndarray  # (N, 3)
    dcom: np.ndarray  # (N, 3)
    angular_momentum: np.ndarray  # (N, 3)
    force_coefficients: dict[KnotKey, np.ndarray]
    contact_positions: dict[SegmentKey, np.ndarray]


class CentroidalProblem:
    """Opti transcription of the centroidal MPC for one activation pattern."""

    def __init__(self, config: CentroidalMPCConfig, horizon: Horizon):
        self.config = config
        self.pattern = horizon.pattern
        self.number_of_knots = config.number_of_knots
        self.segment_ids = horizon.segment_ids.copy()
        self.number_of_segments = [len(s) for s in horizon.segments]
        self.edges = friction_cone_edges(
            config.static_friction_coefficient, config.number_of_friction_cone_edges
        )

        # Initialize the Opti optimization environment
        self.opti = cs.Opti()

        self._create_decision_variables()
        self._setup_optimization_problem()

    @property
    def active_knots(self) -> list[KnotKey]:
        return list(self.force_coefficients)

    @property
    def segments(self) -> list[SegmentKey]:
        return list(self.contact_positions)

    def _create_decision_variables(self) -> None:
        n = self.number_of_knots
        self.com = self.opti.variable(3, n)
        self.dcom = self.opti.variable(3, n)
        self.angular_momentum = self.opti.variable(3, n)

        self.force_coefficients: dict[KnotKey, cs.MX] = {}
        for slot, contact in enumerate(self.config.contacts):
            for k in range(n):
                if self.segment_ids[slot, k] != INACTIVE:
                    self.force_coefficients[(slot, k)] = self.opti.variable(
                        self.edges.shape[1], contact.number_of_corners
                    )

        self.contact_positions: dict[SegmentKey, cs.MX] = {}
        self.P_nominal_position: dict[SegmentKey, cs.MX] = {}
        self.P_nominal_rpy: dict[SegmentKey, cs.MX] = {}
        for slot, number_of_segments in enumerate(self.number_of_segments):
            for segment in range(number_of_segments):
                key = (slot, segment)
                self.contact_positions[key] = self.opti.variable(3)
                self.P_nominal_position[key] = self.opti.parameter(3)
                self.P_nominal_rpy[key] = self.opti.parameter(3)

        # Parameters that are set at every control cycle
        self.P_initial_state = self.opti.parameter(9)  # [com, dcom, angular momentum]
        self.P_external_wrench = self.opti.parameter(6)
        self.P_com_ref = self.opti.parameter(3, n)
        self.P_angular_momentum_ref = self.opti.parameter(3, n)

    def _setup_optimization_problem(self) -> None:
        """Setup the complete optimization problem structure."""
        self._build_contact_expressions()

        # Knot 0 is pinned to the measured state
        self.opti.subject_to(self.com[:, 0] == self.P_initial_state[0:3])
        self.opti.subject_to(self.dcom[:, 0] == self.P_initial_state[3:6])
        self.opti.subject_to(self.angular_momentum[:, 0] == self.P_initial_state[6:9])

        self._setup_dynamics_constraints()
        self._setup_contact_constraints()
        self._setup_cost_function()

    def _build_contact_expressions(self) -> None:
        """Corner forces, resultant forces and torques of every active contact."""
        rotations = {
            key: SO3.from_euler(rpy).as_matrix() for key, rpy in self.P_nominal_rpy.items()
        }
        self._rotations = rotations

        self.corner_forces: dict[KnotKey, list[cs.MX]] = {}
        self.contact_forces: dict[KnotKey, cs.MX] = {}
        self.contact_torques: dict[KnotKey, cs.MX] = {}

        for (slot, k), alpha in self.force_coefficients.items():
            key = (slot, int(self.segment_ids[slot, k]))
            rotation = rotations[key]
            edges_world = cs.mtimes(rotation, self.edges)
            position = self.contact_positions[key]

            forces = []
            force = cs.MX.zeros(3)
            torque = cs.MX.zeros(3)
            for j, corner in enumerate(self.config.contacts[slot].corners):
                f_j = cs.mtimes(edges_world, alpha[:, j])
                corner_position = position + cs.mtimes(rotation, cs.DM(corner))
                forces.append(f_j)
                force += f_j
                torque += cs.cross(corner_position - self.com[:, k], f_j)

            self.corner_forces[(slot, k)] = forces
            self.contact_forces[(slot, k)] = force
            self.contact_torques[(slot, k)] = torque

    def _net_force(self, k: int) -> cs.MX:
        force = self.P_external_wrench[0:3]
        for slot in range(len(self.config.contacts)):
            if (slot, k) in self.contact_forces:
                force = force + self.contact_forces[(slot, k)]
        return force

    def _net_torque(self, k: int) -> cs.MX:
        torque = self.P_external_wrench[3:6]
        for slot in range(len(self.config.contacts)):
            if (slot, k) in self.contact_torques:
                torque = torque + self.contact_torques[(slot, k)]
        return torque

    def _setup_dynamics_constraints(self) -> None:
        """Forward Euler discretization of the centroidal dynamics."""
        dt = self.config.sampling_time
        mass = self.config.robot_mass
        gravity = cs.DM(self.config.gravity)

        for k in range(self.number_of_knots - 1):
            ddcom = gravity + self._net_force(k) / mass
            dangular_momentum = self._net_torque(k)

            self.opti.subject_to(self.com[:, k + 1] == self.com[:, k] + dt * self.dcom[:, k])
            self.opti.subject_to(self.dcom[:, k + 1] == self.dcom[:, k] + dt * ddcom)
            self.opti.subject_to(
                self.angular_momentum[:, k + 1]
                == self.angular_momentum[:, k] + dt * dangular_momentum
            )

    def _setup_contact_constraints(self) -> None:
        # Unilateral contact and friction cone through the edge decomposition
        for alpha in self.force_coefficients.values():
            self.opti.subject_to(cs.vec(alpha) >= 0)

        # Adjusted contacts must belong to the bounding box around the nominal one
        for (slot, segment), position in self.contact_positions.items():
            contact = self.config.contacts[slot]
            rotation = self._rotations[(slot, segment)]
            local_offset = cs.mtimes(
                rotation.T, position - self.P_nominal_position[(slot, segment)]
            )
            self.opti.subject_to(
                self.opti.bounded(
                    cs.DM(contact.bounding_box_lower_limit),
                    local_offset,
                    cs.DM(contact.bounding_box_upper_limit),
                )
            )

    def _setup_cost_function(self) -> None:
        """Setup the quadratic cost function."""
        weights = self.config.weights
        q_com = cs.DM(np.diag(weights.com))
        r_force_rate = cs.DM(np.diag(weights.force_rate_of_change))
        n_slots = len(self.config.contacts)

        cost = 0

        for k in range(self.number_of_knots):
            com_error = self.com[:, k] - self.P_com_ref[:, k]
            angular_momentum_error = (
                self.angular_momentum[:, k] - self.P_angular_momentum_ref[:, k]
            )
            cost += cs.mtimes([com_error.T, q_com, com_error])
            cost += weights.angular_momentum * cs.sumsqr(angular_momentum_error)

            for slot in range(n_slots):
                segment = self.segment_ids[slot, k]
                if segment == INACTIVE:
                    continue
                key = (slot, int(segment))
                cost += weights.contact_position * cs.sumsqr(
                    self.contact_positions[key] - self.P_nominal_position[key]
                )

        # Force smoothness, an inactive contact has zero force
        for slot in range(n_slots):
            for k in range(self.number_of_knots - 1):
                current = self.contact_forces.get((slot, k))
                following = self.contact_forces.get((slot, k + 1))
                if current is None and following is None:
                    continue
                if current is None:
                    rate = following
                elif following is None:
                    rate = -current
                else:
                    rate = following - current
                cost += cs.mtimes([rate.T, r_force_rate, rate])

        for name_a, name_b in self.config.symmetric_contact_pairs:
            slot_a = self.config.contact_index(name_a)
            slot_b = self.config.contact_index(name_b)
            for k in range(self.number_of_knots):
                if (slot_a, k) in self.contact_forces and (slot_b, k) in self.contact_forces:
                    asymmetry = self.contact_forces[(slot_a, k)] - self.contact_forces[(slot_b, k)]
                    cost += weights.contact_force_symmetry * cs.sumsqr(asymmetry)

        self.cost = cost
        self.opti.minimize(cost)

    def bind(
        self,
        horizon: Horizon,
        state: CentroidalState,
        reference: ReferenceTrajectory,
    ) -> None:
        """Set the parameters of the current control cycle."""
        if horizon.pattern != self.pattern:
            raise ValueError("The horizon activation pattern does not match the problem")

        self.opti.set_value(self.P_initial_state, state.to_vector())
        self.opti.set_value(self.P_external_wrench, state.external_wrench)
        self.opti.set_value(self.P_com_ref, reference.com.T)
        self.opti.set_value(self.P_angular_momentum_ref, reference.angular_momentum.T)

        for (slot, segment), position in self.P_nominal_position.items():
            contact = horizon.segments[slot][segment]
            self.opti.set_value(position, contact.position)
            self.opti.set_value(self.P_nominal_rpy[(slot, segment)], contact.rpy)

    def set_initial_guess(self, guess: InitialGuess) -> None:
        self.opti.set_initial(self.com, guess.com.T)
        self.opti.set_initial(self.dcom, guess.dcom.T)
        self.opti.set_initial(self.angular_momentum, guess.angular_momentum.T)
        for key, alpha in self.force_coefficients.items():
            self.opti.set_initial(alpha, guess.force_coefficients[key])
        for key, position in self.contact_positions.items():
            self.opti.set_initial(position, guess.contact_positions[key])

    def extract(self, value: Callable, horizon: Horizon) -> Solution:
        """Read the decision variables through ``value`` (e.g. ``OptiSol.value``)."""
        n = self.number_of_knots
        n_edges = self.edges.shape[1]

        force_coefficients = {}
        corner_forces = {}
        contact_forces = np.zeros((len(self.config.contacts), n, 3))
        for (slot, k), alpha in self.force_coefficients.items():
            n_corners = self.config.contacts[slot].number_of_corners
            force_coefficients[(slot, k)] = _as_matrix(value(alpha), n_edges, n_corners)
            corners = np.array(
                [_as_matrix(value(f), 3, 1).ravel() for f in self.corner_forces[(slot, k)]]
            )
            corner_forces[(slot, k)] = corners
            contact_forces[slot, k] = corners.sum(axis=0)

        contact_positions = {
            key: _as_matrix(value(p), 3, 1).ravel()
            for key, p in self.contact_positions.items()
        }

        return Solution(
            horizon=horizon,
            com=_as_matrix(value(self.com), 3, n).T,
            dcom=_as_matrix(value(self.dcom), 3, n).T,
            angular_momentum=_as_matrix(value(self.angular_momentum), 3, n).T,
            force_coefficients=force_coefficients,
            contact_positions=contact_positions,
            corner_forces=corner_forces,
            contact_forces=contact_forces,
        )
