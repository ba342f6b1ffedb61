"""Receding horizon centroidal MPC with step adjustment.

Given the nominal contact locations and timings produced by a contact
planner, the controller computes at every cycle contact wrenches and adjusted
contact locations that are feasible for the centroidal dynamics of the robot.

Typical use::

    mpc = CentroidalMPC()
    mpc.initialize(parameters)
    mpc.set_contact_phase_list(contact_phase_list)
    while running:
        mpc.set_state(com, dcom, angular_momentum)
        mpc.set_reference_trajectory(com_ref, angular_momentum_ref)
        if mpc.advance():
            output = mpc.get_output()
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from contacts import ContactPhaseList

from .config import CentroidalMPCConfig
from .errors import (
    ConfigurationError,
    HorizonError,
    InputValidationError,
    SolveFailure,
)
from .horizon import Horizon, HorizonManager
from .logging_config import logger
from .output import CentroidalMPCOutput, assemble_output
from .problem import CentroidalProblem, Solution
from .solver import SolverAdapter
from .state import CentroidalState, ReferenceTrajectory
from .warm_start import WarmStartManager


class ControllerState(Enum):
    UNINITIALIZED = 0
    READY = 1  # configured, waiting for the state and the contact phase list
    ARMED = 2  # advance can be called


class CentroidalMPC:
    """Non-linear centroidal MPC. Satisfies the ``Source`` protocol.

    Not thread safe: the setters and ``advance`` must not be called
    concurrently on the same instance.
    """

    def __init__(self) -> None:
        self._controller_state = ControllerState.UNINITIALIZED
        self._config: CentroidalMPCConfig | None = None
        self._horizon_manager: HorizonManager | None = None
        self._solver: SolverAdapter | None = None
        self._warm_start: WarmStartManager | None = None
        self._problem: CentroidalProblem | None = None
        self._reset_runtime_data()

    def _reset_runtime_data(self) -> None:
        self._contact_phase_list: ContactPhaseList | None = None
        self._centroidal_state: CentroidalState | None = None
        self._reference: ReferenceTrajectory | None = None
        self._output = CentroidalMPCOutput()
        self._is_output_valid = False
        self._current_time = 0.0

    @property
    def state(self) -> ControllerState:
        return self._controller_state

    @property
    def config(self) -> CentroidalMPCConfig | None:
        return self._config

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def number_of_knots(self) -> int:
        if self._config is None:
            return 0
        return self._config.number_of_knots

    def initialize(self, parameters: Mapping[str, Any] | CentroidalMPCConfig) -> bool:
        """Configure the controller. See ``centroidal_mpc.config`` for the parameters."""
        try:
            if isinstance(parameters, CentroidalMPCConfig):
                parameters.validate()
                config = parameters
            else:
                config = CentroidalMPCConfig.from_dict(parameters)
        except ConfigurationError as e:
            logger.error(f"Unable to initialize the centroidal MPC: {e}")
            return False

        self._config = config
        self._horizon_manager = HorizonManager(
            slot_names=config.contact_names,
            sampling_time=config.sampling_time,
            number_of_knots=config.number_of_knots,
            number_of_maximum_contacts=config.number_of_maximum_contacts,
            policy=config.contact_activation_policy,
        )
        self._solver = SolverAdapter(config.solver)
        self._warm_start = WarmStartManager(config.is_warm_start_enabled)
        self._problem = None
        self._reset_runtime_data()
        self._controller_state = ControllerState.READY

        logger.info(
            f"Centroidal MPC initialized: {config.number_of_knots} knots, "
            f"dt = {config.sampling_time}s, contacts {config.contact_names}"
        )
        return True

    def _can_set_inputs(self, method: str) -> bool:
        if self._controller_state is ControllerState.UNINITIALIZED:
            logger.error(f"{method}: the controller has not been initialized")
            return False
        return True

    def _update_armed(self) -> None:
        if self._centroidal_state is not None and self._contact_phase_list is not None:
            self._controller_state = ControllerState.ARMED

    def set_contact_phase_list(self, contact_phase_list: ContactPhaseList) -> bool:
        """Set the nominal contact locations and timings. A copy is stored."""
        if not self._can_set_inputs("set_contact_phase_list"):
            return False
        try:
            self._validate_contact_phase_list(contact_phase_list)
        except InputValidationError as e:
            logger.warning(f"Invalid contact phase list: {e}")
            return False

        self._contact_phase_list = contact_phase_list.copy()
        self._update_armed()
        return True

    def _validate_contact_phase_list(self, contact_phase_list: ContactPhaseList) -> None:
        if not isinstance(contact_phase_list, ContactPhaseList):
            raise InputValidationError("Expected a ContactPhaseList")
        if contact_phase_list.is_empty():
            raise InputValidationError("The contact phase list is empty")
        unknown = set(contact_phase_list.contact_names) - set(self._config.contact_names)
        if unknown:
            raise InputValidationError(f"Unknown contacts {sorted(unknown)}")
        if not self._horizon_manager.covers(contact_phase_list, self._current_time):
            raise InputValidationError(
                "The contact phase list does not cover the horizon starting at "
                f"t = {self._current_time:.3f}s"
            )

    def set_state(
        self,
        com,
        dcom,
        angular_momentum,
        external_wrench=None,
    ) -> bool:
        """Set the measured centroidal state.

        Args:
            com: CoM position in the inertial frame.
            dcom: CoM velocity.
            angular_momentum: Centroidal angular momentum.
            external_wrench: Optional force and torque at the CoM, zero if not given.
        """
        if not self._can_set_inputs("set_state"):
            return False
        try:
            state = CentroidalState.from_measurements(
                com, dcom, angular_momentum, external_wrench
            )
        except InputValidationError as e:
            logger.warning(f"Invalid centroidal state: {e}")
            return False

        self._centroidal_state = state
        self._update_armed()
        return True

    def set_reference_trajectory(self, com, angular_momentum) -> bool:
        """Set the CoM and angular momentum references sampled at the controller period.

        The sequences must contain at least one sample per knot, extra samples are
        ignored.
        """
        if not self._can_set_inputs("set_reference_trajectory"):
            return False
        try:
            reference = ReferenceTrajectory.from_sequences(
                com, angular_momentum, self._config.number_of_knots
            )
        except InputValidationError as e:
            logger.warning(f"Invalid reference trajectory: {e}")
            return False

        self._reference = reference
        return True

    def advance(self) -> bool:
        """Perform one control cycle."""
        if self._controller_state is not ControllerState.ARMED:
            logger.error(
                "advance: the state and the contact phase list must be set before advancing"
            )
            self._is_output_valid = False
            return False

        try:
            solution = self._solve_cycle()
        except (HorizonError, SolveFailure) as e:
            logger.warning(f"Centroidal MPC cycle at t = {self._current_time:.3f}s failed: {e}")
            self._is_output_valid = False
            return False

        self._output = assemble_output(self._config, solution, self._contact_phase_list)
        self._warm_start.store(solution)
        self._is_output_valid = True
        self._current_time += self._config.sampling_time
        return True

    def _solve_cycle(self) -> Solution:
        horizon = self._horizon_manager.compute(self._contact_phase_list, self._current_time)
        problem = self._problem_for(horizon)

        state = self._centroidal_state
        reference = self._reference
        if reference is None:
            reference = ReferenceTrajectory.hold(state, horizon.number_of_knots)

        problem.bind(horizon, state, reference)
        initial_guess = self._warm_start.initial_guess(problem, horizon, state, reference)
        result = self._solver.solve(problem, horizon, initial_guess)
        if not result.success:
            raise SolveFailure(
                result.status,
                f"IPOPT returned {result.return_status or result.status.name}",
            )
        return result.solution

    def _problem_for(self, horizon: Horizon) -> CentroidalProblem:
        """Reuse the current problem unless the activation pattern changed."""
        if self._problem is None or self._problem.pattern != horizon.pattern:
            logger.info(
                f"Building the NLP for the activation pattern at t = {horizon.start_time:.3f}s"
            )
            self._problem = CentroidalProblem(self._config, horizon)
            self._solver.configure(self._problem)
        return self._problem

    def get_output(self) -> CentroidalMPCOutput:
        return self._output

    def is_output_valid(self) -> bool:
        return self._is_output_valid
