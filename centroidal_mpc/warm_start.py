"""Initial guess of the NLP, either shifted from the previous solution or cold."""

from __future__ import annotations

import numpy as np

from .horizon import Horizon
from .logging_config import logger
from .problem import CentroidalProblem, InitialGuess, Solution
from .state import CentroidalState, ReferenceTrajectory


def _same_contact(a, b) -> bool:
    return (
        a.name == b.name
        and np.isclose(a.activation_time, b.activation_time)
        and np.isclose(a.deactivation_time, b.deactivation_time)
        and np.allclose(a.position, b.position)
    )


class WarmStartManager:
    """Seeds the solver with the previous solution shifted by one knot."""

    def __init__(self, is_enabled: bool):
        self.is_enabled = is_enabled
        self._previous: Solution | None = None

    def store(self, solution: Solution) -> None:
        self._previous = solution

    def is_shift_compatible(self, horizon: Horizon) -> bool:
        """Whether knots 1..N-1 of the previous solution map onto knots 0..N-2."""
        if self._previous is None:
            return False
        previous = self._previous.horizon
        if previous.segment_ids.shape != horizon.segment_ids.shape:
            return False
        return bool(np.array_equal(previous.active[:, 1:], horizon.active[:, :-1]))

    def initial_guess(
        self,
        problem: CentroidalProblem,
        horizon: Horizon,
        state: CentroidalState,
        reference: ReferenceTrajectory,
    ) -> InitialGuess:
        if self.is_enabled and self.is_shift_compatible(horizon):
            logger.debug("Warm-starting from the shifted previous solution")
            return self._shifted_guess(problem, horizon, reference)

        logger.debug("Cold-starting holding the measured state")
        return self.cold_guess(problem, horizon, state)

    @staticmethod
    def cold_guess(
        problem: CentroidalProblem, horizon: Horizon, state: CentroidalState
    ) -> InitialGuess:
        n = horizon.number_of_knots
        n_edges = problem.edges.shape[1]
        return InitialGuess(
            com=np.tile(state.com, (n, 1)),
            dcom=np.tile(state.dcom, (n, 1)),
            angular_momentum=np.tile(state.angular_momentum, (n, 1)),
            force_coefficients={
                (slot, k): np.zeros(
                    (n_edges, problem.config.contacts[slot].number_of_corners)
                )
                for slot, k in problem.active_knots
            },
            contact_positions={
                (slot, segment): horizon.segments[slot][segment].position.copy()
                for slot, segment in problem.segments
            },
        )

    def _shifted_guess(
        self,
        problem: CentroidalProblem,
        horizon: Horizon,
        reference: ReferenceTrajectory,
    ) -> InitialGuess:
        previous = self._previous
        n = horizon.number_of_knots
        n_edges = problem.edges.shape[1]

        com = np.vstack([previous.com[1:], reference.com[-1:]])
        dcom = np.vstack([previous.dcom[1:], previous.dcom[-1:]])
        angular_momentum = np.vstack(
            [previous.angular_momentum[1:], reference.angular_momentum[-1:]]
        )

        force_coefficients = {}
        for slot, k in problem.active_knots:
            shifted = previous.force_coefficients.get((slot, k + 1)) if k < n - 1 else None
            if shifted is None:
                shifted = np.zeros(
                    (n_edges, problem.config.contacts[slot].number_of_corners)
                )
            force_coefficients[(slot, k)] = shifted.copy()

        contact_positions = {}
        for slot, segment in problem.segments:
            contact = horizon.segments[slot][segment]
            position = contact.position.copy()
            for previous_segment, previous_contact in enumerate(
                previous.horizon.segments[slot]
            ):
                if _same_contact(previous_contact, contact):
                    position = previous.contact_positions[(slot, previous_segment)].copy()
                    break
            contact_positions[(slot, segment)] = position

        return InitialGuess(
            com=com,
            dcom=dcom,
            angular_momentum=angular_momentum,
            force_coefficients=force_coefficients,
            contact_positions=contact_positions,
        )
