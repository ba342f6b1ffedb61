"""IPOPT adapter: configures the Opti solver and interprets its termination."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum

from .config import SolverSettings
from .horizon import Horizon
from .logging_config import logger
from .problem import CentroidalProblem, InitialGuess, Solution


class SolveStatus(Enum):
    SUCCESS = "success"
    NOT_CONVERGED = "not_converged"
    ITERATION_LIMIT = "iteration_limit"
    INFEASIBLE = "infeasible"
    INVALID_NUMBER = "invalid_number"


# IPOPT return_status -> SolveStatus, anything else is NOT_CONVERGED
_IPOPT_STATUS = {
    "Solve_Succeeded": SolveStatus.SUCCESS,
    "Solved_To_Acceptable_Level": SolveStatus.SUCCESS,
    "Maximum_Iterations_Exceeded": SolveStatus.ITERATION_LIMIT,
    "Maximum_CpuTime_Exceeded": SolveStatus.ITERATION_LIMIT,
    "Maximum_WallTime_Exceeded": SolveStatus.ITERATION_LIMIT,
    "Infeasible_Problem_Detected": SolveStatus.INFEASIBLE,
    "Restoration_Failed": SolveStatus.INFEASIBLE,
    "Invalid_Number_Detected": SolveStatus.INVALID_NUMBER,
}


def status_from_ipopt(return_status: str) -> SolveStatus:
    return _IPOPT_STATUS.get(return_status, SolveStatus.NOT_CONVERGED)


@dataclass
class SolverResult:
    status: SolveStatus
    solution: Solution | None = None
    return_status: str = ""
    iterations: int = 0
    solve_time: float = 0.0  # [s]

    @property
    def success(self) -> bool:
        return self.status is SolveStatus.SUCCESS and self.solution is not None


class SolverAdapter:
    """Runs IPOPT on a bound problem. A failed solve is reported, never retried."""

    def __init__(self, settings: SolverSettings):
        self.settings = settings
        self._plugin_options, self._solver_options = settings.ipopt_options()

    def configure(self, problem: CentroidalProblem) -> None:
        problem.opti.solver("ipopt", self._plugin_options, self._solver_options)

    def solve(
        self,
        problem: CentroidalProblem,
        horizon: Horizon,
        initial_guess: InitialGuess,
    ) -> SolverResult:
        """Solve the bound problem starting from ``initial_guess``."""
        problem.set_initial_guess(initial_guess)

        start_time = time.perf_counter()
        try:
            sol = problem.opti.solve()
        except RuntimeError as e:
            return_status, iterations = self._read_stats(problem)
            status = status_from_ipopt(return_status)
            if status is SolveStatus.SUCCESS:
                status = SolveStatus.NOT_CONVERGED
            logger.warning(
                f"Optimization failed: {return_status or e} ({iterations} iterations)"
            )
            return SolverResult(
                status=status,
                return_status=return_status,
                iterations=iterations,
                solve_time=time.perf_counter() - start_time,
            )
        solve_time = time.perf_counter() - start_time

        return_status, iterations = self._read_stats(problem)
        solution = problem.extract(sol.value, horizon)
        if not solution.is_finite():
            logger.warning("Optimization returned non finite values")
            return SolverResult(
                status=SolveStatus.INVALID_NUMBER,
                return_status=return_status,
                iterations=iterations,
                solve_time=solve_time,
            )

        logger.info(
            f"Optimization {return_status or 'succeeded'} in {iterations} iterations "
            f"({solve_time * 1e3:.1f} ms)"
        )
        return SolverResult(
            status=SolveStatus.SUCCESS,
            solution=solution,
            return_status=return_status,
            iterations=iterations,
            solve_time=solve_time,
        )

    @staticmethod
    def _read_stats(problem: CentroidalProblem) -> tuple[str, int]:
        try:
            stats = problem.opti.stats()
        except RuntimeError:
            return "", 0
        return str(stats.get("return_status", "")), int(stats.get("iter_count", 0))
