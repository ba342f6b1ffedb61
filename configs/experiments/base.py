from dataclasses import dataclass, field
from typing import Any

import numpy as np

from configs.robots.robot_data import RobotData


@dataclass
class BaseExperiment:
    # Horizon
    sampling_time: float = 0.1
    time_horizon: float = 1.2

    # Cost weights
    com_weight: np.ndarray = field(default_factory=lambda: np.array([100.0, 100.0, 1000.0]))
    contact_position_weight: float = 1e3
    force_rate_of_change_weight: np.ndarray = field(
        default_factory=lambda: np.array([10.0, 10.0, 10.0])
    )
    angular_momentum_weight: float = 1e4
    contact_force_symmetry_weight: float = 1.0

    # Solver
    linear_solver: str = "mumps"
    ipopt_tolerance: float = 1e-6
    ipopt_max_iteration: int = 500
    solver_verbosity: int = 0
    is_warm_start_enabled: bool = True
    is_cse_enabled: bool = False

    # Walking pattern
    number_of_steps: int = 4
    step_length: float = 0.1
    swing_duration: float = 0.6
    double_support_duration: float = 0.4
    initial_double_support_duration: float = 1.0
    static_friction_coefficient: float = 0.33

    def mpc_parameters(self, robot: RobotData) -> dict[str, Any]:
        """Parameters accepted by CentroidalMPC.initialize."""
        params: dict[str, Any] = {
            "sampling_time": self.sampling_time,
            "time_horizon": self.time_horizon,
            "number_of_maximum_contacts": len(robot.contact_names),
            "com_weight": list(self.com_weight),
            "contact_position_weight": self.contact_position_weight,
            "force_rate_of_change_weight": list(self.force_rate_of_change_weight),
            "angular_momentum_weight": self.angular_momentum_weight,
            "contact_force_symmetry_weight": self.contact_force_symmetry_weight,
            "linear_solver": self.linear_solver,
            "ipopt_tolerance": self.ipopt_tolerance,
            "ipopt_max_iteration": self.ipopt_max_iteration,
            "solver_verbosity": self.solver_verbosity,
            "is_warm_start_enabled": self.is_warm_start_enabled,
            "is_cse_enabled": self.is_cse_enabled,
            "robot_mass": robot.mass,
            "static_friction_coefficient": self.static_friction_coefficient,
        }
        params.update(robot.contact_groups())
        return params
