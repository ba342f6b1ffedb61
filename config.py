from typing import Any

from configs.experiments import BaseExperiment
from configs.robots import get_robot_data
from configs.robots.robot_data import RobotData

robot: str = "humanoid"
robot_data: RobotData = get_robot_data(robot)

experiment: BaseExperiment = BaseExperiment(
    sampling_time=0.1,
    time_horizon=1.2,
    number_of_steps=4,
    step_length=0.1,
    swing_duration=0.6,
    double_support_duration=0.4,
    initial_double_support_duration=1.0,
    is_warm_start_enabled=True,
)

mpc_parameters: dict[str, Any] = experiment.mpc_parameters(robot_data)
