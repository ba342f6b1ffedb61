from .humanoid import humanoid
from .robot_data import RobotData

__all__ = ["humanoid", "RobotData", "get_robot_data", "get_robot_parameters"]


def get_robot_data(robot_name: str) -> RobotData:
    if robot_name == "humanoid":
        return humanoid
    else:
        raise ValueError(f"Robot {robot_name} not found")


def get_robot_parameters(robot_name: str) -> dict:
    """Centroidal MPC parameters of a robot with the default experiment settings."""
    from configs.experiments import BaseExperiment

    return BaseExperiment().mpc_parameters(get_robot_data(robot_name))
