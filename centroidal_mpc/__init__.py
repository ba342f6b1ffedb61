"""Non-linear centroidal MPC with step adjustment for legged locomotion."""

from .config import (
    ActivationPolicy,
    CentroidalMPCConfig,
    ContactConfig,
    CostWeights,
    SolverSettings,
)
from .controller import CentroidalMPC, ControllerState
from .errors import (
    CentroidalMPCError,
    ConfigurationError,
    HorizonError,
    InputValidationError,
    SolveFailure,
)
from .horizon import Horizon, HorizonManager
from .output import CentroidalMPCOutput
from .solver import SolverAdapter, SolverResult, SolveStatus
from .source import Source
from .state import CentroidalState, ReferenceTrajectory

__version__ = "0.1.0"

__all__ = [
    "ActivationPolicy",
    "CentroidalMPCConfig",
    "ContactConfig",
    "CostWeights",
    "SolverSettings",
    "CentroidalMPC",
    "ControllerState",
    "CentroidalMPCError",
    "ConfigurationError",
    "HorizonError",
    "InputValidationError",
    "SolveFailure",
    "Horizon",
    "HorizonManager",
    "CentroidalMPCOutput",
    "SolverAdapter",
    "SolverResult",
    "SolveStatus",
    "Source",
    "CentroidalState",
    "ReferenceTrajectory",
]
