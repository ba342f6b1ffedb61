"""Measured centroidal state and reference trajectories."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from .errors import InputValidationError


def _finite_vector(value, name: str, size: int) -> np.ndarray:
    try:
        vector = np.array(value, dtype=float).reshape(-1)
    except (TypeError, ValueError) as e:
        raise InputValidationError(f"{name} must be a numeric vector") from e
    if vector.shape != (size,):
        raise InputValidationError(f"{name} must have {size} elements, got {vector.size}")
    if not np.all(np.isfinite(vector)):
        raise InputValidationError(f"{name} contains non finite values")
    return vector


@dataclass(frozen=True)
class CentroidalState:
    """Centroidal state measured at the beginning of a control cycle.

    Attributes:
        com: CoM position in the inertial frame (3,).
        dcom: CoM velocity (3,).
        angular_momentum: Centroidal angular momentum (3,).
        external_wrench: Force and torque applied at the CoM (6,).
    """

    com: np.ndarray
    dcom: np.ndarray
    angular_momentum: np.ndarray
    external_wrench: np.ndarray

    @classmethod
    def from_measurements(
        cls,
        com,
        dcom,
        angular_momentum,
        external_wrench=None,
    ) -> CentroidalState:
        if external_wrench is None:
            external_wrench = np.zeros(6)
        state = cls(
            com=_finite_vector(com, "com", 3),
            dcom=_finite_vector(dcom, "dcom", 3),
            angular_momentum=_finite_vector(angular_momentum, "angular_momentum", 3),
            external_wrench=_finite_vector(external_wrench, "external_wrench", 6),
        )
        for array in (state.com, state.dcom, state.angular_momentum, state.external_wrench):
            array.flags.writeable = False
        return state

    @property
    def external_force(self) -> np.ndarray:
        return self.external_wrench[0:3]

    @property
    def external_torque(self) -> np.ndarray:
        return self.external_wrench[3:6]

    def to_vector(self) -> np.ndarray:
        """Stack [com, dcom, angular_momentum] in a 9D vector."""
        return np.concatenate([self.com, self.dcom, self.angular_momentum])


@dataclass(frozen=True)
class ReferenceTrajectory:
    """Desired CoM and angular momentum sampled at the controller period.

    Attributes:
        com: (N, 3) CoM positions.
        angular_momentum: (N, 3) centroidal angular momentum.
    """

    com: np.ndarray
    angular_momentum: np.ndarray

    @classmethod
    def from_sequences(
        cls,
        com: Sequence | np.ndarray,
        angular_momentum: Sequence | np.ndarray,
        number_of_knots: int,
    ) -> ReferenceTrajectory:
        """Validate and truncate the sequences to the first ``number_of_knots`` samples."""
        com_traj = _trajectory(com, "com", number_of_knots)
        angular_momentum_traj = _trajectory(
            angular_momentum, "angular_momentum", number_of_knots
        )
        return cls(com=com_traj, angular_momentum=angular_momentum_traj)

    @classmethod
    def hold(cls, state: CentroidalState, number_of_knots: int) -> ReferenceTrajectory:
        """Reference that keeps the measured CoM and angular momentum."""
        return cls(
            com=np.tile(state.com, (number_of_knots, 1)),
            angular_momentum=np.tile(state.angular_momentum, (number_of_knots, 1)),
        )


def _trajectory(value, name: str, number_of_knots: int) -> np.ndarray:
    try:
        traj = np.array([np.asarray(v, dtype=float).reshape(-1) for v in value])
    except (TypeError, ValueError) as e:
        raise InputValidationError(f"{name} reference must be a sequence of 3D vectors") from e
    if traj.ndim != 2 or traj.shape[1] != 3:
        raise InputValidationError(f"{name} reference must be a sequence of 3D vectors")
    if traj.shape[0] < number_of_knots:
        raise InputValidationError(
            f"{name} reference has {traj.shape[0]} samples, "
            f"the horizon needs {number_of_knots}"
        )
    traj = traj[:number_of_knots].copy()
    if not np.all(np.isfinite(traj)):
        raise InputValidationError(f"{name} reference contains non finite values")
    traj.flags.writeable = False
    return traj
