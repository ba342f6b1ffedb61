"""Contact primitives exchanged with the contact planner and the controller."""

from __future__ import annotations

import dataclasses

import numpy as np
from scipy.spatial.transform import Rotation as R


def _as_rotation_matrix(orientation: np.ndarray | R | None) -> np.ndarray:
    if orientation is None:
        return np.eye(3)
    if isinstance(orientation, R):
        return orientation.as_matrix()
    orientation = np.asarray(orientation, dtype=float)
    if orientation.shape == (4,):
        # quaternion in [x, y, z, w] order
        return R.from_quat(orientation).as_matrix()
    if orientation.shape != (3, 3):
        raise ValueError(
            f"Contact orientation must be a rotation matrix or a quaternion, got shape {orientation.shape}"
        )
    return orientation.copy()


@dataclasses.dataclass
class PlannedContact:
    """A contact established between ``activation_time`` and ``deactivation_time``.

    Attributes:
        name: Name of the contact slot (e.g. ``"left_foot"``).
        position: Position of the contact frame in the inertial frame (3,).
        orientation: Rotation matrix of the contact frame (3, 3).
        activation_time: Time instant the contact is made [s].
        deactivation_time: Time instant the contact is broken [s]. May be ``inf``.
        index: Progressive index of the contact inside its list.
    """

    name: str
    position: np.ndarray
    orientation: np.ndarray | None = None
    activation_time: float = 0.0
    deactivation_time: float = np.inf
    index: int = 0

    def __post_init__(self) -> None:
        self.position = np.asarray(self.position, dtype=float).reshape(3).copy()
        self.orientation = _as_rotation_matrix(self.orientation)
        self.activation_time = float(self.activation_time)
        self.deactivation_time = float(self.deactivation_time)
        if not np.all(np.isfinite(self.position)):
            raise ValueError(f"Contact {self.name} has a non finite position")
        if not np.isfinite(self.activation_time):
            raise ValueError(f"Contact {self.name} has a non finite activation time")
        if self.deactivation_time <= self.activation_time:
            raise ValueError(
                f"Contact {self.name} has deactivation time {self.deactivation_time} "
                f"not greater than activation time {self.activation_time}"
            )

    def is_active(self, time: float) -> bool:
        return self.activation_time <= time < self.deactivation_time

    @property
    def rpy(self) -> np.ndarray:
        """Roll, pitch, yaw of the contact frame (extrinsic x-y-z)."""
        return R.from_matrix(self.orientation).as_euler("xyz")

    def copy(self) -> PlannedContact:
        return PlannedContact(
            name=self.name,
            position=self.position.copy(),
            orientation=self.orientation.copy(),
            activation_time=self.activation_time,
            deactivation_time=self.deactivation_time,
            index=self.index,
        )


@dataclasses.dataclass
class Corner:
    """Vertex of a contact polygon expressed in the contact frame."""

    position: np.ndarray
    force: np.ndarray = dataclasses.field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.position = np.asarray(self.position, dtype=float).reshape(3).copy()
        self.force = np.asarray(self.force, dtype=float).reshape(3).copy()


@dataclasses.dataclass
class DiscreteGeometryContact(PlannedContact):
    """Planned contact with a polygonal footprint and a force at every corner.

    The corner forces are expressed in the inertial frame.
    """

    corners: list[Corner] = dataclasses.field(default_factory=list)

    @property
    def force(self) -> np.ndarray:
        """Resultant contact force (3,)."""
        if not self.corners:
            return np.zeros(3)
        return np.sum([corner.force for corner in self.corners], axis=0)

    def corner_positions(self) -> np.ndarray:
        """Corner positions in the inertial frame (n_corners, 3)."""
        local = np.array([corner.position for corner in self.corners]).reshape(-1, 3)
        return self.position + local @ self.orientation.T
