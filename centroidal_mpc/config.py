"""Configuration of the centroidal MPC.

The controller is configured from a flat mapping of parameters where every
contact slot ``i`` is described by a nested group named ``CONTACT_<i>``::

    {
        "sampling_time": 0.1,
        "time_horizon": 1.0,
        "number_of_maximum_contacts": 2,
        "com_weight": [100.0, 100.0, 1000.0],
        ...
        "CONTACT_0": {
            "contact_name": "left_foot",
            "bounding_box_upper_limit": [0.05, 0.05, 0.0],
            "bounding_box_lower_limit": [-0.05, -0.05, 0.0],
            "number_of_corners": 4,
            "corner_0": [0.08, 0.03, 0.0],
            ...
        },
    }
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

from .errors import ConfigurationError

_MISSING = object()


class ActivationPolicy(str, Enum):
    """How a contact interval partially overlapping a knot window is treated."""

    CONSERVATIVE = "conservative"  # any overlap activates the contact
    STRICT = "strict"  # the interval must cover the whole window
    INSTANT = "instant"  # the contact must be active at the knot instant


@dataclass
class ContactConfig:
    name: str
    index: int
    corners: np.ndarray  # (number_of_corners, 3) in the contact frame
    bounding_box_lower_limit: np.ndarray  # (3,) in the contact frame
    bounding_box_upper_limit: np.ndarray  # (3,) in the contact frame

    @property
    def number_of_corners(self) -> int:
        return self.corners.shape[0]


@dataclass
class CostWeights:
    com: np.ndarray  # (3,)
    contact_position: float
    force_rate_of_change: np.ndarray  # (3,)
    angular_momentum: float
    contact_force_symmetry: float


@dataclass
class SolverSettings:
    linear_solver: str = "mumps"
    tolerance: float = 1e-8
    max_iteration: int = 3000
    verbosity: int = 0
    is_cse_enabled: bool = False

    def ipopt_options(self) -> tuple[dict[str, Any], dict[str, Any]]:
        """Return the (plugin, ipopt) option dictionaries for ``Opti.solver``."""
        plugin_options: dict[str, Any] = {
            "expand": True,
            "print_time": self.verbosity > 0,
        }
        if self.is_cse_enabled:
            # Common subexpression elimination, available from casadi 3.6
            plugin_options["cse"] = True

        solver_options: dict[str, Any] = {
            "tol": self.tolerance,
            "max_iter": self.max_iteration,
            "print_level": self.verbosity,
            "linear_solver": self.linear_solver,
        }
        if self.verbosity == 0:
            solver_options["sb"] = "yes"
        return plugin_options, solver_options


@dataclass
class CentroidalMPCConfig:
    sampling_time: float
    time_horizon: float
    number_of_maximum_contacts: int
    weights: CostWeights
    contacts: list[ContactConfig]
    solver: SolverSettings = field(default_factory=SolverSettings)
    is_warm_start_enabled: bool = False
    robot_mass: float = 1.0
    gravity: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, -9.81]))
    static_friction_coefficient: float = 0.33
    number_of_friction_cone_edges: int = 4
    contact_activation_policy: ActivationPolicy = ActivationPolicy.CONSERVATIVE
    symmetric_contact_pairs: list[tuple[str, str]] | None = None

    def __post_init__(self) -> None:
        if self.symmetric_contact_pairs is None:
            if len(self.contacts) == 2:
                self.symmetric_contact_pairs = [
                    (self.contacts[0].name, self.contacts[1].name)
                ]
            else:
                self.symmetric_contact_pairs = []

    @property
    def number_of_knots(self) -> int:
        # the small offset absorbs round-off in the ratio (e.g. 0.3 / 0.1)
        return int(np.floor(self.time_horizon / self.sampling_time + 1e-9))

    @property
    def contact_names(self) -> list[str]:
        return [contact.name for contact in self.contacts]

    def contact_index(self, name: str) -> int:
        return self.contact_names.index(name)

    def validate(self) -> None:
        """Raise ConfigurationError if the configuration is inconsistent."""
        if not np.isfinite(self.sampling_time) or self.sampling_time <= 0:
            raise ConfigurationError("sampling_time must be a positive number")
        if not np.isfinite(self.time_horizon) or self.time_horizon <= self.sampling_time:
            raise ConfigurationError(
                f"time_horizon ({self.time_horizon}) must be greater than "
                f"sampling_time ({self.sampling_time})"
            )
        if self.number_of_maximum_contacts < 1:
            raise ConfigurationError("number_of_maximum_contacts must be at least 1")
        if len(self.contacts) != self.number_of_maximum_contacts:
            raise ConfigurationError(
                f"Expected {self.number_of_maximum_contacts} contacts, "
                f"got {len(self.contacts)}"
            )
        if len(set(self.contact_names)) != len(self.contacts):
            raise ConfigurationError("Contact names must be unique")

        for contact in self.contacts:
            if contact.corners.ndim != 2 or contact.corners.shape[1] != 3:
                raise ConfigurationError(
                    f"The corners of {contact.name} must be 3D points"
                )
            if contact.number_of_corners < 3:
                raise ConfigurationError(
                    f"The contact {contact.name} needs at least 3 corners, "
                    f"got {contact.number_of_corners}"
                )
            for limit in (
                contact.bounding_box_lower_limit,
                contact.bounding_box_upper_limit,
            ):
                if limit.shape != (3,) or not np.all(np.isfinite(limit)):
                    raise ConfigurationError(
                        f"The bounding box of {contact.name} must be a finite 3D vector"
                    )
            if np.any(contact.bounding_box_lower_limit > contact.bounding_box_upper_limit):
                raise ConfigurationError(
                    f"The bounding box lower limit of {contact.name} exceeds the upper limit"
                )

        w = self.weights
        for name, value in (
            ("com_weight", w.com),
            ("force_rate_of_change_weight", w.force_rate_of_change),
        ):
            if value.shape != (3,):
                raise ConfigurationError(f"{name} must contain three elements")
            if np.any(value < 0) or not np.all(np.isfinite(value)):
                raise ConfigurationError(f"{name} must be non negative")
        for name, value in (
            ("contact_position_weight", w.contact_position),
            ("angular_momentum_weight", w.angular_momentum),
            ("contact_force_symmetry_weight", w.contact_force_symmetry),
        ):
            if value < 0 or not np.isfinite(value):
                raise ConfigurationError(f"{name} must be non negative")

        s = self.solver
        if not s.linear_solver:
            raise ConfigurationError("linear_solver must be a non empty string")
        if s.tolerance <= 0:
            raise ConfigurationError("ipopt_tolerance must be positive")
        if s.max_iteration <= 0:
            raise ConfigurationError("ipopt_max_iteration must be positive")
        if not 0 <= s.verbosity <= 12:
            raise ConfigurationError("solver_verbosity must be between 0 and 12")

        if self.robot_mass <= 0:
            raise ConfigurationError("robot_mass must be positive")
        if self.static_friction_coefficient <= 0:
            raise ConfigurationError("static_friction_coefficient must be positive")
        if self.number_of_friction_cone_edges < 3:
            raise ConfigurationError("number_of_friction_cone_edges must be at least 3")

        for pair in self.symmetric_contact_pairs:
            if len(pair) != 2 or pair[0] == pair[1]:
                raise ConfigurationError(f"Invalid symmetric contact pair {pair}")
            for name in pair:
                if name not in self.contact_names:
                    raise ConfigurationError(
                        f"Unknown contact {name} in symmetric_contact_pairs"
                    )

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> CentroidalMPCConfig:
        """Build and validate a configuration from a parameter mapping."""
        number_of_contacts = _get_int(params, "number_of_maximum_contacts")
        contacts = [
            _contact_from_group(_get_group(params, f"CONTACT_{i}"), i)
            for i in range(max(number_of_contacts, 0))
        ]

        policy = params.get("contact_activation_policy", ActivationPolicy.CONSERVATIVE)
        try:
            policy = ActivationPolicy(policy)
        except ValueError as e:
            raise ConfigurationError(f"Unknown contact_activation_policy {policy}") from e

        pairs = params.get("symmetric_contact_pairs")
        if pairs is not None:
            pairs = [tuple(pair) for pair in pairs]

        config = cls(
            sampling_time=_get_float(params, "sampling_time"),
            time_horizon=_get_float(params, "time_horizon"),
            number_of_maximum_contacts=number_of_contacts,
            weights=CostWeights(
                com=_get_vector(params, "com_weight"),
                contact_position=_get_float(params, "contact_position_weight"),
                force_rate_of_change=_get_vector(params, "force_rate_of_change_weight"),
                angular_momentum=_get_float(params, "angular_momentum_weight"),
                contact_force_symmetry=_get_float(params, "contact_force_symmetry_weight"),
            ),
            contacts=contacts,
            solver=SolverSettings(
                linear_solver=_get_str(params, "linear_solver"),
                tolerance=_get_float(params, "ipopt_tolerance", 1e-8),
                max_iteration=_get_int(params, "ipopt_max_iteration", 3000),
                verbosity=_get_int(params, "solver_verbosity", 0),
                is_cse_enabled=_get_bool(params, "is_cse_enabled", False),
            ),
            is_warm_start_enabled=_get_bool(params, "is_warm_start_enabled", False),
            robot_mass=_get_float(params, "robot_mass", 1.0),
            static_friction_coefficient=_get_float(
                params, "static_friction_coefficient", 0.33
            ),
            number_of_friction_cone_edges=_get_int(
                params, "number_of_friction_cone_edges", 4
            ),
            contact_activation_policy=policy,
            symmetric_contact_pairs=pairs,
        )
        config.validate()
        return config


def _get(params: Mapping[str, Any], key: str, default: Any = _MISSING) -> Any:
    if key in params:
        return params[key]
    if default is _MISSING:
        raise ConfigurationError(f"Unable to find the parameter {key}")
    return default


def _get_float(params: Mapping[str, Any], key: str, default: Any = _MISSING) -> float:
    value = _get(params, key, default)
    if isinstance(value, bool):
        raise ConfigurationError(f"The parameter {key} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"The parameter {key} must be a number") from e


def _get_int(params: Mapping[str, Any], key: str, default: Any = _MISSING) -> int:
    value = _get(params, key, default)
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ConfigurationError(f"The parameter {key} must be an integer")
    return int(value)


def _get_bool(params: Mapping[str, Any], key: str, default: Any = _MISSING) -> bool:
    value = _get(params, key, default)
    if not isinstance(value, (bool, np.bool_)):
        raise ConfigurationError(f"The parameter {key} must be a boolean")
    return bool(value)


def _get_str(params: Mapping[str, Any], key: str, default: Any = _MISSING) -> str:
    value = _get(params, key, default)
    if not isinstance(value, str):
        raise ConfigurationError(f"The parameter {key} must be a string")
    return value


def _get_vector(params: Mapping[str, Any], key: str, size: int = 3) -> np.ndarray:
    value = _get(params, key)
    try:
        vector = np.asarray(value, dtype=float).reshape(-1)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"The parameter {key} must be a vector") from e
    if vector.shape != (size,):
        raise ConfigurationError(
            f"The parameter {key} must contain {size} elements, got {vector.size}"
        )
    return vector


def _get_group(params: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    group = _get(params, key)
    if not isinstance(group, Mapping):
        raise ConfigurationError(f"The group {key} must be a mapping")
    return group


def _contact_from_group(group: Mapping[str, Any], index: int) -> ContactConfig:
    number_of_corners = _get_int(group, "number_of_corners")
    if number_of_corners < 3:
        raise ConfigurationError(
            f"CONTACT_{index} needs at least 3 corners, got {number_of_corners}"
        )
    corners = np.array(
        [_get_vector(group, f"corner_{j}") for j in range(number_of_corners)]
    )
    return ContactConfig(
        name=_get_str(group, "contact_name"),
        index=index,
        corners=corners,
        bounding_box_lower_limit=_get_vector(group, "bounding_box_lower_limit"),
        bounding_box_upper_limit=_get_vector(group, "bounding_box_upper_limit"),
    )
