"""Output snapshot of the centroidal MPC."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from contacts import ContactPhaseList, Corner, DiscreteGeometryContact, PlannedContact

from .config import CentroidalMPCConfig
from .problem import Solution


def _read_only(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=float)
    array.flags.writeable = False
    return array


@dataclass(frozen=True)
class CentroidalMPCOutput:
    """Result of one control cycle.

    Attributes:
        contacts: For every slot, the adjusted contacts of the horizon window in
            time order. Corner forces are the ones at the first knot where the
            contact is active.
        next_planned_contact: For every slot, the next contact to be established.
        com_trajectory: (N, 3) predicted CoM positions.
        angular_momentum_trajectory: (N, 3) predicted centroidal angular momentum.
        contact_forces: For every slot, the (N, 3) resultant contact force, zero
            on the knots where the slot is not in contact.
        current_time: Time of the first knot [s].
    """

    contacts: dict[str, list[DiscreteGeometryContact]] = field(default_factory=dict)
    next_planned_contact: dict[str, PlannedContact] = field(default_factory=dict)
    com_trajectory: np.ndarray = field(default_factory=lambda: _read_only(np.zeros((0, 3))))
    angular_momentum_trajectory: np.ndarray = field(
        default_factory=lambda: _read_only(np.zeros((0, 3)))
    )
    contact_forces: dict[str, np.ndarray] = field(default_factory=dict)
    current_time: float = 0.0


def assemble_output(
    config: CentroidalMPCConfig,
    solution: Solution,
    contact_phase_list: ContactPhaseList,
) -> CentroidalMPCOutput:
    """Package the solution of the current cycle."""
    horizon = solution.horizon

    contacts: dict[str, list[DiscreteGeometryContact]] = {}
    adjusted: dict[tuple[str, float], np.ndarray] = {}
    for slot, contact_config in enumerate(config.contacts):
        slot_contacts = []
        for segment, nominal in enumerate(horizon.segments[slot]):
            position = solution.contact_positions[(slot, segment)]
            first_knot = int(horizon.segment_knots(slot, segment)[0])
            corner_forces = solution.corner_forces[(slot, first_knot)]
            slot_contacts.append(
                DiscreteGeometryContact(
                    name=nominal.name,
                    position=position,
                    orientation=nominal.orientation,
                    activation_time=nominal.activation_time,
                    deactivation_time=nominal.deactivation_time,
                    index=nominal.index,
                    corners=[
                        Corner(position=corner, force=force)
                        for corner, force in zip(contact_config.corners, corner_forces)
                    ],
                )
            )
            adjusted[(nominal.name, nominal.activation_time)] = position
        if slot_contacts:
            contacts[contact_config.name] = slot_contacts

    next_planned_contact: dict[str, PlannedContact] = {}
    for name in config.contact_names:
        if name not in contact_phase_list:
            continue
        nominal = contact_phase_list[name].first_contact_after(horizon.start_time)
        if nominal is None:
            continue
        next_contact = nominal.copy()
        key = (nominal.name, nominal.activation_time)
        if key in adjusted:
            next_contact.position = adjusted[key].copy()
        next_planned_contact[name] = next_contact

    return CentroidalMPCOutput(
        contacts=contacts,
        next_planned_contact=next_planned_contact,
        com_trajectory=_read_only(solution.com),
        angular_momentum_trajectory=_read_only(solution.angular_momentum),
        contact_forces={
            name: _read_only(solution.contact_forces[slot])
            for slot, name in enumerate(config.contact_names)
        },
        current_time=horizon.start_time,
    )
