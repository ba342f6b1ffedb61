"""Sampling of the nominal contact phase list over the MPC horizon."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from contacts import ContactPhaseList, PlannedContact

from .config import ActivationPolicy
from .errors import HorizonError

INACTIVE = -1
_TIME_EPS = 1e-9


@dataclass
class Horizon:
    """Contact activation of every slot at every knot of the horizon.

    ``segment_ids[i, k]`` is the index in ``segments[i]`` of the contact of slot
    ``i`` active at knot ``k``, or ``INACTIVE``. Knots sharing a segment share
    the same contact location decision variable.
    """

    start_time: float
    sampling_time: float
    slot_names: tuple[str, ...]
    segment_ids: np.ndarray  # (number_of_slots, number_of_knots)
    segments: list[list[PlannedContact]]

    @property
    def number_of_knots(self) -> int:
        return self.segment_ids.shape[1]

    @property
    def number_of_slots(self) -> int:
        return self.segment_ids.shape[0]

    @property
    def active(self) -> np.ndarray:
        return self.segment_ids != INACTIVE

    @property
    def pattern(self) -> tuple[tuple[int, ...], ...]:
        """Hashable description of the problem structure induced by the horizon."""
        return tuple(tuple(int(s) for s in row) for row in self.segment_ids)

    @property
    def knot_times(self) -> np.ndarray:
        return self.start_time + self.sampling_time * np.arange(self.number_of_knots)

    def is_active(self, slot: int, knot: int) -> bool:
        return self.segment_ids[slot, knot] != INACTIVE

    def contact_at(self, slot: int, knot: int) -> PlannedContact | None:
        segment = self.segment_ids[slot, knot]
        if segment == INACTIVE:
            return None
        return self.segments[slot][segment]

    def segment_knots(self, slot: int, segment: int) -> np.ndarray:
        return np.flatnonzero(self.segment_ids[slot] == segment)


class HorizonManager:
    """Discretizes the horizon and associates the nominal contacts to each knot."""

    def __init__(
        self,
        slot_names: Sequence[str],
        sampling_time: float,
        number_of_knots: int,
        number_of_maximum_contacts: int,
        policy: ActivationPolicy = ActivationPolicy.CONSERVATIVE,
    ):
        self.slot_names = tuple(slot_names)
        self.sampling_time = sampling_time
        self.number_of_knots = number_of_knots
        self.number_of_maximum_contacts = number_of_maximum_contacts
        self.policy = ActivationPolicy(policy)

    @property
    def duration(self) -> float:
        return self.number_of_knots * self.sampling_time

    def covers(self, contact_phase_list: ContactPhaseList, current_time: float) -> bool:
        """Whether the phase list defines the contacts up to the end of the horizon."""
        end = current_time + self.duration
        return contact_phase_list.last_deactivation_time >= end - _TIME_EPS

    def compute(
        self, contact_phase_list: ContactPhaseList, current_time: float
    ) -> Horizon:
        if not self.covers(contact_phase_list, current_time):
            raise HorizonError(
                f"The contact phase list ends at {contact_phase_list.last_deactivation_time:.3f}s "
                f"while the horizon ends at {current_time + self.duration:.3f}s"
            )

        segment_ids = np.full((len(self.slot_names), self.number_of_knots), INACTIVE)
        segments: list[list[PlannedContact]] = []

        for slot, name in enumerate(self.slot_names):
            slot_segments: list[PlannedContact] = []
            if name in contact_phase_list:
                contact_list = contact_phase_list[name]
                for k in range(self.number_of_knots):
                    t_k = current_time + k * self.sampling_time
                    contact = self._select_contact(
                        contact_list.overlapping(t_k, t_k + self.sampling_time), t_k
                    )
                    if contact is None:
                        continue
                    if not slot_segments or slot_segments[-1] is not contact:
                        slot_segments.append(contact)
                    segment_ids[slot, k] = len(slot_segments) - 1
            segments.append(slot_segments)

        active_per_knot = np.count_nonzero(segment_ids != INACTIVE, axis=0)
        if np.any(active_per_knot > self.number_of_maximum_contacts):
            k = int(np.argmax(active_per_knot))
            raise HorizonError(
                f"{active_per_knot[k]} contacts are active at knot {k}, "
                f"the maximum is {self.number_of_maximum_contacts}"
            )

        return Horizon(
            start_time=current_time,
            sampling_time=self.sampling_time,
            slot_names=self.slot_names,
            segment_ids=segment_ids,
            segments=segments,
        )

    def _select_contact(
        self, candidates: list[PlannedContact], t_k: float
    ) -> PlannedContact | None:
        t_end = t_k + self.sampling_time
        if self.policy is ActivationPolicy.STRICT:
            candidates = [
                c
                for c in candidates
                if c.activation_time <= t_k + _TIME_EPS
                and c.deactivation_time >= t_end - _TIME_EPS
            ]
        elif self.policy is ActivationPolicy.INSTANT:
            candidates = [
                c
                for c in candidates
                if c.activation_time <= t_k + _TIME_EPS
                and c.deactivation_time > t_k + _TIME_EPS
            ]
        else:
            # drop contacts touching the window only up to round-off
            candidates = [
                c
                for c in candidates
                if c.activation_time < t_end - _TIME_EPS
                and c.deactivation_time > t_k + _TIME_EPS
            ]

        if not candidates:
            return None
        for contact in candidates:
            if contact.activation_time <= t_k + _TIME_EPS < contact.deactivation_time:
                return contact
        return candidates[0]
