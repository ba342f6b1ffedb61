"""Time ordered contact lists and the contact phase list handed to the MPC."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

import numpy as np

from .contact import PlannedContact


class ContactList:
    """Time ordered, non overlapping sequence of contacts of a single slot."""

    def __init__(self, name: str, contacts: Iterable[PlannedContact] = ()):
        self.name = name
        self._contacts: list[PlannedContact] = []
        for contact in contacts:
            self.add_contact(contact)

    def add_contact(self, contact: PlannedContact) -> None:
        if contact.name != self.name:
            raise ValueError(
                f"Contact named {contact.name} cannot be added to the list {self.name}"
            )

        contacts = sorted(
            [*self._contacts, contact.copy()], key=lambda c: c.activation_time
        )
        for previous, current in zip(contacts[:-1], contacts[1:]):
            if current.activation_time < previous.deactivation_time:
                raise ValueError(
                    f"Contacts of {self.name} overlap: [{previous.activation_time}, "
                    f"{previous.deactivation_time}) and [{current.activation_time}, "
                    f"{current.deactivation_time})"
                )
        for index, c in enumerate(contacts):
            c.index = index
        self._contacts = contacts

    def __iter__(self) -> Iterator[PlannedContact]:
        return iter(self._contacts)

    def __len__(self) -> int:
        return len(self._contacts)

    def __getitem__(self, index: int) -> PlannedContact:
        return self._contacts[index]

    @property
    def last_deactivation_time(self) -> float:
        if not self._contacts:
            return -np.inf
        return self._contacts[-1].deactivation_time

    def active_contact(self, time: float) -> PlannedContact | None:
        for contact in self._contacts:
            if contact.is_active(time):
                return contact
        return None

    def first_contact_after(self, time: float) -> PlannedContact | None:
        for contact in self._contacts:
            if contact.activation_time > time:
                return contact
        return None

    def overlapping(self, start: float, end: float) -> list[PlannedContact]:
        """Contacts whose interval intersects ``[start, end)``."""
        return [
            c
            for c in self._contacts
            if c.activation_time < end and c.deactivation_time > start
        ]

    def copy(self) -> ContactList:
        return ContactList(self.name, (c.copy() for c in self._contacts))


class ContactPhaseList:
    """Collection of contact lists, one per contact slot."""

    def __init__(self, lists: Mapping[str, ContactList] | None = None):
        self._lists: dict[str, ContactList] = {}
        if lists is not None:
            self.set_lists(lists)

    def set_lists(self, lists: Mapping[str, ContactList]) -> None:
        new_lists = {}
        for key, contact_list in lists.items():
            if key != contact_list.name:
                raise ValueError(
                    f"The key {key} does not match the contact list name {contact_list.name}"
                )
            new_lists[key] = contact_list.copy()
        self._lists = new_lists

    @property
    def lists(self) -> dict[str, ContactList]:
        return self._lists

    @property
    def contact_names(self) -> list[str]:
        return list(self._lists)

    def __contains__(self, name: str) -> bool:
        return name in self._lists

    def __getitem__(self, name: str) -> ContactList:
        return self._lists[name]

    def is_empty(self) -> bool:
        return all(len(contact_list) == 0 for contact_list in self._lists.values())

    @property
    def last_deactivation_time(self) -> float:
        """Time until which the phase list defines the contact configuration."""
        if not self._lists:
            return -np.inf
        return max(cl.last_deactivation_time for cl in self._lists.values())

    def active_contacts(self, time: float) -> dict[str, PlannedContact]:
        active = {}
        for name, contact_list in self._lists.items():
            contact = contact_list.active_contact(time)
            if contact is not None:
                active[name] = contact
        return active

    def copy(self) -> ContactPhaseList:
        return ContactPhaseList(self._lists)
