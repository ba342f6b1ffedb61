"""Contact schedule primitives consumed by the centroidal MPC."""

from .contact import Corner, DiscreteGeometryContact, PlannedContact
from .phase_list import ContactList, ContactPhaseList

__all__ = [
    "Corner",
    "DiscreteGeometryContact",
    "PlannedContact",
    "ContactList",
    "ContactPhaseList",
]
