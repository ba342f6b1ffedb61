"""Exceptions raised inside the controller.

The public controller methods catch them, log them and return ``False``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .solver import SolveStatus


class CentroidalMPCError(Exception):
    """Base class of all the controller errors."""


class ConfigurationError(CentroidalMPCError):
    """A mandatory parameter is missing or the configuration is inconsistent."""


class InputValidationError(CentroidalMPCError):
    """A setter received a malformed state, contact phase list or reference."""


class HorizonError(CentroidalMPCError):
    """The contact phase list cannot be sampled over the current horizon."""


class SolveFailure(CentroidalMPCError):
    """The nonlinear solver did not return a usable solution."""

    def __init__(self, status: SolveStatus, message: str = ""):
        self.status = status
        super().__init__(message or f"Solver failed with status {status.name}")
