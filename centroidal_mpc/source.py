from __future__ import annotations

from typing import Protocol, TypeVar, runtime_checkable

OutputT = TypeVar("OutputT", covariant=True)


@runtime_checkable
class Source(Protocol[OutputT]):
    """Pull based producer of a typed output.

    ``get_output`` is meaningful only when ``is_output_valid`` is true, i.e.
    when the last call to ``advance`` succeeded.
    """

    def advance(self) -> bool: ...

    def get_output(self) -> OutputT: ...

    def is_output_valid(self) -> bool: ...
