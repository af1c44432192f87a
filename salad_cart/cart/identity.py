"""
Line identity resolution.

Decides whether an add-to-cart request lands on an existing line or becomes
a new one. Plain items merge by (id, kind). Customized composites never
merge: each act of customization gets its own synthesized id, even when the
customization is byte-identical to a line already in the cart.

The resolver does not compare a customization with the base recipe. That
comparison only matters for pricing (see pricing.py).
"""

import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple, Union

from ..config import CUSTOM_ID_MARKER
from .models import AddRequest, CartLine


@dataclass(frozen=True)
class Merge:
    existing_id: str


@dataclass(frozen=True)
class InsertNew:
    line_id: str
    base_id: Optional[str] = None  # set for customized composites


Resolution = Union[Merge, InsertNew]


def make_custom_id(base_id: str, millis: int) -> str:
    return f"{base_id}{CUSTOM_ID_MARKER}{millis}"


def split_custom_id(line_id: str) -> Tuple[str, bool]:
    """
    Recover the base composite id from a line id.

    Returns:
        (base_id, True) for a synthesized customized id, (line_id, False) otherwise
    """
    base, marker, suffix = line_id.rpartition(CUSTOM_ID_MARKER)
    if marker and base and suffix.isdigit():
        return base, True
    return line_id, False


class LineIdentityResolver:
    """
    Resolves add requests against the current cart lines.

    Args:
        clock: Returns the current time in seconds. Synthesized ids use it in
            milliseconds and are kept strictly increasing per resolver.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last_millis = 0

    def _next_millis(self) -> int:
        millis = int(self._clock() * 1000)
        if millis <= self._last_millis:
            millis = self._last_millis + 1
        self._last_millis = millis
        return millis

    def resolve(self, request: AddRequest, lines: Iterable[CartLine]) -> Resolution:
        if request.wants_customized_line():
            return InsertNew(
                line_id=make_custom_id(request.id, self._next_millis()),
                base_id=request.id,
            )

        for line in lines:
            if line.customization is not None:
                continue
            if line.id == request.id and line.kind == request.kind:
                return Merge(existing_id=line.id)
        return InsertNew(line_id=request.id)
