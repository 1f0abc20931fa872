"""Typed containers shared across the engine, pool and graph modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, Protocol, Sequence, Tuple, runtime_checkable


@runtime_checkable
class RankedList(Protocol):
    """Anything with a stable label and an ordered run of member ids."""

    @property
    def label(self) -> str: ...

    @property
    def members(self) -> Sequence[str]: ...

    def __len__(self) -> int: ...


@dataclass(frozen=True)
class SimpleRankedList:
    """Flat named list of members; the default RankedList implementation."""

    label: str
    members: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # callers often hand in lists; freeze them so workers can share safely
        object.__setattr__(self, "members", tuple(self.members))

    def __len__(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class SimilarityTask:
    """One pair to score, consumed by exactly one worker."""

    source: RankedList
    target: RankedList
    p: float


@dataclass(frozen=True)
class Edge:
    """Weighted relationship between two lists, keyed by their labels."""

    source: str
    target: str
    similarity: float


class RBOResult(NamedTuple):
    min: float
    residual: float
    extrapolated: float
