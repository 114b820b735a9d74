"""Pluggable velocity signal.

Velocity measures how fast attention on a paper is growing (citations,
discussion). The scorer only depends on the VelocitySignal protocol, so a
real implementation can replace the constant placeholder without touching
the fusion formula.
"""

from typing import Protocol, runtime_checkable

from paperfeed.store.models import Paper


@runtime_checkable
class VelocitySignal(Protocol):
    """Strategy computing a velocity value in [0, 1] for a paper."""

    def score(self, paper: Paper) -> float:
        """Compute the velocity signal.

        Args:
            paper: Paper being ranked.

        Returns:
            Velocity in [0, 1].
        """
        ...


class ConstantVelocity:
    """Placeholder returning the same velocity for every paper."""

    def __init__(self, value: float = 0.5) -> None:
        if not 0.0 <= value <= 1.0:
            msg = f"Velocity must be within [0, 1], got {value}"
            raise ValueError(msg)
        self._value = value

    def score(self, paper: Paper) -> float:  # noqa: ARG002
        return self._value
