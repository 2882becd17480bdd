"""Ordered classification rules: the first matching predicate wins."""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from ..models.scene import Scene


@dataclass(frozen=True)
class Classification:
    """A classified value and how far to trust it, in [0, 1]."""

    value: Any
    confidence: float


@dataclass(frozen=True)
class Rule:
    """One ``(predicate, value, confidence)`` entry of a classifier."""

    predicate: Callable[[Scene], bool]
    value: Any
    confidence: float

    def matches(self, scene: Scene) -> bool:
        return self.predicate(scene)


def first_match(rules: Iterable[Rule], scene: Scene) -> Optional[Classification]:
    """Evaluate rules top to bottom and return the first hit, if any."""
    for rule in rules:
        if rule.matches(scene):
            return Classification(rule.value, rule.confidence)
    return None
