"""Shared enumerations used across the entire system."""

from __future__ import annotations

from enum import Enum


# ── Access Mode ─────────────────────────────────────────
class AccessMode(str, Enum):
    """Visibility of a fact, declared from least to most restrictive.

    Comparison operators compare restrictiveness, so
    ``AccessMode.PUBLIC < AccessMode.EXPLICIT`` holds.
    """
    PUBLIC = "Public"
    ROLE_BASED = "RoleBased"
    EXPLICIT = "Explicit"

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, AccessMode):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, AccessMode):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, AccessMode):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, AccessMode):
            return NotImplemented
        return self.rank >= other.rank


# ── Binding direction ───────────────────────────────────
class Direction(str, Enum):
    """How a fact relates to an object it is bound to."""
    NONE = "None"
    FACT_IS_SOURCE = "FactIsSource"
    FACT_IS_DESTINATION = "FactIsDestination"
    BI_DIRECTIONAL = "BiDirectional"


# ── Permission functions ────────────────────────────────
class Function(str, Enum):
    VIEW_FACT_OBJECTS = "viewFactObjects"
    ADD_FACT_OBJECTS = "addFactObjects"


# ── Trigger events ──────────────────────────────────────
class EventName(str, Enum):
    FACT_RETRACTED = "FactRetracted"


class ContextParameter(str, Enum):
    RETRACTION_FACT = "RetractionFact"
    RETRACTED_FACT = "RetractedFact"
