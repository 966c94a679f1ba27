"""Validation slots and the closed set of slot combinations.

A dispatcher resolves its schemas once, at setup time, into a ``SlotSet``.
``SlotSet`` is a flag enum over three members, so there are exactly eight
variants (none, each single slot, each pair, all three).
"""

from enum import Flag, StrEnum


class Slot(StrEnum):
    """One independently optional input. Declaration order is validation order."""

    QUERY = "query"
    BODY = "body"
    PARAMS = "params"


class SlotSet(Flag):
    NONE = 0
    QUERY = 1
    BODY = 2
    PARAMS = 4

    @classmethod
    def of(cls, *slots: Slot) -> "SlotSet":
        result = cls.NONE
        for slot in slots:
            result |= cls[slot.name]
        return result

    def __contains__(self, item: object) -> bool:  # type: ignore[override]
        if isinstance(item, Slot):
            return bool(self & SlotSet[item.name])
        return super().__contains__(item)  # type: ignore[arg-type]

    def ordered(self) -> list[Slot]:
        """Members of this set in validation order (query, body, params)."""
        return [slot for slot in Slot if slot in self]
