"""Location value object — a rack address on the warehouse floor."""

import math
import re

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from picking.domain import picking

_NON_DIGITS = re.compile(r"[^0-9]")


def numeric_part(value: str | None) -> int:
    """Digits of a location coordinate as an int ("A01" -> 1, "" -> 0)."""
    digits = _NON_DIGITS.sub("", value or "")
    return int(digits) if digits else 0


@picking.value_object
class Location:
    """A physical pick face, addressed by aisle, bay, level and optional position.

    Distance between two locations is a walking proxy, not a metric: changing
    aisle costs 100 per aisle number crossed, while moving inside an aisle costs
    10 per bay and 2 per level. Coordinates are free-form labels; only their
    digits count towards distance.
    """

    aisle = String(required=True, max_length=20)
    bay = String(required=True, max_length=20)
    level = String(required=True, max_length=20)
    position = String(max_length=20)

    @invariant.post
    def coordinates_cannot_be_blank(self):
        for field_name in ("aisle", "bay", "level"):
            value = getattr(self, field_name)
            if value is not None and not value.strip():
                raise ValidationError({field_name: [f"{field_name.capitalize()} cannot be blank"]})

    @classmethod
    def parse(cls, text: str) -> "Location":
        """Build a location from its display form, e.g. ``A-01-02`` or ``A-01-02-03``."""
        parts = [part.strip() for part in (text or "").split("-")]
        if len(parts) not in (3, 4) or not all(parts):
            raise ValidationError({"location": [f"Cannot parse location {text!r}; expected AISLE-BAY-LEVEL[-POSITION]"]})
        return cls(
            aisle=parts[0],
            bay=parts[1],
            level=parts[2],
            position=parts[3] if len(parts) == 4 else None,
        )

    @property
    def display(self) -> str:
        coordinates = [self.aisle, self.bay, self.level]
        if self.position:
            coordinates.append(self.position)
        return "-".join(coordinates)

    def distance_from(self, other: "Location | None") -> float:
        if other is None:
            return math.inf

        if self.aisle != other.aisle:
            return abs(numeric_part(self.aisle) - numeric_part(other.aisle)) * 100.0

        bay_distance = abs(numeric_part(self.bay) - numeric_part(other.bay)) * 10.0
        level_distance = abs(numeric_part(self.level) - numeric_part(other.level)) * 2.0
        return bay_distance + level_distance

    def is_same_aisle(self, other: "Location | None") -> bool:
        return other is not None and self.aisle == other.aisle

    def is_adjacent(self, other: "Location | None") -> bool:
        """Same aisle and neighbouring bays."""
        if not self.is_same_aisle(other):
            return False
        return abs(numeric_part(self.bay) - numeric_part(other.bay)) == 1

    def to_payload(self) -> dict:
        return {
            "aisle": self.aisle,
            "bay": self.bay,
            "level": self.level,
            "position": self.position,
        }
