"""PickInstruction entity — one line item to retrieve within a pick session.

State Machine:
    PENDING → IN_PROGRESS → {PICKED, SHORT_PICKED}
    {PENDING, IN_PROGRESS} → {SKIPPED, CANCELLED}

PICKED, SHORT_PICKED, SKIPPED and CANCELLED are terminal ("complete").
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text, ValueObject

from picking.domain import picking
from picking.session.errors import InvalidStateError
from picking.shared.location import Location


class InstructionStatus(Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    PICKED = "PICKED"
    SHORT_PICKED = "SHORT_PICKED"
    SKIPPED = "SKIPPED"
    CANCELLED = "CANCELLED"


class Priority(Enum):
    URGENT = "URGENT"
    HIGH = "HIGH"
    NORMAL = "NORMAL"
    LOW = "LOW"


COMPLETE_STATUSES = {
    InstructionStatus.PICKED,
    InstructionStatus.SHORT_PICKED,
    InstructionStatus.SKIPPED,
    InstructionStatus.CANCELLED,
}


@picking.entity(part_of="PickSession")
class PickInstruction:
    """A SKU and quantity to pick from one location.

    ``expected_quantity`` is fixed at creation; ``sequence_number`` is assigned
    by path optimization when the session starts.
    """

    instruction_id = String(required=True, max_length=100)
    sku = String(required=True, max_length=100)
    description = String(max_length=500)
    expected_quantity = Integer(required=True, min_value=1)
    picked_quantity = Integer(default=0, min_value=0)
    location = ValueObject(Location, required=True)
    order_id = Identifier()
    priority = String(choices=Priority, default=Priority.NORMAL.value)
    status = String(choices=InstructionStatus, default=InstructionStatus.PENDING.value)
    sequence_number = Integer(default=0, min_value=0)
    short_pick_reason = String(max_length=500)
    picked_at = DateTime()
    special_handling = Text()  # JSON list of handling tags
    weight = Float()
    uom = String(max_length=20)

    @invariant.post
    def picked_quantity_cannot_exceed_expected(self):
        if (self.picked_quantity or 0) > (self.expected_quantity or 0):
            raise ValidationError({"picked_quantity": ["Picked quantity cannot exceed expected quantity"]})

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def _assert_status(self, *allowed: InstructionStatus) -> None:
        current = InstructionStatus(self.status)
        if current not in allowed:
            expected = ", ".join(status.value for status in allowed)
            raise InvalidStateError(
                {"status": [f"Instruction {self.instruction_id} is {current.value}; expected one of: {expected}"]}
            )

    def start(self) -> None:
        self._assert_status(InstructionStatus.PENDING)
        self.status = InstructionStatus.IN_PROGRESS.value

    def confirm_pick(self, quantity: int) -> None:
        """Record a pick. Anything less than expected is a short pick."""
        self._assert_status(InstructionStatus.IN_PROGRESS)
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": [f"Picked quantity must be positive, got {quantity}"]})
        if quantity > self.expected_quantity:
            raise ValidationError(
                {
                    "quantity": [
                        f"Picked quantity ({quantity}) exceeds expected quantity ({self.expected_quantity})"
                    ]
                }
            )

        self.picked_quantity = quantity
        self.picked_at = datetime.now(UTC)
        if quantity == self.expected_quantity:
            self.status = InstructionStatus.PICKED.value
        else:
            self.status = InstructionStatus.SHORT_PICKED.value

    def short_pick(self, actual_quantity: int, reason: str | None) -> None:
        self._assert_status(InstructionStatus.IN_PROGRESS)
        if actual_quantity is None or actual_quantity < 0:
            raise ValidationError({"actual_quantity": [f"Actual quantity cannot be negative, got {actual_quantity}"]})
        if actual_quantity >= self.expected_quantity:
            raise ValidationError(
                {
                    "actual_quantity": [
                        f"Actual quantity ({actual_quantity}) is not short of expected "
                        f"({self.expected_quantity}); use confirm_pick for full quantity picks"
                    ]
                }
            )

        self.picked_quantity = actual_quantity
        self.short_pick_reason = reason
        self.picked_at = datetime.now(UTC)
        self.status = InstructionStatus.SHORT_PICKED.value

    def skip(self, reason: str | None) -> None:
        self._assert_status(InstructionStatus.PENDING, InstructionStatus.IN_PROGRESS)
        self.short_pick_reason = reason
        self.status = InstructionStatus.SKIPPED.value

    def cancel(self) -> None:
        if self.is_complete:
            raise InvalidStateError(
                {"status": [f"Cannot cancel instruction {self.instruction_id} in {self.status} state"]}
            )
        self.status = InstructionStatus.CANCELLED.value

    def assign_sequence(self, sequence_number: int) -> None:
        if sequence_number < 0:
            raise ValidationError({"sequence_number": ["Sequence number cannot be negative"]})
        self.sequence_number = sequence_number

    def add_special_handling(self, handling: str | None) -> None:
        if not handling or not handling.strip():
            return
        self.special_handling = json.dumps([*self.handling_tags, handling])

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_complete(self) -> bool:
        return InstructionStatus(self.status) in COMPLETE_STATUSES

    @property
    def is_short_pick(self) -> bool:
        return self.status == InstructionStatus.SHORT_PICKED.value

    @property
    def shortage_quantity(self) -> int:
        if not self.is_short_pick:
            return 0
        return self.expected_quantity - self.picked_quantity

    @property
    def accuracy(self) -> float:
        return self.picked_quantity / self.expected_quantity * 100.0

    @property
    def handling_tags(self) -> list[str]:
        return json.loads(self.special_handling) if self.special_handling else []

    @property
    def has_special_handling(self) -> bool:
        return bool(self.handling_tags)
