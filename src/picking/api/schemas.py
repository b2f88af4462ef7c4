"""Pydantic API schemas for the Picking domain.

These are the external API contracts — separate from domain commands.
The API layer translates between these schemas and domain commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class LocationSchema(BaseModel):
    aisle: str
    bay: str
    level: str
    position: str | None = None


class PickInstructionRequest(BaseModel):
    instruction_id: str
    sku: str
    expected_quantity: int
    location: LocationSchema
    description: str | None = None
    order_id: str | None = None
    priority: str = "NORMAL"


class CreatePickSessionRequest(BaseModel):
    task_id: str
    worker_id: str
    warehouse_id: str
    strategy: str = "SINGLE"
    cart_id: str
    instructions: list[PickInstructionRequest]
    start_location: LocationSchema | None = None


class ConfirmPickRequest(BaseModel):
    instruction_id: str
    quantity: int


class ShortPickRequest(BaseModel):
    instruction_id: str
    actual_quantity: int
    reason: str | None = None


class SkipInstructionRequest(BaseModel):
    instruction_id: str
    reason: str | None = None


class CancelSessionRequest(BaseModel):
    reason: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class SessionIdResponse(BaseModel):
    session_id: str


class StatusResponse(BaseModel):
    status: str


class InstructionResponse(BaseModel):
    instruction_id: str
    sku: str
    description: str | None = None
    expected_quantity: int
    picked_quantity: int
    location: str
    order_id: str | None = None
    priority: str
    status: str
    sequence_number: int


class PickSessionResponse(BaseModel):
    session_id: str
    task_id: str
    worker_id: str
    warehouse_id: str
    strategy: str
    cart_id: str
    status: str
    current_instruction_index: int
    algorithm: str | None = None
    total_distance: float | None = None
    estimated_duration: int | None = None
    optimized: bool | None = None
    path_progress: float | None = None
    instructions: list[InstructionResponse] = Field(default_factory=list)
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


class ProgressResponse(BaseModel):
    session_id: str
    status: str
    total_instructions: int
    completed_instructions: int
    short_picks: int
    progress: float
    accuracy: float


class CurrentInstructionResponse(BaseModel):
    session_id: str
    instruction: InstructionResponse | None = None
    next_instruction: InstructionResponse | None = None
    distance_from_previous: float | None = None
