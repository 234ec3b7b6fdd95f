from pydantic import BaseModel, Field
import uuid
from datetime import date as Date, datetime as DateTime, time as Time
from typing import Literal, Optional

ShiftKindLiteral = Literal["effective", "presence_day", "presence_night", "guard_24h"]
SegmentKindLiteral = Literal["effective", "presence_day", "presence_night"]


class GuardSegmentIn(BaseModel):
    start_time: Time
    kind: SegmentKindLiteral = "effective"
    break_minutes: int = Field(default=0, ge=0)


class ShiftCandidateIn(BaseModel):
    """Intervention à valider ; `id` renseigné lors d'une modification."""
    id: Optional[uuid.UUID] = None
    contract_id: uuid.UUID
    employee_id: Optional[uuid.UUID] = None  # par défaut : l'auxiliaire du contrat
    date: Date
    start_time: Time
    end_time: Time
    break_minutes: int = 0
    shift_kind: ShiftKindLiteral = "effective"
    night_interventions_count: int = Field(default=0, ge=0)
    has_night_action: bool = False
    guard_segments: Optional[list[GuardSegmentIn]] = None


class ShiftCreate(ShiftCandidateIn):
    acknowledge_warnings: bool = False
    notes: Optional[str] = None


class ShiftOut(BaseModel):
    id: uuid.UUID
    contract_id: uuid.UUID
    employee_id: uuid.UUID
    date: Date
    start_time: Time
    end_time: Time
    break_minutes: int
    shift_kind: str
    night_interventions_count: int
    has_night_action: bool
    guard_segments: Optional[list[dict]]
    status: str
    notes: Optional[str]
    effective_hours: float
    is_requalified: bool
    computed_pay: Optional[dict]
    created_at: DateTime
    updated_at: DateTime

    model_config = {"from_attributes": True}
