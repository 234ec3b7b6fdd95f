from pydantic import BaseModel, model_validator
import uuid
from datetime import date, datetime
from typing import Literal, Optional

AbsenceTypeLiteral = Literal["vacation", "sick", "family_event", "training", "unavailable", "emergency"]


class AbsenceCreate(BaseModel):
    employee_id: uuid.UUID
    absence_type: AbsenceTypeLiteral
    start_date: date
    end_date: date
    family_event_type: Optional[str] = None
    reason: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self) -> "AbsenceCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date doit être postérieure ou égale à start_date")
        return self


class AbsenceDecision(BaseModel):
    reason: Optional[str] = None


class AbsenceOut(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    absence_type: str
    family_event_type: Optional[str]
    start_date: date
    end_date: date
    business_days: float
    status: str
    reason: Optional[str]
    decided_at: Optional[datetime]
    created_at: datetime
    warnings: list[str] = []

    model_config = {"from_attributes": True}
