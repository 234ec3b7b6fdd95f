from pydantic import BaseModel, Field
import uuid
from typing import Optional


class LeaveBalanceInit(BaseModel):
    employee_id: uuid.UUID
    leave_year: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{4}$")
    months_worked: Optional[float] = Field(default=None, ge=0, le=12)
    adjustment_days: float = 0


class LeaveBalanceOut(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    leave_year: str
    acquired_days: float
    taken_days: float
    adjustment_days: float
    remaining_days: float

    model_config = {"from_attributes": True}
