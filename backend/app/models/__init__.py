from app.models.contract import Contract
from app.models.shift import Shift
from app.models.absence import Absence
from app.models.leave_balance import LeaveBalance

__all__ = [
    "Contract",
    "Shift",
    "Absence",
    "LeaveBalance",
]
