from pydantic import BaseModel


class BenefitEnvelopeOut(BaseModel):
    kind: str
    label: str
    hours: float
    hourly_rate: float
    envelope: float
