import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TimeEntryCreate(BaseModel):
    project_id: str
    date: dt.date
    hours: Decimal = Field(ge=Decimal("0.25"), le=24)
    description: Optional[str] = None
    hourly_rate: Optional[Decimal] = Field(default=None, ge=0)
    is_billable: bool = True


class RejectRequest(BaseModel):
    reason: str = Field(min_length=1)


class TimeEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    company_id: int
    user_id: str
    project_id: str
    date: dt.date
    hours: Decimal
    description: Optional[str]
    hourly_rate: Optional[Decimal]
    is_billable: bool
    status: str
    approved_by: Optional[str]
    rejection_reason: Optional[str]
    document_id: Optional[str]
