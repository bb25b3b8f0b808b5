from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProjectCreate(BaseModel):
    customer_id: str
    name: str = Field(min_length=1)
    code: str = Field(min_length=1)
    hourly_rate: Optional[Decimal] = Field(default=None, ge=0)
    billing_type: Literal["hourly", "fixed"] = "hourly"


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    company_id: int
    customer_id: str
    name: str
    code: str
    hourly_rate: Optional[Decimal]
    billing_type: str
    is_active: bool
    created_at: datetime
