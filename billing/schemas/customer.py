from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CustomerCreate(BaseModel):
    name: str = Field(min_length=1)
    vat_number: Optional[str] = None
    country: str = Field(default="AT", min_length=2, max_length=2)
    tax_exempt: bool = False
    reverse_charge: bool = False
    default_tax_rate: str = "standard_20"
    payment_terms_days: int = Field(default=14, ge=0, le=365)
    currency: str = Field(default="EUR", min_length=3, max_length=3)


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    company_id: int
    name: str
    vat_number: Optional[str]
    country: str
    tax_exempt: bool
    reverse_charge: bool
    default_tax_rate: str
    payment_terms_days: int
    currency: str
    is_active: bool
    created_at: datetime


class CustomerUnbilledSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_hours: Decimal
    total_time_value: Decimal
    total_expenses: Decimal
    project_count: int
