import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ExpenseCreate(BaseModel):
    date: dt.date
    amount: Decimal = Field(gt=0)
    category: str
    tax_rate: str = "standard_20"
    tax_amount: Optional[Decimal] = Field(default=None, ge=0)
    project_id: Optional[str] = None
    description: Optional[str] = None
    merchant: Optional[str] = None
    is_reimbursable: bool = True


class ExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    company_id: int
    user_id: str
    project_id: Optional[str]
    date: dt.date
    amount: Decimal
    tax_rate: str
    tax_amount: Decimal
    category: str
    description: Optional[str]
    merchant: Optional[str]
    is_reimbursable: bool
    status: str
    approved_by: Optional[str]
    rejection_reason: Optional[str]
    export_id: Optional[str]
