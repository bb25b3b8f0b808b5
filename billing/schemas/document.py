from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class DocumentLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    line_number: int
    description: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    tax_rate: str
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    time_entry_ids: Optional[List[str]]
    expense_ids: Optional[List[str]]
    project_id: Optional[str]


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    company_id: int
    customer_id: str
    project_id: Optional[str]
    document_type: str
    status: str
    payment_terms_days: int
    notes: Optional[str]
    internal_notes: Optional[str]
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    tax_breakdown: Dict[str, Decimal]
    currency: str
    created_at: datetime

    @field_validator("tax_breakdown", mode="before")
    @classmethod
    def _empty_breakdown(cls, value):
        return value or {}


class DocumentDetailResponse(DocumentResponse):
    lines: List[DocumentLineResponse]
