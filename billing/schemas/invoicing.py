import datetime as dt
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

GroupByValue = Literal["project", "entry", "summary"]


class UnbilledTimeEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    project_name: str
    project_code: str
    customer_id: str
    customer_name: str
    date: dt.date
    hours: Decimal
    description: Optional[str]
    hourly_rate: Decimal
    is_billable: bool


class UnbilledExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: Optional[str]
    project_name: Optional[str]
    project_code: Optional[str]
    customer_id: Optional[str]
    customer_name: Optional[str]
    date: dt.date
    amount: Decimal
    tax_rate: str
    tax_amount: Decimal
    category: str
    description: Optional[str]
    merchant: Optional[str]
    is_reimbursable: bool


class UnbilledSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_hours: Decimal
    total_time_value: Decimal
    total_expenses: Decimal
    estimated_total: Decimal


class ProjectMonthItemsResponse(BaseModel):
    time_entries: List[UnbilledTimeEntryResponse]
    expenses: List[UnbilledExpenseResponse]
    summary: UnbilledSummaryResponse


class ProjectWithUnbilledResponse(BaseModel):
    project_id: str
    label: str
    code: str
    customer_id: str
    customer_name: str
    unbilled_hours: Decimal
    unbilled_expense_count: int
    unbilled_months: List[str]


class InvoiceFromEntriesRequest(BaseModel):
    customer_id: str
    time_entry_ids: List[str] = Field(default_factory=list)
    expense_ids: List[str] = Field(default_factory=list)
    payment_terms_days: Optional[int] = Field(default=None, ge=0, le=365)
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    group_by: GroupByValue = "project"


class InvoiceForProjectMonthRequest(BaseModel):
    project_id: str
    year_month: str = Field(pattern=r"^\d{4}-\d{2}$")
    include_time_entries: bool = True
    include_expenses: bool = True
    payment_terms_days: Optional[int] = Field(default=None, ge=0, le=365)
    notes: Optional[str] = None
    group_by: GroupByValue = "project"
