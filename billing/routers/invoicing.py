from typing import List, Optional

from fastapi import APIRouter, Depends

from billing.core.authorization import Role, require_role
from billing.core.tenant import TenantContext
from billing.database import SessionLocal
from billing.deps.errors import result_to_http_exception, to_http_exception
from billing.schemas.document import DocumentResponse
from billing.schemas.invoicing import (
    InvoiceForProjectMonthRequest,
    InvoiceFromEntriesRequest,
    ProjectMonthItemsResponse,
    ProjectWithUnbilledResponse,
    UnbilledExpenseResponse,
    UnbilledTimeEntryResponse,
)
from billing.services import invoicing_service, unbilled_service
from billing.services.errors import InvoicingError

router = APIRouter(prefix="/invoicing", tags=["Invoicing"])


# ---------- Unbilled selection ----------

@router.get("/unbilled/time_entries", response_model=List[UnbilledTimeEntryResponse])
def list_unbilled_time_entries(
    customer_id: Optional[str] = None,
    ctx: TenantContext = Depends(require_role(Role.ACCOUNTANT)),
):
    db = SessionLocal()
    try:
        return unbilled_service.get_unbilled_time_entries(ctx, db=db, customer_id=customer_id)
    except InvoicingError as exc:
        raise to_http_exception(exc) from exc
    finally:
        db.close()


@router.get("/unbilled/expenses", response_model=List[UnbilledExpenseResponse])
def list_unbilled_expenses(
    customer_id: Optional[str] = None,
    ctx: TenantContext = Depends(require_role(Role.ACCOUNTANT)),
):
    db = SessionLocal()
    try:
        return unbilled_service.get_unbilled_expenses(ctx, db=db, customer_id=customer_id)
    except InvoicingError as exc:
        raise to_http_exception(exc) from exc
    finally:
        db.close()


@router.get("/unbilled/projects", response_model=List[ProjectWithUnbilledResponse])
def list_projects_with_unbilled_items(
    ctx: TenantContext = Depends(require_role(Role.ACCOUNTANT)),
):
    db = SessionLocal()
    try:
        return unbilled_service.get_projects_with_unbilled_items(ctx, db=db)
    except InvoicingError as exc:
        raise to_http_exception(exc) from exc
    finally:
        db.close()


@router.get("/unbilled/projects/{project_id}/{year_month}", response_model=ProjectMonthItemsResponse)
def get_unbilled_items_for_project_month(
    project_id: str,
    year_month: str,
    ctx: TenantContext = Depends(require_role(Role.ACCOUNTANT)),
):
    db = SessionLocal()
    try:
        return unbilled_service.get_unbilled_items_for_project_month(ctx, project_id, year_month, db=db)
    except InvoicingError as exc:
        raise to_http_exception(exc) from exc
    finally:
        db.close()


# ---------- Invoice creation ----------

@router.post("/from_entries", response_model=DocumentResponse)
def create_invoice_from_entries(
    payload: InvoiceFromEntriesRequest,
    ctx: TenantContext = Depends(require_role(Role.SUPERADMIN)),
):
    result = invoicing_service.create_invoice_from_entries(
        ctx,
        payload.customer_id,
        payload.time_entry_ids,
        payload.expense_ids,
        payment_terms_days=payload.payment_terms_days,
        notes=payload.notes,
        internal_notes=payload.internal_notes,
        group_by=payload.group_by,
    )
    if not result.success:
        raise result_to_http_exception(result)
    return result.data


@router.post("/project_month", response_model=DocumentResponse)
def create_invoice_for_project_month(
    payload: InvoiceForProjectMonthRequest,
    ctx: TenantContext = Depends(require_role(Role.SUPERADMIN)),
):
    result = invoicing_service.create_invoice_for_project_month(
        ctx,
        payload.project_id,
        payload.year_month,
        include_time_entries=payload.include_time_entries,
        include_expenses=payload.include_expenses,
        payment_terms_days=payload.payment_terms_days,
        notes=payload.notes,
        group_by=payload.group_by,
    )
    if not result.success:
        raise result_to_http_exception(result)
    return result.data
