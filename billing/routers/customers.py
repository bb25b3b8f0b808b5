from typing import List

from fastapi import APIRouter, Depends, HTTPException

from billing.core.authorization import Role, require_role
from billing.core.tenant import TenantContext
from billing.database import SessionLocal
from billing.deps.errors import to_http_exception
from billing.models.customer import Customer
from billing.schemas.customer import CustomerCreate, CustomerResponse, CustomerUnbilledSummaryResponse
from billing.services import customer_service
from billing.services.errors import InvoicingError
from billing.services.unbilled_service import get_customer_unbilled_summary

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.post("", response_model=CustomerResponse)
def create_customer(
    payload: CustomerCreate,
    ctx: TenantContext = Depends(require_role(Role.SUPERADMIN)),
):
    db = SessionLocal()
    try:
        row = customer_service.create_customer(ctx, db=db, **payload.model_dump())
        db.commit()
        db.refresh(row)
        return row
    except InvoicingError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    finally:
        db.close()


@router.get("", response_model=List[CustomerResponse])
def list_customers(ctx: TenantContext = Depends(require_role(Role.EMPLOYEE))):
    db = SessionLocal()
    try:
        return (
            db.query(Customer)
            .filter(Customer.company_id == int(ctx.company_id))
            .order_by(Customer.name.asc(), Customer.id.asc())
            .all()
        )
    finally:
        db.close()


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: str,
    ctx: TenantContext = Depends(require_role(Role.EMPLOYEE)),
):
    db = SessionLocal()
    try:
        row = (
            db.query(Customer)
            .filter(
                Customer.id == str(customer_id),
                Customer.company_id == int(ctx.company_id),
            )
            .first()
        )
        if row is None:
            raise HTTPException(status_code=404, detail="Customer not found")
        return row
    finally:
        db.close()


@router.get("/{customer_id}/unbilled_summary", response_model=CustomerUnbilledSummaryResponse)
def get_unbilled_summary(
    customer_id: str,
    ctx: TenantContext = Depends(require_role(Role.ACCOUNTANT)),
):
    db = SessionLocal()
    try:
        return get_customer_unbilled_summary(ctx, str(customer_id), db=db)
    except InvoicingError as exc:
        raise to_http_exception(exc) from exc
    finally:
        db.close()
