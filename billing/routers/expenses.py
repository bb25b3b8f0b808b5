from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from billing.core.authorization import Role, require_role
from billing.core.tenant import TenantContext
from billing.database import SessionLocal
from billing.deps.errors import to_http_exception
from billing.models.expense import Expense
from billing.schemas.expense import ExpenseCreate, ExpenseResponse
from billing.schemas.time_entry import RejectRequest
from billing.services import approval_service
from billing.services.errors import InvoicingError

router = APIRouter(prefix="/expenses", tags=["Expenses"])

ExpenseStatus = Literal["draft", "submitted", "approved", "rejected", "exported"]


@router.get("", response_model=list[ExpenseResponse])
def list_expenses(
    ctx: TenantContext = Depends(require_role(Role.EMPLOYEE)),
    project_id: Optional[str] = None,
    status: Optional[ExpenseStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    db = SessionLocal()
    try:
        q = db.query(Expense).filter(Expense.company_id == int(ctx.company_id))

        if ctx.role == Role.EMPLOYEE.value:
            q = q.filter(Expense.user_id == str(ctx.user_id))
        if project_id is not None:
            q = q.filter(Expense.project_id == str(project_id))
        if status is not None:
            q = q.filter(Expense.status == str(status))
        if date_from is not None:
            q = q.filter(Expense.date >= date_from)
        if date_to is not None:
            q = q.filter(Expense.date <= date_to)

        return (
            q.order_by(Expense.date.desc(), Expense.id.asc())
            .offset(int(offset))
            .limit(int(limit))
            .all()
        )
    finally:
        db.close()


@router.post("", response_model=ExpenseResponse)
def create_expense(
    payload: ExpenseCreate,
    ctx: TenantContext = Depends(require_role(Role.EMPLOYEE)),
):
    db = SessionLocal()
    try:
        expense = approval_service.create_expense(
            ctx,
            db=db,
            expense_date=payload.date,
            amount=payload.amount,
            category=payload.category,
            tax_rate=payload.tax_rate,
            tax_amount=payload.tax_amount,
            project_id=payload.project_id,
            description=payload.description,
            merchant=payload.merchant,
            is_reimbursable=payload.is_reimbursable,
        )
        db.commit()
        db.refresh(expense)
        return expense
    except InvoicingError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    finally:
        db.close()


def _transition(action, ctx: TenantContext, expense_id: str, *args) -> Expense:
    db = SessionLocal()
    try:
        expense = action(ctx, str(expense_id), *args, db=db)
        db.commit()
        db.refresh(expense)
        return expense
    except InvoicingError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    finally:
        db.close()


@router.post("/{expense_id}/submit", response_model=ExpenseResponse)
def submit_expense(
    expense_id: str,
    ctx: TenantContext = Depends(require_role(Role.EMPLOYEE)),
):
    return _transition(approval_service.submit_expense, ctx, expense_id)


@router.post("/{expense_id}/approve", response_model=ExpenseResponse)
def approve_expense(
    expense_id: str,
    ctx: TenantContext = Depends(require_role(Role.SUPERADMIN)),
):
    return _transition(approval_service.approve_expense, ctx, expense_id)


@router.post("/{expense_id}/reject", response_model=ExpenseResponse)
def reject_expense(
    expense_id: str,
    payload: RejectRequest,
    ctx: TenantContext = Depends(require_role(Role.SUPERADMIN)),
):
    return _transition(approval_service.reject_expense, ctx, expense_id, payload.reason)
