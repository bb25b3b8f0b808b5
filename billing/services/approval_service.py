"""
Approval workflow for time entries and expenses.

    draft -> submitted -> approved -> (invoiced | exported)
                  \\            \\
                   -> rejected <-

Callers own the session: these functions flush but never commit.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from billing.core.tenant import TenantContext
from billing.models.expense import Expense
from billing.models.project import Project
from billing.models.time_entry import TimeEntry
from billing.services.errors import InvalidTransition, NotFound, ValidationFailure
from billing.services.money import TaxRate, compute_tax, round_money, to_decimal

MIN_HOURS = Decimal("0.25")

EXPENSE_CATEGORIES = {
    "mileage",
    "travel_time",
    "materials",
    "accommodation",
    "meals",
    "transport",
    "communication",
    "software",
    "other",
}


def _get_project(db: Session, ctx: TenantContext, project_id: str) -> Project:
    project = (
        db.query(Project)
        .filter(Project.id == str(project_id), Project.company_id == int(ctx.company_id))
        .first()
    )
    if project is None:
        raise NotFound("Project not found")
    return project


def _get_time_entry(db: Session, ctx: TenantContext, time_entry_id: str) -> TimeEntry:
    entry = (
        db.query(TimeEntry)
        .filter(TimeEntry.id == str(time_entry_id), TimeEntry.company_id == int(ctx.company_id))
        .first()
    )
    if entry is None:
        raise NotFound("Time entry not found")
    return entry


def _get_expense(db: Session, ctx: TenantContext, expense_id: str) -> Expense:
    expense = (
        db.query(Expense)
        .filter(Expense.id == str(expense_id), Expense.company_id == int(ctx.company_id))
        .first()
    )
    if expense is None:
        raise NotFound("Expense not found")
    return expense


def _require_status(row, allowed: set, action: str) -> None:
    if row.status not in allowed:
        raise InvalidTransition(f"Cannot {action} an entry in status '{row.status}'")


# ---------- Time entries ----------

def create_time_entry(
    ctx: TenantContext,
    *,
    db: Session,
    project_id: str,
    entry_date: date,
    hours: Decimal,
    description: Optional[str] = None,
    hourly_rate: Optional[Decimal] = None,
    is_billable: bool = True,
) -> TimeEntry:
    hours = to_decimal(hours)
    if hours < MIN_HOURS or hours > 24:
        raise ValidationFailure("hours must be between 0.25 and 24")

    project = _get_project(db, ctx, project_id)

    entry = TimeEntry(
        company_id=int(ctx.company_id),
        user_id=str(ctx.user_id),
        project_id=project.id,
        date=entry_date,
        hours=hours,
        description=description,
        hourly_rate=None if hourly_rate is None else round_money(hourly_rate),
        is_billable=bool(is_billable),
        status="draft",
    )
    db.add(entry)
    db.flush()
    return entry


def submit_time_entry(ctx: TenantContext, time_entry_id: str, *, db: Session) -> TimeEntry:
    entry = _get_time_entry(db, ctx, time_entry_id)
    if entry.user_id != str(ctx.user_id):
        raise NotFound("Time entry not found")
    _require_status(entry, {"draft"}, "submit")

    entry.status = "submitted"
    db.flush()
    return entry


def approve_time_entry(ctx: TenantContext, time_entry_id: str, *, db: Session) -> TimeEntry:
    entry = _get_time_entry(db, ctx, time_entry_id)
    _require_status(entry, {"submitted"}, "approve")

    # freeze the rate in effect at approval time
    if entry.hourly_rate is None:
        project = _get_project(db, ctx, entry.project_id)
        entry.hourly_rate = project.hourly_rate

    entry.status = "approved"
    entry.approved_by = str(ctx.user_id)
    entry.approved_at = datetime.utcnow()
    db.flush()
    return entry


def reject_time_entry(ctx: TenantContext, time_entry_id: str, reason: str, *, db: Session) -> TimeEntry:
    entry = _get_time_entry(db, ctx, time_entry_id)
    _require_status(entry, {"submitted", "approved"}, "reject")
    if entry.document_id is not None:
        raise InvalidTransition("Cannot reject a time entry that is already on an invoice")

    entry.status = "rejected"
    entry.rejected_by = str(ctx.user_id)
    entry.rejection_reason = reason
    db.flush()
    return entry


def delete_time_entry(ctx: TenantContext, time_entry_id: str, *, db: Session) -> None:
    entry = _get_time_entry(db, ctx, time_entry_id)
    if entry.user_id != str(ctx.user_id) and ctx.role != "SUPERADMIN":
        raise NotFound("Time entry not found")
    _require_status(entry, {"draft"}, "delete")
    db.delete(entry)
    db.flush()


# ---------- Expenses ----------

def create_expense(
    ctx: TenantContext,
    *,
    db: Session,
    expense_date: date,
    amount: Decimal,
    category: str,
    tax_rate: str = TaxRate.STANDARD_20.value,
    tax_amount: Optional[Decimal] = None,
    project_id: Optional[str] = None,
    description: Optional[str] = None,
    merchant: Optional[str] = None,
    is_reimbursable: bool = True,
) -> Expense:
    amount = round_money(amount)
    if amount <= 0:
        raise ValidationFailure("Amount must be greater than 0")
    if category not in EXPENSE_CATEGORIES:
        raise ValidationFailure(f"Invalid expense category: {category}")
    try:
        tax_rate = TaxRate(tax_rate).value
    except ValueError as exc:
        raise ValidationFailure(f"Invalid tax rate: {tax_rate}") from exc

    if project_id is not None:
        project_id = _get_project(db, ctx, project_id).id

    expense = Expense(
        company_id=int(ctx.company_id),
        user_id=str(ctx.user_id),
        project_id=project_id,
        date=expense_date,
        amount=amount,
        tax_rate=tax_rate,
        tax_amount=compute_tax(amount, tax_rate) if tax_amount is None else round_money(tax_amount),
        category=category,
        description=description,
        merchant=merchant,
        is_reimbursable=bool(is_reimbursable),
        status="draft",
    )
    db.add(expense)
    db.flush()
    return expense


def submit_expense(ctx: TenantContext, expense_id: str, *, db: Session) -> Expense:
    expense = _get_expense(db, ctx, expense_id)
    if expense.user_id != str(ctx.user_id):
        raise NotFound("Expense not found")
    _require_status(expense, {"draft"}, "submit")

    expense.status = "submitted"
    db.flush()
    return expense


def approve_expense(ctx: TenantContext, expense_id: str, *, db: Session) -> Expense:
    expense = _get_expense(db, ctx, expense_id)
    _require_status(expense, {"submitted"}, "approve")

    expense.status = "approved"
    expense.approved_by = str(ctx.user_id)
    expense.approved_at = datetime.utcnow()
    db.flush()
    return expense


def reject_expense(ctx: TenantContext, expense_id: str, reason: str, *, db: Session) -> Expense:
    expense = _get_expense(db, ctx, expense_id)
    _require_status(expense, {"submitted", "approved"}, "reject")

    expense.status = "rejected"
    expense.rejected_by = str(ctx.user_id)
    expense.rejection_reason = reason
    db.flush()
    return expense
