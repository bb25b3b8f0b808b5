from __future__ import annotations

import calendar
import logging
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from billing.core.tenant import TenantContext
from billing.models.customer import Customer
from billing.models.expense import Expense
from billing.models.project import Project
from billing.models.time_entry import TimeEntry
from billing.services.errors import SelectionReadFailure, ValidationFailure
from billing.services.money import ZERO, effective_hourly_rate, round_money, to_decimal

logger = logging.getLogger(__name__)

_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass(frozen=True)
class UnbilledTimeEntry:
    id: str
    project_id: str
    project_name: str
    project_code: str
    customer_id: str
    customer_name: str
    date: date
    hours: Decimal
    description: Optional[str]
    hourly_rate: Decimal  # effective: entry, then project, then 0
    is_billable: bool


@dataclass(frozen=True)
class UnbilledExpense:
    id: str
    project_id: Optional[str]
    project_name: Optional[str]
    project_code: Optional[str]
    customer_id: Optional[str]
    customer_name: Optional[str]
    date: date
    amount: Decimal
    tax_rate: str
    tax_amount: Decimal
    category: str
    description: Optional[str]
    merchant: Optional[str]
    is_reimbursable: bool


@dataclass(frozen=True)
class UnbilledSummary:
    total_hours: Decimal
    total_time_value: Decimal
    total_expenses: Decimal
    estimated_total: Decimal
    project_count: int


def parse_year_month(year_month: str) -> Tuple[date, date]:
    """Return the first and last day of a `YYYY-MM` month, both inclusive."""
    match = _YEAR_MONTH_RE.match(str(year_month or ""))
    if not match:
        raise ValidationFailure("year_month must be formatted as YYYY-MM")

    year, month = int(match.group(1)), int(match.group(2))
    if year < 1:
        raise ValidationFailure("year_month has an invalid year")
    if not 1 <= month <= 12:
        raise ValidationFailure("year_month has an invalid month")

    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def eligible_time_entry_filters(ctx: TenantContext) -> list:
    return [
        TimeEntry.company_id == int(ctx.company_id),
        TimeEntry.status == "approved",
        TimeEntry.is_billable.is_(True),
        TimeEntry.document_id.is_(None),
    ]


def eligible_expense_filters(ctx: TenantContext) -> list:
    return [
        Expense.company_id == int(ctx.company_id),
        Expense.status == "approved",
        Expense.is_reimbursable.is_(True),
        Expense.export_id.is_(None),
    ]


def to_unbilled_time_entry(entry: TimeEntry, project: Optional[Project], customer: Optional[Customer]) -> UnbilledTimeEntry:
    return UnbilledTimeEntry(
        id=entry.id,
        project_id=entry.project_id,
        project_name=project.name if project is not None else "Unknown",
        project_code=(project.code or "") if project is not None else "",
        customer_id=customer.id if customer is not None else "",
        customer_name=customer.name if customer is not None else "Unknown",
        date=entry.date,
        hours=to_decimal(entry.hours),
        description=entry.description,
        hourly_rate=effective_hourly_rate(
            entry.hourly_rate,
            project.hourly_rate if project is not None else None,
        ),
        is_billable=bool(entry.is_billable),
    )


def to_unbilled_expense(expense: Expense, project: Optional[Project], customer: Optional[Customer]) -> UnbilledExpense:
    return UnbilledExpense(
        id=expense.id,
        project_id=expense.project_id,
        project_name=project.name if project is not None else None,
        project_code=project.code if project is not None else None,
        customer_id=customer.id if customer is not None else None,
        customer_name=customer.name if customer is not None else None,
        date=expense.date,
        amount=to_decimal(expense.amount),
        tax_rate=expense.tax_rate,
        tax_amount=to_decimal(expense.tax_amount),
        category=expense.category,
        description=expense.description,
        merchant=expense.merchant,
        is_reimbursable=bool(expense.is_reimbursable),
    )


def eligible_time_entry_query(db: Session, ctx: TenantContext):
    return (
        db.query(TimeEntry, Project, Customer)
        .join(Project, Project.id == TimeEntry.project_id)
        .join(Customer, Customer.id == Project.customer_id)
        .filter(*eligible_time_entry_filters(ctx))
    )


def eligible_expense_query(db: Session, ctx: TenantContext):
    return (
        db.query(Expense, Project, Customer)
        .outerjoin(Project, Project.id == Expense.project_id)
        .outerjoin(Customer, Customer.id == Project.customer_id)
        .filter(*eligible_expense_filters(ctx))
    )


def fetch_rows(description: str, ctx: TenantContext, query) -> list:
    try:
        return query.all()
    except SQLAlchemyError as exc:
        logger.exception(
            "Unbilled selection failed",
            extra={"selection": description, "company_id": ctx.company_id},
        )
        raise SelectionReadFailure(f"Could not load unbilled {description}") from exc


def fetch_first(description: str, ctx: TenantContext, query):
    try:
        return query.first()
    except SQLAlchemyError as exc:
        logger.exception(
            "Lookup failed",
            extra={"selection": description, "company_id": ctx.company_id},
        )
        raise SelectionReadFailure(f"Could not load {description}") from exc


def get_unbilled_time_entries(
    ctx: TenantContext,
    *,
    db: Session,
    customer_id: Optional[str] = None,
) -> List[UnbilledTimeEntry]:
    q = eligible_time_entry_query(db, ctx)
    if customer_id is not None:
        q = q.filter(Project.customer_id == str(customer_id))

    rows = fetch_rows("time entries", ctx, q.order_by(TimeEntry.date.desc(), TimeEntry.id.asc()))
    return [to_unbilled_time_entry(entry, project, customer) for entry, project, customer in rows]


def get_unbilled_expenses(
    ctx: TenantContext,
    *,
    db: Session,
    customer_id: Optional[str] = None,
) -> List[UnbilledExpense]:
    q = eligible_expense_query(db, ctx)
    if customer_id is not None:
        q = q.filter(Project.customer_id == str(customer_id))

    rows = fetch_rows("expenses", ctx, q.order_by(Expense.date.desc(), Expense.id.asc()))
    return [to_unbilled_expense(expense, project, customer) for expense, project, customer in rows]


def compute_unbilled_summary(
    time_entries: Sequence[UnbilledTimeEntry],
    expenses: Sequence[UnbilledExpense],
) -> UnbilledSummary:
    """
    Preview totals for a selection. Time value is rounded per entry the same
    way invoice lines are, tax on time is not estimated.
    """
    total_hours = sum((e.hours for e in time_entries), Decimal("0"))
    total_time_value = sum((round_money(e.hours * e.hourly_rate) for e in time_entries), ZERO)
    total_expenses = sum((round_money(e.amount) + round_money(e.tax_amount) for e in expenses), ZERO)

    projects = {e.project_id for e in time_entries}
    projects.update(e.project_id for e in expenses if e.project_id)

    return UnbilledSummary(
        total_hours=total_hours,
        total_time_value=total_time_value,
        total_expenses=total_expenses,
        estimated_total=total_time_value + total_expenses,
        project_count=len(projects),
    )


def get_customer_unbilled_summary(ctx: TenantContext, customer_id: str, *, db: Session) -> UnbilledSummary:
    return compute_unbilled_summary(
        get_unbilled_time_entries(ctx, db=db, customer_id=customer_id),
        get_unbilled_expenses(ctx, db=db, customer_id=customer_id),
    )


def get_unbilled_items_for_project_month(
    ctx: TenantContext,
    project_id: str,
    year_month: str,
    *,
    db: Session,
) -> Dict[str, Any]:
    month_start, month_end = parse_year_month(year_month)

    time_rows = fetch_rows(
        "time entries",
        ctx,
        eligible_time_entry_query(db, ctx)
        .filter(
            TimeEntry.project_id == str(project_id),
            TimeEntry.date >= month_start,
            TimeEntry.date <= month_end,
        )
        .order_by(TimeEntry.date.desc(), TimeEntry.id.asc()),
    )
    expense_rows = fetch_rows(
        "expenses",
        ctx,
        eligible_expense_query(db, ctx)
        .filter(
            Expense.project_id == str(project_id),
            Expense.date >= month_start,
            Expense.date <= month_end,
        )
        .order_by(Expense.date.desc(), Expense.id.asc()),
    )

    time_entries = [to_unbilled_time_entry(*row) for row in time_rows]
    expenses = [to_unbilled_expense(*row) for row in expense_rows]

    return {
        "time_entries": time_entries,
        "expenses": expenses,
        "summary": compute_unbilled_summary(time_entries, expenses),
    }


def get_projects_with_unbilled_items(ctx: TenantContext, *, db: Session) -> List[Dict[str, Any]]:
    """Projects that have anything left to bill, most unbilled hours first."""
    time_entries = get_unbilled_time_entries(ctx, db=db)
    expenses = [e for e in get_unbilled_expenses(ctx, db=db) if e.project_id]

    by_project: Dict[str, Dict[str, Any]] = {}

    def _bucket(item) -> Dict[str, Any]:
        if item.project_id not in by_project:
            by_project[item.project_id] = {
                "project_id": item.project_id,
                "label": f"{item.project_name} ({item.project_code})",
                "code": item.project_code or "",
                "customer_id": item.customer_id or "",
                "customer_name": item.customer_name or "Unknown",
                "hours": Decimal("0"),
                "expense_count": 0,
                "months": set(),
            }
        return by_project[item.project_id]

    for entry in time_entries:
        bucket = _bucket(entry)
        bucket["hours"] += entry.hours
        bucket["months"].add(entry.date.strftime("%Y-%m"))

    for expense in expenses:
        bucket = _bucket(expense)
        bucket["expense_count"] += 1
        bucket["months"].add(expense.date.strftime("%Y-%m"))

    rows = [
        {
            "project_id": b["project_id"],
            "label": b["label"],
            "code": b["code"],
            "customer_id": b["customer_id"],
            "customer_name": b["customer_name"],
            "unbilled_hours": round_money(b["hours"]),
            "unbilled_expense_count": b["expense_count"],
            "unbilled_months": sorted(b["months"], reverse=True),
        }
        for b in by_project.values()
    ]
    rows.sort(key=lambda r: r["unbilled_hours"], reverse=True)
    return rows
