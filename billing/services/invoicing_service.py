from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from billing.core.tenant import TenantContext
from billing.database import SessionLocal
from billing.models.customer import Customer
from billing.models.document import Document
from billing.models.document_line import DocumentLine
from billing.models.expense import Expense
from billing.models.project import Project
from billing.models.time_entry import TimeEntry
from billing.services.errors import (
    ActionResult,
    Conflict,
    InvoicingError,
    NothingToInvoice,
    NotFound,
    PersistenceFailure,
    SelectionReadFailure,
    ValidationFailure,
)
from billing.services.invoice_builder import (
    DocumentTotals,
    GroupBy,
    LineDraft,
    build_lines,
    summarize_lines,
)
from billing.services.money import resolve_document_tax_rate
from billing.services.unbilled_service import (
    UnbilledExpense,
    UnbilledTimeEntry,
    eligible_expense_query,
    eligible_time_entry_query,
    fetch_first,
    fetch_rows,
    get_unbilled_items_for_project_month,
    to_unbilled_expense,
    to_unbilled_time_entry,
)

logger = logging.getLogger(__name__)


def _unique(ids: Optional[Iterable[str]]) -> List[str]:
    return list(dict.fromkeys(str(i) for i in (ids or [])))


def _storage_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def _load_customer(db: Session, ctx: TenantContext, customer_id: str) -> Customer:
    customer = fetch_first(
        "customer",
        ctx,
        db.query(Customer).filter(
            Customer.id == str(customer_id),
            Customer.company_id == int(ctx.company_id),
        ),
    )
    if customer is None:
        raise NotFound("Customer not found")
    return customer


def _load_project(db: Session, ctx: TenantContext, project_id: str) -> Project:
    project = fetch_first(
        "project",
        ctx,
        db.query(Project).filter(
            Project.id == str(project_id),
            Project.company_id == int(ctx.company_id),
        ),
    )
    if project is None:
        raise NotFound("Project not found")
    return project


def _select_time_entries(db: Session, ctx: TenantContext, customer_id: str, ids: List[str]) -> List[UnbilledTimeEntry]:
    if not ids:
        return []
    rows = fetch_rows(
        "time entries",
        ctx,
        eligible_time_entry_query(db, ctx)
        .filter(
            TimeEntry.id.in_(ids),
            Project.customer_id == str(customer_id),
        )
        .order_by(TimeEntry.date.asc(), TimeEntry.id.asc()),
    )
    return [to_unbilled_time_entry(*row) for row in rows]


def _select_expenses(db: Session, ctx: TenantContext, customer_id: str, ids: List[str]) -> List[UnbilledExpense]:
    if not ids:
        return []
    rows = fetch_rows(
        "expenses",
        ctx,
        eligible_expense_query(db, ctx)
        .filter(
            Expense.id.in_(ids),
            or_(Expense.project_id.is_(None), Project.customer_id == str(customer_id)),
        )
        .order_by(Expense.date.asc(), Expense.id.asc()),
    )
    return [to_unbilled_expense(*row) for row in rows]


def _persist_document(
    db: Session,
    ctx: TenantContext,
    customer: Customer,
    totals: DocumentTotals,
    *,
    payment_terms_days: Optional[int],
    notes: Optional[str],
    internal_notes: Optional[str],
) -> Document:
    document = Document(
        company_id=int(ctx.company_id),
        customer_id=customer.id,
        project_id=totals.project_id,
        document_type="invoice",
        status="draft",
        payment_terms_days=(
            int(payment_terms_days) if payment_terms_days is not None else customer.payment_terms_days
        ),
        notes=notes or None,
        internal_notes=internal_notes or None,
        subtotal=totals.subtotal,
        tax_amount=totals.tax_amount,
        total=totals.total,
        tax_breakdown={rate: str(amount) for rate, amount in totals.tax_breakdown.items()} or None,
        currency=customer.currency or "EUR",
        created_by=str(ctx.user_id),
    )
    db.add(document)
    db.flush()
    return document


def _persist_lines(db: Session, document: Document, lines: Sequence[LineDraft]) -> None:
    db.add_all(
        [
            DocumentLine(
                document_id=document.id,
                line_number=index,
                description=line.description,
                quantity=line.quantity,
                unit=line.unit,
                unit_price=line.unit_price,
                tax_rate=line.tax_rate,
                subtotal=line.subtotal,
                tax_amount=line.tax_amount,
                total=line.total,
                time_entry_ids=line.time_entry_ids,
                expense_ids=line.expense_ids,
                project_id=line.project_id,
            )
            for index, line in enumerate(lines, start=1)
        ]
    )
    db.flush()


def _link_time_entries(db: Session, ctx: TenantContext, document: Document, time_entry_ids: List[str]) -> None:
    """
    Conditional update: only rows still unlinked are claimed. A short count
    means another invoice got there first.
    """
    if not time_entry_ids:
        return

    updated = (
        db.query(TimeEntry)
        .filter(
            TimeEntry.company_id == int(ctx.company_id),
            TimeEntry.id.in_(time_entry_ids),
            TimeEntry.status == "approved",
            TimeEntry.document_id.is_(None),
        )
        .update(
            {
                TimeEntry.document_id: document.id,
                TimeEntry.status: "invoiced",
                TimeEntry.invoiced_at: datetime.utcnow(),
            },
            synchronize_session=False,
        )
    )
    if updated != len(time_entry_ids):
        raise Conflict("Time entries were billed concurrently by another invoice")


def _create_invoice(
    ctx: TenantContext,
    customer_id: str,
    time_entry_ids: List[str],
    expense_ids: List[str],
    *,
    db: Session,
    payment_terms_days: Optional[int],
    notes: Optional[str],
    internal_notes: Optional[str],
    group_by: GroupBy,
) -> Document:
    if not time_entry_ids and not expense_ids:
        raise NothingToInvoice()

    try:
        group_by = GroupBy(group_by)
    except ValueError as exc:
        raise ValidationFailure(f"Invalid group_by: {group_by}") from exc

    customer = _load_customer(db, ctx, customer_id)

    time_entries = _select_time_entries(db, ctx, customer.id, time_entry_ids)
    expenses = _select_expenses(db, ctx, customer.id, expense_ids)

    if not time_entries and not expenses:
        raise NothingToInvoice()

    ineligible = (len(time_entry_ids) - len(time_entries)) + (len(expense_ids) - len(expenses))
    if ineligible:
        raise Conflict(f"{ineligible} selected item(s) are not eligible for invoicing")

    lines = build_lines(
        time_entries,
        expenses,
        tax_rate=resolve_document_tax_rate(customer),
        group_by=group_by,
    )
    totals = summarize_lines(lines)

    document = _persist_document(
        db,
        ctx,
        customer,
        totals,
        payment_terms_days=payment_terms_days,
        notes=notes,
        internal_notes=internal_notes,
    )
    _persist_lines(db, document, lines)
    _link_time_entries(db, ctx, document, [e.id for e in time_entries])
    return document


def create_invoice_from_entries(
    ctx: TenantContext,
    customer_id: str,
    time_entry_ids: Optional[Sequence[str]],
    expense_ids: Optional[Sequence[str]],
    *,
    db: Optional[Session] = None,
    payment_terms_days: Optional[int] = None,
    notes: Optional[str] = None,
    internal_notes: Optional[str] = None,
    group_by: str = GroupBy.PROJECT.value,
) -> ActionResult:
    """
    Create a draft invoice for a customer from selected time entries and expenses.

    Document, lines and the time entry links are written in one transaction:
    the session is committed on success and rolled back on any failure, so a
    failed call never leaves a draft behind. Failures are returned, not raised.
    If db is None, this function manages its own session.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        document = _create_invoice(
            ctx,
            str(customer_id),
            _unique(time_entry_ids),
            _unique(expense_ids),
            db=db,
            payment_terms_days=payment_terms_days,
            notes=notes,
            internal_notes=internal_notes,
            group_by=group_by,
        )
        db.commit()
    except InvoicingError as exc:
        db.rollback()
        logger.warning(
            "Invoice creation rejected",
            extra={"company_id": ctx.company_id, "customer_id": str(customer_id), "code": exc.code},
        )
        return ActionResult.fail(exc)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(
            "Invoice persistence failed",
            extra={"company_id": ctx.company_id, "customer_id": str(customer_id)},
        )
        return ActionResult.fail(PersistenceFailure(_storage_message(exc)))
    finally:
        if owns_db:
            db.close()

    logger.info(
        "Invoice draft created",
        extra={
            "company_id": ctx.company_id,
            "document_id": document.id,
            "total": str(document.total),
        },
    )
    return ActionResult.ok(document)


def create_invoice_for_project_month(
    ctx: TenantContext,
    project_id: str,
    year_month: str,
    *,
    db: Optional[Session] = None,
    include_time_entries: bool = True,
    include_expenses: bool = True,
    payment_terms_days: Optional[int] = None,
    notes: Optional[str] = None,
    group_by: str = GroupBy.PROJECT.value,
) -> ActionResult:
    """Invoice everything still unbilled on one project for one `YYYY-MM` month."""
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        try:
            project = _load_project(db, ctx, project_id)
            items = get_unbilled_items_for_project_month(ctx, project.id, year_month, db=db)
        except InvoicingError as exc:
            return ActionResult.fail(exc)
        except SQLAlchemyError:
            db.rollback()
            logger.exception(
                "Project month selection failed",
                extra={"company_id": ctx.company_id, "project_id": str(project_id)},
            )
            return ActionResult.fail(SelectionReadFailure("Could not load project"))

        return create_invoice_from_entries(
            ctx,
            project.customer_id,
            [e.id for e in items["time_entries"]] if include_time_entries else [],
            [e.id for e in items["expenses"]] if include_expenses else [],
            db=db,
            payment_terms_days=payment_terms_days,
            notes=notes,
            group_by=group_by,
        )
    finally:
        if owns_db:
            db.close()
