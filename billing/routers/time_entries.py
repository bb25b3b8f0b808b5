from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from billing.core.authorization import Role, require_role
from billing.core.tenant import TenantContext
from billing.database import SessionLocal
from billing.deps.errors import to_http_exception
from billing.models.time_entry import TimeEntry
from billing.schemas.time_entry import RejectRequest, TimeEntryCreate, TimeEntryResponse
from billing.services import approval_service
from billing.services.errors import InvoicingError

router = APIRouter(
    prefix="/time_entries",
    tags=["Time Entries"],
)

TimeEntryStatus = Literal["draft", "submitted", "approved", "rejected", "invoiced"]


@router.get("", response_model=list[TimeEntryResponse])
def list_time_entries(
    ctx: TenantContext = Depends(require_role(Role.EMPLOYEE)),
    project_id: Optional[str] = None,
    user_id: Optional[str] = None,
    status: Optional[TimeEntryStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    db = SessionLocal()
    try:
        q = db.query(TimeEntry).filter(TimeEntry.company_id == int(ctx.company_id))

        # employees only ever see their own entries
        if ctx.role == Role.EMPLOYEE.value:
            q = q.filter(TimeEntry.user_id == str(ctx.user_id))
        elif user_id is not None:
            q = q.filter(TimeEntry.user_id == str(user_id))

        if project_id is not None:
            q = q.filter(TimeEntry.project_id == str(project_id))
        if status is not None:
            q = q.filter(TimeEntry.status == str(status))
        if date_from is not None:
            q = q.filter(TimeEntry.date >= date_from)
        if date_to is not None:
            q = q.filter(TimeEntry.date <= date_to)

        return (
            q.order_by(TimeEntry.date.desc(), TimeEntry.id.asc())
            .offset(int(offset))
            .limit(int(limit))
            .all()
        )
    finally:
        db.close()


@router.post("", response_model=TimeEntryResponse)
def create_time_entry(
    payload: TimeEntryCreate,
    ctx: TenantContext = Depends(require_role(Role.EMPLOYEE)),
):
    db = SessionLocal()
    try:
        entry = approval_service.create_time_entry(
            ctx,
            db=db,
            project_id=payload.project_id,
            entry_date=payload.date,
            hours=payload.hours,
            description=payload.description,
            hourly_rate=payload.hourly_rate,
            is_billable=payload.is_billable,
        )
        db.commit()
        db.refresh(entry)
        return entry
    except InvoicingError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def _transition(action, ctx: TenantContext, time_entry_id: str, *args) -> TimeEntry:
    db = SessionLocal()
    try:
        entry = action(ctx, str(time_entry_id), *args, db=db)
        db.commit()
        db.refresh(entry)
        return entry
    except InvoicingError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/{time_entry_id}/submit", response_model=TimeEntryResponse)
def submit_time_entry(
    time_entry_id: str,
    ctx: TenantContext = Depends(require_role(Role.EMPLOYEE)),
):
    return _transition(approval_service.submit_time_entry, ctx, time_entry_id)


@router.post("/{time_entry_id}/approve", response_model=TimeEntryResponse)
def approve_time_entry(
    time_entry_id: str,
    ctx: TenantContext = Depends(require_role(Role.SUPERADMIN)),
):
    return _transition(approval_service.approve_time_entry, ctx, time_entry_id)


@router.post("/{time_entry_id}/reject", response_model=TimeEntryResponse)
def reject_time_entry(
    time_entry_id: str,
    payload: RejectRequest,
    ctx: TenantContext = Depends(require_role(Role.SUPERADMIN)),
):
    return _transition(approval_service.reject_time_entry, ctx, time_entry_id, payload.reason)


@router.delete("/{time_entry_id}", status_code=204)
def delete_time_entry(
    time_entry_id: str,
    ctx: TenantContext = Depends(require_role(Role.EMPLOYEE)),
):
    db = SessionLocal()
    try:
        approval_service.delete_time_entry(ctx, str(time_entry_id), db=db)
        db.commit()
    except InvoicingError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    finally:
        db.close()
