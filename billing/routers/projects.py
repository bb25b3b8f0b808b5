from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from billing.core.authorization import Role, require_role
from billing.core.tenant import TenantContext
from billing.database import SessionLocal
from billing.deps.errors import to_http_exception
from billing.models.project import Project
from billing.schemas.project import ProjectCreate, ProjectResponse
from billing.services import customer_service
from billing.services.errors import InvoicingError

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.post("", response_model=ProjectResponse)
def create_project(
    payload: ProjectCreate,
    ctx: TenantContext = Depends(require_role(Role.SUPERADMIN)),
):
    db = SessionLocal()
    try:
        row = customer_service.create_project(ctx, db=db, **payload.model_dump())
        db.commit()
        db.refresh(row)
        return row
    except InvoicingError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    finally:
        db.close()


@router.get("", response_model=List[ProjectResponse])
def list_projects(
    customer_id: Optional[str] = None,
    ctx: TenantContext = Depends(require_role(Role.EMPLOYEE)),
):
    db = SessionLocal()
    try:
        q = db.query(Project).filter(Project.company_id == int(ctx.company_id))
        if customer_id is not None:
            q = q.filter(Project.customer_id == str(customer_id))
        return q.order_by(Project.code.asc()).all()
    finally:
        db.close()


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: str,
    ctx: TenantContext = Depends(require_role(Role.EMPLOYEE)),
):
    db = SessionLocal()
    try:
        row = (
            db.query(Project)
            .filter(
                Project.id == str(project_id),
                Project.company_id == int(ctx.company_id),
            )
            .first()
        )
        if row is None:
            raise HTTPException(status_code=404, detail="Project not found")
        return row
    finally:
        db.close()
