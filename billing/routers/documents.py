from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from billing.core.authorization import Role, require_role
from billing.core.tenant import TenantContext
from billing.database import SessionLocal
from billing.models.document import Document
from billing.models.document_line import DocumentLine
from billing.schemas.document import DocumentDetailResponse, DocumentResponse

router = APIRouter(prefix="/documents", tags=["Documents"])

DocumentStatus = Literal["draft", "issued", "paid", "cancelled"]


@router.get("", response_model=List[DocumentResponse])
def list_documents(
    customer_id: Optional[str] = None,
    status: Optional[DocumentStatus] = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    ctx: TenantContext = Depends(require_role(Role.ACCOUNTANT)),
):
    db = SessionLocal()
    try:
        q = db.query(Document).filter(Document.company_id == int(ctx.company_id))
        if customer_id is not None:
            q = q.filter(Document.customer_id == str(customer_id))
        if status is not None:
            q = q.filter(Document.status == str(status))

        return (
            q.order_by(Document.created_at.desc(), Document.id.asc())
            .offset(int(offset))
            .limit(int(limit))
            .all()
        )
    finally:
        db.close()


@router.get("/{document_id}", response_model=DocumentDetailResponse)
def get_document(
    document_id: str,
    ctx: TenantContext = Depends(require_role(Role.ACCOUNTANT)),
):
    db = SessionLocal()
    try:
        document = (
            db.query(Document)
            .filter(
                Document.id == str(document_id),
                Document.company_id == int(ctx.company_id),
            )
            .first()
        )
        if document is None:
            raise HTTPException(status_code=404, detail="Document not found")

        lines = (
            db.query(DocumentLine)
            .filter(DocumentLine.document_id == document.id)
            .order_by(DocumentLine.line_number.asc())
            .all()
        )

        detail = DocumentResponse.model_validate(document).model_dump()
        detail["lines"] = lines
        return detail
    finally:
        db.close()
