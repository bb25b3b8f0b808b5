import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String

from billing.database import Base


class Document(Base):
    __tablename__ = "documents"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(Integer, nullable=False, index=True)
    customer_id = Column(
        String,
        ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    project_id = Column(
        String,
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    document_type = Column(String, nullable=False, default="invoice")  # invoice|credit_note
    status = Column(String, nullable=False, default="draft", index=True)  # draft|issued|paid|cancelled

    payment_terms_days = Column(Integer, nullable=False, default=14)
    notes = Column(String, nullable=True)
    internal_notes = Column(String, nullable=True)

    subtotal = Column(Numeric(15, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(15, 2), nullable=False, default=0)
    total = Column(Numeric(15, 2), nullable=False, default=0)
    tax_breakdown = Column(JSON, nullable=True)  # {tax_rate: "amount"}
    currency = Column(String(3), nullable=False, default="EUR")

    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
