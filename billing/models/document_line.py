import uuid

from sqlalchemy import JSON, Column, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from billing.database import Base


class DocumentLine(Base):
    __tablename__ = "document_lines"

    __table_args__ = (
        UniqueConstraint("document_id", "line_number", name="uq_document_lines_document_line_number"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    document_id = Column(
        String,
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    line_number = Column(Integer, nullable=False)

    description = Column(String, nullable=False)
    quantity = Column(Numeric(15, 4), nullable=False, default=1)
    unit = Column(String, nullable=False, default="hours")
    unit_price = Column(Numeric(15, 2), nullable=False)
    tax_rate = Column(String, nullable=False)

    subtotal = Column(Numeric(15, 2), nullable=False)
    tax_amount = Column(Numeric(15, 2), nullable=False)
    total = Column(Numeric(15, 2), nullable=False)

    time_entry_ids = Column(JSON, nullable=True)
    expense_ids = Column(JSON, nullable=True)
    project_id = Column(
        String,
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
    )

    document = relationship("Document", backref="lines")
