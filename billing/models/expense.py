import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from billing.database import Base


class Expense(Base):
    __tablename__ = "expenses"

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_expenses_amount_nonnegative"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    company_id = Column(Integer, nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    project_id = Column(
        String,
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    tax_rate = Column(String, nullable=False, default="standard_20")
    tax_amount = Column(Numeric(15, 2), nullable=False, default=0)
    category = Column(String, nullable=False)
    description = Column(String, nullable=True)
    merchant = Column(String, nullable=True)
    is_reimbursable = Column(Boolean, nullable=False, default=True)

    status = Column(String, nullable=False, default="draft", index=True)  # draft|submitted|approved|rejected|exported
    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejected_by = Column(String, nullable=True)
    rejection_reason = Column(String, nullable=True)

    # set by the accounting export flow
    export_id = Column(String, nullable=True, index=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    project = relationship("Project")
