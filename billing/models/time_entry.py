import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from billing.database import Base


class TimeEntry(Base):
    __tablename__ = "time_entries"

    __table_args__ = (
        CheckConstraint("hours > 0 AND hours <= 24", name="ck_time_entries_hours_range"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    company_id = Column(Integer, nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    project_id = Column(
        String,
        ForeignKey("projects.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    date = Column(Date, nullable=False, index=True)
    hours = Column(Numeric(5, 2), nullable=False)
    description = Column(String, nullable=True)
    hourly_rate = Column(Numeric(15, 2), nullable=True)
    is_billable = Column(Boolean, nullable=False, default=True)

    status = Column(String, nullable=False, default="draft", index=True)  # draft|submitted|approved|rejected|invoiced
    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejected_by = Column(String, nullable=True)
    rejection_reason = Column(String, nullable=True)

    document_id = Column(
        String,
        ForeignKey("documents.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    invoiced_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    project = relationship("Project")
