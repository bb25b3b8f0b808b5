import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from billing.database import Base


class Project(Base):
    __tablename__ = "projects"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_projects_company_code"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(Integer, nullable=False, index=True)
    customer_id = Column(
        String,
        ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    name = Column(String, nullable=False)
    code = Column(String, nullable=False)
    hourly_rate = Column(Numeric(15, 2), nullable=True)
    billing_type = Column(String, nullable=False, default="hourly")  # hourly|fixed

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    customer = relationship("Customer", backref="projects")
