import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from billing.database import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(Integer, nullable=False, index=True)

    name = Column(String, nullable=False)
    vat_number = Column(String, nullable=True)
    country = Column(String(2), nullable=False, default="AT")

    tax_exempt = Column(Boolean, nullable=False, default=False)
    reverse_charge = Column(Boolean, nullable=False, default=False)
    default_tax_rate = Column(String, nullable=False, default="standard_20")

    payment_terms_days = Column(Integer, nullable=False, default=14)
    currency = Column(String(3), nullable=False, default="EUR")

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
