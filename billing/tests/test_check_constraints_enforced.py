from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from billing.database import SessionLocal
from billing.models import Customer, Document, DocumentLine, Expense, Project, TimeEntry


def _project(db, company_id: int = 1, code: str = "CK") -> Project:
    customer = Customer(company_id=company_id, name="CK Customer")
    db.add(customer)
    db.flush()

    project = Project(company_id=company_id, customer_id=customer.id, name="CK Project", code=code)
    db.add(project)
    db.flush()
    return project


def test_check_constraint_blocks_time_entry_over_24_hours():
    db = SessionLocal()
    try:
        project = _project(db)

        bad_entry = TimeEntry(
            company_id=1,
            user_id="u1",
            project_id=project.id,
            date=date(2024, 3, 1),
            hours=Decimal("24.5"),  # should fail ck_time_entries_hours_range
        )
        db.add(bad_entry)

        with pytest.raises(IntegrityError):
            db.commit()
    finally:
        db.rollback()
        db.close()


def test_check_constraint_blocks_zero_hour_time_entry():
    db = SessionLocal()
    try:
        project = _project(db, code="CK0")

        db.add(
            TimeEntry(
                company_id=1,
                user_id="u1",
                project_id=project.id,
                date=date(2024, 3, 1),
                hours=Decimal("0"),
            )
        )

        with pytest.raises(IntegrityError):
            db.commit()
    finally:
        db.rollback()
        db.close()


def test_check_constraint_blocks_negative_expense_amount():
    db = SessionLocal()
    try:
        bad_expense = Expense(
            company_id=1,
            user_id="u1",
            date=date(2024, 3, 1),
            amount=Decimal("-5.00"),  # should fail ck_expenses_amount_nonnegative
            category="other",
        )
        db.add(bad_expense)

        with pytest.raises(IntegrityError):
            db.commit()
    finally:
        db.rollback()
        db.close()


def test_unique_project_code_per_company():
    db = SessionLocal()
    try:
        _project(db, company_id=1, code="DUP")
        _project(db, company_id=2, code="DUP")
        db.commit()

        duplicate = Project(
            company_id=1,
            customer_id=db.query(Customer).filter(Customer.company_id == 1).first().id,
            name="Again",
            code="DUP",
        )
        db.add(duplicate)

        with pytest.raises(IntegrityError):
            db.commit()
    finally:
        db.rollback()
        db.close()


def test_unique_line_number_per_document():
    db = SessionLocal()
    try:
        project = _project(db)
        document = Document(company_id=1, customer_id=project.customer_id)
        db.add(document)
        db.flush()

        for _ in range(2):
            db.add(
                DocumentLine(
                    document_id=document.id,
                    line_number=1,
                    description="Line",
                    unit_price=Decimal("1.00"),
                    tax_rate="zero",
                    subtotal=Decimal("1.00"),
                    tax_amount=Decimal("0.00"),
                    total=Decimal("1.00"),
                )
            )

        with pytest.raises(IntegrityError):
            db.commit()
    finally:
        db.rollback()
        db.close()
