from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from billing.core.tenant import TenantContext
from billing.services import unbilled_service
from billing.services.errors import SelectionReadFailure, ValidationFailure
from billing.services.unbilled_service import (
    compute_unbilled_summary,
    get_customer_unbilled_summary,
    get_projects_with_unbilled_items,
    get_unbilled_expenses,
    get_unbilled_items_for_project_month,
    get_unbilled_time_entries,
    parse_year_month,
)


def test_only_approved_billable_unlinked_entries_are_selected(
    db, ctx, customer_factory, project_factory, time_entry_factory
):
    customer = customer_factory()
    project = project_factory(customer.id)

    eligible = time_entry_factory(project.id)
    time_entry_factory(project.id, status="submitted")
    time_entry_factory(project.id, status="draft")
    time_entry_factory(project.id, is_billable=False)
    time_entry_factory(project.id, status="invoiced")

    other_customer = customer_factory(company_id=2)
    other_project = project_factory(other_customer.id, company_id=2)
    time_entry_factory(other_project.id, company_id=2)

    rows = get_unbilled_time_entries(ctx, db=db)

    assert [r.id for r in rows] == [eligible.id]
    assert rows[0].customer_name == "Acme GmbH"
    assert rows[0].project_code == project.code


def test_effective_rate_falls_back_to_project_rate(db, ctx, customer_factory, project_factory, time_entry_factory):
    customer = customer_factory()
    project = project_factory(customer.id, hourly_rate=Decimal("90.00"))
    time_entry_factory(project.id, hourly_rate=None, date=date(2024, 3, 1))
    time_entry_factory(project.id, hourly_rate=Decimal("110.00"), date=date(2024, 3, 2))

    rows = get_unbilled_time_entries(ctx, db=db)

    # newest first
    assert [r.hourly_rate for r in rows] == [Decimal("110.00"), Decimal("90.00")]


def test_customer_filter(db, ctx, customer_factory, project_factory, time_entry_factory):
    acme = customer_factory()
    globex = customer_factory(name="Globex")
    acme_entry = time_entry_factory(project_factory(acme.id).id)
    time_entry_factory(project_factory(globex.id).id)

    rows = get_unbilled_time_entries(ctx, db=db, customer_id=acme.id)

    assert [r.id for r in rows] == [acme_entry.id]


def test_expense_eligibility(db, ctx, customer_factory, project_factory, expense_factory):
    customer = customer_factory()
    project = project_factory(customer.id)

    with_project = expense_factory(project_id=project.id)
    without_project = expense_factory(date=date(2024, 3, 10))
    expense_factory(status="submitted")
    expense_factory(is_reimbursable=False)
    expense_factory(export_id="export-1")
    expense_factory(company_id=2)

    rows = get_unbilled_expenses(ctx, db=db)

    assert {r.id for r in rows} == {with_project.id, without_project.id}
    by_id = {r.id: r for r in rows}
    assert by_id[with_project.id].customer_id == customer.id
    assert by_id[without_project.id].project_name is None


def test_linked_entry_is_never_selected_again(db, ctx, customer_factory, project_factory, time_entry_factory):
    from billing.services.invoicing_service import create_invoice_from_entries

    customer = customer_factory()
    entry = time_entry_factory(project_factory(customer.id).id)

    result = create_invoice_from_entries(ctx, customer.id, [entry.id], [], db=db)
    assert result.success, result.error

    assert get_unbilled_time_entries(ctx, db=db) == []


def test_project_month_window_is_inclusive(db, ctx, customer_factory, project_factory, time_entry_factory,
                                           expense_factory):
    customer = customer_factory()
    project = project_factory(customer.id)
    first = time_entry_factory(project.id, date=date(2024, 2, 1))
    last = time_entry_factory(project.id, date=date(2024, 2, 29))
    time_entry_factory(project.id, date=date(2024, 1, 31))
    time_entry_factory(project.id, date=date(2024, 3, 1))
    expense = expense_factory(project_id=project.id, date=date(2024, 2, 10))
    expense_factory(date=date(2024, 2, 10))

    items = get_unbilled_items_for_project_month(ctx, project.id, "2024-02", db=db)

    assert [e.id for e in items["time_entries"]] == [last.id, first.id]
    assert [e.id for e in items["expenses"]] == [expense.id]
    summary = items["summary"]
    assert summary.total_hours == Decimal("4.00")
    assert summary.total_time_value == Decimal("400.00")
    assert summary.total_expenses == Decimal("60.00")
    assert summary.estimated_total == Decimal("460.00")


@pytest.mark.parametrize("value", ["2024-13", "2024-00", "0000-01", "2024-1", "March", "", None])
def test_invalid_year_month_rejected(value):
    with pytest.raises(ValidationFailure):
        parse_year_month(value)


def test_parse_year_month_bounds():
    assert parse_year_month("2023-02") == (date(2023, 2, 1), date(2023, 2, 28))
    assert parse_year_month("2024-12") == (date(2024, 12, 1), date(2024, 12, 31))


def test_summary_rounds_each_entry():
    entries = [
        unbilled_service.UnbilledTimeEntry(
            id=f"t{i}",
            project_id="p1",
            project_name="Website",
            project_code="WEB",
            customer_id="c1",
            customer_name="Acme",
            date=date(2024, 3, 1),
            hours=Decimal("0.25"),
            description=None,
            hourly_rate=Decimal("10.02"),
            is_billable=True,
        )
        for i in range(2)
    ]

    summary = compute_unbilled_summary(entries, [])

    # 0.25 * 10.02 = 2.505 -> 2.51 per entry
    assert summary.total_time_value == Decimal("5.02")
    assert summary.total_hours == Decimal("0.50")
    assert summary.project_count == 1


def test_customer_unbilled_summary(db, ctx, customer_factory, project_factory, time_entry_factory, expense_factory):
    customer = customer_factory()
    p1 = project_factory(customer.id)
    p2 = project_factory(customer.id, hourly_rate=Decimal("50.00"))
    time_entry_factory(p1.id, hours=Decimal("3.00"))
    time_entry_factory(p2.id, hours=Decimal("1.00"))
    expense_factory(project_id=p1.id)

    summary = get_customer_unbilled_summary(ctx, customer.id, db=db)

    assert summary.total_hours == Decimal("4.00")
    assert summary.total_time_value == Decimal("350.00")
    assert summary.total_expenses == Decimal("60.00")
    assert summary.project_count == 2


def test_projects_with_unbilled_items(db, ctx, customer_factory, project_factory, time_entry_factory, expense_factory):
    customer = customer_factory()
    small = project_factory(customer.id, name="Small", code="SM")
    big = project_factory(customer.id, name="Big", code="BG")
    project_factory(customer.id, name="Idle", code="ID")

    time_entry_factory(small.id, hours=Decimal("1.00"))
    time_entry_factory(big.id, hours=Decimal("4.00"), date=date(2024, 1, 5))
    time_entry_factory(big.id, hours=Decimal("2.50"), date=date(2024, 3, 5))
    expense_factory(project_id=small.id, date=date(2024, 2, 1))

    rows = get_projects_with_unbilled_items(ctx, db=db)

    assert [r["project_id"] for r in rows] == [big.id, small.id]
    assert rows[0]["label"] == "Big (BG)"
    assert rows[0]["unbilled_hours"] == Decimal("6.50")
    assert rows[0]["unbilled_months"] == ["2024-03", "2024-01"]
    assert rows[1]["unbilled_expense_count"] == 1
    assert rows[1]["unbilled_months"] == ["2024-03", "2024-02"]


def test_read_failure_surfaces_as_selection_error():
    ctx = TenantContext(company_id=1, user_id="admin", role="SUPERADMIN")

    class _BrokenQuery:
        def all(self):
            raise OperationalError("SELECT 1", {}, Exception("connection lost"))

        def first(self):
            raise OperationalError("SELECT 1", {}, Exception("connection lost"))

    with pytest.raises(SelectionReadFailure):
        unbilled_service.fetch_rows("time entries", ctx, _BrokenQuery())

    with pytest.raises(SelectionReadFailure, match="Could not load customer"):
        unbilled_service.fetch_first("customer", ctx, _BrokenQuery())
