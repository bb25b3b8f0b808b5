from datetime import date
from decimal import Decimal

import pytest

from billing.services.errors import NothingToInvoice, ValidationFailure
from billing.services.invoice_builder import GroupBy, build_lines, summarize_lines
from billing.services.money import TaxRate
from billing.services.unbilled_service import UnbilledExpense, UnbilledTimeEntry


def _entry(entry_id, hours, *, rate="100", project_id="p1", name="Website", code="WEB", day=1, description=None):
    return UnbilledTimeEntry(
        id=entry_id,
        project_id=project_id,
        project_name=name,
        project_code=code,
        customer_id="c1",
        customer_name="Acme",
        date=date(2024, 3, day),
        hours=Decimal(hours),
        description=description,
        hourly_rate=Decimal(rate),
        is_billable=True,
    )


def _expense(expense_id, amount, tax_amount, *, tax_rate="standard_20", merchant=None, category="materials",
             description=None, project_id=None):
    return UnbilledExpense(
        id=expense_id,
        project_id=project_id,
        project_name=None,
        project_code=None,
        customer_id=None,
        customer_name=None,
        date=date(2024, 3, 1),
        amount=Decimal(amount),
        tax_rate=tax_rate,
        tax_amount=Decimal(tax_amount),
        category=category,
        description=description,
        merchant=merchant,
        is_reimbursable=True,
    )


def test_project_grouping_scenario_3h_plus_2h():
    lines = build_lines(
        [_entry("t1", "3"), _entry("t2", "2", day=2)],
        [],
        tax_rate=TaxRate.STANDARD_20,
        group_by=GroupBy.PROJECT,
    )

    assert len(lines) == 1
    line = lines[0]
    assert line.description == "Website (WEB) - 5.00 hours"
    assert line.quantity == Decimal("5")
    assert line.unit == "hours"
    assert line.subtotal == Decimal("500.00")
    assert line.tax_amount == Decimal("100.00")
    assert line.total == Decimal("600.00")
    assert line.time_entry_ids == ["t1", "t2"]
    assert line.expense_ids is None

    totals = summarize_lines(lines)
    assert totals.subtotal == Decimal("500.00")
    assert totals.tax_amount == Decimal("100.00")
    assert totals.total == Decimal("600.00")
    assert totals.tax_breakdown == {"standard_20": Decimal("100.00")}
    assert totals.project_id == "p1"


def test_entry_grouping_same_totals_two_lines():
    lines = build_lines(
        [_entry("t1", "3", description="Design"), _entry("t2", "2", day=2)],
        [],
        tax_rate=TaxRate.STANDARD_20,
        group_by="entry",
    )

    assert [line.description for line in lines] == [
        "Website - 2024-03-01 - Design",
        "Website - 2024-03-02 - Work performed",
    ]
    assert [line.time_entry_ids for line in lines] == [["t1"], ["t2"]]

    totals = summarize_lines(lines)
    assert totals.subtotal == Decimal("500.00")
    assert totals.tax_amount == Decimal("100.00")
    assert totals.total == Decimal("600.00")
    assert totals.tax_breakdown == {"standard_20": Decimal("100.00")}


def test_summary_grouping_description():
    lines = build_lines([_entry("t1", "1")], [], tax_rate=TaxRate.STANDARD_20, group_by="summary")
    assert lines[0].description == "Professional Services - Website"


def test_group_uses_first_entry_rate():
    lines = build_lines(
        [_entry("t1", "1", rate="80"), _entry("t2", "1", rate="120", day=2)],
        [],
        tax_rate=TaxRate.ZERO,
    )
    assert lines[0].unit_price == Decimal("80")
    assert lines[0].subtotal == Decimal("160.00")


def test_every_entry_lands_in_exactly_one_line():
    entries = [
        _entry("t1", "1", project_id="p1"),
        _entry("t2", "2", project_id="p2", name="App", code="APP"),
        _entry("t3", "3", project_id="p1", day=3),
    ]
    lines = build_lines(entries, [], tax_rate=TaxRate.STANDARD_20)

    # projects in order of first appearance
    assert [line.project_id for line in lines] == ["p1", "p2"]
    collected = [tid for line in lines for tid in line.time_entry_ids]
    assert sorted(collected) == ["t1", "t2", "t3"]
    assert len(collected) == len(set(collected))
    assert summarize_lines(lines).project_id is None


def test_expense_lines_follow_time_lines_and_keep_their_tax():
    lines = build_lines(
        [_entry("t1", "1")],
        [
            _expense("e1", "50.00", "5.00", tax_rate="reduced_10", merchant="Hornbach", description="Cables"),
            _expense("e2", "20.00", "0.00", tax_rate="zero"),
        ],
        tax_rate=TaxRate.STANDARD_20,
    )

    assert [line.unit for line in lines] == ["hours", "flat", "flat"]
    expense_line = lines[1]
    assert expense_line.description == "Expense: Hornbach - Cables"
    assert expense_line.quantity == Decimal("1")
    assert expense_line.unit_price == Decimal("50.00")
    assert expense_line.tax_rate == "reduced_10"
    assert expense_line.tax_amount == Decimal("5.00")
    assert expense_line.total == Decimal("55.00")
    assert expense_line.expense_ids == ["e1"]
    assert expense_line.time_entry_ids is None
    assert lines[2].description == "Expense: materials"


def test_totals_identity_and_breakdown_completeness():
    lines = build_lines(
        [_entry("t1", "1.5", rate="99.99"), _entry("t2", "0.25", rate="70", project_id="p2")],
        [
            _expense("e1", "12.34", "1.23", tax_rate="reduced_10"),
            _expense("e2", "8.00", "0.00", tax_rate="zero"),
        ],
        tax_rate=TaxRate.STANDARD_20,
    )
    totals = summarize_lines(lines)

    assert totals.subtotal == sum(line.subtotal for line in lines)
    assert totals.tax_amount == sum(line.tax_amount for line in lines)
    assert totals.total == totals.subtotal + totals.tax_amount
    for line in lines:
        assert line.total == line.subtotal + line.tax_amount

    assert sum(totals.tax_breakdown.values()) == totals.tax_amount
    assert set(totals.tax_breakdown) == {"standard_20", "reduced_10"}


def test_reverse_charge_lines_carry_no_tax():
    lines = build_lines([_entry("t1", "3"), _entry("t2", "2")], [], tax_rate=TaxRate.REVERSE_CHARGE)
    totals = summarize_lines(lines)

    assert lines[0].tax_rate == "reverse_charge"
    assert totals.tax_amount == Decimal("0.00")
    assert totals.total == Decimal("500.00")
    assert totals.tax_breakdown == {}


def test_subtotal_rounds_half_up():
    # 1.25h * 10.02 = 12.525
    lines = build_lines([_entry("t1", "1.25", rate="10.02")], [], tax_rate=TaxRate.ZERO)
    assert lines[0].subtotal == Decimal("12.53")


def test_empty_selection_rejected():
    with pytest.raises(NothingToInvoice):
        build_lines([], [], tax_rate=TaxRate.STANDARD_20)


def test_unknown_group_by_rejected():
    with pytest.raises(ValidationFailure):
        build_lines([_entry("t1", "1")], [], tax_rate=TaxRate.STANDARD_20, group_by="customer")
