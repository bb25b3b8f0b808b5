"""
Invoice line building.

Pure functions: turn already-selected unbilled time entries and expenses into
invoice line drafts and document totals. No I/O; persistence lives in
invoicing_service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Sequence

from billing.services.errors import NothingToInvoice, ValidationFailure
from billing.services.money import ZERO, TaxRate, compute_tax, round_money, to_decimal


class GroupBy(str, Enum):
    PROJECT = "project"
    SUMMARY = "summary"
    ENTRY = "entry"


@dataclass
class LineDraft:
    description: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    tax_rate: str
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    project_id: Optional[str] = None
    time_entry_ids: Optional[List[str]] = None
    expense_ids: Optional[List[str]] = None


@dataclass
class DocumentTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    tax_breakdown: Dict[str, Decimal] = field(default_factory=dict)
    project_id: Optional[str] = None


def _time_line(
    *,
    description: str,
    hours: Decimal,
    hourly_rate: Decimal,
    tax_rate: TaxRate,
    project_id: Optional[str],
    time_entry_ids: List[str],
) -> LineDraft:
    subtotal = round_money(hours * hourly_rate)
    tax_amount = compute_tax(subtotal, tax_rate)
    return LineDraft(
        description=description,
        quantity=hours,
        unit="hours",
        unit_price=hourly_rate,
        tax_rate=tax_rate.value,
        subtotal=subtotal,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
        project_id=project_id,
        time_entry_ids=time_entry_ids,
    )


def _project_lines(entries: Sequence, tax_rate: TaxRate, group_by: GroupBy) -> List[LineDraft]:
    groups: Dict[str, list] = {}
    for entry in entries:
        groups.setdefault(entry.project_id, []).append(entry)

    lines = []
    for project_id, group in groups.items():
        first = group[0]
        total_hours = sum((to_decimal(e.hours) for e in group), Decimal("0"))
        # the group is billed at the first entry's effective rate
        hourly_rate = to_decimal(first.hourly_rate)

        if group_by == GroupBy.SUMMARY:
            description = f"Professional Services - {first.project_name or 'Various'}"
        else:
            description = (
                f"{first.project_name or 'Project'} ({first.project_code or ''}) - {total_hours:.2f} hours"
            )

        lines.append(
            _time_line(
                description=description,
                hours=total_hours,
                hourly_rate=hourly_rate,
                tax_rate=tax_rate,
                project_id=project_id,
                time_entry_ids=[e.id for e in group],
            )
        )
    return lines


def _entry_lines(entries: Sequence, tax_rate: TaxRate) -> List[LineDraft]:
    return [
        _time_line(
            description=(
                f"{entry.project_name or 'Project'} - {entry.date.isoformat()}"
                f" - {entry.description or 'Work performed'}"
            ),
            hours=to_decimal(entry.hours),
            hourly_rate=to_decimal(entry.hourly_rate),
            tax_rate=tax_rate,
            project_id=entry.project_id,
            time_entry_ids=[entry.id],
        )
        for entry in entries
    ]


def _expense_line(expense) -> LineDraft:
    # expenses keep the tax they were booked with
    amount = round_money(expense.amount)
    tax_amount = round_money(expense.tax_amount)
    label = expense.merchant or expense.category
    suffix = f" - {expense.description}" if expense.description else ""
    return LineDraft(
        description=f"Expense: {label}{suffix}",
        quantity=Decimal("1"),
        unit="flat",
        unit_price=amount,
        tax_rate=TaxRate(expense.tax_rate).value,
        subtotal=amount,
        tax_amount=tax_amount,
        total=amount + tax_amount,
        project_id=expense.project_id,
        expense_ids=[expense.id],
    )


def build_lines(
    time_entries: Sequence,
    expenses: Sequence,
    *,
    tax_rate: TaxRate,
    group_by: GroupBy = GroupBy.PROJECT,
) -> List[LineDraft]:
    """
    Build invoice line drafts.

    Time lines come first, grouped per `group_by`, all taxed at `tax_rate`.
    Each expense becomes its own line afterwards. Input order is preserved.
    """
    if not time_entries and not expenses:
        raise NothingToInvoice()

    try:
        group_by = GroupBy(group_by)
    except ValueError as exc:
        raise ValidationFailure(f"Invalid group_by: {group_by}") from exc

    lines: List[LineDraft] = []
    if time_entries:
        if group_by == GroupBy.ENTRY:
            lines.extend(_entry_lines(time_entries, tax_rate))
        else:
            lines.extend(_project_lines(time_entries, tax_rate, group_by))

    lines.extend(_expense_line(expense) for expense in expenses)
    return lines


def summarize_lines(lines: Sequence[LineDraft]) -> DocumentTotals:
    subtotal = sum((line.subtotal for line in lines), ZERO)
    tax_amount = sum((line.tax_amount for line in lines), ZERO)

    breakdown: Dict[str, Decimal] = {}
    for line in lines:
        if line.tax_amount > 0:
            breakdown[line.tax_rate] = breakdown.get(line.tax_rate, ZERO) + line.tax_amount

    project_ids = {line.project_id for line in lines}
    project_id = None
    if len(project_ids) == 1 and None not in project_ids:
        project_id = project_ids.pop()

    return DocumentTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
        tax_breakdown=breakdown,
        project_id=project_id,
    )
