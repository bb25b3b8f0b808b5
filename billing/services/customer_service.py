from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from billing.core.tenant import TenantContext
from billing.models.customer import Customer
from billing.models.project import Project
from billing.services.errors import Conflict, NotFound, ValidationFailure
from billing.services.money import TaxRate, round_money

HOME_COUNTRY = "AT"

EU_COUNTRIES = {
    "BE", "BG", "CZ", "DK", "DE", "EE", "IE", "EL", "ES", "FR", "HR", "IT", "CY",
    "LV", "LT", "LU", "HU", "MT", "NL", "PL", "PT", "RO", "SI", "SK", "FI", "SE",
}


def apply_reverse_charge_rules(customer: Customer) -> None:
    """EU B2B customers outside the home country with a VAT number are reverse charged."""
    country = (customer.country or HOME_COUNTRY).upper()
    if country != HOME_COUNTRY and country in EU_COUNTRIES and customer.vat_number:
        customer.reverse_charge = True
        customer.default_tax_rate = TaxRate.REVERSE_CHARGE.value
    elif country == HOME_COUNTRY:
        customer.reverse_charge = False


def create_customer(
    ctx: TenantContext,
    *,
    db: Session,
    name: str,
    vat_number: Optional[str] = None,
    country: str = HOME_COUNTRY,
    tax_exempt: bool = False,
    reverse_charge: bool = False,
    default_tax_rate: str = TaxRate.STANDARD_20.value,
    payment_terms_days: int = 14,
    currency: str = "EUR",
) -> Customer:
    try:
        default_tax_rate = TaxRate(default_tax_rate).value
    except ValueError as exc:
        raise ValidationFailure(f"Invalid tax rate: {default_tax_rate}") from exc

    customer = Customer(
        company_id=int(ctx.company_id),
        name=name,
        vat_number=vat_number or None,
        country=(country or HOME_COUNTRY).upper(),
        tax_exempt=bool(tax_exempt),
        reverse_charge=bool(reverse_charge),
        default_tax_rate=default_tax_rate,
        payment_terms_days=int(payment_terms_days),
        currency=(currency or "EUR").upper(),
        is_active=True,
    )
    apply_reverse_charge_rules(customer)

    db.add(customer)
    db.flush()
    return customer


def create_project(
    ctx: TenantContext,
    *,
    db: Session,
    customer_id: str,
    name: str,
    code: str,
    hourly_rate: Optional[Decimal] = None,
    billing_type: str = "hourly",
) -> Project:
    if billing_type not in {"hourly", "fixed"}:
        raise ValidationFailure(f"Invalid billing type: {billing_type}")

    customer = (
        db.query(Customer)
        .filter(Customer.id == str(customer_id), Customer.company_id == int(ctx.company_id))
        .first()
    )
    if customer is None:
        raise NotFound("Customer not found")

    duplicate = (
        db.query(Project)
        .filter(Project.company_id == int(ctx.company_id), Project.code == code)
        .first()
    )
    if duplicate is not None:
        raise Conflict(f"Project code '{code}' already exists")

    project = Project(
        company_id=int(ctx.company_id),
        customer_id=customer.id,
        name=name,
        code=code,
        hourly_rate=None if hourly_rate is None else round_money(hourly_rate),
        billing_type=billing_type,
        is_active=True,
    )
    db.add(project)
    db.flush()
    return project
