from dataclasses import dataclass


@dataclass(frozen=True)
class TenantContext:
    """Who is acting, and in which company. Every data access is scoped by company_id."""

    company_id: int
    user_id: str
    role: str = "EMPLOYEE"
