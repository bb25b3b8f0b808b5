from enum import Enum

from fastapi import Depends, HTTPException, Request

from billing.core.tenant import TenantContext
from billing.deps.auth import require_auth


class Role(Enum):
    SUPERADMIN = "SUPERADMIN"
    ACCOUNTANT = "ACCOUNTANT"
    EMPLOYEE = "EMPLOYEE"


_RANK = {
    Role.EMPLOYEE: 1,
    Role.ACCOUNTANT: 2,
    Role.SUPERADMIN: 3,
}


def _role_from_claims(claims: dict) -> Role:
    claim_role = claims.get("role") or Role.EMPLOYEE.value
    try:
        return Role(str(claim_role).upper())
    except ValueError as exc:
        raise HTTPException(status_code=403, detail="Invalid role claim") from exc


def require_role(role: Role):
    """Dependency factory: authenticated caller with at least `role`, as a TenantContext."""

    def dependency(request: Request, claims: dict = Depends(require_auth)) -> TenantContext:
        user_role = _role_from_claims(claims)

        if _RANK[user_role] < _RANK[role]:
            raise HTTPException(status_code=403, detail="Insufficient role")

        request.state.role = user_role.value
        return TenantContext(
            company_id=claims["company_id"],
            user_id=str(claims["sub"]),
            role=user_role.value,
        )

    return dependency
