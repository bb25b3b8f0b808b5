import os

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from billing.core.authorization import Role
from billing.services.auth_service import JWT_EXP_HOURS, create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])

_TOKEN_ENVIRONMENTS = {"dev", "local", "test"}


class TokenRequest(BaseModel):
    user_id: str
    company_id: int
    role: Role = Role.EMPLOYEE


def _token_issuing_enabled() -> bool:
    return os.getenv("ENV", "dev").lower() in _TOKEN_ENVIRONMENTS


@router.post("/token")
def issue_token(payload: TokenRequest):
    """Development-only token minting; production tokens come from the identity provider."""
    if not _token_issuing_enabled():
        raise HTTPException(status_code=404, detail="Not Found")

    try:
        token = create_access_token(payload.user_id, payload.company_id, role=payload.role.value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": JWT_EXP_HOURS * 3600,
    }
