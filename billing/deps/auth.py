from fastapi import HTTPException, Request

from billing.services.auth_service import verify_token

COMPANY_HEADER = "X-Company-Id"


def _bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization")
    if not header:
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    scheme, _, token = header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Invalid Authorization header")
    return token


def _requested_company(request: Request) -> int:
    raw = request.headers.get(COMPANY_HEADER)
    if raw is None:
        raise HTTPException(status_code=403, detail=f"Missing {COMPANY_HEADER} header")
    try:
        return int(raw)
    except ValueError as exc:
        raise HTTPException(status_code=403, detail=f"Invalid {COMPANY_HEADER} header") from exc


def require_auth(request: Request) -> dict:
    """
    Validate the bearer token and the company header.

    The header must name the company the token was issued for. Returns the
    token claims; user and company are also put on request.state for logging.
    """
    try:
        claims = verify_token(_bearer_token(request))
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    if _requested_company(request) != claims["company_id"]:
        raise HTTPException(status_code=403, detail="Company mismatch")

    request.state.user_id = str(claims["sub"])
    request.state.company_id = claims["company_id"]
    return claims
