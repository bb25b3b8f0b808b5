import os
from datetime import datetime, timedelta, timezone

import jwt

JWT_ALGORITHM = "HS256"
JWT_EXP_HOURS = 8
_MIN_SECRET_LENGTH = 32
_REQUIRED_CLAIMS = ("sub", "company_id", "exp")


def _signing_key() -> str:
    secret = os.getenv("JWT_SECRET") or ""
    if not secret:
        raise ValueError("JWT_SECRET is required")
    if len(secret) < _MIN_SECRET_LENGTH:
        raise ValueError(f"JWT_SECRET must be at least {_MIN_SECRET_LENGTH} characters")
    return secret


def create_access_token(user_id: str, company_id: int, role: str = "EMPLOYEE") -> str:
    """Sign a bearer token for one user acting inside one company."""
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "company_id": int(company_id),
        "role": str(role).upper(),
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=JWT_EXP_HOURS),
    }
    return jwt.encode(claims, _signing_key(), algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    key = _signing_key()
    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=[JWT_ALGORITHM],
            options={"require": list(_REQUIRED_CLAIMS)},
        )
    except jwt.ExpiredSignatureError as exc:
        raise ValueError("Token expired") from exc
    except jwt.PyJWTError as exc:
        raise ValueError("Invalid token") from exc

    try:
        claims["company_id"] = int(claims["company_id"])
    except (TypeError, ValueError) as exc:
        raise ValueError("Invalid token claims") from exc

    return claims
