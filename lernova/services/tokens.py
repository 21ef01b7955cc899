import jwt

from lernova.config import settings
from lernova.schemas.tokens import CustomerIdentity, TokenError


def decode_access_token(token: str) -> CustomerIdentity:
    payload = _decode_token(token)
    subject = payload.get("sub")
    if not subject:
        raise TokenError("Token subject is missing")
    metadata = payload.get("user_metadata") or {}
    return CustomerIdentity(
        user_id=str(subject),
        email=payload.get("email") or None,
        phone=payload.get("phone") or metadata.get("phone") or None,
        full_name=metadata.get("full_name") or None,
    )


def parse_bearer(authorization: str | None) -> str:
    if not authorization:
        raise TokenError("No authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise TokenError("Invalid Authorization header")
    return token.strip()


def _decode_token(token: str) -> dict:
    if not token:
        raise TokenError("Token is missing")
    if not settings.jwt_secret:
        raise TokenError("JWT secret is not configured")
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience or None,
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenError("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise TokenError("Unauthorized") from exc
