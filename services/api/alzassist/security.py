from __future__ import annotations
from typing import Any, Dict
from jose import jwt, JWTError
from alzassist.config import settings

class TokenError(Exception):
    pass

def decode_token(token: str) -> Dict[str, Any]:
    """Verify an HS256 access token issued by the identity provider."""
    options = {"verify_iss": settings.auth_jwt_issuer is not None}
    try:
        claims = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=["HS256"],
            audience=settings.auth_jwt_audience,
            issuer=settings.auth_jwt_issuer,
            options=options,
        )
    except JWTError as e:
        raise TokenError(str(e)) from e
    if not claims.get("sub"):
        raise TokenError("token has no subject")
    return claims

def verify_bearer(token: str) -> Dict[str, Any]:
    """Return ``{"sub", "email"}`` for a valid token, trying HS256 then OIDC."""
    try:
        claims = decode_token(token)
    except TokenError:
        if not settings.oidc_enabled:
            raise
        from alzassist.oidc import decode_oidc
        try:
            claims = decode_oidc(token, issuer=settings.oidc_issuer, audience=settings.oidc_audience, jwks_url=settings.oidc_jwks_url)
        except Exception as e:
            raise TokenError(str(e)) from e
        if not claims.get("sub"):
            raise TokenError("token has no subject")
    return {"sub": claims["sub"], "email": claims.get("email")}
