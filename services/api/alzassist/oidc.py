from __future__ import annotations

from typing import Any, Dict

import requests
from cachetools import TTLCache
from jose import jwt

_jwks_cache = TTLCache(maxsize=16, ttl=600)

def get_jwks(jwks_url: str) -> Dict[str, Any]:
    if jwks_url in _jwks_cache:
        return _jwks_cache[jwks_url]
    r = requests.get(jwks_url, timeout=5)
    r.raise_for_status()
    data = r.json()
    _jwks_cache[jwks_url] = data
    return data

def select_key(jwks: Dict[str, Any], kid: str | None) -> Dict[str, Any]:
    keys = jwks.get("keys", [])
    if not keys:
        raise ValueError("jwks_empty")
    for k in keys:
        if k.get("kid") == kid:
            return k
    if kid is None and len(keys) == 1:
        return keys[0]
    raise ValueError("jwks_kid_not_found")

def decode_oidc(token: str, issuer: str, audience: str, jwks_url: str) -> Dict[str, Any]:
    header = jwt.get_unverified_header(token)
    alg = header.get("alg", "RS256")
    if alg not in ("RS256", "ES256"):
        raise ValueError(f"unsupported_alg:{alg}")
    key = select_key(get_jwks(jwks_url), header.get("kid"))
    return jwt.decode(token, key, algorithms=[alg], issuer=issuer, audience=audience)
