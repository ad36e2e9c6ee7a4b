from __future__ import annotations

from typing import Optional

from cachetools import TTLCache

SM_PREFIX = "sm://"

_cache = TTLCache(maxsize=64, ttl=300)

def is_secret_ref(v: str) -> bool:
    return v.startswith(SM_PREFIX)

def secret_resource_name(ref: str) -> str:
    """Turn ``sm://projects/<p>/secrets/<s>/versions/<v>`` into the Secret Manager resource name."""
    parts = ref[len(SM_PREFIX):].strip("/").split("/")
    if len(parts) != 6 or parts[0] != "projects" or parts[2] != "secrets" or parts[4] != "versions":
        raise ValueError("invalid secret ref, expected sm://projects/<p>/secrets/<s>/versions/<v>")
    if not all(parts[i] for i in (1, 3, 5)):
        raise ValueError("invalid secret ref, empty path segment")
    return "/".join(parts)

def resolve_secret(value_or_ref: Optional[str]) -> Optional[str]:
    """Return plain values untouched; fetch ``sm://`` refs once and cache them."""
    if value_or_ref is None:
        return None
    v = value_or_ref.strip()
    if not v or not is_secret_ref(v):
        return v

    if v in _cache:
        return _cache[v]

    from google.cloud import secretmanager

    client = secretmanager.SecretManagerServiceClient()
    resp = client.access_secret_version(name=secret_resource_name(v))
    secret = resp.payload.data.decode("utf-8")
    _cache[v] = secret
    return secret
