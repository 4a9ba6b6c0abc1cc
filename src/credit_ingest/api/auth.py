"""Simple token-based auth helpers for the credit_ingest API (prototype)."""

from typing import Dict, Optional

from fastapi import Header, HTTPException, status

from credit_ingest.settings import get_settings

# Minimal token -> user mapping for prototype.
# In production, use a proper identity provider.
_API_TOKENS = {
    "dev-analyst-token": {"username": "analyst_1", "role": "analyst"},
    "dev-admin-token": {"username": "admin", "role": "admin"},
}


def _resolve_user(token: str) -> Optional[Dict[str, str]]:
    user = _API_TOKENS.get(token)
    if user:
        return user
    if token == get_settings().api.key:
        return {"username": "api", "role": "analyst"}
    return None


def require_token(x_api_key: Optional[str] = Header(None)) -> Dict[str, str]:
    """Validate API key header and return user info.

    Args:
        x_api_key: Value of the `X-API-KEY` header.

    Returns:
        dict: user info with 'username' and 'role'.

    Raises:
        HTTPException: 401 if missing, 403 if unknown.
    """
    if not x_api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-API-KEY")
    user = _resolve_user(x_api_key)
    if not user:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid API key")
    return user
