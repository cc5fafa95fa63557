"""Supabase session verification.

Usage in routes::

    from teamboard.auth.supabase_auth import AuthUser, get_current_user

    def current_user(request: Request, store: SupabaseStore = Depends(get_store)) -> AuthUser:
        return get_current_user(request, store)

The store is resolved from configuration first, so a missing configuration
fails the request before any token is looked at.
"""

from dataclasses import dataclass

from fastapi import Request

from teamboard.errors import AuthenticationError
from teamboard.persistence.supabase_store import SupabaseStore


@dataclass
class AuthUser:
    uid: str
    email: str


def bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        raise AuthenticationError("Unauthorized", details="Missing Authorization header")
    token = header[7:].strip()
    if not token:
        raise AuthenticationError("Unauthorized", details="Empty bearer token")
    return token


def verify_session(store: SupabaseStore, access_token: str) -> AuthUser:
    """Resolve an access token to the AuthUser it belongs to."""
    user = store.get_user(access_token)
    if not user or not user.get("id"):
        raise AuthenticationError("Unauthorized", details="Invalid or expired session")
    return AuthUser(uid=user["id"], email=user.get("email") or "")


def get_current_user(request: Request, store: SupabaseStore) -> AuthUser:
    """Extract and verify the Supabase token from the Authorization header.

    Raises AuthenticationError (401) if missing / invalid.
    """
    return verify_session(store, bearer_token(request))
