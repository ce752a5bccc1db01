"""
RS256 access tokens.

Members sign in through the portal's login provider, which issues the access
token; this service only verifies it. ``sub`` carries the user id and
``roles`` mirrors ``users.roles`` at issue time (the database stays
authoritative).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Literal

import jwt

from zeclub.config import get_settings

KeyKind = Literal["private", "public"]

_keys: dict[str, str] = {}


def _read_key(kind: KeyKind) -> str:
    """PEM text of the private (signing) or public (verification) key, read once."""
    if kind not in _keys:
        settings = get_settings()
        path = settings.jwt_private_key_path if kind == "private" else settings.jwt_public_key_path
        _keys[kind] = Path(path).read_text()
    return _keys[kind]


def reset_keys() -> None:
    """Forget the cached keys so the next call re-reads the configured paths."""
    _keys.clear()


def create_access_token(user_id: int, roles: list[str] | None = None) -> str:
    """
    Sign a token shaped like the login provider's.

    Only tooling and tests mint tokens here; production tokens come from the
    provider and share its key pair.

    Args:
        user_id: Database id of the member, stored as ``sub``.
        roles: Role names to embed. Defaults to ``["user"]``.
    """
    settings = get_settings()
    issued_at = datetime.now(timezone.utc)
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "roles": roles or ["user"],
        "type": "access",
        "iss": settings.jwt_issuer,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.jwt_access_token_expire_minutes),
    }
    return jwt.encode(claims, _read_key("private"), algorithm=settings.jwt_algorithm)


def verify_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """
    Decode ``token`` after checking signature, issuer, expiry and type.

    Tokens without a ``type`` claim are accepted as ``expected_type``.

    Raises:
        jwt.InvalidTokenError: with a message suitable for a 401 ``detail``.
    """
    settings = get_settings()
    try:
        claims: dict[str, Any] = jwt.decode(
            token,
            _read_key("public"),
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    token_type = claims.get("type", expected_type)
    if token_type != expected_type:
        msg = f"Expected token type '{expected_type}', got '{token_type}'"
        raise jwt.InvalidTokenError(msg)
    return claims
