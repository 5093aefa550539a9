"""
JWT Service — bearer token verification (and issuance for tooling/tests).

Tokens are issued by the external auth provider and signed with a shared
secret.  This service only verifies them; ``generate_access_token`` exists
for local tooling and the test-suite.

Algorithm: HS256

Token payload:
{
    "sub": <user_id>,            # users.id
    "email": <email>,            # optional
    "aud": <JWT_AUDIENCE>,       # verified only when JWT_AUDIENCE is configured
    "iat": <issued_at>,
    "exp": <expires_at>
}
"""

from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app


# ─── Defaults ────────────────────────────────────────────────
DEFAULT_ACCESS_EXPIRES = 3600      # 1 hour
ALGORITHM = "HS256"


def _get_secret():
    """Get the JWT secret key from app config."""
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def _get_audience():
    return current_app.config.get("JWT_AUDIENCE")


# ═══════════════════════════════════════════════════════════════
# Token Generation
# ═══════════════════════════════════════════════════════════════
def generate_access_token(user_id: str, email: str | None = None, expires_in: int = DEFAULT_ACCESS_EXPIRES) -> str:
    """Generate an access token the way the auth provider does."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
    }
    if email:
        payload["email"] = email
    audience = _get_audience()
    if audience:
        payload["aud"] = audience
    return jwt.encode(payload, _get_secret(), algorithm=ALGORITHM)


# ═══════════════════════════════════════════════════════════════
# Token Verification
# ═══════════════════════════════════════════════════════════════
def decode_access_token(token: str) -> dict:
    """
    Decode and verify a bearer token.

    Returns the payload dict on success.
    Raises jwt.exceptions on failure (ExpiredSignatureError, InvalidTokenError, etc.)
    """
    audience = _get_audience()
    return jwt.decode(
        token,
        _get_secret(),
        algorithms=[ALGORITHM],
        audience=audience,
        options={"require": ["sub", "exp"], "verify_aud": bool(audience)},
    )
