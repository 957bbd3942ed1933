"""
Authentication and authorization.

Layout:
1. jwt          - session tokens and password hashing
2. capabilities - platform permissions and memorial actions
3. access       - memorial permission resolver + visibility gate
4. context      - bearer token -> user pipeline, AuthContext
5. policies     - FastAPI dependencies (require_auth, optional_auth, ...)
6. routes       - /api/auth endpoints

Only the first three are re-exported here; context, policies and routes
depend on the service layer and are imported from their modules.
"""

from inmemorial.auth.jwt import (
    TokenPayload,
    TokenExpiredError,
    TokenInvalidError,
    issue_token,
    decode_token,
    hash_password,
    verify_password,
)
from inmemorial.auth.capabilities import (
    MemorialAction,
    Permission,
)
from inmemorial.auth.access import (
    Decision,
    MemorialAccessPolicy,
)

__all__ = [
    # Tokens
    "TokenPayload",
    "TokenExpiredError",
    "TokenInvalidError",
    "issue_token",
    "decode_token",
    # Passwords
    "hash_password",
    "verify_password",
    # Types
    "MemorialAction",
    "Permission",
    # Access
    "Decision",
    "MemorialAccessPolicy",
]
