"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The only auth method is the Authorization: Bearer <token> header. The header
is handed verbatim to auth.gate.AuthGate, which owns every decision; this
module only reaches the gate on app.state and threads the resulting Identity
into handlers as a typed parameter.

get_identity() is the hard variant: any rejection becomes a 401 through the
BlogError handler registered in api/main.py.
get_current_user() additionally loads the full User for handlers that render
profile data.

Layer rule: auth/dependencies.py may import from fastapi because it is part of
the FastAPI dependency injection system. No imports from api/ or blog/.
"""

from __future__ import annotations

from fastapi import Depends, Request

from auth.gate import AuthGate
from auth.models import Identity, User
from auth.service import UserService


def get_identity(request: Request) -> Identity:
    """Require a valid, fresh bearer token. Returns the caller's Identity.

    Use as a FastAPI dependency:
        @router.post("/posts")
        def route(identity: Identity = Depends(get_identity)): ...

    The identity is also kept on request.state.identity for middleware that
    runs after the handler (e.g. request logging).
    """
    gate: AuthGate = request.app.state.auth_gate
    identity = gate.authenticate(request.headers.get("Authorization"))
    request.state.identity = identity
    return identity


def get_current_user(request: Request, identity: Identity = Depends(get_identity)) -> User:
    """Require authentication and return the caller's current User record."""
    users: UserService = request.app.state.users
    return users.get_profile(identity.user_id)
