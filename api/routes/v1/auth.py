"""
api/routes/v1/auth.py -- Registration, login and account REST endpoints.

Routes:
  POST  /api/v1/register         -- create an account; 201
  POST  /api/v1/login            -- password login; returns a bearer token
  GET   /api/v1/profile          -- current user (requires auth)
  PATCH /api/v1/profile          -- update names / email (requires auth)
  POST  /api/v1/change-password  -- replace password; returns a fresh token (requires auth)

Security:
  Credential-accepting routes are rate-limited per IP (LOGIN_RATE_LIMIT).
  UserService.authenticate() provides timing equalization -- never inline
  get_by_username() + verify_password() here.
  Cache-Control: no-store on every response that carries a token or a password.
  A password change advances the account's epoch, so every token issued
  before it is rejected by the auth gate from then on.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import limiter, login_rate_limit
from api.models import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    ProfilePatch,
    RegisterRequest,
    UserResponse,
)
from auth.dependencies import get_current_user, get_identity
from auth.models import Identity, User
from auth.service import UserService

# Auth policy:
# - POST  /api/v1/register:         public -- creating an account needs no prior auth
# - POST  /api/v1/login:            public -- login endpoint must be unauthenticated
# - GET   /api/v1/profile:          requires auth (get_current_user)
# - PATCH /api/v1/profile:          requires auth (get_identity); caller edits only itself
# - POST  /api/v1/change-password:  requires auth (get_identity) + current password
router = APIRouter()


def _no_store(response: Response) -> None:
    response.headers["Cache-Control"] = "no-store"


def _login_response(request: Request, token: str, user: User) -> LoginResponse:
    return LoginResponse(
        access_token=token,
        token_type="bearer",  # noqa: S106 # nosec B106 -- token type label, not a password
        expires_in=request.app.state.tokens.expire_seconds,
        user=UserResponse.from_user(user),
    )


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(login_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/register", response_model=UserResponse, status_code=201)
def register(request: Request, body: RegisterRequest, response: Response) -> UserResponse:
    """Create an account.

    Uniqueness of username and email is checked before the password rules,
    so a taken username answers 409 even when the password is also too short.
    """
    users: UserService = request.app.state.users
    user = users.register(
        username=body.username,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    _no_store(response)
    return UserResponse.from_user(user)


@limiter.limit(login_rate_limit)
@router.post("/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest, response: Response) -> LoginResponse:
    """Authenticate with username and password; return a bearer token.

    Wrong username and wrong password produce the same 401
    ("invalid_credentials") so the response never reveals which accounts exist.
    """
    users: UserService = request.app.state.users
    token, user = users.login(body.username, body.password)
    _no_store(response)
    return _login_response(request, token, user)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/profile", response_model=UserResponse)
def profile(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the account behind the presented token."""
    return UserResponse.from_user(current_user)


@router.patch("/profile", response_model=UserResponse)
def update_profile(
    request: Request,
    body: ProfilePatch,
    identity: Identity = Depends(get_identity),
) -> UserResponse:
    users: UserService = request.app.state.users
    user = users.update_profile(
        identity.user_id,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
    )
    return UserResponse.from_user(user)


@limiter.limit(login_rate_limit)
@router.post("/change-password", response_model=LoginResponse)
def change_password(
    request: Request,
    body: ChangePasswordRequest,
    response: Response,
    identity: Identity = Depends(get_identity),
) -> LoginResponse:
    """Replace the caller's password and hand back a token for the new epoch.

    The token used for this very request becomes stale as soon as the call
    returns; clients must switch to the one in the response.
    """
    users: UserService = request.app.state.users
    user = users.change_password(identity.user_id, body.current_password, body.new_password)
    token = users.tokens.issue_token(user.id, user.password_changed_at)
    _no_store(response)
    return _login_response(request, token, user)
