"""
API request and response models for the blog REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
blog/models.py, which own the internal domain representation. Route handlers
map between the two.

Length rules for passwords, titles and content are NOT repeated here: the
domain validators are the single choke point and answer 400 with a specific
error code. The bounds below only cap payload size.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User
from blog.models import Post
from blog.service import PostPage

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/register.

    No whitespace stripping: it would silently change the password.
    """

    username: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=320, pattern=EMAIL_PATTERN)
    password: str = Field(max_length=1024)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/login."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=1024)


class ChangePasswordRequest(BaseModel):
    """Request body for POST /api/v1/change-password."""

    current_password: str = Field(min_length=1, max_length=1024)
    new_password: str = Field(max_length=1024)


class ProfilePatch(BaseModel):
    """Request body for PATCH /api/v1/profile. Omitted fields are left unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=320, pattern=EMAIL_PATTERN)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of an account. The password hash is never part of it."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    is_active: bool
    created_at: str
    password_changed_at: str
    last_login: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            full_name=user.full_name,
            is_active=user.is_active,
            created_at=user.created_at,
            password_changed_at=user.password_changed_at.isoformat(),
            last_login=user.last_login,
        )


class LoginResponse(BaseModel):
    """Response for POST /login and POST /change-password."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


class PostWrite(BaseModel):
    """Request body for POST /api/v1/posts and PUT /api/v1/posts/{id}.

    There is deliberately no user_id field: the owner is always the
    authenticated caller.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(max_length=1000)
    content: str = Field(max_length=100_000)


class PostResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    content: str
    user_id: int
    created_at: str
    updated_at: str

    @classmethod
    def from_post(cls, post: Post) -> "PostResponse":
        """Build a PostResponse from a domain Post (Factory Method, colocated with the model)."""
        return cls(
            id=post.id,
            title=post.title,
            content=post.content,
            user_id=post.user_id,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


class PostPageResponse(BaseModel):
    """Response for GET /api/v1/posts."""

    model_config = ConfigDict(frozen=True)

    items: list[PostResponse]
    page: int
    page_size: int
    total: int

    @classmethod
    def from_page(cls, page: PostPage) -> "PostPageResponse":
        return cls(
            items=[PostResponse.from_post(p) for p in page.items],
            page=page.page,
            page_size=page.page_size,
            total=page.total,
        )


# ---------------------------------------------------------------------------
# Errors / health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
