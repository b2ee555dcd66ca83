"""
api/routes/v1/posts.py -- Blog post REST endpoints.

Routes:
  GET    /api/v1/posts?page=N   -- paginated list, newest first (public)
  GET    /api/v1/posts/{id}     -- single post (public)
  POST   /api/v1/posts          -- create a post owned by the caller (requires auth)
  PUT    /api/v1/posts/{id}     -- replace title/content (requires auth + ownership)
  DELETE /api/v1/posts/{id}     -- delete (requires auth + ownership)

IDOR guard: the owner id always comes from the auth gate's Identity. The
request body has no user_id field, and PostService re-reads the stored post
before every write to compare owners.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request, Response

from api.models import PostPageResponse, PostResponse, PostWrite
from auth.dependencies import get_identity
from auth.models import Identity
from blog.service import PostService

# Auth policy:
# - GET    /api/v1/posts, /api/v1/posts/{id}: public -- reading the blog needs no account
# - POST   /api/v1/posts:                     requires auth (get_identity)
# - PUT    /api/v1/posts/{id}:                requires auth + ownership (403 otherwise)
# - DELETE /api/v1/posts/{id}:                requires auth + ownership (403 otherwise)
router = APIRouter()

# Largest value an SQLite INTEGER column can hold.
MAX_POST_ID = 2**63 - 1
# Caps the page offset well inside the INTEGER range.
MAX_PAGE = 1_000_000

PostId = Annotated[int, Path(ge=1, le=MAX_POST_ID)]


def _posts(request: Request) -> PostService:
    return request.app.state.posts


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.get("/posts", response_model=PostPageResponse)
def list_posts(request: Request, page: int = Query(1, le=MAX_PAGE)) -> PostPageResponse:
    """Return one page of posts. Page numbers below 1 are served as page 1."""
    return PostPageResponse.from_page(_posts(request).list_posts(page))


@router.get("/posts/{post_id}", response_model=PostResponse)
def get_post(request: Request, post_id: PostId) -> PostResponse:
    return PostResponse.from_post(_posts(request).get_post(post_id))


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.post("/posts", response_model=PostResponse, status_code=201)
def create_post(
    request: Request,
    body: PostWrite,
    identity: Identity = Depends(get_identity),
) -> PostResponse:
    post = _posts(request).create_post(identity.user_id, body.title, body.content)
    return PostResponse.from_post(post)


@router.put("/posts/{post_id}", response_model=PostResponse)
def update_post(
    request: Request,
    post_id: PostId,
    body: PostWrite,
    identity: Identity = Depends(get_identity),
) -> PostResponse:
    """Replace a post's title and content. 403 unless the caller owns it."""
    post = _posts(request).update_post(post_id, identity.user_id, body.title, body.content)
    return PostResponse.from_post(post)


@router.delete("/posts/{post_id}", status_code=204)
def delete_post(
    request: Request,
    post_id: PostId,
    identity: Identity = Depends(get_identity),
) -> Response:
    """Delete a post. 403 unless the caller owns it."""
    _posts(request).delete_post(post_id, identity.user_id)
    return Response(status_code=204)
