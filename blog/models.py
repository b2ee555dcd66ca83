"""
blog/models.py -- Post dataclass and its content and ownership rules.

The rules are pure functions over plain values so the service, the tests and
any future caller share one definition of a valid post.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import AuthorizationFailed, NotFound, ValidationFailed

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 255
CONTENT_MIN_LENGTH = 10


class InvalidTitle(ValidationFailed):
    code = "invalid_title"
    message = f"Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters."


class InvalidContent(ValidationFailed):
    code = "invalid_content"
    message = f"Content must be at least {CONTENT_MIN_LENGTH} characters."


class Unauthorized(AuthorizationFailed):
    code = "unauthorized"
    message = "You are not allowed to modify this post."


class PostNotFound(NotFound):
    code = "post_not_found"
    message = "Post not found."


@dataclass
class Post:
    """A blog post. user_id is the owning account and never changes after insert.

    id is None before the record is written to the database.
    """

    title: str
    content: str
    user_id: int
    id: int | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""


def validate_title(title: str) -> None:
    if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
        raise InvalidTitle()


def validate_content(content: str) -> None:
    if len(content) < CONTENT_MIN_LENGTH:
        raise InvalidContent()


def is_owner(post: Post, user_id: int) -> bool:
    return post.user_id == user_id
