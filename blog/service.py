"""
blog/service.py -- Post use cases with server-side ownership enforcement.

Every mutating call re-reads the stored post and compares its user_id with
the authenticated caller's id passed in by the route (taken from the auth
gate's Identity, never from the request body). Only then does it write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from blog.models import Post, PostNotFound, Unauthorized, is_owner, validate_content, validate_title
from blog.store import PostStore

logger = logging.getLogger("blogapi.blog")

DEFAULT_PAGE_SIZE = 10


@dataclass
class PostPage:
    items: list[Post]
    page: int
    page_size: int
    total: int


class PostService:
    def __init__(self, store: PostStore, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self.store = store
        self.page_size = page_size

    def list_posts(self, page: int = 1) -> PostPage:
        """Return one page of posts, newest first. Pages below 1 are treated as 1."""
        page = max(page, 1)
        return PostPage(
            items=self.store.list_posts(page, self.page_size),
            page=page,
            page_size=self.page_size,
            total=self.store.count_posts(),
        )

    def get_post(self, post_id: int) -> Post:
        post = self.store.get_post(post_id)
        if post is None:
            raise PostNotFound()
        return post

    def create_post(self, user_id: int, title: str, content: str) -> Post:
        validate_title(title)
        validate_content(content)
        post_id = self.store.create_post(Post(title=title, content=content, user_id=user_id))
        logger.info("User id=%s created post id=%s", user_id, post_id)
        return self.get_post(post_id)

    def update_post(self, post_id: int, user_id: int, title: str, content: str) -> Post:
        """Replace a post's title and content. Only the owner may do this."""
        existing = self._owned_post(post_id, user_id)
        validate_title(title)
        validate_content(content)
        if not self.store.update_post(existing.id, title, content):
            raise PostNotFound()
        return self.get_post(post_id)

    def delete_post(self, post_id: int, user_id: int) -> None:
        """Delete a post. Only the owner may do this."""
        existing = self._owned_post(post_id, user_id)
        if not self.store.delete_post(existing.id):
            raise PostNotFound()
        logger.info("User id=%s deleted post id=%s", user_id, post_id)

    def _owned_post(self, post_id: int, user_id: int) -> Post:
        existing = self.get_post(post_id)
        if not is_owner(existing, user_id):
            logger.info("User id=%s denied write on post id=%s owned by id=%s", user_id, post_id, existing.user_id)
            raise Unauthorized()
        return existing
