"""
blog/store.py -- SQLAlchemy-backed persistence layer for posts.

Uses SQLAlchemy Core (not ORM) so the Post dataclass in blog/models.py stays
the authoritative domain representation; the Table below is the storage
shape and never leaves this module.

Pattern: Repository + Data Mapper. PostStore is the repository, _row_to_post
is the mapper. Not-found is returned as None (or False for writes), never
raised, so callers can tell it apart from a store failure.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = PostStore("sqlite:///:memory:")
    post_id = store.create_post(Post(title="Hello", content="...", user_id=1))
    posts = store.list_posts(page=1, page_size=10)
    store.close()
"""

from __future__ import annotations

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from blog.models import Post
from core.db import make_engine, now_iso

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_posts = Table(
    "posts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("content", Text, nullable=False),
    Column("user_id", Integer, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_posts_user_id", "user_id"),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PostStore:
    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def create_post(self, post: Post) -> int:
        """Insert a new post and return its assigned database ID."""
        now = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _posts.insert().values(
                    title=post.title,
                    content=post.content,
                    user_id=post.user_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_post(self, post_id: int) -> Post | None:
        """Fetch a single post by ID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_posts.select().where(_posts.c.id == post_id)).fetchone()
        return _row_to_post(row) if row is not None else None

    def list_posts(self, page: int, page_size: int) -> list[Post]:
        """Return one page of posts, newest first. page is 1-based."""
        offset = (max(page, 1) - 1) * page_size
        with self.engine.connect() as conn:
            rows = conn.execute(
                _posts.select().order_by(_posts.c.id.desc()).offset(offset).limit(page_size)
            ).fetchall()
        return [_row_to_post(r) for r in rows]

    def count_posts(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_posts)).scalar()
        return result or 0

    def update_post(self, post_id: int, title: str, content: str) -> bool:
        """Replace title and content and stamp updated_at.

        user_id is deliberately not writable here: ownership never moves.
        Returns True if a row was updated, False if post_id was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _posts.update()
                .where(_posts.c.id == post_id)
                .values(title=title, content=content, updated_at=now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def delete_post(self, post_id: int) -> bool:
        """Delete a post. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_posts.delete().where(_posts.c.id == post_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_post(row) -> Post:
    return Post(
        id=row.id,
        title=row.title,
        content=row.content,
        user_id=row.user_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
