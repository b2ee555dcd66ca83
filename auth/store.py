"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as blog/store.py).
UserStore is the repository; _row_to_user is the mapper. Route and service
code never touches SQL directly, and the Table below never leaves this module.

Security:
  All queries use bound parameters. No f-strings in SQL.

Not-found is returned as None, never raised, so callers can tell it apart
from a store failure (which propagates as sqlalchemy.exc.SQLAlchemyError).

Unique constraints on username and email are the last line of defence for
registration races. The service checks uniqueness before writing; if a
concurrent insert wins anyway, create_user() translates the IntegrityError
into DuplicateUsername / DuplicateEmail so callers never see a raw
constraint violation.

Layer rule: no imports from api/ or blog/.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import DuplicateEmail, DuplicateUsername, User, normalize_email
from core.db import make_engine, now_iso, parse_iso
from core.errors import Conflict

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(320), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("password_changed_at", String(32), nullable=False),
    Column("first_name", String(100), nullable=False, server_default=""),
    Column("last_name", String(100), nullable=False, server_default=""),
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("last_login", String(32)),  # NULL until the first successful login
)

# Fields update_user() accepts. Anything else is a programming error.
_MUTABLE_FIELDS = {"email", "first_name", "last_name", "is_active", "password_hash", "password_changed_at"}


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///:memory:")
        user_id = store.create_user(User(username="alice", email="a@example.com", ...))
        user = store.get_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises DuplicateUsername / DuplicateEmail if a unique constraint fires.
        """
        now = now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=user.username,
                        email=normalize_email(user.email),
                        password_hash=user.password_hash,
                        password_changed_at=user.password_changed_at.isoformat(),
                        first_name=user.first_name,
                        last_name=user.last_name,
                        is_active=1 if user.is_active else 0,
                        created_at=now,
                        updated_at=now,
                    )
                )
                conn.commit()
                return result.inserted_primary_key[0]
        except IntegrityError as exc:
            duplicate = _duplicate_error(exc)
            if duplicate is None:
                raise
            raise duplicate from exc

    def update_user(self, user_id: int, **fields) -> bool:
        """Update mutable fields on an existing user.

        Accepted fields: email, first_name, last_name, is_active, password_hash,
        password_changed_at (datetime). updated_at is stamped automatically.

        Returns True if a row was updated, False if user_id was not found.
        Raises DuplicateEmail if the new email belongs to someone else.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported user fields: {sorted(unknown)}")
        if "is_active" in fields:
            fields["is_active"] = 1 if fields["is_active"] else 0
        if "email" in fields:
            fields["email"] = normalize_email(fields["email"])
        if isinstance(fields.get("password_changed_at"), datetime):
            fields["password_changed_at"] = fields["password_changed_at"].isoformat()
        fields["updated_at"] = now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
                conn.commit()
        except IntegrityError as exc:
            duplicate = _duplicate_error(exc)
            if duplicate is None:
                raise
            raise duplicate from exc
        return result.rowcount > 0

    def update_last_login(self, user_id: int) -> None:
        """Stamp the current UTC timestamp as last_login for the given user."""
        with self.engine.connect() as conn:
            conn.execute(_users.update().where(_users.c.id == user_id).values(last_login=now_iso()))
            conn.commit()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by email (case-insensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == normalize_email(email))).fetchone()
        return _row_to_user(row) if row is not None else None

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _duplicate_error(exc: IntegrityError) -> Conflict | None:
    """Map a unique-constraint violation onto the matching domain error.

    SQLite reports "UNIQUE constraint failed: users.email"; PostgreSQL names
    the constraint (users_email_key). Both mention the column.
    """
    detail = str(exc.orig).lower()
    if "email" in detail:
        return DuplicateEmail()
    if "username" in detail:
        return DuplicateUsername()
    return None


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        password_hash=row.password_hash,
        password_changed_at=parse_iso(row.password_changed_at),
        first_name=row.first_name or "",
        last_name=row.last_name or "",
        is_active=bool(row.is_active),
        created_at=row.created_at,
        updated_at=row.updated_at,
        last_login=row.last_login,
    )
