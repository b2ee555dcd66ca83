"""Tests for core/db.py -- engine construction and pool selection."""

import threading

import pytest
from sqlalchemy import text
from sqlalchemy.pool import SingletonThreadPool

from core.db import is_memory_url, make_engine


@pytest.mark.parametrize(
    "url",
    [
        "sqlite:///:memory:",
        "sqlite:///file:db_pool_check?mode=memory&cache=shared&uri=true",
    ],
)
def test_memory_urls_use_singleton_thread_pool(url: str) -> None:
    engine = make_engine(url)
    try:
        assert is_memory_url(url)
        assert isinstance(engine.pool, SingletonThreadPool)
    finally:
        engine.dispose()


def test_file_url_uses_default_pool(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'pool.db'}"
    engine = make_engine(url)
    try:
        assert not is_memory_url(url)
        assert not isinstance(engine.pool, SingletonThreadPool)
    finally:
        engine.dispose()


def test_shared_memory_database_visible_from_worker_thread() -> None:
    """Handlers run on a thread pool, so each thread must see the same in-memory data."""
    engine = make_engine("sqlite:///file:db_thread_check?mode=memory&cache=shared&uri=true")
    try:
        with engine.connect() as conn:
            conn.execute(text("CREATE TABLE notes (body TEXT)"))
            conn.execute(text("INSERT INTO notes VALUES ('hello')"))
            conn.commit()

        seen: list[str] = []

        def _read() -> None:
            with engine.connect() as conn:
                seen.extend(conn.execute(text("SELECT body FROM notes")).scalars())

        worker = threading.Thread(target=_read)
        worker.start()
        worker.join()
        assert seen == ["hello"]
    finally:
        engine.dispose()
