"""
core/database.py -- Engine construction shared by the user and task stores.

Both stores accept a plain SQLAlchemy URL. For SQLite this adds the settings
the stores need:
  - check_same_thread=False, since sync route handlers run in FastAPI's
    threadpool and a pooled connection can move between threads
  - PRAGMA journal_mode=WAL on every new connection
  - an explicit SingletonThreadPool for in-memory databases (":memory:" or a
    "mode=memory" URI), one connection per thread, so a private in-memory
    database survives between calls from the same thread

Layer rule: core/ is the kernel. No imports from api/, auth/, or tasks/.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import SingletonThreadPool


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def is_memory_sqlite(db_url: str) -> bool:
    url = make_url(db_url)
    if url.get_backend_name() != "sqlite":
        return False
    return url.database in (None, "", ":memory:") or url.query.get("mode") == "memory"


def make_engine(db_url: str) -> Engine:
    """Return an Engine for db_url with the SQLite adjustments applied."""
    if make_url(db_url).get_backend_name() != "sqlite":
        return create_engine(db_url)

    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if is_memory_sqlite(db_url):
        kwargs["poolclass"] = SingletonThreadPool
    engine = create_engine(db_url, **kwargs)
    event.listen(engine, "connect", _set_wal_mode)
    return engine
