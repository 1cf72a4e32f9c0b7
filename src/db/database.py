# manages connection to db, provides helper methods internal to db package
import asyncio
import os.path
from contextlib import asynccontextmanager
from sqlite3 import Row
from typing import AsyncIterator

import aiosqlite

from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

DB_PATH = settings.db_path
DB_TIMEOUT = settings.db_timeout
SEED_CATALOG = settings.seed

_SQL_DIR = os.path.dirname(os.path.abspath(__file__))
SCHEMA_SCRIPT = os.path.join(_SQL_DIR, "schema.sql")
SEED_SCRIPT = os.path.join(_SQL_DIR, "seed.sql")

_initialized = False
_init_lock = asyncio.Lock()


async def _run_script(conn: aiosqlite.Connection, script: str) -> None:
    if not os.path.exists(script) or os.path.getsize(script) == 0:
        return
    _logger.info(f"Running script {os.path.basename(script)}...")
    with open(script, "r", encoding="utf-8") as f:
        await conn.executescript(f.read())


async def _init_db(conn: aiosqlite.Connection) -> None:
    await conn.execute("PRAGMA journal_mode = WAL;")
    await _run_script(conn, SCHEMA_SCRIPT)
    if SEED_CATALOG:
        await _run_script(conn, SEED_SCRIPT)
    await conn.commit()


async def _table_exists(conn: aiosqlite.Connection, table_name: str) -> bool:
    cur = await conn.execute(
        """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table'
          AND name = ?;
        """,
        (table_name,),
    )
    row = await cur.fetchone()
    await cur.close()
    return row is not None


@asynccontextmanager
async def connect(**kwargs) -> AsyncIterator[aiosqlite.Connection]:
    """Async context manager yielding an aiosqlite connection with FK enabled.

    Ensures the database is initialized (tables and sample catalog) on first use.
    Extra keyword arguments are passed through to sqlite3.connect.
    """
    global _initialized
    db_dir = os.path.dirname(DB_PATH)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    kwargs.setdefault("timeout", DB_TIMEOUT)
    conn = await aiosqlite.connect(DB_PATH, **kwargs)
    try:
        conn.row_factory = Row
        await conn.execute("PRAGMA foreign_keys = ON;")

        if not _initialized:
            async with _init_lock:
                if not _initialized:
                    if not await _table_exists(conn, "products"):
                        _logger.info(f"Initializing database at {DB_PATH}...")
                        await _init_db(conn)
                    _initialized = True
        yield conn
    finally:
        await conn.close()


@asynccontextmanager
async def transaction() -> AsyncIterator[aiosqlite.Connection]:
    """Yield a connection inside a write transaction, committed on clean exit.

    BEGIN IMMEDIATE takes the database write lock up front, so two
    transactions never interleave their read-then-write steps; a second
    caller waits up to DB_TIMEOUT seconds for the lock. Any exception raised
    inside the block rolls every statement back.
    """
    async with connect(isolation_level=None) as conn:
        await conn.execute("BEGIN IMMEDIATE;")
        try:
            yield conn
        except BaseException:
            if conn.in_transaction:
                await conn.rollback()
            raise
        else:
            await conn.commit()
