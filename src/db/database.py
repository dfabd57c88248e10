# manages connections to the shared store file, internal to the db package
import asyncio
import os.path
from contextlib import asynccontextmanager
from sqlite3 import Row

import aiosqlite

from utils.logger import get_logger

_logger = get_logger(__name__)

SCHEMA_SCRIPT = os.path.join(os.path.dirname(__file__), "schema.sql")


class Database:
    """
    Connection factory for one store file.

    The schema is created on first use; every client pointed at the same file
    shares the same documents.
    """

    def __init__(self, path: str, timeout: float = 5.0):
        self.path = path
        self.timeout = timeout
        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def _init_db(self, conn: aiosqlite.Connection) -> None:
        _logger.info(f"Initializing store schema in {self.path}...")
        with open(SCHEMA_SCRIPT, "r") as f:
            await conn.executescript(f.read())
        await conn.commit()

    @asynccontextmanager
    async def connect(self) -> aiosqlite.Connection:
        """Async context manager yielding an aiosqlite connection to the store."""
        parent = os.path.dirname(self.path)
        if parent and not os.path.isdir(parent):
            os.makedirs(parent, exist_ok=True)

        conn = await aiosqlite.connect(self.path, timeout=self.timeout)
        try:
            conn.row_factory = Row
            if not self._initialized:
                async with self._init_lock:
                    if not self._initialized:
                        await self._init_db(conn)
                        self._initialized = True
            yield conn
        finally:
            await conn.close()
