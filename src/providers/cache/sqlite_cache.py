"""SQLite-backed search-result cache provider.

Persists aggregate results to a local SQLite database at
``data/search_cache.db`` so the cache survives restarts and is shared by
every worker on the host.  Uses ``aiosqlite`` for async I/O over a single
connection opened in :meth:`initialize` and closed in :meth:`close`.

Expiry is an explicit ``expires_at`` column compared at read time; there is
no background sweep.  Expired rows are pruned on :meth:`initialize` and by
:meth:`purge_expired`.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

import aiosqlite
import structlog
from pydantic import ValidationError

from src.interfaces.cache_provider import ICacheProvider
from src.models.search import AggregateResult, CacheEntry
from src.utils.clock import Clock, as_utc, utc_now
from src.utils.errors import StoreUnavailableError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/search_cache.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS search_cache (
    query        TEXT PRIMARY KEY,
    results_json TEXT NOT NULL,
    created_at   TEXT NOT NULL,
    expires_at   TEXT NOT NULL
);
"""

_CREATE_INDEX_SQL = (
    "CREATE INDEX IF NOT EXISTS idx_search_cache_expires ON search_cache(expires_at);"
)

_SELECT_LIVE_SQL = """\
SELECT results_json, created_at, expires_at
FROM search_cache
WHERE query = ? AND expires_at > ?;
"""

_UPSERT_SQL = """\
INSERT INTO search_cache (query, results_json, created_at, expires_at)
VALUES (?, ?, ?, ?)
ON CONFLICT(query)
DO UPDATE SET results_json = excluded.results_json,
              created_at   = excluded.created_at,
              expires_at   = excluded.expires_at;
"""

_DELETE_SQL = "DELETE FROM search_cache WHERE query = ?;"

_PURGE_SQL = "DELETE FROM search_cache WHERE expires_at <= ?;"


def _to_db_time(value: datetime) -> str:
    # Fixed-width UTC ISO strings compare correctly as TEXT.
    return as_utc(value).isoformat(timespec="microseconds")


class SQLiteCacheProvider(ICacheProvider):
    """SQLite-backed search-result cache.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file, or ``":memory:"``.
    clock:
        Returns the current time.  Defaults to UTC wall-clock time.
    """

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        clock: Clock | None = None,
    ) -> None:
        self._db_path = str(db_path)
        self._clock = clock or utc_now
        self._db: aiosqlite.Connection | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Open the connection, create the table and prune expired rows."""
        if self._db is not None:
            return
        try:
            if self._db_path != ":memory:":
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            self._db = await aiosqlite.connect(self._db_path)
            await self._db.execute("PRAGMA journal_mode=WAL")
            await self._db.execute(_CREATE_TABLE_SQL)
            await self._db.execute(_CREATE_INDEX_SQL)
            await self._db.commit()
        except (sqlite3.Error, OSError) as exc:
            # A half-built connection would make the next initialize() a no-op.
            if self._db is not None:
                await self._db.close()
                self._db = None
            raise StoreUnavailableError(
                message=f"Could not open cache database: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        pruned = await self.purge_expired()
        logger.info("search_cache_initialized", path=self._db_path, pruned=pruned)

    async def close(self) -> None:
        """Close the connection.  Safe to call more than once."""
        if self._db is None:
            return
        await self._db.close()
        self._db = None
        logger.info("search_cache_closed", path=self._db_path)

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> CacheEntry | None:
        """Return the live entry for *key*, or ``None`` if missing/expired."""
        db = self._require_connection()
        try:
            async with db.execute(_SELECT_LIVE_SQL, (key, _to_db_time(self._clock()))) as cursor:
                row = await cursor.fetchone()
        except sqlite3.Error as exc:
            raise StoreUnavailableError(
                message=f"Cache read failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if row is None:
            logger.debug("cache_miss", key=key)
            return None

        results_json, created_at, expires_at = row
        try:
            entry = CacheEntry(
                key=key,
                value=AggregateResult.model_validate_json(results_json),
                created_at=datetime.fromisoformat(created_at),
                expires_at=datetime.fromisoformat(expires_at),
            )
        except (ValidationError, ValueError) as exc:
            # Unreadable rows behave as misses; the next put overwrites them.
            logger.warning("cache_entry_unreadable", key=key, error=str(exc)[:200])
            return None

        logger.debug("cache_hit", key=key)
        return entry

    async def put(self, key: str, value: AggregateResult, ttl: int) -> CacheEntry:
        """Upsert *value* under *key* with an expiry *ttl* seconds from now."""
        db = self._require_connection()
        entry = CacheEntry.create(
            key=key,
            value=value,
            created_at=as_utc(self._clock()),
            ttl_seconds=ttl,
        )
        try:
            await db.execute(
                _UPSERT_SQL,
                (
                    key,
                    value.model_dump_json(),
                    _to_db_time(entry.created_at),
                    _to_db_time(entry.expires_at),
                ),
            )
            await db.commit()
        except sqlite3.Error as exc:
            raise StoreUnavailableError(
                message=f"Cache write failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug("cache_set", key=key, expires_at=entry.expires_at.isoformat())
        return entry

    async def delete(self, key: str) -> None:
        """Remove the row for *key* (no-op if absent)."""
        db = self._require_connection()
        try:
            await db.execute(_DELETE_SQL, (key,))
            await db.commit()
        except sqlite3.Error as exc:
            raise StoreUnavailableError(
                message=f"Cache delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.debug("cache_delete", key=key)

    async def purge_expired(self) -> int:
        """Delete every expired row and return the number deleted."""
        db = self._require_connection()
        try:
            cursor = await db.execute(_PURGE_SQL, (_to_db_time(self._clock()),))
            purged = cursor.rowcount
            await cursor.close()
            await db.commit()
        except sqlite3.Error as exc:
            raise StoreUnavailableError(
                message=f"Cache purge failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if purged:
            logger.info("cache_purged", purged=purged)
        return purged

    def get_provider_name(self) -> str:
        return "sqlite_cache"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_connection(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StoreUnavailableError(
                message="Cache database is not open",
                provider_name=self.get_provider_name(),
            )
        return self._db
