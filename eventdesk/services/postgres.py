from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter

import asyncpg


@dataclass(slots=True)
class DatabaseHealth:
    ok: bool
    latency_ms: float
    detail: str


@dataclass(slots=True)
class PostgresHealthProbe:
    """Direct asyncpg connectivity check, independent of the ORM engine."""

    dsn: str
    timeout: float = 5.0
    _pool: asyncpg.Pool | None = None

    async def get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            self._pool = await asyncpg.create_pool(dsn=self.dsn, min_size=1, max_size=1, timeout=self.timeout)
        return self._pool

    async def check(self) -> DatabaseHealth:
        started = perf_counter()
        try:
            pool = await self.get_pool()
            async with pool.acquire() as connection:
                version = await connection.fetchval("SHOW server_version")
        except (OSError, asyncpg.PostgresError) as exc:
            return DatabaseHealth(ok=False, latency_ms=_elapsed_ms(started), detail=str(exc) or type(exc).__name__)
        return DatabaseHealth(ok=True, latency_ms=_elapsed_ms(started), detail=f"PostgreSQL {version}")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None


def _elapsed_ms(started: float) -> float:
    return round((perf_counter() - started) * 1000.0, 3)
