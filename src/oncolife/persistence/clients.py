"""
Backend Clients

Builds the session store, persistence gateway and patient directory from
settings. Backends that cannot be reached fall back to in-memory.
"""

from dataclasses import dataclass, field
from typing import Any

import asyncpg
import redis.asyncio as redis
import structlog

from oncolife.engine.session_store import InMemorySessionStore, RedisSessionStore, SessionStore
from oncolife.persistence.gateway import (
    InMemoryPatientDirectory,
    InMemoryPersistenceGateway,
    PatientDirectory,
    PersistenceGateway,
)
from oncolife.persistence.postgres import PostgresPatientDirectory, PostgresPersistenceGateway
from oncolife.persistence.resilient import ResilientPersistence

logger = structlog.get_logger(__name__)


@dataclass
class Backends:
    """Container for the engine's collaborators."""
    
    store: SessionStore
    persistence: ResilientPersistence
    patients: PatientDirectory
    
    redis: Any = None
    postgres: Any = None
    _closed: bool = field(default=False, repr=False)
    
    async def close(self) -> None:
        if self._closed:
            return
        if self.redis is not None:
            await self.redis.aclose()
        if self.postgres is not None:
            await self.postgres.close()
        self._closed = True
        logger.info("Backends closed")


async def init_postgres(settings) -> Any:
    """Initialize PostgreSQL connection pool. Returns None when unreachable."""
    try:
        pool = await asyncpg.create_pool(
            host=settings.postgres.host,
            port=settings.postgres.port,
            user=settings.postgres.user,
            password=settings.postgres.password.get_secret_value(),
            database=settings.postgres.database,
            min_size=settings.postgres.min_pool_size,
            max_size=settings.postgres.max_pool_size,
        )
        
        # Test connection
        async with pool.acquire() as conn:
            version = await conn.fetchval("SELECT version()")
            logger.info("PostgreSQL connected", version=version[:50])
        
        return pool
    except Exception as e:
        logger.error("PostgreSQL connection failed", error=str(e))
        return None


async def init_redis(settings) -> Any:
    """Initialize Redis client. Returns None when unreachable."""
    try:
        client = redis.from_url(settings.redis.connection_url)
        
        # Test connection
        await client.ping()
        logger.info("Redis connected")
        
        return client
    except Exception as e:
        logger.warning("Redis connection failed, using in-memory sessions", error=str(e))
        return None


async def init_backends(settings) -> Backends:
    """
    Initialize the session store and persistence backends.
    
    Called during application startup.
    """
    engine = settings.engine
    
    redis_client = None
    store: SessionStore
    if engine.session_backend == "redis":
        redis_client = await init_redis(settings)
    if redis_client is not None:
        store = RedisSessionStore(
            redis_client,
            key_prefix=settings.redis.key_prefix,
            ttl_seconds=engine.session_ttl_seconds,
            lock_timeout=engine.session_lock_timeout,
            terminal_ttl_seconds=engine.session_terminal_ttl_seconds,
        )
    else:
        store = InMemorySessionStore(
            ttl_seconds=engine.session_ttl_seconds,
            terminal_ttl_seconds=engine.session_terminal_ttl_seconds,
        )
    
    pool = None
    gateway: PersistenceGateway
    patients: PatientDirectory
    if engine.persistence_backend == "postgres":
        pool = await init_postgres(settings)
    if pool is not None:
        gateway = PostgresPersistenceGateway(pool)
        patients = PostgresPatientDirectory(pool)
    else:
        if engine.persistence_backend == "postgres":
            logger.warning("Using in-memory persistence")
        gateway = InMemoryPersistenceGateway()
        patients = InMemoryPatientDirectory()
    
    backends = Backends(
        store=store,
        persistence=ResilientPersistence(
            gateway,
            retries=engine.persistence_retries,
            retry_delay=engine.persistence_retry_delay,
        ),
        patients=patients,
        redis=redis_client,
        postgres=pool,
    )
    logger.info(
        "Backends initialized",
        session_store=type(store).__name__,
        gateway=type(gateway).__name__,
    )
    return backends
