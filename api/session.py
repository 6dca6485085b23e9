"""Signed session IDs and session storage (Redis, or in-memory fallback)."""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

import redis.asyncio as redis
from redis.exceptions import RedisError
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from config import config

logger = logging.getLogger(__name__)

SessionData = dict[str, Any]


class SessionSigner:
    """Sign and verify session IDs using itsdangerous."""

    def __init__(self, secret_key: str | None = None) -> None:
        self._serializer = URLSafeTimedSerializer(
            secret_key or config.security.secret_key,
            salt="table-session",
        )

    def sign(self, session_id: str) -> str:
        """Turn a raw session ID into a token safe to hand to clients."""
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Recover the raw session ID from a token.

        Returns None for tampered, foreign, or expired tokens. ``max_age``
        defaults to the session TTL.
        """
        try:
            return self._serializer.loads(token, max_age=max_age or config.session_ttl)
        except (BadSignature, SignatureExpired):
            return None


_session_signer: SessionSigner | None = None


def get_session_signer() -> SessionSigner:
    """Get or create the process-wide signer."""
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


class SessionStore(ABC):
    """
    Key-value storage for session data.

    Every write restarts the entry's TTL, so a session stays alive as long
    as its tables keep changing.
    """

    @abstractmethod
    async def get(self, session_id: str) -> SessionData | None:
        ...

    @abstractmethod
    async def set(self, session_id: str, data: SessionData, ttl: int | None = None) -> None:
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        ...

    async def exists(self, session_id: str) -> bool:
        return await self.get(session_id) is not None

    async def cleanup_expired(self) -> int:
        """Drop expired entries; stores that expire keys themselves drop none."""
        return 0

    def create_session_id(self, signed: bool = True) -> str:
        """Create a fresh session ID, signed unless ``signed`` is False."""
        session_id = str(uuid4())
        return get_session_signer().sign(session_id) if signed else session_id


class InMemorySessionStore(SessionStore):
    """Single-process store used when Redis is unavailable."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[SessionData, datetime]] = {}

    async def get(self, session_id: str) -> SessionData | None:
        entry = self._entries.get(session_id)
        if entry is None:
            return None
        data, expires_at = entry
        if expires_at < datetime.now():
            del self._entries[session_id]
            return None
        return data

    async def set(self, session_id: str, data: SessionData, ttl: int | None = None) -> None:
        expires_at = datetime.now() + timedelta(seconds=ttl or config.session_ttl)
        self._entries[session_id] = (data, expires_at)

    async def delete(self, session_id: str) -> None:
        self._entries.pop(session_id, None)

    async def cleanup_expired(self) -> int:
        """Drop expired entries and return how many were dropped."""
        now = datetime.now()
        expired = [sid for sid, (_, expires_at) in self._entries.items() if expires_at < now]
        for sid in expired:
            del self._entries[sid]
        if expired:
            logger.debug("Dropped %d expired sessions", len(expired))
        return len(expired)


class RedisSessionStore(SessionStore):
    """Store session data as JSON strings under ``tables:session:<id>``."""

    KEY_PREFIX = "tables:session:"

    def __init__(self, redis_client: redis.Redis) -> None:
        self._redis = redis_client

    def _key(self, session_id: str) -> str:
        return f"{self.KEY_PREFIX}{session_id}"

    async def get(self, session_id: str) -> SessionData | None:
        raw = await self._redis.get(self._key(session_id))
        return None if raw is None else json.loads(raw)

    async def set(self, session_id: str, data: SessionData, ttl: int | None = None) -> None:
        await self._redis.setex(
            self._key(session_id),
            ttl or config.session_ttl,
            json.dumps(data),
        )

    async def delete(self, session_id: str) -> None:
        await self._redis.delete(self._key(session_id))

    async def exists(self, session_id: str) -> bool:
        return await self._redis.exists(self._key(session_id)) > 0


_session_store: SessionStore | None = None


async def get_session_store() -> SessionStore:
    """Get the process-wide store, connecting to Redis on first use."""
    global _session_store
    if _session_store is not None:
        return _session_store

    try:
        client = redis.from_url(config.redis.url)
        await client.ping()
    except (RedisError, OSError) as e:
        logger.warning("Redis unavailable (%s), using in-memory session store", e)
        _session_store = InMemorySessionStore()
    else:
        logger.info("Using Redis session store at %s:%s", config.redis.host, config.redis.port)
        _session_store = RedisSessionStore(client)
    return _session_store


async def create_session(data: SessionData | None = None) -> str:
    """Store a new session and return its signed ID."""
    store = await get_session_store()
    session_id = store.create_session_id()
    await store.set(session_id, data or {})
    return session_id


async def delete_session(session_id: str) -> None:
    store = await get_session_store()
    await store.delete(session_id)


def extract_session_id(token: str) -> str | None:
    """Return the raw session ID inside a signed token, or None if invalid."""
    return get_session_signer().unsign(token)
